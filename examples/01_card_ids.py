"""
Card IDs Example
================

This example shows how to tag the actions of outgoing cards with data IDs and
read them back when a user clicks one. It covers:

1. Applying action and card IDs to a message with a hero card
2. Collecting the IDs found in a message
3. Applying IDs to an Adaptive Card given as a dict
4. Walking the tree with recurse() for a custom traversal
"""

from cardtree import (
    ActionTypes,
    Attachment,
    CardAction,
    ContentTypes,
    DataIdOptions,
    DataIdTypes,
    HeroCard,
    MessageActivity,
    NodeKind,
    apply_ids,
    get_ids,
    recurse,
)


# ============================================================================
# Step 1: Build a Message
# ============================================================================


def build_message() -> MessageActivity:
    card = HeroCard(
        title="Pick a size",
        buttons=[
            CardAction(type=ActionTypes.POST_BACK, title="Small", value={"size": "S"}),
            CardAction(type=ActionTypes.POST_BACK, title="Large", value={"size": "L"}),
            CardAction(type=ActionTypes.OPEN_URL, title="Size guide", value="https://example.com"),
        ],
    )
    return MessageActivity(
        attachments=[Attachment(content_type=ContentTypes.HERO_CARD, content=card)],
    )


# ============================================================================
# Step 2: Apply and Collect IDs
# ============================================================================


def example_hero_card() -> None:
    message = build_message()

    # Each postBack button gets its own action ID and the card ID they share
    apply_ids(message, DataIdOptions.of(DataIdTypes.ACTION, DataIdTypes.CARD))

    for button in message.attachments[0].content.buttons:
        print(f"{button.title}: {button.value}")

    print("Collected:")
    for item in sorted(get_ids(message), key=lambda item: (item.type, item.value)):
        print(f"  {item.type} = {item.value}")


# ============================================================================
# Step 3: Adaptive Cards
# ============================================================================


def example_adaptive_card() -> None:
    card = {
        "type": "AdaptiveCard",
        "version": "1.4",
        "body": [{"type": "Input.Text", "id": "comment"}],
        "actions": [{"type": "Action.Submit", "title": "Send"}],
    }

    # Adaptive Cards only fit a wildcard node, so the kind is given explicitly
    card = apply_ids(card, DataIdOptions({"card": "feedback-form"}), NodeKind.ADAPTIVE_CARD)

    print(card["actions"][0])
    print(get_ids(card, NodeKind.ADAPTIVE_CARD))


# ============================================================================
# Step 4: Custom Traversals
# ============================================================================


def example_recurse() -> None:
    message = build_message()
    titles = []

    # The exit node is resolved from the annotation of the action's parameter
    def visit(action: CardAction) -> None:
        titles.append(action.title)

    recurse([message], visit)
    print(f"Button titles: {titles}")


def main() -> None:
    print("=" * 80)
    print("Card IDs Example")
    print("=" * 80)
    print()

    print("--- Example 1: Hero Card ---")
    example_hero_card()
    print()

    print("--- Example 2: Adaptive Card ---")
    example_adaptive_card()
    print()

    print("--- Example 3: Custom Traversal ---")
    example_recurse()
    print()


if __name__ == "__main__":
    main()
