"""Shared documents for card tree tests."""

import json

import pytest

from cardtree.activity import (
    ActionTypes,
    Attachment,
    CardAction,
    ContentTypes,
    HeroCard,
    MessageActivity,
)


@pytest.fixture
def hero_message():
    """
    A message with one hero card holding two postBack buttons.

    The first button's value is already a JSON object without IDs. The second
    button's value isn't JSON, but its text holds action data with a card ID.
    """
    card = HeroCard(
        title="Pick one",
        buttons=[
            CardAction(type=ActionTypes.POST_BACK, title="First", value={"choice": 1}),
            CardAction(
                type=ActionTypes.POST_BACK,
                title="Second",
                value="not json",
                text=json.dumps({"choice": 2, "dataIds": {"card": "abc"}}),
            ),
        ],
    )
    return MessageActivity(
        attachments=[Attachment(content_type=ContentTypes.HERO_CARD, content=card)],
    )


@pytest.fixture
def adaptive_card():
    """An Adaptive Card with a nested submit action and one without data."""
    return {
        "type": "AdaptiveCard",
        "version": "1.4",
        "body": [
            {"type": "TextBlock", "text": "Hello"},
            {
                "type": "ActionSet",
                "actions": [
                    {"type": "Action.Submit", "title": "Nested", "data": {"dataIds": {"card": "c1"}}},
                ],
            },
        ],
        "actions": [
            {"type": "Action.Submit", "title": "Bare"},
            {"type": "Action.OpenUrl", "url": "https://example.com"},
        ],
    }
