"""Tests for cardtree.tree module."""

import copy
import json

import pytest

from cardtree.activity import (
    ActionTypes,
    Attachment,
    CardAction,
    ContentTypes,
    HeroCard,
    MessageActivity,
    ThumbnailCard,
)
from cardtree.dataids import (
    DATA_IDS_KEY,
    DataIdOptions,
    DataIdTypes,
    DataItem,
    get_id_from_action_data,
)
from cardtree.errors import NodeArgumentError, NodeResolutionError
from cardtree.nodes import TREE, NodeKind
from cardtree.tree import apply_ids, get_ids, recurse


def postback(data, title=None):
    return CardAction(type=ActionTypes.POST_BACK, title=title, value=data)


def hero_attachment(*buttons):
    return Attachment(content_type=ContentTypes.HERO_CARD, content=HeroCard(buttons=list(buttons)))


def adaptive_attachment(card):
    return Attachment(content_type=ContentTypes.ADAPTIVE_CARD, content=card)


def button_ids(attachment, id_type):
    return [get_id_from_action_data(b.value, id_type) for b in attachment.content.buttons]


class TestRecurse:
    """Test the recursion engine."""

    def test_entry_and_exit_from_types(self, hero_message):
        """Test nodes are resolved from the entry value and action annotation."""
        found = []

        def collect(action: CardAction) -> None:
            found.append(action.title)

        result = recurse(hero_message, collect)
        assert result is hero_message
        assert found == ["First", "Second"]

    def test_exit_kind_for_unannotated_action(self, hero_message):
        """Test an explicit exit kind lets a lambda be the action."""
        found = []
        recurse(hero_message, found.append, exit_kind=NodeKind.CARD_ACTION_LIST)
        assert found == [hero_message.attachments[0].content.buttons]

    def test_exit_type(self, hero_message):
        """Test the exit node can be resolved from an explicit type."""
        found = []
        recurse(hero_message, found.append, exit_type=HeroCard)
        assert found == [hero_message.attachments[0].content]

    def test_entry_kind(self, adaptive_card):
        """Test an explicit entry kind for a value that only fits a wildcard."""
        found = []
        recurse(adaptive_card, found.append, NodeKind.ADAPTIVE_CARD, NodeKind.ACTION_DATA)
        assert found == [{"dataIds": {"card": "c1"}}]

    def test_entry_kind_with_empty_batch(self):
        """Test an empty list is accepted as a batch when the kind is given."""
        found = []
        assert recurse([], found.append, NodeKind.BATCH, NodeKind.ID) == []
        assert found == []

    def test_read_only_returns_same_objects(self, hero_message):
        """Test nothing is replaced without reassignment."""
        attachments = hero_message.attachments
        card = attachments[0].content
        buttons = card.buttons

        def replace(data: dict) -> None:
            data["seen"] = True

        assert recurse(hero_message, replace) is hero_message
        assert hero_message.attachments is attachments
        assert attachments[0].content is card
        assert card.buttons is buttons

    def test_read_only_adaptive_card_entry(self, adaptive_card):
        """Test an Adaptive Card entry comes back equal but new."""
        original = copy.deepcopy(adaptive_card)
        result = recurse(adaptive_card, lambda data: None, NodeKind.ADAPTIVE_CARD, NodeKind.ACTION_DATA)
        assert result == original
        assert result is not adaptive_card
        assert adaptive_card == original

    def test_read_only_keeps_attachment_content(self, adaptive_card):
        """Test an Adaptive Card attachment keeps its content without reassignment."""
        attachment = adaptive_attachment(adaptive_card)
        recurse([MessageActivity(attachments=[attachment])], lambda data: None, exit_kind=NodeKind.ID)
        assert attachment.content is adaptive_card

    def test_reassign_replaces_adaptive_card_content(self, adaptive_card):
        """Test reassignment puts the converted card back in the attachment."""
        attachment = adaptive_attachment(adaptive_card)
        recurse(attachment, lambda data: None, exit_kind=NodeKind.ID, reassign_children=True)
        assert attachment.content == adaptive_card
        assert attachment.content is not adaptive_card

    def test_callback_once_per_element(self):
        """Test the action runs once per element and the shape is kept."""
        buttons = [postback({"n": n}) for n in range(3)]
        seen = []

        def visit(data: dict) -> None:
            seen.append(data["n"])

        result = recurse(buttons, visit, reassign_children=True)
        assert result is buttons
        assert len(result) == 3
        assert seen == [0, 1, 2]
        assert [b.value["n"] for b in result] == [0, 1, 2]

    def test_intermediate_values_pre_order(self, hero_message):
        """Test intermediate values are visited parent first, exit excluded."""
        visited = []

        def handle(data_id: DataItem) -> None:
            visited.append(("exit", data_id))

        recurse(
            hero_message,
            handle,
            process_intermediate_value=lambda value, node: visited.append(node.kind),
        )
        assert visited == [
            NodeKind.ACTIVITY,
            NodeKind.CAROUSEL,
            NodeKind.ATTACHMENT,
            NodeKind.HERO_CARD,
            NodeKind.CARD_ACTION_LIST,
            NodeKind.CARD_ACTION,
            NodeKind.ACTION_DATA,
            NodeKind.CARD_ACTION,
            NodeKind.ACTION_DATA,
            ("exit", DataItem("card", "abc")),
        ]

    def test_intermediate_value_gets_node(self, hero_message):
        """Test the hook receives the value with its node."""
        pairs = []
        recurse(
            hero_message,
            lambda action: None,
            exit_kind=NodeKind.CAROUSEL,
            process_intermediate_value=lambda value, node: pairs.append((value, node)),
        )
        assert pairs == [(hero_message, TREE[NodeKind.ACTIVITY])]

    def test_no_recursion_below_exit(self, hero_message):
        """Test nothing below the exit node is visited."""
        kinds = []
        recurse(
            hero_message,
            lambda value: None,
            exit_kind=NodeKind.ATTACHMENT,
            process_intermediate_value=lambda value, node: kinds.append(node.kind),
        )
        assert kinds == [NodeKind.ACTIVITY, NodeKind.CAROUSEL]

    def test_exit_value_converted_from_dict(self):
        """Test dict children are converted to the exit type."""
        found = []

        def collect(card: HeroCard) -> None:
            found.append(card)

        attachment = Attachment(content_type=ContentTypes.HERO_CARD, content={"title": "T"})
        recurse(attachment, collect)
        assert found == [HeroCard(title="T")]

    def test_exit_value_of_wrong_type_skipped(self):
        """Test exit values that aren't of the exit type are skipped."""
        found = []

        def collect(card: HeroCard) -> None:
            found.append(card)

        attachment = Attachment(content_type=ContentTypes.HERO_CARD, content="not a card")
        recurse(attachment, collect, exit_kind=NodeKind.HERO_CARD)
        assert found == []

    def test_none_children_skipped(self):
        """Test missing children are neither visited nor passed to the action."""
        kinds = []
        activity = MessageActivity()
        recurse(
            activity,
            lambda value: pytest.fail("no attachments expected"),
            exit_kind=NodeKind.ATTACHMENT,
            process_intermediate_value=lambda value, node: kinds.append(node.kind),
        )
        assert kinds == [NodeKind.ACTIVITY]

    def test_entry_error(self):
        """Test entry resolution errors name the entry side."""
        with pytest.raises(NodeArgumentError, match="entry node") as exc_info:
            recurse("text", lambda data: None, exit_kind=NodeKind.ID)
        assert exc_info.value.side == "entry"
        assert exc_info.value.py_type is str
        assert isinstance(exc_info.value.__cause__, NodeResolutionError)

    def test_exit_error(self, hero_message):
        """Test exit resolution errors name the exit side."""
        with pytest.raises(NodeArgumentError, match="exit node") as exc_info:
            recurse(hero_message, lambda data: None)
        assert exc_info.value.side == "exit"
        assert "object type argument" in str(exc_info.value)

    def test_ambiguous_entry(self):
        """Test an ambiguous entry value needs a kind."""

        class HeroThumbnailCard(HeroCard, ThumbnailCard):
            pass

        card = HeroThumbnailCard(buttons=[postback({})])
        with pytest.raises(NodeArgumentError, match="Multiple nodes"):
            recurse(card, lambda data: None, exit_kind=NodeKind.ACTION_DATA)

        found = []
        recurse(card, found.append, NodeKind.HERO_CARD, NodeKind.ACTION_DATA)
        assert found == [{}]

    def test_incompatible_entry_kind(self, hero_message):
        """Test an entry kind that doesn't fit the value."""
        with pytest.raises(NodeArgumentError, match="entry node"):
            recurse(hero_message, lambda data: None, NodeKind.ATTACHMENT, NodeKind.ID)

    def test_entry_kind_with_wrong_elements(self):
        """Test a sequence kind rejects a list of other models."""
        with pytest.raises(NodeArgumentError, match="not assignable") as exc_info:
            recurse([HeroCard()], lambda data: None, NodeKind.BATCH, NodeKind.ID)
        assert exc_info.value.side == "entry"

    def test_entry_kind_with_string(self):
        """Test a string is not accepted as a sequence kind."""
        with pytest.raises(NodeArgumentError, match="not assignable") as exc_info:
            recurse("abc", lambda data: None, NodeKind.CAROUSEL, NodeKind.ID, True)
        assert exc_info.value.side == "entry"
        assert exc_info.value.py_type is str

    def test_unknown_entry_kind(self):
        """Test an unknown entry kind names the entry side."""
        with pytest.raises(NodeArgumentError, match="Unknown node kind") as exc_info:
            recurse([], lambda data: None, "nope", NodeKind.ID)
        assert exc_info.value.side == "entry"

    def test_unknown_exit_kind(self, hero_message):
        """Test an unknown exit kind names the exit side."""
        with pytest.raises(NodeArgumentError, match="Unknown node kind") as exc_info:
            recurse(hero_message, lambda data: None, exit_kind="nope")
        assert exc_info.value.side == "exit"

    def test_callback_errors_propagate(self, hero_message):
        """Test errors from the action abort the traversal unchanged."""

        class Stop(Exception):
            pass

        calls = []

        def stop(action: CardAction) -> None:
            calls.append(action)
            raise Stop

        with pytest.raises(Stop):
            recurse(hero_message, stop)
        assert len(calls) == 1

    def test_intermediate_errors_propagate(self, hero_message):
        """Test errors from the intermediate hook abort the traversal."""

        def fail(value, node):
            raise RuntimeError(node.kind.name)

        with pytest.raises(RuntimeError, match="ACTIVITY"):
            recurse(hero_message, lambda value: None, exit_kind=NodeKind.ID, process_intermediate_value=fail)


class TestGetIds:
    """Test collecting IDs."""

    def test_hero_message(self, hero_message):
        """Test IDs come from both the value and the text of actions."""
        assert get_ids(hero_message) == {DataItem("card", "abc")}

    def test_does_not_modify(self, hero_message):
        """Test collection leaves the document as it was."""
        before = hero_message.model_dump()
        get_ids(hero_message)
        assert hero_message.model_dump() == before

    def test_duplicates_collapse(self):
        """Test equal IDs are reported once."""
        ids = {DATA_IDS_KEY: {"card": "same"}}
        batch = [MessageActivity(attachments=[hero_attachment(postback(dict(ids)), postback(dict(ids)))])]
        assert get_ids(batch) == {DataItem("card", "same")}

    def test_adaptive_card(self, adaptive_card):
        """Test IDs inside Adaptive Card submit actions are collected."""
        assert get_ids(adaptive_card, NodeKind.ADAPTIVE_CARD) == {DataItem("card", "c1")}

    def test_all_categories(self):
        """Test every category is collected."""
        data = {DATA_IDS_KEY: {"action": "a", "card": "c", "carousel": "r", "batch": "b", "x": "y"}}
        assert get_ids(data) == {
            DataItem("action", "a"),
            DataItem("card", "c"),
            DataItem("carousel", "r"),
            DataItem("batch", "b"),
        }

    def test_empty_document(self):
        """Test a document without cards has no IDs."""
        assert get_ids(MessageActivity(text="hi")) == set()


class TestApplyIds:
    """Test applying IDs."""

    def test_hero_message(self, hero_message):
        """Test action IDs are added to every button and existing IDs are kept."""
        apply_ids(hero_message, DataIdOptions.of(DataIdTypes.ACTION))

        first, second = hero_message.attachments[0].content.buttons
        first_action = get_id_from_action_data(first.value, "action")
        assert first_action.startswith("action-")

        assert first.value["choice"] == 1
        assert second.value == "not json"
        text_data = json.loads(second.text)
        assert text_data[DATA_IDS_KEY]["card"] == "abc"
        assert text_data[DATA_IDS_KEY]["action"].startswith("action-")
        assert text_data["choice"] == 2

    def test_default_options(self):
        """Test only action IDs are applied by default."""
        attachment = hero_attachment(postback({}))
        apply_ids(attachment)
        assert set(attachment.content.buttons[0].value[DATA_IDS_KEY]) == {"action"}

    def test_caller_options_untouched(self):
        """Test generated IDs don't leak into the caller's options."""
        options = DataIdOptions.of(DataIdTypes.CARD, DataIdTypes.ACTION)
        apply_ids(hero_attachment(postback({})), options)
        assert options.ids == {"card": None, "action": None}

    def test_explicit_values(self):
        """Test supplied IDs are used everywhere."""
        batch = [
            MessageActivity(attachments=[hero_attachment(postback({})), hero_attachment(postback({}))]),
            MessageActivity(attachments=[hero_attachment(postback({}))]),
        ]
        apply_ids(batch, DataIdOptions({"card": "C", "batch": "B"}))
        assert get_ids(batch) == {DataItem("card", "C"), DataItem("batch", "B")}

    def test_scoped_ids(self):
        """Test a generated scoped ID is shared within its scope only."""
        first = hero_attachment(postback({}), postback({}))
        second = hero_attachment(postback({}))
        batch = [MessageActivity(attachments=[first, second])]

        apply_ids(batch, DataIdOptions.of(DataIdTypes.CARD, DataIdTypes.CAROUSEL, DataIdTypes.BATCH))

        first_cards = button_ids(first, "card")
        assert first_cards[0] == first_cards[1]
        assert first_cards[0] != button_ids(second, "card")[0]
        assert button_ids(first, "carousel")[0] == button_ids(second, "carousel")[0]
        assert button_ids(first, "batch")[0].startswith("batch-")

    def test_carousels_get_separate_ids(self):
        """Test each activity's attachments get their own carousel ID."""
        first = hero_attachment(postback({}))
        second = hero_attachment(postback({}))
        batch = [MessageActivity(attachments=[first]), MessageActivity(attachments=[second])]

        apply_ids(batch, DataIdOptions.of(DataIdTypes.CAROUSEL, DataIdTypes.BATCH))

        assert button_ids(first, "carousel") != button_ids(second, "carousel")
        assert button_ids(first, "batch") == button_ids(second, "batch")

    def test_action_ids_unique(self):
        """Test generated action IDs differ between actions."""
        attachment = hero_attachment(postback({}), postback({}))
        apply_ids(attachment)
        first, second = button_ids(attachment, "action")
        assert first != second

    def test_idempotent(self):
        """Test applying again with the produced IDs changes nothing."""
        attachment = hero_attachment(postback({}), postback({}))
        apply_ids(attachment, DataIdOptions.of(DataIdTypes.CARD, DataIdTypes.ACTION))
        before = copy.deepcopy([b.value for b in attachment.content.buttons])

        ids = get_ids(attachment)
        options = DataIdOptions({item.type: item.value for item in ids})
        apply_ids(attachment, options)

        assert [b.value for b in attachment.content.buttons] == before

    def test_overwrite(self):
        """Test overwrite replaces existing IDs."""
        attachment = hero_attachment(postback({DATA_IDS_KEY: {"card": "old"}}))
        apply_ids(attachment, DataIdOptions({"card": "new"}, overwrite=True))
        assert button_ids(attachment, "card") == ["new"]

    def test_submit_action_data_created(self, adaptive_card):
        """Test a submit action without data gets a data object with IDs."""
        attachment = adaptive_attachment(adaptive_card)
        apply_ids(attachment, DataIdOptions.of(DataIdTypes.ACTION))

        card = attachment.content
        bare = card["actions"][0]
        nested = card["body"][1]["actions"][0]
        assert get_id_from_action_data(bare["data"], "action").startswith("action-")
        assert get_id_from_action_data(nested["data"], "action").startswith("action-")
        assert get_id_from_action_data(nested["data"], "card") == "c1"
        assert "data" not in card["actions"][1]

    def test_submit_action_data_created_without_requested_ids(self, adaptive_card):
        """Test the data object is created even when no ID is requested."""
        apply_ids(adaptive_card, DataIdOptions(), NodeKind.ADAPTIVE_CARD)
        assert adaptive_card["actions"][0]["data"] == {}

    def test_adaptive_card_entry_returns_card(self, adaptive_card):
        """Test the returned value of an Adaptive Card entry holds the IDs."""
        result = apply_ids(adaptive_card, DataIdOptions({"card": "K"}), NodeKind.ADAPTIVE_CARD)
        assert get_ids(result, NodeKind.ADAPTIVE_CARD) == {DataItem("card", "c1"), DataItem("card", "K")}

    def test_collect_after_apply(self):
        """Test collection finds exactly the categories that were written."""
        batch = [MessageActivity(attachments=[hero_attachment(postback({}), postback({}))])]
        apply_ids(batch, DataIdOptions.of(DataIdTypes.ACTION, DataIdTypes.CARD))

        ids = get_ids(batch)
        assert {item.type for item in ids} == {"action", "card"}
        assert len([item for item in ids if item.type == "action"]) == 2
        assert len([item for item in ids if item.type == "card"]) == 1

    def test_messageback_json_string_value(self):
        """Test a JSON string value is rewritten with the IDs."""
        action = CardAction(type=ActionTypes.MESSAGE_BACK, value='{"k": 1}')
        apply_ids([action], DataIdOptions({"action": "A"}))
        assert json.loads(action.value) == {"k": 1, DATA_IDS_KEY: {"action": "A"}}

    def test_dict_card_content(self):
        """Test a hero card given as a dict gets IDs and stays a dict."""
        content = {"buttons": [{"type": "postBack", "value": {}}]}
        attachment = Attachment(content_type=ContentTypes.HERO_CARD, content=content)
        apply_ids(attachment, DataIdOptions({"action": "A"}))
        assert attachment.content == {"buttons": [{"type": "postBack", "value": {DATA_IDS_KEY: {"action": "A"}}}]}
