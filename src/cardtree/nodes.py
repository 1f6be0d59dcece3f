"""
Node domain for the card tree.

Every position in a message document has a node kind, and every kind has
exactly one registered node. A node knows the type of value it opens, which
identifier category (if any) it scopes, and how to hand its children to the
traversal and take them back.

Nodes register themselves when their class is defined:

    class CarouselNode(
        SequenceNode[Attachment],
        kind=NodeKind.CAROUSEL,
        child=NodeKind.ATTACHMENT,
        id_type=DataIdTypes.CAROUSEL,
    ):
        ...

The value type is taken from the generic base, so ``CarouselNode.value_type``
is ``Sequence[Attachment]``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, MutableSequence, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, get_args, get_origin

from pydantic import BaseModel, ValidationError

from cardtree.activity import (
    KEY_DATA,
    ActionTypes,
    AnimationCard,
    Attachment,
    AudioCard,
    CardAction,
    ContentTypes,
    HeroCard,
    MessageActivity,
    OAuthCard,
    ReceiptCard,
    SigninCard,
    ThumbnailCard,
    VideoCard,
)
from cardtree.dataids import DataIdTypes, DataItem, get_id_from_action_data
from cardtree.errors import ConversionError
from cardtree.serialization import (
    from_dict,
    is_submit_action,
    non_data_descendants,
    round_trip,
    to_dict,
)
from cardtree.types import _substitute_type_params, runtime_class

logger = logging.getLogger(__name__)

# =============================================================================
# Core Types
# =============================================================================


class NodeKind(Enum):
    """Position of a node in the card tree."""

    BATCH = "batch"
    ACTIVITY = "activity"
    CAROUSEL = "carousel"
    ATTACHMENT = "attachment"
    ADAPTIVE_CARD = "adaptive_card"
    ANIMATION_CARD = "animation_card"
    AUDIO_CARD = "audio_card"
    HERO_CARD = "hero_card"
    OAUTH_CARD = "oauth_card"
    RECEIPT_CARD = "receipt_card"
    SIGNIN_CARD = "signin_card"
    THUMBNAIL_CARD = "thumbnail_card"
    VIDEO_CARD = "video_card"
    SUBMIT_ACTION_LIST = "submit_action_list"
    CARD_ACTION_LIST = "card_action_list"
    SUBMIT_ACTION = "submit_action"
    CARD_ACTION = "card_action"
    ACTION_DATA = "action_data"
    ID = "id"


# Called once per child; returns the (possibly replaced) child
type Next = Callable[[Any, NodeKind], Any]


class TreeNode[T]:
    """Base for tree nodes. T is the type of value the node opens."""

    kind: ClassVar[NodeKind]
    id_type: ClassVar[str | None] = None
    value_type: ClassVar[Any] = object
    _registry: ClassVar[dict[NodeKind, TreeNode[Any]]] = {}

    def __init_subclass__(
        cls,
        kind: NodeKind | None = None,
        id_type: str | None = None,
        **kwargs: Any,
    ):
        super().__init_subclass__(**kwargs)
        if kind is None:
            return

        if existing := TreeNode._registry.get(kind):
            msg = f"Kind {kind.name} already registered to {type(existing).__name__}."
            raise ValueError(msg)

        cls.kind = kind
        cls.id_type = id_type
        cls.value_type = _extract_value_type(cls)
        TreeNode._registry[kind] = cls()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.name}>"

    def call_child(self, value: Any, next_: Next, reassign_children: bool) -> Any:
        """
        Pass a value's children to ``next_`` and return the value.

        When ``reassign_children`` is true, whatever ``next_`` returns replaces
        the child it was called with. Otherwise the value is left as it was.
        A dict arriving at a node for a model type is opened as that model.
        """
        cls = runtime_class(self.value_type)

        if isinstance(value, dict) and issubclass(cls, BaseModel):
            try:
                model = cls.model_validate(value)
            except ValidationError:
                logger.debug("Skipping %s: dict is not a valid %s", self.kind.name, cls.__name__)
                return value
            result = self.visit(model, next_, reassign_children)
            # Only keys present in the original dict are written back
            return to_dict(result, exclude_unset=True) if reassign_children else value

        if not isinstance(value, cls):
            logger.debug("Skipping %s: got %s", self.kind.name, type(value).__name__)
            return value

        return self.visit(value, next_, reassign_children)

    def visit(self, value: T, next_: Next, reassign_children: bool) -> T:
        raise NotImplementedError


def _extract_value_type(cls: type, substitutions: dict[Any, Any] | None = None) -> Any:
    """Find T in TreeNode[T], substituting through generic intermediate bases."""
    for base in cls.__dict__.get("__orig_bases__", ()):
        origin = get_origin(base)
        if not (isinstance(origin, type) and issubclass(origin, TreeNode)):
            continue
        args = tuple(_substitute_type_params(arg, substitutions or {}) for arg in get_args(base))
        if origin is TreeNode:
            return args[0] if args else object
        return _extract_value_type(origin, dict(zip(origin.__type_params__, args, strict=True)))
    return object


# =============================================================================
# Node Shapes
# =============================================================================


class SequenceNode[T](TreeNode[Sequence[T]]):
    """A sequence whose elements are each a child of kind ``child``."""

    child: ClassVar[NodeKind]

    def __init_subclass__(cls, child: NodeKind | None = None, **kwargs: Any):
        if child is not None:
            cls.child = child
        super().__init_subclass__(**kwargs)

    def visit(self, value: Sequence[T], next_: Next, reassign_children: bool) -> Sequence[T]:
        results = [next_(item, self.child) for item in value]

        if not reassign_children:
            return value

        if isinstance(value, MutableSequence):
            value[:] = results
            return value

        return tuple(results) if isinstance(value, tuple) else results


class RichCardNode[C](TreeNode[C]):
    """A rich card whose buttons are card actions."""

    def visit(self, card: C, next_: Next, reassign_children: bool) -> C:
        buttons = next_(card.buttons, NodeKind.CARD_ACTION_LIST)
        if reassign_children:
            card.buttons = buttons
        return card


def _round_trip_or_skip[V](kind: NodeKind, value: V, scan: Callable[[dict[str, Any]], None]) -> V:
    try:
        return round_trip(value, scan, always_return_new=True)
    except ConversionError as ex:
        logger.debug("Skipping %s: %s", kind.name, ex)
        return value


# =============================================================================
# Nodes
# =============================================================================

POSTBACK_TYPES: frozenset[str] = frozenset({ActionTypes.MESSAGE_BACK, ActionTypes.POST_BACK})


class BatchNode(
    SequenceNode[MessageActivity],
    kind=NodeKind.BATCH,
    child=NodeKind.ACTIVITY,
    id_type=DataIdTypes.BATCH,
):
    """A batch of message activities sent together."""


class ActivityNode(TreeNode[MessageActivity], kind=NodeKind.ACTIVITY):
    def visit(self, activity: MessageActivity, next_: Next, reassign_children: bool) -> MessageActivity:
        attachments = next_(activity.attachments, NodeKind.CAROUSEL)
        if reassign_children:
            activity.attachments = attachments
        return activity


class CarouselNode(
    SequenceNode[Attachment],
    kind=NodeKind.CAROUSEL,
    child=NodeKind.ATTACHMENT,
    id_type=DataIdTypes.CAROUSEL,
):
    """The attachments of one activity."""


class AttachmentNode(TreeNode[Attachment], kind=NodeKind.ATTACHMENT):
    """An attachment; its content is a card if the content type says so."""

    def visit(self, attachment: Attachment, next_: Next, reassign_children: bool) -> Attachment:
        content_type = attachment.content_type
        if content_type and (card_kind := CARD_TYPES.get(content_type.lower())):
            # An Adaptive Card comes back as a new object after its dict round trip
            content = next_(attachment.content, card_kind)
            if reassign_children:
                attachment.content = content
        return attachment


class AdaptiveCardNode(TreeNode[object], kind=NodeKind.ADAPTIVE_CARD):
    """
    An Adaptive Card, opened through its dict form.

    Every submit action anywhere in the card body or actions (outside of
    action data) is a child. The card is always returned as a new object.
    """

    def visit(self, card: object, next_: Next, reassign_children: bool) -> object:
        def scan(card_dict: dict[str, Any]) -> None:
            submit_actions = [
                token for token in non_data_descendants(card_dict) if is_submit_action(token)
            ]
            # Submit actions are references into card_dict, so the list is not reassigned
            next_(submit_actions, NodeKind.SUBMIT_ACTION_LIST)

        return _round_trip_or_skip(self.kind, card, scan)


class AnimationCardNode(RichCardNode[AnimationCard], kind=NodeKind.ANIMATION_CARD):
    pass


class AudioCardNode(RichCardNode[AudioCard], kind=NodeKind.AUDIO_CARD):
    pass


class HeroCardNode(RichCardNode[HeroCard], kind=NodeKind.HERO_CARD):
    pass


class OAuthCardNode(RichCardNode[OAuthCard], kind=NodeKind.OAUTH_CARD):
    pass


class ReceiptCardNode(RichCardNode[ReceiptCard], kind=NodeKind.RECEIPT_CARD):
    pass


class SigninCardNode(RichCardNode[SigninCard], kind=NodeKind.SIGNIN_CARD):
    pass


class ThumbnailCardNode(RichCardNode[ThumbnailCard], kind=NodeKind.THUMBNAIL_CARD):
    pass


class VideoCardNode(RichCardNode[VideoCard], kind=NodeKind.VIDEO_CARD):
    pass


class SubmitActionListNode(
    SequenceNode[object],
    kind=NodeKind.SUBMIT_ACTION_LIST,
    child=NodeKind.SUBMIT_ACTION,
    id_type=DataIdTypes.CARD,
):
    """The submit actions of one Adaptive Card."""


class CardActionListNode(
    SequenceNode[CardAction],
    kind=NodeKind.CARD_ACTION_LIST,
    child=NodeKind.CARD_ACTION,
    id_type=DataIdTypes.CARD,
):
    """The buttons of one rich card."""


class SubmitActionNode(TreeNode[object], kind=NodeKind.SUBMIT_ACTION):
    """An Adaptive Card submit action; its data object is the child."""

    def visit(self, action: object, next_: Next, reassign_children: bool) -> object:
        def scan(action_dict: dict[str, Any]) -> None:
            if isinstance(data := action_dict.get(KEY_DATA), dict):
                next_(data, NodeKind.ACTION_DATA)

        return _round_trip_or_skip(self.kind, action, scan)


class CardActionNode(TreeNode[CardAction], kind=NodeKind.CARD_ACTION):
    """
    A rich card button.

    Only postBack and messageBack actions carry action data. The data is the
    action's value when that is a JSON object (or a string holding one);
    otherwise it is looked for in the action's text.
    """

    def visit(self, action: CardAction, next_: Next, reassign_children: bool) -> CardAction:
        if action.type not in POSTBACK_TYPES:
            return action

        try:
            data = to_dict(action.value, parse_strings=True)
        except ConversionError:
            pass
        else:
            next_(data, NodeKind.ACTION_DATA)
            if reassign_children:
                action.value = from_dict(data, type(action.value))
            return action

        try:
            # The text is reassigned regardless, its JSON formatting may change
            action.text = round_trip(
                action.text,
                lambda text_dict: next_(text_dict, NodeKind.ACTION_DATA),
                always_return_new=True,
                parse_strings=True,
            )
        except ConversionError:
            logger.debug("Card action %r has no action data", action.title)

        return action


class ActionDataNode(TreeNode[dict], kind=NodeKind.ACTION_DATA):
    """Action data; each identifier it holds is a child."""

    def visit(self, data: dict, next_: Next, reassign_children: bool) -> dict:
        for id_type in DataIdTypes.COLLECTION:
            if (id_ := get_id_from_action_data(data, id_type)) is not None:
                next_(DataItem(id_type, id_), NodeKind.ID)
        return data


class IdNode(TreeNode[DataItem], kind=NodeKind.ID):
    def visit(self, value: DataItem, next_: Next, reassign_children: bool) -> DataItem:
        return value


# =============================================================================
# Registry
# =============================================================================

TREE: Mapping[NodeKind, TreeNode[Any]] = MappingProxyType(TreeNode._registry)

CARD_TYPES: Mapping[str, NodeKind] = MappingProxyType({
    ContentTypes.ADAPTIVE_CARD: NodeKind.ADAPTIVE_CARD,
    ContentTypes.ANIMATION_CARD: NodeKind.ANIMATION_CARD,
    ContentTypes.AUDIO_CARD: NodeKind.AUDIO_CARD,
    ContentTypes.HERO_CARD: NodeKind.HERO_CARD,
    ContentTypes.OAUTH_CARD: NodeKind.OAUTH_CARD,
    ContentTypes.RECEIPT_CARD: NodeKind.RECEIPT_CARD,
    ContentTypes.SIGNIN_CARD: NodeKind.SIGNIN_CARD,
    ContentTypes.THUMBNAIL_CARD: NodeKind.THUMBNAIL_CARD,
    ContentTypes.VIDEO_CARD: NodeKind.VIDEO_CARD,
})

if missing := [kind.name for kind in NodeKind if kind not in TREE]:
    msg = f"Node kinds without a registered node: {', '.join(missing)}"
    raise RuntimeError(msg)
