"""
Message schema for the card tree.

Pydantic models covering the parts of the Bot Framework activity schema that
the tree opens: message activities, attachments, rich cards and card actions.
Fields use camelCase aliases on the wire and unknown fields are kept, so a
model can be dumped back to the dict it was validated from.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# =============================================================================
# Constants
# =============================================================================


class ActionTypes(StrEnum):
    """Card action types."""

    IM_BACK = "imBack"
    OPEN_URL = "openUrl"
    POST_BACK = "postBack"
    PLAY_AUDIO = "playAudio"
    PLAY_VIDEO = "playVideo"
    SHOW_IMAGE = "showImage"
    DOWNLOAD_FILE = "downloadFile"
    SIGNIN = "signin"
    CALL = "call"
    MESSAGE_BACK = "messageBack"


class ContentTypes:
    """Attachment content types of the supported cards."""

    ADAPTIVE_CARD = "application/vnd.microsoft.card.adaptive"
    ANIMATION_CARD = "application/vnd.microsoft.card.animation"
    AUDIO_CARD = "application/vnd.microsoft.card.audio"
    HERO_CARD = "application/vnd.microsoft.card.hero"
    OAUTH_CARD = "application/vnd.microsoft.card.oauth"
    RECEIPT_CARD = "application/vnd.microsoft.card.receipt"
    SIGNIN_CARD = "application/vnd.microsoft.card.signin"
    THUMBNAIL_CARD = "application/vnd.microsoft.card.thumbnail"
    VIDEO_CARD = "application/vnd.microsoft.card.video"


# Adaptive Card JSON keys
KEY_TYPE = "type"
KEY_DATA = "data"
ACTION_SUBMIT = "Action.Submit"

# =============================================================================
# Models
# =============================================================================


class SchemaModel(BaseModel):
    """Base for wire models: camelCase aliases, extra fields preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class CardAction(SchemaModel):
    """A clickable action on a rich card."""

    type: str
    title: str | None = None
    image: str | None = None
    text: str | None = None
    display_text: str | None = None
    value: Any = None
    channel_data: Any = None


class RichCard(SchemaModel):
    """Fields common to every rich card."""

    buttons: list[CardAction] | None = None


class _BasicCard(RichCard):
    title: str | None = None
    subtitle: str | None = None
    text: str | None = None
    images: list[dict[str, Any]] | None = None
    tap: CardAction | None = None


class HeroCard(_BasicCard):
    """A card with a single large image."""


class ThumbnailCard(_BasicCard):
    """A card with a single thumbnail image."""


class _MediaCard(RichCard):
    title: str | None = None
    subtitle: str | None = None
    text: str | None = None
    image: dict[str, Any] | None = None
    media: list[dict[str, Any]] | None = None
    shareable: bool | None = None
    autoloop: bool | None = None
    autostart: bool | None = None
    aspect: str | None = None
    duration: str | None = None
    value: Any = None


class AnimationCard(_MediaCard):
    """A card that plays animated GIFs or short videos."""


class AudioCard(_MediaCard):
    """A card that plays audio."""


class VideoCard(_MediaCard):
    """A card that plays video."""


class ReceiptCard(RichCard):
    title: str | None = None
    facts: list[dict[str, Any]] | None = None
    items: list[dict[str, Any]] | None = None
    tap: CardAction | None = None
    total: str | None = None
    tax: str | None = None
    vat: str | None = None


class SigninCard(RichCard):
    text: str | None = None


class OAuthCard(RichCard):
    text: str | None = None
    connection_name: str | None = None


class Attachment(SchemaModel):
    """A file or card attached to a message."""

    content_type: str | None = None
    content: Any = None
    content_url: str | None = None
    name: str | None = None
    thumbnail_url: str | None = None


class MessageActivity(SchemaModel):
    """A message activity and its attachments."""

    type: Literal["message"] = "message"
    id: str | None = None
    text: str | None = None
    attachment_layout: str | None = None
    attachments: list[Attachment] | None = None
