"""
Data ID domain: identifiers stored in action data.

Action data can carry one identifier per category. Scoped categories identify
the card, carousel or batch an action belongs to; the action category
identifies the action itself.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

# Identifiers are stored as {"dataIds": {<type>: <id>}} inside action data
DATA_IDS_KEY = "dataIds"


class DataIdTypes:
    """Known identifier categories."""

    ACTION = "action"
    CARD = "card"
    CAROUSEL = "carousel"
    BATCH = "batch"

    COLLECTION = (ACTION, CARD, CAROUSEL, BATCH)


@dataclass(frozen=True)
class DataItem:
    """An identifier found in action data."""

    type: str
    value: str


@dataclass
class DataIdOptions:
    """
    Which identifiers to apply, and with which values.

    Each key of ``ids`` is a requested category. A value of None means an
    identifier will be generated for that category.
    """

    ids: dict[str, str | None] = field(default_factory=dict)
    overwrite: bool = False

    @classmethod
    def of(cls, *id_types: str, overwrite: bool = False) -> DataIdOptions:
        """Request categories without supplying values."""
        return cls({id_type: None for id_type in id_types}, overwrite)

    @property
    def id_types(self) -> tuple[str, ...]:
        return tuple(self.ids)

    def has_id_type(self, id_type: str) -> bool:
        return id_type in self.ids

    def get(self, id_type: str) -> str | None:
        return self.ids.get(id_type)

    def set(self, id_type: str, id_: str | None) -> None:
        self.ids[id_type] = id_

    def clone(self) -> DataIdOptions:
        return DataIdOptions(dict(self.ids), self.overwrite)


def generate_id(id_type: str) -> str:
    """Generate a fresh identifier for a category."""
    return f"{id_type}-{uuid.uuid4()}"


def get_id_from_action_data(data: dict[str, Any], id_type: str) -> str | None:
    ids = data.get(DATA_IDS_KEY)
    if isinstance(ids, dict) and isinstance(id_ := ids.get(id_type), str):
        return id_
    return None


def set_id_in_action_data(data: dict[str, Any], id_type: str, id_: str) -> None:
    ids = data.get(DATA_IDS_KEY)
    if not isinstance(ids, dict):
        ids = data[DATA_IDS_KEY] = {}
    ids[id_type] = id_


def apply_ids_to_action_data(data: dict[str, Any], options: DataIdOptions) -> None:
    """
    Write the requested identifiers into action data.

    An identifier already present is kept unless ``options.overwrite`` is set.
    Categories without a value in ``options`` get a freshly generated one.
    """
    for id_type in options.id_types:
        if not options.overwrite and get_id_from_action_data(data, id_type) is not None:
            continue
        id_ = options.get(id_type)
        set_id_in_action_data(data, id_type, generate_id(id_type) if id_ is None else id_)
