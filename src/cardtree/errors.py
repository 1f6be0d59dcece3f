"""Exceptions raised by the card tree."""

from __future__ import annotations

from typing import Any


class CardTreeError(Exception):
    """Base for all card tree errors."""


class NodeResolutionError(CardTreeError, ValueError):
    """A type could not be mapped to exactly one node kind."""


class NodeArgumentError(CardTreeError, ValueError):
    """The entry or exit node of a traversal could not be determined."""

    def __init__(self, msg: str, side: str, py_type: Any):
        super().__init__(msg)
        self.side = side
        self.py_type = py_type


class ConversionError(CardTreeError, ValueError):
    """A value could not be converted to or from its dict form."""
