"""
Conversion between schema values and their generic dict form.

A value's dict form is the JSON object it would serialize to. Converting a
value to a dict and back yields a structurally equal value:

    from_dict(to_dict(card), type(card)) == card
"""

from __future__ import annotations

import copy
import json
from collections.abc import Callable, Iterator
from typing import Any

from pydantic import BaseModel, ValidationError

from cardtree.activity import ACTION_SUBMIT, KEY_DATA, KEY_TYPE
from cardtree.errors import ConversionError
from cardtree.types import runtime_class


def to_dict(value: Any, *, parse_strings: bool = False, exclude_unset: bool = False) -> dict[str, Any]:
    """
    Convert a value to its dict form.

    Dicts are already in dict form and are returned unchanged (same object).
    With ``parse_strings``, strings are parsed as JSON. Models drop fields that
    are None, or with ``exclude_unset``, fields that were never given a value
    (explicit nulls are kept).

    Raises:
        ConversionError: If the value does not represent a JSON object.
    """
    if isinstance(value, dict):
        return value

    if isinstance(value, BaseModel):
        return value.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=not exclude_unset,
            exclude_unset=exclude_unset,
        )

    if isinstance(value, str) and parse_strings:
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as ex:
            msg = f"String is not valid JSON: {ex}"
            raise ConversionError(msg) from ex
        if isinstance(parsed, dict):
            return parsed
        msg = f"String holds JSON {type(parsed).__name__}, not an object"
        raise ConversionError(msg)

    msg = f"Cannot convert {type(value).__name__} to a dict"
    raise ConversionError(msg)


def from_dict(data: dict[str, Any], target: Any) -> Any:
    """
    Convert a dict back to a value of the target type.

    Raises:
        ConversionError: If the dict cannot become a target value.
    """
    cls = runtime_class(target)

    if cls is str:
        return json.dumps(data)

    if issubclass(cls, BaseModel):
        try:
            return cls.model_validate(data)
        except ValidationError as ex:
            msg = f"Cannot convert dict to {cls.__name__}: {ex}"
            raise ConversionError(msg) from ex

    if isinstance(data, cls):
        return data

    msg = f"Cannot convert dict to {cls.__name__}"
    raise ConversionError(msg)


def round_trip[T](
    value: T,
    fn: Callable[[dict[str, Any]], object],
    *,
    always_return_new: bool = False,
    parse_strings: bool = False,
) -> T:
    """
    Run ``fn`` on the dict form of a value and convert the result back.

    A dict value is handed to ``fn`` directly, so changes apply in place. It is
    returned as-is unless ``always_return_new`` asks for a copy.

    Raises:
        ConversionError: If the value has no dict form.
    """
    data = to_dict(value, parse_strings=parse_strings)
    fn(data)

    if data is value:
        return copy.deepcopy(value) if always_return_new else value

    return from_dict(data, type(value))


# =============================================================================
# Adaptive Card scanning
# =============================================================================


def non_data_descendants(token: Any) -> Iterator[Any]:
    """
    Yield every nested dict and list below ``token`` in document order.

    The contents of ``data`` properties are opaque and are not entered.
    """
    if isinstance(token, dict):
        children = ((key, child) for key, child in token.items() if key != KEY_DATA)
    elif isinstance(token, list):
        children = enumerate(token)
    else:
        return

    for _, child in children:
        if isinstance(child, (dict, list)):
            yield child
            yield from non_data_descendants(child)


def is_submit_action(token: Any) -> bool:
    """Check whether a token is an Adaptive Card submit action."""
    return isinstance(token, dict) and token.get(KEY_TYPE) == ACTION_SUBMIT
