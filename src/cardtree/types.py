"""
Type system helpers for node-kind resolution.

This module decides whether a value of one Python type can be routed to a node
whose value type is another Python type. It understands plain classes,
parameterized generics such as ``Sequence[Attachment]`` (covariant in their
arguments), and unions.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable, Sequence
from typing import Any, Union, get_args, get_origin, get_type_hints

# =============================================================================
# Wildcards
# =============================================================================

# Value types that accept anything. They are never picked automatically.
WILDCARD_TYPES: tuple[Any, ...] = (object, Any, Sequence[object])

_TEXT_TYPES = (str, bytes, bytearray)

# =============================================================================
# Assignability
# =============================================================================


def runtime_class(py_type: Any) -> type:
    """Get the class usable with isinstance() for a type expression."""
    origin = get_origin(py_type) or py_type
    return origin if isinstance(origin, type) else object


def is_assignable(target: Any, source: Any) -> bool:
    """
    Check whether values of type ``source`` can be treated as ``target``.

    Examples:
        is_assignable(Sequence[Attachment], list[Attachment]) -> True
        is_assignable(HeroCard, HeroCard | ThumbnailCard) -> False
        is_assignable(Sequence[object], str) -> False
    """
    if target is object or target is Any:
        return True
    if source is Any:
        source = object

    if isinstance(source, types.UnionType) or get_origin(source) is Union:
        return all(is_assignable(target, option) for option in get_args(source))

    target_origin = get_origin(target) or target
    source_origin = get_origin(source) or source
    if not (isinstance(target_origin, type) and isinstance(source_origin, type)):
        return False
    if not issubclass(source_origin, target_origin):
        return False
    if issubclass(source_origin, _TEXT_TYPES) and not issubclass(target_origin, _TEXT_TYPES):
        return False

    target_args = get_args(target)
    if not target_args:
        return True

    source_args = get_args(source)
    # tuple[X, ...] is a homogeneous sequence of X
    if source_origin is tuple and len(source_args) == 2 and source_args[1] is Ellipsis:
        source_args = source_args[:1]
    if not source_args:
        source_args = (object,) * len(target_args)
    if len(source_args) != len(target_args):
        return False

    return all(is_assignable(t, s) for t, s in zip(target_args, source_args, strict=True))


# =============================================================================
# Inference
# =============================================================================


def infer_type(value: Any) -> Any:
    """Infer a type expression for a runtime value."""
    if isinstance(value, (list, tuple)):
        element_types = {type(item) for item in value}
        if len(element_types) == 1:
            return Sequence[element_types.pop()]
        return Sequence[object]
    return type(value)


def callback_type(fn: Callable[..., Any]) -> Any:
    """Get the annotated type of a callback's first parameter, or object."""
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return object
    if not params:
        return object

    name = params[0].name
    try:
        hints = get_type_hints(fn)
    except (NameError, TypeError):
        # Unresolvable forward references; fall back to the raw annotation
        hints = {}
        raw = params[0].annotation
        if raw is not inspect.Parameter.empty and not isinstance(raw, str):
            hints[name] = raw

    return hints.get(name, object)


def type_name(py_type: Any) -> str:
    """Readable name for a type expression, used in error messages."""
    if isinstance(py_type, type) and not get_args(py_type):
        return py_type.__qualname__
    return str(py_type)


# =============================================================================
# Type Parameter Substitution
# =============================================================================


def _substitute_type_params(type_expr: Any, substitutions: dict[Any, Any]) -> Any:
    """
    Recursively substitute type parameters in a type expression.

    Args:
        type_expr: The type expression to substitute in
        substitutions: Mapping from type parameters to their concrete types

    Returns:
        The type expression with parameters substituted
    """
    if type_expr in substitutions:
        return substitutions[type_expr]

    origin = get_origin(type_expr)
    args = get_args(type_expr)

    if origin is None or not args:
        return type_expr

    new_args = tuple(_substitute_type_params(arg, substitutions) for arg in args)

    # Unions created by | have no subscriptable origin
    if isinstance(type_expr, types.UnionType):
        result = new_args[0]
        for arg in new_args[1:]:
            result = result | arg
        return result

    return origin[new_args]
