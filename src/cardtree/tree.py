"""
Traversal of the card tree.

``recurse`` enters the tree at the node for the entry value, walks down to
every value at the exit node, and calls an action on each one. Both nodes are
resolved from Python types (or given explicitly), so the same walk serves any
pair of positions:

    recurse(activity, lambda data: ..., exit_kind=NodeKind.ACTION_DATA)
    recurse([activity], handle_id)  # def handle_id(data_id: DataItem)

``apply_ids`` and ``get_ids`` are the two traversals built on it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from cardtree.activity import KEY_DATA
from cardtree.dataids import (
    DataIdOptions,
    DataIdTypes,
    DataItem,
    apply_ids_to_action_data,
    generate_id,
)
from cardtree.errors import ConversionError, NodeArgumentError, NodeResolutionError
from cardtree.nodes import TREE, NodeKind, TreeNode
from cardtree.resolve import get_node
from cardtree.serialization import from_dict
from cardtree.types import callback_type, infer_type, is_assignable, runtime_class, type_name

logger = logging.getLogger(__name__)

type IntermediateAction = Callable[[Any, TreeNode[Any]], object]


def recurse[TEntry, TExit](
    entry_value: TEntry,
    action: Callable[[TExit], object],
    entry_kind: NodeKind | None = None,
    exit_kind: NodeKind | None = None,
    reassign_children: bool = False,
    process_intermediate_value: IntermediateAction | None = None,
    *,
    entry_type: Any = None,
    exit_type: Any = None,
) -> TEntry:
    """
    Enter the tree at one node and exit it at another.

    Args:
        entry_value: The value to start from.
        action: Called on each value reaching the exit node. The value is
            never None.
        entry_kind: Explicit entry node. Required when the entry value's type
            is ambiguous or only fits a wildcard node.
        exit_kind: Explicit exit node. Required when the action's parameter
            type is missing, ambiguous or only fits a wildcard node.
        reassign_children: True if each child should be reassigned to its
            parent during recursion (which replaces Adaptive Card attachment
            content with the converted copy), False to keep every original
            reference.
        process_intermediate_value: Called on every node value visited on the
            way down, including the entry value, before its children.
        entry_type: Type to resolve the entry node from. Defaults to the type
            inferred from ``entry_value``, or to the entry kind's value type
            when that says nothing about the elements of a sequence.
        exit_type: Type to resolve the exit node from. Defaults to the
            annotated type of the action's parameter.

    Returns:
        The possibly modified entry value. This is a new object when the
        entry node had to convert the value to modify it, as for an Adaptive
        Card.

    Raises:
        NodeArgumentError: If the entry or exit node cannot be determined.
    """
    if entry_type is None:
        entry_type = _default_entry_type(entry_value, entry_kind)

    if exit_type is None:
        exit_type = callback_type(action)
        if exit_type is object and (kind_node := _known_node(exit_kind)) is not None:
            exit_type = kind_node.value_type

    entry_node = _get_node_for_side(entry_type, entry_kind, "entry")
    exit_node = _get_node_for_side(exit_type, exit_kind, "exit")

    logger.debug(
        "Recursing from %s to %s (reassign_children=%s)",
        entry_node.kind.name,
        exit_node.kind.name,
        reassign_children,
    )

    def next_(child: Any, child_kind: NodeKind) -> Any:
        if child is None:
            return child

        child_node = TREE[child_kind]
        modified_child = child

        if child_node is exit_node:
            if (typed_child := _get_exit_value(child, exit_type)) is not None:
                action(typed_child)
        else:
            if process_intermediate_value is not None:
                process_intermediate_value(child, child_node)
            modified_child = child_node.call_child(child, next_, reassign_children)

        return modified_child if reassign_children else child

    if entry_value is None:
        return entry_value

    if process_intermediate_value is not None:
        process_intermediate_value(entry_value, entry_node)

    return entry_node.call_child(entry_value, next_, reassign_children)


def apply_ids[TEntry](
    entry_value: TEntry,
    options: DataIdOptions | None = None,
    entry_kind: NodeKind | None = None,
) -> TEntry:
    """
    Apply data IDs to every action data object below the entry value.

    Scoped categories (card, carousel, batch) get one generated ID per scope
    unless ``options`` supplies a value. Submit actions without a data object
    get an empty one so they can carry IDs. The entry value is modified in
    place where possible; the returned value should be used when the entry is
    an Adaptive Card.
    """
    options = options if options is not None else DataIdOptions.of(DataIdTypes.ACTION)

    # Generated IDs go here so the caller's options stay untouched
    modified_options = options.clone()

    def apply(data: dict) -> None:
        apply_ids_to_action_data(data, modified_options)

    def process(value: Any, node: TreeNode[Any]) -> None:
        if node.kind is NodeKind.SUBMIT_ACTION:
            _ensure_submit_action_data(value)

        if (id_type := node.id_type) is not None and options.has_id_type(id_type):
            if options.get(id_type) is None:
                id_ = generate_id(id_type)
                logger.debug("Generated %s ID %s for %s", id_type, id_, node.kind.name)
                modified_options.set(id_type, id_)

    return recurse(
        entry_value,
        apply,
        entry_kind,
        NodeKind.ACTION_DATA,
        True,
        process,
    )


def get_ids(entry_value: Any, entry_kind: NodeKind | None = None) -> set[DataItem]:
    """Collect the data IDs found below the entry value without modifying it."""
    ids: set[DataItem] = set()

    def add(data_id: DataItem) -> None:
        ids.add(data_id)

    recurse(entry_value, add, entry_kind)

    return ids


# =============================================================================
# Helpers
# =============================================================================


def _known_node(kind: NodeKind | None) -> TreeNode[Any] | None:
    # Unknown kinds are reported by get_node, with the side that named them
    try:
        return TREE[NodeKind(kind)] if kind is not None else None
    except ValueError:
        return None


def _default_entry_type(entry_value: Any, entry_kind: NodeKind | None) -> Any:
    inferred = infer_type(entry_value)
    # Empty and mixed sequences say nothing about their elements
    if inferred == Sequence[object] and (entry_node := _known_node(entry_kind)) is not None:
        if isinstance(entry_value, runtime_class(entry_node.value_type)):
            return entry_node.value_type
    return inferred


def _get_node_for_side(py_type: Any, kind: NodeKind | None, side: str) -> TreeNode[Any]:
    try:
        return get_node(py_type, kind)
    except NodeResolutionError as ex:
        msg = f"The {side} node could not be determined from the type argument: {type_name(py_type)}. {ex}"
        raise NodeArgumentError(msg, side, py_type) from ex


def _get_exit_value(child: Any, exit_type: Any) -> Any:
    # Dicts are converted unless the exit node wants a dict
    if isinstance(child, dict) and not is_assignable(exit_type, dict):
        try:
            return from_dict(child, exit_type)
        except ConversionError:
            logger.debug("Exit value is not a valid %s", type_name(exit_type))
            return None
    return child if isinstance(child, runtime_class(exit_type)) else None


def _ensure_submit_action_data(submit_action: Any) -> None:
    if isinstance(submit_action, dict):
        if submit_action.get(KEY_DATA) is None:
            submit_action[KEY_DATA] = {}
    elif getattr(submit_action, KEY_DATA, {}) is None:
        setattr(submit_action, KEY_DATA, {})
