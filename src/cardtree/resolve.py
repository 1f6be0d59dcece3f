"""Resolution of Python types to tree nodes."""

from __future__ import annotations

from typing import Any

from cardtree.errors import NodeResolutionError
from cardtree.nodes import TREE, NodeKind, TreeNode
from cardtree.types import WILDCARD_TYPES, is_assignable, type_name

_SPECIFY_MANUALLY = " Try specifying the node kind manually instead of using None."


def get_node(py_type: Any, kind: NodeKind | None = None) -> TreeNode[Any]:
    """
    Get the node for values of a Python type.

    With an explicit ``kind``, that kind's node is returned if its value type
    accepts ``py_type``. Otherwise the one node whose value type accepts
    ``py_type`` is returned; nodes for wildcard value types (any object, any
    sequence) are never picked this way.

    Raises:
        NodeResolutionError: If no node, or more than one, fits the type.
    """
    if kind is not None:
        try:
            node = TREE[NodeKind(kind)]
        except ValueError as ex:
            msg = f"Unknown node kind: {kind!r}."
            raise NodeResolutionError(msg) from ex

        if not is_assignable(node.value_type, py_type):
            msg = (
                f"The node kind {node.kind.name} is not assignable from the type argument: "
                f"{type_name(py_type)}. Make sure you're providing the correct node kind."
            )
            raise NodeResolutionError(msg)
        return node

    if py_type is object or py_type is Any:
        msg = "A node cannot be automatically determined from an object type argument." + _SPECIFY_MANUALLY
        raise NodeResolutionError(msg)

    matching = [
        node
        for node in TREE.values()
        if node.value_type not in WILDCARD_TYPES and is_assignable(node.value_type, py_type)
    ]

    if not matching:
        msg = (
            f"No node exists that's assignable from the type argument: {type_name(py_type)}. "
            "Try using a different type."
        )
        raise NodeResolutionError(msg)

    if len(matching) > 1:
        kinds = ", ".join(node.kind.name for node in matching)
        msg = (
            f"Multiple nodes ({kinds}) exist that are assignable from the type argument: "
            f"{type_name(py_type)}." + _SPECIFY_MANUALLY
        )
        raise NodeResolutionError(msg)

    return matching[0]
