from __future__ import annotations

"""Selection navigation over a document tree.

:func:`navigate` computes the next selection path for an arrow-key style
direction. It is a pure function of ``(tree, selected)`` and never changes the
tree. Directions that have no valid target return *selected* unchanged.

Semantics
---------
- DOWN enters a node: collections select their first item (or the END
  insertion point when empty), properties and declarators select their value.
- UP selects the node owning the current position.
- LEFT/RIGHT step through the nearest enclosing collection; RIGHT past the
  last item lands on END, LEFT from END lands on the last item.
"""

from typing import Literal

from astedit.core.models import (
    COLLECTION_FIELDS,
    END,
    End,
    Field,
    Index,
    Node,
    NodeType,
    Path,
)
from astedit.core.tree import get_in, is_collection, last_field_position

__all__ = ["Direction", "VerticalDirection", "navigate", "SIBLING_FIELDS"]

Direction = Literal["UP", "DOWN", "LEFT", "RIGHT"]
VerticalDirection = Literal["UP", "DOWN"]

# Collection fields LEFT/RIGHT step through, innermost match wins
SIBLING_FIELDS = ("elements", "properties", "body", "declarations")

# Single child entered by DOWN for non-collection containers
_CHILD_FIELDS = {
    NodeType.OBJECT_PROPERTY: "value",
    NodeType.VARIABLE_DECLARATOR: "init",
}


def navigate(direction: Direction, tree: Node, selected: Path) -> Path:
    """Return the selection reached from *selected* by moving in *direction*."""
    selected = tuple(selected)
    if direction == "DOWN":
        return _down(tree, selected)
    if direction == "UP":
        return _up(selected)
    if direction == "LEFT":
        return _sideways(tree, selected, -1)
    if direction == "RIGHT":
        return _sideways(tree, selected, 1)
    raise ValueError(f"Unsupported direction '{direction}'")


def _down(tree: Node, selected: Path) -> Path:
    if selected and isinstance(selected[-1], End):
        return selected
    node = get_in(tree, selected)
    if not isinstance(node, Node):
        return selected

    collection_field = COLLECTION_FIELDS.get(node.node_type)
    if collection_field is not None:
        items = getattr(node, collection_field)
        return selected + (Field(collection_field), Index(0) if items else END)

    child_field = _CHILD_FIELDS.get(node.node_type)
    if child_field is not None:
        return selected + (Field(child_field),)

    # Literals and identifiers are leaves
    return selected


def _up(selected: Path) -> Path:
    if not selected:
        return selected
    if isinstance(selected[-1], (Index, End)):
        # Drop the position and the collection field that holds it
        return selected[:-2]
    return selected[:-1]


def _sideways(tree: Node, selected: Path, delta: int) -> Path:
    pos = last_field_position(selected, SIBLING_FIELDS)
    if pos < 0 or pos + 1 >= len(selected):
        return selected
    collection_path = selected[: pos + 1]
    collection = get_in(tree, collection_path)
    if not is_collection(collection):
        return selected

    step = selected[pos + 1]
    size = len(collection)
    if isinstance(step, End):
        if delta > 0 or size == 0:
            return selected
        return collection_path + (Index(size - 1),)

    target = step.value + delta
    if target < 0:
        return selected
    if target >= size:
        return collection_path + (END,)
    return collection_path + (Index(target),)
