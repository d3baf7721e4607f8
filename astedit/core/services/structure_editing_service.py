from __future__ import annotations

"""Service layer for structural edits on an immutable document tree.

This module provides a UI-agnostic, testable service that encapsulates the
editing rules of the editor: inserting, deleting and reordering collection
items, replacing and coercing the selected node, and moving the selection.

Scope and guarantees:
- Operates purely on ``(tree, selected)`` values; no I/O, no UI imports and no
  hidden state. The input tree is never modified.
- Conservative behavior with boundary checks; operations that have no valid
  target return ``OperationResult(success=False, ...)`` with clear messaging
  and never raise.
- Every successful result carries a tree/selection pair that satisfies the
  selection invariant (the selection resolves to a node, or to the END
  insertion point of an existing collection).

Examples
--------
Basic usage:

    service = StructureEditingService()
    result = service.move(tree, selected, "UP")
    if result.success:
        tree, selected = result.tree, result.selected
    else:
        print(result.message)

"""

from dataclasses import dataclass
import logging
import math
import re
from typing import Any, Callable, Dict, Optional, Tuple

from astedit.core.models import (
    ArrayExpression,
    BooleanLiteral,
    End,
    Field,
    Index,
    Node,
    NodeType,
    NullLiteral,
    NumericLiteral,
    ObjectExpression,
    ObjectProperty,
    Path,
    StringLiteral,
    format_number,
    parse_float,
)
from astedit.core.navigation import Direction, VerticalDirection, navigate
from astedit.core.tree import (
    delete_in,
    get_in,
    insert_in,
    is_collection,
    last_field_position,
    last_index_position,
    resolves,
    set_in,
    update_in,
)


__all__ = ["OperationResult", "StructureEditingService", "format_path"]

logger = logging.getLogger(__name__)

# Collections that accept inserted and reordered items
EDITABLE_COLLECTIONS = ("elements", "properties")


def format_path(path: Path) -> str:
    """Return a compact ``a/0/b`` rendering of *path* for logs and messages."""
    return "/".join(repr(step) for step in path) or "<root>"


@dataclass(frozen=True)
class OperationResult:
    """Result of a structural editing operation.

    Attributes
    ----------
    success
        Whether the operation produced a new state. ``False`` means the
        operation declined to act (boundary conditions, nothing selected, ...).
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    tree
        The new document tree, or None if unchanged.
    selected
        The new selection path, or None if unchanged.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None
    tree: Optional[Node] = None
    selected: Optional[Path] = None


def _declined(message: str, **details: Any) -> OperationResult:
    return OperationResult(False, message, details or None)


class StructureEditingService:
    """Encapsulates structural edit operations on a document tree.

    Every public method takes the current ``tree`` and ``selected`` path and
    returns an :class:`OperationResult`. The service holds no document state;
    recording results is left to :class:`~astedit.core.services.HistoryService`.

    Notes
    -----
    Only array elements and object properties can receive inserted items or be
    reordered. Program bodies and declaration lists are navigable but fixed.
    """

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def move_selection(self, tree: Node, selected: Path, direction: Direction) -> OperationResult:
        """Move the selection in *direction* without touching the tree."""
        new_selected = navigate(direction, tree, selected)
        logger.debug("Select: %s %s -> %s", direction, format_path(selected), format_path(new_selected))
        return OperationResult(True, f"Selection moved {direction.lower()}.", selected=new_selected)

    def select(self, tree: Node, selected: Path, new_selected: Path) -> OperationResult:
        """Select *new_selected* directly (e.g. after a pointer click)."""
        new_selected = tuple(new_selected)
        if not resolves(tree, new_selected):
            return _declined("Selection target does not exist.", path=format_path(new_selected))
        return OperationResult(True, "Selection changed.", selected=new_selected)

    # -------------------------------------------------------------------------
    # Collection edits
    # -------------------------------------------------------------------------

    def insert(self, tree: Node, selected: Path, node: Node) -> OperationResult:
        """Insert *node* after the selected item of the closest collection.

        Objects receive the node wrapped in an empty-keyed property and the
        selection lands on that key; arrays receive the node itself.
        """
        logger.info("Edit: insert node=%s selected=%s", node.node_type.value, format_path(selected))
        located = self._closest_insert_position(tree, selected)
        if located is None:
            logger.info("Edit noop: insert no_collection selected=%s", format_path(selected))
            return _declined("Cannot insert here (no enclosing collection).")

        collection_path, index = located
        owner = get_in(tree, collection_path[:-1])
        if not isinstance(owner, (ArrayExpression, ObjectExpression)):
            logger.info("Edit noop: insert no_collection selected=%s", format_path(selected))
            return _declined("Cannot insert here (no enclosing collection).")

        if isinstance(owner, ArrayExpression):
            new_tree = insert_in(tree, collection_path, index, node)
            new_selected = collection_path + (Index(index),)
        else:
            prop = ObjectProperty(StringLiteral(""), node)
            new_tree = insert_in(tree, collection_path, index, prop)
            new_selected = collection_path + (Index(index), Field("key"))

        logger.info("Edit OK: insert at=%s", format_path(new_selected))
        return OperationResult(True, "Inserted node.", {"index": index}, new_tree, new_selected)

    def delete(self, tree: Node, selected: Path) -> OperationResult:
        """Delete the selected collection item, or the whole document.

        The document is replaced with ``null`` when nothing indexable is
        selected. Otherwise the item at the deepest index of the selection is
        removed and the selection re-enters its former collection.
        """
        logger.info("Edit: delete selected=%s", format_path(selected))
        ends_at_end = bool(selected) and isinstance(selected[-1], End)
        pos = last_index_position(selected)

        if not selected or (len(selected) == 2 and ends_at_end) or pos < 0:
            logger.info("Edit OK: delete document")
            return OperationResult(True, "Deleted document.", {"root": True}, NullLiteral(), ())

        element_path = selected[: pos + 1]
        if get_in(tree, element_path) is None:
            logger.info("Edit noop: delete missing selected=%s", format_path(selected))
            return _declined("Nothing to delete.", path=format_path(selected))

        new_tree = delete_in(tree, element_path)
        if ends_at_end:
            new_selected: Path = ()
        else:
            new_selected = navigate("DOWN", new_tree, navigate("UP", tree, element_path))
        logger.info("Edit OK: delete at=%s", format_path(element_path))
        return OperationResult(True, "Deleted node.", {"root": False}, new_tree, new_selected)

    def move(self, tree: Node, selected: Path, direction: VerticalDirection) -> OperationResult:
        """Move the selected item one step up or down.

        In priority order:

        1. a property moving onto a sibling property whose value is an object
           enters that object (at its head moving up, at its tail moving down);
        2. a property at the edge of a nested object leaves it and lands just
           before (up) or after (down) the property holding that object;
        3. otherwise the item swaps places with its adjacent sibling.
        """
        if direction not in ("UP", "DOWN"):
            return _declined(f"Unsupported move direction '{direction}'.", allowed=["UP", "DOWN"])
        logger.info("Edit: move direction=%s selected=%s", direction, format_path(selected))
        is_up = direction == "UP"

        located = self._enclosing_item(tree, selected)
        if located is None:
            logger.info("Edit noop: move no_item selected=%s", format_path(selected))
            return _declined("Nothing to move.")
        collection_path, index = located
        collection = get_in(tree, collection_path)
        item = collection[index]
        item_path = collection_path + (Index(index),)
        sub_selected = selected[len(item_path):]

        target_index = index - 1 if is_up else index + 1
        target = collection[target_index] if 0 <= target_index < len(collection) else None

        if (
            isinstance(item, ObjectProperty)
            and isinstance(target, ObjectProperty)
            and isinstance(target.value, ObjectExpression)
        ):
            new_tree, new_selected = self._move_into_sibling_object(
                tree, collection_path, index, target_index, target, is_up
            )
            logger.info("Edit OK: move direction=%s into=%s", direction, format_path(new_selected))
            return OperationResult(
                True, "Moved property into nested object.", {"case": "enter"},
                new_tree, new_selected + sub_selected,
            )

        if target is None:
            moved = self._move_out_of_parent_object(tree, collection_path, index, item, is_up)
            if moved is None:
                logger.info("Edit noop: move direction=%s boundary selected=%s", direction, format_path(selected))
                return _declined(f"Cannot move {direction.lower()} (at boundary).")
            new_tree, new_selected = moved
            logger.info("Edit OK: move direction=%s out_to=%s", direction, format_path(new_selected))
            return OperationResult(
                True, "Moved property out of nested object.", {"case": "exit"},
                new_tree, new_selected + sub_selected,
            )

        target_path = collection_path + (Index(target_index),)
        new_tree = set_in(set_in(tree, item_path, target), target_path, item)
        logger.info("Edit OK: move direction=%s swap=%d<->%d", direction, index, target_index)
        return OperationResult(
            True, f"Moved {direction.lower()}.", {"case": "swap"},
            new_tree, target_path + sub_selected,
        )

    # -------------------------------------------------------------------------
    # Node replacement and value edits
    # -------------------------------------------------------------------------

    def replace(self, tree: Node, selected: Path, node: Node, sub_selected: Path = ()) -> OperationResult:
        """Replace the selected node with *node* and extend the selection by *sub_selected*."""
        if get_in(tree, selected) is None:
            return _declined("Nothing selected to replace.", path=format_path(selected))
        logger.info("Edit: replace node=%s selected=%s", node.node_type.value, format_path(selected))
        new_tree = set_in(tree, selected, node)
        return OperationResult(True, "Replaced node.", None, new_tree, tuple(selected) + tuple(sub_selected))

    def update_value(self, tree: Node, selected: Path, fn: Callable[[Any], Any]) -> OperationResult:
        """Apply *fn* to the ``value`` field of the selected leaf."""
        value_path = tuple(selected) + (Field("value"),)
        if get_in(tree, value_path) is None:
            return _declined("Selected node has no value.", path=format_path(selected))
        return OperationResult(True, "Updated value.", None, update_in(tree, value_path, fn))

    def set_text(self, tree: Node, selected: Path, text: str) -> OperationResult:
        """Store raw input *text* in the selected identifier name or literal value."""
        node = get_in(tree, selected)
        if not isinstance(node, Node):
            return _declined("Nothing selected to edit.")
        if node.node_type is NodeType.IDENTIFIER:
            field = "name"
        elif node.node_type in (NodeType.STRING_LITERAL, NodeType.NUMERIC_LITERAL):
            field = "value"
        else:
            return _declined("Selected node is not editable as text.", node=node.node_type.value)
        new_tree = set_in(tree, tuple(selected) + (Field(field),), str(text))
        return OperationResult(True, "Edited text.", None, new_tree)

    def change_declaration_kind(self, tree: Node, selected: Path, kind: str) -> OperationResult:
        """Set the ``kind`` (``const``/``let``/``var``) of the selected declaration."""
        kind_path = tuple(selected) + (Field("kind"),)
        if get_in(tree, kind_path) is None:
            return _declined("Selected node is not a declaration.")
        logger.info("Edit: change_declaration_kind kind=%s", kind)
        return OperationResult(True, f"Declaration kind set to {kind}.", None, set_in(tree, kind_path, kind))

    # -------------------------------------------------------------------------
    # Type coercions
    # -------------------------------------------------------------------------

    def set_boolean(self, tree: Node, selected: Path, value: bool) -> OperationResult:
        return self.replace(tree, selected, BooleanLiteral(bool(value)))

    def add_to_number(self, tree: Node, selected: Path, increment: float) -> OperationResult:
        if not isinstance(get_in(tree, selected), NumericLiteral):
            return _declined("Selected node is not a number.")
        return self.update_value(
            tree, selected, lambda value: format_number(parse_float(value) + increment)
        )

    def to_string(self, tree: Node, selected: Path) -> OperationResult:
        return self.replace(tree, selected, StringLiteral(_scalar_text(get_in(tree, selected))))

    def to_number(self, tree: Node, selected: Path) -> OperationResult:
        node = get_in(tree, selected)
        return self.replace(tree, selected, NumericLiteral.of(_coerce_number(node)))

    def to_array(self, tree: Node, selected: Path) -> OperationResult:
        node = get_in(tree, selected)
        if not isinstance(node, Node):
            return _declined("Nothing selected to convert.")
        return self.replace(tree, selected, ArrayExpression((node,)))

    def to_object(self, tree: Node, selected: Path) -> OperationResult:
        node = get_in(tree, selected)
        if not isinstance(node, Node):
            return _declined("Nothing selected to convert.")
        wrapped = ObjectExpression((ObjectProperty(StringLiteral(""), node),))
        return self.replace(tree, selected, wrapped, (Field("properties"), Index(0), Field("key")))

    def to_null(self, tree: Node, selected: Path) -> OperationResult:
        return self.replace(tree, selected, NullLiteral())

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _closest_insert_position(self, tree: Node, selected: Path) -> Optional[Tuple[Path, int]]:
        """Return ``(collection_path, index)`` where an insert should land, or None."""
        selected = tuple(selected)
        if selected and isinstance(selected[-1], End):
            collection_path = selected[:-1]
            collection = get_in(tree, collection_path)
            if not is_collection(collection):
                return None
            return collection_path, len(collection)

        node = get_in(tree, selected)
        if isinstance(node, ArrayExpression):
            return selected + (Field("elements"),), 0
        if isinstance(node, ObjectExpression):
            return selected + (Field("properties"),), 0

        pos = last_field_position(selected, EDITABLE_COLLECTIONS)
        if pos < 0:
            return None
        collection_path = selected[: pos + 1]
        step = selected[pos + 1] if pos + 1 < len(selected) else None
        if isinstance(step, Index):
            return collection_path, step.value + 1
        return collection_path, 0

    def _enclosing_item(self, tree: Node, selected: Path) -> Optional[Tuple[Path, int]]:
        """Return ``(collection_path, index)`` of the selected collection item, or None."""
        selected = tuple(selected)
        pos = last_field_position(selected, EDITABLE_COLLECTIONS)
        if pos < 0 or pos + 1 >= len(selected):
            return None
        step = selected[pos + 1]
        if not isinstance(step, Index):
            return None
        collection_path = selected[: pos + 1]
        collection = get_in(tree, collection_path)
        if not is_collection(collection) or step.value >= len(collection):
            return None
        return collection_path, step.value

    def _move_into_sibling_object(
        self,
        tree: Node,
        collection_path: Path,
        index: int,
        target_index: int,
        target: ObjectProperty,
        is_up: bool,
    ) -> Tuple[Node, Path]:
        item = get_in(tree, collection_path)[index]
        nested_path = collection_path + (Index(target_index), Field("value"), Field("properties"))
        nested_index = 0 if is_up else len(target.value.properties)
        new_tree = insert_in(tree, nested_path, nested_index, item)
        new_tree = delete_in(new_tree, collection_path + (Index(index),))
        # Removing the item shifts a following sibling one slot up
        owner_index = target_index if is_up else target_index - 1
        new_selected = collection_path + (
            Index(owner_index), Field("value"), Field("properties"), Index(nested_index),
        )
        return new_tree, new_selected

    def _move_out_of_parent_object(
        self,
        tree: Node,
        collection_path: Path,
        index: int,
        item: Node,
        is_up: bool,
    ) -> Optional[Tuple[Node, Path]]:
        if not isinstance(item, ObjectProperty):
            return None
        object_path = collection_path[:-1]
        if len(object_path) < 3:
            return None
        value_step, parent_step = object_path[-1], object_path[-2]
        if value_step != Field("value") or not isinstance(parent_step, Index):
            return None
        outer_path = object_path[:-2]
        if outer_path[-1] != Field("properties"):
            return None
        if not isinstance(get_in(tree, outer_path[:-1]), ObjectExpression):
            return None
        if not isinstance(get_in(tree, object_path[:-1]), ObjectProperty):
            return None

        new_index = parent_step.value if is_up else parent_step.value + 1
        new_tree = delete_in(tree, collection_path + (Index(index),))
        new_tree = insert_in(new_tree, outer_path, new_index, item)
        return new_tree, outer_path + (Index(new_index),)


def _scalar_text(node: Any) -> str:
    """Text carried over when converting *node* to a string literal."""
    if isinstance(node, BooleanLiteral):
        return "true" if node.value else "false"
    if isinstance(node, (StringLiteral, NumericLiteral)):
        return node.value
    if isinstance(node, Node) and node.node_type is NodeType.IDENTIFIER:
        return node.name
    return ""


def _coerce_number(node: Any) -> float:
    """Number carried over when converting *node* to a numeric literal.

    Tries a strict conversion of the whole text first, then the longest
    numeric prefix, and falls back to ``0``. Zero and NaN count as misses.
    """
    if isinstance(node, BooleanLiteral):
        return 1.0 if node.value else 0.0
    text = _scalar_text(node).strip() if isinstance(node, Node) else ""
    for candidate in (_strict_number(text), parse_float(text)):
        if candidate and not math.isnan(candidate):
            return candidate
    return 0.0


_RADIX_LITERAL = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")


def _strict_number(text: str) -> float:
    if not text:
        return 0.0
    if _RADIX_LITERAL.fullmatch(text):
        try:
            return float(int(text, 0))
        except OverflowError:
            return math.inf
    bare = text.lstrip("+-")
    # float() also accepts "inf", "nan" and digit separators
    if "_" in text or (bare.lower() in ("inf", "infinity", "nan") and bare != "Infinity"):
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan
