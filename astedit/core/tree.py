from __future__ import annotations

"""Persistent, path-addressed access to document trees.

These helpers are side-effect-free: every update rebuilds only the nodes on the
path from the root to the changed location and shares all other subtrees with
the input tree. Nodes are frozen dataclasses, so the returned trees compare by
value with ``==``.

Paths are tuples of :class:`Field`, :class:`Index` and :data:`END` steps (see
:mod:`astedit.core.models`).
"""

import dataclasses
from typing import Any, Callable, Optional, Tuple

from astedit.core.exceptions import InvalidPathError
from astedit.core.models import (
    End,
    Field,
    Index,
    Node,
    Path,
    format_number,
    parse_float,
)

__all__ = [
    "get_in",
    "set_in",
    "update_in",
    "delete_in",
    "insert_in",
    "resolves",
    "is_collection",
    "last_field_position",
    "last_index_position",
    "normalize_number",
]

_MISSING = object()


def is_collection(value: Any) -> bool:
    """Return True if *value* is a node sequence (array elements, properties, ...)."""
    return isinstance(value, tuple)


def _step_into(value: Any, step) -> Any:
    """Return the child of *value* addressed by *step*, or ``_MISSING``."""
    if isinstance(step, Field):
        if isinstance(value, Node) and step.name in _field_names(value):
            return getattr(value, step.name)
        return _MISSING
    if isinstance(step, Index):
        if is_collection(value) and step.value < len(value):
            return value[step.value]
        return _MISSING
    # END addresses an insertion point, never a value
    return _MISSING


def _field_names(node: Node) -> Tuple[str, ...]:
    return tuple(f.name for f in dataclasses.fields(node))


def get_in(tree: Any, path: Path) -> Optional[Any]:
    """Return the value at *path*, or None if the path does not resolve.

    The result is a node, a collection (tuple) or a scalar field value.
    """
    value = tree
    for step in path:
        value = _step_into(value, step)
        if value is _MISSING:
            return None
    return value


def set_in(tree: Any, path: Path, value: Any) -> Any:
    """Return a copy of *tree* with *value* stored at *path*.

    Raises
    ------
    InvalidPathError
        If the parent of the target location does not resolve, or the last step
        cannot hold a value (an out-of-range index or the END sentinel).
    """
    if not path:
        return value
    head, rest = path[0], path[1:]
    child = _step_into(tree, head)
    if child is _MISSING:
        raise InvalidPathError(path)
    if rest:
        try:
            child = set_in(child, rest, value)
        except InvalidPathError:
            raise InvalidPathError(path) from None
    else:
        child = value
    return _replace_child(tree, head, child)


def _replace_child(parent: Any, step, child: Any) -> Any:
    if isinstance(step, Field):
        if getattr(parent, step.name) is child:
            return parent
        return dataclasses.replace(parent, **{step.name: child})
    i = step.value
    if parent[i] is child:
        return parent
    return parent[:i] + (child,) + parent[i + 1:]


def update_in(tree: Any, path: Path, fn: Callable[[Any], Any]) -> Any:
    """Apply *fn* to the value at *path*.

    Returns *tree* itself (structural no-op) when the path does not resolve.
    """
    current = get_in(tree, path)
    if current is None:
        return tree
    return set_in(tree, path, fn(current))


def delete_in(tree: Any, path: Path) -> Any:
    """Remove the collection element addressed by *path*.

    Only paths ending in an :class:`Index` step can be deleted; any other or
    unresolvable path leaves *tree* unchanged.
    """
    if not path or not isinstance(path[-1], Index):
        return tree
    collection = get_in(tree, path[:-1])
    i = path[-1].value
    if not is_collection(collection) or i >= len(collection):
        return tree
    return set_in(tree, path[:-1], collection[:i] + collection[i + 1:])


def insert_in(tree: Any, collection_path: Path, index: int, value: Any) -> Any:
    """Insert *value* at *index* of the collection at *collection_path*.

    *index* is clamped to ``[0, len(collection)]``.
    """
    collection = get_in(tree, collection_path)
    if not is_collection(collection):
        raise InvalidPathError(collection_path, f"Not a collection: {tuple(collection_path)!r}")
    index = max(0, min(index, len(collection)))
    return set_in(tree, collection_path, collection[:index] + (value,) + collection[index:])


def resolves(tree: Any, path: Path) -> bool:
    """Return True if *path* is a valid selection in *tree*.

    A valid selection addresses an existing node, or ends with END right after
    the path of an existing collection.
    """
    if path and isinstance(path[-1], End):
        return is_collection(get_in(tree, path[:-1]))
    return isinstance(get_in(tree, path), Node)


def last_field_position(path: Path, fields: Tuple[str, ...]) -> int:
    """Return the position in *path* of the last Field step named in *fields*, or -1."""
    for pos in range(len(path) - 1, -1, -1):
        step = path[pos]
        if isinstance(step, Field) and step.name in fields:
            return pos
    return -1


def last_index_position(path: Path) -> int:
    """Return the position in *path* of the deepest Index step, or -1."""
    for pos in range(len(path) - 1, -1, -1):
        if isinstance(path[pos], Index):
            return pos
    return -1


def normalize_number(text: Any) -> str:
    """Return the canonical text of a (possibly partially typed) number."""
    return format_number(parse_float(text))

