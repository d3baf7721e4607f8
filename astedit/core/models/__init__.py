from __future__ import annotations

"""Shared data structures used across the editor core.

This package exposes the document node types, the path step types used to
address locations inside a document, and the ``EditorState`` snapshot. It is
intentionally free of UI / I/O code so that the contained objects can be
reused in any context (unit-tests, CLI, GUI, etc.).

All nodes are frozen dataclasses holding tuples for their sequences, so they
compare by value and can be shared freely between snapshots.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
import math
import re
from typing import Any, ClassVar, Optional, Tuple, Union

__all__ = [
    "NodeType",
    "Node",
    "NullLiteral",
    "BooleanLiteral",
    "NumericLiteral",
    "StringLiteral",
    "Identifier",
    "ArrayExpression",
    "ObjectExpression",
    "ObjectProperty",
    "VariableDeclarator",
    "VariableDeclaration",
    "Program",
    "COLLECTION_FIELDS",
    "EDITABLE_TYPES",
    "is_editable",
    "parse_float",
    "format_number",
    "Field",
    "Index",
    "End",
    "END",
    "Step",
    "Path",
    "make_path",
    "EditorState",
]


class NodeType(str, Enum):
    """Discriminant for document nodes."""

    NULL_LITERAL = "NullLiteral"
    BOOLEAN_LITERAL = "BooleanLiteral"
    NUMERIC_LITERAL = "NumericLiteral"
    STRING_LITERAL = "StringLiteral"
    IDENTIFIER = "Identifier"
    ARRAY_EXPRESSION = "ArrayExpression"
    OBJECT_EXPRESSION = "ObjectExpression"
    OBJECT_PROPERTY = "ObjectProperty"
    VARIABLE_DECLARATOR = "VariableDeclarator"
    VARIABLE_DECLARATION = "VariableDeclaration"
    PROGRAM = "Program"


class Node:
    """Base class of every document node.

    Subclasses declare ``node_type`` and their fields as frozen dataclass
    fields. Child fields hold nodes, sequence fields hold tuples of nodes.
    """

    node_type: ClassVar[NodeType]


@dataclass(frozen=True)
class NullLiteral(Node):
    node_type: ClassVar[NodeType] = NodeType.NULL_LITERAL


@dataclass(frozen=True)
class BooleanLiteral(Node):
    value: bool
    node_type: ClassVar[NodeType] = NodeType.BOOLEAN_LITERAL


@dataclass(frozen=True)
class NumericLiteral(Node):
    """Number literal.

    ``value`` holds the text of the number. Outside of editing this is the
    canonical rendering produced by :func:`format_number`; while the user is
    typing it may hold partial text such as ``"1."`` or ``"-"``.
    """

    value: str
    node_type: ClassVar[NodeType] = NodeType.NUMERIC_LITERAL

    @classmethod
    def of(cls, number: Union[int, float]) -> "NumericLiteral":
        return cls(format_number(number))


@dataclass(frozen=True)
class StringLiteral(Node):
    value: str
    node_type: ClassVar[NodeType] = NodeType.STRING_LITERAL


@dataclass(frozen=True)
class Identifier(Node):
    name: str
    node_type: ClassVar[NodeType] = NodeType.IDENTIFIER


@dataclass(frozen=True)
class ArrayExpression(Node):
    elements: Tuple[Node, ...] = ()
    node_type: ClassVar[NodeType] = NodeType.ARRAY_EXPRESSION


@dataclass(frozen=True)
class ObjectProperty(Node):
    key: Node
    value: Node
    node_type: ClassVar[NodeType] = NodeType.OBJECT_PROPERTY


@dataclass(frozen=True)
class ObjectExpression(Node):
    properties: Tuple[ObjectProperty, ...] = ()
    node_type: ClassVar[NodeType] = NodeType.OBJECT_EXPRESSION


@dataclass(frozen=True)
class VariableDeclarator(Node):
    id: Identifier
    init: Node
    node_type: ClassVar[NodeType] = NodeType.VARIABLE_DECLARATOR


@dataclass(frozen=True)
class VariableDeclaration(Node):
    kind: str
    declarations: Tuple[VariableDeclarator, ...] = ()
    node_type: ClassVar[NodeType] = NodeType.VARIABLE_DECLARATION


@dataclass(frozen=True)
class Program(Node):
    body: Tuple[Node, ...] = ()
    node_type: ClassVar[NodeType] = NodeType.PROGRAM


# Sequence field owned by each collection-bearing node type
COLLECTION_FIELDS = {
    NodeType.ARRAY_EXPRESSION: "elements",
    NodeType.OBJECT_EXPRESSION: "properties",
    NodeType.PROGRAM: "body",
    NodeType.VARIABLE_DECLARATION: "declarations",
}

EDITABLE_TYPES = frozenset(
    {NodeType.STRING_LITERAL, NodeType.NUMERIC_LITERAL, NodeType.IDENTIFIER}
)


def is_editable(node: Any) -> bool:
    """Return True if *node* is a text-edited leaf (string, number, identifier)."""
    return isinstance(node, Node) and node.node_type in EDITABLE_TYPES


# ---------------------------------------------------------------------------
# Number text helpers
# ---------------------------------------------------------------------------

_FLOAT_PREFIX = re.compile(
    r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)


def parse_float(value: Any) -> float:
    """Parse the longest numeric prefix of *value*, like JavaScript ``parseFloat``.

    Returns ``nan`` when no prefix is numeric.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    match = _FLOAT_PREFIX.match(str(value).lstrip())
    if match is None:
        return math.nan
    text = match.group(0)
    if text.lstrip("+-") == "Infinity":
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def format_number(number: Union[int, float]) -> str:
    """Return the canonical text of *number* (``1.0`` -> ``"1"``, ``nan`` -> ``"NaN"``).

    Magnitudes in ``[1e-6, 1e21)`` use fixed notation, everything else the
    shortest exponent form (``1e-7``, ``1e+21``). Integers too large for a
    float become ``"Infinity"``.
    """
    try:
        number = float(number)
    except OverflowError:
        return "Infinity" if number > 0 else "-Infinity"
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number == 0:
        return "0"
    if 1e-6 <= abs(number) < 1e21:
        return format(Decimal(repr(number)).normalize(), "f")
    return re.sub(r"e([+-])0*(\d)", r"e\1\2", repr(number))


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Field:
    """Path step naming a node field (``"value"``, ``"properties"``, ...)."""

    name: str

    def __repr__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Index:
    """Path step addressing a position inside a collection."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Collection index must be non-negative, got {self.value}")

    def __repr__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class End:
    """Sentinel step: the insertion point after the last element of a collection."""

    def __repr__(self) -> str:
        return "end"


END = End()

Step = Union[Field, Index, End]
Path = Tuple[Step, ...]


def make_path(*steps: Any) -> Path:
    """Build a path from plain values.

    Strings become :class:`Field` steps (``"end"`` becomes :data:`END`),
    integers become :class:`Index` steps and existing steps pass through.

    >>> make_path("body", 0, "properties", "end")
    (body, 0, properties, end)
    """
    out = []
    for step in steps:
        if isinstance(step, (Field, Index, End)):
            out.append(step)
        elif isinstance(step, bool):
            raise TypeError(f"Invalid path step: {step!r}")
        elif isinstance(step, int):
            out.append(Index(step))
        elif step == "end":
            out.append(END)
        elif isinstance(step, str):
            out.append(Field(step))
        else:
            raise TypeError(f"Invalid path step: {step!r}")
    return tuple(out)


@dataclass(frozen=True)
class EditorState:
    """Immutable ``(tree, selected)`` snapshot of the editor.

    Attributes
    ----------
    tree
        Root node of the document (usually a :class:`Program`).
    selected
        Path of the current selection.
    """

    tree: Node
    selected: Path = ()

    def replace(self, tree: Optional[Node] = None, selected: Optional[Path] = None) -> "EditorState":
        return EditorState(
            tree=self.tree if tree is None else tree,
            selected=self.selected if selected is None else tuple(selected),
        )
