from __future__ import annotations

"""Default parser and generator services.

The editor core treats parsing (raw value -> tree) and generation
(tree -> text) as injected services. This module provides the defaults used
when the caller does not supply its own:

- :func:`parse_value` converts a JSON-compatible Python value to a node.
- :func:`parse_document` wraps a value into a :class:`Program` root.
- :func:`parse_clipboard` parses JSON text (used for paste).
- :func:`generate` renders a node as JavaScript-like source text.

Rendering is intentionally simple: objects are multi-line with two-space
indentation, arrays are inline, strings are JSON-quoted.
"""

import json
from typing import Any, List

from astedit.core.exceptions import ParseError
from astedit.core.models import (
    ArrayExpression,
    BooleanLiteral,
    Node,
    NodeType,
    NullLiteral,
    NumericLiteral,
    ObjectExpression,
    ObjectProperty,
    Program,
    StringLiteral,
)

__all__ = ["parse_value", "parse_document", "parse_clipboard", "generate"]

INDENT = "  "


def parse_value(value: Any) -> Node:
    """Convert a JSON-compatible Python value into a document node.

    Raises
    ------
    ParseError
        If *value* (or a nested value) has no node equivalent.
    """
    if isinstance(value, Node):
        return value
    if value is None:
        return NullLiteral()
    if isinstance(value, bool):
        return BooleanLiteral(value)
    if isinstance(value, (int, float)):
        return NumericLiteral.of(value)
    if isinstance(value, str):
        return StringLiteral(value)
    if isinstance(value, (list, tuple)):
        return ArrayExpression(tuple(parse_value(v) for v in value))
    if isinstance(value, dict):
        properties = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise ParseError(f"Object keys must be strings, got {key!r}")
            properties.append(ObjectProperty(StringLiteral(key), parse_value(item)))
        return ObjectExpression(tuple(properties))
    raise ParseError(f"Unsupported value of type {type(value).__name__}")


def parse_document(value: Any) -> Program:
    """Return a :class:`Program` whose body holds the node for *value*."""
    if isinstance(value, Program):
        return value
    return Program(body=(parse_value(value),))


def parse_clipboard(text: str) -> Node:
    """Parse clipboard *text* as JSON into a node.

    Raises
    ------
    ParseError
        If *text* is not valid JSON or nests too deeply to convert.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError) as exc:
        raise ParseError(f"Clipboard content is not valid JSON: {exc}", cause=exc) from exc
    try:
        return parse_value(data)
    except RecursionError as exc:
        raise ParseError("Clipboard content is nested too deeply", cause=exc) from exc


def generate(node: Node) -> str:
    """Render *node* as source text."""
    return _render(node, 0)


def _render(node: Node, level: int) -> str:
    kind = node.node_type
    if kind is NodeType.NULL_LITERAL:
        return "null"
    if kind is NodeType.BOOLEAN_LITERAL:
        return "true" if node.value else "false"
    if kind is NodeType.NUMERIC_LITERAL:
        return node.value
    if kind is NodeType.STRING_LITERAL:
        return json.dumps(node.value, ensure_ascii=False)
    if kind is NodeType.IDENTIFIER:
        return node.name
    if kind is NodeType.ARRAY_EXPRESSION:
        return "[" + ", ".join(_render(e, level) for e in node.elements) + "]"
    if kind is NodeType.OBJECT_EXPRESSION:
        if not node.properties:
            return "{}"
        inner = INDENT * (level + 1)
        lines: List[str] = [inner + _render(p, level + 1) for p in node.properties]
        return "{\n" + ",\n".join(lines) + "\n" + INDENT * level + "}"
    if kind is NodeType.OBJECT_PROPERTY:
        return f"{_render(node.key, level)}: {_render(node.value, level)}"
    if kind is NodeType.VARIABLE_DECLARATOR:
        return f"{_render(node.id, level)} = {_render(node.init, level)}"
    if kind is NodeType.VARIABLE_DECLARATION:
        declarators = ", ".join(_render(d, level) for d in node.declarations)
        return f"{node.kind} {declarators};"
    if kind is NodeType.PROGRAM:
        return "\n".join(_render(s, level) for s in node.body)
    raise ValueError(f"Cannot render node type {kind!r}")
