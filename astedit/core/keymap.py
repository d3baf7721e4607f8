from __future__ import annotations

"""Declarative keymap: rule model, compilation and action lookup.

A keymap is an ordered tree of :class:`KeyMapping` rules. Each rule can
require keys, modifier keys and a predicate over the selected node; rules with
nested ``mappings`` refine the match. :func:`find_action` walks the tree depth
first and stops at the first fully matching leaf, producing
``[action_name, action_param]``.

Keymaps are usually written in YAML (see ``astedit/config/keymap.yml``) and
compiled with :func:`compile_keymap`. Predicates are referenced by name and
resolved through :data:`PREDICATES` and :data:`MODIFIER_PREDICATES`.
"""

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from astedit.core.exceptions import KeymapError
from astedit.core.models import End, Node, NodeType, Path, is_editable
from astedit.core.tree import last_field_position

__all__ = [
    "KeyEvent",
    "KeyMapping",
    "MODIFIERS",
    "PREDICATES",
    "MODIFIER_PREDICATES",
    "find_action",
    "compile_keymap",
    "load_default_keymap",
]

logger = logging.getLogger(__name__)

MODIFIERS = ("alt", "ctrl", "meta", "shift")

Predicate = Callable[[Optional[Node], Path], bool]
ModifierPredicate = Callable[[Optional[Node], Path], Sequence[str]]


@dataclass(frozen=True)
class KeyEvent:
    """A key press as seen by the editor.

    ``key`` uses DOM ``KeyboardEvent.key`` names (``"a"``, ``"Enter"``,
    ``"ArrowUp"``). ``selection_start``/``text_length`` describe the text caret
    when an editable leaf has focus; leave them None otherwise.
    """

    key: str
    alt_key: bool = False
    ctrl_key: bool = False
    meta_key: bool = False
    shift_key: bool = False
    selection_start: Optional[int] = None
    text_length: Optional[int] = None

    def has_modifier(self, name: str) -> bool:
        return bool(getattr(self, f"{name}_key", False))


@dataclass(frozen=True)
class KeyMapping:
    """One keymap rule.

    Attributes
    ----------
    keys
        Keys that match this rule; None matches any key.
    modifiers
        Required modifier names, or a callable ``(node, selected)`` returning
        them.
    test
        Predicate ``(node, selected)`` that must hold.
    type
        Action name for top-level rules, action parameter for nested leaves.
    name
        Label of a grouping rule.
    mappings
        Nested rules refining this one.
    """

    keys: Optional[Tuple[str, ...]] = None
    modifiers: Union[Tuple[str, ...], ModifierPredicate, None] = None
    test: Optional[Predicate] = None
    type: Any = None
    name: Optional[str] = None
    mappings: Optional[Tuple["KeyMapping", ...]] = None


def find_action(
    mappings: Iterable[KeyMapping],
    event: KeyEvent,
    node: Optional[Node],
    selected: Path,
) -> Optional[List[Any]]:
    """Return ``[action, *params]`` for the first rule matching *event*, or None.

    A rule with nested mappings prefixes the nested result with its own
    ``type``. A failed nested lookup moves on to the next sibling rule, unless
    the rule has neither ``type`` nor ``name``, in which case the (empty)
    nested result is final.
    """
    for rule in mappings:
        if rule.modifiers is not None:
            required = rule.modifiers(node, selected) if callable(rule.modifiers) else rule.modifiers
            if any(not event.has_modifier(m) for m in required):
                continue
        if rule.keys is not None and all(key != event.key for key in rule.keys):
            continue
        if rule.test is not None and not rule.test(node, selected):
            continue

        if rule.mappings is None:
            return [rule.type]
        action = find_action(rule.mappings, event, node, selected)
        if not (rule.type is not None or rule.name) or action:
            return [rule.type, *action] if rule.type is not None else action
    return None


# ---------------------------------------------------------------------------
# Predicate registry
# ---------------------------------------------------------------------------

def _of_type(*types: NodeType) -> Predicate:
    def predicate(node: Optional[Node], selected: Path) -> bool:
        return isinstance(node, Node) and node.node_type in types
    return predicate


def _collection_item_field(selected: Path) -> Optional[str]:
    """Name of the innermost array/object collection holding the selection."""
    if selected and isinstance(selected[-1], End):
        selected = selected[:-2]
    pos = last_field_position(selected, ("elements", "properties"))
    return selected[pos].name if pos >= 0 else None


def _is_collection_item(node: Optional[Node], selected: Path) -> bool:
    return _collection_item_field(selected) is not None


def _in_array(node: Optional[Node], selected: Path) -> bool:
    return _collection_item_field(selected) == "elements"


def _in_object(node: Optional[Node], selected: Path) -> bool:
    return _collection_item_field(selected) == "properties"


PREDICATES: Dict[str, Predicate] = {
    "always": lambda node, selected: True,
    "is_editable": lambda node, selected: is_editable(node),
    "not_editable": lambda node, selected: not is_editable(node),
    "is_end": lambda node, selected: bool(selected) and isinstance(selected[-1], End),
    "is_null": _of_type(NodeType.NULL_LITERAL),
    "is_boolean": _of_type(NodeType.BOOLEAN_LITERAL),
    "is_number": _of_type(NodeType.NUMERIC_LITERAL),
    "is_string": _of_type(NodeType.STRING_LITERAL),
    "is_array": _of_type(NodeType.ARRAY_EXPRESSION),
    "is_object": _of_type(NodeType.OBJECT_EXPRESSION),
    "is_property": _of_type(NodeType.OBJECT_PROPERTY),
    "is_declaration": _of_type(NodeType.VARIABLE_DECLARATION),
    "is_collection_item": _is_collection_item,
    "in_array": _in_array,
    "in_object": _in_object,
}

MODIFIER_PREDICATES: Dict[str, ModifierPredicate] = {
    # Letters typed into a text field must not trigger commands
    "ctrl_if_editable": lambda node, selected: ["ctrl"] if is_editable(node) else [],
}


# ---------------------------------------------------------------------------
# Compilation from declarative data
# ---------------------------------------------------------------------------

_RULE_FIELDS = {"keys", "modifiers", "test", "type", "name", "mappings"}


def compile_keymap(data: Any) -> Tuple[KeyMapping, ...]:
    """Compile declarative rule data (as loaded from YAML) into rules.

    Accepts either a list of rule dicts or a dict with a ``mappings`` list.

    Raises
    ------
    KeymapError
        If a rule is malformed or references an unknown predicate/modifier.
    """
    if isinstance(data, Mapping):
        data = data.get("mappings")
    if not isinstance(data, list):
        raise KeymapError("Keymap must be a list of rules")
    return tuple(_compile_rule(rule) for rule in data)


def _compile_rule(rule: Any) -> KeyMapping:
    if not isinstance(rule, Mapping):
        raise KeymapError("Keymap rule must be a mapping", rule={"value": rule})
    unknown = set(rule) - _RULE_FIELDS
    if unknown:
        raise KeymapError(f"Unknown rule fields: {', '.join(sorted(unknown))}", rule=dict(rule))

    keys = rule.get("keys")
    if keys is not None:
        keys = tuple(str(k) for k in (keys if isinstance(keys, list) else [keys]))

    mappings = rule.get("mappings")
    if mappings is not None:
        if not isinstance(mappings, list):
            raise KeymapError("Nested mappings must be a list", rule=dict(rule))
        mappings = tuple(_compile_rule(r) for r in mappings)

    return KeyMapping(
        keys=keys,
        modifiers=_compile_modifiers(rule.get("modifiers"), rule),
        test=_compile_test(rule.get("test"), rule),
        type=rule.get("type"),
        name=rule.get("name"),
        mappings=mappings,
    )


def _compile_modifiers(value: Any, rule: Mapping) -> Union[Tuple[str, ...], ModifierPredicate, None]:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            return MODIFIER_PREDICATES[value]
        except KeyError:
            raise KeymapError(f"Unknown modifier predicate '{value}'", rule=dict(rule)) from None
    names = tuple(str(m) for m in value)
    for m in names:
        if m not in MODIFIERS:
            raise KeymapError(f"Unknown modifier '{m}'", rule=dict(rule))
    return names


def _compile_test(value: Any, rule: Mapping) -> Optional[Predicate]:
    if value is None:
        return None
    names = [value] if isinstance(value, str) else list(value)
    try:
        predicates = [PREDICATES[n] for n in names]
    except KeyError as exc:
        raise KeymapError(f"Unknown test predicate '{exc.args[0]}'", rule=dict(rule)) from None
    if len(predicates) == 1:
        return predicates[0]
    return lambda node, selected: all(p(node, selected) for p in predicates)


def load_default_keymap() -> Tuple[KeyMapping, ...]:
    """Compile the ``keymap`` configuration section (packaged defaults + user overrides)."""
    from astedit.config import ConfigManager

    data = ConfigManager().get_keymap()
    keymap = compile_keymap(data)
    logger.info("Keymap loaded: %d top-level rules", len(keymap))
    return keymap
