import pytest

from astedit.core.exceptions import KeymapError
from astedit.core.keymap import (
    KeyEvent,
    KeyMapping,
    compile_keymap,
    find_action,
    load_default_keymap,
)
from astedit.core.models import (
    ArrayExpression,
    Identifier,
    NullLiteral,
    NumericLiteral,
    ObjectExpression,
    StringLiteral,
    VariableDeclaration,
    make_path as P,
)

IN_ARRAY = P("body", 0, "elements", 0)
IN_OBJECT = P("body", 0, "properties", 0)
TOP_LEVEL = P("body", 0)


@pytest.fixture
def keymap():
    return load_default_keymap()


@pytest.mark.parametrize(
    "event, node, selected, expected",
    [
        (KeyEvent("z", ctrl_key=True), NullLiteral(), TOP_LEVEL, ["UNDO"]),
        (KeyEvent("y", ctrl_key=True), StringLiteral("s"), IN_ARRAY, ["REDO"]),
        (KeyEvent("ArrowUp", alt_key=True, shift_key=True), NumericLiteral("1"), IN_ARRAY, ["ADD_TO_NUMBER", 1]),
        (KeyEvent("ArrowDown", alt_key=True, shift_key=True), NumericLiteral("1"), TOP_LEVEL, ["ADD_TO_NUMBER", -1]),
        (KeyEvent("ArrowUp", alt_key=True), NullLiteral(), IN_OBJECT, ["MOVE", "UP"]),
        (KeyEvent("ArrowDown", alt_key=True), NullLiteral(), P("body", 0, "elements", 1, "value"), ["MOVE", "DOWN"]),
        (KeyEvent("Enter"), StringLiteral(""), IN_OBJECT, ["INSERT"]),
        (KeyEvent("Delete"), StringLiteral(""), IN_ARRAY, ["DELETE"]),
        (KeyEvent("Backspace"), NullLiteral(), IN_ARRAY, ["DELETE"]),
        (KeyEvent("v"), VariableDeclaration("const"), TOP_LEVEL, ["CHANGE_DECLARATION_KIND", "var"]),
        (KeyEvent("t"), NullLiteral(), IN_ARRAY, ["SET_BOOLEAN", True]),
        (KeyEvent("f", ctrl_key=True), StringLiteral("x"), IN_ARRAY, ["SET_BOOLEAN", False]),
        (KeyEvent('"'), NumericLiteral("1"), IN_ARRAY, None),
        (KeyEvent('"', ctrl_key=True), NumericLiteral("1"), IN_ARRAY, ["TO_STRING"]),
        (KeyEvent("s"), NullLiteral(), IN_ARRAY, ["TO_STRING"]),
        (KeyEvent("#"), ArrayExpression(), IN_ARRAY, ["TO_NUMBER"]),
        (KeyEvent("["), ObjectExpression(), IN_ARRAY, ["TO_ARRAY"]),
        (KeyEvent("{", ctrl_key=True), Identifier("x"), IN_ARRAY, ["TO_OBJECT"]),
        (KeyEvent("n"), ArrayExpression(), IN_ARRAY, ["TO_NULL"]),
    ],
)
def test_default_keymap_actions(keymap, event, node, selected, expected):
    assert find_action(keymap, event, node, selected) == expected


@pytest.mark.parametrize(
    "event, node, selected",
    [
        # Plain typing into a text field
        (KeyEvent("t"), StringLiteral("x"), IN_ARRAY),
        (KeyEvent("Backspace"), StringLiteral("x"), IN_ARRAY),
        (KeyEvent("s", ctrl_key=True), StringLiteral("x"), IN_ARRAY),
        # MOVE requires a collection item
        (KeyEvent("ArrowUp", alt_key=True), ObjectExpression(), TOP_LEVEL),
        # Declaration kind keys only apply to declarations
        (KeyEvent("c"), NullLiteral(), IN_ARRAY),
        (KeyEvent("q"), NullLiteral(), IN_ARRAY),
    ],
)
def test_default_keymap_ignores(keymap, event, node, selected):
    assert find_action(keymap, event, node, selected) is None


def test_unnamed_group_stops_lookup():
    mappings = compile_keymap([
        {"modifiers": ["ctrl"], "mappings": [{"keys": ["x"], "type": "A"}]},
        {"keys": ["y"], "type": "B"},
    ])
    assert find_action(mappings, KeyEvent("x", ctrl_key=True), None, ()) == ["A"]
    assert find_action(mappings, KeyEvent("y", ctrl_key=True), None, ()) is None
    assert find_action(mappings, KeyEvent("y"), None, ()) == ["B"]


def test_named_group_falls_through():
    mappings = compile_keymap({"mappings": [
        {"name": "Group", "mappings": [{"keys": ["x"], "type": "A"}]},
        {"keys": ["y"], "type": "B"},
    ]})
    assert find_action(mappings, KeyEvent("y"), None, ()) == ["B"]


def test_compile_combines_test_predicates():
    (rule,) = compile_keymap([{"keys": ["x"], "test": ["is_string", "in_object"], "type": "A"}])
    assert isinstance(rule, KeyMapping)
    assert rule.keys == ("x",)
    assert rule.test(StringLiteral(""), IN_OBJECT)
    assert not rule.test(StringLiteral(""), IN_ARRAY)
    assert not rule.test(NullLiteral(), IN_OBJECT)


def test_compile_accepts_single_key_string():
    (rule,) = compile_keymap([{"keys": "Enter", "type": "INSERT"}])
    assert rule.keys == ("Enter",)


@pytest.mark.parametrize(
    "data",
    [
        "not a list",
        {"mappings": None},
        ["not a mapping"],
        [{"keys": ["x"], "typo": "A"}],
        [{"keys": ["x"], "test": "no_such_predicate"}],
        [{"keys": ["x"], "modifiers": ["hyper"]}],
        [{"keys": ["x"], "modifiers": "no_such_modifier_predicate"}],
        [{"mappings": {"keys": ["x"]}}],
    ],
)
def test_compile_rejects_malformed_rules(data):
    with pytest.raises(KeymapError):
        compile_keymap(data)


def test_keymap_error_mentions_rule():
    with pytest.raises(KeymapError) as excinfo:
        compile_keymap([{"keys": ["x"], "test": "nope"}])
    assert "nope" in str(excinfo.value)
    assert excinfo.value.rule == {"keys": ["x"], "test": "nope"}


def test_user_keymap_overrides_default(isolated_config):
    isolated_config.mkdir(parents=True)
    (isolated_config / "keymap.yml").write_text(
        "mappings:\n  - keys: [x]\n    type: TO_NULL\n", encoding="utf-8"
    )
    keymap = load_default_keymap()
    assert len(keymap) == 1
    assert find_action(keymap, KeyEvent("x"), NullLiteral(), IN_ARRAY) == ["TO_NULL"]
