import logging
from typing import List

import pytest

from astedit.core.codec import parse_document
from astedit.core.keymap import KeyEvent, compile_keymap
from astedit.core.models import (
    BooleanLiteral,
    Identifier,
    NullLiteral,
    NumericLiteral,
    Program,
    StringLiteral,
    VariableDeclaration,
    VariableDeclarator,
    make_path as P,
)
from astedit.core.tree import get_in, resolves
from astedit.ui.controllers import EditorController


class ChangeSink:
    def __init__(self) -> None:
        self.texts: List[str] = []

    def __call__(self, text: str) -> None:
        self.texts.append(text)


@pytest.fixture
def sink():
    return ChangeSink()


@pytest.fixture
def make_controller(sink):
    def factory(value=None, **kwargs):
        return EditorController(value, sink, **kwargs)
    return factory


def key(name: str, **modifiers) -> KeyEvent:
    return KeyEvent(name, **modifiers)


# ---------------------------
# Construction
# ---------------------------

def test_initial_selection_is_first_statement(make_controller):
    ctrl = make_controller({"a": 1})
    assert ctrl.tree == parse_document({"a": 1})
    assert ctrl.selected == P("body", 0)
    assert ctrl.show_keymap is True


def test_initial_selection_of_empty_program(make_controller):
    ctrl = make_controller(parser=lambda value: Program())
    assert ctrl.selected == P("body", "end")


def test_max_history_comes_from_config(isolated_config, make_controller):
    isolated_config.mkdir(parents=True)
    (isolated_config / "editor.yml").write_text("max_history: 2\nshow_keymap: false\n", encoding="utf-8")
    ctrl = make_controller(0)
    assert ctrl.history.max_history == 2
    assert ctrl.show_keymap is False
    assert ctrl.toggle_show_keymap() is True


# ---------------------------
# Scenarios
# ---------------------------

def test_insert_into_empty_object_then_convert_key(make_controller, sink):
    ctrl = make_controller({})
    assert ctrl.dispatch("INSERT")
    assert ctrl.tree == parse_document({"": None})
    assert ctrl.selected == P("body", 0, "properties", 0, "key")
    assert sink.texts == ['{\n  "": null\n}']

    assert ctrl.dispatch("TO_NUMBER")
    assert get_in(ctrl.tree, P("body", 0, "properties", 0, "key")) == NumericLiteral("0")


def test_move_at_array_boundary_is_noop(make_controller, sink):
    ctrl = make_controller([1])
    ctrl.select(P("body", 0, "elements", 0))
    depth = len(ctrl.history.history)
    assert not ctrl.dispatch("MOVE", "DOWN")
    assert len(ctrl.history.history) == depth
    assert sink.texts == []


def test_move_property_out_of_nested_object(make_controller):
    ctrl = make_controller({"a": {"b": 1}})
    ctrl.select(P("body", 0, "properties", 0, "value", "properties", 0))
    assert ctrl.handle_key_down(key("ArrowUp", alt_key=True))
    assert ctrl.tree == parse_document({"b": 1, "a": {}})
    assert ctrl.selected == P("body", 0, "properties", 0)


def test_history_keeps_last_hundred_states(make_controller):
    ctrl = make_controller(0)
    for _ in range(101):
        assert ctrl.dispatch("ADD_TO_NUMBER", 1)
    history = ctrl.history.history
    assert len(history) == 100
    assert history[0].tree.body[0] == NumericLiteral("101")
    assert history[-1].tree.body[0] == NumericLiteral("2")


def test_copy_at_end_exports_collection(make_controller):
    ctrl = make_controller([1, 2])
    ctrl.select(P("body", 0, "elements", "end"))
    assert ctrl.copy() == "[1, 2]"


# ---------------------------
# Keyboard handling
# ---------------------------

def test_arrow_keys_navigate(make_controller, sink):
    ctrl = make_controller([1, 2])
    assert ctrl.handle_key_down(key("ArrowDown"))
    assert ctrl.selected == P("body", 0, "elements", 0)
    assert ctrl.handle_key_down(key("ArrowRight"))
    assert ctrl.selected == P("body", 0, "elements", 1)
    assert ctrl.handle_key_down(key("ArrowUp"))
    assert ctrl.selected == P("body", 0)
    assert sink.texts == []


def test_horizontal_arrows_respect_text_caret(make_controller):
    ctrl = make_controller(["ab", "c"])
    ctrl.select(P("body", 0, "elements", 0))
    # Caret in the middle of the text: let the input move it
    assert not ctrl.handle_key_down(key("ArrowRight", selection_start=1, text_length=2))
    assert ctrl.selected == P("body", 0, "elements", 0)
    # Caret at the end: leave the field
    assert ctrl.handle_key_down(key("ArrowRight", selection_start=2, text_length=2))
    assert ctrl.selected == P("body", 0, "elements", 1)
    assert ctrl.handle_key_down(key("ArrowLeft", selection_start=0, text_length=1))
    assert ctrl.selected == P("body", 0, "elements", 0)
    # No caret information: always navigate
    assert ctrl.handle_key_down(key("ArrowRight"))
    assert ctrl.selected == P("body", 0, "elements", 1)


def test_digit_on_null_becomes_number(make_controller):
    ctrl = make_controller([None])
    ctrl.select(P("body", 0, "elements", 0))
    assert ctrl.handle_key_down(key("7"))
    assert get_in(ctrl.tree, P("body", 0, "elements", 0)) == NumericLiteral("7")
    # Typing into the number is left to the input
    assert not ctrl.handle_key_down(key("8"))


def test_keymap_actions_are_dispatched(make_controller):
    ctrl = make_controller([None])
    ctrl.select(P("body", 0, "elements", 0))
    assert ctrl.handle_key_down(key("t"))
    assert get_in(ctrl.tree, P("body", 0, "elements", 0)) == BooleanLiteral(True)
    assert ctrl.handle_key_down(key("Enter"))
    assert ctrl.tree == parse_document([True, None])
    assert ctrl.handle_key_down(key("z", ctrl_key=True))
    assert ctrl.tree == parse_document([True])
    assert ctrl.handle_key_down(key("y", ctrl_key=True))
    assert ctrl.tree == parse_document([True, None])


def test_letters_in_text_fields_are_not_commands(make_controller):
    ctrl = make_controller(["text"])
    ctrl.select(P("body", 0, "elements", 0))
    assert not ctrl.handle_key_down(key("n"))
    assert get_in(ctrl.tree, P("body", 0, "elements", 0)) == StringLiteral("text")
    assert ctrl.handle_key_down(key("n", ctrl_key=True))
    assert get_in(ctrl.tree, P("body", 0, "elements", 0)) == NullLiteral()


def test_change_declaration_kind_key(make_controller):
    program = Program((VariableDeclaration("const", (VariableDeclarator(Identifier("x"), NullLiteral()),)),))
    ctrl = make_controller(program)
    assert ctrl.handle_key_down(key("l"))
    assert ctrl.tree.body[0].kind == "let"


def test_unknown_action_is_logged(make_controller, caplog):
    keymap = compile_keymap([{"keys": ["x"], "type": "EXPLODE"}])
    ctrl = make_controller([1], keymap=keymap)
    with caplog.at_level(logging.ERROR):
        assert ctrl.handle_key_down(key("x"))
    assert "Missing action EXPLODE" in caplog.text
    assert len(ctrl.history.history) == 1


def test_unmapped_key_is_not_consumed(make_controller):
    ctrl = make_controller([1])
    assert not ctrl.handle_key_down(key("q"))


# ---------------------------
# Text editing and reset
# ---------------------------

def test_set_text_and_normalization(make_controller, sink):
    ctrl = make_controller([1])
    ctrl.select(P("body", 0, "elements", 0))
    assert ctrl.set_text("2.")
    assert sink.texts == ["[2.]"]
    ctrl.handle_key_down(key("ArrowUp"))
    assert ctrl.tree == parse_document([2])


def test_reset_is_undoable(make_controller):
    ctrl = make_controller([1])
    ctrl.select(P("body", 0, "elements", 0))
    ctrl.dispatch("TO_NULL")
    assert ctrl.reset()
    assert ctrl.tree == parse_document([1])
    assert ctrl.selected == ()
    assert ctrl.undo()
    assert ctrl.tree == parse_document([None])


# ---------------------------
# Clipboard
# ---------------------------

def test_copy_is_skipped_for_editable_leaves(make_controller):
    ctrl = make_controller(["s"])
    ctrl.select(P("body", 0, "elements", 0))
    assert ctrl.copy() is None
    assert ctrl.cut() is None
    assert ctrl.tree == parse_document(["s"])


def test_cut_copies_then_deletes(make_controller, sink):
    ctrl = make_controller({"a": [1, 2], "b": None})
    ctrl.select(P("body", 0, "properties", 0))
    assert ctrl.cut() == '"a": [1, 2]'
    assert ctrl.tree == parse_document({"b": None})
    assert resolves(ctrl.tree, ctrl.selected)


def test_paste_inserts_after_selection(make_controller):
    ctrl = make_controller([False])
    ctrl.select(P("body", 0, "elements", 0))
    assert ctrl.paste('{"k": [true]}')
    assert ctrl.tree == parse_document([False, {"k": [True]}])
    assert ctrl.selected == P("body", 0, "elements", 1)


def test_paste_invalid_json_is_aborted(make_controller, sink, caplog):
    ctrl = make_controller([None])
    ctrl.select(P("body", 0, "elements", 0))
    with caplog.at_level(logging.ERROR):
        assert not ctrl.paste("{not json")
    assert "Paste aborted" in caplog.text
    assert ctrl.tree == parse_document([None])
    assert sink.texts == []


def test_paste_deeply_nested_is_aborted(make_controller, caplog):
    ctrl = make_controller([None])
    ctrl.select(P("body", 0, "elements", 0))
    with caplog.at_level(logging.ERROR):
        assert not ctrl.paste("[" * 5000 + "]" * 5000)
    assert "Paste aborted" in caplog.text
    assert ctrl.tree == parse_document([None])


def test_paste_huge_integer_becomes_infinity(make_controller):
    ctrl = make_controller([None])
    ctrl.select(P("body", 0, "elements", 0))
    assert ctrl.paste("1" + "0" * 400)
    assert get_in(ctrl.tree, P("body", 0, "elements", 1)) == NumericLiteral("Infinity")


def test_paste_into_text_field_is_left_to_input(make_controller):
    ctrl = make_controller(["s"])
    ctrl.select(P("body", 0, "elements", 0))
    assert not ctrl.paste("1")


def test_is_in_array(make_controller):
    ctrl = make_controller({"a": [1]})
    assert not ctrl.is_in_array
    ctrl.select(P("body", 0, "properties", 0, "value", "elements", 0))
    assert ctrl.is_in_array
    ctrl.select(P("body", 0, "properties", 0, "value", "elements", "end"))
    assert not ctrl.is_in_array
    ctrl.select(P("body", 0, "properties", 0, "value"))
    assert not ctrl.is_in_array


# ---------------------------
# Properties
# ---------------------------

def test_random_walk_keeps_selection_valid(make_controller):
    ctrl = make_controller({"a": [1, {"b": None}], "c": "s"})
    events = [
        key("ArrowDown"), key("ArrowDown"), key("ArrowDown"), key("ArrowDown"), key("Enter"),
        key("ArrowRight"), key("Delete"), key("ArrowUp", alt_key=True), key("ArrowDown", alt_key=True),
        key("{"), key("ArrowDown"), key("Backspace"), key("ArrowLeft"), key("["),
        key("z", ctrl_key=True), key("Delete"), key("Delete"), key("ArrowRight"), key("ArrowRight"),
        key("Delete"), key("Enter"), key("Delete"), key("Delete"),
    ]
    for event in events:
        ctrl.handle_key_down(event)
        selected = ctrl.selected
        assert selected == () or resolves(ctrl.tree, selected), (event, selected)
