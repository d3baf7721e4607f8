from __future__ import annotations

"""Controller turning editor events into editing commands.

The controller owns the history of one document and translates key presses,
clipboard requests and direct selection changes into calls on
:class:`StructureEditingService`, committed through :class:`HistoryService`.
It contains no UI toolkit code: a front-end forwards its events here and
re-renders from :attr:`EditorController.state`.
"""

import logging
from typing import Any, Callable, Dict, Optional, Sequence

from astedit.config import ConfigManager
from astedit.core.codec import generate, parse_clipboard, parse_document
from astedit.core.exceptions import ParseError
from astedit.core.keymap import KeyEvent, KeyMapping, find_action, load_default_keymap
from astedit.core.models import (
    END,
    EditorState,
    End,
    Field,
    Index,
    Node,
    NullLiteral,
    NumericLiteral,
    Path,
    Program,
    is_editable,
)
from astedit.core.navigation import Direction, VerticalDirection
from astedit.core.services.history_service import MAX_HISTORY_LENGTH, HistoryService
from astedit.core.services.structure_editing_service import (
    OperationResult,
    StructureEditingService,
)
from astedit.core.tree import get_in, last_field_position

__all__ = ["EditorController"]

logger = logging.getLogger(__name__)

ARROW_DIRECTIONS: Dict[str, Direction] = {
    "ArrowUp": "UP",
    "ArrowDown": "DOWN",
    "ArrowLeft": "LEFT",
    "ArrowRight": "RIGHT",
}

EditFn = Callable[[Node, Path], OperationResult]


def initial_selection(tree: Node) -> Path:
    """Selection of a freshly loaded document: the first program statement."""
    if isinstance(tree, Program):
        return (Field("body"), Index(0) if tree.body else END)
    return ()


class EditorController:
    """Controller for one editable document.

    Parameters
    ----------
    default_value : Any
        Raw document handed to *parser* to build the initial tree.
    on_change : callable, optional
        Called with the generated text after every committed edit that changed
        the document.
    parser : callable, default=parse_document
        Raw value -> tree. Also used by :meth:`reset`.
    generator : callable, default=generate
        Tree -> text, for change notifications and copy.
    clipboard_parser : callable, default=parse_clipboard
        Clipboard text -> node; must raise :class:`ParseError` on bad input.
    keymap : sequence of KeyMapping, optional
        Defaults to the configured keymap.
    max_history : int, optional
        Defaults to the ``max_history`` editor setting.

    Notes
    -----
    - Every public command returns True when it recorded a new state.
    - Routine boundary conditions are silent no-ops; bad clipboard content and
      unknown action names are logged.
    """

    def __init__(
        self,
        default_value: Any = None,
        on_change: Optional[Callable[[str], object]] = None,
        parser: Callable[[Any], Node] = parse_document,
        generator: Callable[[Node], str] = generate,
        clipboard_parser: Callable[[str], Node] = parse_clipboard,
        keymap: Optional[Sequence[KeyMapping]] = None,
        editing_service: Optional[StructureEditingService] = None,
        max_history: Optional[int] = None,
    ) -> None:
        settings = ConfigManager().get_editor_config()
        if max_history is None:
            max_history = int(settings.get("max_history", MAX_HISTORY_LENGTH))

        self.default_value = {} if default_value is None else default_value
        self.parser = parser
        self.generator = generator
        self.clipboard_parser = clipboard_parser
        self.editing_service = editing_service or StructureEditingService()
        self.keymap = tuple(keymap) if keymap is not None else load_default_keymap()
        self.show_keymap: bool = bool(settings.get("show_keymap", True))

        tree = parser(self.default_value)
        self.history = HistoryService(
            EditorState(tree, initial_selection(tree)),
            on_change=on_change,
            generator=generator,
            max_history=max_history,
        )

        svc = self.editing_service
        self.actions: Dict[str, Callable[[Any], bool]] = {
            "UNDO": lambda _: self.undo(),
            "REDO": lambda _: self.redo(),
            "INSERT": lambda _: self.insert(NullLiteral()),
            "MOVE": lambda direction: self.move(direction),
            "DELETE": lambda _: self.delete(),
            "SET_BOOLEAN": lambda value: self._commit(lambda t, s: svc.set_boolean(t, s, value)),
            "ADD_TO_NUMBER": lambda increment: self._commit(lambda t, s: svc.add_to_number(t, s, increment)),
            "CHANGE_DECLARATION_KIND": lambda kind: self.change_declaration_kind(kind),
            "TO_STRING": lambda _: self._commit(svc.to_string),
            "TO_NUMBER": lambda _: self._commit(svc.to_number),
            "TO_ARRAY": lambda _: self._commit(svc.to_array),
            "TO_OBJECT": lambda _: self._commit(svc.to_object),
            "TO_NULL": lambda _: self._commit(svc.to_null),
        }

    # ---------------------------------------------------------------------------------
    # State access
    # ---------------------------------------------------------------------------------

    @property
    def state(self) -> EditorState:
        return self.history.current

    @property
    def tree(self) -> Node:
        return self.history.current.tree

    @property
    def selected(self) -> Path:
        return self.history.current.selected

    @property
    def selected_node(self) -> Optional[Any]:
        state = self.history.current
        return get_in(state.tree, state.selected)

    @property
    def is_in_array(self) -> bool:
        """True if the selection (END backed off to its item) sits inside an array."""
        selected = self.selected
        if selected and isinstance(selected[-1], End):
            selected = selected[:-2]
        pos = last_field_position(selected, ("elements", "properties"))
        return pos >= 0 and selected[pos] == Field("elements")

    def toggle_show_keymap(self) -> bool:
        self.show_keymap = not self.show_keymap
        return self.show_keymap

    # ---------------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------------

    def _commit(self, edit: EditFn) -> bool:
        return self.history.commit(edit)

    # ---------------------------------------------------------------------------------
    # Commands
    # ---------------------------------------------------------------------------------

    def dispatch(self, action_name: str, action_param: Any = None) -> bool:
        """Run the action registered under *action_name*.

        Unknown names are logged and ignored.
        """
        action = self.actions.get(action_name)
        if action is None:
            logger.error("Missing action %s", action_name)
            return False
        logger.debug("Action: %s param=%r", action_name, action_param)
        return bool(action(action_param))

    def navigate(self, direction: Direction) -> bool:
        return self._commit(lambda t, s: self.editing_service.move_selection(t, s, direction))

    def select(self, selected: Path) -> bool:
        return self._commit(lambda t, s: self.editing_service.select(t, s, selected))

    def insert(self, node: Node) -> bool:
        return self._commit(lambda t, s: self.editing_service.insert(t, s, node))

    def delete(self) -> bool:
        return self._commit(self.editing_service.delete)

    def move(self, direction: VerticalDirection) -> bool:
        return self._commit(lambda t, s: self.editing_service.move(t, s, direction))

    def replace(self, node: Node, sub_selected: Path = ()) -> bool:
        return self._commit(lambda t, s: self.editing_service.replace(t, s, node, sub_selected))

    def update_value(self, fn: Callable[[Any], Any]) -> bool:
        return self._commit(lambda t, s: self.editing_service.update_value(t, s, fn))

    def set_text(self, text: str) -> bool:
        """Store text typed into the selected leaf's input."""
        return self._commit(lambda t, s: self.editing_service.set_text(t, s, text))

    def change_declaration_kind(self, kind: str) -> bool:
        return self._commit(lambda t, s: self.editing_service.change_declaration_kind(t, s, kind))

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    def reset(self) -> bool:
        """Reload the default document as a regular, undoable edit."""
        tree = self.parser(self.default_value)
        return self._commit(lambda t, s: OperationResult(True, "Document reset.", tree=tree, selected=()))

    # ---------------------------------------------------------------------------------
    # Event handlers
    # ---------------------------------------------------------------------------------

    def handle_key_down(self, event: KeyEvent) -> bool:
        """Handle a key press.

        Returns
        -------
        bool
            True if the event was consumed (the front-end should suppress its
            default behavior), False to let the key reach the focused input.
        """
        node = self.selected_node
        direction = ARROW_DIRECTIONS.get(event.key)

        if not event.alt_key and direction is not None and (
            direction in ("UP", "DOWN")
            or not is_editable(node)
            or event.selection_start is None
            or event.text_length is None
            or not 0 <= event.selection_start + (-1 if direction == "LEFT" else 1) <= event.text_length
        ):
            self.navigate(direction)
            return True

        if isinstance(node, NullLiteral) and len(event.key) == 1 and event.key in "0123456789":
            self.replace(NumericLiteral.of(int(event.key)))
            return True

        action = find_action(self.keymap, event, node, self.selected) or []
        if not action or not action[0]:
            return False
        action_name = action[0]
        action_param = action[1] if len(action) > 1 else None
        self.dispatch(action_name, action_param)
        return True

    def copy(self) -> Optional[str]:
        """Return the text of the selected subtree for the clipboard.

        Returns None for editable leaves so the front-end keeps its default
        text copy. An END selection copies the collection owner.
        """
        if is_editable(self.selected_node):
            return None
        state = self.history.current
        selected = state.selected
        if selected and isinstance(selected[-1], End):
            selected = selected[:-2]
        node = get_in(state.tree, selected)
        if not isinstance(node, Node):
            return None
        return self.generator(node)

    def cut(self) -> Optional[str]:
        """Copy the selection, then delete it."""
        text = self.copy()
        if text is None:
            return None
        self.delete()
        return text

    def paste(self, text: str) -> bool:
        """Insert the JSON value in *text* after the selection.

        Returns True if the document changed. Invalid JSON is logged and
        leaves the document untouched.
        """
        if is_editable(self.selected_node):
            return False
        try:
            node = self.clipboard_parser(text)
        except ParseError as exc:
            logger.error("Paste aborted: %s", exc)
            return False
        return self.insert(node)
