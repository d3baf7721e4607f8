from __future__ import annotations

"""Undo/redo history of editor states.

This service is UI-agnostic and performs pure in-memory history tracking of
immutable :class:`EditorState` snapshots. Every edit goes through
:meth:`HistoryService.commit`, which decides whether the edit produced a new
state worth recording and notifies the document-changed callback.

Design principles
-----------------
- No UI imports and no I/O.
- Snapshots are immutable values; recording one is a reference push.
- The head of ``history`` is always the current state; ``history`` is never
  empty.
- Redo stack is cleared on every committed edit, never by undo/redo.
- Memory usage controlled by a max_history policy (trim oldest).

Notes
-----
A numeric literal keeps the raw text typed by the user while it is selected.
The text is brought back to canonical form at the start of the next commit,
based on the selection as it was before that commit. Normalization alone does
not count as a change: it is recorded along with the next state but never
notifies, and it is lost if that commit turns out to be a no-op.
"""

import logging
from typing import Callable, List, Optional, Tuple

from astedit.core.models import EditorState, End, Field, Node, NumericLiteral, Path
from astedit.core.services.structure_editing_service import OperationResult, format_path
from astedit.core.tree import get_in, normalize_number, resolves, update_in

__all__ = ["HistoryService", "MAX_HISTORY_LENGTH"]

logger = logging.getLogger(__name__)

MAX_HISTORY_LENGTH = 100

UpdateFn = Callable[[Node, Path], Optional[OperationResult]]


class HistoryService:
    """Manage the bounded undo history and the redo stack of editor states.

    Parameters
    ----------
    initial_state : EditorState
        The state shown before any edit.
    on_change : callable, optional
        Called with the generated text of the document after every committed
        edit that changed the tree (selection-only edits do not notify).
    generator : callable, optional
        Renders a tree to text for ``on_change``. Required when ``on_change``
        is given.
    max_history : int, default=100
        Maximum number of states kept in ``history``. Oldest entries are
        discarded when the capacity is exceeded. Must be >= 1; if passed lower,
        it will be coerced to 1.

    Examples
    --------
    >>> svc = HistoryService(EditorState(tree, selected))
    >>> svc.commit(lambda tree, selected: editing.insert(tree, selected, NullLiteral()))
    True
    >>> svc.undo()
    True
    """

    def __init__(
        self,
        initial_state: EditorState,
        on_change: Optional[Callable[[str], object]] = None,
        generator: Optional[Callable[[Node], str]] = None,
        max_history: int = MAX_HISTORY_LENGTH,
    ) -> None:
        if on_change is not None and generator is None:
            raise ValueError("A generator is required to notify document changes")
        self._max_history: int = max(1, int(max_history))
        self._history: List[EditorState] = [initial_state]
        self._future: List[EditorState] = []
        self._on_change = on_change
        self._generator = generator

    # --------------------------------------------------------------------- API

    @property
    def current(self) -> EditorState:
        """The state at the head of the history."""
        return self._history[0]

    @property
    def history(self) -> Tuple[EditorState, ...]:
        """Recorded states, newest first."""
        return tuple(self._history)

    @property
    def future(self) -> Tuple[EditorState, ...]:
        """Undone states, next redo first."""
        return tuple(self._future)

    @property
    def max_history(self) -> int:
        return self._max_history

    def commit(self, update_fn: UpdateFn) -> bool:
        """Run *update_fn* against the current state and record the outcome.

        Before calling *update_fn* the current state is prepared: a selected
        numeric literal gets its text normalized, and a selection that no
        longer resolves falls back to the document root (END selections are
        kept as they are).

        *update_fn* receives ``(tree, selected)`` and returns an
        :class:`OperationResult` (or None). Unset ``tree``/``selected`` fields
        keep the prepared values. Nothing is recorded when the operation was
        declined or when both tree and selection compare equal to the prepared
        values.

        Returns
        -------
        bool
            True if a new state was pushed.
        """
        tree, selected = self.current.tree, self.current.selected

        if not (selected and isinstance(selected[-1], End)) and not resolves(tree, selected):
            logger.debug("History: stale selection %s reset to root", format_path(selected))
            selected = ()

        if isinstance(get_in(tree, selected), NumericLiteral):
            tree = update_in(tree, selected + (Field("value"),), normalize_number)

        result = update_fn(tree, selected)
        if result is None or not result.success:
            return False

        new_tree = tree if result.tree is None else result.tree
        new_selected = selected if result.selected is None else tuple(result.selected)
        tree_changed = new_tree != tree
        if not tree_changed and new_selected == selected:
            return False

        self._history.insert(0, EditorState(new_tree, new_selected))
        # Enforce capacity
        del self._history[self._max_history:]
        # New user action invalidates redo history
        self._future.clear()

        if tree_changed and self._on_change is not None:
            self._on_change(self._generator(new_tree))
        return True

    def undo(self) -> bool:
        """Step back to the previous state.

        The current head moves onto the redo stack. Does nothing when only the
        initial state is left.
        """
        if len(self._history) <= 1:
            return False
        self._future.insert(0, self._history.pop(0))
        logger.debug("History: undo depth=%d future=%d", len(self._history), len(self._future))
        return True

    def redo(self) -> bool:
        """Re-apply the most recently undone state."""
        if not self._future:
            return False
        self._history.insert(0, self._future.pop(0))
        del self._history[self._max_history:]
        logger.debug("History: redo depth=%d future=%d", len(self._history), len(self._future))
        return True

    def can_undo(self) -> bool:
        """Return True if an undo operation is currently possible."""
        return len(self._history) > 1

    def can_redo(self) -> bool:
        """Return True if a redo operation is currently possible."""
        return bool(self._future)
