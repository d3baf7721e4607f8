from __future__ import annotations

"""Editing services (structural edits, undo/redo history).

Services are UI-agnostic and operate on immutable document values; they can be
composed directly or through :class:`astedit.ui.controllers.EditorController`.
"""

from .structure_editing_service import OperationResult, StructureEditingService  # noqa: F401
from .history_service import HistoryService  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "StructureEditingService",
    "HistoryService",
]
