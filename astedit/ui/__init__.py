"""astedit UI package.

Toolkit-agnostic glue between a front-end and the editor core. Widgets and
rendering belong to the embedding application.
"""

from . import controllers as _controllers  # noqa: F401

from .controllers.editor_controller import EditorController  # noqa: F401

__all__: list[str] = [
    "EditorController",
]
