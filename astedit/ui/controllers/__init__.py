"""UI controllers package for astedit.

This package hosts controller classes that mediate between front-end events
and the underlying editing services and models.
"""

from .editor_controller import EditorController  # noqa: F401

__all__: list[str] = ["EditorController"]
