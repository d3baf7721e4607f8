"""Top-level package for astedit, a structural editor core.

Front-ends (e.g. a Tk GUI, a terminal UI) should only depend on the public API
exposed here rather than importing internal modules directly. A host calls
:func:`setup_logging` once at start-up, before building an editor.
"""

from .core.codec import generate, parse_document  # re-export for convenience
from .core.models import EditorState, make_path
from .logging_config import setup_logging

__all__: list[str] = [
    "EditorState",
    "generate",
    "make_path",
    "parse_document",
    "setup_logging",
]
