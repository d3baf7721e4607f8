from __future__ import annotations

"""Editor exception classes.

Expected boundary conditions (moving past the first element, deleting at the
document root, ...) are never raised; the editing service reports them as
declined operations. The exceptions below cover programming and input errors
that callers are expected to catch and log.
"""

from typing import Optional


class EditorError(Exception):
    """Base exception for all editor errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class InvalidPathError(EditorError, KeyError):
    """Raised when a path does not address a settable location in the tree."""

    def __init__(self, path, message: Optional[str] = None) -> None:
        self.path = tuple(path)
        super().__init__(message or f"Path does not resolve: {self.path!r}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead
        return str(self.args[0])


class ParseError(EditorError, ValueError):
    """Raised when raw input cannot be converted to a document tree."""
    pass


class KeymapError(EditorError):
    """Raised when a declarative keymap cannot be compiled.

    This covers unknown predicate names and malformed rule entries.
    """

    def __init__(self, message: str, rule: Optional[dict] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.rule = rule

    def __str__(self) -> str:
        if self.rule is not None:
            return f"{super().__str__()} (rule: {self.rule!r})"
        return super().__str__()
