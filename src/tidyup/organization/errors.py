"""Organization errors."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class OrganizerError(Exception):
    """Base exception for organize and undo failures."""


class InputError(OrganizerError):
    """Raised when the target directory or mode is invalid."""


class MoveError(OrganizerError):
    """Raised when a single file cannot be moved."""

    def __init__(self, message: str, *, source: Path, destination: Optional[Path] = None) -> None:
        super().__init__(message)
        self.source = source
        self.destination = destination


class UndoError(OrganizerError):
    """Raised when no journal block can be undone or a record cannot be restored."""


__all__ = ["InputError", "MoveError", "OrganizerError", "UndoError"]
