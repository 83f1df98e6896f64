"""Organization plan and summary data models."""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from tidyup.classification.models import ClassificationResult

FileAction = Literal["move", "identical", "in-place", "error"]


class MoveOperation(BaseModel):
    """Represents moving a file to a new directory.

    Attributes:
        source: Starting file path before the move.
        destination: Destination path after the move.
        category: Category (or placement mode) behind the move.
        confidence: Confidence reported for the classification.
        reasoning: Optional explanation for the move.
        conflict_strategy: Suffix strategy applied when the name was taken.
        conflict_applied: Indicates whether a conflict was encountered.
    """

    source: Path
    destination: Path
    category: str
    confidence: int
    reasoning: Optional[str] = None
    conflict_strategy: Optional[str] = None
    conflict_applied: bool = False


class FileOutcome(BaseModel):
    """What happened to one visited file.

    Attributes:
        path: File path at the time it was visited.
        result: Classification produced for the file.
        action: Move, identical-content skip, already in place, or error.
        destination: Planned or executed destination.
        error: Failure description for errored files.
    """

    path: Path
    result: ClassificationResult
    action: FileAction
    destination: Optional[Path] = None
    error: Optional[str] = None


class OrganizationSummary(BaseModel):
    """Aggregate result of one organization run."""

    root: Path
    mode: str
    dry_run: bool = False
    outcomes: List[FileOutcome] = Field(default_factory=list)
    moves: List[MoveOperation] = Field(default_factory=list)
    applied: int = 0
    errors: List[str] = Field(default_factory=list)
    duration_seconds: float = 0.0
    interrupted: bool = False
    block_id: Optional[str] = None

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def skipped_identical(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.action == "identical")

    @property
    def in_place(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.action == "in-place")

    @property
    def failed(self) -> bool:
        return bool(self.errors)


class UndoSummary(BaseModel):
    """Result of replaying one journal block in reverse.

    Attributes:
        root: Directory whose block was undone.
        block_id: Identifier of the replayed block.
        restored: Original paths that were restored.
        skipped: Records that could not be restored.
        messages: Human-readable reasons for skipped records.
    """

    root: Path
    block_id: str
    restored: List[Path] = Field(default_factory=list)
    skipped: List[Path] = Field(default_factory=list)
    messages: List[str] = Field(default_factory=list)


__all__ = [
    "FileAction",
    "FileOutcome",
    "MoveOperation",
    "OrganizationSummary",
    "UndoSummary",
]
