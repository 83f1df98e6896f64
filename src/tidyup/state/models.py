"""State data models: journal entries and the confidence model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_THRESHOLDS: Dict[str, int] = {
    "code": 80,
    "documents": 80,
    "images": 85,
    "audio": 85,
    "videos": 85,
    "archives": 85,
    "config": 80,
    "data": 80,
    "system": 80,
    "executables": 80,
    "fonts": 80,
    "design": 80,
    "misc": 60,
}
DEFAULT_THRESHOLD = 75


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OperationRecord(BaseModel):
    """One executed move.

    Attributes:
        source: Absolute path before the move.
        destination: Absolute path after the move.
        category: Category (or placement mode) that motivated the move.
        confidence: Confidence reported for the classification.
        timestamp: Time the move was executed.
    """

    source: str
    destination: str
    category: str
    confidence: int
    timestamp: datetime = Field(default_factory=_utcnow)


class JournalHeader(BaseModel):
    """Header describing one organization run.

    Attributes:
        block_id: Unique identifier for the block.
        timestamp: Time the block was opened.
        mode: Organization mode used for the run.
        target: Resolved target directory.
        file_count: Number of files moved; filled in from the block's end line.
        duration_seconds: Run duration; filled in from the block's end line.
        interrupted: Whether the run stopped early.
    """

    block_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    mode: str
    target: str
    file_count: int = 0
    duration_seconds: float = 0.0
    interrupted: bool = False


class JournalBlock(BaseModel):
    """A header plus the move records written under it."""

    header: JournalHeader
    records: List[OperationRecord] = Field(default_factory=list)
    closed: bool = False
    undone: bool = False


class JournalLine(BaseModel):
    """Single JSON line of the journal file."""

    kind: Literal["header", "move", "end", "undo"]
    block_id: str
    header: Optional[JournalHeader] = None
    record: Optional[OperationRecord] = None
    file_count: Optional[int] = None
    duration_seconds: Optional[float] = None
    interrupted: Optional[bool] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class LearnedPattern(BaseModel):
    """Extensions observed inside an already-organized directory."""

    directory: str
    extensions: List[str] = Field(default_factory=list)
    file_count: int = 0
    observed_at: datetime = Field(default_factory=_utcnow)


class ConfidenceModel(BaseModel):
    """Per-category confidence thresholds and metadata.

    Attributes:
        thresholds: Minimum rule confidence before the ensemble is consulted.
        adjustments: Additive deltas applied to rule confidence per category.
        learned_patterns: Observations recorded by `--learn`.
        created: When the model file was first written.
        last_updated: When a session last finished with this model.
    """

    thresholds: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_THRESHOLDS))
    adjustments: Dict[str, int] = Field(default_factory=dict)
    learned_patterns: List[LearnedPattern] = Field(default_factory=list)
    created: datetime = Field(default_factory=_utcnow)
    last_updated: datetime = Field(default_factory=_utcnow)

    def threshold_for(self, category: str) -> int:
        """Return the minimum acceptable confidence for category."""
        return self.thresholds.get(category, DEFAULT_THRESHOLD)

    def adjustment_for(self, category: str) -> int:
        """Return the confidence delta configured for category."""
        return self.adjustments.get(category, 0)


__all__ = [
    "ConfidenceModel",
    "DEFAULT_THRESHOLD",
    "DEFAULT_THRESHOLDS",
    "JournalBlock",
    "JournalHeader",
    "JournalLine",
    "LearnedPattern",
    "OperationRecord",
]
