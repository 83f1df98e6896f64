"""Data models produced by discovery and content inspection."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SizeClass = Literal["tiny", "small", "medium", "large", "huge", "unknown"]
AgeClass = Literal["today", "this_week", "this_month", "this_year", "old", "unknown"]


class PendingFile(BaseModel):
    """A file discovered by the scanner but not yet inspected.

    Attributes:
        path: Absolute path to the file.
        size_bytes: Size reported by `stat`.
        modified_at: Modification time as an aware datetime.
    """

    path: Path
    size_bytes: int
    modified_at: datetime


class ContentFacts(BaseModel):
    """Low-level facts derived from one file.

    Attributes:
        path: Inspected path.
        size_bytes: File size in bytes, zero when unreadable.
        size_class: Coarse size bucket.
        mime_type: Best-effort MIME type.
        modified_at: Modification time, if known.
        age_days: Whole days between modification and the inspection time.
        age_class: Coarse age bucket.
        sample: Leading text sample for text-like files.
        image_width: Pixel width for images.
        image_height: Pixel height for images.
        camera: Camera make/model from EXIF data.
        software: Editing software from EXIF data.
        readable: False when inspection failed and the facts are placeholders.
        error: Failure description for unreadable files.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    size_bytes: int = 0
    size_class: SizeClass = "unknown"
    mime_type: str = "application/octet-stream"
    modified_at: Optional[datetime] = None
    age_days: Optional[int] = None
    age_class: AgeClass = "unknown"
    sample: Optional[str] = None
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    camera: Optional[str] = None
    software: Optional[str] = None
    readable: bool = True
    error: Optional[str] = None

    @property
    def mime_category(self) -> str:
        """Return the MIME top-level type (e.g. ``text``)."""
        return self.mime_type.split("/", 1)[0]

    @property
    def mime_subtype(self) -> str:
        """Return the MIME subtype (e.g. ``plain``)."""
        parts = self.mime_type.split("/", 1)
        return parts[1] if len(parts) == 2 else ""


class DirectoryAnalysis(BaseModel):
    """Directory-level signals gathered once per organization run.

    Attributes:
        root: Analyzed directory.
        total_files: Number of regular files directly inside the root.
        total_directories: Number of subdirectories directly inside the root.
        largest_file: Name of the largest direct child file.
        dominant_extensions: Up to five most common extensions, most common first.
        project_indicators: Ecosystems detected from marker files.
        marker_kinds: Which of the four project marker kinds are present.
    """

    root: Path
    total_files: int = 0
    total_directories: int = 0
    largest_file: Optional[str] = None
    dominant_extensions: List[str] = Field(default_factory=list)
    project_indicators: List[str] = Field(default_factory=list)
    marker_kinds: List[str] = Field(default_factory=list)

    @property
    def is_project(self) -> bool:
        """Return True when at least three marker kinds are present."""
        return len(self.marker_kinds) >= 3


__all__ = [
    "AgeClass",
    "ContentFacts",
    "DirectoryAnalysis",
    "PendingFile",
    "SizeClass",
]
