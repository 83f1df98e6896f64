"""Classification data models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from tidyup.inspection.models import AgeClass, SizeClass

NamePattern = Literal[
    "screenshot",
    "backup",
    "temporary",
    "test",
    "config",
    "documentation",
    "legal",
    "dated",
    "versioned",
    "draft",
    "final",
    "none",
]
DirectoryContext = Literal[
    "downloads",
    "desktop",
    "documents",
    "pictures",
    "videos",
    "music",
    "project",
    "work",
    "none",
]
ImageShape = Literal["thumbnail", "wide", "portrait", "standard"]
ResultSource = Literal["rule", "ensemble"]

MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 99


def clamp_confidence(value: float) -> int:
    """Return value as an integer confidence within [1, 99]."""
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, int(value)))


class FeatureSet(BaseModel):
    """Immutable per-file attributes used as classifier input.

    Attributes:
        filename: Original file name.
        extension: Lowercase, normalized extension without the dot.
        size_bytes: File size in bytes.
        size_class: Coarse size bucket.
        mime_category: MIME top-level type.
        mime_subtype: MIME subtype.
        name_pattern: First filename pattern that matched.
        age_class: Coarse age bucket.
        directory_context: Meaning derived from the parent folder name.
        language: Source language for code and scripts.
        image_shape: Shape bucket for images with known dimensions.
        has_camera: Whether EXIF camera tags were present.
        has_software: Whether an EXIF software tag was present.
        config_content: Whether the sample looks like a configuration file.
        data_content: Whether the sample looks like structured data.
        doc_marker: Whether the sample looks like a markdown document.
        modified_at: Modification time, if known.
        modified_recently: Whether the file changed within the last hour.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    extension: str = ""
    size_bytes: int = 0
    size_class: SizeClass = "unknown"
    mime_category: str = "application"
    mime_subtype: str = "octet-stream"
    name_pattern: NamePattern = "none"
    age_class: AgeClass = "unknown"
    directory_context: DirectoryContext = "none"
    language: Optional[str] = None
    image_shape: Optional[ImageShape] = None
    has_camera: bool = False
    has_software: bool = False
    config_content: bool = False
    data_content: bool = False
    doc_marker: bool = False
    modified_at: Optional[datetime] = None
    modified_recently: bool = False

    @property
    def mime_type(self) -> str:
        """Return the recombined MIME type."""
        return f"{self.mime_category}/{self.mime_subtype}"


class ClassificationResult(BaseModel):
    """Outcome of classifying one file.

    Attributes:
        category: Top-level category tag.
        subcategory: Optional refinement used by the hierarchy table.
        confidence: Integer confidence within [1, 99].
        rationale: Human-readable explanation.
        source: Stage that produced the category.
        destination: Relative directory that overrides the hierarchy table.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    subcategory: Optional[str] = None
    confidence: int = Field(ge=MIN_CONFIDENCE, le=MAX_CONFIDENCE)
    rationale: str = ""
    source: ResultSource = "rule"
    destination: Optional[str] = None


__all__ = [
    "ClassificationResult",
    "DirectoryContext",
    "FeatureSet",
    "ImageShape",
    "MAX_CONFIDENCE",
    "MIN_CONFIDENCE",
    "NamePattern",
    "ResultSource",
    "clamp_confidence",
]
