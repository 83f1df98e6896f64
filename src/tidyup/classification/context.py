"""Directory-aware confidence adjustments applied after classification."""

from __future__ import annotations

import logging
from typing import Optional

from tidyup.inspection.models import DirectoryAnalysis

from .features import LANGUAGES
from .models import ClassificationResult, FeatureSet, clamp_confidence

LOGGER = logging.getLogger(__name__)

PROJECT_SOURCE_BOOST = 10
PROJECT_PATTERN_BOOST = 5
RECENT_BOOST = 2
DOWNLOADS_BOOST = 3
MATCHING_FOLDER_BOOST = 5

_PROJECT_PATTERNS = frozenset({"test", "documentation"})
_MATCHING_FOLDERS = {
    "documents": "documents",
    "pictures": "images",
}


class ContextBooster:
    """Add confidence for project markers, recency, and folder semantics."""

    def __init__(self, analysis: Optional[DirectoryAnalysis] = None) -> None:
        self.analysis = analysis

    @property
    def in_project(self) -> bool:
        return self.analysis is not None and self.analysis.is_project

    def delta(self, features: FeatureSet, result: ClassificationResult) -> tuple[int, list[str]]:
        """Return the additive confidence delta and the reasons behind it."""
        delta = 0
        reasons: list[str] = []
        if self.in_project:
            if features.extension in LANGUAGES:
                delta += PROJECT_SOURCE_BOOST
                reasons.append("project source")
            if features.name_pattern in _PROJECT_PATTERNS:
                delta += PROJECT_PATTERN_BOOST
                reasons.append(f"project {features.name_pattern}")
        if features.modified_recently:
            delta += RECENT_BOOST
            reasons.append("recently modified")
        if features.directory_context == "downloads":
            delta += DOWNLOADS_BOOST
            reasons.append("downloads folder")
        elif _MATCHING_FOLDERS.get(features.directory_context) == result.category:
            delta += MATCHING_FOLDER_BOOST
            reasons.append(f"{features.directory_context} folder")
        return delta, reasons

    def boost(self, features: FeatureSet, result: ClassificationResult) -> ClassificationResult:
        """Return result with the context delta applied and re-clamped."""
        delta, reasons = self.delta(features, result)
        if not delta:
            return result
        LOGGER.debug("Context boost %+d for %s (%s)", delta, features.filename, ", ".join(reasons))
        return result.model_copy(
            update={
                "confidence": clamp_confidence(result.confidence + delta),
                "rationale": f"{result.rationale}; context {delta:+d} ({', '.join(reasons)})",
            }
        )


__all__ = ["ContextBooster"]
