"""Weighted voting fallback used when rule confidence is below threshold."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional, Tuple

from .features import CONFIG_EXTENSIONS, DATA_EXTENSIONS, LANGUAGES
from .models import ClassificationResult, FeatureSet, clamp_confidence
from .rules import ARCHIVE_EXTENSIONS

LOGGER = logging.getLogger(__name__)

# Registration order breaks ties between equal tallies.
CATEGORIES: Tuple[str, ...] = (
    "code",
    "documents",
    "images",
    "audio",
    "videos",
    "archives",
    "config",
    "data",
    "system",
    "executables",
    "fonts",
    "design",
    "misc",
)

EXTENSION_WEIGHT = 3
MIME_WEIGHT = 2
SIZE_WEIGHT = 1

_EXTENSION_CATEGORIES: Dict[str, str] = {
    **{ext: "code" for ext in LANGUAGES},
    **{ext: "documents" for ext in ("txt", "md", "rst", "pdf", "doc", "docx", "rtf", "odt",
                                     "tex", "epub", "pages")},
    **{ext: "images" for ext in ("jpg", "png", "gif", "bmp", "tiff", "webp", "heic", "svg",
                                  "ico", "raw", "psd")},
    **{ext: "audio" for ext in ("mp3", "wav", "flac", "aac", "ogg", "m4a", "wma", "opus")},
    **{ext: "videos" for ext in ("mp4", "mkv", "avi", "mov", "wmv", "webm", "mpg", "m4v")},
    **{ext: "archives" for ext in ARCHIVE_EXTENSIONS},
    **{ext: "config" for ext in CONFIG_EXTENSIONS},
    **{ext: "data" for ext in DATA_EXTENSIONS},
    **{ext: "system" for ext in ("tmp", "temp", "bak", "swp", "old", "cache", "lock")},
    **{ext: "executables" for ext in ("exe", "msi", "deb", "rpm", "pkg", "app")},
    **{ext: "fonts" for ext in ("ttf", "otf", "woff", "woff2", "eot")},
    **{ext: "design" for ext in ("ai", "sketch", "fig", "xd")},
}

_MIME_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("text/x-config", "config"),
    ("text/csv", "data"),
    ("text/xml", "data"),
    ("application/json", "data"),
    ("application/xml", "data"),
    ("application/yaml", "data"),
    ("application/sql", "data"),
    ("application/zip", "archives"),
    ("application/gzip", "archives"),
    ("application/x-tar", "archives"),
    ("application/x-7z", "archives"),
    ("application/x-rar", "archives"),
    ("application/pdf", "documents"),
    ("application/msword", "documents"),
    ("application/vnd.openxmlformats-officedocument", "documents"),
    ("application/vnd.microsoft.portable-executable", "executables"),
    ("application/x-msdownload", "executables"),
    ("application/x-msi", "executables"),
    ("application/vnd.debian.binary-package", "executables"),
    ("application/x-rpm", "executables"),
    ("application/x-executable", "executables"),
    ("font/", "fonts"),
    ("text/x-script", "code"),
    ("text/x-python", "code"),
    ("text/", "documents"),
    ("image/", "images"),
    ("audio/", "audio"),
    ("video/", "videos"),
)

_PATTERN_VOTES: Dict[str, Tuple[str, int]] = {
    "screenshot": ("images", 2),
    "config": ("config", 2),
    "documentation": ("documents", 2),
    "legal": ("documents", 2),
    "temporary": ("system", 2),
    "test": ("code", 1),
    "backup": ("system", 1),
    "draft": ("documents", 1),
    "final": ("documents", 1),
}

_LARGE_SIZES = frozenset({"large", "huge"})

Vote = Tuple[str, int]
Voter = Callable[[FeatureSet], Optional[Vote]]


def extension_voter(features: FeatureSet) -> Optional[Vote]:
    category = _EXTENSION_CATEGORIES.get(features.extension)
    return (category, EXTENSION_WEIGHT) if category else None


def mime_voter(features: FeatureSet) -> Optional[Vote]:
    mime = features.mime_type
    for prefix, category in _MIME_PREFIXES:
        if mime.startswith(prefix):
            return category, MIME_WEIGHT
    return None


def pattern_voter(features: FeatureSet) -> Optional[Vote]:
    return _PATTERN_VOTES.get(features.name_pattern)


def size_voter(features: FeatureSet) -> Optional[Vote]:
    """Vote for the media or archive category of large files."""
    if features.size_class not in _LARGE_SIZES:
        return None
    if features.mime_category == "video":
        return "videos", SIZE_WEIGHT
    if features.mime_category == "audio":
        return "audio", SIZE_WEIGHT
    if features.mime_category == "image":
        return "images", SIZE_WEIGHT
    if features.extension in ARCHIVE_EXTENSIONS:
        return "archives", SIZE_WEIGHT
    return None


VOTERS: Tuple[Voter, ...] = (extension_voter, mime_voter, pattern_voter, size_voter)


class EnsembleClassifier:
    """Tally independent votes and pick the heaviest category.

    Args:
        scale: Multiplier applied to the rule confidence for ensemble results.
        voters: Voter callables consulted in order.
    """

    def __init__(self, scale: float = 0.8, voters: Iterable[Voter] = VOTERS) -> None:
        self.scale = scale
        self.voters = tuple(voters)

    def tally(self, features: FeatureSet) -> Dict[str, int]:
        """Return the per-category vote totals in registration order."""
        totals: Dict[str, int] = {}
        for voter in self.voters:
            vote = voter(features)
            if vote is None:
                continue
            category, weight = vote
            totals[category] = totals.get(category, 0) + weight
        return {category: totals[category] for category in _ordered(totals)}

    def classify(
        self, features: FeatureSet, rule_result: ClassificationResult
    ) -> ClassificationResult:
        """Return the ensemble decision for a low-confidence rule result."""
        totals = self.tally(features)
        winner = "misc"
        best = 0
        for category, weight in totals.items():
            if weight > best:
                winner, best = category, weight

        subcategory = rule_result.subcategory if winner == rule_result.category else None
        summary = ", ".join(f"{category}={weight}" for category, weight in totals.items())
        LOGGER.debug("Ensemble votes for %s: %s", features.filename, summary or "none")
        return ClassificationResult(
            category=winner,
            subcategory=subcategory,
            confidence=clamp_confidence(rule_result.confidence * self.scale),
            rationale=f"Ensemble vote ({summary or 'no votes'})",
            source="ensemble",
            destination=rule_result.destination if winner == rule_result.category else None,
        )


def _ordered(totals: Dict[str, int]) -> list[str]:
    known = [category for category in CATEGORIES if category in totals]
    return known + [category for category in totals if category not in CATEGORIES]


__all__ = [
    "CATEGORIES",
    "EnsembleClassifier",
    "VOTERS",
    "extension_voter",
    "mime_voter",
    "pattern_voter",
    "size_voter",
]
