"""Ordered rule table mapping feature sets to categories.

Rules are evaluated top to bottom and the first rule whose predicate holds
decides the category. The order models priority, so reordering the table
changes behavior.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from tidyup.state.models import ConfidenceModel

from .features import CONFIG_EXTENSIONS, DATA_EXTENSIONS, LANGUAGES
from .models import ClassificationResult, FeatureSet, clamp_confidence

ARCHIVE_EXTENSIONS = frozenset({"zip", "tar", "gz", "tgz", "bz2", "xz", "7z", "rar", "dmg", "iso"})

DOCUMENT_TYPES = frozenset(
    {
        "text/plain",
        "text/markdown",
        "text/x-rst",
        "text/rtf",
        "text/x-tex",
        "text/x-log",
        "application/rtf",
        "application/pdf",
        "application/msword",
        "application/epub+zip",
        "application/vnd.oasis.opendocument.text",
    }
)
DOCUMENT_TYPE_PREFIXES = (
    "application/vnd.openxmlformats-officedocument",
    "application/vnd.ms-",
)

_DOCUMENT_SUBCATEGORIES = {
    "documentation": "docs",
    "legal": "legal",
    "draft": "drafts",
    "final": "final",
}
_CLIP_SIZES = frozenset({"tiny", "small", "medium"})


@dataclass(frozen=True)
class Decision:
    """Category decision produced by a matching rule."""

    category: str
    subcategory: Optional[str]
    confidence: int
    rationale: str


@dataclass(frozen=True)
class Rule:
    """A named predicate paired with the decision it produces."""

    name: str
    predicate: Callable[[FeatureSet], bool]
    decide: Callable[[FeatureSet], Decision]


def is_document(features: FeatureSet) -> bool:
    """Return True for document-like MIME types or markdown-looking content."""
    mime = features.mime_type
    return (
        mime in DOCUMENT_TYPES
        or mime.startswith(DOCUMENT_TYPE_PREFIXES)
        or features.doc_marker
    )


def _code(features: FeatureSet) -> Decision:
    from_extension = features.extension in LANGUAGES
    return Decision(
        "code",
        features.language,
        95 if from_extension else 90,
        f"Source code ({features.language}) detected from "
        f"{'extension' if from_extension else 'shebang'}",
    )


def _document(features: FeatureSet) -> Decision:
    subcategory = _DOCUMENT_SUBCATEGORIES.get(features.name_pattern)
    reason = f"Document type {features.mime_type}"
    if subcategory:
        reason += f" with {features.name_pattern} name pattern"
    return Decision("documents", subcategory, 90, reason)


def _image(features: FeatureSet) -> Decision:
    if features.name_pattern == "screenshot":
        return Decision("images", "screenshots", 98, "Image named like a screenshot")
    if features.has_camera:
        return Decision("images", "photos", 97, "Image carries camera EXIF tags")
    if features.has_software:
        return Decision("images", "edited", 95, "Image carries editing software tag")
    if features.image_shape == "thumbnail":
        return Decision("images", "thumbnails", 95, "Small image dimensions")
    if features.image_shape == "wide":
        return Decision("images", "panoramas", 95, "Wide image aspect ratio")
    return Decision("images", None, 95, f"Image type {features.mime_type}")


def _media(features: FeatureSet) -> Decision:
    category = "audio" if features.mime_category == "audio" else "videos"
    subcategory = "clips" if features.size_class in _CLIP_SIZES else "full"
    return Decision(category, subcategory, 95, f"{category.title()} type {features.mime_type}")


def _archive(features: FeatureSet) -> Decision:
    if features.name_pattern == "backup":
        return Decision("archives", "backups", 98, "Archive named like a backup")
    return Decision("archives", "compressed", 95, f"Archive extension .{features.extension}")


def _config(features: FeatureSet) -> Decision:
    if features.config_content:
        return Decision("config", None, 90, "Content looks like configuration")
    return Decision("config", None, 75, "Configuration name or extension only")


def _data(features: FeatureSet) -> Decision:
    subcategory = features.extension if features.extension in DATA_EXTENSIONS else "structured"
    return Decision("data", subcategory, 90, "Structured data content or extension")


def _system(features: FeatureSet) -> Decision:
    subcategory = "temp" if features.name_pattern == "temporary" else "backups"
    return Decision("system", subcategory, 95, f"{features.name_pattern.title()} file name")


_DIRECTORY_DECISIONS = {
    "downloads": Decision("misc", "downloads", 70, "Located in a downloads folder"),
    "project": Decision("code", "project-files", 75, "Located in a project folder"),
    "work": Decision("documents", "work", 75, "Located in a work folder"),
}


RULES: tuple[Rule, ...] = (
    Rule("language", lambda f: f.language is not None, _code),
    Rule("document", is_document, _document),
    Rule("image", lambda f: f.mime_category == "image", _image),
    Rule("media", lambda f: f.mime_category in {"audio", "video"}, _media),
    Rule("archive", lambda f: f.extension in ARCHIVE_EXTENSIONS, _archive),
    Rule(
        "config",
        lambda f: f.config_content or f.name_pattern == "config" or f.extension in CONFIG_EXTENSIONS,
        _config,
    ),
    Rule("data", lambda f: f.data_content or f.extension in DATA_EXTENSIONS, _data),
    Rule("system", lambda f: f.name_pattern in {"temporary", "backup"}, _system),
    Rule(
        "directory",
        lambda f: f.directory_context in _DIRECTORY_DECISIONS,
        lambda f: _DIRECTORY_DECISIONS[f.directory_context],
    ),
)

FALLBACK = Decision("misc", None, 50, "No rule matched")


class RuleClassifier:
    """Evaluate the ordered rule table for a feature set."""

    def __init__(
        self,
        model: Optional[ConfidenceModel] = None,
        rules: tuple[Rule, ...] = RULES,
    ) -> None:
        self.model = model or ConfidenceModel()
        self.rules = rules

    def classify(self, features: FeatureSet) -> ClassificationResult:
        """Return the decision of the first matching rule, adjusted and clamped."""
        decision = FALLBACK
        for rule in self.rules:
            if rule.predicate(features):
                decision = rule.decide(features)
                break

        confidence = decision.confidence + self.model.adjustment_for(decision.category)
        return ClassificationResult(
            category=decision.category,
            subcategory=decision.subcategory,
            confidence=clamp_confidence(confidence),
            rationale=decision.rationale,
            source="rule",
        )


__all__ = [
    "ARCHIVE_EXTENSIONS",
    "Decision",
    "RULES",
    "Rule",
    "RuleClassifier",
    "is_document",
]
