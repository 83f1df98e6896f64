"""Rule-only placement modes that bypass the classification pipeline."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Callable, Dict

from tidyup.classification.models import ClassificationResult
from tidyup.inspection.models import ContentFacts

LOGGER = logging.getLogger(__name__)

PLACEMENT_CONFIDENCE = 99

PROJECT_DIRECTORIES = ("src", "docs", "tests", "config", "assets", "scripts", "build", "misc")

_PROJECT_EXTENSIONS: Dict[str, str] = {
    **{ext: "src" for ext in ("py", "js", "ts", "java", "cpp", "c", "h", "go", "rs", "php",
                               "rb", "kt")},
    **{ext: "docs" for ext in ("md", "txt", "pdf", "doc", "docx", "rst")},
    **{ext: "config" for ext in ("json", "yaml", "yml", "xml", "conf", "cfg", "ini", "toml")},
    **{ext: "assets" for ext in ("png", "jpg", "jpeg", "gif", "svg", "ico")},
    **{ext: "scripts" for ext in ("sh", "bat", "ps1", "cmd")},
    **{ext: "build" for ext in ("exe", "bin", "out", "jar", "war")},
}

# Filename conventions override the extension lookup; checked in order.
_PROJECT_FILENAMES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("*test*", "*spec*"), "tests"),
    (("readme*", "changelog*", "license*"), "docs"),
    (("makefile", "dockerfile", "docker-compose*"), "config"),
    (("build.*", "dist.*"), "build"),
)


def _raw_extension(path: Path) -> str:
    return path.suffix.lower().lstrip(".")


def place_by_type(facts: ContentFacts) -> ClassificationResult:
    extension = _raw_extension(facts.path) or "no-extension"
    return ClassificationResult(
        category="type",
        subcategory=extension,
        confidence=PLACEMENT_CONFIDENCE,
        rationale=f"Grouped by extension {extension}",
        destination=f"by-type/{extension}",
    )


def place_by_date(facts: ContentFacts) -> ClassificationResult:
    if facts.modified_at is None:
        bucket = "unknown"
    else:
        bucket = facts.modified_at.astimezone().strftime("%Y/%m")
    return ClassificationResult(
        category="date",
        subcategory=bucket,
        confidence=PLACEMENT_CONFIDENCE,
        rationale=f"Grouped by modification month {bucket}",
        destination=f"by-date/{bucket}",
    )


def place_by_size(facts: ContentFacts) -> ClassificationResult:
    return ClassificationResult(
        category="size",
        subcategory=facts.size_class,
        confidence=PLACEMENT_CONFIDENCE,
        rationale=f"Grouped by size class {facts.size_class}",
        destination=f"by-size/{facts.size_class}",
    )


def project_directory_for(filename: str) -> str:
    """Return the project skeleton directory for filename."""
    lowered = filename.lower()
    for patterns, directory in _PROJECT_FILENAMES:
        if any(fnmatch.fnmatchcase(lowered, pattern) for pattern in patterns):
            return directory
    return _PROJECT_EXTENSIONS.get(_raw_extension(Path(filename)), "misc")


def place_by_project(facts: ContentFacts) -> ClassificationResult:
    directory = project_directory_for(facts.path.name)
    return ClassificationResult(
        category="project",
        subcategory=directory,
        confidence=PLACEMENT_CONFIDENCE,
        rationale=f"Project layout directory {directory}",
        destination=directory,
    )


def create_project_skeleton(root: Path) -> list[Path]:
    """Create the standard project directories under root.

    A directory that cannot be created, for example because a file already
    holds its name, is logged and skipped; moves into it fail per file.

    Returns:
        list[Path]: Skeleton directories that could not be created.
    """
    skipped: list[Path] = []
    for name in PROJECT_DIRECTORIES:
        directory = root / name
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.warning("Unable to create project directory %s: %s", directory, exc)
            skipped.append(directory)
    LOGGER.debug("Created project skeleton under %s", root)
    return skipped


PLACEMENTS: Dict[str, Callable[[ContentFacts], ClassificationResult]] = {
    "type": place_by_type,
    "date": place_by_date,
    "size": place_by_size,
    "project": place_by_project,
}


__all__ = [
    "PLACEMENTS",
    "PLACEMENT_CONFIDENCE",
    "PROJECT_DIRECTORIES",
    "create_project_skeleton",
    "place_by_date",
    "place_by_project",
    "place_by_size",
    "place_by_type",
    "project_directory_for",
]
