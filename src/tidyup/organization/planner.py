"""Destination planning and collision resolution."""

from __future__ import annotations

import filecmp
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Optional

from tidyup.classification.models import ClassificationResult

from .models import FileAction, MoveOperation

LOGGER = logging.getLogger(__name__)

HIERARCHY: dict[tuple[str, str], str] = {
    ("documents", "docs"): "documents/documentation",
    ("documents", "legal"): "documents/legal",
    ("documents", "drafts"): "documents/drafts",
    ("documents", "final"): "documents/final",
    ("documents", "work"): "documents/work",
    ("images", "screenshots"): "images/screenshots",
    ("images", "photos"): "images/photos",
    ("images", "edited"): "images/edited",
    ("images", "thumbnails"): "images/thumbnails",
    ("images", "panoramas"): "images/panoramas",
    ("audio", "clips"): "audio/clips",
    ("audio", "full"): "audio/full",
    ("videos", "clips"): "videos/clips",
    ("videos", "full"): "videos/full",
    ("archives", "backups"): "archives/backups",
    ("archives", "compressed"): "archives/compressed",
    ("system", "temp"): "system/temp",
    ("system", "backups"): "system/backups",
    ("misc", "downloads"): "misc/downloads",
    ("code", "project-files"): "code/project-files",
}

# Subcategories of these categories name their own folder (language, data format).
PASSTHROUGH_CATEGORIES = frozenset({"code", "data"})

_SUFFIX_PATTERNS = {"backup": "backup", "draft": "draft"}


@dataclass(frozen=True)
class Resolution:
    """Outcome of planning one file."""

    action: FileAction
    destination: Path
    strategy: Optional[str] = None

    @property
    def moves(self) -> bool:
        return self.action == "move"


def relative_destination(result: ClassificationResult) -> PurePosixPath:
    """Return the directory for result relative to the organized root."""
    if result.destination:
        parts = [
            part
            for part in PurePosixPath(result.destination.replace("\\", "/")).parts
            if part not in {"", ".", "..", "/"}
        ]
        if parts:
            return PurePosixPath(*parts)

    subcategory = result.subcategory
    if subcategory:
        mapped = HIERARCHY.get((result.category, subcategory))
        if mapped:
            return PurePosixPath(mapped)
        if result.category in PASSTHROUGH_CATEGORIES:
            return PurePosixPath(result.category, subcategory)
    return PurePosixPath(result.category, "general")


def split_name(filename: str) -> tuple[str, str]:
    """Split filename into stem and suffix, treating leading dots as part of the stem."""
    path = PurePosixPath(filename)
    return path.stem, path.suffix


class PathPlanner:
    """Turn classification results into concrete, collision-free destinations.

    One planner serves one run. It remembers destinations planned earlier in
    the run so that a dry run resolves collisions exactly like the real run.

    Args:
        root: Directory being organized.
        now: Clock used for time-of-day suffixes.
    """

    def __init__(self, root: Path, *, now: Optional[datetime] = None) -> None:
        self.root = root
        self.now = now or datetime.now()
        self._planned: dict[Path, Path] = {}
        self._vacated: set[Path] = set()

    def reset(self) -> None:
        """Forget destinations planned so far."""
        self._planned.clear()
        self._vacated.clear()

    def resolve(
        self,
        source: Path,
        result: ClassificationResult,
        *,
        age_class: str = "unknown",
        name_pattern: str = "none",
    ) -> Resolution:
        """Return where source should go, applying the collision order.

        Order: identical content is a no-op; files modified today get a
        time-of-day suffix; backup and draft names get a pattern suffix; any
        remaining collision takes the smallest free numeric suffix.
        """
        target_dir = self.root / Path(*relative_destination(result).parts)
        candidate = target_dir / source.name
        if candidate == source:
            return Resolution("in-place", candidate)

        occupant = self._occupant(candidate)
        if occupant is None:
            return Resolution("move", candidate)
        if self._identical(source, occupant):
            LOGGER.debug("%s is identical to %s; leaving it in place", source, occupant)
            return Resolution("identical", candidate)

        stem, suffix = split_name(source.name)
        preferred: Optional[tuple[str, str]] = None
        if age_class == "today":
            preferred = ("time", f"{stem}_{self.now.strftime('%H%M%S')}{suffix}")
        elif name_pattern in _SUFFIX_PATTERNS:
            label = _SUFFIX_PATTERNS[name_pattern]
            preferred = (label, f"{stem}_{label}{suffix}")
        if preferred is not None:
            alternate = target_dir / preferred[1]
            if self._is_free(alternate):
                return Resolution("move", alternate, preferred[0])

        counter = 1
        while True:
            alternate = target_dir / f"{stem}_{counter}{suffix}"
            if self._is_free(alternate):
                return Resolution("move", alternate, "counter")
            counter += 1

    def plan(
        self,
        source: Path,
        result: ClassificationResult,
        *,
        age_class: str = "unknown",
        name_pattern: str = "none",
    ) -> tuple[Resolution, Optional[MoveOperation]]:
        """Resolve source and reserve its destination when it moves."""
        resolution = self.resolve(
            source, result, age_class=age_class, name_pattern=name_pattern
        )
        if not resolution.moves:
            return resolution, None

        self._planned[resolution.destination] = source
        self._vacated.add(source)
        operation = MoveOperation(
            source=source,
            destination=resolution.destination,
            category=result.category,
            confidence=result.confidence,
            reasoning=result.rationale,
            conflict_strategy=resolution.strategy,
            conflict_applied=resolution.strategy is not None,
        )
        return resolution, operation

    def release(self, operation: MoveOperation) -> None:
        """Drop a reservation for a move that did not happen."""
        self._planned.pop(operation.destination, None)
        self._vacated.discard(operation.source)

    def _occupant(self, candidate: Path) -> Optional[Path]:
        """Return the file whose content will sit at candidate, if any."""
        planned = self._planned.get(candidate)
        if planned is not None:
            # Once the move has been executed the content lives at the candidate.
            return planned if planned.exists() else candidate
        if candidate in self._vacated:
            return None
        if candidate.exists():
            return candidate
        return None

    def _is_free(self, candidate: Path) -> bool:
        return self._occupant(candidate) is None

    @staticmethod
    def _identical(source: Path, other: Path) -> bool:
        try:
            return filecmp.cmp(source, other, shallow=False)
        except OSError as exc:
            LOGGER.debug("Unable to compare %s with %s: %s", source, other, exc)
            return False


__all__ = [
    "HIERARCHY",
    "PASSTHROUGH_CATEGORIES",
    "PathPlanner",
    "Resolution",
    "relative_destination",
    "split_name",
]
