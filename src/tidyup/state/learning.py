"""Record extension patterns observed in already-organized folders."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Iterable

from .models import ConfidenceModel, LearnedPattern

LOGGER = logging.getLogger(__name__)

MAX_DEPTH = 2
TOP_EXTENSIONS = 3


class PatternLearner:
    """Walk subdirectories and note their most common extensions.

    Args:
        max_depth: Deepest subdirectory level to inspect below the root.
        excluded_dirnames: Directory names that are never inspected.
    """

    def __init__(
        self, *, max_depth: int = MAX_DEPTH, excluded_dirnames: Iterable[str] = ()
    ) -> None:
        self.max_depth = max_depth
        self.excluded = set(excluded_dirnames)

    def learn(self, root: Path) -> list[LearnedPattern]:
        """Return one pattern per subdirectory that directly holds files."""
        patterns: list[LearnedPattern] = []
        for directory in self._directories(root, depth=1):
            counts: Counter[str] = Counter()
            files = 0
            try:
                entries = sorted(directory.iterdir())
            except OSError as exc:
                LOGGER.warning("Unable to read %s: %s", directory, exc)
                continue
            for entry in entries:
                if not entry.is_file() or entry.name.startswith("."):
                    continue
                files += 1
                if entry.suffix:
                    counts[entry.suffix.lower().lstrip(".")] += 1
            if not files:
                continue
            patterns.append(
                LearnedPattern(
                    directory=directory.relative_to(root).as_posix(),
                    extensions=[ext for ext, _ in counts.most_common(TOP_EXTENSIONS)],
                    file_count=files,
                )
            )
        LOGGER.info("Learned %d directory pattern(s) under %s", len(patterns), root)
        return patterns

    def update(self, model: ConfidenceModel, root: Path) -> ConfidenceModel:
        """Merge patterns learned under root into model, replacing same-name entries."""
        learned = self.learn(root)
        names = {pattern.directory for pattern in learned}
        kept = [pattern for pattern in model.learned_patterns if pattern.directory not in names]
        model.learned_patterns = kept + learned
        return model

    def _directories(self, base: Path, *, depth: int) -> list[Path]:
        if depth > self.max_depth:
            return []
        found: list[Path] = []
        try:
            children = sorted(base.iterdir())
        except OSError as exc:
            LOGGER.warning("Unable to read %s: %s", base, exc)
            return []
        for child in children:
            if not child.is_dir() or child.is_symlink():
                continue
            if child.name in self.excluded or child.name.startswith("."):
                continue
            found.append(child)
            found.extend(self._directories(child, depth=depth + 1))
        return found


__all__ = ["PatternLearner"]
