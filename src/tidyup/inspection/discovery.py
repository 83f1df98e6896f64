"""File discovery utilities."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Collection, Iterable, Iterator

from .models import PendingFile

LOGGER = logging.getLogger(__name__)


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


class DirectoryScanner:
    """Discover files within a directory tree subject to configuration filters."""

    def __init__(
        self,
        *,
        recursive: bool,
        include_hidden: bool,
        follow_symlinks: bool,
        excluded_dirnames: Collection[str] = (),
    ) -> None:
        self.recursive = recursive
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks
        self.excluded_dirnames = frozenset(excluded_dirnames)

    def scan(self, root: Path) -> Iterator[PendingFile]:
        """Yield files discovered under root in a stable, sorted order."""
        root = root.expanduser().resolve()
        if not root.is_dir():
            return

        for path in self._iter_paths(root):
            relative = path.relative_to(root)
            if any(part in self.excluded_dirnames for part in relative.parts[:-1]):
                continue
            if not self.include_hidden and _is_hidden(relative):
                continue
            if path.is_symlink() and not self.follow_symlinks:
                continue
            if not path.is_file():
                continue
            try:
                stat = path.stat()
            except OSError as exc:
                LOGGER.warning("Skipping %s: %s", path, exc)
                continue

            yield PendingFile(
                path=path,
                size_bytes=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            )

    def _iter_paths(self, root: Path) -> Iterable[Path]:
        """Internal helper to iterate candidate paths."""
        if self.recursive:
            return sorted(root.rglob("*"))
        return sorted(root.iterdir())
