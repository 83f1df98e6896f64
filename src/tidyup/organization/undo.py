"""Replay a journal block in reverse to restore original paths."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from tidyup.state import JournalRepository

from .errors import UndoError
from .executor import relocate
from .models import UndoSummary
from .orchestrator import resolve_target

LOGGER = logging.getLogger(__name__)


class UndoEngine:
    """Move the files of the latest organization run back where they came from."""

    def __init__(self, journal: Optional[JournalRepository] = None) -> None:
        self.journal = journal or JournalRepository()

    def undo(self, target: Path, *, dry_run: bool = False) -> UndoSummary:
        """Undo the most recent run recorded for target.

        Records are replayed newest first. A record whose destination is gone
        or whose original path is occupied is reported and skipped. The block
        is then marked undone so the next call steps back one more run.

        Args:
            target: Directory that was organized.
            dry_run: Report what would be restored without moving anything.

        Returns:
            UndoSummary: Restored and skipped paths.

        Raises:
            InputError: If target is not a directory.
            UndoError: If no undoable run is recorded for target.
        """
        root = resolve_target(target)
        block = self.journal.latest_block(root, root)
        if block is None:
            raise UndoError(f"No organization history found for {root}")

        summary = UndoSummary(root=root, block_id=block.header.block_id)
        for record in reversed(block.records):
            source = Path(record.source)
            destination = Path(record.destination)
            try:
                self._restore(source, destination, dry_run=dry_run)
            except UndoError as exc:
                LOGGER.warning("%s", exc)
                summary.skipped.append(source)
                summary.messages.append(str(exc))
                continue
            summary.restored.append(source)

        if not dry_run:
            self.journal.mark_undone(root, block.header.block_id)
        LOGGER.info(
            "Undo of block %s: %d restored, %d skipped",
            block.header.block_id,
            len(summary.restored),
            len(summary.skipped),
        )
        return summary

    @staticmethod
    def _restore(source: Path, destination: Path, *, dry_run: bool) -> None:
        if not destination.exists():
            raise UndoError(f"Missing {destination}; cannot restore {source}")
        # A file named like a directory on its own organized path comes back
        # once that directory is empty again.
        nested = source.is_dir() and source in destination.parents
        if source.exists() and not nested:
            raise UndoError(f"Original path {source} is occupied; leaving {destination}")
        if dry_run:
            return
        try:
            relocate(destination, source)
        except OSError as exc:
            raise UndoError(f"Unable to restore {destination} to {source}: {exc}") from exc


__all__ = ["UndoEngine"]
