"""Executor for planned moves."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import uuid4

from tidyup.state import JournalError, JournalWriter, OperationRecord

from .errors import MoveError
from .models import MoveOperation

LOGGER = logging.getLogger(__name__)


def relocate(source: Path, destination: Path) -> None:
    """Move source to destination, creating parent directories as needed.

    A file may hold the name of a directory on its own destination path, as
    a file called ``misc`` bound for ``misc/general/misc``. The file is parked
    under a temporary name outside those directories while they are created. The
    reverse move removes those directories again once they are empty.

    Raises:
        OSError: If the move fails; source is left where it was.
    """
    if source in destination.parents:
        parked = _park(source, source.parent)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            parked.rename(destination)
        except OSError:
            _prune_empty(destination.parent, stop=source.parent)
            parked.rename(source)
            raise
        return

    if destination in source.parents:
        parked = _park(source, destination.parent)
        try:
            _prune_empty(source.parent, stop=destination.parent)
            parked.rename(destination)
        except OSError:
            source.parent.mkdir(parents=True, exist_ok=True)
            parked.rename(source)
            raise
        return

    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(destination))


def _park(path: Path, directory: Path) -> Path:
    parked = directory / f".{path.name}.{uuid4().hex[:8]}.tidyup-move"
    path.rename(parked)
    return parked


def _prune_empty(directory: Path, *, stop: Path) -> None:
    """Remove directory and its parents up to, but excluding, stop."""
    while directory != stop and stop in directory.parents:
        if directory.exists():
            directory.rmdir()
        directory = directory.parent


class MoveExecutor:
    """Apply moves one at a time, journaling each with rollback on failure.

    A move and its journal record either both happen or neither does, also
    when the run is interrupted between the two.
    """

    def __init__(self, writer: Optional[JournalWriter] = None) -> None:
        self.writer = writer

    def apply(self, operation: MoveOperation) -> OperationRecord:
        """Execute operation and append its record to the journal.

        Args:
            operation: Move computed by the planner.

        Returns:
            OperationRecord: Journal record for the executed move.

        Raises:
            MoveError: If the move fails or cannot be journaled.
        """
        source = operation.source
        destination = operation.destination
        self._validate(source, destination)

        record = OperationRecord(
            source=str(source),
            destination=str(destination),
            category=operation.category,
            confidence=operation.confidence,
            timestamp=datetime.now(timezone.utc),
        )
        try:
            relocate(source, destination)
        except OSError as exc:
            raise MoveError(
                f"Unable to move {source} to {destination}: {exc}",
                source=source,
                destination=destination,
            ) from exc

        if self.writer is None:
            return record

        try:
            self.writer.append(record)
        except JournalError as exc:
            self._rollback(source, destination)
            raise MoveError(
                f"Moved {source} but could not journal it; move reverted: {exc}",
                source=source,
                destination=destination,
            ) from exc
        except BaseException:
            # Interrupted between the move and its record.
            self._rollback_interrupted(source, destination)
            raise
        return record

    def _validate(self, source: Path, destination: Path) -> None:
        if not source.exists():
            raise MoveError(f"Source path is missing: {source}", source=source)
        if destination.exists():
            raise MoveError(
                f"Destination already exists: {destination}",
                source=source,
                destination=destination,
            )

    def _rollback(self, source: Path, destination: Path) -> None:
        try:
            relocate(destination, source)
        except OSError as exc:
            LOGGER.error("Failed to revert %s back to %s: %s", destination, source, exc)
            raise MoveError(
                f"Unable to revert {destination} to {source}: {exc}",
                source=source,
                destination=destination,
            ) from exc

    def _rollback_interrupted(self, source: Path, destination: Path) -> None:
        try:
            self._rollback(source, destination)
        except MoveError:
            LOGGER.error("%s is left at %s without a journal record", source, destination)


__all__ = ["MoveExecutor", "relocate"]
