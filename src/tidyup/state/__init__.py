"""State persistence: the operation journal and the confidence model store."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .errors import JournalError, StateError
from .models import (
    ConfidenceModel,
    JournalBlock,
    JournalHeader,
    JournalLine,
    LearnedPattern,
    OperationRecord,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_STATE_DIRNAME = ".tidyup"
JOURNAL_FILENAME = "journal.jsonl"
DEFAULT_MODEL_PATH = Path("~/.tidyup/confidence-model.json")


class JournalWriter:
    """Append one run's block to the journal.

    The header line is written lazily before the first record, so runs that
    move nothing leave no trace in the journal.
    """

    def __init__(self, path: Path, *, mode: str, target: Path) -> None:
        self.path = path
        self.header = JournalHeader(
            block_id=uuid.uuid4().hex,
            mode=mode,
            target=str(target),
        )
        self.records: list[OperationRecord] = []
        self._opened = False

    @property
    def opened(self) -> bool:
        """Return True once the header line has been written."""
        return self._opened

    def append(self, record: OperationRecord) -> None:
        """Write a move record, opening the block first if needed.

        Raises:
            JournalError: If the journal file cannot be written.
        """
        if not self._opened:
            self._write(JournalLine(kind="header", block_id=self.header.block_id, header=self.header))
            self._opened = True
        self._write(JournalLine(kind="move", block_id=self.header.block_id, record=record))
        self.records.append(record)

    def close(self, *, duration_seconds: float, interrupted: bool = False) -> None:
        """Terminate the block with its file count and duration."""
        if not self._opened:
            return
        self.header.file_count = len(self.records)
        self.header.duration_seconds = round(duration_seconds, 3)
        self.header.interrupted = interrupted
        self._write(
            JournalLine(
                kind="end",
                block_id=self.header.block_id,
                file_count=self.header.file_count,
                duration_seconds=self.header.duration_seconds,
                interrupted=interrupted,
            )
        )

    def _write(self, line: JournalLine) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line.model_dump_json(exclude_none=True) + "\n")
        except OSError as exc:
            raise JournalError(f"Unable to append to journal {self.path}: {exc}") from exc


class JournalRepository:
    """Locate, write, and parse per-root journals."""

    def __init__(self, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        self._base_dirname = base_dirname

    @property
    def base_dirname(self) -> str:
        """Return the directory name used for journal storage."""
        return self._base_dirname

    def journal_path(self, root: Path) -> Path:
        """Return the journal file for root."""
        return root / self._base_dirname / JOURNAL_FILENAME

    def writer(self, root: Path, *, mode: str) -> JournalWriter:
        """Return a writer for a new block targeting root."""
        return JournalWriter(self.journal_path(root), mode=mode, target=root)

    def read_blocks(self, root: Path) -> list[JournalBlock]:
        """Parse every block in the journal, oldest first.

        Lines that fail to parse are logged and skipped. A block with no end
        line (an interrupted process) still collects records up to the next
        header.

        Raises:
            JournalError: If the journal file exists but cannot be read.
        """
        path = self.journal_path(root)
        if not path.exists():
            return []
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise JournalError(f"Unable to read journal {path}: {exc}") from exc

        blocks: dict[str, JournalBlock] = {}
        current: Optional[JournalBlock] = None
        for number, raw in enumerate(lines, start=1):
            if not raw.strip():
                continue
            try:
                line = JournalLine.model_validate_json(raw)
            except ValidationError as exc:
                LOGGER.warning("Skipping malformed journal line %d in %s: %s", number, path, exc)
                continue

            if line.kind == "header" and line.header is not None:
                current = JournalBlock(header=line.header)
                blocks[line.block_id] = current
            elif line.kind == "move" and line.record is not None:
                if current is not None and current.header.block_id == line.block_id:
                    current.records.append(line.record)
            elif line.kind == "end":
                block = blocks.get(line.block_id)
                if block is not None:
                    block.closed = True
                    block.header.file_count = line.file_count or len(block.records)
                    block.header.duration_seconds = line.duration_seconds or 0.0
                    block.header.interrupted = bool(line.interrupted)
                if current is not None and current.header.block_id == line.block_id:
                    current = None
            elif line.kind == "undo":
                block = blocks.get(line.block_id)
                if block is not None:
                    block.undone = True
        return list(blocks.values())

    def latest_block(self, root: Path, target: Path) -> Optional[JournalBlock]:
        """Return the most recent block for target that has not been undone."""
        wanted = str(target)
        for block in reversed(self.read_blocks(root)):
            if block.header.target == wanted and not block.undone:
                return block
        return None

    def mark_undone(self, root: Path, block_id: str) -> None:
        """Append an undo marker for block_id."""
        path = self.journal_path(root)
        line = JournalLine(kind="undo", block_id=block_id)
        try:
            with path.open("a", encoding="utf-8") as fh:
                fh.write(line.model_dump_json(exclude_none=True) + "\n")
        except OSError as exc:
            raise JournalError(f"Unable to append to journal {path}: {exc}") from exc


class ConfidenceModelStore:
    """Read and write the per-user confidence model."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = (path or DEFAULT_MODEL_PATH).expanduser()

    @property
    def path(self) -> Path:
        """Return the resolved model path."""
        return self._path

    def load(self, *, create: bool = True) -> ConfidenceModel:
        """Load the model, falling back to the defaults when none exists.

        Args:
            create: Write the defaults to disk when no model file exists yet.

        Raises:
            StateError: If the stored model cannot be parsed.
        """
        if not self._path.exists():
            model = ConfidenceModel()
            if create:
                self._write(model)
            return model
        try:
            return ConfidenceModel.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            raise StateError(f"Invalid confidence model at {self._path}: {exc}") from exc

    def save(self, model: ConfidenceModel) -> None:
        """Stamp last_updated and persist the model."""
        model.last_updated = datetime.now(timezone.utc)
        self._write(model)

    def _write(self, model: ConfidenceModel) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(model.model_dump(mode="json"), indent=2), encoding="utf-8"
        )


__all__ = [
    "ConfidenceModel",
    "ConfidenceModelStore",
    "DEFAULT_MODEL_PATH",
    "DEFAULT_STATE_DIRNAME",
    "JOURNAL_FILENAME",
    "JournalBlock",
    "JournalError",
    "JournalHeader",
    "JournalRepository",
    "JournalWriter",
    "LearnedPattern",
    "OperationRecord",
    "StateError",
]
