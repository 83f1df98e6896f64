"""Tests for the operation journal, the confidence model store, and learning."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tidyup.state import (
    ConfidenceModel,
    ConfidenceModelStore,
    JournalRepository,
    OperationRecord,
    StateError,
)
from tidyup.state.learning import PatternLearner
from tidyup.state.models import LearnedPattern


def _record(root: Path, name: str) -> OperationRecord:
    return OperationRecord(
        source=str(root / name),
        destination=str(root / "documents" / "general" / name),
        category="documents",
        confidence=90,
    )


def test_writer_without_records_leaves_no_journal(tmp_path: Path) -> None:
    repo = JournalRepository()
    writer = repo.writer(tmp_path, mode="auto")

    writer.close(duration_seconds=0.1)

    assert not writer.opened
    assert not repo.journal_path(tmp_path).exists()
    assert repo.read_blocks(tmp_path) == []


def test_writer_emits_header_records_and_end(tmp_path: Path) -> None:
    repo = JournalRepository()
    writer = repo.writer(tmp_path, mode="type")

    writer.append(_record(tmp_path, "a.txt"))
    writer.append(_record(tmp_path, "b.txt"))
    writer.close(duration_seconds=1.23456)

    lines = repo.journal_path(tmp_path).read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["kind"] for line in lines] == ["header", "move", "move", "end"]

    (block,) = repo.read_blocks(tmp_path)
    assert block.closed
    assert not block.undone
    assert block.header.block_id == writer.header.block_id
    assert block.header.mode == "type"
    assert block.header.target == str(tmp_path)
    assert block.header.file_count == 2
    assert block.header.duration_seconds == pytest.approx(1.235)
    assert [Path(record.source).name for record in block.records] == ["a.txt", "b.txt"]


def test_journal_is_stored_under_configured_state_dir(tmp_path: Path) -> None:
    repo = JournalRepository(".state")

    assert repo.base_dirname == ".state"
    assert repo.journal_path(tmp_path) == tmp_path / ".state" / "journal.jsonl"


def test_reader_skips_malformed_lines_and_keeps_unterminated_blocks(tmp_path: Path) -> None:
    repo = JournalRepository()
    first = repo.writer(tmp_path, mode="auto")
    first.append(_record(tmp_path, "a.txt"))
    # No end line, as if the process died mid-run.
    with repo.journal_path(tmp_path).open("a", encoding="utf-8") as fh:
        fh.write("{not json\n\n")
    second = repo.writer(tmp_path, mode="auto")
    second.append(_record(tmp_path, "b.txt"))
    second.close(duration_seconds=0.5, interrupted=True)

    blocks = repo.read_blocks(tmp_path)

    assert [block.header.block_id for block in blocks] == [
        first.header.block_id,
        second.header.block_id,
    ]
    assert not blocks[0].closed
    assert len(blocks[0].records) == 1
    assert blocks[1].closed
    assert blocks[1].header.interrupted


def test_latest_block_skips_undone_and_other_targets(tmp_path: Path) -> None:
    repo = JournalRepository()
    other = tmp_path / "elsewhere"
    older = repo.writer(tmp_path, mode="auto")
    older.append(_record(tmp_path, "a.txt"))
    older.close(duration_seconds=0.1)
    newer = repo.writer(tmp_path, mode="auto")
    newer.append(_record(tmp_path, "b.txt"))
    newer.close(duration_seconds=0.1)

    assert repo.latest_block(tmp_path, tmp_path).header.block_id == newer.header.block_id
    assert repo.latest_block(tmp_path, other) is None

    repo.mark_undone(tmp_path, newer.header.block_id)

    latest = repo.latest_block(tmp_path, tmp_path)
    assert latest is not None
    assert latest.header.block_id == older.header.block_id
    assert repo.read_blocks(tmp_path)[1].undone


def test_model_store_creates_defaults(tmp_path: Path) -> None:
    store = ConfidenceModelStore(tmp_path / "model.json")

    model = store.load()

    assert store.path.exists()
    assert model.threshold_for("images") == 85
    assert model.threshold_for("unknown-category") == 75
    assert model.adjustment_for("documents") == 0


def test_model_store_round_trips_changes(tmp_path: Path) -> None:
    store = ConfidenceModelStore(tmp_path / "model.json")
    model = store.load()
    created = model.created
    model.thresholds["documents"] = 70
    model.adjustments["images"] = -5

    store.save(model)
    reloaded = store.load()

    assert reloaded.threshold_for("documents") == 70
    assert reloaded.adjustment_for("images") == -5
    assert reloaded.created == created
    assert reloaded.last_updated >= created


def test_model_store_rejects_invalid_file(tmp_path: Path) -> None:
    path = tmp_path / "model.json"
    path.write_text('{"thresholds": "nope"}', encoding="utf-8")

    with pytest.raises(StateError):
        ConfidenceModelStore(path).load()


def test_model_store_expands_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    store = ConfidenceModelStore()

    assert store.path == tmp_path / ".tidyup" / "confidence-model.json"


def test_learner_records_top_extensions_per_directory(tmp_path: Path) -> None:
    photos = tmp_path / "photos"
    nested = photos / "2023"
    nested.mkdir(parents=True)
    for name in ("a.jpg", "b.jpg", "c.png", "d.heic", "e.jpg", ".DS_Store"):
        (photos / name).write_text("x", encoding="utf-8")
    (nested / "f.raw").write_text("x", encoding="utf-8")
    (tmp_path / "empty").mkdir()
    (tmp_path / ".tidyup").mkdir()
    (tmp_path / ".tidyup" / "journal.jsonl").write_text("", encoding="utf-8")
    (tmp_path / "skip").mkdir()
    (tmp_path / "skip" / "g.txt").write_text("x", encoding="utf-8")

    patterns = PatternLearner(excluded_dirnames=["skip"]).learn(tmp_path)

    by_dir = {pattern.directory: pattern for pattern in patterns}
    assert set(by_dir) == {"photos", "photos/2023"}
    assert by_dir["photos"].extensions[0] == "jpg"
    assert len(by_dir["photos"].extensions) == 3
    assert by_dir["photos"].file_count == 5
    assert by_dir["photos/2023"].extensions == ["raw"]


def test_learner_respects_depth(tmp_path: Path) -> None:
    deep = tmp_path / "a" / "b" / "c"
    deep.mkdir(parents=True)
    (deep / "x.txt").write_text("x", encoding="utf-8")
    (tmp_path / "a" / "y.txt").write_text("y", encoding="utf-8")

    patterns = PatternLearner(max_depth=2).learn(tmp_path)

    assert [pattern.directory for pattern in patterns] == ["a"]


def test_learner_update_replaces_same_directory(tmp_path: Path) -> None:
    (tmp_path / "music").mkdir()
    (tmp_path / "music" / "song.mp3").write_text("x", encoding="utf-8")
    model = ConfidenceModel(
        learned_patterns=[
            LearnedPattern(directory="music", extensions=["wav"], file_count=9),
            LearnedPattern(directory="books", extensions=["epub"], file_count=2),
        ]
    )

    updated = PatternLearner().update(model, tmp_path)

    directories = [pattern.directory for pattern in updated.learned_patterns]
    assert directories == ["books", "music"]
    assert updated.learned_patterns[1].extensions == ["mp3"]


def test_model_store_load_without_create_leaves_disk_untouched(tmp_path: Path) -> None:
    store = ConfidenceModelStore(tmp_path / "state" / "model.json")

    model = store.load(create=False)

    assert model.threshold_for("fonts") == 80
    assert not store.path.exists()
    assert not (tmp_path / "state").exists()
