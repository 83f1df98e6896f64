"""Destination planning, collision handling, and rule-only placements."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Optional

import pytest

from tidyup.classification.models import ClassificationResult
from tidyup.inspection.models import ContentFacts
from tidyup.organization.placement import (
    PLACEMENTS,
    PROJECT_DIRECTORIES,
    create_project_skeleton,
    place_by_date,
    place_by_project,
    place_by_size,
    place_by_type,
    project_directory_for,
)
from tidyup.organization.planner import PathPlanner, relative_destination, split_name

NOW = datetime(2024, 5, 1, 14, 3, 5)


def _result(category: str, subcategory: Optional[str] = None, **extra) -> ClassificationResult:
    return ClassificationResult(category=category, subcategory=subcategory, confidence=90, **extra)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    ("result", "expected"),
    [
        (_result("documents", "docs"), "documents/documentation"),
        (_result("images", "photos"), "images/photos"),
        (_result("videos", "clips"), "videos/clips"),
        (_result("code", "python"), "code/python"),
        (_result("data", "csv"), "data/csv"),
        (_result("images", "unheard-of"), "images/general"),
        (_result("misc"), "misc/general"),
        (_result("finance", destination="money/../invoices/./2024"), "money/invoices/2024"),
        (_result("finance", destination="../"), "finance/general"),
    ],
)
def test_relative_destination(result: ClassificationResult, expected: str) -> None:
    assert relative_destination(result) == PurePosixPath(expected)


def test_split_name_keeps_leading_dot_in_stem() -> None:
    assert split_name(".bashrc.conf") == (".bashrc", ".conf")
    assert split_name(".bashrc") == (".bashrc", "")
    assert split_name("archive.tar.gz") == ("archive.tar", ".gz")


def test_free_destination_moves_without_strategy(tmp_path: Path) -> None:
    source = _write(tmp_path / "report_final.txt", "numbers")

    resolution, operation = PathPlanner(tmp_path, now=NOW).plan(
        source, _result("documents", "final")
    )

    assert resolution.action == "move"
    assert resolution.destination == tmp_path / "documents" / "final" / "report_final.txt"
    assert operation is not None
    assert not operation.conflict_applied
    assert operation.conflict_strategy is None


def test_file_already_at_destination_is_in_place(tmp_path: Path) -> None:
    source = _write(tmp_path / "documents" / "final" / "report_final.txt", "numbers")

    resolution, operation = PathPlanner(tmp_path).plan(source, _result("documents", "final"))

    assert resolution.action == "in-place"
    assert operation is None


def test_identical_occupant_is_left_alone(tmp_path: Path) -> None:
    source = _write(tmp_path / "report_final.txt", "same bytes")
    _write(tmp_path / "documents" / "final" / "report_final.txt", "same bytes")

    resolution, operation = PathPlanner(tmp_path).plan(source, _result("documents", "final"))

    assert resolution.action == "identical"
    assert operation is None


def test_collision_for_file_modified_today_uses_time_suffix(tmp_path: Path) -> None:
    source = _write(tmp_path / "report_final.txt", "new")
    _write(tmp_path / "documents" / "final" / "report_final.txt", "old")

    resolution = PathPlanner(tmp_path, now=NOW).resolve(
        source, _result("documents", "final"), age_class="today", name_pattern="final"
    )

    assert resolution.destination.name == "report_final_140305.txt"
    assert resolution.strategy == "time"


@pytest.mark.parametrize(
    ("pattern", "expected"),
    [("backup", "site_backup.zip"), ("draft", "site_draft.zip")],
)
def test_collision_for_backup_and_draft_names(tmp_path: Path, pattern: str, expected: str) -> None:
    source = _write(tmp_path / "site.zip", "new")
    _write(tmp_path / "archives" / "compressed" / "site.zip", "old")

    resolution = PathPlanner(tmp_path).resolve(
        source, _result("archives", "compressed"), age_class="old", name_pattern=pattern
    )

    assert resolution.destination.name == expected
    assert resolution.strategy == pattern


def test_collision_takes_smallest_free_counter(tmp_path: Path) -> None:
    source = _write(tmp_path / "notes.txt", "new")
    target = tmp_path / "documents" / "general"
    _write(target / "notes.txt", "old")
    _write(target / "notes_1.txt", "older")

    resolution, operation = PathPlanner(tmp_path).plan(source, _result("documents"))

    assert resolution.destination == target / "notes_2.txt"
    assert operation is not None
    assert operation.conflict_applied
    assert operation.conflict_strategy == "counter"


def test_taken_pattern_suffix_falls_through_to_counter(tmp_path: Path) -> None:
    source = _write(tmp_path / "site.zip", "new")
    target = tmp_path / "archives" / "backups"
    _write(target / "site.zip", "old")
    _write(target / "site_backup.zip", "older")

    resolution = PathPlanner(tmp_path).resolve(
        source, _result("archives", "backups"), name_pattern="backup"
    )

    assert resolution.destination == target / "site_1.zip"


def test_hidden_files_keep_leading_dot_on_collision(tmp_path: Path) -> None:
    source = _write(tmp_path / ".bashrc.conf", "alias a=b")
    _write(tmp_path / "config" / "general" / ".bashrc.conf", "alias c=d")

    resolution = PathPlanner(tmp_path).resolve(source, _result("config"))

    assert resolution.destination.name == ".bashrc_1.conf"


def test_destinations_planned_earlier_in_run_count_as_taken(tmp_path: Path) -> None:
    first = _write(tmp_path / "a" / "notes.txt", "one")
    second = _write(tmp_path / "b" / "notes.txt", "two")
    third = _write(tmp_path / "c" / "notes.txt", "one")
    planner = PathPlanner(tmp_path)

    planner.plan(first, _result("documents"))
    resolution, _ = planner.plan(second, _result("documents"))
    duplicate, _ = planner.plan(third, _result("documents"))

    assert resolution.destination.name == "notes_1.txt"
    assert duplicate.action == "identical"
    assert not (tmp_path / "documents").exists()


def test_vacated_source_frees_its_path(tmp_path: Path) -> None:
    misfiled = _write(tmp_path / "images" / "general" / "notes.txt", "text")
    incoming = _write(tmp_path / "notes.txt", "other text")
    planner = PathPlanner(tmp_path)

    planner.plan(misfiled, _result("documents"))
    resolution = planner.resolve(incoming, _result("images"))

    assert resolution.destination == misfiled
    assert resolution.strategy is None


def test_release_and_reset_forget_reservations(tmp_path: Path) -> None:
    first = _write(tmp_path / "a" / "notes.txt", "one")
    second = _write(tmp_path / "b" / "notes.txt", "two")
    planner = PathPlanner(tmp_path)

    _, operation = planner.plan(first, _result("documents"))
    assert operation is not None
    planner.release(operation)
    assert planner.resolve(second, _result("documents")).strategy is None

    planner.plan(first, _result("documents"))
    planner.reset()
    assert planner.resolve(second, _result("documents")).strategy is None


def _facts(name: str, **overrides) -> ContentFacts:
    return ContentFacts(path=Path("/inbox") / name, **overrides)


def test_place_by_type_uses_raw_extension() -> None:
    assert place_by_type(_facts("Photo.JPEG")).destination == "by-type/jpeg"
    assert place_by_type(_facts("Makefile")).destination == "by-type/no-extension"


def test_place_by_date_uses_modification_month() -> None:
    stamped = _facts("a.txt", modified_at=datetime(2023, 6, 15, 12, 0, tzinfo=timezone.utc))

    assert place_by_date(stamped).destination == "by-date/2023/06"
    assert place_by_date(_facts("a.txt")).destination == "by-date/unknown"


def test_place_by_size_uses_size_class() -> None:
    result = place_by_size(_facts("movie.mkv", size_class="large"))

    assert result.destination == "by-size/large"
    assert result.confidence == 99


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("test_app.py", "tests"),
        ("parser.spec.js", "tests"),
        ("README.md", "docs"),
        ("LICENSE", "docs"),
        ("Dockerfile", "config"),
        ("docker-compose.yml", "config"),
        ("build.gradle", "build"),
        ("main.py", "src"),
        ("settings.toml", "config"),
        ("logo.png", "assets"),
        ("deploy.sh", "scripts"),
        ("app.jar", "build"),
        ("notes.xyz", "misc"),
    ],
)
def test_project_directory_for(filename: str, expected: str) -> None:
    assert project_directory_for(filename) == expected


def test_place_by_project_and_skeleton(tmp_path: Path) -> None:
    result = place_by_project(_facts("main.py"))
    create_project_skeleton(tmp_path)

    assert result.category == "project"
    assert relative_destination(result) == PurePosixPath("src")
    assert all((tmp_path / name).is_dir() for name in PROJECT_DIRECTORIES)
    assert set(PLACEMENTS) == {"type", "date", "size", "project"}


def test_project_skeleton_skips_names_held_by_files(tmp_path: Path) -> None:
    (tmp_path / "build").write_text("#!/bin/sh\nmake\n", encoding="utf-8")

    skipped = create_project_skeleton(tmp_path)

    assert skipped == [tmp_path / "build"]
    assert (tmp_path / "build").is_file()
    assert (tmp_path / "src").is_dir()
    assert (tmp_path / "misc").is_dir()
