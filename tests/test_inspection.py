"""Tests for discovery, content inspection, and directory analysis."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from PIL import Image

from tidyup.inspection import (
    ContentInspector,
    ContentSniffer,
    DirectoryScanner,
    analyze_directory,
    age_class_for,
    size_class_for,
)
from tidyup.inspection.inspector import KIB, MIB


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "tiny"),
        (KIB - 1, "tiny"),
        (KIB, "small"),
        (100 * KIB, "medium"),
        (10 * MIB, "large"),
        (100 * MIB, "huge"),
    ],
)
def test_size_class_boundaries(size: int, expected: str) -> None:
    assert size_class_for(size) == expected


@pytest.mark.parametrize(
    ("days", "expected"),
    [(0, "today"), (1, "this_week"), (7, "this_week"), (31, "this_month"), (365, "this_year"),
     (366, "old")],
)
def test_age_class_boundaries(days: int, expected: str) -> None:
    assert age_class_for(days) == expected


def test_sniffer_prefers_extension_table_then_magic_bytes(tmp_path: Path) -> None:
    sniffer = ContentSniffer()

    assert sniffer.detect(tmp_path / "settings.conf") == "text/x-config"
    assert sniffer.detect(tmp_path / "notes.md") == "text/markdown"
    assert sniffer.detect(tmp_path / "blob", b"%PDF-1.7 rest") == "application/pdf"
    assert sniffer.detect(tmp_path / "blob", b"\x89PNG\r\n\x1a\n....") == "image/png"
    assert sniffer.detect(tmp_path / "blob", b"plain words only\n") == "text/plain"
    assert sniffer.detect(tmp_path / "blob", b"\x00\x01\x02\x03") == "application/octet-stream"


def test_inspector_reads_sample_for_text_files(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("hello world\n", encoding="utf-8")

    facts = ContentInspector().inspect(path)

    assert facts.readable
    assert facts.size_class == "tiny"
    assert facts.mime_type == "text/plain"
    assert facts.age_class == "today"
    assert facts.sample == "hello world\n"


def test_inspector_skips_sample_for_binary_files(tmp_path: Path) -> None:
    path = tmp_path / "archive.zip"
    path.write_bytes(b"PK\x03\x04" + b"\x00" * 64)

    facts = ContentInspector().inspect(path)

    assert facts.sample is None
    assert facts.mime_category == "application"


def test_inspector_computes_age_from_clock(tmp_path: Path) -> None:
    path = tmp_path / "old.txt"
    path.write_text("x", encoding="utf-8")
    stamp = datetime(2020, 1, 1, tzinfo=timezone.utc).timestamp()
    os.utime(path, (stamp, stamp))

    facts = ContentInspector(now=datetime(2020, 1, 20, tzinfo=timezone.utc)).inspect(path)

    assert facts.age_days == 19
    assert facts.age_class == "this_month"


def test_inspector_extracts_image_metadata(tmp_path: Path) -> None:
    path = tmp_path / "IMG_0001.jpg"
    image = Image.new("RGB", (400, 300), color="blue")
    exif = Image.Exif()
    exif[0x010F] = "Canon"  # Make
    image.save(path, exif=exif)

    facts = ContentInspector().inspect(path)

    assert facts.mime_type == "image/jpeg"
    assert (facts.image_width, facts.image_height) == (400, 300)
    assert facts.camera is not None and "Canon" in facts.camera


def test_inspector_degrades_for_unreadable_files(tmp_path: Path) -> None:
    missing = tmp_path / "vanished.txt"

    facts = ContentInspector().inspect(missing)

    assert not facts.readable
    assert facts.size_class == "unknown"
    assert facts.age_class == "unknown"
    assert facts.mime_type == "text/plain"
    assert facts.error


def test_scanner_honours_depth_hidden_and_exclusions(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / ".hidden").write_text("h", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.txt").write_text("b", encoding="utf-8")
    (tmp_path / ".tidyup").mkdir()
    (tmp_path / ".tidyup" / "journal.jsonl").write_text("", encoding="utf-8")

    flat = DirectoryScanner(recursive=False, include_hidden=False, follow_symlinks=False)
    deep = DirectoryScanner(
        recursive=True,
        include_hidden=True,
        follow_symlinks=False,
        excluded_dirnames=[".tidyup"],
    )

    assert [item.path.name for item in flat.scan(tmp_path)] == ["a.txt"]
    assert sorted(item.path.name for item in deep.scan(tmp_path)) == [".hidden", "a.txt", "b.txt"]


def test_analyze_directory_counts_marker_kinds(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[project]\n", encoding="utf-8")
    (tmp_path / "requirements.txt").write_text("click\n", encoding="utf-8")
    (tmp_path / "Makefile").write_text("all:\n", encoding="utf-8")
    (tmp_path / "main.py").write_text("print(1)\n", encoding="utf-8")

    analysis = analyze_directory(tmp_path)

    assert analysis.marker_kinds == ["package_manifest", "requirements", "build_manifest"]
    assert analysis.is_project
    assert "python" in analysis.project_indicators
    assert analysis.total_files == 4


def test_analyze_directory_without_markers_is_not_a_project(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")

    analysis = analyze_directory(tmp_path)

    assert analysis.marker_kinds == ["package_manifest", "git"]
    assert not analysis.is_project


def test_recent_files_are_today(tmp_path: Path) -> None:
    path = tmp_path / "fresh.txt"
    path.write_text("x", encoding="utf-8")
    later = datetime.now(timezone.utc) + timedelta(hours=2)

    assert ContentInspector(now=later).inspect(path).age_class == "today"
