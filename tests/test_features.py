"""Feature extraction tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from tidyup.classification.features import (
    FeatureExtractor,
    directory_context_for,
    image_shape_for,
    language_for,
    looks_like_config,
    looks_like_data,
    match_name_pattern,
    normalize_extension,
)
from tidyup.inspection.models import ContentFacts

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _facts(name: str, **overrides) -> ContentFacts:
    values = {
        "path": Path("/data/inbox") / name,
        "size_bytes": 10,
        "size_class": "tiny",
        "mime_type": "text/plain",
        "modified_at": NOW - timedelta(days=3),
        "age_days": 3,
        "age_class": "this_week",
    }
    values.update(overrides)
    return ContentFacts(**values)


@pytest.mark.parametrize(
    ("filename", "expected"),
    [("photo.JPEG", "jpg"), ("conf.YML", "yaml"), ("page.htm", "html"), ("scan.tif", "tiff"),
     ("Makefile", ""), (".bashrc", "")],
)
def test_normalize_extension(filename: str, expected: str) -> None:
    assert normalize_extension(filename) == expected


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("Screenshot 2024-01-02 at 10.00.00.png", "screenshot"),
        ("report.bak", "backup"),
        ("download.crdownload", "temporary"),
        ("test_parser.py", "test"),
        ("app_config.json", "config"),
        (".bashrc.conf", "config"),
        ("README.md", "documentation"),
        ("LICENSE", "legal"),
        ("invoice_2024-03-15.pdf", "dated"),
        ("design_v2.sketch", "versioned"),
        ("essay_draft.docx", "draft"),
        ("report_final.txt", "final"),
        ("holiday.jpg", "none"),
    ],
)
def test_match_name_pattern(filename: str, expected: str) -> None:
    assert match_name_pattern(filename) == expected


def test_name_patterns_are_checked_in_priority_order() -> None:
    # Both "backup" and "final" appear; backup is checked first.
    assert match_name_pattern("final_backup.zip") == "backup"
    # Screenshots win over dated names.
    assert match_name_pattern("screenshot_2024-01-01.png") == "screenshot"


def test_directory_context_mapping() -> None:
    assert directory_context_for("Downloads") == "downloads"
    assert directory_context_for("Photos") == "pictures"
    assert directory_context_for("src") == "project"
    assert directory_context_for("clients") == "work"
    assert directory_context_for("random") == "none"
    assert directory_context_for(None) == "none"


def test_image_shape_buckets() -> None:
    assert image_shape_for(128, 96) == "thumbnail"
    assert image_shape_for(4000, 1000) == "wide"
    assert image_shape_for(1000, 3000) == "portrait"
    assert image_shape_for(4000, 3000) == "standard"
    assert image_shape_for(None, 10) is None


def test_language_from_extension_then_shebang() -> None:
    assert language_for("py", None) == "python"
    assert language_for("", "#!/usr/bin/env python3\nprint(1)\n") == "python"
    assert language_for("", "#!/bin/bash\necho hi\n") == "shell"
    assert language_for("", "plain text") is None


def test_content_markers() -> None:
    assert looks_like_config("[core]\nname = x\n")
    assert looks_like_config("HOST=localhost\nPORT=8080\n")
    assert not looks_like_config("alias ll='ls -la'\n")
    assert looks_like_data('{"a": 1}')
    assert looks_like_data("a,b\n1,2\n3,4\n")
    assert not looks_like_data("just a sentence, with a comma\n")


def test_extract_builds_frozen_feature_set() -> None:
    facts = _facts("report_final.txt", sample="Quarterly numbers\n")

    features = FeatureExtractor(now=NOW).extract(facts)

    assert features.filename == "report_final.txt"
    assert features.extension == "txt"
    assert features.mime_category == "text"
    assert features.mime_subtype == "plain"
    assert features.name_pattern == "final"
    assert features.directory_context == "none"
    assert features.language is None
    assert not features.modified_recently
    with pytest.raises(ValidationError):
        features.extension = "pdf"  # type: ignore[misc]


def test_extract_uses_parent_directory_and_recency() -> None:
    facts = _facts("notes.md", modified_at=NOW - timedelta(minutes=5), sample="# Title\n\nBody\n")

    features = FeatureExtractor(now=NOW).extract(facts, parent_name="Documents")

    assert features.directory_context == "documents"
    assert features.doc_marker
    assert features.modified_recently


def test_structured_extensions_do_not_count_as_documents() -> None:
    facts = _facts(
        "settings.ini",
        mime_type="text/x-config",
        sample="# comment\n[main]\nkey = value\n",
    )

    features = FeatureExtractor(now=NOW).extract(facts)

    assert features.config_content
    assert not features.doc_marker
    assert not features.data_content
