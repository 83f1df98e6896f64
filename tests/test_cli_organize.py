"""CLI tests for organize, undo, history, and model commands."""

import json
import os
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from tidyup.cli import cli
from tidyup.state import JournalError, JournalWriter


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    return env


def _inbox(tmp_path: Path) -> Path:
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    (inbox / "notes.txt").write_text("hello", encoding="utf-8")
    (inbox / "song.mp3").write_text("ID3", encoding="utf-8")
    return inbox


def test_organize_json_reports_moves(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    result = runner.invoke(cli, ["organize", str(inbox), "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["context"]["mode"] == "auto"
    assert payload["context"]["block_id"]
    assert payload["counts"]["moved"] == 2
    assert {entry["action"] for entry in payload["files"]} == {"move"}
    assert (inbox / "documents" / "general" / "notes.txt").exists()
    assert (tmp_path / "home" / ".tidyup" / "confidence-model.json").exists()


def test_organize_text_output_lists_moves(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    result = runner.invoke(cli, ["organize", str(inbox), "--mode", "type"], env=env)

    assert result.exit_code == 0, result.output
    assert "Organization summary" in result.output
    assert (inbox / "by-type" / "mp3" / "song.mp3").exists()


def test_organize_dry_run_leaves_files(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    result = runner.invoke(cli, ["organize", str(inbox), "--dry-run"], env=env)

    assert result.exit_code == 0, result.output
    assert "Dry run selected" in result.output
    assert (inbox / "notes.txt").exists()
    assert not (inbox / ".tidyup").exists()
    assert not (tmp_path / "home" / ".tidyup" / "confidence-model.json").exists()


def test_organize_dry_run_json_counts_planned(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    result = runner.invoke(cli, ["organize", str(inbox), "-d", "--json"], env=env)

    payload = json.loads(result.output)
    assert payload["counts"]["dry_run"] is True
    assert payload["counts"]["planned"] == 2
    assert payload["context"]["block_id"] is None


def test_organize_missing_directory_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["organize", str(tmp_path / "nope")], env=env)

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_organize_missing_directory_json_error(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["organize", str(tmp_path / "nope"), "--json"], env=env)

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "input_error"


def test_organize_rejects_unknown_mode(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    result = runner.invoke(cli, ["organize", str(inbox), "--mode", "alphabetical"], env=env)

    assert result.exit_code == 2
    assert (inbox / "notes.txt").exists()


def test_organize_json_and_quiet_conflict(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    result = runner.invoke(cli, ["organize", str(inbox), "--json", "--quiet"], env=env)

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "cli_error"


def test_organize_with_custom_rules_file(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)
    rules = tmp_path / "rules.yaml"
    rules.write_text(
        "- pattern: 'notes*'\n  category: personal\n  destination: personal/notes\n",
        encoding="utf-8",
    )

    result = runner.invoke(cli, ["organize", str(inbox), "-c", str(rules), "--json"], env=env)

    assert result.exit_code == 0, result.output
    assert (inbox / "personal" / "notes" / "notes.txt").exists()


def test_organize_exits_non_zero_when_moves_fail(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    def failing_append(self, record):
        raise JournalError("read-only")

    monkeypatch.setattr(JournalWriter, "append", failing_append)

    result = runner.invoke(cli, ["organize", str(inbox)], env=env)

    assert result.exit_code == 1
    assert "Errors encountered" in result.output
    assert (inbox / "notes.txt").exists()


def test_undo_command_restores_last_run(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)
    runner.invoke(cli, ["organize", str(inbox)], env=env)

    result = runner.invoke(cli, ["undo", str(inbox), "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["counts"] == {"restored": 2, "skipped": 0}
    assert (inbox / "notes.txt").exists()
    assert (inbox / "song.mp3").exists()


def test_organize_undo_flag_restores_last_run(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)
    runner.invoke(cli, ["organize", str(inbox)], env=env)

    result = runner.invoke(cli, ["organize", str(inbox), "--undo"], env=env)

    assert result.exit_code == 0, result.output
    assert "Undo summary" in result.output
    assert (inbox / "notes.txt").exists()


def test_undo_without_history_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    result = runner.invoke(cli, ["undo", str(inbox)], env=env)

    assert result.exit_code == 1
    assert "No organization history" in result.output


def test_history_lists_runs_newest_first(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)
    runner.invoke(cli, ["organize", str(inbox), "--mode", "type"], env=env)
    (inbox / "late.txt").write_text("late", encoding="utf-8")
    runner.invoke(cli, ["organize", str(inbox)], env=env)

    result = runner.invoke(cli, ["history", str(inbox), "--json"], env=env)

    assert result.exit_code == 0, result.output
    blocks = json.loads(result.output)["blocks"]
    assert [block["header"]["mode"] for block in blocks] == ["auto", "type"]
    assert blocks[1]["header"]["file_count"] == 2

    limited = runner.invoke(cli, ["history", str(inbox), "--json", "-n", "1"], env=env)
    assert len(json.loads(limited.output)["blocks"]) == 1


def test_history_without_runs(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    inbox = _inbox(tmp_path)

    result = runner.invoke(cli, ["history", str(inbox)], env=env)

    assert result.exit_code == 0
    assert "No organization history" in result.output


def test_model_command_shows_thresholds(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["model", "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["thresholds"]["images"] == 85
    assert payload["learned_patterns"] == []

    table = runner.invoke(cli, ["model"], env=env)
    assert table.exit_code == 0
    assert "Confidence model" in table.output
