from __future__ import annotations

import json
from pathlib import Path

import brotli
import pytest
from typer.testing import CliRunner

from sizetrack.cli import app

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    build = tmp_path / "build"
    build.mkdir()
    (build / "main.js").write_text("console.log('hello');\n" * 20, encoding="utf-8")
    (build / "notes.txt").write_text("not tracked", encoding="utf-8")
    return tmp_path


def test_report_prints_sizes_and_saves_in_production(workspace: Path) -> None:
    result = runner.invoke(app, ["report", "build", "--mode", "production"])

    assert result.exit_code == 0, result.output
    assert "main.js" in result.output
    assert "notes.txt" not in result.output

    stored = json.loads((workspace / "size-plugin.json").read_text(encoding="utf-8"))
    assert stored[0]["files"][0]["filename"] == "main.js"
    assert stored[0]["files"][0]["previous"] == 0


def test_report_does_not_save_outside_production(workspace: Path) -> None:
    result = runner.invoke(app, ["report", "build", "--mode", "development"])

    assert result.exit_code == 0, result.output
    assert not (workspace / "size-plugin.json").exists()


def test_report_no_write_flag(workspace: Path) -> None:
    result = runner.invoke(app, ["report", "build", "--mode", "production", "--no-write"])

    assert result.exit_code == 0, result.output
    assert not (workspace / "size-plugin.json").exists()


def test_report_rejects_unknown_compression(workspace: Path) -> None:
    result = runner.invoke(app, ["report", "build", "--compression", "zip"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_report_missing_build_dir(workspace: Path) -> None:
    result = runner.invoke(app, ["report", "missing"])

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_history_lists_snapshots(workspace: Path) -> None:
    runner.invoke(app, ["report", "build", "--mode", "production"])

    result = runner.invoke(app, ["history"])

    assert result.exit_code == 0, result.output
    assert "main.js" in result.output


def test_history_without_snapshots(workspace: Path) -> None:
    result = runner.invoke(app, ["history"])

    assert result.exit_code == 0
    assert "No snapshots recorded" in result.output


def test_history_uses_filename_from_config_file(workspace: Path) -> None:
    (workspace / ".sizetrack.json").write_text(json.dumps({"filename": "sizes.json"}), encoding="utf-8")
    runner.invoke(app, ["report", "build", "--mode", "production"])
    assert (workspace / "sizes.json").exists()

    result = runner.invoke(app, ["history"])

    assert result.exit_code == 0, result.output
    assert "main.js" in result.output


@pytest.mark.parametrize(
    "error",
    [ValueError("bad [/x] value"), brotli.error("bad [/x] value")],
)
def test_report_failures_exit_with_escaped_message(
    workspace: Path, monkeypatch: pytest.MonkeyPatch, error: Exception
) -> None:
    async def failing(self, *args, **kwargs) -> str:
        raise error

    monkeypatch.setattr("sizetrack.cli.SizeTracker.output_sizes", failing)

    result = runner.invoke(app, ["report", "build"])

    assert result.exit_code == 1
    assert "Size tracking failed: bad [/x] value" in result.output
