"""Tests for the manuscript-binder CLI."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from manuscript_binder.cli import app
from manuscript_binder.config import PROJECT_FILENAME

runner = CliRunner()


def _init(tmp_path: Path) -> Path:
    """Helper: create a project, return its data dir."""
    data = tmp_path / "novel"
    result = runner.invoke(app, ["init", "--data-dir", str(data)])
    assert result.exit_code == 0, result.output
    return data


def _snapshot(data: Path) -> dict:
    return json.loads((data / PROJECT_FILENAME).read_text())


def test_init_creates_project_file(tmp_path: Path) -> None:
    data = _init(tmp_path)
    snapshot = _snapshot(data)
    assert snapshot["root_ids"] == ["root-draft", "root-research", "root-trash"]


def test_init_refuses_to_overwrite(tmp_path: Path) -> None:
    data = _init(tmp_path)
    result = runner.invoke(app, ["init", "--data-dir", str(data)])
    assert result.exit_code == 1


def test_commands_require_project(tmp_path: Path) -> None:
    result = runner.invoke(app, ["show", "--data-dir", str(tmp_path / "none")])
    assert result.exit_code == 1


def test_add_and_show(tmp_path: Path) -> None:
    data = _init(tmp_path)
    result = runner.invoke(
        app, ["add", "root-draft", "Part One", "--kind", "folder", "--data-dir", str(data)]
    )
    assert result.exit_code == 0, result.output
    new_id = result.output.strip()
    assert _snapshot(data)["items"]["root-draft"]["children"] == [new_id]

    result = runner.invoke(app, ["show", "--data-dir", str(data)])
    assert result.exit_code == 0, result.output
    assert "Part One (folder)" in result.output
    assert "Research" in result.output


def test_import_then_search(tmp_path: Path) -> None:
    data = _init(tmp_path)
    source = tmp_path / "paste.txt"
    source.write_text("# The Incident\nIt was dark\n# The Journey\nThey left\n")

    result = runner.invoke(app, ["import", "root-draft", str(source), "--data-dir", str(data)])
    assert result.exit_code == 0, result.output
    assert "Imported 2 documents" in result.output

    result = runner.invoke(app, ["search", "incident", "--json", "--data-dir", str(data)])
    assert result.exit_code == 0, result.output
    titles = [r["title"] for r in json.loads(result.output)["results"]]
    assert titles == ["Draft", "The Incident"]


def test_move_into_root_sibling_slot_fails(tmp_path: Path) -> None:
    data = _init(tmp_path)
    new_id = runner.invoke(app, ["add", "root-draft", "Scene", "--data-dir", str(data)])
    new_id_str = new_id.output.strip()
    result = runner.invoke(
        app,
        ["move", new_id_str, "root-research", "--position", "after", "--data-dir", str(data)],
    )
    assert result.exit_code == 1
    assert _snapshot(data)["items"][new_id_str]["parent_id"] == "root-draft"


def test_delete_and_merge(tmp_path: Path) -> None:
    data = _init(tmp_path)
    a = runner.invoke(app, ["add", "root-draft", "A", "--data-dir", str(data)]).output.strip()
    b = runner.invoke(app, ["add", "root-draft", "B", "--data-dir", str(data)]).output.strip()
    c = runner.invoke(app, ["add", "root-draft", "C", "--data-dir", str(data)]).output.strip()

    result = runner.invoke(app, ["delete", c, "--data-dir", str(data)])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["merge", a, b, "--data-dir", str(data)])
    assert result.exit_code == 0, result.output

    snapshot = _snapshot(data)
    assert snapshot["items"]["root-draft"]["children"] == [a]
    assert snapshot["items"]["root-trash"]["children"] == [c]
    assert b not in snapshot["items"]
    assert snapshot["navigation"]["selection"] == [a]


def test_delete_root_fails(tmp_path: Path) -> None:
    data = _init(tmp_path)
    result = runner.invoke(app, ["delete", "root-trash", "--data-dir", str(data)])
    assert result.exit_code == 1


def test_check_and_repair(tmp_path: Path) -> None:
    data = _init(tmp_path)
    path = data / PROJECT_FILENAME
    snapshot = _snapshot(data)
    snapshot["items"]["root-draft"]["children"] = ["ghost"]
    path.write_text(json.dumps(snapshot))

    result = runner.invoke(app, ["check", "--data-dir", str(data)])
    assert result.exit_code == 1

    result = runner.invoke(app, ["check", "--repair", "--data-dir", str(data)])
    assert result.exit_code == 0, result.output
    assert _snapshot(data)["items"]["root-draft"]["children"] == []


@pytest.mark.parametrize("content", ["{not json", "[]", '{"items": [], "root_ids": []}'])
def test_corrupt_project_file_exits_cleanly(tmp_path: Path, content: str) -> None:
    data = _init(tmp_path)
    (data / PROJECT_FILENAME).write_text(content)
    result = runner.invoke(app, ["show", "--data-dir", str(data)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
