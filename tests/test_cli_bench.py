"""Tests for the 'graph' and 'bench' CLI command groups."""

import json

import pytest
from typer.testing import CliRunner

from cli.main import app

runner = CliRunner()

SMALL = ["--persons", "10", "--items", "5", "--likes", "3", "--seed", "42"]


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Point the default database at a temporary workspace."""
    monkeypatch.setattr("graphbench.config.settings.workspace_dir", tmp_path)
    return tmp_path


def test_bench_list():
    result = runner.invoke(app, ["bench", "list"])
    assert result.exit_code == 0
    for name in ("ordered", "unordered", "recommendation", "recommendation-weighted"):
        assert name in result.stdout


def test_bench_run_in_memory():
    result = runner.invoke(
        app, ["bench", "run", "recommendation", "--warmup", "0", "--iterations", "2", *SMALL]
    )
    assert result.exit_code == 0
    assert "[bench] recommendation" in result.stdout


def test_bench_run_json():
    result = runner.invoke(
        app,
        ["bench", "run", "ordered", "--repeat", "5", "--warmup", "0", "--iterations", "1", "--json", *SMALL],
    )
    assert result.exit_code == 0
    lines = [line for line in result.stdout.splitlines() if line.startswith("{")]
    data = json.loads(lines[-1])
    assert data["name"] == "ordered"
    assert data["last_count"] == 15


def test_bench_run_unknown_name():
    result = runner.invoke(app, ["bench", "run", "pagerank", *SMALL])
    assert result.exit_code == 1
    assert "Unknown benchmark" in result.stdout


def test_bench_run_empty_domain():
    result = runner.invoke(
        app, ["bench", "run", "ordered", "--persons", "3", "--items", "0", "--likes", "2"]
    )
    assert result.exit_code == 1
    assert "Graph setup failed" in result.stdout


def test_bench_run_missing_db(tmp_path):
    result = runner.invoke(app, ["bench", "run", "--db", str(tmp_path / "nope.db")])
    assert result.exit_code == 1
    assert "No graph" in result.stdout


def test_graph_generate_and_stats(workspace):
    result = runner.invoke(app, ["graph", "generate", *SMALL])
    assert result.exit_code == 0
    assert "Created 10 persons and 5 items" in result.stdout

    result = runner.invoke(app, ["graph", "stats"])
    assert result.exit_code == 0
    assert "Person vertices : 10" in result.stdout
    assert "Item vertices   : 5" in result.stdout
    assert "LIKES edges     : 30" in result.stdout
    assert "UNIQUE Item.id" in result.stdout


def test_graph_generate_refuses_existing(workspace):
    assert runner.invoke(app, ["graph", "generate", *SMALL]).exit_code == 0
    result = runner.invoke(app, ["graph", "generate", *SMALL])
    assert result.exit_code == 1
    assert "already exists" in result.stdout

    result = runner.invoke(app, ["graph", "generate", "--force", *SMALL])
    assert result.exit_code == 0


def test_bench_run_reuses_db(workspace):
    db = workspace / "bench.db"
    assert runner.invoke(app, ["graph", "generate", "--db", str(db), *SMALL]).exit_code == 0
    result = runner.invoke(
        app,
        ["bench", "run", "ordered", "--db", str(db), "--repeat", "4", "--warmup", "0", "--iterations", "1", "--json"],
    )
    assert result.exit_code == 0
    lines = [line for line in result.stdout.splitlines() if line.startswith("{")]
    assert json.loads(lines[-1])["last_count"] == 12


def test_graph_stats_missing(workspace):
    result = runner.invoke(app, ["graph", "stats"])
    assert result.exit_code == 1
    assert "No graph" in result.stdout


def test_graph_show_degrees(workspace):
    assert runner.invoke(app, ["graph", "generate", *SMALL]).exit_code == 0
    # Items are created first, so the first Person follows the five Items.
    result = runner.invoke(app, ["graph", "show", "6"])
    assert result.exit_code == 0
    assert "[Person] 6" in result.stdout
    assert "LIKES out  : 3" in result.stdout
    assert "LIKES in   : 0" in result.stdout
    assert "LIKES both : 3" in result.stdout


def test_graph_show_unknown_vertex(workspace):
    assert runner.invoke(app, ["graph", "generate", *SMALL]).exit_code == 0
    result = runner.invoke(app, ["graph", "show", "999"])
    assert result.exit_code == 1
    assert "Vertex not found: 999" in result.stdout


def test_invalid_log_level(monkeypatch):
    monkeypatch.setattr("graphbench.config.settings.log_level", "verbose")
    result = runner.invoke(app, ["bench", "list"])
    assert result.exit_code == 1
    assert "Invalid GRAPHBENCH_LOG_LEVEL 'verbose'" in result.stdout
