import asyncio
from pathlib import Path

import pytest
from typer.testing import CliRunner

import stepwise.persistence as persistence
from stepwise import ExecutionRecord
from stepwise.cli import app
from stepwise.persistence import InMemoryStateStore

FIXTURES = str(Path(__file__).resolve().parents[1] / "fixtures")


@pytest.fixture
def repo(monkeypatch) -> InMemoryStateStore:
    store = InMemoryStateStore()
    monkeypatch.setattr(persistence, "_store_instance", store)
    return store


def test_list_runs(repo):
    completed = ExecutionRecord.new({}, ["echo"])
    completed.completed = True
    pending = ExecutionRecord.new({}, ["echo"])
    asyncio.run(repo.save_state(completed))
    asyncio.run(repo.save_state(pending))

    runner = CliRunner()
    result = runner.invoke(app, ["run", "list"])
    assert result.exit_code == 0, result.output
    assert f"{completed.id}\tcompleted" in result.output
    assert f"{pending.id}\tpending" in result.output


def test_list_runs_empty(repo):
    result = CliRunner().invoke(app, ["run", "list"])
    assert result.exit_code == 0
    assert "No runs found" in result.output


def test_show_run_and_missing(repo):
    record = ExecutionRecord.new({"foo": "bar"}, ["echo", "boom"])
    record.step(0).start()
    record.step(0).succeed({"foo": "bar"})
    asyncio.run(repo.save_state(record))

    runner = CliRunner()
    result = runner.invoke(app, ["run", "show", record.id])
    assert result.exit_code == 0, result.output
    assert f"Run {record.id}: running" in result.output
    assert "[0] echo: succeeded (attempts: 1)" in result.output
    assert "[1] boom: not_executed" in result.output

    missing = runner.invoke(app, ["run", "show", "missing-id"])
    assert missing.exit_code == 1
    assert "Run not found" in missing.output


def test_execute_and_resume(repo):
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "run",
            "execute",
            "cli_actions:REGISTRY",
            "--input",
            '{"a": 1}',
            "-a",
            "echo",
            "-a",
            "echo",
            "--base-path",
            FIXTURES,
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Run completed" in result.output

    (record,) = asyncio.run(repo.list_states())
    assert record.completed is True

    resumed = runner.invoke(
        app, ["run", "resume", record.id, "cli_actions:REGISTRY", "--base-path", FIXTURES]
    )
    assert resumed.exit_code == 0, resumed.output
    assert f"Run {record.id} completed after 1 attempt(s)" in resumed.output


def test_execute_failure_reports_run_id(repo):
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["run", "execute", "cli_actions:REGISTRY", "-a", "boom", "--base-path", FIXTURES],
    )
    assert result.exit_code == 1
    (record,) = asyncio.run(repo.list_states())
    assert f"Run ID: {record.id}" in result.output
    assert record.step(0).output == {"partial": True}

    resumed = runner.invoke(
        app,
        ["run", "resume", record.id, "cli_actions:REGISTRY", "--retries", "3", "--base-path", FIXTURES],
    )
    assert resumed.exit_code == 1
    assert asyncio.run(repo.restore_state(record.id)).step(0).attempts == 4


def test_execute_rejects_bad_input(repo):
    runner = CliRunner()
    result = runner.invoke(
        app, ["run", "execute", "cli_actions:REGISTRY", "--input", "[1, 2]", "--base-path", FIXTURES]
    )
    assert result.exit_code == 2
    assert "Input must be a JSON object" in result.output


def test_resume_unknown_run(repo):
    result = CliRunner().invoke(
        app, ["run", "resume", "nope", "cli_actions:REGISTRY", "--base-path", FIXTURES]
    )
    assert result.exit_code == 1
    assert "Run not found" in result.output


def test_bad_registry_path(repo):
    result = CliRunner().invoke(app, ["run", "execute", "no_colon_here"])
    assert result.exit_code == 2
    assert "Cannot load actions" in result.output


def test_invalid_log_level_is_reported(repo, monkeypatch):
    monkeypatch.setenv("STEPWISE_LOG_LEVEL", "verbose")

    result = CliRunner().invoke(app, ["run", "list"])
    assert result.exit_code == 2
    assert "Invalid configuration" in result.output
    assert "log_level" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
