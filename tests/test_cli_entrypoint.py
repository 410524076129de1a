from __future__ import annotations

import importlib
import json
from pathlib import Path

import pytest


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("minebot.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_plan_command_prints_planner_decision() -> None:
    from typer.testing import CliRunner

    from minebot.main import app

    result = CliRunner().invoke(app, ["plan", "--inventory", json.dumps({"birch_log": 2})])

    assert result.exit_code == 0
    assert "birch_planks" in result.output


def test_plan_command_rejects_bad_inventory() -> None:
    from typer.testing import CliRunner

    from minebot.main import app

    result = CliRunner().invoke(app, ["plan", "--inventory", "[1, 2]"])

    assert result.exit_code != 0


def test_parse_response_command() -> None:
    from typer.testing import CliRunner

    from minebot.main import app

    runner = CliRunner()
    ok = runner.invoke(app, ["parse-response", '```json\n{"action":"mine","target":"oak_log"}\n```'])
    bad = runner.invoke(app, ["parse-response", '{"action":"dance"}'])

    assert ok.exit_code == 0
    assert "oak_log" in ok.output
    assert bad.exit_code == 1
    assert "ReasoningInvalidAction" in bad.output


def test_run_command_drives_simulated_world(tmp_path: Path, monkeypatch) -> None:
    from typer.testing import CliRunner

    from minebot import main

    history_file = tmp_path / "ticks.jsonl"
    settings = main.settings.model_copy(
        update={
            "reasoning_enabled": False,
            "initial_delay_seconds": 0,
            "think_interval_seconds": 0.001,
            "history_path": str(history_file),
        }
    )
    monkeypatch.setattr(main, "settings", settings)

    result = CliRunner().invoke(main.app, ["run", "--simulated", "--ticks", "2"])
    shown = CliRunner().invoke(main.app, ["history", "--limit", "5"])

    assert result.exit_code == 0, result.output
    assert "completed_ticks" in result.output
    assert len(history_file.read_text(encoding="utf-8").splitlines()) == 2
    assert shown.exit_code == 0
    assert "oak_log" in shown.output
