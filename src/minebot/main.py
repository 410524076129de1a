"""CLI startup entrypoint for MineBot."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from pathlib import Path

import typer
from rich import print

from minebot.adapters import ModHttpWorld, SimulatedWorld, build_world
from minebot.adapters.world import WorldCapability
from minebot.config import Settings, settings
from minebot.errors import ReasoningError, WorldUnavailableError
from minebot.history import ActionHistoryStore, InMemoryHistoryStore, JsonlHistoryStore
from minebot.inventory import analyze_inventory
from minebot.loop import prepare_agent
from minebot.planning import Defer, GoalPlanner, PlannerThresholds, Reachability
from minebot.reasoning import OllamaReasoningClient, parse_decision
from minebot.telemetry import configure_logging

app = typer.Typer(help="MineBot autonomous agent entrypoint")


def _build_history(config: Settings) -> ActionHistoryStore:
    if config.history_path:
        return JsonlHistoryStore(config.history_path)
    return InMemoryHistoryStore()


async def _close(*resources: object) -> None:
    for resource in resources:
        aclose = getattr(resource, "aclose", None)
        if aclose is not None:
            await aclose()


@app.command()
def start() -> None:
    """Show runtime backend configuration."""
    print(
        {
            "app_name": settings.app_name,
            "world_backend": settings.world_backend,
            "mod_url": settings.mod_url,
            "reasoning_enabled": settings.reasoning_enabled,
            "ollama_url": settings.ollama_url,
            "ollama_model": settings.ollama_model,
            "planner_tail": settings.planner_tail,
            "think_interval_seconds": settings.think_interval_seconds,
            "history_path": settings.history_path,
        }
    )


@app.command()
def check() -> None:
    """Probe the world capability and the reasoning service."""
    world = build_world(settings)
    reasoning = OllamaReasoningClient.from_settings(settings)

    async def _run() -> dict:
        try:
            world_up = await world.ping()
            probe = await reasoning.probe()
        finally:
            await _close(world, reasoning)
        return {
            "world": {"backend": settings.world_backend, "reachable": world_up},
            "reasoning": {
                "reachable": probe.reachable,
                "model": reasoning.model,
                "model_available": probe.model_available,
                "models": list(probe.models),
                "error": probe.error,
            },
        }

    report = asyncio.run(_run())
    print(report)
    if not report["world"]["reachable"]:
        raise typer.Exit(code=1)


@app.command()
def plan(
    inventory: str = typer.Option("{}", help='Inventory JSON object, e.g. {"oak_log": 2}'),
    station_near: bool = typer.Option(False, help="A crafting table is within reach"),
    station_far: bool = typer.Option(False, help="A crafting table is known further away"),
    nearest_log: str = typer.Option(None, help="Nearest visible log species"),
    tail: str = typer.Option(None, help="defer/explore; defaults to the configured tail"),
) -> None:
    """Run the deterministic planner once."""
    try:
        listing = json.loads(inventory)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Inventory is not valid JSON: {exc.msg}") from exc
    if not isinstance(listing, dict):
        raise typer.BadParameter("Inventory must be a JSON object of item -> count")

    thresholds = PlannerThresholds.from_settings(settings)
    if tail:
        if tail not in ("defer", "explore"):
            raise typer.BadParameter("tail must be 'defer' or 'explore'")
        thresholds = replace(thresholds, tail=tail)

    facts = analyze_inventory(listing)
    reach = Reachability(station_near=station_near, station_far=station_far, nearest_log=nearest_log)
    outcome = GoalPlanner(thresholds).plan(facts, reach)
    if isinstance(outcome, Defer):
        print({"decision": None, "deferred": outcome.reason})
        return
    print({"decision": outcome.to_payload()})


@app.command("parse-response")
def parse_response(text: str = typer.Argument(..., help="Raw model output to repair and validate")) -> None:
    """Run the response repair pipeline on raw model text."""
    try:
        decision = parse_decision(text)
    except ReasoningError as exc:
        print({"error_kind": exc.kind.value, "error": str(exc)})
        raise typer.Exit(code=1)
    print({"decision": decision.to_payload()})


@app.command()
def run(
    ticks: int = typer.Option(None, help="Stop after this many completed ticks"),
    simulated: bool = typer.Option(False, help="Use the in-process simulated world"),
) -> None:
    """Start the cognitive loop."""
    configure_logging(settings.log_level)
    world: WorldCapability = SimulatedWorld.starter() if simulated else build_world(settings)
    reasoning = OllamaReasoningClient.from_settings(settings) if settings.reasoning_enabled else None
    history = _build_history(settings)

    async def _run() -> int:
        try:
            if isinstance(world, ModHttpWorld):
                await world.wait_for_connection(settings.world_connect_timeout_seconds)
            loop = await prepare_agent(world, settings, reasoning, history=history)
            try:
                await loop.run(max_ticks=ticks)
            finally:
                await loop.stop()
            return loop.completed_ticks
        finally:
            await _close(world, reasoning)

    try:
        completed = asyncio.run(_run())
    except WorldUnavailableError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        print({"loop": "interrupted"})
        return
    print({"loop": "stopped", "completed_ticks": completed})


@app.command()
def history(
    limit: int = typer.Option(20, help="How many records to show"),
    history_file: str = typer.Option(None, help="JSONL history file; defaults to MINEBOT_HISTORY_PATH"),
) -> None:
    """Show the most recent tick records."""
    path = history_file or settings.history_path
    if not path:
        raise typer.BadParameter("Provide --history-file or set MINEBOT_HISTORY_PATH")
    if not Path(path).exists():
        print({"history": []})
        return

    records = JsonlHistoryStore(path).list_recent(limit)
    print({"history": [record.to_payload() for record in records]})


if __name__ == "__main__":
    app()
