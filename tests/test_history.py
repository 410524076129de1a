from __future__ import annotations

import asyncio
from pathlib import Path

from minebot.adapters import SimulatedWorld
from minebot.config import Settings
from minebot.errors import ErrorKind
from minebot.history import ActionRecord, InMemoryHistoryStore, JsonlHistoryStore
from minebot.loop import CognitiveLoop
from minebot.models import ActionKind, ActionResult, Decision, DecisionSource


def _record(tick: int, result: ActionResult | None = None) -> ActionRecord:
    decision = Decision(ActionKind.MINE, "oak_log", "Need wood for tools")
    return ActionRecord(
        tick=tick,
        source=DecisionSource.PLANNER,
        decision=decision,
        result=result or ActionResult.ok(decision),
    )


def test_jsonl_history_store_roundtrip(tmp_path: Path) -> None:
    store = JsonlHistoryStore(tmp_path / "history" / "ticks.jsonl")
    failed = ActionResult.failed(ErrorKind.ACTION_TIMEOUT, "too slow", action=ActionKind.MINE, target="oak_log")

    store.append(_record(1))
    store.append(_record(2, failed))

    recent = store.list_recent(limit=5)
    assert [record.tick for record in recent] == [2, 1]
    assert recent[0].result == failed
    assert recent[0].decision == Decision(ActionKind.MINE, "oak_log", "Need wood for tools")
    assert recent[1].result.success


def test_loop_error_result_survives_roundtrip(tmp_path: Path) -> None:
    store = JsonlHistoryStore(tmp_path / "ticks.jsonl")
    error = ActionResult.failed(ErrorKind.LOOP_ERROR, "RuntimeError: boom")

    store.append(_record(1, error))

    assert store.list_recent(1)[0].result == error


def test_missing_history_file_is_empty(tmp_path: Path) -> None:
    assert JsonlHistoryStore(tmp_path / "absent.jsonl").list_recent(10) == []


def test_in_memory_store_is_bounded_newest_first() -> None:
    store = InMemoryHistoryStore(max_records=2)
    for tick in (1, 2, 3):
        store.append(_record(tick))

    assert [record.tick for record in store.list_recent(10)] == [3, 2]


def test_loop_persists_ticks_to_jsonl(tmp_path: Path) -> None:
    store = JsonlHistoryStore(tmp_path / "ticks.jsonl")
    loop = CognitiveLoop.assemble(
        SimulatedWorld.starter(),
        Settings(reasoning_enabled=False),
        None,
        reasoning_available=False,
        history=store,
    )

    async def _run() -> None:
        await loop.tick()
        await loop.tick()

    asyncio.run(_run())

    recent = store.list_recent(10)
    assert [record.tick for record in recent] == [2, 1]
    assert recent[1].decision.action is ActionKind.MINE
    assert recent[0].decision.action is ActionKind.CRAFT
