"""Periodic think-act cycle: perceive, plan or reason, act, remember."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from minebot.adapters.world import WorldCapability
from minebot.config import Settings
from minebot.errors import ErrorKind, WorldUnavailableError
from minebot.execution import ActionExecutor, SingleFlight
from minebot.history import ActionHistoryStore, ActionRecord, InMemoryHistoryStore
from minebot.inventory import analyze_inventory
from minebot.models import ActionKind, ActionResult, Decision, DecisionSource, fallback_decision
from minebot.perception import PerceptionCollector
from minebot.planning import GoalPlanner, PlannerThresholds, ReachabilityProbe
from minebot.reasoning import DecisionArbiter, ReasoningService
from minebot.telemetry import LoggingTelemetry, Telemetry


@dataclass(slots=True, frozen=True)
class TickOutcome:
    """What a single tick did. Skipped ticks carry no decision and no result."""

    tick: int
    skipped: bool = False
    source: DecisionSource | None = None
    decision: Decision | None = None
    result: ActionResult | None = None


class CognitiveLoop:
    """Drives ticks at a fixed cadence; a tick that finds the previous one still busy is dropped."""

    def __init__(
        self,
        world: WorldCapability,
        config: Settings,
        *,
        collector: PerceptionCollector,
        probe: ReachabilityProbe,
        arbiter: DecisionArbiter,
        executor: ActionExecutor,
        history: ActionHistoryStore | None = None,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._world = world
        self._config = config
        self._collector = collector
        self._probe = probe
        self._arbiter = arbiter
        self._executor = executor
        self._history = history or InMemoryHistoryStore()
        self._telemetry = telemetry or LoggingTelemetry()
        self._logger = logger or logging.getLogger("minebot.loop")

        self._gate: SingleFlight[int] = SingleFlight()
        self._tick_count = 0
        self._completed = 0
        self._last_result: ActionResult | None = None
        self._stop_event = asyncio.Event()
        self._pending: set[asyncio.Task[TickOutcome]] = set()
        self._runner: asyncio.Task[None] | None = None

    @classmethod
    def assemble(
        cls,
        world: WorldCapability,
        config: Settings,
        reasoning: ReasoningService | None,
        *,
        reasoning_available: bool = True,
        history: ActionHistoryStore | None = None,
        telemetry: Telemetry | None = None,
    ) -> CognitiveLoop:
        """Wire the default collector, planner, arbiter and executor around ``world``."""
        arbiter = DecisionArbiter(
            GoalPlanner(PlannerThresholds.from_settings(config)),
            reasoning,
            config,
            reasoning_available=reasoning_available,
        )
        return cls(
            world,
            config,
            collector=PerceptionCollector(world, config),
            probe=ReachabilityProbe(world, config),
            arbiter=arbiter,
            executor=ActionExecutor(world, config),
            history=history,
            telemetry=telemetry,
        )

    @property
    def last_result(self) -> ActionResult | None:
        return self._last_result

    @property
    def completed_ticks(self) -> int:
        return self._completed

    @property
    def history(self) -> ActionHistoryStore:
        return self._history

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    async def tick(self) -> TickOutcome:
        """Run one perceive-decide-act pass, or skip it when the previous pass is still going."""
        if self._gate.busy or self._executor.busy:
            self._logger.debug("tick_skipped", extra={"tick": self._tick_count})
            self._emit("tick_skipped", {"tick": self._tick_count})
            return TickOutcome(tick=self._tick_count, skipped=True)

        self._tick_count += 1
        number = self._tick_count
        self._gate.try_acquire(number)
        source: DecisionSource | None = None
        decision: Decision | None = None
        try:
            try:
                source, decision, result = await self._think_and_act()
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001 - a failed tick is reported, never fatal.
                self._logger.exception("tick_failed", extra={"tick": number})
                result = ActionResult.failed(ErrorKind.LOOP_ERROR, f"{type(exc).__name__}: {exc}")

            self._last_result = result
            self._record(number, source, decision, result)
        finally:
            self._gate.release()

        self._completed += 1
        return TickOutcome(tick=number, source=source, decision=decision, result=result)

    async def _think_and_act(self) -> tuple[DecisionSource, Decision, ActionResult]:
        snapshot = await self._collector.collect(self._last_result)
        facts = analyze_inventory(snapshot.inventory)
        reach = await self._probe.probe()
        recent = self._history.list_recent(self._config.context_history_size)
        arbitrated = await self._arbiter.decide(snapshot, facts, reach, recent)

        decision = arbitrated.decision
        if decision.action is ActionKind.WAIT:
            return arbitrated.source, decision, ActionResult.ok(decision)
        return arbitrated.source, decision, await self._executor.execute(decision)

    def _record(
        self,
        number: int,
        source: DecisionSource | None,
        decision: Decision | None,
        result: ActionResult,
    ) -> None:
        if decision is None:
            source = DecisionSource.FALLBACK
            decision = fallback_decision(result.diagnostic or ErrorKind.LOOP_ERROR.value)
        record = ActionRecord(tick=number, source=source or DecisionSource.FALLBACK, decision=decision, result=result)
        try:
            self._history.append(record)
        except Exception:  # noqa: BLE001 - the action already ran; losing its record is not fatal.
            self._logger.exception("history_append_failed", extra={"tick": number})

        self._emit(
            "tick_completed",
            {
                "tick": number,
                "source": record.source.value,
                "action": decision.action.value,
                "target": decision.target,
                "success": result.success,
                "error": result.diagnostic,
            },
        )

    def _emit(self, event_name: str, payload: dict) -> None:
        try:
            self._telemetry.emit(event_name, payload)
        except Exception:  # noqa: BLE001 - a broken sink never stops the loop.
            self._logger.exception("telemetry_emit_failed", extra={"telemetry_event": event_name})

    async def run(self, max_ticks: int | None = None) -> None:
        """Fire ticks every ``think_interval_seconds`` until stopped or ``max_ticks`` ticks have started."""
        cfg = self._config
        self._stop_event.clear()
        first_tick = self._tick_count
        self._logger.info(
            "loop_started",
            extra={"interval_seconds": cfg.think_interval_seconds, "max_ticks": max_ticks},
        )
        try:
            if await self._pause(cfg.initial_delay_seconds):
                return
            while not self._stop_event.is_set():
                if max_ticks is not None and self._tick_count - first_tick >= max_ticks:
                    break
                task = asyncio.create_task(self.tick(), name=f"minebot-tick-{self._tick_count + 1}")
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                if await self._pause(cfg.think_interval_seconds):
                    break
        finally:
            await self._drain()
            self._logger.info("loop_stopped", extra={"completed_ticks": self._completed})

    async def _pause(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True when a stop was requested meanwhile."""
        if seconds <= 0:
            await asyncio.sleep(0)
            return self._stop_event.is_set()
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def start(self, max_ticks: int | None = None) -> None:
        """Start the cadence in the background once."""
        if self.running:
            return
        self._runner = asyncio.create_task(self.run(max_ticks), name="minebot-loop")

    async def stop(self) -> None:
        """Stop scheduling ticks, let the in-flight tick finish, then halt any movement."""
        self._stop_event.set()
        if self._runner is not None:
            await self._runner
            self._runner = None
        await self._drain()
        try:
            await self._world.stop_movement()
        except Exception:  # noqa: BLE001 - shutdown continues without a reachable world.
            self._logger.exception("stop_movement_failed")


async def prepare_agent(
    world: WorldCapability,
    config: Settings,
    reasoning: ReasoningService | None,
    *,
    history: ActionHistoryStore | None = None,
    telemetry: Telemetry | None = None,
    logger: logging.Logger | None = None,
) -> CognitiveLoop:
    """Check both integrations and build the loop.

    An unreachable world is fatal. An unreachable reasoning service, or one that
    is disabled in settings, only turns the reasoning path into the wait fallback.
    """
    log = logger or logging.getLogger("minebot.loop")
    if not await world.ping():
        raise WorldUnavailableError("World capability is not reachable")

    available = False
    if config.reasoning_enabled and reasoning is not None:
        probe = await reasoning.probe()
        available = probe.reachable
        if not probe.reachable:
            log.warning("reasoning_unavailable", extra={"error": probe.error})
        elif not probe.model_available:
            log.warning("reasoning_model_missing", extra={"model": config.ollama_model})

    log.info("agent_ready", extra={"reasoning_available": available})
    return CognitiveLoop.assemble(
        world,
        config,
        reasoning,
        reasoning_available=available,
        history=history,
        telemetry=telemetry,
    )
