"""Arbitration between the deterministic planner and the reasoning service."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from minebot.config import Settings
from minebot.errors import ErrorKind, ReasoningError, ReasoningMalformedOutputError, ReasoningUnreachableError
from minebot.history import ActionRecord
from minebot.inventory import InventoryFacts
from minebot.models import Decision, DecisionSource, PerceptionSnapshot, fallback_decision
from minebot.planning import Defer, GoalPlanner, Reachability
from minebot.reasoning.context import build_prompt, format_context
from minebot.reasoning.service import ReasoningService

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)


def clean_response(text: str) -> str:
    """Strip fence markup and surrounding chatter, leaving the embedded object text."""
    text = _FENCE_RE.sub("", text)

    first = text.find("{")
    if first > 0:
        text = text[first:]
    last = text.rfind("}")
    if last != -1:
        text = text[: last + 1]

    return text.replace("\r", " ").replace("\n", " ").strip()


def parse_decision(text: str) -> Decision:
    """Parse a free-form model response into a validated :class:`Decision`.

    Raises :class:`ReasoningMalformedOutputError` when no object can be recovered
    and :class:`ReasoningInvalidActionError` when the action is not a known kind.
    """
    cleaned = clean_response(text)
    if not cleaned.startswith("{"):
        raise ReasoningMalformedOutputError(f"No JSON object in response: {text[:80]!r}")
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ReasoningMalformedOutputError(f"Response is not valid JSON: {exc.msg}") from exc
    return Decision.from_payload(payload)


@dataclass(slots=True, frozen=True)
class ArbitratedDecision:
    decision: Decision
    source: DecisionSource


class DecisionArbiter:
    """Asks the planner first and the reasoning service only when the planner defers.

    ``decide`` always returns a well-formed decision: any reasoning failure turns
    into a ``wait`` fallback carrying the diagnostic.
    """

    def __init__(
        self,
        planner: GoalPlanner,
        reasoning: ReasoningService | None,
        config: Settings,
        *,
        reasoning_available: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._planner = planner
        self._reasoning = reasoning
        self._config = config
        self._reasoning_available = reasoning_available and reasoning is not None
        self._logger = logger or logging.getLogger("minebot.reasoning.arbiter")

    @property
    def reasoning_available(self) -> bool:
        return self._reasoning_available

    async def decide(
        self,
        snapshot: PerceptionSnapshot,
        facts: InventoryFacts,
        reach: Reachability,
        history: Sequence[ActionRecord] = (),
    ) -> ArbitratedDecision:
        planned = self._planner.plan(facts, reach)
        if not isinstance(planned, Defer):
            self._logger.info(
                "planner_decision",
                extra={"action": planned.action.value, "target": planned.target, "reason": planned.reason},
            )
            return ArbitratedDecision(planned, DecisionSource.PLANNER)

        if not self._reasoning_available or self._reasoning is None:
            return ArbitratedDecision(
                fallback_decision(f"{ErrorKind.REASONING_UNREACHABLE.value}: reasoning service disabled"),
                DecisionSource.FALLBACK,
            )

        context = format_context(snapshot, facts, history, critical_health=self._config.critical_health)
        prompt = build_prompt(context, max_context_chars=self._config.context_max_chars)
        return await self._ask(self._reasoning, prompt)

    async def _ask(self, reasoning: ReasoningService, prompt: str) -> ArbitratedDecision:
        self._logger.info("reasoning_started", extra={"prompt_chars": len(prompt)})
        try:
            text = await asyncio.wait_for(
                reasoning.generate(prompt),
                timeout=self._config.ollama_timeout_seconds,
            )
            decision = parse_decision(text)
        except asyncio.TimeoutError:
            return self._fallback(
                ReasoningUnreachableError(f"no response within {self._config.ollama_timeout_seconds}s")
            )
        except ReasoningError as exc:
            return self._fallback(exc)
        except Exception as exc:  # noqa: BLE001 - reasoning failures must never escape the arbiter.
            self._logger.exception("reasoning_unexpected_error")
            return self._fallback(ReasoningUnreachableError(f"{type(exc).__name__}: {exc}"))

        self._logger.info(
            "reasoning_decision",
            extra={"action": decision.action.value, "target": decision.target, "reason": decision.reason},
        )
        return ArbitratedDecision(decision, DecisionSource.REASONING)

    def _fallback(self, exc: ReasoningError) -> ArbitratedDecision:
        diagnostic = f"{exc.kind.value}: {exc}"
        self._logger.warning("reasoning_fallback", extra={"error_kind": exc.kind.value, "error": str(exc)})
        return ArbitratedDecision(fallback_decision(diagnostic), DecisionSource.FALLBACK)
