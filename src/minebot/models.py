from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from minebot.errors import ErrorKind, ReasoningInvalidActionError, ReasoningMalformedOutputError


@dataclass(slots=True, frozen=True)
class Position:
    x: float
    y: float
    z: float

    def floored(self) -> Position:
        return Position(math.floor(self.x), math.floor(self.y), math.floor(self.z))

    def offset(self, dx: float, dy: float, dz: float) -> Position:
        return Position(self.x + dx, self.y + dy, self.z + dz)

    def distance_to(self, other: Position) -> float:
        return math.dist((self.x, self.y, self.z), (other.x, other.y, other.z))

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


ORIGIN = Position(0.0, 0.0, 0.0)


class TimeOfDay(str, Enum):
    MORNING = "morning"
    DAY = "day"
    SUNSET = "sunset"
    NIGHT = "night"
    DAWN = "dawn"

    @classmethod
    def from_ticks(cls, ticks: int) -> TimeOfDay:
        ticks = ticks % 24_000
        if ticks < 6_000:
            return cls.MORNING
        if ticks < 12_000:
            return cls.DAY
        if ticks < 13_000:
            return cls.SUNSET
        if ticks < 23_000:
            return cls.NIGHT
        return cls.DAWN


class EntityKind(str, Enum):
    HOSTILE = "hostile"
    PASSIVE = "passive"
    PLAYER = "player"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class NearbyEntity:
    id: int
    name: str
    kind: EntityKind
    distance: float
    position: Position = ORIGIN
    health: float | None = None
    valid: bool = True


@dataclass(slots=True, frozen=True)
class NearbyBlocks:
    """Blocks of interest counted around the agent."""

    ores: Mapping[str, int] = field(default_factory=dict)
    wood: Mapping[str, int] = field(default_factory=dict)
    water: bool = False
    lava: bool = False
    crafting_table: bool = False
    furnace: bool = False
    chest: bool = False


class ActionKind(str, Enum):
    """Closed set of actions the executor knows how to perform."""

    MINE = "mine"
    CRAFT = "craft"
    PLACE = "place"
    EXPLORE = "explore"
    FIGHT = "fight"
    EAT = "eat"
    CHAT = "chat"
    GOTO = "goto"
    WAIT = "wait"


class DecisionSource(str, Enum):
    PLANNER = "planner"
    REASONING = "reasoning"
    FALLBACK = "fallback"


@dataclass(slots=True, frozen=True)
class Decision:
    """One action chosen for a tick, from the planner or the reasoning service."""

    action: ActionKind
    target: str = ""
    reason: str = "No reason provided"

    def to_payload(self) -> dict[str, str]:
        return {"action": self.action.value, "target": self.target, "reason": self.reason}

    @classmethod
    def from_payload(cls, payload: Any) -> Decision:
        """Validate a wire object into a decision.

        ``action`` must name a member of :class:`ActionKind`; a missing ``target``
        becomes ``""`` and a missing ``reason`` a placeholder.
        """
        if not isinstance(payload, Mapping):
            raise ReasoningMalformedOutputError(f"Expected an object, got {type(payload).__name__}")

        action = payload.get("action")
        if not isinstance(action, str) or not action:
            raise ReasoningInvalidActionError('Missing or invalid "action" field')
        try:
            kind = ActionKind(action.strip().lower())
        except ValueError:
            allowed = ", ".join(member.value for member in ActionKind)
            raise ReasoningInvalidActionError(f"Invalid action: {action}. Must be one of: {allowed}") from None

        target = payload.get("target")
        reason = payload.get("reason")
        return cls(
            action=kind,
            target="" if target is None else str(target),
            reason=str(reason) if reason else "No reason provided",
        )


def fallback_decision(diagnostic: str) -> Decision:
    """Safe no-op used whenever no trustworthy decision is available."""
    return Decision(action=ActionKind.WAIT, target="idle", reason=diagnostic)


@dataclass(slots=True, frozen=True)
class ActionResult:
    """Outcome of one tick's action, fed back into the next tick."""

    action: ActionKind | None
    target: str
    success: bool
    error_kind: ErrorKind | None = None
    error: str | None = None

    @classmethod
    def ok(cls, decision: Decision) -> ActionResult:
        return cls(action=decision.action, target=decision.target, success=True)

    @classmethod
    def failed(
        cls,
        kind: ErrorKind,
        message: str,
        *,
        action: ActionKind | None = None,
        target: str = "",
    ) -> ActionResult:
        return cls(action=action, target=target, success=False, error_kind=kind, error=message)

    @property
    def diagnostic(self) -> str | None:
        if self.error_kind is None:
            return self.error
        if not self.error:
            return self.error_kind.value
        return f"{self.error_kind.value}: {self.error}"

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "action": self.action.value if self.action else "error",
            "target": self.target,
            "success": self.success,
        }
        if not self.success and self.diagnostic:
            payload["error"] = self.diagnostic
        return payload


@dataclass(slots=True, frozen=True)
class PerceptionSnapshot:
    """Normalized world/agent state for one tick. Never mutated after creation."""

    health: float
    food: float
    position: Position
    time_of_day: TimeOfDay
    inventory: Mapping[str, int]
    hostile: tuple[NearbyEntity, ...] = ()
    passive: tuple[NearbyEntity, ...] = ()
    players: tuple[NearbyEntity, ...] = ()
    blocks: NearbyBlocks = field(default_factory=NearbyBlocks)
    last_result: ActionResult | None = None
    missing_facets: tuple[str, ...] = ()
    craftable: tuple[str, ...] = ()

    @property
    def partial(self) -> bool:
        return bool(self.missing_facets)
