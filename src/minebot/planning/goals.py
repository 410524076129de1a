"""Deterministic goal planner for the tooling chain.

The planner walks a fixed priority table: wood -> planks -> crafting table ->
sticks -> wooden pickaxe -> cobblestone -> stone pickaxe -> iron. The first rule
whose preconditions hold produces the decision. When every rule is satisfied the
planner either defers to the reasoning service or keeps exploring, depending on
the configured tail.

``plan`` is a pure function of its inputs so repeated calls with identical facts
and reachability always agree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from minebot.config import Settings
from minebot.inventory import DEFAULT_LOG, InventoryFacts, planks_for
from minebot.models import ActionKind, Decision

CRAFTING_TABLE = "crafting_table"


@dataclass(slots=True, frozen=True)
class Reachability:
    """Spatial predicates the planner needs, gathered before planning."""

    station_near: bool = False
    station_far: bool = False
    nearest_log: str | None = None
    stone_visible: bool = False
    iron_visible: bool = False


@dataclass(slots=True, frozen=True)
class Defer:
    """The planner has nothing to say; the arbiter should ask the reasoning service."""

    reason: str = "Tooling chain satisfied"


@dataclass(slots=True, frozen=True)
class PlannerThresholds:
    min_planks: int = 5
    table_planks: int = 4
    pickaxe_planks: int = 3
    min_sticks: int = 2
    stick_planks: int = 2
    cobblestone_target: int = 3
    iron_target: int = 3
    tail: Literal["defer", "explore"] = "defer"

    @classmethod
    def from_settings(cls, config: Settings) -> PlannerThresholds:
        return cls(
            min_planks=config.min_planks,
            table_planks=config.table_planks,
            pickaxe_planks=config.pickaxe_planks,
            min_sticks=config.min_sticks,
            cobblestone_target=config.cobblestone_target,
            iron_target=config.iron_target,
            tail=config.planner_tail,
        )


class GoalPlanner:
    """Ordered priority table over :class:`InventoryFacts` and :class:`Reachability`."""

    def __init__(self, thresholds: PlannerThresholds | None = None) -> None:
        self._t = thresholds or PlannerThresholds()

    @property
    def thresholds(self) -> PlannerThresholds:
        return self._t

    def plan(self, facts: InventoryFacts, reach: Reachability) -> Decision | Defer:
        if not facts.has_any_pickaxe:
            return self._wooden_pickaxe(facts, reach)

        if not facts.has_stone_pickaxe and not facts.has_iron_pickaxe:
            if facts.cobblestone < self._t.cobblestone_target:
                return Decision(ActionKind.MINE, "stone", "Need cobblestone for stone pickaxe")
            if reach.station_near and facts.sticks >= self._t.min_sticks:
                return Decision(ActionKind.CRAFT, "stone_pickaxe", "Upgrade to stone pickaxe")
            return self._station_and_sticks(facts, reach, goal="stone pickaxe")

        if facts.iron < self._t.iron_target:
            return Decision(ActionKind.MINE, "iron_ore", "Need iron for the next tool tier")

        if self._t.tail == "explore":
            return Decision(ActionKind.EXPLORE, "random", "Tooling chain complete, looking for resources")
        return Defer()

    def _wooden_pickaxe(self, facts: InventoryFacts, reach: Reachability) -> Decision:
        t = self._t
        if facts.logs == 0 and facts.planks < t.pickaxe_planks and not facts.has_crafting_table_item:
            return self._mine_wood(reach, "Need wood for tools")

        if facts.logs > 0 and facts.planks < t.min_planks:
            return Decision(ActionKind.CRAFT, self._plank_target(facts), "Converting logs to planks")

        if (
            facts.planks >= t.table_planks
            and not facts.has_crafting_table_item
            and not reach.station_near
            and not reach.station_far
        ):
            return Decision(ActionKind.CRAFT, CRAFTING_TABLE, "Need crafting table for pickaxe")

        if reach.station_near and facts.sticks >= t.min_sticks and facts.planks >= t.pickaxe_planks:
            return Decision(ActionKind.CRAFT, "wooden_pickaxe", "Crafting wooden pickaxe")

        return self._station_and_sticks(facts, reach, goal="wooden pickaxe")

    def _station_and_sticks(self, facts: InventoryFacts, reach: Reachability, *, goal: str) -> Decision:
        """Satisfy the shared prerequisites of every pickaxe: a reachable table and sticks."""
        t = self._t
        if not reach.station_near:
            if facts.has_crafting_table_item:
                return Decision(ActionKind.PLACE, CRAFTING_TABLE, "Placing crafting table")
            if reach.station_far:
                return Decision(ActionKind.GOTO, CRAFTING_TABLE, "Walking to known crafting table")
            if facts.planks >= t.table_planks:
                return Decision(ActionKind.CRAFT, CRAFTING_TABLE, f"Need crafting table for {goal}")
        elif facts.sticks < t.min_sticks and facts.planks >= t.stick_planks:
            return Decision(ActionKind.CRAFT, "stick", f"Need sticks for {goal}")

        # Out of planks for whatever comes next.
        if facts.logs > 0:
            return Decision(ActionKind.CRAFT, self._plank_target(facts), "Converting logs to planks")
        return self._mine_wood(reach, "Need more wood")

    @staticmethod
    def _mine_wood(reach: Reachability, reason: str) -> Decision:
        return Decision(ActionKind.MINE, reach.nearest_log or DEFAULT_LOG, reason)

    @staticmethod
    def _plank_target(facts: InventoryFacts) -> str:
        if not facts.log_species:
            return "oak_planks"
        return planks_for(facts.log_species[0])
