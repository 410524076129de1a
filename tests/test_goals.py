from __future__ import annotations

from minebot.inventory import InventoryFacts, analyze_inventory
from minebot.models import ActionKind, Decision
from minebot.planning import Defer, GoalPlanner, PlannerThresholds, Reachability


def _plan(listing: dict, reach: Reachability | None = None, **thresholds) -> Decision | Defer:
    planner = GoalPlanner(PlannerThresholds(**thresholds))
    return planner.plan(analyze_inventory(listing), reach or Reachability())


def test_plan_is_deterministic() -> None:
    planner = GoalPlanner()
    facts = InventoryFacts(logs=1, planks=2, sticks=1, log_species=("birch_log",))
    reach = Reachability(station_near=True, nearest_log="birch_log")

    assert planner.plan(facts, reach) == planner.plan(facts, reach)


def test_empty_inventory_mines_visible_log_species() -> None:
    decision = _plan({}, Reachability(nearest_log="spruce_log"))

    assert decision == Decision(ActionKind.MINE, "spruce_log", decision.reason)


def test_empty_inventory_without_visible_log_uses_default_species() -> None:
    decision = _plan({})

    assert decision.action is ActionKind.MINE
    assert decision.target == "oak_log"


def test_logs_without_planks_craft_matching_planks() -> None:
    decision = _plan({"birch_log": 2})

    assert decision.action is ActionKind.CRAFT
    assert decision.target == "birch_planks"


def test_enough_planks_and_no_station_craft_crafting_table() -> None:
    decision = _plan({"oak_planks": 5})

    assert decision.action is ActionKind.CRAFT
    assert decision.target == "crafting_table"


def test_held_crafting_table_is_placed_not_crafted_again() -> None:
    decision = _plan({"crafting_table": 1})

    assert decision.action is ActionKind.PLACE
    assert decision.target == "crafting_table"


def test_far_station_is_walked_to() -> None:
    decision = _plan({"oak_planks": 5}, Reachability(station_far=True))

    assert decision.action is ActionKind.GOTO
    assert decision.target == "crafting_table"


def test_near_station_without_sticks_crafts_sticks() -> None:
    decision = _plan({"oak_planks": 5}, Reachability(station_near=True))

    assert decision.action is ActionKind.CRAFT
    assert decision.target == "stick"


def test_near_station_with_materials_crafts_wooden_pickaxe() -> None:
    decision = _plan({"stick": 2, "oak_planks": 3}, Reachability(station_near=True))

    assert decision.action is ActionKind.CRAFT
    assert decision.target == "wooden_pickaxe"


def test_wooden_pickaxe_owner_mines_stone() -> None:
    decision = _plan({"wooden_pickaxe": 1})

    assert decision.action is ActionKind.MINE
    assert decision.target == "stone"


def test_stone_pickaxe_needs_near_station_and_sticks() -> None:
    listing = {"wooden_pickaxe": 1, "cobblestone": 3, "stick": 2}

    crafted = _plan(listing, Reachability(station_near=True))
    walked = _plan(listing, Reachability(station_far=True))

    assert crafted.target == "stone_pickaxe"
    assert walked.action is ActionKind.GOTO


def test_stone_pickaxe_owner_mines_iron_until_target() -> None:
    assert _plan({"stone_pickaxe": 1, "raw_iron": 2}).target == "iron_ore"
    assert isinstance(_plan({"stone_pickaxe": 1, "raw_iron": 1, "iron_ingot": 2}), Defer)


def test_iron_ore_blocks_do_not_satisfy_iron_target() -> None:
    decision = _plan({"stone_pickaxe": 1, "iron_ore": 8})

    assert decision.action is ActionKind.MINE
    assert decision.target == "iron_ore"


def test_explore_tail_replaces_defer() -> None:
    decision = _plan({"iron_pickaxe": 1, "iron_ingot": 3}, tail="explore")

    assert decision.action is ActionKind.EXPLORE
    assert decision.target == "random"


def test_thresholds_follow_settings() -> None:
    from minebot.config import Settings

    thresholds = PlannerThresholds.from_settings(Settings(min_planks=8, planner_tail="explore"))

    assert thresholds.min_planks == 8
    assert thresholds.tail == "explore"
