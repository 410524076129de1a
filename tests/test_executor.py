from __future__ import annotations

import asyncio
import random

from minebot.adapters import SimulatedWorld, WorldFeatures
from minebot.config import Settings
from minebot.errors import ErrorKind
from minebot.execution import ActionExecutor, parse_coordinates
from minebot.models import ActionKind, Decision, Position


def _config(**overrides) -> Settings:
    defaults = {"wait_seconds": 0, "fight_poll_seconds": 0.001}
    defaults.update(overrides)
    return Settings(**defaults)


def _execute(world: SimulatedWorld, decision: Decision, **overrides):
    executor = ActionExecutor(world, _config(**overrides), rng=random.Random(7))
    return asyncio.run(executor.execute(decision))


class SlowCraftWorld(SimulatedWorld):
    async def craft(self, recipe, count, station) -> None:
        await asyncio.sleep(1)


def test_parse_coordinates() -> None:
    assert parse_coordinates("10, 64, -3", 70) == Position(10, 64, -3)
    assert parse_coordinates("10,-3", 70) == Position(10, 70, -3)
    assert parse_coordinates("crafting_table", 70) is None
    assert parse_coordinates("1,2,3,4", 70) is None


def test_second_execute_while_busy_is_rejected() -> None:
    async def _run():
        world = SimulatedWorld.starter()
        world.move_seconds = 0.05
        executor = ActionExecutor(world, _config())
        first = asyncio.create_task(executor.execute(Decision(ActionKind.GOTO, "4,64,4")))
        await asyncio.sleep(0)
        busy = executor.busy
        second = await executor.execute(Decision(ActionKind.CHAT, "hello"))
        return busy, second, await first, world.chat_log, executor.busy

    busy, second, first, chat_log, still_busy = asyncio.run(_run())

    assert busy
    assert not second.success
    assert second.error_kind is ErrorKind.ACTION_BUSY
    assert chat_log == []
    assert first.success
    assert first.action is ActionKind.GOTO
    assert not still_busy


def test_mine_collects_nearest_block() -> None:
    world = SimulatedWorld.starter()

    result = _execute(world, Decision(ActionKind.MINE, "oak_log"))

    assert result.success
    assert world.inventory["oak_log"] == 1
    assert (2, 64, 2) not in world.blocks


def test_mine_without_collect_feature_walks_then_digs() -> None:
    world = SimulatedWorld.starter()
    world.features = WorldFeatures(collect_block=False, combat_assist=True)

    result = _execute(world, Decision(ActionKind.MINE, "oak_log"))

    assert result.success
    assert world.inventory["oak_log"] == 1
    assert world.moves


def test_mine_unknown_block_is_target_not_found() -> None:
    result = _execute(SimulatedWorld.starter(), Decision(ActionKind.MINE, "diamond_ore"))

    assert not result.success
    assert result.error_kind is ErrorKind.ACTION_TARGET_NOT_FOUND


def test_mine_stone_without_pickaxe_fails() -> None:
    result = _execute(SimulatedWorld.starter(), Decision(ActionKind.MINE, "stone"))

    assert not result.success
    assert result.error_kind is ErrorKind.ACTION_FAILED
    assert "pickaxe" in (result.error or "")


def test_mine_timeout_is_failure_and_stops_movement() -> None:
    world = SimulatedWorld.starter()
    world.move_seconds = 1

    result = _execute(world, Decision(ActionKind.MINE, "oak_log"), mining_timeout_seconds=0.02)

    assert not result.success
    assert result.error_kind is ErrorKind.ACTION_TIMEOUT
    assert world.stops == 1
    assert world.inventory["oak_log"] == 0


def test_goto_timeout_is_failure() -> None:
    world = SimulatedWorld.starter()
    world.move_seconds = 1

    result = _execute(world, Decision(ActionKind.GOTO, "30,64,30"), goto_timeout_seconds=0.02)

    assert result.error_kind is ErrorKind.ACTION_TIMEOUT
    assert result.to_payload()["success"] is False
    assert world.stops == 1


def test_goto_unknown_block_is_target_not_found() -> None:
    result = _execute(SimulatedWorld.starter(), Decision(ActionKind.GOTO, "crafting_table"))

    assert result.error_kind is ErrorKind.ACTION_TARGET_NOT_FOUND


def test_explore_timeout_counts_as_success() -> None:
    world = SimulatedWorld.starter()
    world.move_seconds = 1

    result = _execute(world, Decision(ActionKind.EXPLORE, "random"), explore_timeout_seconds=0.02)

    assert result.success
    assert result.to_payload() == {"action": "explore", "target": "random", "success": True}
    assert world.stops == 1


def test_explore_heads_away_from_current_position() -> None:
    world = SimulatedWorld.starter()

    result = _execute(world, Decision(ActionKind.EXPLORE, "random"), explore_max_distance=40)

    assert result.success
    destination = world.moves[-1]
    assert 20 - 2 <= Position(0.5, 64, 0.5).distance_to(destination) <= 40 + 2


def test_craft_without_station_uses_inventory_grid() -> None:
    world = SimulatedWorld.starter({"oak_log": 1})

    result = _execute(world, Decision(ActionKind.CRAFT, "oak_planks"))

    assert result.success
    assert world.inventory["oak_planks"] == 4
    assert world.inventory["oak_log"] == 0


def test_craft_with_table_walks_to_station() -> None:
    world = SimulatedWorld.starter({"oak_planks": 3, "stick": 2})
    world.blocks[(5, 64, 0)] = "crafting_table"

    result = _execute(world, Decision(ActionKind.CRAFT, "wooden_pickaxe"))

    assert result.success
    assert world.inventory["wooden_pickaxe"] == 1
    assert world.moves[-1] == Position(5, 64, 0)


def test_craft_table_recipe_without_station_is_missing_materials() -> None:
    world = SimulatedWorld.starter({"oak_planks": 3, "stick": 2})

    result = _execute(world, Decision(ActionKind.CRAFT, "wooden_pickaxe"))

    assert result.error_kind is ErrorKind.ACTION_MISSING_MATERIALS


def test_craft_without_ingredients_is_missing_materials() -> None:
    result = _execute(SimulatedWorld.starter(), Decision(ActionKind.CRAFT, "stick"))

    assert not result.success
    assert result.error_kind is ErrorKind.ACTION_MISSING_MATERIALS


def test_craft_timeout_is_failure() -> None:
    world = SlowCraftWorld.starter({"oak_log": 1})

    result = _execute(world, Decision(ActionKind.CRAFT, "oak_planks"), craft_timeout_seconds=0.02)

    assert result.error_kind is ErrorKind.ACTION_TIMEOUT


def test_place_puts_block_next_to_agent() -> None:
    world = SimulatedWorld.starter({"crafting_table": 1})

    result = _execute(world, Decision(ActionKind.PLACE, "crafting_table"))

    assert result.success
    assert "crafting_table" in world.blocks.values()
    assert world.inventory["crafting_table"] == 0


def test_place_without_item_is_missing_materials() -> None:
    result = _execute(SimulatedWorld.starter(), Decision(ActionKind.PLACE, "crafting_table"))

    assert result.error_kind is ErrorKind.ACTION_MISSING_MATERIALS


def test_place_with_no_solid_footing_has_no_site() -> None:
    world = SimulatedWorld()
    world.give([("crafting_table", 1)])

    result = _execute(world, Decision(ActionKind.PLACE, "crafting_table"))

    assert result.error_kind is ErrorKind.ACTION_NO_PLACEMENT_SITE
    assert world.inventory["crafting_table"] == 1


def test_fight_engages_until_target_is_gone() -> None:
    world = SimulatedWorld.starter({"wooden_sword": 1})

    result = _execute(world, Decision(ActionKind.FIGHT, "zombie"))

    assert result.success
    assert world.entities == {}
    assert world.held == "wooden_sword"
    assert world.engaged is None


def test_fight_without_combat_assist_attacks_once() -> None:
    world = SimulatedWorld.starter()
    world.features = WorldFeatures(collect_block=True, combat_assist=False)

    result = _execute(world, Decision(ActionKind.FIGHT, "zombie"))

    assert result.success
    assert world.engaged == 1
    assert world.entities[1].health == 20


def test_fight_missing_entity_is_target_not_found() -> None:
    result = _execute(SimulatedWorld.starter(), Decision(ActionKind.FIGHT, "skeleton"))

    assert result.error_kind is ErrorKind.ACTION_TARGET_NOT_FOUND


def test_eat_consumes_food() -> None:
    world = SimulatedWorld.starter({"bread": 2})
    world.food = 10

    result = _execute(world, Decision(ActionKind.EAT, "food"))

    assert result.success
    assert world.inventory["bread"] == 1
    assert world.food == 14


def test_eat_without_food_is_missing_materials() -> None:
    result = _execute(SimulatedWorld.starter({"cobblestone": 4}), Decision(ActionKind.EAT, "bread"))

    assert result.error_kind is ErrorKind.ACTION_MISSING_MATERIALS


def test_chat_and_wait() -> None:
    world = SimulatedWorld.starter()

    said = _execute(world, Decision(ActionKind.CHAT, "  hello there "))
    empty = _execute(world, Decision(ActionKind.CHAT, "   "))
    waited = _execute(world, Decision(ActionKind.WAIT, "idle"))

    assert said.success
    assert world.chat_log == ["hello there"]
    assert empty.error_kind is ErrorKind.ACTION_FAILED
    assert waited.success
