from __future__ import annotations

import asyncio
from collections import Counter

import pytest

from minebot.adapters import SimulatedWorld
from minebot.adapters.simulated import SimulatedEntity
from minebot.config import Settings
from minebot.models import ORIGIN, ActionKind, ActionResult, Decision, EntityKind, Position, TimeOfDay
from minebot.perception import PerceptionCollector, categorize_blocks


class FlakyWorld(SimulatedWorld):
    async def get_position(self) -> Position:
        raise ConnectionError("position endpoint down")

    async def get_time_of_day(self) -> int:
        raise TimeoutError("slow")


def test_collect_builds_snapshot_from_world() -> None:
    world = SimulatedWorld.starter({"oak_log": 3, "bread": 1})
    world.time_of_day = 14_000
    world.entities[2] = SimulatedEntity(id=2, name="cow", position=Position(3, 64, 3))
    world.entities[3] = SimulatedEntity(
        id=3, name="Steve", position=Position(1, 64, 1), kind=EntityKind.PLAYER
    )
    last = ActionResult.ok(Decision(ActionKind.MINE, "oak_log"))

    snapshot = asyncio.run(PerceptionCollector(world, Settings()).collect(last))

    assert snapshot.inventory == {"oak_log": 3, "bread": 1}
    assert snapshot.time_of_day is TimeOfDay.NIGHT
    assert [entity.name for entity in snapshot.hostile] == ["zombie"]
    assert snapshot.hostile[0].kind is EntityKind.HOSTILE
    assert [entity.name for entity in snapshot.passive] == ["cow"]
    assert [entity.name for entity in snapshot.players] == ["Steve"]
    assert snapshot.blocks.wood["oak_log"] == 8
    assert snapshot.last_result is last
    assert not snapshot.partial


def test_failed_facets_degrade_to_defaults() -> None:
    world = FlakyWorld.starter({"stick": 2})

    snapshot = asyncio.run(PerceptionCollector(world, Settings()).collect())

    assert snapshot.partial
    assert set(snapshot.missing_facets) == {"position", "time"}
    assert snapshot.position == ORIGIN
    assert snapshot.time_of_day is TimeOfDay.MORNING
    assert snapshot.inventory == {"stick": 2}


def test_snapshot_inventory_is_read_only() -> None:
    snapshot = asyncio.run(PerceptionCollector(SimulatedWorld.starter({"stick": 1}), Settings()).collect())

    with pytest.raises(TypeError):
        snapshot.inventory["stick"] = 5  # type: ignore[index]


def test_categorize_blocks() -> None:
    blocks = categorize_blocks({"iron_ore": 2, "deepslate_iron_ore": 1, "birch_log": 4, "water": 9, "lava": 0})

    assert blocks.ores == {"iron_ore": 2, "deepslate_iron_ore": 1}
    assert blocks.wood == {"birch_log": 4}
    assert blocks.water
    assert not blocks.lava
    assert not blocks.crafting_table


def test_craftable_lists_priority_items_the_inventory_covers() -> None:
    world = SimulatedWorld(inventory=Counter({"oak_log": 1, "oak_planks": 4}))

    snapshot = asyncio.run(PerceptionCollector(world, Settings()).collect())

    assert snapshot.craftable == ("crafting_table", "stick", "oak_planks")


def test_table_recipes_need_a_station_nearby() -> None:
    world = SimulatedWorld(inventory=Counter({"oak_planks": 3, "stick": 2}))
    collector = PerceptionCollector(world, Settings())

    before = asyncio.run(collector.collect())
    world.blocks[(2, 64, 0)] = "crafting_table"
    after = asyncio.run(collector.collect())

    assert "wooden_pickaxe" not in before.craftable
    assert "wooden_pickaxe" in after.craftable
