from __future__ import annotations

import asyncio

from minebot.adapters import SimulatedWorld
from minebot.config import Settings
from minebot.planning import ReachabilityProbe


def _probe(world: SimulatedWorld):
    return asyncio.run(ReachabilityProbe(world, Settings()).probe())


def test_visible_table_in_reach_is_near() -> None:
    reach = _probe(SimulatedWorld(blocks={(2, 64, 0): "crafting_table"}))

    assert reach.station_near
    assert reach.station_far


def test_table_behind_a_wall_is_only_far() -> None:
    world = SimulatedWorld(blocks={(2, 64, 0): "crafting_table"}, hidden={(2, 64, 0)})

    reach = _probe(world)

    assert not reach.station_near
    assert reach.station_far


def test_table_out_of_near_radius_is_only_far() -> None:
    reach = _probe(SimulatedWorld(blocks={(20, 64, 0): "crafting_table"}))

    assert not reach.station_near
    assert reach.station_far


def test_table_beyond_far_radius_is_unknown() -> None:
    reach = _probe(SimulatedWorld(blocks={(40, 64, 0): "crafting_table"}))

    assert not reach.station_near
    assert not reach.station_far


def test_nearest_log_beats_species_order() -> None:
    world = SimulatedWorld(blocks={(12, 64, 0): "oak_log", (3, 64, 0): "birch_log"})

    assert _probe(world).nearest_log == "birch_log"


def test_hidden_log_is_ignored() -> None:
    world = SimulatedWorld(
        blocks={(12, 64, 0): "oak_log", (3, 64, 0): "birch_log"},
        hidden={(3, 64, 0)},
    )

    assert _probe(world).nearest_log == "oak_log"


def test_stone_and_iron_hints() -> None:
    world = SimulatedWorld(blocks={(0, 63, 0): "stone", (5, 61, 5): "iron_ore"}, hidden={(5, 61, 5)})

    reach = _probe(world)

    assert reach.stone_visible
    assert not reach.iron_visible
    assert reach.nearest_log is None
