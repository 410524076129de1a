"""Gathers the spatial predicates consumed by the goal planner."""

from __future__ import annotations

import asyncio
import logging

from minebot.adapters.world import Block, WorldCapability
from minebot.config import Settings
from minebot.inventory import LOG_SPECIES
from minebot.planning.goals import CRAFTING_TABLE, Reachability


class ReachabilityProbe:
    """Queries the world for station, log, stone and iron availability around the agent.

    ``station_near`` needs a crafting table within ``station_near_radius`` and in
    line of sight. ``station_far`` is only a radius lookup within
    ``station_far_radius``: no path is computed, so a table behind terrain the
    agent cannot cross still counts. A failed approach then surfaces as a
    failed ``goto`` and the next tick plans again.
    """

    def __init__(self, world: WorldCapability, config: Settings, logger: logging.Logger | None = None) -> None:
        self._world = world
        self._config = config
        self._logger = logger or logging.getLogger("minebot.planning.reachability")

    async def probe(self) -> Reachability:
        cfg = self._config
        near, far, log_species, stone, iron = await asyncio.gather(
            self._visible_block(CRAFTING_TABLE, cfg.station_near_radius),
            self._world.find_nearest_block(CRAFTING_TABLE, cfg.station_far_radius),
            self._nearest_log(),
            self._visible_block("stone", cfg.mining_max_distance),
            self._visible_block("iron_ore", cfg.mining_max_distance),
        )
        reach = Reachability(
            station_near=near is not None,
            station_far=far is not None,
            nearest_log=log_species,
            stone_visible=stone is not None,
            iron_visible=iron is not None,
        )
        self._logger.debug(
            "reachability_probed",
            extra={
                "station_near": reach.station_near,
                "station_far": reach.station_far,
                "nearest_log": reach.nearest_log,
            },
        )
        return reach

    async def _visible_block(self, name: str, radius: float) -> Block | None:
        """Nearest ``name`` within ``radius`` that is also in line of sight."""
        block = await self._world.find_nearest_block(name, radius)
        if block is None:
            return None
        if not await self._world.block_visible(block):
            return None
        return block

    async def _nearest_log(self) -> str | None:
        blocks = await asyncio.gather(
            *(self._visible_block(species, self._config.log_search_radius) for species in LOG_SPECIES)
        )
        position = await self._world.get_position()

        best: tuple[float, int, str] | None = None
        for order, block in enumerate(blocks):
            if block is None:
                continue
            candidate = (position.distance_to(block.position), order, block.name)
            if best is None or candidate < best:
                best = candidate
        return best[2] if best else None
