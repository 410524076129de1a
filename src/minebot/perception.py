"""Collects live agent/world status into a per-tick :class:`PerceptionSnapshot`."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from minebot.adapters.world import ItemStack, WorldCapability
from minebot.config import Settings
from minebot.inventory import LOG_SPECIES
from minebot.models import (
    ORIGIN,
    ActionResult,
    EntityKind,
    NearbyBlocks,
    NearbyEntity,
    PerceptionSnapshot,
    TimeOfDay,
)

_ORE_MARKERS = (
    "coal_ore",
    "iron_ore",
    "gold_ore",
    "diamond_ore",
    "copper_ore",
    "lapis_ore",
    "redstone_ore",
    "emerald_ore",
)
_FLAG_BLOCKS = ("water", "lava", "crafting_table", "furnace", "chest")
_ENTITY_LIMIT = 5
_BLOCK_SCAN_RADIUS = 16.0


class PerceptionCollector:
    """Fans out status facet fetches and normalizes them into one snapshot.

    A facet that fails is replaced by its default and listed in
    ``PerceptionSnapshot.missing_facets``; it never fails the tick.
    """

    def __init__(self, world: WorldCapability, config: Settings, logger: logging.Logger | None = None) -> None:
        self._world = world
        self._config = config
        self._logger = logger or logging.getLogger("minebot.perception")

    async def collect(self, last_result: ActionResult | None = None) -> PerceptionSnapshot:
        facets: dict[str, Any] = {
            "health": self._world.get_health(),
            "food": self._world.get_food(),
            "position": self._world.get_position(),
            "inventory": self._world.get_inventory(),
            "entities": self._world.get_nearby_entities(self._config.entity_scan_radius),
            "blocks": self._world.get_nearby_blocks(_BLOCK_SCAN_RADIUS),
            "time": self._world.get_time_of_day(),
            "craftable": self._craftable(),
        }
        results = await asyncio.gather(*facets.values(), return_exceptions=True)

        values: dict[str, Any] = {}
        missing: list[str] = []
        for name, result in zip(facets, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                missing.append(name)
                self._logger.warning(
                    "perception_partial",
                    extra={"facet": name, "error": f"{type(result).__name__}: {result}"},
                )
                continue
            values[name] = result

        hostile, passive, players = self._classify_entities(values.get("entities") or [])
        return PerceptionSnapshot(
            health=float(values.get("health", 20.0)),
            food=float(values.get("food", 20.0)),
            position=values.get("position", ORIGIN),
            time_of_day=TimeOfDay.from_ticks(int(values.get("time", 0))),
            inventory=MappingProxyType(summarize_inventory(values.get("inventory") or [])),
            hostile=hostile,
            passive=passive,
            players=players,
            blocks=categorize_blocks(values.get("blocks") or {}),
            last_result=last_result,
            missing_facets=tuple(missing),
            craftable=tuple(values.get("craftable") or ()),
        )

    async def _craftable(self) -> list[str]:
        """Priority items with at least one recipe the current inventory satisfies."""
        station = await self._world.find_nearest_block("crafting_table", self._config.craft_station_radius)
        items = self._config.craft_priority_items
        recipes = await asyncio.gather(*(self._world.resolve_recipes(item, 1, station) for item in items))
        return [item for item, found in zip(items, recipes) if found]

    def _classify_entities(
        self, entities: list[NearbyEntity]
    ) -> tuple[tuple[NearbyEntity, ...], tuple[NearbyEntity, ...], tuple[NearbyEntity, ...]]:
        hostile_names = set(self._config.hostile_mobs)
        passive_names = set(self._config.passive_mobs)
        hostile: list[NearbyEntity] = []
        passive: list[NearbyEntity] = []
        players: list[NearbyEntity] = []

        for entity in entities:
            if entity.distance > self._config.entity_scan_radius:
                continue
            if entity.kind is EntityKind.PLAYER:
                players.append(entity)
            elif entity.name in hostile_names:
                hostile.append(_with_kind(entity, EntityKind.HOSTILE))
            elif entity.name in passive_names:
                passive.append(_with_kind(entity, EntityKind.PASSIVE))

        def by_distance(item: NearbyEntity) -> float:
            return item.distance

        hostile.sort(key=by_distance)
        passive.sort(key=by_distance)
        players.sort(key=by_distance)
        return tuple(hostile[:_ENTITY_LIMIT]), tuple(passive[:_ENTITY_LIMIT]), tuple(players)


def _with_kind(entity: NearbyEntity, kind: EntityKind) -> NearbyEntity:
    if entity.kind is kind:
        return entity
    return NearbyEntity(
        id=entity.id,
        name=entity.name,
        kind=kind,
        distance=entity.distance,
        position=entity.position,
        health=entity.health,
        valid=entity.valid,
    )


def summarize_inventory(stacks: list[ItemStack]) -> dict[str, int]:
    """Merge inventory stacks into an item name -> count listing."""
    totals: Counter[str] = Counter()
    for stack in stacks:
        if stack.count > 0:
            totals[stack.name] += stack.count
    return dict(totals)


def categorize_blocks(counts: Mapping[str, int]) -> NearbyBlocks:
    ores: dict[str, int] = {}
    wood: dict[str, int] = {}
    flags = dict.fromkeys(_FLAG_BLOCKS, False)

    for name, count in counts.items():
        if count <= 0:
            continue
        if any(marker in name for marker in _ORE_MARKERS):
            ores[name] = ores.get(name, 0) + count
        elif name in LOG_SPECIES:
            wood[name] = wood.get(name, 0) + count
        elif name in flags:
            flags[name] = True

    return NearbyBlocks(
        ores=MappingProxyType(ores),
        wood=MappingProxyType(wood),
        water=flags["water"],
        lava=flags["lava"],
        crafting_table=flags["crafting_table"],
        furnace=flags["furnace"],
        chest=flags["chest"],
    )
