"""Boundary for world-interaction integrations (movement, blocks, inventory, combat)."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from minebot.models import NearbyEntity, Position


@dataclass(slots=True, frozen=True)
class Block:
    name: str
    position: Position


@dataclass(slots=True, frozen=True)
class ItemStack:
    name: str
    count: int


@dataclass(slots=True, frozen=True)
class Recipe:
    """A craftable recipe as resolved by the world for the current inventory."""

    item: str
    result_count: int = 1
    requires_table: bool = False
    ingredients: Mapping[str, int] = field(default_factory=dict)
    handle: Any = None


@dataclass(slots=True, frozen=True)
class WorldFeatures:
    """Optional capabilities, fixed when the adapter is constructed."""

    collect_block: bool = False
    combat_assist: bool = False


class CancelToken:
    """Cooperative cancellation flag handed to long-running world operations."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


FACES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 0),
    (1, 0, 0),
    (-1, 0, 0),
    (0, 0, 1),
    (0, 0, -1),
)


class WorldCapability(Protocol):
    """Interface to observe and act on the running game on behalf of the agent."""

    features: WorldFeatures

    async def ping(self) -> bool:
        """Return True when the game side is reachable."""

    async def find_nearest_block(self, name: str, max_distance: float) -> Block | None:
        """Return the nearest block called ``name`` within ``max_distance``."""

    async def find_blocks(self, name: str, max_distance: float, limit: int) -> list[Block]:
        """Return up to ``limit`` blocks called ``name``, nearest first."""

    async def block_visible(self, block: Block) -> bool:
        """Return True when the agent has an unobstructed line of sight to ``block``."""

    async def block_at(self, position: Position) -> Block | None:
        """Return the block occupying ``position`` (``air`` included)."""

    async def move_near(self, position: Position, tolerance: float, cancel: CancelToken) -> None:
        """Walk to within ``tolerance`` of ``position``; stop early once ``cancel`` fires."""

    async def stop_movement(self) -> None:
        """Abort any movement in progress."""

    async def dig(self, block: Block) -> None:
        """Break ``block`` and pick up its drop."""

    async def collect(self, block: Block, cancel: CancelToken) -> None:
        """Approach and collect ``block`` in one step (requires ``features.collect_block``)."""

    async def resolve_recipes(self, item: str, count: int, station: Block | None) -> list[Recipe]:
        """Return recipes for ``item`` craftable now, optionally using ``station``."""

    async def craft(self, recipe: Recipe, count: int, station: Block | None) -> None:
        """Craft ``recipe`` ``count`` times."""

    async def place_block(self, anchor: Block, face: tuple[int, int, int]) -> None:
        """Place the held block against ``face`` of ``anchor``."""

    async def equip(self, item: str, slot: str) -> None:
        """Move ``item`` from the inventory into ``slot``."""

    async def attack(self, entity: NearbyEntity) -> None:
        """Start engaging ``entity``."""

    async def attack_stop(self) -> None:
        """Stop any ongoing engagement."""

    async def entity_state(self, entity_id: int) -> NearbyEntity | None:
        """Return the current state of a tracked entity, or None once it is gone."""

    async def consume(self) -> None:
        """Consume the held item."""

    async def chat(self, message: str) -> None:
        """Send a chat message."""

    async def get_position(self) -> Position: ...

    async def get_health(self) -> float: ...

    async def get_food(self) -> float: ...

    async def get_inventory(self) -> list[ItemStack]: ...

    async def get_nearby_entities(self, max_distance: float) -> list[NearbyEntity]: ...

    async def get_nearby_blocks(self, max_distance: float) -> Mapping[str, int]: ...

    async def get_time_of_day(self) -> int: ...
