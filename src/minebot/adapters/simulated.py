"""In-process world used for local demos and tests.

Not accurate to Minecraft: movement is a straight XZ hop, every block is visible
unless listed in ``hidden``, and only the recipes of the tooling chain exist.
"""

from __future__ import annotations

import asyncio
import math
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from minebot.adapters.world import Block, CancelToken, ItemStack, Recipe, WorldFeatures
from minebot.inventory import is_food, is_log, planks_for
from minebot.models import EntityKind, NearbyEntity, Position

Coord = tuple[int, int, int]

_ANY_PLANKS = "#planks"
_PICKAXE_ONLY = frozenset({"stone", "cobblestone", "iron_ore", "coal_ore", "deepslate"})
_DROPS = {
    "stone": "cobblestone",
    "iron_ore": "raw_iron",
    "coal_ore": "coal",
    "grass_block": "dirt",
}
_RECIPES: dict[str, tuple[dict[str, int], int, bool]] = {
    "stick": ({_ANY_PLANKS: 2}, 4, False),
    "crafting_table": ({_ANY_PLANKS: 4}, 1, False),
    "wooden_pickaxe": ({_ANY_PLANKS: 3, "stick": 2}, 1, True),
    "wooden_sword": ({_ANY_PLANKS: 2, "stick": 1}, 1, True),
    "stone_pickaxe": ({"cobblestone": 3, "stick": 2}, 1, True),
    "stone_sword": ({"cobblestone": 2, "stick": 1}, 1, True),
    "furnace": ({"cobblestone": 8}, 1, True),
}


def _coord(position: Position) -> Coord:
    floored = position.floored()
    return (int(floored.x), int(floored.y), int(floored.z))


def _position(coord: Coord) -> Position:
    return Position(float(coord[0]), float(coord[1]), float(coord[2]))


@dataclass(slots=True)
class SimulatedEntity:
    id: int
    name: str
    position: Position
    health: float = 20.0
    kind: EntityKind = EntityKind.OTHER


@dataclass
class SimulatedWorld:
    """Mutable toy world implementing :class:`WorldCapability`."""

    blocks: dict[Coord, str] = field(default_factory=dict)
    inventory: Counter = field(default_factory=Counter)
    position: Position = Position(0.5, 64.0, 0.5)
    health: float = 20.0
    food: float = 20.0
    time_of_day: int = 1_000
    entities: dict[int, SimulatedEntity] = field(default_factory=dict)
    hidden: set[Coord] = field(default_factory=set)
    move_seconds: float = 0.0
    attack_damage: float = 5.0
    features: WorldFeatures = field(default_factory=lambda: WorldFeatures(collect_block=True, combat_assist=True))
    held: str | None = None
    engaged: int | None = None
    chat_log: list[str] = field(default_factory=list)
    moves: list[Position] = field(default_factory=list)
    stops: int = 0

    @classmethod
    def starter(cls, seed_items: Mapping[str, int] | None = None) -> SimulatedWorld:
        """A grass platform over stone with two oak trees, some iron and a zombie."""
        world = cls(inventory=Counter(seed_items or {}))
        for x in range(-6, 7):
            for z in range(-6, 7):
                world.blocks[(x, 63, z)] = "grass_block"
                world.blocks[(x, 62, z)] = "stone"
                world.blocks[(x, 61, z)] = "stone"
        for base in ((2, 64, 2), (-3, 64, 4)):
            for height in range(4):
                world.blocks[(base[0], base[1] + height, base[2])] = "oak_log"
        for coord in ((5, 61, 5), (5, 61, -5), (-5, 61, 5)):
            world.blocks[coord] = "iron_ore"
        world.entities[1] = SimulatedEntity(id=1, name="zombie", position=Position(8.0, 64.0, 8.0))
        return world

    def _distance(self, coord: Coord) -> float:
        return self.position.distance_to(_position(coord))

    def _matching(self, name: str, max_distance: float) -> list[Block]:
        found = [
            (self._distance(coord), coord)
            for coord, block_name in self.blocks.items()
            if block_name == name and self._distance(coord) <= max_distance
        ]
        found.sort()
        return [Block(name=name, position=_position(coord)) for _, coord in found]

    async def ping(self) -> bool:
        return True

    async def find_nearest_block(self, name: str, max_distance: float) -> Block | None:
        matches = self._matching(name, max_distance)
        return matches[0] if matches else None

    async def find_blocks(self, name: str, max_distance: float, limit: int) -> list[Block]:
        return self._matching(name, max_distance)[:limit]

    async def block_visible(self, block: Block) -> bool:
        return _coord(block.position) not in self.hidden

    async def block_at(self, position: Position) -> Block | None:
        return Block(name=self.blocks.get(_coord(position), "air"), position=position.floored())

    async def move_near(self, position: Position, tolerance: float, cancel: CancelToken) -> None:
        if self.move_seconds > 0:
            try:
                await asyncio.wait_for(cancel.wait(), timeout=self.move_seconds)
            except asyncio.TimeoutError:
                pass
            else:
                return

        dx = position.x - self.position.x
        dz = position.z - self.position.z
        flat = math.hypot(dx, dz)
        if flat > tolerance:
            scale = (flat - tolerance) / flat
            self.position = self.position.offset(dx * scale, 0.0, dz * scale)
        self.moves.append(position)

    async def stop_movement(self) -> None:
        self.stops += 1

    async def dig(self, block: Block) -> None:
        coord = _coord(block.position)
        name = self.blocks.get(coord)
        if name is None:
            raise RuntimeError(f"Nothing to dig at {coord}")
        if name in _PICKAXE_ONLY and not any(item.endswith("_pickaxe") for item in +self.inventory):
            raise RuntimeError(f"{name} needs a pickaxe")
        del self.blocks[coord]
        self.inventory[_DROPS.get(name, name)] += 1

    async def collect(self, block: Block, cancel: CancelToken) -> None:
        await self.move_near(block.position, 2.0, cancel)
        if not cancel.cancelled:
            await self.dig(block)

    def _planks_held(self) -> int:
        return sum(count for name, count in self.inventory.items() if name.endswith("_planks"))

    def _ingredients_for(self, item: str) -> tuple[dict[str, int], int, bool] | None:
        if item.endswith("_planks"):
            logs = [name for name, count in self.inventory.items() if count > 0 and is_log(name)]
            source = next((name for name in logs if planks_for(name) == item), None)
            return ({source: 1}, 4, False) if source else None
        return _RECIPES.get(item)

    def _satisfiable(self, ingredients: Mapping[str, int], times: int) -> bool:
        for name, needed in ingredients.items():
            have = self._planks_held() if name == _ANY_PLANKS else self.inventory[name]
            if have < needed * times:
                return False
        return True

    async def resolve_recipes(self, item: str, count: int, station: Block | None) -> list[Recipe]:
        found = self._ingredients_for(item)
        if found is None:
            return []
        ingredients, result_count, requires_table = found
        if requires_table and station is None:
            return []
        if not self._satisfiable(ingredients, count):
            return []
        return [Recipe(item=item, result_count=result_count, requires_table=requires_table, ingredients=ingredients)]

    def _take(self, name: str, amount: int) -> None:
        if name != _ANY_PLANKS:
            self.inventory[name] -= amount
            return
        for plank in sorted(n for n in self.inventory if n.endswith("_planks")):
            used = min(amount, self.inventory[plank])
            self.inventory[plank] -= used
            amount -= used
            if amount == 0:
                return

    async def craft(self, recipe: Recipe, count: int, station: Block | None) -> None:
        if not self._satisfiable(recipe.ingredients, count):
            raise RuntimeError(f"Missing ingredients for {recipe.item}")
        for name, needed in recipe.ingredients.items():
            self._take(name, needed * count)
        self.inventory[recipe.item] += recipe.result_count * count
        self.inventory = +self.inventory

    async def place_block(self, anchor: Block, face: tuple[int, int, int]) -> None:
        if self.held is None or self.inventory[self.held] <= 0:
            raise RuntimeError("Nothing held to place")
        base = _coord(anchor.position)
        target = (base[0] + face[0], base[1] + face[1], base[2] + face[2])
        if target in self.blocks:
            raise RuntimeError(f"{target} is occupied")
        self.blocks[target] = self.held
        self.inventory[self.held] -= 1
        self.inventory = +self.inventory

    async def equip(self, item: str, slot: str) -> None:
        if self.inventory[item] <= 0:
            raise RuntimeError(f"No {item} to equip")
        self.held = item

    async def attack(self, entity: NearbyEntity) -> None:
        self.engaged = entity.id

    async def attack_stop(self) -> None:
        self.engaged = None

    def _view(self, entity: SimulatedEntity) -> NearbyEntity:
        return NearbyEntity(
            id=entity.id,
            name=entity.name,
            kind=entity.kind,
            distance=self.position.distance_to(entity.position),
            position=entity.position,
            health=entity.health,
            valid=entity.health > 0,
        )

    async def entity_state(self, entity_id: int) -> NearbyEntity | None:
        entity = self.entities.get(entity_id)
        if entity is None:
            return None
        if self.engaged == entity_id:
            entity.health = max(0.0, entity.health - self.attack_damage)
            if entity.health == 0:
                del self.entities[entity_id]
        return self._view(entity)

    async def consume(self) -> None:
        if self.held is None or self.inventory[self.held] <= 0 or not is_food(self.held):
            raise RuntimeError("Not holding food")
        self.inventory[self.held] -= 1
        self.inventory = +self.inventory
        self.food = min(20.0, self.food + 4)

    async def chat(self, message: str) -> None:
        self.chat_log.append(message)

    async def get_position(self) -> Position:
        return self.position

    async def get_health(self) -> float:
        return self.health

    async def get_food(self) -> float:
        return self.food

    async def get_inventory(self) -> list[ItemStack]:
        return [ItemStack(name=name, count=count) for name, count in self.inventory.items() if count > 0]

    async def get_nearby_entities(self, max_distance: float) -> list[NearbyEntity]:
        views = [self._view(entity) for entity in self.entities.values()]
        return [view for view in views if view.distance <= max_distance]

    async def get_nearby_blocks(self, max_distance: float) -> Mapping[str, int]:
        counts: Counter[str] = Counter()
        for coord, name in self.blocks.items():
            if self._distance(coord) <= max_distance:
                counts[name] += 1
        return dict(counts)

    async def get_time_of_day(self) -> int:
        return self.time_of_day

    def give(self, items: Iterable[tuple[str, int]]) -> None:
        for name, count in items:
            self.inventory[name] += count
