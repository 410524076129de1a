"""Derives counted facts about the tooling chain from a raw inventory listing."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

LOG_SPECIES = (
    "oak_log",
    "birch_log",
    "spruce_log",
    "jungle_log",
    "acacia_log",
    "dark_oak_log",
    "mangrove_log",
    "cherry_log",
)
DEFAULT_LOG = "oak_log"

_LOG_SUFFIXES = ("_log", "_stem", "_wood", "_hyphae")
_COBBLESTONE = frozenset({"cobblestone", "cobbled_deepslate"})
_IRON_ORE_BLOCKS = frozenset({"iron_ore", "deepslate_iron_ore"})
_FOOD_KEYWORDS = (
    "cooked",
    "bread",
    "apple",
    "steak",
    "porkchop",
    "chicken",
    "mutton",
    "potato",
    "carrot",
    "melon",
    "berries",
    "rabbit",
)


@dataclass(slots=True, frozen=True)
class InventoryFacts:
    """Counters and flags the planner reads. Recomputed every tick."""

    logs: int = 0
    planks: int = 0
    sticks: int = 0
    cobblestone: int = 0
    raw_iron: int = 0
    iron_ore: int = 0
    iron_ingots: int = 0
    food_items: int = 0
    has_crafting_table_item: bool = False
    has_wooden_pickaxe: bool = False
    has_stone_pickaxe: bool = False
    has_iron_pickaxe: bool = False
    has_furnace_item: bool = False
    log_species: tuple[str, ...] = ()

    @property
    def has_any_pickaxe(self) -> bool:
        return self.has_wooden_pickaxe or self.has_stone_pickaxe or self.has_iron_pickaxe

    @property
    def iron(self) -> int:
        """Iron available to the planner: smelt-ready raw iron plus ingots.

        Silk-touched ore blocks (``iron_ore``) are counted separately and do not
        feed this figure.
        """
        return self.raw_iron + self.iron_ingots


def is_log(name: str) -> bool:
    return name.endswith(_LOG_SUFFIXES)


def is_food(name: str) -> bool:
    return any(keyword in name for keyword in _FOOD_KEYWORDS)


def planks_for(log_name: str) -> str:
    """Map a log item to the planks it crafts into (``stripped_birch_log`` -> ``birch_planks``)."""
    species = log_name.removeprefix("stripped_")
    for suffix in _LOG_SUFFIXES:
        if species.endswith(suffix):
            species = species[: -len(suffix)]
            break
    return f"{species}_planks" if species else "oak_planks"


def _entries(listing: Mapping[str, int] | Iterable[tuple[str, int]]) -> Iterable[tuple[str, int]]:
    if isinstance(listing, Mapping):
        return listing.items()
    return listing


def analyze_inventory(listing: Mapping[str, int] | Iterable[tuple[str, int]]) -> InventoryFacts:
    """Sum raw item counts into :class:`InventoryFacts`; absent categories stay zero."""
    logs = planks = sticks = cobblestone = raw_iron = iron_ore = iron_ingots = food = 0
    held: set[str] = set()
    species: list[str] = []

    for name, count in _entries(listing):
        if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
            continue
        held.add(name)

        if is_log(name):
            logs += count
            if name not in species:
                species.append(name)
        elif name.endswith("_planks"):
            planks += count
        elif name == "stick":
            sticks += count
        elif name in _COBBLESTONE:
            cobblestone += count
        elif name == "raw_iron":
            raw_iron += count
        elif name in _IRON_ORE_BLOCKS:
            iron_ore += count
        elif name == "iron_ingot":
            iron_ingots += count
        elif is_food(name):
            food += count

    return InventoryFacts(
        logs=logs,
        planks=planks,
        sticks=sticks,
        cobblestone=cobblestone,
        raw_iron=raw_iron,
        iron_ore=iron_ore,
        iron_ingots=iron_ingots,
        food_items=food,
        has_crafting_table_item="crafting_table" in held,
        has_wooden_pickaxe="wooden_pickaxe" in held,
        has_stone_pickaxe="stone_pickaxe" in held,
        has_iron_pickaxe="iron_pickaxe" in held or "diamond_pickaxe" in held or "netherite_pickaxe" in held,
        has_furnace_item="furnace" in held,
        log_species=tuple(species),
    )
