"""World-interaction adapters."""

from minebot.adapters.mod_http import ModHttpWorld, ModRequestError
from minebot.adapters.simulated import SimulatedWorld
from minebot.adapters.world import (
    FACES,
    Block,
    CancelToken,
    ItemStack,
    Recipe,
    WorldCapability,
    WorldFeatures,
)
from minebot.config import Settings


def build_world(config: Settings) -> WorldCapability:
    """Pick the world backend once, at startup."""
    if config.world_backend == "simulated":
        return SimulatedWorld.starter()
    return ModHttpWorld.from_settings(config)


__all__ = [
    "FACES",
    "Block",
    "CancelToken",
    "ItemStack",
    "ModHttpWorld",
    "ModRequestError",
    "Recipe",
    "SimulatedWorld",
    "WorldCapability",
    "WorldFeatures",
    "build_world",
]
