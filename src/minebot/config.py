"""Runtime configuration for MineBot."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="MINEBOT_", env_file=".env", extra="ignore")

    app_name: str = "minebot"
    log_level: str = "INFO"

    world_backend: Literal["mod", "simulated"] = "mod"
    mod_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the in-game mod HTTP server.",
    )
    mod_timeout_seconds: float = 5.0
    world_connect_timeout_seconds: float = 60.0

    reasoning_enabled: bool = True
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5:7b"
    ollama_timeout_seconds: float = 60.0
    ollama_temperature: float = 0.7
    ollama_top_p: float = 0.9
    ollama_num_predict: int = 256
    context_max_chars: int = 4_000
    context_history_size: int = 3

    think_interval_seconds: float = 5.0
    initial_delay_seconds: float = 2.0

    planner_tail: Literal["defer", "explore"] = Field(
        default="defer",
        description="What the planner does once the tooling chain is complete.",
    )
    min_planks: int = 5
    table_planks: int = 4
    pickaxe_planks: int = 3
    min_sticks: int = 2
    cobblestone_target: int = 3
    iron_target: int = 3

    station_near_radius: float = 4.0
    station_far_radius: float = 32.0
    log_search_radius: float = 32.0

    mining_max_distance: float = 32.0
    mining_timeout_seconds: float = 60.0
    goto_max_distance: float = 64.0
    goto_timeout_seconds: float = 60.0
    explore_max_distance: float = 100.0
    explore_timeout_seconds: float = 30.0
    craft_station_radius: float = 32.0
    craft_timeout_seconds: float = 10.0
    approach_tolerance: float = 2.0
    approach_timeout_seconds: float = 20.0
    wait_seconds: float = 2.0

    attack_range: float = 3.0
    fight_timeout_seconds: float = 30.0
    fight_poll_seconds: float = 0.5
    fight_disengage_distance: float = 20.0
    entity_scan_radius: float = 32.0
    hostile_mobs: list[str] = Field(
        default_factory=lambda: [
            "zombie",
            "skeleton",
            "spider",
            "creeper",
            "enderman",
            "witch",
            "pillager",
            "vindicator",
            "drowned",
            "husk",
            "stray",
            "phantom",
        ]
    )
    passive_mobs: list[str] = Field(
        default_factory=lambda: [
            "cow",
            "pig",
            "sheep",
            "chicken",
            "rabbit",
            "horse",
            "donkey",
            "llama",
            "villager",
        ]
    )
    critical_health: int = 6
    craft_priority_items: list[str] = Field(
        default_factory=lambda: [
            "crafting_table",
            "wooden_pickaxe",
            "stone_pickaxe",
            "iron_pickaxe",
            "diamond_pickaxe",
            "wooden_sword",
            "stone_sword",
            "iron_sword",
            "diamond_sword",
            "wooden_axe",
            "stone_axe",
            "iron_axe",
            "furnace",
            "chest",
            "torch",
            "stick",
            "oak_planks",
            "spruce_planks",
            "birch_planks",
        ],
        description="Items checked for craftability each tick and listed in the reasoning context.",
    )

    history_path: str | None = Field(
        default=None,
        description="JSONL file receiving every completed tick; in-memory only when unset.",
    )


settings = Settings()
