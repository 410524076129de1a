"""Prompt construction for the reasoning service."""

from __future__ import annotations

from collections.abc import Sequence

from minebot.history import ActionRecord
from minebot.inventory import InventoryFacts, is_food, is_log
from minebot.models import ActionKind, PerceptionSnapshot

SYSTEM_PROMPT = f"""You are an autonomous Minecraft survival bot brain. Your goal is to survive and progress.

RULES:
1. Respond with ONLY a JSON object: {{"action": "string", "target": "string", "reason": "string"}}
2. No text before or after the JSON.

AVAILABLE ACTIONS ({", ".join(kind.value for kind in ActionKind)}):
- "mine" - Collect a block. Target: block name (oak_log, stone, iron_ore, coal_ore)
- "craft" - Craft an item. Target: item name (stick, crafting_table, furnace, stone_sword)
- "place" - Place a block from inventory. Target: block name (crafting_table, furnace, torch)
- "explore" - Walk to find resources. Target: "random"
- "fight" - Attack entity. Target: entity name (zombie, skeleton, spider)
- "eat" - Eat food. Target: food name (bread, cooked_beef, apple)
- "chat" - Say something. Target: the message
- "goto" - Walk to a block or coordinates. Target: block name or "x,y,z"
- "wait" - Do nothing. Target: "idle"

PRIORITIES:
1. If health is low: eat or fight the nearest threat
2. If hungry and food is available: eat
3. Mine coal and iron, craft a furnace, improve tools and weapons
4. If nothing useful is nearby: explore
5. If the last action failed, try something different

RESPOND WITH ONLY THE JSON."""

_TOOL_MARKERS = ("pickaxe", "_axe", "shovel", "hoe", "sword", "bow", "crossbow", "trident")
_ARMOR_MARKERS = ("helmet", "chestplate", "leggings", "boots")


def _listing(items: Sequence[str], empty: str = "None") -> str:
    return ", ".join(items) if items else empty


def format_context(
    snapshot: PerceptionSnapshot,
    facts: InventoryFacts,
    history: Sequence[ActionRecord] = (),
    *,
    critical_health: int = 6,
) -> str:
    """Render the snapshot as a compact, sectioned text block."""
    tools: list[str] = []
    food: list[str] = []
    armor: list[str] = []
    blocks: list[str] = []
    other: list[str] = []
    for name, count in sorted(snapshot.inventory.items()):
        entry = f"{name}:{count}"
        if any(marker in name for marker in _TOOL_MARKERS):
            tools.append(entry)
        elif any(marker in name for marker in _ARMOR_MARKERS):
            armor.append(entry)
        elif is_food(name):
            food.append(entry)
        elif is_log(name) or name.endswith("_planks") or "stone" in name or name == "dirt":
            blocks.append(entry)
        else:
            other.append(entry)

    low = " LOW!" if snapshot.health < critical_health else ""
    lines = [
        "=== STATUS ===",
        f"Health: {snapshot.health:.0f}/20{low}",
        f"Food: {snapshot.food:.0f}/20",
        f"Time: {snapshot.time_of_day.value}",
        (
            f"Position: X:{snapshot.position.x:.0f} Y:{snapshot.position.y:.0f} "
            f"Z:{snapshot.position.z:.0f}"
        ),
        "",
        f"=== INVENTORY ({'EMPTY!' if not snapshot.inventory else f'{len(snapshot.inventory)} kinds'}) ===",
        f"Logs: {facts.logs} | Planks: {facts.planks} | Sticks: {facts.sticks} | Cobblestone: {facts.cobblestone}",
        f"Iron: raw {facts.raw_iron}, ingots {facts.iron_ingots}, ore blocks {facts.iron_ore}",
        f"Crafting table in inventory: {'Yes (place it!)' if facts.has_crafting_table_item else 'No'}",
        f"Tools/Weapons: {_listing(tools)}",
        f"Armor: {_listing(armor)}",
        f"Food: {_listing(food)}",
        f"Blocks: {_listing(blocks)}",
        f"Other: {_listing(other)}",
        "",
        "=== NEARBY ===",
        f"Trees: {_listing([f'{n}:{c}' for n, c in snapshot.blocks.wood.items()], 'None visible')}",
        f"Ores: {_listing([f'{n}:{c}' for n, c in snapshot.blocks.ores.items()])}",
        f"Crafting table nearby: {'YES' if snapshot.blocks.crafting_table else 'No'}",
        f"Furnace nearby: {'YES' if snapshot.blocks.furnace else 'No'}",
        f"Water: {'yes' if snapshot.blocks.water else 'no'} | Lava: {'YES, careful' if snapshot.blocks.lava else 'no'}",
        f"Hostile mobs: {_listing([f'{e.name}({e.distance:.0f}m)' for e in snapshot.hostile])}",
        f"Passive mobs: {_listing([f'{e.name}({e.distance:.0f}m)' for e in snapshot.passive])}",
        f"Players: {_listing([f'{e.name}({e.distance:.0f}m)' for e in snapshot.players])}",
        "",
        "=== CAN CRAFT ===",
        _listing(list(snapshot.craftable), "NOTHING - need materials first!"),
    ]

    if snapshot.missing_facets:
        lines += ["", f"(unavailable this tick: {', '.join(snapshot.missing_facets)})"]

    last = snapshot.last_result
    if last is not None:
        outcome = "SUCCESS" if last.success else "FAILED"
        action = last.action.value if last.action else "error"
        lines += ["", "=== LAST ACTION ===", f"{action} -> {last.target or 'N/A'}: {outcome}"]
        if last.diagnostic and not last.success:
            lines.append(f"Reason: {last.diagnostic}")

    if history:
        lines += ["", "=== RECENT ACTIONS ==="]
        for record in history:
            status = "ok" if record.result.success else "failed"
            lines.append(f"- {record.decision.action.value} {record.decision.target} ({status})")

    return "\n".join(lines)


def build_prompt(context: str, *, max_context_chars: int) -> str:
    if len(context) > max_context_chars:
        context = context[: max(0, max_context_chars - 3)] + "..."
    return (
        f"{SYSTEM_PROMPT}\n\nCURRENT GAME STATE:\n{context}\n\n"
        "Based on the current state, what should I do next? Respond with ONLY the JSON object."
    )
