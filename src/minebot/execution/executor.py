"""Executes decisions against the world, one at a time, under timeouts."""

from __future__ import annotations

import asyncio
import logging
import math
import random
from collections.abc import Awaitable, Callable

from minebot.adapters.world import FACES, Block, CancelToken, WorldCapability
from minebot.config import Settings
from minebot.errors import (
    ActionError,
    ActionTimeoutError,
    ErrorKind,
    MissingMaterialsError,
    NoPlacementSiteError,
    TargetNotFoundError,
)
from minebot.execution.flight import SingleFlight
from minebot.inventory import is_food
from minebot.models import ActionKind, ActionResult, Decision, Position

Handler = Callable[[str], Awaitable[None]]
Operation = Callable[[CancelToken], Awaitable[None]]

CRAFTING_TABLE = "crafting_table"
WEAPON_RANKING = (
    "netherite_sword",
    "diamond_sword",
    "iron_sword",
    "stone_sword",
    "golden_sword",
    "wooden_sword",
    "netherite_axe",
    "diamond_axe",
    "iron_axe",
    "stone_axe",
    "wooden_axe",
)
# Footing candidates around the agent: the ground ring first, then the body ring.
PLACEMENT_RING: tuple[tuple[int, int, int], ...] = (
    (1, -1, 0),
    (-1, -1, 0),
    (0, -1, 1),
    (0, -1, -1),
    (1, 0, 0),
    (-1, 0, 0),
    (0, 0, 1),
    (0, 0, -1),
)
NON_SOLID = frozenset({"air", "cave_air", "void_air", "water", "lava"})
_ANY_FOOD = frozenset({"", "food", "any", "any_food"})


def parse_coordinates(target: str, current_y: float) -> Position | None:
    """Parse ``"x,y,z"`` or ``"x,z"``; anything else is treated as a block name."""
    parts = [part.strip() for part in target.split(",")]
    if len(parts) not in (2, 3):
        return None
    try:
        numbers = [float(part) for part in parts]
    except ValueError:
        return None
    if len(numbers) == 2:
        return Position(numbers[0], current_y, numbers[1])
    return Position(*numbers)


class ActionExecutor:
    """Per-kind handlers behind a single-flight guard.

    Every long-running step (approach, mining, crafting, combat) races a timer.
    When the timer wins the step's :class:`CancelToken` is cancelled and the world
    is told to stop moving before the handler returns, so an abandoned movement
    never keeps driving the agent.
    """

    def __init__(
        self,
        world: WorldCapability,
        config: Settings,
        *,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._world = world
        self._config = config
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger("minebot.execution")
        self._flight: SingleFlight[Decision] = SingleFlight()
        self._handlers: dict[ActionKind, Handler] = {
            ActionKind.MINE: self._mine,
            ActionKind.CRAFT: self._craft,
            ActionKind.PLACE: self._place,
            ActionKind.EXPLORE: self._explore,
            ActionKind.FIGHT: self._fight,
            ActionKind.EAT: self._eat,
            ActionKind.CHAT: self._chat,
            ActionKind.GOTO: self._goto,
            ActionKind.WAIT: self._wait,
        }
        missing = set(ActionKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for action kinds: {sorted(kind.value for kind in missing)}")

    @property
    def busy(self) -> bool:
        return self._flight.busy

    @property
    def current(self) -> Decision | None:
        return self._flight.current

    async def execute(self, decision: Decision) -> ActionResult:
        """Run ``decision`` to completion, or reject it when another action is in flight."""
        if not self._flight.try_acquire(decision):
            current = self._flight.current
            running = f"{current.action.value} -> {current.target}" if current else "unknown"
            self._logger.warning(
                "action_rejected_busy",
                extra={"action": decision.action.value, "target": decision.target, "running": running},
            )
            return ActionResult.failed(
                ErrorKind.ACTION_BUSY,
                f"Already executing {running}",
                action=decision.action,
                target=decision.target,
            )

        self._logger.info(
            "action_started",
            extra={"action": decision.action.value, "target": decision.target, "reason": decision.reason},
        )
        try:
            await self._handlers[decision.action](decision.target)
            result = ActionResult.ok(decision)
        except ActionError as exc:
            result = ActionResult.failed(exc.kind, str(exc), action=decision.action, target=decision.target)
        except Exception as exc:  # noqa: BLE001 - handler failures become failed results.
            self._logger.exception(
                "action_crashed", extra={"action": decision.action.value, "target": decision.target}
            )
            result = ActionResult.failed(
                ErrorKind.ACTION_FAILED,
                f"{type(exc).__name__}: {exc}",
                action=decision.action,
                target=decision.target,
            )
        finally:
            self._flight.release()

        if result.success:
            self._logger.info("action_succeeded", extra={"action": decision.action.value, "target": decision.target})
        else:
            self._logger.warning(
                "action_failed",
                extra={"action": decision.action.value, "target": decision.target, "error": result.diagnostic},
            )
        return result

    async def _bounded(self, operation: Operation, timeout: float, *, what: str) -> bool:
        """Race ``operation`` against ``timeout``; False means the timer won and the world was stopped."""
        token = CancelToken()
        try:
            await asyncio.wait_for(operation(token), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            token.cancel(f"{what} timed out")
            self._logger.warning("operation_timeout", extra={"operation": what, "timeout_seconds": timeout})
            try:
                await self._world.stop_movement()
            except Exception:  # noqa: BLE001 - stopping is best effort; the timeout is still reported.
                self._logger.exception("stop_movement_failed", extra={"operation": what})
            return False

    def _move(self, position: Position) -> Operation:
        tolerance = self._config.approach_tolerance

        async def _operation(token: CancelToken) -> None:
            await self._world.move_near(position, tolerance, token)

        return _operation

    async def _mine(self, target: str) -> None:
        cfg = self._config
        block = await self._world.find_nearest_block(target, cfg.mining_max_distance)
        if block is None:
            raise TargetNotFoundError(f"No {target} found within {cfg.mining_max_distance:g} blocks")

        if self._world.features.collect_block:

            async def _operation(token: CancelToken) -> None:
                await self._world.collect(block, token)

        else:

            async def _operation(token: CancelToken) -> None:
                await self._world.move_near(block.position, cfg.approach_tolerance, token)
                if not token.cancelled:
                    await self._world.dig(block)

        if not await self._bounded(_operation, cfg.mining_timeout_seconds, what=f"mine {target}"):
            raise ActionTimeoutError(f"Mining {target} did not finish within {cfg.mining_timeout_seconds:g}s")

    async def _goto(self, target: str) -> None:
        cfg = self._config
        here = await self._world.get_position()
        destination = parse_coordinates(target, here.y)
        if destination is None:
            block = await self._world.find_nearest_block(target, cfg.goto_max_distance)
            if block is None:
                raise TargetNotFoundError(f"No {target} found within {cfg.goto_max_distance:g} blocks")
            destination = block.position

        if not await self._bounded(self._move(destination), cfg.goto_timeout_seconds, what=f"goto {target}"):
            raise ActionTimeoutError(f"Did not reach {target} within {cfg.goto_timeout_seconds:g}s")

    async def _explore(self, target: str) -> None:
        cfg = self._config
        here = await self._world.get_position()
        angle = self._rng.random() * math.pi * 2
        distance = cfg.explore_max_distance * (0.5 + self._rng.random() * 0.5)
        destination = Position(
            math.floor(here.x + math.cos(angle) * distance),
            here.y,
            math.floor(here.z + math.sin(angle) * distance),
        )
        self._logger.info(
            "explore_heading",
            extra={"x": destination.x, "z": destination.z, "distance": round(distance, 1)},
        )

        reached = await self._bounded(self._move(destination), cfg.explore_timeout_seconds, what="explore")
        if not reached:
            self._logger.info("explore_timeout_accepted", extra={"timeout_seconds": cfg.explore_timeout_seconds})

    async def _craft(self, target: str) -> None:
        cfg = self._config
        station = await self._world.find_nearest_block(CRAFTING_TABLE, cfg.craft_station_radius)

        recipes = await self._world.resolve_recipes(target, 1, station) if station else []
        if not recipes:
            station = None
            recipes = await self._world.resolve_recipes(target, 1, None)
        if not recipes:
            raise MissingMaterialsError(f"Cannot craft {target} with current inventory")

        recipe = recipes[0]
        if recipe.requires_table and station is not None:
            await self._approach_station(station)

        async def _operation(token: CancelToken) -> None:
            await self._world.craft(recipe, 1, station)

        if not await self._bounded(_operation, cfg.craft_timeout_seconds, what=f"craft {target}"):
            raise ActionTimeoutError(f"Crafting {target} did not finish within {cfg.craft_timeout_seconds:g}s")

    async def _approach_station(self, station: Block) -> None:
        """Walk to the crafting table; failing to get there does not abort the craft."""
        try:
            reached = await self._bounded(
                self._move(station.position),
                self._config.approach_timeout_seconds,
                what="approach crafting table",
            )
        except Exception as exc:  # noqa: BLE001 - the craft is still attempted from here.
            self._logger.warning("craft_approach_failed", extra={"error": f"{type(exc).__name__}: {exc}"})
            return
        if not reached:
            self._logger.warning("craft_approach_failed", extra={"error": "timeout"})

    async def _place(self, target: str) -> None:
        inventory = await self._world.get_inventory()
        if not any(stack.name == target and stack.count > 0 for stack in inventory):
            raise MissingMaterialsError(f"No {target} in inventory")

        await self._world.equip(target, "hand")
        origin = (await self._world.get_position()).floored()

        for dx, dy, dz in PLACEMENT_RING:
            anchor = await self._world.block_at(origin.offset(dx, dy, dz))
            if anchor is None or anchor.name in NON_SOLID:
                continue
            for face in FACES:
                try:
                    await self._world.place_block(anchor, face)
                except Exception as exc:  # noqa: BLE001 - an occupied face just means trying the next one.
                    self._logger.debug(
                        "place_attempt_failed",
                        extra={"anchor": anchor.position.as_tuple(), "face": face, "error": str(exc)},
                    )
                    continue
                return

        raise NoPlacementSiteError(f"Could not find a place to put {target}")

    async def _fight(self, target: str) -> None:
        cfg = self._config
        entities = await self._world.get_nearby_entities(cfg.entity_scan_radius)
        candidates = sorted(
            (entity for entity in entities if entity.name == target and entity.valid),
            key=lambda entity: entity.distance,
        )
        if not candidates:
            raise TargetNotFoundError(f"No {target} found nearby")
        entity = candidates[0]

        if entity.distance > cfg.attack_range * 4:
            reached = await self._bounded(
                self._move(entity.position), cfg.approach_timeout_seconds, what=f"approach {target}"
            )
            if not reached:
                raise ActionTimeoutError(f"Could not close in on {target}")

        await self._equip_best_weapon()

        if not self._world.features.combat_assist:
            await self._world.attack(entity)
            return

        async def _engagement(token: CancelToken) -> None:
            while not token.cancelled:
                await asyncio.sleep(cfg.fight_poll_seconds)
                state = await self._world.entity_state(entity.id)
                if state is None or not state.valid:
                    return
                if state.distance > cfg.fight_disengage_distance:
                    return
                if state.health is not None and state.health <= 0:
                    return

        await self._world.attack(entity)
        try:
            ended = await self._bounded(_engagement, cfg.fight_timeout_seconds, what=f"fight {target}")
        finally:
            await self._world.attack_stop()
        self._logger.info("combat_ended", extra={"target": target, "forced": not ended})

    async def _equip_best_weapon(self) -> None:
        owned = {stack.name for stack in await self._world.get_inventory() if stack.count > 0}
        for weapon in WEAPON_RANKING:
            if weapon in owned:
                await self._world.equip(weapon, "hand")
                return

    async def _eat(self, target: str) -> None:
        wanted = target.strip().lower()
        inventory = await self._world.get_inventory()
        foods = [
            stack.name
            for stack in inventory
            if stack.count > 0 and is_food(stack.name) and (wanted in _ANY_FOOD or stack.name == wanted)
        ]
        if not foods:
            raise MissingMaterialsError("No food in inventory" if wanted in _ANY_FOOD else f"No {wanted} in inventory")

        await self._world.equip(foods[0], "hand")
        await self._world.consume()

    async def _chat(self, target: str) -> None:
        message = target.strip()
        if not message:
            raise ActionError("Nothing to say")
        await self._world.chat(message)

    async def _wait(self, target: str) -> None:
        await asyncio.sleep(self._config.wait_seconds)
