"""World adapter that drives an in-game mod over its HTTP/JSON command server.

The mod owns pathfinding and block interaction; this adapter translates the
:class:`WorldCapability` calls into requests and polls ``/status`` while a
movement is running so that a cancelled :class:`CancelToken` can be turned into
an explicit ``/stop``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from minebot.adapters.world import Block, CancelToken, ItemStack, Recipe, WorldFeatures
from minebot.config import Settings
from minebot.models import EntityKind, NearbyEntity, Position


class ModRequestError(RuntimeError):
    """Raised when the mod rejects a command or answers with an unusable payload."""


def _position(payload: Mapping[str, Any]) -> Position:
    return Position(float(payload["x"]), float(payload["y"]), float(payload["z"]))


def _block(payload: Mapping[str, Any]) -> Block:
    return Block(name=str(payload["name"]), position=_position(payload))


def _coords(position: Position) -> dict[str, float]:
    return {"x": position.x, "y": position.y, "z": position.z}


def _entity(payload: Mapping[str, Any]) -> NearbyEntity:
    kind = EntityKind.PLAYER if payload.get("type") == "player" else EntityKind.OTHER
    health = payload.get("health")
    return NearbyEntity(
        id=int(payload["id"]),
        name=str(payload.get("name") or payload.get("username") or "unknown"),
        kind=kind,
        distance=float(payload.get("distance", 0.0)),
        position=_position(payload) if "x" in payload else Position(0.0, 0.0, 0.0),
        health=float(health) if isinstance(health, (int, float)) else None,
        valid=bool(payload.get("valid", True)),
    )


class ModHttpWorld:
    """Protocol-client adapter for the MineBot mod's command server."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        timeout_seconds: float = 5.0,
        poll_seconds: float = 0.25,
        features: WorldFeatures | None = None,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.features = features or WorldFeatures(collect_block=True, combat_assist=True)
        self._poll_seconds = poll_seconds
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)
        self._logger = logger or logging.getLogger("minebot.adapters.mod_http")

    @classmethod
    def from_settings(cls, config: Settings) -> ModHttpWorld:
        return cls(config.mod_url, timeout_seconds=config.mod_timeout_seconds)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, missing_ok: bool = False, **kwargs: Any) -> dict[str, Any]:
        """Send one command; a 404 is an error unless ``missing_ok``, where it reads as ``{}``."""
        response = await self._client.request(method, path, **kwargs)
        if response.status_code == 404:
            if missing_ok:
                return {}
            raise ModRequestError(f"{method} {path} is not served by the mod")
        response.raise_for_status()
        payload = response.json() if response.content else {}
        if not isinstance(payload, dict):
            raise ModRequestError(f"{method} {path} returned {type(payload).__name__}, expected an object")
        if payload.get("success") is False:
            raise ModRequestError(str(payload.get("error") or f"{method} {path} was rejected"))
        return payload

    async def _get(self, path: str, **params: Any) -> dict[str, Any]:
        return await self._request("GET", path, params=params or None)

    async def _post(self, path: str, body: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("POST", path, json=dict(body or {}))

    async def ping(self) -> bool:
        try:
            await self._get("/status")
        except (httpx.HTTPError, ModRequestError, ValueError):
            return False
        return True

    async def wait_for_connection(self, max_wait_seconds: float, retry_seconds: float = 2.0) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max_wait_seconds
        while True:
            if await self.ping():
                return True
            if loop.time() >= deadline:
                return False
            self._logger.info("waiting_for_mod", extra={"retry_seconds": retry_seconds})
            await asyncio.sleep(retry_seconds)

    async def find_nearest_block(self, name: str, max_distance: float) -> Block | None:
        blocks = await self.find_blocks(name, max_distance, 1)
        return blocks[0] if blocks else None

    async def find_blocks(self, name: str, max_distance: float, limit: int) -> list[Block]:
        payload = await self._post("/blocks/find", {"name": name, "maxDistance": max_distance, "limit": limit})
        return [_block(entry) for entry in payload.get("blocks", [])][:limit]

    async def block_visible(self, block: Block) -> bool:
        payload = await self._post("/blocks/visible", _coords(block.position))
        return bool(payload.get("visible"))

    async def block_at(self, position: Position) -> Block | None:
        payload = await self._get("/blocks/at", **_coords(position))
        if not payload.get("name"):
            return None
        return Block(name=str(payload["name"]), position=position)

    async def move_near(self, position: Position, tolerance: float, cancel: CancelToken) -> None:
        await self._post("/move", {**_coords(position), "tolerance": tolerance})
        await self._follow(cancel)

    async def stop_movement(self) -> None:
        await self._post("/stop")

    async def _follow(self, cancel: CancelToken) -> None:
        """Poll ``/status`` until the mod goes idle; send ``/stop`` once ``cancel`` fires."""
        while True:
            if cancel.cancelled:
                await self.stop_movement()
                return
            status = await self._get("/status")
            if not status.get("busy") and not status.get("moving"):
                if status.get("error"):
                    raise ModRequestError(str(status["error"]))
                return
            try:
                await asyncio.wait_for(cancel.wait(), timeout=self._poll_seconds)
            except asyncio.TimeoutError:
                continue

    async def dig(self, block: Block) -> None:
        await self._post("/dig", _coords(block.position))

    async def collect(self, block: Block, cancel: CancelToken) -> None:
        await self._post("/collect", {**_coords(block.position), "name": block.name})
        await self._follow(cancel)

    async def resolve_recipes(self, item: str, count: int, station: Block | None) -> list[Recipe]:
        body = {"item": item, "count": count, "station": _coords(station.position) if station else None}
        payload = await self._post("/recipes", body)
        return [
            Recipe(
                item=str(entry.get("item", item)),
                result_count=int(entry.get("resultCount", 1)),
                requires_table=bool(entry.get("requiresTable", False)),
                ingredients={str(k): int(v) for k, v in (entry.get("ingredients") or {}).items()},
                handle=entry.get("id"),
            )
            for entry in payload.get("recipes", [])
        ]

    async def craft(self, recipe: Recipe, count: int, station: Block | None) -> None:
        await self._post(
            "/craft",
            {
                "recipeId": recipe.handle,
                "item": recipe.item,
                "count": count,
                "station": _coords(station.position) if station else None,
            },
        )

    async def place_block(self, anchor: Block, face: tuple[int, int, int]) -> None:
        await self._post("/place", {**_coords(anchor.position), "face": list(face)})

    async def equip(self, item: str, slot: str) -> None:
        await self._post("/equip", {"item": item, "slot": slot})

    async def attack(self, entity: NearbyEntity) -> None:
        await self._post("/attack", {"entityId": entity.id})

    async def attack_stop(self) -> None:
        await self._post("/attack/stop")

    async def entity_state(self, entity_id: int) -> NearbyEntity | None:
        payload = await self._request("GET", f"/entities/{entity_id}", missing_ok=True)
        return _entity(payload) if payload else None

    async def consume(self) -> None:
        await self._post("/consume")

    async def chat(self, message: str) -> None:
        await self._post("/chat", {"message": message})

    async def get_position(self) -> Position:
        return _position(await self._get("/position"))

    async def get_health(self) -> float:
        return float((await self._get("/health"))["health"])

    async def get_food(self) -> float:
        return float((await self._get("/health"))["food"])

    async def get_inventory(self) -> list[ItemStack]:
        payload = await self._get("/inventory")
        return [
            ItemStack(name=str(entry.get("item") or entry.get("name")), count=int(entry.get("count", 0)))
            for entry in payload.get("items", [])
        ]

    async def get_nearby_entities(self, max_distance: float) -> list[NearbyEntity]:
        payload = await self._get("/entities", radius=max_distance)
        return [_entity(entry) for entry in payload.get("entities", [])]

    async def get_nearby_blocks(self, max_distance: float) -> Mapping[str, int]:
        payload = await self._get("/blocks/nearby", radius=max_distance)
        return {str(name): int(count) for name, count in (payload.get("blocks") or {}).items()}

    async def get_time_of_day(self) -> int:
        return int((await self._get("/time")).get("timeOfDay", 0))
