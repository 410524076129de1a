"""Contract for the natural-language reasoning service."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(slots=True, frozen=True)
class ReasoningProbe:
    """Liveness and model-availability report."""

    reachable: bool
    model_available: bool
    models: tuple[str, ...] = field(default_factory=tuple)
    error: str | None = None


class ReasoningService(Protocol):
    """Request/response text generation with independent availability."""

    async def generate(self, prompt: str, options: Mapping[str, Any] | None = None) -> str:
        """Return the free-text completion for ``prompt``."""

    async def probe(self) -> ReasoningProbe:
        """Report whether the service and its configured model can be used."""
