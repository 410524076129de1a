"""Single-flight token guarding the one action allowed in progress."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class SingleFlight(Generic[T]):
    """Busy flag plus a descriptor of what holds it.

    ``try_acquire`` fails instead of waiting; callers treat a failed acquisition
    as "skip" or "reject", never as "queue".
    """

    busy: bool = False
    current: T | None = None

    def try_acquire(self, descriptor: T) -> bool:
        if self.busy:
            return False
        self.busy = True
        self.current = descriptor
        return True

    def release(self) -> None:
        self.busy = False
        self.current = None
