"""Persistence for completed ticks: what was decided, by whom, and how it went."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from minebot.errors import ErrorKind
from minebot.models import ActionKind, ActionResult, Decision, DecisionSource


@dataclass(slots=True, frozen=True)
class ActionRecord:
    """One completed tick."""

    tick: int
    source: DecisionSource
    decision: Decision
    result: ActionResult
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> dict:
        return {
            "tick": self.tick,
            "source": self.source.value,
            "decision": self.decision.to_payload(),
            "result": {
                **self.result.to_payload(),
                "error_kind": self.result.error_kind.value if self.result.error_kind else None,
                "error_message": self.result.error,
            },
            "recorded_at": self.recorded_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, payload: dict) -> ActionRecord:
        result = payload["result"]
        action = result.get("action")
        error_kind = result.get("error_kind")
        return cls(
            tick=int(payload["tick"]),
            source=DecisionSource(payload["source"]),
            decision=Decision.from_payload(payload["decision"]),
            result=ActionResult(
                action=None if action in (None, "error") else ActionKind(action),
                target=result.get("target", ""),
                success=bool(result.get("success")),
                error_kind=ErrorKind(error_kind) if error_kind else None,
                error=result.get("error_message"),
            ),
            recorded_at=datetime.fromisoformat(payload["recorded_at"]),
        )


class ActionHistoryStore(Protocol):
    """Persistence contract for storing tick history."""

    def append(self, record: ActionRecord) -> None:
        """Persist a finished tick record."""

    def list_recent(self, limit: int) -> list[ActionRecord]:
        """Return up to ``limit`` newest records."""


class InMemoryHistoryStore:
    """Bounded in-memory history store."""

    def __init__(self, max_records: int = 1_000) -> None:
        self._records: deque[ActionRecord] = deque(maxlen=max_records)

    def append(self, record: ActionRecord) -> None:
        self._records.appendleft(record)

    def list_recent(self, limit: int) -> list[ActionRecord]:
        return list(self._records)[:limit]


class JsonlHistoryStore:
    """Append-only JSONL tick history, newest read first."""

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: ActionRecord) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record.to_payload()) + "\n")

    def list_recent(self, limit: int) -> list[ActionRecord]:
        if not self._path.exists():
            return []

        records: list[ActionRecord] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                records.append(ActionRecord.from_payload(json.loads(line)))

        records.reverse()
        return records[:limit]
