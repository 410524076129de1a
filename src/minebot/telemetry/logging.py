"""Logging setup and the telemetry sink contract."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from rich.logging import RichHandler


class Telemetry(Protocol):
    """Reports operational events and per-tick outcomes."""

    def emit(self, event_name: str, payload: dict) -> None:
        """Publish telemetry event to the configured sink."""


class LoggingTelemetry:
    """Telemetry sink that forwards events to a standard logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("minebot.telemetry")

    def emit(self, event_name: str, payload: dict) -> None:
        extra: dict[str, Any] = {f"event_{key}": value for key, value in payload.items()}
        self._logger.info(event_name, extra=extra)


class _ExtraFormatter(logging.Formatter):
    """Appends the structured ``extra`` fields after the event name."""

    _reserved = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = {key: value for key, value in record.__dict__.items() if key not in self._reserved}
        if not fields:
            return base
        rendered = " ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))
        return f"{base} {rendered}"


def configure_logging(level: str = "INFO", *, rich_console: bool = True) -> None:
    """Install a single root handler; calling it again replaces the previous one."""
    handler: logging.Handler
    if rich_console:
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(_ExtraFormatter("%(name)s %(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(_ExtraFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_minebot", False):
            root.removeHandler(existing)
    handler._minebot = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper())
