"""
Diagnostic event sinks.

Core components (retry, request client, enhancement) report what they do as
named events with keyword fields instead of writing to a logger directly. A
sink is injected per call; when none is given the LoggingSink is used, which
forwards events to the imagestudio.diagnostics logger.

Event names are dotted ("retry.scheduled", "request.failed"). LoggingSink
picks a level from the suffix: ``.failed`` and ``.fallback`` log at WARNING,
``.succeeded`` at INFO, everything else at DEBUG.
"""

import logging
from typing import Any, Protocol

from imagestudio.logging_config import get_diagnostics_logger


class DiagnosticSink(Protocol):
    """Receiver for diagnostic events."""

    def emit(self, event: str, **fields: Any) -> None:
        """Record one event with its fields."""
        ...


def _format_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{k}={v!r}" if isinstance(v, str) else f"{k}={v}" for k, v in fields.items())


def _level_for(event: str) -> int:
    if event.endswith(".failed") or event.endswith(".fallback"):
        return logging.WARNING
    if event.endswith(".succeeded"):
        return logging.INFO
    return logging.DEBUG


class LoggingSink:
    """Sink that writes events to a logger (default: imagestudio.diagnostics)."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_diagnostics_logger()

    def emit(self, event: str, **fields: Any) -> None:
        level = _level_for(event)
        if not self._logger.isEnabledFor(level):
            return
        if fields:
            self._logger.log(level, "%s %s", event, _format_fields(fields))
        else:
            self._logger.log(level, "%s", event)


class NullSink:
    """Sink that drops every event."""

    def emit(self, event: str, **fields: Any) -> None:
        return None


class RecordingSink:
    """Sink that keeps events in memory, in order. Useful for inspection and tests."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, dict(fields)))

    def names(self) -> list[str]:
        """Return the recorded event names in order."""
        return [name for name, _ in self.events]


_default_sink: DiagnosticSink | None = None


def default_sink() -> DiagnosticSink:
    """Return the shared LoggingSink used when a component is given no sink."""
    global _default_sink
    if _default_sink is None:
        _default_sink = LoggingSink()
    return _default_sink


__all__ = [
    "DiagnosticSink",
    "LoggingSink",
    "NullSink",
    "RecordingSink",
    "default_sink",
]
