"""Operational event recorder for reporter cycles.

Events are short ``(reason, message)`` pairs such as ``BugSearchFailed`` or
``DeliveryFailed``; they go to the structured log and are kept in memory so a
CLI run (or a test) can inspect what happened during a cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .errors import redact
from .logging import StructuredLogger, get_logger

NORMAL = "Normal"
WARNING = "Warning"


@dataclass(frozen=True)
class Event:
    type: str
    reason: str
    message: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class EventRecorder:
    def __init__(self, source: str, logger: StructuredLogger | None = None) -> None:
        self.source = source
        self._logger = logger
        self.events: list[Event] = []

    @property
    def logger(self) -> StructuredLogger:
        return self._logger or get_logger()

    def event(self, reason: str, message: str) -> None:
        self._record(NORMAL, reason, message)

    def warning(self, reason: str, message: str) -> None:
        self._record(WARNING, reason, message)

    def _record(self, type_: str, reason: str, message: str) -> None:
        event = Event(type_, reason, redact(message))
        self.events.append(event)
        log = self.logger.warning if type_ == WARNING else self.logger.info
        log(f"{reason}: {event.message}", event_source=self.source, event_reason=reason)

    def reasons(self) -> list[str]:
        return [e.reason for e in self.events]


__all__ = ["Event", "EventRecorder"]
