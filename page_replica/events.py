"""Progress events emitted while a capture runs, and the sinks that receive them."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List


def utc_timestamp() -> str:
    return (
        dt.datetime.now(dt.timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass
class ProgressEvent:
    """A single stage transition or diagnostic line from a capture."""

    category: str
    message: str
    timestamp: str = field(default_factory=utc_timestamp)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "message": self.message,
            "timestamp": self.timestamp,
            **self.extra,
        }


class EventSink:
    """Receiver for progress events. Subclasses override :meth:`emit`."""

    def emit(self, event: ProgressEvent) -> None:
        raise NotImplementedError


class NullEventSink(EventSink):
    def emit(self, event: ProgressEvent) -> None:
        return None


class CollectingEventSink(EventSink):
    """Keep every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def messages(self, category: str) -> List[str]:
        return [event.message for event in self.events if event.category == category]
