"""Per-capture state shared by the pipeline stages."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .errors import CaptureCancelled
from .events import EventSink, NullEventSink, ProgressEvent

logger = logging.getLogger("page_replica")

_LOG_LEVELS = {
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "network": logging.DEBUG,
    "console": logging.DEBUG,
}


class CancelToken:
    """Cooperative cancellation flag, safe to set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str) -> None:
        if self._event.is_set():
            raise CaptureCancelled(f"Capture cancelled before {stage}")


@dataclass
class CaptureContext:
    """Everything one capture owns: identity, output folder, sink and cancel token."""

    capture_id: str
    target_url: str
    sink: EventSink = field(default_factory=NullEventSink)
    cancel: CancelToken = field(default_factory=CancelToken)
    normalized_url: str = ""
    final_url: str = ""
    status_code: Optional[int] = None
    output_path: Optional[Path] = None

    def emit(self, category: str, message: str, **extra: Any) -> None:
        """Log ``message`` and forward it to the sink as a progress event."""
        logger.log(_LOG_LEVELS.get(category, logging.INFO), "[%s] %s", category, message)
        self.sink.emit(ProgressEvent(category=category, message=message, extra=extra))

    def checkpoint(self, stage: str) -> None:
        self.cancel.raise_if_cancelled(stage)
