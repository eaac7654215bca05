"""In-memory bookkeeping for captures started on behalf of a client."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .capture import capture
from .config import CaptureConfig
from .context import CancelToken
from .events import EventSink, ProgressEvent, utc_timestamp
from .models import CaptureResult

logger = logging.getLogger("page_replica.jobs")

RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"


@dataclass
class CaptureJob:
    """One requested capture and everything it reported."""

    id: str
    target_url: str
    status: str = RUNNING
    log: List[ProgressEvent] = field(default_factory=list)
    result: Optional[CaptureResult] = None
    error: Optional[str] = None
    started_at: str = field(default_factory=utc_timestamp)
    finished_at: Optional[str] = None
    cancel: CancelToken = field(default_factory=CancelToken, repr=False)

    @property
    def finished(self) -> bool:
        return self.status != RUNNING

    def to_dict(self, include_log: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "url": self.target_url,
            "status": self.status,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
        }
        if include_log:
            data["logs"] = [event.to_dict() for event in self.log]
        return data


class JobEventSink(EventSink):
    """Append events to a job's log and optionally forward them."""

    def __init__(self, job: CaptureJob, forward: Optional[EventSink] = None) -> None:
        self.job = job
        self.forward = forward

    def emit(self, event: ProgressEvent) -> None:
        self.job.log.append(event)
        if self.forward is not None:
            self.forward.emit(event)


class JobStore:
    """Jobs keyed by capture id. Owned by whoever serves capture requests."""

    def __init__(self) -> None:
        self._jobs: Dict[str, CaptureJob] = {}

    def create(self, target_url: str) -> CaptureJob:
        job = CaptureJob(id=str(uuid.uuid4()), target_url=target_url)
        self._jobs[job.id] = job
        return job

    def get(self, job_id: str) -> Optional[CaptureJob]:
        return self._jobs.get(job_id)

    def jobs(self) -> List[CaptureJob]:
        return list(self._jobs.values())

    def cancel(self, job_id: str) -> bool:
        job = self._jobs.get(job_id)
        if job is None or job.finished:
            return False
        job.cancel.cancel()
        return True

    def __len__(self) -> int:
        return len(self._jobs)


async def run_capture_job(
    job: CaptureJob,
    config: CaptureConfig,
    forward: Optional[EventSink] = None,
    **capture_kwargs: Any,
) -> CaptureJob:
    """Run a capture for ``job`` and record its terminal state.

    Never raises for capture failures; the job ends ``failed`` with the error
    message instead.
    """
    sink = JobEventSink(job, forward)
    try:
        result = await capture(
            job.target_url,
            config,
            sink=sink,
            cancel=job.cancel,
            capture_id=job.id,
            **capture_kwargs,
        )
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Capture job %s failed: %s", job.id, exc)
        job.status = FAILED
        job.error = str(exc)
        job.finished_at = utc_timestamp()
        sink.emit(ProgressEvent("error", f"Capture failed: {exc}"))
        return job

    job.status = COMPLETED
    job.result = result
    job.finished_at = utc_timestamp()
    sink.emit(
        ProgressEvent(
            "complete", "Capture completed successfully!", extra={"result": result.to_dict()}
        )
    )
    return job
