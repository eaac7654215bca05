from __future__ import annotations

import asyncio
from pathlib import Path

from page_replica.config import CaptureConfig
from page_replica.events import CollectingEventSink
from page_replica.jobs import COMPLETED, FAILED, RUNNING, JobStore, run_capture_job

from .fakes import FakeSession, FakeTransport, ok, session_factory

PAGE = '<html><body><img src="/a.png"></body></html>'


def _config(tmp_path: Path) -> CaptureConfig:
    return CaptureConfig(output_root=tmp_path, hydration_wait=0, scroll_delay=0)


def test_store_creates_and_finds_jobs() -> None:
    store = JobStore()
    job = store.create("https://x.test/")

    assert job.status == RUNNING
    assert store.get(job.id) is job
    assert store.get("nope") is None
    assert len(store) == 1
    assert store.jobs() == [job]


def test_completed_job_records_result_and_log(tmp_path: Path) -> None:
    store = JobStore()
    job = store.create("https://x.test/")
    forward = CollectingEventSink()
    transport = FakeTransport({"https://x.test/a.png": ok(b"\x89PNG\r\n\x1a\n", "image/png")})

    asyncio.run(
        run_capture_job(
            job,
            _config(tmp_path),
            forward,
            transport=transport,
            session_factory=session_factory(FakeSession([PAGE])),
        )
    )

    assert job.status == COMPLETED
    assert job.result is not None and job.result.asset_count == 1
    assert job.result.capture_id == job.id
    assert job.finished_at is not None
    assert job.log[-1].category == "complete"
    assert [event.message for event in forward.events] == [event.message for event in job.log]
    data = job.to_dict()
    assert data["status"] == "completed"
    assert data["result"]["entry_document"].endswith("/index.html")
    assert data["logs"][0]["message"] == "Validating URL..."
    assert "timestamp" in data["logs"][0]


def test_failed_job_keeps_error_message(tmp_path: Path) -> None:
    store = JobStore()
    job = store.create("https://x.test/")

    asyncio.run(
        run_capture_job(
            job,
            _config(tmp_path),
            transport=FakeTransport(),
            session_factory=session_factory(FakeSession([PAGE], fail_navigation=True)),
        )
    )

    assert job.status == FAILED
    assert "net::ERR_NAME_NOT_RESOLVED" in job.error
    assert job.log[-1].category == "error"
    assert store.cancel(job.id) is False


def test_cancelling_a_running_job(tmp_path: Path) -> None:
    store = JobStore()
    job = store.create("https://x.test/")

    assert store.cancel(job.id) is True
    asyncio.run(
        run_capture_job(
            job,
            _config(tmp_path),
            transport=FakeTransport(),
            session_factory=session_factory(FakeSession([PAGE])),
        )
    )

    assert job.status == FAILED
    assert "cancelled" in job.error
