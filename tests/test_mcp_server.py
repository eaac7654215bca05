from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path

import pytest

from page_replica import mcp_server
from page_replica.capture import capture as run_capture

from .fakes import FakeSession, FakeTransport, session_factory


def test_status_of_known_and_unknown_jobs() -> None:
    job = mcp_server._jobs.create("https://x.test/")

    status = asyncio.run(mcp_server.capture_status(job.id, include_log=False))
    assert status["status"] == "running"
    assert "logs" not in status

    cancelled = asyncio.run(mcp_server.cancel_capture(job.id))
    assert cancelled == {"job_id": job.id, "cancel_requested": True}
    assert job.cancel.cancelled

    with pytest.raises(ValueError):
        asyncio.run(mcp_server.capture_status("missing"))


def test_output_root_comes_from_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(mcp_server.OUTPUT_ENV_VAR, str(tmp_path))

    assert mcp_server._config().output_root == tmp_path.resolve()


def test_capture_tool_returns_entry_document_path(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(mcp_server.OUTPUT_ENV_VAR, str(tmp_path))

    def fake_capture(url, config):
        config = dataclasses.replace(config, hydration_wait=0, scroll_delay=0)
        return run_capture(
            url,
            config,
            transport=FakeTransport(),
            session_factory=session_factory(FakeSession(["<html><body>hi</body></html>"])),
        )

    monkeypatch.setattr(mcp_server, "run_capture", fake_capture)

    data = asyncio.run(mcp_server.capture("x.test"))

    assert data["output_path"].startswith("x.test_")
    assert data["asset_count"] == 0
    entry = Path(data["entry_document_path"])
    assert entry == tmp_path.resolve() / data["entry_document"]
    assert "hi" in entry.read_text(encoding="utf-8")
