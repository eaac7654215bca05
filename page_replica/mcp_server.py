"""MCP server exposing page capture tools."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Set

from mcp.server.fastmcp import FastMCP

from .capture import capture as run_capture
from .config import CaptureConfig
from .jobs import JobStore, run_capture_job

logger = logging.getLogger("page_replica.mcp")

OUTPUT_ENV_VAR = "PAGE_REPLICA_OUTPUT"

mcp = FastMCP(name="page-replica")

_jobs = JobStore()
_tasks: Set[asyncio.Task] = set()
_output_root: Optional[Path] = None


def _config() -> CaptureConfig:
    root = _output_root or Path(os.getenv(OUTPUT_ENV_VAR, "output"))
    return CaptureConfig(output_root=root.expanduser().resolve())


@mcp.tool()
async def capture(url: str) -> Dict[str, Any]:
    """Render a web page and save an offline replica; returns where it was written."""
    config = _config()
    result = await run_capture(url, config)
    data = result.to_dict()
    data["entry_document_path"] = str(config.output_root / result.entry_document)
    return data


@mcp.tool()
async def start_capture(url: str) -> Dict[str, Any]:
    """Start a capture in the background and return its job id."""
    job = _jobs.create(url)
    task = asyncio.create_task(run_capture_job(job, _config()))
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)
    return {"job_id": job.id, "status": job.status}


@mcp.tool()
async def capture_status(job_id: str, include_log: bool = True) -> Dict[str, Any]:
    """Return the status, result and progress log of a background capture."""
    job = _jobs.get(job_id)
    if job is None:
        raise ValueError(f"Job not found: {job_id}")
    return job.to_dict(include_log=include_log)


@mcp.tool()
async def cancel_capture(job_id: str) -> Dict[str, Any]:
    """Ask a running capture to stop at its next stage boundary."""
    job = _jobs.get(job_id)
    if job is None:
        raise ValueError(f"Job not found: {job_id}")
    return {"job_id": job_id, "cancel_requested": _jobs.cancel(job_id)}


def main(output_root: Optional[Path] = None) -> None:
    """Entry point for running the MCP server."""
    global _output_root
    _output_root = output_root
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
