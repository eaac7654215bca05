"""High-level orchestration for capturing a rendered page to disk."""

from __future__ import annotations

import asyncio
import time
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Optional

from .config import CaptureConfig
from .context import CancelToken, CaptureContext
from .discovery import discover_assets, parse_markup
from .events import EventSink, NullEventSink
from .fetcher import FetchOrchestrator
from .models import CATEGORY_DIRS, CaptureResult
from .rendering import Emit, RenderingSession, auto_scroll, open_playwright_session
from .rewriter import rewrite_markup
from .transport import FetchTransport, RequestsTransport
from .urls import normalize_url
from .utils import output_folder_name

ENTRY_DOCUMENT = "index.html"

SessionFactory = Callable[[CaptureConfig, Emit], Awaitable[RenderingSession]]


def prepare_output_dir(
    output_root: Path, url: str, timestamp_ms: Optional[int] = None
) -> Path:
    """Create ``<root>/<host>_<millis>/assets/<category>`` directories.

    The capture folder is created exclusively. When another capture already
    owns the name, the timestamp is bumped by one millisecond until a free
    folder is claimed.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    root = Path(output_root)
    root.mkdir(parents=True, exist_ok=True)
    while True:
        output_path = root / output_folder_name(url, timestamp_ms)
        try:
            output_path.mkdir()
        except FileExistsError:
            timestamp_ms += 1
            continue
        break
    for directory in CATEGORY_DIRS.values():
        (output_path / "assets" / directory).mkdir(parents=True, exist_ok=True)
    return output_path


async def _render(
    session: RenderingSession, config: CaptureConfig, ctx: CaptureContext
) -> str:
    ctx.emit("pipeline", "Navigating to page...")
    final_url, status = await session.navigate(
        ctx.normalized_url, config.navigation_timeout
    )
    ctx.final_url = final_url or ctx.normalized_url
    ctx.status_code = status
    ctx.emit(
        "pipeline",
        f"Page loaded (Status: {status if status is not None else 'unknown'})",
        final_url=ctx.final_url,
        status=status,
    )
    if config.hydration_wait:
        await asyncio.sleep(config.hydration_wait)

    ctx.checkpoint("auto-scroll")
    ctx.emit("pipeline", "Auto-scrolling to load lazy content...")
    await auto_scroll(
        session,
        max_iterations=config.max_scroll_iterations,
        stable_readings=config.stable_readings,
        delay=config.scroll_delay,
        emit=ctx.emit,
    )

    ctx.emit("pipeline", "Waiting for network idle...")
    if not await session.wait_network_idle(config.network_idle_timeout):
        ctx.emit("pipeline", "Network idle timeout - continuing anyway")

    ctx.checkpoint("markup extraction")
    ctx.emit("pipeline", "Extracting rendered HTML...")
    html = await session.content()
    ctx.emit("pipeline", f"HTML extracted ({len(html)} bytes)")
    return html


async def capture(
    target_url: str,
    config: CaptureConfig,
    *,
    transport: Optional[FetchTransport] = None,
    session_factory: SessionFactory = open_playwright_session,
    sink: Optional[EventSink] = None,
    cancel: Optional[CancelToken] = None,
    capture_id: Optional[str] = None,
) -> CaptureResult:
    """Render ``target_url`` and save an offline replica under ``config.output_root``.

    Any fatal error aborts the capture after an ``error`` event; the rendering
    session is closed whatever happens. Individual asset failures only emit
    warnings.
    """
    ctx = CaptureContext(
        capture_id=capture_id or uuid.uuid4().hex,
        target_url=target_url,
        sink=sink or NullEventSink(),
        cancel=cancel or CancelToken(),
    )
    owns_transport = transport is None
    session: Optional[RenderingSession] = None
    try:
        ctx.emit("pipeline", "Validating URL...")
        ctx.normalized_url = normalize_url(target_url)
        ctx.emit("pipeline", f"Normalized URL: {ctx.normalized_url}")

        ctx.output_path = prepare_output_dir(config.output_root, ctx.normalized_url)
        folder_name = ctx.output_path.name

        ctx.checkpoint("browser launch")
        ctx.emit("pipeline", "Launching browser...")
        session = await session_factory(config, ctx.emit)
        ctx.emit("pipeline", "Browser launched successfully")

        html = await _render(session, config, ctx)

        if transport is None:
            transport = RequestsTransport(config.user_agent)
        transport.load_cookies(await session.cookies())

        ctx.checkpoint("asset discovery")
        ctx.emit("pipeline", "Parsing HTML and collecting assets...")
        assets = discover_assets(parse_markup(html), ctx.final_url)
        ctx.emit("pipeline", f"Found {len(assets)} assets to download")

        orchestrator = FetchOrchestrator(
            transport,
            ctx.output_path,
            ctx.final_url,
            timeout=config.asset_timeout,
            batch_size=config.batch_size,
            context=ctx,
        )
        ctx.emit("pipeline", "Downloading assets...")
        await asyncio.to_thread(orchestrator.fetch_all, assets)

        ctx.checkpoint("stylesheet pass")
        ctx.emit("pipeline", "Processing CSS for additional assets...")
        await asyncio.to_thread(orchestrator.process_stylesheets)

        ctx.checkpoint("rewrite")
        ctx.emit("pipeline", "Rewriting HTML references...")
        html = await session.content()
        html = rewrite_markup(html, orchestrator.asset_map)

        ctx.emit("pipeline", "Saving output...")
        (ctx.output_path / ENTRY_DOCUMENT).write_text(html, encoding="utf-8")

        result = CaptureResult(
            capture_id=ctx.capture_id,
            target_url=ctx.normalized_url,
            final_url=ctx.final_url,
            output_path=folder_name,
            entry_document=f"{folder_name}/{ENTRY_DOCUMENT}",
            asset_count=orchestrator.downloaded_count,
            status_code=ctx.status_code,
        )
        ctx.emit("pipeline", "Capture completed successfully!", **result.to_dict())
        return result
    except Exception as exc:
        ctx.emit("error", f"Capture failed: {exc}")
        raise
    finally:
        try:
            if session is not None:
                await session.close()
        finally:
            if owns_transport and transport is not None:
                transport.close()
