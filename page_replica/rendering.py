"""Rendering sessions backed by Playwright, plus lazy-load auto-scrolling."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from playwright.async_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import CaptureConfig
from .errors import RenderFailure

Emit = Callable[..., None]

SCROLLING = "scrolling"
STABILIZED = "stabilized"

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


class RenderingSession:
    """A loaded browser page the pipeline owns for one capture.

    All methods are coroutines. Implementations raise :class:`RenderFailure`
    when the engine cannot continue.
    """

    async def navigate(self, url: str, timeout: float) -> Tuple[str, Optional[int]]:
        """Load ``url`` and return the final URL and HTTP status code."""
        raise NotImplementedError

    async def probe_height(self) -> int:
        raise NotImplementedError

    async def scroll_to(self, y: int) -> None:
        raise NotImplementedError

    async def wait_network_idle(self, timeout: float) -> bool:
        """Return True when the network went idle, False on timeout."""
        raise NotImplementedError

    async def content(self) -> str:
        raise NotImplementedError

    async def cookies(self) -> List[Dict[str, Any]]:
        return []

    async def close(self) -> None:
        raise NotImplementedError


class PlaywrightSession(RenderingSession):
    """Headless Chromium page driven through the Playwright async API."""

    def __init__(self, config: CaptureConfig, emit: Optional[Emit] = None) -> None:
        self.config = config
        self.emit = emit
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    def _report(self, category: str, message: str, **extra: Any) -> None:
        if self.emit is not None:
            self.emit(category, message, **extra)

    async def start(self) -> "PlaywrightSession":
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless, args=BROWSER_ARGS
            )
            self._context = await self._browser.new_context(
                viewport={
                    "width": self.config.viewport_width,
                    "height": self.config.viewport_height,
                },
                user_agent=self.config.user_agent,
            )
            self._page = await self._context.new_page()
        except PlaywrightError as exc:
            await self.close()
            raise RenderFailure(f"Failed to launch browser: {exc}") from exc
        self._attach_listeners()
        return self

    def _attach_listeners(self) -> None:
        page = self._page
        page.on(
            "console", lambda msg: self._report("console", f"[{msg.type}] {msg.text}")
        )
        page.on("pageerror", lambda error: self._report("console", f"[error] {error}"))
        page.on(
            "request",
            lambda request: self._report(
                "network",
                f">> {request.method} {request.url[:100]}",
                method=request.method,
                url=request.url,
                resource_type=request.resource_type,
            ),
        )
        page.on(
            "response",
            lambda response: self._report(
                "network",
                f"<< {response.status} {response.url[:100]}",
                status=response.status,
                url=response.url,
            ),
        )

    async def navigate(self, url: str, timeout: float) -> Tuple[str, Optional[int]]:
        try:
            response = await self._page.goto(
                url, wait_until="domcontentloaded", timeout=timeout * 1000
            )
        except PlaywrightError as exc:
            raise RenderFailure(f"Navigation to {url} failed: {exc}") from exc
        status = response.status if response is not None else None
        return self._page.url, status

    async def probe_height(self) -> int:
        try:
            height = await self._page.evaluate(
                "() => document.body ? document.body.scrollHeight : 0"
            )
        except PlaywrightError as exc:
            raise RenderFailure(f"Failed to measure page height: {exc}") from exc
        return int(height or 0)

    async def scroll_to(self, y: int) -> None:
        try:
            await self._page.evaluate("(y) => window.scrollTo(0, y)", y)
        except PlaywrightError as exc:
            raise RenderFailure(f"Failed to scroll page: {exc}") from exc

    async def wait_network_idle(self, timeout: float) -> bool:
        try:
            await self._page.wait_for_load_state("networkidle", timeout=timeout * 1000)
        except PlaywrightTimeoutError:
            return False
        return True

    async def content(self) -> str:
        try:
            return await self._page.content()
        except PlaywrightError as exc:
            raise RenderFailure(f"Failed to read rendered HTML: {exc}") from exc

    async def cookies(self) -> List[Dict[str, Any]]:
        if self._context is None:
            return []
        return [dict(cookie) for cookie in await self._context.cookies()]

    async def close(self) -> None:
        try:
            if self._browser is not None:
                await self._browser.close()
        finally:
            self._browser = None
            self._context = None
            self._page = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None


async def open_playwright_session(
    config: CaptureConfig, emit: Optional[Emit] = None
) -> RenderingSession:
    """Launch Chromium and return a ready :class:`PlaywrightSession`."""
    session = PlaywrightSession(config, emit)
    return await session.start()


@dataclass
class ScrollResult:
    """How an auto-scroll run ended."""

    state: str
    iterations: int
    final_height: int
    heights: List[int] = field(default_factory=list)


async def auto_scroll(
    session: RenderingSession,
    *,
    max_iterations: int = 20,
    stable_readings: int = 3,
    delay: float = 0.5,
    emit: Optional[Emit] = None,
) -> ScrollResult:
    """Scroll to the bottom until the document height stops growing.

    Each iteration measures the height. A reading equal to the previous one
    bumps a stability counter, any other reading resets it. The run is
    stabilized after ``stable_readings`` consecutive equal readings or
    ``max_iterations`` iterations, then the page is scrolled back to the top.
    """
    state = SCROLLING
    last_height = 0
    same_count = 0
    heights: List[int] = []
    iteration = 0

    while state == SCROLLING:
        if iteration >= max_iterations:
            state = STABILIZED
            break
        height = await session.probe_height()
        heights.append(height)
        iteration += 1

        if height == last_height:
            same_count += 1
            if same_count >= stable_readings:
                state = STABILIZED
                if emit is not None:
                    emit("pipeline", f"Scroll complete (height stabilized at {height}px)")
                break
        else:
            same_count = 0
        last_height = height

        await session.scroll_to(height)
        if delay:
            await asyncio.sleep(delay)
        if emit is not None:
            emit("pipeline", f"Scrolled... (height: {height}px, iteration {iteration})")

    await session.scroll_to(0)
    return ScrollResult(
        state=state,
        iterations=iteration,
        final_height=heights[-1] if heights else 0,
        heights=heights,
    )
