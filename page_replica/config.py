"""Configuration objects and constants for page captures."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class CaptureConfig:
    """Top-level settings that control rendering and asset fetching."""

    output_root: Path
    headless: bool = True
    navigation_timeout: float = 60.0
    asset_timeout: float = 30.0
    network_idle_timeout: float = 10.0
    hydration_wait: float = 2.0
    scroll_delay: float = 0.5
    max_scroll_iterations: int = 20
    stable_readings: int = 3
    batch_size: int = 10
    viewport_width: int = 1366
    viewport_height: int = 768
    user_agent: str = DEFAULT_USER_AGENT
