"""Data models used throughout the capture pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

IMAGE = "image"
STYLESHEET = "stylesheet"
SCRIPT = "script"
VIDEO = "video"
AUDIO = "audio"
FONT = "font"
OTHER = "other"

ASSET_CATEGORIES = (IMAGE, STYLESHEET, SCRIPT, VIDEO, AUDIO, FONT, OTHER)

# Directory under ``assets/`` that holds each category.
CATEGORY_DIRS: Dict[str, str] = {
    IMAGE: "images",
    STYLESHEET: "css",
    SCRIPT: "js",
    FONT: "fonts",
    VIDEO: "video",
    AUDIO: "audio",
    OTHER: "other",
}


@dataclass
class DiscoveredAsset:
    """Asset reference found in the rendered markup, resolved against the page URL."""

    url: str
    category: str
    reference_text: str


@dataclass
class AssetRecord:
    """Asset written to disk, addressed by its path relative to the capture folder."""

    source_url: str
    category: str
    reference_text: str
    local_path: str
    content_type: str = ""


@dataclass
class StylesheetRecord:
    """Downloaded stylesheet retained for the nested-reference pass."""

    source_url: str
    raw_text: str
    local_path: str


@dataclass
class CaptureResult:
    """Outcome of a completed capture."""

    capture_id: str
    target_url: str
    final_url: str
    output_path: str
    entry_document: str
    asset_count: int
    status_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capture_id": self.capture_id,
            "target_url": self.target_url,
            "final_url": self.final_url,
            "output_path": self.output_path,
            "entry_document": self.entry_document,
            "asset_count": self.asset_count,
            "status_code": self.status_code,
        }
