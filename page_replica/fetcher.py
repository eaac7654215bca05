"""Asset downloading, the asset map, and the nested stylesheet pass."""

from __future__ import annotations

import posixpath
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from filetype import guess

from .context import CaptureContext
from .css import extract_css_urls
from .errors import AssetFetchFailure
from .models import STYLESHEET, AssetRecord, DiscoveredAsset, StylesheetRecord
from .rewriter import rewrite_stylesheet
from .transport import FetchTransport
from .urls import base_mime, classify, is_data_uri, is_http_url, local_path_for, resolve_url

GENERIC_CONTENT_TYPES = {
    "",
    "application/octet-stream",
    "binary/octet-stream",
    "application/unknown",
}


def sniff_content_type(content_type: str, body: bytes) -> str:
    """Replace a missing or generic content type with one detected from the body."""
    if base_mime(content_type) not in GENERIC_CONTENT_TYPES or not body:
        return content_type
    kind = guess(body)
    if kind is not None:
        return kind.mime
    return content_type


class AssetMap(Mapping):
    """Source URL and reference text to local path, in insertion order.

    Keys are assigned once; later records never move an existing key. A key
    is only present after its file has been written.
    """

    def __init__(self) -> None:
        self._paths: Dict[str, str] = {}
        self._records: Dict[str, AssetRecord] = {}

    def __getitem__(self, key: str) -> str:
        return self._paths[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def add(self, record: AssetRecord) -> None:
        self._records.setdefault(record.source_url, record)
        for key in (record.source_url, record.reference_text):
            if key and not is_data_uri(key):
                self._paths.setdefault(key, record.local_path)

    def has_source(self, url: str) -> bool:
        return url in self._records

    def records(self) -> List[AssetRecord]:
        return list(self._records.values())


@dataclass
class _Outcome:
    asset: DiscoveredAsset
    record: Optional[AssetRecord] = None
    body: bytes = b""
    error: str = ""


class FetchOrchestrator:
    """Download assets in fixed-width batches and track where they landed."""

    def __init__(
        self,
        transport: FetchTransport,
        output_path: Path,
        referer: str,
        *,
        timeout: float = 30.0,
        batch_size: int = 10,
        context: Optional[CaptureContext] = None,
    ) -> None:
        self.transport = transport
        self.output_path = Path(output_path)
        self.referer = referer
        self.timeout = timeout
        self.batch_size = max(1, batch_size)
        self.context = context or CaptureContext(capture_id="standalone", target_url=referer)
        self.asset_map = AssetMap()
        self.stylesheets: List[StylesheetRecord] = []

    @property
    def downloaded_count(self) -> int:
        return len(self.asset_map.records())

    def _download(self, asset: DiscoveredAsset) -> _Outcome:
        try:
            response = self.transport.get(
                asset.url, referer=self.referer, timeout=self.timeout
            )
        except AssetFetchFailure as exc:
            return _Outcome(asset, error=str(exc))
        if not response.ok:
            return _Outcome(
                asset, error=f"Failed to download: {asset.url} ({response.status_code})"
            )

        content_type = sniff_content_type(response.content_type, response.body)
        local_path = local_path_for(asset.url, content_type)
        destination = self.output_path / local_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.body)

        record = AssetRecord(
            source_url=asset.url,
            category=classify(asset.url, content_type),
            reference_text=asset.reference_text,
            local_path=local_path,
            content_type=content_type,
        )
        return _Outcome(asset, record=record, body=response.body)

    def _run_batch(self, batch: Sequence[DiscoveredAsset]) -> List[_Outcome]:
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            futures = [pool.submit(self._download, asset) for asset in batch]
            return [future.result() for future in futures]

    def _accept(self, outcome: _Outcome, origin: str) -> Optional[AssetRecord]:
        if outcome.record is None:
            self.context.emit("warning", outcome.error, url=outcome.asset.url)
            return None
        record = outcome.record
        self.asset_map.add(record)
        if record.category == STYLESHEET:
            self.stylesheets.append(
                StylesheetRecord(
                    source_url=record.source_url,
                    raw_text=outcome.body.decode("utf-8", errors="replace"),
                    local_path=record.local_path,
                )
            )
        self.context.emit(
            "network",
            f"Saved{origin}: {posixpath.basename(record.local_path)} ({record.category})",
            url=record.source_url,
            local_path=record.local_path,
        )
        return record

    def _fetch(self, assets: Sequence[DiscoveredAsset], origin: str = "") -> List[AssetRecord]:
        pending: List[DiscoveredAsset] = []
        seen = set()
        for asset in assets:
            if asset.url in seen or self.asset_map.has_source(asset.url):
                continue
            seen.add(asset.url)
            pending.append(asset)

        records: List[AssetRecord] = []
        total = len(pending)
        for start in range(0, total, self.batch_size):
            self.context.checkpoint("fetch batch")
            batch = pending[start : start + self.batch_size]
            for outcome in self._run_batch(batch):
                record = self._accept(outcome, origin)
                if record is not None:
                    records.append(record)
            if not origin:
                self.context.emit(
                    "pipeline",
                    f"Downloaded {min(start + self.batch_size, total)}/{total} assets",
                )
        return records

    def fetch_all(self, assets: Sequence[DiscoveredAsset]) -> List[AssetRecord]:
        """Fetch each distinct asset once; failures are logged and skipped."""
        return self._fetch(assets)

    def nested_references(self, stylesheet: StylesheetRecord) -> List[DiscoveredAsset]:
        """Unfetched ``url()`` targets of a stylesheet, resolved against its own URL."""
        nested: List[DiscoveredAsset] = []
        seen = set()
        for reference in extract_css_urls(stylesheet.raw_text):
            resolved = resolve_url(stylesheet.source_url, reference)
            if not resolved or is_data_uri(resolved) or not is_http_url(resolved):
                continue
            if resolved in seen or self.asset_map.has_source(resolved):
                continue
            seen.add(resolved)
            # keyed by the resolved URL; the raw text is relative to the stylesheet
            nested.append(DiscoveredAsset(resolved, classify(resolved), resolved))
        return nested

    def process_stylesheets(self) -> List[AssetRecord]:
        """Fetch one extra hop of stylesheet references and rewrite each sheet on disk."""
        fetched: List[AssetRecord] = []
        for stylesheet in list(self.stylesheets):
            self.context.checkpoint("stylesheet pass")
            nested = self.nested_references(stylesheet)
            if nested:
                fetched.extend(self._fetch(nested, origin=" (from CSS)"))
            rewritten = rewrite_stylesheet(
                stylesheet.raw_text,
                stylesheet.source_url,
                stylesheet.local_path,
                self.asset_map,
            )
            (self.output_path / stylesheet.local_path).write_text(rewritten, encoding="utf-8")
        return fetched
