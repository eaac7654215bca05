"""Asset discovery over a rendered document."""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from bs4 import BeautifulSoup

from .css import extract_css_urls, parse_srcset
from .models import AUDIO, FONT, IMAGE, SCRIPT, STYLESHEET, VIDEO, DiscoveredAsset
from .urls import is_data_uri, is_fetchable, is_http_url, resolve_url

ICON_RELS = {"icon", "apple-touch-icon"}
META_IMAGE_PROPERTIES = {"og:image", "og:image:url", "og:image:secure_url"}
META_IMAGE_NAMES = {"twitter:image", "twitter:image:src"}


def parse_markup(html: str) -> BeautifulSoup:
    """Parse rendered markup with the standard-library backed parser."""
    return BeautifulSoup(html, "html.parser")


def _rel_tokens(tag) -> Set[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return {token.lower() for token in rel}


class _AssetCollector:
    """Ordered, deduplicated accumulator keyed by resolved absolute URL."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        self.assets: List[DiscoveredAsset] = []
        self._seen: Set[str] = set()

    def add(self, reference: Optional[str], category: str) -> None:
        if not reference:
            return
        reference = reference.strip()
        if not is_fetchable(reference) or reference in self._seen:
            return
        resolved = resolve_url(self.base_url, reference)
        if not resolved or is_data_uri(resolved) or not is_http_url(resolved):
            return
        if resolved in self._seen:
            return
        self._seen.add(resolved)
        self.assets.append(DiscoveredAsset(resolved, category, reference))

    def add_all(self, references: Iterable[str], category: str) -> None:
        for reference in references:
            self.add(reference, category)


def discover_assets(soup: BeautifulSoup, base_url: str) -> List[DiscoveredAsset]:
    """Collect every asset the document references, first occurrence first.

    ``base_url`` is the page's final URL after redirects. The result holds one
    entry per resolved absolute URL no matter how many syntaxes refer to it.
    """
    collector = _AssetCollector(base_url)

    for img in soup.find_all("img", src=True):
        collector.add(img.get("src"), IMAGE)

    for tag in soup.find_all(srcset=True):
        collector.add_all(parse_srcset(tag.get("srcset", "")), IMAGE)

    links = soup.find_all("link", href=True)
    for link in links:
        rels = _rel_tokens(link)
        as_type = (link.get("as") or "").lower()
        if "stylesheet" in rels or ("preload" in rels and as_type == "style"):
            collector.add(link.get("href"), STYLESHEET)

    for script in soup.find_all("script", src=True):
        collector.add(script.get("src"), SCRIPT)

    for name, category in (("video", VIDEO), ("audio", AUDIO)):
        for media in soup.find_all(name):
            collector.add(media.get("src"), category)
            for source in media.find_all("source", src=True):
                collector.add(source.get("src"), category)
    for video in soup.find_all("video", poster=True):
        collector.add(video.get("poster"), IMAGE)

    for link in links:
        if _rel_tokens(link) & ICON_RELS:
            collector.add(link.get("href"), IMAGE)

    for tag in soup.find_all(style=True):
        style = tag.get("style") or ""
        if "url" in style.lower():
            collector.add_all(extract_css_urls(style), IMAGE)

    for style in soup.find_all("style"):
        collector.add_all(extract_css_urls(style.decode_contents()), IMAGE)

    for link in links:
        if "preload" in _rel_tokens(link) and (link.get("as") or "").lower() == "font":
            collector.add(link.get("href"), FONT)

    for meta in soup.find_all("meta", content=True):
        prop = (meta.get("property") or "").lower()
        name = (meta.get("name") or "").lower()
        if prop in META_IMAGE_PROPERTIES or name in META_IMAGE_NAMES:
            collector.add(meta.get("content"), IMAGE)

    return collector.assets
