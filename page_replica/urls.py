"""URL normalization, resolution and asset classification."""

from __future__ import annotations

import posixpath
import re
from typing import Dict, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from .errors import InvalidURL
from .models import (
    AUDIO,
    CATEGORY_DIRS,
    FONT,
    IMAGE,
    OTHER,
    SCRIPT,
    STYLESHEET,
    VIDEO,
)
from .utils import short_hash

ALLOWED_SCHEMES = ("http", "https")
SCHEME_PATTERN = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*)://")
OPAQUE_SCHEME_PATTERN = re.compile(
    r"^(javascript|data|mailto|tel|about|blob|file|ftp|ws|wss):", re.IGNORECASE
)
EXTENSION_PATTERN = re.compile(r"^\.[a-z0-9]{1,5}$")
UNFETCHABLE_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:", "blob:", "about:")

MIME_EXTENSIONS: Dict[str, str] = {
    "text/html": ".html",
    "text/css": ".css",
    "text/javascript": ".js",
    "application/javascript": ".js",
    "application/x-javascript": ".js",
    "application/json": ".json",
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/avif": ".avif",
    "image/svg+xml": ".svg",
    "image/x-icon": ".ico",
    "image/vnd.microsoft.icon": ".ico",
    "font/woff": ".woff",
    "font/woff2": ".woff2",
    "font/ttf": ".ttf",
    "font/otf": ".otf",
    "application/font-woff": ".woff",
    "application/font-woff2": ".woff2",
    "application/x-font-ttf": ".ttf",
    "application/x-font-otf": ".otf",
    "application/vnd.ms-fontobject": ".eot",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "audio/ogg": ".ogg",
}

EXTENSION_CATEGORIES: Dict[str, str] = {
    ".css": STYLESHEET,
    ".js": SCRIPT,
    ".mjs": SCRIPT,
    ".png": IMAGE,
    ".jpg": IMAGE,
    ".jpeg": IMAGE,
    ".gif": IMAGE,
    ".webp": IMAGE,
    ".avif": IMAGE,
    ".svg": IMAGE,
    ".ico": IMAGE,
    ".bmp": IMAGE,
    ".woff": FONT,
    ".woff2": FONT,
    ".ttf": FONT,
    ".otf": FONT,
    ".eot": FONT,
    ".mp4": VIDEO,
    ".webm": VIDEO,
    ".ogg": VIDEO,
    ".mov": VIDEO,
    ".mp3": AUDIO,
    ".wav": AUDIO,
    ".flac": AUDIO,
    ".aac": AUDIO,
}


def normalize_url(value: str) -> str:
    """Validate user input and return an absolute http(s) URL.

    Input without a scheme is treated as ``https://``. Anything that does not
    parse to an http or https URL with a host raises :class:`InvalidURL`.
    """
    url = (value or "").strip()
    if not url:
        raise InvalidURL(value, "empty")

    match = SCHEME_PATTERN.match(url)
    if match:
        if match.group(1).lower() not in ALLOWED_SCHEMES:
            raise InvalidURL(value, f"unsupported scheme {match.group(1)!r}")
    elif OPAQUE_SCHEME_PATTERN.match(url):
        raise InvalidURL(value, "unsupported scheme")
    else:
        url = "https://" + url

    try:
        parts = urlsplit(url)
        host = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise InvalidURL(value, str(exc)) from exc
    if not host or any(ch.isspace() for ch in parts.netloc):
        raise InvalidURL(value, "missing host")

    netloc = host
    if ":" in host:
        netloc = f"[{host}]"
    if parts.username or parts.password:
        credentials = parts.username or ""
        if parts.password:
            credentials = f"{credentials}:{parts.password}"
        netloc = f"{credentials}@{netloc}"
    if port is not None:
        netloc = f"{netloc}:{port}"
    return urlunsplit(
        (parts.scheme.lower(), netloc, parts.path or "/", parts.query, parts.fragment)
    )


def is_data_uri(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower().startswith("data:")


def is_fetchable(value: Optional[str]) -> bool:
    """Return True when a raw reference could point at a downloadable resource."""
    if not value:
        return False
    return not value.strip().lower().startswith(UNFETCHABLE_PREFIXES)


def resolve_url(base: str, reference: str) -> str:
    """Resolve ``reference`` against ``base``; return it unchanged when that fails."""
    if not reference or is_data_uri(reference):
        return reference
    try:
        if reference.startswith("//"):
            scheme = urlsplit(base).scheme
            return f"{scheme}:{reference}" if scheme else reference
        return urljoin(base, reference)
    except ValueError:
        return reference


def is_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ALLOWED_SCHEMES and bool(parts.netloc)


def base_mime(content_type: Optional[str]) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def url_extension(url: str) -> str:
    """Return the lowercase extension of the URL path, or an empty string."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    ext = posixpath.splitext(path)[1].lower()
    if EXTENSION_PATTERN.match(ext):
        return ext
    return ""


def extension_for(url: str, content_type: Optional[str] = "") -> str:
    """Best-guess file extension: URL path first, then the content-type table."""
    return url_extension(url) or MIME_EXTENSIONS.get(base_mime(content_type), "")


def classify(url: str, content_type: Optional[str] = "") -> str:
    """Derive the asset category; extensions win over content-type sniffing."""
    category = EXTENSION_CATEGORIES.get(extension_for(url, content_type))
    if category:
        return category

    mime = base_mime(content_type)
    if mime.startswith("image/"):
        return IMAGE
    if mime.startswith("font/") or "font" in mime:
        return FONT
    if mime.startswith("video/"):
        return VIDEO
    if mime.startswith("audio/"):
        return AUDIO
    if mime == "text/css":
        return STYLESHEET
    if "javascript" in mime or "ecmascript" in mime:
        return SCRIPT
    return OTHER


def filename_for(url: str, content_type: Optional[str] = "") -> str:
    """Deterministic filename: 12 hex chars of the URL hash plus an extension."""
    return short_hash(url) + extension_for(url, content_type)


def local_path_for(url: str, content_type: Optional[str] = "") -> str:
    """Path of an asset relative to the capture folder, e.g. ``assets/images/<hash>.png``."""
    category = classify(url, content_type)
    return posixpath.join("assets", CATEGORY_DIRS[category], filename_for(url, content_type))
