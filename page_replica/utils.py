"""Utility helpers for hashing and output folder naming."""

from __future__ import annotations

import hashlib
import re
import time
from typing import Optional
from urllib.parse import urlsplit

FOLDER_PATTERN = re.compile(r"[^a-zA-Z0-9.-]")
REPEATED_UNDERSCORES = re.compile(r"_{2,}")

HASH_LENGTH = 12


def short_hash(value: str) -> str:
    """Return the first 12 hex characters of the MD5 digest of ``value``."""
    return hashlib.md5(value.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def safe_folder_name(hostname: str, fallback: str = "site") -> str:
    """Generate a filesystem-friendly folder name from a hostname."""
    name = FOLDER_PATTERN.sub("_", hostname)
    name = REPEATED_UNDERSCORES.sub("_", name)
    return name[:50] or fallback


def output_folder_name(url: str, timestamp_ms: Optional[int] = None) -> str:
    """Name the capture folder ``<host>_<timestampMillis>``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    host = urlsplit(url).hostname or ""
    return f"{safe_folder_name(host)}_{timestamp_ms}"
