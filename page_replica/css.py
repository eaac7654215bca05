"""Reference scanning for CSS text and ``srcset`` attributes."""

from __future__ import annotations

import re
from typing import List

from .urls import is_data_uri

CSS_URL_RE = re.compile(r"url\s*\(\s*['\"]?([^'\")\s]+)['\"]?\s*\)", re.IGNORECASE)
SRCSET_SEPARATORS = " \t\n\r\f,"


def extract_css_urls(css_text: str) -> List[str]:
    """Return raw URLs inside ``url(...)`` forms, in document order.

    Fragment-only and data-URI references are skipped. Malformed CSS never
    raises; unmatched text is simply ignored.
    """
    urls: List[str] = []
    if not css_text:
        return urls
    for match in CSS_URL_RE.finditer(css_text):
        url = match.group(1)
        if url and not is_data_uri(url) and not url.startswith("#"):
            urls.append(url)
    return urls


def parse_srcset(value: str) -> List[str]:
    """Split a ``srcset`` value into candidate URLs, dropping descriptors.

    Follows the candidate grammar of the HTML standard: a URL runs up to the
    next whitespace and descriptors run up to the next comma outside
    parentheses. Data-URIs with embedded commas stay in one piece.
    """
    urls: List[str] = []
    if not value:
        return urls
    position = 0
    length = len(value)
    while position < length:
        while position < length and value[position] in SRCSET_SEPARATORS:
            position += 1
        if position >= length:
            break
        start = position
        while position < length and not value[position].isspace():
            position += 1
        url = value[start:position]
        if url.endswith(","):
            url = url.rstrip(",")
        else:
            depth = 0
            while position < length:
                char = value[position]
                if char == "(":
                    depth += 1
                elif char == ")" and depth:
                    depth -= 1
                elif char == "," and not depth:
                    break
                position += 1
        position += 1
        if url and not is_data_uri(url):
            urls.append(url)
    return urls
