"""Rewrite asset references in markup and stylesheets to local paths."""

from __future__ import annotations

import posixpath
import re
from typing import Iterable, List, Mapping, Tuple

from .urls import is_data_uri, is_http_url, resolve_url

ATTRIBUTE_NAMES = "src|href|content|poster"
URL_QUOTES = r"&quot;|&#39;|&#x27;|[\"']|"
BASE_ELEMENT_RE = re.compile(r"<base\b[^>]*>", re.IGNORECASE)
STYLESHEET_URL_RE = re.compile(
    r"url\s*\(\s*(['\"]?)([^'\")\s]+)\1\s*\)", re.IGNORECASE
)


def _longest_first(entries: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    usable = [(key, path) for key, path in entries if key and not is_data_uri(key)]
    return sorted(usable, key=lambda item: len(item[0]), reverse=True)


def serialized_forms(key: str) -> List[str]:
    """Spellings a URL may take in serialized markup (raw and attribute-escaped)."""
    forms = [key]
    escaped = key.replace("&", "&amp;")
    if escaped != key:
        forms.append(escaped)
    return forms


def _rewrite_form(text: str, form: str, local_path: str) -> str:
    key = re.escape(form)

    attribute_re = re.compile(rf"(?i:({ATTRIBUTE_NAMES}))\s*=\s*([\"']){key}\2")
    text = attribute_re.sub(
        lambda m: f"{m.group(1)}={m.group(2)}{local_path}{m.group(2)}", text
    )

    srcset_re = re.compile(rf"(?<![^\s,\"']){key}(\s+\d+(?:\.\d+)?[wx])")
    text = srcset_re.sub(lambda m: f"{local_path}{m.group(1)}", text)

    css_re = re.compile(rf"(?i:url)\s*\(\s*({URL_QUOTES}){key}\1\s*\)")
    return css_re.sub(lambda m: f"url({m.group(1)}{local_path}{m.group(1)})", text)


def strip_base_elements(markup: str) -> str:
    return BASE_ELEMENT_RE.sub("", markup)


def rewrite_markup(markup: str, asset_map: Mapping[str, str]) -> str:
    """Point every mapped reference in ``markup`` at its local copy.

    Keys are applied longest first so a URL that is a prefix of another never
    rewrites part of the longer one. Keys that do not occur verbatim are left
    alone and keep resolving over the network. ``<base>`` elements are removed
    so relative local paths resolve against the saved document.
    """
    text = markup
    for key, local_path in _longest_first(asset_map.items()):
        for form in serialized_forms(key):
            text = _rewrite_form(text, form, local_path)
    return strip_base_elements(text)


def relative_asset_path(from_file: str, asset_path: str) -> str:
    """Relative path from the directory of ``from_file`` to ``asset_path``."""
    return posixpath.relpath(asset_path, posixpath.dirname(from_file) or ".")


def rewrite_stylesheet(
    css_text: str,
    stylesheet_url: str,
    stylesheet_path: str,
    asset_map: Mapping[str, str],
) -> str:
    """Rewrite a downloaded stylesheet to reference local assets.

    ``url()`` references resolve against the stylesheet's own URL. Absolute
    URL keys found elsewhere, such as ``@import "..."``, are then replaced as
    whole tokens, longest first. Paths are relative to ``stylesheet_path``.
    """

    def replace_url(match: re.Match) -> str:
        quote, reference = match.group(1), match.group(2)
        resolved = resolve_url(stylesheet_url, reference)
        local_path = asset_map.get(resolved)
        if local_path is None:
            return match.group(0)
        return f"url({quote}{relative_asset_path(stylesheet_path, local_path)}{quote})"

    text = STYLESHEET_URL_RE.sub(replace_url, css_text)

    for key, local_path in _longest_first(asset_map.items()):
        if not is_http_url(key) or key not in text:
            continue
        token_re = re.compile(rf"(?<![^\s(\"']){re.escape(key)}(?=[\s)\"';,]|$)")
        relative = relative_asset_path(stylesheet_path, local_path)
        text = token_re.sub(lambda m: relative, text)
    return text
