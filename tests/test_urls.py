from __future__ import annotations

import hashlib

import pytest

from page_replica.errors import InvalidURL
from page_replica.models import AUDIO, FONT, IMAGE, OTHER, SCRIPT, STYLESHEET, VIDEO
from page_replica.urls import (
    classify,
    extension_for,
    filename_for,
    is_data_uri,
    is_fetchable,
    local_path_for,
    normalize_url,
    resolve_url,
)
from page_replica.utils import output_folder_name, safe_folder_name


def test_normalize_adds_https_scheme() -> None:
    assert normalize_url("example.com/p") == normalize_url("https://example.com/p")
    assert normalize_url("example.com/p") == "https://example.com/p"


def test_normalize_trims_and_keeps_http() -> None:
    assert normalize_url("  http://Example.COM  ") == "http://example.com/"
    assert normalize_url("https://example.com:8443/a?b=1#c") == "https://example.com:8443/a?b=1#c"


@pytest.mark.parametrize(
    "value",
    ["", "   ", "ftp://example.com/file", "javascript:alert(1)", "https://", "https://exa mple.com/"],
)
def test_normalize_rejects_invalid_input(value: str) -> None:
    with pytest.raises(InvalidURL):
        normalize_url(value)


def test_normalize_rejects_bad_port() -> None:
    with pytest.raises(InvalidURL):
        normalize_url("example.com:notaport/")


@pytest.mark.parametrize(
    ("reference", "expected"),
    [
        ("g", "http://a/b/c/g"),
        ("./g", "http://a/b/c/g"),
        ("g/", "http://a/b/c/g/"),
        ("/g", "http://a/g"),
        ("?y", "http://a/b/c/d;p?y"),
        ("g?y", "http://a/b/c/g?y"),
        ("#s", "http://a/b/c/d;p?q#s"),
        ("../g", "http://a/b/g"),
        ("../..", "http://a/"),
        ("https://other.test/x", "https://other.test/x"),
    ],
)
def test_resolve_follows_standard_rules(reference: str, expected: str) -> None:
    assert resolve_url("http://a/b/c/d;p?q", reference) == expected


def test_resolve_scheme_relative_inherits_base_scheme() -> None:
    assert resolve_url("http://x.test/page", "//cdn.test/a.js") == "http://cdn.test/a.js"
    assert resolve_url("https://x.test/page", "//cdn.test/a.js") == "https://cdn.test/a.js"


def test_resolve_leaves_data_uris_and_empty_refs_alone() -> None:
    assert resolve_url("https://x.test/", "data:image/png;base64,AAAA") == "data:image/png;base64,AAAA"
    assert resolve_url("https://x.test/", "") == ""


def test_resolve_returns_reference_when_parsing_fails() -> None:
    assert resolve_url("https://x.test/", "http://[broken/a.png") == "http://[broken/a.png"


def test_data_uri_and_fetchable_checks() -> None:
    assert is_data_uri(" DATA:text/plain,hi")
    assert not is_data_uri("https://x.test/data:thing")
    assert not is_fetchable("#section")
    assert not is_fetchable("mailto:someone@x.test")
    assert is_fetchable("/img/a.png")


def test_classify_extension_takes_priority() -> None:
    assert classify("a.png", "text/plain") == IMAGE
    assert classify("https://x.test/a.css?v=3", "application/octet-stream") == STYLESHEET


def test_classify_falls_back_to_content_type() -> None:
    assert classify("a", "image/png") == IMAGE
    assert classify("https://x.test/font", "font/woff2") == FONT
    assert classify("https://x.test/app", "application/javascript; charset=utf-8") == SCRIPT
    assert classify("https://x.test/styles.php", "text/css") == STYLESHEET
    assert classify("https://x.test/clip", "video/quicktime") == VIDEO
    assert classify("https://x.test/track", "audio/x-something") == AUDIO


def test_classify_unmatched_is_other() -> None:
    assert classify("https://x.test/data", "") == OTHER
    assert classify("https://x.test/feed.xml", "application/xml") == OTHER


def test_extension_prefers_url_path() -> None:
    assert extension_for("https://x.test/a/font.woff2", "font/woff") == ".woff2"
    assert extension_for("https://x.test/image", "image/jpeg; q=1") == ".jpg"
    assert extension_for("https://x.test/blob", "application/x-unknown") == ""


def test_filename_is_twelve_hex_chars_plus_extension() -> None:
    url = "https://x.test/a.png"
    expected = hashlib.md5(url.encode("utf-8")).hexdigest()[:12]
    assert filename_for(url, "image/png") == f"{expected}.png"
    assert filename_for(url, "image/png") == filename_for(url, "image/png")
    assert filename_for("https://x.test/b.png") != filename_for(url)


def test_local_path_uses_category_directory() -> None:
    assert local_path_for("https://x.test/a.png").startswith("assets/images/")
    assert local_path_for("https://x.test/s", "text/css").startswith("assets/css/")
    assert local_path_for("https://x.test/x", "").startswith("assets/other/")


def test_output_folder_name() -> None:
    assert output_folder_name("https://www.example.com/a", 1700000000000) == "www.example.com_1700000000000"
    assert safe_folder_name("we!rd@@host") == "we_rd_host"
    assert safe_folder_name("") == "site"
