from __future__ import annotations

from page_replica.css import extract_css_urls, parse_srcset


def test_extract_handles_quoting_styles() -> None:
    css = """
    .a { background: url(a.png); }
    .b { background: url('b.png') no-repeat; }
    .c { background: URL( "c.png" ); }
    """
    assert extract_css_urls(css) == ["a.png", "b.png", "c.png"]


def test_extract_skips_fragments_and_data_uris() -> None:
    css = "mask: url(#clip); background: url(data:image/png;base64,AAAA); cursor: url(/cur.cur)"
    assert extract_css_urls(css) == ["/cur.cur"]


def test_extract_keeps_duplicates_in_order() -> None:
    css = "a{background:url(x.png)} b{background:url(y.png)} c{background:url(x.png)}"
    assert extract_css_urls(css) == ["x.png", "y.png", "x.png"]


def test_extract_tolerates_malformed_css() -> None:
    css = "}}} .a { background: url(; } .b { background: url('ok.png') } @media {{"
    assert extract_css_urls(css) == ["ok.png"]
    assert extract_css_urls("") == []


def test_parse_srcset_strips_descriptors() -> None:
    value = "small.jpg 480w, medium.jpg 800w,large.jpg 1.5x"
    assert parse_srcset(value) == ["small.jpg", "medium.jpg", "large.jpg"]


def test_parse_srcset_single_candidate_without_descriptor() -> None:
    assert parse_srcset("  /img/only.png  ") == ["/img/only.png"]
    assert parse_srcset("") == []


def test_parse_srcset_keeps_data_uri_commas_together() -> None:
    value = "data:image/png;base64,iVBORw0KGgo= 1x, https://x.test/hi.png 2x"
    assert parse_srcset(value) == ["https://x.test/hi.png"]


def test_parse_srcset_trailing_comma_in_url() -> None:
    assert parse_srcset("a.png, b.png") == ["a.png", "b.png"]
