from __future__ import annotations

import dataclasses
from pathlib import Path

from page_replica import cli
from page_replica.capture import capture
from page_replica.cli import parse_args

from .fakes import FakeSession, FakeTransport, session_factory

PAGE = "<html><body><p>hello</p></body></html>"


def _fake_capture(url, config):
    config = dataclasses.replace(config, scroll_delay=0)
    return capture(
        url,
        config,
        transport=FakeTransport(),
        session_factory=session_factory(FakeSession([PAGE])),
    )


def test_bare_urls_default_to_capture() -> None:
    args = parse_args(["https://x.test/", "--output", "out", "--headed"])

    assert args.command == "capture"
    assert args.urls == ["https://x.test/"]
    assert args.output == Path("out")
    assert args.headed is True
    assert args.timeout == 60.0


def test_mcp_subcommand() -> None:
    args = parse_args(["mcp"])

    assert args.command == "mcp"
    assert args.output is None


def test_run_capture_succeeds_for_every_url(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "capture", _fake_capture)
    args = parse_args(
        ["https://x.test/", "https://y.test/", "--output", str(tmp_path), "--wait", "0", "--parallel"]
    )

    assert cli._run_capture(args) == 0
    assert len(list(tmp_path.glob("*/index.html"))) == 2


def test_run_capture_exit_code_reports_failures(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "capture", _fake_capture)
    args = parse_args(["https://x.test/", "ftp://x.test/", "--output", str(tmp_path), "--wait", "0"])

    assert cli._run_capture(args) == 1
    assert len(list(tmp_path.glob("*/index.html"))) == 1
