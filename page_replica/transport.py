"""HTTP transport used to download assets."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

import requests
from requests.cookies import RequestsCookieJar

from .config import DEFAULT_USER_AGENT
from .errors import AssetFetchFailure

logger = logging.getLogger("page_replica")


@dataclass
class FetchResponse:
    """Result of a single GET."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return ""


class FetchTransport:
    """Fetch capability consumed by the orchestrator.

    ``get`` returns a :class:`FetchResponse` for any HTTP status and raises
    :class:`AssetFetchFailure` when no response could be obtained.
    """

    def get(self, url: str, *, referer: Optional[str], timeout: float) -> FetchResponse:
        raise NotImplementedError

    def load_cookies(self, cookies: Iterable[Mapping[str, object]]) -> None:
        """Import browser cookies so downloads share the page's session."""
        return None

    def close(self) -> None:
        return None


class RequestsTransport(FetchTransport):
    """Transport backed by one :class:`requests.Session` per worker thread.

    Sessions are not shared across threads; they share headers and a single
    cookie jar, so browser cookies loaded once apply to every worker.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.headers = {
            "User-Agent": user_agent,
            "Accept": "*/*",
            "Accept-Language": "en-US,en;q=0.7",
        }
        self.cookies = RequestsCookieJar()
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.headers)
            session.cookies = self.cookies
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def get(self, url: str, *, referer: Optional[str], timeout: float) -> FetchResponse:
        headers = {"Referer": referer} if referer else {}
        try:
            resp = self.session.get(url, headers=headers, timeout=timeout)
            body = resp.content
        except requests.RequestException as exc:
            raise AssetFetchFailure(url, str(exc)) from exc
        return FetchResponse(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            body=body,
        )

    def load_cookies(self, cookies: Iterable[Mapping[str, object]]) -> None:
        count = 0
        for cookie in cookies:
            name = cookie.get("name")
            if not name:
                continue
            self.cookies.set(
                str(name),
                str(cookie.get("value", "")),
                domain=str(cookie.get("domain") or ""),
                path=str(cookie.get("path") or "/"),
            )
            count += 1
        if count:
            logger.debug("Loaded %d browser cookies into the fetch session", count)

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
