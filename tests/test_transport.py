from __future__ import annotations

import threading

from page_replica.transport import FetchResponse, RequestsTransport


def test_each_thread_gets_its_own_session_with_shared_cookies() -> None:
    transport = RequestsTransport("test-agent")
    transport.load_cookies(
        [{"name": "session", "value": "abc", "domain": "x.test", "path": "/"}, {"value": "x"}]
    )
    sessions = []

    def grab() -> None:
        sessions.append(transport.session)

    threads = [threading.Thread(target=grab) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sessions[0] is not sessions[1]
    assert transport.session is transport.session
    for session in sessions:
        assert session.headers["User-Agent"] == "test-agent"
        assert session.cookies is transport.cookies
    assert transport.cookies.get("session") == "abc"

    transport.close()
    assert transport._sessions == []


def test_content_type_lookup_ignores_header_case() -> None:
    response = FetchResponse(200, {"content-type": "image/png"})

    assert response.ok
    assert response.content_type == "image/png"
    assert not FetchResponse(404).ok
