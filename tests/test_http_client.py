import threading

import pytest
import requests

from weeklies.errors import AppError
from weeklies.http_client import HTTPRequest, HTTPSession, ThreadLocalHTTPSession


class _StubResponse:
    status_code = 201
    content = b'{"ok": true}'
    headers = {"Content-Type": "application/json"}


class _StubSession:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.fail:
            raise requests.ConnectionError("connection refused")
        return _StubResponse()

    def close(self):
        pass


def test_post_sends_payload_headers_and_timeout():
    stub = _StubSession()
    http = HTTPSession(timeout=3, session=stub)
    res = http.post(
        HTTPRequest("https://auth.example.org/token").set_payload("a=1").set_content_type("application/x-www-form-urlencoded")
    )
    assert res.status == 201
    assert res.ok
    assert res.payload_as_str() == '{"ok": true}'
    method, url, kwargs = stub.calls[0]
    assert (method, url) == ("POST", "https://auth.example.org/token")
    assert kwargs["data"] == b"a=1"
    assert kwargs["headers"] == {"Content-Type": "application/x-www-form-urlencoded"}
    assert kwargs["timeout"] == 3


def test_get_accepts_plain_url():
    stub = _StubSession()
    HTTPSession(session=stub).get("https://auth.example.org/.well-known/openid-configuration")
    assert stub.calls[0][0] == "GET"
    assert stub.calls[0][2]["data"] is None


def test_network_failure_is_app_error():
    with pytest.raises(AppError, match="connection refused"):
        HTTPSession(session=_StubSession(fail=True)).get("https://auth.example.org/")


def test_add_header_keeps_first_value():
    req = HTTPRequest("u").add_header("Authorization", "a").add_header("Authorization", "b")
    assert req.header == {"Authorization": "a"}


def test_thread_local_session_per_thread():
    http = ThreadLocalHTTPSession(timeout=1)
    seen = []

    def grab():
        seen.append(http._session())

    t = threading.Thread(target=grab)
    t.start()
    t.join()
    grab()
    assert seen[0] is not seen[1]
    assert http._session() is seen[1]
