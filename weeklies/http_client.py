"""Outbound HTTP transport used by the OpenID Connect client.

A requests.Session is not shared across threads: HTTPSession wraps exactly one,
and ThreadLocalHTTPSession hands every worker thread its own HTTPSession.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import requests

from .errors import AppError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class HTTPRequest:
    url: str
    request_data: str = ""
    header: dict[str, str] = field(default_factory=dict)

    def set_payload(self, data: str) -> HTTPRequest:
        self.request_data = data
        return self

    def add_header(self, key: str, value: str) -> HTTPRequest:
        self.header.setdefault(key, value)
        return self

    def set_content_type(self, value: str) -> HTTPRequest:
        return self.add_header("Content-Type", value)


@dataclass
class HTTPResponse:
    status: int = 0
    payload: bytes = b""
    header: dict[str, str] = field(default_factory=dict)

    def payload_as_str(self) -> str:
        return self.payload.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HTTPSessionInterface(ABC):
    @abstractmethod
    def get(self, request: HTTPRequest | str) -> HTTPResponse: ...

    @abstractmethod
    def post(self, request: HTTPRequest) -> HTTPResponse: ...


def _as_request(request: HTTPRequest | str) -> HTTPRequest:
    return HTTPRequest(request) if isinstance(request, str) else request


class HTTPSession(HTTPSessionInterface):
    """Blocking transport over a single requests.Session. Not thread safe."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS, session: requests.Session | None = None):
        self.timeout = timeout
        self._session = session or requests.Session()

    def _send(self, method: str, req: HTTPRequest) -> HTTPResponse:
        try:
            r = self._session.request(
                method,
                req.url,
                data=req.request_data.encode("utf-8") if req.request_data else None,
                headers=req.header,
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            log.warning("HTTP %s %s failed: %s", method, req.url, e)
            raise AppError(f"HTTP request to {req.url} failed: {e}") from e
        return HTTPResponse(status=r.status_code, payload=r.content, header=dict(r.headers))

    def get(self, request: HTTPRequest | str) -> HTTPResponse:
        return self._send("GET", _as_request(request))

    def post(self, request: HTTPRequest) -> HTTPResponse:
        return self._send("POST", request)

    def close(self) -> None:
        self._session.close()


class ThreadLocalHTTPSession(HTTPSessionInterface):
    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout = timeout
        self._local = threading.local()

    def _session(self) -> HTTPSession:
        s = getattr(self._local, "session", None)
        if s is None:
            s = HTTPSession(timeout=self.timeout)
            self._local.session = s
        return s

    def get(self, request: HTTPRequest | str) -> HTTPResponse:
        return self._session().get(request)

    def post(self, request: HTTPRequest) -> HTTPResponse:
        return self._session().post(request)


__all__ = [
    "HTTPRequest",
    "HTTPResponse",
    "HTTPSessionInterface",
    "HTTPSession",
    "ThreadLocalHTTPSession",
    "DEFAULT_TIMEOUT_SECONDS",
]
