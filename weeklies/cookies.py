"""Token cookies: ``access-token`` and ``refresh-token``.

Wire format is ``name=<percent-encoded value>; Max-Age=<seconds>``. No Secure,
HttpOnly or SameSite attributes are emitted; deployments behind TLS should add them.
"""
from __future__ import annotations

from datetime import datetime

from flask import Response

from .auth import Tokens
from .utils import url_decode, url_encode, utcnow

ACCESS_TOKEN_COOKIE = "access-token"
REFRESH_TOKEN_COOKIE = "refresh-token"

DEFAULT_ACCESS_MAX_AGE = 300
DEFAULT_REFRESH_MAX_AGE = 1800


def parse_cookies(value: str) -> dict[str, str]:
    cookies: dict[str, str] = {}
    for section in value.split(";"):
        if section.startswith(" "):
            section = section[1:]
        name, sep, raw = section.partition("=")
        if not sep:
            continue
        cookies.setdefault(name, url_decode(raw))
    return cookies


def _seconds_until(when: datetime | None, default: int, now: datetime) -> int:
    if when is None:
        return default
    return int((when - now).total_seconds())


def token_cookie_headers(tokens: Tokens, now: datetime | None = None) -> list[str]:
    now = now or utcnow()
    headers = [
        f"{ACCESS_TOKEN_COOKIE}={url_encode(tokens.access_token)}; "
        f"Max-Age={_seconds_until(tokens.expiration, DEFAULT_ACCESS_MAX_AGE, now)}"
    ]
    if tokens.refresh_token is not None:
        headers.append(
            f"{REFRESH_TOKEN_COOKIE}={url_encode(tokens.refresh_token)}; "
            f"Max-Age={_seconds_until(tokens.refresh_expiration, DEFAULT_REFRESH_MAX_AGE, now)}"
        )
    return headers


def set_token_cookies(resp: Response, tokens: Tokens) -> None:
    # Not resp.set_cookie: it would add Path and Expires to the exact name=value; Max-Age form.
    for header in token_cookie_headers(tokens):
        resp.headers.add("Set-Cookie", header)


__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "REFRESH_TOKEN_COOKIE",
    "parse_cookies",
    "token_cookie_headers",
    "set_token_cookies",
]
