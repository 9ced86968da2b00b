"""Per-request session classification from token cookies.

No server-side session store: every request is re-validated against the
OpenID provider.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from flask import request

from .auth import AuthInterface, Tokens, UserInfo
from .cookies import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, parse_cookies
from .errors import AppError

log = logging.getLogger(__name__)


class SessionStatus(enum.Enum):
    VALID = "valid"
    REFRESHED = "refreshed"
    INVALID = "invalid"


@dataclass(frozen=True)
class SessionValidation:
    status: SessionStatus
    user: UserInfo | None = None
    new_tokens: Tokens | None = None

    @classmethod
    def valid(cls, user: UserInfo) -> SessionValidation:
        return cls(SessionStatus.VALID, user=user)

    @classmethod
    def refreshed(cls, user: UserInfo, tokens: Tokens) -> SessionValidation:
        return cls(SessionStatus.REFRESHED, user=user, new_tokens=tokens)

    @classmethod
    def invalid(cls) -> SessionValidation:
        return cls(SessionStatus.INVALID)

    @property
    def authenticated(self) -> bool:
        return self.status is not SessionStatus.INVALID


def validate_session(auth: AuthInterface, cookie_header: str | None) -> SessionValidation:
    """Classify a request by its Cookie header.

    A failing access token falls through to the refresh token. A failing
    refresh is raised to the caller, not reported as INVALID.
    """
    if cookie_header is None:
        log.debug("Request has no cookie.")
        return SessionValidation.invalid()

    cookies = parse_cookies(cookie_header)
    access_token = cookies.get(ACCESS_TOKEN_COOKIE)
    if access_token is not None:
        log.debug("Cookie has access token.")
        try:
            return SessionValidation.valid(auth.get_user(Tokens(access_token=access_token)))
        except AppError as e:
            log.debug("Access token rejected: %s", e.message)

    refresh_token = cookies.get(REFRESH_TOKEN_COOKIE)
    if refresh_token is not None:
        log.debug("Cookie has refresh token.")
        tokens = auth.refresh_tokens(refresh_token)
        user = auth.get_user(tokens)
        return SessionValidation.refreshed(user, tokens)
    return SessionValidation.invalid()


def validate_request_session(auth: AuthInterface) -> SessionValidation:
    return validate_session(auth, request.headers.get("Cookie"))


def session_user_name(auth: AuthInterface) -> tuple[str, SessionValidation | None]:
    """Name of the logged-in user for pages that do not require a login.

    Validation failures are treated as a guest visit.
    """
    try:
        validation = validate_request_session(auth)
    except AppError as e:
        log.info("Session validation failed, continuing as guest: %s", e.message)
        return "", None
    if validation.authenticated and validation.user is not None:
        return validation.user.name, validation
    return "", validation


__all__ = [
    "SessionStatus",
    "SessionValidation",
    "validate_session",
    "validate_request_session",
    "session_user_name",
]
