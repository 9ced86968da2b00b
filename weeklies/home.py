from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, redirect, request, url_for

from .app_sessions import SessionStatus, validate_request_session
from .auth import AuthInterface
from .config import GUEST_INDEX_USER_WEEKLY
from .cookies import set_token_cookies
from .data import DataSourceInterface
from .errors import AppError, text_response

bp = Blueprint("home", __name__)

log = logging.getLogger(__name__)


def _auth() -> AuthInterface:
    return current_app.auth_client  # type: ignore[attr-defined]


def _data() -> DataSourceInterface:
    return current_app.data_source  # type: ignore[attr-defined]


def _index_for_guest() -> Response:
    if current_app.config.get("GUEST_INDEX") == GUEST_INDEX_USER_WEEKLY:
        guest_user = current_app.config.get("GUEST_INDEX_USER") or ""
        if _data().get_user_id(guest_user) is None:
            log.warning("Guest index user %r has no weeklies yet", guest_user)
        return redirect(url_for("weekly_ui.user_weeklies", username=guest_user), 301)
    return text_response("No index page configured for guests", 500)


@bp.get("/")
def index():
    try:
        session = validate_request_session(_auth())
    except AppError as e:
        log.info("Session validation failed on index: %s", e.message)
        return _index_for_guest()

    if session.status is SessionStatus.INVALID or session.user is None:
        return _index_for_guest()
    resp = redirect(url_for("weekly_ui.user_weeklies", username=session.user.name), 302)
    if session.status is SessionStatus.REFRESHED and session.new_tokens is not None:
        set_token_cookies(resp, session.new_tokens)
    return resp


@bp.get("/login")
def login():
    return redirect(_auth().initial_url(), 301)


@bp.get("/openid-redirect")
def openid_redirect():
    # TODO: send and check an OAuth2 ``state`` value once login pages keep one across the round trip.
    error = request.args.get("error")
    if error is not None:
        description = request.args.get("error_description")
        msg = f"{error}: {description}." if description is not None else f"{error}."
        return text_response(msg, 500)
    code = request.args.get("code")
    if code is None:
        return text_response("No error or code in auth response", 500)

    log.debug("OpenID server visited %s with a code.", request.path)
    auth = _auth()
    tokens = auth.authenticate(code)
    user = auth.get_user(tokens)
    log.info("User %s logged in", user.name or user.id)
    resp = redirect(url_for("home.index"), 301)
    set_token_cookies(resp, tokens)
    return resp



@bp.get("/healthz")
def healthz():
    return {"status": "ok"}


__all__ = ["bp"]
