"""Weekly pages: one-year listing, single week, and the owner-only editor."""
from __future__ import annotations

import logging
from datetime import datetime

from flask import Blueprint, Response, abort, current_app, make_response, redirect, render_template, request, url_for

from .app_sessions import SessionStatus, SessionValidation, session_user_name
from .auth import AuthInterface
from .cookies import set_token_cookies
from .data import DataSourceInterface
from .errors import AppError, text_response
from .utils import str_to_date, utcnow
from .viewmodels import build_weekly_vm
from .weekly import ONE_WEEK, PostFormat, WeeklyPost, is_week_start, reconcile_weeklies

bp = Blueprint("weekly_ui", __name__)

log = logging.getLogger(__name__)


def _auth() -> AuthInterface:
    return current_app.auth_client  # type: ignore[attr-defined]


def _data() -> DataSourceInterface:
    return current_app.data_source  # type: ignore[attr-defined]


def _parse_date(value: str) -> datetime:
    try:
        return str_to_date(value)
    except AppError as e:
        abort(text_response(e.message, 400))


def _finish(body: str, session: SessionValidation | None) -> Response:
    resp = make_response(body)
    if session is not None and session.status is SessionStatus.REFRESHED and session.new_tokens is not None:
        set_token_cookies(resp, session.new_tokens)
    return resp


def _require_owner(username: str) -> tuple[str, SessionValidation]:
    session_user, session = session_user_name(_auth())
    if session is None or not session.authenticated or session_user != username:
        abort(text_response("Unauthorized", 401))
    return session_user, session


@bp.get("/weekly/<username>")
def user_weeklies(username: str):
    session_user, session = session_user_name(_auth())
    if _data().get_user_id(username) is None:
        abort(text_response(f"No weeklies for {username}", 404))
    weeklies = _data().get_weeklies_one_year(username)
    weeklies.reverse()
    html = render_template(
        "weeklies.html",
        weeklies=[build_weekly_vm(p) for p in weeklies],
        username=username,
        session_user=session_user,
        this_url=request.full_path.rstrip("?"),
    )
    return _finish(html, session)


@bp.get("/weekly/<username>/<date>")
def user_weekly(username: str, date: str):
    week_begin = _parse_date(date)
    session_user, session = session_user_name(_auth())
    if _data().get_user_id(username) is None:
        abort(text_response(f"No weeklies for {username}", 404))
    weeklies = _data().get_weeklies(username, week_begin, week_begin + ONE_WEEK)
    match = [p for p in weeklies if p.week_begin == week_begin]
    if not match:
        abort(text_response("Not found", 404))
    html = render_template(
        "weekly.html",
        weekly=build_weekly_vm(match[0]),
        username=username,
        session_user=session_user,
        this_url=request.full_path.rstrip("?"),
    )
    return _finish(html, session)


@bp.get("/edit/<username>/<date>")
def edit_form(username: str, date: str):
    week_begin = _parse_date(date)
    session_user, session = _require_owner(username)
    if not is_week_start(week_begin):
        abort(text_response("Not a week start", 404))

    stored: list[WeeklyPost] = []
    if _data().get_user_id(username) is not None:
        stored = _data().get_weeklies(username, week_begin, week_begin + ONE_WEEK)
    post = reconcile_weeklies(stored, username, week_begin, week_begin + ONE_WEEK)[0]
    html = render_template(
        "edit.html",
        weekly=build_weekly_vm(post, render=False),
        username=username,
        session_user=session_user,
    )
    return _finish(html, session)


@bp.post("/edit/<username>/<date>")
def edit(username: str, date: str):
    week_begin = _parse_date(date)
    _session_user, session = _require_owner(username)
    if not is_week_start(week_begin):
        abort(text_response("Not a week start", 404))

    post = WeeklyPost(
        author=username,
        format=PostFormat.MARKDOWN,
        raw_content=request.form.get("content", ""),
        week_begin=week_begin,
        update_time=utcnow(),
        language=current_app.config.get("DEFAULT_LANG") or "",
    )
    _data().update_weekly(username, post)
    log.info("Saved weekly of %s for %s", username, week_begin.date().isoformat())
    resp = redirect(url_for("home.index"))
    if session.status is SessionStatus.REFRESHED and session.new_tokens is not None:
        set_token_cookies(resp, session.new_tokens)
    return resp


__all__ = ["bp"]
