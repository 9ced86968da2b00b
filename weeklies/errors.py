"""Error types shared by the auth, storage and web layers.

Two kinds exist:
 - AppError: local/internal failure (bad config, parse failures, storage, transport)
 - HTTPError: an upstream HTTP failure whose status and body are relayed verbatim

Only the Flask handlers registered here turn them into responses.
"""
from __future__ import annotations

import traceback
import uuid

from flask import Flask, Response, make_response, request


class AppError(Exception):
    status = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class HTTPError(AppError):
    def __init__(self, status: int, message: str = ""):
        super().__init__(message)
        self.status = int(status)


def error_message(err: BaseException) -> str:
    return getattr(err, "message", None) or str(err)


def text_response(body: str, status: int) -> Response:
    resp = make_response(body, status)
    resp.mimetype = "text/plain"
    return resp


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPError)  # type: ignore[arg-type]
    def _h_http(err: HTTPError) -> Response:
        app.logger.warning("Upstream HTTP error status=%s path=%s", err.status, request.path)
        return text_response(err.message, err.status)

    @app.errorhandler(AppError)  # type: ignore[arg-type]
    def _h_app(err: AppError) -> Response:
        app.logger.error("Request failed path=%s: %s", request.path, err.message)
        return text_response(err.message, 500)

    @app.errorhandler(Exception)
    def _h_exception(ex: Exception) -> Response:
        from werkzeug.exceptions import HTTPException

        if isinstance(ex, HTTPException):
            return text_response(ex.description or ex.name, ex.code or 500)
        incident_id = str(uuid.uuid4())
        app.logger.error(
            "Unhandled exception incident_id=%s path=%s\n%s", incident_id, request.path, traceback.format_exc()
        )
        return text_response(f"Internal error (incident {incident_id})", 500)


__all__ = ["AppError", "HTTPError", "error_message", "text_response", "register_error_handlers"]
