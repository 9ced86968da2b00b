"""Request logging.

Each request gets an id (``X-Request-Id``, echoed back) and one structured log
line on the ``weeklies`` logger.
"""

from __future__ import annotations

import logging
import time
import uuid

from flask import Flask, Response, g, request

REQUEST_LOGGER = "weeklies"


def install_request_logging(app: Flask, level: int = logging.INFO) -> logging.Logger:
    log = logging.getLogger(REQUEST_LOGGER)
    if not log.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(message)s"))
        log.addHandler(h)
    log.setLevel(level)

    @app.before_request
    def _before_req() -> None:
        g._t0 = time.perf_counter()
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())

    @app.after_request
    def _after_req(resp: Response) -> Response:
        dur_ms = int((time.perf_counter() - getattr(g, "_t0", time.perf_counter())) * 1000)
        rid = getattr(g, "request_id", None) or str(uuid.uuid4())
        resp.headers["X-Request-Id"] = rid
        log.info(
            {
                "request_id": rid,
                "method": request.method,
                "path": request.path,
                "status": resp.status_code,
                "duration_ms": dur_ms,
            }
        )
        return resp

    return log


__all__ = ["REQUEST_LOGGER", "install_request_logging"]
