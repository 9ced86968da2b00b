from flask import Flask

from weeklies.errors import AppError, HTTPError, error_message, register_error_handlers
from weeklies.logging_setup import REQUEST_LOGGER, install_request_logging


def _app():
    app = Flask(__name__)
    register_error_handlers(app)
    install_request_logging(app)

    @app.get("/upstream")
    def upstream():
        raise HTTPError(403, "Forbidden by provider")

    @app.get("/local")
    def local():
        raise AppError("Invalid configuration")

    @app.get("/boom")
    def boom():
        raise ValueError("unexpected")

    return app


def test_http_error_relays_status_and_body():
    r = _app().test_client().get("/upstream")
    assert r.status_code == 403
    assert r.mimetype == "text/plain"
    assert r.get_data(as_text=True) == "Forbidden by provider"


def test_app_error_is_500_with_message():
    r = _app().test_client().get("/local")
    assert r.status_code == 500
    assert r.get_data(as_text=True) == "Invalid configuration"


def test_unhandled_exception_hides_details():
    r = _app().test_client().get("/boom")
    assert r.status_code == 500
    body = r.get_data(as_text=True)
    assert body.startswith("Internal error (incident ")
    assert "unexpected" not in body


def test_unknown_route_is_plain_404():
    r = _app().test_client().get("/nope")
    assert r.status_code == 404
    assert r.mimetype == "text/plain"


def test_request_id_echoed():
    client = _app().test_client()
    r = client.get("/local", headers={"X-Request-Id": "abc-123"})
    assert r.headers["X-Request-Id"] == "abc-123"
    assert client.get("/local").headers["X-Request-Id"]


def test_error_message_falls_back_to_str():
    assert error_message(AppError("x")) == "x"
    assert error_message(ValueError("y")) == "y"
    assert HTTPError("401", "no").status == 401


def test_request_line_logged(caplog):
    caplog.set_level("INFO", logger=REQUEST_LOGGER)
    _app().test_client().get("/local", headers={"X-Request-Id": "rid-7"})
    lines = [r.msg for r in caplog.records if r.name == REQUEST_LOGGER]
    assert {"request_id": "rid-7", "method": "GET", "path": "/local", "status": 500}.items() <= lines[-1].items()
