import os
import sys
from datetime import UTC, datetime, timedelta

import pytest

# Path setup before any project imports
ROOT = os.path.dirname(__file__)
PARENT = os.path.abspath(os.path.join(ROOT, ".."))
if PARENT not in sys.path:  # pragma: no cover - environment dependent
    sys.path.insert(0, PARENT)

from weeklies.auth import AuthInterface, Tokens, UserInfo  # noqa: E402
from weeklies.errors import HTTPError  # noqa: E402
from weeklies.http_client import HTTPRequest, HTTPResponse, HTTPSessionInterface  # noqa: E402


class FakeHTTPSession(HTTPSessionInterface):
    """Records requests and answers from a url -> HTTPResponse table."""

    def __init__(self, responses: dict[str, HTTPResponse] | None = None):
        self.responses = dict(responses or {})
        self.requests: list[tuple[str, HTTPRequest]] = []

    def _answer(self, method: str, req: HTTPRequest) -> HTTPResponse:
        self.requests.append((method, req))
        url = req.url.split("?", 1)[0] if req.url not in self.responses else req.url
        if url not in self.responses:
            return HTTPResponse(status=404, payload=b"not found")
        return self.responses[url]

    def get(self, request):
        if isinstance(request, str):
            request = HTTPRequest(request)
        return self._answer("GET", request)

    def post(self, request):
        return self._answer("POST", request)


class FakeAuth(AuthInterface):
    """In-memory provider: known access tokens map to users, refresh tokens to new token sets."""

    def __init__(self):
        self.users: dict[str, UserInfo] = {}
        self.refreshable: dict[str, Tokens] = {}
        self.codes: dict[str, Tokens] = {}
        self.calls: list[tuple[str, str]] = []

    def add_user(self, access_token: str, name: str, user_id: str | None = None) -> UserInfo:
        user = UserInfo(id=user_id or f"id-{name}", name=name)
        self.users[access_token] = user
        return user

    def initial_url(self) -> str:
        return "https://auth.example.org/auth?response_type=code&client_id=weeklies"

    def initiate(self) -> HTTPResponse:
        return HTTPResponse(status=200, payload=b"login page")

    def authenticate(self, code: str) -> Tokens:
        self.calls.append(("authenticate", code))
        if code not in self.codes:
            raise HTTPError(400, "invalid_grant")
        return self.codes[code]

    def get_user(self, tokens: Tokens) -> UserInfo:
        self.calls.append(("get_user", tokens.access_token))
        if tokens.access_token not in self.users:
            raise HTTPError(401, "invalid token")
        return self.users[tokens.access_token]

    def refresh_tokens(self, refresh_token: str) -> Tokens:
        self.calls.append(("refresh_tokens", refresh_token))
        if refresh_token not in self.refreshable:
            raise HTTPError(400, "Token is not active")
        return self.refreshable[refresh_token]


def make_tokens(access: str, refresh: str | None = None, ttl: int = 300) -> Tokens:
    now = datetime.now(UTC)
    return Tokens(
        access_token=access,
        refresh_token=refresh,
        expiration=now + timedelta(seconds=ttl),
        refresh_expiration=now + timedelta(seconds=ttl * 6) if refresh else None,
    )


@pytest.fixture
def fake_auth():
    return FakeAuth()


@pytest.fixture
def app(tmp_path, fake_auth):
    from weeklies.app_factory import create_app

    db_file = tmp_path / "weeklies_test.db"
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "database_url": f"sqlite:///{db_file}",
            "guest_index": "user-weekly",
            "guest_index_user": "mw",
            "default_lang": "en",
            "FORCE_DB_REINIT": True,
            "DEV_CREATE_ALL": True,
        },
        auth=fake_auth,
    )
    return app


@pytest.fixture
def client(app):
    # Tests send the raw Cookie header themselves; the client jar would replace it.
    return app.test_client(use_cookies=False)


@pytest.fixture
def data_source(app):
    return app.data_source
