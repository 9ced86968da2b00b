"""OpenID Connect authorization-code client.

Provider endpoints are discovered once from ``{prefix}/.well-known/openid-configuration``
and stay fixed for the lifetime of the client.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from .config import Config
from .errors import AppError, HTTPError
from .http_client import HTTPRequest, HTTPResponse, HTTPSessionInterface
from .utils import url_encode, utcnow

log = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass
class Tokens:
    access_token: str
    refresh_token: str | None = None
    expiration: datetime | None = None
    refresh_expiration: datetime | None = None


@dataclass(frozen=True)
class UserInfo:
    id: str
    name: str = ""


@dataclass(frozen=True)
class ProviderEndpoints:
    authorization: str
    token: str
    introspection: str
    userinfo: str
    end_session: str | None = None


class AuthInterface(ABC):
    @abstractmethod
    def initial_url(self) -> str: ...

    @abstractmethod
    def initiate(self) -> HTTPResponse: ...

    @abstractmethod
    def authenticate(self, code: str) -> Tokens: ...

    @abstractmethod
    def get_user(self, tokens: Tokens) -> UserInfo: ...

    @abstractmethod
    def refresh_tokens(self, refresh_token: str) -> Tokens: ...


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def get_str_property(data: Any, prop: str) -> str:
    if isinstance(data, dict) and isinstance(data.get(prop), str):
        return data[prop]
    raise AppError(f"Invalid value of {prop}")


def get_int_property(data: Any, prop: str) -> int:
    value = data.get(prop) if isinstance(data, dict) else None
    # bool is an int subclass; JSON true/false is not a duration
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise AppError(f"Invalid value of {prop}")


def tokens_from_response(res: HTTPResponse) -> Tokens:
    data = _parse_json(res.payload_as_str())
    if data is None:
        raise AppError("Invalid token response")
    if res.status != 200:
        msg = data.get("error_description") if isinstance(data, dict) else None
        raise HTTPError(res.status, msg if isinstance(msg, str) else "")

    tokens = Tokens(access_token=get_str_property(data, "access_token"))
    if isinstance(data.get("refresh_token"), str):
        tokens.refresh_token = data["refresh_token"]
    now = utcnow()
    try:
        tokens.expiration = now + timedelta(seconds=get_int_property(data, "expires_in"))
    except AppError:
        pass
    try:
        tokens.refresh_expiration = now + timedelta(seconds=get_int_property(data, "refresh_expires_in"))
    except AppError:
        pass
    return tokens


class OpenIDConnectAuth(AuthInterface):
    """Use ``create()``; the constructor does no discovery."""

    def __init__(self, config: Config, redirect_url: str, http: HTTPSessionInterface, endpoints: ProviderEndpoints):
        self.config = config
        self.redirection_url = redirect_url
        self.http_client = http
        self.endpoints = endpoints

    @classmethod
    def create(cls, config: Config, redirect_url: str, http: HTTPSessionInterface | None) -> OpenIDConnectAuth:
        if http is None:
            raise AppError("Null HTTP client")
        prefix = config.openid_url_prefix
        if not prefix:
            raise AppError("Empty auth prefix")
        prefix = prefix.rstrip("/")
        if not prefix:
            raise AppError("Invalid auth prefix")

        url = prefix + "/.well-known/openid-configuration"
        log.debug("Fetching OpenID configuration from %s", url)
        res = http.get(HTTPRequest(url))
        data = _parse_json(res.payload_as_str()) if res.ok else None
        if not isinstance(data, dict):
            raise AppError("Invalid OpenID configuration from server")

        end_session = data.get("end_session_endpoint")
        endpoints = ProviderEndpoints(
            authorization=get_str_property(data, "authorization_endpoint"),
            token=get_str_property(data, "token_endpoint"),
            introspection=get_str_property(data, "introspection_endpoint"),
            userinfo=get_str_property(data, "userinfo_endpoint"),
            end_session=end_session if isinstance(end_session, str) else None,
        )
        return cls(config, redirect_url, http, endpoints)

    def _basic_auth_header(self) -> str:
        # Not RFC 7617: the secret is percent-encoded, not base64(client_id:client_secret).
        return "Basic " + url_encode(self.config.client_secret)

    def initial_url(self) -> str:
        return (
            f"{self.endpoints.authorization}?response_type=code"
            f"&client_id={url_encode(self.config.client_id)}"
            f"&redirect_uri={url_encode(self.redirection_url)}"
            "&scope=openid%20profile"
        )

    def initiate(self) -> HTTPResponse:
        return self.http_client.get(HTTPRequest(self.initial_url()))

    def authenticate(self, code: str) -> Tokens:
        payload = (
            f"grant_type=authorization_code&code={url_encode(code)}"
            f"&redirect_uri={url_encode(self.redirection_url)}"
            f"&client_id={url_encode(self.config.client_id)}"
            f"&client_secret={url_encode(self.config.client_secret)}"
        )
        res = self.http_client.post(
            HTTPRequest(self.endpoints.token)
            .set_payload(payload)
            .set_content_type(FORM_CONTENT_TYPE)
            .add_header("Authorization", self._basic_auth_header())
        )
        if res.status != 200:
            raise HTTPError(res.status, res.payload_as_str())
        return tokens_from_response(res)

    def get_user(self, tokens: Tokens) -> UserInfo:
        res = self.http_client.get(
            HTTPRequest(self.endpoints.userinfo).add_header(
                "Authorization", "Bearer " + url_encode(tokens.access_token)
            )
        )
        if not res.ok:
            raise HTTPError(res.status, res.payload_as_str())
        data = _parse_json(res.payload_as_str())
        if not isinstance(data, dict):
            raise AppError("Invalid user info response")

        user_id = get_str_property(data, "sub")
        name = ""
        if "name" in data:
            name = get_str_property(data, "name")
        elif "preferred_username" in data:
            name = get_str_property(data, "preferred_username")
        return UserInfo(id=user_id, name=name)

    def refresh_tokens(self, refresh_token: str) -> Tokens:
        payload = (
            f"client_id={url_encode(self.config.client_id)}"
            f"&client_secret={url_encode(self.config.client_secret)}"
            "&grant_type=refresh_token"
            f"&refresh_token={url_encode(refresh_token)}"
            "&scope=openid%20profile"
        )
        res = self.http_client.post(
            HTTPRequest(self.endpoints.token)
            .add_header("Authorization", self._basic_auth_header())
            .set_content_type(FORM_CONTENT_TYPE)
            .set_payload(payload)
        )
        return tokens_from_response(res)


__all__ = [
    "Tokens",
    "UserInfo",
    "ProviderEndpoints",
    "AuthInterface",
    "OpenIDConnectAuth",
    "tokens_from_response",
    "get_str_property",
    "get_int_property",
]
