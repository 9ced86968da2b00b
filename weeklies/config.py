from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from .errors import AppError

GUEST_INDEX_USER_WEEKLY = "user-weekly"
_GUEST_INDEX_CHOICES = (GUEST_INDEX_USER_WEEKLY,)

_BASE_DIR = str(Path(__file__).resolve().parent.parent)


@dataclass
class Config:
    secret_key: str = "change-me"
    database_url: str = "sqlite:///weeklies.db"
    data_dir: str = _BASE_DIR  # holds templates/ and statics/
    listen_address: str = "127.0.0.1"
    listen_port: int = 8123
    client_id: str = ""
    client_secret: str = ""
    openid_url_prefix: str = ""
    url_prefix: str = "http://localhost:8123"  # public base URL, used for the OpenID redirect
    guest_index: str | None = None
    guest_index_user: str = ""
    default_lang: str = "en"
    http_timeout_seconds: float = 10.0

    @property
    def redirect_url(self) -> str:
        return self.url_prefix.rstrip("/") + "/openid-redirect"

    @classmethod
    def from_env(cls) -> Config:
        guest_index = os.getenv("GUEST_INDEX") or None
        _check_guest_index(guest_index)
        return cls(
            secret_key=os.getenv("SECRET_KEY", "change-me"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///weeklies.db"),
            data_dir=os.getenv("WEEKLIES_DATA_DIR", _BASE_DIR),
            listen_address=os.getenv("HOST", "127.0.0.1"),
            listen_port=_parse_port(os.getenv("PORT", "8123")),
            client_id=os.getenv("OPENID_CLIENT_ID", ""),
            client_secret=os.getenv("OPENID_CLIENT_SECRET", ""),
            openid_url_prefix=os.getenv("OPENID_URL_PREFIX", ""),
            url_prefix=os.getenv("URL_PREFIX", "http://localhost:8123"),
            guest_index=guest_index,
            guest_index_user=os.getenv("GUEST_INDEX_USER", ""),
            default_lang=os.getenv("DEFAULT_LANG", "en"),
            http_timeout_seconds=_parse_timeout(os.getenv("HTTP_TIMEOUT_SECONDS", "10")),
        )

    @classmethod
    def from_yaml(cls, path: str | os.PathLike[str], base: Config | None = None) -> Config:
        """Load a YAML file with dash-separated keys (``client-id``, ``guest-index``...).

        Keys absent from the file keep the value from ``base`` (or the defaults).
        """
        try:
            with open(path, encoding="utf-8") as f:
                doc = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise AppError(f"Failed to read file {path}") from e
        if not isinstance(doc, dict):
            raise AppError(f"Invalid configuration in {path}")
        cfg = base or cls()
        values = {}
        for fld in fields(cls):
            key = fld.name.replace("_", "-")
            if key in doc:
                values[fld.name] = doc[key]
        if "listen_port" in values:
            values["listen_port"] = _parse_port(values["listen_port"])
        if "http_timeout_seconds" in values:
            values["http_timeout_seconds"] = _parse_timeout(values["http_timeout_seconds"])
        if "guest_index" in values:
            _check_guest_index(values["guest_index"])
        cfg.override(values)
        return cfg

    def override(self, d: dict):
        for k, v in d.items():
            if hasattr(self, k):
                setattr(self, k, v)

    def to_flask_dict(self):
        return {
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "GUEST_INDEX": self.guest_index,
            "GUEST_INDEX_USER": self.guest_index_user,
            "DEFAULT_LANG": self.default_lang,
        }


def _parse_port(value: object) -> int:
    try:
        return int(str(value))
    except ValueError as e:
        raise AppError("Invalid port") from e


def _parse_timeout(value: object) -> float:
    try:
        seconds = float(str(value))
    except ValueError as e:
        raise AppError("Invalid http-timeout-seconds") from e
    if seconds <= 0:
        raise AppError("Invalid http-timeout-seconds")
    return seconds


def _check_guest_index(value: object) -> None:
    if value is not None and value not in _GUEST_INDEX_CHOICES:
        raise AppError("Invalid guest-index")


__all__ = ["Config", "GUEST_INDEX_USER_WEEKLY"]
