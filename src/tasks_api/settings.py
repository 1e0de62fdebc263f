from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class ConfigurationError(Exception):
    """Raised when required configuration is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DB_ADDR: database address as host[:port] or [ipv6]:port, parsed into
      db_host and db_port (required unless DATABASE_URL is set)
    - DB_USER: database user (required unless DATABASE_URL is set)
    - DB_PASSWORD: database password (required unless DATABASE_URL is set)
    - DB_DATABASE: database name (required unless DATABASE_URL is set)
    - DATABASE_URL: full SQLAlchemy URL, overrides the DB_* variables
    - HOST: interface to bind. Default '0.0.0.0'
    - PORT: port to bind. Default 8000
    - AUTH_JWT_KEY: key used to verify token signatures (required)
    - AUTH_JWT_ALGORITHMS: comma-separated list of accepted algorithms. Default 'HS256'
    - AUTH_JWT_AUDIENCE: expected 'aud' claim; not checked when empty
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root log level name, case-insensitive. Default 'INFO'
    """

    db_host: str = ""
    db_port: Optional[int] = None
    db_user: str = ""
    db_password: str = ""
    db_database: str = ""
    database_url: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8000
    auth_jwt_key: str = ""
    auth_jwt_algorithms: List[str] = field(default_factory=lambda: ["HS256"])
    auth_jwt_audience: Optional[str] = None
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigurationError(f"required environment variable {name} is not set")
    return value


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return _parse_list(value)


def _parse_port(value: str, name: str = "PORT") -> int:
    try:
        port = int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
    if not (0 < port < 65536):
        raise ConfigurationError(f"{name} must be between 1 and 65535, got {port}")
    return port


def _parse_address(value: str) -> Tuple[str, Optional[int]]:
    """
    Split DB_ADDR into host and optional port. Supports:
    - 'host' and 'host:port'
    - '[::1]' and '[::1]:5432' for IPv6 literals
    - a bare IPv6 literal such as '::1', taken as host only
    """
    if value.startswith("["):
        host, sep, rest = value[1:].partition("]")
        if not sep or not host:
            raise ConfigurationError(f"DB_ADDR has an unterminated IPv6 literal: {value!r}")
        if not rest:
            return host, None
        if not rest.startswith(":"):
            raise ConfigurationError(f"DB_ADDR must be '[host]:port', got {value!r}")
        return host, _parse_port(rest[1:], "DB_ADDR port")

    if value.count(":") > 1:
        return value, None

    host, sep, port = value.partition(":")
    if not host:
        raise ConfigurationError(f"DB_ADDR must start with a host, got {value!r}")
    if not sep:
        return host, None
    return host, _parse_port(port, "DB_ADDR port")


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in logging.getLevelNamesMapping():
        raise ConfigurationError(f"LOG_LEVEL must be a logging level name, got {value!r}")
    return level


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """
    Return application settings loaded from environment variables.

    Raises:
        ConfigurationError: if a required variable is missing or a value is malformed.
    """
    database_url = os.getenv("DATABASE_URL", "").strip() or None
    if database_url is None:
        db_host, db_port = _parse_address(_require_env("DB_ADDR"))
        db_user = _require_env("DB_USER")
        db_password = _require_env("DB_PASSWORD")
        db_database = _require_env("DB_DATABASE")
    else:
        db_host = db_user = db_password = db_database = ""
        db_port = None

    algorithms = _parse_list(_get_env("AUTH_JWT_ALGORITHMS", "HS256"))
    if not algorithms:
        raise ConfigurationError("AUTH_JWT_ALGORITHMS must name at least one algorithm")

    return Settings(
        db_host=db_host,
        db_port=db_port,
        db_user=db_user,
        db_password=db_password,
        db_database=db_database,
        database_url=database_url,
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_port(_get_env("PORT", "8000").strip()),
        auth_jwt_key=_require_env("AUTH_JWT_KEY"),
        auth_jwt_algorithms=algorithms,
        auth_jwt_audience=os.getenv("AUTH_JWT_AUDIENCE", "").strip() or None,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_parse_log_level(_get_env("LOG_LEVEL", "INFO")),
    )
