from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Mapping

from .domain.contracts import BootstrapAdmin
from .security.passwords import DEFAULT_ROUNDS
from .security.tokens import TokenConfig

APP_NAME = "identity-admin"
VERSION = "0.1.0"

REQUIRED_VARIABLES = (
    "POSTGRES_URL",
    "JWT_ISSUER",
    "JWT_AUDIENCE",
    "JWT_SECRET",
    "ADMIN_NAME",
    "ADMIN_INITIALS",
    "ADMIN_PASSWORD",
)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigurationError(RuntimeError):
    """Raised when the environment does not provide a usable configuration."""


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components."""

    database_url: str = field(repr=False)
    jwt_issuer: str
    jwt_audience: str
    jwt_secret: str = field(repr=False)
    bootstrap_admin: BootstrapAdmin
    app_name: str = APP_NAME
    version: str = VERSION
    jwt_validate_issuer: bool = True
    jwt_validate_audience: bool = True
    jwt_ttl_seconds: int = 3600
    password_hash_rounds: int = DEFAULT_ROUNDS
    database_connect_timeout: float = 10.0
    http_host: str = "0.0.0.0"
    http_port: int = 8000
    rate_limit_requests: int = 20
    rate_limit_window_seconds: int = 60
    rate_limit_backend: str = "memory"
    redis_url: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Raises
        ------
        ConfigurationError
            Naming every required variable that is unset or empty, or the first
            optional variable that cannot be parsed.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_VARIABLES if not env.get(name)]
        if missing:
            raise ConfigurationError(f"missing required configuration: {', '.join(missing)}")

        return cls(
            database_url=env["POSTGRES_URL"],
            jwt_issuer=env["JWT_ISSUER"],
            jwt_audience=env["JWT_AUDIENCE"],
            jwt_secret=env["JWT_SECRET"],
            bootstrap_admin=BootstrapAdmin(
                name=env["ADMIN_NAME"],
                initials=env["ADMIN_INITIALS"],
                password=env["ADMIN_PASSWORD"],
            ),
            jwt_validate_issuer=_bool(env, "JWT_VALIDATE_ISSUER", True),
            jwt_validate_audience=_bool(env, "JWT_VALIDATE_AUDIENCE", True),
            jwt_ttl_seconds=_int(env, "JWT_TTL_SECONDS", 3600),
            password_hash_rounds=_int(env, "PASSWORD_HASH_ROUNDS", DEFAULT_ROUNDS),
            database_connect_timeout=float(_int(env, "DATABASE_CONNECT_TIMEOUT", 10)),
            http_host=env.get("HTTP_HOST", "0.0.0.0"),
            http_port=_int(env, "HTTP_PORT", 8000),
            rate_limit_requests=_int(env, "RATE_LIMIT_REQUESTS", 20),
            rate_limit_window_seconds=_int(env, "RATE_LIMIT_WINDOW_SECONDS", 60),
            rate_limit_backend=env.get("RATE_LIMIT_BACKEND", "memory").lower(),
            redis_url=env.get("REDIS_URL", ""),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )

    def token_config(self) -> TokenConfig:
        """Return the JWT signing and validation parameters."""
        return TokenConfig(
            issuer=self.jwt_issuer,
            audience=self.jwt_audience,
            secret=self.jwt_secret,
            validate_issuer=self.jwt_validate_issuer,
            validate_audience=self.jwt_validate_audience,
        )


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings.from_env()
