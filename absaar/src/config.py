"""
Daemon configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Every variable carries the ``ABSAAR_`` prefix. Credentials are optional at
load time so that a missing username or password surfaces as a
:class:`ConfigError` when the scheduler starts rather than as a crash.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Reject Redis URLs without a supported scheme

TODO:
- None
"""

from __future__ import annotations

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(Exception):
    """Raised when the configuration cannot support a polling run."""


class AbsaarSettings(BaseSettings):
    """Configuration for the Absaar cloud polling daemon.

    Attributes:
        username: Absaar cloud account name.
        password: Absaar cloud account password. Never logged.
        station_index: Zero-based index of the station to publish.
        state_backend: ``redis`` for a shared store, ``memory`` for dry runs.
        redis_url: Redis connection URL used by the redis backend.
        state_prefix: Namespace prepended to every published key.
        health_path: Health JSON file path. Empty string disables it.
    """

    model_config = SettingsConfigDict(
        env_prefix="ABSAAR_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    username: str = ""
    password: str = ""
    station_index: int = 0
    state_backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    state_prefix: str = "absaar.0"
    health_path: str = "/data/health.json"

    @field_validator("station_index")
    @classmethod
    def station_index_must_be_non_negative(cls, v: int) -> int:
        """Validate the station index is a usable list position."""
        if v < 0:
            raise ValueError("ABSAAR_STATION_INDEX must be >= 0")
        return v

    @field_validator("redis_url")
    @classmethod
    def redis_url_must_have_scheme(cls, v: str) -> str:
        """Validate the Redis URL names a scheme redis-py can connect with."""
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("ABSAAR_REDIS_URL must start with redis://, rediss:// or unix://")
        return v

    @field_validator("state_prefix")
    @classmethod
    def state_prefix_must_not_be_empty(cls, v: str) -> str:
        """Validate the store namespace is set."""
        v = v.strip().strip(".")
        if not v:
            raise ValueError("ABSAAR_STATE_PREFIX must not be empty")
        return v

    def validate_credentials(self) -> None:
        """Check that both credentials are present.

        Raises:
            ConfigError: If the username or the password is missing.
        """
        missing = [
            name
            for name, value in (("username", self.username), ("password", self.password))
            if not value.strip()
        ]
        if missing:
            raise ConfigError(
                "Missing Absaar credentials: "
                + ", ".join(f"ABSAAR_{name.upper()}" for name in missing)
            )
