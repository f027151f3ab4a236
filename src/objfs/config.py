"""Drive configuration for objfs.

Environment Variables:
    OBJFS_ACCESS_KEY: Store access key id (optional; default credential chain otherwise)
    OBJFS_SECRET_KEY: Store secret access key
    OBJFS_REGION: Store region name
    OBJFS_ENDPOINT_URL: Endpoint for S3-compatible services
    OBJFS_VERBOSE: Set to "1" to log every filesystem operation
    OBJFS_PLACEHOLDER_NAME: Basename of folder placeholder objects
        (default: ".wfs_placeholder")
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from objfs.errors import ConfigError

DEFAULT_PLACEHOLDER_NAME = ".wfs_placeholder"

OBJFS_ACCESS_KEY_ENV = "OBJFS_ACCESS_KEY"
OBJFS_SECRET_KEY_ENV = "OBJFS_SECRET_KEY"
OBJFS_REGION_ENV = "OBJFS_REGION"
OBJFS_ENDPOINT_URL_ENV = "OBJFS_ENDPOINT_URL"
OBJFS_VERBOSE_ENV = "OBJFS_VERBOSE"
OBJFS_PLACEHOLDER_NAME_ENV = "OBJFS_PLACEHOLDER_NAME"


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no", ""):
        return default
    return default


def _get_env_str(key: str) -> str | None:
    val = os.environ.get(key, "").strip()
    return val or None


class DriveConfig(BaseModel):
    """Store credentials and filesystem behaviour switches.

    ``verbose`` only toggles per-operation logging; it never changes results.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    access_key: str | None = None
    secret_key: SecretStr | None = None
    region: str | None = None
    endpoint_url: str | None = None
    verbose: bool = False
    placeholder_name: str = Field(default=DEFAULT_PLACEHOLDER_NAME, min_length=1)
    file_types: dict[str, str] = Field(default_factory=dict)

    @field_validator("placeholder_name")
    @classmethod
    def no_separator_in_placeholder(cls, v: str) -> str:
        if "/" in v or not v.strip():
            raise ValueError("placeholder_name must be a single non-empty path segment")
        return v

    @classmethod
    def build(cls, **values: Any) -> DriveConfig:
        """Validate configuration values, raising ConfigError on failure."""
        try:
            return cls(**values)
        except ValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise ConfigError("Invalid drive configuration", errors=errors) from e

    @classmethod
    def from_env(cls, **overrides: Any) -> DriveConfig:
        """Load configuration from OBJFS_* environment variables.

        Keyword overrides take precedence over the environment.
        """
        values: dict[str, Any] = {
            "access_key": _get_env_str(OBJFS_ACCESS_KEY_ENV),
            "secret_key": _get_env_str(OBJFS_SECRET_KEY_ENV),
            "region": _get_env_str(OBJFS_REGION_ENV),
            "endpoint_url": _get_env_str(OBJFS_ENDPOINT_URL_ENV),
            "verbose": _get_env_bool(OBJFS_VERBOSE_ENV, False),
        }
        placeholder = _get_env_str(OBJFS_PLACEHOLDER_NAME_ENV)
        if placeholder:
            values["placeholder_name"] = placeholder
        values.update(overrides)
        return cls.build(**values)

    def secret_value(self) -> str | None:
        return self.secret_key.get_secret_value() if self.secret_key else None
