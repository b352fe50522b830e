"""
PII Vault Configuration — Key service settings with validation.

Reads settings from environment variables:
    PII_VAULT_URL = <base URL of the Vault server, or mock://... for tests>
    PII_VAULT_TOKEN = <Vault token>
    PII_VAULT_MOUNT = <transit mount path, default "transit">
    PII_VAULT_CACHE_TTL = <seconds a fetched key stays cached, default 300>
    PII_VAULT_TIMEOUT = <seconds to wait between bytes of a response, default 10>
    PII_VAULT_CONNECT_TIMEOUT = <seconds to establish a connection, default 5>

The read timeout bounds each socket read, not the whole request: a server
that keeps trickling bytes can hold a call longer than ``timeout``.

Security Note:
    Never log the token. Only log the URL, mount and TTL.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigError

logger = logging.getLogger("pii_vault")

MOCK_SCHEME = "mock://"
DEFAULT_MOUNT = "transit"
DEFAULT_CACHE_TTL = 300
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0
MAX_CACHE_TTL = 2**31 - 1

_ENV_PREFIX = "PII_VAULT_"
_ENV_FIELDS = ("url", "token", "mount", "cache_ttl", "timeout", "connect_timeout")


class PiiVaultConfig(BaseModel):
    """Validated key service configuration."""

    url: Optional[str] = None
    token: Optional[str] = Field(default=None, repr=False)
    mount: str = Field(default=DEFAULT_MOUNT)
    cache_ttl: int = Field(default=DEFAULT_CACHE_TTL, ge=0, le=MAX_CACHE_TTL)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)

    model_config = {"frozen": True}

    @field_validator("url", "token", mode="before")
    @classmethod
    def blank_as_none(cls, v):
        """Treat empty strings (e.g. an unset Docker ENV) as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip().rstrip("/")

    @field_validator("mount")
    @classmethod
    def validate_mount(cls, v: str) -> str:
        """Mount path is joined into URLs, so it must be a bare segment."""
        v = v.strip().strip("/")
        if not v:
            raise ValueError("mount path cannot be empty")
        return v

    @property
    def is_mock(self) -> bool:
        """True when the URL selects the deterministic zero-key test mode."""
        return self.url is not None and self.url.startswith(MOCK_SCHEME)

    def require_remote(self) -> tuple[str, str]:
        """Return (url, token) for talking to the key service.

        Raises:
            ConfigError: If the URL or token is not configured.
        """
        if self.url is None:
            raise ConfigError(f"{_ENV_PREFIX}URL is not set")
        if self.token is None:
            raise ConfigError(f"{_ENV_PREFIX}TOKEN is not set")
        return self.url, self.token

    @classmethod
    def from_env(cls) -> "PiiVaultConfig":
        """Create PiiVaultConfig by loading values from environment.

        Returns:
            Populated PiiVaultConfig instance.

        Raises:
            ConfigError: If a value is present but invalid.
        """
        values = {}
        for field in _ENV_FIELDS:
            raw = os.environ.get(f"{_ENV_PREFIX}{field.upper()}")
            if raw is not None:
                values[field] = raw
        try:
            config = cls(**values)
        except ValidationError as err:
            raise ConfigError(f"Invalid PII Vault configuration: {err}") from err
        logger.debug(
            "Loaded PII Vault config: url=%s mount=%s cache_ttl=%d",
            config.url, config.mount, config.cache_ttl,
        )
        return config
