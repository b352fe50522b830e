"""
Pytest configuration and fixtures for PII Vault tests.
"""
import base64
from unittest.mock import MagicMock

import orjson
import pytest
import requests

from pii_vault import KeyCache, PiiVault, PiiVaultConfig, VaultKeyProvider

TEST_KEY = bytes(range(32))


def make_response(status: int, body: bytes = b"") -> requests.Response:
    """Build a real requests.Response with the given status and body."""
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.reason = ""
    resp.url = "http://vault.test"
    return resp


def export_body(keys: dict) -> bytes:
    """Transit export response body for a {version: raw_key} mapping."""
    return orjson.dumps({
        "data": {
            "name": "test",
            "type": "encryption-key",
            "keys": {
                str(version): base64.b64encode(key).decode("ascii")
                for version, key in keys.items()
            },
        }
    })


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    """A private cache so tests never share keys."""
    return KeyCache(clock=clock)


@pytest.fixture
def mock_config():
    return PiiVaultConfig(url="mock://localhost")


@pytest.fixture
def remote_config():
    return PiiVaultConfig(
        url="http://vault.test:8200/",
        token="dev-token-12345",
        cache_ttl=300,
        timeout=2.5,
        connect_timeout=1.0,
    )


@pytest.fixture
def session():
    """Stub requests.Session; tests queue responses on request.side_effect."""
    return MagicMock(spec=requests.Session)


@pytest.fixture
def provider(remote_config, session):
    return VaultKeyProvider(remote_config, session=session)


@pytest.fixture
def mock_vault(mock_config, cache):
    return PiiVault(mock_config, cache=cache)


@pytest.fixture
def remote_vault(remote_config, cache, provider):
    return PiiVault(remote_config, cache=cache, provider=provider)
