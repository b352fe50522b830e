"""
Tests for PiiVaultConfig validation and environment loading.
"""
import pytest
from pydantic import ValidationError

from pii_vault import PiiVaultConfig
from pii_vault.exceptions import ConfigError

ENV_VARS = (
    "PII_VAULT_URL",
    "PII_VAULT_TOKEN",
    "PII_VAULT_MOUNT",
    "PII_VAULT_CACHE_TTL",
    "PII_VAULT_TIMEOUT",
    "PII_VAULT_CONNECT_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:

    def test_defaults(self):
        config = PiiVaultConfig()
        assert config.url is None
        assert config.token is None
        assert config.mount == "transit"
        assert config.cache_ttl == 300
        assert config.timeout == 10.0
        assert config.connect_timeout == 5.0
        assert config.request_timeout == (5.0, 10.0)
        assert config.is_mock is False

    def test_mock_scheme(self):
        assert PiiVaultConfig(url="mock://localhost").is_mock is True
        assert PiiVaultConfig(url="http://mock.local").is_mock is False

    def test_blank_values_are_missing(self):
        config = PiiVaultConfig(url="", token="  ")
        assert config.url is None
        assert config.token is None

    def test_trailing_slash_stripped(self):
        assert PiiVaultConfig(url="http://vault:8200/").url == "http://vault:8200"

    def test_token_not_in_repr(self):
        assert "s3cret" not in repr(PiiVaultConfig(token="s3cret"))


class TestValidation:

    def test_negative_ttl(self):
        with pytest.raises(ValidationError):
            PiiVaultConfig(cache_ttl=-1)

    def test_ttl_upper_bound(self):
        assert PiiVaultConfig(cache_ttl=2**31 - 1).cache_ttl == 2**31 - 1
        with pytest.raises(ValidationError):
            PiiVaultConfig(cache_ttl=2**31)

    def test_zero_timeout(self):
        with pytest.raises(ValidationError):
            PiiVaultConfig(timeout=0)

    def test_zero_connect_timeout(self):
        with pytest.raises(ValidationError):
            PiiVaultConfig(connect_timeout=0)

    def test_empty_mount(self):
        with pytest.raises(ValidationError):
            PiiVaultConfig(mount="/")

    def test_require_remote(self):
        config = PiiVaultConfig(url="http://vault:8200", token="t")
        assert config.require_remote() == ("http://vault:8200", "t")

    def test_require_remote_missing_token(self):
        with pytest.raises(ConfigError):
            PiiVaultConfig(url="http://vault:8200").require_remote()


class TestFromEnv:

    def test_from_env(self, clean_env):
        clean_env.setenv("PII_VAULT_URL", "http://vault:8200")
        clean_env.setenv("PII_VAULT_TOKEN", "dev-token-12345")
        clean_env.setenv("PII_VAULT_MOUNT", "pii")
        clean_env.setenv("PII_VAULT_CACHE_TTL", "60")
        clean_env.setenv("PII_VAULT_TIMEOUT", "1.5")
        clean_env.setenv("PII_VAULT_CONNECT_TIMEOUT", "0.5")
        config = PiiVaultConfig.from_env()
        assert config.url == "http://vault:8200"
        assert config.token == "dev-token-12345"
        assert config.mount == "pii"
        assert config.cache_ttl == 60
        assert config.timeout == 1.5
        assert config.request_timeout == (0.5, 1.5)

    def test_from_env_defaults(self, clean_env):
        config = PiiVaultConfig.from_env()
        assert config == PiiVaultConfig()

    def test_from_env_docker_blank_url(self, clean_env):
        """The image ships PII_VAULT_URL="" until it is configured."""
        clean_env.setenv("PII_VAULT_URL", "")
        assert PiiVaultConfig.from_env().url is None

    def test_from_env_invalid_ttl(self, clean_env):
        clean_env.setenv("PII_VAULT_CACHE_TTL", "forever")
        with pytest.raises(ConfigError):
            PiiVaultConfig.from_env()
