"""Exception hierarchy for PII Vault operations."""


class PiiVaultError(Exception):
    """Base exception for all PII Vault errors."""


class ConfigError(PiiVaultError):
    """A required setting is missing or invalid."""


class ProviderError(PiiVaultError):
    """The key service answered with a non-success response."""


class NetworkError(ProviderError):
    """Transport failure (connection, TLS, timeout) against the key service."""


class NotFoundError(ProviderError):
    """The key service does not know the requested key."""


class FormatError(PiiVaultError):
    """Malformed key-service response, key material or sealed record."""


class EncodingError(FormatError):
    """Decrypted bytes are not valid UTF-8."""


class CryptoError(PiiVaultError):
    """Cryptographic operation failed."""


class AuthenticationError(CryptoError):
    """Authentication tag did not verify (tampered data, wrong key or context)."""


class RandomnessError(CryptoError):
    """The secure random source is unavailable."""


class CipherError(CryptoError):
    """The AEAD primitive rejected the operation."""
