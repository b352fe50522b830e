"""
PiiVault — Seal, unseal and re-seal protected text fields.

Provides the narrow interface a host (database type, ORM field, ...) wires
into its own value conversions:

- ``seal(data, key_id)`` — encrypt staging text under ``key_id``
- ``unseal(data)`` — return readable text, masking anything that cannot be opened
- ``reseal(data, new_key_id)`` — move a value to another key (crypto-shredding)
- ``inspect(data)`` — describe a stored value without decrypting it
- ``raw(data)`` — the stored bytes, untouched

Key lookup order: mock zero key → process key cache → key service.

Security Note:
    Never log plaintext, ciphertext or key material. Only log key ids
    and error classes. Unseal failures are masked so readers cannot tell a
    missing key from a corrupted value.
"""
import logging
import threading
from typing import Optional, Union

from .cache import KeyCache, default_cache
from .config import PiiVaultConfig
from .contents import CorruptRecord, SealedRecord, StagingText, decode, encode
from .crypto import DEFAULT_TYPE_NAME, KEY_LENGTH, decrypt, encrypt, key_context
from .exceptions import FormatError, PiiVaultError
from .provider import VaultKeyProvider

logger = logging.getLogger("pii_vault")

MASKED_VALUE = "****"
MOCK_KEY = bytes(KEY_LENGTH)


class PiiVault:
    """Envelope encryption of text values with keys from a transit service.

    Args:
        config: Key service configuration.
        cache: Key cache to share; defaults to the process-wide cache.
        provider: Key provider; built from ``config`` if omitted.
        type_name: Column type name folded into the key context.
    """

    def __init__(
        self,
        config: PiiVaultConfig,
        cache: Optional[KeyCache] = None,
        provider: Optional[VaultKeyProvider] = None,
        type_name: str = DEFAULT_TYPE_NAME,
    ):
        self._config = config
        self._cache = cache if cache is not None else default_cache
        self._provider = (
            provider if provider is not None else VaultKeyProvider(config)
        )
        self._type_name = type_name

    def close(self) -> None:
        """Release the key provider's HTTP session."""
        self._provider.close()

    # ------------------------------------------------------------------
    # Key resolution
    # ------------------------------------------------------------------

    def resolve_key(self, key_id: bytes) -> bytes:
        """Return the data key for ``key_id``.

        Raises:
            PiiVaultError: If the key service cannot supply the key.
        """
        if self._config.is_mock:
            return MOCK_KEY
        key = self._cache.get(key_id)
        if key is not None:
            return key
        logger.debug("Key cache miss for %s", bytes(key_id).hex())
        key = self._provider.fetch(key_id)
        self._cache.put(key_id, key, self._config.cache_ttl)
        return key

    def _open(self, record: SealedRecord) -> str:
        key = self.resolve_key(record.key_id)
        return decrypt(record, key, key_context(record.key_id, self._type_name))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encrypt_text(self, plaintext: str, key_id: bytes) -> bytes:
        """Seal a plain string under ``key_id`` and return the stored bytes.

        Raises:
            PiiVaultError: On any key or encryption failure.
        """
        key_id = bytes(key_id)
        key = self.resolve_key(key_id)
        record = encrypt(
            plaintext, key, key_id, key_context(key_id, self._type_name),
        )
        return encode(record)

    def seal(self, data: Union[bytes, str], key_id: bytes) -> bytes:
        """Seal a stored value under ``key_id``.

        Staging text is encrypted; a value that is already sealed is
        returned unchanged (use ``reseal`` to change its key).

        Raises:
            PiiVaultError: On any key or encryption failure.
        """
        if isinstance(data, str):
            return self.encrypt_text(data, key_id)
        value = decode(data)
        if isinstance(value, CorruptRecord):
            raise FormatError("Cannot seal a corrupt sealed record")
        if isinstance(value, SealedRecord):
            logger.debug("Value already sealed under %s", value.key_id.hex())
            return bytes(data)
        return self.encrypt_text(value.text, key_id)

    def unseal(self, data: bytes) -> str:
        """Return the readable text of a stored value.

        Staging text passes through. Sealed values that cannot be opened
        (key unavailable, tampering, wrong context, corrupt record) read as
        ``MASKED_VALUE``.
        """
        value = decode(data)
        if isinstance(value, StagingText):
            return value.text
        if isinstance(value, CorruptRecord):
            logger.warning("Unseal failed: corrupt sealed record")
            return MASKED_VALUE
        try:
            return self._open(value)
        except PiiVaultError as err:
            logger.warning(
                "Unseal failed for key %s: %s",
                value.key_id.hex(), type(err).__name__,
            )
            return MASKED_VALUE

    def reseal(self, data: bytes, new_key_id: bytes) -> bytes:
        """Re-encrypt a stored value under ``new_key_id``.

        Unlike ``unseal``, failures to open the current value propagate:
        the caller is about to overwrite it.

        Raises:
            PiiVaultError: If the value cannot be opened or sealed again.
        """
        value = decode(data)
        if isinstance(value, CorruptRecord):
            raise FormatError("Cannot reseal a corrupt sealed record")
        if isinstance(value, StagingText):
            plaintext = value.text
        else:
            plaintext = self._open(value)
        sealed = self.encrypt_text(plaintext, new_key_id)
        logger.debug(
            "Resealed value from %s to %s",
            value.key_id.hex() if isinstance(value, SealedRecord) else "staging",
            bytes(new_key_id).hex(),
        )
        return sealed

    @staticmethod
    def inspect(data: bytes) -> str:
        """Describe a stored value without decrypting it."""
        value = decode(data)
        if isinstance(value, SealedRecord):
            return f"Sealed({value!r})"
        if isinstance(value, CorruptRecord):
            return f"Corrupt({value!r})"
        return f"Staging({value!r})"

    @staticmethod
    def raw(data: bytes) -> bytes:
        """Return the stored bytes unchanged."""
        return bytes(data)


# ----------------------------------------------------------------------
# Module-level helpers sharing the process-wide key cache
# ----------------------------------------------------------------------

_vaults: dict[PiiVaultConfig, PiiVault] = {}
_vaults_lock = threading.Lock()


def get_vault(config: PiiVaultConfig) -> PiiVault:
    """Return the PiiVault for ``config``, reusing its HTTP session.

    Vaults live until ``close_vaults()``; a host typically uses one config.
    """
    with _vaults_lock:
        vault = _vaults.get(config)
        if vault is None:
            vault = _vaults[config] = PiiVault(config)
        return vault


def close_vaults() -> None:
    """Close and forget every vault built by ``get_vault``."""
    with _vaults_lock:
        vaults = list(_vaults.values())
        _vaults.clear()
    for vault in vaults:
        vault.close()


def seal(data: Union[bytes, str], key_id: bytes, config: PiiVaultConfig) -> bytes:
    return get_vault(config).seal(data, key_id)


def unseal(data: bytes, config: PiiVaultConfig) -> str:
    return get_vault(config).unseal(data)


def reseal(data: bytes, new_key_id: bytes, config: PiiVaultConfig) -> bytes:
    return get_vault(config).reseal(data, new_key_id)


def inspect(data: bytes) -> str:
    return PiiVault.inspect(data)


def raw(data: bytes) -> bytes:
    return PiiVault.raw(data)
