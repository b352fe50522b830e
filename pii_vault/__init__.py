"""PII Vault — Field-level envelope encryption for sensitive text.

Security Note (Threat Model):
    Data keys exported from the key service are cached in process memory
    for ``cache_ttl`` seconds. A memory dump of the application process could
    expose those keys. This is an accepted limitation; mitigation requires
    doing the encryption inside the key service, which is out of scope.
"""

from .version import __version__
from .cache import KeyCache, default_cache
from .config import PiiVaultConfig
from .contents import (
    CorruptRecord,
    SealedRecord,
    StagingText,
    PiiValue,
    decode,
    encode,
    key_id_from_int,
)
from .exceptions import (
    PiiVaultError,
    ConfigError,
    ProviderError,
    NetworkError,
    NotFoundError,
    FormatError,
    EncodingError,
    CryptoError,
    AuthenticationError,
    RandomnessError,
    CipherError,
)
from .provider import VaultKeyProvider
from .vault import (
    MASKED_VALUE,
    PiiVault,
    get_vault,
    close_vaults,
    seal,
    unseal,
    reseal,
    inspect,
    raw,
)
from .key_rotation import reseal_values

__all__ = [
    "__version__",
    "KeyCache",
    "default_cache",
    "PiiVaultConfig",
    "CorruptRecord",
    "SealedRecord",
    "StagingText",
    "PiiValue",
    "decode",
    "encode",
    "key_id_from_int",
    "PiiVaultError",
    "ConfigError",
    "ProviderError",
    "NetworkError",
    "NotFoundError",
    "FormatError",
    "EncodingError",
    "CryptoError",
    "AuthenticationError",
    "RandomnessError",
    "CipherError",
    "VaultKeyProvider",
    "MASKED_VALUE",
    "PiiVault",
    "get_vault",
    "close_vaults",
    "seal",
    "unseal",
    "reseal",
    "inspect",
    "raw",
    "reseal_values",
]
