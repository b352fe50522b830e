"""
PII Vault Key Rotation — Batch re-sealing of stored values under a new key.

Re-seals many stored values from whatever key they use to ``new_key_id``.
Values already sealed under the target key are skipped, so the operation is
idempotent and can be resumed. Once the old key is deleted from the key
service, any copy still sealed under it is unrecoverable (crypto-shredding).

Security Note:
    Plaintext exists in memory only during re-sealing of each value.
    Never log plaintext or ciphertext values.
"""
import logging
from collections.abc import Hashable, Iterable

from .contents import SealedRecord, decode
from .exceptions import PiiVaultError
from .vault import PiiVault

logger = logging.getLogger("pii_vault")


def reseal_values(
    vault: PiiVault,
    rows: Iterable[tuple[Hashable, bytes]],
    new_key_id: bytes,
) -> tuple[dict, dict]:
    """Re-seal ``(row_id, data)`` pairs under ``new_key_id``.

    A value that cannot be opened is logged and counted, and left out of the
    result so the caller keeps the original bytes.

    Args:
        vault: PiiVault used to open and seal values.
        rows: Iterable of (row identifier, stored bytes).
        new_key_id: Target key identifier.

    Returns:
        Tuple of (rewritten, stats): ``rewritten`` maps row ids to new stored
        bytes; ``stats`` has keys total, rotated, errors, skipped.
    """
    new_key_id = bytes(new_key_id)
    rewritten: dict = {}
    stats = {"total": 0, "rotated": 0, "errors": 0, "skipped": 0}

    logger.info("Starting re-seal to key %s", new_key_id.hex())

    for row_id, data in rows:
        stats["total"] += 1
        value = decode(data)
        if isinstance(value, SealedRecord) and value.key_id == new_key_id:
            stats["skipped"] += 1
            continue
        try:
            rewritten[row_id] = vault.reseal(data, new_key_id)
            stats["rotated"] += 1
        except PiiVaultError as err:
            logger.error(
                "Error re-sealing row id=%s: %s", row_id, type(err).__name__,
            )
            stats["errors"] += 1

    logger.info("Re-seal complete: %s", stats)
    return rewritten, stats
