"""
PII Vault Crypto Core — AES-256-GCM sealing bound to a key context.

Each record is encrypted with the data key exported from the key service and
authenticated against a context string derived from the key id and the
column type, so a ciphertext cannot be moved to another field sharing the key.

Security Note:
    Never log plaintext, ciphertext or key material.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .contents import IV_SIZE, RECORD_VERSION, TAG_SIZE, SealedRecord
from .exceptions import (
    AuthenticationError,
    CipherError,
    EncodingError,
    FormatError,
    RandomnessError,
)

logger = logging.getLogger("pii_vault")

KEY_LENGTH = 32  # AES-256
DEFAULT_TYPE_NAME = "piitext"


def key_context(key_id: bytes, type_name: str = DEFAULT_TYPE_NAME) -> str:
    """Associated data binding a ciphertext to its column type and key id."""
    return f"col:{type_name}:id:{key_id.hex()}"


def _cipher(key: bytes) -> AESGCM:
    if len(key) != KEY_LENGTH:
        raise CipherError(
            f"Invalid key size: expected {KEY_LENGTH}, got {len(key)}"
        )
    return AESGCM(bytes(key))


def encrypt(plaintext: str, key: bytes, key_id: bytes, context: str) -> SealedRecord:
    """Encrypt text into a SealedRecord.

    Args:
        plaintext: Text to protect.
        key: Raw 32-byte data key.
        key_id: Identifier of ``key``, stored in the record.
        context: Associated data, see ``key_context``.

    Returns:
        SealedRecord with a fresh IV and the tag split from the ciphertext.

    Raises:
        RandomnessError: If the OS random source is unavailable.
        CipherError: If the key is not 32 bytes or AES-GCM fails.
    """
    cipher = _cipher(key)
    try:
        iv = os.urandom(IV_SIZE)
    except NotImplementedError as err:
        raise RandomnessError("No secure random source available") from err
    try:
        sealed = cipher.encrypt(
            iv, plaintext.encode("utf-8"), context.encode("utf-8"),
        )
    except (ValueError, OverflowError) as err:
        raise CipherError(f"Encryption error: {err}") from err
    return SealedRecord(
        version=RECORD_VERSION,
        key_id=bytes(key_id),
        iv=iv,
        tag=sealed[-TAG_SIZE:],
        ciphertext=sealed[:-TAG_SIZE],
    )


def decrypt(record: SealedRecord, key: bytes, context: str) -> str:
    """Verify and decrypt a SealedRecord.

    Args:
        record: Record produced by ``encrypt``.
        key: Raw 32-byte data key for ``record.key_id``.
        context: Associated data used at encryption time.

    Returns:
        The original text.

    Raises:
        FormatError: If the record version is unknown.
        AuthenticationError: If the record was tampered with, or the key or
            context is wrong. These causes are deliberately not distinguished.
        EncodingError: If the decrypted bytes are not UTF-8.
        CipherError: If the key is not 32 bytes.
    """
    if record.version != RECORD_VERSION:
        raise FormatError(f"Unsupported sealed record version {record.version}")
    cipher = _cipher(key)
    if len(record.iv) != IV_SIZE or len(record.tag) != TAG_SIZE:
        raise AuthenticationError("Decryption failed")
    try:
        data = cipher.decrypt(
            record.iv, record.ciphertext + record.tag, context.encode("utf-8"),
        )
    except InvalidTag:
        # Generic error to prevent oracle attacks
        raise AuthenticationError("Decryption failed") from None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise EncodingError("Decrypted value is not valid UTF-8") from err
