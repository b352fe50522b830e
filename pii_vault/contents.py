"""
PII Contents — Stored representation of a protected text field.

A stored value is either:
- **Staging**: plain UTF-8 text, not yet protected.
- **Sealed**: ``SEALED_MAGIC`` followed by a msgpack map
  ``{"v": version, "k": key_id, "i": iv, "t": tag, "c": ciphertext}``.

The magic prefix starts with a NUL byte, which never appears in host text
values, so plain text cannot be mistaken for a sealed record. Marker-prefixed
bytes that do not parse are a damaged sealed value and decode as
``CorruptRecord``, never as text.
"""
import logging
from dataclasses import dataclass
from typing import Union

import msgpack

from .exceptions import FormatError

logger = logging.getLogger("pii_vault")

SEALED_MAGIC = b"\x00PII"
RECORD_VERSION = 1
IV_SIZE = 12  # 96-bit GCM nonce
TAG_SIZE = 16  # GCM authentication tag

_FIELDS = {"v": int, "k": bytes, "i": bytes, "t": bytes, "c": bytes}


@dataclass(frozen=True)
class StagingText:
    """Unencrypted text waiting to be sealed."""

    text: str

    def __repr__(self) -> str:
        return f"StagingText(<{len(self.text)} chars>)"


@dataclass(frozen=True)
class SealedRecord:
    """AES-256-GCM ciphertext with everything needed to open it but the key."""

    version: int
    key_id: bytes
    iv: bytes
    tag: bytes
    ciphertext: bytes

    def __repr__(self) -> str:
        return (
            f"SealedRecord(version={self.version}, key_id={self.key_id.hex()}, "
            f"iv=<{len(self.iv)} bytes>, tag=<{len(self.tag)} bytes>, "
            f"ciphertext=<{len(self.ciphertext)} bytes>)"
        )


@dataclass(frozen=True)
class CorruptRecord:
    """Marker-prefixed bytes that are not a well-formed sealed record."""

    data: bytes

    def __repr__(self) -> str:
        return f"CorruptRecord(<{len(self.data)} bytes>)"


PiiValue = Union[StagingText, SealedRecord, CorruptRecord]


def _unpack_record(body: bytes) -> SealedRecord:
    fields = msgpack.unpackb(body, raw=False)
    if not isinstance(fields, dict) or set(fields) != set(_FIELDS):
        raise ValueError("not a sealed record map")
    for name, kind in _FIELDS.items():
        if not isinstance(fields[name], kind) or isinstance(fields[name], bool):
            raise ValueError(f"field {name!r} has wrong type")
    if not 0 <= fields["v"] <= 255:
        raise ValueError("version out of range")
    return SealedRecord(
        version=fields["v"],
        key_id=fields["k"],
        iv=fields["i"],
        tag=fields["t"],
        ciphertext=fields["c"],
    )


def decode(data: bytes) -> PiiValue:
    """Classify stored bytes as a sealed record, a corrupt record or staging text.

    Never raises. Bytes without the marker are read as text, replacing
    invalid UTF-8 sequences.
    """
    data = bytes(data)
    if data.startswith(SEALED_MAGIC):
        try:
            return _unpack_record(data[len(SEALED_MAGIC):])
        except (msgpack.UnpackException, ValueError, TypeError) as err:
            logger.debug("Magic-prefixed value is not a sealed record: %s", err)
            return CorruptRecord(data)
    return StagingText(data.decode("utf-8", errors="replace"))


def encode(value: PiiValue) -> bytes:
    """Serialize a PiiValue to its stored form.

    Raises:
        FormatError: If the value cannot be represented unambiguously.
    """
    if isinstance(value, StagingText):
        raw = value.text.encode("utf-8")
        if raw.startswith(SEALED_MAGIC):
            raise FormatError("Staging text cannot start with the sealed-record marker")
        return raw
    if isinstance(value, SealedRecord):
        try:
            body = msgpack.packb(
                {
                    "v": value.version,
                    "k": value.key_id,
                    "i": value.iv,
                    "t": value.tag,
                    "c": value.ciphertext,
                },
                use_bin_type=True,
            )
        except (TypeError, ValueError, OverflowError) as err:
            raise FormatError(f"Cannot serialize sealed record: {err}") from err
        return SEALED_MAGIC + body
    if isinstance(value, CorruptRecord):
        return value.data
    raise FormatError(f"Unsupported value type: {type(value).__name__}")


def key_id_from_int(value: int, width: int = 4) -> bytes:
    """Build a big-endian fixed-width key identifier from a row id.

    ``width=4`` matches 32-bit integer ids (123 -> ``0000007b``),
    ``width=8`` matches 64-bit ids.
    """
    if value < 0:
        raise ValueError("key id must be non-negative")
    if value >= 1 << (8 * width):
        raise ValueError(f"key id {value} does not fit in {width} bytes")
    return value.to_bytes(width, "big")
