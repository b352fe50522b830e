"""
Key Cache — In-process TTL cache of exported data keys.

Entries are never swept: an entry past its expiry is treated as absent and
dropped the next time it is read. ``default_cache`` is created once at import
and shared by every operation in the process.

Security Note:
    Cached key material lives in process memory until it expires and is read
    again, or the process exits.
"""
import time
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger("pii_vault")


@dataclass(frozen=True)
class CacheEntry:
    key_material: bytes
    expires_at: float

    def __repr__(self) -> str:
        return f"CacheEntry([REDACTED], expires_at={self.expires_at})"


class KeyCache:
    """Thread-safe mapping of key id to key material with per-entry expiry.

    Args:
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[bytes, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key_id: bytes) -> Optional[bytes]:
        """Return cached key material, or None if absent or expired."""
        key_id = bytes(key_id)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key_id)
            if entry is None:
                return None
            if entry.expires_at > now:
                return entry.key_material
            del self._entries[key_id]
        logger.debug("Cached key %s expired", key_id.hex())
        return None

    def put(self, key_id: bytes, key_material: bytes, ttl_seconds: int) -> None:
        """Insert or overwrite a key, valid for ``ttl_seconds`` from now.

        Raises:
            ValueError: If ttl_seconds is negative.
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds cannot be negative")
        entry = CacheEntry(
            key_material=bytes(key_material),
            expires_at=self._clock() + ttl_seconds,
        )
        with self._lock:
            self._entries[bytes(key_id)] = entry

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for e in self._entries.values() if e.expires_at > now)

    def __contains__(self, key_id: bytes) -> bool:
        return self.get(key_id) is not None


default_cache = KeyCache()
