"""
SQL Cache.

In-memory map from a query description to the SQL generated for it, so the
upstream caller can reuse SQL instead of generating it again.

- Keys are normalized descriptions (see ``normalize_key``)
- Entries are immutable and replaced wholesale on key collision
- Nothing expires; the cache lives as long as the process and is emptied
  only by ``clear``
"""

import re
import threading
from dataclasses import dataclass
from datetime import datetime

from sqlgate.logging_config import get_logger

logger = get_logger(__name__)

# ASCII letters and digits, CJK unified ideographs and whitespace survive
_NON_KEY_CHARS = re.compile(r"[^a-zA-Z0-9\u4e00-\u9fa5\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_key(description: str) -> str:
    """
    Build the cache key for a description.

    Trims, lower-cases, drops punctuation and collapses whitespace runs to a
    single space. Whitespace is collapsed, never removed, so ``"a b"`` and
    ``"ab"`` stay distinct.
    """
    key = description.strip().lower()
    key = _NON_KEY_CHARS.sub("", key)
    return _WHITESPACE.sub(" ", key)


@dataclass(frozen=True)
class CachedEntry:
    """A cached description -> SQL association."""

    normalized_key: str
    original_description: str
    sql: str
    cached_at: datetime


class QueryCache:
    """
    Thread-safe description -> SQL cache.

    A single lock guards the dict, so ``get`` sees either no entry or a
    complete one and ``clear`` reports exactly the size it removed.
    """

    def __init__(self):
        self._entries: dict[str, CachedEntry] = {}
        self._lock = threading.Lock()

    def put(self, description: str, sql: str) -> CachedEntry:
        """
        Cache ``sql`` under the normalized ``description``.

        Returns:
            The stored entry (replaces any previous one for the same key)
        """
        entry = CachedEntry(
            normalized_key=normalize_key(description),
            original_description=description,
            sql=sql,
            cached_at=datetime.now(),
        )
        with self._lock:
            self._entries[entry.normalized_key] = entry
        logger.info("sql_cached", description=description, key=entry.normalized_key)
        return entry

    def get(self, description: str) -> CachedEntry | None:
        """Look up the entry for ``description``; None on a miss."""
        key = normalize_key(description)
        with self._lock:
            entry = self._entries.get(key)
        logger.debug("sql_cache_hit" if entry else "sql_cache_miss", key=key)
        return entry

    def list(self) -> list[CachedEntry]:
        """Snapshot of all entries. Order is not guaranteed."""
        with self._lock:
            return list(self._entries.values())

    def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        logger.info("sql_cache_cleared", removed=removed)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
