"""In-memory content cache collaborator.

A key-to-text lookup shared by content providers. The most recently stored
value wins; there is no eviction. Entries live until ``clear()``.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ContentCache:
    """Thread-safe key-to-text cache with populate-on-miss loading."""

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = value

    def get_or_load(self, key: str, loader: Callable[[], Optional[str]]) -> Optional[str]:
        """Return the cached value, loading and storing it on a miss.

        Loaders returning None are not cached, so a file created later is
        picked up on the next call. The loader runs outside the lock.
        """
        with self._lock:
            if key in self._entries:
                self.hits += 1
                return self._entries[key]
            self.misses += 1

        value = loader()
        if value is not None:
            self.put(key, value)
        return value

    def clear(self) -> int:
        """Remove all entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        logger.debug(f"Content cache cleared ({removed} items removed)")
        return removed

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
