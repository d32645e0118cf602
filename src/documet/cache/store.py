"""
Response Cache

In-memory, advisory memoisation of generated summaries and suggested
questions, keyed by document id.

Design choices
--------------
- In-memory only (no persistence across process restarts).
- Entries are advisory: any of them may be discarded and recomputed at any
  time without changing observable behaviour beyond latency.
- Thread-safe access using a re-entrant lock.
- Bounded: when full, the oldest entry is evicted first.
"""

from __future__ import annotations

from collections import OrderedDict
from threading import RLock
from typing import Any, Hashable, Optional, Tuple


CacheKey = Tuple[Hashable, str]


class ResponseCache:
    """
    In-memory store mapping (document id, kind) to a generated response.
    """

    def __init__(self, max_entries: Optional[int] = 1024) -> None:
        """
        Initialize a new ResponseCache.

        Parameters
        ----------
        max_entries : Optional[int]
            Maximum number of cached responses. If None, the cache is
            unbounded.
        """
        self._store: "OrderedDict[CacheKey, Any]" = OrderedDict()
        self._lock = RLock()
        self._max_entries = max_entries

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def get(self, document_id: Hashable, kind: str) -> Optional[Any]:
        with self._lock:
            return self._store.get((document_id, kind))

    def set(self, document_id: Hashable, kind: str, value: Any) -> None:
        with self._lock:
            key = (document_id, kind)
            self._store[key] = value
            self._store.move_to_end(key)

            if self._max_entries is not None and self._max_entries > 0:
                while len(self._store) > self._max_entries:
                    self._store.popitem(last=False)

    def discard(self, document_id: Hashable) -> int:
        """
        Drop every cached response for a document.

        Returns
        -------
        int
            Number of entries removed.
        """
        with self._lock:
            keys = [key for key in self._store if key[0] == document_id]
            for key in keys:
                del self._store[key]
            return len(keys)

    # ------------------------------------------------------------------
    # Utility operations
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
