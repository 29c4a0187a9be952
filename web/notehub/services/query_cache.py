"""
NoteHub Web — Query Cache
===========================

What:  Keyed store of query results with staleness, invalidation and
       dehydrate/hydrate for moving server-fetched data into a renderer.
How:   Entries are keyed by tuples such as ("notes", 1, "", "Work").
       Invalidation works on key prefixes: invalidate(("notes",)) marks
       every notes list stale regardless of page, search or tag.
Who:   One instance per application lives on app.state and is injected
       into routes and the note form; the prefetch gateway builds a
       throwaway instance per request.

Lifecycle of an entry:
    created (prefetch / first fetch) → fresh
        → stale (invalidated, or older than stale_time)
        → next fetch() refetches and stores → fresh again
    unused for gc_time, or least recently used beyond max_entries → dropped

Concurrency:
    Mutated only from the event loop thread; no locking.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional, Tuple

logger = logging.getLogger(__name__)

QueryKey = Tuple[Hashable, ...]
Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class CacheEntry:
    key: QueryKey
    data: Any
    updated_at: float
    invalidated: bool = False
    last_used_at: float = 0.0


def _key_from_state(raw: Any) -> QueryKey:
    # JSON has no tuples; dehydrated keys come back as lists.
    return tuple(raw)


class QueryCache:
    """
    In-memory query cache.

    Data stored here must be JSON-serializable if the cache is going to
    be dehydrated; the gateway stores `model_dump(by_alias=True)` output
    rather than pydantic models for that reason.
    """

    def __init__(
        self,
        stale_time: float = 60.0,
        gc_time: float = 300.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            stale_time: Seconds an entry stays fresh after it was stored
            gc_time: Seconds an entry may go unread before it is dropped
            max_entries: Upper bound on stored entries; the least recently
                used are dropped first
            clock: Time source, replaceable in tests
        """
        self.stale_time = stale_time
        self.gc_time = gc_time
        self.max_entries = max_entries
        self._clock = clock
        # Ordered by last use, oldest first.
        self._entries: "OrderedDict[QueryKey, CacheEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return tuple(key) in self._entries

    def keys(self) -> List[QueryKey]:
        return list(self._entries)

    def get(self, key: QueryKey) -> Optional[Any]:
        """Return cached data for `key`, stale or not; None when absent."""
        entry = self._entries.get(tuple(key))
        if entry is None:
            return None
        self._touch(entry)
        return entry.data

    def set(self, key: QueryKey, data: Any) -> None:
        """Store `data` under `key` as a fresh entry."""
        key = tuple(key)
        now = self._clock()
        self._store(CacheEntry(key=key, data=data, updated_at=now, last_used_at=now))

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(tuple(key))
        if entry is None or entry.invalidated:
            return True
        return self._clock() - entry.updated_at >= self.stale_time

    async def fetch(self, key: QueryKey, fetcher: Fetcher) -> Any:
        """
        Return fresh data for `key`, calling `fetcher` only when needed.

        Raises:
            Whatever `fetcher` raises. The existing entry (if any) is left
            untouched so stale data remains readable through get().
        """
        key = tuple(key)
        if not self.is_stale(key):
            logger.debug("Query cache hit: %s", key)
            entry = self._entries[key]
            self._touch(entry)
            return entry.data

        logger.debug("Query cache miss: %s", key)
        data = await fetcher()
        self.set(key, data)
        return data

    async def prefetch(self, key: QueryKey, fetcher: Fetcher) -> None:
        """fetch() without returning the data."""
        await self.fetch(key, fetcher)

    def invalidate(self, prefix: QueryKey) -> int:
        """
        Mark every entry whose key starts with `prefix` as stale.

        Returns:
            Number of entries invalidated.
        """
        prefix = tuple(prefix)
        count = 0
        for key, entry in self._entries.items():
            if key[: len(prefix)] == prefix:
                entry.invalidated = True
                count += 1
        logger.info("Invalidated %d cached queries under %s", count, prefix)
        return count

    def clear(self) -> None:
        self._entries.clear()

    def collect_garbage(self) -> int:
        """
        Drop entries unused for `gc_time`, then the least recently used
        ones until at most `max_entries` remain.

        Runs on every write; callable directly as well.

        Returns:
            Number of entries dropped.
        """
        cutoff = self._clock() - self.gc_time
        dropped = 0
        while self._entries:
            oldest = next(iter(self._entries.values()))
            if oldest.last_used_at > cutoff and len(self._entries) <= self.max_entries:
                break
            self._entries.popitem(last=False)
            dropped += 1
        if dropped:
            logger.debug("Dropped %d unused cached queries", dropped)
        return dropped

    def _touch(self, entry: CacheEntry) -> None:
        entry.last_used_at = self._clock()
        self._entries.move_to_end(entry.key)

    def _store(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry
        self._entries.move_to_end(entry.key)
        self.collect_garbage()

    # ── Hydration ─────────────────────────────────────────────────────────

    def dehydrate(self) -> Dict[str, Any]:
        """
        Serialize fresh entries into a JSON-compatible dict.

        Format:
            {"queries": [{"key": [...], "data": ..., "updated_at": 1700000000.0}]}

        Invalidated entries are left out; the receiving side would only
        have to refetch them.
        """
        return {
            "queries": [
                {
                    "key": list(entry.key),
                    "data": entry.data,
                    "updated_at": entry.updated_at,
                }
                for entry in self._entries.values()
                if not entry.invalidated
            ]
        }

    def hydrate(self, state: Optional[Dict[str, Any]]) -> int:
        """
        Merge a dehydrated state into this cache.

        An incoming entry replaces an existing one only when it is newer,
        so hydrating an old page render never clobbers data fetched since.

        Returns:
            Number of entries written.
        """
        if not state:
            return 0

        written = 0
        for query in state.get("queries", []):
            key = _key_from_state(query["key"])
            updated_at = float(query.get("updated_at", 0.0))
            existing = self._entries.get(key)
            if existing is not None and existing.updated_at >= updated_at:
                continue
            self._store(
                CacheEntry(
                    key=key,
                    data=query.get("data"),
                    updated_at=updated_at,
                    last_used_at=self._clock(),
                )
            )
            written += 1

        logger.debug("Hydrated %d queries into cache", written)
        return written
