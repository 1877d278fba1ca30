"""Caller-owned cache for fetched rosters.

The scoring engine keeps no state between calls. Callers that fetch rosters
from a slow source (CSV download, database) hold a RosterCache themselves
and decide when to refresh it.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    fetched_at: datetime
    expires_at: datetime


class RosterCache:
    """
    Rosters keyed by any hashable (typically ``(season, mode)``).

    Every entry carries an explicit ``expires_at``. ``get`` fetches through
    the loader on a miss or an expired entry; ``force_refresh`` bypasses
    the cache.
    """

    CACHE_DURATION_HOURS = 6  # How long a fetched roster stays fresh

    def __init__(
        self,
        loader: Callable[[Hashable], Any],
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._loader = loader
        self.ttl = ttl if ttl is not None else timedelta(hours=self.CACHE_DURATION_HOURS)
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries and not self.is_expired(key)

    def __len__(self) -> int:
        return len(self._entries)

    def expires_at(self, key: Hashable) -> Optional[datetime]:
        entry = self._entries.get(key)
        return entry.expires_at if entry is not None else None

    def is_expired(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is None or self._clock() >= entry.expires_at

    def put(self, key: Hashable, value: Any) -> CacheEntry:
        now = self._clock()
        entry = CacheEntry(value=value, fetched_at=now, expires_at=now + self.ttl)
        self._entries[key] = entry
        return entry

    def get(self, key: Hashable, force: bool = False) -> Any:
        """
        Cached roster for ``key``.

        Args:
            key: Roster key
            force: Re-fetch even if the cached entry is still fresh

        Returns:
            The loader's result for ``key``
        """
        if not force and not self.is_expired(key):
            return self._entries[key].value

        logger.info("Fetching roster %s%s", key, " (forced)" if force else "")
        value = self._loader(key)
        self.put(key, value)
        return value

    def force_refresh(self, key: Optional[Hashable] = None) -> Any:
        """
        Re-fetch one roster now, or drop every entry when no key is given.

        Returns:
            The fresh roster for ``key``, or None when clearing everything
        """
        if key is None:
            logger.info("Clearing %d cached rosters", len(self._entries))
            self._entries.clear()
            return None
        return self.get(key, force=True)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)
