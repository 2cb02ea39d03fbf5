"""
TTL cache for resolved choice lists.

Entries are always replaced whole and expire lazily: an expired entry is
dropped the next time it is read. There is no background sweep.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from .models import CacheStatus, Choice, RefreshFrequency
from .rules import CACHE_PREFIX, DAY_IN_SECONDS, HOUR_IN_SECONDS, WEEK_IN_SECONDS

logger = logging.getLogger(__name__)

_MISSING = object()

FREQUENCY_TTLS = {
    RefreshFrequency.HOURLY: HOUR_IN_SECONDS,
    RefreshFrequency.DAILY: DAY_IN_SECONDS,
    RefreshFrequency.WEEKLY: WEEK_IN_SECONDS,
}


def get_ttl_for_frequency(frequency: Any) -> int:
    try:
        return FREQUENCY_TTLS[RefreshFrequency(frequency)]
    except ValueError:
        return DAY_IN_SECONDS


class MemoryCacheStore:
    """In-process key/value store with per-key expiry, safe across threads."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ChoiceCache:
    """Choice lists keyed by source identity (locator + selectors)."""

    def __init__(self, store: Optional[MemoryCacheStore] = None, default_ttl: int = DAY_IN_SECONDS) -> None:
        self.store = store if store is not None else MemoryCacheStore()
        self.default_ttl = default_ttl

    @staticmethod
    def generate_key(identity: str) -> str:
        # md5 keeps keys short; only collisions matter here, not secrecy
        return CACHE_PREFIX + hashlib.md5(identity.encode("utf-8"), usedforsecurity=False).hexdigest()

    def get(self, identity: str) -> Optional[List[Choice]]:
        cached = self.store.get(self.generate_key(identity), _MISSING)
        if cached is _MISSING:
            logger.debug("Cache miss for %s", identity)
            return None

        if not isinstance(cached, list):
            logger.warning("Discarding malformed cache entry for %s", identity)
            return None

        try:
            choices = [Choice.model_validate(item) for item in cached]
        except PydanticValidationError:
            logger.warning("Discarding malformed cache entry for %s", identity)
            return None

        logger.debug("Cache hit for %s (%d choices)", identity, len(choices))
        return choices

    def set(self, identity: str, choices: List[Choice], ttl: Optional[int] = None) -> None:
        if ttl is None:
            ttl = self.default_ttl
        payload = [choice.model_dump() for choice in choices]
        self.store.set(self.generate_key(identity), payload, ttl)

    def clear(self, identity: str) -> bool:
        return self.store.delete(self.generate_key(identity))

    get_ttl_for_frequency = staticmethod(get_ttl_for_frequency)

    def get_status(self, identity: str) -> CacheStatus:
        cached = self.store.get(self.generate_key(identity), _MISSING)

        if cached is _MISSING:
            return CacheStatus(status="stale", message="Cache is empty or expired.")

        if isinstance(cached, list) and cached:
            return CacheStatus(
                status="healthy",
                message=f"{len(cached)} choices cached.",
                count=len(cached),
            )

        return CacheStatus(status="error", message="Invalid cached data.")
