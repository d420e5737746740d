import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from services.risk_assessment.resilience import Resolved

logger = logging.getLogger(__name__)

T = TypeVar("T")

CATALOG = "catalog"
ADVICE_BANDS = "advice_bands"
SLOTS = (CATALOG, ADVICE_BANDS)


@dataclass(frozen=True)
class CacheEntry:
    payload: Any
    captured_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.captured_at < self.ttl


class ConfigCache:
    """Time-bounded cache with one slot per configuration kind.

    Entries are replaced whole, never mutated, so concurrent readers always see
    either the old snapshot or the new one. Values produced by a fallback
    attempt are handed back to the caller but not stored.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, CacheEntry | None] = {slot: None for slot in SLOTS}

    def _check_slot(self, key: str) -> None:
        if key not in self._entries:
            raise KeyError(f"Unknown cache slot: {key}")

    def peek(self, key: str) -> CacheEntry | None:
        self._check_slot(key)
        return self._entries[key]

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Resolved[T]]],
        ttl: float,
    ) -> T:
        self._check_slot(key)

        entry = self._entries[key]
        if entry is not None and entry.is_fresh(self._clock()):
            return entry.payload

        resolved = await loader()
        if resolved.degraded:
            logger.warning(f"Not caching {key}: value came from fallback '{resolved.source}'")
        elif ttl > 0:
            self._entries[key] = CacheEntry(payload=resolved.value, captured_at=self._clock(), ttl=ttl)
        return resolved.value

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            for slot in self._entries:
                self._entries[slot] = None
            return
        self._check_slot(key)
        self._entries[key] = None
