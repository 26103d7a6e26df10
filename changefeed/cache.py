"""Time-expiring get-or-compute cache with request coalescing.

Concurrent callers asking for the same missing key share one computation:
the first caller runs it, the others block on a pending future and receive
the same value (or the same exception).  Only successful results are stored.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Hashable
from concurrent.futures import Future
from typing import Any, Protocol, TypeVar, runtime_checkable

from cachetools import TLRUCache

from changefeed import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class Cache(Protocol):
    """Injected cache capability used by the enrichment pipeline."""

    def get_or_compute(self, key: Hashable, compute: Callable[[], T], ttl: float) -> T:
        """Return the cached value for *key*, computing and storing it if absent."""
        ...


def _time_to_use(_key: Hashable, value: tuple[float, Any], now: float) -> float:
    ttl, _ = value
    return now + ttl


class MemoryCache:
    """In-process :class:`Cache` backed by :class:`cachetools.TLRUCache`.

    Each entry expires *ttl* seconds after it was stored; *ttl* is given per
    call so different callers can keep values for different lengths of time.
    """

    def __init__(
        self,
        maxsize: int = settings.DETAIL_CACHE_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = threading.Lock()
        self._store: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._pending: dict[Hashable, Future] = {}

    def __len__(self) -> int:
        with self._lock:
            self._store.expire()
            return len(self._store)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._store

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def get_or_compute(self, key: Hashable, compute: Callable[[], T], ttl: float) -> T:
        with self._lock:
            try:
                _, cached = self._store[key]
            except KeyError:
                pass
            else:
                logger.debug("Cache hit: %s", key)
                return cached
            pending = self._pending.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._pending[key] = pending

        if not owner:
            logger.debug("Waiting on in-flight computation for %s", key)
            return pending.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                del self._pending[key]
            pending.set_exception(exc)
            raise

        with self._lock:
            self._store[key] = (ttl, value)
            del self._pending[key]
        pending.set_result(value)
        return value


# ---------------------------------------------------------------------------
# Process-wide default
# ---------------------------------------------------------------------------

_default_cache: MemoryCache | None = None
_default_cache_lock = threading.Lock()


def get_default_cache() -> MemoryCache:
    """Return the process-wide cache shared by feed requests."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = MemoryCache()
        return _default_cache
