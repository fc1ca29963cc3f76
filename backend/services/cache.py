"""In-memory TTL cache for upstream responses. No Redis needed.

One instance per application, created in ``create_app`` and handed to route
handlers through FastAPI dependencies. Each uvicorn worker owns its own
instance; nothing is shared across processes.

Differences from a plain dict-with-expiry:

* The store is bounded. Once ``maxsize`` entries are held, the least recently
  used one is evicted on the next ``set``. Expired entries are still only
  dropped lazily when their key is looked up.
* ``get_or_fetch`` coalesces concurrent misses: while a fetch for a key is in
  flight, later callers await the same result instead of issuing their own
  upstream call. Pass ``coalesce=False`` to get one fetch per caller.

All access happens on the event loop between awaits, so no lock is taken.
"""

import asyncio
import functools
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0
DEFAULT_MAX_ENTRIES = 1024


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at: float  # clock(), time.monotonic by default


class TTLCache:
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAX_ENTRIES,
        coalesce: bool = True,
        clock: Callable[[], float] | None = None,
    ):
        self.ttl_seconds = float(ttl_seconds)
        self.maxsize = max(1, int(maxsize))
        self.coalesce = coalesce
        self._clock = clock or time.monotonic
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._inflight: dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._store[key]
            return None
        self._store.move_to_end(key)
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._store[key] = CacheEntry(value=value, expires_at=self._clock() + self.ttl_seconds)
        self._store.move_to_end(key)
        while len(self._store) > self.maxsize:
            evicted, _ = self._store.popitem(last=False)
            logger.debug("Cache full, evicted %s", evicted)

    def clear(self) -> None:
        self._store.clear()

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for ``key``, calling ``fetch`` on a miss.

        Only a successful fetch is stored. If ``fetch`` raises, the exception
        reaches every caller waiting on that key and the cache is left as is.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        if not self.coalesce:
            logger.debug("Cache miss: %s", key)
            value = await fetch()
            self.set(key, value)
            return value

        task = self._inflight.get(key)
        if task is None:
            logger.debug("Cache miss: %s", key)
            # Runs as its own task so a cancelled caller doesn't cancel the fetch for everyone else.
            task = asyncio.ensure_future(fetch())
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._fetch_done, key))
        else:
            logger.debug("Cache miss: %s (joining in-flight fetch)", key)
        return await asyncio.shield(task)

    def _fetch_done(self, key: str, task: asyncio.Future) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        # Retrieving the exception keeps a failure nobody awaited from being reported as unhandled.
        if task.exception() is None:
            self.set(key, task.result())
