"""In-process cache with a revalidation window and tag-based invalidation."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, Iterable, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass(frozen=True, slots=True)
class Codec(Generic[T]):
    """Converts cached values to and from JSON-safe primitives."""

    encode: Callable[[T], Any] = field(default=lambda value: value)
    decode: Callable[[Any], T] = field(default=lambda value: value)


IDENTITY = Codec()


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at: float
    tags: Tuple[str, ...]
    decoded: Any = _MISSING


class MemoryCache:
    """Stores values per key until their revalidation window elapses.

    Expired entries are dropped when they are read and swept whenever a new
    value is stored. With ``serialize=True`` every value is stored as JSON text
    and decoded on its first read, which mirrors a cache that lives outside the
    process; later reads of the same entry share the decoded value.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, serialize: bool = False) -> None:
        self._clock = clock
        self.serialize = serialize
        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, key: str, codec: Codec = IDENTITY) -> Any:
        """Return the fresh value for ``key`` or ``None``."""

        value = self._get(key, codec)
        return None if value is _MISSING else value

    def _get(self, key: str, codec: Codec) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return _MISSING
        return self._read(entry, codec)

    def _read(self, entry: CacheEntry, codec: Codec) -> Any:
        if not self.serialize:
            return entry.value
        if entry.decoded is _MISSING:
            entry.decoded = codec.decode(json.loads(entry.value))
        return entry.decoded

    def set(self, key: str, value: Any, ttl: float, tags: Iterable[str] = (), codec: Codec = IDENTITY) -> None:
        self.evict_expired()
        stored = json.dumps(codec.encode(value)) if self.serialize else value
        self._entries[key] = CacheEntry(value=stored, expires_at=self._clock() + ttl, tags=tuple(tags))

    def evict_expired(self) -> int:
        """Drop every entry whose window has elapsed and return how many went."""

        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def invalidate_tag(self, tag: str) -> int:
        """Drop every entry carrying ``tag`` and return how many were removed."""

        doomed = [key for key, entry in self._entries.items() if tag in entry.tags]
        for key in doomed:
            del self._entries[key]
        logger.debug("Invalidated %d cache entries tagged %s", len(doomed), tag)
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def pending(self) -> int:
        """Number of entries with a computation in flight."""

        return len(self._locks)

    def cached(
        self,
        key: str,
        fn: Callable[..., Awaitable[T]],
        ttl: float,
        tags: Iterable[str] = (),
        codec: Codec = IDENTITY,
    ) -> Callable[..., Awaitable[T]]:
        """Wrap ``fn`` so calls with the same arguments reuse one stored result.

        Concurrent misses on the same entry share a single computation. The
        result is stored only once ``fn`` returns, and failures are not cached.
        A key's lock lives only while callers are waiting on it, so the wrapper
        can be driven from successive event loops.
        """

        tags = tuple(tags)

        async def wrapper(*args: Any) -> T:
            entry_key = f"{key}:{json.dumps(list(args))}" if args else key
            value = self._get(entry_key, codec)
            if value is not _MISSING:
                return value

            lock = self._locks.get(entry_key)
            if lock is None:
                lock = self._locks[entry_key] = asyncio.Lock()
            try:
                async with lock:
                    value = self._get(entry_key, codec)
                    if value is not _MISSING:
                        return value
                    logger.debug("Cache miss for %s", entry_key)
                    result = await fn(*args)
                    self.set(entry_key, result, ttl, tags, codec)
                    return self._read(self._entries[entry_key], codec)
            finally:
                if self._locks.get(entry_key) is lock and not lock.locked():
                    del self._locks[entry_key]

        wrapper.__name__ = getattr(fn, "__name__", key)
        wrapper.__doc__ = getattr(fn, "__doc__", None)
        return wrapper
