# network_api/application/services/query_cache.py
#
# Explicit TTL cache and last-request-wins coordination for network queries.
#
# Design decisions:
#   - The dashboard used to rely on an implicit reactive cache (stale time
#     60 s, auto refetch). Here the cache is an explicit object with a TTL and
#     an injectable clock, keyed by the query identity (NetworkQuery or
#     (entity_id, limit)), so tests can expire entries without sleeping.
#   - Every query gets its own CancellationToken. QueryCoordinator hands out
#     tokens per view slot: beginning a new query in a slot cancels the
#     previous token, and a result is accepted only if its token is still the
#     current one. A slow superseded response can never overwrite a newer one.
#   - A threading.Lock guards both objects: FastAPI runs sync routes on a
#     worker thread pool.
#
# Invariants:
#   - QueryCache.get never returns an entry older than ttl_seconds.
#   - QueryCoordinator.accept(slot, token) is True for at most the latest
#     token begun in that slot, and never after cancel_all().
from __future__ import annotations

import threading
import time
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

from network_api.domain.network.errors import QueryCancelledError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class QueryCache(Generic[K, V]):
    def __init__(
        self,
        ttl_seconds: float = 60.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[K, tuple[float, V]] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self._ttl:
                del self._entries[key]
                return None
            return value

    def put(self, key: K, value: V) -> None:
        if self._ttl <= 0:
            return
        with self._lock:
            self._entries.pop(key, None)
            if len(self._entries) >= self._max_entries:
                # Oldest insertion first (dict preserves insertion order).
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[key] = (self._clock(), value)

    def invalidate(self, key: K | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CancellationToken:
    def __init__(self, key: Hashable = None) -> None:
        self.key = key
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise QueryCancelledError(f"Query superseded: {self.key!r}")


class QueryCoordinator:
    """Last-request-wins bookkeeping, one live token per view slot."""

    def __init__(self) -> None:
        self._current: dict[Hashable, CancellationToken] = {}
        self._lock = threading.Lock()

    def begin(self, slot: Hashable, key: Hashable = None) -> CancellationToken:
        token = CancellationToken(key)
        with self._lock:
            previous = self._current.get(slot)
            self._current[slot] = token
        if previous is not None:
            previous.cancel()
        return token

    def accept(self, slot: Hashable, token: CancellationToken) -> bool:
        with self._lock:
            return self._current.get(slot) is token and not token.cancelled

    def cancel(self, slot: Hashable) -> None:
        with self._lock:
            token = self._current.pop(slot, None)
        if token is not None:
            token.cancel()

    def cancel_all(self) -> None:
        with self._lock:
            tokens = list(self._current.values())
            self._current.clear()
        for token in tokens:
            token.cancel()
