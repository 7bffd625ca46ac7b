"""Sliding-window rate limiter with an injected counter store.

Each caller identifier maps to the timestamps of its recent admitted requests.
A request is admitted only if fewer than `max_requests` of those timestamps
fall inside the trailing window. Stale timestamps are dropped lazily on every
check, and `sweep()` (run periodically by the app scheduler) drops keys that
have gone quiet.

Usage:
    limiter = SlidingWindowRateLimiter(InMemoryCounterStore(), max_requests=10, window_ms=60_000)
    if not limiter.check("signin:203.0.113.7"):
        ...  # reject
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Iterator
from typing import Protocol

from fastapi import Depends, HTTPException, Request
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from storefront.observability.logging import get_logger

log = get_logger(__name__)


class CounterStore(Protocol):
    """Per-key timestamp lists. Swappable for a shared store (e.g. Redis)."""

    def get(self, key: str) -> list[float]: ...

    def put(self, key: str, timestamps: list[float]) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterator[str]: ...


class InMemoryCounterStore:
    def __init__(self) -> None:
        self._data: dict[str, list[float]] = {}

    def get(self, key: str) -> list[float]:
        return list(self._data.get(key, ()))

    def put(self, key: str, timestamps: list[float]) -> None:
        self._data[key] = timestamps

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        # Snapshot so callers may delete while iterating.
        return iter(list(self._data))


class SlidingWindowRateLimiter:
    """
    Timestamps are in milliseconds from `clock` (monotonic by default).
    `check` has no await points, so a read-modify-write for one key never
    interleaves with another request on the event loop.
    """

    def __init__(
        self,
        store: CounterStore,
        *,
        max_requests: int = 10,
        window_ms: int = 60_000,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        self.store = store
        self.max_requests = max_requests
        self.window_ms = window_ms
        self._clock = clock or (lambda: time.monotonic() * 1000.0)

    def _live(self, timestamps: list[float], now: float) -> list[float]:
        return [t for t in timestamps if now - t < self.window_ms]

    def check(self, identifier: str) -> bool:
        """Record and admit the request if under the limit; otherwise reject."""
        now = self._clock()
        live = self._live(self.store.get(identifier), now)
        if len(live) >= self.max_requests:
            self.store.put(identifier, live)
            return False
        live.append(now)
        self.store.put(identifier, live)
        return True

    def retry_after_seconds(self, identifier: str) -> int:
        live = self._live(self.store.get(identifier), self._clock())
        if len(live) < self.max_requests:
            return 0
        wait_ms = self.window_ms - (self._clock() - min(live))
        return max(1, math.ceil(wait_ms / 1000.0))

    def sweep(self) -> int:
        """Evict stale timestamps everywhere; returns the number of keys dropped."""
        now = self._clock()
        dropped = 0
        for key in self.store.keys():
            live = self._live(self.store.get(key), now)
            if live:
                self.store.put(key, live)
            else:
                self.store.delete(key)
                dropped += 1
        return dropped


def limiter_from_app(request: Request) -> SlidingWindowRateLimiter:
    # Created in `storefront.api.app.create_app` and stashed on app.state.
    return request.app.state.rate_limiter  # type: ignore[attr-defined]


def rate_limit(scope: str):
    """
    Dependency factory: 429 once `<scope>:<client host>` exceeds the limit.

    `_dep` must stay a coroutine: `check` runs on the event loop, never in the threadpool.
    """

    async def _dep(
        request: Request,
        limiter: SlidingWindowRateLimiter = Depends(limiter_from_app),
    ) -> None:
        client = request.client.host if request.client else "unknown"
        key = f"{scope}:{client}"
        if not limiter.check(key):
            log.warning("rate_limited", key=key)
            raise HTTPException(
                status_code=HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(limiter.retry_after_seconds(key))},
            )

    return _dep
