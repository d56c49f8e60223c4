from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


class AuthRateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding-window limiter for the signup and login endpoints.

    Every attempt takes a slot before it reaches the handler; the slot is
    given back when the response is a success (status < 400), so only failed
    attempts count against a client.
    """

    def __init__(
        self,
        app,
        *,
        paths: Iterable[str] = ("/signup", "/login"),
        methods: Iterable[str] = ("POST",),
        requests: int = 5,
        window_seconds: int = 15 * 60,
        key_func: Callable[[Request], str] | None = None,
        message: str = "Too many attempts. Please try again in 15 minutes.",
    ):
        super().__init__(app)
        self.paths = frozenset(paths)
        self.methods = frozenset(m.upper() for m in methods)
        self.requests = max(1, requests)
        self.window = max(1, window_seconds)
        self.key_func = key_func or self._default_key
        self.message = message
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._in_flight: Dict[str, int] = defaultdict(int)
        self._state_lock = asyncio.Lock()
        self._last_cleanup = time.monotonic()

    @staticmethod
    def _default_key(request: Request) -> str:
        client = request.client
        return client.host if client else "unknown"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path not in self.paths or request.method not in self.methods:
            return await call_next(request)

        identifier = f"{self.key_func(request)}:{request.url.path}"
        now = time.monotonic()
        earliest = now - self.window

        async with self._state_lock:
            self._maybe_cleanup(now)
            timestamps = self._hits[identifier]
            per_key_lock = self._locks[identifier]
            # pinned until this request finishes so cleanup leaves the entry alone
            self._in_flight[identifier] += 1

        try:
            async with per_key_lock:
                # Trim timestamps outside the window
                while timestamps and timestamps[0] < earliest:
                    timestamps.popleft()

                if len(timestamps) >= self.requests:
                    logger.warning("Rate limit hit for %s", identifier)
                    return JSONResponse({"error": self.message}, status_code=429)

                # counted before the handler runs; handed back below on success
                timestamps.append(now)

            response = await call_next(request)

            if response.status_code < 400:
                async with per_key_lock:
                    try:
                        timestamps.remove(now)
                    except ValueError:
                        pass
            return response
        finally:
            self._in_flight[identifier] -= 1
            if self._in_flight[identifier] <= 0:
                del self._in_flight[identifier]

    def _maybe_cleanup(self, now: float) -> None:
        """Remove stale client entries to keep in-memory usage bounded."""
        if now - self._last_cleanup < self.window:
            return

        cutoff = now - self.window
        stale_keys = [
            key
            for key, timestamps in list(self._hits.items())
            if key not in self._in_flight and (not timestamps or timestamps[-1] < cutoff)
        ]
        for key in stale_keys:
            self._hits.pop(key, None)
            self._locks.pop(key, None)

        self._last_cleanup = now
