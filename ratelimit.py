# ratelimit.py
import os
import math
import time
import logging
import threading
from typing import Dict, Tuple

from dotenv import load_dotenv
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

load_dotenv()
logger = logging.getLogger(__name__)

RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
RATE_LIMIT_WINDOW = float(os.getenv("RATE_LIMIT_WINDOW", "900"))   # seconds


class FixedWindowLimiter:
    """Per-key request ceiling over fixed windows (same cap for every endpoint)."""

    def __init__(self, max_requests: int, window_seconds: float, clock=time.monotonic):
        self.max_requests = max(1, int(max_requests))
        self.window = max(1.0, float(window_seconds))
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> Tuple[bool, int]:
        """Count one request for ``key``; returns (allowed, seconds until the window resets)."""
        now = self._clock()
        with self._lock:
            start, n = self._windows.get(key, (now, 0))
            if now - start >= self.window:
                start, n = now, 0
            retry_after = max(1, math.ceil(start + self.window - now))
            if n >= self.max_requests:
                self._windows[key] = (start, n)
                return False, retry_after
            self._windows[key] = (start, n + 1)
            self._prune(now)
            return True, retry_after

    def _prune(self, now: float) -> None:
        if len(self._windows) < 1024:
            return
        expired = [k for k, (s, _) in self._windows.items() if now - s >= self.window]
        for k in expired:
            del self._windows[k]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: FixedWindowLimiter | None = None):
        super().__init__(app)
        self.limiter = limiter or FixedWindowLimiter(RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW)

    async def dispatch(self, request: Request, call_next):
        key = request.client.host if request.client else "unknown"
        allowed, retry_after = self.limiter.hit(key)
        if not allowed:
            logger.warning("Rate limit hit for %s on %s", key, request.url.path)
            return JSONResponse(
                {"detail": "Too many requests, try again later"},
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
