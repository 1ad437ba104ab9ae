"""
Per-key sliding-window rate limiting, in memory.

Limits come from CONTENTSHIELD_RATE_PER_MINUTE / _PER_HOUR; disabled
with CONTENTSHIELD_RATE_LIMIT=false or when auth is off (key id None).
"""

from __future__ import annotations

import os
import threading
import time
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException

MAX_TRACKED_KEYS = 5000


@dataclass(frozen=True)
class RateLimits:
    per_minute: int = 60
    per_hour: int = 1000


DEFAULT_LIMITS = RateLimits(
    per_minute=int(os.getenv("CONTENTSHIELD_RATE_PER_MINUTE", "60")),
    per_hour=int(os.getenv("CONTENTSHIELD_RATE_PER_HOUR", "1000")),
)

RATE_LIMIT_ENABLED = os.getenv("CONTENTSHIELD_RATE_LIMIT", "true").lower() == "true"


class RateLimiter:
    """Request timestamps per key, LRU-bounded."""

    def __init__(self, limits: RateLimits = DEFAULT_LIMITS, max_keys: int = MAX_TRACKED_KEYS):
        self.limits = limits
        self.max_keys = max_keys
        self._hits: OrderedDict[str, deque] = OrderedDict()
        self._lock = threading.Lock()

    def _window(self, key_id: str) -> deque:
        hits = self._hits.get(key_id)
        if hits is None:
            if len(self._hits) >= self.max_keys:
                self._hits.popitem(last=False)
            hits = self._hits[key_id] = deque()
        else:
            self._hits.move_to_end(key_id)
        return hits

    def check(self, key_id: str, now: Optional[float] = None) -> None:
        """Record one request, raising 429 when a limit is already reached."""
        now = time.time() if now is None else now
        with self._lock:
            hits = self._window(key_id)
            while hits and hits[0] <= now - 3600:
                hits.popleft()

            last_minute = sum(1 for t in hits if t > now - 60)
            if last_minute >= self.limits.per_minute:
                raise HTTPException(
                    status_code=429,
                    detail=f"Rate limit exceeded: {self.limits.per_minute} requests/minute.",
                    headers={"Retry-After": "60"},
                )
            if len(hits) >= self.limits.per_hour:
                raise HTTPException(
                    status_code=429,
                    detail=f"Rate limit exceeded: {self.limits.per_hour} requests/hour.",
                    headers={"Retry-After": "3600"},
                )
            hits.append(now)

    def usage(self, key_id: str, now: Optional[float] = None) -> dict:
        now = time.time() if now is None else now
        with self._lock:
            hits = self._hits.get(key_id, ())
            return {
                "minute": sum(1 for t in hits if t > now - 60),
                "hour": sum(1 for t in hits if t > now - 3600),
            }

    def reset(self, key_id: Optional[str] = None) -> None:
        with self._lock:
            if key_id is None:
                self._hits.clear()
            else:
                self._hits.pop(key_id, None)


rate_limiter = RateLimiter()


def check_rate_limit(key_id: Optional[str]) -> None:
    if not RATE_LIMIT_ENABLED or key_id is None:
        return
    rate_limiter.check(key_id)
