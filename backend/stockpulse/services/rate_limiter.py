# backend/stockpulse/services/rate_limiter.py
"""
In-memory per-client daily quota.

The store lives for the lifetime of the process (restart = fresh quota) and is
held on ``app.state`` so routes receive it through a dependency.

``admit`` and ``increment`` are separate calls; two concurrent requests from
the same client can both be admitted before either increments. Each call on
its own is atomic per client key.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional

from stockpulse.logger import get_logger

log = get_logger(__name__)


@dataclass
class RateLimitRecord:
    client_key: str
    count: int
    last_reset_date: date


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int


class RateLimiter:
    def __init__(self, quota: int = 5, today: Optional[Callable[[], date]] = None):
        self.quota = int(quota)
        self._today = today or date.today
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    def _current(self, client_key: str) -> RateLimitRecord:
        # caller holds the lock
        today = self._today()
        rec = self._records.get(client_key)
        if rec is None:
            rec = RateLimitRecord(client_key=client_key, count=0, last_reset_date=today)
            self._records[client_key] = rec
        elif rec.last_reset_date != today:
            log.info("rate limit reset for %s (last reset %s)", client_key, rec.last_reset_date)
            rec.count = 0
            rec.last_reset_date = today
        return rec

    def _remaining(self, rec: RateLimitRecord) -> int:
        return max(0, self.quota - rec.count)

    def admit(self, client_key: str) -> RateLimitDecision:
        with self._lock:
            remaining = self._remaining(self._current(client_key))
        return RateLimitDecision(allowed=remaining > 0, remaining=remaining)

    def increment(self, client_key: str) -> int:
        """Count one request against the client's quota; returns what is left."""
        with self._lock:
            rec = self._current(client_key)
            rec.count += 1
            used = rec.count
            remaining = self._remaining(rec)
        log.info("rate limit %s: %d used, %d remaining", client_key, used, remaining)
        return remaining

    def peek(self, client_key: str) -> int:
        return self.admit(client_key).remaining

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
