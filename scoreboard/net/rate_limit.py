"""Per-client quotas (token bucket keyed by remote address)."""

from __future__ import annotations

import time


class TokenBucket:
    def __init__(self, rate_per_sec: float, burst: float, now: float | None = None):
        self.rate = float(rate_per_sec)
        self.capacity = float(burst)
        self.tokens = float(burst)
        self.last = time.monotonic() if now is None else now

    def allow(self, cost: float = 1.0, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        dt = max(0.0, now - self.last)
        self.last = now
        self.tokens = min(self.capacity, self.tokens + dt * self.rate)
        if self.tokens >= cost:
            self.tokens -= cost
            return True
        return False

    def full(self, now: float) -> bool:
        return self.tokens + (now - self.last) * self.rate >= self.capacity


class ClientThrottle:
    def __init__(self, rate_per_sec: float, burst: float, max_clients: int = 10_000):
        self.rate = rate_per_sec
        self.burst = burst
        self.max_clients = max_clients
        self._buckets: dict[str, TokenBucket] = {}

    def allow(self, client: str, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        bucket = self._buckets.get(client)
        if bucket is None:
            if len(self._buckets) >= self.max_clients:
                self._prune(now)
            bucket = TokenBucket(self.rate, self.burst, now=now)
            self._buckets[client] = bucket
        return bucket.allow(now=now)

    def _prune(self, now: float) -> None:
        # Refilled buckets carry no state worth keeping.
        for key in [k for k, b in self._buckets.items() if b.full(now)]:
            del self._buckets[key]

    def __len__(self) -> int:
        return len(self._buckets)
