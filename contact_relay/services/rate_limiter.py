"""
Sliding-window rate limiter keyed by a hash of the caller's address.

Each client has one record: a JSON array of epoch seconds.  On every
check the record is loaded and entries older than the window are dropped;
a client already at the limit is rejected.  The new timestamp is only
written by :meth:`SlidingWindowRateLimiter.record`, which the pipeline
calls after the message has actually been sent, so failed verifications
and mail errors do not use up a slot.

There is no locking between check and record.  Concurrent submissions
from the same client can slightly over- or under-count; the limit is an
advisory throttle, not a security boundary.
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from contact_relay.errors import RateLimited
from contact_relay.services.stores import RateLimitStore

logger = logging.getLogger(__name__)

UNKNOWN_ADDRESS = "0.0.0.0"


def client_key(address: str | None) -> str:
    """One-way key for a network address, so raw IPs are never stored."""
    return hashlib.sha256((address or UNKNOWN_ADDRESS).encode()).hexdigest()


def parse_timestamps(raw: bytes | None) -> list[int]:
    """Decode a stored record.  Missing or corrupt data reads as empty."""
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return []
    if not isinstance(data, list):
        return []
    return [
        int(t) for t in data
        if isinstance(t, (int, float)) and not isinstance(t, bool) and math.isfinite(t)
    ]


@dataclass
class RateWindow:
    """A client's timestamps inside the current window, as of ``now``."""

    key: str
    now: int
    timestamps: list[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.timestamps)


class SlidingWindowRateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        *,
        max_requests: int = 10,
        window_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._max = max_requests
        self._window = window_seconds
        self._clock = clock

    async def load(self, address: str | None) -> RateWindow:
        """Load and prune the record for ``address``."""
        key = client_key(address)
        now = int(self._clock())
        raw = await self._store.get(key)
        stored = parse_timestamps(raw)
        if raw is not None and not stored and raw.strip() not in (b"[]", b""):
            logger.warning("Ignoring unreadable rate-limit record %s", key[:12])
        return RateWindow(
            key=key,
            now=now,
            timestamps=[t for t in stored if now - t < self._window],
        )

    async def check(self, address: str | None) -> RateWindow:
        """Return the pruned window, or raise RateLimited if it is full."""
        window = await self.load(address)
        if window.count >= self._max:
            logger.info(
                "Rate limit hit for client %s (%d in %ds)",
                window.key[:12],
                window.count,
                self._window,
            )
            raise RateLimited()
        return window

    async def record(self, window: RateWindow) -> None:
        """Append the admitted request's timestamp and persist the record."""
        window.timestamps.append(window.now)
        await self._store.put(window.key, json.dumps(window.timestamps).encode())
