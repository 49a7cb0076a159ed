# =============================================================================
# core/rate_limit.py - Fixed-Window Rate Limiter
# =============================================================================
# Counts requests per client identity over a fixed wall-clock window.
#
# Each identity gets its own window, started lazily on its first request:
#
#   t=0      first request   -> window opens, count=1
#   t<W      request #N      -> allowed (count=N)
#   t<W      request #N+1    -> rejected, and every request after it
#   t>=W     next request    -> window reset, count=1
#
# State is bounded: expired windows are swept periodically and the least
# recently seen identity is evicted once max_clients is reached.
#
# No locking: hit() never awaits, so on a single event loop updates are
# serialised. Each worker process keeps its own counters.
#
# Usage:
#   limiter = FixedWindowRateLimiter(max_requests=100, window_seconds=900)
#   decision = limiter.hit(normalize_client_identity("::ffff:10.0.0.1"))
#   if not decision.allowed: ...
# =============================================================================

from __future__ import annotations

import ipaddress
import math
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class RateLimitWindow:
    """Request counter for one identity within its current window."""
    count: int
    started_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of counting one request.

    Attributes:
        allowed: False once the window's count exceeds the limit
        limit: Configured maximum requests per window
        remaining: Requests left in the current window (never negative)
        reset_after: Seconds until the window resets (rounded up)
    """
    allowed: bool
    limit: int
    remaining: int
    reset_after: int


# =============================================================================
# Identity
# =============================================================================

def normalize_client_identity(host: str | None) -> str:
    """
    Normalize a client address so one client always maps to one key.

    IPv4-mapped IPv6 addresses collapse to their IPv4 form and IPv6
    addresses are compressed, so "::ffff:127.0.0.1" and "127.0.0.1"
    share a window.

    Example:
        normalize_client_identity("::FFFF:10.0.0.1")  # "10.0.0.1"
        normalize_client_identity(None)               # "unknown"
    """
    if not host or not host.strip():
        return "unknown"

    value = host.strip()
    # "[::1]" as some proxies report it
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]

    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return value.lower()

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        return str(address.ipv4_mapped)
    return str(address)


# =============================================================================
# Limiter
# =============================================================================

class FixedWindowRateLimiter:
    """
    In-memory fixed-window limiter keyed by client identity.

    Args:
        max_requests: Requests allowed per identity per window (N)
        window_seconds: Window length in seconds (W)
        max_clients: Upper bound on tracked identities (LRU eviction)
        sweep_interval: Seconds between expired-window sweeps
            (defaults to the window length)
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 15 * 60,
        max_clients: int = 10_000,
        sweep_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_clients < 1:
            raise ValueError("max_clients must be at least 1")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self.sweep_interval = sweep_interval if sweep_interval is not None else window_seconds
        self._clock = clock
        self._windows: OrderedDict[str, RateLimitWindow] = OrderedDict()
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, identity: str) -> RateLimitDecision:
        """
        Count one request for an identity and decide whether it may proceed.

        Args:
            identity: Normalized client identity

        Returns:
            RateLimitDecision for this request
        """
        now = self._clock()
        self._sweep_if_due(now)

        window = self._windows.get(identity)
        if window is None or self._expired(window, now):
            window = RateLimitWindow(count=0, started_at=now)
            self._windows[identity] = window

        self._windows.move_to_end(identity)
        window.count += 1

        while len(self._windows) > self.max_clients:
            self._windows.popitem(last=False)

        reset_after = window.started_at + self.window_seconds - now
        return RateLimitDecision(
            allowed=window.count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(self.max_requests - window.count, 0),
            reset_after=max(math.ceil(reset_after), 0),
        )

    def reset(self, identity: str | None = None) -> None:
        """
        Forget counters for one identity, or for everyone.

        Args:
            identity: Identity to reset, or None to clear all windows
        """
        if identity is None:
            self._windows.clear()
        else:
            self._windows.pop(identity, None)

    def _expired(self, window: RateLimitWindow, now: float) -> bool:
        return now - window.started_at >= self.window_seconds

    def _sweep_if_due(self, now: float) -> None:
        if now - self._last_sweep < self.sweep_interval:
            return
        self._last_sweep = now
        expired = [key for key, window in self._windows.items() if self._expired(window, now)]
        for key in expired:
            del self._windows[key]
