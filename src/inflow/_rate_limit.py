"""
Client-side throttling for the inFlow API.

The API enforces two independent limits:

- a per-minute cap, handled by spacing dispatches at least `min_spacing`
  seconds apart;
- a sliding-window cap, reported on every response through the
  `X-RateLimit-Limit: <used>/<max>` header. When the remaining quota drops to
  `threshold_remaining` or below, the next dispatch is held back until the
  `recovery_buffer` oldest requests of the window have aged out.

Available components:
    - WindowTracker: Timestamps of recent dispatches within the sliding window.
    - ThrottleGate: Spacing and proactive-pause decisions (no I/O, no sleeping).
    - ThrottledHttpClient: HttpClient decorator that sleeps as the gate decides.

Example:
    >>> from inflow._rate_limit import ThrottleGate, ThrottledHttpClient
    >>> gate = ThrottleGate(min_spacing=1.2, threshold_remaining=20,
    ...                     window_duration=3600.0, recovery_buffer=50)
    >>> client = ThrottledHttpClient(delegate=AuthenticatedHttpClient(auth), gate=gate)
"""

import logging
import re
import threading
import time
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, override

import requests

from inflow._http import HttpClient, QueryParams

logger = logging.getLogger(__name__)


QUOTA_HEADER = "X-RateLimit-Limit"
_QUOTA_PATTERN = re.compile(r"(\d+)/(\d+)")


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class QuotaUsage:
    """
    Sliding-window quota reported by the server.

    Attributes:
        used: Requests already counted in the current window.
        max_requests: Window capacity.
    """

    used: int
    max_requests: int

    @property
    def remaining(self) -> int:
        return self.max_requests - self.used


@dataclass(frozen=True)
class RateLimitPauseEvent:
    """
    Snapshot emitted whenever a proactive pause is triggered.

    Attributes:
        used: Requests used in the window, as reported by the server.
        max_requests: Window capacity, as reported by the server.
        remaining: `max_requests - used`.
        wait_time: Seconds the next dispatch will be held back.
        recovery_target: Number of oldest requests waited on to age out.
    """

    used: int
    max_requests: int
    remaining: int
    wait_time: float
    recovery_target: int


PauseHook = Callable[[RateLimitPauseEvent], None]


def parse_quota_header(value: str | None) -> QuotaUsage | None:
    """
    Parse a `<used>/<max>` quota header.

    Returns:
        The parsed QuotaUsage, or None if the header is absent or malformed.

    Example:
        >>> parse_quota_header("981/1000")
        QuotaUsage(used=981, max_requests=1000)
        >>> parse_quota_header("n/a") is None
        True
    """
    if not value:
        return None
    match = _QUOTA_PATTERN.search(value)
    if not match:
        return None
    return QuotaUsage(used=int(match.group(1)), max_requests=int(match.group(2)))


# =============================================================================
# Window Tracker
# =============================================================================


class WindowTracker:
    """
    Timestamps of recent dispatches within a trailing window.

    Timestamps are kept in chronological order and pruned lazily from the
    front whenever occupancy matters.

    Args:
        window_duration: Length of the trailing window in seconds.
    """

    def __init__(self, window_duration: float):
        assert window_duration is not None, "window_duration cannot be None."
        assert window_duration > 0, "window_duration must be greater than 0."

        self.window_duration = window_duration
        self._timestamps: deque[float] = deque()

    def record(self, now: float) -> None:
        """Record a dispatch at `now`."""
        if self._timestamps and now < self._timestamps[-1]:
            now = self._timestamps[-1]
        self._timestamps.append(now)

    def prune(self, now: float) -> int:
        """
        Drop every timestamp older than `now - window_duration`.

        Returns:
            How many timestamps were dropped.
        """
        cutoff = now - self.window_duration
        removed = 0
        while self._timestamps and self._timestamps[0] < cutoff:
            self._timestamps.popleft()
            removed += 1
        return removed

    def time_until_recovered(self, target_count: int, now: float) -> float:
        """
        Seconds until the `target_count` oldest tracked requests leave the window.

        This is the minimum safe wait: once it elapses, at least
        `target_count` slots of the window have been freed. Requests dropped
        by this call's prune have already aged out and count toward the target.

        Args:
            target_count: Number of requests that must age out.
            now: Current time, on the same clock as the recorded timestamps.

        Returns:
            0.0 if `target_count` requests have already aged out or fewer are
            tracked, otherwise the remaining lifetime of the `target_count`-th oldest.
        """
        removed = self.prune(now)
        if target_count <= 0 or removed >= target_count:
            return 0.0
        index = target_count - 1 - removed
        if index >= len(self._timestamps):
            return 0.0
        expires_at = self._timestamps[index] + self.window_duration
        return max(0.0, expires_at - now)

    def __len__(self) -> int:
        return len(self._timestamps)


# =============================================================================
# Throttle Gate
# =============================================================================


class ThrottleGate:
    """
    Decides how long to hold back each dispatch.

    The gate never sleeps; it only answers "how long" and keeps the
    bookkeeping. Each gate owns its state, so two clients never share
    spacing or window history.

    Args:
        min_spacing: Minimum seconds between two dispatches.
        threshold_remaining: Pause when the reported remaining quota is at
            or below this value.
        window_duration: Sliding window length in seconds.
        recovery_buffer: Number of oldest requests to wait on before resuming.
        on_pause: Optional hook receiving a RateLimitPauseEvent on every pause.
    """

    def __init__(
        self,
        min_spacing: float,
        threshold_remaining: int,
        window_duration: float,
        recovery_buffer: int,
        on_pause: PauseHook | None = None,
    ):
        assert min_spacing is not None, "min_spacing cannot be None."
        assert min_spacing >= 0, "min_spacing must be >= 0."
        assert threshold_remaining is not None, "threshold_remaining cannot be None."
        assert threshold_remaining >= 0, "threshold_remaining must be >= 0."
        assert recovery_buffer is not None, "recovery_buffer cannot be None."
        assert recovery_buffer > 0, "recovery_buffer must be greater than 0."

        self.min_spacing = min_spacing
        self.threshold_remaining = threshold_remaining
        self.recovery_buffer = recovery_buffer
        self.on_pause = on_pause
        self.tracker = WindowTracker(window_duration)

        self._last_dispatch: float | None = None
        self._resume_at: float | None = None

    @property
    def last_dispatch(self) -> float | None:
        return self._last_dispatch

    def before_request(self, now: float) -> float:
        """
        Return how many seconds the caller must wait before dispatching.

        Combines the fixed spacing since the last dispatch with any pending
        proactive pause.
        """
        delay = 0.0
        if self._last_dispatch is not None:
            delay = self.min_spacing - (now - self._last_dispatch)
        if self._resume_at is not None:
            delay = max(delay, self._resume_at - now)
        return max(0.0, delay)

    def mark_dispatched(self, now: float) -> None:
        """Record a dispatch happening at `now`."""
        self._last_dispatch = now
        self._resume_at = None
        self.tracker.record(now)

    def after_response(self, headers: Mapping[str, str], now: float) -> float:
        """
        Inspect the quota header and schedule a pause if the window is nearly full.

        A missing or malformed header is not an error; the check is skipped.

        Returns:
            Seconds the next dispatch will be held back (0.0 if no pause).
        """
        quota = parse_quota_header(headers.get(QUOTA_HEADER))
        if quota is None or quota.remaining > self.threshold_remaining:
            return 0.0

        wait_time = self.tracker.time_until_recovered(self.recovery_buffer, now)
        logger.warning(
            f"⚠️ Approaching window rate limit ({quota.used}/{quota.max_requests}, "
            f"{quota.remaining} remaining). Pausing {wait_time:.1f}s until "
            f"{self.recovery_buffer} requests age out of the window..."
        )

        event = RateLimitPauseEvent(
            used=quota.used,
            max_requests=quota.max_requests,
            remaining=quota.remaining,
            wait_time=wait_time,
            recovery_target=self.recovery_buffer,
        )
        self._notify(event)

        self._resume_at = now + wait_time
        return wait_time

    def _notify(self, event: RateLimitPauseEvent) -> None:
        if self.on_pause is None:
            return
        try:
            self.on_pause(event)
        except Exception as e:
            logger.error(
                f"❌ Rate limit pause hook failed: {e}",
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )


# =============================================================================
# Throttled Decorator
# =============================================================================


class ThrottledHttpClient(HttpClient):
    """
    HTTP client decorator that applies a ThrottleGate to every request.

    GET and PUT are both throttled, since every request counts against both
    server-side limits.

    A single lock guards the whole wait + dispatch + bookkeeping sequence, so
    a client shared between threads still dispatches one request at a time
    and keeps the spacing and window invariants.

    Args:
        delegate: The underlying HTTP client to delegate requests to.
        gate: The ThrottleGate holding this client's throttle state.
    """

    def __init__(self, delegate: HttpClient, gate: ThrottleGate):
        assert delegate is not None, "Delegate HTTP client is required."
        assert gate is not None, "ThrottleGate is required."

        self.delegate = delegate
        self.gate = gate
        self._lock = threading.Lock()

    def _throttled(self, send: Callable[[], requests.Response]) -> requests.Response:
        with self._lock:
            delay = self.gate.before_request(time.monotonic())
            if delay > 0:
                logger.debug(f"Throttling: waiting {delay:.2f}s before next request.")
                time.sleep(delay)

            self.gate.mark_dispatched(time.monotonic())
            response = send()

            self.gate.after_response(response.headers, time.monotonic())
            return response

    @override
    def get(
        self,
        url: str,
        params: QueryParams | None = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
    ) -> requests.Response:
        return self._throttled(lambda: self.delegate.get(url, params, headers, timeout))

    @override
    def put(
        self,
        url: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
    ) -> requests.Response:
        return self._throttled(lambda: self.delegate.put(url, data, headers, timeout))
