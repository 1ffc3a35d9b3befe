"""
Thread-safe per-second and per-day call budgets.

Alpha Vantage API keys are subject to two independent quotas: a burst
limit on calls per second and a daily allowance.  This module implements
a limiter that gates each outbound call behind both counters.  Calls
beyond the daily allowance fail immediately with
:class:`~av_client.errors.DailyLimitReachedError`; calls beyond the
per-second limit are delayed in short polling steps until the counter is
reset.

Both counters are reset at fixed intervals anchored to the moment the
limiter was created (every second and every 24 hours by default).  This
is not a sliding window: a burst of ``second_limit`` calls just before a
reset may be followed by another full burst right after it.

By default a call is counted once it has executed, so concurrent callers
that pass the checks at the same time may overshoot a limit by the number
of calls in flight.  Pass ``reserve_slots=True`` to reserve the slot before
executing instead, which makes both limits hard upper bounds.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, TypeVar

from .errors import DailyLimitReachedError, RateLimiterClosedError


logger = logging.getLogger(__name__)

T = TypeVar("T")

DAY_SECONDS = 24 * 60 * 60.0
DEFAULT_POLL_INTERVAL = 0.05


def _normalize_limit(name: str, value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    limit = int(value)
    if limit < 0:
        raise ValueError(f"{name} must be >= 0 (got {value!r}).")
    # Zero means "no cap", never "no calls allowed".
    return limit or None


class RateLimiter:
    """Limits the per-second and per-day execution counts.

    Parameters
    ----------
    day_limit : int, optional
        Maximum number of calls admitted per day window.  ``None`` or
        ``0`` disables the daily cap.
    second_limit : int, optional
        Maximum number of calls admitted per second window.  ``None`` or
        ``0`` disables the per-second cap.
    poll_interval : float, optional
        Delay in seconds between checks while waiting for the per-second
        counter to reset.
    second_window, day_window : float, optional
        Reset intervals in seconds.  The defaults match the service's
        quota windows (one second and one day).
    reserve_slots : bool, optional
        Count a call before it executes instead of after, so concurrent
        callers can never overshoot either limit.

    Usage::

        with RateLimiter(day_limit=500, second_limit=5) as limiter:
            response = limiter.do(lambda: http.get(url))
    """

    def __init__(
        self,
        day_limit: Optional[int] = None,
        second_limit: Optional[int] = None,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        second_window: float = 1.0,
        day_window: float = DAY_SECONDS,
        reserve_slots: bool = False,
    ) -> None:
        self.day_limit = _normalize_limit("day_limit", day_limit)
        self.second_limit = _normalize_limit("second_limit", second_limit)
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0 (got {poll_interval!r}).")
        if second_window <= 0 or day_window <= 0:
            raise ValueError("Reset windows must be > 0.")

        self.poll_interval = float(poll_interval)
        self.second_window = float(second_window)
        self.day_window = float(day_window)
        self.reserve_slots = bool(reserve_slots)

        self._lock = threading.Lock()
        self._second_count = 0
        self._day_count = 0
        self._admitted = 0
        self._rejected = 0

        self._stop = threading.Event()
        self._started_monotonic = time.monotonic()
        self._reset_thread = threading.Thread(
            target=self._run_resets,
            name="av-rate-limiter-reset",
            daemon=True,
        )
        self._reset_thread.start()

    @property
    def second_count(self) -> int:
        with self._lock:
            return self._second_count

    @property
    def day_count(self) -> int:
        with self._lock:
            return self._day_count

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def close(self) -> None:
        """Stop the background resets. Further calls to :meth:`do` are refused."""
        self._stop.set()
        if self._reset_thread is not threading.current_thread():
            self._reset_thread.join()

    def __enter__(self) -> "RateLimiter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def snapshot(self) -> Dict[str, Any]:
        """Return the current limits and counters."""
        with self._lock:
            return {
                "day_limit": self.day_limit,
                "second_limit": self.second_limit,
                "day_count": self._day_count,
                "second_count": self._second_count,
                "admitted": self._admitted,
                "rejected": self._rejected,
                "reserve_slots": self.reserve_slots,
            }

    def _run_resets(self) -> None:
        next_second = self._started_monotonic + self.second_window
        next_day = self._started_monotonic + self.day_window
        while not self._stop.wait(max(0.0, min(next_second, next_day) - time.monotonic())):
            now = time.monotonic()
            day_reset = now >= next_day
            with self._lock:
                if now >= next_second:
                    self._second_count = 0
                if day_reset:
                    self._day_count = 0
            # Ticks stay on the creation-time grid; missed ticks are not replayed.
            while next_second <= now:
                next_second += self.second_window
            while next_day <= now:
                next_day += self.day_window
            if day_reset:
                logger.debug("Daily call count reset.")

    def _at_day_cap(self) -> bool:
        return self.day_limit is not None and self._day_count >= self.day_limit

    def _at_second_cap(self) -> bool:
        return self.second_limit is not None and self._second_count >= self.second_limit

    def _count_call(self) -> None:
        with self._lock:
            self._second_count += 1
            self._day_count += 1

    def _admit(self, deadline: Optional[float]) -> None:
        waiting = False
        while True:
            with self._lock:
                closed = self._stop.is_set()
                exhausted = not closed and self._at_day_cap()
                admitted = not closed and not exhausted and not self._at_second_cap()
                if exhausted:
                    self._rejected += 1
                if admitted:
                    self._admitted += 1
                    if self.reserve_slots:
                        self._second_count += 1
                        self._day_count += 1

            if closed:
                raise RateLimiterClosedError("Rate limiter is closed.")
            if exhausted:
                logger.info(
                    "Daily API limit reached; rejecting call.",
                    extra={"context": {"av_event": "daily_limit", "av_day_limit": self.day_limit}},
                )
                raise DailyLimitReachedError("daily API limit has been reached")
            if admitted:
                return

            if not waiting:
                waiting = True
                logger.debug(
                    "Per-second limit reached; waiting for reset.",
                    extra={"context": {"av_event": "rate_wait", "av_second_limit": self.second_limit}},
                )
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError("Timed out waiting for a per-second rate-limit slot.")
            time.sleep(self.poll_interval)

    def do(self, work: Callable[[], T], *, timeout_seconds: Optional[float] = None) -> T:
        """Execute ``work`` once it is admitted and return its result.

        Raises :class:`DailyLimitReachedError` without executing ``work``
        when the daily budget is spent, and delays in ``poll_interval``
        steps while the per-second budget is spent.  ``timeout_seconds``
        bounds that delay (``TimeoutError``); by default it is unbounded.

        The call counts against both budgets whether ``work`` returns or
        raises.  Exceptions from ``work`` propagate unchanged.
        """
        deadline = None
        if timeout_seconds is not None:
            deadline = time.monotonic() + max(0.0, float(timeout_seconds))

        self._admit(deadline)
        try:
            return work()
        finally:
            if not self.reserve_slots:
                self._count_call()
