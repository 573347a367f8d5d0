from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional, Tuple

from skillsync.core.config import RateLimitSettings
from skillsync.schemas.rate_limit_schemas import RateLimitStatus

log = logging.getLogger("skillsync.utils.rate_limiter")

MINUTE_SEC = 60.0
DAY_SEC = 24 * 60 * 60.0
SAFETY_MARGIN_SEC = 0.1

Sleeper = Callable[[float, Optional[threading.Event]], bool]


class RateLimitError(Exception):
    pass


class QuotaExceeded(RateLimitError):
    """The trailing 24h call count reached the daily ceiling."""

    def __init__(self, limit: int, retry_after: float) -> None:
        self.limit = limit
        self.retry_after = retry_after
        super().__init__(
            f"Daily API request limit of {limit} requests has been reached. Please try again later."
        )


class PermissionCancelled(RateLimitError):
    """The caller's cancel event fired while it was waiting for permission."""


def _sleep(seconds: float, cancel: Optional[threading.Event]) -> bool:
    if cancel is None:
        time.sleep(seconds)
        return False
    return cancel.wait(seconds)


class RateGovernor:
    """
    Paces outbound calls to a quota-limited API.

    Three guards are enforced: a minimum spacing between recorded calls,
    a rolling one-minute ceiling and a rolling 24-hour ceiling. The first
    two make `wait()` sleep; the daily one raises `QuotaExceeded` at once.

    One instance is created per process and handed to every component that
    talks to the API. State lives in memory only, so a restart starts a
    fresh quota window.
    """

    def __init__(
        self,
        max_per_minute: int = 15,
        max_per_day: int = 1500,
        min_interval_ms: int = 4000,
        grant_timeout: float = 30.0,
        *,
        clock: Callable[[], float] = time.time,
        sleeper: Sleeper = _sleep,
        poll_interval: float = 0.1,
    ) -> None:
        if max_per_minute < 1 or max_per_day < 1:
            raise ValueError("request ceilings must be at least 1")
        if min_interval_ms < 0:
            raise ValueError("min_interval_ms must not be negative")
        if grant_timeout <= 0:
            raise ValueError("grant_timeout must be positive")

        self.max_per_minute = max_per_minute
        self.max_per_day = max_per_day
        self.min_interval = min_interval_ms / 1000.0
        self.grant_timeout = grant_timeout

        self._clock = clock
        self._sleeper = sleeper
        self._poll_interval = poll_interval

        self._calls: Deque[float] = deque()
        self._last_call: Optional[float] = None
        self._granted = False
        self._granted_at = 0.0
        self._cond = threading.Condition()

    @classmethod
    def from_settings(cls, cfg: RateLimitSettings, **kwargs) -> "RateGovernor":
        return cls(
            max_per_minute=cfg.max_requests_per_minute,
            max_per_day=cfg.max_requests_per_day,
            min_interval_ms=cfg.min_interval_ms,
            grant_timeout=cfg.grant_timeout_sec,
            **kwargs,
        )

    def wait(self, cancel: Optional[threading.Event] = None) -> None:
        """
        Block until one outbound call may be issued.

        The lock is only held while deciding; sleeps happen outside it and
        every constraint is re-checked after waking. Follow up with
        `record_call()` (or `release()` if the call is not sent). A grant
        left open for longer than `grant_timeout` seconds is dropped so a
        caller that died holding it cannot stall everybody else.
        """
        while True:
            with self._cond:
                # a granted caller must record before the next decision
                while self._granted:
                    self._check_cancel(cancel)
                    if time.monotonic() - self._granted_at >= self.grant_timeout:
                        self._expire_grant_locked()
                        break
                    self._cond.wait(self._poll_interval)
                self._check_cancel(cancel)

                now = self._clock()
                delay = self._delay_locked(now)
                if delay <= 0:
                    self._granted = True
                    self._granted_at = time.monotonic()
                    return

            if self._sleeper(delay, cancel):
                raise PermissionCancelled("Cancelled while waiting for rate limit")

    def record_call(self) -> None:
        with self._cond:
            now = self._clock()
            if self._calls and now < self._calls[-1]:
                now = self._calls[-1]
            self._evict(now)
            self._calls.append(now)
            self._last_call = now
            self._granted = False
            rpm, rpd = self._counts_locked(now)
            self._cond.notify_all()

        log.info(
            "API call recorded. Current usage: %s/%s RPM, %s/%s RPD",
            rpm, self.max_per_minute, rpd, self.max_per_day,
            extra={"event": "ai_call_recorded", "rpm": rpm, "rpd": rpd},
        )

    def release(self) -> None:
        with self._cond:
            self._granted = False
            self._cond.notify_all()

    def status(self) -> RateLimitStatus:
        with self._cond:
            now = self._clock()
            self._evict(now)
            rpm, rpd = self._counts_locked(now)
        return RateLimitStatus(
            requests_per_minute=rpm,
            requests_today=rpd,
            max_per_minute=self.max_per_minute,
            max_per_day=self.max_per_day,
        )

    def calls(self) -> Tuple[float, ...]:
        """Snapshot of the recorded call times, oldest first. For inspection only."""
        with self._cond:
            return tuple(self._calls)

    def _expire_grant_locked(self) -> None:
        log.warning(
            "Permission granted %.1f seconds ago was never recorded; dropping it",
            time.monotonic() - self._granted_at,
            extra={"event": "ai_grant_expired"},
        )
        self._granted = False
        self._cond.notify_all()

    def _check_cancel(self, cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            raise PermissionCancelled("Cancelled while waiting for rate limit")

    def _evict(self, now: float) -> None:
        cutoff = now - DAY_SEC
        while self._calls and self._calls[0] < cutoff:
            self._calls.popleft()

    def _counts_locked(self, now: float) -> Tuple[int, int]:
        in_minute = sum(1 for t in self._calls if now - t < MINUTE_SEC)
        return in_minute, len(self._calls)

    def _delay_locked(self, now: float) -> float:
        self._evict(now)

        if len(self._calls) >= self.max_per_day:
            retry_after = self._calls[0] + DAY_SEC - now
            log.warning(
                "Daily API request limit reached (%s requests). No more requests for %.1f hours",
                self.max_per_day, retry_after / 3600.0,
                extra={"event": "ai_daily_limit", "rpd": len(self._calls), "retry_after": retry_after},
            )
            raise QuotaExceeded(self.max_per_day, retry_after)

        in_minute = [t for t in self._calls if now - t < MINUTE_SEC]
        if len(in_minute) >= self.max_per_minute:
            delay = MINUTE_SEC - (now - in_minute[0]) + SAFETY_MARGIN_SEC
            log.info(
                "Rate limit approaching. Waiting %.1f seconds before next request",
                delay,
                extra={"event": "ai_minute_limit", "rpm": len(in_minute), "wait_sec": delay},
            )
            return delay

        if self._last_call is not None:
            since = now - self._last_call
            if since < self.min_interval:
                delay = self.min_interval - since
                log.debug(
                    "Enforcing minimum delay between requests: %.0fms",
                    delay * 1000.0,
                    extra={"event": "ai_min_interval", "wait_sec": delay},
                )
                return delay

        return 0.0
