"""
Throttle: run a callback at most once per interval, delivering the latest
call at the end of the interval.
"""

import functools
from typing import Any, Callable, Optional

from pacer.base import ScheduledWrapper
from pacer.errors import require_delay
from pacer.metrics import MetricsCollector
from pacer.scheduler import Scheduler


class Throttled(ScheduledWrapper):
    """Callable returned by throttle(); see throttle() for the timing rules."""

    kind = "throttle"

    def __init__(self, callback: Callable[..., Any], delay: float, *,
                 scheduler: Optional[Scheduler] = None,
                 name: Optional[str] = None,
                 metrics: Optional[MetricsCollector] = None):
        super().__init__(callback, require_delay(delay), scheduler=scheduler, name=name, metrics=metrics)
        self._last_invoked_at: Optional[float] = None

    @property
    def last_invoked_at(self) -> Optional[float]:
        """Scheduler time of the last invocation, or None before the first one."""
        return self._last_invoked_at

    def remaining(self, now: Optional[float] = None) -> float:
        """Time left until the callback may run again; zero or less means now."""
        if self._last_invoked_at is None:
            return float("-inf")
        if now is None:
            now = self.scheduler.now()
        return self.delay - (now - self._last_invoked_at)

    def __call__(self, *args, **kwargs) -> None:
        with self._lock:
            now = self.scheduler.now()
            remaining = self.remaining(now)
            self._cancel_pending()
            if remaining <= 0:
                self._last_invoked_at = now
            else:
                self._schedule(functools.partial(self._trailing, args, kwargs), remaining)

        if remaining <= 0:
            self._invoke("leading", args, kwargs)
            return

        self.logger.debug("Call throttled", remaining=remaining)
        if self.metrics:
            self.metrics.record_suppressed(self.name, self.kind)

    def _trailing(self, args, kwargs) -> None:
        with self._lock:
            self._last_invoked_at = self.scheduler.now()
        self._invoke("trailing", args, kwargs)

    def cancel(self) -> None:
        """Drop the pending deferred call, if any. last_invoked_at is kept."""
        with self._lock:
            cancelled = self._cancel_pending()
        if cancelled:
            self.logger.debug("Pending call cancelled")


def throttle(callback: Callable[..., Any], delay: float, *,
             scheduler: Optional[Scheduler] = None,
             name: Optional[str] = None,
             metrics: Optional[MetricsCollector] = None) -> Throttled:
    """Wrap callback so it runs at most once per delay time units.

    The first call runs immediately. A call made before delay has elapsed
    since the last run is deferred to the end of the interval, replacing
    any call already deferred, so only the latest arguments are delivered.
    """
    return Throttled(callback, delay, scheduler=scheduler, name=name, metrics=metrics)


def throttled(delay: float, **options) -> Callable[[Callable[..., Any]], Throttled]:
    """Decorator form of throttle()."""

    def decorator(func: Callable[..., Any]) -> Throttled:
        return throttle(func, delay, **options)

    return decorator
