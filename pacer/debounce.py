"""
Debounce: delay a callback until calls stop arriving for a quiet period.
"""

import functools
from typing import Any, Callable, Optional

from pacer.base import ScheduledWrapper
from pacer.errors import require_delay
from pacer.metrics import MetricsCollector
from pacer.scheduler import Scheduler


class Debounced(ScheduledWrapper):
    """Callable returned by debounce().

    Every call cancels the pending schedule and starts a new quiet period of
    ``delay``. With ``immediate`` false the callback fires once, at the end of
    the quiet period, with the arguments of the last call. With ``immediate``
    true it fires synchronously on the first call of a burst and the end of
    the quiet period only re-arms the leading edge.
    """

    kind = "debounce"

    def __init__(self, callback: Callable[..., Any], delay: float, immediate: bool = False, *,
                 scheduler: Optional[Scheduler] = None,
                 name: Optional[str] = None,
                 metrics: Optional[MetricsCollector] = None):
        super().__init__(callback, require_delay(delay), scheduler=scheduler, name=name, metrics=metrics)
        self.immediate = bool(immediate)

    def __call__(self, *args, **kwargs) -> None:
        with self._lock:
            superseded = self._cancel_pending()
            leading = self.immediate and not superseded
            self._schedule(functools.partial(self._quiet, args, kwargs), self.delay)

        if superseded:
            self.logger.debug("Superseded pending call", delay=self.delay)

        if leading:
            self._invoke("leading", args, kwargs)
        elif self.metrics:
            self.metrics.record_suppressed(self.name, self.kind)

    def _quiet(self, args, kwargs) -> None:
        if self.immediate:
            self.logger.debug("Quiet period elapsed, leading edge re-armed")
            return
        self.logger.debug("Quiet period elapsed, invoking callback")
        self._invoke("trailing", args, kwargs)


def debounce(callback: Callable[..., Any], delay: float, immediate: bool = False, *,
             scheduler: Optional[Scheduler] = None,
             name: Optional[str] = None,
             metrics: Optional[MetricsCollector] = None) -> Debounced:
    """Wrap callback so it only runs once calls stop arriving for delay time units."""
    return Debounced(callback, delay, immediate, scheduler=scheduler, name=name, metrics=metrics)


def debounced(delay: float, immediate: bool = False, **options) -> Callable[[Callable[..., Any]], Debounced]:
    """Decorator form of debounce()."""

    def decorator(func: Callable[..., Any]) -> Debounced:
        return debounce(func, delay, immediate, **options)

    return decorator
