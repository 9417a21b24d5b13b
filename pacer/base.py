"""
Common plumbing for the callable wrappers.
"""

import functools
import threading
from typing import Any, Callable, Optional

from pacer.errors import require_callable
from pacer.logging import get_logger
from pacer.metrics import MetricsCollector, get_default_metrics
from pacer.scheduler import ScheduledHandle, Scheduler, get_default_scheduler


class BoundWrapper:
    """A wrapper looked up through an instance.

    Calls are forwarded with the instance as the first argument; every
    other attribute (cancel, pending, has, ...) is the wrapper's own.
    """

    def __init__(self, wrapper: "BaseWrapper", instance: Any):
        self.wrapper = wrapper
        self.instance = instance

    def __call__(self, *args, **kwargs) -> Any:
        return self.wrapper(self.instance, *args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        if name in ("wrapper", "instance"):
            raise AttributeError(name)
        return getattr(self.wrapper, name)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoundWrapper):
            return NotImplemented
        return self.wrapper is other.wrapper and self.instance is other.instance

    def __hash__(self) -> int:
        return hash((id(self.wrapper), id(self.instance)))

    def __repr__(self) -> str:
        return f"<bound {self.wrapper!r} of {self.instance!r}>"


class BaseWrapper:
    """Callable wrapper around a callback with per-instance state.

    The receiver is explicit: whatever the wrapper is called with, including a
    leading ``self`` when the wrapper sits on a class and is looked up
    through an instance, is forwarded to the callback unchanged. State lives
    on the wrapper and is shared by every receiver.
    """

    kind = "wrapper"
    _bound_class = BoundWrapper

    def __init__(self, callback: Callable[..., Any], *,
                 name: Optional[str] = None,
                 metrics: Optional[MetricsCollector] = None):
        require_callable(callback, "callback")
        self.callback = callback
        self.name = name or getattr(callback, "__qualname__", None) or type(callback).__name__
        self.metrics = metrics if metrics is not None else get_default_metrics()
        self.logger = get_logger(f"pacer.{self.kind}", wrapper=self.name)
        # Guards state swaps when a backend fires actions on other threads.
        self._lock = threading.RLock()
        functools.update_wrapper(self, callback, updated=())

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return self._bound_class(self, instance)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class ScheduledWrapper(BaseWrapper):
    """Wrapper owning at most one pending scheduled action."""

    def __init__(self, callback: Callable[..., Any], delay: float, *,
                 scheduler: Optional[Scheduler] = None,
                 name: Optional[str] = None,
                 metrics: Optional[MetricsCollector] = None):
        super().__init__(callback, name=name, metrics=metrics)
        self.delay = delay
        self.scheduler = scheduler if scheduler is not None else get_default_scheduler()
        self._handle: Optional[ScheduledHandle] = None

    @property
    def pending(self) -> bool:
        """True while a deferred invocation is waiting to fire."""
        handle = self._handle
        return handle is not None and handle.pending

    def _cancel_pending(self) -> bool:
        """Cancel the pending schedule, if any. Caller holds the lock."""
        handle, self._handle = self._handle, None
        if handle is None or not handle.pending:
            return False
        self.scheduler.cancel(handle)
        if self.metrics:
            self.metrics.record_cancellation(self.name, self.kind)
        return True

    def _schedule(self, action: Callable[[], None], delay: float) -> ScheduledHandle:
        """Make action the single pending schedule. Caller holds the lock.

        When the schedule fires it first clears the slot, then runs action
        outside the lock. A firing that was superseded or cancelled after its
        timer woke up does nothing.
        """
        handle: Optional[ScheduledHandle] = None

        def fire():
            with self._lock:
                if handle is None or self._handle is not handle:
                    return
                self._handle = None
            action()

        handle = self.scheduler.schedule(fire, delay)
        self._handle = handle
        return handle

    def _invoke(self, edge: str, args, kwargs) -> Any:
        if self.metrics:
            self.metrics.record_invocation(self.name, self.kind, edge)
        return self.callback(*args, **kwargs)
