"""
Scheduling backends for the timing wrappers.

A Scheduler provides a monotonic clock, "run this action after N time units"
returning a cancellable handle, and cancellation of such a handle. The
wrappers never touch a platform timer directly, so tests can drive them with
VirtualScheduler and advance time by hand.
"""

import asyncio
import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from pacer.config import get_settings
from pacer.errors import SchedulerError, ValidationError, require_callable, require_delay
from pacer.logging import get_logger


Action = Callable[[], None]


class ScheduledHandle:
    """A pending action together with the means to cancel it."""

    def __init__(self, action: Action, deadline: float):
        self.action = action
        self.deadline = deadline
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def pending(self) -> bool:
        """True until the action has fired or been cancelled."""
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        """Cancel the action. No-op if it already fired or was cancelled."""
        if self.pending:
            self._cancelled = True
            self._on_cancel()

    def _on_cancel(self) -> None:
        """Backend hook to release the underlying timer."""

    def _run(self) -> None:
        if not self.pending:
            return
        self._fired = True
        self.action()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "fired" if self._fired else "pending"
        return f"<{type(self).__name__} deadline={self.deadline!r} {state}>"


class Scheduler(ABC):
    """Schedule/cancel capability injected into debounce and throttle."""

    @abstractmethod
    def now(self) -> float:
        """Current time of this scheduler's clock."""

    @abstractmethod
    def schedule(self, action: Action, delay: float) -> ScheduledHandle:
        """Run action once after delay time units."""

    def cancel(self, handle: Optional[ScheduledHandle]) -> None:
        """Cancel a previously scheduled action; safe on None or a spent handle."""
        if handle is not None:
            handle.cancel()


class _TimerHandle(ScheduledHandle):

    def __init__(self, action: Action, deadline: float, delay: float):
        super().__init__(action, deadline)
        # Timer threads check the handle state, so a cancel() that loses the
        # race with the wakeup still prevents the action from running.
        self._lock = threading.Lock()
        self.timer = threading.Timer(delay, self._run)
        self.timer.daemon = True

    def cancel(self) -> None:
        with self._lock:
            super().cancel()

    def _on_cancel(self) -> None:
        self.timer.cancel()

    def _run(self) -> None:
        with self._lock:
            if not self.pending:
                return
            self._fired = True
        self.action()


class ThreadingScheduler(Scheduler):
    """Wall-clock scheduler running each action on a daemon timer thread."""

    def now(self) -> float:
        return time.monotonic()

    def schedule(self, action: Action, delay: float) -> ScheduledHandle:
        require_callable(action, "action")
        delay = require_delay(delay)
        handle = _TimerHandle(action, self.now() + delay, delay)
        handle.timer.start()
        return handle


class _LoopHandle(ScheduledHandle):

    def __init__(self, action: Action, deadline: float):
        super().__init__(action, deadline)
        self.timer_handle: Optional[asyncio.TimerHandle] = None

    def _on_cancel(self) -> None:
        if self.timer_handle is not None:
            self.timer_handle.cancel()


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop's call_later.

    Must be used from the loop's own thread. When no loop is given, the
    running loop at scheduling time is used.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def schedule(self, action: Action, delay: float) -> ScheduledHandle:
        require_callable(action, "action")
        delay = require_delay(delay)
        loop = self.loop
        handle = _LoopHandle(action, loop.time() + delay)
        handle.timer_handle = loop.call_later(delay, handle._run)
        return handle


class VirtualScheduler(Scheduler):
    """Deterministic scheduler over virtual time.

    Nothing runs until the clock is moved with advance(), advance_to() or
    run_all(). Actions due at the same deadline fire in scheduling order,
    and the clock reads each action's deadline while it runs.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: List[Tuple[float, int, ScheduledHandle]] = []
        self._sequence = itertools.count()
        self.logger = get_logger("pacer.scheduler.virtual")

    def now(self) -> float:
        return self._now

    def schedule(self, action: Action, delay: float) -> ScheduledHandle:
        require_callable(action, "action")
        delay = require_delay(delay)
        handle = ScheduledHandle(action, self._now + delay)
        heapq.heappush(self._queue, (handle.deadline, next(self._sequence), handle))
        return handle

    @property
    def pending_count(self) -> int:
        """Number of actions that are still waiting to fire."""
        return sum(1 for _, _, handle in self._queue if handle.pending)

    def advance(self, delta: float) -> int:
        """Move the clock forward by delta, firing every action that falls due."""
        if delta < 0:
            raise ValidationError(
                "Virtual time cannot move backwards",
                details={"delta": delta}
            )
        return self.advance_to(self._now + delta)

    def advance_to(self, target: float) -> int:
        """Move the clock to target, firing due actions in order. Returns the number fired."""
        if target < self._now:
            raise ValidationError(
                "Virtual time cannot move backwards",
                details={"now": self._now, "target": target}
            )

        fired = 0
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle = heapq.heappop(self._queue)
            if not handle.pending:
                continue
            self._now = deadline
            handle._run()
            fired += 1

        self._now = float(target)
        if fired:
            self.logger.debug("Virtual time advanced", now=self._now, fired=fired)
        return fired

    def run_all(self) -> int:
        """Fire every pending action, including ones scheduled while running."""
        fired = 0
        while self._queue:
            deadline = self._queue[0][0]
            fired += self.advance_to(max(deadline, self._now))
        return fired


_default_scheduler: Optional[Scheduler] = None
_default_lock = threading.Lock()


def create_scheduler(backend: str) -> Scheduler:
    """Build a scheduler by backend name."""
    if backend == "threading":
        return ThreadingScheduler()
    if backend == "asyncio":
        return AsyncioScheduler()
    raise SchedulerError(
        f"Unknown scheduler backend '{backend}'",
        details={"backend": backend, "supported": ["threading", "asyncio"]}
    )


def get_default_scheduler() -> Scheduler:
    """Process-wide scheduler chosen by PACER_SCHEDULER."""
    global _default_scheduler
    with _default_lock:
        if _default_scheduler is None:
            _default_scheduler = create_scheduler(get_settings().scheduler)
        return _default_scheduler


def set_default_scheduler(scheduler: Optional[Scheduler]) -> None:
    """Replace the process-wide scheduler; None rebuilds it from settings on next use."""
    global _default_scheduler
    with _default_lock:
        _default_scheduler = scheduler
