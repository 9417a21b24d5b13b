"""
pacer: wrappers that control when and how often a callback runs.

- debounce: delay a callback until calls stop arriving for a quiet period
- throttle: run a callback at most once per interval, with cancel()
- curry: collect arguments across a chain of calls
- memoize: cache results by a key derived from the arguments

Supporting modules:

- scheduler: schedule/cancel capability (threading, asyncio, virtual time)
- config: settings via pydantic-settings
- logging: structured logging via structlog
- errors: library exception types
- metrics: Prometheus counters
"""

from pacer.curry import Curried, curry
from pacer.debounce import Debounced, debounce, debounced
from pacer.memoize import Memoized, default_key, memoize, memoized
from pacer.scheduler import (
    AsyncioScheduler,
    ScheduledHandle,
    Scheduler,
    ThreadingScheduler,
    VirtualScheduler,
    get_default_scheduler,
    set_default_scheduler,
)
from pacer.throttle import Throttled, throttle, throttled

__version__ = "1.0.0"

__all__ = [
    "AsyncioScheduler",
    "Curried",
    "Debounced",
    "Memoized",
    "ScheduledHandle",
    "Scheduler",
    "ThreadingScheduler",
    "Throttled",
    "VirtualScheduler",
    "curry",
    "debounce",
    "debounced",
    "default_key",
    "get_default_scheduler",
    "memoize",
    "memoized",
    "set_default_scheduler",
    "throttle",
    "throttled",
]
