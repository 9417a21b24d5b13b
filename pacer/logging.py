"""
Structured logging for pacer.
"""

import sys
import structlog
import logging
from typing import Any, Dict, Optional

from pacer.config import get_settings


# Library default: stay silent until the host application configures logging.
logging.getLogger("pacer").addHandler(logging.NullHandler())

_HANDLER_NAME = "pacer.stdout"


def configure_logging(log_level: Optional[str] = None) -> None:
    """Emit pacer's log events as JSON lines on stdout.

    Only the ``pacer`` logger hierarchy is touched; the level defaults to
    PACER_LOG_LEVEL. Calling this again replaces the level, not the handler.
    """
    if log_level is None:
        log_level = get_settings().log_level

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_component_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger("pacer")
    if not any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))


def add_component_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the combinator kind (debounce, throttle, ...) to log events."""
    # pacer.<kind>
    logger_name = event_dict.get("logger", "")
    parts = logger_name.split(".")
    if len(parts) > 1 and parts[0] == "pacer":
        event_dict["component"] = parts[1]

    return event_dict


def get_logger(name: str, **initial_values: Any) -> structlog.BoundLogger:
    """Get a structured logger backed by the stdlib logger of the same name.

    ``initial_values`` are bound into every event, so per-instance detail
    goes there rather than into the logger name.
    """
    return structlog.wrap_logger(logging.getLogger(name), **initial_values)
