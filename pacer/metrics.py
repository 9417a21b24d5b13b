"""
Prometheus metrics for pacer wrappers.
"""

import threading
from typing import Dict, Any, Optional

from prometheus_client import Counter, CollectorRegistry, REGISTRY

from pacer.config import get_settings


class MetricsCollector:
    """Counters shared by every wrapper that is handed this collector."""

    def __init__(self, namespace: str = "pacer", registry: Optional[CollectorRegistry] = None):
        self.namespace = namespace
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up wrapper metrics."""
        self._metrics["invocations_total"] = Counter(
            "invocations_total",
            "Total callback invocations",
            ["wrapper", "kind", "edge"],
            namespace=self.namespace,
            registry=self.registry
        )

        self._metrics["suppressed_calls_total"] = Counter(
            "suppressed_calls_total",
            "Total wrapper calls that did not invoke the callback immediately",
            ["wrapper", "kind"],
            namespace=self.namespace,
            registry=self.registry
        )

        self._metrics["cancellations_total"] = Counter(
            "cancellations_total",
            "Total pending schedules cancelled",
            ["wrapper", "kind"],
            namespace=self.namespace,
            registry=self.registry
        )

        self._metrics["cache_hits_total"] = Counter(
            "cache_hits_total",
            "Total memoize cache hits",
            ["wrapper"],
            namespace=self.namespace,
            registry=self.registry
        )

        self._metrics["cache_misses_total"] = Counter(
            "cache_misses_total",
            "Total memoize cache misses",
            ["wrapper"],
            namespace=self.namespace,
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def record_invocation(self, wrapper: str, kind: str, edge: str):
        """Record a callback invocation on the leading or trailing edge."""
        self.increment_counter("invocations_total", wrapper=wrapper, kind=kind, edge=edge)

    def record_suppressed(self, wrapper: str, kind: str):
        """Record a call that was deferred or swallowed."""
        self.increment_counter("suppressed_calls_total", wrapper=wrapper, kind=kind)

    def record_cancellation(self, wrapper: str, kind: str):
        """Record a pending schedule being cancelled."""
        self.increment_counter("cancellations_total", wrapper=wrapper, kind=kind)

    def record_cache_lookup(self, wrapper: str, hit: bool):
        """Record a memoize lookup."""
        self.increment_counter("cache_hits_total" if hit else "cache_misses_total", wrapper=wrapper)


_default_collector: Optional[MetricsCollector] = None
_default_lock = threading.Lock()


def get_metrics_collector(namespace: str = "pacer", registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Create a metrics collector."""
    return MetricsCollector(namespace, registry)


def get_default_metrics() -> Optional[MetricsCollector]:
    """Process-wide collector, or None unless PACER_METRICS_ENABLED is set."""
    global _default_collector

    settings = get_settings()
    if not settings.metrics_enabled:
        return None

    with _default_lock:
        if _default_collector is None:
            # Default registry, so prometheus_client exposition picks it up
            _default_collector = MetricsCollector(settings.metrics_namespace, REGISTRY)
        return _default_collector
