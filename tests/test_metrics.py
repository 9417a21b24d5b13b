"""
Unit tests for wrapper metrics.
"""

import pytest
from prometheus_client import CollectorRegistry

from pacer import VirtualScheduler, debounce, memoize, throttle
from pacer.config import reset_settings
from pacer.metrics import get_default_metrics, get_metrics_collector


class TestMetricsCollector:
    """Test cases for MetricsCollector."""

    @pytest.fixture
    def registry(self):
        """Create an isolated registry."""
        return CollectorRegistry()

    @pytest.fixture
    def metrics(self, registry):
        """Create a collector bound to the isolated registry."""
        return get_metrics_collector("pacer", registry)

    def test_debounce_counters(self, registry, metrics):
        """Test debounce records suppressed calls, cancellations and invocations."""
        scheduler = VirtualScheduler()
        wrapper = debounce(lambda: None, 10, scheduler=scheduler, name="save", metrics=metrics)

        wrapper()
        wrapper()
        wrapper()
        scheduler.advance(10)

        labels = {"wrapper": "save", "kind": "debounce"}
        assert registry.get_sample_value("pacer_suppressed_calls_total", labels) == 3
        assert registry.get_sample_value("pacer_cancellations_total", labels) == 2
        assert registry.get_sample_value(
            "pacer_invocations_total", {**labels, "edge": "trailing"}
        ) == 1

    def test_throttle_counters(self, registry, metrics):
        """Test throttle records leading and trailing invocations."""
        scheduler = VirtualScheduler()
        wrapper = throttle(lambda x: None, 10, scheduler=scheduler, name="poll", metrics=metrics)

        wrapper(1)
        wrapper(2)
        scheduler.advance(10)

        labels = {"wrapper": "poll", "kind": "throttle"}
        assert registry.get_sample_value("pacer_invocations_total", {**labels, "edge": "leading"}) == 1
        assert registry.get_sample_value("pacer_invocations_total", {**labels, "edge": "trailing"}) == 1

    def test_cache_counters(self, registry, metrics):
        """Test memoize records hits and misses."""
        wrapper = memoize(lambda x: x, name="square", metrics=metrics)

        wrapper(1)
        wrapper(1)
        wrapper(2)

        assert registry.get_sample_value("pacer_cache_hits_total", {"wrapper": "square"}) == 1
        assert registry.get_sample_value("pacer_cache_misses_total", {"wrapper": "square"}) == 2


class TestDefaultMetrics:
    """Test cases for the process-wide collector."""

    def test_disabled_by_default(self, monkeypatch):
        """Test no collector is used unless metrics are enabled."""
        monkeypatch.delenv("PACER_METRICS_ENABLED", raising=False)
        reset_settings()

        try:
            assert get_default_metrics() is None
            assert memoize(lambda: 1).metrics is None
        finally:
            reset_settings()
