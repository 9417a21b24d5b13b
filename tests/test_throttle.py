"""
Unit tests for throttle.
"""

import pytest

from pacer import VirtualScheduler, throttle, throttled
from pacer.test_helpers import CallRecorder


class TestThrottle:
    """Test cases for throttle timing."""

    @pytest.fixture
    def scheduler(self):
        """Create a virtual-time scheduler."""
        return VirtualScheduler()

    @pytest.fixture
    def recorder(self, scheduler):
        """Create a callback recorder."""
        return CallRecorder(scheduler)

    def test_first_call_runs_immediately(self, scheduler, recorder):
        """Test the first call is never throttled."""
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        wrapper("x")

        assert recorder.times == [0]
        assert wrapper.last_invoked_at == 0

    def test_first_call_at_nonzero_clock(self, recorder):
        """Test the first call runs immediately whatever the clock reads."""
        scheduler = VirtualScheduler(start=5)
        recorder.scheduler = scheduler
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        wrapper()

        assert recorder.times == [5]

    def test_window_delivers_latest_args(self, scheduler, recorder):
        """Test calls at t=0,10,20,100 with delay=50 fire at t=0, 50 and 100."""
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        wrapper(0)
        scheduler.advance_to(10)
        wrapper(10)
        scheduler.advance_to(20)
        wrapper(20)
        scheduler.advance_to(100)
        wrapper(100)
        scheduler.advance_to(1000)

        assert recorder.times == [0, 50, 100]
        assert recorder.args == [(0,), (20,), (100,)]

    def test_deferred_fire_updates_last_invoked_at(self, scheduler, recorder):
        """Test a deferred run restarts the interval from its firing time."""
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        wrapper(1)
        scheduler.advance_to(30)
        wrapper(2)
        scheduler.advance_to(50)
        assert wrapper.last_invoked_at == 50

        scheduler.advance_to(60)
        wrapper(3)  # 10 after the deferred run, so deferred to t=100
        assert recorder.count == 2

        scheduler.advance_to(100)
        assert recorder.times == [0, 50, 100]

    def test_single_pending_schedule(self, scheduler, recorder):
        """Test throttled calls in a window share one pending schedule."""
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        wrapper()
        for _ in range(5):
            wrapper()

        assert scheduler.pending_count == 1
        assert wrapper.pending is True

    def test_immediate_exception_propagates(self, scheduler):
        """Test a failing callback raises to the caller on the immediate path."""
        recorder = CallRecorder(scheduler, error=KeyError("k"))
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        with pytest.raises(KeyError):
            wrapper()

    def test_zero_delay_always_immediate(self, scheduler, recorder):
        """Test delay=0 never defers."""
        wrapper = throttle(recorder, 0, scheduler=scheduler)

        wrapper(1)
        wrapper(2)

        assert recorder.args == [(1,), (2,)]
        assert scheduler.pending_count == 0


class TestThrottleCancel:
    """Test cases for Throttled.cancel()."""

    @pytest.fixture
    def scheduler(self):
        """Create a virtual-time scheduler."""
        return VirtualScheduler()

    @pytest.fixture
    def recorder(self, scheduler):
        """Create a callback recorder."""
        return CallRecorder(scheduler)

    def test_cancel_prevents_deferred_fire(self, scheduler, recorder):
        """Test cancel() before t=50 drops the call deferred at t=10."""
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        wrapper(0)
        scheduler.advance_to(10)
        wrapper(10)
        scheduler.advance_to(40)
        wrapper.cancel()
        scheduler.advance_to(1000)

        assert recorder.times == [0]
        assert wrapper.pending is False

    def test_cancel_keeps_last_invoked_at(self, scheduler, recorder):
        """Test cancel() does not reopen the window."""
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        wrapper(0)
        scheduler.advance_to(10)
        wrapper(10)
        wrapper.cancel()
        assert wrapper.last_invoked_at == 0

        scheduler.advance_to(20)
        wrapper(20)
        assert recorder.count == 1

        scheduler.advance_to(50)
        assert recorder.args == [(0,), (20,)]

    def test_cancel_without_pending_is_noop(self, scheduler, recorder):
        """Test cancel() with nothing pending does nothing."""
        wrapper = throttle(recorder, 50, scheduler=scheduler)

        wrapper.cancel()
        wrapper(1)
        wrapper.cancel()
        wrapper.cancel()

        assert recorder.count == 1
        assert wrapper.last_invoked_at == 0


class TestThrottleDecorator:
    """Test cases for the throttled decorator."""

    def test_decorated_method(self):
        """Test a throttled method forwards its instance."""
        scheduler = VirtualScheduler()

        class Sensor:
            def __init__(self):
                self.readings = []

            @throttled(10, scheduler=scheduler)
            def report(self, value):
                self.readings.append(value)

        sensor = Sensor()
        sensor.report(1)
        sensor.report(2)
        sensor.report(3)
        scheduler.advance(10)

        assert sensor.readings == [1, 3]
        assert Sensor.report.pending is False

    def test_bound_method_exposes_cancel(self):
        """Test cancel(), pending and last_invoked_at are reachable through the instance."""
        scheduler = VirtualScheduler()

        class Sensor:
            def __init__(self):
                self.readings = []

            @throttled(50, scheduler=scheduler)
            def report(self, value):
                self.readings.append(value)

        sensor = Sensor()
        sensor.report(1)
        sensor.report(2)
        assert sensor.report.pending is True

        sensor.report.cancel()
        scheduler.advance(100)

        assert sensor.readings == [1]
        assert sensor.report.pending is False
        assert sensor.report.last_invoked_at == 0
        assert sensor.report.__name__ == "report"
