"""Tests for the virtual-clock task scheduler and realtime driver."""

import logging
import threading
import time

import pytest

from engram import EngramSimulator
from engram.scheduler import TaskScheduler, RealtimeDriver


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate() and time.monotonic() < deadline:
        time.sleep(0.01)
    return predicate()


class TestOrdering:

    def test_fires_by_time(self):
        s = TaskScheduler()
        fired = []
        s.call_later(300, fired.append, "c")
        s.call_later(100, fired.append, "a")
        s.call_later(200, fired.append, "b")
        assert s.advance(300) == 3
        assert fired == ["a", "b", "c"]

    def test_ties_fire_in_scheduling_order(self):
        s = TaskScheduler()
        fired = []
        for name in "xyz":
            s.call_at(50, fired.append, name)
        s.advance_to(50)
        assert fired == ["x", "y", "z"]

    def test_clock_jumps_to_fire_time(self):
        s = TaskScheduler()
        seen = []
        s.call_later(120, lambda: seen.append(s.now))
        s.advance(500)
        assert seen == [120.0]
        assert s.now == 500.0

    def test_nested_call_later_is_anchored_at_fire_time(self):
        s = TaskScheduler()
        seen = []

        def parent():
            s.call_later(400, lambda: seen.append(s.now))

        s.call_later(400, parent)
        s.advance(799)
        assert seen == []
        s.advance(1)
        assert seen == [800.0]

    def test_not_due_tasks_stay_queued(self):
        s = TaskScheduler()
        s.call_later(100, lambda: None)
        s.call_later(1000, lambda: None)
        s.advance(500)
        assert s.pending() == 1
        assert s.next_fire_time() == 1000.0


class TestRunUntilIdle:

    def test_drains_chain(self):
        s = TaskScheduler()
        count = []

        def tick():
            count.append(s.now)
            if len(count) < 5:
                s.call_later(100, tick)

        s.call_later(100, tick)
        s.run_until_idle()
        assert count == [100.0, 200.0, 300.0, 400.0, 500.0]
        assert s.pending() == 0
        assert s.next_fire_time() is None

    def test_limit(self):
        s = TaskScheduler()
        s.call_later(100, lambda: None)
        s.call_later(900, lambda: None)
        assert s.run_until_idle(limit=500) == 1
        assert s.pending() == 1


class TestErrors:

    def test_negative_delay(self):
        with pytest.raises(ValueError):
            TaskScheduler().call_later(-1, lambda: None)

    def test_past_time(self):
        s = TaskScheduler(start=100)
        with pytest.raises(ValueError):
            s.call_at(50, lambda: None)

    def test_negative_advance(self):
        with pytest.raises(ValueError):
            TaskScheduler().advance(-5)

    def test_clear(self):
        s = TaskScheduler()
        s.call_later(10, lambda: None)
        s.clear()
        assert s.pending() == 0


class TestRealtimeDriver:

    def test_advances_with_wall_clock(self):
        s = TaskScheduler()
        fired = []
        s.call_later(400, fired.append, True)
        driver = RealtimeDriver(s, speed=100.0, interval=0.005)
        driver.start()
        try:
            deadline = time.monotonic() + 2.0
            while not fired and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            driver.stop()
        assert fired == [True]
        assert not driver.running

    def test_reset_while_running_restarts_clock(self, store):
        sim = EngramSimulator(store)
        sim.run(5000)
        driver = RealtimeDriver(sim.scheduler, speed=1.0, interval=0.005)
        driver.start()
        try:
            time.sleep(0.02)
            sim.reset()
            time.sleep(0.05)
            assert sim.now < 1000
        finally:
            driver.stop()

    def test_manual_advance_while_running(self):
        s = TaskScheduler()
        driver = RealtimeDriver(s, speed=100.0, interval=0.005)
        driver.start()
        try:
            s.advance(100000)
            assert _wait_for(lambda: s.now > 100000)
        finally:
            driver.stop()

    def test_failing_task_is_logged(self, caplog):
        s = TaskScheduler()

        def boom():
            raise RuntimeError("boom")

        s.call_later(10, boom)
        driver = RealtimeDriver(s, speed=100.0, interval=0.005)
        with caplog.at_level(logging.ERROR, logger="engram.scheduler"):
            driver.start()
            assert _wait_for(lambda: not driver.running)
        assert "task failed" in caplog.text
        assert "RuntimeError" in caplog.text
        driver.stop()

    def test_no_second_thread_while_first_is_alive(self):
        s = TaskScheduler()
        release = threading.Event()
        entered = threading.Event()

        def block():
            entered.set()
            release.wait(2.0)

        s.call_later(10, block)
        driver = RealtimeDriver(s, speed=100.0, interval=0.005)
        driver.start()
        try:
            assert entered.wait(2.0)
            first = driver._thread
            driver.stop(timeout=0.05)
            assert driver.running
            driver.start()
            assert driver._thread is first
        finally:
            release.set()
            driver.stop()
        assert not driver.running
