"""Virtual-clock task scheduler: heap of (fire_time, seq) → callback."""
import itertools
import logging
import threading
import time
from heapq import heappush, heappop

logger = logging.getLogger("engram.scheduler")


class TaskScheduler:
    """Single-timeline deferred execution over a virtual clock.

    Tasks fire in order of fire time; ties fire in scheduling order. The
    clock jumps to each task's fire time before the task runs, so a task
    that schedules ``call_later(d, ...)`` is anchored at its own fire time.
    All scheduling and execution is serialized by ``self.lock``.
    """

    def __init__(self, start=0.0):
        self.now = float(start)
        self.lock = threading.RLock()
        self._queue = []
        self._seq = itertools.count()

    def call_at(self, when, callback, *args):
        with self.lock:
            if when < self.now:
                raise ValueError(f"cannot schedule in the past: {when} < {self.now}")
            heappush(self._queue, (float(when), next(self._seq), callback, args))

    def call_later(self, delay, callback, *args):
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        with self.lock:
            self.call_at(self.now + delay, callback, *args)

    def pending(self):
        with self.lock:
            return len(self._queue)

    def next_fire_time(self):
        with self.lock:
            return self._queue[0][0] if self._queue else None

    def clear(self):
        with self.lock:
            self._queue = []

    def advance_to(self, when):
        """Fire every task due at or before ``when``; returns the count."""
        fired = 0
        with self.lock:
            while self._queue and self._queue[0][0] <= when:
                fire_time, _, callback, args = heappop(self._queue)
                self.now = fire_time
                callback(*args)
                fired += 1
            if when > self.now:
                self.now = float(when)
        return fired

    def advance(self, dt):
        if dt < 0:
            raise ValueError(f"cannot advance by a negative interval: {dt}")
        with self.lock:
            return self.advance_to(self.now + dt)

    def run_until_idle(self, limit=None):
        """Fire tasks until the queue is empty (or the clock passes ``limit``)."""
        fired = 0
        with self.lock:
            while self._queue:
                fire_time = self._queue[0][0]
                if limit is not None and fire_time > limit:
                    break
                fired += self.advance_to(fire_time)
        return fired


class RealtimeDriver:
    """Background thread that advances a scheduler by wall-clock time.

    One wall-clock millisecond advances ``speed`` engine units.
    """

    def __init__(self, scheduler, speed=1.0, interval=1 / 60):
        self.scheduler = scheduler
        self.speed = speed
        self.interval = interval
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="engram-driver", daemon=True)
        self._thread.start()
        logger.info("Realtime driver started (speed=%.2f)", self.speed)

    def stop(self, timeout=1.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Realtime driver did not stop within %.1fs", timeout)
                return
            self._thread = None
        logger.info("Realtime driver stopped at t=%.1f", self.scheduler.now)

    def _loop(self):
        # Wall-clock deltas only; reset() or run() may move the clock between ticks
        t_last = time.monotonic()
        while not self._stop.wait(self.interval):
            t_wall = time.monotonic()
            delta_ms = (t_wall - t_last) * 1000.0
            t_last = t_wall
            try:
                self.scheduler.advance(delta_ms * self.speed)
            except Exception:
                logger.exception("Realtime driver stopped at t=%.1f: task failed",
                                 self.scheduler.now)
                return
