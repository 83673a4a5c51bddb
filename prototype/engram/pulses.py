"""Pulse events: transient ripples emitted on activation arrivals."""
import threading
from dataclasses import dataclass

from .config import PULSE_FADE_RATE, PULSE_GROWTH_RATE


@dataclass(frozen=True)
class Pulse:
    """Write-once ripple at ``origin`` starting at engine time ``start_time``."""
    origin: tuple
    start_time: float

    def elapsed(self, now):
        return max(0.0, now - self.start_time)

    def opacity(self, now):
        return max(0.0, 1.0 - self.elapsed(now) * PULSE_FADE_RATE)

    def radius(self, now):
        return self.elapsed(now) * PULSE_GROWTH_RATE

    def is_expired(self, now):
        return self.opacity(now) <= 0.0


class PulseScheduler:
    """Append-only pulse list with a blanket clear.

    Per-pulse expiry is left to the reader (see ``Pulse.is_expired``); the
    list itself only shrinks through ``clear_all``.
    """

    def __init__(self):
        self._pulses = ()
        self._lock = threading.Lock()

    def emit(self, position, time):
        pulse = Pulse(tuple(position), float(time))
        with self._lock:
            self._pulses = self._pulses + (pulse,)
        return pulse

    def clear_all(self):
        with self._lock:
            self._pulses = ()

    def pulses(self):
        with self._lock:
            return self._pulses

    def visible(self, now):
        return tuple(p for p in self.pulses() if not p.is_expired(now))

    def __len__(self):
        return len(self.pulses())
