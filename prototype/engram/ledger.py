"""Activation ledger: sparse node → level mapping with merge-max writes."""
import threading
from types import MappingProxyType

from .config import ACTIVATION_FLOOR


class ActivationLedger:
    """Lock-guarded sparse mapping of node id → activation level in (floor, 1].

    Absence means level 0. Writers go through ``set_if_higher`` and
    ``decay_all``; readers only ever get immutable snapshots.
    """

    def __init__(self, floor=ACTIVATION_FLOOR):
        self.floor = floor
        self._levels = {}
        self._lock = threading.Lock()

    def set_if_higher(self, node_id, level):
        """Install ``level`` unless an equal or higher level is present.
        Returns True if the ledger changed."""
        if not 0.0 <= level <= 1.0:
            raise ValueError(f"activation level must be in [0, 1], got {level}")
        if level <= self.floor:
            return False
        with self._lock:
            current = self._levels.get(node_id)
            if current is not None and current >= level:
                return False
            self._levels[node_id] = level
            return True

    def decay_all(self, factor):
        """Multiply every level by ``factor`` and drop entries at or below the
        floor. Returns whether any entries remain."""
        if not 0.0 < factor <= 1.0:
            raise ValueError(f"decay factor must be in (0, 1], got {factor}")
        with self._lock:
            decayed = {}
            for node_id, level in self._levels.items():
                new_level = level * factor
                if new_level > self.floor:
                    decayed[node_id] = new_level
            # swap whole dict so a reader never sees a half-applied sweep
            self._levels = decayed
            return bool(decayed)

    def snapshot(self):
        with self._lock:
            return MappingProxyType(dict(self._levels))

    def get(self, node_id, default=0.0):
        with self._lock:
            return self._levels.get(node_id, default)

    def total(self):
        with self._lock:
            return sum(self._levels.values())

    def clear(self):
        with self._lock:
            self._levels = {}

    def __contains__(self, node_id):
        with self._lock:
            return node_id in self._levels

    def __len__(self):
        with self._lock:
            return len(self._levels)
