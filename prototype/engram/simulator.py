"""EngramSimulator — spreading-activation diffusion engine."""
import logging
import numbers
from collections import deque
from dataclasses import dataclass
from typing import Optional

from .config import (
    SEED_LEVEL, HOP_ATTENUATION, MAX_DEPTH, MIN_STRENGTH, HOP_DELAY,
    COMPOUNDING_DELAY, PULSE_THRESHOLD,
    DECAY_FACTOR, DECAY_INTERVAL, ACTIVATION_FLOOR,
    PULSE_CLEAR_DELAY, ACTIVE_THRESHOLD,
)
from .ledger import ActivationLedger
from .pulses import PulseScheduler
from .scheduler import TaskScheduler

logger = logging.getLogger("engram.simulator")


@dataclass(frozen=True)
class PropagationTask:
    """Deferred expansion of ``source`` with incoming ``strength``.
    ``origin_time`` is the activate() time of the wave it belongs to."""
    source: int
    strength: float
    depth: int
    origin_time: float = 0.0


@dataclass(frozen=True)
class Transfer:
    """One applied hop: ``target`` offered ``strength`` from ``source``.
    Seeds are recorded with ``source=None`` and ``depth=0``."""
    time: float
    source: Optional[int]
    target: int
    strength: float
    depth: int
    accepted: bool


class EngramSimulator:
    """Spreading activation over a static engram graph.

    ``activate(node_id)`` seeds the node at full activation and sends an
    attenuated wave through its neighbors, one hop per scheduled expansion.
    A single decay loop erodes every level until the ledger is empty.
    Waves are never cancelled; overlapping waves merge through the ledger's
    merge-max rule.
    """

    def __init__(self, store, scheduler=None, max_records=None):
        self.store = store
        self.scheduler = scheduler or TaskScheduler()
        self.ledger = ActivationLedger(floor=ACTIVATION_FLOOR)
        self.pulses = PulseScheduler()
        self._decay_running = False

        # Run records; max_records bounds both for long interactive sessions
        self.max_records = max_records
        self.compact_history = False  # when True, skip per-node activations in history
        self.history = deque(maxlen=max_records)
        self.transfers = deque(maxlen=max_records)

    @property
    def now(self):
        return self.scheduler.now

    @property
    def decay_running(self):
        return self._decay_running

    # ── Commands ──

    def activate(self, node_id):
        """Inject full activation at ``node_id``. Unknown ids are a no-op.
        Returns True if the node exists."""
        with self.scheduler.lock:
            node = self.store.node_by_id(node_id)
            if node is None:
                logger.debug("activate(%r): unknown node, ignored", node_id)
                return False

            now = self.scheduler.now
            accepted = self.ledger.set_if_higher(node.id, SEED_LEVEL)
            self.transfers.append(Transfer(now, None, node.id, SEED_LEVEL, 0, accepted))
            self.pulses.emit(node.position, now)
            logger.info("Activated node %d (%s) at t=%.1f", node.id, node.label, now)

            self.propagate(node.id, SEED_LEVEL, 1, origin_time=now)
            self._ensure_decay_loop()
            self.scheduler.call_later(PULSE_CLEAR_DELAY, self._clear_pulses)
            return True

    def propagate(self, source, strength, depth, origin_time=None):
        """Enqueue the expansion of ``source``; either cutoff drops the branch.
        Returns True if a task was enqueued."""
        if depth > MAX_DEPTH or strength < MIN_STRENGTH:
            return False
        with self.scheduler.lock:
            if origin_time is None:
                origin_time = self.scheduler.now
            task = PropagationTask(source, strength, depth, origin_time)
            if COMPOUNDING_DELAY:
                self.scheduler.call_later(HOP_DELAY * depth, self._expand, task)
            else:
                self.scheduler.call_at(max(self.scheduler.now, origin_time + HOP_DELAY * depth),
                                       self._expand, task)
        return True

    def _expand(self, task):
        now = self.scheduler.now
        transfer = task.strength * HOP_ATTENUATION
        for neighbor_id in self.store.iter_neighbors(task.source):
            neighbor = self.store.node_by_id(neighbor_id)
            if neighbor is None:
                logger.debug("t=%.1f hop %r→%r: stale neighbor, skipped",
                             now, task.source, neighbor_id)
                continue

            accepted = self.ledger.set_if_higher(neighbor_id, transfer)
            self.transfers.append(Transfer(now, task.source, neighbor_id,
                                           transfer, task.depth, accepted))
            logger.debug("t=%.1f hop %d→%d strength=%.4f depth=%d%s", now, task.source,
                         neighbor_id, transfer, task.depth, '' if accepted else ' (kept)')

            if transfer > PULSE_THRESHOLD:
                self.pulses.emit(neighbor.position, now)

            self.propagate(neighbor_id, transfer, task.depth + 1, origin_time=task.origin_time)
        self._ensure_decay_loop()

    # ── Decay loop ──

    def _ensure_decay_loop(self):
        if self._decay_running or len(self.ledger) == 0:
            return
        self._decay_running = True
        self.scheduler.call_later(DECAY_INTERVAL, self._decay_tick)
        logger.info("Decay loop started at t=%.1f", self.scheduler.now)

    def _decay_tick(self):
        remaining = self.ledger.decay_all(DECAY_FACTOR)
        self._record()
        if remaining:
            self.scheduler.call_later(DECAY_INTERVAL, self._decay_tick)
        else:
            self._decay_running = False
            logger.info("Decay loop stopped at t=%.1f: ledger empty", self.scheduler.now)

    def _clear_pulses(self):
        self.pulses.clear_all()

    def _record(self):
        acts = self.ledger.snapshot()
        entry = {
            'time': self.scheduler.now,
            'n_active': len(acts),
            'total_activation': sum(acts.values()),
            'n_pulses': len(self.pulses),
        }
        if not self.compact_history:
            entry['activations'] = dict(acts)
        self.history.append(entry)

    # ── Read model ──

    def activation_snapshot(self):
        return self.ledger.snapshot()

    def active_pulses(self):
        return self.pulses.pulses()

    def visible_pulses(self):
        return self.pulses.visible(self.scheduler.now)

    def node_state(self, node_id):
        level = self.ledger.get(node_id)
        if level > ACTIVE_THRESHOLD:
            return 'active'
        elif level > 0:
            return 'fading'
        return 'idle'

    # ── Driving ──

    def run(self, duration, schedule=None):
        """Advance the clock by ``duration`` units.

        ``schedule`` maps offsets (from the current time) to a node id or an
        iterable of node ids to activate at that offset.
        """
        if schedule is None:
            schedule = {}
        with self.scheduler.lock:
            start = self.scheduler.now
            for offset, targets in sorted(schedule.items()):
                if offset > duration:
                    continue
                if isinstance(targets, numbers.Integral):
                    targets = (targets,)
                self.scheduler.call_at(start + offset, self._activate_many, tuple(targets))
            self.scheduler.advance_to(start + duration)

    def _activate_many(self, node_ids):
        for node_id in node_ids:
            self.activate(node_id)

    def run_until_idle(self, limit=None):
        """Fire pending work until nothing is scheduled (waves done, ledger
        empty, pulses cleared)."""
        return self.scheduler.run_until_idle(limit)

    def reset(self):
        """Reset to initial state."""
        with self.scheduler.lock:
            self.scheduler.clear()
            self.scheduler.now = 0.0
            self.ledger.clear()
            self.pulses.clear_all()
            self._decay_running = False
            self.history = deque(maxlen=self.max_records)
            self.transfers = deque(maxlen=self.max_records)
