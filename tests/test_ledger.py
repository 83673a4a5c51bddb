"""Tests for the activation ledger: merge-max, decay sweeps, snapshots."""

import random
import threading

import pytest

from engram.ledger import ActivationLedger


class TestSetIfHigher:

    def test_installs_on_empty(self):
        ledger = ActivationLedger()
        assert ledger.set_if_higher(1, 0.6) is True
        assert ledger.get(1) == 0.6

    @pytest.mark.parametrize("order", [(0.36, 0.6), (0.6, 0.36)])
    def test_highest_wins_in_either_order(self, order):
        ledger = ActivationLedger()
        for level in order:
            ledger.set_if_higher(3, level)
        assert ledger.get(3) == 0.6

    def test_equal_level_is_not_a_change(self):
        ledger = ActivationLedger()
        ledger.set_if_higher(1, 0.5)
        assert ledger.set_if_higher(1, 0.5) is False

    def test_levels_at_or_below_floor_are_absent(self):
        ledger = ActivationLedger(floor=0.05)
        assert ledger.set_if_higher(1, 0.05) is False
        assert ledger.set_if_higher(2, 0.01) is False
        assert len(ledger) == 0
        assert 1 not in ledger

    @pytest.mark.parametrize("level", [-0.1, 1.01])
    def test_out_of_range(self, level):
        with pytest.raises(ValueError):
            ActivationLedger().set_if_higher(1, level)

    def test_concurrent_writers_keep_maximum(self):
        ledger = ActivationLedger()
        levels = [round(0.06 + i * 0.01, 2) for i in range(90)]
        random.Random(7).shuffle(levels)
        chunks = [levels[i::4] for i in range(4)]

        def write(chunk):
            for level in chunk:
                ledger.set_if_higher(0, level)

        threads = [threading.Thread(target=write, args=(c,)) for c in chunks]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert ledger.get(0) == max(levels)


class TestDecayAll:

    def test_strictly_decreases(self):
        ledger = ActivationLedger()
        ledger.set_if_higher(0, 1.0)
        ledger.set_if_higher(1, 0.6)
        before = dict(ledger.snapshot())
        assert ledger.decay_all(0.95) is True
        after = ledger.snapshot()
        for n, level in before.items():
            assert after[n] < level
            assert after[n] == pytest.approx(level * 0.95)

    def test_entry_crossing_floor_is_removed(self):
        ledger = ActivationLedger(floor=0.05)
        ledger.set_if_higher(0, 0.052)
        ledger.set_if_higher(1, 0.9)
        ledger.decay_all(0.95)
        snap = ledger.snapshot()
        assert 0 not in snap
        assert snap[1] == pytest.approx(0.855)

    def test_reports_empty(self):
        ledger = ActivationLedger()
        ledger.set_if_higher(0, 0.06)
        assert ledger.decay_all(0.5) is False
        assert len(ledger) == 0

    def test_empty_ledger_stays_empty(self):
        assert ActivationLedger().decay_all(0.95) is False

    def test_repeated_decay_drains(self):
        ledger = ActivationLedger()
        ledger.set_if_higher(0, 1.0)
        sweeps = 0
        while ledger.decay_all(0.95):
            sweeps += 1
        # 0.95**58 > 0.05 >= 0.95**59
        assert sweeps == 58

    @pytest.mark.parametrize("factor", [0.0, -0.5, 1.5])
    def test_bad_factor(self, factor):
        with pytest.raises(ValueError):
            ActivationLedger().decay_all(factor)


class TestSnapshot:

    def test_is_read_only(self):
        ledger = ActivationLedger()
        ledger.set_if_higher(0, 1.0)
        snap = ledger.snapshot()
        with pytest.raises(TypeError):
            snap[0] = 0.5

    def test_is_detached_from_later_writes(self):
        ledger = ActivationLedger()
        ledger.set_if_higher(0, 0.5)
        snap = ledger.snapshot()
        ledger.set_if_higher(0, 0.9)
        ledger.set_if_higher(1, 0.7)
        assert dict(snap) == {0: 0.5}

    def test_total_and_clear(self):
        ledger = ActivationLedger()
        ledger.set_if_higher(0, 0.5)
        ledger.set_if_higher(1, 0.25)
        assert ledger.total() == pytest.approx(0.75)
        ledger.clear()
        assert len(ledger) == 0
        assert ledger.get(0) == 0.0
