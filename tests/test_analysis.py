"""Tests for run analysis helpers."""

import numpy as np
import pytest

from engram.analysis import (
    hop_strengths, reachable_hops, expansion_times,
    wave_arrivals, peak_levels, quiescence_time, summarize_run,
)


class TestClosedForm:

    def test_hop_strengths(self):
        assert hop_strengths(4) == pytest.approx([0.6, 0.36, 0.216, 0.1296])

    def test_reachable_hops_default(self):
        assert reachable_hops() == 3

    def test_reachable_hops_strength_bound(self):
        # 0.1296 >= 0.1 still expands, 0.07776 does not
        assert reachable_hops(max_depth=100) == 5

    def test_reachable_hops_depth_bound(self):
        assert reachable_hops(min_strength=0.0, max_depth=2) == 2

    def test_expansion_times(self):
        np.testing.assert_allclose(expansion_times(3), [400, 1200, 2400])
        np.testing.assert_allclose(expansion_times(3, compounding=False), [400, 800, 1200])


class TestRunMetrics:

    @pytest.fixture
    def finished(self, sim):
        sim.activate(0)
        sim.run_until_idle()
        return sim

    def test_wave_arrivals(self, finished):
        assert wave_arrivals(finished) == {0: 0.0, 1: 400.0, 2: 400.0,
                                           3: 1200.0, 4: 1200.0, 5: 2400.0}

    def test_peak_levels(self, finished):
        peaks = peak_levels(finished)
        assert peaks[0] == 1.0
        assert peaks[1] == pytest.approx(0.6)
        assert peaks[5] == pytest.approx(0.216)

    def test_quiescence_time(self, finished, sim):
        assert quiescence_time(finished) == finished.history[-1]['time']
        sim.reset()
        assert quiescence_time(sim) is None

    def test_summary(self, finished):
        s = summarize_run(finished)
        assert s['max_depth_reached'] == 3
        assert s['n_transfers'] == s['n_accepted'] + s['n_rejected']
        assert s['n_ticks'] == len(finished.history)
        assert s['arrivals']['5'] == 2400.0
        assert s['quiescence_time'] is not None
