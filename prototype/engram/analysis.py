"""Run analysis: wave arrivals, peaks, quiescence and per-hop strengths."""
import numpy as np

from .config import SEED_LEVEL, HOP_ATTENUATION, MIN_STRENGTH, MAX_DEPTH, HOP_DELAY


def hop_strengths(n_hops, seed=SEED_LEVEL, attenuation=HOP_ATTENUATION):
    """Closed-form strength delivered at hops 1..n_hops: seed · attenuation^k."""
    return seed * attenuation ** np.arange(1, n_hops + 1)


def reachable_hops(seed=SEED_LEVEL, attenuation=HOP_ATTENUATION,
                   min_strength=MIN_STRENGTH, max_depth=MAX_DEPTH):
    """Number of hops a wave can deliver before either cutoff stops it.

    A task at depth d with incoming strength s expands (delivering hop d)
    iff d <= max_depth and s >= min_strength.
    """
    hops = 0
    strength = seed
    depth = 1
    while depth <= max_depth and strength >= min_strength:
        hops += 1
        strength *= attenuation
        depth += 1
    return hops


def expansion_times(n_hops, hop_delay=HOP_DELAY, compounding=True):
    """Time (from activate) at which hop k is delivered, k = 1..n_hops."""
    depths = np.arange(1, n_hops + 1)
    if compounding:
        return (hop_delay * np.cumsum(depths)).astype(float)
    return (hop_delay * depths).astype(float)


def wave_arrivals(sim):
    """First time each node was reached by an accepted transfer."""
    arrivals = {}
    for t in sim.transfers:
        if t.accepted and t.target not in arrivals:
            arrivals[t.target] = t.time
    return arrivals


def peak_levels(sim):
    """Peak recorded level per node over the run history."""
    peaks = {}
    for h in sim.history:
        for n, a in h.get('activations', {}).items():
            if a > peaks.get(n, 0.0):
                peaks[n] = a
    for t in sim.transfers:
        if t.accepted and t.strength > peaks.get(t.target, 0.0):
            peaks[t.target] = t.strength
    return peaks


def quiescence_time(sim):
    """Time of the first decay tick that left the ledger empty (None if never)."""
    for h in sim.history:
        if h['n_active'] == 0:
            return h['time']
    return None


def summarize_run(sim):
    """Summary dict for reports (JSON-serializable)."""
    totals = np.array([h['total_activation'] for h in sim.history], dtype=float)
    n_active = np.array([h['n_active'] for h in sim.history], dtype=int)
    accepted = sum(1 for t in sim.transfers if t.accepted)
    return {
        'duration': float(sim.now),
        'n_ticks': len(sim.history),
        'n_transfers': len(sim.transfers),
        'n_accepted': accepted,
        'n_rejected': len(sim.transfers) - accepted,
        'max_depth_reached': max((t.depth for t in sim.transfers), default=0),
        'peak_total_activation': float(totals.max()) if totals.size else 0.0,
        'mean_active_nodes': float(n_active.mean()) if n_active.size else 0.0,
        'arrivals': {str(k): float(v) for k, v in sorted(wave_arrivals(sim).items())},
        'peaks': {str(k): float(v) for k, v in sorted(peak_levels(sim).items())},
        'quiescence_time': quiescence_time(sim),
    }
