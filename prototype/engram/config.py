"""Simulation parameters and constants.

Time is measured in engine units (one unit ≈ one millisecond of the
interactive scene).
"""
from collections import OrderedDict

# ── Seeding ──
SEED_LEVEL = 1.0             # activation installed at the clicked node

# ── Propagation ──
HOP_ATTENUATION = 0.6        # strength multiplier per hop
MAX_DEPTH = 3                # tasks deeper than this are not enqueued
MIN_STRENGTH = 0.1           # tasks weaker than this are not enqueued
HOP_DELAY = 400              # expansion delay = HOP_DELAY * depth
COMPOUNDING_DELAY = True     # True: delay counted from the parent expansion
                             # False: delay counted from the activate() call
PULSE_THRESHOLD = 0.2        # neighbors above this get a pulse on arrival

# ── Decay ──
DECAY_FACTOR = 0.95          # multiplicative decay per tick
DECAY_INTERVAL = 100         # units between ticks
ACTIVATION_FLOOR = 0.05      # levels at or below this are dropped

# ── Pulses ──
PULSE_CLEAR_DELAY = 3000     # blanket clear after each activate()
PULSE_FADE_RATE = 0.0005     # opacity lost per unit (fully faded at 2000)
PULSE_GROWTH_RATE = 0.003    # ring radius gained per unit

# ── Presentation thresholds ──
ACTIVE_THRESHOLD = 0.1       # above → node drawn lit

# ── Node categories: colors and sizes of the reference scene ──
NODE_STYLES = OrderedDict([
    ('query',   {'core': '#1c1917', 'glow': '#C5A059', 'emissive': '#C5A059', 'size': 0.35}),
    ('concept', {'core': '#57534E', 'glow': '#C5A059', 'emissive': '#A8A29E', 'size': 0.25}),
    ('raw',     {'core': '#78716C', 'glow': '#C5A059', 'emissive': '#D6D3D1', 'size': 0.20}),
])

EDGE_IDLE_COLOR = '#A8A29E'
EDGE_ACTIVE_COLOR = '#C5A059'
