"""
Engram Reference Graph — 6 nodes, 6 edges
==========================================
Worked example of an engram lookup: a slow-orders query linked to the
concepts and raw memories that explain it.

Exports:
    NODES  — list of (id, position, label, category) tuples, declaration order
    EDGES  — list of (source, target) tuples (undirected)
"""

NODES = [
    (0, (0.0, 0.0, 0.0),    'Query: "Orders Slow"', 'query'),
    (1, (-1.5, 1.0, 0.5),   'Latency',              'concept'),
    (2, (1.5, 1.0, -0.5),   'DB Index',             'concept'),
    (3, (-2.0, -0.5, 1.0),  'Timeout Error',        'raw'),
    (4, (2.0, -0.5, -1.0),  'Index Optimization',   'raw'),
    (5, (0.0, -1.5, 0.0),   'Optimization Plan',    'concept'),
]

EDGES = [
    (0, 1),  # Query → Latency
    (0, 2),  # Query → DB Index
    (1, 3),  # Latency → Timeout Error
    (2, 4),  # DB Index → Index Optimization
    (4, 5),  # Index Optimization → Optimization Plan
    (1, 2),  # Latency ↔ DB Index (cross concept)
]
