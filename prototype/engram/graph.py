"""Engram graph store: static nodes and undirected edges over networkx."""
import logging
import numbers
from dataclasses import dataclass

import networkx as nx

from engram_nodes import NODES, EDGES
from .config import NODE_STYLES

logger = logging.getLogger("engram.graph")

CATEGORIES = tuple(NODE_STYLES)


class GraphConfigError(ValueError):
    """Raised when a graph description is malformed."""


@dataclass(frozen=True)
class Node:
    """Immutable engram node. Position is only meaningful to presentation."""
    id: int
    position: tuple
    label: str
    category: str


def _check_position(node_id, position):
    try:
        coords = tuple(position)
    except TypeError:
        raise GraphConfigError(f"node {node_id}: position must be a 3-sequence, got {position!r}")
    if len(coords) != 3 or not all(isinstance(c, numbers.Real) for c in coords):
        raise GraphConfigError(f"node {node_id}: position must be 3 numbers, got {position!r}")
    return tuple(float(c) for c in coords)


class GraphStore:
    """Read-only lookup over the engram graph.

    Lookups of unknown ids return ``None`` or an empty neighbor set so that
    callers can treat a stale reference as a no-op.
    """

    def __init__(self, nodes, edges):
        G = nx.Graph()
        ordered = []
        for entry in nodes:
            node_id, position, label, category = entry
            if not isinstance(node_id, numbers.Integral) or isinstance(node_id, bool):
                raise GraphConfigError(f"node id must be an integer, got {node_id!r}")
            if node_id in G:
                raise GraphConfigError(f"duplicate node id {node_id}")
            if category not in CATEGORIES:
                raise GraphConfigError(
                    f"node {node_id}: unknown category {category!r} (expected one of {CATEGORIES})")
            node = Node(int(node_id), _check_position(node_id, position), str(label), category)
            G.add_node(node.id, node=node, label=node.label,
                       category=node.category, position=node.position)
            ordered.append(node)

        edge_list = []
        for source, target in edges:
            for endpoint in (source, target):
                if endpoint not in G:
                    raise GraphConfigError(
                        f"edge ({source}, {target}) references unknown node {endpoint!r}")
            if G.has_edge(source, target):
                raise GraphConfigError(f"duplicate edge ({source}, {target})")
            G.add_edge(source, target)
            edge_list.append((source, target))

        self.G = nx.freeze(G)
        self._nodes = tuple(ordered)
        self._edges = tuple(edge_list)
        logger.debug("Graph built: %d nodes, %d edges", len(self._nodes), len(self._edges))

    @classmethod
    def from_description(cls, description):
        """Build from ``{'nodes': [...], 'edges': [...]}`` dicts.

        Node dicts carry ``id``, ``position``, ``label`` and ``category``
        (``type`` is accepted as an alias). Edge dicts carry ``source`` and
        ``target``.
        """
        try:
            nodes = [(n['id'], n['position'], n.get('label', str(n['id'])),
                      n.get('category', n.get('type')))
                     for n in description['nodes']]
            edges = [(e['source'], e['target']) for e in description.get('edges', [])]
        except (KeyError, TypeError) as exc:
            raise GraphConfigError(f"malformed graph description: {exc}") from exc
        return cls(nodes, edges)

    @property
    def nodes(self):
        return self._nodes

    @property
    def edges(self):
        return self._edges

    def __len__(self):
        return len(self._nodes)

    def __contains__(self, node_id):
        return node_id in self.G

    def node_by_id(self, node_id):
        """Return the Node for ``node_id`` or None if it does not exist."""
        if node_id not in self.G:
            return None
        return self.G.nodes[node_id]['node']

    def neighbors_of(self, node_id):
        """Set of neighbor ids; empty for unknown ids."""
        if node_id not in self.G:
            return frozenset()
        return frozenset(self.G.neighbors(node_id))

    def iter_neighbors(self, node_id):
        """Neighbors in edge-declaration order (deterministic propagation)."""
        if node_id not in self.G:
            return iter(())
        return iter(self.G.neighbors(node_id))

    def degree(self, node_id):
        if node_id not in self.G:
            return 0
        return self.G.degree(node_id)

    def nodes_by_category(self, category):
        return tuple(n for n in self._nodes if n.category == category)


def build_engram_graph(nodes=None, edges=None):
    """Build the engram graph store (reference description by default)."""
    if nodes is None:
        nodes = NODES
    if edges is None:
        edges = EDGES
    return GraphStore(nodes, edges)
