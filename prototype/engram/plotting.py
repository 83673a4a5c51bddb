"""Visualization functions for engram diffusion runs."""
import numpy as np
import networkx as nx
import matplotlib.pyplot as plt

from .config import NODE_STYLES, ACTIVE_THRESHOLD, EDGE_IDLE_COLOR, EDGE_ACTIVE_COLOR


def setup_style():
    """Configure matplotlib dark_background style."""
    plt.style.use('dark_background')


def _layout(store):
    """Project 3-D node positions onto the x/y plane (camera looks down -z)."""
    return {n.id: np.array(n.position[:2]) for n in store.nodes}


def visualize_engram(sim, title='Engram Activation', acts=None):
    """Graph view: node color = activation, size = category size.
    Lit edges (either endpoint above threshold) drawn thick in gold.
    Visible pulses drawn as fading rings."""
    fig, ax = plt.subplots(figsize=(9, 7))

    store = sim.store
    G = store.G
    if acts is None:
        acts = sim.activation_snapshot()
    pos = _layout(store)

    # ── Edges ──
    lit = [(u, v) for u, v in G.edges()
           if max(acts.get(u, 0), acts.get(v, 0)) > ACTIVE_THRESHOLD]
    idle = [(u, v) for u, v in G.edges() if (u, v) not in lit]
    if idle:
        nx.draw_networkx_edges(G, pos, edgelist=idle, alpha=0.3,
                               edge_color=EDGE_IDLE_COLOR, width=1, ax=ax)
    if lit:
        widths = [1 + 2 * max(acts.get(u, 0), acts.get(v, 0)) for u, v in lit]
        nx.draw_networkx_edges(G, pos, edgelist=lit, alpha=0.8,
                               edge_color=EDGE_ACTIVE_COLOR, width=widths, ax=ax)

    # ── Nodes, one pass per category ──
    for category, style in NODE_STYLES.items():
        members = [n.id for n in store.nodes_by_category(category)]
        if not members:
            continue
        colors = [acts.get(n, 0) for n in members]
        shape = 'D' if category == 'query' else 'o'
        nx.draw_networkx_nodes(G, pos, nodelist=members,
                               node_size=style['size'] * 2400,
                               node_color=colors, cmap=plt.cm.YlOrBr,
                               vmin=0, vmax=1, node_shape=shape,
                               edgecolors=style['core'], linewidths=2, ax=ax)

    labels = {n.id: n.label for n in store.nodes}
    nx.draw_networkx_labels(G, pos, labels=labels, font_size=8,
                            font_color='white', ax=ax)

    # ── Pulses ──
    now = sim.now
    for p in sim.visible_pulses():
        ring = plt.Circle(p.origin[:2], max(p.radius(now), 0.05), fill=False,
                          color=EDGE_ACTIVE_COLOR, alpha=0.3 * p.opacity(now), lw=2)
        ax.add_patch(ring)

    n_lit = sum(1 for a in acts.values() if a > ACTIVE_THRESHOLD)
    ax.set_xlabel(f"t={now:.0f}  Active={n_lit}  Tracked={len(acts)}  "
                  f"Pulses={len(sim.active_pulses())}", fontsize=10)
    ax.set_title(title, fontsize=14)
    ax.set_aspect('equal')
    ax.axis('off')
    plt.tight_layout()
    return fig


def plot_activation_timeline(sim, title='Activation Decay'):
    """Per-node activation over the recorded decay ticks, plus ledger size."""
    h = sim.history
    times = [x['time'] for x in h]

    fig, axes = plt.subplots(1, 2, figsize=(13, 5))

    ax = axes[0]
    for node in sim.store.nodes:
        levels = [x.get('activations', {}).get(node.id, 0.0) for x in h]
        ax.plot(times, levels, label=node.label, lw=2)
    ax.axhline(ACTIVE_THRESHOLD, color='white', ls='--', alpha=0.4, label='Lit threshold')
    ax.set_xlabel('Time'); ax.set_ylabel('Activation'); ax.set_title(title)
    ax.set_ylim(0, 1.05)
    ax.legend(fontsize=7); ax.grid(alpha=0.3)

    ax = axes[1]
    ax.step(times, [x['n_active'] for x in h], where='post', color='#C5A059', lw=2,
            label='Tracked nodes')
    ax.plot(times, [x['total_activation'] for x in h], color='#6baed6', lw=2,
            label='Total activation')
    ax.set_xlabel('Time'); ax.set_title('Ledger')
    ax.legend(); ax.grid(alpha=0.3)

    plt.tight_layout()
    return fig
