"""
Layered roadmap layout  (Sugiyama-style, median cross-minimisation)
===================================================================
1. Y-axis:  topological depth layers (RoadmapGraph.layers(), seeded by
   node type then id).
2. Order:   a fixed number of refinement iterations; each is a downward
   sweep (median index of incoming neighbours in the layer above) followed
   by an upward sweep (median index of outgoing neighbours in the layer
   below).  Python's stable sort keeps the previous order on ties, and nodes
   with no neighbour in the adjacent layer get a sentinel key that parks
   them at the end of their layer.
3. X-axis:  every layer is centred on x = 0 with a fixed horizontal gap.

Sort keys live in a per-sweep side table and every sweep returns fresh
tuples, so an ordering can be inspected after any iteration.  No
randomness and no clock: the same graph always lands on the same pixels.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from roadmap_graph import Connection, RoadmapGraph

log = logging.getLogger(__name__)

# ── constants ───────────────────────────────────────────────────────
H_GAP = 320.0            # horizontal gap between nodes in a layer
V_GAP = 190.0            # vertical gap between layers
LAYOUT_ITERATIONS = 3    # down+up sweep pairs
MAX_LAYOUT_ITERATIONS = 50
SENTINEL = 1e9           # sort key for nodes with no adjacent neighbour

Layers = list[tuple[str, ...]]


@dataclass(slots=True, frozen=True)
class LayoutConfig:
    h_gap: float = H_GAP
    v_gap: float = V_GAP
    iterations: int = LAYOUT_ITERATIONS

    def __post_init__(self) -> None:
        for gap in (self.h_gap, self.v_gap):
            if not math.isfinite(gap) or gap < 0:
                raise ValueError(f"gaps must be finite and non-negative (h_gap={self.h_gap}, v_gap={self.v_gap})")
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int) or self.iterations < 0:
            raise ValueError(f"iterations must be a non-negative int, got {self.iterations!r}")
        if self.iterations > MAX_LAYOUT_ITERATIONS:
            raise ValueError(f"iterations must be at most {MAX_LAYOUT_ITERATIONS}, got {self.iterations}")

    @classmethod
    def from_dict(cls, raw: dict | None) -> LayoutConfig:
        """Request-body overrides: hGap / vGap / iterations (camel or snake)."""
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValueError("layout must be an object")
        kw: dict = {}
        for key, names in (("h_gap", ("hGap", "h_gap")), ("v_gap", ("vGap", "v_gap"))):
            for name in names:
                if name in raw:
                    value = raw[name]
                    if isinstance(value, bool) or not isinstance(value, (int, float)):
                        raise ValueError(f"'{name}' must be a number")
                    kw[key] = float(value)
        if "iterations" in raw:
            kw["iterations"] = raw["iterations"]
        return cls(**kw)


# ═══════════════════════════════════════════════════════════════════
# Crossing minimisation
# ═══════════════════════════════════════════════════════════════════
def _median_key(neighbours: list[str], index: dict[str, int]) -> float:
    """Upper median of the neighbours' indices in the adjacent layer."""
    pos = np.fromiter((index[n] for n in neighbours if n in index), dtype=np.int64)
    if pos.size == 0:
        return SENTINEL
    return float(np.sort(pos)[pos.size // 2])


def _reorder(layer: tuple[str, ...], ref: tuple[str, ...], adj: dict[str, list[str]]) -> tuple[str, ...]:
    index = {nid: i for i, nid in enumerate(ref)}
    keys = {nid: _median_key(adj.get(nid, []), index) for nid in layer}
    return tuple(sorted(layer, key=keys.__getitem__))


def refine_once(
    layers: Layers,
    incoming: dict[str, list[str]],
    outgoing: dict[str, list[str]],
) -> Layers:
    """One downward + one upward sweep.  Returns a new list; input untouched."""
    out = list(layers)
    for i in range(1, len(out)):
        out[i] = _reorder(out[i], out[i - 1], incoming)
    for i in range(len(out) - 2, -1, -1):
        out[i] = _reorder(out[i], out[i + 1], outgoing)
    return out


def minimise_crossings(
    layers: Layers,
    incoming: dict[str, list[str]],
    outgoing: dict[str, list[str]],
    iterations: int = LAYOUT_ITERATIONS,
    history: list[Layers] | None = None,
) -> Layers:
    """Run *iterations* refinement passes; optionally record each result."""
    current = [tuple(layer) for layer in layers]
    for _ in range(iterations):
        current = refine_once(current, incoming, outgoing)
        if history is not None:
            history.append(current)
    return current


def count_crossings(layers: Layers, connections: Iterable[Connection]) -> int:
    """
    Edge crossings between adjacent layers (edges spanning more than one
    layer are ignored).  Vectorised pairwise check per layer gap.
    """
    where: dict[str, tuple[int, int]] = {}
    for d, layer in enumerate(layers):
        for i, nid in enumerate(layer):
            where[nid] = (d, i)

    per_gap: dict[int, set[tuple[int, int]]] = {}
    for c in connections:
        if c.source not in where or c.target not in where:
            continue
        (d1, i1), (d2, i2) = where[c.source], where[c.target]
        if d2 == d1 + 1:
            per_gap.setdefault(d1, set()).add((i1, i2))
        elif d1 == d2 + 1:
            per_gap.setdefault(d2, set()).add((i2, i1))

    total = 0
    for edges in per_gap.values():
        e = np.array(sorted(edges), dtype=np.int64)          # (E, 2)
        du = e[:, 0][:, None] - e[:, 0][None, :]
        dv = e[:, 1][:, None] - e[:, 1][None, :]
        total += int(np.count_nonzero((du * dv) < 0)) // 2
    return total


# ═══════════════════════════════════════════════════════════════════
# Coordinates
# ═══════════════════════════════════════════════════════════════════
def assign_coordinates(layers: Layers, h_gap: float = H_GAP, v_gap: float = V_GAP) -> dict[str, tuple[float, float]]:
    """x = i*h_gap - (L-1)*h_gap/2 (layer centred on 0), y = depth*v_gap."""
    positions: dict[str, tuple[float, float]] = {}
    for depth, layer in enumerate(layers):
        n = len(layer)
        if n == 0:
            continue
        xs = np.arange(n, dtype=np.float64) * h_gap - (n - 1) * h_gap / 2
        y = float(depth * v_gap)
        for nid, x in zip(layer, xs.tolist()):
            positions[nid] = (x, y)
    return positions


def layout_positions(
    graph: RoadmapGraph,
    config: LayoutConfig | None = None,
    history: list[Layers] | None = None,
) -> dict[str, tuple[float, float]]:
    """Full layered layout for *graph*: {node_id: (x, y)}."""
    cfg = config or LayoutConfig()
    seed = graph.layers()
    if not seed:
        return {}

    ordered = minimise_crossings(
        seed, graph.incoming(), graph.outgoing(),
        iterations=cfg.iterations, history=history,
    )
    if log.isEnabledFor(logging.DEBUG):
        log.debug(
            "layout  layers=%d  crossings seed=%d final=%d",
            len(ordered),
            count_crossings(seed, graph.connections),
            count_crossings(ordered, graph.connections),
        )
    return assign_coordinates(ordered, cfg.h_gap, cfg.v_gap)


def apply_layout(graph: RoadmapGraph, config: LayoutConfig | None = None) -> dict[str, tuple[float, float]]:
    """Compute the layout and write it onto the graph's nodes."""
    positions = layout_positions(graph, config)
    graph.apply_positions(positions)
    return positions
