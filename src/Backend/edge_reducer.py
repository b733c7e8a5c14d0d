"""
Presentation-time edge reduction
================================
Cuts the drawn edge set down to something readable:

  1. drop edges whose endpoints are not known nodes (when ids are given)
  2. de-duplicate exact (from, to) pairs, first occurrence wins
  3. transitive reduction: (u, v) is redundant when another direct
     successor of u already reaches v
  4. stop at MAX_RENDERED_EDGES kept edges

Only the drawn edges are pruned; node dependencies are never touched.
The reachability memo is local to one call.
"""
from __future__ import annotations

import logging
from typing import Iterable

from roadmap_graph import Connection

log = logging.getLogger(__name__)

MAX_RENDERED_EDGES = 160


def reduce_connections(
    connections: Iterable[Connection],
    node_ids: Iterable[str] | None = None,
    max_edges: int = MAX_RENDERED_EDGES,
) -> list[Connection]:
    """Return the minimal, de-duplicated, capped edge list in input order."""
    if max_edges < 0:
        raise ValueError(f"max_edges must be non-negative, got {max_edges}")

    known = set(node_ids) if node_ids is not None else None
    unique: list[Connection] = []
    seen: set[tuple[str, str]] = set()
    total = 0
    dangling = 0
    for c in connections:
        total += 1
        if known is not None and (c.source not in known or c.target not in known):
            dangling += 1
            continue
        key = (c.source, c.target)
        if key in seen:
            continue
        seen.add(key)
        unique.append(c)

    successors: dict[str, list[str]] = {}
    for c in unique:
        successors.setdefault(c.source, []).append(c.target)

    reach_memo: dict[str, frozenset[str]] = {}

    def _reach(start: str) -> frozenset[str]:
        cached = reach_memo.get(start)
        if cached is not None:
            return cached
        visited: set[str] = set()
        stack = list(successors.get(start, ()))
        while stack:
            n = stack.pop()
            if n in visited:
                continue
            visited.add(n)
            stack.extend(successors.get(n, ()))
        result = frozenset(visited)
        reach_memo[start] = result
        return result

    kept: list[Connection] = []
    for c in unique:
        if len(kept) >= max_edges:
            break
        redundant = any(
            mid != c.target and c.target in _reach(mid)
            for mid in successors[c.source]
        )
        if not redundant:
            kept.append(c)

    log.debug(
        "reduce_connections  in=%d  unique=%d  kept=%d  dangling=%d  memo=%d",
        total, len(unique), len(kept), dangling, len(reach_memo),
    )
    return kept
