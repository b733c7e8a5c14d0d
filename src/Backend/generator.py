"""
Roadmap generation pipeline
===========================
categorised content → RoadmapGraph → layers → layout → reduced edges → summary

Every call builds its own graph; nothing is shared between calls.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from edge_reducer import MAX_RENDERED_EDGES, reduce_connections
from layout import LayoutConfig, apply_layout
from roadmap_graph import Annotator, CategorizedContent, Connection, LearningNode, RoadmapGraph
from summary import completion_rate, extract_tags, overall_difficulty, total_duration

log = logging.getLogger(__name__)


@dataclass(slots=True)
class Roadmap:
    """Finished roadmap: positioned nodes plus the edges worth drawing."""
    id: str
    title: str
    description: str
    topic: str
    nodes: list[LearningNode]
    connections: list[Connection]              # reduced set, the edges worth drawing
    estimated_duration: str
    difficulty: str
    tags: list[str] = field(default_factory=list)
    created: str = ""
    last_updated: str = ""
    completion_rate: int = 0
    timings: dict[str, float] = field(default_factory=dict)   # ms per phase, not exported

    @property
    def total_nodes(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id":                self.id,
            "title":             self.title,
            "description":       self.description,
            "topic":             self.topic,
            "totalNodes":        self.total_nodes,
            "estimatedDuration": self.estimated_duration,
            "difficulty":        self.difficulty,
            "nodes":             [n.to_dict() for n in self.nodes],
            "connections":       [c.to_dict() for c in self.connections],
            "metadata": {
                "created":        self.created,
                "lastUpdated":    self.last_updated,
                "completionRate": self.completion_rate,
                "tags":           list(self.tags),
            },
        }


def generate_roadmap(
    topic: str,
    content: CategorizedContent | dict | None,
    *,
    source_text: str | None = None,
    layout_config: LayoutConfig | None = None,
    max_edges: int = MAX_RENDERED_EDGES,
    annotator: Annotator | None = None,
    now: datetime | None = None,
) -> Roadmap:
    """
    Build a positioned roadmap for *topic*.

    ``source_text`` feeds tag extraction; without it the items' own titles
    and descriptions are used.  ``now`` pins the id / timestamps.
    """
    topic = (topic or "").strip()
    if not topic:
        raise ValueError("topic must be a non-empty string")
    if not isinstance(content, CategorizedContent):
        content = CategorizedContent.from_dict(content)

    t0 = time.perf_counter()
    graph = RoadmapGraph.from_content(topic, content, annotator=annotator)
    t_graph = time.perf_counter() - t0

    t1 = time.perf_counter()
    apply_layout(graph, layout_config)
    t_layout = time.perf_counter() - t1

    t2 = time.perf_counter()
    display = reduce_connections(graph.connections, node_ids=graph.nodes, max_edges=max_edges)
    t_edges = time.perf_counter() - t2

    nodes = graph.node_list()
    stamp = now or datetime.now(timezone.utc)
    iso = stamp.isoformat()

    roadmap = Roadmap(
        id=f"roadmap-{int(stamp.timestamp() * 1000)}",
        title=f"Learning Roadmap: {topic}",
        description=f"Interactive visual roadmap for mastering {topic}",
        topic=topic,
        nodes=nodes,
        connections=display,
        estimated_duration=total_duration(nodes),
        difficulty=overall_difficulty(nodes).value,
        tags=extract_tags(topic, source_text if source_text is not None else content.source_text()),
        created=iso,
        last_updated=iso,
        completion_rate=completion_rate(nodes),
        timings={
            "graph_ms":  round(t_graph * 1000, 2),
            "layout_ms": round(t_layout * 1000, 2),
            "edges_ms":  round(t_edges * 1000, 2),
        },
    )

    log.info(
        "roadmap  topic=%r  nodes=%d  edges=%d→%d  depth=%d  "
        "(graph=%.1fms  layout=%.1fms  edges=%.1fms)",
        topic, roadmap.total_nodes, len(graph.connections), len(display), graph.max_depth,
        t_graph * 1000, t_layout * 1000, t_edges * 1000,
    )
    return roadmap
