"""
Roadmap summary values: duration, difficulty, tags, progress, grouping.
"""
from __future__ import annotations

import math
import re
from collections import Counter
from typing import Any, Iterable

from roadmap_graph import Difficulty, LearningNode, NodeStatus, NodeType

_HOURS_RE = re.compile(r"\d+")
_WORD_RE = re.compile(r"\b[a-z]+\b")

HOURS_PER_WEEK = 40
_TOP_WORDS = 5
_MIN_TAG_LEN = 4
_FIXED_TAGS = ("roadmap", "learning-path")

_DIFFICULTY_RANK: dict[Difficulty, int] = {
    Difficulty.BEGINNER:     0,
    Difficulty.INTERMEDIATE: 1,
    Difficulty.ADVANCED:     2,
    Difficulty.EXPERT:       3,
}

# Section key, display title, node type
_GROUPS: tuple[tuple[str, str, NodeType], ...] = (
    ("prerequisites", "Prerequisites",   NodeType.PREREQUISITE),
    ("core",          "Core Concepts",   NodeType.CORE),
    ("projects",      "Projects",        NodeType.PROJECT),
    ("advanced",      "Advanced Topics", NodeType.ADVANCED),
    ("milestone",     "Milestone",       NodeType.MILESTONE),
)


def parse_hours(label: str) -> int:
    """First integer in a time label; 1 when there is none."""
    m = _HOURS_RE.search(label or "")
    return int(m.group()) if m else 1


def total_duration(nodes: Iterable[LearningNode]) -> str:
    hours = sum(parse_hours(n.estimated_time) for n in nodes)
    if hours > HOURS_PER_WEEK:
        return f"{math.ceil(hours / HOURS_PER_WEEK)} weeks"
    return f"{hours} hours"


def overall_difficulty(nodes: Iterable[LearningNode]) -> Difficulty:
    """Hardest difficulty present (expert > advanced > intermediate > beginner)."""
    return max((n.difficulty for n in nodes), key=_DIFFICULTY_RANK.__getitem__, default=Difficulty.BEGINNER)


def extract_tags(topic: str, content: str) -> list[str]:
    """
    Topic words, then the most frequent words of 4+ letters in *content*
    (ties keep first occurrence), then the fixed tags.  Duplicates dropped.
    """
    topic_words = topic.lower().split()
    counts = Counter(w for w in _WORD_RE.findall(content.lower()) if len(w) >= _MIN_TAG_LEN)
    frequent = [w for w, _ in counts.most_common(_TOP_WORDS)]
    return list(dict.fromkeys([*topic_words, *frequent, *_FIXED_TAGS]))


def completion_rate(nodes: Iterable[LearningNode]) -> int:
    nodes = list(nodes)
    if not nodes:
        return 0
    done = sum(1 for n in nodes if n.status == NodeStatus.COMPLETED)
    return round(100 * done / len(nodes))


def build_hierarchical_model(roadmap) -> dict[str, Any]:
    """Group nodes by type into titled sections for list-style views."""
    groups: dict[str, dict[str, Any]] = {
        key: {"title": title, "items": []} for key, title, _ in _GROUPS
    }
    by_type = {node_type: key for key, _, node_type in _GROUPS}
    for node in roadmap.nodes:
        groups[by_type[node.type]]["items"].append(node.to_dict())
    return {"id": roadmap.id, "topic": roadmap.topic, "groups": groups}
