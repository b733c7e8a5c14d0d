import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from enrichment import Resource, default_annotator, estimate_time

"""
Visual Roadmap Graph  (model + builder + layer assignment)
----------------------------------------------------------
Turns a categorised outline (prerequisites, core topics, projects, advanced
topics) into a DAG of LearningNodes that the layout engine can place.

  • LearningNode uses __slots__ → small, fast, JSON-friendly records
  • Dependencies are ordered id lists (edge direction: dependency → dependent)
  • Builder rules only ever reference nodes that were already emitted,
    so from_content() cannot introduce a cycle
  • Depths are memoised and auto-invalidated on mutation
  • Depth computation uses an explicit stack and fails fast with
    CycleDetected on hand-built graphs that contain a cycle
"""

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------
class NodeType(Enum):
	PREREQUISITE = "prerequisite"
	CORE = "core"
	ADVANCED = "advanced"
	PROJECT = "project"
	MILESTONE = "milestone"


class NodeStatus(Enum):
	NOT_STARTED = "not-started"
	IN_PROGRESS = "in-progress"
	COMPLETED = "completed"
	LOCKED = "locked"


class Difficulty(Enum):
	BEGINNER = "beginner"
	INTERMEDIATE = "intermediate"
	ADVANCED = "advanced"
	EXPERT = "expert"


class ConnectionType(Enum):
	PREREQUISITE = "prerequisite"
	RECOMMENDED = "recommended"
	OPTIONAL = "optional"


# Seed order inside a layer (lower first)
_TYPE_ORDER: dict[NodeType, int] = {
	NodeType.PREREQUISITE: 0,
	NodeType.CORE:         1,
	NodeType.PROJECT:      2,
	NodeType.ADVANCED:     3,
	NodeType.MILESTONE:    4,
}

_TYPE_DIFFICULTY: dict[NodeType, Difficulty] = {
	NodeType.PREREQUISITE: Difficulty.BEGINNER,
	NodeType.CORE:         Difficulty.INTERMEDIATE,
	NodeType.PROJECT:      Difficulty.INTERMEDIATE,
	NodeType.ADVANCED:     Difficulty.ADVANCED,
}

_ID_PREFIX: dict[NodeType, str] = {
	NodeType.PREREQUISITE: "prereq",
	NodeType.CORE:         "core",
	NodeType.PROJECT:      "project",
	NodeType.ADVANCED:     "advanced",
}


class CycleDetected(ValueError):
	"""Raised when the dependency graph is not acyclic."""

	def __init__(self, cycle: list[str]) -> None:
		self.cycle = cycle
		super().__init__("dependency graph contains a cycle: " + " -> ".join(cycle))


# ---------------------------------------------------------------------------
# Node  (__slots__ for speed & memory)
# ---------------------------------------------------------------------------
class LearningNode:
	"""A single step of a visual roadmap."""

	__slots__ = (
		"id", "title", "description", "type", "status", "dependencies",
		"estimated_time", "difficulty", "resources", "skills", "position",
	)

	def __init__(
		self,
		node_id: str,
		title: str,
		description: str = "",
		node_type: NodeType = NodeType.CORE,
		status: NodeStatus = NodeStatus.LOCKED,
		dependencies: list[str] | None = None,
		estimated_time: str = "1 hour",
		difficulty: Difficulty = Difficulty.BEGINNER,
		resources: list[Resource] | None = None,
		skills: list[str] | None = None,
	) -> None:
		self.id = node_id
		self.title = title
		self.description = description
		self.type = node_type
		self.status = status
		self.dependencies: list[str] = list(dict.fromkeys(dependencies or []))
		self.estimated_time = estimated_time
		self.difficulty = difficulty
		self.resources: list[Resource] = list(resources or [])
		self.skills: list[str] = list(skills or [])
		self.position: dict[str, float] = {"x": 0.0, "y": 0.0}

	def to_dict(self) -> dict[str, Any]:
		return {
			"id":            self.id,
			"title":         self.title,
			"description":   self.description,
			"type":          self.type.value,
			"status":        self.status.value,
			"dependencies":  list(self.dependencies),
			"estimatedTime": self.estimated_time,
			"difficulty":    self.difficulty.value,
			"resources":     [r.to_dict() for r in self.resources],
			"skills":        list(self.skills),
			"position":      dict(self.position),
		}

	def __repr__(self) -> str:
		return f"LearningNode({self.id!r}, {self.title!r}, {self.type.value}, deps={self.dependencies})"


@dataclass(slots=True, frozen=True)
class Connection:
	"""Directed edge between two nodes (source → target)."""
	source: str
	target: str
	kind: ConnectionType = ConnectionType.PREREQUISITE

	def to_dict(self) -> dict[str, str]:
		return {"from": self.source, "to": self.target, "type": self.kind.value}


# ---------------------------------------------------------------------------
# Categorised input  (plain data from the content parser)
# ---------------------------------------------------------------------------
@dataclass(slots=True, frozen=True)
class ContentItem:
	title: str
	description: str = ""

	@classmethod
	def from_dict(cls, raw: Any) -> "ContentItem":
		if isinstance(raw, ContentItem):
			return raw
		if not isinstance(raw, dict):
			raise ValueError(f"content item must be an object, got {type(raw).__name__}")
		title = raw.get("title")
		if not isinstance(title, str) or not title.strip():
			raise ValueError(f"content item is missing a 'title': {raw!r}")
		description = raw.get("description") or ""
		if not isinstance(description, str):
			raise ValueError(f"description of {title!r} must be a string")
		return cls(title=title.strip(), description=description.strip())


@dataclass(slots=True)
class CategorizedContent:
	"""Items per category, in source order."""
	prerequisites: list[ContentItem] = field(default_factory=list)
	core_topics: list[ContentItem] = field(default_factory=list)
	projects: list[ContentItem] = field(default_factory=list)
	advanced_topics: list[ContentItem] = field(default_factory=list)

	@classmethod
	def from_dict(cls, raw: dict | None) -> "CategorizedContent":
		"""Accepts camelCase (coreTopics) and snake_case (core_topics) keys."""
		raw = raw or {}
		if not isinstance(raw, dict):
			raise ValueError("content must be an object of category lists")

		def _items(*keys: str) -> list[ContentItem]:
			for key in keys:
				if key in raw and raw[key] is not None:
					values = raw[key]
					if not isinstance(values, list):
						raise ValueError(f"'{key}' must be a list")
					return [ContentItem.from_dict(v) for v in values]
			return []

		return cls(
			prerequisites=_items("prerequisites"),
			core_topics=_items("coreTopics", "core_topics", "core"),
			projects=_items("projects"),
			advanced_topics=_items("advancedTopics", "advanced_topics", "advanced"),
		)

	def iter_items(self):
		yield from self.prerequisites
		yield from self.core_topics
		yield from self.projects
		yield from self.advanced_topics

	def source_text(self) -> str:
		"""Titles + descriptions joined, the fallback source for tag extraction."""
		return "\n".join(f"{i.title} {i.description}".strip() for i in self.iter_items())


Annotator = Callable[[ContentItem, NodeType], tuple[list[Resource], list[str]]]


# ---------------------------------------------------------------------------
# RoadmapGraph
# ---------------------------------------------------------------------------
class RoadmapGraph:
	"""
	Directed acyclic graph of LearningNodes.

	Edges go from dependency → dependent.  ``nodes`` keeps creation order,
	which is also the order connections are emitted in.

	Build with from_content() (categorised outline → scaffolded DAG) or
	from_nodes() (hand-supplied nodes, cycles possible → CycleDetected).
	"""

	__slots__ = ("topic", "nodes", "connections", "_next_id", "_depth_cache", "_recommended")

	def __init__(self, topic: str = "") -> None:
		self.topic = topic
		self.nodes: dict[str, LearningNode] = {}
		self.connections: list[Connection] = []
		self._next_id: int = 0
		self._depth_cache: dict[str, int] | None = None
		self._recommended: bool | None = None     # None until build_connections() runs

	# ---- helpers -----------------------------------------------------------
	@property
	def num_nodes(self) -> int:
		return len(self.nodes)

	def _invalidate_cache(self) -> None:
		self._depth_cache = None

	def _new_id(self, prefix: str) -> str:
		nid = f"{prefix}-{self._next_id}"
		self._next_id += 1
		return nid

	# ---- node helpers ------------------------------------------------------
	def add_node(self, node: LearningNode) -> None:
		"""
		Add a node whose dependencies are already in the graph.  Connections
		that were already built are rebuilt so they include the new edges.
		"""
		self._check_new(node)
		for dep in node.dependencies:
			if dep not in self.nodes:
				raise ValueError(f"dependency {dep!r} of {node.id!r} not found")
		self.nodes[node.id] = node
		self._invalidate_cache()
		if self._recommended is not None:
			self.build_connections(self._recommended)

	def _check_new(self, node: LearningNode) -> None:
		if node.id in self.nodes:
			raise ValueError(f"node id {node.id!r} already exists")
		if node.id in node.dependencies:
			raise CycleDetected([node.id, node.id])

	def get_node(self, node_id: str) -> LearningNode:
		try:
			return self.nodes[node_id]
		except KeyError:
			raise KeyError(f"node {node_id!r} not found") from None

	def nodes_of_type(self, node_type: NodeType) -> list[LearningNode]:
		return [n for n in self.nodes.values() if n.type == node_type]

	def node_list(self) -> list[LearningNode]:
		return list(self.nodes.values())

	# ---- connections -------------------------------------------------------
	def build_connections(self, recommended: bool = True) -> list[Connection]:
		"""
		One prerequisite connection per dependency edge, then (optionally)
		recommended hints between consecutive core nodes.
		"""
		conns: list[Connection] = []
		for node in self.nodes.values():
			for dep in node.dependencies:
				conns.append(Connection(dep, node.id, ConnectionType.PREREQUISITE))
		if recommended:
			core = self.nodes_of_type(NodeType.CORE)
			for a, b in zip(core, core[1:]):
				conns.append(Connection(a.id, b.id, ConnectionType.RECOMMENDED))
		self.connections = conns
		self._recommended = recommended
		return conns

	def incoming(self) -> dict[str, list[str]]:
		"""target → [source, ...] over all connections (duplicates kept)."""
		inc: dict[str, list[str]] = {nid: [] for nid in self.nodes}
		for c in self.connections:
			inc.setdefault(c.target, []).append(c.source)
		return inc

	def outgoing(self) -> dict[str, list[str]]:
		"""source → [target, ...] over all connections (duplicates kept)."""
		out: dict[str, list[str]] = {nid: [] for nid in self.nodes}
		for c in self.connections:
			out.setdefault(c.source, []).append(c.target)
		return out

	# ---- layer assignment (cached depths) ----------------------------------
	def depths(self) -> dict[str, int]:
		"""node id → depth, as a fresh dict (see _depths)."""
		return dict(self._depths())

	def _depths(self) -> dict[str, int]:
		"""
		depth(n) = 0 without dependencies, else 1 + max(depth(dep)).

		Memoised per node and cached until the graph changes.  Walks with an
		explicit stack; a node reached again while still on the stack means
		a cycle → CycleDetected.
		"""
		if self._depth_cache is not None:
			return self._depth_cache

		depth: dict[str, int] = {}
		visiting: set[str] = set()

		for root in self.nodes:
			if root in depth:
				continue
			stack: list[tuple[str, int]] = [(root, 0)]
			visiting.add(root)
			while stack:
				nid, i = stack[-1]
				deps = self.nodes[nid].dependencies
				if i < len(deps):
					stack[-1] = (nid, i + 1)
					dep = deps[i]
					if dep in depth:
						continue
					if dep in visiting:
						path = [n for n, _ in stack]
						raise CycleDetected(path[path.index(dep):] + [dep])
					visiting.add(dep)
					stack.append((dep, 0))
					continue
				stack.pop()
				visiting.discard(nid)
				depth[nid] = 1 + max((depth[d] for d in deps), default=-1)

		self._depth_cache = depth
		return depth

	@property
	def max_depth(self) -> int:
		return max(self._depths().values(), default=0)

	def layers(self) -> list[tuple[str, ...]]:
		"""Nodes grouped by depth, seeded by type priority then id."""
		depth = self._depths()
		if not depth:
			return []
		grouped: list[list[str]] = [[] for _ in range(self.max_depth + 1)]
		for nid in self.nodes:
			grouped[depth[nid]].append(nid)
		return [
			tuple(sorted(layer, key=lambda nid: (_TYPE_ORDER[self.nodes[nid].type], nid)))
			for layer in grouped
		]

	# ---- positions ---------------------------------------------------------
	def apply_positions(self, positions: dict[str, tuple[float, float]]) -> None:
		for nid, (x, y) in positions.items():
			self.nodes[nid].position = {"x": x, "y": y}

	# ---- content-based build -----------------------------------------------
	@classmethod
	def from_content(
		cls,
		topic: str,
		content: CategorizedContent | dict | None,
		annotator: Annotator | None = None,
	) -> "RoadmapGraph":
		"""
		Scaffold a roadmap DAG from a categorised outline:

		  start → prerequisites → core chain → projects (midpoint core)
		        → advanced (last core + first project) → completion
		"""
		if not isinstance(content, CategorizedContent):
			content = CategorizedContent.from_dict(content)
		graph = cls(topic=topic)
		graph._populate_from_content(content, annotator or default_annotator)
		graph.build_connections(recommended=True)
		log.debug(
			"built roadmap graph  topic=%r  nodes=%d  connections=%d",
			topic, graph.num_nodes, len(graph.connections),
		)
		return graph

	def _populate_from_content(self, content: CategorizedContent, annotator: Annotator) -> None:
		start = LearningNode(
			self._new_id("start"),
			title=f"Begin {self.topic} Journey",
			description="Start your learning adventure!",
			node_type=NodeType.MILESTONE,
			status=NodeStatus.NOT_STARTED,
			estimated_time="1 hour",
			difficulty=Difficulty.BEGINNER,
			skills=["motivation", "goal-setting"],
		)
		self.add_node(start)

		prereqs = [
			self._add_item(item, NodeType.PREREQUISITE, [start.id], annotator)
			for item in content.prerequisites
		]

		core: list[LearningNode] = []
		for i, item in enumerate(content.core_topics):
			if i == 0:
				deps = [prereqs[-1].id] if prereqs else [start.id]
			else:
				deps = [core[i - 1].id]
			core.append(self._add_item(item, NodeType.CORE, deps, annotator))

		midpoint = [core[len(core) // 2].id] if core else []
		projects = [
			self._add_item(item, NodeType.PROJECT, midpoint, annotator)
			for item in content.projects
		]

		advanced_deps: list[str] = []
		if core:
			advanced_deps.append(core[-1].id)
		if projects:
			advanced_deps.append(projects[0].id)
		for item in content.advanced_topics:
			self._add_item(item, NodeType.ADVANCED, advanced_deps, annotator)

		body = [n.id for n in self.nodes.values() if n.type != NodeType.MILESTONE]
		self.add_node(LearningNode(
			self._new_id("complete"),
			title=f"Master {self.topic}",
			description="Congratulations! You've completed the learning journey!",
			node_type=NodeType.MILESTONE,
			status=NodeStatus.LOCKED,
			dependencies=body or [start.id],
			estimated_time="1 hour",
			difficulty=Difficulty.EXPERT,
			resources=[Resource(
				kind="article",
				title="Next Steps in Your Learning Journey",
				description="Explore advanced applications and continue growing",
			)],
			skills=["mastery", "expertise"],
		))

	def _add_item(
		self,
		item: ContentItem,
		node_type: NodeType,
		dependencies: list[str],
		annotator: Annotator,
	) -> LearningNode:
		resources, skills = annotator(item, node_type)
		node = LearningNode(
			self._new_id(_ID_PREFIX[node_type]),
			title=item.title,
			description=item.description,
			node_type=node_type,
			status=NodeStatus.LOCKED,
			dependencies=dependencies,
			estimated_time=estimate_time(item.description, project=node_type == NodeType.PROJECT),
			difficulty=_TYPE_DIFFICULTY[node_type],
			resources=resources,
			skills=skills,
		)
		self.add_node(node)
		return node

	# ---- hand-supplied build -----------------------------------------------
	@classmethod
	def from_nodes(
		cls,
		nodes: list[LearningNode],
		topic: str = "",
		recommended: bool = False,
	) -> "RoadmapGraph":
		"""
		Build from ready-made nodes.  Forward references are allowed, so a
		cycle can slip in here and depths() will reject it.
		"""
		graph = cls(topic=topic)
		for node in nodes:
			graph._check_new(node)
			graph.nodes[node.id] = node
		for node in nodes:
			for dep in node.dependencies:
				if dep not in graph.nodes:
					raise ValueError(f"dependency {dep!r} of {node.id!r} not found")
		graph._next_id = len(graph.nodes)
		graph.build_connections(recommended=recommended)
		return graph

	# ---- pretty printing ---------------------------------------------------
	def print_roadmap(self) -> None:
		depth = self._depths()
		print(f"=== Roadmap: {self.topic} ===")
		for layer in self.layers():
			for nid in layer:
				n = self.nodes[nid]
				deps = ", ".join(n.dependencies) or "none"
				print(f"  [{depth[nid]}] {n.id:<14} {n.title} ({n.type.value}) | deps: {deps}")


# ---------------------------------------------------------------------------
# Demo
# ---------------------------------------------------------------------------
if __name__ == "__main__":
	sample = {
		"prerequisites": [{"title": "Python Basics", "description": "Syntax, data types, control flow"}],
		"coreTopics": [
			{"title": "NumPy", "description": "Arrays and vectorised maths"},
			{"title": "Pandas", "description": "DataFrames and cleaning"},
		],
		"projects": [{"title": "Sales Dashboard", "description": "Build a small analysis project"}],
		"advancedTopics": [{"title": "Performance Tuning", "description": "Advanced profiling"}],
	}
	RoadmapGraph.from_content("Data Analysis", sample).print_roadmap()
