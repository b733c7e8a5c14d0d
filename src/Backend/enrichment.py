import math
import re
from dataclasses import dataclass
from typing import Any


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class Resource:
	"""A single learning resource attached to a node (article, video, ...)."""
	title: str
	kind: str = "article"     # "article" | "video" | "course" | "book" | "practice"
	description: str = ""
	url: str = ""

	def to_dict(self) -> dict[str, Any]:
		d: dict[str, Any] = {"type": self.kind, "title": self.title, "description": self.description}
		if self.url:
			d["url"] = self.url
		return d

	def __repr__(self) -> str:
		return f"{self.title}  [{self.kind}]"


# ---------------------------------------------------------------------------
# Time estimate (label text, parsed back by the summary)
# ---------------------------------------------------------------------------
_WORDS_PER_UNIT = 20
_BASE_HOURS_TOPIC = 2
_BASE_HOURS_PROJECT = 4


def estimate_time(description: str, project: bool = False) -> str:
	"""'<hours> hours': base hours times one unit per 20 description words."""
	word_count = len(description.split(" "))
	base = _BASE_HOURS_PROJECT if project else _BASE_HOURS_TOPIC
	return f"{base * math.ceil(word_count / _WORDS_PER_UNIT)} hours"


# ---------------------------------------------------------------------------
# Stub annotator: resources + skills
# ---------------------------------------------------------------------------
_SKILL_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
_MAX_SKILLS = 3


def extract_skills(description: str) -> list[str]:
	"""First three capitalised phrases, de-duplicated in order."""
	matches = _SKILL_RE.findall(description)[:_MAX_SKILLS]
	return list(dict.fromkeys(matches))


def generate_resources(title: str, project: bool = False) -> list[Resource]:
	resources = [
		Resource(
			title=f"Learn {title}: Complete Guide",
			kind="article",
			description=f"Comprehensive article covering {title} fundamentals",
		),
		Resource(
			title=f"{title} Tutorial",
			kind="video",
			description=f"Video walkthrough of {title} concepts",
		),
	]
	if project:
		resources.append(Resource(
			title=f"{title} Hands-on Practice",
			kind="practice",
			description=f"Interactive exercises for {title}",
		))
	return resources


def default_annotator(item, node_type) -> tuple[list[Resource], list[str]]:
	"""Offline stand-in for the resource/skill service."""
	is_project = node_type.value == "project"
	return generate_resources(item.title, project=is_project), extract_skills(item.description)
