"""
Nested subtask tree helpers.

A thought's ``subtasks`` column holds a JSON list of nodes; each node may own
a ``subtasks`` list of its own. Depth is counted from 0 for the top-level
subtasks of a thought. Breakdowns stop at ``max_depth`` and stored trees are
never deeper than ``MAX_STORED_LEVELS`` levels, which also bounds recursion
in every helper below.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

MAX_SUBTASK_DEPTH = 4
MAX_STORED_LEVELS = MAX_SUBTASK_DEPTH + 1
DIFFICULTIES = ("easy", "medium", "hard")

Node = dict[str, Any]

_HOURS_PER_UNIT = (
    ("minute", 1 / 60),
    ("hour", 1),
    ("day", 8),
    ("week", 40),
    ("month", 160),
)


@dataclass
class Located:
    """A node found in the tree together with its position."""

    node: Node
    depth: int
    ancestors: list[str] = field(default_factory=list)


def children(node: Node) -> list[Node]:
    return node.get("subtasks") or []


def calculate_progress(node: Node) -> int:
    """
    Completion percentage of a node.

    A leaf is 0 or 100 by its own flag. A node with children is the share of
    children whose own progress is 100, rounded to an integer.
    """
    kids = children(node)
    if not kids:
        return 100 if node.get("completed") else 0
    done = sum(1 for kid in kids if calculate_progress(kid) == 100)
    return round(done / len(kids) * 100)


def tree_levels(nodes: Iterable[Node]) -> int:
    """Number of levels in a forest (0 for an empty list)."""
    nodes = list(nodes)
    if not nodes:
        return 0
    return 1 + max(tree_levels(children(n)) for n in nodes)


def parse_estimated_hours(label: str) -> float:
    """Convert labels such as "2 hours" or "3-5 days" into working hours."""
    text = (label or "").lower()
    match = re.search(r"\d+", text)
    value = int(match.group()) if match else 1
    for unit, hours in _HOURS_PER_UNIT:
        if unit in text:
            return value * hours
    return float(value)


def total_estimated_hours(nodes: Iterable[Node]) -> float:
    """
    Working hours for a list of tasks.

    Each task counts the larger of its own estimate and the total of its
    children, so a broken-down task is not counted twice.
    """
    return sum(
        max(parse_estimated_hours(node.get("estimated_time", "")), total_estimated_hours(children(node)))
        for node in nodes
    )


def _leading_number(label: str) -> int | None:
    match = re.match(r"\s*(\d+)", label or "")
    return int(match.group(1)) if match else None


def can_breakdown(node: Node, depth: int, max_depth: int = MAX_SUBTASK_DEPTH) -> bool:
    """
    Whether a node may be split further by the AI service.

    Easy tasks never qualify. Otherwise the estimate must be more than one
    hour, or be expressed in days or weeks.
    """
    if depth >= max_depth or node.get("difficulty") == "easy":
        return False
    label = (node.get("estimated_time") or "").lower()
    if "day" in label or "week" in label:
        return True
    if "hour" in label:
        hours = _leading_number(label)
        return hours is not None and hours > 1
    return False


def find_subtask(nodes: list[Node], subtask_id: int, depth: int = 0) -> Located | None:
    """Depth-first search for ``subtask_id``; returns the node with its ancestry."""
    for node in nodes:
        if node.get("id") == subtask_id:
            return Located(node=node, depth=depth)
        found = find_subtask(children(node), subtask_id, depth + 1)
        if found is not None:
            found.ancestors.insert(0, node.get("title", ""))
            return found
    return None


def max_id(nodes: list[Node]) -> int:
    ids = [0]
    for node in nodes:
        if isinstance(node.get("id"), int):
            ids.append(node["id"])
        ids.append(max_id(children(node)))
    return max(ids)


def set_completed(nodes: list[Node], subtask_id: int, completed: bool) -> list[Node] | None:
    """
    Return a copy of the tree with one node's completion flag set.

    Returns None when no node carries ``subtask_id``.
    """
    tree = copy.deepcopy(nodes)
    located = find_subtask(tree, subtask_id)
    if located is None:
        return None
    located.node["completed"] = completed
    return tree


def attach_children(nodes: list[Node], subtask_id: int, new_children: list[Node]) -> list[Node] | None:
    """
    Return a copy of the tree with ``new_children`` hung under ``subtask_id``.

    Children receive ids unique within the whole tree and start incomplete;
    the parent is marked expanded.
    """
    tree = copy.deepcopy(nodes)
    located = find_subtask(tree, subtask_id)
    if located is None:
        return None

    next_id = max_id(tree) + 1
    prepared = []
    for offset, child in enumerate(new_children):
        prepared.append(
            {
                "id": next_id + offset,
                "title": child.get("title", ""),
                "description": child.get("description", ""),
                "estimated_time": child.get("estimated_time", ""),
                "difficulty": child.get("difficulty") if child.get("difficulty") in DIFFICULTIES else "medium",
                "completed": False,
                "expanded": False,
                "subtasks": [],
            }
        )
    located.node["subtasks"] = prepared
    located.node["expanded"] = True
    return tree


def breadcrumb(root_title: str, located: Located) -> str:
    """Context string handed to the AI service, e.g. "Plan trip > Book > Flights"."""
    return " > ".join([root_title, *located.ancestors, located.node.get("title", "")])
