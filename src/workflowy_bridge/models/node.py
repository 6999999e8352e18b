"""Domain models for the Workflowy outline."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Node:
    """A single node (bullet or task) in the Workflowy outline."""

    id: str
    parent_id: str | None
    name: str
    note: str | None = None
    priority: int | None = None
    layout_mode: str | None = None
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "name": self.name,
            "note": self.note,
            "priority": self.priority,
            "layout_mode": self.layout_mode,
            "completed": self.completed,
        }


@dataclass(frozen=True)
class Snapshot:
    """The whole outline as captured by one /nodes-export call.

    ``fetched_at`` is a monotonic clock reading. ``stale`` is only set on
    a snapshot served past its freshness window because a refresh was
    rate limited.
    """

    nodes: tuple[Node, ...]
    fetched_at: float
    stale: bool = False

    def age(self, now: float) -> float:
        """Seconds since capture."""
        return max(0.0, now - self.fetched_at)


@dataclass(frozen=True)
class SearchOptions:
    """Matching rules for a snapshot search."""

    match_name: bool = True
    match_note: bool = True
    case_sensitive: bool = False
    max_results: int = 100


@dataclass(frozen=True)
class NodeTree:
    """A node with a bounded number of descendant levels attached.

    ``children`` is None once the depth budget is spent, even if the node
    has children in the snapshot; ``child_count`` always reflects the
    snapshot.
    """

    node: Node
    child_count: int = 0
    children: "tuple[NodeTree, ...] | None" = None

    def to_dict(self) -> dict[str, Any]:
        data = self.node.to_dict()
        data["child_count"] = self.child_count
        if self.children is not None:
            data["children"] = [c.to_dict() for c in self.children]
        return data
