"""Parse /nodes-export payloads into domain models."""

from typing import Any

from workflowy_bridge.errors import UpstreamError
from workflowy_bridge.models.node import Node


def _parse_priority(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_node(raw: dict[str, Any]) -> Node:
    """Convert one exported node dict into a Node.

    The export API is not consistent about key spelling, so both the
    snake_case and camelCase variants are accepted. ``layoutMode`` may sit
    at the top level or under ``data``.
    """
    data = raw.get("data") or {}
    layout_mode = raw.get("layoutMode") or data.get("layoutMode") or raw.get("layout_mode")

    parent_id = raw.get("parent_id", raw.get("parentId"))
    completed = raw.get("completed")
    if completed is None:
        completed = raw.get("completedAt", raw.get("completed_at")) is not None

    note = raw.get("note")
    return Node(
        id=str(raw["id"]),
        parent_id=str(parent_id) if parent_id else None,
        name=raw.get("name") or "",
        note=note if note else None,
        priority=_parse_priority(raw.get("priority")),
        layout_mode=layout_mode or None,
        completed=bool(completed),
    )


def parse_export_data(data: dict[str, Any]) -> tuple[Node, ...]:
    """Parse a /nodes-export response into Nodes, preserving export order.

    Entries without an id are skipped; everything else is kept as-is,
    including dangling parent references.

    Raises:
        UpstreamError: If the response carries no node list.
    """
    raw_nodes = data.get("nodes")
    if not isinstance(raw_nodes, list):
        raise UpstreamError(None, "export response has no node list")
    return tuple(parse_node(raw) for raw in raw_nodes if raw.get("id"))
