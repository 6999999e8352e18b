"""Write operations against the Workflowy API with cache invalidation.

Every function validates its arguments, calls the API once and, only if
that call succeeded, invalidates the outline cache. The API response is
returned unchanged. Failures propagate and leave the cache untouched.
"""

from typing import Any

from loguru import logger

from workflowy_bridge.config import LAYOUT_MODES
from workflowy_bridge.core.cache import OutlineCache
from workflowy_bridge.errors import ValidationError
from workflowy_bridge.protocols import ApiProtocol


def _require_id(value: str | None, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required.")
    return value


def _check_priority(priority: int | None) -> None:
    if priority is not None and priority < 0:
        raise ValidationError(f"priority must be non-negative, got {priority}")


def _check_layout_mode(layout_mode: str | None) -> None:
    if layout_mode is not None and layout_mode not in LAYOUT_MODES:
        msg = f"layout_mode must be one of {', '.join(LAYOUT_MODES)}; got {layout_mode!r}"
        raise ValidationError(msg)


def _node_fields(
    *,
    name: str | None,
    note: str | None,
    priority: int | None,
    layout_mode: str | None,
) -> dict[str, Any]:
    """Build a request body, omitting fields the caller did not supply."""
    body: dict[str, Any] = {}
    if name is not None:
        body["name"] = name
    if note is not None:
        body["note"] = note
    if priority is not None:
        body["priority"] = priority
    if layout_mode is not None:
        body["layoutMode"] = layout_mode
    return body


def _after_write(cache: OutlineCache, action: str, node_id: str | None) -> None:
    logger.info("{} succeeded for {}", action, node_id or "new node")
    cache.invalidate()


def create_node(
    api: ApiProtocol,
    cache: OutlineCache,
    *,
    name: str,
    parent_id: str | None = None,
    note: str | None = None,
    priority: int | None = None,
    layout_mode: str | None = None,
) -> dict[str, Any]:
    """Create a node.

    Args:
        api: Workflowy API client.
        cache: Outline cache to invalidate on success.
        name: Text of the new node.
        parent_id: Parent node ID (None = top level).
        note: Optional note text.
        priority: Position among siblings (None = let Workflowy append).
        layout_mode: Optional display mode, one of LAYOUT_MODES.
    """
    if not name or not name.strip():
        raise ValidationError("name is required.")
    _check_priority(priority)
    _check_layout_mode(layout_mode)

    body = _node_fields(name=name, note=note, priority=priority, layout_mode=layout_mode)
    if parent_id is not None:
        body["parentId"] = parent_id

    result = api.create_node(body)
    _after_write(cache, "create", result.get("item_id") or result.get("id"))
    return result


def update_node(
    api: ApiProtocol,
    cache: OutlineCache,
    *,
    node_id: str,
    name: str | None = None,
    note: str | None = None,
    priority: int | None = None,
    layout_mode: str | None = None,
) -> dict[str, Any]:
    """Update a node's name, note, priority or layout mode.

    Args:
        api: Workflowy API client.
        cache: Outline cache to invalidate on success.
        node_id: ID of the node to update.
        name: New name text.
        note: New note text.
        priority: New position among siblings.
        layout_mode: New display mode.
    """
    _require_id(node_id, "node_id")
    _check_priority(priority)
    _check_layout_mode(layout_mode)

    body = _node_fields(name=name, note=note, priority=priority, layout_mode=layout_mode)
    if not body:
        raise ValidationError("No fields to update.")

    result = api.update_node(node_id, body)
    _after_write(cache, "update", node_id)
    return result


def delete_node(api: ApiProtocol, cache: OutlineCache, *, node_id: str) -> dict[str, Any]:
    """Delete a node and its whole subtree."""
    _require_id(node_id, "node_id")
    result = api.delete_node(node_id)
    _after_write(cache, "delete", node_id)
    return result


def move_node(
    api: ApiProtocol,
    cache: OutlineCache,
    *,
    node_id: str,
    parent_id: str,
    priority: int | None = None,
) -> dict[str, Any]:
    """Move a node under a new parent.

    Args:
        api: Workflowy API client.
        cache: Outline cache to invalidate on success.
        node_id: ID of the node to move.
        parent_id: ID of the new parent.
        priority: Position among the new siblings (None = let Workflowy append).
    """
    _require_id(node_id, "node_id")
    _require_id(parent_id, "parent_id")
    _check_priority(priority)

    body: dict[str, Any] = {"parentId": parent_id}
    if priority is not None:
        body["priority"] = priority

    result = api.move_node(node_id, body)
    _after_write(cache, "move", node_id)
    return result


def complete_node(api: ApiProtocol, cache: OutlineCache, *, node_id: str) -> dict[str, Any]:
    """Mark a node as completed."""
    _require_id(node_id, "node_id")
    result = api.complete_node(node_id)
    _after_write(cache, "complete", node_id)
    return result


def uncomplete_node(api: ApiProtocol, cache: OutlineCache, *, node_id: str) -> dict[str, Any]:
    """Mark a node as not completed."""
    _require_id(node_id, "node_id")
    result = api.uncomplete_node(node_id)
    _after_write(cache, "uncomplete", node_id)
    return result
