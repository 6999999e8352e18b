"""Rebuild bounded-depth subtrees from the flat outline snapshot."""

from collections.abc import Mapping, Sequence

from workflowy_bridge.config import MAX_TREE_DEPTH
from workflowy_bridge.core.cache import OutlineCache
from workflowy_bridge.errors import NotFoundError, ValidationError
from workflowy_bridge.models.node import Node, NodeTree, Snapshot


def _validate_depth(depth: int) -> None:
    if depth < 0 or depth > MAX_TREE_DEPTH:
        msg = f"depth must be between 0 and {MAX_TREE_DEPTH}, got {depth}"
        raise ValidationError(msg)


def _index_snapshot(
    nodes: Sequence[Node],
) -> tuple[dict[str, Node], dict[str, list[Node]]]:
    """Index nodes by id and group them by parent id, keeping snapshot order."""
    by_id: dict[str, Node] = {}
    children_by_parent: dict[str, list[Node]] = {}
    for node in nodes:
        by_id.setdefault(node.id, node)
        if node.parent_id is not None:
            children_by_parent.setdefault(node.parent_id, []).append(node)
    return by_id, children_by_parent


def _expand(node: Node, depth: int, children_by_parent: Mapping[str, list[Node]]) -> NodeTree:
    # Bounded by depth alone: a cyclic snapshot still terminates.
    children = children_by_parent.get(node.id, [])
    if depth <= 0:
        return NodeTree(node=node, child_count=len(children))
    return NodeTree(
        node=node,
        child_count=len(children),
        children=tuple(_expand(c, depth - 1, children_by_parent) for c in children),
    )


def get_with_children(
    cache: OutlineCache, node_id: str, depth: int
) -> tuple[NodeTree, Snapshot]:
    """Materialize ``node_id`` plus ``depth`` levels of descendants.

    Reads the cached outline (stale data is acceptable) and returns the
    subtree together with the snapshot it was built from.

    Args:
        cache: Source of the outline snapshot.
        node_id: Root of the returned subtree.
        depth: Levels of children to attach (0 returns the node alone).

    Raises:
        ValidationError: If ``depth`` is out of range, before any fetch.
        NotFoundError: If ``node_id`` is not in the snapshot.
    """
    _validate_depth(depth)
    snapshot = cache.get_snapshot()
    by_id, children_by_parent = _index_snapshot(snapshot.nodes)
    node = by_id.get(node_id)
    if node is None:
        raise NotFoundError(node_id)
    return _expand(node, depth, children_by_parent), snapshot
