"""Substring search over the cached outline snapshot."""

from workflowy_bridge.core.cache import OutlineCache
from workflowy_bridge.errors import ValidationError
from workflowy_bridge.models.node import Node, SearchOptions, Snapshot


def _matches(node: Node, needle: str, options: SearchOptions) -> bool:
    if options.match_name:
        name = node.name if options.case_sensitive else node.name.lower()
        if needle in name:
            return True
    if options.match_note and node.note:
        note = node.note if options.case_sensitive else node.note.lower()
        if needle in note:
            return True
    return False


def _validate(query: str, options: SearchOptions) -> None:
    if not query.strip():
        raise ValidationError("No search query provided.")
    if options.max_results < 1:
        raise ValidationError(f"max_results must be at least 1, got {options.max_results}")


def search_nodes(
    cache: OutlineCache,
    query: str,
    options: SearchOptions | None = None,
) -> tuple[tuple[Node, ...], Snapshot]:
    """Search node names and notes for ``query``.

    Uses whatever snapshot the cache holds; a stale snapshot is acceptable
    here so the refresh is never forced. Matches come back in snapshot
    order, capped at ``max_results``, together with the snapshot they were
    read from.

    Raises:
        ValidationError: On an empty query or a non-positive ``max_results``,
            before the cache is consulted.
    """
    options = options or SearchOptions()
    _validate(query, options)
    snapshot = cache.get_snapshot()

    needle = query if options.case_sensitive else query.lower()
    results: list[Node] = []
    for node in snapshot.nodes:
        if _matches(node, needle, options):
            results.append(node)
            if len(results) >= options.max_results:
                break
    return tuple(results), snapshot
