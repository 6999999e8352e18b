"""MCP server exposing Workflowy outline tools."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from workflowy_bridge.api import WorkflowyApi
from workflowy_bridge.config import DEFAULT_MAX_RESULTS, resolve_cache_ttl
from workflowy_bridge.core.cache import OutlineCache
from workflowy_bridge.core.search.searcher import search_nodes
from workflowy_bridge.core.tree.hierarchy import get_with_children
from workflowy_bridge.core.tree.markdown import render_tree_as_markdown
from workflowy_bridge.core.write import client as write_client
from workflowy_bridge.errors import (
    NotFoundError,
    RateLimitedError,
    UpstreamError,
    ValidationError,
    WorkflowyError,
)
from workflowy_bridge.models.node import SearchOptions, Snapshot
from workflowy_bridge.protocols import ApiProtocol


def _build_url(node_id: str) -> str:
    return f"https://workflowy.com/#/{node_id.replace('-', '')[-12:]}"


def _error_response(exc: WorkflowyError) -> dict[str, Any]:
    """Convert a bridge exception into a JSON-ready error payload."""
    result: dict[str, Any] = {"error": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, RateLimitedError):
        result["retry_after"] = exc.retry_after
    elif isinstance(exc, UpstreamError):
        result["status"] = exc.status
    elif isinstance(exc, NotFoundError):
        result["node_id"] = exc.node_id
    return result


def _guarded(fn: Callable[[], dict[str, Any]]) -> dict[str, Any]:
    try:
        return fn()
    except WorkflowyError as e:
        logger.warning("{}: {}", type(e).__name__, e)
        return _error_response(e)


def _freshness(cache: OutlineCache, snapshot: Snapshot) -> dict[str, Any]:
    """Age metadata attached to every cache-derived response."""
    return {
        "snapshot_age_seconds": round(cache.age_of(snapshot), 1),
        "stale": snapshot.stale,
    }


# --- Read core functions (testable without MCP context) ---


def workflowy_search(
    cache: OutlineCache,
    *,
    query: str,
    match_name: bool = True,
    match_note: bool = True,
    case_sensitive: bool = False,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> dict[str, Any]:
    """Search node names and notes in the cached outline.

    Args:
        query: Substring to look for.
        match_name: Search node names.
        match_note: Search node notes.
        case_sensitive: Match case exactly.
        max_results: Max results, in outline order.
    """
    options = SearchOptions(
        match_name=match_name,
        match_note=match_note,
        case_sensitive=case_sensitive,
        max_results=max_results,
    )

    def run() -> dict[str, Any]:
        hits, snapshot = search_nodes(cache, query, options)
        return {
            "results": [{**n.to_dict(), "url": _build_url(n.id)} for n in hits],
            "count": len(hits),
            **_freshness(cache, snapshot),
        }

    return _guarded(run)


def workflowy_get_node_with_children(
    cache: OutlineCache,
    *,
    node_id: str,
    depth: int = 1,
    output_format: str = "json",
    include_notes: bool = True,
) -> dict[str, Any]:
    """Read a node plus up to ``depth`` levels of children from the cached outline.

    Args:
        node_id: Node ID to read.
        depth: Levels of children to include (0-5).
        output_format: "json" (nested) or "markdown".
        include_notes: Include notes in markdown output.
    """

    def run() -> dict[str, Any]:
        if output_format not in ("json", "markdown"):
            msg = f"output_format must be 'json' or 'markdown', got {output_format!r}"
            raise ValidationError(msg)
        tree, snapshot = get_with_children(cache, node_id, depth)
        result: dict[str, Any] = {"url": _build_url(node_id), **_freshness(cache, snapshot)}
        if output_format == "markdown":
            result["content"] = render_tree_as_markdown(tree, include_notes=include_notes)
            result["node_id"] = node_id
        else:
            result["node"] = tree.to_dict()
        return result

    return _guarded(run)


def workflowy_export(cache: OutlineCache, *, force_refresh: bool = False) -> dict[str, Any]:
    """Return the whole cached outline as a flat node list.

    Args:
        force_refresh: Bypass the freshness window (stale data is still
            served if the refresh is rate limited).
    """

    def run() -> dict[str, Any]:
        snapshot = cache.get_snapshot(force_refresh=force_refresh)
        return {
            "nodes": [n.to_dict() for n in snapshot.nodes],
            "count": len(snapshot.nodes),
            **_freshness(cache, snapshot),
        }

    return _guarded(run)


def workflowy_cache_status(cache: OutlineCache) -> dict[str, Any]:
    """Report the outline cache state without calling the API."""
    return cache.status()


def workflowy_get_node(api: ApiProtocol, *, node_id: str) -> dict[str, Any]:
    """Fetch a single node directly from the API (not cached)."""

    def run() -> dict[str, Any]:
        if not node_id.strip():
            raise ValidationError("node_id is required.")
        return api.get_node(node_id)

    return _guarded(run)


def workflowy_list_nodes(api: ApiProtocol, *, parent_id: str | None = None) -> dict[str, Any]:
    """List direct children of ``parent_id`` (top level when omitted) via the API."""
    return _guarded(lambda: api.list_nodes(parent_id))


def workflowy_list_targets(api: ApiProtocol) -> dict[str, Any]:
    """List shortcuts and system locations via the API."""
    return _guarded(api.list_targets)


# --- Write core functions ---


def workflowy_create_node(
    api: ApiProtocol,
    cache: OutlineCache,
    *,
    name: str,
    parent_id: str | None = None,
    note: str | None = None,
    priority: int | None = None,
    layout_mode: str | None = None,
) -> dict[str, Any]:
    """Create a node and invalidate the outline cache."""
    return _guarded(
        lambda: write_client.create_node(
            api,
            cache,
            name=name,
            parent_id=parent_id,
            note=note,
            priority=priority,
            layout_mode=layout_mode,
        )
    )


def workflowy_update_node(
    api: ApiProtocol,
    cache: OutlineCache,
    *,
    node_id: str,
    name: str | None = None,
    note: str | None = None,
    priority: int | None = None,
    layout_mode: str | None = None,
) -> dict[str, Any]:
    """Update a node and invalidate the outline cache."""
    return _guarded(
        lambda: write_client.update_node(
            api,
            cache,
            node_id=node_id,
            name=name,
            note=note,
            priority=priority,
            layout_mode=layout_mode,
        )
    )


def workflowy_delete_node(api: ApiProtocol, cache: OutlineCache, *, node_id: str) -> dict[str, Any]:
    """Delete a node and invalidate the outline cache."""
    return _guarded(lambda: write_client.delete_node(api, cache, node_id=node_id))


def workflowy_move_node(
    api: ApiProtocol,
    cache: OutlineCache,
    *,
    node_id: str,
    parent_id: str,
    priority: int | None = None,
) -> dict[str, Any]:
    """Move a node and invalidate the outline cache."""
    return _guarded(
        lambda: write_client.move_node(
            api, cache, node_id=node_id, parent_id=parent_id, priority=priority
        )
    )


def workflowy_complete_node(
    api: ApiProtocol, cache: OutlineCache, *, node_id: str
) -> dict[str, Any]:
    """Complete a node and invalidate the outline cache."""
    return _guarded(lambda: write_client.complete_node(api, cache, node_id=node_id))


def workflowy_uncomplete_node(
    api: ApiProtocol, cache: OutlineCache, *, node_id: str
) -> dict[str, Any]:
    """Uncomplete a node and invalidate the outline cache."""
    return _guarded(lambda: write_client.uncomplete_node(api, cache, node_id=node_id))


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    api: ApiProtocol
    cache: OutlineCache


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Create the API client and the outline cache on startup."""
    api = WorkflowyApi()
    ttl = resolve_cache_ttl()
    logger.info("Workflowy bridge ready (cache TTL {}s)", ttl)
    yield ServerContext(api=api, cache=OutlineCache(api, ttl=ttl))


mcp_server = FastMCP(
    "workflowy-bridge",
    instructions="""\
Workflowy is a tree-structured outliner. Reads (search, subtree, export) are
served from a cached copy of the whole outline that refreshes at most every
~90 seconds, because Workflowy only allows about one full export per minute.

## Reading
1. Use workflowy_search_tool to find nodes by name or note text.
2. Call workflowy_get_node_with_children_tool on interesting results
   (depth 1-5) to see what is underneath them.
3. Every read reports snapshot_age_seconds and stale. stale=true means the
   refresh was rate limited and older data was served.

## Writing
Create/update/delete/move/complete calls go straight to Workflowy and clear
the cache, so the next read fetches a fresh outline.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def workflowy_search_tool(
    ctx: Context,
    query: str,
    match_name: bool = True,
    match_note: bool = True,
    case_sensitive: bool = False,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> dict[str, Any]:
    """Search Workflowy node names and notes (case-insensitive substring by default).

    Results come back in outline order without ranking and do NOT include
    children; use workflowy_get_node_with_children_tool for that.

    Args:
        query: Text to search for.
        match_name: Search node names.
        match_note: Search node notes.
        case_sensitive: Match case exactly.
        max_results: Max results (default 100).
    """
    return workflowy_search(
        _ctx(ctx).cache,
        query=query,
        match_name=match_name,
        match_note=match_note,
        case_sensitive=case_sensitive,
        max_results=max_results,
    )


@mcp_server.tool()
async def workflowy_get_node_with_children_tool(
    ctx: Context,
    node_id: str,
    depth: int = 1,
    output_format: str = "json",
    include_notes: bool = True,
) -> dict[str, Any]:
    """Read a node and its descendants up to a depth limit.

    Nodes at the depth limit report child_count but carry no children key;
    call again with their id to drill down.

    Args:
        node_id: Node ID to read.
        depth: Levels of children to include (0-5, default 1).
        output_format: "json" (nested) or "markdown" (indented bullets).
        include_notes: Include notes in markdown output.
    """
    return workflowy_get_node_with_children(
        _ctx(ctx).cache,
        node_id=node_id,
        depth=depth,
        output_format=output_format,
        include_notes=include_notes,
    )


@mcp_server.tool()
async def workflowy_export_tool(ctx: Context, force_refresh: bool = False) -> dict[str, Any]:
    """Export the entire outline as a flat node list.

    Served from the cache; force_refresh bypasses the freshness window but
    Workflowy allows only about one export per minute.

    Args:
        force_refresh: Fetch a new snapshot even if the cached one is fresh.
    """
    return workflowy_export(_ctx(ctx).cache, force_refresh=force_refresh)


@mcp_server.tool()
async def workflowy_cache_status_tool(ctx: Context) -> dict[str, Any]:
    """Show whether an outline snapshot is cached and how old it is."""
    return workflowy_cache_status(_ctx(ctx).cache)


@mcp_server.tool()
async def workflowy_get_node_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Retrieve details about a specific node by its ID (live API call).

    Args:
        node_id: The unique ID of the node to retrieve.
    """
    return workflowy_get_node(_ctx(ctx).api, node_id=node_id)


@mcp_server.tool()
async def workflowy_list_nodes_tool(ctx: Context, parent_id: str | None = None) -> dict[str, Any]:
    """List child nodes under a parent (root-level nodes when omitted).

    Args:
        parent_id: ID of the parent node.
    """
    return workflowy_list_nodes(_ctx(ctx).api, parent_id=parent_id)


@mcp_server.tool()
async def workflowy_list_targets_tool(ctx: Context) -> dict[str, Any]:
    """List available shortcuts and system locations in Workflowy."""
    return workflowy_list_targets(_ctx(ctx).api)


@mcp_server.tool()
async def workflowy_create_node_tool(
    ctx: Context,
    name: str,
    parent_id: str | None = None,
    note: str | None = None,
    priority: int | None = None,
    layout_mode: str | None = None,
) -> dict[str, Any]:
    """Create a new node (bullet point) in Workflowy.

    Args:
        name: Main text of the node (supports markdown).
        parent_id: Parent node ID (defaults to the top level).
        note: Optional note text.
        priority: Sort order among siblings (defaults to last).
        layout_mode: bullets, todo, h1, h2, h3, code-block or quote-block.
    """
    c = _ctx(ctx)
    return workflowy_create_node(
        c.api,
        c.cache,
        name=name,
        parent_id=parent_id,
        note=note,
        priority=priority,
        layout_mode=layout_mode,
    )


@mcp_server.tool()
async def workflowy_update_node_tool(
    ctx: Context,
    node_id: str,
    name: str | None = None,
    note: str | None = None,
    priority: int | None = None,
    layout_mode: str | None = None,
) -> dict[str, Any]:
    """Update an existing node's name, note, priority, or layout mode.

    Args:
        node_id: Node ID to update.
        name: Updated text.
        note: Updated note.
        priority: Updated sort order.
        layout_mode: Updated display style.
    """
    c = _ctx(ctx)
    return workflowy_update_node(
        c.api,
        c.cache,
        node_id=node_id,
        name=name,
        note=note,
        priority=priority,
        layout_mode=layout_mode,
    )


@mcp_server.tool()
async def workflowy_delete_node_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Permanently delete a node and all its children.

    Args:
        node_id: Node ID to delete.
    """
    c = _ctx(ctx)
    return workflowy_delete_node(c.api, c.cache, node_id=node_id)


@mcp_server.tool()
async def workflowy_move_node_tool(
    ctx: Context,
    node_id: str,
    parent_id: str,
    priority: int | None = None,
) -> dict[str, Any]:
    """Move a node under a different parent.

    Args:
        node_id: Node ID to move.
        parent_id: ID of the new parent node.
        priority: Sort order in the new location (defaults to last).
    """
    c = _ctx(ctx)
    return workflowy_move_node(
        c.api, c.cache, node_id=node_id, parent_id=parent_id, priority=priority
    )


@mcp_server.tool()
async def workflowy_complete_node_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Mark a node as complete.

    Args:
        node_id: Node ID to complete.
    """
    c = _ctx(ctx)
    return workflowy_complete_node(c.api, c.cache, node_id=node_id)


@mcp_server.tool()
async def workflowy_uncomplete_node_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Mark a node as not complete.

    Args:
        node_id: Node ID to uncomplete.
    """
    c = _ctx(ctx)
    return workflowy_uncomplete_node(c.api, c.cache, node_id=node_id)


def run_mcp_server(*, verbose: bool = False) -> None:
    """Run the MCP server with stdio transport."""
    from workflowy_bridge.logging_config import configure_logging

    configure_logging(verbose=verbose)
    mcp_server.run(transport="stdio")
