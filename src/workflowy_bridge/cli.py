"""CLI for the Workflowy bridge (MCP server plus a few read commands)."""

import json
from typing import TYPE_CHECKING, Annotated, Any

import typer
from loguru import logger

from workflowy_bridge.config import DEFAULT_MAX_RESULTS, MAX_TREE_DEPTH, resolve_cache_ttl
from workflowy_bridge.logging_config import configure_logging

if TYPE_CHECKING:
    from workflowy_bridge.mcp.server import ServerContext

app = typer.Typer(help="Workflowy bridge: MCP server and outline lookups.")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    ctx.obj = {"verbose": verbose}
    configure_logging(verbose=verbose)


def _open_context() -> "ServerContext":
    """Build the API client and cache, exiting cleanly when no API key is configured."""
    from workflowy_bridge.api import WorkflowyApi
    from workflowy_bridge.core.cache import OutlineCache
    from workflowy_bridge.mcp.server import ServerContext

    try:
        api = WorkflowyApi()
        ttl = resolve_cache_ttl()
    except (RuntimeError, ValueError) as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    return ServerContext(api=api, cache=OutlineCache(api, ttl=ttl))


def _exit_on_error(result: dict[str, Any]) -> None:
    if "error" in result:
        typer.echo(result["error"], err=True)
        if "retry_after" in result:
            typer.echo(f"Retry after {result['retry_after']}s.", err=True)
        raise typer.Exit(1)


@app.command()
def serve(ctx: typer.Context) -> None:
    """Start the MCP server (stdio transport)."""
    from workflowy_bridge.mcp.server import run_mcp_server

    run_mcp_server(verbose=bool(ctx.obj and ctx.obj.get("verbose")))


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to search for in names and notes"),
    limit: int = typer.Option(DEFAULT_MAX_RESULTS, "--limit", "-n", help="Max results"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", "-c", help="Match case"),
    names_only: bool = typer.Option(False, "--names-only", help="Do not search notes"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Search the outline for nodes whose name or note contains QUERY."""
    from workflowy_bridge.mcp.server import workflowy_search

    ctx = _open_context()
    result = workflowy_search(
        ctx.cache,
        query=query,
        match_note=not names_only,
        case_sensitive=case_sensitive,
        max_results=limit,
    )
    _exit_on_error(result)

    if output_json:
        typer.echo(json.dumps(result, indent=2))
        return

    typer.echo(f"Found {result['count']} results:\n")
    for r in result["results"]:
        typer.echo(f"  {r['name'][:80]}")
        if r["note"]:
            typer.echo(f"    note: {r['note'][:60]}")
        typer.echo(f"    id={r['id']}")
        typer.echo()


@app.command()
def tree(
    node_id: str = typer.Argument(..., help="Node ID to read"),
    depth: Annotated[
        int,
        typer.Option("--depth", "-m", help=f"Levels of children to render (0-{MAX_TREE_DEPTH})"),
    ] = 2,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Read a node and its subtree as markdown."""
    from workflowy_bridge.mcp.server import workflowy_get_node_with_children

    ctx = _open_context()
    result = workflowy_get_node_with_children(
        ctx.cache,
        node_id=node_id,
        depth=depth,
        output_format="json" if output_json else "markdown",
    )
    _exit_on_error(result)

    if output_json:
        typer.echo(json.dumps(result, indent=2))
    else:
        typer.echo(result["content"])


@app.command()
def targets() -> None:
    """List shortcuts and system locations."""
    from workflowy_bridge.mcp.server import workflowy_list_targets

    ctx = _open_context()
    result = workflowy_list_targets(ctx.api)
    _exit_on_error(result)
    typer.echo(json.dumps(result, indent=2))


@app.command(name="cache-ttl")
def cache_ttl() -> None:
    """Print the effective cache freshness window."""
    try:
        ttl = resolve_cache_ttl()
    except ValueError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    typer.echo(f"{ttl:g}")
