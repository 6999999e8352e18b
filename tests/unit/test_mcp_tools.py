"""Tests for MCP tool core functions."""

import asyncio
from unittest.mock import patch

import pytest

from tests.unit.fakes import FakeApi, FakeClock
from workflowy_bridge.core.cache import OutlineCache
from workflowy_bridge.errors import RateLimitedError, UpstreamError
from workflowy_bridge.mcp.server import (
    ServerContext,
    mcp_server,
    server_lifespan,
    workflowy_cache_status,
    workflowy_create_node,
    workflowy_delete_node,
    workflowy_export,
    workflowy_get_node,
    workflowy_get_node_with_children,
    workflowy_list_nodes,
    workflowy_list_targets,
    workflowy_move_node,
    workflowy_search,
)


def test_search_returns_results_with_freshness(cache: OutlineCache) -> None:
    result = workflowy_search(cache, query="rubric")
    assert result["count"] == 3
    first = result["results"][0]
    assert first["id"] == "a"
    assert first["name"] == "Rubric v2"
    assert "url" in first
    assert result["stale"] is False
    assert result["snapshot_age_seconds"] == 0.0


def test_search_reports_stale_snapshot(
    cache: OutlineCache, fake_api: FakeApi, clock: FakeClock
) -> None:
    workflowy_search(cache, query="rubric")
    clock.advance(150)
    fake_api.queue_export(RateLimitedError(60))

    result = workflowy_search(cache, query="rubric")

    assert result["count"] == 3
    assert result["stale"] is True
    assert result["snapshot_age_seconds"] == 150.0


def test_search_rate_limited_without_cache_returns_error(clock: FakeClock) -> None:
    api = FakeApi()
    api.add_response("export_nodes", RateLimitedError(33))
    cache = OutlineCache(api, clock=clock)

    result = workflowy_search(cache, query="rubric")

    assert result["error_type"] == "RateLimitedError"
    assert result["retry_after"] == 33


def test_search_empty_query_returns_error(cache: OutlineCache) -> None:
    result = workflowy_search(cache, query="")
    assert result["error_type"] == "ValidationError"


def test_get_node_with_children_json_nests_children(cache: OutlineCache) -> None:
    result = workflowy_get_node_with_children(cache, node_id="root", depth=2)
    assert "error" not in result
    node = result["node"]
    assert [c["id"] for c in node["children"]] == ["a", "b"]
    a = node["children"][0]
    assert [c["id"] for c in a["children"]] == ["c"]
    assert "children" not in a["children"][0]


def test_get_node_with_children_markdown(cache: OutlineCache) -> None:
    result = workflowy_get_node_with_children(
        cache, node_id="root", depth=1, output_format="markdown"
    )
    assert result["node_id"] == "root"
    assert "Rubric v2" in result["content"]


def test_get_node_with_children_not_found(cache: OutlineCache) -> None:
    result = workflowy_get_node_with_children(cache, node_id="nope", depth=1)
    assert result["error_type"] == "NotFoundError"
    assert result["node_id"] == "nope"


def test_get_node_with_children_rejects_depth_over_five(
    cache: OutlineCache, fake_api: FakeApi
) -> None:
    result = workflowy_get_node_with_children(cache, node_id="root", depth=6)
    assert result["error_type"] == "ValidationError"
    assert fake_api.count("export_nodes") == 0


def test_get_node_with_children_rejects_unknown_format(cache: OutlineCache) -> None:
    result = workflowy_get_node_with_children(cache, node_id="root", output_format="xml")
    assert result["error_type"] == "ValidationError"


def test_export_returns_flat_nodes(cache: OutlineCache, fake_api: FakeApi) -> None:
    result = workflowy_export(cache)
    assert result["count"] == 5
    assert result["nodes"][3]["completed"] is True

    workflowy_export(cache, force_refresh=True)
    assert fake_api.count("export_nodes") == 2


def test_cache_status_reflects_reads_and_writes(cache: OutlineCache, fake_api: FakeApi) -> None:
    assert workflowy_cache_status(cache)["cached"] is False
    workflowy_export(cache)
    assert workflowy_cache_status(cache)["cached"] is True

    fake_api.add_response("delete_node", {"status": "ok"})
    workflowy_delete_node(fake_api, cache, node_id="d")
    assert workflowy_cache_status(cache)["cached"] is False


def test_write_then_read_fetches_fresh_outline(cache: OutlineCache, fake_api: FakeApi) -> None:
    fake_api.add_response("create_node", {"item_id": "new"})
    workflowy_search(cache, query="rubric")

    result = workflowy_create_node(fake_api, cache, name="Rubric v3", parent_id="root")
    fake_api.queue_export(
        {"nodes": [{"id": "new", "name": "Rubric v3", "parent_id": "root"}]}
    )
    after = workflowy_search(cache, query="rubric")

    assert result == {"item_id": "new"}
    assert fake_api.count("export_nodes") == 2
    assert [r["id"] for r in after["results"]] == ["new"]


def test_failed_write_returns_error_and_keeps_cache(
    cache: OutlineCache, fake_api: FakeApi
) -> None:
    fake_api.add_response("move_node", UpstreamError(500, "server exploded"))
    workflowy_export(cache)

    result = workflowy_move_node(fake_api, cache, node_id="a", parent_id="d")

    assert result["error_type"] == "UpstreamError"
    assert result["status"] == 500
    assert workflowy_cache_status(cache)["cached"] is True


def test_passthrough_reads_return_api_payload(fake_api: FakeApi) -> None:
    fake_api.add_response("get_node", {"node": {"id": "a"}})
    fake_api.add_response("list_nodes", {"nodes": []})
    fake_api.add_response("list_targets", {"targets": [{"key": "inbox"}]})

    assert workflowy_get_node(fake_api, node_id="a") == {"node": {"id": "a"}}
    assert workflowy_list_nodes(fake_api, parent_id="root") == {"nodes": []}
    assert workflowy_list_targets(fake_api) == {"targets": [{"key": "inbox"}]}
    assert ("list_nodes", ("root",)) in fake_api.calls
    assert fake_api.count("export_nodes") == 0


def test_server_lifespan_builds_shared_context(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORKFLOWY_CACHE_TTL", "120")
    api = FakeApi()

    async def enter() -> ServerContext:
        async with server_lifespan(mcp_server) as ctx:
            return ctx

    with patch("workflowy_bridge.mcp.server.WorkflowyApi", return_value=api):
        ctx = asyncio.run(enter())

    assert ctx.api is api
    assert ctx.cache.api is api
    assert ctx.cache.ttl == 120.0
