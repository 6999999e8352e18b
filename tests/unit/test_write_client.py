"""Tests for write operations and cache invalidation."""

import pytest

from tests.unit.fakes import FakeApi
from workflowy_bridge.core.cache import OutlineCache
from workflowy_bridge.core.write.client import (
    complete_node,
    create_node,
    delete_node,
    move_node,
    uncomplete_node,
    update_node,
)
from workflowy_bridge.errors import RateLimitedError, UpstreamError, ValidationError


def test_create_node_omits_absent_fields(cache: OutlineCache, fake_api: FakeApi) -> None:
    fake_api.add_response("create_node", {"item_id": "new123"})

    result = create_node(fake_api, cache, name="New child")

    assert result == {"item_id": "new123"}
    assert fake_api.calls[-1] == ("create_node", ({"name": "New child"},))


def test_create_node_sends_all_supplied_fields(cache: OutlineCache, fake_api: FakeApi) -> None:
    fake_api.add_response("create_node", {"item_id": "new123"})

    create_node(
        fake_api,
        cache,
        name="Heading",
        parent_id="root",
        note="n",
        priority=0,
        layout_mode="h2",
    )

    _method, (body,) = fake_api.calls[-1]
    assert body == {
        "name": "Heading",
        "parentId": "root",
        "note": "n",
        "priority": 0,
        "layoutMode": "h2",
    }


def test_successful_write_triggers_one_refetch(cache: OutlineCache, fake_api: FakeApi) -> None:
    fake_api.add_response("update_node", {"status": "ok"})
    cache.get_snapshot()
    before = fake_api.count("export_nodes")

    update_node(fake_api, cache, node_id="a", name="Rubric v3")
    cache.get_snapshot()
    cache.get_snapshot()

    assert fake_api.count("export_nodes") == before + 1


@pytest.mark.parametrize(
    ("method", "call"),
    [
        ("delete_node", lambda api, cache: delete_node(api, cache, node_id="a")),
        ("complete_node", lambda api, cache: complete_node(api, cache, node_id="a")),
        ("uncomplete_node", lambda api, cache: uncomplete_node(api, cache, node_id="a")),
        ("move_node", lambda api, cache: move_node(api, cache, node_id="a", parent_id="d")),
    ],
)
def test_each_mutation_invalidates_on_success(
    cache: OutlineCache, fake_api: FakeApi, method: str, call: object
) -> None:
    fake_api.add_response(method, {"status": "ok"})
    cache.get_snapshot()

    result = call(fake_api, cache)  # type: ignore[operator]

    assert result == {"status": "ok"}
    assert cache.status()["cached"] is False


def test_failed_write_leaves_cache_untouched(cache: OutlineCache, fake_api: FakeApi) -> None:
    fake_api.add_response("delete_node", UpstreamError(404, "Not found"))
    original = cache.get_snapshot()
    age_before = cache.status()["age_seconds"]

    with pytest.raises(UpstreamError):
        delete_node(fake_api, cache, node_id="a")

    assert cache.status()["age_seconds"] == age_before
    assert cache.get_snapshot() is original
    assert fake_api.count("export_nodes") == 1


def test_rate_limited_write_propagates_without_invalidating(
    cache: OutlineCache, fake_api: FakeApi
) -> None:
    fake_api.add_response("complete_node", RateLimitedError(60))
    cache.get_snapshot()

    with pytest.raises(RateLimitedError):
        complete_node(fake_api, cache, node_id="b")

    assert cache.status()["cached"] is True


def test_move_node_priority_is_optional(cache: OutlineCache, fake_api: FakeApi) -> None:
    fake_api.add_response("move_node", {"status": "ok"})

    move_node(fake_api, cache, node_id="c", parent_id="root")
    move_node(fake_api, cache, node_id="c", parent_id="root", priority=2)

    moves = [args for name, args in fake_api.calls if name == "move_node"]
    assert moves == [("c", {"parentId": "root"}), ("c", {"parentId": "root", "priority": 2})]


@pytest.mark.parametrize(
    "call",
    [
        lambda api, cache: create_node(api, cache, name="  "),
        lambda api, cache: create_node(api, cache, name="x", layout_mode="table"),
        lambda api, cache: create_node(api, cache, name="x", priority=-1),
        lambda api, cache: update_node(api, cache, node_id="a"),
        lambda api, cache: update_node(api, cache, node_id="", name="x"),
        lambda api, cache: move_node(api, cache, node_id="a", parent_id=""),
        lambda api, cache: delete_node(api, cache, node_id=" "),
    ],
)
def test_invalid_arguments_are_rejected_before_api_call(
    cache: OutlineCache, fake_api: FakeApi, call: object
) -> None:
    with pytest.raises(ValidationError):
        call(fake_api, cache)  # type: ignore[operator]
    assert fake_api.calls == []
