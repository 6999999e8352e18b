"""Shared test fixtures."""

from typing import Any

import pytest

from tests.unit.fakes import FakeApi, FakeClock
from workflowy_bridge.core.cache import OutlineCache

OUTLINE_EXPORT: dict[str, Any] = {
    "nodes": [
        {
            "id": "root",
            "name": "Teaching",
            "note": None,
            "parent_id": None,
            "priority": 0,
            "completed": False,
            "data": {"layoutMode": "h1"},
        },
        {
            "id": "a",
            "name": "Rubric v2",
            "note": "",
            "parent_id": "root",
            "priority": 0,
            "completed": False,
        },
        {
            "id": "b",
            "name": "Grading",
            "note": "see rubric",
            "parent_id": "root",
            "priority": 1,
            "completed": False,
            "data": {"layoutMode": "todo"},
        },
        {
            "id": "c",
            "name": "rubric only",
            "note": "lowercase on purpose",
            "parent_id": "a",
            "priority": 0,
            "completedAt": 1700000000,
            "data": {"layoutMode": "todo"},
        },
        {
            "id": "d",
            "name": "Unrelated",
            "note": "nothing to see",
            "parent_id": None,
            "priority": 1,
            "completed": False,
        },
    ]
}


@pytest.fixture
def fake_api() -> FakeApi:
    """Return a FakeApi whose export returns the sample outline."""
    api = FakeApi()
    api.add_response("export_nodes", OUTLINE_EXPORT)
    return api


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(fake_api: FakeApi, clock: FakeClock) -> OutlineCache:
    """Return an empty cache over the sample outline with a 90s window."""
    return OutlineCache(fake_api, ttl=90.0, clock=clock)
