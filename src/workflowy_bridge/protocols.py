"""Protocols for dependency injection in the bridge."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ApiProtocol(Protocol):
    """Protocol for Workflowy API clients.

    Every method returns the decoded JSON body, or raises RateLimitedError /
    UpstreamError.
    """

    def create_node(self, body: dict[str, Any]) -> dict[str, Any]: ...

    def get_node(self, node_id: str) -> dict[str, Any]: ...

    def list_nodes(self, parent_id: str | None = None) -> dict[str, Any]: ...

    def update_node(self, node_id: str, body: dict[str, Any]) -> dict[str, Any]: ...

    def delete_node(self, node_id: str) -> dict[str, Any]: ...

    def move_node(self, node_id: str, body: dict[str, Any]) -> dict[str, Any]: ...

    def complete_node(self, node_id: str) -> dict[str, Any]: ...

    def uncomplete_node(self, node_id: str) -> dict[str, Any]: ...

    def export_nodes(self) -> dict[str, Any]:
        """Fetch the entire outline as a flat node list."""
        ...

    def list_targets(self) -> dict[str, Any]: ...
