"""Exceptions raised by the Workflowy bridge."""


class WorkflowyError(Exception):
    """Base class for all bridge errors."""


class RateLimitedError(WorkflowyError):
    """The remote service rejected a call with HTTP 429."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limited by Workflowy, retry after {retry_after}s")


class UpstreamError(WorkflowyError):
    """Any other failure reported by (or while reaching) the remote service."""

    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"Workflowy API error ({status}): {message}")


class NotFoundError(WorkflowyError):
    """A node id is not present in the outline snapshot."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' not found.")


class ValidationError(WorkflowyError):
    """Caller-supplied parameters were rejected before any API call."""
