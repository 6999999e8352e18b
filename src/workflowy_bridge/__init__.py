"""Workflowy MCP bridge with a rate-limit-aware outline cache."""

from workflowy_bridge.api import WorkflowyApi
from workflowy_bridge.core.cache import OutlineCache
from workflowy_bridge.protocols import ApiProtocol

__all__ = ["ApiProtocol", "OutlineCache", "WorkflowyApi"]
