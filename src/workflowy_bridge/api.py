"""Workflowy API client."""

import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import requests
from loguru import logger

from workflowy_bridge.config import (
    DEFAULT_RETRY_AFTER,
    REQUEST_TIMEOUT,
    resolve_api_key,
    resolve_base_url,
)
from workflowy_bridge.errors import RateLimitedError, UpstreamError


def _parse_retry_after(value: str | None) -> int:
    """Seconds to wait per a Retry-After header, given as delta-seconds or an HTTP-date."""
    if not value:
        return DEFAULT_RETRY_AFTER
    value = value.strip()
    try:
        seconds = int(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (ValueError, TypeError, OverflowError):
            return DEFAULT_RETRY_AFTER
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        delta = (when - datetime.now(timezone.utc)).total_seconds()
        seconds = max(math.ceil(delta), 0)
    return seconds if seconds >= 0 else DEFAULT_RETRY_AFTER


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return response.text.strip() or response.reason or "API request failed"


class WorkflowyApi:
    """Thin Workflowy REST client: credentials, request bodies, status classification."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = api_key or resolve_api_key()
        self.base_url = (base_url or resolve_base_url()).rstrip("/")
        self.timeout = timeout
        self.sess = requests.Session()
        self.sess.headers.update(
            {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        logger.debug("API ready: base_url {!r}, timeout {}s", self.base_url, self.timeout)

    def request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Invoke a Workflowy endpoint and return the decoded JSON body."""
        logger.debug("Making request: {} {} {}", method, path, repr(body)[:64] if body else "")
        try:
            r = self.sess.request(
                method,
                f"{self.base_url}{path}",
                json=body,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamError(None, str(e)) from e

        if r.status_code == 429:
            raise RateLimitedError(_parse_retry_after(r.headers.get("Retry-After")))
        if r.status_code >= 400:
            raise UpstreamError(r.status_code, _error_message(r))

        if not r.content:
            return {}
        try:
            rv = r.json()
        except ValueError as e:
            raise UpstreamError(r.status_code, "Invalid response format from API") from e
        if not isinstance(rv, dict):
            return {"result": rv}
        return rv

    def create_node(self, body: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", "/nodes", body=body)

    def get_node(self, node_id: str) -> dict[str, Any]:
        return self.request("GET", f"/nodes/{node_id}")

    def list_nodes(self, parent_id: str | None = None) -> dict[str, Any]:
        params = {"parentId": parent_id} if parent_id else None
        return self.request("GET", "/nodes", params=params)

    def update_node(self, node_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", f"/nodes/{node_id}", body=body)

    def delete_node(self, node_id: str) -> dict[str, Any]:
        return self.request("DELETE", f"/nodes/{node_id}")

    def move_node(self, node_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", f"/nodes/{node_id}/move", body=body)

    def complete_node(self, node_id: str) -> dict[str, Any]:
        return self.request("POST", f"/nodes/{node_id}/complete")

    def uncomplete_node(self, node_id: str) -> dict[str, Any]:
        return self.request("POST", f"/nodes/{node_id}/uncomplete")

    def export_nodes(self) -> dict[str, Any]:
        """Fetch the whole outline. Rate limited upstream to about once a minute."""
        return self.request("GET", "/nodes-export")

    def list_targets(self) -> dict[str, Any]:
        return self.request("GET", "/targets")
