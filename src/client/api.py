"""HTTP client for the content REST API.

Every call returns the ``data`` member of the server's envelope and
raises TransportError for network failures and non-2xx responses.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from sitedash.errors import TransportError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/components"


class ContentAPIClient:
    """Client for the content API served by ``sitedash serve``."""

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, data: dict | None = None) -> dict:
        """Make a JSON request and return the decoded response body."""
        url = f"{self.base_url}{path}"
        body = json.dumps(data).encode("utf-8") if data is not None else None
        req = urllib.request.Request(
            url,
            data=body,
            method=method,
            headers={"Content-Type": "application/json"},
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            message = _error_message(exc) or f"Request failed with status {exc.code}"
            logger.warning("%s %s -> %s: %s", method, path, exc.code, message)
            raise TransportError(message, status_code=exc.code) from exc
        except (urllib.error.URLError, OSError) as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(f"Could not reach {self.base_url}: {exc}") from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise TransportError(f"Invalid JSON in response from {url}") from exc
        if not isinstance(payload, dict):
            raise TransportError(f"Unexpected response from {url}")
        return payload

    def _data(self, method: str, path: str, data: dict | None = None) -> Any:
        payload = self._request(method, path, data)
        if not payload.get("success") or "data" not in payload:
            raise TransportError(payload.get("message") or "Unexpected response from server")
        return payload["data"]

    def fetch_components(self) -> dict:
        """GET the full content record."""
        return self._data("GET", API_PREFIX)

    def save_components(self, record: dict) -> dict:
        """POST a combined update; returns the resulting record."""
        return self._data("POST", API_PREFIX, record)

    def update_header(self, header: dict) -> dict:
        return self._data("PUT", f"{API_PREFIX}/header", header)

    def update_navbar(self, links: list[dict]) -> list:
        return self._data("PUT", f"{API_PREFIX}/navbar", {"links": links})

    def update_footer(self, footer: dict) -> dict:
        return self._data("PUT", f"{API_PREFIX}/footer", footer)

    def reset_components(self) -> dict:
        """DELETE the record back to defaults; returns the defaults."""
        return self._data("DELETE", f"{API_PREFIX}/reset")

    def check_health(self) -> dict:
        """GET /health."""
        return self._request("GET", "/health")


def _error_message(exc: urllib.error.HTTPError) -> str:
    try:
        payload = json.loads(exc.read().decode("utf-8"))
    except (ValueError, OSError):
        return ""
    if isinstance(payload, dict):
        return str(payload.get("message") or "")
    return ""
