"""HTTP client used by the presentation commands to reach the service."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from .config import DEFAULT_SERVICE_URL
from .db import EchoTraceError
from .models import StatsSnapshot

logger = logging.getLogger(__name__)


class ServiceUnavailableError(EchoTraceError):
    """The tracking service could not be reached."""


class CommandFailedError(EchoTraceError):
    """The service answered but reported a failure."""


class TrackerClient:
    def __init__(self, base_url: str = DEFAULT_SERVICE_URL, timeout: float = 5.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def get_stats(self) -> StatsSnapshot:
        return StatsSnapshot.from_payload(self._request("GET", "/api/stats"))

    def toggle_tracking(self, enabled: bool) -> bool:
        payload = self._request("POST", "/api/tracking", {"enabled": enabled})
        return payload["enabled"] is True

    def reset_data(self) -> None:
        self._request("POST", "/api/reset")

    def status(self) -> dict[str, Any]:
        return self._request("GET", "/api/status")

    def _request(
        self, method: str, path: str, body: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.debug("Request to %s failed: %s", url, exc)
            raise ServiceUnavailableError(
                f"Unable to connect to the EchoTrace service at {self.base_url}."
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise CommandFailedError(
                f"Unexpected response from {url} (HTTP {response.status_code})."
            ) from exc

        if not response.ok or payload.get("success") is False:
            message = payload.get("error") or payload.get("detail") or response.reason
            raise CommandFailedError(f"{method} {path} failed: {message}")
        return payload
