# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""HTTP client the dashboard view state uses to talk to the service."""
from typing import Any, Dict, List, Optional

import httpx

from incident_dashboard.core.logging import get_logger

logger = get_logger(__name__)

PAGE_SIZE = 1000


class IncidentApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IncidentApiClient:
    """
    Thin wrapper over the incident endpoints.

    Pass an existing httpx.Client (or a Starlette TestClient) to reuse its
    connection pool; otherwise one is created from base_url.
    """

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 5.0,
                 http: Optional[httpx.Client] = None):
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def fetch_incidents(self) -> List[Dict[str, Any]]:
        """All incidents, newest first, fetched a page at a time."""
        incidents: List[Dict[str, Any]] = []
        while True:
            page = self._request(
                "GET", "/incidents", params={"limit": PAGE_SIZE, "offset": len(incidents)},
            )["data"]
            incidents.extend(page["incidents"])
            if not page["incidents"] or len(incidents) >= page["total"]:
                return incidents

    def update_status(self, id: str, status: str) -> Dict[str, Any]:
        logger.debug("update_status id=%s status=%s", id, status)
        resp = self._request("PATCH", f"/incidents/{id}", json={"status": status})
        return resp["data"]

    def close(self):
        self._http.close()

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise IncidentApiError(f"Request failed: {exc}") from exc
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or not body.get("success", False):
            message = body.get("error") or f"Request failed with status {resp.status_code}"
            logger.warning("API error %s %s: %s", method, url, message)
            raise IncidentApiError(message, resp.status_code)
        return body
