"""
Vessel API client.

Thin wrapper over the remote Vessel REST service. Besides transport its only
job is to attach the current bearer token to every request and to turn
failures into the session core's error types, so callers can tell "needs
login" apart from "server unavailable".
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .auth import AuthProvider
from .sync_errors import AuthRequiredError, NetworkFailureError, VesselConflictError

logger = logging.getLogger(__name__)


def _error_message(response: requests.Response, fallback: str) -> str:
    """Pull the server's error text out of a failed response."""
    try:
        data = response.json()
    except ValueError:
        return fallback
    if not isinstance(data, dict):
        return fallback
    message = data.get("error") or data.get("detail") or fallback
    if isinstance(message, list):
        message = ", ".join(
            str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in message
        )
    return str(message)


class VesselApiClient:
    """Backend API wrapper for vessel and case persistence."""

    def __init__(
        self,
        base_url: str,
        auth: AuthProvider,
        timeout_s: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout = timeout_s
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        token = self._auth.get_current_token()
        if not token:
            raise AuthRequiredError("Sign in to load or save vessels.")
        return {"Authorization": f"Bearer {token}"}

    def _request(self, method: str, endpoint: str, json: Any = None) -> Dict[str, Any]:
        headers = self._headers()
        url = f"{self.base_url}{endpoint}"
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                json=json,
                timeout=self._timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise NetworkFailureError(f"{method} {endpoint} timed out") from exc
        except requests.exceptions.RequestException as exc:
            raise NetworkFailureError(f"{method} {endpoint} failed: {exc}") from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthRequiredError(_error_message(response, "Session expired, please sign in again."))
        if status == 409:
            raise VesselConflictError(_error_message(response, "Vessel tag already in use."), status)
        if status >= 400:
            raise NetworkFailureError(
                _error_message(response, f"{method} {endpoint} returned {status}"), status
            )

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkFailureError(f"{method} {endpoint} returned invalid JSON", status) from exc
        if not isinstance(data, dict):
            raise NetworkFailureError(f"{method} {endpoint} returned unexpected payload", status)
        return data

    @staticmethod
    def _field(data: Dict[str, Any], name: str, expected: type, endpoint: str) -> Any:
        value = data.get(name)
        if not isinstance(value, expected):
            raise NetworkFailureError(f"{endpoint} response is missing '{name}'")
        return value

    # Vessel endpoints
    def list_vessels(self) -> List[Dict[str, Any]]:
        """Vessels owned by the signed-in user, most recently updated first."""
        data = self._request("GET", "/vessels")
        return list(data.get("vessels") or [])

    def fetch_vessel(self, vessel_id: str) -> Dict[str, Any]:
        data = self._request("GET", f"/vessels/{vessel_id}")
        return self._field(data, "vessel", dict, f"/vessels/{vessel_id}")

    def save_vessel(self, vessel: Dict[str, Any]) -> Dict[str, Any]:
        """Upsert a vessel; the returned row carries the assigned id."""
        data = self._request("POST", "/vessels", json={"vessel": vessel})
        row = self._field(data, "vessel", dict, "/vessels")
        if row.get("id") in (None, ""):
            raise NetworkFailureError("/vessels response did not assign an id")
        return row

    def delete_vessel(self, vessel_id: str) -> None:
        """Delete a vessel; the service cascades to its cases."""
        self._request("DELETE", f"/vessels/{vessel_id}")

    # Case endpoints
    def fetch_cases(self, vessel_id: str) -> List[Dict[str, Any]]:
        data = self._request("GET", f"/vessels/{vessel_id}/cases")
        return list(data.get("cases") or [])

    def save_cases(self, vessel_id: str, cases: List[Dict[str, Any]]) -> Optional[List[Dict[str, Any]]]:
        """Replace the vessel's case batch. Returns saved rows when the service echoes them."""
        data = self._request("POST", f"/vessels/{vessel_id}/cases", json={"cases": cases})
        saved = data.get("cases")
        return list(saved) if isinstance(saved, list) else None
