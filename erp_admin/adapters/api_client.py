from typing import Any, Optional

import requests

from erp_admin.adapters.credentials import CredentialStore
from erp_admin.utils.log import get_logger

log = get_logger("api_client")


class ApiError(Exception):
    """
    The single failure kind for backend calls.
    status is the HTTP status code, or 0 when no response was received.
    data is the parsed error body (HTTP errors) or the transport exception (network errors).
    """

    def __init__(self, message: str, status: int, data: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    def __repr__(self):
        return f"<ApiError status={self.status} message={self.message!r}>"


class ApiClient:
    """
    Thin JSON client for the ERP backend. Every call is sent exactly once;
    the bearer token is read from the credential store on each request.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStore,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        token = self.credentials.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(self, method: str, path: str, body: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        log.debug(f"{method} {url}")
        try:
            resp = self.session.request(
                method,
                url,
                json=body,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.warning(f"{method} {url} failed: {type(e).__name__}: {e}")
            raise ApiError("Network error", 0, e)

        if not resp.ok:
            try:
                error_data = resp.json()
            except ValueError:
                error_data = {}
            message = None
            if isinstance(error_data, dict):
                message = error_data.get("message")
            log.warning(f"{method} {url} -> {resp.status_code}")
            raise ApiError(message or f"HTTP {resp.status_code}", resp.status_code, error_data)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError("Network error", 0, e)

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, body: Any) -> Any:
        return self.request("POST", path, body)

    def put(self, path: str, body: Any) -> Any:
        return self.request("PUT", path, body)

    def patch(self, path: str, body: Any) -> Any:
        return self.request("PATCH", path, body)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
