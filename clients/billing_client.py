"""
HTTP client for the billing backend REST API.

JSON over HTTPS with bearer-token auth. The token is read from the
TokenStore on every request. Every request has a timeout; transport
failures and timeouts raise BackendUnavailableError, non-2xx responses
raise BackendResponseError. No retries: the caller decides whether the
user resubmits.
"""

import json
import logging
from typing import Any

import requests

from auth.token_store import TokenStore
from core.config import BillingConfig

logger = logging.getLogger(__name__)


class BillingAPIError(Exception):
    """Base class for backend failures. Local drafts are left untouched."""


class BackendUnavailableError(BillingAPIError):
    """Transport failure or timeout; the backend was not reached or did not answer."""


class BackendResponseError(BillingAPIError):
    """Backend answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Backend error {status_code}: {message}")


class NotAuthenticatedError(BackendResponseError):
    """Backend rejected the bearer token (401)."""


def _error_message(response: requests.Response) -> str:
    """Best human-readable message from an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason or "Unknown error"

    if isinstance(data, dict):
        detail = data.get("detail")
        if isinstance(detail, list):
            return ", ".join(
                d.get("msg", str(d)) if isinstance(d, dict) else str(d) for d in detail
            )
        if isinstance(detail, str):
            return detail
        error = data.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        if error:
            return str(error)
        if data.get("message"):
            return str(data["message"])
    return response.reason or "Unknown error"


_ENVELOPE_KEYS = {"data", "success", "message", "meta", "error", "total", "page", "limit"}


def unwrap(payload: Any) -> Any:
    """Backend responses are either bare or wrapped as {"data": ...}."""
    if isinstance(payload, dict) and "data" in payload and set(payload) <= _ENVELOPE_KEYS:
        return payload["data"]
    return payload


class BillingAPIClient:
    """
    Thin requests wrapper for the billing backend.

    Usage:
        client = BillingAPIClient(config, token_store)
        customers = client.get("/customers")
        created = client.post("/invoices", payload)
    """

    def __init__(
        self,
        config: BillingConfig,
        token_store: TokenStore,
        session: requests.Session | None = None,
    ):
        if not config.api_base_url:
            raise ValueError("api_base_url is required")

        self.config = config
        self.token_store = token_store
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        token = self.token_store.get_access_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(
        self,
        method: str,
        path: str,
        payload: dict | None = None,
        params: dict | None = None,
    ) -> requests.Response:
        url = self.config.endpoint_url(path)
        body = json.dumps(payload, separators=(",", ":")) if payload is not None else None

        try:
            response = self._session.request(
                method,
                url,
                data=body,
                params=params,
                headers=self._headers(),
                timeout=self.config.request_timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Backend timeout: {method} {path}: {e}")
            raise BackendUnavailableError(f"Request timed out: {method} {path}")
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Backend connection failed: {method} {path}: {e}")
            raise BackendUnavailableError(f"Connection failed: {e}")

        if response.status_code == 401:
            message = _error_message(response)
            logger.error(f"Backend rejected credentials: {method} {path}")
            raise NotAuthenticatedError(401, message)

        if not 200 <= response.status_code < 300:
            message = _error_message(response)
            logger.error(f"Backend error {response.status_code}: {method} {path}: {message}")
            raise BackendResponseError(response.status_code, message)

        return response

    def request(
        self,
        method: str,
        path: str,
        payload: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        """
        Send a JSON request and return the decoded (unwrapped) body.

        Returns:
            Decoded JSON, or None for an empty body (e.g. 204 on DELETE)

        Raises:
            BackendUnavailableError: On transport failure or timeout
            BackendResponseError: On non-2xx status or undecodable body
        """
        response = self._send(method, path, payload, params)

        if not response.content:
            return None

        try:
            return unwrap(response.json())
        except ValueError:
            logger.error(f"Backend returned invalid JSON: {method} {path}")
            raise BackendResponseError(response.status_code, "Invalid JSON in backend response")

    def get(self, path: str, params: dict | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: dict) -> Any:
        return self.request("POST", path, payload=payload)

    def put(self, path: str, payload: dict) -> Any:
        return self.request("PUT", path, payload=payload)

    def patch(self, path: str, payload: dict | None = None) -> Any:
        return self.request("PATCH", path, payload=payload)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def get_bytes(self, path: str) -> bytes:
        """GET a binary document (e.g. invoice PDF)."""
        return self._send("GET", path).content
