"""Blocking JSON-over-HTTP helper shared by the service adapters.

Adapters call these methods from worker threads (`asyncio.to_thread`) so the
event loop never blocks on network I/O. Every transport or HTTP failure is
reported as `ServiceError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from smart_test_pipeline.exceptions import ServiceError

logger = logging.getLogger(__name__)

_STATUS_SUGGESTIONS = {
    401: "The credential was rejected. Check that the token is valid and not expired.",
    403: "The credential lacks permission. Make sure the token has the 'repo' scope.",
    404: "The resource was not found or is not visible to this token.",
}


class JsonHttpClient:
    """Thin wrapper over a `requests.Session` with uniform error reporting."""

    def __init__(self, base_url: str, *, service_name: str, timeout: float = 60.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.service_name = service_name
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, path: str) -> str:
        if path.startswith(('http://', 'https://')):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def send(self, method: str, path: str, *, headers: Optional[Dict[str, str]] = None,
             params: Optional[Dict[str, Any]] = None, json_body: Any = None) -> requests.Response:
        url = self.url_for(path)
        logger.debug(f"{self.service_name} {method} {url}")
        try:
            response = self.session.request(
                method, url, headers=headers, params=params, json=json_body, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ServiceError(f"{self.service_name} request failed for {url}: {e}") from e

        if response.status_code >= 400:
            raise ServiceError(
                f"{self.service_name} request failed with HTTP {response.status_code} for {url}"
                f"{self._error_detail(response)}",
                status_code=response.status_code,
                suggestion=_STATUS_SUGGESTIONS.get(response.status_code),
            )
        return response

    def request_json(self, method: str, path: str, **kwargs) -> Any:
        response = self.send(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ServiceError(
                f"Invalid JSON received from {self.service_name} for {self.url_for(path)}",
                status_code=response.status_code,
            ) from e

    def request_text(self, method: str, path: str, **kwargs) -> str:
        return self.send(method, path, **kwargs).text

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return ""
        if isinstance(body, dict):
            message = body.get('message') or body.get('error')
            if isinstance(message, str) and message:
                return f": {message}"
        return ""
