"""Minimal JSON-over-HTTPS client shared by the git-hosting adapters.

Every failure is mapped onto the provider error taxonomy: authentication and
authorization rejections (401/403) are fatal, everything else (other HTTP
errors, connection problems, timeouts, undecodable bodies) is transient.
"""

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from envpromote.gateway.git_hosting.errors import (
    ProviderError,
    ProviderFatalError,
    ProviderTransientError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

FATAL_STATUS_CODES = frozenset({401, 403})


class HostingApiClient:
    """Issues JSON requests against one git host's REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        headers: dict[str, str],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = headers
        self._timeout = timeout

    def get(self, path: str, *, operation: str) -> Any:
        return self.request("GET", path, body=None, operation=operation)

    def post(self, path: str, body: dict[str, Any], *, operation: str) -> Any:
        return self.request("POST", path, body=body, operation=operation)

    def put(self, path: str, body: dict[str, Any], *, operation: str) -> Any:
        return self.request("PUT", path, body=body, operation=operation)

    def request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None,
        operation: str,
    ) -> Any:
        """Send a request and decode the JSON response.

        Returns:
            Decoded JSON value, or None for an empty response body

        Raises:
            ProviderFatalError: If the host rejected the credentials (401/403)
            ProviderTransientError: For any other failure
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        headers = {"Accept": "application/json", **self._headers}
        if data is not None:
            headers["Content-Type"] = "application/json"

        request = urllib.request.Request(url, data=data, headers=headers, method=method)
        logger.debug("%s %s (%s)", method, url, operation)

        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace") if e.fp else ""
            raise classify_http_error(
                e.code, detail if detail else str(e.reason), operation=operation
            ) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            msg = f"Failed to {operation}: {e}"
            raise ProviderTransientError(msg, operation=operation) from e

        if not raw.strip():
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            msg = f"Failed to {operation}: response was not JSON"
            raise ProviderTransientError(msg, operation=operation) from e


def classify_http_error(status_code: int, detail: str, *, operation: str) -> ProviderError:
    msg = f"Failed to {operation} (HTTP {status_code}): {detail}"
    if status_code in FATAL_STATUS_CODES:
        return ProviderFatalError(msg, operation=operation, status_code=status_code)
    return ProviderTransientError(msg, operation=operation, status_code=status_code)


def unexpected_response(operation: str, error: Exception) -> ProviderTransientError:
    """Wrap a KeyError/TypeError raised while reading a response payload."""
    msg = f"Failed to {operation}: unexpected response shape ({error!r})"
    return ProviderTransientError(msg, operation=operation)
