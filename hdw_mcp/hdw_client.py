"""HorizonDataWave HTTP client used by the MCP server.

One operation: ``send(method, path, body, timeout)``. Every request carries a
JSON body and the ``access-token`` header; GET requests carry the body too,
with an explicit ``Content-Length``, because the management endpoints read
their filters from it.

Notes
-----
- No retries. A failure is reported once and immediately.
- The forwarded ``timeout`` is an upstream hint; the local read timeout is
  never tighter than it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from .exceptions import MalformedResponseError, NetworkError, UpstreamError
from .logging_config import PerformanceLogger, get_logger, mask_secret

DEFAULT_BASE_URL = "https://api.horizondatawave.ai"
DEFAULT_CONNECT_TIMEOUT_SEC = 10.0
DEFAULT_READ_TIMEOUT_SEC = 300.0
# Headroom on top of the forwarded timeout so upstream can answer with its own error
TIMEOUT_GRACE_SEC = 30.0

_LOGGER: logging.Logger = get_logger("hdw.client")


class HDWClient:
    """HTTP client for the HDW API using access-token authentication.

    Parameters
    ----------
    base_url:
        API root (e.g. "https://api.horizondatawave.ai").
    access_token:
        Value for the ``access-token`` header.
    session:
        Optional pre-built ``requests.Session``; one is created otherwise.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        session: Optional[requests.Session] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SEC,
        default_timeout: float = DEFAULT_READ_TIMEOUT_SEC,
    ) -> None:
        self.base_url: str = base_url.rstrip("/")
        self.access_token: str = access_token
        self.connect_timeout = connect_timeout
        self.default_timeout = default_timeout
        self._session: requests.Session = session or requests.Session()
        self._session.headers.update(self._auth_headers())
        self._logger: logging.Logger = _LOGGER

    def __repr__(self) -> str:
        return f"HDWClient(base_url={self.base_url!r}, access_token={mask_secret(self.access_token)!r})"

    def _auth_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "access-token": self.access_token}

    def _build_url(self, path: str) -> str:
        """Ensures exactly one slash joins base to path."""
        return f"{self.base_url}{path if path.startswith('/') else '/' + path}"

    def _timeouts(self, forwarded: Any) -> Tuple[float, float]:
        try:
            requested = float(forwarded) if forwarded is not None else self.default_timeout
        except (TypeError, ValueError):
            requested = self.default_timeout
        return self.connect_timeout, max(requested + TIMEOUT_GRACE_SEC, self.default_timeout)

    def send(
        self,
        method: str,
        path: str,
        body: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """Send one request and return the decoded JSON response.

        Raises
        ------
        UpstreamError
            Non-2xx status. Carries the status and the upstream ``message``
            field when the body has one, else the HTTP reason phrase.
        MalformedResponseError
            2xx status with a body that is not valid JSON.
        NetworkError
            Connection, TLS or local timeout failure.
        """
        method = method.upper()
        url = self._build_url(path)
        data = json.dumps(body).encode("utf-8")
        headers: Dict[str, str] = {}
        if method == "GET":
            headers["Content-Length"] = str(len(data))
        timeouts = self._timeouts(timeout if timeout is not None else body.get("timeout"))

        context = {"method": method, "endpoint": path, "fields": sorted(body)}
        with PerformanceLogger(self._logger, "hdw_request", **context):
            try:
                resp = self._session.request(method, url, data=data, headers=headers, timeout=timeouts)
            except requests.Timeout as exc:
                raise NetworkError(path, f"Request to {path} timed out after {timeouts[1]:g}s") from exc
            except requests.RequestException as exc:
                raise NetworkError(path, f"Failed to contact HDW API: {exc}") from exc

            return self._handle_response(resp, path)

    def _handle_response(self, resp: requests.Response, path: str) -> Any:
        status = resp.status_code
        if not (200 <= status < 300):
            message = self._error_message(resp)
            self._logger.warning(
                "HTTP error response",
                extra={"endpoint": path, "status_code": status, "upstream_message": message},
            )
            raise UpstreamError(status, message, endpoint=path)

        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedResponseError(path, status, body_preview=resp.text) from exc

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("message"):
            message = payload["message"]
            return message if isinstance(message, str) else json.dumps(message)
        return resp.reason or ""

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HDWClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
