"""Shared pytest fixtures for HDW MCP tests."""

from __future__ import annotations

import json
import logging
import socketserver
import threading
import time
from http.server import BaseHTTPRequestHandler
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from hdw_mcp.config import Credentials
from hdw_mcp.mcp.handlers import ToolInvoker
from hdw_mcp.tool_registry import ToolRegistry


def _json_bytes(obj: Any) -> bytes:
    return json.dumps(obj).encode("utf-8")


class _Recorder:
    """Routes and captured requests shared between test and HTTP handler."""

    def __init__(self) -> None:
        self.routes: Dict[str, Tuple[int, bytes, str]] = {}
        self.requests: List[Dict[str, Any]] = []

    def respond(self, path: str, status: int, body: Any, content_type: str = "application/json") -> None:
        raw = body if isinstance(body, bytes) else _json_bytes(body)
        self.routes[path] = (status, raw, content_type)

    @property
    def last(self) -> Dict[str, Any]:
        return self.requests[-1]


def _make_handler(recorder: _Recorder):
    class _Handler(BaseHTTPRequestHandler):
        server_version = "TestHTTP/1.0"

        def log_message(self, fmt, *args):  # silence test server logs
            return

        def _serve(self) -> None:
            length = int(self.headers.get("Content-Length") or 0)
            raw = self.rfile.read(length) if length else b""
            recorder.requests.append({
                "method": self.command,
                "path": self.path,
                "headers": dict(self.headers),
                "raw": raw,
                "json": json.loads(raw) if raw else None,
            })

            status, body, content_type = recorder.routes.get(
                self.path, (404, _json_bytes({"message": "no such route"}), "application/json")
            )
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        do_GET = _serve
        do_POST = _serve

    return _Handler


@pytest.fixture
def hdw_test_server():
    """Local stand-in for the HDW API; yields (base_url, recorder)."""
    recorder = _Recorder()
    with socketserver.ThreadingTCPServer(("127.0.0.1", 0), _make_handler(recorder)) as httpd:
        httpd.daemon_threads = True
        port = httpd.server_address[1]
        t = threading.Thread(target=httpd.serve_forever, daemon=True)
        t.start()
        # tiny wait to ensure server is ready in slow CI
        time.sleep(0.02)
        try:
            yield f"http://127.0.0.1:{port}", recorder
        finally:
            httpd.shutdown()
            t.join(timeout=2)


class CapturingClient:
    """Test double for HDWClient recording every send()."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None) -> None:
        self.response = response if response is not None else {"ok": True}
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = 0
        self.lock = threading.Lock()

    def __call__(self, credentials: Credentials) -> "CapturingClient":
        # Doubles as the client factory
        with self.lock:
            self.credentials = credentials
        return self

    def send(self, method: str, path: str, body: Mapping[str, Any], timeout: Optional[float] = None) -> Any:
        with self.lock:
            self.calls.append({"method": method, "path": path, "body": dict(body), "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        self.closed += 1

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(access_token="token-abc-123456", account_id="acc-42")


@pytest.fixture
def capturing_client() -> CapturingClient:
    return CapturingClient(response=[{"name": "Satya Nadella"}])


@pytest.fixture
def invoker(capturing_client: CapturingClient, credentials: Credentials) -> ToolInvoker:
    return ToolInvoker(ToolRegistry(), capturing_client, credentials)


@pytest.fixture(autouse=True)
def _clear_hdw_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables out of config tests."""
    for name in ("HDW_ACCESS_TOKEN", "HDW_ACCOUNT_ID", "HDW_BASE_URL", "PORT", "HDW_MCP_TRANSPORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_client():
    """Factory for CapturingClient instances with custom responses or errors."""
    return CapturingClient


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
