"""ToolInvoker tests: check ordering, error envelopes and upstream forwarding."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

import pytest

from hdw_mcp.config import Credentials
from hdw_mcp.exceptions import ErrorCodes, NetworkError, UpstreamError
from hdw_mcp.hdw_client import HDWClient
from hdw_mcp.mcp.handlers import ToolInvoker, ToolResult
from hdw_mcp.tool_registry import ToolRegistry


class TestRejectedCalls:
    """Calls rejected locally never reach the client."""

    def test_unknown_tool(self, invoker: ToolInvoker, capturing_client) -> None:
        result = invoker.invoke("bing_search", {"query": "q"})
        assert result.is_error
        assert result.text == "Unknown tool: bing_search"
        assert result.error_code == ErrorCodes.MCP_TOOL_NOT_FOUND
        assert capturing_client.calls == []

    def test_missing_argument_bag(self, invoker: ToolInvoker, capturing_client) -> None:
        result = invoker.invoke("google_search", None)
        assert result.is_error
        assert result.text == "No arguments provided"
        assert result.error_code == ErrorCodes.MCP_INVALID_REQUEST
        assert capturing_client.calls == []

    def test_invalid_arguments(self, invoker: ToolInvoker, capturing_client) -> None:
        result = invoker.invoke("google_search", {"query": "q", "count": 50})
        assert result.is_error
        assert result.text.startswith("Invalid arguments for google_search")
        assert result.error_code == ErrorCodes.MCP_INVALID_PARAMETERS
        assert result.meta["rpc_code"] == -32602
        assert capturing_client.calls == []

    def test_non_finite_count_is_rejected(self, invoker: ToolInvoker, capturing_client) -> None:
        result = invoker.invoke("linkedin_sn_search_users", {"keywords": "x", "count": float("nan")})
        assert result.is_error
        assert result.error_code == ErrorCodes.MCP_INVALID_PARAMETERS
        assert "count must be a finite number" in result.text
        assert capturing_client.calls == []

    def test_people_search_without_filters(self, invoker: ToolInvoker) -> None:
        result = invoker.invoke("search_linkedin_users", {"count": 10})
        assert result.error_code == ErrorCodes.MCP_INVALID_PARAMETERS

    def test_missing_account_id_is_a_configuration_error(self, capturing_client) -> None:
        invoker = ToolInvoker(ToolRegistry(), capturing_client, Credentials("token-abc-123456"))
        result = invoker.invoke("send_linkedin_post", {"text": "Hello"})
        assert result.is_error
        assert result.error_code == ErrorCodes.CONFIGURATION_ERROR
        assert "HDW_ACCOUNT_ID" in result.text
        assert capturing_client.calls == []

    def test_validation_runs_before_account_check(self, capturing_client) -> None:
        invoker = ToolInvoker(ToolRegistry(), capturing_client, Credentials("token-abc-123456"))
        result = invoker.invoke("send_linkedin_post", {"visibility": "ANYONE"})
        assert result.error_code == ErrorCodes.MCP_INVALID_PARAMETERS

    def test_wrong_profile_prefix(self, invoker: ToolInvoker, capturing_client) -> None:
        result = invoker.invoke("get_linkedin_user_posts", {"urn": "company:1441"})
        assert result.is_error
        assert result.text == "Invalid URN format. Must start with 'fsd_profile:'"
        assert result.error_code == ErrorCodes.INVALID_IDENTIFIER
        assert capturing_client.calls == []

    def test_missing_access_token(self, capturing_client) -> None:
        invoker = ToolInvoker(ToolRegistry(), capturing_client, None)
        result = invoker.invoke("google_search", {"query": "q"})
        assert result.is_error
        assert result.error_code == ErrorCodes.CONFIGURATION_ERROR
        assert "HDW_ACCESS_TOKEN" in result.text
        assert capturing_client.calls == []


class TestForwarding:
    def test_success_returns_pretty_json(self, invoker: ToolInvoker, capturing_client) -> None:
        result = invoker.invoke("get_linkedin_profile", {"user": "satyanadella"})
        assert not result.is_error
        assert result.content[0]["mimeType"] == "application/json"
        assert json.loads(result.text) == [{"name": "Satya Nadella"}]
        assert result.text == json.dumps([{"name": "Satya Nadella"}], indent=2)

        call = capturing_client.last
        assert call["method"] == "POST"
        assert call["path"] == "/api/linkedin/user"
        assert call["timeout"] == 300

    def test_bare_profile_id_is_prefixed(self, invoker: ToolInvoker, capturing_client) -> None:
        args = {"urn": "ACoAA1234"}
        invoker.invoke("get_linkedin_user_posts", args)
        assert capturing_client.last["body"]["urn"] == "fsd_profile:ACoAA1234"
        assert args == {"urn": "ACoAA1234"}

    def test_account_scoped_call_uses_get_and_account(self, invoker: ToolInvoker, capturing_client) -> None:
        invoker.invoke("get_linkedin_conversations", {})
        call = capturing_client.last
        assert call["method"] == "GET"
        assert call["body"]["account_id"] == "acc-42"

    def test_per_call_credentials_override(self, invoker: ToolInvoker, capturing_client) -> None:
        invoker.invoke("get_linkedin_conversations", {}, Credentials("other-token", "acc-7"))
        assert capturing_client.credentials.access_token == "other-token"
        assert capturing_client.last["body"]["account_id"] == "acc-7"

    def test_client_closed_after_each_call(self, invoker: ToolInvoker, capturing_client) -> None:
        invoker.invoke("google_search", {"query": "a"})
        invoker.invoke("google_search", {"query": "b"})
        assert capturing_client.closed == 2


class TestUpstreamFailures:
    def test_upstream_error_envelope(self, make_client, credentials: Credentials) -> None:
        client = make_client(error=UpstreamError(401, "bad token", endpoint="/api/linkedin/user"))
        invoker = ToolInvoker(ToolRegistry(), client, credentials)

        result = invoker.invoke("get_linkedin_profile", {"user": "x"})

        assert result.is_error
        assert result.text == "LinkedIn API error: API error: 401 bad token"
        assert result.content[0]["mimeType"] == "text/plain"
        assert result.to_dict()["isError"] is True
        assert result.to_dict()["_meta"]["error_code"] == ErrorCodes.HDW_API_ERROR
        assert client.closed == 1

    def test_network_error_uses_tool_label(self, make_client, credentials: Credentials) -> None:
        client = make_client(error=NetworkError("/api/google/search", "Failed to contact HDW API: refused"))
        invoker = ToolInvoker(ToolRegistry(), client, credentials)
        result = invoker.invoke("google_search", {"query": "q"})
        assert result.text == "Google search API error: Failed to contact HDW API: refused"

    def test_unexpected_exception_does_not_escape(self, make_client, credentials: Credentials) -> None:
        client = make_client(error=RuntimeError("boom"))
        invoker = ToolInvoker(ToolRegistry(), client, credentials)
        result = invoker.invoke("get_linkedin_company", {"company": "openai"})
        assert result.is_error
        assert result.text == "LinkedIn company API error: boom"
        assert result.error_code == ErrorCodes.INTERNAL_SERVER_ERROR

    @pytest.mark.parametrize(
        "error,level",
        [
            (UpstreamError(401, "bad token", endpoint="/api/linkedin/user"), logging.WARNING),
            (NetworkError("/api/linkedin/user", "Failed to contact HDW API: refused"), logging.ERROR),
        ],
    )
    def test_log_level_follows_severity(self, make_client, credentials: Credentials, caplog, error, level) -> None:
        invoker = ToolInvoker(ToolRegistry(), make_client(error=error), credentials)
        with caplog.at_level(logging.DEBUG, logger="hdw.invoker"):
            invoker.invoke("get_linkedin_profile", {"user": "x"})

        records = [r for r in caplog.records if r.message == "LinkedIn error"]
        assert [r.levelno for r in records] == [level]

    def test_rejected_call_logs_at_info(self, invoker: ToolInvoker, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="hdw.invoker"):
            invoker.invoke("google_search", {"query": "q", "count": 50})

        records = [r for r in caplog.records if r.message == "Tool call rejected"]
        assert [r.levelno for r in records] == [logging.INFO]

    def test_envelope_request_id_matches_logs(self, make_client, credentials: Credentials, caplog) -> None:
        client = make_client(error=UpstreamError(401, "bad token", endpoint="/api/linkedin/user"))
        invoker = ToolInvoker(ToolRegistry(), client, credentials)
        with caplog.at_level(logging.DEBUG, logger="hdw.invoker"):
            result = invoker.invoke("get_linkedin_profile", {"user": "x"})

        logged = {r.request_id for r in caplog.records if hasattr(r, "request_id")}
        assert result.request_id.startswith("tool-")
        assert logged == {result.request_id}
        assert result.to_dict()["_meta"]["request_id"] == result.request_id

    def test_rejected_call_request_id_matches_logs(self, invoker: ToolInvoker, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="hdw.invoker"):
            result = invoker.invoke("bing_search", {"query": "q"})

        logged = [r.request_id for r in caplog.records if hasattr(r, "request_id")]
        assert logged == [result.meta["request_id"]]


class _EchoClient:
    """Returns the request body, so concurrent results can be matched to calls."""

    def __call__(self, credentials: Credentials) -> "_EchoClient":
        return self

    def send(self, method: str, path: str, body: Mapping[str, Any], timeout: Optional[float] = None) -> Any:
        return dict(body)


def test_concurrent_invocations_are_independent(credentials: Credentials) -> None:
    invoker = ToolInvoker(ToolRegistry(), _EchoClient(), credentials)
    results: Dict[int, ToolResult] = {}
    errors: List[BaseException] = []

    def worker(i: int) -> None:
        try:
            results[i] = invoker.invoke("google_search", {"query": f"q{i}", "count": (i % 20) + 1})
        except BaseException as exc:  # surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(40)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert errors == []
    assert len(results) == 40
    for i, result in results.items():
        body = json.loads(result.text)
        assert body["query"] == f"q{i}"
        assert body["count"] == (i % 20) + 1


class TestEndToEnd:
    """Real HDWClient against the local stand-in server."""

    @pytest.fixture
    def live_invoker(self, hdw_test_server, credentials: Credentials) -> ToolInvoker:
        base_url, _ = hdw_test_server
        return ToolInvoker(ToolRegistry(), lambda c: HDWClient(base_url, c.access_token), credentials)

    def test_sales_navigator_search(self, live_invoker: ToolInvoker, hdw_test_server) -> None:
        _, recorder = hdw_test_server
        recorder.respond("/api/linkedin/sn_search/users", 200, [{"name": "Ada"}])

        result = live_invoker.invoke(
            "linkedin_sn_search_users", {"count": 5, "current_companies": "company:1441"}
        )

        assert not result.is_error, result.text
        assert json.loads(result.text) == [{"name": "Ada"}]
        req = recorder.last
        assert req["headers"]["access-token"] == "token-abc-123456"
        assert req["json"]["current_companies"] == [{"type": "company", "value": "1441"}]
        assert req["json"]["timeout"] == 300

    def test_upstream_401(self, live_invoker: ToolInvoker, hdw_test_server) -> None:
        _, recorder = hdw_test_server
        recorder.respond("/api/linkedin/user", 401, {"message": "bad token"})

        result = live_invoker.invoke("get_linkedin_profile", {"user": "satyanadella"})

        assert result.is_error
        assert "LinkedIn API error: API error: 401 bad token" in result.text

    def test_chat_messages_sent_as_get_with_body(self, live_invoker: ToolInvoker, hdw_test_server) -> None:
        _, recorder = hdw_test_server
        recorder.respond("/api/linkedin/management/chat/messages", 200, [])

        result = live_invoker.invoke("get_linkedin_chat_messages", {"user": "ACoAA1234"})

        assert not result.is_error, result.text
        req = recorder.last
        assert req["method"] == "GET"
        assert req["json"] == {
            "timeout": 300,
            "user": "fsd_profile:ACoAA1234",
            "count": 20,
            "account_id": "acc-42",
        }
