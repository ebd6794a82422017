"""MCP tool invocation handling.

``ToolInvoker.invoke`` turns (tool name, argument bag) into a ``ToolResult``.
It never raises: validation failures, configuration gaps and upstream
failures all come back as error results, so one bad call cannot take the
MCP session down with it.

Order of checks for each call:
    unknown tool -> missing argument bag -> validator -> account id
    -> profile URN normalization -> builder -> upstream request

FastMCP passes ``{}`` when a call carries no arguments, so the missing
argument bag check only fires for direct callers passing ``None``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from ..config import Credentials
from ..exceptions import (
    BaseAPIError,
    InvalidArgumentsError,
    InvocationError,
    MissingConfigurationError,
    format_error_response,
    generate_request_id,
)
from ..identifiers import normalize_profile_urn
from ..logging_config import get_logger, mask_secret
from ..tool_registry import ToolDescriptor, ToolRegistry

__all__ = ["ToolInvoker", "ToolResult", "UpstreamClient"]

_LOGGER: logging.Logger = get_logger("hdw.invoker")


class UpstreamClient(Protocol):
    """Minimal protocol the HTTP client must satisfy."""

    def send(self, method: str, path: str, body: Mapping[str, Any], timeout: Optional[float] = None) -> Any: ...


ClientFactory = Callable[[Credentials], UpstreamClient]


@dataclass
class ToolResult:
    """MCP tool result: text content items plus an error flag."""

    content: List[Dict[str, str]]
    is_error: bool = False
    error_code: Optional[str] = None
    request_id: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, payload: Any) -> "ToolResult":
        return cls(content=[{
            "type": "text",
            "mimeType": "application/json",
            "text": json.dumps(payload, indent=2, ensure_ascii=False),
        }])

    @classmethod
    def failure(
        cls,
        message: str,
        error: Optional[Exception] = None,
        request_id: Optional[str] = None,
    ) -> "ToolResult":
        formatted = format_error_response(error or Exception(message), message_override=message)
        if request_id:
            formatted.request_id = request_id
        meta: Dict[str, Any] = {"error_code": formatted.error_code, "request_id": formatted.request_id}
        if isinstance(error, BaseAPIError):
            meta["rpc_code"] = error.rpc_code
        return cls(
            content=[{"type": "text", "mimeType": "text/plain", "text": message}],
            is_error=True,
            error_code=formatted.error_code,
            request_id=formatted.request_id,
            meta=meta,
        )

    @property
    def text(self) -> str:
        return "\n".join(item["text"] for item in self.content)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"content": [dict(item) for item in self.content], "isError": self.is_error}
        if self.is_error:
            result["_meta"] = dict(self.meta)
        return result


class ToolInvoker:
    """Validate, normalize, build and forward one tool call.

    Holds only immutable configuration; calls may run concurrently.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        client_factory: ClientFactory,
        credentials: Optional[Credentials] = None,
    ) -> None:
        self.registry = registry
        self.client_factory = client_factory
        self.credentials = credentials

    def invoke(
        self,
        tool_name: str,
        arguments: Optional[Mapping[str, Any]],
        credentials: Optional[Credentials] = None,
    ) -> ToolResult:
        request_id = generate_request_id("tool")
        log_extra = {"tool": tool_name, "request_id": request_id}

        try:
            descriptor = self.registry.get(tool_name)
        except BaseAPIError as exc:
            _LOGGER.warning("Unknown tool requested", extra=log_extra)
            return ToolResult.failure(exc.message, exc, request_id)

        try:
            payload = self._prepare(descriptor, arguments, credentials or self.credentials)
        except BaseAPIError as exc:
            _LOGGER.log(
                exc.severity.log_level,
                "Tool call rejected",
                extra={**log_extra, "error_code": exc.error_code, "reason": exc.message},
            )
            return ToolResult.failure(exc.message, exc, request_id)

        creds = credentials or self.credentials
        try:
            if creds is None or not creds.access_token:
                raise MissingConfigurationError("HDW_ACCESS_TOKEN")
            client = self.client_factory(creds)
            _LOGGER.debug(
                "Forwarding tool call",
                extra={**log_extra, "endpoint": descriptor.endpoint, "token": mask_secret(creds.access_token)},
            )
            try:
                response = client.send(descriptor.method, descriptor.endpoint, payload, timeout=payload.get("timeout"))
            finally:
                close = getattr(client, "close", None)
                if callable(close):
                    close()
        except BaseAPIError as exc:
            _LOGGER.log(
                exc.severity.log_level,
                f"{descriptor.label} error",
                extra={**log_extra, "error_code": exc.error_code, "reason": exc.message},
            )
            if exc.is_upstream:
                return ToolResult.failure(f"{descriptor.label} API error: {exc.message}", exc, request_id)
            return ToolResult.failure(exc.message, exc, request_id)
        except Exception as exc:  # Anything unexpected still becomes an error result
            _LOGGER.exception("Unexpected tool failure", extra=log_extra)
            return ToolResult.failure(f"{descriptor.label} API error: {exc}", exc, request_id)

        if isinstance(response, list):
            log_extra["results"] = len(response)
        _LOGGER.info("Tool call completed", extra=log_extra)
        return ToolResult.success(response)

    def _prepare(
        self,
        descriptor: ToolDescriptor,
        arguments: Optional[Mapping[str, Any]],
        credentials: Optional[Credentials],
    ) -> Dict[str, Any]:
        """Run every local check and return the upstream payload."""
        if arguments is None:
            raise InvocationError("No arguments provided", tool_name=descriptor.name)

        errors = descriptor.validator.errors(arguments)
        if errors:
            raise InvalidArgumentsError(
                descriptor.name,
                message=f"Invalid arguments for {descriptor.name}: "
                + "; ".join(e["message"] for e in errors),
                validation_errors=errors,
            )

        account_id = credentials.account_id if credentials else None
        if descriptor.account_scoped and not account_id:
            raise MissingConfigurationError(
                "HDW_ACCOUNT_ID",
                message=f"HDW_ACCOUNT_ID is required for {descriptor.name}",
            )

        args = arguments
        if descriptor.profile_urn_field:
            name = descriptor.profile_urn_field
            args = {**arguments, name: normalize_profile_urn(arguments[name])}

        return descriptor.builder(args, account_id)
