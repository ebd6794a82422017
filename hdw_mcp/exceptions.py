"""
Standardized error handling framework for the HDW MCP server.

This module provides the exception hierarchy, error codes, error response
formatting and request ID generation shared by the tool invocation layer and
the upstream HTTP client.

Key features:
- One exception per failure kind, each carrying a machine-readable error code
- JSON-RPC code hints so transports can map errors without string matching
- Thread-safe request ID generation with customizable prefixes
- JSON-serializable error responses with safe handling of odd details

Error Categories:
- InvalidArgumentsError: validator rejected the argument bag
- InvalidIdentifierError: identifier prefix mismatch after normalization
- UnknownToolError: tool name missing from the dispatch table
- ConfigurationError: config file or environment override is invalid
- MissingConfigurationError: required credential absent
- InvocationError: malformed tool call (e.g. no argument bag at all)
- UpstreamError: HDW API answered with a non-2xx status
- MalformedResponseError: HDW API answered 2xx with a body that is not JSON
- NetworkError: HDW API could not be reached (DNS, TLS, reset, timeout)

Example usage:
    from hdw_mcp.exceptions import UpstreamError, format_error_response

    try:
        client.send("POST", "/api/linkedin/user", {"user": "satyanadella"})
    except UpstreamError as e:
        response = format_error_response(e)
        return response.to_dict()
"""

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union


class ErrorSeverity(Enum):
    """
    Error severity levels for categorizing error impact.

    Used for log levels and error handling prioritization.
    """
    LOW = "low"          # Caller mistakes, nothing wrong with the server
    MEDIUM = "medium"    # Upstream rejected a call
    HIGH = "high"        # Upstream unreachable or misbehaving
    CRITICAL = "critical" # Server cannot operate (e.g. no credentials)

    @property
    def log_level(self) -> int:
        """Standard ``logging`` level used when an error of this severity is logged."""
        return {
            ErrorSeverity.LOW: logging.INFO,
            ErrorSeverity.MEDIUM: logging.WARNING,
            ErrorSeverity.HIGH: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.ERROR,
        }[self]


class ErrorCategory(Enum):
    """
    Error categories for grouping related errors.
    """
    CLIENT_ERROR = "client_error"      # Bad input from the MCP caller
    SERVER_ERROR = "server_error"      # Local misconfiguration
    EXTERNAL_ERROR = "external_error"  # HDW API failures
    VALIDATION_ERROR = "validation_error" # Input validation failures


class ErrorCodes:
    """Standardized error codes for all components."""

    # MCP protocol / invocation
    MCP_TOOL_NOT_FOUND = "MCP_TOOL_NOT_FOUND"
    MCP_INVALID_PARAMETERS = "MCP_INVALID_PARAMETERS"
    MCP_INVALID_REQUEST = "MCP_INVALID_REQUEST"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"

    # Configuration
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # HDW API
    HDW_API_ERROR = "HDW_API_ERROR"
    HDW_INVALID_RESPONSE = "HDW_INVALID_RESPONSE"
    HDW_CONNECTION_ERROR = "HDW_CONNECTION_ERROR"

    # System
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class JsonRpcCodes:
    """JSON-RPC 2.0 error codes used as transport hints."""

    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    SERVER_ERROR = -32000


# Thread-safe request ID cache to prevent duplicates within short time windows
_request_id_cache: Set[str] = set()
_cache_lock = threading.RLock()


def generate_request_id(prefix: str = "req") -> str:
    """
    Generate unique request ID for tracking with collision detection.

    Args:
        prefix: Prefix for request ID (default: "req")

    Returns:
        Unique request ID string with format: prefix-uuid4

    Example:
        >>> generate_request_id("tool")
        'tool-87654321-4321-8765-dcba-098765432109'
    """
    max_attempts = 10

    for _ in range(max_attempts):
        request_id = f"{prefix}-{uuid.uuid4()}"

        with _cache_lock:
            if request_id not in _request_id_cache:
                _request_id_cache.add(request_id)
                # Keep cache size manageable (last 1000 IDs)
                if len(_request_id_cache) > 1000:
                    _request_id_cache.clear()
                    _request_id_cache.add(request_id)
                return request_id

    timestamp = int(datetime.now().timestamp() * 1000000)
    return f"{prefix}-{uuid.uuid4()}-{timestamp}"


class BaseAPIError(Exception):
    """
    Base exception class for every error surfaced to MCP callers.

    Attributes:
        message: Error message, shown to the caller in the result envelope
        error_code: Machine-readable error code (see ``ErrorCodes``)
        request_id: Unique identifier for request tracking and debugging
        rpc_code: JSON-RPC error code hint for transports
        details: Additional structured error context
        severity: Error severity level, drives the log level
        category: Error category for grouping and analysis
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        request_id: Optional[str] = None,
        rpc_code: int = JsonRpcCodes.SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SERVER_ERROR,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.request_id = request_id or generate_request_id()
        self.rpc_code = rpc_code
        self.details = details or {}
        self.severity = severity
        self.category = category
        self.timestamp = datetime.now(timezone.utc)

    @property
    def is_upstream(self) -> bool:
        """True for failures that originate at the HDW API transport."""
        return self.category == ErrorCategory.EXTERNAL_ERROR


class InvalidArgumentsError(BaseAPIError):
    """
    Validator rejected the argument bag.

    Never reaches the network. ``validation_errors`` lists the offending
    fields as ``{"field": ..., "message": ...}`` entries.
    """

    def __init__(
        self,
        tool_name: str,
        message: Optional[str] = None,
        validation_errors: Optional[List[Dict[str, str]]] = None,
        request_id: Optional[str] = None,
    ):
        self.tool_name = tool_name
        self.validation_errors = validation_errors or []
        super().__init__(
            message=message or f"Invalid arguments for tool '{tool_name}'",
            error_code=ErrorCodes.MCP_INVALID_PARAMETERS,
            request_id=request_id,
            rpc_code=JsonRpcCodes.INVALID_PARAMS,
            details={"tool_name": tool_name, "validation_errors": self.validation_errors},
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION_ERROR,
        )


class InvalidIdentifierError(BaseAPIError):
    """
    Identifier does not carry the expected prefix after normalization.
    """

    def __init__(
        self,
        identifier: str,
        expected: str,
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        self.identifier = identifier
        self.expected = expected
        super().__init__(
            message=message or f"Invalid URN format. Must start with '{expected}'",
            error_code=ErrorCodes.INVALID_IDENTIFIER,
            request_id=request_id,
            rpc_code=JsonRpcCodes.INVALID_PARAMS,
            details={"identifier": identifier, "expected": expected},
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION_ERROR,
        )


class UnknownToolError(BaseAPIError):
    """Tool name is not present in the dispatch table."""

    def __init__(self, tool_name: str, request_id: Optional[str] = None):
        self.tool_name = tool_name
        super().__init__(
            message=f"Unknown tool: {tool_name}",
            error_code=ErrorCodes.MCP_TOOL_NOT_FOUND,
            request_id=request_id,
            rpc_code=JsonRpcCodes.METHOD_NOT_FOUND,
            details={"tool_name": tool_name},
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.CLIENT_ERROR,
        )


class InvocationError(BaseAPIError):
    """Tool call is malformed before validation can even start."""

    def __init__(self, message: str, tool_name: Optional[str] = None, request_id: Optional[str] = None):
        self.tool_name = tool_name
        super().__init__(
            message=message,
            error_code=ErrorCodes.MCP_INVALID_REQUEST,
            request_id=request_id,
            rpc_code=JsonRpcCodes.INVALID_REQUEST,
            details={"tool_name": tool_name} if tool_name else None,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.CLIENT_ERROR,
        )


class ConfigurationError(BaseAPIError):
    """Configuration file or environment override could not be applied."""

    def __init__(self, message: str, setting: Optional[str] = None, request_id: Optional[str] = None):
        self.setting = setting
        super().__init__(
            message=message,
            error_code=ErrorCodes.CONFIGURATION_ERROR,
            request_id=request_id,
            rpc_code=JsonRpcCodes.SERVER_ERROR,
            details={"setting": setting} if setting else None,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.SERVER_ERROR,
        )


class MissingConfigurationError(ConfigurationError):
    """
    A required configuration value (access token, account ID) is absent.
    """

    def __init__(self, setting: str, message: Optional[str] = None, request_id: Optional[str] = None):
        super().__init__(
            message=message or f"Missing required configuration: {setting}",
            setting=setting,
            request_id=request_id,
        )


class UpstreamError(BaseAPIError):
    """
    HDW API answered with a non-2xx status.

    ``str(error)`` reads ``"API error: <status> <upstream message>"`` so the
    status code and the upstream text both reach the caller.
    """

    def __init__(
        self,
        status_code: int,
        upstream_message: str,
        endpoint: str,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.upstream_message = upstream_message
        self.endpoint = endpoint
        severity = ErrorSeverity.HIGH if status_code >= 500 else ErrorSeverity.MEDIUM
        super().__init__(
            message=f"API error: {status_code} {upstream_message}".rstrip(),
            error_code=ErrorCodes.HDW_API_ERROR,
            request_id=request_id,
            rpc_code=JsonRpcCodes.SERVER_ERROR,
            details=details,
            severity=severity,
            category=ErrorCategory.EXTERNAL_ERROR,
        )
        self.details.update({
            "endpoint": endpoint,
            "status_code": status_code,
            "service": "hdw",
        })


class MalformedResponseError(BaseAPIError):
    """HDW API answered 2xx but the body is not valid JSON."""

    def __init__(
        self,
        endpoint: str,
        status_code: int,
        body_preview: str = "",
        request_id: Optional[str] = None,
    ):
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(
            message=f"Malformed response from API (HTTP {status_code}): body is not valid JSON",
            error_code=ErrorCodes.HDW_INVALID_RESPONSE,
            request_id=request_id,
            rpc_code=JsonRpcCodes.SERVER_ERROR,
            details={"endpoint": endpoint, "status_code": status_code, "body_preview": body_preview[:200]},
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXTERNAL_ERROR,
        )


class NetworkError(BaseAPIError):
    """HDW API could not be reached (DNS, TLS, connection reset, local timeout)."""

    def __init__(self, endpoint: str, message: str, request_id: Optional[str] = None):
        self.endpoint = endpoint
        super().__init__(
            message=message,
            error_code=ErrorCodes.HDW_CONNECTION_ERROR,
            request_id=request_id,
            rpc_code=JsonRpcCodes.SERVER_ERROR,
            details={"endpoint": endpoint},
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXTERNAL_ERROR,
        )


class ErrorResponse:
    """
    Structured error response container.
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None
    ):
        self.error_code = error_code
        self.message = message
        self.request_id = request_id
        self.details = details
        self.timestamp = timestamp or datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error response to dictionary.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result = {
            "error_code": self.error_code,
            "message": self.message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat().replace('+00:00', 'Z')
        }

        if self.details:
            try:
                json.dumps(self.details)
                result["details"] = self.details
            except (TypeError, ValueError, RecursionError):
                result["details"] = {"error": "Details contain circular references or non-serializable data"}

        return result


def format_error_response(
    error: Union[BaseAPIError, Exception],
    message_override: Optional[str] = None,
    request_id: Optional[str] = None
) -> ErrorResponse:
    """
    Format exception into structured error response.

    Args:
        error: Exception to format
        message_override: Override error message
        request_id: Request ID (generated if not provided)

    Returns:
        Structured error response
    """
    if isinstance(error, BaseAPIError):
        error_code = error.error_code
        message = message_override or error.message
        req_id = error.request_id or request_id or generate_request_id()
        details = error.details
    else:
        error_code = ErrorCodes.INTERNAL_SERVER_ERROR
        message = message_override or str(error)
        req_id = request_id or generate_request_id()
        details = None

    # Truncate extremely long messages
    if len(message) > 5000:
        message = message[:4997] + "..."

    return ErrorResponse(
        error_code=error_code,
        message=message,
        request_id=req_id,
        details=details
    )
