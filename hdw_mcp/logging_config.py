"""
Structured JSON logging configuration for the HDW MCP server.

Every record is written to stderr: under the stdio transport stdout carries
the MCP JSON-RPC stream and must never see a log line.

Key features:
- JSON structured output with timestamp, level, component, and message fields
- Configurable log levels with proper filtering
- Safe JSON serialization with fallback handling
- Secret masking helper for access tokens and account IDs

Example usage:
    from hdw_mcp.logging_config import setup_logging, get_logger, LogLevel

    setup_logging(level=LogLevel.INFO)
    logger = get_logger("hdw.client")
    logger.info("API request completed", extra={"latency_ms": 142, "status_code": 200})
"""

import json
import logging
import sys
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union


class LogLevel(Enum):
    """
    Log level enumeration for structured logging.

    Maps to Python logging levels while providing string representations
    for JSON output.
    """
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_string(cls, level_str: str) -> 'LogLevel':
        """
        Convert string to LogLevel enum.

        Raises:
            ValueError: If level_str is not a valid log level
        """
        try:
            return cls(level_str.upper())
        except ValueError:
            valid_levels = [level.value for level in cls]
            raise ValueError(f"Invalid log level '{level_str}'. Valid levels: {valid_levels}")

    def to_logging_level(self) -> int:
        """Convert LogLevel to Python logging level constant."""
        return getattr(logging, self.value)


class SafeJSONEncoder(json.JSONEncoder):
    """
    JSON encoder that safely handles non-serializable objects.
    """

    def default(self, obj: Any) -> Union[str, Dict[str, Any], list]:
        try:
            if hasattr(obj, '__dict__'):
                return {
                    '_type': obj.__class__.__name__,
                    '_repr': str(obj)
                }
            elif hasattr(obj, '__iter__') and not isinstance(obj, (str, bytes)):
                return list(obj)
            else:
                return str(obj)
        except Exception:
            return f"<unserializable: {type(obj).__name__}>"


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2025-09-13T10:00:00Z",
        "level": "INFO",
        "component": "hdw.client",
        "message": "API request completed",
        "extra_field": "extra_value"
    }
    """

    # Fields to exclude from extra data to avoid duplication
    EXCLUDED_FIELDS = frozenset({
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
        'filename', 'module', 'lineno', 'funcName', 'created',
        'msecs', 'relativeCreated', 'thread', 'threadName',
        'processName', 'process', 'getMessage', 'exc_info', 'exc_text',
        'stack_info', 'message', 'asctime', 'taskName'
    })

    def __init__(self, include_source_location: bool = False):
        super().__init__()
        self.include_source_location = include_source_location
        self.json_encoder = SafeJSONEncoder(separators=(',', ':'), ensure_ascii=False)

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Falls back to a plain text line if JSON encoding fails for any reason.
        """
        try:
            log_data = {
                "timestamp": self._format_timestamp(record.created),
                "level": record.levelname,
                "component": record.name,
                "message": self._safe_get_message(record)
            }

            if self.include_source_location:
                log_data.update({
                    "file": record.filename,
                    "line": record.lineno,
                    "function": record.funcName
                })

            self._add_extra_fields(log_data, record)

            if record.exc_info:
                log_data["exception"] = self._format_exception(record.exc_info)

            return self.json_encoder.encode(log_data)

        except Exception as e:
            return self._create_fallback_message(record, e)

    def _format_timestamp(self, created: float) -> str:
        dt = datetime.fromtimestamp(created, tz=timezone.utc)
        return dt.isoformat().replace('+00:00', 'Z')

    def _safe_get_message(self, record: logging.LogRecord) -> str:
        try:
            return record.getMessage()
        except Exception:
            return f"<message formatting failed: {record.msg}>"

    def _add_extra_fields(self, log_data: Dict[str, Any], record: logging.LogRecord) -> None:
        for key, value in record.__dict__.items():
            if key not in self.EXCLUDED_FIELDS:
                try:
                    json.dumps(value, cls=SafeJSONEncoder)
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

    def _format_exception(self, exc_info: tuple) -> str:
        try:
            return self.formatException(exc_info)
        except Exception:
            return f"<exception formatting failed: {exc_info[0].__name__}>"

    def _create_fallback_message(self, record: logging.LogRecord, error: Exception) -> str:
        timestamp = self._format_timestamp(record.created)
        return (f"{timestamp} {record.levelname} {record.name} "
                f"{self._safe_get_message(record)} "
                f"[JSON_FORMAT_ERROR: {error}]")


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    include_source_location: bool = False,
    format_json: bool = True
) -> None:
    """
    Setup structured logging for the HDW MCP server.

    A single stderr handler is installed on the root logger; existing
    handlers are cleared to avoid duplicates when called more than once.

    Args:
        level: Minimum log level to output (default: INFO)
        include_source_location: Include file/line info in logs (default: False)
        format_json: Use JSON formatting (default: True)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level.to_logging_level())

    if format_json:
        formatter = JSONFormatter(include_source_location=include_source_location)
    else:
        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            datefmt='%Y-%m-%dT%H:%M:%S'
        )

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level.to_logging_level())
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)

    _configure_third_party_logging(level)


def _configure_third_party_logging(level: LogLevel) -> None:
    """Keep HTTP and server libraries quiet unless debugging."""
    noisy_loggers = [
        'urllib3.connectionpool',
        'httpx',
        'httpcore',
        'uvicorn.access',
        'sse_starlette',
    ]

    third_party_level = logging.INFO if level == LogLevel.DEBUG else logging.WARNING
    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(third_party_level)


def get_logger(component: str, extra_context: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Get a configured logger for a specific component.

    Args:
        component: Component name following hierarchical naming convention
                  (e.g., 'hdw.client', 'hdw.invoker', 'hdw.server')
        extra_context: Default context to include in all log messages

    Returns:
        Configured logger instance

    Example:
        logger = get_logger("hdw.client", {"service": "hdw-mcp"})
        logger.info("API request started", extra={"endpoint": "/api/linkedin/user"})
    """
    logger = logging.getLogger(component)

    if extra_context:
        class ContextAdapter(logging.LoggerAdapter):
            def process(self, msg, kwargs):
                if 'extra' in kwargs:
                    kwargs['extra'] = {**extra_context, **kwargs['extra']}
                else:
                    kwargs['extra'] = extra_context.copy()
                return msg, kwargs

        return ContextAdapter(logger, extra_context)

    return logger


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """
    Mask a secret for logging, keeping only the last ``visible`` characters.

    >>> mask_secret("abcdef123456")
    '********3456'
    """
    if not value:
        return "<unset>"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


class PerformanceLogger:
    """
    Context manager for performance logging.

    Measures execution time and logs performance metrics automatically.
    """

    def __init__(self, logger: logging.Logger, operation: str, **context):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[int] = None

    def __enter__(self) -> 'PerformanceLogger':
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            self.duration_ms = int((time.perf_counter() - self.start_time) * 1000)
            log_context = {
                **self.context,
                "duration_ms": self.duration_ms,
                "operation": self.operation
            }

            if exc_type is None:
                self.logger.info(f"Completed {self.operation}", extra=log_context)
            else:
                log_context["error_type"] = exc_type.__name__
                self.logger.error(f"Failed {self.operation}", extra=log_context)
