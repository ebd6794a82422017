#!/usr/bin/env python3
"""
HDW MCP Server - Entry Point

Exposes the HorizonDataWave tool catalogue over the Model Context Protocol
using FastMCP. Serves stdio by default, or streamable HTTP with
``--transport http``. Under HTTP, the ``X-HDW-Access-Token`` and
``X-HDW-Account-Id`` headers override the configured credentials per call.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_http_headers
from fastmcp.tools.tool import Tool
from fastmcp.tools.tool import ToolResult as FastMCPToolResult
from mcp.types import TextContent
from pydantic import Field
from starlette.requests import Request
from starlette.responses import JSONResponse

from . import __version__
from .config import Config, ConfigManager, Credentials
from .exceptions import BaseAPIError, MissingConfigurationError
from .hdw_client import HDWClient
from .logging_config import LogLevel, get_logger, mask_secret, setup_logging
from .mcp.handlers import ClientFactory, ToolInvoker
from .tool_registry import ToolDescriptor, ToolRegistry

ACCESS_TOKEN_HEADER = "x-hdw-access-token"
ACCOUNT_ID_HEADER = "x-hdw-account-id"

logger = get_logger("hdw.server")


def request_credentials(default: Optional[Credentials]) -> Optional[Credentials]:
    """Credentials for the current call, honouring HTTP header overrides."""
    headers = get_http_headers()
    token = headers.get(ACCESS_TOKEN_HEADER)
    account_id = headers.get(ACCOUNT_ID_HEADER)
    if not token and not account_id:
        return default
    if default is None:
        return Credentials(access_token=token or "", account_id=account_id or None)
    return default.with_overrides(token, account_id)


class HDWTool(Tool):
    """FastMCP tool backed by one catalogue entry."""

    invoker: Any = Field(exclude=True, repr=False)

    @classmethod
    def from_descriptor(cls, descriptor: ToolDescriptor, invoker: ToolInvoker) -> "HDWTool":
        return cls(
            name=descriptor.name,
            description=descriptor.description,
            parameters=descriptor.validator.input_schema(),
            invoker=invoker,
        )

    async def run(self, arguments: Dict[str, Any]) -> FastMCPToolResult:
        credentials = request_credentials(self.invoker.credentials)
        # invoke() blocks on requests; keep the event loop free for other calls
        result = await asyncio.to_thread(self.invoker.invoke, self.name, arguments, credentials)
        if result.is_error:
            raise ToolError(result.text)
        return FastMCPToolResult(content=[TextContent(type="text", text=result.text)])


def default_client_factory(config: Config) -> ClientFactory:
    def factory(credentials: Credentials) -> HDWClient:
        return HDWClient(
            config.hdw.base_url,
            credentials.access_token,
            connect_timeout=config.hdw.connect_timeout,
            default_timeout=config.hdw.default_timeout,
        )

    return factory


def create_server(
    config: Config,
    credentials: Optional[Credentials] = None,
    client_factory: Optional[ClientFactory] = None,
    registry: Optional[ToolRegistry] = None,
) -> FastMCP:
    """Build a FastMCP server exposing every catalogue tool."""
    registry = registry or ToolRegistry()
    invoker = ToolInvoker(registry, client_factory or default_client_factory(config), credentials)
    server = FastMCP(config.mcp.name)

    for descriptor in registry.descriptors():
        server.add_tool(HDWTool.from_descriptor(descriptor, invoker))

    # ========== MCP Resources ==========

    @server.resource("resource://available-tools")
    async def get_available_tools() -> str:
        """Provide information about available HDW tools."""
        info = registry.summary()
        info.update({"transport": config.server.transport, "protocol": "MCP"})
        return json.dumps(info, ensure_ascii=False, indent=2)

    # ========== HTTP routes ==========

    @server.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": config.mcp.version,
            "tools": len(registry),
            "credentials": "configured" if credentials else "per-request",
        })

    logger.info("MCP server created", extra={"tools": len(registry), "server_name": config.mcp.name})
    return server


# ========== Command Line Interface ==========

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='hdw-mcp',
        description='HDW MCP Server - LinkedIn and web search tools from HorizonDataWave over MCP',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--config', type=str, default=None, help='Path to YAML configuration file')
    parser.add_argument('--transport', choices=['stdio', 'http'], default=None,
                        help='MCP transport (overrides configuration)')
    parser.add_argument('--host', type=str, default=None, help='Bind address for the HTTP transport')
    parser.add_argument('--port', type=int, default=None, help='Port for the HTTP transport')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the HDW MCP server.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if e.code is not None else 1

    load_dotenv()

    try:
        config = ConfigManager().load_config(args.config)
    except (FileNotFoundError, BaseAPIError) as e:
        setup_logging(LogLevel.ERROR)
        logger.error("Failed to load configuration", extra={"error": str(e)})
        return 1

    if args.transport:
        config.server.transport = args.transport
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port

    try:
        level = LogLevel.DEBUG if args.verbose else LogLevel.from_string(config.logging.level)
    except ValueError:
        level = LogLevel.INFO
    setup_logging(level=level, format_json=config.logging.format_json)

    try:
        credentials: Optional[Credentials] = config.credentials()
    except MissingConfigurationError as e:
        if config.server.transport == "stdio":
            logger.error(e.message)
            return 1
        # HTTP callers may supply credentials per request
        logger.warning("No process-wide access token; expecting X-HDW-Access-Token headers")
        credentials = None

    if credentials is not None:
        logger.info(
            "Credentials loaded",
            extra={
                "token": mask_secret(credentials.access_token),
                "account_id": mask_secret(credentials.account_id),
            },
        )
        if not credentials.account_id:
            logger.warning("HDW_ACCOUNT_ID not set; account management tools will fail")

    server = create_server(config, credentials)

    try:
        if config.server.transport == "http":
            logger.info(
                "Starting HDW MCP server",
                extra={"transport": "http", "host": config.server.host, "port": config.server.port},
            )
            server.run(transport="http", host=config.server.host, port=config.server.port)
        else:
            logger.info("Starting HDW MCP server", extra={"transport": "stdio"})
            server.run()
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("Fatal error running server")
        return 1


if __name__ == '__main__':
    sys.exit(main())
