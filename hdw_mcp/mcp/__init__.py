"""MCP tool invocation layer."""
