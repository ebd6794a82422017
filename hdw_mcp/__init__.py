"""MCP server exposing the HorizonDataWave LinkedIn and web search API as tools."""

__version__ = "0.1.0"
