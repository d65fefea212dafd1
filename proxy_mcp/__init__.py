"""Stdio to HTTP proxy for remote MCP servers."""
