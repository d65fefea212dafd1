#!/usr/bin/env python3
"""Stdio MCP proxy to a remote HTTP server - works directly with Claude Desktop."""

import sys

from proxy_mcp.cli import main

if __name__ == "__main__":
    # Run the proxy in stdio mode
    sys.exit(main())
