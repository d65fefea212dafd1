"""Command line entry point.

Usage: mcp-http-proxy <mcp-server-url>
Example: mcp-http-proxy https://example.com/mcp

Configure it as a stdio MCP server, e.g. in claude_desktop_config.json:

    {
        "mcpServers": {
            "remote": {
                "command": "mcp-http-proxy",
                "args": ["https://example.com/mcp"]
            }
        }
    }
"""

import argparse
import asyncio
import logging
import signal
import sys
from contextlib import suppress
from typing import List, Optional

from proxy_mcp.config import ConfigError, ProxySettings, load_settings
from proxy_mcp.forwarder import HttpForwarder
from proxy_mcp.proxy import StdioHttpProxy
from proxy_mcp.reader import open_stdin
from proxy_mcp.writer import LineWriter

logger = logging.getLogger(__name__)

LOG_FORMAT = "[PROXY] %(levelname)s %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-http-proxy",
        description="Bridge a stdio MCP client to a remote MCP server over HTTP(S).",
        epilog="Example: mcp-http-proxy https://example.com/mcp",
    )
    parser.add_argument("url", nargs="?", help="URL of the remote MCP server")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds (default: 30)")
    parser.add_argument(
        "--max-in-flight",
        type=int,
        default=None,
        help="Maximum number of concurrent HTTP requests (default: 16)",
    )
    parser.add_argument(
        "--no-preserve-order",
        dest="preserve_order",
        action="store_false",
        default=None,
        help="Write responses as soon as they arrive instead of in request order",
    )
    parser.add_argument("--log-level", default=None, help="Logging level for stderr diagnostics (default: INFO)")
    return parser


def setup_logging(level: str) -> None:
    # stdout carries protocol messages only.
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)
    if level != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)


async def serve(settings: ProxySettings) -> None:
    """Runs the proxy on this process's stdin and stdout until EOF or a signal."""
    reader = await open_stdin(settings.max_line_bytes)
    writer = LineWriter(sys.stdout.buffer, preserve_order=settings.preserve_order)

    async with HttpForwarder(settings) as forwarder:
        proxy = StdioHttpProxy(settings, forwarder, writer)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with suppress(NotImplementedError):  # Windows lacks add_signal_handler
                loop.add_signal_handler(sig, proxy.stop)

        await proxy.run(reader)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(
            args.url,
            timeout=args.timeout,
            max_in_flight=args.max_in_flight,
            preserve_order=args.preserve_order,
            log_level=args.log_level,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    setup_logging(settings.log_level)
    logger.info("MCP HTTP Proxy started: %s", settings.target.url)

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
