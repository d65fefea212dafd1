#!/usr/bin/env python

import logging
from importlib import metadata
from typing import Optional

import httpx

from proxy_mcp.config import ProxySettings

logger = logging.getLogger(__name__)


def _get_package_version_with_fallback() -> str:
    """Returns the version of the package.

    Falls back to 'unknown' if the version can't be resolved.
    """
    try:
        return metadata.version("mcp-http-proxy")
    except metadata.PackageNotFoundError:
        return "unknown"


USER_AGENT = f"mcp-http-proxy/{_get_package_version_with_fallback()}"


class HttpForwarder:
    """Posts raw JSON-RPC lines to the remote MCP server.

    One forwarder owns one httpx.AsyncClient for the life of the process, so
    connections are pooled the way httpx pools them. Nothing is retried.
    """

    def __init__(
        self,
        settings: ProxySettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.target = settings.target
        self.client = httpx.AsyncClient(
            timeout=settings.timeout,
            transport=transport,
            follow_redirects=False,
        )

    async def forward(self, line: bytes) -> Optional[bytes]:
        """Sends one line as the body of a POST request.

        Args:
            line: The exact bytes read from stdin, without the line terminator.

        Returns:
            The complete response body, or None if the request failed at the
            transport level (connection, DNS, timeout). The HTTP status code
            is not interpreted.
        """
        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(line)),
            "User-Agent": USER_AGENT,
        }
        try:
            response = await self.client.post(self.target.url, content=line, headers=headers)
        except httpx.HTTPError as e:
            logger.error("HTTP Error: %s", str(e) or type(e).__name__)
            return None

        logger.debug("HTTP %s from %s (%d bytes)", response.status_code, self.target.url, len(response.content))
        return response.content

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "HttpForwarder":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
