"""Target URL parsing and runtime settings.

Settings come from, in increasing priority: built-in defaults, a ``.env``
file, environment variables, and command-line overrides.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import httpx
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_IN_FLIGHT = 16
DEFAULT_MAX_LINE_BYTES = 8 * 1024 * 1024
DEFAULT_LOG_LEVEL = "INFO"

_DEFAULT_PORTS = {"http": 80, "https": 443}
_TRUE_VALUES = ("1", "true", "yes", "y", "on")
_FALSE_VALUES = ("0", "false", "no", "n", "off")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when the target URL or a setting is unusable."""


@dataclass(frozen=True)
class ProxyTarget:
    """The remote MCP server, broken down once at startup."""

    url: str
    scheme: str
    host: str
    port: int
    path: str

    @property
    def is_https(self) -> bool:
        return self.scheme == "https"


@dataclass(frozen=True)
class ProxySettings:
    target: ProxyTarget
    timeout: float = DEFAULT_TIMEOUT
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT
    preserve_order: bool = True
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    log_level: str = DEFAULT_LOG_LEVEL


def parse_target(url: Optional[str]) -> ProxyTarget:
    """Parses an absolute http(s) URL into a ProxyTarget.

    Args:
        url: The MCP server URL, e.g. ``https://example.com/mcp``.

    Returns:
        The parsed target.

    Raises:
        ConfigError: If the URL is missing, malformed, not http(s), or has
            no host.
    """
    if not url or not url.strip():
        raise ConfigError("MCP server URL required")
    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigError(f"Invalid URL: {url} ({e})") from e

    if parsed.scheme not in _DEFAULT_PORTS:
        raise ConfigError(f"Invalid URL: {url} (scheme must be http or https)")
    if not parsed.host:
        raise ConfigError(f"Invalid URL: {url} (missing host)")

    port = parsed.port or _DEFAULT_PORTS[parsed.scheme]
    path = parsed.raw_path.decode("ascii") or "/"
    return ProxyTarget(
        url=str(parsed),
        scheme=parsed.scheme,
        host=parsed.host,
        port=port,
        path=path,
    )


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {raw!r}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(f"Log level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}")
    return level


def load_settings(
    url: Optional[str],
    timeout: Optional[float] = None,
    max_in_flight: Optional[int] = None,
    preserve_order: Optional[bool] = None,
    max_line_bytes: Optional[int] = None,
    log_level: Optional[str] = None,
) -> ProxySettings:
    """Builds ProxySettings from the URL, the environment and overrides.

    Arguments left as None fall back to the ``MCP_PROXY_*`` environment
    variables, then to the defaults.
    """
    target = parse_target(url)

    # Load environment variables
    load_dotenv()

    if timeout is None:
        timeout = _env_float("MCP_PROXY_TIMEOUT", DEFAULT_TIMEOUT)
    elif timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {timeout}")

    if max_in_flight is None:
        max_in_flight = _env_int("MCP_PROXY_MAX_IN_FLIGHT", DEFAULT_MAX_IN_FLIGHT)
    elif max_in_flight < 1:
        raise ConfigError(f"Max in-flight requests must be at least 1, got {max_in_flight}")

    if preserve_order is None:
        preserve_order = _env_bool("MCP_PROXY_PRESERVE_ORDER", True)

    if max_line_bytes is None:
        max_line_bytes = _env_int("MCP_PROXY_MAX_LINE_BYTES", DEFAULT_MAX_LINE_BYTES)
    elif max_line_bytes < 1:
        raise ConfigError(f"Max line size must be at least 1, got {max_line_bytes}")

    if log_level is None:
        log_level = os.environ.get("MCP_PROXY_LOG_LEVEL") or DEFAULT_LOG_LEVEL

    return ProxySettings(
        target=target,
        timeout=timeout,
        max_in_flight=max_in_flight,
        preserve_order=preserve_order,
        max_line_bytes=max_line_bytes,
        log_level=_log_level(log_level),
    )
