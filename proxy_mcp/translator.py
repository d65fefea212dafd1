"""Request parsing and response rewriting.

Some remote MCP servers answer optional methods and notifications with a
JSON-RPC "Method not found" error. Strict stdio clients reject those
responses, so a narrow, allow-listed set of them is rewritten here. Every
other response goes back to the client byte for byte.
"""

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from mcp.types import METHOD_NOT_FOUND

logger = logging.getLogger(__name__)

UNKNOWN_METHOD = "unknown"

# Methods that have a meaningful empty result, mapped to their result key.
EMPTY_LIST_RESULTS = {
    "prompts/list": "prompts",
    "resources/list": "resources",
}


class Action(enum.Enum):
    DROP = "drop"
    SUBSTITUTE = "substitute"
    PASS_THROUGH = "pass_through"


@dataclass(frozen=True)
class ParsedRequest:
    """The parts of a JSON-RPC request the translator looks at."""

    method: str
    id: Any = None
    is_notification: bool = False


@dataclass(frozen=True)
class TranslationDecision:
    action: Action
    output: Optional[bytes] = None

    @classmethod
    def drop(cls) -> "TranslationDecision":
        return cls(Action.DROP)

    @classmethod
    def pass_through(cls, body: bytes) -> "TranslationDecision":
        return cls(Action.PASS_THROUGH, body)

    @classmethod
    def substitute(cls, response: dict) -> "TranslationDecision":
        encoded = json.dumps(response, separators=(",", ":"), ensure_ascii=False)
        return cls(Action.SUBSTITUTE, encoded.encode("utf-8"))


def parse_request(line: bytes) -> Optional[ParsedRequest]:
    """Decodes a raw input line.

    Returns None when the line is not a JSON object; the line is still
    forwarded in that case, it just never matches a rewrite rule.
    """
    try:
        message = json.loads(line)
    except (ValueError, RecursionError):
        return None
    if not isinstance(message, dict):
        return None

    method = message.get("method")
    if not isinstance(method, str):
        method = UNKNOWN_METHOD
    return ParsedRequest(
        method=method,
        id=message.get("id"),
        is_notification="id" not in message,
    )


def _is_method_not_found(response: Any) -> bool:
    if not isinstance(response, dict):
        return False
    error = response.get("error")
    if not isinstance(error, dict):
        return False
    code = error.get("code")
    return not isinstance(code, bool) and code == METHOD_NOT_FOUND


def translate(request: Optional[ParsedRequest], body: bytes) -> TranslationDecision:
    """Decides what to send back to the client for one response body.

    Args:
        request: The parsed originating request, or None if it did not parse.
        body: The complete HTTP response body from the remote server.

    Returns:
        A TranslationDecision. This function never raises; anything it cannot
        interpret is passed through unchanged.
    """
    try:
        response = json.loads(body)
    except (ValueError, RecursionError) as e:
        # UnicodeDecodeError is a ValueError too.
        logger.warning("Parse error: %s", e)
        return TranslationDecision.pass_through(body)

    if request is None or not _is_method_not_found(response):
        return TranslationDecision.pass_through(body)

    if request.is_notification:
        logger.info("Dropped -32601 error for notification: %s", request.method)
        return TranslationDecision.drop()

    result_key = EMPTY_LIST_RESULTS.get(request.method)
    if result_key is not None:
        logger.info("Converted %s error to empty result", request.method)
        return TranslationDecision.substitute(
            {"jsonrpc": "2.0", "id": request.id, "result": {result_key: []}}
        )

    return TranslationDecision.pass_through(body)
