"""
Webhook body parsing.

Datadog can post either a JSON object or a plain-text message depending on
how the webhook integration is configured. ``parse_payload`` decides which
one it got and returns a tagged result that the normalizer dispatches on.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from entity_store.errors import ValidationError


class InvalidPayloadError(ValidationError):
    """The webhook body is neither a JSON object nor usable text."""

    error = "Invalid webhook payload"


@dataclass(frozen=True)
class ParsedJson:
    payload: Dict[str, Any]


@dataclass(frozen=True)
class ParsedText:
    text: str


@dataclass(frozen=True)
class Invalid:
    reason: str


ParseResult = Union[ParsedJson, ParsedText, Invalid]


def _is_json_content_type(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def parse_payload(body: Union[bytes, str, Dict[str, Any], Any], content_type: Optional[str] = None) -> ParseResult:
    """Classify a raw webhook body.

    Args:
        body: Raw request bytes, an already-decoded string, or a decoded
            JSON value.
        content_type: The request's Content-Type header, if any.

    Returns:
        ParsedJson for a JSON object, ParsedText for free text, or Invalid
        with a reason.
    """
    if isinstance(body, dict):
        return ParsedJson(body)

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return Invalid("Payload must be JSON object or text string")

    if not isinstance(body, str):
        return Invalid("Payload must be JSON object or text string")

    stripped = body.strip()
    if not stripped:
        return Invalid("Payload is empty")

    declared_json = _is_json_content_type(content_type)
    if declared_json or stripped.startswith("{"):
        try:
            decoded = json.loads(stripped)
        except ValueError:
            if declared_json:
                return Invalid("Payload is not valid JSON")
            return ParsedText(body)

        if isinstance(decoded, dict):
            return ParsedJson(decoded)
        return Invalid("JSON payload must be an object")

    return ParsedText(body)
