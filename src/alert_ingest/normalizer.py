"""Normalize parsed webhook bodies into a canonical NormalizedAlert."""

import json
import math
from typing import Any, Dict, List, Optional, Tuple

from .models import AlertSource, NormalizedAlert
from .parser import Invalid, InvalidPayloadError, ParsedJson, ParsedText, ParseResult


DEFAULT_TITLE = "Datadog Alert"
DEFAULT_ALERT_TYPE = "info"

# Datadog's $DATE is in milliseconds; anything this large cannot be seconds
MILLISECOND_EPOCH_THRESHOLD = 1e11

# Canonical field -> payload keys, first non-empty wins
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "alert_type": ("event_type", "alert_type"),
    "title": ("title", "event_title"),
    "message": ("body", "message"),
    "source_id": ("id", "alert_id"),
    "timestamp_seconds": ("date",),
    "last_updated": ("last_updated",),
    "org": ("org",),
    "org_id": ("org_id",),
    "org_name": ("org_name",),
    "tags": ("tags",),
    "metric_name": ("metric_name", "metric"),
    "metric_value": ("metric_value", "value"),
    "unit": ("unit",),
    "threshold": ("threshold",),
    "condition": ("condition",),
    "hostname": ("hostname", "host"),
    "host_ip": ("host_ip",),
    "priority": ("priority",),
    "status": ("alert_transition", "status"),
    "url": ("link", "url"),
}

TRIGGER_MARKERS = ("[Triggered]", "Anomaly Detected")
RECOVERY_MARKERS = ("Normalized", "Recovery")
TITLE_MARKERS = ("[Triggered]", "[Recovery]")


def _lookup(payload: Dict[str, Any], canonical: str) -> Any:
    for key in FIELD_ALIASES[canonical]:
        value = payload.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_seconds(value: Any) -> Optional[float]:
    """Epoch seconds from a number or numeric string; millisecond epochs are scaled down."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    if abs(value) >= MILLISECOND_EPOCH_THRESHOLD:
        return value / 1000
    return value


def _as_tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if isinstance(value, (list, tuple)):
        return [str(tag).strip() for tag in value if tag is not None and str(tag).strip()]
    return []


def _resolve_alert_type(payload: Dict[str, Any]) -> str:
    raw = _lookup(payload, "alert_type")
    if raw is None:
        return DEFAULT_ALERT_TYPE

    alert_type = _as_text(raw)
    if alert_type is None or not alert_type.strip():
        raise InvalidPayloadError(f"Cannot determine alert type from {type(raw).__name__} value")
    return alert_type.strip()


def normalize_json(payload: Dict[str, Any]) -> NormalizedAlert:
    """Map a structured Datadog payload onto the canonical shape."""
    alert_type = _resolve_alert_type(payload)

    title = _as_text(_lookup(payload, "title"))
    message = _as_text(_lookup(payload, "message"))
    if not title and not message:
        title = DEFAULT_TITLE
    if not message:
        message = json.dumps(payload, default=str)

    org_value = _lookup(payload, "org")
    org_id = _as_text(_lookup(payload, "org_id"))
    org_name = _as_text(_lookup(payload, "org_name"))
    if isinstance(org_value, dict):
        org_id = org_id or _as_text(org_value.get("id"))
        org_name = org_name or _as_text(org_value.get("name"))
        org = org_id or org_name
    else:
        org = _as_text(org_value)

    return NormalizedAlert(
        alert_type=alert_type,
        title=title,
        message=message,
        source=AlertSource.JSON,
        source_id=_as_text(_lookup(payload, "source_id")),
        timestamp_seconds=_as_seconds(_lookup(payload, "timestamp_seconds")),
        last_updated=_lookup(payload, "last_updated"),
        org=org,
        org_id=org_id,
        org_name=org_name,
        tags=_as_tags(_lookup(payload, "tags")),
        metric_name=_lookup(payload, "metric_name"),
        metric_value=_lookup(payload, "metric_value"),
        unit=_lookup(payload, "unit"),
        threshold=_lookup(payload, "threshold"),
        condition=_lookup(payload, "condition"),
        hostname=_as_text(_lookup(payload, "hostname")),
        host_ip=_as_text(_lookup(payload, "host_ip")),
        priority=_as_text(_lookup(payload, "priority")),
        status=_as_text(_lookup(payload, "status")),
        url=_as_text(_lookup(payload, "url")),
        original_payload=payload,
    )


def normalize_text(text: str) -> NormalizedAlert:
    """Apply the plain-text heuristics to a free-form Datadog message."""
    if any(marker in text for marker in TRIGGER_MARKERS):
        alert_type = "error"
    elif any(marker in text for marker in RECOVERY_MARKERS):
        alert_type = "recovery"
    else:
        alert_type = "info"

    first_line = text.split("\n", 1)[0]
    for marker in TITLE_MARKERS:
        first_line = first_line.replace(marker, "")
    title = first_line.strip()

    return NormalizedAlert(
        alert_type=alert_type,
        title=title,
        message=text,
        source=AlertSource.TEXT,
        priority="high" if "anomaly" in text.lower() else "medium",
    )


def normalize(parsed: ParseResult) -> NormalizedAlert:
    """Dispatch on the parse result. Invalid payloads raise InvalidPayloadError."""
    if isinstance(parsed, ParsedJson):
        return normalize_json(parsed.payload)
    if isinstance(parsed, ParsedText):
        return normalize_text(parsed.text)
    if isinstance(parsed, Invalid):
        raise InvalidPayloadError(parsed.reason)
    raise InvalidPayloadError("Payload must be JSON object or text string")
