"""
Render context derivation.

``build_context`` is a pure function of the alert (and an optional "now"), so
the same context serves live generation and previews.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from alert_ingest.models import NormalizedAlert
from entity_store.formatting import format_long_date, relative_time

GENERATOR_NAME = "Datadog Alert Documentation Generator"

HOST_TAG_KEYS = {
    "environment": ("env", "environment"),
    "service": ("service",),
    "team": ("team",),
    "region": ("region",),
}


def extract_tag(tags: Iterable[Any], key: str) -> str:
    """Value of the first ``key:value`` tag, or empty string."""
    prefix = f"{key}:"
    for tag in tags or []:
        if isinstance(tag, str) and tag.startswith(prefix):
            return tag[len(prefix):]
    return ""


def _classify(signal: str) -> Optional[str]:
    value = signal.lower()
    if "critical" in value or "high" in value or "error" in value:
        return "high"
    if "warning" in value or "medium" in value or "warn" in value:
        return "medium"
    if "info" in value or "low" in value:
        return "low"
    return None


def derive_priority(alert: NormalizedAlert) -> str:
    """high / medium / low from the priority hint, then the alert type."""
    if alert.priority:
        derived = _classify(alert.priority)
        if derived:
            return derived

    alert_type = (alert.alert_type or "").lower()
    if "error" in alert_type or "critical" in alert_type:
        return "high"
    if "warning" in alert_type or "anomaly" in alert_type:
        return "medium"

    return "medium"


def _text(value: Any) -> Any:
    return "" if value is None else value


def _triggered_at(seconds: Any) -> Optional[datetime]:
    """UTC datetime for an epoch, or None when it is missing or unrepresentable."""
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def build_context(
    alert: NormalizedAlert,
    now: Optional[datetime] = None,
    generator_name: str = GENERATOR_NAME,
) -> Dict[str, Any]:
    """Group a normalized alert into the variables templates see."""
    now = now or datetime.now(timezone.utc)

    triggered = _triggered_at(alert.timestamp_seconds)
    if triggered is not None:
        relative = relative_time(triggered, now)
    else:
        triggered = now
        relative = "now"

    tags = list(alert.tags)
    host = {
        "name": _text(alert.hostname),
        "ip": _text(alert.host_ip),
    }
    for field_name, keys in HOST_TAG_KEYS.items():
        host[field_name] = next((v for v in (extract_tag(tags, k) for k in keys) if v), "")

    return {
        "alert": {
            "id": alert.source_id or "unknown",
            "type": alert.alert_type or "unknown",
            "title": alert.title or "Untitled Alert",
            "message": alert.message or "",
            "priority": derive_priority(alert),
            "status": alert.status or "unknown",
            "url": _text(alert.url),
            "tags": tags,
            "source": alert.source.value,
        },
        "time": {
            "triggered": triggered,
            "formatted": format_long_date(triggered),
            "iso": triggered.isoformat(),
            "unix": int(triggered.timestamp()),
            "relative": relative,
        },
        "metric": {
            "name": _text(alert.metric_name),
            "value": _text(alert.metric_value),
            "unit": _text(alert.unit),
            "threshold": _text(alert.threshold),
            "condition": _text(alert.condition),
        },
        "host": host,
        "org": {
            "name": _text(alert.org_name),
            "id": _text(alert.org_id or alert.org),
        },
        "raw": alert.to_dict(),
        "generated": {
            "at": now.isoformat(),
            "formatted": format_long_date(now),
            "by": generator_name,
        },
    }
