"""Deduplication fingerprints for incoming alerts."""

import hashlib
import json
import time
from typing import Any, Dict, Optional

from .models import NormalizedAlert

DEFAULT_WINDOW_SECONDS = 300


def time_window(now: Optional[float] = None, window_seconds: int = DEFAULT_WINDOW_SECONDS) -> int:
    """Index of the fixed-size time bucket containing ``now``."""
    if window_seconds <= 0:
        raise ValueError("window_seconds must be positive")
    if now is None:
        now = time.time()
    return int(now // window_seconds)


def fingerprint_fields(
    alert: NormalizedAlert,
    now: Optional[float] = None,
    window_seconds: int = DEFAULT_WINDOW_SECONDS,
) -> Dict[str, Any]:
    fields: Dict[str, Any] = {
        "alert_type": alert.alert_type,
        "title": alert.title or "untitled",
        "time_window": time_window(now, window_seconds),
    }
    if alert.org:
        fields["org"] = alert.org
    if alert.source_id:
        fields["id"] = alert.source_id
    return fields


def compute_fingerprint(
    alert: NormalizedAlert,
    now: Optional[float] = None,
    window_seconds: int = DEFAULT_WINDOW_SECONDS,
) -> str:
    """md5 over the key-sorted JSON of the identifying fields.

    Alerts that agree on type, title, org and source id inside the same time
    bucket hash identically. Once the bucket rolls over the same alert gets a
    new fingerprint.
    """
    fields = fingerprint_fields(alert, now, window_seconds)
    encoded = json.dumps(fields, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(encoded.encode("utf-8")).hexdigest()
