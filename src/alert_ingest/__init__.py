"""
Alert ingest module for webhook alerts awaiting documentation.

Bodies are parsed into a tagged result, normalized through an explicit
field-alias table, fingerprinted for time-windowed dedup and queued on disk.
"""

from .models import AlertSource, IngestResult, NormalizedAlert, PendingAlert, PendingAlertStatus
from .parser import Invalid, InvalidPayloadError, ParsedJson, ParsedText, parse_payload
from .normalizer import FIELD_ALIASES, normalize, normalize_json, normalize_text
from .fingerprint import compute_fingerprint, time_window
from .manager import AlertIngestManager, AlertNotFoundError

__all__ = [
    "AlertSource",
    "IngestResult",
    "NormalizedAlert",
    "PendingAlert",
    "PendingAlertStatus",
    "Invalid",
    "InvalidPayloadError",
    "ParsedJson",
    "ParsedText",
    "parse_payload",
    "FIELD_ALIASES",
    "normalize",
    "normalize_json",
    "normalize_text",
    "compute_fingerprint",
    "time_window",
    "AlertIngestManager",
    "AlertNotFoundError",
]
