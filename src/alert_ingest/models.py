"""
Data models for ingested alerts.

A webhook body is parsed into a ``NormalizedAlert`` and queued as a
``PendingAlert`` until an operator picks a template for it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Any
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AlertSource(str, Enum):
    """Which payload shape the alert came from."""
    JSON = "datadog_json"
    TEXT = "datadog_text"


class PendingAlertStatus(str, Enum):
    """Status of queued alerts."""
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"


@dataclass
class NormalizedAlert:
    """Canonical alert shape, independent of the payload variant."""

    alert_type: str
    title: Optional[str] = None
    message: str = ""
    source: AlertSource = AlertSource.JSON

    # Identity and timing
    source_id: Optional[str] = None
    timestamp_seconds: Optional[float] = None
    last_updated: Optional[Any] = None

    # Organization
    org: Optional[str] = None
    org_id: Optional[str] = None
    org_name: Optional[str] = None

    tags: List[str] = field(default_factory=list)

    # Metric details
    metric_name: Optional[Any] = None
    metric_value: Optional[Any] = None
    unit: Optional[Any] = None
    threshold: Optional[Any] = None
    condition: Optional[Any] = None

    # Host
    hostname: Optional[str] = None
    host_ip: Optional[str] = None

    priority: Optional[str] = None
    status: Optional[str] = None
    url: Optional[str] = None

    received_at: datetime = field(default_factory=_utcnow)
    original_payload: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'alert_type': self.alert_type,
            'title': self.title,
            'message': self.message,
            'source': self.source.value,
            'source_id': self.source_id,
            'timestamp_seconds': self.timestamp_seconds,
            'last_updated': self.last_updated,
            'org': self.org,
            'org_id': self.org_id,
            'org_name': self.org_name,
            'tags': list(self.tags),
            'metric_name': self.metric_name,
            'metric_value': self.metric_value,
            'unit': self.unit,
            'threshold': self.threshold,
            'condition': self.condition,
            'hostname': self.hostname,
            'host_ip': self.host_ip,
            'priority': self.priority,
            'status': self.status,
            'url': self.url,
            'received_at': self.received_at.isoformat(),
            'original_payload': self.original_payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NormalizedAlert':
        """Create NormalizedAlert from dictionary."""
        return cls(
            alert_type=data['alert_type'],
            title=data.get('title'),
            message=data.get('message') or '',
            source=AlertSource(data.get('source', AlertSource.JSON.value)),
            source_id=data.get('source_id'),
            timestamp_seconds=data.get('timestamp_seconds'),
            last_updated=data.get('last_updated'),
            org=data.get('org'),
            org_id=data.get('org_id'),
            org_name=data.get('org_name'),
            tags=list(data.get('tags') or []),
            metric_name=data.get('metric_name'),
            metric_value=data.get('metric_value'),
            unit=data.get('unit'),
            threshold=data.get('threshold'),
            condition=data.get('condition'),
            hostname=data.get('hostname'),
            host_ip=data.get('host_ip'),
            priority=data.get('priority'),
            status=data.get('status'),
            url=data.get('url'),
            received_at=_parse_dt(data.get('received_at')) or _utcnow(),
            original_payload=data.get('original_payload'),
        )


@dataclass
class PendingAlert:
    """An ingested alert waiting for template selection."""

    alert: NormalizedAlert
    fingerprint: str

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    received_at: datetime = field(default_factory=_utcnow)
    status: PendingAlertStatus = PendingAlertStatus.PENDING

    processed_at: Optional[datetime] = None
    document_id: Optional[str] = None
    template_id: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == PendingAlertStatus.PENDING

    def mark_processed(self, document_id: str, template_id: str):
        """Mark the alert as turned into a document."""
        self.status = PendingAlertStatus.PROCESSED
        self.processed_at = _utcnow()
        self.document_id = document_id
        self.template_id = template_id

    def summary(self) -> Dict[str, Any]:
        """Short form for the pending list."""
        return {
            'id': self.id,
            'receivedAt': self.received_at.isoformat(),
            'alertType': self.alert.alert_type,
            'title': self.alert.title or 'Untitled Alert',
            'priority': self.alert.priority or 'normal',
            'status': self.status.value,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'receivedAt': self.received_at.isoformat(),
            'normalizedAlert': self.alert.to_dict(),
            'dedupFingerprint': self.fingerprint,
            'status': self.status.value,
            'processedAt': self.processed_at.isoformat() if self.processed_at else None,
            'documentId': self.document_id,
            'templateId': self.template_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PendingAlert':
        """Create PendingAlert from dictionary."""
        return cls(
            id=data['id'],
            alert=NormalizedAlert.from_dict(data['normalizedAlert']),
            fingerprint=data['dedupFingerprint'],
            received_at=_parse_dt(data.get('receivedAt')) or _utcnow(),
            status=PendingAlertStatus(data.get('status', PendingAlertStatus.PENDING.value)),
            processed_at=_parse_dt(data.get('processedAt')),
            document_id=data.get('documentId'),
            template_id=data.get('templateId'),
        )


@dataclass
class IngestResult:
    """Outcome of a webhook ingest."""

    alert_id: str
    duplicate: bool = False

    @property
    def message(self) -> str:
        if self.duplicate:
            return "Alert already received (duplicate detected)"
        return "Alert received and queued for processing"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'alertId': self.alert_id,
            'duplicate': self.duplicate,
            'message': self.message,
            'nextStep': 'Select a template to generate documentation',
        }
