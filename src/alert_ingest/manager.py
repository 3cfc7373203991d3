"""
Alert ingest manager: parse, normalize, deduplicate and queue webhook alerts.

The pending set is read from the shared on-disk store on every call, and the
dedup check plus insert run under the store's exclusive lock, so several
server processes pointing at one data directory see each other's alerts.
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

from entity_store.errors import NotFoundError
from entity_store.storage import JsonFileStore

from .fingerprint import DEFAULT_WINDOW_SECONDS, compute_fingerprint
from .models import IngestResult, NormalizedAlert, PendingAlert, PendingAlertStatus
from .normalizer import normalize
from .parser import parse_payload

logger = logging.getLogger(__name__)


class AlertNotFoundError(NotFoundError):
    """Raised when an alert id is unknown."""

    def __init__(self, alert_id: str, detail: str = ""):
        super().__init__("Alert", alert_id)
        if detail:
            self.message = f"Alert with ID {alert_id} {detail}"
            self.args = (self.message,)


class AlertIngestManager:
    """High-level interface over the pending-alert store."""

    def __init__(
        self,
        directory: Path,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the ingest manager.

        Args:
            directory: Where alert records are kept
            window_seconds: Dedup bucket size
            clock: Source of "now" in epoch seconds
        """
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.storage = JsonFileStore(directory, "alert")
        self.window_seconds = window_seconds
        self.clock = clock

        logger.info(f"AlertIngestManager initialized (dedup window {window_seconds}s)")

    def ingest(self, body: Any, content_type: Optional[str] = None) -> IngestResult:
        """Parse a raw webhook body and queue it.

        Raises:
            InvalidPayloadError: The body cannot be turned into an alert.
        """
        alert = normalize(parse_payload(body, content_type))
        return self.ingest_alert(alert)

    def ingest_alert(self, alert: NormalizedAlert) -> IngestResult:
        """Queue an already-normalized alert, collapsing duplicates."""
        fingerprint = compute_fingerprint(alert, self.clock(), self.window_seconds)

        with self.storage.locked():
            existing = self._find_pending_by_fingerprint(fingerprint)
            if existing is not None:
                logger.info(
                    f"Duplicate alert detected (hash: {fingerprint}), returning existing alert ID: {existing.id}"
                )
                return IngestResult(alert_id=existing.id, duplicate=True)

            pending = PendingAlert(alert=alert, fingerprint=fingerprint)
            self.storage.save(pending.id, pending.to_dict())

        logger.info(
            f"Alert {pending.id} stored and awaiting template selection (hash: {fingerprint})",
            extra={
                'alert_id': pending.id,
                'alert_type': alert.alert_type,
                'source': alert.source.value,
            }
        )
        return IngestResult(alert_id=pending.id, duplicate=False)

    def _all(self) -> List[PendingAlert]:
        alerts = []
        for data in self.storage.load_all():
            try:
                alerts.append(PendingAlert.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Failed to deserialize alert {data.get('id')}: {e}")
                continue
        return alerts

    def _find_pending_by_fingerprint(self, fingerprint: str) -> Optional[PendingAlert]:
        for alert in self._all():
            if alert.is_pending and alert.fingerprint == fingerprint:
                return alert
        return None

    def list_pending(self) -> List[PendingAlert]:
        """Alerts awaiting template selection, newest first."""
        pending = [alert for alert in self._all() if alert.is_pending]
        pending.sort(key=lambda a: a.received_at, reverse=True)
        return pending

    def get(self, alert_id: str) -> PendingAlert:
        """Fetch an alert whether pending or already processed."""
        data = self.storage.load(alert_id)
        if data is None:
            raise AlertNotFoundError(alert_id)
        return PendingAlert.from_dict(data)

    def get_pending(self, alert_id: str) -> PendingAlert:
        """Fetch an alert that is still awaiting processing."""
        alert = self.get(alert_id)
        if not alert.is_pending:
            raise AlertNotFoundError(alert_id, "not found or already processed")
        return alert

    def claim(self, alert_id: str) -> PendingAlert:
        """Take a pending alert out of the pending set before rendering it.

        Only one caller can claim an alert; later callers get
        AlertNotFoundError until the claim is released.
        """
        with self.storage.locked():
            alert = self.get(alert_id)
            if not alert.is_pending:
                raise AlertNotFoundError(alert_id, "not found or already processed")
            alert.status = PendingAlertStatus.PROCESSING
            self.storage.save(alert.id, alert.to_dict())

        logger.info(f"Alert {alert_id} claimed for processing")
        return alert

    def release(self, alert_id: str) -> PendingAlert:
        """Return a claimed alert to the pending set after a failed render."""
        with self.storage.locked():
            alert = self.get(alert_id)
            if alert.status == PendingAlertStatus.PROCESSING:
                alert.status = PendingAlertStatus.PENDING
                self.storage.save(alert.id, alert.to_dict())

        logger.info(f"Alert {alert_id} released back to pending")
        return alert

    def mark_processed(self, alert_id: str, document_id: str, template_id: str) -> PendingAlert:
        """Record that a document was generated; the alert leaves the pending set."""
        with self.storage.locked():
            alert = self.get(alert_id)
            if alert.status == PendingAlertStatus.PROCESSED:
                raise AlertNotFoundError(alert_id, "not found or already processed")
            alert.mark_processed(document_id, template_id)
            self.storage.save(alert.id, alert.to_dict())

        logger.info(f"Alert {alert_id} processed successfully. Document ID: {document_id}")
        return alert
