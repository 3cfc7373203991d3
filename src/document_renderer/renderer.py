"""
Document renderer: turn an alert plus a stored template into a Document.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from alert_ingest.models import NormalizedAlert
from entity_store.documents import DocumentStore
from entity_store.models import Document, DocumentStatus
from entity_store.templates import TemplateStore

from .context import GENERATOR_NAME, build_context, derive_priority
from .engine import TemplateCompileError, TemplateEngine

logger = logging.getLogger(__name__)


@dataclass
class PreviewResult:
    """Outcome of a non-persisting render."""

    success: bool
    content: Optional[str] = None
    error: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'content': self.content,
            'error': self.error,
            'context': self.context,
        }


def document_title(alert: NormalizedAlert, now: datetime) -> str:
    """``<alert title> - <YYYY-MM-DD HH:MM>``."""
    alert_title = alert.title or alert.message or "Alert Documentation"
    return f"{alert_title} - {now.strftime('%Y-%m-%d %H:%M')}"


class DocumentRenderer:
    """Render, persist and account for generated documents."""

    def __init__(
        self,
        templates: TemplateStore,
        documents: DocumentStore,
        engine: Optional[TemplateEngine] = None,
        generator_name: str = GENERATOR_NAME,
    ):
        self.templates = templates
        self.documents = documents
        self.engine = engine or TemplateEngine()
        self.generator_name = generator_name

    def render(self, template_id: str, alert: NormalizedAlert) -> Document:
        """Render ``alert`` with a stored template and save the result.

        Raises:
            TemplateNotFoundError: No template with that id.
            TemplateCompileError: The template body is malformed.
        """
        logger.info(f"Generating document for alert using template {template_id}")

        template = self.templates.get(template_id)
        now = datetime.now(timezone.utc)
        context = build_context(alert, now=now, generator_name=self.generator_name)
        content = self.engine.render(template.body, context)

        document = Document(
            title=document_title(alert, now),
            content=content,
            alert_type=alert.alert_type or "unknown",
            priority=derive_priority(alert),
            template_id=template.id,
            template_name=template.name,
            source_alert=alert.to_dict(),
            status=DocumentStatus.GENERATED.value,
            created_at=now,
            updated_at=now,
        )

        self.documents.save(document)
        self.templates.record_usage(template.id)

        logger.info(f"Document generated successfully: {document.id}")
        return document

    def preview(self, body: str, alert: NormalizedAlert) -> PreviewResult:
        """Render without saving or touching usage stats. Never raises on template errors."""
        context = build_context(alert, generator_name=self.generator_name)
        try:
            content = self.engine.render(body, context)
        except TemplateCompileError as e:
            return PreviewResult(success=False, error=e.message)

        return PreviewResult(success=True, content=content, context=context)

    def preview_template(self, template_id: str, alert: NormalizedAlert) -> PreviewResult:
        """Preview a stored template.

        Raises:
            TemplateNotFoundError: No template with that id.
        """
        template = self.templates.get(template_id)
        return self.preview(template.body, alert)
