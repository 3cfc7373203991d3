"""
Template store: CRUD over named text templates plus usage tracking.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import NotFoundError, ValidationError
from .models import Template, _utcnow
from .storage import JsonFileStore


logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_EXTENSIONS = {
    ".txt", ".hbs", ".handlebars", ".html", ".md", ".json", ".template", ".j2", ".jinja"
}

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class TemplateNotFoundError(NotFoundError):
    """Raised when a template id is unknown."""

    def __init__(self, template_id: str):
        super().__init__("Template", template_id)


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


class TemplateStore:
    """File-backed collection of templates."""

    def __init__(self, directory: Path, max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES):
        self.storage = JsonFileStore(directory, "template")
        self.max_upload_bytes = max_upload_bytes

    def create(
        self,
        name: Optional[str],
        body: Optional[str],
        description: Optional[str] = None,
        category: Optional[str] = None,
        original_filename: Optional[str] = None,
        file_size: Optional[int] = None,
    ) -> Template:
        """Create and persist a new template."""
        name = _clean(name)
        if not name or not _clean(body):
            raise ValidationError("Template name and content are required")

        template = Template(
            name=name,
            # Uploaded bodies are kept verbatim, inline bodies are trimmed
            body=body if original_filename else body.strip(),
            description=_clean(description),
            category=_clean(category) or "general",
            original_filename=original_filename,
            file_size=file_size,
        )

        with self.storage.locked():
            self.storage.save(template.id, template.to_dict())

        logger.info(f"Template \"{template.name}\" created with ID: {template.id}")
        return template

    def create_from_upload(
        self,
        filename: Optional[str],
        content: bytes,
        name: Optional[str],
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Template:
        """Create a template whose body comes from an uploaded file."""
        if not filename:
            raise ValidationError("Please select a template file to upload")

        extension = Path(filename).suffix.lower()
        if extension not in ALLOWED_UPLOAD_EXTENSIONS:
            allowed = ", ".join(sorted(ALLOWED_UPLOAD_EXTENSIONS))
            raise ValidationError(f"Invalid file type. Allowed types: {allowed}")

        if len(content) > self.max_upload_bytes:
            raise ValidationError(
                f"Template file is too large ({len(content)} bytes, limit {self.max_upload_bytes})"
            )

        try:
            body = content.decode("utf-8")
        except UnicodeDecodeError:
            raise ValidationError("Template file must be UTF-8 text")

        return self.create(
            name=name,
            body=body,
            description=description,
            category=category,
            original_filename=Path(filename).name,
            file_size=len(content),
        )

    def get(self, template_id: str) -> Template:
        data = self.storage.load(template_id)
        if data is None:
            raise TemplateNotFoundError(template_id)
        return Template.from_dict(data)

    def list(self) -> List[Template]:
        """All templates, newest first."""
        templates = []
        for data in self.storage.load_all():
            try:
                templates.append(Template.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to read template {data.get('id')}: {e}")
                continue

        templates.sort(key=lambda t: t.created_at, reverse=True)
        return templates

    def update(self, template_id: str, fields: Dict[str, Any]) -> Template:
        """Apply a partial update. Blank values keep the existing field."""
        with self.storage.locked():
            template = self.get(template_id)

            template.name = _clean(fields.get("name")) or template.name
            template.description = _clean(fields.get("description")) or template.description
            template.category = _clean(fields.get("category")) or template.category
            body = fields.get("body")
            if _clean(body):
                # Uploaded bodies keep their whitespace, inline ones are trimmed as on create
                template.body = body if template.original_filename else body.strip()
            template.updated_at = _utcnow()

            self.storage.save(template.id, template.to_dict())

        logger.info(f"Template {template_id} updated successfully")
        return template

    def delete(self, template_id: str) -> Template:
        """Delete a template and return what was removed."""
        with self.storage.locked():
            template = self.get(template_id)
            self.storage.delete(template_id)

        logger.info(f"Template \"{template.name}\" ({template_id}) deleted successfully")
        return template

    def record_usage(self, template_id: str, now: Optional[datetime] = None) -> Template:
        """Increment usageCount and stamp lastUsedAt."""
        with self.storage.locked():
            template = self.get(template_id)
            template.record_usage(now)
            self.storage.save(template.id, template.to_dict())

        logger.info(f"Updated usage count for template {template_id}: {template.usage_count}")
        return template
