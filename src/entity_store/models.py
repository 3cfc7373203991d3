"""
Data models for stored templates and documents.

Records are plain dataclasses that serialize to the camelCase JSON shape kept
on disk and returned by the API.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Any
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


class DocumentStatus(str, Enum):
    """Lifecycle marker for documents."""
    GENERATED = "generated"
    DRAFT = "draft"
    REVIEWED = "reviewed"
    PUBLISHED = "published"
    ARCHIVED = "archived"


@dataclass
class Template:
    """A named text template with usage metadata."""

    name: str
    body: str
    description: str = ""
    category: str = "general"

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    usage_count: int = 0
    last_used_at: Optional[datetime] = None

    # Set when the template was created from an uploaded file
    original_filename: Optional[str] = None
    file_size: Optional[int] = None

    def record_usage(self, now: Optional[datetime] = None):
        """Count one more render of this template."""
        self.usage_count += 1
        self.last_used_at = now or _utcnow()

    def summary(self) -> Dict[str, Any]:
        """Short form returned by create/update responses."""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'body': self.body,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
            'usageCount': self.usage_count,
            'lastUsedAt': self.last_used_at.isoformat() if self.last_used_at else None,
        }
        if self.original_filename is not None:
            data['originalFilename'] = self.original_filename
            data['fileSize'] = self.file_size
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Template':
        """Create Template from dictionary."""
        return cls(
            id=data['id'],
            name=data['name'],
            body=data.get('body', ''),
            description=data.get('description', ''),
            category=data.get('category') or 'general',
            created_at=_parse_dt(data.get('createdAt')) or _utcnow(),
            updated_at=_parse_dt(data.get('updatedAt')) or _utcnow(),
            usage_count=data.get('usageCount', 0),
            last_used_at=_parse_dt(data.get('lastUsedAt')),
            original_filename=data.get('originalFilename'),
            file_size=data.get('fileSize'),
        )


@dataclass
class Document:
    """A rendered (or hand-written) incident document."""

    title: str
    content: str
    alert_type: str = "unknown"
    priority: str = "medium"
    template_id: Optional[str] = None
    template_name: Optional[str] = None
    source_alert: Optional[Dict[str, Any]] = None
    status: str = DocumentStatus.GENERATED.value

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def summary(self) -> Dict[str, Any]:
        """Metadata-only view used by list and search."""
        return {
            'id': self.id,
            'title': self.title,
            'alertType': self.alert_type,
            'templateName': self.template_name,
            'createdAt': self.created_at.isoformat(),
            'priority': self.priority,
            'status': self.status,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'alertType': self.alert_type,
            'priority': self.priority,
            'templateId': self.template_id,
            'templateName': self.template_name,
            'sourceAlert': self.source_alert,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
            'status': self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Document':
        """Create Document from dictionary."""
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            content=data.get('content', ''),
            alert_type=data.get('alertType') or 'unknown',
            priority=data.get('priority') or 'medium',
            template_id=data.get('templateId'),
            template_name=data.get('templateName'),
            source_alert=data.get('sourceAlert'),
            status=data.get('status') or DocumentStatus.GENERATED.value,
            created_at=_parse_dt(data.get('createdAt')) or _utcnow(),
            updated_at=_parse_dt(data.get('updatedAt')) or _utcnow(),
        )
