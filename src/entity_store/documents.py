"""
Document store: persistence, partial edits and full-text search for
rendered documents.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import NotFoundError, ValidationError
from .models import Document, DocumentStatus, _utcnow
from .storage import JsonFileStore


logger = logging.getLogger(__name__)

DEFAULT_SNIPPET_LENGTH = 200


class DocumentNotFoundError(NotFoundError):
    """Raised when a document id is unknown."""

    def __init__(self, document_id: str):
        super().__init__("Document", document_id)


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


class DocumentStore:
    """File-backed collection of documents."""

    def __init__(self, directory: Path, snippet_length: int = DEFAULT_SNIPPET_LENGTH):
        self.storage = JsonFileStore(directory, "document")
        self.snippet_length = snippet_length

    def save(self, document: Document) -> Document:
        """Persist a document built elsewhere (the renderer)."""
        with self.storage.locked():
            self.storage.save(document.id, document.to_dict())

        logger.info(f"Document saved: {document.id}")
        return document

    def create(
        self,
        title: Optional[str],
        content: Optional[str],
        alert_type: Optional[str] = None,
        priority: Optional[str] = None,
        status: Optional[str] = None,
        source_alert: Optional[Dict[str, Any]] = None,
    ) -> Document:
        """Create a document directly, without a template."""
        title = _clean(title)
        if not title or not _clean(content):
            raise ValidationError("Document title and content are required")

        document = Document(
            title=title,
            content=content,
            alert_type=_clean(alert_type) or "manual",
            priority=_clean(priority).lower() or "medium",
            status=_clean(status) or DocumentStatus.DRAFT.value,
            source_alert=source_alert,
        )
        return self.save(document)

    def get(self, document_id: str) -> Document:
        data = self.storage.load(document_id)
        if data is None:
            raise DocumentNotFoundError(document_id)
        return Document.from_dict(data)

    def list(self) -> List[Document]:
        """All documents, newest first."""
        documents = []
        for data in self.storage.load_all():
            try:
                documents.append(Document.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to read document {data.get('id')}: {e}")
                continue

        documents.sort(key=lambda d: d.created_at, reverse=True)
        return documents

    def update(self, document_id: str, fields: Dict[str, Any]) -> Document:
        """Partial update of title, content and status.

        Empty or whitespace-only title/content are ignored and the existing
        value is kept.
        """
        with self.storage.locked():
            document = self.get(document_id)

            document.title = _clean(fields.get("title")) or document.title
            document.content = _clean(fields.get("content")) or document.content
            document.status = _clean(fields.get("status")) or document.status
            document.updated_at = _utcnow()

            self.storage.save(document.id, document.to_dict())

        logger.info(f"Document {document_id} updated successfully")
        return document

    def delete(self, document_id: str) -> Document:
        with self.storage.locked():
            document = self.get(document_id)
            self.storage.delete(document_id)

        logger.info(f"Document \"{document.title}\" ({document_id}) deleted successfully")
        return document

    def search(self, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring search over title, content and source alert.

        Returns document summaries, newest first, each with a ``snippet`` of
        the leading content.
        """
        term = (query or "").strip().lower()
        if not term:
            return [doc.summary() for doc in self.list()]

        matches = []
        for document in self.list():
            source = json.dumps(document.source_alert, default=str) if document.source_alert else ""
            haystack = f"{document.title}\n{document.content}\n{source}".lower()
            if term not in haystack:
                continue

            result = document.summary()
            result["snippet"] = self._snippet(document.content)
            matches.append(result)

        logger.info(f"Search for {query!r} matched {len(matches)} documents")
        return matches

    def _snippet(self, content: str) -> str:
        if len(content) <= self.snippet_length:
            return content
        return content[:self.snippet_length] + "..."
