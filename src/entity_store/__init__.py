"""
Entity store module for flat-file persistence of templates and documents.

Each entity is one JSON file on disk, independently addressable by id.
"""

from .errors import DocgenError, NotFoundError, StorageError, ValidationError
from .models import Document, DocumentStatus, Template
from .storage import JsonFileStore
from .templates import TemplateNotFoundError, TemplateStore
from .documents import DocumentNotFoundError, DocumentStore
from .export import ExportFormat, export_document, export_filename

__all__ = [
    "DocgenError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "Document",
    "DocumentStatus",
    "Template",
    "JsonFileStore",
    "TemplateNotFoundError",
    "TemplateStore",
    "DocumentNotFoundError",
    "DocumentStore",
    "ExportFormat",
    "export_document",
    "export_filename",
]
