"""
Document renderer module: alert context derivation and template rendering.
"""

from .context import build_context, derive_priority, extract_tag
from .engine import TemplateCompileError, TemplateEngine
from .renderer import DocumentRenderer, PreviewResult, document_title

__all__ = [
    "build_context",
    "derive_priority",
    "extract_tag",
    "TemplateCompileError",
    "TemplateEngine",
    "DocumentRenderer",
    "PreviewResult",
    "document_title",
]
