"""
Document export as plain text or a standalone HTML page.
"""

import re
from enum import Enum
from typing import Tuple

from jinja2 import Environment, select_autoescape

from .errors import ValidationError
from .formatting import format_long_date
from .models import Document


class ExportFormat(str, Enum):
    TEXT = "text"
    HTML = "html"


PRIORITY_COLORS = {
    "high": "#d73a49",
    "medium": "#f66a0a",
    "low": "#28a745",
}

HTML_EXPORT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ document.title }}</title>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            line-height: 1.6;
            max-width: 800px;
            margin: 0 auto;
            padding: 20px;
            color: #333;
        }
        .header {
            border-bottom: 2px solid #e1e5e9;
            padding-bottom: 20px;
            margin-bottom: 30px;
        }
        .title {
            font-size: 2em;
            margin: 0 0 10px 0;
            color: #1a1a1a;
        }
        .meta {
            color: #666;
            font-size: 0.9em;
        }
        .content {
            white-space: pre-wrap;
            font-family: 'SF Mono', Monaco, 'Cascadia Code', 'Roboto Mono', Consolas, 'Courier New', monospace;
            background: #f8f9fa;
            padding: 20px;
            border-radius: 6px;
            border-left: 4px solid #0366d6;
        }
{%- for name, color in priority_colors.items() %}
        .priority-{{ name }} { border-left-color: {{ color }}; }
{%- endfor %}
    </style>
</head>
<body>
    <div class="header">
        <h1 class="title">{{ document.title }}</h1>
        <div class="meta">
            <strong>Alert Type:</strong> {{ document.alert_type }} |
            <strong>Priority:</strong> {{ document.priority }} |
            <strong>Generated:</strong> {{ generated }} |
            <strong>Template:</strong> {{ document.template_name or "none" }}
        </div>
    </div>
    <div class="content priority-{{ document.priority }}">{{ document.content }}</div>
</body>
</html>
"""

_env = Environment(autoescape=select_autoescape(default_for_string=True))
_html_template = _env.from_string(HTML_EXPORT_TEMPLATE)


def export_filename(document: Document, export_format: ExportFormat) -> str:
    """Attachment filename derived from the title."""
    stem = re.sub(r"[^a-z0-9]", "_", document.title, flags=re.IGNORECASE).lower() or "document"
    extension = "txt" if export_format == ExportFormat.TEXT else "html"
    return f"{stem}.{extension}"


def export_document(document: Document, export_format: str) -> Tuple[str, str]:
    """Render a document for download.

    Returns ``(body, media_type)``. Text export is the stored content
    byte-for-byte; HTML export escapes the content into a styled page whose
    accent border is coloured by priority.
    """
    try:
        fmt = ExportFormat(export_format)
    except ValueError:
        raise ValidationError(f"Unsupported export format: {export_format!r}. Use 'text' or 'html'")

    if fmt == ExportFormat.TEXT:
        return document.content, "text/plain"

    body = _html_template.render(
        document=document,
        generated=format_long_date(document.created_at),
        priority_colors=PRIORITY_COLORS,
    )
    return body, "text/html"
