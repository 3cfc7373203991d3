"""
Unit tests for entity_store/documents.py and entity_store/export.py
"""

from datetime import timedelta

import pytest

from entity_store import (
    Document,
    DocumentNotFoundError,
    ExportFormat,
    ValidationError,
    export_document,
    export_filename,
)


class TestDocumentStore:

    def test_create_defaults(self, document_store):
        document = document_store.create(title="Runbook", content="Restart the pod")

        assert document.alert_type == "manual"
        assert document.priority == "medium"
        assert document.status == "draft"
        assert document.template_id is None
        assert document_store.get(document.id).content == "Restart the pod"

    @pytest.mark.parametrize("title,content", [("", "x"), ("x", ""), (None, "x"), ("x", "   ")])
    def test_create_requires_title_and_content(self, document_store, title, content):
        with pytest.raises(ValidationError):
            document_store.create(title=title, content=content)

    def test_update_ignores_blank_fields(self, document_store):
        document = document_store.create(title="Original", content="Body")
        updated = document_store.update(document.id, {"title": "  ", "content": "", "status": "reviewed"})

        assert updated.title == "Original"
        assert updated.content == "Body"
        assert updated.status == "reviewed"
        assert document_store.get(document.id).status == "reviewed"

    def test_update_missing(self, document_store):
        with pytest.raises(DocumentNotFoundError):
            document_store.update("missing", {"title": "x"})

    def test_delete(self, document_store):
        document = document_store.create(title="t", content="c")
        assert document_store.delete(document.id).id == document.id

        with pytest.raises(DocumentNotFoundError):
            document_store.get(document.id)
        with pytest.raises(DocumentNotFoundError):
            document_store.delete(document.id)

    def test_list_newest_first(self, document_store):
        older = document_store.create(title="older", content="c")
        document_store.create(title="newer", content="c")

        older.created_at -= timedelta(hours=1)
        document_store.save(older)

        assert [d.title for d in document_store.list()] == ["newer", "older"]


class TestDocumentSearch:

    def test_matches_title_content_and_source_alert(self, document_store):
        document_store.create(title="CPU spike", content="nothing else")
        document_store.create(title="Other", content="The checkout service fell over")
        document_store.create(title="Third", content="plain", source_alert={"hostname": "db-primary"})

        assert [r["title"] for r in document_store.search("cpu")] == ["CPU spike"]
        assert [r["title"] for r in document_store.search("CHECKOUT")] == ["Other"]
        assert [r["title"] for r in document_store.search("db-primary")] == ["Third"]
        assert document_store.search("no match anywhere") == []

    def test_snippet_is_truncated(self, document_store):
        document_store.create(title="Long", content="x" * 250)
        document_store.create(title="Short", content="short body")

        results = {r["title"]: r for r in document_store.search("")}
        assert len(results) == 2

        long_result = document_store.search("long")[0]
        assert long_result["snippet"] == "x" * 200 + "..."
        assert document_store.search("short")[0]["snippet"] == "short body"

    def test_results_are_summaries(self, document_store):
        document_store.create(title="CPU spike", content="body")
        result = document_store.search("cpu")[0]

        assert "content" not in result
        assert set(result) >= {"id", "title", "alertType", "priority", "status", "createdAt", "snippet"}


class TestExport:

    def _document(self, **overrides):
        fields = dict(
            title="High CPU: web-01!",
            content="Line one\n<script>alert(1)</script>\n",
            priority="high",
            alert_type="error",
        )
        fields.update(overrides)
        return Document(**fields)

    def test_text_is_exact(self):
        document = self._document()
        body, media_type = export_document(document, "text")

        assert body == document.content
        assert media_type == "text/plain"

    def test_html_page(self):
        body, media_type = export_document(self._document(), "html")

        assert media_type == "text/html"
        assert body.startswith("<!DOCTYPE html>")
        assert 'class="content priority-high"' in body
        assert ".priority-high { border-left-color: #d73a49; }" in body
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body
        assert "<script>" not in body

    def test_unknown_format(self):
        with pytest.raises(ValidationError):
            export_document(self._document(), "pdf")

    def test_filename(self):
        document = self._document()
        assert export_filename(document, ExportFormat.TEXT) == "high_cpu__web_01_.txt"
        assert export_filename(document, ExportFormat.HTML) == "high_cpu__web_01_.html"
