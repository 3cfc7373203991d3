"""
Unit tests for document_renderer/engine.py and document_renderer/renderer.py
"""

from datetime import datetime, timezone

import pytest

from alert_ingest import NormalizedAlert, normalize_json
from document_renderer import TemplateCompileError, TemplateEngine, document_title
from entity_store import TemplateNotFoundError


@pytest.fixture
def engine():
    return TemplateEngine()


class TestTemplateEngine:

    def test_interpolation(self, engine):
        context = {"alert": {"title": "Disk full"}, "host": {"name": "db-1"}}
        assert engine.render("{{ alert.title }} on {{ host.name }}", context) == "Disk full on db-1"

    def test_missing_paths_render_empty(self, engine):
        assert engine.render("[{{ host.missing.deeper }}]", {"host": {}}) == "[]"
        assert engine.render("[{{ nothing }}]", {}) == "[]"

    def test_conditionals(self, engine):
        source = "{% if alert.priority == 'high' %}page{% elif alert.priority == 'medium' %}ticket{% else %}log{% endif %}"
        assert engine.render(source, {"alert": {"priority": "high"}}) == "page"
        assert engine.render(source, {"alert": {"priority": "medium"}}) == "ticket"
        assert engine.render(source, {"alert": {"priority": "low"}}) == "log"

    def test_missing_path_is_falsy(self, engine):
        assert engine.render("{% if host.region %}yes{% else %}no{% endif %}", {"host": {}}) == "no"

    def test_comparison_helpers(self, engine):
        context = {"metric": {"value": "95.5", "threshold": 90}}
        source = (
            "{% if gt(metric.value, metric.threshold) %}over{% endif %}"
            "{% if lte(metric.value, metric.threshold) %}under{% endif %}"
            "{% if ne(metric.unit, '%') %}!{% endif %}"
        )
        assert engine.render(source, context) == "over!"

    def test_logic_helpers(self, engine):
        source = "{% if and_(a, or_(b, c), not_(d)) %}ok{% else %}no{% endif %}"
        assert engine.render(source, {"a": 1, "b": 0, "c": 1, "d": 0}) == "ok"
        assert engine.render(source, {"a": 1, "b": 0, "c": 0, "d": 0}) == "no"

    @pytest.mark.parametrize("op,expected", [
        ("==", "yes"),
        ("!=", "no"),
        (">=", "yes"),
        ("<", "no"),
        ("~", "no"),
    ])
    def test_if_cond(self, engine, op, expected):
        source = "{% if if_cond(a, '" + op + "', b) %}yes{% else %}no{% endif %}"
        assert engine.render(source, {"a": 5, "b": 5}) == expected

    def test_strict_equality_checks_type(self, engine):
        source = "{% if if_cond(a, '===', b) %}same{% else %}different{% endif %}"
        assert engine.render(source, {"a": "5", "b": 5}) == "different"
        assert engine.render(source, {"a": 5, "b": 5}) == "same"

    def test_filters(self, engine):
        context = {"name": "disk", "secs": 200, "data": {"a": 1}}
        assert engine.render("{{ name | capitalize }}", context) == "Disk"
        assert engine.render("{{ name | upper }}", context) == "DISK"
        assert engine.render("{{ 'DISK' | lower }}", context) == "disk"
        assert engine.render("{{ secs | format_duration }}", context) == "3m 20s"
        assert engine.render("{{ data | json }}", context) == '{\n  "a": 1\n}'

    def test_format_date_filter(self, engine):
        context = {"ts": 0, "iso": "2026-10-19T09:05:03+00:00"}
        assert engine.render("{{ ts | format_date('%Y-%m-%d') }}", context) == "1970-01-01"
        assert engine.render("{{ iso | format_date }}", context) == "October 19th 2026, 9:05:03 am"

    def test_no_html_escaping(self, engine):
        assert engine.render("{{ x }}", {"x": "<b>&</b>"}) == "<b>&</b>"

    def test_syntax_error(self, engine):
        with pytest.raises(TemplateCompileError) as exc_info:
            engine.render("{% if alert.title %}unterminated", {"alert": {"title": "x"}})
        assert exc_info.value.status_code == 422

    def test_sandbox_blocks_attribute_escapes(self, engine):
        with pytest.raises(TemplateCompileError):
            engine.render("{{ ''.__class__.__mro__[1].__subclasses__() }}", {})


class TestDocumentTitle:

    def test_uses_alert_title(self):
        now = datetime(2026, 10, 19, 9, 5, tzinfo=timezone.utc)
        alert = NormalizedAlert(alert_type="error", title="Disk full")
        assert document_title(alert, now) == "Disk full - 2026-10-19 09:05"

    def test_falls_back_to_message_then_default(self):
        now = datetime(2026, 10, 19, 9, 5, tzinfo=timezone.utc)
        assert document_title(NormalizedAlert(alert_type="x", message="m"), now) == "m - 2026-10-19 09:05"
        assert document_title(NormalizedAlert(alert_type="x"), now) == "Alert Documentation - 2026-10-19 09:05"


class TestDocumentRenderer:

    def test_render_persists_document(self, renderer, template_store, document_store,
                                      simple_template_body, datadog_json_alert):
        template = template_store.create(name="Incident", body=simple_template_body)
        alert = normalize_json(datadog_json_alert)

        document = renderer.render(template.id, alert)

        assert document.content == (
            "Incident: [Triggered] High CPU on web-01\n"
            "Priority: high\n"
            "Environment: prod\n"
            "PAGE ON-CALL"
        )
        assert document.title.startswith("[Triggered] High CPU on web-01 - ")
        assert document.priority == "high"
        assert document.alert_type == "error"
        assert document.status == "generated"
        assert document.template_id == template.id
        assert document.template_name == "Incident"
        assert document.source_alert["title"] == alert.title
        assert document_store.get(document.id).content == document.content

    def test_render_counts_usage(self, renderer, template_store, simple_template_body, datadog_json_alert):
        template = template_store.create(name="Incident", body=simple_template_body)
        alert = normalize_json(datadog_json_alert)

        renderer.render(template.id, alert)
        first = template_store.get(template.id)
        renderer.render(template.id, alert)
        second = template_store.get(template.id)

        assert first.usage_count == 1
        assert second.usage_count == 2
        assert second.last_used_at >= first.last_used_at

    def test_render_unknown_template(self, renderer, datadog_json_alert):
        with pytest.raises(TemplateNotFoundError):
            renderer.render("no-such-template", normalize_json(datadog_json_alert))

    def test_broken_template_saves_nothing(self, renderer, template_store, document_store, datadog_json_alert):
        template = template_store.create(name="Broken", body="{{ alert.title ")

        with pytest.raises(TemplateCompileError):
            renderer.render(template.id, normalize_json(datadog_json_alert))

        assert document_store.list() == []
        assert template_store.get(template.id).usage_count == 0

    def test_preview_has_no_side_effects(self, renderer, template_store, document_store,
                                         simple_template_body, datadog_json_alert):
        template = template_store.create(name="Incident", body=simple_template_body)

        result = renderer.preview_template(template.id, normalize_json(datadog_json_alert))

        assert result.success is True
        assert "PAGE ON-CALL" in result.content
        assert result.context["host"]["environment"] == "prod"
        assert document_store.list() == []
        assert template_store.get(template.id).usage_count == 0

    def test_preview_reports_errors(self, renderer):
        result = renderer.preview("{% if %}", NormalizedAlert(alert_type="info"))

        assert result.success is False
        assert result.content is None
        assert result.error
        assert result.to_dict()["success"] is False

    def test_preview_unknown_template(self, renderer):
        with pytest.raises(TemplateNotFoundError):
            renderer.preview_template("missing", NormalizedAlert(alert_type="info"))

    @pytest.mark.parametrize("date", [1_700_000_000_000, "nan", 10 ** 20])
    def test_preview_survives_odd_dates(self, renderer, date):
        alert = normalize_json({"event_type": "error", "title": "x", "date": date})
        result = renderer.preview("{{ alert.title }} {{ time.unix }}", alert)

        assert result.success is True
        assert result.content.startswith("x ")
