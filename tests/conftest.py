"""
Pytest configuration and shared fixtures.

Provides:
- Stores rooted in temporary directories
- An ingest manager with a fixed clock so dedup buckets are deterministic
- A configured FastAPI test client
- Sample Datadog payloads
"""

from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from alert_docgen.config import Config
from alert_docgen.webhook import Services, create_app
from alert_ingest import AlertIngestManager
from document_renderer import DocumentRenderer
from entity_store import DocumentStore, TemplateStore


# Middle of a 5-minute bucket: 1_000_050 // 300 == 3333
FIXED_NOW = 1_000_050.0


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: float = FIXED_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


# ============================================================================
# Storage fixtures
# ============================================================================

@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def template_store(data_dir) -> TemplateStore:
    return TemplateStore(data_dir / "templates")


@pytest.fixture
def document_store(data_dir) -> DocumentStore:
    return DocumentStore(data_dir / "documents")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ingest_manager(data_dir, clock) -> AlertIngestManager:
    return AlertIngestManager(data_dir / "alerts", window_seconds=300, clock=clock)


@pytest.fixture
def renderer(template_store, document_store) -> DocumentRenderer:
    return DocumentRenderer(template_store, document_store)


# ============================================================================
# Application fixtures
# ============================================================================

@pytest.fixture
def config(data_dir) -> Config:
    return Config(data_dir=data_dir, log_level="WARNING")


@pytest.fixture
def services(config, ingest_manager, template_store, document_store, renderer) -> Services:
    return Services(
        config=config,
        alerts=ingest_manager,
        templates=template_store,
        documents=document_store,
        renderer=renderer,
    )


@pytest.fixture
def client(config, services):
    app = create_app(config, services=services)
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Alert payload fixtures
# ============================================================================

@pytest.fixture
def datadog_json_alert() -> Dict[str, Any]:
    """Structured Datadog webhook payload."""
    return {
        "id": "7312345678901234567",
        "event_type": "error",
        "title": "[Triggered] High CPU on web-01",
        "body": "CPU usage is above 90% on web-01",
        "date": 1_000_000,
        "org": {"id": "42", "name": "Acme"},
        "tags": ["env:prod", "service:api", "team:sre", "region:eu-west-1", "custom"],
        "metric_name": "system.cpu.user",
        "metric_value": 95.5,
        "unit": "%",
        "threshold": 90,
        "condition": "above",
        "hostname": "web-01",
        "alert_transition": "Triggered",
        "link": "https://app.datadoghq.com/monitors/1",
    }


@pytest.fixture
def datadog_text_alert() -> str:
    """Plain-text Datadog notification."""
    return (
        "[Triggered] Anomaly Detected on checkout latency\n"
        "Latency on checkout-service deviates from the expected band.\n"
        "Notified by @webhook-docgen"
    )


@pytest.fixture
def simple_template_body() -> str:
    return (
        "Incident: {{ alert.title }}\n"
        "Priority: {{ alert.priority }}\n"
        "Environment: {{ host.environment }}\n"
        "{% if eq(alert.priority, 'high') %}PAGE ON-CALL{% else %}Review later{% endif %}"
    )
