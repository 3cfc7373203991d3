"""
FastAPI server for Datadog alert documentation.

This module exposes the HTTP surface: the Datadog webhook, the pending-alert
queue, template and document CRUD, previews and document export. Services are
built once per application and handed to endpoints through dependencies.
"""

import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, File, Form, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from alert_ingest import AlertIngestManager, normalize, parse_payload
from document_renderer import DocumentRenderer, TemplateEngine
from entity_store import DocgenError, DocumentStore, TemplateStore, export_document, export_filename
from entity_store.export import ExportFormat

from . import __version__
from .config import Config
from .logging_config import configure_logging
from .models import (
    DocumentCreateRequest,
    DocumentUpdateRequest,
    PreviewRequest,
    ProcessAlertRequest,
    TemplateCreateRequest,
    TemplateUpdateRequest,
)


logger = structlog.get_logger(__name__)

SERVICE_NAME = "alert-docgen"

SAMPLE_ALERT = {
    "id": "sample-1234567890",
    "alert_type": "error",
    "title": "[Triggered] High CPU usage on web-01",
    "body": "CPU usage has been above 90% for the last 5 minutes.",
    "date": 1700000000,
    "org": {"id": "12345", "name": "Example Org"},
    "tags": ["env:production", "service:web", "team:platform", "region:us-east-1"],
    "metric_name": "system.cpu.user",
    "metric_value": 94.2,
    "unit": "%",
    "threshold": 90,
    "condition": "above",
    "hostname": "web-01",
    "alert_transition": "Triggered",
    "link": "https://app.datadoghq.com/monitors/1",
}


@dataclass
class Services:
    """Per-application service objects shared by the endpoints."""
    config: Config
    alerts: AlertIngestManager
    templates: TemplateStore
    documents: DocumentStore
    renderer: DocumentRenderer

    @classmethod
    def from_config(cls, config: Config) -> "Services":
        templates = TemplateStore(config.templates_dir, max_upload_bytes=config.max_upload_bytes)
        documents = DocumentStore(config.documents_dir, snippet_length=config.search_snippet_length)
        return cls(
            config=config,
            alerts=AlertIngestManager(config.alerts_dir, window_seconds=config.dedup_window_seconds),
            templates=templates,
            documents=documents,
            renderer=DocumentRenderer(
                templates, documents, engine=TemplateEngine(), generator_name=config.generator_name
            ),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    correlation_id = str(uuid.uuid4())
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": message,
            "correlation_id": correlation_id,
            "timestamp": _now_iso(),
        }
    )


def create_app(config: Optional[Config] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the FastAPI application and its services."""
    config = config or Config()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Alert Docgen",
        description="Turns Datadog webhook alerts into incident documents via stored templates",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.services = services or Services.from_config(config)

    logger.info(
        "Application services initialized",
        data_dir=str(config.data_dir),
        dedup_window_seconds=config.dedup_window_seconds
    )

    _register_exception_handlers(app)
    _register_routes(app)
    return app


def _register_exception_handlers(app: FastAPI):

    @app.exception_handler(DocgenError)
    async def docgen_error_handler(request: Request, exc: DocgenError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Request failed",
            url=str(request.url),
            method=request.method,
            error=exc.message,
            error_type=type(exc).__name__,
            status_code=exc.status_code
        )
        return _error_response(exc.status_code, exc.error, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        logger.warning("Request validation failed", url=str(request.url), errors=details)
        return _error_response(400, "Validation failed", details or "Invalid request")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(
            "Unhandled exception in server",
            url=str(request.url),
            method=request.method,
            error=str(exc),
            exc_info=True
        )
        return _error_response(500, "Internal server error", "Something went wrong")


def _register_routes(app: FastAPI):

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.fromtimestamp(time.time(), tz=timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "version": __version__
        }

    # Webhook ingest

    @app.post("/webhook")
    @app.post("/webhook/datadog")
    async def receive_webhook(request: Request, services: Services = Depends(get_services)):
        """
        Receive a Datadog webhook.

        Accepts either a JSON object or the plain-text message format. A
        repeat of a still-pending alert inside the dedup window returns the
        existing id with ``duplicate: true``.
        """
        correlation_id = str(uuid.uuid4())
        body = await request.body()
        content_type = request.headers.get("content-type")

        logger.info(
            "Received Datadog webhook",
            correlation_id=correlation_id,
            content_type=content_type,
            size=len(body)
        )

        result = await run_in_threadpool(services.alerts.ingest, body, content_type)

        logger.info(
            "Webhook processing completed",
            correlation_id=correlation_id,
            alert_id=result.alert_id,
            duplicate=result.duplicate
        )
        return result.to_dict()

    # Alerts

    @app.get("/alerts/pending")
    def list_pending_alerts(services: Services = Depends(get_services)):
        alerts = services.alerts.list_pending()
        return {
            "success": True,
            "count": len(alerts),
            "alerts": [alert.summary() for alert in alerts],
        }

    @app.get("/alerts/{alert_id}")
    def get_alert(alert_id: str, services: Services = Depends(get_services)):
        alert = services.alerts.get(alert_id)
        return {"success": True, "alert": alert.to_dict()}

    @app.post("/alerts/{alert_id}/process")
    def process_alert(
        alert_id: str,
        request: ProcessAlertRequest,
        services: Services = Depends(get_services)
    ):
        """Render a pending alert with the chosen template and store the document."""
        pending = services.alerts.claim(alert_id)

        logger.info("Processing alert", alert_id=alert_id, template_id=request.template_id)

        try:
            document = services.renderer.render(request.template_id, pending.alert)
        except Exception:
            services.alerts.release(alert_id)
            raise
        services.alerts.mark_processed(alert_id, document.id, request.template_id)

        return {
            "success": True,
            "message": "Alert processed successfully",
            "alertId": alert_id,
            "documentId": document.id,
            "document": document.to_dict(),
        }

    # Templates

    @app.get("/templates")
    def list_templates(services: Services = Depends(get_services)):
        templates = services.templates.list()
        return {
            "success": True,
            "count": len(templates),
            "templates": [template.to_dict() for template in templates],
        }

    @app.post("/templates", status_code=201)
    def create_template(request: TemplateCreateRequest, services: Services = Depends(get_services)):
        template = services.templates.create(
            name=request.name,
            body=request.body,
            description=request.description,
            category=request.category,
        )
        return {
            "success": True,
            "message": "Template created successfully",
            "template": template.summary(),
        }

    @app.post("/templates/upload", status_code=201)
    async def upload_template(
        template: UploadFile = File(...),
        name: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        category: Optional[str] = Form(None),
        services: Services = Depends(get_services)
    ):
        """Create a template from an uploaded text file."""
        content = await template.read(services.config.max_upload_bytes + 1)
        created = await run_in_threadpool(
            services.templates.create_from_upload,
            template.filename,
            content,
            name,
            description,
            category,
        )
        return {
            "success": True,
            "message": "Template uploaded successfully",
            "template": created.summary(),
        }

    @app.post("/templates/preview")
    def preview_template_body(request: PreviewRequest, services: Services = Depends(get_services)):
        """Render an unsaved template body against an alert."""
        if not request.body or not request.body.strip():
            return _error_response(400, "Validation failed", "Template content is required")
        alert = normalize(parse_payload(request.alert if request.alert is not None else SAMPLE_ALERT))
        return services.renderer.preview(request.body, alert).to_dict()

    @app.get("/templates/{template_id}")
    def get_template(template_id: str, services: Services = Depends(get_services)):
        return {"success": True, "template": services.templates.get(template_id).to_dict()}

    @app.put("/templates/{template_id}")
    def update_template(
        template_id: str,
        request: TemplateUpdateRequest,
        services: Services = Depends(get_services)
    ):
        template = services.templates.update(template_id, request.changes())
        return {
            "success": True,
            "message": "Template updated successfully",
            "template": template.summary(),
        }

    @app.delete("/templates/{template_id}")
    def delete_template(template_id: str, services: Services = Depends(get_services)):
        services.templates.delete(template_id)
        return {"success": True, "message": "Template deleted successfully"}

    @app.post("/templates/{template_id}/preview")
    def preview_stored_template(
        template_id: str,
        request: Optional[PreviewRequest] = None,
        services: Services = Depends(get_services)
    ):
        """Render a stored template against an alert without saving anything."""
        payload = request.alert if request is not None and request.alert is not None else SAMPLE_ALERT
        alert = normalize(parse_payload(payload))
        return services.renderer.preview_template(template_id, alert).to_dict()

    # Documents

    @app.get("/documents")
    def list_documents(
        search: Optional[str] = Query(None, description="Case-insensitive text to look for"),
        services: Services = Depends(get_services)
    ):
        if search and search.strip():
            matches = services.documents.search(search)
            return {"success": True, "query": search, "count": len(matches), "documents": matches}

        documents = services.documents.list()
        return {
            "success": True,
            "count": len(documents),
            "documents": [document.summary() for document in documents],
        }

    @app.post("/documents", status_code=201)
    def create_document(request: DocumentCreateRequest, services: Services = Depends(get_services)):
        document = services.documents.create(
            title=request.title,
            content=request.content,
            alert_type=request.alert_type,
            priority=request.priority,
            status=request.status,
            source_alert=request.source_alert,
        )
        return {
            "success": True,
            "message": "Document created successfully",
            "document": document.to_dict(),
        }

    @app.get("/documents/{document_id}")
    def get_document(document_id: str, services: Services = Depends(get_services)):
        return {"success": True, "document": services.documents.get(document_id).to_dict()}

    @app.put("/documents/{document_id}")
    def update_document(
        document_id: str,
        request: DocumentUpdateRequest,
        services: Services = Depends(get_services)
    ):
        document = services.documents.update(document_id, request.changes())
        return {
            "success": True,
            "message": "Document updated successfully",
            "document": {
                "id": document.id,
                "title": document.title,
                "alertType": document.alert_type,
                "status": document.status,
                "updatedAt": document.updated_at.isoformat(),
            },
        }

    @app.delete("/documents/{document_id}")
    def delete_document(document_id: str, services: Services = Depends(get_services)):
        services.documents.delete(document_id)
        return {"success": True, "message": "Document deleted successfully"}

    @app.get("/documents/{document_id}/export")
    def export_document_endpoint(
        document_id: str,
        export_format: str = Query(ExportFormat.TEXT.value, alias="format", description="text or html"),
        services: Services = Depends(get_services)
    ):
        document = services.documents.get(document_id)
        body, media_type = export_document(document, export_format)
        filename = export_filename(document, ExportFormat(export_format))
        return Response(
            content=body,
            media_type=media_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )
