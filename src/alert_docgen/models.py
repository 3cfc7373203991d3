"""
Pydantic models for HTTP request bodies.

Field presence is checked by the stores, not here, so that missing values
surface as the same structured ValidationError everywhere.
"""

from typing import Any, Dict, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ProcessAlertRequest(BaseModel):
    """Template selection for a pending alert."""
    model_config = ConfigDict(populate_by_name=True)

    template_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("templateId", "template_id"),
        description="Template to render the alert with"
    )


class TemplateCreateRequest(BaseModel):
    """Inline template creation."""

    name: Optional[str] = Field(None, description="Template name")
    description: Optional[str] = Field(None, description="Free-text description")
    category: Optional[str] = Field(None, description="Grouping label, defaults to 'general'")
    body: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("body", "content"),
        description="Template source text"
    )


class TemplateUpdateRequest(TemplateCreateRequest):
    """Partial template update; absent or blank fields are left alone."""

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class DocumentCreateRequest(BaseModel):
    """Direct document creation, bypassing templates."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, description="Document title")
    content: Optional[str] = Field(None, description="Document text")
    alert_type: Optional[str] = Field(None, validation_alias=AliasChoices("alertType", "alert_type"))
    priority: Optional[str] = Field(None, description="high, medium or low")
    status: Optional[str] = Field(None, description="Lifecycle status, defaults to 'draft'")
    source_alert: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("sourceAlert", "source_alert")
    )


class DocumentUpdateRequest(BaseModel):
    """Partial document update."""

    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class PreviewRequest(BaseModel):
    """Render a template body against an alert without saving anything."""

    alert: Optional[Union[Dict[str, Any], str]] = Field(
        None, description="Raw alert payload (JSON object or Datadog text); a sample is used when absent"
    )
    body: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("body", "content"),
        description="Template source; required for ad-hoc previews"
    )
