"""
Configuration management for Alert Docgen.

This module handles environment variable configuration and application settings.
Every field can be set through an ``ALERT_DOCGEN_``-prefixed variable or a
``.env`` file.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ALERT_DOCGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Storage Configuration
    data_dir: Path = Field(default=Path("data"), description="Root directory for templates, documents and alerts")

    # Ingest Configuration
    dedup_window_seconds: int = Field(default=300, gt=0, description="Dedup time bucket in seconds")

    # Document Configuration
    search_snippet_length: int = Field(default=200, gt=0, description="Characters of content returned per search hit")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0, description="Largest accepted template upload")
    generator_name: str = Field(
        default="Datadog Alert Documentation Generator",
        description="Name stamped into generated.by"
    )

    @property
    def templates_dir(self) -> Path:
        return self.data_dir / "templates"

    @property
    def documents_dir(self) -> Path:
        return self.data_dir / "documents"

    @property
    def alerts_dir(self) -> Path:
        return self.data_dir / "alerts"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.log_level.upper() == "DEBUG"
