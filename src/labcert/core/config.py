"""Nested pydantic-settings configuration for the application.

Each sub-config reads its own ``LABCERT_<GROUP>_*`` environment variables,
so ``AppSettings().pdf.is_flow_flex`` is driven by ``LABCERT_PDF_IS_FLOW_FLEX``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class PdfConfig(BaseSettings):
    """Certificate rendering configuration.

    Env vars use ``LABCERT_PDF_`` prefix::

        export LABCERT_PDF_IS_FLOW_FLEX=true
        export LABCERT_PDF_DISPLAY_TIMEZONE=Europe/London
    """

    model_config = {"env_prefix": "LABCERT_PDF_"}

    is_flow_flex: bool = False
    display_timezone: str = "Europe/London"
    page_size: Literal["letter", "a4"] = "a4"
    margin_inches: float = Field(default=0.5, gt=0.0, le=3.0)
    font_family: str = "Helvetica"


class AuthConfig(BaseSettings):
    """API key authentication.

    Env vars use ``LABCERT_AUTH_`` prefix.
    """

    model_config = {"env_prefix": "LABCERT_AUTH_"}

    enabled: bool = False
    api_keys: list[str] = Field(default_factory=list)
    header_name: str = "X-API-Key"


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Env vars use ``LABCERT_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "LABCERT_OBSERVABILITY_"}

    service_name: str = "labcert"
    log_level: str = "INFO"


class BatchConfig(BaseSettings):
    """Scheduled batch generation.

    Env vars use ``LABCERT_BATCH_`` prefix::

        export LABCERT_BATCH_RECORD_INBOX=/data/pending
        export LABCERT_BATCH_REPORT_OUTBOX=/data/reports
    """

    model_config = {"env_prefix": "LABCERT_BATCH_"}

    process_name: str = "pdf-generation"
    logo_container: str = "logos"
    logo_file: str = "report-logo.png"
    footer_logo_container: str = "logos"
    footer_logo_file: str = "footer-logo.png"
    footer_contact_details: str = ""
    footer_content: str = ""
    record_inbox: Path = Path("./records")
    asset_root: Path = Path("./assets")
    report_outbox: Path = Path("./reports")
    events_file: Path = Path("./reports/events.jsonl")


class APIConfig(BaseSettings):
    """FastAPI application metadata.

    Env vars use ``LABCERT_API_`` prefix.
    """

    model_config = {"env_prefix": "LABCERT_API_"}

    title: str = "labcert"
    description: str = "Laboratory test-result certificate generation"


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs.

    Each sub-config reads its own ``LABCERT_<GROUP>_*`` env vars when the
    settings object is created.
    """

    pdf: PdfConfig = Field(default_factory=PdfConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    api: APIConfig = Field(default_factory=APIConfig)
