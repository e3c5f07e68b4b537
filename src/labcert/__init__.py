"""labcert: laboratory test-result certificate generation."""

from __future__ import annotations

from labcert.assembler import RenderOutcome, RenderStatus, ReportAssembler, ReportGenerator
from labcert.exceptions import (
    AssetNotFoundError,
    BatchGenerationError,
    LabCertError,
    RenderingError,
    SectionBuildError,
)
from labcert.layout import DocumentPlan
from labcert.markup import RunColor, StyledRun, format_markup, format_tokens
from labcert.models import ReportRecord, TemplateOption
from labcert.templates import TEMPLATE_FLAGS, TemplatePredicates

__all__ = [
    "AssetNotFoundError",
    "BatchGenerationError",
    "DocumentPlan",
    "LabCertError",
    "RenderOutcome",
    "RenderStatus",
    "RenderingError",
    "ReportAssembler",
    "ReportGenerator",
    "ReportRecord",
    "RunColor",
    "SectionBuildError",
    "StyledRun",
    "TEMPLATE_FLAGS",
    "TemplateOption",
    "TemplatePredicates",
    "format_markup",
    "format_tokens",
]
