"""Application services built on top of the report generator."""

from __future__ import annotations

from labcert.services.batch_generation import BatchGenerationService, BatchSummary

__all__ = ["BatchGenerationService", "BatchSummary"]
