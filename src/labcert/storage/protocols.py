"""Storage protocols used by batch generation: records in, assets, reports and events out."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel
from pydantic.alias_generators import to_pascal

from labcert.models import ReportRecord


class CompletionEvent(BaseModel):
    """Published once per stored report so upstream systems can mark the URN complete."""

    model_config = {"alias_generator": to_pascal, "populate_by_name": True, "frozen": True}

    urn: str
    completion_process: str


@runtime_checkable
class IRecordSource(Protocol):
    """Protocol for sources of records awaiting a certificate."""

    def fetch_pending(self) -> list[ReportRecord]:
        """Return every record that still needs a report."""
        ...


@runtime_checkable
class IAssetStore(Protocol):
    """Protocol for binary asset stores (logos)."""

    def get(self, container: str, name: str) -> bytes:
        """Load an asset. Raises AssetNotFoundError if missing."""
        ...


@runtime_checkable
class IReportStore(Protocol):
    """Protocol for rendered-report destinations."""

    def save(self, name: str, data: bytes) -> None:
        """Store report bytes under *name* (e.g. ``R6ABC.pdf``)."""
        ...


@runtime_checkable
class IEventPublisher(Protocol):
    """Protocol for completion-event sinks."""

    def publish(self, events: list[CompletionEvent]) -> None:
        """Publish a batch of completion events."""
        ...
