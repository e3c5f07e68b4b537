"""Rendering backend protocol: paints a document plan to output bytes."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from labcert.layout import DocumentPlan


@runtime_checkable
class IDocumentRenderer(Protocol):
    """Protocol for rendering backends (reportlab PDF, test fakes, etc.)."""

    def render(self, plan: DocumentPlan) -> bytes:
        """Paint *plan* and return the document bytes. Raises RenderingError."""
        ...

    def render_to_file(self, plan: DocumentPlan, path: Path) -> Path:
        """Render and write to a file. Returns the output path."""
        ...

    @property
    def content_type(self) -> str:
        """MIME type of the rendered output (e.g. 'application/pdf')."""
        ...
