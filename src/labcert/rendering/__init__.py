"""Rendering backends that paint a DocumentPlan to output bytes."""

from __future__ import annotations

from typing import Any

from labcert.rendering.protocols import IDocumentRenderer

__all__ = [
    "IDocumentRenderer",
    "PdfRenderer",
]


def __getattr__(name: str) -> Any:
    """Lazy-load PdfRenderer so reportlab is only imported when needed."""
    if name == "PdfRenderer":
        from labcert.rendering.pdf_renderer import PdfRenderer

        return PdfRenderer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
