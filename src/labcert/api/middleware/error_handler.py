"""Global exception handlers mapping domain exceptions to HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from labcert.exceptions import (
    AssetNotFoundError,
    LabCertError,
    RenderingError,
    SectionBuildError,
)


def register_error_handlers(app: FastAPI) -> None:
    """Register exception-to-HTTP-status mappings.

    The PDF routes go through ``ReportGenerator``, which reports section and
    rendering failures as a ``RenderOutcome``. The section and rendering
    handlers cover routes that call the assembler or a renderer directly.
    """

    @app.exception_handler(SectionBuildError)
    async def handle_section_error(request: Request, exc: SectionBuildError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": str(exc), "type": "section_build_error", "section": exc.section},
        )

    @app.exception_handler(RenderingError)
    async def handle_rendering_error(request: Request, exc: RenderingError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": str(exc), "type": "rendering_error"})

    @app.exception_handler(AssetNotFoundError)
    async def handle_missing_asset(request: Request, exc: AssetNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc), "type": "asset_not_found"})

    @app.exception_handler(LabCertError)
    async def handle_generic_error(request: Request, exc: LabCertError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": str(exc), "type": "labcert_error"})
