"""Report generation endpoints."""

from __future__ import annotations

import base64
import logging

from fastapi import APIRouter, HTTPException, Request, Response

from labcert.assembler import RenderOutcome, ReportGenerator
from labcert.models import ReportRecord

log = logging.getLogger(__name__)

router = APIRouter(tags=["pdf"])

GENERATION_FAILED = "Failed to generate pdf"


def _generate(request: Request, record: ReportRecord) -> RenderOutcome:
    generator: ReportGenerator = request.app.state.generator
    outcome = generator.generate_report(record)
    if not outcome.ok or outcome.pdf is None:
        log.warning(
            f"Generation for {record.sample.label_id} ended with {outcome.status.value}"
            f" (section={outcome.failed_section})"
        )
        raise HTTPException(status_code=400, detail=GENERATION_FAILED)
    return outcome


@router.post("/generate")
def generate(request: Request, record: ReportRecord) -> str:
    """Render a report and return the PDF bytes base64-encoded."""
    outcome = _generate(request, record)
    return base64.b64encode(outcome.pdf).decode("ascii")


@router.post("/generate-file")
def generate_file(request: Request, record: ReportRecord) -> Response:
    """Render a report and return it as a PDF attachment named after the label."""
    outcome = _generate(request, record)
    filename = f"{record.sample.label_id.upper()}.pdf"
    return Response(
        content=outcome.pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
