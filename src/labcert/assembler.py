"""Report assembly and the top-level ``generate_report`` entry point.

``ReportAssembler`` orders the section builders into a ``DocumentPlan``;
``ReportGenerator`` checks preconditions, assembles, hands the plan to a
rendering backend and folds every outcome into a ``RenderOutcome``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Callable, Optional

import structlog

from labcert.core.config import PdfConfig
from labcert.exceptions import RenderingError, SectionBuildError
from labcert.layout import DocumentPlan, LayoutFragment
from labcert.models import ReportRecord
from labcert.qr import QrEncoder, encode_qr_png_base64
from labcert.sections import (
    RenderContext,
    build_address,
    build_antigen_table,
    build_footer,
    build_header,
    build_line_break,
    build_metadata,
    build_result_table,
    build_statement,
    build_test_details,
    build_title,
    build_void_statement,
    shows_void_statement,
)

if TYPE_CHECKING:
    from labcert.core.config import AppSettings
    from labcert.rendering.protocols import IDocumentRenderer

log = logging.getLogger(__name__)

STANDARD_SEQUENCE = "standard"
ANTIGEN_DAY_TWO_SEQUENCE = "antigen_day_two"

_Step = tuple[str, Callable[[], LayoutFragment]]


class ReportAssembler:
    """Turns a ``ReportRecord`` into a ``DocumentPlan``.

    Instances hold only configuration and are safe to share between threads;
    every call builds its own ``RenderContext``.
    """

    def __init__(
        self,
        config: Optional[PdfConfig] = None,
        qr_encoder: QrEncoder = encode_qr_png_base64,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config = config or PdfConfig()
        self._qr_encoder = qr_encoder
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def assemble(self, record: ReportRecord) -> DocumentPlan:
        """Build every section of *record*.

        Raises ``SectionBuildError`` naming the first section that failed.
        """
        ctx = RenderContext.create(record, self._config, self._qr_encoder, now=self._clock())
        if ctx.flags.is_antigen_day_two:
            sequence, steps = ANTIGEN_DAY_TWO_SEQUENCE, self._antigen_day_two_steps(ctx)
        else:
            sequence, steps = STANDARD_SEQUENCE, self._standard_steps(ctx)

        fragments = tuple(_run_step(section, build) for section, build in steps)
        return DocumentPlan(template_option=record.template_option, sequence=sequence, fragments=fragments)

    def _standard_steps(self, ctx: RenderContext) -> list[_Step]:
        steps: list[_Step] = [
            ("header", partial(build_header, ctx)),
            ("line_break", build_line_break),
            ("address", partial(build_address, ctx)),
            ("metadata", partial(build_metadata, ctx)),
            ("line_break", build_line_break),
        ]
        if ctx.flags.is_private_user:
            steps.append(("title", partial(build_title, ctx)))
        steps.append(_statement_step(ctx))
        if ctx.urn.void_id is None:
            steps.append(("result_table", partial(build_result_table, ctx)))
            if ctx.flags.show_test_content:
                steps.append(("test_details", partial(build_test_details, ctx)))
        steps.append(("footer", partial(build_footer, ctx)))
        return steps

    def _antigen_day_two_steps(self, ctx: RenderContext) -> list[_Step]:
        steps: list[_Step] = [
            ("header", partial(build_header, ctx)),
            ("line_break", build_line_break),
            ("health_address", partial(build_address, ctx, health_address=True)),
            ("metadata", partial(build_metadata, ctx)),
            ("line_break", build_line_break),
            ("title", partial(build_title, ctx)),
            _statement_step(ctx),
        ]
        if ctx.urn.void_id is None:
            steps.append(("result_table", partial(build_antigen_table, ctx)))
            steps.append(("test_details", partial(build_test_details, ctx)))
        steps.append(("footer", partial(build_footer, ctx)))
        return steps


def _statement_step(ctx: RenderContext) -> _Step:
    if shows_void_statement(ctx.record):
        return ("void_statement", partial(build_void_statement, ctx))
    return ("statement", partial(build_statement, ctx))


def _run_step(section: str, build: Callable[[], LayoutFragment]) -> LayoutFragment:
    try:
        return build()
    except SectionBuildError:
        raise
    except Exception as exc:
        raise SectionBuildError(section, str(exc)) from exc


# ── Generation outcome ───────────────────────────────────────────────


class RenderStatus(str, Enum):
    GENERATED = "generated"
    NOTHING_TO_GENERATE = "nothing_to_generate"
    FAILED = "failed"


@dataclass(frozen=True)
class RenderOutcome:
    status: RenderStatus
    pdf: Optional[bytes] = None
    plan: Optional[DocumentPlan] = None
    failed_section: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is RenderStatus.GENERATED

    @classmethod
    def generated(cls, pdf: bytes, plan: DocumentPlan) -> RenderOutcome:
        return cls(status=RenderStatus.GENERATED, pdf=pdf, plan=plan)

    @classmethod
    def nothing_to_generate(cls) -> RenderOutcome:
        return cls(status=RenderStatus.NOTHING_TO_GENERATE)

    @classmethod
    def failed(cls, section: str, error: str) -> RenderOutcome:
        return cls(status=RenderStatus.FAILED, failed_section=section, error=error)


class ReportGenerator:
    """Precondition check, assembly and painting behind one call."""

    def __init__(self, assembler: ReportAssembler, renderer: IDocumentRenderer) -> None:
        self._assembler = assembler
        self._renderer = renderer

    @classmethod
    def from_settings(cls, settings: AppSettings) -> ReportGenerator:
        from labcert.rendering import PdfRenderer

        return cls(ReportAssembler(settings.pdf), PdfRenderer(settings.pdf))

    def generate_report(self, record: ReportRecord) -> RenderOutcome:
        label_id = record.sample.label_id
        if record.urn is None:
            log.info("Record %s has no URN; nothing to generate", label_id)
            return RenderOutcome.nothing_to_generate()

        with structlog.contextvars.bound_contextvars(urn=label_id):
            try:
                plan = self._assembler.assemble(record)
            except SectionBuildError as exc:
                log.error("Report section %r failed: %s", exc.section, exc, exc_info=exc.__cause__)
                return RenderOutcome.failed(exc.section, str(exc))

            try:
                pdf = self._renderer.render(plan)
            except RenderingError as exc:
                log.exception("Rendering the %s report failed", plan.sequence)
                return RenderOutcome.failed("render", str(exc))

            log.info(
                "Generated %s report for template %s (%d bytes)",
                plan.sequence,
                plan.template_option.name,
                len(pdf),
            )
        return RenderOutcome.generated(pdf, plan)
