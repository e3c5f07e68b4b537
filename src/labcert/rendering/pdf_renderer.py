"""PDF rendering backend using reportlab.

Paints a ``DocumentPlan`` onto a single-column page flow: tables become
reportlab ``Table`` flowables, styled runs become ``Paragraph`` markup and
line breaks become horizontal rules. The footer is pushed to the bottom of
the last page.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, Optional
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.flowables import Flowable, HRFlowable, TopPadder

from labcert.core.config import PdfConfig
from labcert.exceptions import RenderingError
from labcert.layout import Cell, DocumentPlan, ImageBlock, LineBreak, TableFragment, TextBlock, TextStyle
from labcert.markup import RunColor, StyledRun
from labcert.rendering.pdf_styles import (
    CELL_BORDER_COLOR,
    CELL_BORDER_WIDTH,
    CELL_HORIZONTAL_PADDING,
    CELL_VERTICAL_PADDING,
    LEADING_FACTOR,
    LINE_BREAK_THICKNESS,
    RUN_COLORS,
    UNICODE_REPLACEMENTS,
)

log = logging.getLogger(__name__)

_PAGE_SIZES = {"letter": LETTER, "a4": A4}
_ALIGNMENTS = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT}


def _sanitize_text(text: str) -> str:
    for char, replacement in UNICODE_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return text


def runs_to_markup(runs: Iterable[StyledRun]) -> str:
    """Translate styled runs into reportlab paragraph markup."""
    parts: list[str] = []
    for run in runs:
        text = escape(_sanitize_text(run.rendered)).replace("\n", "<br/>")
        if run.bold:
            text = f"<b>{text}</b>"
        if run.underline:
            text = f"<u>{text}</u>"
        if run.color is not RunColor.BLACK:
            text = f'<font color="{RUN_COLORS[run.color]}">{text}</font>'
        parts.append(text)
    return "".join(parts)


@lru_cache(maxsize=64)
def _paragraph_style(style: TextStyle, font_family: str) -> ParagraphStyle:
    font = f"{font_family}-Bold" if style.bold_font else font_family
    return ParagraphStyle(
        f"cell_{font}_{style.font_size:g}_{style.align}",
        fontName=font,
        fontSize=style.font_size,
        leading=style.font_size * LEADING_FACTOR,
        alignment=_ALIGNMENTS[style.align],
        textColor=HexColor(style.color),
    )


class PdfRenderer:
    """Renders a ``DocumentPlan`` as certificate PDF bytes."""

    def __init__(self, config: Optional[PdfConfig] = None) -> None:
        self._config = config or PdfConfig()
        self._page_size: tuple[float, float] = _PAGE_SIZES.get(self._config.page_size, A4)
        self._margin: float = self._config.margin_inches * inch

    # ── Public API ───────────────────────────────────────────────────

    def render(self, plan: DocumentPlan) -> bytes:
        """Paint *plan* to PDF bytes."""
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self._page_size,
            leftMargin=self._margin,
            rightMargin=self._margin,
            topMargin=self._margin,
            bottomMargin=self._margin,
            title="Test Result Certificate",
        )
        try:
            doc.build(self._build_story(plan, doc.width))
        except Exception as exc:
            raise RenderingError(f"Failed to paint {plan.sequence} report: {exc}") from exc
        pdf = buffer.getvalue()
        log.debug("Painted %d fragments into %d PDF bytes", len(plan.fragments), len(pdf))
        return pdf

    def render_to_file(self, plan: DocumentPlan, path: Path) -> Path:
        """Write PDF to *path* and return it."""
        path.write_bytes(self.render(plan))
        return path

    @property
    def content_type(self) -> str:
        return "application/pdf"

    # ── Story construction ───────────────────────────────────────────

    def _build_story(self, plan: DocumentPlan, width: float) -> list[Flowable]:
        story: list[Flowable] = []
        footer: list[Flowable] = []
        previous: Optional[TableFragment] = None

        for fragment in plan.fragments:
            if isinstance(fragment, LineBreak):
                story.append(self._line_break(fragment))
                previous = None
                continue

            table = self._table(fragment, width)
            if fragment.pinned_to_bottom:
                footer.append(table)
                previous = None
                continue
            if fragment.beside_previous and previous is not None:
                # previous table was appended as [top spacer, table, bottom spacer]
                story[-2] = self._side_by_side(story[-2], previous, table, fragment, width)
                story[-1] = Spacer(1, max(previous.margin_bottom, fragment.margin_bottom))
            else:
                story.extend([Spacer(1, fragment.margin_top), table, Spacer(1, fragment.margin_bottom)])
            previous = fragment

        for flowable in footer:
            story.append(TopPadder(flowable))
        return story

    def _line_break(self, fragment: LineBreak) -> HRFlowable:
        return HRFlowable(
            width=f"{fragment.width_pct:g}%",
            thickness=LINE_BREAK_THICKNESS,
            color=HexColor(fragment.color),
            spaceBefore=fragment.font_size / 2,
            spaceAfter=fragment.font_size / 2,
        )

    def _side_by_side(
        self,
        left: Flowable,
        left_fragment: TableFragment,
        right: Flowable,
        right_fragment: TableFragment,
        width: float,
    ) -> Table:
        right_width = width * right_fragment.width_pct / 100.0
        outer = Table([[left, right]], colWidths=[width - right_width, right_width])
        outer.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("ALIGN", (0, 0), (0, 0), left_fragment.align.upper()),
                    ("ALIGN", (1, 0), (1, 0), right_fragment.align.upper()),
                    ("LEFTPADDING", (0, 0), (-1, -1), 0),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                    ("TOPPADDING", (0, 0), (-1, -1), 0),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
                ]
            )
        )
        return outer

    def _table(self, fragment: TableFragment, width: float) -> Flowable:
        rows = fragment.rows()
        if not rows:
            return Spacer(1, 0)

        columns = fragment.column_count
        total = width * fragment.width_pct / 100.0
        weight_sum = float(sum(fragment.column_weights))
        col_widths = [total * weight / weight_sum for weight in fragment.column_weights]

        data: list[list[Any]] = []
        commands: list[tuple] = [
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LEFTPADDING", (0, 0), (-1, -1), CELL_HORIZONTAL_PADDING),
            ("RIGHTPADDING", (0, 0), (-1, -1), CELL_HORIZONTAL_PADDING),
            ("TOPPADDING", (0, 0), (-1, -1), CELL_VERTICAL_PADDING),
            ("BOTTOMPADDING", (0, 0), (-1, -1), CELL_VERTICAL_PADDING),
        ]

        for row_index, row in enumerate(rows):
            line: list[Any] = []
            column = 0
            for cell in row:
                span = min(max(cell.col_span, 1), columns)
                start, end = (column, row_index), (column + span - 1, row_index)
                cell_width = sum(col_widths[column : column + span]) - 2 * CELL_HORIZONTAL_PADDING
                line.append(self._cell_content(cell, cell_width))
                line.extend([""] * (span - 1))
                commands.extend(self._cell_commands(cell, start, end))
                column += span
            line.extend([""] * (columns - column))
            data.append(line)

        table = Table(data, colWidths=col_widths, hAlign=fragment.align.upper())
        table.setStyle(TableStyle(commands))
        return table

    @staticmethod
    def _cell_commands(cell: Cell, start: tuple[int, int], end: tuple[int, int]) -> list[tuple]:
        commands: list[tuple] = []
        if start != end:
            commands.append(("SPAN", start, end))
        if cell.border:
            commands.append(("BOX", start, end, CELL_BORDER_WIDTH, HexColor(CELL_BORDER_COLOR)))
        if isinstance(cell.content, ImageBlock):
            commands.append(("ALIGN", start, end, cell.content.align.upper()))
        if cell.background:
            commands.append(("BACKGROUND", start, end, HexColor(cell.background)))
        if cell.margin_top:
            commands.append(("TOPPADDING", start, end, CELL_VERTICAL_PADDING + cell.margin_top))
        if cell.margin_bottom:
            commands.append(("BOTTOMPADDING", start, end, CELL_VERTICAL_PADDING + cell.margin_bottom))
        return commands

    def _cell_content(self, cell: Cell, width: float) -> Any:
        content = cell.content
        if isinstance(content, TextBlock):
            style = _paragraph_style(content.style, self._config.font_family)
            return Paragraph(runs_to_markup(content.runs), style)
        if isinstance(content, ImageBlock):
            return self._image(content, width)
        return ""

    @staticmethod
    def _image(block: ImageBlock, width: float) -> Image:
        image_width, image_height = ImageReader(BytesIO(block.data)).getSize()
        target_width = max(width, 1.0) * block.scale
        target_height = target_width * image_height / image_width
        image = Image(BytesIO(block.data), width=target_width, height=target_height)
        image.hAlign = block.align.upper()
        return image
