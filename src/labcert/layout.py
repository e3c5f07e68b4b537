"""Immutable drawing plan produced by the section builders.

Fragments describe *what* goes on the page: tables of cells holding styled
text or images, and horizontal rules. Turning them into PDF operators is the
rendering backend's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Literal, Optional, Union

from labcert.markup import StyledRun, plain_text
from labcert.models import TemplateOption

Alignment = Literal["left", "center", "right"]


@dataclass(frozen=True)
class TextStyle:
    font_size: float = 10.0
    bold_font: bool = False
    color: str = "#000000"
    align: Alignment = "center"


@dataclass(frozen=True)
class TextBlock:
    runs: tuple[StyledRun, ...]
    style: TextStyle = TextStyle()

    @property
    def text(self) -> str:
        return plain_text(self.runs)


@dataclass(frozen=True)
class ImageBlock:
    """Decoded image bytes scaled to a fraction of the cell width."""

    data: bytes
    scale: float = 1.0
    align: Alignment = "left"


@dataclass(frozen=True)
class Cell:
    content: Union[TextBlock, ImageBlock, None] = None
    col_span: int = 1
    border: bool = False
    background: Optional[str] = None
    margin_top: float = 0.0
    margin_bottom: float = 0.0

    @property
    def text(self) -> str:
        return self.content.text if isinstance(self.content, TextBlock) else ""


@dataclass(frozen=True)
class TableFragment:
    """A named table whose cells flow left to right into ``column_weights``."""

    name: str
    column_weights: tuple[float, ...]
    cells: tuple[Cell, ...] = ()
    width_pct: float = 100.0
    align: Alignment = "left"
    margin_top: float = 0.0
    margin_bottom: float = 0.0
    beside_previous: bool = False
    pinned_to_bottom: bool = False

    @property
    def column_count(self) -> int:
        return len(self.column_weights)

    def rows(self) -> list[list[Cell]]:
        """Place cells row by row; a cell that does not fit starts a new row."""
        rows: list[list[Cell]] = []
        current: list[Cell] = []
        used = 0
        for cell in self.cells:
            span = min(max(cell.col_span, 1), self.column_count)
            if used + span > self.column_count:
                rows.append(current)
                current, used = [], 0
            current.append(cell)
            used += span
        if current:
            rows.append(current)
        return rows

    def texts(self) -> list[str]:
        return [cell.text for cell in self.cells]


@dataclass(frozen=True)
class LineBreak:
    """Grey horizontal rule spanning ``width_pct`` of the frame."""

    width_pct: float = 100.0
    color: str = "#808080"

    @property
    def font_size(self) -> float:
        return self.width_pct / 10.0


LayoutFragment = Union[TableFragment, LineBreak]


@dataclass(frozen=True)
class DocumentPlan:
    template_option: TemplateOption
    sequence: str
    fragments: tuple[LayoutFragment, ...] = field(default_factory=tuple)

    def tables(self) -> Iterator[TableFragment]:
        for fragment in self.fragments:
            if isinstance(fragment, TableFragment):
                yield fragment

    def section_names(self) -> list[str]:
        return [table.name for table in self.tables()]

    def find(self, name: str) -> Optional[TableFragment]:
        return next((table for table in self.tables() if table.name == name), None)
