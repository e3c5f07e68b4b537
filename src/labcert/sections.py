"""Section builders: one function per report block, each returning a fragment.

Builders read everything from a ``RenderContext`` created fresh for every
render and keep no state between calls.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, cast
from zoneinfo import ZoneInfo

from labcert.core.config import PdfConfig
from labcert.exceptions import SectionBuildError
from labcert.layout import Alignment, Cell, ImageBlock, LineBreak, TableFragment, TextBlock, TextStyle
from labcert.markup import format_markup
from labcert.models import NOT_PROVIDED, ReportRecord, Result, Urn
from labcert.qr import ANTIGEN_TITLE, PCR_TITLE, QrEncoder, QrPayload
from labcert.templates import (
    ResultTableVariant,
    TemplateFlags,
    TemplatePredicates,
    show_hcp_statement,
    show_nationality,
    show_passport_number,
)

DATE_FORMAT = "%d-%b-%Y"
DATE_TIME_FORMAT = "%d-%b-%Y %H:%M"

TABLE_HEADER_BACKGROUND = "#D9D9D9"

COVID_T1 = "COVID-19 T1"
COVID_T2 = "COVID-19 T2"

DEFAULT_TEST_KIT = "Randox COVID-19 qPCR"
SINGLE_TARGET_TEST_KIT = "Bosch Vivalytic SARS CoV-2 RT-PCR"
PERKIN_ELMER_TEST_KIT = "PerkinElmer® SARS-CoV-2 RT-qPCR"
PERKIN_ELMER_KIT_TYPE = 1
FLOW_FLEX_ANTIGEN_KIT = "FlowFlex SARS-CoV-2 Rapid Antigen Test"
ROCHE_ANTIGEN_KIT = "Roche SARS-CoV-2 Rapid Antigen Test"

HCP_STATEMENT = (
    "Sample collection was conducted by a Health Care Practitioner (HCP). "
    "In locations where Randox Health are responsible for sample collection, "
    "any samples collected from individuals under the age of 18 will be carried out "
    "by the accompanying parent or guardian under the supervision of a HCP."
)

DEFAULT_TESTING_LOCATION = (
    "*Testing* *Location*",
    "RCLS-Testing Labs",
    "30 Randalstown Road",
    "Antrim BT41 4LF",
)

END_OF_REPORT = "- End of Report -"

# Four rows are always shown; swab date, passport and nationality are optional.
BASE_METADATA_ROWS = 4
MAX_METADATA_ROWS = 6
BLANK_ROW_MARGIN = 10.0

VOID_STATEMENT_ID = 7

_MARKUP_CHARACTERS = str.maketrans("", "", "*[]")


@dataclass(frozen=True)
class RenderContext:
    """Everything a builder may read during one render."""

    record: ReportRecord
    predicates: TemplatePredicates
    config: PdfConfig
    now: datetime
    qr_encoder: QrEncoder

    @classmethod
    def create(
        cls,
        record: ReportRecord,
        config: PdfConfig,
        qr_encoder: QrEncoder,
        now: Optional[datetime] = None,
    ) -> RenderContext:
        if record.urn is None:
            raise ValueError("A report record without a URN cannot be rendered")
        return cls(
            record=record,
            predicates=TemplatePredicates.for_record(record),
            config=config,
            now=now or datetime.now(timezone.utc),
            qr_encoder=qr_encoder,
        )

    @property
    def display_tz(self) -> ZoneInfo:
        return ZoneInfo(self.config.display_timezone)

    @property
    def flags(self) -> TemplateFlags:
        return self.predicates.flags

    @property
    def urn(self) -> Urn:
        # create() refuses records without a URN.
        return cast(Urn, self.record.urn)

    @property
    def label_id(self) -> str:
        return self.record.sample.label_id or NOT_PROVIDED

    def to_display(self, value: datetime) -> datetime:
        """Convert *value* to the display timezone, treating naive values as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(self.display_tz)

    @property
    def report_date_text(self) -> str:
        fmt = DATE_TIME_FORMAT if self.flags.date_format_has_hours else DATE_FORMAT
        return self.to_display(self.now).strftime(fmt)

    @property
    def date_of_birth_text(self) -> str:
        dob = self.record.test_registration.date_of_birth
        return self.to_display(dob).strftime(DATE_FORMAT) if dob is not None else NOT_PROVIDED


# ── Cell helpers ─────────────────────────────────────────────────────


def text_cell(
    content: Optional[str],
    *,
    size: float = 10.0,
    bold_font: bool = False,
    align: Alignment = "center",
    border: bool = False,
    background: Optional[str] = None,
    col_span: int = 1,
    underline: bool = False,
    margin_top: float = 0.0,
    margin_bottom: float = 0.0,
) -> Cell:
    """A cell holding *content* parsed as inline markup."""
    block = TextBlock(
        runs=tuple(format_markup(content or "", underline)),
        style=TextStyle(font_size=size, bold_font=bold_font, align=align),
    )
    return Cell(
        content=block,
        col_span=col_span,
        border=border,
        background=background,
        margin_top=margin_top,
        margin_bottom=margin_bottom,
    )


def _header_cell(content: str) -> Cell:
    return text_cell(content, border=True, background=TABLE_HEADER_BACKGROUND)


def _body_cell(content: str) -> Cell:
    return text_cell(content, border=True)


def decode_image(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 image payload: {exc}") from exc


# ── Header ───────────────────────────────────────────────────────────


def build_qr_payload(ctx: RenderContext) -> QrPayload:
    registration = ctx.record.test_registration
    return QrPayload(
        title=ANTIGEN_TITLE if ctx.flags.is_antigen_family else PCR_TITLE,
        barcode=ctx.label_id,
        name=f"{registration.first_name} {registration.last_name}",
        dob=ctx.date_of_birth_text,
        report_date=ctx.report_date_text,
        passport_number=ctx.urn.passport_number,
        result=ctx.urn.combined_result,
    )


def build_header(ctx: RenderContext) -> TableFragment:
    """Header logo on the left, QR verification code on the right."""
    logo = ctx.record.logo_base64
    logo_cell = Cell(ImageBlock(decode_image(logo), scale=0.4, align="left")) if logo is not None else Cell()
    qr_png = decode_image(ctx.qr_encoder(build_qr_payload(ctx).to_text()))
    qr_cell = Cell(ImageBlock(qr_png, scale=0.25, align="right"))
    return TableFragment(name="header", column_weights=(1, 1), cells=(logo_cell, qr_cell))


def build_line_break(width_pct: float = 100.0) -> LineBreak:
    return LineBreak(width_pct=width_pct)


# ── Address / metadata ───────────────────────────────────────────────


def build_address(ctx: RenderContext, health_address: bool = False) -> TableFragment:
    """Recipient address block; contact lines replace the country for Antigen Day 2."""
    address = ctx.record.report_address
    lines = [address.name, address.line1, address.line2, address.town]
    if ctx.flags.is_antigen_day_two:
        lines += [address.postcode, address.phone, address.email]
    else:
        lines += [address.country, address.postcode]

    return TableFragment(
        name="health_address" if health_address else "address",
        column_weights=(1,),
        cells=tuple(text_cell(line, align="left") for line in lines),
        width_pct=33.0,
        margin_top=5.0,
    )


def metadata_margin_bottom(omitted_rows: int) -> float:
    """Bottom margin keeping the grid height stable when optional rows are omitted."""
    blanks = min(omitted_rows, MAX_METADATA_ROWS - BASE_METADATA_ROWS)
    return blanks * BLANK_ROW_MARGIN


def _date_of_receipt(urn: Urn) -> str:
    if urn.arrival_date is None:
        return NOT_PROVIDED
    return urn.arrival_date.strftime(DATE_FORMAT)


def build_metadata(ctx: RenderContext) -> TableFragment:
    """Key/value grid placed to the right of the address block."""
    flags = ctx.flags
    urn = ctx.urn
    registration = ctx.record.test_registration
    gender = registration.gender if registration.gender and registration.gender.strip() else NOT_PROVIDED

    rows: list[tuple[str, str]] = [
        ("URN:", ctx.label_id),
        ("Gender:", gender),
        ("Date Of Receipt:", _date_of_receipt(urn)),
        ("Date Of Report:", ctx.report_date_text),
    ]
    omitted = 0

    if flags.show_swab_date:
        fmt = DATE_TIME_FORMAT if flags.show_swab_date_and_time else DATE_FORMAT
        rows.append(("Swab Date:", ctx.to_display(registration.sample_collected_date).strftime(fmt)))
    else:
        omitted += 1

    if flags.is_private_user and show_passport_number(urn.passport_number):
        rows.append(("Passport Number:", urn.passport_number or NOT_PROVIDED))
    else:
        omitted += 1

    nationality = urn.nationality.name if urn.nationality is not None else None
    if flags.is_private_user and show_nationality(nationality):
        rows.append(("Nationality:", nationality or NOT_PROVIDED))
    else:
        omitted += 1

    cells: list[Cell] = []
    for label, value in rows:
        cells.append(text_cell(label, align="left"))
        cells.append(text_cell(value, align="left"))

    return TableFragment(
        name="metadata",
        column_weights=(1, 1),
        cells=tuple(cells),
        width_pct=50.0,
        align="right",
        margin_bottom=metadata_margin_bottom(omitted),
        beside_previous=True,
    )


# ── Title / statements ───────────────────────────────────────────────


def build_title(ctx: RenderContext) -> TableFragment:
    return TableFragment(
        name="title",
        column_weights=(1,),
        cells=(text_cell(f"*{ctx.flags.title}*", size=16.0, bold_font=True),),
        margin_top=2.0,
    )


def _neutralise(value: str) -> str:
    return value.translate(_MARKUP_CHARACTERS)


def substitute_placeholders(content: Optional[str], ctx: RenderContext) -> str:
    """Fill statement placeholders; values are stripped of markup characters first."""
    registration = ctx.record.test_registration
    values = {
        "{FIRSTNAME}": registration.first_name,
        "{LASTNAME}": registration.last_name,
        "{DATE_OF_BIRTH}": ctx.date_of_birth_text,
        "{CONTACT_NUMBER}": registration.phone_number or NOT_PROVIDED,
        "{BOOKING_REFERENCE}": ctx.urn.booking_reference or NOT_PROVIDED,
    }
    text = content or ""
    for placeholder, value in values.items():
        text = text.replace(placeholder, _neutralise(value))
    return text


def build_statement(ctx: RenderContext) -> TableFragment:
    text = substitute_placeholders(ctx.record.statement.content, ctx)
    return TableFragment(
        name="statement",
        column_weights=(1,),
        cells=(text_cell(text, size=9.0, align="left"),),
        margin_top=5.0,
    )


def build_void_statement(ctx: RenderContext) -> TableFragment:
    text = substitute_placeholders(ctx.record.void_message, ctx)
    return TableFragment(
        name="void_statement",
        column_weights=(1,),
        cells=(text_cell(text, size=9.0),),
        margin_top=30.0,
    )


def shows_void_statement(record: ReportRecord) -> bool:
    return record.void and record.urn is not None and record.urn.void_id == VOID_STATEMENT_ID


# ── Result tables ────────────────────────────────────────────────────


def _canonical(reported_name: str) -> str:
    return reported_name.strip().upper()


def canonical_results(record: ReportRecord) -> list[Result]:
    """Results for the two reportable COVID-19 targets, in input order."""
    wanted = {_canonical(COVID_T1), _canonical(COVID_T2)}
    return [result for result in record.results if _canonical(result.reported_name) in wanted]


def target_name(record: ReportRecord, reported_name: str) -> str:
    key = _canonical(reported_name)
    if key == _canonical(COVID_T1):
        return "ORF1ab"
    if key == _canonical(COVID_T2):
        if record.urn is not None and record.urn.void_id is not None:
            return "N/A"
        return "N-gene" if record.kit_type == PERKIN_ELMER_KIT_TYPE else "E-gene"
    return NOT_PROVIDED


def display_result(result: Result) -> str:
    content = result.formatted_entry if result.formatted_entry is not None else NOT_PROVIDED
    return "Positive" if content.upper() == "PLOD" else content


def ct_value(record: ReportRecord, reported_name: str) -> str:
    urn = record.urn
    key = _canonical(reported_name)
    if urn is None:
        return "N/A"
    if key == _canonical(COVID_T1):
        return urn.covid_t1_ct_result or "N/A"
    if key == _canonical(COVID_T2):
        return urn.covid_t2_ct_result or "N/A"
    return "N/A"


def test_kit_label(ctx: RenderContext) -> str:
    label = DEFAULT_TEST_KIT
    if ctx.flags.is_single_target:
        label = SINGLE_TARGET_TEST_KIT
    if ctx.record.kit_type == PERKIN_ELMER_KIT_TYPE:
        label = PERKIN_ELMER_TEST_KIT
    return label


def antigen_test_kit(config: PdfConfig) -> str:
    return FLOW_FLEX_ANTIGEN_KIT if config.is_flow_flex else ROCHE_ANTIGEN_KIT


def _test_type(urn: Urn) -> str:
    if urn.test_to_release_type is None:
        return "N/A"
    return urn.test_to_release_type.name or "N/A"


def build_antigen_table(ctx: RenderContext) -> TableFragment:
    cells = [_header_cell(h) for h in ("URN", "Target Name", "Result", "Test Kit")]
    cells += [
        _body_cell(ctx.label_id),
        _body_cell("SARS-CoV-2"),
        _body_cell(ctx.urn.combined_result),
        _body_cell(antigen_test_kit(ctx.config)),
    ]
    return TableFragment(name="result_table", column_weights=(1, 1, 1, 2), cells=tuple(cells), margin_top=10.0)


def build_single_target_table(ctx: RenderContext) -> TableFragment:
    """Mobile-lab table; the remote olympics template adds a CQ value column."""
    with_cq = ctx.flags.is_gb_olympics_remote
    headers = ["URN", "Target Name", "Result"] + (["CQ Value"] if with_cq else []) + ["Test Kit"]
    cells = [_header_cell(h) for h in headers]

    results = canonical_results(ctx.record)
    if results:
        first = results[0]
        cells += [_body_cell(ctx.label_id), _body_cell("E-gene"), _body_cell(display_result(first))]
        if with_cq:
            cells.append(_body_cell(ct_value(ctx.record, first.reported_name)))
        cells.append(_body_cell(test_kit_label(ctx)))

    weights = (1, 3, 1, 1, 1) if with_cq else (1, 3, 1, 1)
    return TableFragment(name="result_table", column_weights=weights, cells=tuple(cells), margin_top=10.0)


def build_corona_focus_table(ctx: RenderContext) -> TableFragment:
    cells = [_header_cell(h) for h in ("URN", "Test Type", "Target Name", "Result")]
    if canonical_results(ctx.record):
        cells += [
            _body_cell(ctx.label_id),
            _body_cell(_test_type(ctx.urn)),
            _body_cell("COVID 19"),
            _body_cell(ctx.urn.combined_result),
        ]
    return TableFragment(name="result_table", column_weights=(1, 1, 1, 1), cells=tuple(cells), margin_top=10.0)


def build_multi_result_table(ctx: RenderContext) -> TableFragment:
    """One row per reportable target with CT value and test kit."""
    with_test_type = ctx.flags.is_international_arrival
    headers = ["URN"] + (["Test Type"] if with_test_type else []) + ["Target Name", "Result", "CT Value", "Test Kit"]
    cells = [_header_cell(h) for h in headers]
    kit = test_kit_label(ctx)

    for result in canonical_results(ctx.record):
        cells.append(_body_cell(ctx.label_id))
        if with_test_type:
            cells.append(_body_cell(_test_type(ctx.urn)))
        cells += [
            _body_cell(target_name(ctx.record, result.reported_name)),
            _body_cell(display_result(result)),
            _body_cell(ct_value(ctx.record, result.reported_name)),
            _body_cell(kit),
        ]

    weights = (1, 1, 3, 1, 1, 1) if with_test_type else (1, 3, 1, 1, 1)
    return TableFragment(name="result_table", column_weights=weights, cells=tuple(cells), margin_top=10.0)


_RESULT_TABLE_BUILDERS = {
    ResultTableVariant.ANTIGEN: build_antigen_table,
    ResultTableVariant.SINGLE_TARGET: build_single_target_table,
    ResultTableVariant.CORONA_FOCUS: build_corona_focus_table,
    ResultTableVariant.MULTI_RESULT: build_multi_result_table,
}


def build_result_table(ctx: RenderContext) -> TableFragment:
    return _RESULT_TABLE_BUILDERS[ctx.predicates.table_variant](ctx)


# ── Test details ─────────────────────────────────────────────────────


def build_test_details(ctx: RenderContext) -> TableFragment:
    statement = ctx.record.statement
    cells: list[Cell] = []
    if statement.type_of_test_content is not None:
        cells.append(text_cell(statement.type_of_test_content, size=9.0, align="left", col_span=2, margin_bottom=5.0))
    if statement.technical_note_content is not None:
        cells.append(text_cell(statement.technical_note_content, size=9.0, align="left", col_span=2, margin_bottom=10.0))

    corporate = ctx.urn.corporate
    override = corporate.show_hcp_statement if corporate is not None else True
    if show_hcp_statement(ctx.record.sample.label_id, override):
        cells.append(text_cell(HCP_STATEMENT, size=9.0, align="left", col_span=2, margin_bottom=10.0))

    return TableFragment(name="test_details", column_weights=(1, 1), cells=tuple(cells), margin_top=15.0)


# ── Footer ───────────────────────────────────────────────────────────


def _accession_lines(ctx: RenderContext) -> list[str]:
    location = ctx.urn.accession_location
    if location is None:
        raise SectionBuildError("footer", "an accession location is required when no lab is set")
    lines = ["*Accessioning* *Location*", location.address_line1]
    if location.address_line2 is not None:
        lines.append(location.address_line2)
    lines += [f"{location.city}, {location.country}", location.postcode]
    return lines


def _lab_lines(ctx: RenderContext) -> list[str]:
    lab = ctx.record.lab
    if lab is None:
        raise SectionBuildError("footer", "a testing lab is required for this template")
    lines = ["*Testing* *Location*", f"RCLS {lab.name}", lab.address_line1]
    if lab.address_line2 is not None:
        lines.append(lab.address_line2)
    lines += [lab.city, lab.country.name, lab.postcode]
    return lines


def _footer_address(ctx: RenderContext) -> tuple[Optional[Cell], int]:
    """Return the footer address cell (if any) and the column span left for the footer logo."""
    flags = ctx.flags
    record = ctx.record

    if flags.is_private_user and not flags.is_antigen_family:
        if flags.is_gb_olympics_remote:
            return None, 2
        if ctx.urn.accession_location is not None and record.lab is None:
            lines = _accession_lines(ctx)
        elif record.lab is not None:
            lines = _lab_lines(ctx)
        else:
            lines = list(DEFAULT_TESTING_LOCATION)
        return text_cell("\n".join(lines), size=9.0, align="left"), 1

    if flags.is_antigen_family:
        if flags.is_antigen_day_two and record.lab is None:
            lines = _accession_lines(ctx)
        else:
            lines = _lab_lines(ctx)
        span = 1 if flags.is_gb_olympics_remote else 2
        return text_cell("\n".join(lines), size=9.0, align="left", col_span=span), 1

    return None, 1


def _footer_logo(ctx: RenderContext, span: int) -> Optional[Cell]:
    flags = ctx.flags
    if flags.is_private_user and not flags.is_antigen_family and not flags.is_mobile_lab:
        logo = ctx.record.footer.logo_base64
        if logo is None:
            return None
        return Cell(ImageBlock(decode_image(logo), scale=0.5, align="center"), col_span=span)
    return Cell()


def build_footer(ctx: RenderContext) -> TableFragment:
    """Contact text, testing location, lab logo and closing text pinned to the page bottom."""
    flags = ctx.flags
    footer = ctx.record.footer
    cells: list[Cell] = []

    if not flags.is_mobile_lab and (flags.is_gb_olympics or flags.is_gb_olympics_remote):
        if footer.logo_base64 is not None:
            cells.append(Cell(ImageBlock(decode_image(footer.logo_base64), scale=0.25, align="left"), col_span=3))
    cells.append(text_cell(footer.contact_details, size=9.0, align="left"))

    address, logo_span = _footer_address(ctx)
    if address is not None:
        cells.append(address)
    logo = _footer_logo(ctx, logo_span)
    if logo is not None:
        cells.append(logo)

    cells.append(text_cell(END_OF_REPORT, size=12.0, bold_font=True, col_span=3))
    cells.append(text_cell(footer.footer_content, size=8.0, align="left", col_span=3))

    return TableFragment(
        name="footer",
        column_weights=(1, 1, 1),
        cells=tuple(cells),
        pinned_to_bottom=True,
    )
