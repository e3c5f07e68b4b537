"""Tests for the individual report section builders."""

from __future__ import annotations

from datetime import datetime

import pytest

from labcert import sections
from labcert.core.config import PdfConfig
from labcert.exceptions import SectionBuildError
from labcert.layout import ImageBlock
from labcert.models import ReportRecord, Result, TemplateOption
from labcert.sections import RenderContext
from tests.fakes.fake_records import make_record, tiny_png
from tests.fakes.fake_rendering import FakeQrEncoder

T = TemplateOption


def _ctx(record: ReportRecord, now: datetime, config: PdfConfig | None = None) -> RenderContext:
    return RenderContext.create(record, config or PdfConfig(), FakeQrEncoder(), now=now)


class TestRenderContext:
    def test_record_without_urn_is_rejected(self, now: datetime) -> None:
        with pytest.raises(ValueError, match="without a URN"):
            _ctx(make_record(urn=None), now)

    def test_urn_is_the_records_urn(self, now: datetime) -> None:
        record = make_record()
        assert _ctx(record, now).urn is record.urn

    def test_report_date_uses_display_timezone(self, now: datetime) -> None:
        assert _ctx(make_record(T.NATIONAL_HEALTH), now).report_date_text == "03-Jun-2021"
        assert _ctx(make_record(T.MOBILE_LAB), now).report_date_text == "03-Jun-2021 13:00"

    def test_missing_date_of_birth(self, now: datetime) -> None:
        record = make_record(test_registration={"date_of_birth": None})
        assert _ctx(record, now).date_of_birth_text == "Not Provided"


class TestHeader:
    def test_logo_and_qr_cells(self, now: datetime) -> None:
        header = sections.build_header(_ctx(make_record(), now))
        logo, qr = header.cells
        assert isinstance(logo.content, ImageBlock)
        assert logo.content.data == tiny_png()
        assert isinstance(qr.content, ImageBlock)
        assert qr.content.align == "right"

    def test_missing_logo_leaves_empty_cell(self, now: datetime) -> None:
        header = sections.build_header(_ctx(make_record(logo_base64=None), now))
        assert header.cells[0].content is None

    def test_invalid_logo_raises(self, now: datetime) -> None:
        with pytest.raises(ValueError, match="Invalid base64"):
            sections.build_header(_ctx(make_record(logo_base64="@@@"), now))


class TestAddressAndMetadata:
    def test_standard_address_lines(self, now: datetime) -> None:
        address = sections.build_address(_ctx(make_record(), now))
        assert address.name == "address"
        assert address.texts() == ["Jane Doe", "1 High Street", "Flat 2", "Belfast", "Northern Ireland", "BT1 1AA"]

    def test_antigen_day_two_address_has_contact_lines(self, now: datetime) -> None:
        address = sections.build_address(_ctx(make_record(T.ANTIGEN_DAY_TWO), now), health_address=True)
        assert address.name == "health_address"
        assert address.texts()[-3:] == ["BT1 1AA", "07700900000", "jane@example.com"]

    @pytest.mark.parametrize(("omitted", "margin"), [(0, 0.0), (1, 10.0), (2, 20.0), (3, 20.0), (5, 20.0)])
    def test_blank_row_margin(self, omitted: int, margin: float) -> None:
        assert sections.metadata_margin_bottom(omitted) == margin

    def test_national_health_metadata(self, now: datetime) -> None:
        metadata = sections.build_metadata(_ctx(make_record(T.NATIONAL_HEALTH), now))
        assert metadata.texts() == [
            "URN:", "R6ABC123",
            "Gender:", "Female",
            "Date Of Receipt:", "02-Jun-2021",
            "Date Of Report:", "03-Jun-2021",
        ]  # fmt: skip
        assert metadata.margin_bottom == 20.0
        assert metadata.beside_previous is True

    def test_private_metadata_shows_passport_and_nationality(self, now: datetime) -> None:
        metadata = sections.build_metadata(_ctx(make_record(T.PRIVATE_CT), now))
        texts = metadata.texts()
        assert "Passport Number:" in texts and "123456789" in texts
        assert "Nationality:" in texts and "British" in texts
        assert metadata.margin_bottom == 10.0

    def test_swab_date_with_time(self, now: datetime) -> None:
        metadata = sections.build_metadata(_ctx(make_record(T.MOBILE_LAB), now))
        texts = metadata.texts()
        assert texts[texts.index("Swab Date:") + 1] == "01-Jun-2021 10:30"

    def test_blank_gender_and_missing_arrival(self, now: datetime) -> None:
        record = make_record(test_registration={"gender": " "}, urn={"arrival_date": None})
        texts = sections.build_metadata(_ctx(record, now)).texts()
        assert texts[3] == "Not Provided"
        assert texts[5] == "Not Provided"


class TestStatements:
    def test_placeholders_are_filled(self, now: datetime) -> None:
        text = sections.substitute_placeholders(
            "{FIRSTNAME} {LASTNAME} {DATE_OF_BIRTH} {CONTACT_NUMBER} {BOOKING_REFERENCE}",
            _ctx(make_record(), now),
        )
        assert text == "Jane Doe 17-May-1990 07700900000 BR-1001"

    def test_inserted_values_lose_markup(self, now: datetime) -> None:
        record = make_record(test_registration={"first_name": "*[Jane:RED]*"})
        assert sections.substitute_placeholders("Hi {FIRSTNAME}", _ctx(record, now)) == "Hi Jane:RED"

    def test_void_statement_only_for_void_id_seven(self) -> None:
        assert sections.shows_void_statement(make_record(void=True, urn={"void_id": 7})) is True
        assert sections.shows_void_statement(make_record(void=True, urn={"void_id": 3})) is False
        assert sections.shows_void_statement(make_record(void=False, urn={"void_id": 7})) is False

    def test_title_is_bold_and_large(self, now: datetime) -> None:
        title = sections.build_title(_ctx(make_record(T.TEST_TO_RELEASE), now))
        (cell,) = title.cells
        assert cell.text == "Test to Release Certificate"
        assert cell.content.style.font_size == 16.0


class TestResultHelpers:
    def test_target_names(self) -> None:
        record = make_record()
        assert sections.target_name(record, "COVID-19 T1") == "ORF1ab"
        assert sections.target_name(record, " covid-19 t1 ") == "ORF1ab"
        assert sections.target_name(record, "COVID-19 T2") == "E-gene"
        assert sections.target_name(make_record(kit_type=1), "COVID-19 T2") == "N-gene"
        assert sections.target_name(make_record(urn={"void_id": 3}), "COVID-19 T2") == "N/A"
        assert sections.target_name(record, "Internal Control") == "Not Provided"

    def test_plod_reads_as_positive(self) -> None:
        assert sections.display_result(Result(reported_name="COVID-19 T1", formatted_entry="PLOD")) == "Positive"
        assert sections.display_result(Result(reported_name="COVID-19 T1", formatted_entry="plod")) == "Positive"
        assert sections.display_result(Result(reported_name="COVID-19 T1")) == "Not Provided"

    def test_ct_values(self) -> None:
        record = make_record(urn={"covid_t2_ct_result": None})
        assert sections.ct_value(record, "COVID-19 T1") == "22.1"
        assert sections.ct_value(record, "COVID-19 T2") == "N/A"
        assert sections.ct_value(record, "Internal Control") == "N/A"

    def test_canonical_results_skip_other_targets(self) -> None:
        names = [result.reported_name for result in sections.canonical_results(make_record())]
        assert names == ["COVID-19 T1", "COVID-19 T2"]

    def test_kit_labels(self, now: datetime) -> None:
        assert sections.test_kit_label(_ctx(make_record(), now)) == sections.DEFAULT_TEST_KIT
        assert sections.test_kit_label(_ctx(make_record(T.MOBILE_LAB), now)) == sections.SINGLE_TARGET_TEST_KIT
        perkin = make_record(T.MOBILE_LAB, kit_type=1)
        assert sections.test_kit_label(_ctx(perkin, now)) == sections.PERKIN_ELMER_TEST_KIT

    def test_antigen_kit_follows_config(self) -> None:
        assert sections.antigen_test_kit(PdfConfig(is_flow_flex=True)) == sections.FLOW_FLEX_ANTIGEN_KIT
        assert sections.antigen_test_kit(PdfConfig()) == sections.ROCHE_ANTIGEN_KIT


class TestResultTables:
    def test_multi_result_rows(self, now: datetime) -> None:
        table = sections.build_result_table(_ctx(make_record(T.NATIONAL_HEALTH, kit_type=None), now))
        rows = table.rows()
        assert [cell.text for cell in rows[0]] == ["URN", "Target Name", "Result", "CT Value", "Test Kit"]
        assert [cell.text for cell in rows[1]] == ["R6ABC123", "ORF1ab", "Negative", "22.1", sections.DEFAULT_TEST_KIT]
        assert [cell.text for cell in rows[2]][1] == "E-gene"
        assert len(rows) == 3

    def test_international_arrivals_adds_test_type(self, now: datetime) -> None:
        rows = sections.build_result_table(_ctx(make_record(T.INTERNATIONAL_ARRIVALS), now)).rows()
        assert rows[0][1].text == "Test Type"
        assert rows[1][1].text == "Day 5"

    def test_single_target_with_cq_value(self, now: datetime) -> None:
        rows = sections.build_result_table(_ctx(make_record(T.GB_OLYMPICS_REMOTE), now)).rows()
        assert [cell.text for cell in rows[0]] == ["URN", "Target Name", "Result", "CQ Value", "Test Kit"]
        assert [cell.text for cell in rows[1]] == [
            "R6ABC123", "E-gene", "Negative", "22.1", sections.SINGLE_TARGET_TEST_KIT,
        ]  # fmt: skip

    def test_mobile_lab_has_no_cq_column(self, now: datetime) -> None:
        rows = sections.build_result_table(_ctx(make_record(T.MOBILE_LAB), now)).rows()
        assert "CQ Value" not in [cell.text for cell in rows[0]]
        assert len(rows) == 2

    def test_corona_focus_row(self, now: datetime) -> None:
        rows = sections.build_result_table(_ctx(make_record(T.CORONA_FOCUS), now)).rows()
        assert [cell.text for cell in rows[1]] == ["R6ABC123", "Day 5", "COVID 19", "Negative"]

    def test_corona_focus_without_results_has_header_only(self, now: datetime) -> None:
        rows = sections.build_result_table(_ctx(make_record(T.CORONA_FOCUS, results=[]), now)).rows()
        assert len(rows) == 1

    def test_antigen_row(self, now: datetime) -> None:
        ctx = _ctx(make_record(T.ANTIGEN), now, PdfConfig(is_flow_flex=True))
        rows = sections.build_result_table(ctx).rows()
        assert [cell.text for cell in rows[1]] == [
            "R6ABC123", "SARS-CoV-2", "Negative", sections.FLOW_FLEX_ANTIGEN_KIT,
        ]  # fmt: skip


class TestTestDetails:
    def test_includes_hcp_statement_for_hcp_labels(self, now: datetime) -> None:
        details = sections.build_test_details(_ctx(make_record(), now))
        assert details.texts() == [
            "Type of test: RT-PCR",
            "Results are valid for the sample provided.",
            sections.HCP_STATEMENT,
        ]

    def test_corporate_can_suppress_hcp_statement(self, now: datetime) -> None:
        record = make_record(urn={"corporate": {"show_hcp_statement": False}})
        assert sections.HCP_STATEMENT not in sections.build_test_details(_ctx(record, now)).texts()


class TestFooter:
    def test_private_template_with_lab(self, now: datetime) -> None:
        footer = sections.build_footer(_ctx(make_record(T.PRIVATE_CT), now))
        texts = footer.texts()
        assert "Testing Location\nRCLS Antrim\n30 Randalstown Road\nAntrim\nUnited Kingdom\nBT41 4LF" in texts
        assert texts[-2] == sections.END_OF_REPORT
        assert footer.pinned_to_bottom is True
        assert any(isinstance(cell.content, ImageBlock) for cell in footer.cells)

    def test_private_template_with_accession_location_only(self, now: datetime) -> None:
        footer = sections.build_footer(_ctx(make_record(T.PRIVATE_CT, lab=None), now))
        assert "Accessioning Location\nUnit 4\nLondon, England\nSW1A 1AA" in footer.texts()

    def test_private_template_falls_back_to_default_location(self, now: datetime) -> None:
        record = make_record(T.PRIVATE_CT, lab=None, urn={"accession_location": None})
        footer = sections.build_footer(_ctx(record, now))
        assert "\n".join(sections.DEFAULT_TESTING_LOCATION).replace("*", "") in footer.texts()

    def test_antigen_without_lab_fails(self, now: datetime) -> None:
        with pytest.raises(SectionBuildError) as excinfo:
            sections.build_footer(_ctx(make_record(T.ANTIGEN, lab=None), now))
        assert excinfo.value.section == "footer"

    def test_antigen_day_two_uses_accession_location_without_lab(self, now: datetime) -> None:
        footer = sections.build_footer(_ctx(make_record(T.ANTIGEN_DAY_TWO, lab=None), now))
        assert any(text.startswith("Accessioning Location") for text in footer.texts())

    def test_non_private_footer_has_no_address(self, now: datetime) -> None:
        footer = sections.build_footer(_ctx(make_record(T.NATIONAL_HEALTH), now))
        assert footer.texts() == [
            "Contact us on 0800 000 0000",
            "",
            sections.END_OF_REPORT,
            "Randox Health, registered in Northern Ireland.",
        ]

    def test_olympics_footer_leads_with_logo(self, now: datetime) -> None:
        footer = sections.build_footer(_ctx(make_record(T.GB_OLYMPICS), now))
        first = footer.cells[0]
        assert isinstance(first.content, ImageBlock)
        assert first.col_span == 3

    def test_olympics_remote_has_no_address_and_wide_logo(self, now: datetime) -> None:
        footer = sections.build_footer(_ctx(make_record(T.GB_OLYMPICS_REMOTE), now))
        assert not any("Location" in text for text in footer.texts())
        assert footer.cells[2].col_span == 2
