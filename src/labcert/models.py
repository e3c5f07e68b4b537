"""Pydantic input models for a single certificate render.

A ``ReportRecord`` is the fully materialised, immutable input to one render.
JSON payloads may use snake_case field names or the PascalCase names emitted
by the laboratory information system (``TestRegistration``, ``LabelId``,
``COVIDT1CTResult`` ...).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_pascal

NOT_PROVIDED = "Not Provided"


class TemplateOption(IntEnum):
    """Closed set of report templates. Ordinals are stable and persisted upstream."""

    NATIONAL_HEALTH = 1
    PRIVATE_CUSTOMERS = 2
    PRIVATE_CT = 3
    PRIVATE_UPDATED = 4
    TITAN = 5
    EGYPT_REPORT = 6
    MOBILE_LAB = 7
    TEST_TO_RELEASE = 8
    ANTIGEN = 9
    INTERNATIONAL_ARRIVALS = 10
    CORONA_FOCUS = 11
    RANDOX_PORTUGAL = 12
    GB_OLYMPICS = 13
    GB_OLYMPICS_REMOTE = 14
    ANTIGEN_DAY_TWO = 15


class _RecordModel(BaseModel):
    model_config = {
        "alias_generator": to_pascal,
        "populate_by_name": True,
        "frozen": True,
    }


# ── Reference data ───────────────────────────────────────────────────


class Country(_RecordModel):
    name: str = ""


class Nationality(_RecordModel):
    name: Optional[str] = None


class TestToReleaseType(_RecordModel):
    name: Optional[str] = None


class CorporateAccount(_RecordModel):
    name: str = ""
    show_hcp_statement: bool = True


class AccessionLocation(_RecordModel):
    """Site where the sample was received, distinct from the testing lab."""

    address_line1: str = ""
    address_line2: Optional[str] = None
    postcode: str = ""
    city: str = ""
    country: str = ""


class Lab(_RecordModel):
    """Testing laboratory shown in the footer address block."""

    name: str = ""
    address_line1: str = ""
    address_line2: Optional[str] = None
    postcode: str = ""
    city: str = ""
    country: Country = Field(default_factory=Country)


# ── Subject / sample ─────────────────────────────────────────────────


class Urn(_RecordModel):
    """Per-test record keyed by the URN: void state, CT values, combined result."""

    void_id: Optional[int] = Field(default=None, alias="VoidID")
    arrival_date: Optional[datetime] = None
    covid_t1_ct_result: Optional[str] = Field(default="N/A", alias="COVIDT1CTResult")
    covid_t2_ct_result: Optional[str] = Field(default="N/A", alias="COVIDT2CTResult")
    combined_result: str = "Not Approved"
    corporate: Optional[CorporateAccount] = None
    passport_number: Optional[str] = None
    booking_reference: Optional[str] = None
    nationality: Optional[Nationality] = None
    test_to_release_type: Optional[TestToReleaseType] = None
    accession_location: Optional[AccessionLocation] = None


class TestRegistration(_RecordModel):
    gender: str = NOT_PROVIDED
    date_of_birth: Optional[datetime] = None
    sample_collected_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    first_name: str = NOT_PROVIDED
    last_name: str = NOT_PROVIDED
    phone_number: Optional[str] = NOT_PROVIDED

    @field_validator("gender", "first_name", "last_name", mode="before")
    @classmethod
    def _null_as_not_provided(cls, value: Any) -> Any:
        # The LIS sends null rather than omitting the field.
        return NOT_PROVIDED if value is None else value


class Sample(_RecordModel):
    label_id: str = Field(default="", validate_default=True)

    @field_validator("label_id", mode="before")
    @classmethod
    def _normalise_label(cls, value: Any) -> str:
        # Blank labels become "Not Provided" before normalisation, i.e. NOTPROVIDED.
        text = str(value) if value else NOT_PROVIDED
        return text.upper().strip().replace(" ", "")


class Result(_RecordModel):
    reported_name: str = ""
    formatted_entry: Optional[str] = None


class ReportStatement(_RecordModel):
    content: str = ""
    type_of_test_content: Optional[str] = None
    technical_note_content: Optional[str] = None


class ReportAddress(_RecordModel):
    name: str = ""
    line1: str = ""
    line2: str = ""
    town: str = ""
    postcode: str = ""
    country: str = ""
    phone: str = ""
    email: str = ""


class Footer(_RecordModel):
    contact_details: str = ""
    logo_base64: Optional[str] = None
    footer_content: str = ""


# ── Report record ────────────────────────────────────────────────────


class ReportRecord(_RecordModel):
    """Immutable input to a single certificate render."""

    template_option: TemplateOption = TemplateOption.NATIONAL_HEALTH
    logo_base64: Optional[str] = None
    test_registration: TestRegistration = Field(default_factory=TestRegistration)
    sample: Sample = Field(default_factory=Sample)
    results: list[Result] = Field(default_factory=list)
    statement: ReportStatement = Field(default_factory=ReportStatement)
    void: bool = False
    void_message: Optional[str] = None
    urn: Optional[Urn] = None
    kit_type: Optional[int] = None
    lab: Optional[Lab] = None
    report_address: ReportAddress = Field(default_factory=ReportAddress)
    footer: Footer = Field(default_factory=Footer)

    @field_validator("template_option", mode="before")
    @classmethod
    def _parse_template_option(cls, value: Any) -> Any:
        """Accept ordinals as well as names such as ``"Antigen_Day_Two"``."""
        if isinstance(value, str) and not value.isdigit():
            try:
                return TemplateOption[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown template option: {value!r}") from None
        return value
