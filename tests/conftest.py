"""Shared fixtures for labcert tests."""

from __future__ import annotations

from datetime import datetime

import pytest

from labcert.assembler import ReportAssembler
from labcert.core.config import PdfConfig
from labcert.models import ReportRecord
from tests.fakes.fake_records import FIXED_NOW, make_record
from tests.fakes.fake_rendering import FakeQrEncoder


@pytest.fixture
def now() -> datetime:
    """Report time: 12:00 UTC, i.e. 13:00 in London during BST."""
    return FIXED_NOW


@pytest.fixture
def pdf_config() -> PdfConfig:
    return PdfConfig(display_timezone="Europe/London")


@pytest.fixture
def qr_encoder() -> FakeQrEncoder:
    return FakeQrEncoder()


@pytest.fixture
def assembler(pdf_config: PdfConfig, qr_encoder: FakeQrEncoder, now: datetime) -> ReportAssembler:
    """Assembler with a fake QR encoder and a frozen clock."""
    return ReportAssembler(pdf_config, qr_encoder=qr_encoder, clock=lambda: now)


@pytest.fixture
def record() -> ReportRecord:
    """National Health record with T1/T2 results, lab, accession location and footer logo."""
    return make_record()
