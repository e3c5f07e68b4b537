"""QR verification code embedded in the certificate header."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_Q

PCR_TITLE = "Confirmation this is a genuine Randox Health Result Certificate for COVID-19 PCR Test."
ANTIGEN_TITLE = "Confirmation this is a genuine Randox Health Result Certificate for COVID-19 Antigen Test."

QrEncoder = Callable[[str], str]


@dataclass(frozen=True)
class QrPayload:
    """Text block encoded into the QR image, one field per line."""

    title: str
    barcode: str
    name: str
    dob: str
    report_date: str
    result: str
    passport_number: Optional[str] = None

    def to_text(self) -> str:
        lines = [
            self.title,
            f"URN: {self.barcode}",
            f"Name: {self.name}",
            f"Date of Birth: {self.dob}",
            f"Date of Report: {self.report_date}",
        ]
        if self.passport_number and self.passport_number.strip():
            lines.append(f"Passport Number: {self.passport_number}")
        lines.append(f"Result: {self.result}")
        return "\n".join(lines)


def encode_qr_png_base64(text: str, box_size: int = 5, border: int = 4) -> str:
    """Encode *text* as a quartile-correction QR code, returned as base64 PNG."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_Q, box_size=box_size, border=border)
    qr.add_data(text)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")
