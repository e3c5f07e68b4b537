"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

if TYPE_CHECKING:
    from labcert.core.config import AppSettings

log = logging.getLogger(__name__)


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_timezone(settings)
    _check_auth(settings)
    _check_batch(settings)


def _check_timezone(settings: AppSettings) -> None:
    try:
        ZoneInfo(settings.pdf.display_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"LABCERT_PDF_DISPLAY_TIMEZONE={settings.pdf.display_timezone!r} is not a known IANA timezone."
        ) from None


def _check_auth(settings: AppSettings) -> None:
    """Reject auth enabled with no keys: every request would be rejected."""
    if settings.auth.enabled and not settings.auth.api_keys:
        raise ValueError(
            "LABCERT_AUTH_ENABLED=true but no API keys configured. "
            "Set LABCERT_AUTH_API_KEYS or disable auth."
        )


def _check_batch(settings: AppSettings) -> None:
    if not settings.batch.footer_contact_details and not settings.batch.footer_content:
        log.warning("Batch footer text is empty; generated reports will carry a blank footer.")
