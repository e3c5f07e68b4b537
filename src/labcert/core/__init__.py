"""Core infrastructure: settings, logging and startup validation."""

from __future__ import annotations

from labcert.core.config import AppSettings
from labcert.core.logging_config import setup_logging
from labcert.core.startup_checks import validate_settings

__all__ = ["AppSettings", "setup_logging", "validate_settings"]
