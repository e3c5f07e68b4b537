"""FastAPI application with lifespan management."""

from __future__ import annotations

import importlib.metadata
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI

from labcert.api.auth import require_auth
from labcert.api.middleware.error_handler import register_error_handlers
from labcert.api.routes import health, pdf
from labcert.assembler import ReportGenerator
from labcert.core.config import APIConfig, AppSettings
from labcert.core.logging_config import setup_logging
from labcert.core.startup_checks import validate_settings


def _get_version() -> str:
    """Read package version from installed metadata, with dev fallback."""
    try:
        return importlib.metadata.version("labcert")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup/shutdown lifecycle."""
    settings = AppSettings()
    validate_settings(settings)
    setup_logging(settings.observability)

    app.state.settings = settings
    app.state.generator = ReportGenerator.from_settings(settings)
    yield


_api_config = APIConfig()

app = FastAPI(
    title=_api_config.title,
    description=_api_config.description,
    version=_get_version(),
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(pdf.router, prefix="/api", dependencies=[Depends(require_auth)])
