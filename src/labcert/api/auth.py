"""API key authentication for the generation endpoints."""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader

if TYPE_CHECKING:
    from labcert.core.config import AuthConfig

log = logging.getLogger(__name__)

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_auth(
    request: Request,
    api_key: Optional[str] = Security(_api_key_header),
) -> None:
    """Reject the request unless it carries a configured API key."""
    config: AuthConfig = request.app.state.settings.auth

    if not config.enabled:
        return

    # A deployment may rename the header; the documented X-API-Key still works.
    presented = api_key or request.headers.get(config.header_name)
    if presented and any(secrets.compare_digest(presented, key) for key in config.api_keys):
        return

    log.warning("Rejected unauthenticated request to %s", request.url.path)
    raise HTTPException(
        status_code=401,
        detail=f"Unauthorized client. Provide the {config.header_name} header.",
    )
