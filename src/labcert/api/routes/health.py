"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: always returns 200 if the process is up."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request) -> dict[str, str]:
    """Readiness probe: the report generator has been wired at startup."""
    if getattr(request.app.state, "generator", None) is None:
        return {"status": "starting"}
    return {"status": "ready"}


@router.head("/api/health-check")
async def health_check() -> Response:
    """Anonymous HEAD probe used by load balancers."""
    return Response(status_code=200)
