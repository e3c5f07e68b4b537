"""Tests for the HTTP API: generation endpoints, API-key auth and error mapping."""

from __future__ import annotations

import base64
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from labcert.api.auth import require_auth
from labcert.api.middleware.error_handler import register_error_handlers
from labcert.api.routes import health, pdf
from labcert.assembler import ReportAssembler, ReportGenerator
from labcert.core.config import AppSettings, AuthConfig
from labcert.exceptions import AssetNotFoundError, RenderingError, SectionBuildError
from labcert.models import ReportRecord
from tests.fakes.fake_records import FIXED_NOW, make_record
from tests.fakes.fake_rendering import FAKE_PDF, FakeQrEncoder, FakeRenderer


def _build_app(settings: AppSettings, renderer: FakeRenderer | None = None) -> FastAPI:
    """Build the API with a fake renderer, mirroring production wiring."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        app.state.settings = settings
        app.state.generator = ReportGenerator(
            ReportAssembler(settings.pdf, qr_encoder=FakeQrEncoder(), clock=lambda: FIXED_NOW),
            renderer or FakeRenderer(),
        )
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(pdf.router, prefix="/api", dependencies=[Depends(require_auth)])
    return app


def _make_settings(*, auth_enabled: bool = False, api_keys: list[str] | None = None) -> AppSettings:
    settings = AppSettings()
    settings.auth = AuthConfig(enabled=auth_enabled, api_keys=api_keys or [])
    return settings


def _payload(record: ReportRecord | None = None) -> dict:
    return (record or make_record()).model_dump(mode="json", by_alias=True)


class TestHealth:
    def test_health_and_ready(self) -> None:
        app = _build_app(_make_settings(auth_enabled=True, api_keys=["secret"]))
        with TestClient(app) as client:
            assert client.get("/health").json() == {"status": "ok"}
            assert client.get("/ready").json() == {"status": "ready"}

    def test_head_health_check_is_anonymous(self) -> None:
        app = _build_app(_make_settings(auth_enabled=True, api_keys=["secret"]))
        with TestClient(app) as client:
            assert client.head("/api/health-check").status_code == 200


class TestGenerate:
    def test_returns_base64_pdf(self) -> None:
        with TestClient(_build_app(_make_settings())) as client:
            resp = client.post("/api/generate", json=_payload())
            assert resp.status_code == 200
            assert base64.b64decode(resp.json()) == FAKE_PDF

    def test_generate_file_is_a_named_attachment(self) -> None:
        with TestClient(_build_app(_make_settings())) as client:
            resp = client.post("/api/generate-file", json=_payload())
            assert resp.status_code == 200
            assert resp.headers["content-type"] == "application/pdf"
            assert resp.headers["content-disposition"] == "attachment; filename=R6ABC123.pdf"
            assert resp.content == FAKE_PDF

    def test_missing_urn_is_bad_request(self) -> None:
        with TestClient(_build_app(_make_settings())) as client:
            resp = client.post("/api/generate", json=_payload(make_record(urn=None)))
            assert resp.status_code == 400
            assert resp.json()["detail"] == "Failed to generate pdf"

    def test_render_failure_is_bad_request(self) -> None:
        with TestClient(_build_app(_make_settings(), FakeRenderer(error="boom"))) as client:
            resp = client.post("/api/generate-file", json=_payload())
            assert resp.status_code == 400

    def test_invalid_body_is_rejected(self) -> None:
        with TestClient(_build_app(_make_settings())) as client:
            resp = client.post("/api/generate", json={"TemplateOption": "Nope"})
            assert resp.status_code == 422


class TestApiKeyAuth:
    def test_missing_key_returns_401(self) -> None:
        with TestClient(_build_app(_make_settings(auth_enabled=True, api_keys=["secret"]))) as client:
            resp = client.post("/api/generate", json=_payload())
            assert resp.status_code == 401
            assert "Unauthorized client" in resp.json()["detail"]

    def test_wrong_key_returns_401(self) -> None:
        with TestClient(_build_app(_make_settings(auth_enabled=True, api_keys=["secret"]))) as client:
            resp = client.post("/api/generate", json=_payload(), headers={"X-API-Key": "wrong"})
            assert resp.status_code == 401

    def test_valid_key_passes(self) -> None:
        with TestClient(_build_app(_make_settings(auth_enabled=True, api_keys=["a", "secret"]))) as client:
            resp = client.post("/api/generate", json=_payload(), headers={"X-API-Key": "secret"})
            assert resp.status_code == 200

    def test_custom_header_name(self) -> None:
        settings = _make_settings()
        settings.auth = AuthConfig(enabled=True, api_keys=["secret"], header_name="Api-Key")
        with TestClient(_build_app(settings)) as client:
            resp = client.post("/api/generate", json=_payload(), headers={"Api-Key": "secret"})
            assert resp.status_code == 200

    def test_disabled_auth_needs_no_key(self) -> None:
        with TestClient(_build_app(_make_settings(auth_enabled=False))) as client:
            assert client.post("/api/generate", json=_payload()).status_code == 200


class TestErrorHandlers:
    def _app(self) -> FastAPI:
        app = FastAPI()
        register_error_handlers(app)

        @app.get("/section")
        async def section() -> None:
            raise SectionBuildError("footer", "no lab")

        @app.get("/render")
        async def render() -> None:
            raise RenderingError("font missing")

        @app.get("/asset")
        async def asset() -> None:
            raise AssetNotFoundError("logos/report-logo.png")

        return app

    def test_section_error(self) -> None:
        resp = TestClient(self._app()).get("/section")
        assert resp.status_code == 400
        assert resp.json() == {"error": "footer: no lab", "type": "section_build_error", "section": "footer"}

    def test_rendering_error(self) -> None:
        resp = TestClient(self._app()).get("/render")
        assert resp.status_code == 500
        assert resp.json() == {"error": "font missing", "type": "rendering_error"}

    def test_missing_asset(self) -> None:
        resp = TestClient(self._app()).get("/asset")
        assert resp.status_code == 404
        assert resp.json()["type"] == "asset_not_found"