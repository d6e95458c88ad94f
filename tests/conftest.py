from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///default.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT))

# ruff: noqa: E402
from src.config.settings import Settings
from src.domain.value_objects.role import Role
from src.infrastructure.db.base import Base
from src.infrastructure.db.orm import (  # noqa: F401
    audit_log,
    lot,
    lot_template,
    qr_snapshot,
    sensor,
    sensor_reading,
    stay,
    zone,
)
from src.infrastructure.auth.jwt_service import JWTService
from src.interfaces.http.main import create_app


@pytest.fixture(scope="session")
def organization_id() -> UUID:
    return uuid4()


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    db_path = tmp_path / "test.db"
    return Settings.model_validate(
        {
            "database_url": f"sqlite+aiosqlite:///{db_path}",
            "jwt_secret_key": "test-secret",
            "log_level": "INFO",
            "environment": "test",
            "public_trace_url_base": "https://trace.test/t/",
        }
    )


@pytest.fixture()
def jwt_service(test_settings: Settings) -> JWTService:
    return JWTService(
        secret_key=test_settings.jwt_secret_key.get_secret_value(),
        algorithm=test_settings.jwt_algorithm,
        access_token_expires_minutes=test_settings.jwt_access_token_expires_minutes,
    )


@pytest.fixture()
def app(test_settings: Settings, jwt_service: JWTService):
    return create_app(settings=test_settings, jwt_service=jwt_service)


@pytest.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        engine = app.state.engine
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        yield client


@pytest.fixture()
def make_headers(jwt_service: JWTService, organization_id: UUID) -> Callable[..., dict[str, str]]:
    def _make(role: Role = Role.ADMIN, *, org: UUID | None = None) -> dict[str, str]:
        token = jwt_service.create_access_token(
            subject=uuid4(), organization_id=org or organization_id, role=role
        )
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def admin_headers(make_headers) -> dict[str, str]:
    return make_headers(Role.ADMIN)


@pytest.fixture()
def manager_headers(make_headers) -> dict[str, str]:
    return make_headers(Role.MANAGER)


@pytest.fixture()
def worker_headers(make_headers) -> dict[str, str]:
    return make_headers(Role.WORKER)
