from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request

from src.application.errors import AuthError
from src.application.services.traceability import TraceabilitySnapshotService
from src.application.use_cases.tracking.move_lot import MovePolicy
from src.config.settings import Settings, get_settings
from src.infrastructure.auth.context import AuthContext
from src.infrastructure.auth.jwt_service import JWTService
from src.infrastructure.db.session import SQLAlchemyUnitOfWork


async def get_auth_context(request: Request) -> AuthContext:
    context = getattr(request.state, "auth_context", None)
    if context is None:
        raise AuthError("Authentication required")
    return context


async def get_uow(request: Request) -> AsyncIterator[SQLAlchemyUnitOfWork]:
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        raise RuntimeError("Session factory not configured")
    uow = SQLAlchemyUnitOfWork(session_factory)
    async with uow:
        yield uow


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_jwt_service(request: Request) -> JWTService:
    service = getattr(request.app.state, "jwt_service", None)
    if service is None:
        raise RuntimeError("JWT service not configured")
    return service


def get_move_policy(settings: Settings = Depends(get_app_settings)) -> MovePolicy:
    return MovePolicy(
        entry_stages=settings.entry_stages_tuple,
        snapshot_parent_on_split=settings.snapshot_parent_on_split,
        snapshot_version=settings.snapshot_version,
        include_simulated=settings.snapshot_include_simulated,
        token_bytes=settings.qr_token_bytes,
    )


def get_snapshot_service(
    uow=Depends(get_uow), settings: Settings = Depends(get_app_settings)
) -> TraceabilitySnapshotService:
    return TraceabilitySnapshotService(
        uow,
        version=settings.snapshot_version,
        include_simulated=settings.snapshot_include_simulated,
        token_bytes=settings.qr_token_bytes,
    )
