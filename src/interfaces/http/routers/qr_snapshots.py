from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from src.application.events.dispatcher import dispatch_events
from src.application.services.traceability import TraceabilitySnapshotService
from src.application.use_cases.traceability import revoke_qr, rotate_qr
from src.config.settings import Settings
from src.infrastructure.auth.context import AuthContext
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.interfaces.http.deps import (
    get_app_settings,
    get_auth_context,
    get_snapshot_service,
    get_uow,
)
from src.interfaces.http.schemas.qr_snapshots import QrSnapshotResponse, RotateResponse

router = APIRouter(prefix="/qr-snapshots", tags=["qr-snapshots"])


@router.get("", response_model=list[QrSnapshotResponse])
async def list_snapshots(
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
    settings: Settings = Depends(get_app_settings),
    lot_id: UUID | None = Query(None),
):
    snapshots = await uow.qr_snapshots.list(context.organization_id, lot_id=lot_id)
    return [
        QrSnapshotResponse.from_domain(s, settings.public_trace_url(s.public_token))
        for s in snapshots
    ]


@router.put("/{snapshot_id}/rotate", response_model=RotateResponse)
async def rotate_snapshot(
    snapshot_id: UUID,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
    service: TraceabilitySnapshotService = Depends(get_snapshot_service),
    settings: Settings = Depends(get_app_settings),
):
    rotated = await rotate_qr.execute(
        uow, service, context.organization_id, context.role, context.user_id, snapshot_id
    )
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return RotateResponse(
        public_token=rotated.public_token,
        public_url=settings.public_trace_url(rotated.public_token),
    )


@router.put("/{snapshot_id}/revoke")
async def revoke_snapshot(
    snapshot_id: UUID,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
    service: TraceabilitySnapshotService = Depends(get_snapshot_service),
) -> dict:
    await revoke_qr.execute(
        uow, service, context.organization_id, context.role, context.user_id, snapshot_id
    )
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return {}
