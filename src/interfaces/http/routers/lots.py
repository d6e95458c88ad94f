from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from src.application.errors import NotFound
from src.application.events.dispatcher import dispatch_events
from src.application.services.stay_ledger import StayLedger
from src.application.services.traceability import TraceabilitySnapshotService
from src.application.use_cases.lots import create_lot, delete_lot, update_lot
from src.application.use_cases.tracking import move_lot
from src.application.use_cases.traceability import generate_qr
from src.config.settings import Settings
from src.domain.value_objects.lot_status import LotStatus
from src.domain.value_objects.stage import Stage
from src.infrastructure.auth.context import AuthContext
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.interfaces.http.deps import (
    get_app_settings,
    get_auth_context,
    get_move_policy,
    get_snapshot_service,
    get_uow,
)
from src.interfaces.http.schemas.lots import (
    AuditLogResponse,
    LotCreate,
    LotResponse,
    LotUpdate,
    StayResponse,
)
from src.interfaces.http.schemas.qr_snapshots import QrSnapshotResponse
from src.interfaces.http.schemas.tracking import (
    ActiveStayResponse,
    MoveLotRequest,
    MoveLotResponse,
)

router = APIRouter(prefix="/lots", tags=["lots"])


async def _get_lot_or_404(uow: SQLAlchemyUnitOfWork, organization_id: UUID, lot_id: UUID):
    lot = await uow.lots.get(organization_id, lot_id)
    if lot is None:
        raise NotFound("Lot not found")
    return lot


@router.get("/", response_model=list[LotResponse])
async def list_lots(
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
    status_filter: LotStatus | None = Query(None, alias="status"),
    parent_lot_id: UUID | None = Query(None),
    roots_only: bool = Query(False),
):
    lots = await uow.lots.list(
        context.organization_id,
        status=status_filter,
        parent_lot_id=parent_lot_id,
        roots_only=roots_only,
    )
    return [LotResponse.model_validate(x) for x in lots]


@router.post("/", response_model=LotResponse, status_code=status.HTTP_201_CREATED)
async def create_lot_endpoint(
    payload: LotCreate,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    created = await create_lot.execute(
        uow,
        context.organization_id,
        context.role,
        context.user_id,
        create_lot.CreateLotInput(**payload.model_dump()),
    )
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return LotResponse.model_validate(created)


@router.get("/{lot_id}", response_model=LotResponse)
async def get_lot(
    lot_id: UUID,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    lot = await _get_lot_or_404(uow, context.organization_id, lot_id)
    return LotResponse.model_validate(lot)


@router.put("/{lot_id}", response_model=LotResponse)
async def update_lot_endpoint(
    lot_id: UUID,
    payload: LotUpdate,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    updated = await update_lot.execute(
        uow,
        context.organization_id,
        context.role,
        context.user_id,
        lot_id,
        update_lot.UpdateLotInput(**payload.model_dump(exclude_unset=True)),
    )
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return LotResponse.model_validate(updated)


@router.delete("/{lot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lot_endpoint(
    lot_id: UUID,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    await delete_lot.execute(uow, context.organization_id, context.role, context.user_id, lot_id)
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return None


@router.get("/{lot_id}/sublots", response_model=list[LotResponse])
async def list_sublots(
    lot_id: UUID,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    await _get_lot_or_404(uow, context.organization_id, lot_id)
    children = await uow.lots.list_children(context.organization_id, lot_id)
    return [LotResponse.model_validate(x) for x in children]


@router.get("/{lot_id}/stays", response_model=list[StayResponse])
async def list_stays(
    lot_id: UUID,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    await _get_lot_or_404(uow, context.organization_id, lot_id)
    stays = await StayLedger(uow.stays).history(lot_id)
    return [StayResponse.model_validate(x) for x in stays]


@router.get("/{lot_id}/active-stay", response_model=ActiveStayResponse)
async def get_active_stay(
    lot_id: UUID,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    lot = await _get_lot_or_404(uow, context.organization_id, lot_id)
    stay = await StayLedger(uow.stays).current_stay(lot_id)
    if stay is None:
        stage = Stage.FINALIZADO if lot.is_finished else Stage.SIN_UBICACION
        return ActiveStayResponse(stay=None, zone_id=None, stage=stage.value)
    zone = await uow.zones.get(context.organization_id, stay.zone_id)
    return ActiveStayResponse(
        stay=StayResponse.model_validate(stay),
        zone_id=stay.zone_id,
        stage=zone.stage.value if zone else Stage.SIN_UBICACION.value,
    )


@router.get("/{lot_id}/audit", response_model=list[AuditLogResponse])
async def list_lot_audit(
    lot_id: UUID,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    entries = await uow.audit_logs.list_by_entity(context.organization_id, "lot", lot_id)
    return [AuditLogResponse.model_validate(x) for x in entries]


@router.post("/{lot_id}/move", response_model=MoveLotResponse)
async def move_lot_endpoint(
    lot_id: UUID,
    payload: MoveLotRequest,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
    policy: move_lot.MovePolicy = Depends(get_move_policy),
    settings: Settings = Depends(get_app_settings),
):
    sub_lots = None
    if payload.sub_lots is not None:
        sub_lots = [move_lot.SubLotSpec(name=s.name, pieces=s.pieces) for s in payload.sub_lots]
    result = await move_lot.execute(
        uow,
        context.organization_id,
        context.role,
        context.user_id,
        lot_id,
        move_lot.MoveLotInput(
            zone_id=payload.zone_id,
            entry_time=payload.entry_time,
            sub_lots=sub_lots,
            generate_qr=payload.generate_qr,
            include_parent_snapshot=payload.include_parent_snapshot,
        ),
        policy,
    )
    background_tasks.add_task(dispatch_events, uow.drain_events())

    snapshots = [
        QrSnapshotResponse.from_domain(s, settings.public_trace_url(s.public_token))
        for s in result.snapshots
    ]
    return MoveLotResponse(
        lot=LotResponse.model_validate(result.lot),
        stay=StayResponse.model_validate(result.stay) if result.stay else None,
        qr_snapshot=snapshots[0] if snapshots else None,
        sub_lots=[LotResponse.model_validate(x) for x in result.sub_lots],
        qr_snapshots=snapshots,
    )


@router.post("/{lot_id}/qr", response_model=QrSnapshotResponse, status_code=status.HTTP_201_CREATED)
async def generate_qr_endpoint(
    lot_id: UUID,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
    service: TraceabilitySnapshotService = Depends(get_snapshot_service),
    settings: Settings = Depends(get_app_settings),
):
    snapshot = await generate_qr.execute(
        uow, service, context.organization_id, context.role, context.user_id, lot_id
    )
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return QrSnapshotResponse.from_domain(snapshot, settings.public_trace_url(snapshot.public_token))
