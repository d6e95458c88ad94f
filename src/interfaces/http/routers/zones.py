from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from src.application.errors import NotFound
from src.application.events.dispatcher import dispatch_events
from src.application.use_cases.zones import create_zone, delete_zone, update_zone
from src.domain.value_objects.stage import Stage
from src.infrastructure.auth.context import AuthContext
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.interfaces.http.deps import get_auth_context, get_uow
from src.interfaces.http.schemas.sensors import SensorResponse
from src.interfaces.http.schemas.zones import (
    ZoneCreate,
    ZoneResponse,
    ZoneUpdate,
    targets_to_domain,
)

router = APIRouter(prefix="/zones", tags=["zones"])


@router.get("/", response_model=list[ZoneResponse])
async def list_zones(
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
    stage: Stage | None = Query(None),
    is_active: bool | None = Query(None),
):
    zones = await uow.zones.list(context.organization_id, stage=stage, is_active=is_active)
    return [ZoneResponse.from_domain(z) for z in zones]


@router.post("/", response_model=ZoneResponse, status_code=status.HTTP_201_CREATED)
async def create_zone_endpoint(
    payload: ZoneCreate,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    created = await create_zone.execute(
        uow,
        context.organization_id,
        context.role,
        context.user_id,
        create_zone.CreateZoneInput(
            name=payload.name,
            stage=payload.stage,
            is_active=payload.is_active,
            targets=targets_to_domain(payload.targets),
            fixed_info=payload.fixed_info,
        ),
    )
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return ZoneResponse.from_domain(created)


@router.get("/{zone_id}", response_model=ZoneResponse)
async def get_zone(
    zone_id: UUID,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    zone = await uow.zones.get(context.organization_id, zone_id)
    if zone is None:
        raise NotFound("Zone not found")
    return ZoneResponse.from_domain(zone)


@router.put("/{zone_id}", response_model=ZoneResponse)
async def update_zone_endpoint(
    zone_id: UUID,
    payload: ZoneUpdate,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    updated = await update_zone.execute(
        uow,
        context.organization_id,
        context.role,
        context.user_id,
        zone_id,
        update_zone.UpdateZoneInput(
            name=payload.name,
            stage=payload.stage,
            is_active=payload.is_active,
            targets=targets_to_domain(payload.targets),
            fixed_info=payload.fixed_info,
        ),
    )
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return ZoneResponse.from_domain(updated)


@router.delete("/{zone_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_zone_endpoint(
    zone_id: UUID,
    background_tasks: BackgroundTasks,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    await delete_zone.execute(uow, context.organization_id, context.role, context.user_id, zone_id)
    background_tasks.add_task(dispatch_events, uow.drain_events())
    return None


@router.get("/{zone_id}/sensors", response_model=list[SensorResponse])
async def list_zone_sensors(
    zone_id: UUID,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    zone = await uow.zones.get(context.organization_id, zone_id)
    if zone is None:
        raise NotFound("Zone not found")
    sensors = await uow.sensors.list_by_zone(zone.id)
    return [SensorResponse.model_validate(s) for s in sensors]
