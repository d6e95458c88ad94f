from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.application.use_cases.sensors import create_sensor, record_readings
from src.infrastructure.auth.context import AuthContext
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.interfaces.http.deps import get_auth_context, get_uow
from src.interfaces.http.schemas.sensors import (
    ReadingResponse,
    ReadingsCreate,
    SensorCreate,
    SensorResponse,
)

router = APIRouter(prefix="/sensors", tags=["sensors"])


@router.post("/", response_model=SensorResponse, status_code=status.HTTP_201_CREATED)
async def create_sensor_endpoint(
    payload: SensorCreate,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    created = await create_sensor.execute(
        uow,
        context.organization_id,
        context.role,
        create_sensor.CreateSensorInput(**payload.model_dump()),
    )
    return SensorResponse.model_validate(created)


@router.post(
    "/{sensor_id}/readings",
    response_model=list[ReadingResponse],
    status_code=status.HTTP_201_CREATED,
)
async def record_readings_endpoint(
    sensor_id: UUID,
    payload: ReadingsCreate,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    context: AuthContext = Depends(get_auth_context),
):
    created = await record_readings.execute(
        uow,
        context.organization_id,
        context.role,
        sensor_id,
        [
            record_readings.ReadingInput(
                value=r.value, timestamp=r.timestamp, is_simulated=r.is_simulated
            )
            for r in payload.readings
        ],
    )
    return [ReadingResponse.model_validate(r) for r in created]
