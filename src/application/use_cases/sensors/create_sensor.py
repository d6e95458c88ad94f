from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from src.application.errors import NotFound, PermissionDenied, ValidationError
from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.sensor import Sensor
from src.domain.value_objects.role import Role


@dataclass(slots=True)
class CreateSensorInput:
    zone_id: UUID
    name: str
    sensor_type: str
    unit: str | None = None
    validation_min: float | None = None
    validation_max: float | None = None
    is_public: bool = True


def ensure_can_create(role: Role) -> None:
    if not role.can_create():
        raise PermissionDenied("Role not allowed to create sensors")


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    payload: CreateSensorInput,
) -> Sensor:
    ensure_can_create(role)
    zone = await uow.zones.get(organization_id, payload.zone_id)
    if zone is None:
        raise NotFound("Zone not found")
    if not payload.name.strip() or not payload.sensor_type.strip():
        raise ValidationError("Sensor name and type are required")
    if (
        payload.validation_min is not None
        and payload.validation_max is not None
        and payload.validation_min > payload.validation_max
    ):
        raise ValidationError("validation_min cannot exceed validation_max")
    sensor = Sensor.create(
        organization_id,
        zone.id,
        payload.name.strip(),
        payload.sensor_type.strip(),
        unit=payload.unit,
        validation_min=payload.validation_min,
        validation_max=payload.validation_max,
        is_public=payload.is_public,
    )
    created = await uow.sensors.add(sensor)
    await uow.commit()
    return created
