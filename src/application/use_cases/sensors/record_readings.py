from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.application.errors import NotFound, PermissionDenied, ValidationError
from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.sensor import SensorReading
from src.domain.value_objects.role import Role
from src.utils.datetime_tz import to_utc, utcnow


@dataclass(slots=True)
class ReadingInput:
    value: float
    timestamp: datetime | None = None
    is_simulated: bool = False


def ensure_can_record(role: Role) -> None:
    if not role.can_create():
        raise PermissionDenied("Role not allowed to record readings")


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    sensor_id: UUID,
    readings: list[ReadingInput],
) -> list[SensorReading]:
    ensure_can_record(role)
    sensor = await uow.sensors.get(organization_id, sensor_id)
    if sensor is None:
        raise NotFound("Sensor not found")
    if not sensor.is_active:
        raise ValidationError("Sensor is not active")
    if not readings:
        raise ValidationError("At least one reading is required")

    rejected = [i for i, r in enumerate(readings) if not sensor.accepts(r.value)]
    if rejected:
        raise ValidationError(
            "Reading outside sensor validation range",
            details={
                "indexes": rejected,
                "min": sensor.validation_min,
                "max": sensor.validation_max,
            },
        )
    now = utcnow()
    created = await uow.sensor_readings.add_many(
        [
            SensorReading.create(
                sensor.id,
                r.value,
                to_utc(r.timestamp) if r.timestamp else now,
                is_simulated=r.is_simulated,
            )
            for r in readings
        ]
    )
    await uow.commit()
    return created
