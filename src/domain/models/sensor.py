from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


@dataclass(slots=True)
class Sensor:
    id: UUID
    organization_id: UUID
    zone_id: UUID
    name: str
    device_id: str
    sensor_type: str  # metric name, e.g. "temperature" or "humidity"
    unit: str | None = None
    validation_min: float | None = None
    validation_max: float | None = None
    is_active: bool = True
    is_public: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        organization_id: UUID,
        zone_id: UUID,
        name: str,
        sensor_type: str,
        *,
        unit: str | None = None,
        validation_min: float | None = None,
        validation_max: float | None = None,
        is_public: bool = True,
    ) -> Sensor:
        return cls(
            id=uuid4(),
            organization_id=organization_id,
            zone_id=zone_id,
            name=name,
            device_id=f"SENSOR_{secrets.token_hex(4).upper()}",
            sensor_type=sensor_type,
            unit=unit,
            validation_min=validation_min,
            validation_max=validation_max,
            is_public=is_public,
            created_at=datetime.now(timezone.utc),
        )

    def accepts(self, value: float) -> bool:
        if self.validation_min is not None and value < self.validation_min:
            return False
        if self.validation_max is not None and value > self.validation_max:
            return False
        return True


@dataclass(slots=True)
class SensorReading:
    id: UUID
    sensor_id: UUID
    value: float
    timestamp: datetime
    is_simulated: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls, sensor_id: UUID, value: float, timestamp: datetime, *, is_simulated: bool = False
    ) -> SensorReading:
        return cls(
            id=uuid4(),
            sensor_id=sensor_id,
            value=value,
            timestamp=timestamp,
            is_simulated=is_simulated,
            created_at=datetime.now(timezone.utc),
        )
