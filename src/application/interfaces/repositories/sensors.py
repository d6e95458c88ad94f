from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.models.sensor import Sensor, SensorReading


class SensorsRepository(Protocol):
    async def add(self, sensor: Sensor) -> Sensor: ...

    async def get(self, organization_id: UUID, sensor_id: UUID) -> Sensor | None: ...

    async def list_by_zone(self, zone_id: UUID) -> list[Sensor]: ...

    async def list_by_zones(self, zone_ids: list[UUID]) -> list[Sensor]: ...

    async def count_by_zone(self, zone_id: UUID) -> int: ...


class SensorReadingsRepository(Protocol):
    async def add_many(self, readings: list[SensorReading]) -> list[SensorReading]: ...

    async def list_for_sensors(
        self,
        sensor_ids: list[UUID],
        *,
        start: datetime,
        end: datetime,
        include_simulated: bool = False,
    ) -> list[SensorReading]: ...
