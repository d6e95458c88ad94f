from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.errors import ConflictError
from src.application.interfaces.repositories.sensors import (
    SensorReadingsRepository,
    SensorsRepository,
)
from src.domain.models.sensor import Sensor, SensorReading
from src.infrastructure.db.orm.sensor import SensorORM
from src.infrastructure.db.orm.sensor_reading import SensorReadingORM
from src.utils.datetime_tz import from_db, to_utc


class SensorsSQLAlchemyRepository(SensorsRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: SensorORM) -> Sensor:
        return Sensor(
            id=orm.id,
            organization_id=orm.organization_id,
            zone_id=orm.zone_id,
            name=orm.name,
            device_id=orm.device_id,
            sensor_type=orm.sensor_type,
            unit=orm.unit,
            validation_min=orm.validation_min,
            validation_max=orm.validation_max,
            is_active=orm.is_active,
            is_public=orm.is_public,
            created_at=from_db(orm.created_at),
        )

    async def add(self, sensor: Sensor) -> Sensor:
        orm = SensorORM(
            id=sensor.id,
            organization_id=sensor.organization_id,
            zone_id=sensor.zone_id,
            name=sensor.name,
            device_id=sensor.device_id,
            sensor_type=sensor.sensor_type,
            unit=sensor.unit,
            validation_min=sensor.validation_min,
            validation_max=sensor.validation_max,
            is_active=sensor.is_active,
            is_public=sensor.is_public,
            created_at=sensor.created_at,
        )
        self.session.add(orm)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConflictError("Sensor device id already exists") from exc
        return self._to_domain(orm)

    async def get(self, organization_id: UUID, sensor_id: UUID) -> Sensor | None:
        stmt = select(SensorORM).where(
            SensorORM.organization_id == organization_id, SensorORM.id == sensor_id
        )
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def list_by_zone(self, zone_id: UUID) -> list[Sensor]:
        stmt = select(SensorORM).where(SensorORM.zone_id == zone_id).order_by(SensorORM.name)
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]

    async def list_by_zones(self, zone_ids: list[UUID]) -> list[Sensor]:
        if not zone_ids:
            return []
        stmt = select(SensorORM).where(SensorORM.zone_id.in_(set(zone_ids)))
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]

    async def count_by_zone(self, zone_id: UUID) -> int:
        stmt = select(func.count()).select_from(SensorORM).where(SensorORM.zone_id == zone_id)
        res = await self.session.execute(stmt)
        return int(res.scalar_one())


class SensorReadingsSQLAlchemyRepository(SensorReadingsRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: SensorReadingORM) -> SensorReading:
        return SensorReading(
            id=orm.id,
            sensor_id=orm.sensor_id,
            value=float(orm.value),
            timestamp=from_db(orm.timestamp),
            is_simulated=orm.is_simulated,
            created_at=from_db(orm.created_at),
        )

    async def add_many(self, readings: list[SensorReading]) -> list[SensorReading]:
        orms = [
            SensorReadingORM(
                id=r.id,
                sensor_id=r.sensor_id,
                value=r.value,
                timestamp=to_utc(r.timestamp),
                is_simulated=r.is_simulated,
                created_at=r.created_at,
            )
            for r in readings
        ]
        self.session.add_all(orms)
        await self.session.flush()
        return [self._to_domain(orm) for orm in orms]

    async def list_for_sensors(
        self,
        sensor_ids: list[UUID],
        *,
        start: datetime,
        end: datetime,
        include_simulated: bool = False,
    ) -> list[SensorReading]:
        if not sensor_ids:
            return []
        stmt = select(SensorReadingORM).where(
            SensorReadingORM.sensor_id.in_(set(sensor_ids)),
            SensorReadingORM.timestamp >= to_utc(start),
            SensorReadingORM.timestamp <= to_utc(end),
        )
        if not include_simulated:
            stmt = stmt.where(SensorReadingORM.is_simulated.is_(False))
        stmt = stmt.order_by(SensorReadingORM.timestamp)
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]
