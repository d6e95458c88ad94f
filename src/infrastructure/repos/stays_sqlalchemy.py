from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.errors import ConflictError
from src.application.interfaces.repositories.stays import StaysRepository
from src.domain.models.stay import Stay
from src.infrastructure.db.orm.stay import StayORM
from src.utils.datetime_tz import from_db, to_utc


class StaysSQLAlchemyRepository(StaysRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: StayORM) -> Stay:
        return Stay(
            id=orm.id,
            lot_id=orm.lot_id,
            zone_id=orm.zone_id,
            entry_time=from_db(orm.entry_time),
            exit_time=from_db(orm.exit_time),
            created_by=orm.created_by,
            created_at=from_db(orm.created_at),
        )

    async def add(self, stay: Stay) -> Stay:
        orm = StayORM(
            id=stay.id,
            lot_id=stay.lot_id,
            zone_id=stay.zone_id,
            entry_time=to_utc(stay.entry_time),
            exit_time=to_utc(stay.exit_time) if stay.exit_time else None,
            created_by=stay.created_by,
            created_at=stay.created_at,
        )
        self.session.add(orm)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # uq_stays_open_lot: a racing request already opened a stay
            raise ConflictError("Lot already has an open stay") from exc
        return self._to_domain(orm)

    async def get_open(self, lot_id: UUID) -> Stay | None:
        stmt = (
            select(StayORM)
            .where(StayORM.lot_id == lot_id, StayORM.exit_time.is_(None))
            .order_by(StayORM.entry_time.desc())
            .limit(1)
        )
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def close(self, stay_id: UUID, exit_time: datetime) -> Stay | None:
        stmt = (
            update(StayORM)
            .where(StayORM.id == stay_id, StayORM.exit_time.is_(None))
            .values(exit_time=to_utc(exit_time))
            .returning(StayORM)
        )
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def list_by_lot(self, lot_id: UUID) -> list[Stay]:
        stmt = (
            select(StayORM)
            .where(StayORM.lot_id == lot_id)
            .order_by(StayORM.entry_time, StayORM.created_at)
        )
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]

    async def list_open_for_lots(self, lot_ids: list[UUID]) -> dict[UUID, Stay]:
        if not lot_ids:
            return {}
        stmt = select(StayORM).where(StayORM.lot_id.in_(set(lot_ids)), StayORM.exit_time.is_(None))
        res = await self.session.execute(stmt)
        return {orm.lot_id: self._to_domain(orm) for orm in res.scalars().all()}

    async def count_by_lot(self, lot_id: UUID) -> int:
        stmt = select(func.count()).select_from(StayORM).where(StayORM.lot_id == lot_id)
        res = await self.session.execute(stmt)
        return int(res.scalar_one())

    async def count_by_zone(self, zone_id: UUID) -> int:
        stmt = select(func.count()).select_from(StayORM).where(StayORM.zone_id == zone_id)
        res = await self.session.execute(stmt)
        return int(res.scalar_one())
