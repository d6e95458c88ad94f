from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.errors import ConflictError, InfrastructureError
from src.application.interfaces.repositories.zones import ZonesRepository
from src.domain.models.zone import TargetRange, Zone
from src.domain.value_objects.stage import Stage
from src.infrastructure.db.orm.zone import ZoneORM
from src.utils.datetime_tz import from_db


def _targets_to_json(targets: dict[str, TargetRange]) -> dict:
    return {metric: rng.to_dict() for metric, rng in targets.items()}


class ZonesSQLAlchemyRepository(ZonesRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: ZoneORM) -> Zone:
        targets = {
            metric: TargetRange(min=float(rng["min"]), max=float(rng["max"]))
            for metric, rng in (orm.targets or {}).items()
        }
        return Zone(
            id=orm.id,
            organization_id=orm.organization_id,
            name=orm.name,
            stage=Stage(orm.stage),
            is_active=orm.is_active,
            targets=targets,
            fixed_info=dict(orm.fixed_info or {}),
            created_at=from_db(orm.created_at),
        )

    async def add(self, zone: Zone) -> Zone:
        orm = ZoneORM(
            id=zone.id,
            organization_id=zone.organization_id,
            name=zone.name,
            stage=zone.stage.value,
            is_active=zone.is_active,
            targets=_targets_to_json(zone.targets),
            fixed_info=zone.fixed_info,
            created_at=zone.created_at,
        )
        self.session.add(orm)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConflictError("Failed to create zone") from exc
        return self._to_domain(orm)

    async def get(self, organization_id: UUID, zone_id: UUID) -> Zone | None:
        stmt = select(ZoneORM).where(
            ZoneORM.organization_id == organization_id, ZoneORM.id == zone_id
        )
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def get_many(self, zone_ids: list[UUID]) -> dict[UUID, Zone]:
        if not zone_ids:
            return {}
        stmt = select(ZoneORM).where(ZoneORM.id.in_(set(zone_ids)))
        res = await self.session.execute(stmt)
        return {orm.id: self._to_domain(orm) for orm in res.scalars().all()}

    async def list(
        self,
        organization_id: UUID,
        *,
        stage: Stage | None = None,
        is_active: bool | None = None,
    ) -> list[Zone]:
        stmt = select(ZoneORM).where(ZoneORM.organization_id == organization_id)
        if stage is not None:
            stmt = stmt.where(ZoneORM.stage == stage.value)
        if is_active is not None:
            stmt = stmt.where(ZoneORM.is_active.is_(is_active))
        stmt = stmt.order_by(ZoneORM.name)
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]

    async def update(self, organization_id: UUID, zone_id: UUID, data: dict) -> Zone | None:
        values = dict(data)
        if "targets" in values:
            values["targets"] = _targets_to_json(values["targets"])
        stmt = (
            update(ZoneORM)
            .where(ZoneORM.organization_id == organization_id, ZoneORM.id == zone_id)
            .values(**values)
            .returning(ZoneORM)
        )
        try:
            res = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise InfrastructureError("Failed to update zone") from exc
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def delete(self, organization_id: UUID, zone_id: UUID) -> bool:
        stmt = (
            delete(ZoneORM)
            .where(ZoneORM.organization_id == organization_id, ZoneORM.id == zone_id)
            .returning(ZoneORM.id)
        )
        try:
            res = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise ConflictError("Zone is still referenced and cannot be deleted") from exc
        return res.scalar_one_or_none() is not None
