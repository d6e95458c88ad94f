from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.errors import ConflictError, InfrastructureError
from src.application.interfaces.repositories.lots import LotsRepository
from src.domain.models.lot import Lot
from src.domain.value_objects.lot_status import LotStatus
from src.infrastructure.db.orm.lot import LotORM
from src.utils.datetime_tz import from_db, utcnow


class LotsSQLAlchemyRepository(LotsRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: LotORM) -> Lot:
        return Lot(
            id=orm.id,
            organization_id=orm.organization_id,
            identification=orm.identification,
            initial_animals=orm.initial_animals,
            final_animals=orm.final_animals,
            food_regime=orm.food_regime,
            iberian_percentage=orm.iberian_percentage,
            status=LotStatus(orm.status),
            parent_lot_id=orm.parent_lot_id,
            piece_type=orm.piece_type,
            custom_data=dict(orm.custom_data or {}),
            deleted_at=from_db(orm.deleted_at),
            created_at=from_db(orm.created_at),
        )

    def _base_query(self, organization_id: UUID):
        return select(LotORM).where(
            LotORM.organization_id == organization_id, LotORM.deleted_at.is_(None)
        )

    async def add(self, lot: Lot) -> Lot:
        orm = LotORM(
            id=lot.id,
            organization_id=lot.organization_id,
            identification=lot.identification,
            initial_animals=lot.initial_animals,
            final_animals=lot.final_animals,
            food_regime=lot.food_regime,
            iberian_percentage=lot.iberian_percentage,
            status=lot.status.value,
            parent_lot_id=lot.parent_lot_id,
            piece_type=lot.piece_type,
            custom_data=lot.custom_data,
            created_at=lot.created_at,
        )
        self.session.add(orm)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConflictError("Failed to create lot") from exc
        return self._to_domain(orm)

    async def get(self, organization_id: UUID, lot_id: UUID) -> Lot | None:
        stmt = self._base_query(organization_id).where(LotORM.id == lot_id)
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def get_for_update(self, organization_id: UUID, lot_id: UUID) -> Lot | None:
        # Serializes concurrent moves of the same lot (no-op on SQLite)
        stmt = self._base_query(organization_id).where(LotORM.id == lot_id).with_for_update()
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def list(
        self,
        organization_id: UUID,
        *,
        status: LotStatus | None = None,
        parent_lot_id: UUID | None = None,
        roots_only: bool = False,
    ) -> list[Lot]:
        stmt = self._base_query(organization_id)
        if status is not None:
            stmt = stmt.where(LotORM.status == status.value)
        if parent_lot_id is not None:
            stmt = stmt.where(LotORM.parent_lot_id == parent_lot_id)
        elif roots_only:
            stmt = stmt.where(LotORM.parent_lot_id.is_(None))
        stmt = stmt.order_by(LotORM.created_at.desc(), LotORM.identification)
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]

    async def list_children(self, organization_id: UUID, parent_lot_id: UUID) -> list[Lot]:
        stmt = (
            self._base_query(organization_id)
            .where(LotORM.parent_lot_id == parent_lot_id)
            .order_by(LotORM.created_at, LotORM.identification)
        )
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]

    async def count_children(self, parent_lot_id: UUID) -> int:
        """Sub-lots of a parent, soft-deleted ones included.

        Soft-deleted sub-lots still point at their parent and their certificates
        still list it, so they keep the parent from being deleted.
        """
        stmt = select(func.count()).select_from(LotORM).where(LotORM.parent_lot_id == parent_lot_id)
        res = await self.session.execute(stmt)
        return int(res.scalar_one())

    async def update(self, organization_id: UUID, lot_id: UUID, data: dict) -> Lot | None:
        values = {k: (v.value if isinstance(v, LotStatus) else v) for k, v in data.items()}
        stmt = (
            update(LotORM)
            .where(
                LotORM.organization_id == organization_id,
                LotORM.id == lot_id,
                LotORM.deleted_at.is_(None),
            )
            .values(**values)
            .returning(LotORM)
        )
        try:
            res = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise InfrastructureError("Failed to update lot") from exc
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def delete(self, organization_id: UUID, lot_id: UUID) -> bool:
        stmt = (
            delete(LotORM)
            .where(LotORM.organization_id == organization_id, LotORM.id == lot_id)
            .returning(LotORM.id)
        )
        try:
            res = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise ConflictError("Lot is still referenced and cannot be deleted") from exc
        return res.scalar_one_or_none() is not None

    async def soft_delete(self, organization_id: UUID, lot_id: UUID) -> bool:
        stmt = (
            update(LotORM)
            .where(
                LotORM.organization_id == organization_id,
                LotORM.id == lot_id,
                LotORM.deleted_at.is_(None),
            )
            .values(deleted_at=utcnow())
            .returning(LotORM.id)
        )
        try:
            res = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise InfrastructureError("Failed to delete lot") from exc
        return res.scalar_one_or_none() is not None
