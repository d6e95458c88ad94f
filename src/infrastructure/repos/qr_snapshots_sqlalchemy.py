from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.errors import ConflictError
from src.application.interfaces.repositories.qr_snapshots import QrSnapshotsRepository
from src.domain.models.qr_snapshot import QrSnapshot
from src.infrastructure.db.orm.lot import LotORM
from src.infrastructure.db.orm.qr_snapshot import QrSnapshotORM
from src.utils.datetime_tz import from_db, utcnow


class QrSnapshotsSQLAlchemyRepository(QrSnapshotsRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: QrSnapshotORM) -> QrSnapshot:
        return QrSnapshot(
            id=orm.id,
            lot_id=orm.lot_id,
            public_token=orm.public_token,
            snapshot_data=orm.snapshot_data,
            data_hash=orm.data_hash,
            is_active=orm.is_active,
            scan_count=orm.scan_count or 0,
            created_by=orm.created_by,
            created_at=from_db(orm.created_at),
            rotated_at=from_db(orm.rotated_at),
            revoked_at=from_db(orm.revoked_at),
        )

    async def _get_fresh(self, snapshot_id: UUID) -> QrSnapshot | None:
        stmt = (
            select(QrSnapshotORM)
            .where(QrSnapshotORM.id == snapshot_id)
            .execution_options(populate_existing=True)
        )
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def add(self, snapshot: QrSnapshot) -> QrSnapshot:
        orm = QrSnapshotORM(
            id=snapshot.id,
            lot_id=snapshot.lot_id,
            public_token=snapshot.public_token,
            snapshot_data=snapshot.snapshot_data,
            data_hash=snapshot.data_hash,
            is_active=snapshot.is_active,
            scan_count=snapshot.scan_count,
            created_by=snapshot.created_by,
            created_at=snapshot.created_at,
        )
        self.session.add(orm)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConflictError("Public token already in use") from exc
        return self._to_domain(orm)

    async def get(self, organization_id: UUID, snapshot_id: UUID) -> QrSnapshot | None:
        # Snapshots are scoped to the organization through their lot
        stmt = (
            select(QrSnapshotORM)
            .join(LotORM, LotORM.id == QrSnapshotORM.lot_id)
            .where(LotORM.organization_id == organization_id, QrSnapshotORM.id == snapshot_id)
        )
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def get_by_token(self, token: str) -> QrSnapshot | None:
        stmt = select(QrSnapshotORM).where(QrSnapshotORM.public_token == token)
        res = await self.session.execute(stmt)
        orm = res.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def list(self, organization_id: UUID, *, lot_id: UUID | None = None) -> list[QrSnapshot]:
        stmt = (
            select(QrSnapshotORM)
            .join(LotORM, LotORM.id == QrSnapshotORM.lot_id)
            .where(LotORM.organization_id == organization_id)
        )
        if lot_id is not None:
            stmt = stmt.where(QrSnapshotORM.lot_id == lot_id)
        stmt = stmt.order_by(QrSnapshotORM.created_at.desc())
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]

    async def increment_scan(self, snapshot_id: UUID) -> None:
        stmt = (
            update(QrSnapshotORM)
            .where(QrSnapshotORM.id == snapshot_id)
            .values(scan_count=QrSnapshotORM.scan_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def replace_token(self, snapshot_id: UUID, token: str) -> QrSnapshot | None:
        stmt = (
            update(QrSnapshotORM)
            .where(QrSnapshotORM.id == snapshot_id, QrSnapshotORM.is_active.is_(True))
            .values(public_token=token, rotated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            res = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise ConflictError("Public token already in use") from exc
        if res.rowcount == 0:
            return None
        return await self._get_fresh(snapshot_id)

    async def deactivate(self, snapshot_id: UUID) -> None:
        stmt = (
            update(QrSnapshotORM)
            .where(QrSnapshotORM.id == snapshot_id, QrSnapshotORM.is_active.is_(True))
            .values(is_active=False, revoked_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
