from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.repositories.audit_logs import AuditLogsRepository
from src.domain.models.audit_log import AuditLog
from src.infrastructure.db.orm.audit_log import AuditLogORM
from src.utils.datetime_tz import from_db


class AuditLogsSQLAlchemyRepository(AuditLogsRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: AuditLogORM) -> AuditLog:
        return AuditLog(
            id=orm.id,
            organization_id=orm.organization_id,
            user_id=orm.user_id,
            entity_type=orm.entity_type,
            entity_id=orm.entity_id,
            action=orm.action,
            old_data=orm.old_data,
            new_data=orm.new_data,
            timestamp=from_db(orm.timestamp),
        )

    async def add(self, entry: AuditLog) -> AuditLog:
        orm = AuditLogORM(
            id=entry.id,
            organization_id=entry.organization_id,
            user_id=entry.user_id,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            action=entry.action,
            old_data=entry.old_data,
            new_data=entry.new_data,
            timestamp=entry.timestamp,
        )
        self.session.add(orm)
        await self.session.flush()
        return self._to_domain(orm)

    async def list_by_entity(
        self, organization_id: UUID, entity_type: str, entity_id: UUID
    ) -> list[AuditLog]:
        stmt = (
            select(AuditLogORM)
            .where(
                AuditLogORM.organization_id == organization_id,
                AuditLogORM.entity_type == entity_type,
                AuditLogORM.entity_id == entity_id,
            )
            .order_by(AuditLogORM.timestamp.desc())
        )
        res = await self.session.execute(stmt)
        return [self._to_domain(x) for x in res.scalars().all()]
