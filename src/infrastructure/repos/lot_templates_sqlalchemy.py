from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.repositories.lot_templates import LotTemplatesRepository
from src.domain.models.lot_template import LotTemplate
from src.domain.value_objects.custom_field import CustomFieldDefinition
from src.infrastructure.db.orm.lot_template import LotTemplateORM
from src.utils.datetime_tz import from_db


class LotTemplatesSQLAlchemyRepository(LotTemplatesRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: LotTemplateORM) -> LotTemplate:
        return LotTemplate(
            id=orm.id,
            organization_id=orm.organization_id,
            custom_fields=[CustomFieldDefinition.from_dict(f) for f in orm.custom_fields or []],
            updated_at=from_db(orm.updated_at),
        )

    async def _get_orm(self, organization_id: UUID) -> LotTemplateORM | None:
        stmt = select(LotTemplateORM).where(LotTemplateORM.organization_id == organization_id)
        res = await self.session.execute(stmt)
        return res.scalar_one_or_none()

    async def get(self, organization_id: UUID) -> LotTemplate | None:
        orm = await self._get_orm(organization_id)
        return self._to_domain(orm) if orm else None

    async def upsert(
        self, organization_id: UUID, custom_fields: list[CustomFieldDefinition]
    ) -> LotTemplate:
        payload = [f.to_dict() for f in custom_fields]
        orm = await self._get_orm(organization_id)
        if orm is None:
            orm = LotTemplateORM(id=uuid4(), organization_id=organization_id, custom_fields=payload)
            self.session.add(orm)
        else:
            orm.custom_fields = payload
        await self.session.flush()
        await self.session.refresh(orm)
        return self._to_domain(orm)
