from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.models.lot_template import LotTemplate
from src.domain.value_objects.custom_field import CustomFieldDefinition


class LotTemplatesRepository(Protocol):
    async def get(self, organization_id: UUID) -> LotTemplate | None: ...

    async def upsert(
        self, organization_id: UUID, custom_fields: list[CustomFieldDefinition]
    ) -> LotTemplate: ...
