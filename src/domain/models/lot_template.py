from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.value_objects.custom_field import CustomFieldDefinition


@dataclass(slots=True)
class LotTemplate:
    id: UUID
    organization_id: UUID
    custom_fields: list[CustomFieldDefinition] = field(default_factory=list)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def empty(cls, organization_id: UUID) -> LotTemplate:
        return cls(id=uuid4(), organization_id=organization_id, custom_fields=[])
