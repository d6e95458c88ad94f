from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.models.zone import Zone
from src.domain.value_objects.stage import Stage


class ZonesRepository(Protocol):
    async def add(self, zone: Zone) -> Zone: ...

    async def get(self, organization_id: UUID, zone_id: UUID) -> Zone | None: ...

    async def get_many(self, zone_ids: list[UUID]) -> dict[UUID, Zone]: ...

    async def list(
        self,
        organization_id: UUID,
        *,
        stage: Stage | None = None,
        is_active: bool | None = None,
    ) -> list[Zone]: ...

    async def update(self, organization_id: UUID, zone_id: UUID, data: dict) -> Zone | None: ...

    async def delete(self, organization_id: UUID, zone_id: UUID) -> bool: ...
