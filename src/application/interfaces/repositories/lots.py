from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.models.lot import Lot
from src.domain.value_objects.lot_status import LotStatus


class LotsRepository(Protocol):
    async def add(self, lot: Lot) -> Lot: ...

    async def get(self, organization_id: UUID, lot_id: UUID) -> Lot | None: ...

    async def get_for_update(self, organization_id: UUID, lot_id: UUID) -> Lot | None: ...

    async def list(
        self,
        organization_id: UUID,
        *,
        status: LotStatus | None = None,
        parent_lot_id: UUID | None = None,
        roots_only: bool = False,
    ) -> list[Lot]: ...

    async def list_children(self, organization_id: UUID, parent_lot_id: UUID) -> list[Lot]: ...

    async def update(self, organization_id: UUID, lot_id: UUID, data: dict) -> Lot | None: ...

    async def delete(self, organization_id: UUID, lot_id: UUID) -> bool: ...

    async def soft_delete(self, organization_id: UUID, lot_id: UUID) -> bool: ...

    async def count_children(self, parent_lot_id: UUID) -> int:
        """Includes soft-deleted sub-lots."""
        ...
