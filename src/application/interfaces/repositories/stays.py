from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.models.stay import Stay


class StaysRepository(Protocol):
    async def add(self, stay: Stay) -> Stay: ...

    async def get_open(self, lot_id: UUID) -> Stay | None: ...

    async def close(self, stay_id: UUID, exit_time: datetime) -> Stay | None:
        """Set exit_time only if the stay is still open; None when it was not."""
        ...

    async def list_by_lot(self, lot_id: UUID) -> list[Stay]: ...

    async def list_open_for_lots(self, lot_ids: list[UUID]) -> dict[UUID, Stay]: ...

    async def count_by_lot(self, lot_id: UUID) -> int: ...

    async def count_by_zone(self, zone_id: UUID) -> int: ...
