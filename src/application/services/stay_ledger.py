from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from src.application.errors import ConflictError, NotFound
from src.application.interfaces.repositories.stays import StaysRepository
from src.domain.models.stay import Stay

logger = logging.getLogger(__name__)


class StayLedger:
    """Append-only occupancy ledger; a lot holds at most one open stay."""

    def __init__(self, stays: StaysRepository) -> None:
        self.stays = stays

    async def current_stay(self, lot_id: UUID) -> Stay | None:
        return await self.stays.get_open(lot_id)

    async def history(self, lot_id: UUID) -> list[Stay]:
        stays = await self.stays.list_by_lot(lot_id)
        return sorted(stays, key=lambda s: s.entry_time)

    async def open_stay(
        self,
        lot_id: UUID,
        zone_id: UUID,
        entry_time: datetime,
        *,
        created_by: UUID | None = None,
    ) -> Stay:
        if await self.stays.get_open(lot_id) is not None:
            raise ConflictError("Lot already has an open stay", details={"lot_id": str(lot_id)})
        # The repository translates a unique index violation into ConflictError
        stay = await self.stays.add(Stay.open(lot_id, zone_id, entry_time, created_by=created_by))
        logger.debug(f"Stay opened: lot={lot_id} zone={zone_id} stay={stay.id}")
        return stay

    async def close_stay(
        self,
        lot_id: UUID,
        exit_time: datetime,
        *,
        expected_stay_id: UUID | None = None,
    ) -> Stay:
        current = await self.stays.get_open(lot_id)
        if current is None:
            raise NotFound("Lot has no open stay", details={"lot_id": str(lot_id)})
        if expected_stay_id is not None and current.id != expected_stay_id:
            raise ConflictError(
                "Open stay changed concurrently", details={"lot_id": str(lot_id)}
            )
        closed = await self.stays.close(current.id, exit_time)
        if closed is None:
            raise ConflictError(
                "Open stay changed concurrently", details={"lot_id": str(lot_id)}
            )
        logger.debug(f"Stay closed: lot={lot_id} stay={closed.id}")
        return closed
