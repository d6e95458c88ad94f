from __future__ import annotations

from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services.traceability import TraceabilitySnapshotService
from src.domain.models.qr_snapshot import QrSnapshot


async def execute(uow: UnitOfWork, service: TraceabilitySnapshotService, token: str) -> QrSnapshot:
    """Public lookup by token; counts the scan."""
    snapshot = await service.resolve(token)
    await uow.commit()
    return snapshot
