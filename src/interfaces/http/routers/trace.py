from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.application.services.traceability import TraceabilitySnapshotService
from src.application.use_cases.traceability import resolve_trace
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.interfaces.http.deps import get_snapshot_service, get_uow

# Public: no authentication, the token is the capability
router = APIRouter(prefix="/trace", tags=["trace"])


@router.get("/{token}")
async def resolve_token(
    token: str,
    *,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    service: TraceabilitySnapshotService = Depends(get_snapshot_service),
) -> dict[str, Any]:
    snapshot = await resolve_trace.execute(uow, service, token)
    return snapshot.snapshot_data
