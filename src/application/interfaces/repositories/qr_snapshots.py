from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.models.qr_snapshot import QrSnapshot


class QrSnapshotsRepository(Protocol):
    async def add(self, snapshot: QrSnapshot) -> QrSnapshot: ...

    async def get(self, organization_id: UUID, snapshot_id: UUID) -> QrSnapshot | None: ...

    async def get_by_token(self, token: str) -> QrSnapshot | None: ...

    async def list(self, organization_id: UUID, *, lot_id: UUID | None = None) -> list[QrSnapshot]: ...

    async def increment_scan(self, snapshot_id: UUID) -> None: ...

    async def replace_token(self, snapshot_id: UUID, token: str) -> QrSnapshot | None:
        """Swap the public token of an active snapshot; None when revoked."""
        ...

    async def deactivate(self, snapshot_id: UUID) -> None: ...
