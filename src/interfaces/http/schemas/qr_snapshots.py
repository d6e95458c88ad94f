from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from src.domain.models.qr_snapshot import QrSnapshot


class QrSnapshotResponse(BaseModel):
    id: UUID
    lot_id: UUID
    public_token: str
    public_url: str | None = None
    snapshot_data: dict[str, Any]
    data_hash: str
    is_active: bool
    scan_count: int
    created_at: datetime
    rotated_at: datetime | None = None
    revoked_at: datetime | None = None

    @classmethod
    def from_domain(cls, snapshot: QrSnapshot, public_url: str | None = None) -> QrSnapshotResponse:
        return cls(
            id=snapshot.id,
            lot_id=snapshot.lot_id,
            public_token=snapshot.public_token,
            public_url=public_url,
            snapshot_data=snapshot.snapshot_data,
            data_hash=snapshot.data_hash,
            is_active=snapshot.is_active,
            scan_count=snapshot.scan_count,
            created_at=snapshot.created_at,
            rotated_at=snapshot.rotated_at,
            revoked_at=snapshot.revoked_at,
        )


class RotateResponse(BaseModel):
    public_token: str
    public_url: str | None = None
