from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


@dataclass(slots=True)
class QrSnapshot:
    """
    Frozen traceability certificate of a lot.
    snapshot_data is computed once at generation and never recalculated;
    only the public token (rotation) and the active flag (revocation) change.
    """

    id: UUID
    lot_id: UUID
    public_token: str
    snapshot_data: dict
    data_hash: str
    is_active: bool = True
    scan_count: int = 0
    created_by: UUID | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    rotated_at: datetime | None = None
    revoked_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        lot_id: UUID,
        public_token: str,
        snapshot_data: dict,
        data_hash: str,
        created_by: UUID | None = None,
    ) -> QrSnapshot:
        return cls(
            id=uuid4(),
            lot_id=lot_id,
            public_token=public_token,
            snapshot_data=snapshot_data,
            data_hash=data_hash,
            is_active=True,
            scan_count=0,
            created_by=created_by,
            created_at=datetime.now(timezone.utc),
        )
