from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class LotMovedEvent:
    organization_id: UUID
    actor_user_id: UUID
    lot_id: UUID
    from_stage: str
    to_stage: str
    sub_lot_ids: list[UUID] = field(default_factory=list)


@dataclass(frozen=True)
class LotChangedEvent:
    organization_id: UUID
    actor_user_id: UUID
    lot_id: UUID
    action: str  # created | updated | deleted


@dataclass(frozen=True)
class ZoneChangedEvent:
    organization_id: UUID
    actor_user_id: UUID
    zone_id: UUID
    action: str  # created | updated | deleted


@dataclass(frozen=True)
class QrSnapshotChangedEvent:
    organization_id: UUID
    actor_user_id: UUID
    snapshot_id: UUID
    lot_id: UUID
    action: str  # generated | rotated | revoked
