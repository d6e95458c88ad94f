from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


@dataclass(slots=True)
class AuditLog:
    id: UUID
    organization_id: UUID
    user_id: UUID
    entity_type: str  # 'lot', 'zone', 'qr_snapshot'
    entity_id: UUID
    action: str
    old_data: dict | None = None
    new_data: dict | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def record(
        cls,
        *,
        organization_id: UUID,
        user_id: UUID,
        entity_type: str,
        entity_id: UUID,
        action: str,
        old_data: dict | None = None,
        new_data: dict | None = None,
    ) -> AuditLog:
        return cls(
            id=uuid4(),
            organization_id=organization_id,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            old_data=old_data,
            new_data=new_data,
            timestamp=datetime.now(timezone.utc),
        )
