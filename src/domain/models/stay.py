from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


@dataclass(slots=True)
class Stay:
    """Interval during which a lot occupied a zone. Open while exit_time is None."""

    id: UUID
    lot_id: UUID
    zone_id: UUID
    entry_time: datetime
    exit_time: datetime | None = None
    created_by: UUID | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    @classmethod
    def open(
        cls,
        lot_id: UUID,
        zone_id: UUID,
        entry_time: datetime,
        *,
        created_by: UUID | None = None,
    ) -> Stay:
        return cls(
            id=uuid4(),
            lot_id=lot_id,
            zone_id=zone_id,
            entry_time=entry_time,
            exit_time=None,
            created_by=created_by,
            created_at=datetime.now(timezone.utc),
        )
