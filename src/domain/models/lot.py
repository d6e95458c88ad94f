from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.value_objects.lot_status import LotStatus


@dataclass(slots=True)
class Lot:
    id: UUID
    organization_id: UUID
    identification: str
    initial_animals: int
    final_animals: int | None = None
    food_regime: str | None = None
    iberian_percentage: float | None = None
    status: LotStatus = LotStatus.ACTIVE
    parent_lot_id: UUID | None = None
    piece_type: str | None = None
    custom_data: dict = field(default_factory=dict)
    deleted_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_sublot(self) -> bool:
        return self.parent_lot_id is not None

    @property
    def is_finished(self) -> bool:
        return self.status is LotStatus.FINISHED

    @classmethod
    def create(
        cls,
        organization_id: UUID,
        identification: str,
        initial_animals: int,
        *,
        final_animals: int | None = None,
        food_regime: str | None = None,
        iberian_percentage: float | None = None,
        custom_data: dict | None = None,
    ) -> Lot:
        return cls(
            id=uuid4(),
            organization_id=organization_id,
            identification=identification,
            initial_animals=initial_animals,
            final_animals=final_animals,
            food_regime=food_regime,
            iberian_percentage=iberian_percentage,
            status=LotStatus.ACTIVE,
            custom_data=dict(custom_data or {}),
            created_at=datetime.now(timezone.utc),
        )

    def split(self, piece_type: str, pieces: int) -> Lot:
        """Build a child sublot holding `pieces` units of `piece_type`."""
        return Lot(
            id=uuid4(),
            organization_id=self.organization_id,
            identification=f"{self.identification} - {piece_type}",
            initial_animals=pieces,
            food_regime=self.food_regime,
            iberian_percentage=self.iberian_percentage,
            status=LotStatus.ACTIVE,
            parent_lot_id=self.id,
            piece_type=piece_type,
            custom_data=dict(self.custom_data),
            created_at=datetime.now(timezone.utc),
        )
