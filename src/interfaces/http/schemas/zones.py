from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.models.zone import TargetRange, Zone
from src.domain.value_objects.stage import Stage


class TargetRangeSchema(BaseModel):
    min: float
    max: float

    def to_domain(self) -> TargetRange:
        return TargetRange(min=self.min, max=self.max)


def targets_to_domain(targets: dict[str, TargetRangeSchema] | None) -> dict[str, TargetRange] | None:
    if targets is None:
        return None
    return {metric: rng.to_domain() for metric, rng in targets.items()}


class ZoneCreate(BaseModel):
    name: str = Field(min_length=1)
    stage: Stage
    is_active: bool = True
    targets: dict[str, TargetRangeSchema] = Field(default_factory=dict)
    fixed_info: dict[str, Any] = Field(default_factory=dict)


class ZoneUpdate(BaseModel):
    name: str | None = None
    # Accepted only when equal to the current stage
    stage: Stage | None = None
    is_active: bool | None = None
    targets: dict[str, TargetRangeSchema] | None = None
    fixed_info: dict[str, Any] | None = None


class ZoneResponse(BaseModel):
    id: UUID
    name: str
    stage: Stage
    is_active: bool
    targets: dict[str, TargetRangeSchema]
    fixed_info: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_domain(cls, zone: Zone) -> ZoneResponse:
        return cls(
            id=zone.id,
            name=zone.name,
            stage=zone.stage,
            is_active=zone.is_active,
            targets={m: TargetRangeSchema(min=r.min, max=r.max) for m, r in zone.targets.items()},
            fixed_info=zone.fixed_info,
            created_at=zone.created_at,
        )
