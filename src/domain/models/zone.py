from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.value_objects.stage import Stage


@dataclass(slots=True, frozen=True)
class TargetRange:
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def to_dict(self) -> dict[str, float]:
        return {"min": self.min, "max": self.max}


@dataclass(slots=True)
class Zone:
    id: UUID
    organization_id: UUID
    name: str
    stage: Stage
    is_active: bool = True
    # metric name (matches Sensor.sensor_type) -> target range
    targets: dict[str, TargetRange] = field(default_factory=dict)
    fixed_info: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        organization_id: UUID,
        name: str,
        stage: Stage,
        *,
        is_active: bool = True,
        targets: dict[str, TargetRange] | None = None,
        fixed_info: dict | None = None,
    ) -> Zone:
        return cls(
            id=uuid4(),
            organization_id=organization_id,
            name=name,
            stage=stage,
            is_active=is_active,
            targets=dict(targets or {}),
            fixed_info=dict(fixed_info or {}),
            created_at=datetime.now(timezone.utc),
        )

    def target_for(self, metric: str) -> TargetRange | None:
        return self.targets.get(metric)
