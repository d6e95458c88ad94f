from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from src.application.errors import PermissionDenied, ValidationError
from src.application.events.models import ZoneChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.domain.models.zone import TargetRange, Zone
from src.domain.value_objects.role import Role
from src.domain.value_objects.stage import Stage


@dataclass(slots=True)
class CreateZoneInput:
    name: str
    stage: Stage
    is_active: bool = True
    targets: dict[str, TargetRange] = field(default_factory=dict)
    fixed_info: dict = field(default_factory=dict)


def ensure_can_create(role: Role) -> None:
    if not role.can_create():
        raise PermissionDenied("Role not allowed to create zones")


def validate_targets(targets: dict[str, TargetRange]) -> None:
    for metric, rng in targets.items():
        if not metric.strip():
            raise ValidationError("Target metric name cannot be blank")
        if rng.min > rng.max:
            raise ValidationError(
                "Target min cannot exceed max", details={"metric": metric}
            )


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    payload: CreateZoneInput,
) -> Zone:
    ensure_can_create(role)
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Zone name is required")
    if not payload.stage.is_physical:
        raise ValidationError(
            "Zones must belong to a production stage", details={"stage": payload.stage.value}
        )
    validate_targets(payload.targets)

    zone = Zone.create(
        organization_id,
        name,
        payload.stage,
        is_active=payload.is_active,
        targets=payload.targets,
        fixed_info=payload.fixed_info,
    )
    created = await uow.zones.add(zone)
    await audit.record(
        uow,
        organization_id=organization_id,
        user_id=actor_user_id,
        entity_type="zone",
        entity_id=created.id,
        action="create",
        new_data={"name": created.name, "stage": created.stage.value},
    )
    uow.add_event(
        ZoneChangedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            zone_id=created.id,
            action="created",
        )
    )
    await uow.commit()
    return created
