from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from src.application.errors import NotFound, PermissionDenied, ValidationError
from src.application.events.models import ZoneChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.application.use_cases.zones.create_zone import validate_targets
from src.domain.models.zone import TargetRange, Zone
from src.domain.value_objects.role import Role
from src.domain.value_objects.stage import Stage


@dataclass(slots=True)
class UpdateZoneInput:
    name: str | None = None
    stage: Stage | None = None
    is_active: bool | None = None
    targets: dict[str, TargetRange] | None = None
    fixed_info: dict | None = None


def ensure_can_update(role: Role) -> None:
    if not role.can_update():
        raise PermissionDenied("Role not allowed to update zones")


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    zone_id: UUID,
    payload: UpdateZoneInput,
) -> Zone:
    ensure_can_update(role)
    existing = await uow.zones.get(organization_id, zone_id)
    if not existing:
        raise NotFound("Zone not found")
    # The stage of a zone is fixed once created
    if payload.stage is not None and payload.stage is not existing.stage:
        raise ValidationError(
            "Zone stage cannot be changed",
            details={"stage": existing.stage.value, "requested": payload.stage.value},
        )

    data: dict = {}
    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise ValidationError("Zone name cannot be blank")
        data["name"] = name
    if payload.is_active is not None:
        data["is_active"] = payload.is_active
    if payload.targets is not None:
        validate_targets(payload.targets)
        data["targets"] = payload.targets
    if payload.fixed_info is not None:
        data["fixed_info"] = payload.fixed_info
    if not data:
        return existing

    updated = await uow.zones.update(organization_id, zone_id, data)
    if not updated:
        raise NotFound("Zone not found")
    await audit.record(
        uow,
        organization_id=organization_id,
        user_id=actor_user_id,
        entity_type="zone",
        entity_id=zone_id,
        action="update",
        new_data={"fields": sorted(data)},
    )
    uow.add_event(
        ZoneChangedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            zone_id=zone_id,
            action="updated",
        )
    )
    await uow.commit()
    return updated
