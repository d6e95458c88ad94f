from __future__ import annotations

from uuid import UUID

from src.application.errors import ConflictError, NotFound, PermissionDenied
from src.application.events.models import ZoneChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.domain.value_objects.role import Role


def ensure_can_delete(role: Role) -> None:
    if not role.can_delete():
        raise PermissionDenied("Only admins can delete zones")


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    zone_id: UUID,
) -> None:
    ensure_can_delete(role)
    zone = await uow.zones.get(organization_id, zone_id)
    if zone is None:
        raise NotFound("Zone not found")
    if await uow.stays.count_by_zone(zone_id) > 0:
        raise ConflictError("Zone has stay history; deactivate it instead")
    if await uow.sensors.count_by_zone(zone_id) > 0:
        raise ConflictError("Zone still has sensors attached")
    if not await uow.zones.delete(organization_id, zone_id):
        raise NotFound("Zone not found")
    await audit.record(
        uow,
        organization_id=organization_id,
        user_id=actor_user_id,
        entity_type="zone",
        entity_id=zone_id,
        action="delete",
        old_data={"name": zone.name, "stage": zone.stage.value},
    )
    uow.add_event(
        ZoneChangedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            zone_id=zone_id,
            action="deleted",
        )
    )
    await uow.commit()
