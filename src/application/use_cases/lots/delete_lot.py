from __future__ import annotations

from uuid import UUID

from src.application.errors import ConflictError, NotFound, PermissionDenied
from src.application.events.models import LotChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.domain.value_objects.role import Role


def ensure_can_delete(role: Role) -> None:
    if not role.can_delete():
        raise PermissionDenied("Only admins can delete lots")


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    lot_id: UUID,
) -> None:
    """Delete a lot.

    Lots with stay history are soft deleted so certificates keep their lineage;
    lots that never moved are removed.
    """
    ensure_can_delete(role)
    lot = await uow.lots.get(organization_id, lot_id)
    if lot is None:
        raise NotFound("Lot not found")
    if await uow.stays.get_open(lot_id) is not None:
        raise ConflictError("Lot is currently placed in a zone")
    if await uow.lots.count_children(lot_id) > 0:
        raise ConflictError("Lot has sub-lots")

    if await uow.stays.count_by_lot(lot_id) > 0:
        deleted = await uow.lots.soft_delete(organization_id, lot_id)
        action = "soft_delete"
    else:
        deleted = await uow.lots.delete(organization_id, lot_id)
        action = "delete"
    if not deleted:
        raise NotFound("Lot not found")

    await audit.record(
        uow,
        organization_id=organization_id,
        user_id=actor_user_id,
        entity_type="lot",
        entity_id=lot_id,
        action=action,
        old_data={"identification": lot.identification},
    )
    uow.add_event(
        LotChangedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            lot_id=lot_id,
            action="deleted",
        )
    )
    await uow.commit()
