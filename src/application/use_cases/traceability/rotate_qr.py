from __future__ import annotations

from uuid import UUID

from src.application.errors import PermissionDenied
from src.application.events.models import QrSnapshotChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.application.services.traceability import TraceabilitySnapshotService
from src.domain.models.qr_snapshot import QrSnapshot
from src.domain.value_objects.role import Role


def ensure_can_rotate(role: Role) -> None:
    if not role.can_update():
        raise PermissionDenied("Role not allowed to rotate QR codes")


async def execute(
    uow: UnitOfWork,
    service: TraceabilitySnapshotService,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    snapshot_id: UUID,
) -> QrSnapshot:
    ensure_can_rotate(role)
    rotated = await service.rotate(organization_id, snapshot_id)
    # The token itself stays out of the audit trail
    await audit.record(
        uow,
        organization_id=organization_id,
        user_id=actor_user_id,
        entity_type="qr_snapshot",
        entity_id=rotated.id,
        action="qr_rotate",
    )
    uow.add_event(
        QrSnapshotChangedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            snapshot_id=rotated.id,
            lot_id=rotated.lot_id,
            action="rotated",
        )
    )
    await uow.commit()
    return rotated
