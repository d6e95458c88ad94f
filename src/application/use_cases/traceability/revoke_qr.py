from __future__ import annotations

from uuid import UUID

from src.application.errors import PermissionDenied
from src.application.events.models import QrSnapshotChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.application.services.traceability import TraceabilitySnapshotService
from src.domain.models.qr_snapshot import QrSnapshot
from src.domain.value_objects.role import Role


def ensure_can_revoke(role: Role) -> None:
    if not role.can_update():
        raise PermissionDenied("Role not allowed to revoke QR codes")


async def execute(
    uow: UnitOfWork,
    service: TraceabilitySnapshotService,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    snapshot_id: UUID,
) -> QrSnapshot:
    """Revoke permanently. Revoking twice is a no-op."""
    ensure_can_revoke(role)
    before = await uow.qr_snapshots.get(organization_id, snapshot_id)
    revoked = await service.revoke(organization_id, snapshot_id)
    if before is not None and before.is_active:
        await audit.record(
            uow,
            organization_id=organization_id,
            user_id=actor_user_id,
            entity_type="qr_snapshot",
            entity_id=revoked.id,
            action="qr_revoke",
            old_data={"is_active": True},
            new_data={"is_active": False},
        )
        uow.add_event(
            QrSnapshotChangedEvent(
                organization_id=organization_id,
                actor_user_id=actor_user_id,
                snapshot_id=revoked.id,
                lot_id=revoked.lot_id,
                action="revoked",
            )
        )
    await uow.commit()
    return revoked
