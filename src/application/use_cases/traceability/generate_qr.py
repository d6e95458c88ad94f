from __future__ import annotations

from uuid import UUID

from src.application.errors import InvalidTransitionError, NotFound, PermissionDenied
from src.application.events.models import QrSnapshotChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.application.services.traceability import TraceabilitySnapshotService
from src.domain.models.qr_snapshot import QrSnapshot
from src.domain.value_objects.role import Role
from src.domain.value_objects.stage import Stage


def ensure_can_generate(role: Role) -> None:
    if not role.can_create():
        raise PermissionDenied("Role not allowed to generate QR codes")


async def execute(
    uow: UnitOfWork,
    service: TraceabilitySnapshotService,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    lot_id: UUID,
) -> QrSnapshot:
    ensure_can_generate(role)
    lot = await uow.lots.get(organization_id, lot_id)
    if lot is None:
        raise NotFound("Lot not found")

    # Certificates are issued once the lot has reached distribution
    if not lot.is_finished:
        stay = await uow.stays.get_open(lot.id)
        zone = await uow.zones.get(organization_id, stay.zone_id) if stay else None
        if zone is None or zone.stage is not Stage.DISTRIBUCION:
            raise InvalidTransitionError(
                "QR codes can only be generated once the lot reaches distribution",
                details={"stage": zone.stage.value if zone else Stage.SIN_UBICACION.value},
            )

    snapshot = await service.generate(lot, created_by=actor_user_id)
    await audit.record(
        uow,
        organization_id=organization_id,
        user_id=actor_user_id,
        entity_type="qr_snapshot",
        entity_id=snapshot.id,
        action="qr_generate",
        new_data={"lot_id": str(lot.id), "data_hash": snapshot.data_hash},
    )
    uow.add_event(
        QrSnapshotChangedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            snapshot_id=snapshot.id,
            lot_id=lot.id,
            action="generated",
        )
    )
    await uow.commit()
    return snapshot
