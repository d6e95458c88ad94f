from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from src.application.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from src.application.events.models import LotMovedEvent, QrSnapshotChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.application.services.stay_ledger import StayLedger
from src.application.services.traceability import TraceabilitySnapshotService
from src.domain.models.lot import Lot
from src.domain.models.qr_snapshot import QrSnapshot
from src.domain.models.stay import Stay
from src.domain.value_objects.lot_status import LotStatus
from src.domain.value_objects.role import Role
from src.domain.value_objects.stage import Stage, allowed_targets
from src.utils.datetime_tz import to_utc, utcnow

logger = logging.getLogger(__name__)

FINALIZADO = Stage.FINALIZADO.value


@dataclass(slots=True)
class SubLotSpec:
    name: str
    pieces: int


@dataclass(slots=True)
class MoveLotInput:
    # Target zone id, or the "finalizado" sentinel
    zone_id: UUID | str
    entry_time: datetime | None = None
    # None means no split; an empty list is an invalid split request
    sub_lots: list[SubLotSpec] | None = None
    generate_qr: bool = False
    include_parent_snapshot: bool | None = None


@dataclass(slots=True, frozen=True)
class MovePolicy:
    entry_stages: tuple[Stage, ...] = (Stage.CRIA,)
    snapshot_parent_on_split: bool = False
    snapshot_version: str = "1.0"
    include_simulated: bool = False
    token_bytes: int = 24


@dataclass(slots=True)
class MoveResult:
    lot: Lot
    from_stage: Stage
    to_stage: Stage
    stay: Stay | None = None
    closed_stay: Stay | None = None
    sub_lots: list[Lot] = field(default_factory=list)
    sub_lot_stays: list[Stay] = field(default_factory=list)
    snapshots: list[QrSnapshot] = field(default_factory=list)


def ensure_can_move(role: Role) -> None:
    if not role.can_move():
        raise PermissionDenied("Role not allowed to move lots")


def parse_target(zone_id: UUID | str) -> UUID | None:
    """Zone id of the target, or None for the terminal pseudo-stage."""
    if isinstance(zone_id, UUID):
        return zone_id
    if zone_id == FINALIZADO:
        return None
    try:
        return UUID(str(zone_id))
    except ValueError as exc:
        raise ValidationError(
            "zone_id must be a zone id or 'finalizado'", details={"zone_id": zone_id}
        ) from exc


def validate_split(specs: list[SubLotSpec] | None) -> list[SubLotSpec]:
    if specs is None:
        return []
    if not specs:
        raise ValidationError("At least one sub-lot is required to split a lot")
    cleaned: list[SubLotSpec] = []
    for index, spec in enumerate(specs):
        name = (spec.name or "").strip()
        if not name:
            raise ValidationError("Sub-lot name is required", details={"index": index})
        if isinstance(spec.pieces, bool) or not isinstance(spec.pieces, int) or spec.pieces <= 0:
            raise ValidationError(
                "Sub-lot quantity must be a positive integer",
                details={"index": index, "name": name},
            )
        cleaned.append(SubLotSpec(name=name, pieces=spec.pieces))
    return cleaned


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    lot_id: UUID,
    payload: MoveLotInput,
    policy: MovePolicy | None = None,
) -> MoveResult:
    ensure_can_move(role)
    policy = policy or MovePolicy()
    target_zone_id = parse_target(payload.zone_id)
    split = validate_split(payload.sub_lots)
    entry_time = to_utc(payload.entry_time) if payload.entry_time else utcnow()

    try:
        result = await _move(
            uow, organization_id, actor_user_id, lot_id, target_zone_id, split, entry_time,
            payload, policy,
        )
        await uow.commit()
    except Exception:
        await uow.rollback()
        raise

    logger.info(
        f"Lot moved: lot={result.lot.id} {result.from_stage.value}->{result.to_stage.value} "
        f"sub_lots={len(result.sub_lots)} snapshots={len(result.snapshots)}"
    )
    return result


async def _move(
    uow: UnitOfWork,
    organization_id: UUID,
    actor_user_id: UUID,
    lot_id: UUID,
    target_zone_id: UUID | None,
    split: list[SubLotSpec],
    entry_time: datetime,
    payload: MoveLotInput,
    policy: MovePolicy,
) -> MoveResult:
    lot = await uow.lots.get_for_update(organization_id, lot_id)
    if lot is None:
        raise NotFound("Lot not found")
    if lot.is_finished:
        raise InvalidTransitionError(
            "Finished lots cannot be moved", details={"lot_id": str(lot.id)}
        )

    ledger = StayLedger(uow.stays)
    current = await ledger.current_stay(lot.id)
    from_stage = Stage.SIN_UBICACION
    if current is not None:
        current_zone = await uow.zones.get(organization_id, current.zone_id)
        if current_zone is None:
            raise ConflictError("Current zone of the lot no longer exists")
        from_stage = current_zone.stage

    target_zone = None
    if target_zone_id is None:
        to_stage = Stage.FINALIZADO
    else:
        target_zone = await uow.zones.get(organization_id, target_zone_id)
        if target_zone is None:
            raise NotFound("Zone not found")
        if not target_zone.is_active:
            raise ValidationError("Target zone is not active", details={"zone_id": str(target_zone.id)})
        to_stage = target_zone.stage

    allowed = allowed_targets(from_stage, policy.entry_stages)
    if to_stage not in allowed:
        raise InvalidTransitionError(
            f"Cannot move lot from {from_stage.value} to {to_stage.value}",
            details={
                "from": from_stage.value,
                "to": to_stage.value,
                "allowed": sorted(s.value for s in allowed),
            },
        )
    if split and target_zone is None:
        raise ValidationError("Lots cannot be split when finishing")

    result = MoveResult(lot=lot, from_stage=from_stage, to_stage=to_stage)
    if current is not None:
        result.closed_stay = await ledger.close_stay(
            lot.id, entry_time, expected_stay_id=current.id
        )

    previous = {
        "stage": from_stage.value,
        "zone_id": str(current.zone_id) if current else None,
    }
    if target_zone is None:
        finished = await uow.lots.update(organization_id, lot.id, {"status": LotStatus.FINISHED})
        if finished is None:
            raise ConflictError("Lot changed concurrently")
        result.lot = finished
        await audit.record(
            uow,
            organization_id=organization_id,
            user_id=actor_user_id,
            entity_type="lot",
            entity_id=lot.id,
            action="finalize",
            old_data=previous,
            new_data={"stage": to_stage.value, "exit_time": entry_time.isoformat()},
        )
    else:
        result.stay = await ledger.open_stay(
            lot.id, target_zone.id, entry_time, created_by=actor_user_id
        )
        await audit.record(
            uow,
            organization_id=organization_id,
            user_id=actor_user_id,
            entity_type="lot",
            entity_id=lot.id,
            action="move",
            old_data=previous,
            new_data={
                "stage": to_stage.value,
                "zone_id": str(target_zone.id),
                "entry_time": entry_time.isoformat(),
            },
        )

    for spec in split:
        child = await uow.lots.add(lot.split(spec.name, spec.pieces))
        child_stay = await ledger.open_stay(
            child.id, target_zone.id, entry_time, created_by=actor_user_id
        )
        result.sub_lots.append(child)
        result.sub_lot_stays.append(child_stay)
        await audit.record(
            uow,
            organization_id=organization_id,
            user_id=actor_user_id,
            entity_type="lot",
            entity_id=child.id,
            action="split",
            new_data={
                "parent_lot_id": str(lot.id),
                "piece_type": child.piece_type,
                "pieces": child.initial_animals,
                "zone_id": str(target_zone.id),
            },
        )

    if payload.generate_qr:
        include_parent = payload.include_parent_snapshot
        if include_parent is None:
            include_parent = policy.snapshot_parent_on_split
        targets = list(result.sub_lots) if result.sub_lots else [result.lot]
        if result.sub_lots and include_parent:
            targets.insert(0, result.lot)
        service = TraceabilitySnapshotService(
            uow,
            version=policy.snapshot_version,
            include_simulated=policy.include_simulated,
            token_bytes=policy.token_bytes,
        )
        for target in targets:
            snapshot = await service.generate(target, created_by=actor_user_id)
            result.snapshots.append(snapshot)
            await audit.record(
                uow,
                organization_id=organization_id,
                user_id=actor_user_id,
                entity_type="qr_snapshot",
                entity_id=snapshot.id,
                action="qr_generate",
                new_data={"lot_id": str(target.id), "data_hash": snapshot.data_hash},
            )

    uow.add_event(
        LotMovedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            lot_id=lot.id,
            from_stage=from_stage.value,
            to_stage=to_stage.value,
            sub_lot_ids=[c.id for c in result.sub_lots],
        )
    )
    for snapshot in result.snapshots:
        uow.add_event(
            QrSnapshotChangedEvent(
                organization_id=organization_id,
                actor_user_id=actor_user_id,
                snapshot_id=snapshot.id,
                lot_id=snapshot.lot_id,
                action="generated",
            )
        )
    return result
