from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from src.application.errors import NotFound, PermissionDenied, ValidationError
from src.application.events.models import LotChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.application.use_cases.lots.create_lot import clean_custom_data, validate_counts
from src.domain.models.lot import Lot
from src.domain.value_objects.role import Role

UPDATABLE_FIELDS = (
    "identification",
    "initial_animals",
    "final_animals",
    "food_regime",
    "iberian_percentage",
    "custom_data",
)


@dataclass(slots=True)
class UpdateLotInput:
    identification: str | None = None
    initial_animals: int | None = None
    final_animals: int | None = None
    food_regime: str | None = None
    iberian_percentage: float | None = None
    custom_data: dict | None = None


def ensure_can_update(role: Role) -> None:
    if not role.can_update():
        raise PermissionDenied("Role not allowed to update lots")


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    lot_id: UUID,
    payload: UpdateLotInput,
) -> Lot:
    ensure_can_update(role)
    existing = await uow.lots.get(organization_id, lot_id)
    if not existing:
        raise NotFound("Lot not found")

    data = {k: getattr(payload, k) for k in UPDATABLE_FIELDS if getattr(payload, k) is not None}
    if "identification" in data:
        data["identification"] = data["identification"].strip()
        if not data["identification"]:
            raise ValidationError("identification cannot be blank")
    validate_counts(
        data.get("initial_animals"), data.get("final_animals"), data.get("iberian_percentage")
    )
    if "custom_data" in data:
        data["custom_data"] = await clean_custom_data(uow, organization_id, data["custom_data"])
    if not data:
        return existing

    updated = await uow.lots.update(organization_id, lot_id, data)
    if not updated:
        raise NotFound("Lot not found")
    await audit.record(
        uow,
        organization_id=organization_id,
        user_id=actor_user_id,
        entity_type="lot",
        entity_id=lot_id,
        action="update",
        old_data={k: getattr(existing, k) for k in data},
        new_data=data,
    )
    uow.add_event(
        LotChangedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            lot_id=lot_id,
            action="updated",
        )
    )
    await uow.commit()
    return updated
