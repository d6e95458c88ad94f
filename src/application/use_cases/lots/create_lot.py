from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from src.application.errors import PermissionDenied, ValidationError
from src.application.events.models import LotChangedEvent
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.services import audit
from src.domain.models.lot import Lot
from src.domain.value_objects.custom_field import CustomFieldError, validate_custom_data
from src.domain.value_objects.role import Role


@dataclass(slots=True)
class CreateLotInput:
    identification: str
    initial_animals: int
    final_animals: int | None = None
    food_regime: str | None = None
    iberian_percentage: float | None = None
    custom_data: dict = field(default_factory=dict)


def ensure_can_create(role: Role) -> None:
    if not role.can_create():
        raise PermissionDenied("Role not allowed to create lots")


def validate_counts(
    initial_animals: int | None, final_animals: int | None, iberian_percentage: float | None
) -> None:
    if initial_animals is not None and initial_animals < 1:
        raise ValidationError("initial_animals must be at least 1")
    if final_animals is not None and final_animals < 0:
        raise ValidationError("final_animals cannot be negative")
    if iberian_percentage is not None and not 0 <= iberian_percentage <= 100:
        raise ValidationError("iberian_percentage must be between 0 and 100")


async def clean_custom_data(uow: UnitOfWork, organization_id: UUID, data: dict | None) -> dict:
    template = await uow.lot_templates.get(organization_id)
    definitions = template.custom_fields if template else []
    try:
        return validate_custom_data(definitions, data)
    except CustomFieldError as exc:
        raise ValidationError(
            f"Invalid custom data: {exc.message}", details={"field": exc.key}
        ) from exc


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    actor_user_id: UUID,
    payload: CreateLotInput,
) -> Lot:
    ensure_can_create(role)
    identification = (payload.identification or "").strip()
    if not identification:
        raise ValidationError("identification is required")
    validate_counts(payload.initial_animals, payload.final_animals, payload.iberian_percentage)
    custom_data = await clean_custom_data(uow, organization_id, payload.custom_data)

    lot = Lot.create(
        organization_id,
        identification,
        payload.initial_animals,
        final_animals=payload.final_animals,
        food_regime=payload.food_regime,
        iberian_percentage=payload.iberian_percentage,
        custom_data=custom_data,
    )
    created = await uow.lots.add(lot)
    await audit.record(
        uow,
        organization_id=organization_id,
        user_id=actor_user_id,
        entity_type="lot",
        entity_id=created.id,
        action="create",
        new_data={
            "identification": created.identification,
            "initial_animals": created.initial_animals,
        },
    )
    uow.add_event(
        LotChangedEvent(
            organization_id=organization_id,
            actor_user_id=actor_user_id,
            lot_id=created.id,
            action="created",
        )
    )
    await uow.commit()
    return created
