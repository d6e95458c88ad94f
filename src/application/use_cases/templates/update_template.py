from __future__ import annotations

from uuid import UUID

from src.application.errors import PermissionDenied, ValidationError
from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.lot_template import LotTemplate
from src.domain.value_objects.custom_field import CustomFieldDefinition, CustomFieldType
from src.domain.value_objects.role import Role


def ensure_can_update(role: Role) -> None:
    if not role.can_update():
        raise PermissionDenied("Role not allowed to edit the lot template")


def validate_definitions(definitions: list[CustomFieldDefinition]) -> None:
    seen: set[str] = set()
    for definition in definitions:
        key = definition.key.strip()
        if not key:
            raise ValidationError("Custom field key cannot be blank")
        if key in seen:
            raise ValidationError("Duplicated custom field key", details={"key": key})
        seen.add(key)
        if definition.type is CustomFieldType.SELECT and not definition.options:
            raise ValidationError(
                "Select fields need at least one option", details={"key": key}
            )


async def get(uow: UnitOfWork, organization_id: UUID) -> LotTemplate:
    template = await uow.lot_templates.get(organization_id)
    return template or LotTemplate.empty(organization_id)


async def execute(
    uow: UnitOfWork,
    organization_id: UUID,
    role: Role,
    custom_fields: list[CustomFieldDefinition],
) -> LotTemplate:
    ensure_can_update(role)
    validate_definitions(custom_fields)
    template = await uow.lot_templates.upsert(organization_id, custom_fields)
    await uow.commit()
    return template
