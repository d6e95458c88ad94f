from __future__ import annotations

from uuid import UUID

from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.audit_log import AuditLog


async def record(
    uow: UnitOfWork,
    *,
    organization_id: UUID,
    user_id: UUID,
    entity_type: str,
    entity_id: UUID,
    action: str,
    old_data: dict | None = None,
    new_data: dict | None = None,
) -> AuditLog:
    """Append an audit entry inside the caller's transaction."""
    return await uow.audit_logs.add(
        AuditLog.record(
            organization_id=organization_id,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            old_data=old_data,
            new_data=new_data,
        )
    )
