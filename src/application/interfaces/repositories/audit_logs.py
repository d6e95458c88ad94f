from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.models.audit_log import AuditLog


class AuditLogsRepository(Protocol):
    async def add(self, entry: AuditLog) -> AuditLog: ...

    async def list_by_entity(
        self, organization_id: UUID, entity_type: str, entity_id: UUID
    ) -> list[AuditLog]: ...
