from __future__ import annotations

from typing import Protocol

from src.application.interfaces.repositories.audit_logs import AuditLogsRepository
from src.application.interfaces.repositories.lot_templates import LotTemplatesRepository
from src.application.interfaces.repositories.lots import LotsRepository
from src.application.interfaces.repositories.qr_snapshots import QrSnapshotsRepository
from src.application.interfaces.repositories.sensors import (
    SensorReadingsRepository,
    SensorsRepository,
)
from src.application.interfaces.repositories.stays import StaysRepository
from src.application.interfaces.repositories.zones import ZonesRepository


class UnitOfWork(Protocol):
    lots: LotsRepository
    zones: ZonesRepository
    stays: StaysRepository
    sensors: SensorsRepository
    sensor_readings: SensorReadingsRepository
    qr_snapshots: QrSnapshotsRepository
    lot_templates: LotTemplatesRepository
    audit_logs: AuditLogsRepository
    # Domain events collected during the transaction
    events: list

    async def __aenter__(self) -> UnitOfWork: ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    # Record a domain event during the transaction
    def add_event(self, event: object) -> None: ...

    # Drain collected events (used for post-commit dispatch)
    def drain_events(self) -> list: ...
