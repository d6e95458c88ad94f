from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.application.interfaces.unit_of_work import UnitOfWork


def create_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, echo=False, future=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


class SQLAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory
        self.session: AsyncSession | None = None
        self.events: list = []
        self._reset_repos()

    def _reset_repos(self) -> None:
        self.lots = None
        self.zones = None
        self.stays = None
        self.sensors = None
        self.sensor_readings = None
        self.qr_snapshots = None
        self.lot_templates = None
        self.audit_logs = None

    async def __aenter__(self) -> UnitOfWork:
        self.session = self._session_factory()
        from src.infrastructure.repos.audit_logs_sqlalchemy import AuditLogsSQLAlchemyRepository
        from src.infrastructure.repos.lot_templates_sqlalchemy import (
            LotTemplatesSQLAlchemyRepository,
        )
        from src.infrastructure.repos.lots_sqlalchemy import LotsSQLAlchemyRepository
        from src.infrastructure.repos.qr_snapshots_sqlalchemy import (
            QrSnapshotsSQLAlchemyRepository,
        )
        from src.infrastructure.repos.sensors_sqlalchemy import (
            SensorReadingsSQLAlchemyRepository,
            SensorsSQLAlchemyRepository,
        )
        from src.infrastructure.repos.stays_sqlalchemy import StaysSQLAlchemyRepository
        from src.infrastructure.repos.zones_sqlalchemy import ZonesSQLAlchemyRepository

        self.lots = LotsSQLAlchemyRepository(self.session)
        self.zones = ZonesSQLAlchemyRepository(self.session)
        self.stays = StaysSQLAlchemyRepository(self.session)
        self.sensors = SensorsSQLAlchemyRepository(self.session)
        self.sensor_readings = SensorReadingsSQLAlchemyRepository(self.session)
        self.qr_snapshots = QrSnapshotsSQLAlchemyRepository(self.session)
        self.lot_templates = LotTemplatesSQLAlchemyRepository(self.session)
        self.audit_logs = AuditLogsSQLAlchemyRepository(self.session)
        self.events = []
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self.session:
            return
        try:
            if exc:
                await self.session.rollback()
        finally:
            await self.session.close()
            self.session = None
            self.events = []
            self._reset_repos()

    async def commit(self) -> None:
        if not self.session:
            return
        await self.session.commit()

    async def rollback(self) -> None:
        if not self.session:
            return
        await self.session.rollback()

    def add_event(self, event: object) -> None:
        self.events.append(event)

    def drain_events(self) -> list:
        events, self.events = self.events, []
        return events
