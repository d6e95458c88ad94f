from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.lot import Lot
from src.domain.models.stay import Stay
from src.domain.models.zone import Zone
from src.domain.value_objects.lot_status import LotStatus
from src.domain.value_objects.stage import PHYSICAL_STAGES, Stage
from src.utils.datetime_tz import utcnow, whole_days_between


@dataclass(slots=True)
class BoardLot:
    lot: Lot
    current_zone: Zone | None = None
    current_stay: Stay | None = None
    total_days: int = 0


@dataclass(slots=True)
class BoardColumn:
    stage: Stage
    zones: list[Zone] = field(default_factory=list)
    lots: list[BoardLot] = field(default_factory=list)


@dataclass(slots=True)
class Board:
    columns: dict[Stage, BoardColumn]

    def column(self, stage: Stage) -> BoardColumn:
        return self.columns[stage]


async def execute(uow: UnitOfWork, organization_id: UUID, *, now: datetime | None = None) -> Board:
    """Project zones and lots into one column per stage. Read only."""
    now = now or utcnow()
    columns = {stage: BoardColumn(stage=stage) for stage in PHYSICAL_STAGES}
    columns[Stage.SIN_UBICACION] = BoardColumn(stage=Stage.SIN_UBICACION)
    columns[Stage.FINALIZADO] = BoardColumn(stage=Stage.FINALIZADO)

    zones = await uow.zones.list(organization_id, is_active=True)
    for zone in zones:
        if zone.stage in columns:
            columns[zone.stage].zones.append(zone)

    lots = await uow.lots.list(organization_id)
    open_stays = await uow.stays.list_open_for_lots(
        [lot.id for lot in lots if lot.status is LotStatus.ACTIVE]
    )
    # Lots can sit in zones that were later deactivated
    known = {zone.id: zone for zone in zones}
    missing = [s.zone_id for s in open_stays.values() if s.zone_id not in known]
    if missing:
        known.update(await uow.zones.get_many(missing))

    for lot in lots:
        if lot.status is LotStatus.FINISHED:
            columns[Stage.FINALIZADO].lots.append(BoardLot(lot=lot))
            continue
        stay = open_stays.get(lot.id)
        zone = known.get(stay.zone_id) if stay else None
        if stay is None or zone is None:
            columns[Stage.SIN_UBICACION].lots.append(BoardLot(lot=lot))
            continue
        columns[zone.stage].lots.append(
            BoardLot(
                lot=lot,
                current_zone=zone,
                current_stay=stay,
                total_days=whole_days_between(stay.entry_time, now),
            )
        )
    return Board(columns=columns)
