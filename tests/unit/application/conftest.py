from __future__ import annotations

import asyncio
import dataclasses
from types import SimpleNamespace
from uuid import UUID

import pytest

from src.application.errors import ConflictError
from src.domain.models.lot import Lot
from src.domain.models.lot_template import LotTemplate
from src.domain.models.qr_snapshot import QrSnapshot
from src.domain.models.sensor import Sensor, SensorReading
from src.domain.models.stay import Stay
from src.domain.models.zone import Zone
from src.utils.datetime_tz import to_utc, utcnow


class MemoryLots:
    def __init__(self) -> None:
        self.items: dict[UUID, Lot] = {}

    async def add(self, lot: Lot) -> Lot:
        self.items[lot.id] = lot
        return lot

    async def get(self, organization_id, lot_id):
        lot = self.items.get(lot_id)
        if lot is None or lot.organization_id != organization_id or lot.deleted_at:
            return None
        return lot

    async def get_for_update(self, organization_id, lot_id):
        return await self.get(organization_id, lot_id)

    async def list(self, organization_id, *, status=None, parent_lot_id=None, roots_only=False):
        lots = [
            x
            for x in self.items.values()
            if x.organization_id == organization_id and x.deleted_at is None
        ]
        if status is not None:
            lots = [x for x in lots if x.status is status]
        if parent_lot_id is not None:
            lots = [x for x in lots if x.parent_lot_id == parent_lot_id]
        elif roots_only:
            lots = [x for x in lots if x.parent_lot_id is None]
        return lots

    async def list_children(self, organization_id, parent_lot_id):
        return await self.list(organization_id, parent_lot_id=parent_lot_id)

    async def count_children(self, parent_lot_id):
        return sum(1 for x in self.items.values() if x.parent_lot_id == parent_lot_id)

    async def update(self, organization_id, lot_id, data):
        lot = await self.get(organization_id, lot_id)
        if lot is None:
            return None
        updated = dataclasses.replace(lot, **data)
        self.items[lot_id] = updated
        return updated

    async def delete(self, organization_id, lot_id):
        return self.items.pop(lot_id, None) is not None

    async def soft_delete(self, organization_id, lot_id):
        lot = await self.get(organization_id, lot_id)
        if lot is None:
            return False
        self.items[lot_id] = dataclasses.replace(lot, deleted_at=utcnow())
        return True


class MemoryZones:
    def __init__(self) -> None:
        self.items: dict[UUID, Zone] = {}

    async def add(self, zone: Zone) -> Zone:
        self.items[zone.id] = zone
        return zone

    async def get(self, organization_id, zone_id):
        zone = self.items.get(zone_id)
        if zone is None or zone.organization_id != organization_id:
            return None
        return zone

    async def get_many(self, zone_ids):
        return {z: self.items[z] for z in zone_ids if z in self.items}

    async def list(self, organization_id, *, stage=None, is_active=None):
        zones = [z for z in self.items.values() if z.organization_id == organization_id]
        if stage is not None:
            zones = [z for z in zones if z.stage is stage]
        if is_active is not None:
            zones = [z for z in zones if z.is_active is is_active]
        return zones


class MemoryStays:
    """Mirrors the database: the open-stay unique index and the conditional close.

    Every call yields to the event loop so concurrent callers interleave.
    """

    def __init__(self) -> None:
        self.items: dict[UUID, Stay] = {}

    async def add(self, stay: Stay) -> Stay:
        await asyncio.sleep(0)
        if stay.exit_time is None and any(
            s.lot_id == stay.lot_id and s.exit_time is None for s in self.items.values()
        ):
            raise ConflictError("Lot already has an open stay")
        self.items[stay.id] = stay
        return stay

    async def get_open(self, lot_id):
        await asyncio.sleep(0)
        for s in self.items.values():
            if s.lot_id == lot_id and s.exit_time is None:
                return s
        return None

    async def close(self, stay_id, exit_time):
        await asyncio.sleep(0)
        stay = self.items.get(stay_id)
        if stay is None or stay.exit_time is not None:
            return None
        closed = dataclasses.replace(stay, exit_time=to_utc(exit_time))
        self.items[stay_id] = closed
        return closed

    async def list_by_lot(self, lot_id):
        stays = [s for s in self.items.values() if s.lot_id == lot_id]
        return sorted(stays, key=lambda s: s.entry_time)

    async def list_open_for_lots(self, lot_ids):
        return {
            s.lot_id: s
            for s in self.items.values()
            if s.lot_id in set(lot_ids) and s.exit_time is None
        }

    async def count_by_lot(self, lot_id):
        return sum(1 for s in self.items.values() if s.lot_id == lot_id)

    async def count_by_zone(self, zone_id):
        return sum(1 for s in self.items.values() if s.zone_id == zone_id)

    def open_counts(self) -> dict[UUID, int]:
        counts: dict[UUID, int] = {}
        for s in self.items.values():
            if s.exit_time is None:
                counts[s.lot_id] = counts.get(s.lot_id, 0) + 1
        return counts


class MemorySensors:
    def __init__(self) -> None:
        self.items: dict[UUID, Sensor] = {}

    async def add(self, sensor: Sensor) -> Sensor:
        self.items[sensor.id] = sensor
        return sensor

    async def list_by_zones(self, zone_ids):
        return [s for s in self.items.values() if s.zone_id in set(zone_ids)]


class MemoryReadings:
    def __init__(self) -> None:
        self.items: list[SensorReading] = []

    async def add_many(self, readings):
        self.items.extend(readings)
        return readings

    async def list_for_sensors(self, sensor_ids, *, start, end, include_simulated=False):
        return [
            r
            for r in self.items
            if r.sensor_id in set(sensor_ids)
            and to_utc(start) <= to_utc(r.timestamp) <= to_utc(end)
            and (include_simulated or not r.is_simulated)
        ]


class MemorySnapshots:
    def __init__(self, lots: MemoryLots) -> None:
        self.items: dict[UUID, QrSnapshot] = {}
        self._lots = lots

    async def add(self, snapshot: QrSnapshot) -> QrSnapshot:
        self.items[snapshot.id] = snapshot
        return snapshot

    async def get(self, organization_id, snapshot_id):
        snapshot = self.items.get(snapshot_id)
        if snapshot is None:
            return None
        lot = self._lots.items.get(snapshot.lot_id)
        return snapshot if lot and lot.organization_id == organization_id else None

    async def get_by_token(self, token):
        return next((s for s in self.items.values() if s.public_token == token), None)

    async def increment_scan(self, snapshot_id):
        s = self.items[snapshot_id]
        self.items[snapshot_id] = dataclasses.replace(s, scan_count=s.scan_count + 1)

    async def replace_token(self, snapshot_id, token):
        s = self.items.get(snapshot_id)
        if s is None or not s.is_active:
            return None
        self.items[snapshot_id] = dataclasses.replace(s, public_token=token, rotated_at=utcnow())
        return self.items[snapshot_id]

    async def deactivate(self, snapshot_id):
        s = self.items[snapshot_id]
        self.items[snapshot_id] = dataclasses.replace(s, is_active=False, revoked_at=utcnow())


class MemoryTemplates:
    def __init__(self) -> None:
        self.items: dict[UUID, LotTemplate] = {}

    async def get(self, organization_id):
        return self.items.get(organization_id)

    async def upsert(self, organization_id, custom_fields):
        template = LotTemplate.empty(organization_id)
        template.custom_fields = list(custom_fields)
        self.items[organization_id] = template
        return template


class MemoryAudit:
    def __init__(self) -> None:
        self.items: list = []

    async def add(self, entry):
        self.items.append(entry)
        return entry

    async def list_by_entity(self, organization_id, entity_type, entity_id):
        return [e for e in self.items if e.entity_type == entity_type and e.entity_id == entity_id]


def make_memory_uow():
    lots = MemoryLots()
    state = SimpleNamespace(commits=0, rollbacks=0)
    events: list = []

    async def commit():
        state.commits += 1

    async def rollback():
        state.rollbacks += 1

    def add_event(event):
        events.append(event)

    def drain_events():
        nonlocal events
        evts, events = events, []
        return evts

    return SimpleNamespace(
        lots=lots,
        zones=MemoryZones(),
        stays=MemoryStays(),
        sensors=MemorySensors(),
        sensor_readings=MemoryReadings(),
        qr_snapshots=MemorySnapshots(lots),
        lot_templates=MemoryTemplates(),
        audit_logs=MemoryAudit(),
        state=state,
        commit=commit,
        rollback=rollback,
        add_event=add_event,
        drain_events=drain_events,
    )


@pytest.fixture()
def memory_uow():
    return make_memory_uow()
