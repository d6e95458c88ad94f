from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
import secrets
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable
from uuid import UUID

from src.application.errors import ExpiredError, NotFound
from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.lot import Lot
from src.domain.models.qr_snapshot import QrSnapshot
from src.domain.models.stay import Stay
from src.domain.models.zone import TargetRange, Zone
from src.domain.value_objects.stage import TRACEABLE_STAGES, Stage
from src.utils.datetime_tz import isoformat_utc, to_utc, utcnow, whole_days_between

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MetricSample:
    metric: str
    value: float
    target: TargetRange | None = None


@dataclass(slots=True)
class Phase:
    stage: Stage
    zones: list[str] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None
    open: bool = False
    samples: list[MetricSample] = field(default_factory=list)

    def duration_days(self, now: datetime) -> int:
        if self.start_time is None:
            return 0
        return whole_days_between(self.start_time, self.end_time if not self.open else now)

    def to_dict(self, now: datetime) -> dict[str, Any]:
        data: dict[str, Any] = {
            "stage": self.stage.value,
            "zones": list(self.zones),
            "startTime": isoformat_utc(self.start_time) if self.start_time else None,
            "duration": self.duration_days(now),
            "metrics": aggregate_metrics(self.samples),
        }
        if not self.open and self.end_time is not None:
            data["endTime"] = isoformat_utc(self.end_time)
        return data


def build_phases(entries: Iterable[tuple[Stay, Zone]]) -> list[Phase]:
    """Group stays by production stage, in stage order.

    Stays in non traceable stages are ignored. A phase stays open while any of
    its stays is open.
    """
    by_stage: dict[Stage, Phase] = {}
    for stay, zone in sorted(entries, key=lambda e: to_utc(e[0].entry_time)):
        if zone.stage not in TRACEABLE_STAGES:
            continue
        phase = by_stage.setdefault(zone.stage, Phase(stage=zone.stage))
        if zone.name not in phase.zones:
            phase.zones.append(zone.name)
        entry = to_utc(stay.entry_time)
        if phase.start_time is None or entry < phase.start_time:
            phase.start_time = entry
        if stay.exit_time is None:
            phase.open = True
        else:
            exit_time = to_utc(stay.exit_time)
            if phase.end_time is None or exit_time > phase.end_time:
                phase.end_time = exit_time
    return [by_stage[stage] for stage in TRACEABLE_STAGES if stage in by_stage]


def aggregate_metrics(samples: Iterable[MetricSample]) -> dict[str, dict[str, float]]:
    grouped: dict[str, list[MetricSample]] = defaultdict(list)
    for sample in samples:
        grouped[sample.metric].append(sample)
    metrics: dict[str, dict[str, float]] = {}
    for metric in sorted(grouped):
        values = [s.value for s in grouped[metric]]
        summary = {
            "avg": round(sum(values) / len(values), 2),
            "min": round(min(values), 2),
            "max": round(max(values), 2),
        }
        targeted = [s for s in grouped[metric] if s.target is not None]
        if targeted:
            inside = sum(1 for s in targeted if s.target.contains(s.value))
            summary["pctInTarget"] = round(inside * 100 / len(targeted), 1)
        metrics[metric] = summary
    return metrics


def canonical_json(data: dict) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_hash(data: dict) -> str:
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()


def _drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


class TraceabilitySnapshotService:
    """Builds frozen traceability certificates and manages their public tokens."""

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        version: str = "1.0",
        include_simulated: bool = False,
        token_bytes: int = 24,
    ) -> None:
        self.uow = uow
        self.version = version
        self.include_simulated = include_simulated
        self.token_bytes = token_bytes

    def new_token(self) -> str:
        return secrets.token_urlsafe(self.token_bytes)

    async def generate(
        self,
        lot: Lot,
        *,
        created_by: UUID | None = None,
        now: datetime | None = None,
    ) -> QrSnapshot:
        now = now or utcnow()
        data = await self.build_snapshot_data(lot, now=now)
        snapshot = QrSnapshot.create(
            lot_id=lot.id,
            public_token=self.new_token(),
            snapshot_data=data,
            data_hash=compute_hash(data),
            created_by=created_by,
        )
        created = await self.uow.qr_snapshots.add(snapshot)
        logger.info(
            f"QR snapshot generated: lot={lot.id} snapshot={created.id} "
            f"phases={len(data['phases'])}"
        )
        return created

    async def build_snapshot_data(self, lot: Lot, *, now: datetime) -> dict:
        lineage = await self._lineage(lot)
        entries = await self._collect_entries(lineage)
        phases = build_phases(entries)
        await self._attach_samples(phases, entries, now)

        parent = lineage[1] if len(lineage) > 1 else None
        root = lineage[-1]
        lote = _drop_none(
            {
                "id": str(lot.id),
                "name": lot.identification,
                "iberianPercentage": lot.iberian_percentage,
                "regime": lot.food_regime,
                "pieceType": lot.piece_type,
                "parentLote": (
                    {"id": str(parent.id), "name": parent.identification} if parent else None
                ),
            }
        )
        metadata = _drop_none(
            {
                "generatedAt": isoformat_utc(now),
                "version": self.version,
                "totalAnimals": root.initial_animals,
                "originData": dict(root.custom_data) if root.custom_data else None,
            }
        )
        return {
            "lote": lote,
            "phases": [_drop_none(p.to_dict(now)) for p in phases],
            "metadata": metadata,
        }

    async def _lineage(self, lot: Lot) -> list[Lot]:
        """The lot followed by its ancestors, closest first."""
        chain = [lot]
        seen = {lot.id}
        current = lot
        while current.is_sublot and current.parent_lot_id not in seen:
            parent = await self.uow.lots.get(current.organization_id, current.parent_lot_id)
            if parent is None:
                break
            chain.append(parent)
            seen.add(parent.id)
            current = parent
        return chain

    async def _collect_entries(self, lineage: list[Lot]) -> list[tuple[Stay, Zone]]:
        stays_per_lot = [await self.uow.stays.list_by_lot(lot.id) for lot in lineage]
        zone_ids = list({s.zone_id for stays in stays_per_lot for s in stays})
        zones = await self.uow.zones.get_many(zone_ids) if zone_ids else {}

        entries: list[tuple[Stay, Zone]] = []
        cutoff: int | None = None
        # Each ancestor contributes only what happened before its descendant existed
        for stays in stays_per_lot:
            resolved = [(s, zones[s.zone_id]) for s in stays if s.zone_id in zones]
            if cutoff is not None:
                resolved = [e for e in resolved if e[1].stage.position < cutoff]
            entries.extend(resolved)
            if resolved:
                earliest = min(resolved, key=lambda e: to_utc(e[0].entry_time))
                cutoff = earliest[1].stage.position
        return entries

    async def _attach_samples(
        self, phases: list[Phase], entries: list[tuple[Stay, Zone]], now: datetime
    ) -> None:
        if not phases:
            return
        by_stage = {p.stage: p for p in phases}
        zone_ids = list({zone.id for _, zone in entries})
        sensors = await self.uow.sensors.list_by_zones(zone_ids)
        sensors_by_zone: dict[UUID, list] = defaultdict(list)
        for sensor in sensors:
            if sensor.is_public:
                sensors_by_zone[sensor.zone_id].append(sensor)

        for stay, zone in entries:
            phase = by_stage.get(zone.stage)
            zone_sensors = sensors_by_zone.get(zone.id)
            if phase is None or not zone_sensors:
                continue
            readings = await self.uow.sensor_readings.list_for_sensors(
                [s.id for s in zone_sensors],
                start=to_utc(stay.entry_time),
                end=to_utc(stay.exit_time) if stay.exit_time else now,
                include_simulated=self.include_simulated,
            )
            metric_of = {s.id: s.sensor_type for s in zone_sensors}
            for reading in readings:
                metric = metric_of[reading.sensor_id]
                phase.samples.append(
                    MetricSample(metric=metric, value=reading.value, target=zone.target_for(metric))
                )

    async def resolve(self, token: str) -> QrSnapshot:
        snapshot = await self.uow.qr_snapshots.get_by_token(token)
        if snapshot is None:
            raise NotFound("Traceability code not found")
        if not snapshot.is_active:
            raise ExpiredError("Traceability code is no longer valid")
        await self.uow.qr_snapshots.increment_scan(snapshot.id)
        return dataclasses.replace(snapshot, scan_count=snapshot.scan_count + 1)

    async def rotate(self, organization_id: UUID, snapshot_id: UUID) -> QrSnapshot:
        snapshot = await self.uow.qr_snapshots.get(organization_id, snapshot_id)
        if snapshot is None:
            raise NotFound("QR snapshot not found")
        if not snapshot.is_active:
            raise ExpiredError("Revoked QR snapshots cannot be rotated")
        rotated = await self.uow.qr_snapshots.replace_token(snapshot.id, self.new_token())
        if rotated is None:
            raise ExpiredError("Revoked QR snapshots cannot be rotated")
        logger.info(f"QR snapshot rotated: snapshot={snapshot.id} lot={snapshot.lot_id}")
        return rotated

    async def revoke(self, organization_id: UUID, snapshot_id: UUID) -> QrSnapshot:
        snapshot = await self.uow.qr_snapshots.get(organization_id, snapshot_id)
        if snapshot is None:
            raise NotFound("QR snapshot not found")
        if not snapshot.is_active:
            return snapshot
        await self.uow.qr_snapshots.deactivate(snapshot.id)
        logger.info(f"QR snapshot revoked: snapshot={snapshot.id} lot={snapshot.lot_id}")
        return dataclasses.replace(snapshot, is_active=False, revoked_at=utcnow())
