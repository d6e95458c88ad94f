from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from src.interfaces.http.schemas.lots import LotResponse, StayResponse
from src.interfaces.http.schemas.qr_snapshots import QrSnapshotResponse
from src.interfaces.http.schemas.zones import ZoneResponse


class SubLotCreate(BaseModel):
    name: str = Field(validation_alias=AliasChoices("name", "identification"))
    pieces: int = Field(validation_alias=AliasChoices("pieces", "quantity"))


class MoveLotRequest(BaseModel):
    # Zone id or "finalizado"
    zone_id: str
    entry_time: datetime | None = None
    sub_lots: list[SubLotCreate] | None = None
    generate_qr: bool = False
    include_parent_snapshot: bool | None = None


class MoveLotResponse(BaseModel):
    lot: LotResponse
    stay: StayResponse | None = None
    qr_snapshot: QrSnapshotResponse | None = None
    sub_lots: list[LotResponse] = Field(default_factory=list)
    qr_snapshots: list[QrSnapshotResponse] = Field(default_factory=list)


class BoardLotResponse(BaseModel):
    lot: LotResponse
    current_zone: ZoneResponse | None = None
    current_stay: StayResponse | None = None
    total_days: int = 0


class BoardColumnResponse(BaseModel):
    zones: list[ZoneResponse] = Field(default_factory=list)
    lots: list[BoardLotResponse] = Field(default_factory=list)


class BoardResponse(BaseModel):
    stages: dict[str, BoardColumnResponse]
    generated_at: datetime


class ActiveStayResponse(BaseModel):
    stay: StayResponse | None = None
    zone_id: UUID | None = None
    stage: str
