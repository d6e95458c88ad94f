from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.domain.value_objects.lot_status import LotStatus


class LotCreate(BaseModel):
    identification: str = Field(min_length=1)
    initial_animals: int = Field(ge=1)
    final_animals: int | None = Field(default=None, ge=0)
    food_regime: str | None = None
    iberian_percentage: float | None = Field(default=None, ge=0, le=100)
    custom_data: dict[str, Any] = Field(default_factory=dict)


class LotUpdate(BaseModel):
    identification: str | None = None
    initial_animals: int | None = Field(default=None, ge=1)
    final_animals: int | None = Field(default=None, ge=0)
    food_regime: str | None = None
    iberian_percentage: float | None = Field(default=None, ge=0, le=100)
    custom_data: dict[str, Any] | None = None


class LotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    identification: str
    initial_animals: int
    final_animals: int | None
    food_regime: str | None
    iberian_percentage: float | None
    status: LotStatus
    parent_lot_id: UUID | None
    piece_type: str | None
    custom_data: dict[str, Any]
    created_at: datetime


class StayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    lot_id: UUID
    zone_id: UUID
    entry_time: datetime
    exit_time: datetime | None
    created_by: UUID | None
    created_at: datetime


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    user_id: UUID
    entity_type: str
    entity_id: UUID
    action: str
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    timestamp: datetime
