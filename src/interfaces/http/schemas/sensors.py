from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SensorCreate(BaseModel):
    zone_id: UUID
    name: str = Field(min_length=1)
    sensor_type: str = Field(min_length=1)
    unit: str | None = None
    validation_min: float | None = None
    validation_max: float | None = None
    is_public: bool = True


class SensorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    zone_id: UUID
    name: str
    device_id: str
    sensor_type: str
    unit: str | None
    validation_min: float | None
    validation_max: float | None
    is_active: bool
    is_public: bool
    created_at: datetime


class ReadingCreate(BaseModel):
    value: float
    timestamp: datetime | None = None
    is_simulated: bool = False


class ReadingsCreate(BaseModel):
    readings: list[ReadingCreate] = Field(min_length=1)


class ReadingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    sensor_id: UUID
    value: float
    timestamp: datetime
    is_simulated: bool
