from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.db.base import Base


class LotORM(Base):
    __tablename__ = "lots"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    organization_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    identification: Mapped[str] = mapped_column(String(255), nullable=False)
    initial_animals: Mapped[int] = mapped_column(Integer, nullable=False)
    final_animals: Mapped[int | None] = mapped_column(Integer, nullable=True)
    food_regime: Mapped[str | None] = mapped_column(String(100), nullable=True)
    iberian_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    parent_lot_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("lots.id"), nullable=True, index=True
    )
    piece_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    custom_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
