"""SQLAlchemy declarative base and save-slot ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


class SaveSlotModel(Base):
    """ORM model for one save slot.

    player_data: PlayerState.to_dict() 스냅샷
    logs: 게임 로그 목록 (LogEntry.to_dict())
    """

    __tablename__ = "save_slots"

    slot_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    realm: Mapped[str] = mapped_column(String, nullable=False, default="")
    player_data: Mapped[dict] = mapped_column(JSON, nullable=False)
    logs: Mapped[list] = mapped_column(JSON, default=list)
    saved_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
