"""저장 Service — 세이브 슬롯 CRUD (SQLAlchemy)

슬롯 = PlayerState 스냅샷 + 게임 로그. 저장 형식은 to_dict() 가 정의한다.
불러올 때 구버전 스냅샷의 빠진 필드는 from_dict() 가 기본값으로 채운다.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_log import LogEntry
from src.core.logging import get_logger
from src.core.player.models import PlayerState
from src.db.models import SaveSlotModel

logger = get_logger(__name__)

SOURCE = "save_service"


@dataclass(frozen=True)
class SaveSlotInfo:
    """슬롯 목록 화면용 요약"""

    slot_id: int
    player_name: str
    realm: str
    saved_at: datetime


@dataclass(frozen=True)
class LoadedGame:
    state: PlayerState
    logs: list[LogEntry]
    saved_at: datetime


class SaveService:
    """세이브 슬롯 저장/불러오기/목록/삭제"""

    def __init__(self, db: Session, event_bus: EventBus, max_logs: int = 200):
        self._db = db
        self._bus = event_bus
        self._max_logs = max_logs

    def save(
        self,
        slot_id: int,
        state: PlayerState,
        logs: Optional[list[LogEntry]] = None,
    ) -> SaveSlotInfo:
        """슬롯에 덮어쓰기 저장. 로그는 최근 max_logs 개만."""
        saved_logs = [entry.to_dict() for entry in (logs or [])[-self._max_logs :]]
        now = datetime.now(timezone.utc).replace(tzinfo=None)

        orm = self._db.get(SaveSlotModel, slot_id)
        if orm is None:
            orm = SaveSlotModel(slot_id=slot_id)
            self._db.add(orm)
        orm.player_name = state.name
        orm.realm = state.realm
        orm.player_data = state.to_dict()
        orm.logs = saved_logs
        orm.saved_at = now
        self._db.commit()

        logger.info("Saved slot %d (%s)", slot_id, state.name)
        self._emit(EventTypes.GAME_SAVED, {"slot_id": slot_id})
        return SaveSlotInfo(slot_id=slot_id, player_name=state.name, realm=state.realm, saved_at=now)

    def load(self, slot_id: int) -> Optional[LoadedGame]:
        """슬롯 불러오기. 없으면 None."""
        orm = self._db.get(SaveSlotModel, slot_id)
        if orm is None:
            logger.info("Save slot %d is empty", slot_id)
            return None

        state = PlayerState.from_dict(orm.player_data or {})
        logs = [LogEntry.from_dict(entry) for entry in orm.logs or [] if isinstance(entry, dict)]
        self._emit(EventTypes.GAME_LOADED, {"slot_id": slot_id})
        return LoadedGame(state=state, logs=logs, saved_at=orm.saved_at)

    def list_slots(self) -> list[SaveSlotInfo]:
        rows = self._db.query(SaveSlotModel).order_by(SaveSlotModel.slot_id).all()
        return [
            SaveSlotInfo(
                slot_id=row.slot_id,
                player_name=row.player_name,
                realm=row.realm,
                saved_at=row.saved_at,
            )
            for row in rows
        ]

    def delete(self, slot_id: int) -> bool:
        orm = self._db.get(SaveSlotModel, slot_id)
        if orm is None:
            return False
        self._db.delete(orm)
        self._db.commit()
        logger.info("Deleted slot %d", slot_id)
        return True

    def export_snapshot(self, slot_id: int) -> Optional[dict[str, Any]]:
        """슬롯 원본 JSON (백업/이전용)."""
        orm = self._db.get(SaveSlotModel, slot_id)
        if orm is None:
            return None
        return {"player": orm.player_data, "logs": orm.logs or [], "slot_id": slot_id}

    def _emit(self, event_type: str, data: dict) -> None:
        self._bus.emit(
            GameEvent(event_type=event_type, data=data, source=SOURCE, key=str(data["slot_id"]))
        )
        self._bus.reset_chain()
