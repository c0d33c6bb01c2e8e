"""Application wiring — 설정 테이블, 상태 컨테이너, 서비스 조립

화면/입력 계층은 이 모듈이 돌려주는 GameSession 의 서비스만 호출한다.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.orm import Session

from src.config import settings
from src.core.event_bus import EventBus
from src.core.game_data import GameDataRegistry
from src.core.game_log import GameLog
from src.core.logging import get_logger, setup_logging
from src.core.player.models import PlayerState, create_initial_player
from src.core.state_container import GameStateContainer
from src.services.activity_tracker import ActivityTracker
from src.services.ai import AIProvider, get_ai_provider
from src.services.encounter_service import EncounterService
from src.services.grotto_service import GrottoService
from src.services.item_service import ItemService
from src.services.save_service import SaveService

logger = get_logger(__name__)


@dataclass
class GameSession:
    container: GameStateContainer[PlayerState]
    event_bus: EventBus
    data: GameDataRegistry
    game_log: GameLog
    items: ItemService
    grotto: GrottoService
    encounters: EncounterService
    saves: SaveService
    activity: ActivityTracker

    def save(self, slot_id: Optional[int] = None) -> None:
        self.saves.save(
            slot_id or settings.DEFAULT_SAVE_SLOT,
            self.container.snapshot,
            self.game_log.entries,
        )

    def load(self, slot_id: Optional[int] = None) -> bool:
        loaded = self.saves.load(slot_id or settings.DEFAULT_SAVE_SLOT)
        if loaded is None:
            return False
        self.container.reset(loaded.state)
        self.game_log.clear()
        self.game_log.extend(loaded.logs)
        return True


def load_game_data(path: Optional[str] = None) -> GameDataRegistry:
    data = GameDataRegistry()
    data.load_from_json(path or settings.GAME_DATA_PATH)
    return data


def create_session(
    db: Session,
    player: Optional[PlayerState] = None,
    data: Optional[GameDataRegistry] = None,
    provider: Optional[AIProvider] = None,
    clock: Optional[Callable[[], int]] = None,
) -> GameSession:
    """서비스 조립. player 생략 시 새 캐릭터."""
    data = data or load_game_data()
    container = GameStateContainer(player or create_initial_player("无名修士"))
    event_bus = EventBus()
    game_log = GameLog(settings.MAX_LOG_HISTORY)
    provider = provider or get_ai_provider()
    logger.info("Session created (provider=%s)", provider.name)

    return GameSession(
        container=container,
        event_bus=event_bus,
        data=data,
        game_log=game_log,
        items=ItemService(container, event_bus, data, game_log),
        grotto=GrottoService(container, event_bus, data, game_log, clock=clock),
        encounters=EncounterService(container, event_bus, data, game_log, provider),
        saves=SaveService(db, event_bus, settings.MAX_LOG_HISTORY),
        activity=ActivityTracker(event_bus),
    )


def main() -> None:
    from src.db.database import init_db, session_scope

    setup_logging(settings.LOG_LEVEL, sql_echo=settings.DEBUG)
    init_db()
    with session_scope() as db:
        session = create_session(db)
        if session.load():
            logger.info("Loaded slot %d", settings.DEFAULT_SAVE_SLOT)
        session.encounters.resolve()
        session.save()
        for entry in session.game_log.entries:
            print(f"[{entry.type}] {entry.text}")
        logger.info("Session activity: %s", session.activity.summary())


if __name__ == "__main__":
    main()
