"""洞府 Service — 벽시계 주입, 전이 실행, 로그/이벤트

성숙 판정은 호출 시점의 시각으로만 한다. 타이머/스케줄러는 없다.
"""

import time
from typing import Any, Callable, Optional

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_data import GameDataRegistry
from src.core.game_log import GameLog
from src.core.grotto.logic import (
    available_herbs,
    available_upgrades,
    count_mature,
    enhance_spirit_array,
    harvest_all,
    harvest_herb,
    is_mature,
    max_herb_slots,
    plant_herb,
    remaining_minutes,
    total_exp_rate_bonus,
    upgrade_grotto,
)
from src.core.grotto.models import GrottoConfig, PlantableHerb
from src.core.logging import get_logger
from src.core.player.models import PlayerState
from src.core.result import TransitionResult
from src.core.state_container import GameStateContainer

logger = get_logger(__name__)

SOURCE = "grotto_service"


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class GrottoService:
    """洞府 구매/승급, 种植/收获, 聚灵阵"""

    def __init__(
        self,
        container: GameStateContainer[PlayerState],
        event_bus: EventBus,
        data: GameDataRegistry,
        game_log: GameLog,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._container = container
        self._bus = event_bus
        self._data = data
        self._log = game_log
        self._clock = clock or wall_clock_ms

    def upgrade(self, target_level: int) -> TransitionResult[PlayerState]:
        result = self._container.apply(upgrade_grotto, target_level, self._data)
        if self._record(result, "special"):
            self._emit(
                EventTypes.GROTTO_UPGRADED,
                {
                    "level": target_level,
                    "cost": result.data["cost"],
                    "removed_herbs": result.data["removed_herbs"],
                },
            )
        self._bus.reset_chain()
        return result

    def plant(self, herb_id: str) -> TransitionResult[PlayerState]:
        now = self._clock()
        result = self._container.apply(plant_herb, herb_id, self._data, now)
        if self._record(result, "normal"):
            self._emit(
                EventTypes.HERB_PLANTED,
                {"herb_id": herb_id, "harvest_time": result.data["harvest_time"]},
            )
        self._bus.reset_chain()
        return result

    def harvest(self, herb_index: int) -> TransitionResult[PlayerState]:
        now = self._clock()
        result = self._container.apply(harvest_herb, herb_index, self._data, now)
        if self._record(result, "gain"):
            self._emit(
                EventTypes.HERB_HARVESTED,
                {"herb_id": result.data["herb_id"], "quantity": result.data["quantity"]},
            )
        self._bus.reset_chain()
        return result

    def harvest_all(self) -> TransitionResult[PlayerState]:
        now = self._clock()
        result = self._container.apply(harvest_all, self._data, now)
        if self._record(result, "gain"):
            self._emit(
                EventTypes.HERB_HARVESTED,
                {
                    "harvested_count": result.data["harvested_count"],
                    "quantity": result.data["total_quantity"],
                },
                key="all",
            )
        self._bus.reset_chain()
        return result

    def enhance(self, enhancement_id: str) -> TransitionResult[PlayerState]:
        result = self._container.apply(enhance_spirit_array, enhancement_id, self._data)
        if self._record(result, "special"):
            self._emit(
                EventTypes.SPIRIT_ARRAY_ENHANCED,
                {
                    "enhancement_id": enhancement_id,
                    "total": result.data["spirit_array_enhancement"],
                },
            )
        self._bus.reset_chain()
        return result

    # === 조회 ===

    def status(self) -> dict[str, Any]:
        """洞府 화면용 요약. 성숙 여부는 지금 시각으로 다시 계산."""
        now = self._clock()
        grotto = self._container.snapshot.grotto
        return {
            "level": grotto.level,
            "max_herb_slots": max_herb_slots(grotto.level, self._data),
            "exp_rate_bonus": total_exp_rate_bonus(grotto),
            "mature_count": count_mature(grotto, now),
            "planted": [
                {
                    "herb_id": herb.herb_id,
                    "herb_name": herb.herb_name,
                    "mature": is_mature(herb, now),
                    "remaining_minutes": remaining_minutes(herb, now),
                    "quantity": herb.quantity,
                }
                for herb in grotto.planted_herbs
            ],
        }

    def upgrade_options(self) -> list[GrottoConfig]:
        return available_upgrades(self._container.snapshot, self._data)

    def herb_options(self) -> list[PlantableHerb]:
        return available_herbs(self._container.snapshot, self._data)

    # === 내부 ===

    def _record(self, result: TransitionResult[PlayerState], log_type: str) -> bool:
        if not result.success:
            if result.reason:
                self._log.add(result.reason, "danger")
            return False
        for message in result.messages:
            self._log.add(message, log_type)
        return True

    def _emit(self, event_type: str, data: dict, key: str = "") -> None:
        self._bus.emit(GameEvent(event_type=event_type, data=data, source=SOURCE, key=key))
