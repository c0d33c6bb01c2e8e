"""ActivityTracker — 세션 활동 집계 (EventBus 구독자)

서비스가 발행한 이벤트만 보고 센다. 상태는 건드리지 않으며
저장되지도 않는다. 화면의 "이번 세션" 요약과 로그 출력용.
"""

from collections import Counter
from typing import Any

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger

logger = get_logger(__name__)

TRACKED_EVENTS: tuple[str, ...] = (
    EventTypes.ITEM_ADDED,
    EventTypes.ITEM_USED,
    EventTypes.ITEM_DISCARDED,
    EventTypes.ITEM_SOLD,
    EventTypes.ITEM_EQUIPPED,
    EventTypes.PET_HATCHED,
    EventTypes.RECIPE_UNLOCKED,
    EventTypes.GROTTO_UPGRADED,
    EventTypes.HERB_PLANTED,
    EventTypes.HERB_HARVESTED,
    EventTypes.SPIRIT_ARRAY_ENHANCED,
)


class ActivityTracker:
    """이벤트 유형별 횟수 + 灵草 수확량/판매 수입 합계"""

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus
        self._counts: Counter[str] = Counter()
        self.herbs_harvested = 0
        self.spirit_stones_earned = 0
        self.spirit_stones_spent = 0
        self._register()

    def _register(self) -> None:
        for event_type in TRACKED_EVENTS:
            self._bus.subscribe(event_type, self._on_event)

    def detach(self) -> None:
        for event_type in TRACKED_EVENTS:
            self._bus.unsubscribe(event_type, self._on_event)
        logger.debug("ActivityTracker detached: %s", dict(self._counts))

    def _on_event(self, event: GameEvent) -> None:
        self._counts[event.event_type] += 1
        if event.event_type == EventTypes.HERB_HARVESTED:
            self.herbs_harvested += event.data.get("quantity", 0)
        elif event.event_type == EventTypes.ITEM_SOLD:
            self.spirit_stones_earned += event.data.get("total", 0)
        elif event.event_type == EventTypes.GROTTO_UPGRADED:
            self.spirit_stones_spent += event.data.get("cost", 0)

    def count(self, event_type: str) -> int:
        return self._counts[event_type]

    def summary(self) -> dict[str, Any]:
        return {
            "events": dict(self._counts),
            "herbs_harvested": self.herbs_harvested,
            "spirit_stones_earned": self.spirit_stones_earned,
            "spirit_stones_spent": self.spirit_stones_spent,
        }
