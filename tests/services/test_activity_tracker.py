"""ActivityTracker 테스트 — EventBus 구독으로 세션 활동 집계"""

from unittest.mock import patch

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.item.inventory import ItemTemplate, find_by_name
from src.core.item.models import ItemType
from src.main import create_session
from src.services.activity_tracker import ActivityTracker
from src.services.ai import MockProvider


class TestActivityTracker:
    def test_counts_and_totals(self) -> None:
        bus = EventBus()
        tracker = ActivityTracker(bus)
        bus.emit(GameEvent(EventTypes.HERB_HARVESTED, {"quantity": 4}, "grotto_service"))
        bus.emit(GameEvent(EventTypes.ITEM_SOLD, {"item_id": "h", "total": 25}, "item_service"))
        bus.emit(GameEvent(EventTypes.GROTTO_UPGRADED, {"level": 1, "cost": 100}, "grotto_service"))

        assert tracker.count(EventTypes.HERB_HARVESTED) == 1
        assert tracker.summary() == {
            "events": {
                EventTypes.HERB_HARVESTED: 1,
                EventTypes.ITEM_SOLD: 1,
                EventTypes.GROTTO_UPGRADED: 1,
            },
            "herbs_harvested": 4,
            "spirit_stones_earned": 25,
            "spirit_stones_spent": 100,
        }

    def test_untracked_event_ignored(self) -> None:
        bus = EventBus()
        tracker = ActivityTracker(bus)
        bus.emit(GameEvent(EventTypes.GAME_SAVED, {"slot_id": 1}, "save_service"))
        assert tracker.summary()["events"] == {}

    def test_detach(self) -> None:
        bus = EventBus()
        tracker = ActivityTracker(bus)
        assert bus.handler_count > 0
        tracker.detach()
        assert bus.handler_count == 0


class TestSessionActivity:
    def test_grotto_loop_is_tracked(self, db_session, player, small_data) -> None:
        """구매 → 种植 → 收获 → 판매 가 세션 요약에 반영된다."""
        now = [0]
        session = create_session(
            db_session, player=player, data=small_data,
            provider=MockProvider(), clock=lambda: now[0],
        )
        session.grotto.upgrade(1)
        session.items.grant(ItemTemplate(name="止血草", type=ItemType.HERB), 2)
        with patch("src.core.grotto.logic.random.randint", return_value=3):
            session.grotto.plant("herb-zhixue")
            session.grotto.plant("herb-zhixue")
        now[0] = 600_000
        session.grotto.harvest_all()
        herb = find_by_name(session.container.snapshot.inventory, "止血草")
        session.items.sell(herb.id, 2)

        activity = session.activity
        assert activity.count(EventTypes.HERB_PLANTED) == 2
        assert activity.herbs_harvested == 6
        assert activity.spirit_stones_spent == 100
        assert activity.spirit_stones_earned == 10
