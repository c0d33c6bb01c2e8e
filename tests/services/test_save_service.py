"""SaveService 통합 테스트 (인메모리 SQLite)"""

from dataclasses import replace
from datetime import datetime

import pytest

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_log import GameLog
from src.core.grotto.models import GrottoState, PlantedHerb
from src.core.item.models import Item, ItemType
from src.core.player.models import PlayerState
from src.db.models import SaveSlotModel
from src.services.save_service import SaveService


@pytest.fixture()
def setup(db_session, event_bus: EventBus):
    events: list[GameEvent] = []
    event_bus.subscribe(EventTypes.GAME_SAVED, events.append)
    event_bus.subscribe(EventTypes.GAME_LOADED, events.append)
    return SaveService(db_session, event_bus, max_logs=3), events


class TestSaveLoad:
    def test_round_trip(self, setup, player: PlayerState, game_log: GameLog) -> None:
        service, events = setup
        state = replace(
            player,
            inventory=(Item(id="h", name="止血草", type=ItemType.HERB, quantity=2),),
            grotto=GrottoState(
                level=1,
                planted_herbs=(PlantedHerb("herb-zhixue", "止血草", 0, 600_000, 3),),
            ),
        )
        game_log.add("第一条", timestamp=1)
        game_log.add("第二条", "gain", timestamp=2)

        info = service.save(1, state, game_log.entries)
        assert info.player_name == "韩立"
        assert info.realm == "炼气期"

        loaded = service.load(1)
        assert loaded.state == state
        assert [e.text for e in loaded.logs] == ["第一条", "第二条"]
        assert loaded.saved_at == info.saved_at
        assert [e.event_type for e in events] == [EventTypes.GAME_SAVED, EventTypes.GAME_LOADED]

    def test_logs_trimmed_to_most_recent(self, setup, player: PlayerState, game_log: GameLog) -> None:
        service, _ = setup
        for i in range(5):
            game_log.add(str(i))
        service.save(1, player, game_log.entries)
        assert [e.text for e in service.load(1).logs] == ["2", "3", "4"]

    def test_overwrite(self, setup, player: PlayerState) -> None:
        service, _ = setup
        service.save(1, player)
        service.save(1, replace(player, spirit_stones=5))
        assert len(service.list_slots()) == 1
        assert service.load(1).state.spirit_stones == 5

    def test_empty_slot(self, setup) -> None:
        service, events = setup
        assert service.load(9) is None
        assert events == []


class TestSlots:
    def test_list_sorted(self, setup, player: PlayerState) -> None:
        service, _ = setup
        service.save(3, player)
        service.save(1, replace(player, name="厉飞雨", realm="筑基期"))
        slots = service.list_slots()
        assert [s.slot_id for s in slots] == [1, 3]
        assert slots[0].player_name == "厉飞雨"
        assert slots[0].realm == "筑基期"

    def test_delete(self, setup, player: PlayerState) -> None:
        service, _ = setup
        service.save(1, player)
        assert service.delete(1) is True
        assert service.delete(1) is False
        assert service.list_slots() == []

    def test_export_snapshot(self, setup, player: PlayerState) -> None:
        service, _ = setup
        service.save(2, player)
        snapshot = service.export_snapshot(2)
        assert snapshot["slot_id"] == 2
        assert snapshot["player"]["name"] == "韩立"
        assert service.export_snapshot(5) is None


class TestLegacySnapshot:
    def test_missing_fields_synthesized(self, setup, db_session) -> None:
        service, _ = setup
        db_session.add(
            SaveSlotModel(
                slot_id=7,
                player_name="老玩家",
                realm="炼气期",
                player_data={
                    "name": "老玩家",
                    "spiritStones": 88,
                    "spiritualRoots": {"metal": 3},
                    "unlockedRecipes": ["回血丹"],
                },
                logs=[{"text": "旧日志"}, "junk"],
                saved_at=datetime(2024, 1, 1),
            )
        )
        db_session.commit()

        loaded = service.load(7)
        assert loaded.state.spirit_stones == 88
        assert loaded.state.grotto == GrottoState()
        assert loaded.state.statistics.recipe_count == 1
        assert loaded.state.spiritual_roots.metal == 3
        assert [e.text for e in loaded.logs] == ["旧日志"]
