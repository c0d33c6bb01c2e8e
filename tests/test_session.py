"""GameSession 조립 테스트 — 서비스가 같은 컨테이너를 공유하는지"""

from src.core.item.inventory import ItemTemplate
from src.core.item.models import ItemType
from src.main import create_session, load_game_data
from src.services.ai import MockProvider


class TestCreateSession:
    def test_services_share_state(self, db_session, player, small_data) -> None:
        session = create_session(
            db_session, player=player, data=small_data, provider=MockProvider(), clock=lambda: 0
        )
        session.grotto.upgrade(1)
        session.items.grant(ItemTemplate(name="止血草", type=ItemType.HERB), 2)
        session.grotto.plant("herb-zhixue")

        state = session.container.snapshot
        assert state.grotto.level == 1
        assert len(state.grotto.planted_herbs) == 1
        assert state.inventory[0].quantity == 1

    def test_save_and_load(self, db_session, player, small_data) -> None:
        session = create_session(db_session, player=player, data=small_data, provider=MockProvider())
        session.encounters.resolve()
        session.save(2)

        other = create_session(db_session, data=small_data, provider=MockProvider())
        assert other.load(2) is True
        assert other.container.snapshot == session.container.snapshot
        assert [e.text for e in other.game_log.entries] == [
            e.text for e in session.game_log.entries
        ]

    def test_load_empty_slot(self, db_session, small_data) -> None:
        session = create_session(db_session, data=small_data, provider=MockProvider())
        assert session.load(3) is False


class TestLoadGameData:
    def test_shipped_file(self) -> None:
        data = load_game_data()
        assert data.get_grotto_config(1).name == "简陋洞府"
