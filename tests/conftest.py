"""Shared test fixtures."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.event_bus import EventBus
from src.core.game_data import GameDataRegistry
from src.core.game_log import GameLog
from src.core.grotto.models import (
    EnhancementMaterial,
    GrottoConfig,
    PlantableHerb,
    SpiritArrayEnhancement,
)
from src.core.item.models import ItemRarity
from src.core.player.models import PetTemplate, PlayerState, SpiritualRootValues
from src.db.models import Base

GAME_DATA_PATH = Path(__file__).resolve().parent.parent / "src" / "data" / "game_data.json"


@pytest.fixture()
def db_session() -> Session:
    """In-memory SQLite session with the save-slot tables created."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def game_data() -> GameDataRegistry:
    """출시 데이터(src/data/game_data.json)."""
    data = GameDataRegistry()
    data.load_from_json(GAME_DATA_PATH)
    return data


@pytest.fixture()
def small_data() -> GameDataRegistry:
    """테스트 전용 작은 설정 테이블.

    level 3 은 일부러 슬롯이 1개 (승급 시 잘라내기 확인용).
    """
    data = GameDataRegistry()
    data.register_grotto_config(
        GrottoConfig(level=1, name="简陋洞府", cost=100, exp_rate_bonus=0.05,
                     storage_capacity=5, max_herb_slots=2)
    )
    data.register_grotto_config(
        GrottoConfig(level=2, name="普通洞府", cost=300, exp_rate_bonus=0.1,
                     storage_capacity=10, max_herb_slots=3, realm_requirement="筑基期")
    )
    data.register_grotto_config(
        GrottoConfig(level=3, name="闭关小室", cost=50, exp_rate_bonus=0.2,
                     storage_capacity=3, max_herb_slots=1)
    )
    data.register_herb(
        PlantableHerb(id="herb-zhixue", name="止血草", growth_time=600_000,
                      harvest_min=2, harvest_max=5, rarity=ItemRarity.COMMON)
    )
    data.register_herb(
        PlantableHerb(id="herb-ningshen", name="凝神花", growth_time=3_600_000,
                      harvest_min=1, harvest_max=3, rarity=ItemRarity.RARE,
                      grotto_level_requirement=2)
    )
    data.register_enhancement(
        SpiritArrayEnhancement(id="array-a", name="初级聚灵阵", grotto_level_requirement=1,
                               exp_rate_bonus=0.05,
                               materials=(EnhancementMaterial("聚灵草", 2),))
    )
    data.register_enhancement(
        SpiritArrayEnhancement(id="array-b", name="中级聚灵阵", grotto_level_requirement=1,
                               exp_rate_bonus=0.08,
                               materials=(EnhancementMaterial("聚灵草", 3),
                                          EnhancementMaterial("玄铁", 1)))
    )
    data.register_enhancement(
        SpiritArrayEnhancement(id="array-high", name="高级聚灵阵", grotto_level_requirement=2,
                               exp_rate_bonus=0.15, materials=())
    )
    data.register_pet_template(
        PetTemplate(species="灵狐", rarity=ItemRarity.COMMON, base_stats={"attack": 10},
                    skills=("魅惑",), names=("小白",))
    )
    data.register_pet_template(
        PetTemplate(species="雷鹰", rarity=ItemRarity.RARE, base_stats={"attack": 25},
                    skills=("雷击",), names=("惊雷",))
    )
    data.register_pet_template(
        PetTemplate(species="九尾天狐", rarity=ItemRarity.IMMORTAL, base_stats={"attack": 120},
                    skills=("九尾幻术",), names=("青丘",))
    )
    data.register_recipe("回血丹")
    data.register_recipe("筑基丹")
    return data


@pytest.fixture()
def player() -> PlayerState:
    """灵根 고정된 炼气期 캐릭터 (무작위 없음)."""
    return PlayerState(
        name="韩立",
        spirit_stones=1000,
        spiritual_roots=SpiritualRootValues(metal=10, wood=10, water=10, fire=10, earth=10),
    )


@pytest.fixture()
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def game_log() -> GameLog:
    return GameLog(max_entries=50)
