"""洞府 전이 테스트 — 구매/승급, 种植/收获, 聚灵阵"""

from dataclasses import replace
from unittest.mock import patch

import pytest

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
    truncate_planted_herbs,
    upgrade_grotto,
)
from src.core.grotto.models import (
    EnhancementMaterial,
    GrottoState,
    PlantedHerb,
    SpiritArrayEnhancement,
)
from src.core.item.inventory import find_by_name
from src.core.item.models import EquipmentSlot, Item, ItemRarity, ItemType
from src.core.player.models import PlayerState
from src.core.result import ErrorKind

GROWTH = 600_000


def _planted(name: str, plant_time: int, harvest_time: int, quantity: int = 2) -> PlantedHerb:
    return PlantedHerb(
        herb_id="herb-zhixue",
        herb_name=name,
        plant_time=plant_time,
        harvest_time=harvest_time,
        quantity=quantity,
    )


def _seeds(name: str = "止血草", quantity: int = 3) -> Item:
    return Item(id=f"seed-{name}", name=name, type=ItemType.HERB, quantity=quantity)


@pytest.fixture()
def owner(player: PlayerState, small_data) -> PlayerState:
    """1级 洞府 + 止血草 씨앗 3개."""
    state = upgrade_grotto(player, 1, small_data).state
    return replace(state, inventory=(_seeds(),))


class TestQueries:
    def test_mature_boundary_inclusive(self) -> None:
        herb = _planted("止血草", 0, GROWTH)
        assert not is_mature(herb, GROWTH - 1)
        assert is_mature(herb, GROWTH)

    def test_remaining_minutes_rounds_up(self) -> None:
        herb = _planted("止血草", 0, GROWTH)
        assert remaining_minutes(herb, GROWTH - 1) == 1
        assert remaining_minutes(herb, 0) == 10
        assert remaining_minutes(herb, GROWTH + 5) == 0

    def test_count_mature(self) -> None:
        grotto = GrottoState(
            level=1,
            planted_herbs=(_planted("a", 0, 100), _planted("b", 0, 200), _planted("c", 0, 300)),
        )
        assert count_mature(grotto, 200) == 2

    def test_max_slots_for_unowned(self, small_data) -> None:
        assert max_herb_slots(0, small_data) == 0
        assert max_herb_slots(2, small_data) == 3

    def test_total_bonus(self) -> None:
        grotto = GrottoState(level=1, exp_rate_bonus=0.05, spirit_array_enhancement=0.13)
        assert total_exp_rate_bonus(grotto) == pytest.approx(0.18)

    def test_available_upgrades_filters_realm(self, player: PlayerState, small_data) -> None:
        levels = [c.level for c in available_upgrades(player, small_data)]
        assert levels == [1, 3]
        promoted = replace(player, realm="筑基期")
        assert [c.level for c in available_upgrades(promoted, small_data)] == [1, 2, 3]

    def test_available_herbs_needs_seed_and_level(self, owner: PlayerState, small_data) -> None:
        assert [h.id for h in available_herbs(owner, small_data)] == ["herb-zhixue"]
        no_seed = replace(owner, inventory=())
        assert available_herbs(no_seed, small_data) == []

    def test_truncate_keeps_newest(self) -> None:
        herbs = (_planted("old", 0, 1), _planted("mid", 1, 2), _planted("new", 2, 3))
        remaining, removed = truncate_planted_herbs(herbs, 1)
        assert [h.herb_name for h in remaining] == ["new"]
        assert removed == 2
        assert truncate_planted_herbs(herbs, 5) == (herbs, 0)


class TestUpgrade:
    def test_purchase(self, player: PlayerState, small_data) -> None:
        result = upgrade_grotto(player, 1, small_data)
        assert result.success
        assert result.state.spirit_stones == 900
        assert result.state.grotto.level == 1
        assert result.state.grotto.exp_rate_bonus == pytest.approx(0.05)
        assert result.state.grotto.storage_capacity == 5
        assert result.data["removed_herbs"] == 0

    def test_downgrade_rejected(self, player: PlayerState, small_data) -> None:
        state = replace(
            player,
            grotto=GrottoState(
                level=2,
                planted_herbs=tuple(_planted(str(i), i, i + GROWTH) for i in range(3)),
            ),
        )
        result = upgrade_grotto(state, 1, small_data)
        assert result.rejection.kind == ErrorKind.INVALID_STATE
        assert result.rejection.message == "无法降级洞府！"
        assert result.state is state

    def test_same_level_rejected(self, owner: PlayerState, small_data) -> None:
        assert upgrade_grotto(owner, 1, small_data).rejection.kind == ErrorKind.INVALID_STATE

    def test_upgrade_truncates_oldest(self, owner: PlayerState, small_data) -> None:
        state = replace(
            owner,
            grotto=replace(
                owner.grotto,
                planted_herbs=(_planted("old", 0, GROWTH), _planted("new", 10, 10 + GROWTH)),
            ),
        )
        result = upgrade_grotto(state, 3, small_data)
        assert result.success
        assert [h.herb_name for h in result.state.grotto.planted_herbs] == ["new"]
        assert result.data["removed_herbs"] == 1
        assert result.messages[0] == "升级洞府时，移除了 1 个灵草种植槽位。"

    def test_unknown_level(self, player: PlayerState, small_data) -> None:
        assert upgrade_grotto(player, 9, small_data).rejection.kind == ErrorKind.INVALID_TARGET

    def test_realm_requirement(self, player: PlayerState, small_data) -> None:
        result = upgrade_grotto(player, 2, small_data)
        assert result.rejection.kind == ErrorKind.REQUIREMENT_NOT_MET
        promoted = replace(player, realm="筑基期")
        assert upgrade_grotto(promoted, 2, small_data).success

    def test_not_enough_stones(self, player: PlayerState, small_data) -> None:
        poor = replace(player, spirit_stones=40)
        result = upgrade_grotto(poor, 1, small_data)
        assert result.rejection.kind == ErrorKind.INSUFFICIENT_RESOURCE
        assert result.rejection.details["missing"] == 60
        assert result.state is poor


class TestPlantAndHarvest:
    def test_harvest_one_tick_early_then_on_time(self, owner: PlayerState, small_data) -> None:
        with patch("src.core.grotto.logic.random.randint", return_value=4) as randint:
            planted = plant_herb(owner, "herb-zhixue", small_data, now=0)
        randint.assert_called_once_with(2, 5)
        assert planted.success
        assert planted.data["harvest_time"] == GROWTH
        assert planted.state.find_item("seed-止血草").quantity == 2

        early = harvest_herb(planted.state, 0, small_data, now=GROWTH - 1)
        assert early.rejection.kind == ErrorKind.NOT_YET_READY
        assert early.rejection.details["remaining_minutes"] == 1
        assert early.rejection.message == "灵草还未成熟！还需 1 分钟。"

        done = harvest_herb(planted.state, 0, small_data, now=GROWTH)
        assert done.success
        assert done.state.grotto.planted_herbs == ()
        assert done.state.grotto.last_harvest_time == GROWTH
        # 남은 씨앗 2 + 수확 4
        assert find_by_name(done.state.inventory, "止血草", ItemType.HERB).quantity == 6

    def test_quantity_within_bounds(self, owner: PlayerState, small_data) -> None:
        state = plant_herb(owner, "herb-zhixue", small_data, now=0).state
        state = plant_herb(state, "herb-zhixue", small_data, now=1).state
        assert len(state.grotto.planted_herbs) == 2
        for herb in state.grotto.planted_herbs:
            assert 2 <= herb.quantity <= 5

    def test_slots_full(self, owner: PlayerState, small_data) -> None:
        state = plant_herb(owner, "herb-zhixue", small_data, now=0).state
        state = plant_herb(state, "herb-zhixue", small_data, now=1).state
        result = plant_herb(state, "herb-zhixue", small_data, now=2)
        assert result.rejection.kind == ErrorKind.CAPACITY_EXCEEDED
        assert len(result.state.grotto.planted_herbs) == 2

    def test_plant_without_grotto(self, player: PlayerState, small_data) -> None:
        state = replace(player, inventory=(_seeds(),))
        result = plant_herb(state, "herb-zhixue", small_data, now=0)
        assert result.rejection.kind == ErrorKind.INVALID_STATE
        assert result.rejection.message == "请先购买洞府！"

    def test_plant_unknown_herb(self, owner: PlayerState, small_data) -> None:
        assert plant_herb(owner, "nope", small_data, 0).rejection.kind == ErrorKind.INVALID_TARGET

    def test_plant_level_requirement(self, owner: PlayerState, small_data) -> None:
        state = replace(owner, inventory=(_seeds("凝神花"),))
        result = plant_herb(state, "herb-ningshen", small_data, 0)
        assert result.rejection.kind == ErrorKind.REQUIREMENT_NOT_MET

    def test_plant_without_seed(self, owner: PlayerState, small_data) -> None:
        state = replace(owner, inventory=())
        result = plant_herb(state, "herb-zhixue", small_data, 0)
        assert result.rejection.kind == ErrorKind.INSUFFICIENT_RESOURCE
        assert result.rejection.details["available"] == 0

    def test_seed_must_be_herb_type(self, owner: PlayerState, small_data) -> None:
        fake = Item(id="m", name="止血草", type=ItemType.MATERIAL)
        state = replace(owner, inventory=(fake,))
        result = plant_herb(state, "herb-zhixue", small_data, 0)
        assert result.rejection.kind == ErrorKind.INSUFFICIENT_RESOURCE

    def test_harvest_bad_index(self, owner: PlayerState, small_data) -> None:
        assert harvest_herb(owner, 0, small_data, 0).rejection.kind == ErrorKind.INVALID_TARGET
        assert harvest_herb(owner, -1, small_data, 0).rejection.kind == ErrorKind.INVALID_TARGET

    def test_harvest_new_stack_uses_config_rarity(self, owner: PlayerState, small_data) -> None:
        grotto = replace(
            owner.grotto,
            planted_herbs=(
                PlantedHerb("herb-ningshen", "凝神花", 0, 10, 2),
            ),
        )
        result = harvest_herb(replace(owner, grotto=grotto), 0, small_data, 10)
        harvested = find_by_name(result.state.inventory, "凝神花", ItemType.HERB)
        assert harvested.quantity == 2
        assert harvested.rarity == ItemRarity.RARE
        assert harvested.description == "凝神花，可用于炼丹。"


class TestHarvestAll:
    def test_only_mature_harvested(self, owner: PlayerState, small_data) -> None:
        grotto = replace(
            owner.grotto,
            planted_herbs=(
                _planted("止血草", 0, 100, 2),
                _planted("止血草", 0, 500, 3),
                _planted("止血草", 0, 200, 4),
            ),
        )
        result = harvest_all(replace(owner, grotto=grotto), small_data, now=300)
        assert result.success
        assert result.data == {"harvested_count": 2, "total_quantity": 6}
        assert [h.harvest_time for h in result.state.grotto.planted_herbs] == [500]
        assert find_by_name(result.state.inventory, "止血草").quantity == 3 + 6

    def test_nothing_mature(self, owner: PlayerState, small_data) -> None:
        grotto = replace(owner.grotto, planted_herbs=(_planted("止血草", 0, 100),))
        state = replace(owner, grotto=grotto)
        result = harvest_all(state, small_data, now=50)
        assert result.rejection.kind == ErrorKind.NOT_YET_READY
        assert result.state is state


class TestSpiritArray:
    def _materials(self) -> tuple[Item, ...]:
        return (
            Item(id="jl", name="聚灵草", type=ItemType.HERB, quantity=5),
            Item(id="xt", name="玄铁", type=ItemType.MATERIAL, quantity=1),
        )

    def test_bonuses_stack(self, owner: PlayerState, small_data) -> None:
        state = replace(owner, inventory=self._materials())
        first = enhance_spirit_array(state, "array-a", small_data)
        second = enhance_spirit_array(first.state, "array-b", small_data)
        assert second.success
        assert second.state.grotto.spirit_array_enhancement == pytest.approx(0.13)
        assert second.state.find_item("jl") is None
        assert second.state.find_item("xt") is None

    def test_same_enhancement_twice_accumulates(self, owner: PlayerState, small_data) -> None:
        state = replace(owner, inventory=self._materials())
        state = enhance_spirit_array(state, "array-a", small_data).state
        state = enhance_spirit_array(state, "array-a", small_data).state
        assert state.grotto.spirit_array_enhancement == pytest.approx(0.10)

    def test_missing_material(self, owner: PlayerState, small_data) -> None:
        state = replace(owner, inventory=(Item(id="jl", name="聚灵草", type=ItemType.HERB, quantity=3),))
        result = enhance_spirit_array(state, "array-b", small_data)
        assert result.rejection.kind == ErrorKind.INSUFFICIENT_RESOURCE
        assert result.rejection.details["resource"] == "玄铁"
        assert result.state is state

    def test_level_requirement(self, owner: PlayerState, small_data) -> None:
        result = enhance_spirit_array(owner, "array-high", small_data)
        assert result.rejection.kind == ErrorKind.REQUIREMENT_NOT_MET

    def test_not_owned(self, player: PlayerState, small_data) -> None:
        assert enhance_spirit_array(player, "array-a", small_data).rejection.kind == ErrorKind.INVALID_STATE

    def test_unknown(self, owner: PlayerState, small_data) -> None:
        assert enhance_spirit_array(owner, "x", small_data).rejection.kind == ErrorKind.INVALID_TARGET

    def test_repeated_material_checked_against_total(self, owner: PlayerState, small_data) -> None:
        """같은 재료가 두 번 나열되면 합계(6)로 판정."""
        small_data.register_enhancement(
            SpiritArrayEnhancement(
                id="array-double", name="双草阵", grotto_level_requirement=1, exp_rate_bonus=0.05,
                materials=(EnhancementMaterial("聚灵草", 3), EnhancementMaterial("聚灵草", 3)),
            )
        )
        state = replace(owner, inventory=(Item(id="jl", name="聚灵草", type=ItemType.HERB, quantity=4),))
        result = enhance_spirit_array(state, "array-double", small_data)
        assert result.rejection.kind == ErrorKind.INSUFFICIENT_RESOURCE
        assert result.rejection.details == {
            "resource": "聚灵草", "required": 6, "available": 4, "missing": 2,
        }
        assert result.state is state

    def test_repeated_material_charged_in_full(self, owner: PlayerState, small_data) -> None:
        small_data.register_enhancement(
            SpiritArrayEnhancement(
                id="array-double", name="双草阵", grotto_level_requirement=1, exp_rate_bonus=0.05,
                materials=(EnhancementMaterial("聚灵草", 3), EnhancementMaterial("聚灵草", 3)),
            )
        )
        state = replace(owner, inventory=(Item(id="jl", name="聚灵草", type=ItemType.HERB, quantity=7),))
        result = enhance_spirit_array(state, "array-double", small_data)
        assert result.success
        assert result.state.find_item("jl").quantity == 1


class TestSpiritArrayEquippedMaterial:
    """장착 중인 개체는 재료로 소모되지 않는다."""

    @pytest.fixture()
    def jade_data(self, small_data):
        small_data.register_enhancement(
            SpiritArrayEnhancement(
                id="array-jade", name="玉佩阵", grotto_level_requirement=1, exp_rate_bonus=0.05,
                materials=(EnhancementMaterial("青玉佩", 1),),
            )
        )
        return small_data

    @staticmethod
    def _jade(item_id: str) -> Item:
        return Item(
            id=item_id, name="青玉佩", type=ItemType.ACCESSORY,
            is_equippable=True, equipment_slot=EquipmentSlot.ACCESSORY1,
        )

    def test_spare_consumed_worn_kept(self, owner: PlayerState, jade_data) -> None:
        state = replace(
            owner,
            inventory=(self._jade("worn"), self._jade("spare")),
            equipped_items={EquipmentSlot.ACCESSORY1: "worn"},
        )
        result = enhance_spirit_array(state, "array-jade", jade_data)
        assert result.success
        assert [i.id for i in result.state.inventory] == ["worn"]
        assert result.state.equipped_items == {EquipmentSlot.ACCESSORY1: "worn"}

    def test_only_worn_copy_rejected(self, owner: PlayerState, jade_data) -> None:
        state = replace(
            owner,
            inventory=(self._jade("worn"),),
            equipped_items={EquipmentSlot.ACCESSORY1: "worn"},
        )
        result = enhance_spirit_array(state, "array-jade", jade_data)
        assert result.rejection.kind == ErrorKind.INSUFFICIENT_RESOURCE
        assert result.rejection.details["available"] == 0
        assert result.state is state
