"""인벤토리 테스트 — 추가/합치기/감소/버리기/필터"""

from dataclasses import replace

import pytest

from src.core.item.inventory import (
    UNKNOWN_ITEM_NAME,
    ItemTemplate,
    add_item_to_inventory,
    batch_discard_items,
    discard_item,
    filter_and_sort_inventory,
    get_item_category,
    grant_item,
    merge_stack,
    remove_or_decrement,
    total_quantity,
)
from src.core.item.models import (
    EquipmentSlot,
    Item,
    ItemEffect,
    ItemRarity,
    ItemType,
)
from src.core.player.models import PlayerState
from src.core.result import ErrorKind


class TestAddItem:
    def test_non_equippable_stacks(self) -> None:
        inventory = add_item_to_inventory((), ItemTemplate(name="止血草", type=ItemType.HERB), 2)
        inventory = add_item_to_inventory(inventory, ItemTemplate(name="止血草", type=ItemType.HERB), 3)
        assert len(inventory) == 1
        assert inventory[0].quantity == 5

    def test_stack_overwrites_effect(self) -> None:
        first = add_item_to_inventory(
            (), ItemTemplate(name="天元丹", type=ItemType.PILL, effect=ItemEffect(exp=10))
        )
        second = add_item_to_inventory(
            first, ItemTemplate(name="天元丹", type=ItemType.PILL, effect=ItemEffect(exp=30))
        )
        assert second[0].id == first[0].id
        assert second[0].effect == ItemEffect(exp=30)

    def test_curated_effect_applied(self) -> None:
        inventory = add_item_to_inventory(
            (), ItemTemplate(name="止血草", type=ItemType.HERB, effect=ItemEffect(hp=999))
        )
        assert inventory[0].effect == ItemEffect(hp=20)

    def test_equippable_individual_instances(self) -> None:
        inventory = add_item_to_inventory((), ItemTemplate(name="青锋剑"), 3)
        assert len(inventory) == 3
        assert all(item.quantity == 1 for item in inventory)
        assert len({item.id for item in inventory}) == 3
        assert all(item.equipment_slot == EquipmentSlot.WEAPON for item in inventory)

    def test_classifier_overrides_declared_type(self) -> None:
        inventory = add_item_to_inventory((), ItemTemplate(name="筑基丹", type=ItemType.WEAPON))
        assert inventory[0].type == ItemType.PILL
        assert inventory[0].is_equippable is False

    def test_template_slot_within_group_kept(self) -> None:
        inventory = add_item_to_inventory(
            (), ItemTemplate(name="碧玉戒指", equipment_slot=EquipmentSlot.RING3)
        )
        assert inventory[0].equipment_slot == EquipmentSlot.RING3

    def test_template_slot_from_other_group_ignored(self) -> None:
        inventory = add_item_to_inventory(
            (), ItemTemplate(name="碧玉戒指", equipment_slot=EquipmentSlot.HEAD)
        )
        assert inventory[0].type == ItemType.RING
        assert inventory[0].equipment_slot in (
            EquipmentSlot.RING1,
            EquipmentSlot.RING2,
            EquipmentSlot.RING3,
            EquipmentSlot.RING4,
        )

    def test_blank_name(self) -> None:
        inventory = add_item_to_inventory((), ItemTemplate(name="  "))
        assert inventory[0].name == UNKNOWN_ITEM_NAME

    def test_original_untouched(self) -> None:
        original = add_item_to_inventory((), ItemTemplate(name="止血草"))
        add_item_to_inventory(original, ItemTemplate(name="止血草"), 4)
        assert original[0].quantity == 1

    def test_invalid_quantity_clamped_to_one(self) -> None:
        """예외 대신 1개로 본다."""
        inventory = add_item_to_inventory((), ItemTemplate(name="玄铁"), 0)
        assert inventory[0].quantity == 1
        assert add_item_to_inventory((), ItemTemplate(name="玄铁"), -5)[0].quantity == 1


class TestGrantItem:
    def test_reports_touched_ids(self, player: PlayerState) -> None:
        result = grant_item(player, ItemTemplate(name="青锋剑"), 2)
        assert result.success
        assert len(result.data["item_ids"]) == 2
        assert result.messages == ("获得了 青锋剑 x2。",)

    def test_stacked_id_reported(self, player: PlayerState) -> None:
        first = grant_item(player, ItemTemplate(name="止血草"), 1)
        second = grant_item(first.state, ItemTemplate(name="止血草"), 2)
        assert second.data["item_ids"] == first.data["item_ids"]
        assert total_quantity(second.state.inventory, "止血草") == 3

    def test_zero_quantity_rejected(self, player: PlayerState) -> None:
        result = grant_item(player, ItemTemplate(name="止血草"), 0)
        assert result.rejection.kind == ErrorKind.INVALID_TARGET
        assert result.state is player


class TestMergeStack:
    def test_matches_name_and_type(self) -> None:
        herb = Item(id="h", name="止血草", type=ItemType.HERB, quantity=2)
        inventory = merge_stack((herb,), "止血草", ItemType.HERB, 3, ItemRarity.COMMON, "")
        assert inventory[0].quantity == 5

    def test_different_type_new_stack(self) -> None:
        herb = Item(id="h", name="止血草", type=ItemType.MATERIAL)
        inventory = merge_stack((herb,), "止血草", ItemType.HERB, 3, ItemRarity.RARE, "desc")
        assert len(inventory) == 2
        assert inventory[1].rarity == ItemRarity.RARE
        assert inventory[1].description == "desc"


class TestRemove:
    @pytest.fixture()
    def holder(self, player: PlayerState) -> PlayerState:
        herb = Item(id="h", name="止血草", type=ItemType.HERB, quantity=3)
        sword = Item(
            id="s", name="青锋剑", type=ItemType.WEAPON,
            is_equippable=True, equipment_slot=EquipmentSlot.WEAPON,
        )
        return replace(
            player, inventory=(herb, sword), equipped_items={EquipmentSlot.WEAPON: "s"}
        )

    def test_decrement(self, holder: PlayerState) -> None:
        result = remove_or_decrement(holder, "h", 2)
        assert result.state.find_item("h").quantity == 1

    def test_zero_removes_entry(self, holder: PlayerState) -> None:
        result = remove_or_decrement(holder, "h", 3)
        assert result.state.find_item("h") is None
        assert [i.id for i in result.state.inventory] == ["s"]

    def test_equipped_is_invalid_state(self, holder: PlayerState) -> None:
        result = remove_or_decrement(holder, "s")
        assert result.rejection.kind == ErrorKind.INVALID_STATE
        assert result.rejection.message == "无法丢弃已装备的物品！请先卸下。"
        assert result.state is holder

    def test_insufficient(self, holder: PlayerState) -> None:
        result = remove_or_decrement(holder, "h", 4)
        assert result.rejection.kind == ErrorKind.INSUFFICIENT_RESOURCE
        assert result.rejection.details == {
            "resource": "止血草",
            "required": 4,
            "available": 3,
            "missing": 1,
        }

    def test_unknown(self, holder: PlayerState) -> None:
        assert remove_or_decrement(holder, "x").rejection.kind == ErrorKind.INVALID_TARGET

    def test_discard_whole_stack(self, holder: PlayerState) -> None:
        result = discard_item(holder, "h")
        assert result.success
        assert result.state.find_item("h") is None
        assert result.data["amount"] == 3

    def test_discard_equipped(self, holder: PlayerState) -> None:
        assert discard_item(holder, "s").rejection.kind == ErrorKind.INVALID_STATE


class TestBatchDiscard:
    @pytest.fixture()
    def bag(self, player: PlayerState) -> PlayerState:
        herb = Item(id="h", name="止血草", type=ItemType.HERB, quantity=3)
        ore = Item(id="o", name="玄铁", type=ItemType.MATERIAL, quantity=2)
        spare = Item(
            id="r", name="碧玉戒指", type=ItemType.RING,
            is_equippable=True, equipment_slot=EquipmentSlot.RING1,
        )
        sword = Item(
            id="s", name="青锋剑", type=ItemType.WEAPON,
            is_equippable=True, equipment_slot=EquipmentSlot.WEAPON,
        )
        return replace(
            player, inventory=(herb, ore, spare, sword), equipped_items={EquipmentSlot.WEAPON: "s"}
        )

    def test_discards_selected_stacks(self, bag: PlayerState) -> None:
        result = batch_discard_items(bag, ["h", "r", "h"])
        assert result.success
        assert [i.id for i in result.state.inventory] == ["o", "s"]
        assert result.messages == ("你丢弃了 2 种物品，共 4 件。",)
        assert result.data == {"item_ids": ["h", "r"], "total_quantity": 4}

    def test_equipped_id_rejects_whole_batch(self, bag: PlayerState) -> None:
        result = batch_discard_items(bag, ["h", "s"])
        assert result.rejection.kind == ErrorKind.INVALID_STATE
        assert result.rejection.details == {"item_ids": ["s"]}
        assert result.state is bag

    def test_unknown_id_rejects_whole_batch(self, bag: PlayerState) -> None:
        result = batch_discard_items(bag, ["h", "ghost"])
        assert result.rejection.kind == ErrorKind.INVALID_TARGET
        assert result.rejection.details == {"item_ids": ["ghost"]}
        assert result.state is bag

    def test_empty_selection(self, bag: PlayerState) -> None:
        assert batch_discard_items(bag, []).rejection.kind == ErrorKind.INVALID_TARGET


class TestFilterAndSort:
    @pytest.fixture()
    def inventory(self) -> tuple[Item, ...]:
        return (
            Item(id="1", name="止血草", type=ItemType.HERB),
            Item(id="2", name="筑基丹", type=ItemType.PILL, rarity=ItemRarity.RARE),
            Item(id="3", name="回春丹方", type=ItemType.RECIPE),
            Item(id="4", name="碧玉戒指", type=ItemType.RING, rarity=ItemRarity.LEGENDARY,
                 is_equippable=True, equipment_slot=EquipmentSlot.RING2),
            Item(id="5", name="青锋剑", type=ItemType.WEAPON,
                 is_equippable=True, equipment_slot=EquipmentSlot.WEAPON),
        )

    def test_categories(self, inventory) -> None:
        assert [get_item_category(i) for i in inventory] == [
            "consumable", "pill", "recipe", "equipment", "equipment",
        ]

    def test_sorted_by_rarity_desc(self, inventory) -> None:
        ids = [i.id for i in filter_and_sort_inventory(inventory)]
        assert ids[:2] == ["4", "2"]

    def test_slot_group_filter(self, inventory) -> None:
        result = filter_and_sort_inventory(inventory, "equipment", EquipmentSlot.RING4)
        assert [i.id for i in result] == ["4"]

    def test_unsorted_keeps_order(self, inventory) -> None:
        result = filter_and_sort_inventory(inventory, "all", sort_by_rarity=False)
        assert [i.id for i in result] == ["1", "2", "3", "4", "5"]

    def test_unknown_category_falls_back_to_all(self, inventory) -> None:
        assert filter_and_sort_inventory(inventory, "weapons") == filter_and_sort_inventory(inventory)
