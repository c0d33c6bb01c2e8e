"""장착 관리 — 슬롯 그룹, 빈 슬롯 탐색, 장착/해제, 本命法宝

슬롯 그룹은 조회 관계일 뿐이다: 戒指1~4 는 화면 필터에서 하나의 분류로 묶인다.
equipped_items 의 id 는 약한 참조다. 인벤토리에 없으면 stale 로 보고 무시한다.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Mapping, Optional

from src.core.result import ErrorKind, Rejection, TransitionResult

from .models import EquipmentSlot, Item, ItemType

if TYPE_CHECKING:
    from src.core.player.models import PlayerState

logger = logging.getLogger(__name__)

SLOT_GROUPS: dict[str, tuple[EquipmentSlot, ...]] = {
    "weapon": (EquipmentSlot.WEAPON,),
    "head": (EquipmentSlot.HEAD,),
    "shoulder": (EquipmentSlot.SHOULDER,),
    "chest": (EquipmentSlot.CHEST,),
    "gloves": (EquipmentSlot.GLOVES,),
    "legs": (EquipmentSlot.LEGS,),
    "boots": (EquipmentSlot.BOOTS,),
    "ring": (
        EquipmentSlot.RING1,
        EquipmentSlot.RING2,
        EquipmentSlot.RING3,
        EquipmentSlot.RING4,
    ),
    "accessory": (EquipmentSlot.ACCESSORY1, EquipmentSlot.ACCESSORY2),
    "artifact": (EquipmentSlot.ARTIFACT1, EquipmentSlot.ARTIFACT2),
}

_GROUP_BY_SLOT: dict[EquipmentSlot, str] = {
    slot: group for group, slots in SLOT_GROUPS.items() for slot in slots
}


def get_slot_group(slot: EquipmentSlot) -> tuple[EquipmentSlot, ...]:
    return SLOT_GROUPS[_GROUP_BY_SLOT[slot]]


def are_slots_in_same_group(a: EquipmentSlot, b: EquipmentSlot) -> bool:
    return _GROUP_BY_SLOT[a] == _GROUP_BY_SLOT[b]


def find_item_equipped_slot(
    item_id: str, equipped_items: Mapping[EquipmentSlot, str]
) -> Optional[EquipmentSlot]:
    for slot, equipped_id in equipped_items.items():
        if equipped_id == item_id:
            return slot
    return None


def is_item_equipped(item_id: str, equipped_items: Mapping[EquipmentSlot, str]) -> bool:
    return find_item_equipped_slot(item_id, equipped_items) is not None


def find_empty_equipment_slot(
    item: Item, equipped_items: Mapping[EquipmentSlot, str]
) -> Optional[EquipmentSlot]:
    """장착할 슬롯 선택.

    자기 슬롯이 비었으면 그 슬롯, 아니면 같은 그룹의 첫 빈 슬롯,
    모두 찼으면 자기 슬롯(교체). 장비가 아니면 None.
    """
    if not item.is_equippable or item.equipment_slot is None:
        return None
    if item.equipment_slot not in equipped_items:
        return item.equipment_slot
    for slot in get_slot_group(item.equipment_slot):
        if slot not in equipped_items:
            return slot
    return item.equipment_slot


def resolve_equipped_items(state: "PlayerState") -> dict[EquipmentSlot, Item]:
    """slot → Item. 인벤토리에서 찾을 수 없는 id 는 제외."""
    by_id = {item.id: item for item in state.inventory}
    resolved = {}
    for slot, item_id in state.equipped_items.items():
        item = by_id.get(item_id)
        if item is not None:
            resolved[slot] = item
    return resolved


def equip_item(
    state: "PlayerState", item_id: str, slot: Optional[EquipmentSlot] = None
) -> TransitionResult["PlayerState"]:
    """장착. slot 생략 시 find_empty_equipment_slot 으로 결정.

    다른 슬롯에 이미 끼워져 있던 같은 아이템은 그 슬롯에서 빠진다.
    """
    item = state.find_item(item_id)
    if item is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "物品不存在！", {"item_id": item_id})
        )
    if not item.is_equippable or item.equipment_slot is None:
        return TransitionResult.reject(
            state,
            Rejection(ErrorKind.INVALID_STATE, f"{item.name}无法装备！", {"item_id": item_id}),
        )

    target = slot or find_empty_equipment_slot(item, state.equipped_items)
    if target is None or not are_slots_in_same_group(target, item.equipment_slot):
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.INVALID_TARGET,
                f"{item.name}不能装备在该部位！",
                {"item_id": item_id, "slot": target.value if target else None},
            ),
        )

    equipped = {s: i for s, i in state.equipped_items.items() if i != item_id}
    replaced_id = equipped.get(target)
    equipped[target] = item_id

    new_state = replace(
        state,
        equipped_items=equipped,
        statistics=replace(state.statistics, equip_count=state.statistics.equip_count + 1),
    )
    return TransitionResult.ok(
        new_state,
        f"你装备了{item.name}。",
        item_id=item_id,
        slot=target.value,
        replaced_id=replaced_id,
    )


def unequip_item(state: "PlayerState", slot: EquipmentSlot) -> TransitionResult["PlayerState"]:
    item_id = state.equipped_items.get(slot)
    if item_id is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "该部位没有装备！", {"slot": slot.value})
        )
    equipped = dict(state.equipped_items)
    del equipped[slot]
    item = state.find_item(item_id)
    name = item.name if item else item_id
    return TransitionResult.ok(
        replace(state, equipped_items=equipped),
        f"你卸下了{name}。",
        item_id=item_id,
        slot=slot.value,
    )


def refine_natal_artifact(state: "PlayerState", item_id: str) -> TransitionResult["PlayerState"]:
    """本命法宝 祭炼. 法宝만 가능, 동시에 하나."""
    item = state.find_item(item_id)
    if item is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "物品不存在！", {"item_id": item_id})
        )
    if item.type != ItemType.ARTIFACT:
        return TransitionResult.reject(
            state,
            Rejection(ErrorKind.INVALID_STATE, "只有法宝才能祭炼为本命法宝！", {"item_id": item_id}),
        )
    if state.natal_artifact_id is not None and state.find_item(state.natal_artifact_id):
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.INVALID_STATE,
                "你已经拥有本命法宝，请先解除祭炼。",
                {"natal_artifact_id": state.natal_artifact_id},
            ),
        )
    return TransitionResult.ok(
        replace(state, natal_artifact_id=item_id),
        f"你将【{item.name}】祭炼为本命法宝！属性提升50%。",
        item_id=item_id,
    )


def unrefine_natal_artifact(state: "PlayerState") -> TransitionResult["PlayerState"]:
    if state.natal_artifact_id is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_STATE, "你还没有本命法宝。")
        )
    previous = state.natal_artifact_id
    return TransitionResult.ok(
        replace(state, natal_artifact_id=None),
        "你解除了本命法宝的祭炼。",
        item_id=previous,
    )
