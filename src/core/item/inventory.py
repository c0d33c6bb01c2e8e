"""인벤토리 변경 — 추가(분류+정규화+합치기), 감소, 버리기, 필터/정렬

인벤토리는 삽입 순서를 유지하는 tuple[Item, ...] 이다.
비장비는 같은 이름끼리 수량으로 합치고, 장비는 항상 개별 개체로 만든다.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from src.core.result import ErrorKind, Rejection, TransitionResult, insufficient

from .classifier import infer_item_type_and_slot
from .equipment import are_slots_in_same_group
from .models import (
    EQUIPMENT_TYPES,
    EquipmentSlot,
    Item,
    ItemEffect,
    ItemRarity,
    ItemType,
    PermanentEffect,
    RecipeData,
)
from .normalizer import RARITY_MULTIPLIERS, normalize_item_effect

if TYPE_CHECKING:
    from src.core.player.models import PlayerState

logger = logging.getLogger(__name__)

UNKNOWN_ITEM_NAME = "未知物品"


def new_item_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ItemTemplate:
    """인벤토리에 넣기 전의 원본 아이템 데이터 (전리품/수확/구매).

    type/is_equippable 은 호출자 선언값이며 분류기의 폴백으로만 쓰인다.
    """

    name: str
    type: ItemType | str = ItemType.MATERIAL
    description: str = ""
    rarity: ItemRarity = ItemRarity.COMMON
    is_equippable: bool = False
    equipment_slot: Optional[EquipmentSlot] = None
    level: int = 0
    effect: ItemEffect = field(default_factory=ItemEffect)
    permanent_effect: PermanentEffect = field(default_factory=PermanentEffect)
    recipe_data: Optional[RecipeData] = None
    revive_chances: Optional[int] = None
    hatchable: Optional[bool] = None


def add_item_to_inventory(
    inventory: Sequence[Item],
    template: ItemTemplate,
    quantity: int = 1,
    multipliers: Mapping[ItemRarity, float] = RARITY_MULTIPLIERS,
) -> tuple[Item, ...]:
    """템플릿을 분류 → 정규화한 뒤 인벤토리에 추가한 새 tuple 반환.

    장비: quantity 개의 독립 개체(각 quantity=1) 추가.
    비장비: 같은 이름이 있으면 수량 합산 + effect/permanent_effect 를 새 정규화 값으로 덮어씀.
    quantity < 1 은 1 로 본다 (거부는 grant_item 몫).
    """
    if quantity < 1:
        logger.warning("Clamping quantity %d of %s to 1", quantity, template.name)
        quantity = 1

    name = (template.name or "").strip() or UNKNOWN_ITEM_NAME
    inferred = infer_item_type_and_slot(
        name, template.type, template.description, template.is_equippable
    )
    slot = inferred.equipment_slot
    if (
        slot is not None
        and template.equipment_slot is not None
        and are_slots_in_same_group(slot, template.equipment_slot)
    ):
        slot = template.equipment_slot
    effect, permanent_effect = normalize_item_effect(
        name,
        template.effect,
        template.permanent_effect,
        inferred.item_type,
        template.rarity,
        multipliers,
    )

    new_inventory = list(inventory)

    if inferred.is_equippable:
        for _ in range(quantity):
            new_inventory.append(
                Item(
                    id=new_item_id(),
                    name=name,
                    type=inferred.item_type,
                    quantity=1,
                    rarity=template.rarity,
                    description=template.description,
                    level=template.level,
                    effect=effect,
                    permanent_effect=permanent_effect,
                    is_equippable=True,
                    equipment_slot=slot,
                    recipe_data=template.recipe_data,
                    revive_chances=template.revive_chances,
                    hatchable=template.hatchable,
                )
            )
        logger.debug("Added %d equippable instance(s) of %s", quantity, name)
        return tuple(new_inventory)

    for index, existing in enumerate(new_inventory):
        if existing.name == name and not existing.is_equippable:
            new_inventory[index] = replace(
                existing,
                quantity=existing.quantity + quantity,
                effect=effect,
                permanent_effect=permanent_effect,
            )
            logger.debug("Stacked %s x%d (now %d)", name, quantity, existing.quantity + quantity)
            return tuple(new_inventory)

    new_inventory.append(
        Item(
            id=new_item_id(),
            name=name,
            type=inferred.item_type,
            quantity=quantity,
            rarity=template.rarity,
            description=template.description,
            level=template.level,
            effect=effect,
            permanent_effect=permanent_effect,
            is_equippable=False,
            recipe_data=template.recipe_data,
            hatchable=template.hatchable,
        )
    )
    return tuple(new_inventory)


def grant_item(
    state: "PlayerState",
    template: ItemTemplate,
    quantity: int = 1,
    multipliers: Mapping[ItemRarity, float] = RARITY_MULTIPLIERS,
) -> TransitionResult["PlayerState"]:
    """전리품/구매 지급 전이. data["item_ids"] 는 새로 생기거나 합쳐진 아이템 id."""
    if quantity < 1:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "无效的数量！", {"amount": quantity})
        )
    before = {item.id: item.quantity for item in state.inventory}
    inventory = add_item_to_inventory(state.inventory, template, quantity, multipliers)
    touched = [item for item in inventory if before.get(item.id) != item.quantity]
    name = touched[0].name if touched else template.name
    return TransitionResult.ok(
        replace(state, inventory=inventory),
        f"获得了 {name} x{quantity}。",
        item_ids=[item.id for item in touched],
        item_name=name,
        quantity=quantity,
    )


def decrement_in_inventory(
    inventory: Sequence[Item], item_id: str, amount: int = 1
) -> tuple[Item, ...]:
    """수량 감소. 0 이 되면 제거. 검증은 호출자 몫."""
    result: list[Item] = []
    for item in inventory:
        if item.id == item_id:
            remaining = item.quantity - amount
            if remaining > 0:
                result.append(replace(item, quantity=remaining))
        else:
            result.append(item)
    return tuple(result)


def merge_stack(
    inventory: Sequence[Item],
    name: str,
    item_type: ItemType,
    quantity: int,
    rarity: ItemRarity,
    description: str,
) -> tuple[Item, ...]:
    """이름+종류가 같은 스택에 수량을 더하거나 새 스택을 만든다 (수확용, 정규화 없음)."""
    result = list(inventory)
    for index, item in enumerate(result):
        if item.name == name and item.type == item_type:
            result[index] = replace(item, quantity=item.quantity + quantity)
            return tuple(result)
    result.append(
        Item(
            id=new_item_id(),
            name=name,
            type=item_type,
            quantity=quantity,
            rarity=rarity,
            description=description,
        )
    )
    return tuple(result)


def remove_or_decrement(
    state: "PlayerState", item_id: str, amount: int = 1
) -> TransitionResult["PlayerState"]:
    """아이템 소모/일부 버리기.

    - 모르는 id → InvalidTarget
    - 장착 중 → InvalidState (조용히 무시하지 않음)
    - 보유량 부족 → InsufficientResource
    """
    item = state.find_item(item_id)
    if item is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "物品不存在！", {"item_id": item_id})
        )
    if state.is_equipped(item_id):
        return TransitionResult.reject(
            state,
            Rejection(ErrorKind.INVALID_STATE, "无法丢弃已装备的物品！请先卸下。", {"item_id": item_id}),
        )
    if amount < 1:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "无效的数量！", {"amount": amount})
        )
    if amount > item.quantity:
        return TransitionResult.reject(
            state,
            insufficient(item.name, amount, item.quantity, f"{item.name}数量不足！"),
        )

    new_state = replace(state, inventory=decrement_in_inventory(state.inventory, item_id, amount))
    return TransitionResult.ok(new_state, item_id=item_id, amount=amount)


def discard_item(state: "PlayerState", item_id: str) -> TransitionResult["PlayerState"]:
    """스택 전체 버리기."""
    item = state.find_item(item_id)
    if item is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "物品不存在！", {"item_id": item_id})
        )
    result = remove_or_decrement(state, item_id, item.quantity)
    if not result.success:
        return result
    return TransitionResult.ok(
        result.state,
        f"你丢弃了 {item.name} x{item.quantity}。",
        item_id=item_id,
        amount=item.quantity,
    )


def batch_discard_items(
    state: "PlayerState", item_ids: Sequence[str]
) -> TransitionResult["PlayerState"]:
    """여러 스택을 한 번에 버린다. 전부 아니면 전무.

    모르는 id 가 있으면 InvalidTarget, 장착 중인 id 가 있으면 InvalidState 로
    아무것도 버리지 않는다. 중복 id 는 한 번만 센다.
    """
    unique_ids = list(dict.fromkeys(item_ids))
    if not unique_ids:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "没有选择任何物品！")
        )

    missing = [item_id for item_id in unique_ids if state.find_item(item_id) is None]
    if missing:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "物品不存在！", {"item_ids": missing})
        )
    equipped = [item_id for item_id in unique_ids if state.is_equipped(item_id)]
    if equipped:
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.INVALID_STATE,
                "无法丢弃已装备的物品！请先卸下。",
                {"item_ids": equipped},
            ),
        )

    dropped = set(unique_ids)
    total = sum(i.quantity for i in state.inventory if i.id in dropped)
    inventory = tuple(i for i in state.inventory if i.id not in dropped)
    return TransitionResult.ok(
        replace(state, inventory=inventory),
        f"你丢弃了 {len(unique_ids)} 种物品，共 {total} 件。",
        item_ids=unique_ids,
        total_quantity=total,
    )


# === 재료 소모 (聚灵阵 개조 등) ===


def material_stacks(state: "PlayerState", name: str) -> list[Item]:
    """재료로 쓸 수 있는 같은 이름의 아이템. 장착 중인 개체는 제외."""
    return [i for i in state.inventory if i.name == name and not state.is_equipped(i.id)]


def consume_materials(
    state: "PlayerState", required: Mapping[str, int]
) -> TransitionResult["PlayerState"]:
    """이름별 필요 총량을 모두 확인한 뒤 한꺼번에 차감.

    하나라도 모자라면 아무것도 빼지 않고 InsufficientResource.
    같은 이름 스택이 여럿이면 앞에서부터 차감한다.
    """
    for name, amount in required.items():
        owned = sum(i.quantity for i in material_stacks(state, name))
        if owned < amount:
            return TransitionResult.reject(
                state,
                insufficient(name, amount, owned, f"材料不足！需要 {name} x{amount}。"),
            )

    inventory = state.inventory
    for name, amount in required.items():
        for stack in material_stacks(state, name):
            if amount <= 0:
                break
            taken = min(amount, stack.quantity)
            inventory = decrement_in_inventory(inventory, stack.id, taken)
            amount -= taken
    return TransitionResult.ok(replace(state, inventory=inventory), consumed=dict(required))


# === 조회 ===


def find_item(inventory: Sequence[Item], item_id: str) -> Optional[Item]:
    return next((i for i in inventory if i.id == item_id), None)


def find_by_name(
    inventory: Sequence[Item], name: str, item_type: Optional[ItemType] = None
) -> Optional[Item]:
    for item in inventory:
        if item.name == name and (item_type is None or item.type == item_type):
            return item
    return None


def total_quantity(inventory: Sequence[Item], name: str) -> int:
    return sum(i.quantity for i in inventory if i.name == name)


# === 필터/정렬 (인벤토리 화면용) ===

ITEM_CATEGORIES = ("all", "equipment", "pill", "consumable", "recipe")


def get_item_category(item: Item) -> str:
    """화면 분류: recipe / equipment / pill / consumable."""
    if item.type == ItemType.RECIPE:
        return "recipe"
    if item.is_equippable or item.type in EQUIPMENT_TYPES:
        return "equipment"
    if item.type == ItemType.PILL:
        return "pill"
    return "consumable"


def filter_and_sort_inventory(
    inventory: Sequence[Item],
    category: str = "all",
    slot: Optional[EquipmentSlot] = None,
    sort_by_rarity: bool = True,
) -> list[Item]:
    """분류 필터 → (장비면) 슬롯 그룹 필터 → 稀有度 내림차순, 같으면 이름순."""
    if category not in ITEM_CATEGORIES:
        logger.warning("Unknown inventory category %r, showing all", category)
        category = "all"

    items = list(inventory)
    if category != "all":
        items = [i for i in items if get_item_category(i) == category]

    if category == "equipment" and slot is not None:
        items = [
            i
            for i in items
            if i.equipment_slot is not None and are_slots_in_same_group(i.equipment_slot, slot)
        ]

    if sort_by_rarity:
        items.sort(key=lambda i: (-i.rarity.order, i.name))
    return items
