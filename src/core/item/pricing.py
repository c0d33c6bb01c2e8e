"""출售 가격 계산 — 稀有度 기본가 + 효과 가치 + 장비 보너스 + 강화 배율, 그리고 판매 전이

최소 1. 0 이나 음수를 돌려주지 않는다.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING, Mapping

from src.core.result import TransitionResult

from .inventory import remove_or_decrement
from .models import Item, ItemRarity, ItemType
from .normalizer import RARITY_MULTIPLIERS

if TYPE_CHECKING:
    from src.core.player.models import PlayerState

logger = logging.getLogger(__name__)

RARITY_BASE_PRICES: dict[ItemRarity, int] = {
    ItemRarity.COMMON: 10,
    ItemRarity.RARE: 50,
    ItemRarity.LEGENDARY: 300,
    ItemRarity.IMMORTAL: 2000,
}

# 临时效果 1점당 灵石
EFFECT_WEIGHTS: dict[str, float] = {
    "attack": 2,
    "defense": 1.5,
    "hp": 0.5,
    "spirit": 1.5,
    "physique": 1.5,
    "speed": 2,
    "exp": 0.1,
}

# 永久效果 1점당 灵石 (临时의 약 2배 이상)
PERMANENT_EFFECT_WEIGHTS: dict[str, float] = {
    "attack": 10,
    "defense": 8,
    "max_hp": 3,
    "spirit": 8,
    "physique": 8,
    "speed": 10,
}

# 장비 종류별 추가 가치 (기본가 대비)
EQUIPMENT_BONUS_RATIOS: dict[ItemType, float] = {
    ItemType.WEAPON: 1.5,
    ItemType.ARMOR: 1.2,
    ItemType.ARTIFACT: 2.0,
    ItemType.RING: 1.3,
    ItemType.ACCESSORY: 1.3,
}

# 소모품/재료 할인
TYPE_DISCOUNTS: dict[ItemType, float] = {
    ItemType.HERB: 0.5,
    ItemType.PILL: 0.5,
    ItemType.MATERIAL: 0.3,
}

LEVEL_BONUS_PER_LEVEL = 0.2


def calculate_attribute_value(
    item: Item,
    multipliers: Mapping[ItemRarity, float] = RARITY_MULTIPLIERS,
) -> int:
    """효과 가치 합계 × 稀有度 배율, 내림."""
    value = 0.0
    for name, weight in EFFECT_WEIGHTS.items():
        value += (getattr(item.effect, name) or 0) * weight
    for name, weight in PERMANENT_EFFECT_WEIGHTS.items():
        value += (getattr(item.permanent_effect, name) or 0) * weight
    return math.floor(value * multipliers.get(item.rarity, 1.0))


def calculate_item_sell_price(
    item: Item,
    base_prices: Mapping[ItemRarity, int] = RARITY_BASE_PRICES,
    multipliers: Mapping[ItemRarity, float] = RARITY_MULTIPLIERS,
) -> int:
    """단가(1개 기준) 계산.

    total = (base + attributeValue + equipmentBonus) × (1 + 0.2 × level)
    price = max(1, floor(total × 종류 할인))
    """
    base_price = base_prices.get(item.rarity, base_prices[ItemRarity.COMMON])
    attribute_value = calculate_attribute_value(item, multipliers)

    equipment_bonus = 0.0
    if item.is_equippable:
        equipment_bonus = base_price * EQUIPMENT_BONUS_RATIOS.get(item.type, 0.0)

    level_multiplier = 1 + max(0, item.level) * LEVEL_BONUS_PER_LEVEL
    total = (base_price + attribute_value + equipment_bonus) * level_multiplier
    discount = TYPE_DISCOUNTS.get(item.type, 1.0)

    return max(1, math.floor(total * discount))


def sell_item(
    state: "PlayerState",
    item_id: str,
    quantity: int = 1,
    base_prices: Mapping[ItemRarity, int] = RARITY_BASE_PRICES,
    multipliers: Mapping[ItemRarity, float] = RARITY_MULTIPLIERS,
) -> TransitionResult["PlayerState"]:
    """판매: 수량 차감 + 灵石 지급. 장착 중이면 거부."""
    item = state.find_item(item_id)
    removed = remove_or_decrement(state, item_id, quantity)
    if not removed.success or item is None:
        return removed

    unit_price = calculate_item_sell_price(item, base_prices, multipliers)
    total = unit_price * quantity
    new_state = replace(removed.state, spirit_stones=removed.state.spirit_stones + total)
    logger.debug("Sold %s x%d for %d", item.name, quantity, total)
    return TransitionResult.ok(
        new_state,
        f"你出售了 {item.name} x{quantity}，获得 {total} 灵石。",
        item_id=item_id,
        quantity=quantity,
        unit_price=unit_price,
        total=total,
    )
