"""장비 수치 계산 — 本命法宝 배율 적용

매 호출마다 Item 에서 다시 계산한다. 캐시된 수치 필드는 없다.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .models import EquipmentSlot, Item, ItemEffect

logger = logging.getLogger(__name__)

NATAL_MULTIPLIER = 1.5


@dataclass(frozen=True)
class ItemStats:
    attack: int = 0
    defense: int = 0
    hp: int = 0
    exp: int = 0
    spirit: int = 0
    physique: int = 0
    speed: int = 0

    def __add__(self, other: "ItemStats") -> "ItemStats":
        return ItemStats(
            attack=self.attack + other.attack,
            defense=self.defense + other.defense,
            hp=self.hp + other.hp,
            exp=self.exp + other.exp,
            spirit=self.spirit + other.spirit,
            physique=self.physique + other.physique,
            speed=self.speed + other.speed,
        )

    def __sub__(self, other: "ItemStats") -> "ItemStats":
        return ItemStats(
            attack=self.attack - other.attack,
            defense=self.defense - other.defense,
            hp=self.hp - other.hp,
            exp=self.exp - other.exp,
            spirit=self.spirit - other.spirit,
            physique=self.physique - other.physique,
            speed=self.speed - other.speed,
        )


def get_item_stats(item: Item, is_natal: bool = False) -> ItemStats:
    """아이템 수치. 本命法宝면 exp 를 제외한 모든 값 ×1.5 후 내림."""
    multiplier = NATAL_MULTIPLIER if is_natal else 1
    effect = item.effect

    def scaled(value: Optional[int]) -> int:
        return math.floor(value * multiplier) if value else 0

    return ItemStats(
        attack=scaled(effect.attack),
        defense=scaled(effect.defense),
        hp=scaled(effect.hp),
        exp=effect.exp or 0,
        spirit=scaled(effect.spirit),
        physique=scaled(effect.physique),
        speed=scaled(effect.speed),
    )


def calculate_equipped_totals(
    inventory: Sequence[Item],
    equipped_items: Mapping[EquipmentSlot, str],
    natal_artifact_id: Optional[str] = None,
) -> ItemStats:
    """장착 중인 모든 아이템 합계. 인벤토리에 없는 id 는 무시."""
    by_id = {item.id: item for item in inventory}
    total = ItemStats()
    for slot, item_id in equipped_items.items():
        item = by_id.get(item_id)
        if item is None:
            logger.debug("Stale equipped id ignored: %s → %s", slot, item_id)
            continue
        total = total + get_item_stats(item, item.id == natal_artifact_id)
    return total


def compare_with_equipped(
    candidate: Item,
    inventory: Sequence[Item],
    equipped_items: Mapping[EquipmentSlot, str],
    natal_artifact_id: Optional[str] = None,
) -> Optional[ItemStats]:
    """candidate 를 자기 슬롯에 끼웠을 때의 증감. 장비가 아니면 None."""
    if not candidate.is_equippable or candidate.equipment_slot is None:
        return None

    current = ItemStats()
    current_id = equipped_items.get(candidate.equipment_slot)
    if current_id is not None:
        equipped = next((i for i in inventory if i.id == current_id), None)
        if equipped is not None:
            current = get_item_stats(equipped, equipped.id == natal_artifact_id)

    return get_item_stats(candidate, candidate.id == natal_artifact_id) - current


_PREVIEW_LABELS: tuple[tuple[str, str], ...] = (
    ("attack", "攻"),
    ("defense", "防"),
    ("hp", "血"),
    ("spirit", "神识"),
    ("physique", "体魄"),
    ("speed", "速度"),
    ("exp", "修为"),
    ("lifespan", "寿命"),
)


def generate_attribute_preview(effect: Optional[ItemEffect]) -> str:
    """" [攻+10 防+5]" 형태. 표시할 값이 없으면 빈 문자열."""
    if effect is None:
        return ""
    attrs = [
        f"{label}+{getattr(effect, name)}"
        for name, label in _PREVIEW_LABELS
        if getattr(effect, name)
    ]
    return f" [{' '.join(attrs)}]" if attrs else ""
