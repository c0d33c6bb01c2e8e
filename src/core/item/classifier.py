"""아이템 분류 — 이름/설명 키워드 → ItemType + EquipmentSlot

규칙은 위에서 아래로 평가하며 첫 매칭이 이긴다.
일부 키워드 집합이 다른 집합과 겹치므로 순서 자체가 의미를 가진다
(예: 草药 규칙은 "草衣/草甲" 같은 방어구 이름을 제외한다).
새 이름이 애매하게 분류되더라도 순서를 바꾸지 않는다.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from typing import Optional

from .models import EquipmentSlot, ItemType

logger = logging.getLogger(__name__)

WEAPON_TOKENS = (
    "剑|刀|枪|戟|斧|锤|鞭|棍|棒|矛|弓|弩|匕首|短剑|长剑|重剑|飞剑|灵剑|仙剑"
    "|裂空剑|青莲剑|紫霄剑|玄天剑|青云剑|精铁剑|玄冰剑|宝剑"
)
HERB_TOKENS = "胆草|草药|药草|灵草|仙草"

RING_SLOTS = (
    EquipmentSlot.RING1,
    EquipmentSlot.RING2,
    EquipmentSlot.RING3,
    EquipmentSlot.RING4,
)
ACCESSORY_SLOTS = (EquipmentSlot.ACCESSORY1, EquipmentSlot.ACCESSORY2)
ARTIFACT_SLOTS = (EquipmentSlot.ARTIFACT1, EquipmentSlot.ARTIFACT2)

# 구버전/AI 가 보내는 비표준 타입 문자열
LEGACY_ARMOR_TYPE = "防具"


@dataclass(frozen=True)
class ClassificationRule:
    """predicate → 분류 한 줄.

    slots 가 여러 개면 분류 시점에 균등 무작위로 하나를 고른다.
    """

    name: str
    pattern: re.Pattern[str]
    item_type: ItemType
    slots: tuple[EquipmentSlot, ...] = ()
    exclude: Optional[re.Pattern[str]] = None

    @property
    def is_equippable(self) -> bool:
        return bool(self.slots)

    def matches(self, text: str) -> bool:
        if not self.pattern.search(text):
            return False
        return not (self.exclude and self.exclude.search(text))


def _rule(
    name: str,
    pattern: str,
    item_type: ItemType,
    slots: tuple[EquipmentSlot, ...] = (),
    exclude: Optional[str] = None,
) -> ClassificationRule:
    return ClassificationRule(
        name=name,
        pattern=re.compile(pattern),
        item_type=item_type,
        slots=slots,
        exclude=re.compile(exclude) if exclude else None,
    )


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    # 武器: 설명에 "灵器/法器"가 있어도 이름의 무기 키워드가 우선
    _rule("weapon", WEAPON_TOKENS, ItemType.WEAPON, (EquipmentSlot.WEAPON,)),
    _rule(
        "head",
        "头盔|头冠|道冠|法冠|仙冠|龙冠|凤冠|冠|帽|发簪|发带|头饰|面罩|头|首",
        ItemType.ARMOR,
        (EquipmentSlot.HEAD,),
    ),
    _rule(
        "shoulder",
        "肩|裘|披风|斗篷|肩甲|护肩|肩饰|肩胛|云肩|法肩|仙肩",
        ItemType.ARMOR,
        (EquipmentSlot.SHOULDER,),
    ),
    _rule(
        "gloves",
        "手套|护手|手甲|拳套|法手|仙手|龙爪套|手",
        ItemType.ARMOR,
        (EquipmentSlot.GLOVES,),
    ),
    _rule(
        "boots",
        "靴|鞋|足|步|履|仙履|云履|龙鳞靴|战靴|法靴",
        ItemType.ARMOR,
        (EquipmentSlot.BOOTS,),
    ),
    _rule(
        "legs",
        "裤|腿甲|护腿|下装|法裤|仙裤|龙鳞裤|腿",
        ItemType.ARMOR,
        (EquipmentSlot.LEGS,),
    ),
    _rule(
        "herb",
        "草药|药草|灵草|仙草|草|花|果|叶|根|茎|枝|胆草|解毒|疗伤|恢复|治疗|回血|回蓝|回灵|回气",
        ItemType.HERB,
        exclude="草甲|草衣|草帽|草鞋",
    ),
    _rule("pill", "丹药|丹|丸|散|液|膏|剂|药|灵丹|仙丹", ItemType.PILL),
    _rule(
        "material",
        "材料|矿物|矿石|晶石|灵石|铁|铜|银|金|木|石|骨|皮|角|鳞|羽|毛|丝|线|布|纸",
        ItemType.MATERIAL,
    ),
    # 胸甲: 기본 방어구. 草药 계열 단어가 섞이면 제외
    _rule(
        "chest",
        "道袍|法衣|胸甲|护胸|铠甲|战甲|法袍|长袍|外衣|护甲|重甲|轻甲|板甲|锁甲|软甲|硬甲|袍|衣",
        ItemType.ARMOR,
        (EquipmentSlot.CHEST,),
        exclude=HERB_TOKENS,
    ),
    _rule("ring", "戒指|指环|戒", ItemType.RING, RING_SLOTS),
    _rule(
        "accessory",
        "项链|玉佩|手镯|手链|吊坠|护符|符|佩|饰",
        ItemType.ACCESSORY,
        ACCESSORY_SLOTS,
    ),
    _rule(
        "artifact",
        "法宝|法器|仙器|神器|鼎|钟|镜|塔|扇|珠|印|盘|笔|袋|旗|炉|图",
        ItemType.ARTIFACT,
        ARTIFACT_SLOTS,
        exclude="剑|刀|枪|戟|鞭|棍|棒|矛|弓|弩|匕首",
    ),
)


@dataclass(frozen=True)
class Classification:
    item_type: ItemType
    is_equippable: bool
    equipment_slot: Optional[EquipmentSlot] = None


def match_rule(text: str) -> Optional[ClassificationRule]:
    """첫 번째로 매칭되는 규칙. 없으면 None."""
    for rule in CLASSIFICATION_RULES:
        if rule.matches(text):
            return rule
    return None


def infer_item_type_and_slot(
    name: str,
    current_type: ItemType | str | None,
    description: str = "",
    current_is_equippable: bool = False,
) -> Classification:
    """이름 + 설명으로 분류 추론.

    매칭 규칙이 없으면 호출자 선언값으로 폴백:
    - "防具" → 护甲/胸甲
    - 장착 가능 护甲 → 胸甲, 장착 가능 武器 → 武器 슬롯
    - 그 외 선언값 그대로 (알 수 없는 타입은 材料)
    """
    combined = (name or "").lower() + (description or "").lower()

    rule = match_rule(combined)
    if rule is not None:
        slot = random.choice(rule.slots) if rule.slots else None
        logger.debug("Classified %r by rule %s → %s/%s", name, rule.name, rule.item_type, slot)
        return Classification(rule.item_type, rule.is_equippable, slot)

    if current_type == LEGACY_ARMOR_TYPE:
        return Classification(ItemType.ARMOR, True, EquipmentSlot.CHEST)

    declared = ItemType.parse(current_type, ItemType.MATERIAL)
    if current_is_equippable:
        if declared == ItemType.ARMOR:
            return Classification(ItemType.ARMOR, True, EquipmentSlot.CHEST)
        if declared == ItemType.WEAPON:
            return Classification(ItemType.WEAPON, True, EquipmentSlot.WEAPON)

    return Classification(declared, bool(current_is_equippable))
