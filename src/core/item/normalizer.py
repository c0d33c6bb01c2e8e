"""효과 정규화 — 외부(AI/설정) 효과값을 균형표와 稀有度 배율에 맞춘다

우선순위:
1. 균형표(KNOWN_ITEM_EFFECTS)에 있는 이름 → 균형표 값으로 완전 대체 (재배율 없음)
2. 丹药 + 普通 초과 稀有度 → 모든 필드에 배율 곱 후 내림
3. 그 외 → 그대로 통과
미설정 필드는 미설정으로 남긴다 (0 으로 채우지 않음).

장비는 별도로 境界 기준 능력치의 稀有度 구간에 맞춘다 (adjust_equipment_stats_by_realm).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional, TypeVar

from .models import ItemEffect, ItemRarity, ItemType, PermanentEffect, SpiritualRoots

logger = logging.getLogger(__name__)

RARITY_MULTIPLIERS: dict[ItemRarity, float] = {
    ItemRarity.COMMON: 1.0,
    ItemRarity.RARE: 1.5,
    ItemRarity.LEGENDARY: 2.5,
    ItemRarity.IMMORTAL: 5.0,
}


@dataclass(frozen=True)
class KnownItemEffect:
    """균형표 한 줄. 지정하지 않은 쪽(effect/permanent)은 호출자 값을 쓴다."""

    effect: Optional[ItemEffect] = None
    permanent_effect: Optional[PermanentEffect] = None


KNOWN_ITEM_EFFECTS: dict[str, KnownItemEffect] = {
    "止血草": KnownItemEffect(ItemEffect(hp=20)),
    "聚灵草": KnownItemEffect(ItemEffect()),
    "回气草": KnownItemEffect(ItemEffect(hp=30)),
    "凝神花": KnownItemEffect(ItemEffect(hp=50, spirit=5)),
    "血参": KnownItemEffect(ItemEffect(hp=80)),
    "千年灵芝": KnownItemEffect(
        ItemEffect(hp=1500), PermanentEffect(max_hp=200, physique=100)
    ),
    "万年仙草": KnownItemEffect(
        ItemEffect(hp=3000), PermanentEffect(max_hp=500, spirit=50)
    ),
    "回血丹": KnownItemEffect(ItemEffect(hp=50)),
    "聚气丹": KnownItemEffect(ItemEffect(exp=20)),
    "强体丹": KnownItemEffect(permanent_effect=PermanentEffect(physique=5)),
    "凝神丹": KnownItemEffect(permanent_effect=PermanentEffect(spirit=5)),
    "筑基丹": KnownItemEffect(ItemEffect(exp=100)),
    "破境丹": KnownItemEffect(ItemEffect(exp=200)),
    "仙灵丹": KnownItemEffect(
        ItemEffect(exp=500), PermanentEffect(max_hp=100, physique=70)
    ),
}

T = TypeVar("T", ItemEffect, SpiritualRoots)


def _scale_flat(bag: T, multiplier: float) -> T:
    changes = {}
    for f in fields(bag):
        value = getattr(bag, f.name)
        if value is not None:
            changes[f.name] = math.floor(value * multiplier)
    return replace(bag, **changes)


def _scale_permanent(bag: PermanentEffect, multiplier: float) -> PermanentEffect:
    changes: dict = {}
    for f in fields(bag):
        value = getattr(bag, f.name)
        if value is None:
            continue
        if isinstance(value, SpiritualRoots):
            changes[f.name] = _scale_flat(value, multiplier)
        else:
            changes[f.name] = math.floor(value * multiplier)
    return replace(bag, **changes)


def adjust_pill_effect_by_rarity(
    effect: Optional[ItemEffect],
    permanent_effect: Optional[PermanentEffect],
    rarity: ItemRarity,
    multipliers: Mapping[ItemRarity, float] = RARITY_MULTIPLIERS,
) -> tuple[ItemEffect, PermanentEffect]:
    """丹药 효과를 稀有度 배율로 조정. 普通(×1)은 그대로."""
    effect = effect or ItemEffect()
    permanent_effect = permanent_effect or PermanentEffect()
    multiplier = multipliers.get(rarity, 1.0)
    if rarity == ItemRarity.COMMON or multiplier == 1:
        return effect, permanent_effect
    return _scale_flat(effect, multiplier), _scale_permanent(permanent_effect, multiplier)


def normalize_item_effect(
    item_name: str,
    effect: Optional[ItemEffect] = None,
    permanent_effect: Optional[PermanentEffect] = None,
    item_type: Optional[ItemType] = None,
    rarity: Optional[ItemRarity] = None,
    multipliers: Mapping[ItemRarity, float] = RARITY_MULTIPLIERS,
) -> tuple[ItemEffect, PermanentEffect]:
    """(临时效果, 永久效果) 정규화 결과 반환."""
    known = KNOWN_ITEM_EFFECTS.get(item_name)
    if known is not None:
        logger.debug("Curated effect override for %s", item_name)
        return (
            known.effect if known.effect is not None else (effect or ItemEffect()),
            known.permanent_effect
            if known.permanent_effect is not None
            else (permanent_effect or PermanentEffect()),
        )

    if item_type == ItemType.PILL and rarity is not None and rarity != ItemRarity.COMMON:
        return adjust_pill_effect_by_rarity(effect, permanent_effect, rarity, multipliers)

    return effect or ItemEffect(), permanent_effect or PermanentEffect()


# === 境界별 장비 수치 ===


@dataclass(frozen=True)
class RealmBaseStats:
    """境界 기준 능력치. 장비 수치 구간의 기준값."""

    attack: int
    defense: int
    max_hp: int
    spirit: int
    physique: int
    speed: int


REALM_BASE_STATS: dict[str, RealmBaseStats] = {
    "炼气期": RealmBaseStats(100, 50, 1000, 100, 100, 100),
    "筑基期": RealmBaseStats(300, 150, 3000, 300, 300, 200),
    "金丹期": RealmBaseStats(800, 400, 8000, 800, 800, 500),
    "元婴期": RealmBaseStats(2000, 1000, 20000, 2000, 2000, 1200),
    "化神期": RealmBaseStats(5000, 2500, 50000, 5000, 5000, 3000),
    "合体期": RealmBaseStats(12000, 6000, 120000, 12000, 12000, 7000),
    "渡劫期": RealmBaseStats(30000, 15000, 300000, 30000, 30000, 18000),
}

REALM_BASE_MULTIPLIERS: tuple[int, ...] = (1, 2, 4, 8, 16, 32, 64)

# 稀有度별 (하한, 상한) 비율. 境界 기준 능력치 대비.
RARITY_STAT_BANDS: dict[ItemRarity, tuple[float, float]] = {
    ItemRarity.COMMON: (0.05, 0.08),
    ItemRarity.RARE: (0.08, 0.12),
    ItemRarity.LEGENDARY: (0.12, 0.18),
    ItemRarity.IMMORTAL: (0.18, 0.25),
}

# ItemEffect 필드 → RealmBaseStats 필드. exp/lifespan 은 조정 대상 아님.
_REALM_STAT_FIELDS: dict[str, str] = {
    "attack": "attack",
    "defense": "defense",
    "hp": "max_hp",
    "spirit": "spirit",
    "physique": "physique",
    "speed": "speed",
}


def get_realm_equipment_multiplier(realm_index: int, realm_level: int) -> float:
    """境界 지수 배율(×1..×64) × 층당 10%. 모르는 境界(-1)는 ×1."""
    if 0 <= realm_index < len(REALM_BASE_MULTIPLIERS):
        base = REALM_BASE_MULTIPLIERS[realm_index]
    else:
        base = 1
    return base * (1 + (max(1, realm_level) - 1) * 0.1)


def adjust_equipment_stats_by_realm(
    effect: ItemEffect,
    realm: str,
    realm_level: int,
    rarity: ItemRarity = ItemRarity.COMMON,
    base_stats: Mapping[str, RealmBaseStats] = REALM_BASE_STATS,
) -> ItemEffect:
    """장비 수치를 境界 기준 능력치의 稀有度 구간으로 맞춘다.

    필드별로 목표치 = 기준 × 구간 중앙값 × (1 + 층당 5%),
    상한 = 기준 × 구간 상한 × 같은 층 배율.
    결과 = min(max(원래값, 목표치의 80%), 상한), 내림.
    미설정/0 인 필드는 건드리지 않는다. 모르는 境界면 그대로 반환.
    """
    base = base_stats.get(realm)
    if base is None:
        logger.warning("No base stats for realm %s, equipment left as is", realm)
        return effect

    low, high = RARITY_STAT_BANDS.get(rarity, RARITY_STAT_BANDS[ItemRarity.COMMON])
    level_multiplier = 1 + (max(1, realm_level) - 1) * 0.05

    changes: dict[str, int] = {}
    for field_name, base_name in _REALM_STAT_FIELDS.items():
        value = getattr(effect, field_name)
        if not value:
            continue
        reference = getattr(base, base_name)
        target = math.floor(reference * (low + high) / 2 * level_multiplier)
        ceiling = math.floor(reference * high * level_multiplier)
        changes[field_name] = math.floor(min(max(value, target * 0.8), ceiling))
    return replace(effect, **changes)
