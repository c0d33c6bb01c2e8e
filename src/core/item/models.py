"""아이템 도메인 모델 (DB 무관)

Item 은 불변이다. 수량/강화 등 모든 변경은 dataclasses.replace 로 새 값을 만든다.
to_dict()/from_dict() 는 저장 스냅샷(JSON) 형태를 정의한다.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ItemType(str, Enum):
    WEAPON = "武器"
    ARMOR = "护甲"
    ACCESSORY = "首饰"
    RING = "戒指"
    ARTIFACT = "法宝"
    HERB = "草药"
    PILL = "丹药"
    MATERIAL = "材料"
    RECIPE = "丹方"

    @classmethod
    def parse(cls, raw: Any, default: Optional["ItemType"] = None) -> Optional["ItemType"]:
        """문자열 → ItemType. 영문 이름(WEAPON)도 허용. 실패 시 default."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            text = raw.strip()
            for member in cls:
                if text == member.value or text.upper() == member.name:
                    return member
        return default


EQUIPMENT_TYPES: frozenset[ItemType] = frozenset(
    {ItemType.WEAPON, ItemType.ARMOR, ItemType.ACCESSORY, ItemType.RING, ItemType.ARTIFACT}
)


class ItemRarity(str, Enum):
    COMMON = "普通"
    RARE = "稀有"
    LEGENDARY = "传说"
    IMMORTAL = "仙品"

    @property
    def order(self) -> int:
        return _RARITY_ORDER[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ItemRarity):
            return NotImplemented
        return self.order < other.order

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ItemRarity):
            return NotImplemented
        return self.order <= other.order

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ItemRarity):
            return NotImplemented
        return self.order > other.order

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ItemRarity):
            return NotImplemented
        return self.order >= other.order

    @classmethod
    def parse(cls, raw: Any, default: Optional["ItemRarity"] = None) -> Optional["ItemRarity"]:
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            text = raw.strip()
            for member in cls:
                if text == member.value or text.upper() == member.name:
                    return member
        return default


_RARITY_ORDER: dict[ItemRarity, int] = {
    ItemRarity.COMMON: 0,
    ItemRarity.RARE: 1,
    ItemRarity.LEGENDARY: 2,
    ItemRarity.IMMORTAL: 3,
}


class EquipmentSlot(str, Enum):
    WEAPON = "武器"
    HEAD = "头部"
    SHOULDER = "肩部"
    CHEST = "胸甲"
    GLOVES = "手套"
    LEGS = "裤腿"
    BOOTS = "鞋子"
    RING1 = "戒指1"
    RING2 = "戒指2"
    RING3 = "戒指3"
    RING4 = "戒指4"
    ACCESSORY1 = "首饰1"
    ACCESSORY2 = "首饰2"
    ARTIFACT1 = "法宝1"
    ARTIFACT2 = "法宝2"

    @classmethod
    def parse(cls, raw: Any) -> Optional["EquipmentSlot"]:
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            text = raw.strip()
            for member in cls:
                if text == member.value or text.upper() == member.name:
                    return member
        return None


def coerce_int(raw: Any) -> Optional[int]:
    """외부 숫자 필드 정규화. bool/NaN/문자 등 잘못된 값은 None (무시)."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if math.isnan(raw) or math.isinf(raw):
            return None
        return math.floor(raw)
    if isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
        return coerce_int(value)
    return None


def coerce_float(raw: Any, default: float = 0.0) -> float:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if math.isnan(value) or math.isinf(value):
        return default
    return value


# camelCase(저장/AI 페이로드) → snake_case(모델)
_FIELD_ALIASES: dict[str, str] = {
    "maxHp": "max_hp",
    "maxLifespan": "max_lifespan",
    "spiritualRoots": "spiritual_roots",
}


def _numeric_kwargs(cls: type, raw: Any, skip: tuple[str, ...] = ()) -> dict[str, Optional[int]]:
    if not isinstance(raw, dict):
        return {}
    names = {f.name for f in fields(cls)} - set(skip)
    kwargs: dict[str, Optional[int]] = {}
    for key, value in raw.items():
        name = _FIELD_ALIASES.get(key, key)
        if name not in names:
            continue
        number = coerce_int(value)
        if number is None and value is not None:
            logger.warning("Ignoring malformed numeric field %s=%r", key, value)
        kwargs[name] = number
    return kwargs


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


@dataclass(frozen=True)
class ItemEffect:
    """临时效果. None = 효과 없음 (0 과 구분)."""

    attack: Optional[int] = None
    defense: Optional[int] = None
    hp: Optional[int] = None
    spirit: Optional[int] = None
    physique: Optional[int] = None
    speed: Optional[int] = None
    exp: Optional[int] = None
    lifespan: Optional[int] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict[str, int]:
        return _compact({f.name: getattr(self, f.name) for f in fields(self)})

    @classmethod
    def from_dict(cls, raw: Any) -> "ItemEffect":
        return cls(**_numeric_kwargs(cls, raw))


@dataclass(frozen=True)
class SpiritualRoots:
    """灵根 변화량 (金木水火土). PermanentEffect 안에서만 쓰인다."""

    metal: Optional[int] = None
    wood: Optional[int] = None
    water: Optional[int] = None
    fire: Optional[int] = None
    earth: Optional[int] = None

    def items(self) -> list[tuple[str, Optional[int]]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self)]

    def all_zero(self) -> bool:
        """선언된 값이 모두 0 (또는 미설정)."""
        return all(not value for _, value in self.items())

    def to_dict(self) -> dict[str, int]:
        return _compact(dict(self.items()))

    @classmethod
    def from_dict(cls, raw: Any) -> "SpiritualRoots":
        return cls(**_numeric_kwargs(cls, raw))


@dataclass(frozen=True)
class PermanentEffect:
    """永久效果. 灵根 변화량 포함."""

    attack: Optional[int] = None
    defense: Optional[int] = None
    spirit: Optional[int] = None
    physique: Optional[int] = None
    speed: Optional[int] = None
    max_hp: Optional[int] = None
    max_lifespan: Optional[int] = None
    spiritual_roots: Optional[SpiritualRoots] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            data[f.name] = value.to_dict() if isinstance(value, SpiritualRoots) else value
        return data

    @classmethod
    def from_dict(cls, raw: Any) -> "PermanentEffect":
        kwargs: dict[str, Any] = _numeric_kwargs(cls, raw, skip=("spiritual_roots",))
        if isinstance(raw, dict):
            roots = raw.get("spiritual_roots", raw.get("spiritualRoots"))
            if isinstance(roots, dict):
                kwargs["spiritual_roots"] = SpiritualRoots.from_dict(roots)
        return cls(**kwargs)


@dataclass(frozen=True)
class RecipeData:
    """丹方 페이로드 — 배울 丹药 이름"""

    name: str
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, **self.extra}

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["RecipeData"]:
        if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
            return None
        extra = {k: v for k, v in raw.items() if k != "name"}
        return cls(name=raw["name"], extra=extra)


@dataclass(frozen=True)
class Item:
    """인벤토리 속 아이템 개체.

    비장비: 같은 이름이면 수량으로 합쳐진다.
    장비: quantity 는 항상 1, 강화(level)/부활(revive_chances) 상태를 개별 보유.
    """

    id: str
    name: str
    type: ItemType
    quantity: int = 1
    rarity: ItemRarity = ItemRarity.COMMON
    description: str = ""
    level: int = 0  # 强化等级
    effect: ItemEffect = field(default_factory=ItemEffect)
    permanent_effect: PermanentEffect = field(default_factory=PermanentEffect)
    is_equippable: bool = False
    equipment_slot: Optional[EquipmentSlot] = None
    recipe_data: Optional[RecipeData] = None
    revive_chances: Optional[int] = None
    hatchable: Optional[bool] = None  # None → 이름/설명 키워드로 판정

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "quantity": self.quantity,
            "rarity": self.rarity.value,
            "description": self.description,
            "level": self.level,
            "effect": self.effect.to_dict(),
            "permanent_effect": self.permanent_effect.to_dict(),
            "is_equippable": self.is_equippable,
        }
        if self.equipment_slot is not None:
            data["equipment_slot"] = self.equipment_slot.value
        if self.recipe_data is not None:
            data["recipe_data"] = self.recipe_data.to_dict()
        if self.revive_chances is not None:
            data["revive_chances"] = self.revive_chances
        if self.hatchable is not None:
            data["hatchable"] = self.hatchable
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Item":
        """저장 스냅샷 → Item. 구버전 camelCase 키도 허용."""
        item_type = ItemType.parse(raw.get("type"), ItemType.MATERIAL)
        slot = EquipmentSlot.parse(raw.get("equipment_slot", raw.get("equipmentSlot")))
        is_equippable = bool(raw.get("is_equippable", raw.get("isEquippable", False)))
        quantity = coerce_int(raw.get("quantity")) or 1
        return cls(
            id=str(raw["id"]),
            name=str(raw.get("name", "")),
            type=item_type,
            quantity=1 if is_equippable else max(1, quantity),
            rarity=ItemRarity.parse(raw.get("rarity"), ItemRarity.COMMON),
            description=str(raw.get("description", "") or ""),
            level=max(0, coerce_int(raw.get("level")) or 0),
            effect=ItemEffect.from_dict(raw.get("effect")),
            permanent_effect=PermanentEffect.from_dict(
                raw.get("permanent_effect", raw.get("permanentEffect"))
            ),
            is_equippable=is_equippable,
            equipment_slot=slot if is_equippable else None,
            recipe_data=RecipeData.from_dict(raw.get("recipe_data", raw.get("recipeData"))),
            revive_chances=coerce_int(raw.get("revive_chances", raw.get("reviveChances"))),
            hatchable=raw["hatchable"] if isinstance(raw.get("hatchable"), bool) else None,
        )
