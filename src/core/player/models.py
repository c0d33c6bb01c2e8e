"""플레이어 집합체 모델 (DB 무관)

PlayerState 는 인벤토리/장착/本命法宝/洞府/능력치를 하나로 묶은 불변 스냅샷이다.
모든 변경은 전이 함수가 새 스냅샷을 만들어 돌려준다.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from src.core.grotto.models import GrottoState
from src.core.item.models import EquipmentSlot, Item, ItemRarity, coerce_int

logger = logging.getLogger(__name__)

REALM_ORDER: tuple[str, ...] = (
    "炼气期",
    "筑基期",
    "金丹期",
    "元婴期",
    "化神期",
    "合体期",
    "渡劫期",
)

DEFAULT_LIFESPAN = 100
ROOT_MIN = 0
ROOT_MAX = 100


@dataclass(frozen=True)
class SpiritualRootValues:
    """플레이어 灵根 수치. 각 0~100."""

    metal: int = 0
    wood: int = 0
    water: int = 0
    fire: int = 0
    earth: int = 0

    def get(self, name: str) -> int:
        return getattr(self, name)

    def to_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, raw: Any) -> "SpiritualRootValues":
        if not isinstance(raw, dict):
            return cls()
        values = {}
        for f in fields(cls):
            number = coerce_int(raw.get(f.name))
            values[f.name] = min(ROOT_MAX, max(ROOT_MIN, number or 0))
        return cls(**values)

    @classmethod
    def random_initial(cls) -> "SpiritualRootValues":
        """신규/구버전 캐릭터 초기 灵根: 각 0~15."""
        return cls(**{f.name: random.randint(0, 15) for f in fields(cls)})


@dataclass(frozen=True)
class PlayerStatistics:
    kill_count: int = 0
    meditate_count: int = 0
    adventure_count: int = 0
    equip_count: int = 0
    pet_count: int = 0
    recipe_count: int = 0
    art_count: int = 0
    breakthrough_count: int = 0
    secret_realm_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, raw: Any, recipe_count: int = 0) -> "PlayerStatistics":
        if not isinstance(raw, dict):
            return cls(recipe_count=recipe_count)
        values = {f.name: coerce_int(raw.get(f.name)) or 0 for f in fields(cls)}
        if "recipe_count" not in raw:
            values["recipe_count"] = recipe_count
        return cls(**values)


@dataclass(frozen=True)
class PetTemplate:
    """灵宠 원형 (설정 테이블)"""

    species: str
    rarity: ItemRarity
    base_stats: dict[str, int] = field(default_factory=dict)
    skills: tuple[str, ...] = ()
    names: tuple[str, ...] = ()


@dataclass(frozen=True)
class Pet:
    id: str
    name: str
    species: str
    rarity: ItemRarity
    level: int = 1
    exp: int = 0
    max_exp: int = 60
    stats: dict[str, int] = field(default_factory=dict)
    skills: tuple[str, ...] = ()
    evolution_stage: int = 0
    affection: int = 50

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "species": self.species,
            "rarity": self.rarity.value,
            "level": self.level,
            "exp": self.exp,
            "max_exp": self.max_exp,
            "stats": dict(self.stats),
            "skills": list(self.skills),
            "evolution_stage": self.evolution_stage,
            "affection": self.affection,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Pet":
        return cls(
            id=str(raw["id"]),
            name=str(raw.get("name", "")),
            species=str(raw.get("species", "")),
            rarity=ItemRarity.parse(raw.get("rarity"), ItemRarity.COMMON),
            level=coerce_int(raw.get("level")) or 1,
            exp=coerce_int(raw.get("exp")) or 0,
            max_exp=coerce_int(raw.get("max_exp", raw.get("maxExp"))) or 60,
            stats=dict(raw.get("stats") or {}),
            skills=tuple(raw.get("skills") or ()),
            evolution_stage=coerce_int(raw.get("evolution_stage", raw.get("evolutionStage"))) or 0,
            affection=coerce_int(raw.get("affection")) or 50,
        )


@dataclass(frozen=True)
class PlayerState:
    """플레이어 집합체 스냅샷

    equipped_items 는 약한 참조: 인벤토리에 없는 id 는 무시(stale)한다.
    natal_artifact_id 가 가리키는 한 아이템만 +50% 수치를 받는다.
    """

    name: str
    realm: str = REALM_ORDER[0]
    realm_level: int = 1
    exp: int = 0
    max_exp: int = 100
    hp: int = 100
    max_hp: int = 100
    attack: int = 10
    defense: int = 5
    spirit: int = 10
    physique: int = 10
    speed: int = 10
    lifespan: int = DEFAULT_LIFESPAN
    max_lifespan: int = DEFAULT_LIFESPAN
    spirit_stones: int = 0
    spiritual_roots: SpiritualRootValues = field(default_factory=SpiritualRootValues)
    inventory: tuple[Item, ...] = ()
    equipped_items: dict[EquipmentSlot, str] = field(default_factory=dict)
    natal_artifact_id: Optional[str] = None
    grotto: GrottoState = field(default_factory=GrottoState)
    pets: tuple[Pet, ...] = ()
    unlocked_recipes: tuple[str, ...] = ()
    statistics: PlayerStatistics = field(default_factory=PlayerStatistics)

    def find_item(self, item_id: str) -> Optional[Item]:
        return next((i for i in self.inventory if i.id == item_id), None)

    def is_equipped(self, item_id: str) -> bool:
        return item_id in self.equipped_items.values()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "realm": self.realm,
            "realm_level": self.realm_level,
            "exp": self.exp,
            "max_exp": self.max_exp,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "attack": self.attack,
            "defense": self.defense,
            "spirit": self.spirit,
            "physique": self.physique,
            "speed": self.speed,
            "lifespan": self.lifespan,
            "max_lifespan": self.max_lifespan,
            "spirit_stones": self.spirit_stones,
            "spiritual_roots": self.spiritual_roots.to_dict(),
            "inventory": [item.to_dict() for item in self.inventory],
            "equipped_items": {slot.value: item_id for slot, item_id in self.equipped_items.items()},
            "natal_artifact_id": self.natal_artifact_id,
            "grotto": self.grotto.to_dict(),
            "pets": [pet.to_dict() for pet in self.pets],
            "unlocked_recipes": list(self.unlocked_recipes),
            "statistics": self.statistics.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "PlayerState":
        """저장 스냅샷 → PlayerState. 구버전에 없는 필드는 기본값으로 합성."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in raw:
                    return raw[key]
            return None

        def int_field(default: int, *keys: str) -> int:
            value = coerce_int(pick(*keys))
            return default if value is None else value

        inventory = []
        for entry in pick("inventory") or []:
            if not isinstance(entry, dict) or "id" not in entry:
                logger.warning("Skipping malformed inventory entry: %r", entry)
                continue
            inventory.append(Item.from_dict(entry))

        equipped: dict[EquipmentSlot, str] = {}
        for slot_key, item_id in (pick("equipped_items", "equippedItems") or {}).items():
            slot = EquipmentSlot.parse(slot_key)
            if slot is not None and item_id:
                equipped[slot] = str(item_id)

        max_lifespan = int_field(DEFAULT_LIFESPAN, "max_lifespan", "maxLifespan")
        unlocked = tuple(pick("unlocked_recipes", "unlockedRecipes") or ())
        roots_raw = pick("spiritual_roots", "spiritualRoots")

        return cls(
            name=str(pick("name") or ""),
            realm=str(pick("realm") or REALM_ORDER[0]),
            realm_level=int_field(1, "realm_level", "realmLevel"),
            exp=int_field(0, "exp"),
            max_exp=int_field(100, "max_exp", "maxExp"),
            hp=int_field(100, "hp"),
            max_hp=int_field(100, "max_hp", "maxHp"),
            attack=int_field(10, "attack"),
            defense=int_field(5, "defense"),
            spirit=int_field(10, "spirit"),
            physique=int_field(10, "physique"),
            speed=int_field(10, "speed"),
            lifespan=int_field(max_lifespan, "lifespan"),
            max_lifespan=max_lifespan,
            spirit_stones=int_field(0, "spirit_stones", "spiritStones"),
            spiritual_roots=SpiritualRootValues.from_dict(roots_raw)
            if isinstance(roots_raw, dict)
            else SpiritualRootValues.random_initial(),
            inventory=tuple(inventory),
            equipped_items=equipped,
            natal_artifact_id=pick("natal_artifact_id", "natalArtifactId") or None,
            grotto=GrottoState.from_dict(pick("grotto")),
            pets=tuple(
                Pet.from_dict(p) for p in pick("pets") or [] if isinstance(p, dict) and "id" in p
            ),
            unlocked_recipes=unlocked,
            statistics=PlayerStatistics.from_dict(pick("statistics"), recipe_count=len(unlocked)),
        )


def create_initial_player(name: str, spirit_stones: int = 0) -> PlayerState:
    """새 캐릭터. 灵根은 무작위, 洞府 미보유."""
    return PlayerState(
        name=name,
        spirit_stones=spirit_stones,
        spiritual_roots=SpiritualRootValues.random_initial(),
    )
