"""洞府 도메인 모델 (DB 무관)

설정(GrottoConfig, PlantableHerb, SpiritArrayEnhancement)은 시작 시 로드되는 읽기 전용.
상태(GrottoState, PlantedHerb)는 PlayerState 안에 들어가며 불변이다.
성숙 여부는 저장하지 않는다 — 매번 harvest_time 과 현재 시각으로 판정.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from src.core.item.models import ItemRarity, coerce_float, coerce_int


@dataclass(frozen=True)
class GrottoConfig:
    """洞府 등급 설정"""

    level: int
    name: str
    cost: int  # 灵石
    exp_rate_bonus: float  # 수련 속도 보너스 (비율)
    storage_capacity: int
    max_herb_slots: int
    realm_requirement: Optional[str] = None  # None = 제한 없음
    description: str = ""


@dataclass(frozen=True)
class PlantableHerb:
    """심을 수 있는 灵草 설정"""

    id: str
    name: str
    growth_time: int  # ms
    harvest_min: int
    harvest_max: int
    rarity: ItemRarity = ItemRarity.COMMON
    grotto_level_requirement: int = 1


@dataclass(frozen=True)
class EnhancementMaterial:
    name: str
    quantity: int


@dataclass(frozen=True)
class SpiritArrayEnhancement:
    """聚灵阵 개조 설정. exp_rate_bonus 는 누적 가산."""

    id: str
    name: str
    grotto_level_requirement: int
    exp_rate_bonus: float
    materials: tuple[EnhancementMaterial, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class PlantedHerb:
    """심어진 灵草 한 칸. 수확 수량은 심는 시점에 확정."""

    herb_id: str
    herb_name: str
    plant_time: int  # epoch ms
    harvest_time: int  # plant_time + growth_time
    quantity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "herb_id": self.herb_id,
            "herb_name": self.herb_name,
            "plant_time": self.plant_time,
            "harvest_time": self.harvest_time,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "PlantedHerb":
        return cls(
            herb_id=str(raw.get("herb_id", raw.get("herbId", ""))),
            herb_name=str(raw.get("herb_name", raw.get("herbName", ""))),
            plant_time=coerce_int(raw.get("plant_time", raw.get("plantTime"))) or 0,
            harvest_time=coerce_int(raw.get("harvest_time", raw.get("harvestTime"))) or 0,
            quantity=max(1, coerce_int(raw.get("quantity")) or 1),
        )


@dataclass(frozen=True)
class GrottoState:
    """플레이어 洞府 상태. level 0 = 미보유."""

    level: int = 0
    exp_rate_bonus: float = 0.0
    spirit_array_enhancement: float = 0.0  # exp_rate_bonus 와 가산
    storage_capacity: int = 0
    last_harvest_time: Optional[int] = None
    planted_herbs: tuple[PlantedHerb, ...] = field(default_factory=tuple)

    @property
    def is_owned(self) -> bool:
        return self.level > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "exp_rate_bonus": self.exp_rate_bonus,
            "spirit_array_enhancement": self.spirit_array_enhancement,
            "storage_capacity": self.storage_capacity,
            "last_harvest_time": self.last_harvest_time,
            "planted_herbs": [h.to_dict() for h in self.planted_herbs],
        }

    @classmethod
    def from_dict(cls, raw: Optional[dict[str, Any]]) -> "GrottoState":
        """구버전 저장 호환: 洞府 없음 → 기본값, 聚灵阵 필드 없음 → 0."""
        if not isinstance(raw, dict):
            return cls()
        herbs = raw.get("planted_herbs", raw.get("plantedHerbs")) or []
        return cls(
            level=max(0, coerce_int(raw.get("level")) or 0),
            exp_rate_bonus=coerce_float(raw.get("exp_rate_bonus", raw.get("expRateBonus"))),
            spirit_array_enhancement=coerce_float(
                raw.get("spirit_array_enhancement", raw.get("spiritArrayEnhancement"))
            ),
            storage_capacity=coerce_int(
                raw.get("storage_capacity", raw.get("storageCapacity"))
            )
            or 0,
            last_harvest_time=coerce_int(
                raw.get("last_harvest_time", raw.get("lastHarvestTime"))
            ),
            planted_herbs=tuple(
                PlantedHerb.from_dict(h) for h in herbs if isinstance(h, dict)
            ),
        )
