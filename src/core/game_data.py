"""설정 테이블 저장소 — JSON 로드 + 동적 등록

洞府 등급, 灵草, 聚灵阵 개조, 灵宠 원형, 丹方, 境界 순서,
稀有度 배율/기본가, 境界 기준 능력치. 시작 시 한 번 로드하고 이후 읽기 전용으로 쓴다.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from src.core.grotto.models import (
    EnhancementMaterial,
    GrottoConfig,
    PlantableHerb,
    SpiritArrayEnhancement,
)
from src.core.item.models import ItemRarity
from src.core.item.normalizer import RARITY_MULTIPLIERS, REALM_BASE_STATS, RealmBaseStats
from src.core.item.pricing import RARITY_BASE_PRICES
from src.core.player.models import REALM_ORDER, PetTemplate

logger = logging.getLogger(__name__)


class GameDataRegistry:
    """
    설정 테이블 저장소.
    초기 데이터(JSON) + 테스트/동적 등록 관리.
    """

    def __init__(self) -> None:
        self._grotto_configs: dict[int, GrottoConfig] = {}
        self._herbs: dict[str, PlantableHerb] = {}
        self._enhancements: dict[str, SpiritArrayEnhancement] = {}
        self._pet_templates: list[PetTemplate] = []
        self._recipes: list[str] = []
        self.realm_order: tuple[str, ...] = REALM_ORDER
        self.rarity_multipliers: dict[ItemRarity, float] = dict(RARITY_MULTIPLIERS)
        self.rarity_base_prices: dict[ItemRarity, int] = dict(RARITY_BASE_PRICES)
        self.realm_base_stats: dict[str, RealmBaseStats] = dict(REALM_BASE_STATS)

    # === 로드 ===

    def load_from_json(self, path: str | Path) -> int:
        """game_data.json 로드. 반환: 로드된 항목 수(모든 테이블 합계).

        잘못된 항목은 경고 로그 후 건너뛴다.
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw: dict[str, Any] = json.load(f)

        count = 0
        for entry in raw.get("grotto_configs", []):
            try:
                self.register_grotto_config(_parse_grotto_config(entry))
                count += 1
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Failed to load grotto config: %s — %s", entry.get("level", "?"), e)

        for entry in raw.get("plantable_herbs", []):
            try:
                self.register_herb(_parse_herb(entry))
                count += 1
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Failed to load herb: %s — %s", entry.get("id", "?"), e)

        for entry in raw.get("spirit_array_enhancements", []):
            try:
                self.register_enhancement(_parse_enhancement(entry))
                count += 1
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Failed to load enhancement: %s — %s", entry.get("id", "?"), e)

        for entry in raw.get("pet_templates", []):
            try:
                self.register_pet_template(_parse_pet_template(entry))
                count += 1
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Failed to load pet template: %s — %s", entry.get("species", "?"), e)

        for name in raw.get("discoverable_recipes", []):
            if isinstance(name, str) and name:
                self.register_recipe(name)
                count += 1

        if raw.get("realm_order"):
            self.realm_order = tuple(raw["realm_order"])

        for key, value in (raw.get("rarity_multipliers") or {}).items():
            rarity = ItemRarity.parse(key, None)
            if rarity is not None:
                self.rarity_multipliers[rarity] = float(value)

        for key, value in (raw.get("rarity_base_prices") or {}).items():
            rarity = ItemRarity.parse(key, None)
            if rarity is not None:
                self.rarity_base_prices[rarity] = int(value)

        for realm, entry in (raw.get("realm_base_stats") or {}).items():
            try:
                self.register_realm_base_stats(realm, _parse_realm_base_stats(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Failed to load realm base stats: %s — %s", realm, e)

        logger.info("Loaded %d game data entries from %s", count, path)
        return count

    # === 등록 ===

    def register_grotto_config(self, config: GrottoConfig) -> None:
        if config.level in self._grotto_configs:
            logger.warning("Overwriting grotto config level %d", config.level)
        self._grotto_configs[config.level] = config

    def register_herb(self, herb: PlantableHerb) -> None:
        if herb.harvest_min > herb.harvest_max:
            raise ValueError(f"harvest range inverted: {herb.id}")
        self._herbs[herb.id] = herb

    def register_enhancement(self, enhancement: SpiritArrayEnhancement) -> None:
        self._enhancements[enhancement.id] = enhancement

    def register_pet_template(self, template: PetTemplate) -> None:
        self._pet_templates.append(template)

    def register_recipe(self, name: str) -> None:
        if name not in self._recipes:
            self._recipes.append(name)

    def register_realm_base_stats(self, realm: str, stats: RealmBaseStats) -> None:
        self.realm_base_stats[realm] = stats

    # === 조회 ===

    def get_grotto_config(self, level: int) -> Optional[GrottoConfig]:
        return self._grotto_configs.get(level)

    def get_grotto_configs(self) -> list[GrottoConfig]:
        return sorted(self._grotto_configs.values(), key=lambda c: c.level)

    def get_herb(self, herb_id: str) -> Optional[PlantableHerb]:
        return self._herbs.get(herb_id)

    def get_herbs(self) -> list[PlantableHerb]:
        return list(self._herbs.values())

    def get_enhancement(self, enhancement_id: str) -> Optional[SpiritArrayEnhancement]:
        return self._enhancements.get(enhancement_id)

    def get_enhancements(self) -> list[SpiritArrayEnhancement]:
        return list(self._enhancements.values())

    def get_pet_templates(self) -> list[PetTemplate]:
        return list(self._pet_templates)

    def has_recipe(self, name: str) -> bool:
        return name in self._recipes

    def get_recipes(self) -> list[str]:
        return list(self._recipes)

    def get_realm_base_stats(self, realm: str) -> Optional[RealmBaseStats]:
        return self.realm_base_stats.get(realm)

    def realm_index(self, realm: str) -> int:
        try:
            return self.realm_order.index(realm)
        except ValueError:
            return -1


def _parse_grotto_config(raw: dict[str, Any]) -> GrottoConfig:
    return GrottoConfig(
        level=int(raw["level"]),
        name=str(raw["name"]),
        cost=int(raw["cost"]),
        exp_rate_bonus=float(raw.get("exp_rate_bonus", 0.0)),
        storage_capacity=int(raw.get("storage_capacity", 0)),
        max_herb_slots=int(raw["max_herb_slots"]),
        realm_requirement=raw.get("realm_requirement"),
        description=raw.get("description", ""),
    )


def _parse_herb(raw: dict[str, Any]) -> PlantableHerb:
    quantity = raw["harvest_quantity"]
    return PlantableHerb(
        id=str(raw["id"]),
        name=str(raw["name"]),
        growth_time=int(raw["growth_time"]),
        harvest_min=int(quantity["min"]),
        harvest_max=int(quantity["max"]),
        rarity=ItemRarity.parse(raw.get("rarity"), ItemRarity.COMMON),
        grotto_level_requirement=int(raw.get("grotto_level_requirement", 1)),
    )


def _parse_enhancement(raw: dict[str, Any]) -> SpiritArrayEnhancement:
    return SpiritArrayEnhancement(
        id=str(raw["id"]),
        name=str(raw["name"]),
        grotto_level_requirement=int(raw["grotto_level_requirement"]),
        exp_rate_bonus=float(raw["exp_rate_bonus"]),
        materials=tuple(
            EnhancementMaterial(name=str(m["name"]), quantity=int(m["quantity"]))
            for m in raw.get("materials", [])
        ),
        description=raw.get("description", ""),
    )


def _parse_pet_template(raw: dict[str, Any]) -> PetTemplate:
    rarity = ItemRarity.parse(raw["rarity"], None)
    if rarity is None:
        raise ValueError(f"unknown rarity {raw['rarity']!r}")
    return PetTemplate(
        species=str(raw["species"]),
        rarity=rarity,
        base_stats={k: int(v) for k, v in raw.get("base_stats", {}).items()},
        skills=tuple(raw.get("skills", [])),
        names=tuple(raw.get("names", [])),
    )


def _parse_realm_base_stats(raw: dict[str, Any]) -> RealmBaseStats:
    return RealmBaseStats(
        attack=int(raw["attack"]),
        defense=int(raw["defense"]),
        max_hp=int(raw["max_hp"]),
        spirit=int(raw["spirit"]),
        physique=int(raw["physique"]),
        speed=int(raw["speed"]),
    )
