"""기연 생성기 응답 파싱 — 신뢰할 수 없는 JSON → EncounterOutcome

파싱 단계:
1. 전체 JSON 시도
2. ```json ... ``` 블록 추출 시도
3. 실패 → None

필드가 없거나 잘못되면 기본값으로 대체한다 (type→材料, rarity→普通, effect→빈 값).
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.core.item.inventory import ItemTemplate
from src.core.item.models import (
    EquipmentSlot,
    ItemEffect,
    ItemRarity,
    ItemType,
    PermanentEffect,
    RecipeData,
    coerce_int,
)

logger = logging.getLogger(__name__)

EVENT_COLORS = ("normal", "gain", "danger", "special")


class LootGrant(BaseModel):
    """itemObtained 페이로드"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    type: str = ItemType.MATERIAL.value
    description: str = ""
    rarity: str = ItemRarity.COMMON.value
    is_equippable: bool = Field(default=False, alias="isEquippable")
    equipment_slot: Optional[str] = Field(default=None, alias="equipmentSlot")
    effect: dict[str, Any] = Field(default_factory=dict)
    permanent_effect: dict[str, Any] = Field(default_factory=dict, alias="permanentEffect")
    recipe_data: Optional[dict[str, Any]] = Field(default=None, alias="recipeData")
    quantity: int = 1

    @field_validator("name", "description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> str:
        # 모르는 문자열은 분류기 폴백("防具" 등)을 위해 그대로 둔다
        return value.strip() if isinstance(value, str) and value.strip() else ItemType.MATERIAL.value

    @field_validator("rarity", mode="before")
    @classmethod
    def _rarity(cls, value: Any) -> str:
        return (ItemRarity.parse(value) or ItemRarity.COMMON).value

    @field_validator("is_equippable", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return value is True or (isinstance(value, str) and value.lower() == "true")

    @field_validator("equipment_slot", mode="before")
    @classmethod
    def _slot(cls, value: Any) -> Optional[str]:
        slot = EquipmentSlot.parse(value)
        return slot.value if slot else None

    @field_validator("effect", "permanent_effect", mode="before")
    @classmethod
    def _bag(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @field_validator("recipe_data", mode="before")
    @classmethod
    def _recipe(cls, value: Any) -> Optional[dict[str, Any]]:
        return value if isinstance(value, dict) else None

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> int:
        return max(1, coerce_int(value) or 1)

    def to_template(self) -> ItemTemplate:
        """ItemTemplate 변환. 숫자 필드 오류는 ItemEffect.from_dict 에서 무시된다."""
        return ItemTemplate(
            name=self.name,
            type=ItemType.parse(self.type, None) or self.type,
            description=self.description,
            rarity=ItemRarity.parse(self.rarity, ItemRarity.COMMON) or ItemRarity.COMMON,
            is_equippable=self.is_equippable,
            equipment_slot=EquipmentSlot.parse(self.equipment_slot),
            effect=ItemEffect.from_dict(self.effect),
            permanent_effect=PermanentEffect.from_dict(self.permanent_effect),
            recipe_data=RecipeData.from_dict(self.recipe_data),
        )


class EncounterOutcome(BaseModel):
    """기연 결과 전체"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    story: str = ""
    hp_change: int = Field(default=0, alias="hpChange")
    exp_change: int = Field(default=0, alias="expChange")
    spirit_stones_change: int = Field(default=0, alias="spiritStonesChange")
    event_color: str = Field(default="normal", alias="eventColor")
    item_obtained: Optional[LootGrant] = Field(default=None, alias="itemObtained")

    @field_validator("story", mode="before")
    @classmethod
    def _story(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("hp_change", "exp_change", "spirit_stones_change", mode="before")
    @classmethod
    def _delta(cls, value: Any) -> int:
        return coerce_int(value) or 0

    @field_validator("event_color", mode="before")
    @classmethod
    def _color(cls, value: Any) -> str:
        return value if value in EVENT_COLORS else "normal"

    @field_validator("item_obtained", mode="before")
    @classmethod
    def _item(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class LootParser:
    """기연 응답 파싱"""

    def parse(self, raw: str) -> Optional[EncounterOutcome]:
        """응답 문자열 → EncounterOutcome. JSON 을 찾지 못하면 None."""
        parsed = self._try_parse_json(raw.strip())
        if parsed is None:
            block = self._extract_json_block(raw)
            if block is not None:
                parsed = self._try_parse_json(block)
        if parsed is None:
            logger.warning("Failed to parse encounter response")
            return None

        try:
            return EncounterOutcome.model_validate(parsed)
        except ValidationError as e:
            logger.warning("Encounter payload rejected: %s", e)
            return None

    def parse_loot(self, payload: Any) -> Optional[LootGrant]:
        """itemObtained 단독 파싱. 이름이 비어도 통과 (인벤토리에서 未知物品 처리)."""
        if not isinstance(payload, dict):
            return None
        try:
            return LootGrant.model_validate(payload)
        except ValidationError as e:
            logger.warning("Loot payload rejected: %s", e)
            return None

    def _try_parse_json(self, text: str) -> dict | None:
        try:
            result = json.loads(text)
            if isinstance(result, dict):
                return result
            return None
        except (json.JSONDecodeError, TypeError):
            return None

    def _extract_json_block(self, text: str) -> str | None:
        match = re.search(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL)
        if match:
            return match.group(1)
        return None
