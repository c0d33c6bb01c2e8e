"""기연 결과 반영 — 기혈/수위/灵石 증감 + 전리품 지급

장비 전리품은 지급 직후 현재 境界 기준으로 수치를 맞춘다.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping, Optional

from src.core.item.inventory import ItemTemplate, grant_item
from src.core.item.models import Item, ItemRarity
from src.core.item.normalizer import (
    RARITY_MULTIPLIERS,
    REALM_BASE_STATS,
    RealmBaseStats,
    adjust_equipment_stats_by_realm,
)
from src.core.result import TransitionResult

from .models import PlayerState

logger = logging.getLogger(__name__)


def _scale_to_realm(
    item: Item, state: PlayerState, base_stats: Mapping[str, RealmBaseStats]
) -> Item:
    effect = adjust_equipment_stats_by_realm(
        item.effect, state.realm, state.realm_level, item.rarity, base_stats
    )
    if effect != item.effect:
        logger.debug("Scaled %s to %s level %d", item.name, state.realm, state.realm_level)
    return replace(item, effect=effect)


def apply_encounter(
    state: PlayerState,
    hp_change: int = 0,
    exp_change: int = 0,
    spirit_stones_change: int = 0,
    loot: Optional[ItemTemplate] = None,
    loot_quantity: int = 1,
    multipliers: Mapping[ItemRarity, float] = RARITY_MULTIPLIERS,
    base_stats: Mapping[str, RealmBaseStats] = REALM_BASE_STATS,
) -> TransitionResult[PlayerState]:
    """hp 는 [0, max_hp], exp/灵石 은 0 미만으로 내려가지 않는다."""
    new_state = replace(
        state,
        hp=min(state.max_hp, max(0, state.hp + hp_change)),
        exp=max(0, state.exp + exp_change),
        spirit_stones=max(0, state.spirit_stones + spirit_stones_change),
        statistics=replace(
            state.statistics, adventure_count=state.statistics.adventure_count + 1
        ),
    )

    messages = []
    item_ids: list[str] = []
    if loot is not None:
        granted = grant_item(new_state, loot, loot_quantity, multipliers)
        if granted.success:
            item_ids = granted.data["item_ids"]
            inventory = tuple(
                _scale_to_realm(item, new_state, base_stats)
                if item.id in item_ids and item.is_equippable
                else item
                for item in granted.state.inventory
            )
            new_state = replace(granted.state, inventory=inventory)
            messages.extend(granted.messages)
        else:
            logger.info("Encounter loot skipped: %s", granted.reason)

    return TransitionResult.ok(
        new_state,
        *messages,
        hp_change=new_state.hp - state.hp,
        exp_change=new_state.exp - state.exp,
        spirit_stones_change=new_state.spirit_stones - state.spirit_stones,
        item_ids=item_ids,
    )
