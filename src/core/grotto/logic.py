"""洞府 전이 — 구매/승급, 种植, 收获, 聚灵阵 개조

심어진 灵草: Planted → Mature → (수확 시 제거).
성숙은 now >= harvest_time 으로 매번 판정한다 (pull 방식, 타이머 없음).
모든 전이는 (PlayerState, ..., now) → TransitionResult 이며
거부 시 입력 스냅샷을 그대로 돌려준다.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import replace

from src.core.game_data import GameDataRegistry
from src.core.item.inventory import (
    consume_materials,
    decrement_in_inventory,
    find_by_name,
    merge_stack,
)
from src.core.item.models import Item, ItemRarity, ItemType
from src.core.player.models import PlayerState
from src.core.result import ErrorKind, Rejection, TransitionResult, insufficient

from .models import GrottoConfig, GrottoState, PlantableHerb, PlantedHerb

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000


# === 순수 조회 ===


def is_mature(herb: PlantedHerb, now: int) -> bool:
    """수확 가능 여부. harvest_time 과 같으면 성숙 (경계 포함)."""
    return now >= herb.harvest_time


def remaining_ms(herb: PlantedHerb, now: int) -> int:
    return max(0, herb.harvest_time - now)


def remaining_minutes(herb: PlantedHerb, now: int) -> int:
    """남은 시간(분), 올림. 1ms 남아도 1분."""
    return math.ceil(remaining_ms(herb, now) / MS_PER_MINUTE)


def count_mature(grotto: GrottoState, now: int) -> int:
    return sum(1 for herb in grotto.planted_herbs if is_mature(herb, now))


def max_herb_slots(level: int, data: GameDataRegistry) -> int:
    """등급별 슬롯 수. 미보유/설정 없음 → 0."""
    config = data.get_grotto_config(level)
    return config.max_herb_slots if config else 0


def total_exp_rate_bonus(grotto: GrottoState) -> float:
    """수련 속도 보너스 = 洞府 보너스 + 聚灵阵 누적 보너스."""
    return grotto.exp_rate_bonus + grotto.spirit_array_enhancement


def available_upgrades(state: PlayerState, data: GameDataRegistry) -> list[GrottoConfig]:
    """현재 등급보다 높고 境界 조건을 만족하는 설정 목록 (灵石 부족은 포함)."""
    player_index = data.realm_index(state.realm)
    upgrades = []
    for config in data.get_grotto_configs():
        if config.level <= state.grotto.level:
            continue
        if config.realm_requirement and player_index < data.realm_index(config.realm_requirement):
            continue
        upgrades.append(config)
    return upgrades


def available_herbs(state: PlayerState, data: GameDataRegistry) -> list[PlantableHerb]:
    """지금 심을 수 있는 灵草 (등급 조건 + 씨앗 보유)."""
    herbs = []
    for herb in data.get_herbs():
        if state.grotto.level < herb.grotto_level_requirement:
            continue
        seed = find_by_name(state.inventory, herb.name, ItemType.HERB)
        if seed is not None and seed.quantity >= 1:
            herbs.append(herb)
    return herbs


def truncate_planted_herbs(
    planted: tuple[PlantedHerb, ...], max_slots: int
) -> tuple[tuple[PlantedHerb, ...], int]:
    """슬롯 상한 초과분을 가장 오래된 것부터 제거. (남은 목록, 제거 수) 반환."""
    excess = len(planted) - max_slots
    if excess <= 0:
        return planted, 0
    return planted[excess:], excess


# === 전이 ===


def upgrade_grotto(
    state: PlayerState, target_level: int, data: GameDataRegistry
) -> TransitionResult[PlayerState]:
    """洞府 구매(0→n) 또는 승급."""
    grotto = state.grotto
    current_level = grotto.level

    if target_level <= current_level:
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.INVALID_STATE,
                "无法降级洞府！",
                {"current_level": current_level, "target_level": target_level},
            ),
        )

    config = data.get_grotto_config(target_level)
    if config is None:
        return TransitionResult.reject(
            state,
            Rejection(ErrorKind.INVALID_TARGET, "无效的洞府等级！", {"target_level": target_level}),
        )

    if config.realm_requirement:
        if data.realm_index(state.realm) < data.realm_index(config.realm_requirement):
            return TransitionResult.reject(
                state,
                Rejection(
                    ErrorKind.REQUIREMENT_NOT_MET,
                    f"需要达到{config.realm_requirement}境界才能购买此洞府！",
                    {"required_realm": config.realm_requirement, "current_realm": state.realm},
                ),
            )

    if state.spirit_stones < config.cost:
        return TransitionResult.reject(
            state,
            insufficient("灵石", config.cost, state.spirit_stones, f"灵石不足！需要 {config.cost} 灵石。"),
        )

    planted, removed = truncate_planted_herbs(grotto.planted_herbs, config.max_herb_slots)

    messages = []
    if removed:
        messages.append(f"升级洞府时，移除了 {removed} 个灵草种植槽位。")
    action = "购买" if current_level == 0 else "升级"
    messages.append(f"成功{action}洞府至【{config.name}】！消耗 {config.cost} 灵石。")

    new_state = replace(
        state,
        spirit_stones=state.spirit_stones - config.cost,
        grotto=replace(
            grotto,
            level=target_level,
            exp_rate_bonus=config.exp_rate_bonus,
            storage_capacity=config.storage_capacity,
            planted_herbs=planted,
        ),
    )
    logger.debug("Grotto %d → %d (removed %d planted)", current_level, target_level, removed)
    return TransitionResult.ok(
        new_state,
        *messages,
        level=target_level,
        cost=config.cost,
        removed_herbs=removed,
    )


def plant_herb(
    state: PlayerState, herb_id: str, data: GameDataRegistry, now: int
) -> TransitionResult[PlayerState]:
    """씨앗 1개 소모 → 슬롯 하나 차지. 수확량은 지금 확정."""
    grotto = state.grotto
    current_config = data.get_grotto_config(grotto.level)
    if not grotto.is_owned or current_config is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_STATE, "请先购买洞府！")
        )

    if len(grotto.planted_herbs) >= current_config.max_herb_slots:
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.CAPACITY_EXCEEDED,
                f"洞府种植槽位已满（最多 {current_config.max_herb_slots} 个）！",
                {"max_slots": current_config.max_herb_slots},
            ),
        )

    herb = data.get_herb(herb_id)
    if herb is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "无效的灵草！", {"herb_id": herb_id})
        )

    if grotto.level < herb.grotto_level_requirement:
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.REQUIREMENT_NOT_MET,
                f"种植{herb.name}需要{herb.grotto_level_requirement}级洞府！",
                {"required_level": herb.grotto_level_requirement, "current_level": grotto.level},
            ),
        )

    seed = find_by_name(state.inventory, herb.name, ItemType.HERB)
    if seed is None or seed.quantity < 1:
        return TransitionResult.reject(
            state,
            insufficient(
                f"{herb.name}种子", 1, seed.quantity if seed else 0, f"背包中没有{herb.name}种子！"
            ),
        )

    planted = PlantedHerb(
        herb_id=herb.id,
        herb_name=herb.name,
        plant_time=now,
        harvest_time=now + herb.growth_time,
        quantity=random.randint(herb.harvest_min, herb.harvest_max),
    )

    new_state = replace(
        state,
        inventory=decrement_in_inventory(state.inventory, seed.id, 1),
        grotto=replace(grotto, planted_herbs=grotto.planted_herbs + (planted,)),
    )
    minutes = herb.growth_time // MS_PER_MINUTE
    return TransitionResult.ok(
        new_state,
        f"成功种植{herb.name}！预计 {minutes} 分钟后可收获。",
        herb_id=herb.id,
        harvest_time=planted.harvest_time,
        quantity=planted.quantity,
    )


def _harvest_into(
    inventory: tuple[Item, ...], planted: PlantedHerb, data: GameDataRegistry
) -> tuple[Item, ...]:
    herb = data.get_herb(planted.herb_id)
    return merge_stack(
        inventory,
        name=planted.herb_name,
        item_type=ItemType.HERB,
        quantity=planted.quantity,
        rarity=herb.rarity if herb else ItemRarity.COMMON,
        description=f"{planted.herb_name}，可用于炼丹。",
    )


def harvest_herb(
    state: PlayerState, herb_index: int, data: GameDataRegistry, now: int
) -> TransitionResult[PlayerState]:
    """한 칸 수확."""
    planted = state.grotto.planted_herbs
    if herb_index < 0 or herb_index >= len(planted):
        return TransitionResult.reject(
            state,
            Rejection(ErrorKind.INVALID_TARGET, "无效的种植索引！", {"index": herb_index}),
        )

    herb = planted[herb_index]
    if not is_mature(herb, now):
        minutes = remaining_minutes(herb, now)
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.NOT_YET_READY,
                f"灵草还未成熟！还需 {minutes} 分钟。",
                {"remaining_minutes": minutes, "remaining_ms": remaining_ms(herb, now)},
            ),
        )

    new_state = replace(
        state,
        inventory=_harvest_into(state.inventory, herb, data),
        grotto=replace(
            state.grotto,
            planted_herbs=planted[:herb_index] + planted[herb_index + 1 :],
            last_harvest_time=now,
        ),
    )
    return TransitionResult.ok(
        new_state,
        f"成功收获{herb.herb_name} x{herb.quantity}！",
        herb_id=herb.herb_id,
        herb_name=herb.herb_name,
        quantity=herb.quantity,
    )


def harvest_all(
    state: PlayerState, data: GameDataRegistry, now: int
) -> TransitionResult[PlayerState]:
    """성숙한 칸 전부 한 번에 수확. 미성숙 칸은 순서 그대로 남긴다."""
    mature = [h for h in state.grotto.planted_herbs if is_mature(h, now)]
    if not mature:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.NOT_YET_READY, "没有可以收获的灵草！", {"mature_count": 0})
        )

    inventory = state.inventory
    for herb in mature:
        inventory = _harvest_into(inventory, herb, data)
    remaining = tuple(h for h in state.grotto.planted_herbs if not is_mature(h, now))
    total = sum(h.quantity for h in mature)

    new_state = replace(
        state,
        inventory=inventory,
        grotto=replace(state.grotto, planted_herbs=remaining, last_harvest_time=now),
    )
    return TransitionResult.ok(
        new_state,
        f"成功批量收获 {len(mature)} 个灵草，共 {total} 个！",
        harvested_count=len(mature),
        total_quantity=total,
    )


def enhance_spirit_array(
    state: PlayerState, enhancement_id: str, data: GameDataRegistry
) -> TransitionResult[PlayerState]:
    """聚灵阵 개조. 보너스는 누적 가산, 상한 없음."""
    grotto = state.grotto
    if not grotto.is_owned:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_STATE, "请先购买洞府！")
        )

    enhancement = data.get_enhancement(enhancement_id)
    if enhancement is None:
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.INVALID_TARGET, "无效的改造配置！", {"enhancement_id": enhancement_id}
            ),
        )

    if grotto.level < enhancement.grotto_level_requirement:
        return TransitionResult.reject(
            state,
            Rejection(
                ErrorKind.REQUIREMENT_NOT_MET,
                f"需要{enhancement.grotto_level_requirement}级洞府才能进行此改造！",
                {
                    "required_level": enhancement.grotto_level_requirement,
                    "current_level": grotto.level,
                },
            ),
        )

    required: dict[str, int] = {}
    for material in enhancement.materials:
        required[material.name] = required.get(material.name, 0) + material.quantity
    consumed = consume_materials(state, required)
    if not consumed.success:
        return consumed

    total = grotto.spirit_array_enhancement + enhancement.exp_rate_bonus
    new_state = replace(
        consumed.state,
        grotto=replace(grotto, spirit_array_enhancement=total),
    )
    return TransitionResult.ok(
        new_state,
        f"成功改造聚灵阵【{enhancement.name}】！修炼速度额外提升 "
        f"{enhancement.exp_rate_bonus * 100:.0f}%。",
        enhancement_id=enhancement.id,
        spirit_array_enhancement=total,
    )
