"""아이템 사용 — 灵宠 부화, 临时效果, 永久效果, 丹方 학습

적용 순서는 고정: (a) 부화 → (b) 临时效果 → (c) 永久效果 → (d) 丹方.
효과 발동 여부와 무관하게 수량은 정확히 1 감소한다.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Any, Optional, Sequence

from src.core.game_data import GameDataRegistry
from src.core.item.inventory import decrement_in_inventory, new_item_id
from src.core.item.models import Item, ItemRarity, ItemType, SpiritualRoots
from src.core.result import ErrorKind, Rejection, TransitionResult

from .models import (
    DEFAULT_LIFESPAN,
    ROOT_MAX,
    ROOT_MIN,
    Pet,
    PetTemplate,
    PlayerState,
    SpiritualRootValues,
)

logger = logging.getLogger(__name__)

EGG_NAME_TOKENS = ("蛋", "灵兽蛋", "灵宠蛋")
EGG_DESCRIPTION_TOKENS = ("孵化", "灵宠", "灵兽", "宠物")

# 알 稀有度 → 나올 수 있는 灵宠 稀有度
PET_RARITY_COMPATIBILITY: dict[ItemRarity, frozenset[ItemRarity]] = {
    ItemRarity.COMMON: frozenset({ItemRarity.COMMON, ItemRarity.RARE}),
    ItemRarity.RARE: frozenset({ItemRarity.RARE, ItemRarity.LEGENDARY}),
    ItemRarity.LEGENDARY: frozenset({ItemRarity.LEGENDARY, ItemRarity.IMMORTAL}),
    ItemRarity.IMMORTAL: frozenset({ItemRarity.IMMORTAL}),
}

ROOT_NAMES = {"metal": "金", "wood": "木", "water": "水", "fire": "火", "earth": "土"}
RANDOM_ROOT_BONUS = 5
RECIPE_SUFFIX = "丹方"


def is_pet_egg(item: Item) -> bool:
    """부화 아이템 판정. 명시 태그 우선, 없으면 이름/설명 키워드."""
    if item.hatchable is not None:
        return item.hatchable
    if any(token in item.name for token in EGG_NAME_TOKENS) or "egg" in item.name.lower():
        return True
    return any(token in (item.description or "") for token in EGG_DESCRIPTION_TOKENS)


def draw_pet_template(
    rarity: ItemRarity, templates: Sequence[PetTemplate]
) -> Optional[PetTemplate]:
    """稀有度 호환 원형 중 균등 추첨. 후보가 없으면 None."""
    allowed = PET_RARITY_COMPATIBILITY.get(rarity, frozenset(ItemRarity))
    candidates = [t for t in templates if t.rarity in allowed]
    if not candidates:
        return None
    return random.choice(candidates)


def _hatch_pet(template: PetTemplate) -> Pet:
    name = random.choice(template.names) if template.names else template.species
    return Pet(
        id=new_item_id(),
        name=name,
        species=template.species,
        rarity=template.rarity,
        stats=dict(template.base_stats),
        skills=tuple(template.skills),
    )


def resolve_recipe_name(item: Item) -> str:
    if item.recipe_data is not None and item.recipe_data.name:
        return item.recipe_data.name
    name = item.name
    if name.endswith(RECIPE_SUFFIX):
        name = name[: -len(RECIPE_SUFFIX)]
    return name


def apply_item_effect(
    state: PlayerState, item: Item, data: GameDataRegistry, is_batch: bool = False
) -> TransitionResult[PlayerState]:
    """아이템 1개의 효과를 적용한 새 스냅샷.

    검증(존재/장착 여부)은 use_item 몫. 여기서는 item 이 인벤토리에 있다고 본다.
    is_batch=True 면 개별 서술 로그를 만들지 않는다 (effects 는 data 에 남긴다).
    """
    messages: list[str] = []
    effects: list[str] = []
    changes: dict[str, Any] = {"inventory": decrement_in_inventory(state.inventory, item.id, 1)}
    hatched: Optional[Pet] = None
    recipe_unlocked: Optional[str] = None

    # (a) 부화
    egg = is_pet_egg(item)
    if egg:
        template = draw_pet_template(item.rarity, data.get_pet_templates())
        if template is not None:
            hatched = _hatch_pet(template)
            changes["pets"] = state.pets + (hatched,)
            changes["statistics"] = replace(
                state.statistics, pet_count=state.statistics.pet_count + 1
            )
            effects.append(f"孵化出了灵宠【{hatched.name}】！")
            if not is_batch:
                messages.append(f"你成功孵化了{item.name}，获得了灵宠【{hatched.name}】！")
        else:
            effects.append("但似乎什么都没有孵化出来...")
            if not is_batch:
                messages.append(f"你尝试孵化{item.name}，但似乎什么都没有发生...")

    # (b) 临时效果
    hp = state.hp
    exp = state.exp
    lifespan = state.lifespan
    max_lifespan = state.max_lifespan or DEFAULT_LIFESPAN
    effect = item.effect
    if effect.hp:
        hp = min(state.max_hp, hp + effect.hp)
        effects.append(f"恢复了 {effect.hp} 点气血。")
    if effect.exp:
        exp += effect.exp
        effects.append(f"增长了 {effect.exp} 点修为。")
    if effect.lifespan:
        lifespan = (lifespan or max_lifespan) + effect.lifespan
        if lifespan > max_lifespan:
            max_lifespan = lifespan
        effects.append(f"寿命增加了 {effect.lifespan} 年。")

    # (c) 永久效果
    permanent = item.permanent_effect
    max_hp = state.max_hp
    stats = {
        name: getattr(state, name) for name in ("attack", "defense", "spirit", "physique", "speed")
    }
    roots = state.spiritual_roots
    gains: list[str] = []
    for name, label in (
        ("attack", "攻击力"),
        ("defense", "防御力"),
        ("spirit", "神识"),
        ("physique", "体魄"),
        ("speed", "速度"),
    ):
        value = getattr(permanent, name)
        if value:
            stats[name] += value
            gains.append(f"{label}永久 +{value}")
    if permanent.max_hp:
        max_hp += permanent.max_hp
        hp += permanent.max_hp
        gains.append(f"气血上限永久 +{permanent.max_hp}")
    if permanent.max_lifespan:
        max_lifespan += permanent.max_lifespan
        lifespan = min(max_lifespan, lifespan + permanent.max_lifespan)
        gains.append(f"最大寿命永久 +{permanent.max_lifespan} 年")
    if permanent.spiritual_roots is not None:
        roots, root_changes = _apply_root_gains(roots, permanent.spiritual_roots)
        if root_changes:
            gains.append(f"灵根提升：{'，'.join(root_changes)}")
    if gains:
        effects.append("，".join(gains))

    # (d) 丹方
    unlocked = state.unlocked_recipes
    if item.type == ItemType.RECIPE:
        recipe_name = resolve_recipe_name(item)
        if not recipe_name:
            messages.append(f"无法从【{item.name}】中识别出配方名称。")
        elif recipe_name in unlocked:
            if not is_batch:
                messages.append(f"你已经学会了【{recipe_name}】的炼制方法。")
        elif not data.has_recipe(recipe_name):
            logger.info("Unknown recipe %s from %s", recipe_name, item.name)
            if not is_batch:
                messages.append(f"【{recipe_name}】的配方不存在，无法学习。")
        else:
            unlocked = unlocked + (recipe_name,)
            recipe_unlocked = recipe_name
            statistics = changes.get("statistics", state.statistics)
            changes["statistics"] = replace(statistics, recipe_count=len(unlocked))
            effects.append(f"学会了【{recipe_name}】的炼制方法！")
            if not is_batch:
                messages.append(f"你研读了【{item.name}】，学会了【{recipe_name}】的炼制方法！")

    if not egg and item.type != ItemType.RECIPE and not is_batch:
        if effects:
            messages.append(f"你使用了 {item.name}。 {' '.join(effects)}")
        elif item.type == ItemType.PILL:
            messages.append(f"你使用了 {item.name}。")

    new_state = replace(
        state,
        hp=hp,
        max_hp=max_hp,
        exp=exp,
        lifespan=lifespan,
        max_lifespan=max_lifespan,
        spiritual_roots=roots,
        unlocked_recipes=unlocked,
        **stats,
        **changes,
    )
    return TransitionResult.ok(
        new_state,
        *messages,
        item_id=item.id,
        item_name=item.name,
        effects=effects,
        pet_id=hatched.id if hatched else None,
        recipe_unlocked=recipe_unlocked,
    )


def _apply_root_gains(
    roots: SpiritualRootValues, gains: SpiritualRoots
) -> tuple[SpiritualRootValues, list[str]]:
    """灵根 가산 (각 0~100 클램프). 전부 0 이면 무작위 하나 +5."""
    changes: list[str] = []
    if gains.all_zero():
        name = random.choice(tuple(ROOT_NAMES))
        value = min(ROOT_MAX, roots.get(name) + RANDOM_ROOT_BONUS)
        changes.append(f"{ROOT_NAMES[name]}灵根 +{RANDOM_ROOT_BONUS}")
        return replace(roots, **{name: value}), changes

    updated = {}
    for name, delta in gains.items():
        if not delta:
            continue
        updated[name] = min(ROOT_MAX, max(ROOT_MIN, roots.get(name) + delta))
        if delta > 0:
            changes.append(f"{ROOT_NAMES[name]}灵根 +{delta}")
    return replace(roots, **updated), changes


def use_item(
    state: PlayerState, item_id: str, data: GameDataRegistry, is_batch: bool = False
) -> TransitionResult[PlayerState]:
    item = state.find_item(item_id)
    if item is None:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "物品不存在！", {"item_id": item_id})
        )
    if state.is_equipped(item_id):
        return TransitionResult.reject(
            state,
            Rejection(ErrorKind.INVALID_STATE, "无法使用已装备的物品！请先卸下。", {"item_id": item_id}),
        )
    return apply_item_effect(state, item, data, is_batch=is_batch)


def batch_use_items(
    state: PlayerState, item_ids: Sequence[str], data: GameDataRegistry
) -> TransitionResult[PlayerState]:
    """순차 적용. 각 아이템은 직전 결과 스냅샷 위에서 사용된다.

    사라졌거나 장착 중인 id 는 건너뛴다. 하나도 못 쓰면 거부.
    """
    if not item_ids:
        return TransitionResult.reject(
            state, Rejection(ErrorKind.INVALID_TARGET, "没有选择任何物品！")
        )

    current = state
    used: list[str] = []
    skipped: list[str] = []
    effects: list[str] = []
    for item_id in item_ids:
        result = use_item(current, item_id, data, is_batch=True)
        if not result.success:
            skipped.append(item_id)
            continue
        current = result.state
        used.append(item_id)
        effects.extend(result.data.get("effects", []))

    if not used:
        return TransitionResult.reject(
            state,
            Rejection(ErrorKind.INVALID_TARGET, "没有可以使用的物品！", {"skipped": skipped}),
        )

    return TransitionResult.ok(
        current,
        f"批量使用了 {len(used)} 件物品。",
        used=used,
        skipped=skipped,
        effects=effects,
    )
