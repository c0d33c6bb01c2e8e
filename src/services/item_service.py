"""아이템 Service — Core 전이 실행, 게임 로그, EventBus 통신

Service → Core 허용, Service → Service 금지 (EventBus 경유).
모든 변경은 GameStateContainer.apply() 로 직렬화된다.
"""

from typing import Optional, Sequence

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_data import GameDataRegistry
from src.core.game_log import GameLog
from src.core.item.equipment import (
    equip_item,
    refine_natal_artifact,
    resolve_equipped_items,
    unequip_item,
    unrefine_natal_artifact,
)
from src.core.item.inventory import (
    ItemTemplate,
    batch_discard_items,
    discard_item,
    filter_and_sort_inventory,
    grant_item,
)
from src.core.item.models import EquipmentSlot, Item
from src.core.item.pricing import calculate_item_sell_price, sell_item
from src.core.item.stats import ItemStats, calculate_equipped_totals, compare_with_equipped
from src.core.logging import get_logger
from src.core.player.item_use import batch_use_items, use_item
from src.core.player.models import PlayerState
from src.core.result import TransitionResult
from src.core.state_container import GameStateContainer

logger = get_logger(__name__)

SOURCE = "item_service"


class ItemService:
    """인벤토리/장비/아이템 사용"""

    def __init__(
        self,
        container: GameStateContainer[PlayerState],
        event_bus: EventBus,
        data: GameDataRegistry,
        game_log: GameLog,
    ):
        self._container = container
        self._bus = event_bus
        self._data = data
        self._log = game_log

    # === 지급 ===

    def grant(self, template: ItemTemplate, quantity: int = 1) -> TransitionResult[PlayerState]:
        """전리품/구매 지급. 분류 → 정규화 → 인벤토리."""
        result = self._container.apply(
            grant_item, template, quantity, self._data.rarity_multipliers
        )
        if self._record(result, "gain"):
            for item_id in result.data["item_ids"]:
                self._emit(
                    EventTypes.ITEM_ADDED,
                    {"item_id": item_id, "quantity": quantity},
                    key=item_id,
                )
        self._bus.reset_chain()
        return result

    # === 사용/버리기/판매 ===

    def use(self, item_id: str) -> TransitionResult[PlayerState]:
        result = self._container.apply(use_item, item_id, self._data)
        if self._record(result, "gain"):
            self._emit_use_events(result, item_id)
        self._bus.reset_chain()
        return result

    def batch_use(self, item_ids: Sequence[str]) -> TransitionResult[PlayerState]:
        """순차 사용. 개별 서술 대신 요약 로그 한 줄."""
        result = self._container.apply(batch_use_items, list(item_ids), self._data)
        if self._record(result, "gain"):
            for item_id in result.data["used"]:
                self._emit(EventTypes.ITEM_USED, {"item_id": item_id}, key=item_id)
            if result.data["skipped"]:
                logger.info("Batch use skipped %d item(s)", len(result.data["skipped"]))
        self._bus.reset_chain()
        return result

    def discard(self, item_id: str) -> TransitionResult[PlayerState]:
        result = self._container.apply(discard_item, item_id)
        if self._record(result, "normal"):
            self._emit(
                EventTypes.ITEM_DISCARDED,
                {"item_id": item_id, "quantity": result.data["amount"]},
            )
        self._bus.reset_chain()
        return result

    def batch_discard(self, item_ids: Sequence[str]) -> TransitionResult[PlayerState]:
        """여러 스택 버리기. 장착 중이거나 없는 id 가 섞이면 아무것도 버리지 않는다."""
        result = self._container.apply(batch_discard_items, list(item_ids))
        if self._record(result, "normal"):
            for item_id in result.data["item_ids"]:
                self._emit(EventTypes.ITEM_DISCARDED, {"item_id": item_id}, key=item_id)
        self._bus.reset_chain()
        return result

    def sell(self, item_id: str, quantity: int = 1) -> TransitionResult[PlayerState]:
        result = self._container.apply(
            sell_item,
            item_id,
            quantity,
            self._data.rarity_base_prices,
            self._data.rarity_multipliers,
        )
        if self._record(result, "gain"):
            self._emit(
                EventTypes.ITEM_SOLD,
                {"item_id": item_id, "quantity": quantity, "total": result.data["total"]},
            )
        self._bus.reset_chain()
        return result

    def quote(self, item_id: str) -> Optional[int]:
        """단가 조회. 없는 아이템이면 None."""
        item = self._container.snapshot.find_item(item_id)
        if item is None:
            return None
        return calculate_item_sell_price(
            item, self._data.rarity_base_prices, self._data.rarity_multipliers
        )

    # === 장비 ===

    def equip(
        self, item_id: str, slot: Optional[EquipmentSlot] = None
    ) -> TransitionResult[PlayerState]:
        result = self._container.apply(equip_item, item_id, slot)
        if self._record(result, "normal"):
            self._emit(
                EventTypes.ITEM_EQUIPPED,
                {
                    "item_id": item_id,
                    "slot": result.data["slot"],
                    "replaced_id": result.data["replaced_id"],
                },
            )
        self._bus.reset_chain()
        return result

    def unequip(self, slot: EquipmentSlot) -> TransitionResult[PlayerState]:
        result = self._container.apply(unequip_item, slot)
        if self._record(result, "normal"):
            self._emit(
                EventTypes.ITEM_UNEQUIPPED,
                {"item_id": result.data["item_id"], "slot": slot.value},
            )
        self._bus.reset_chain()
        return result

    def refine_natal(self, item_id: str) -> TransitionResult[PlayerState]:
        result = self._container.apply(refine_natal_artifact, item_id)
        if self._record(result, "special"):
            self._emit(EventTypes.NATAL_ARTIFACT_CHANGED, {"item_id": item_id})
        self._bus.reset_chain()
        return result

    def unrefine_natal(self) -> TransitionResult[PlayerState]:
        result = self._container.apply(unrefine_natal_artifact)
        if self._record(result, "normal"):
            self._emit(EventTypes.NATAL_ARTIFACT_CHANGED, {"item_id": None})
        self._bus.reset_chain()
        return result

    # === 조회 ===

    def equipped_totals(self) -> ItemStats:
        state = self._container.snapshot
        return calculate_equipped_totals(
            state.inventory, state.equipped_items, state.natal_artifact_id
        )

    def equipped_items(self) -> dict[EquipmentSlot, Item]:
        return resolve_equipped_items(self._container.snapshot)

    def compare(self, item_id: str) -> Optional[ItemStats]:
        state = self._container.snapshot
        item = state.find_item(item_id)
        if item is None:
            return None
        return compare_with_equipped(
            item, state.inventory, state.equipped_items, state.natal_artifact_id
        )

    def inventory_view(
        self,
        category: str = "all",
        slot: Optional[EquipmentSlot] = None,
        sort_by_rarity: bool = True,
    ) -> list[Item]:
        return filter_and_sort_inventory(
            self._container.snapshot.inventory, category, slot, sort_by_rarity
        )

    # === 내부 ===

    def _record(self, result: TransitionResult[PlayerState], log_type: str) -> bool:
        """결과 메시지를 게임 로그에 남긴다. 거부면 사유를 danger 로."""
        if not result.success:
            if result.reason:
                self._log.add(result.reason, "danger")
            return False
        for message in result.messages:
            self._log.add(message, log_type)
        return True

    def _emit_use_events(self, result: TransitionResult[PlayerState], item_id: str) -> None:
        self._emit(EventTypes.ITEM_USED, {"item_id": item_id}, key=item_id)
        if result.data.get("pet_id"):
            self._emit(EventTypes.PET_HATCHED, {"pet_id": result.data["pet_id"]})
        if result.data.get("recipe_unlocked"):
            self._emit(
                EventTypes.RECIPE_UNLOCKED, {"recipe_name": result.data["recipe_unlocked"]}
            )

    def _emit(self, event_type: str, data: dict, key: str = "") -> None:
        self._bus.emit(GameEvent(event_type=event_type, data=data, source=SOURCE, key=key))
