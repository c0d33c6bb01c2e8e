"""기연 Service — AIProvider 호출 → LootParser → 결과 반영

생성기는 외부 협력자다. 응답은 신뢰하지 않으며
파싱 실패/호출 실패 시 빈 기연(一无所获)으로 대체한다.
"""

from typing import Optional

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.game_data import GameDataRegistry
from src.core.game_log import GameLog
from src.core.item.normalizer import get_realm_equipment_multiplier
from src.core.logging import get_logger
from src.core.player.encounter import apply_encounter
from src.core.player.models import PlayerState
from src.core.result import TransitionResult
from src.core.state_container import GameStateContainer
from src.services.ai.base import AIProvider
from src.services.loot_parser import EncounterOutcome, LootParser

logger = get_logger(__name__)

SOURCE = "encounter_service"

SYSTEM_PROMPT = "你是一名严谨的修仙游戏GM，需要严格按照用户要求返回结构化数据。"

ENCOUNTER_PROMPT = """你是一个文字修仙游戏的GM。
当前玩家状态：
- 姓名：{name}
- 境界：{realm} (第 {realm_level} 层)
- 气血：{hp}/{max_hp}
- 攻击力：{attack}
- 装备数值倍率：x{equipment_multiplier:.1f}

请生成一个随机奇遇。{instructions}
请以 JSON 格式输出，字段为 story(字符串)、hpChange(整数)、expChange(整数)、
spiritStonesChange(整数)、eventColor(字符串: normal/gain/danger/special)、
itemObtained(可以为 null 或包含 name/type/description/rarity/isEquippable/effect 对象)"""

ENCOUNTER_INSTRUCTIONS = {
    "normal": "这是玩家在修仙界的一次普通日常历练。",
    "lucky": "玩家福缘深厚，收益应当非常丰厚。",
    "secret_realm": "玩家正在【秘境】中探索。物品稀有度较高（至少是\"稀有\"）。",
}

FALLBACK_OUTCOME = EncounterOutcome(
    story="你在荒野中游荡了一番，可惜大道渺茫，此次一无所获。",
    exp_change=5,
)


class EncounterService:
    """기연 생성 + 보상 지급"""

    def __init__(
        self,
        container: GameStateContainer[PlayerState],
        event_bus: EventBus,
        data: GameDataRegistry,
        game_log: GameLog,
        provider: AIProvider,
        parser: Optional[LootParser] = None,
    ):
        self._container = container
        self._bus = event_bus
        self._data = data
        self._log = game_log
        self._provider = provider
        self._parser = parser or LootParser()

    def build_prompt(self, state: PlayerState, encounter_type: str = "normal") -> str:
        return ENCOUNTER_PROMPT.format(
            name=state.name,
            realm=state.realm,
            realm_level=state.realm_level,
            hp=state.hp,
            max_hp=state.max_hp,
            attack=state.attack,
            equipment_multiplier=get_realm_equipment_multiplier(
                self._data.realm_index(state.realm), state.realm_level
            ),
            instructions=ENCOUNTER_INSTRUCTIONS.get(
                encounter_type, ENCOUNTER_INSTRUCTIONS["normal"]
            ),
        )

    def request_outcome(self, encounter_type: str = "normal") -> EncounterOutcome:
        """생성기 호출 + 파싱. 실패 시 FALLBACK_OUTCOME."""
        prompt = self.build_prompt(self._container.snapshot, encounter_type)
        try:
            raw = self._provider.generate(prompt, system_prompt=SYSTEM_PROMPT)
        except RuntimeError as e:
            logger.error("Encounter generation failed (%s): %s", self._provider.name, e)
            return FALLBACK_OUTCOME

        outcome = self._parser.parse(raw)
        if outcome is None:
            return FALLBACK_OUTCOME
        return outcome

    def resolve(self, encounter_type: str = "normal") -> TransitionResult[PlayerState]:
        """기연 1회: 생성 → 반영 → 로그/이벤트."""
        outcome = self.request_outcome(encounter_type)
        return self.apply_outcome(outcome)

    def apply_outcome(self, outcome: EncounterOutcome) -> TransitionResult[PlayerState]:
        loot = outcome.item_obtained
        result = self._container.apply(
            apply_encounter,
            outcome.hp_change,
            outcome.exp_change,
            outcome.spirit_stones_change,
            loot.to_template() if loot else None,
            loot.quantity if loot else 1,
            self._data.rarity_multipliers,
            self._data.realm_base_stats,
        )

        if outcome.story:
            self._log.add(outcome.story, outcome.event_color)
        for message in result.messages:
            self._log.add(message, "gain")
        for item_id in result.data.get("item_ids", []):
            self._bus.emit(
                GameEvent(
                    event_type=EventTypes.ITEM_ADDED,
                    data={"item_id": item_id, "quantity": loot.quantity if loot else 1},
                    source=SOURCE,
                    key=item_id,
                )
            )
        self._bus.reset_chain()
        return result
