"""EventBus - 상태 전이 이후의 알림 인프라

규칙:
- 코어 전이 함수는 이벤트를 발행하지 않는다 (순수 함수)
- 서비스가 전이 성공 후에만 발행한다
- 이벤트는 식별자(ID)와 수량 등 가벼운 값만 전달한다
- 전파 깊이 최대 MAX_DEPTH 단계
- 한 액션 안에서 동일 (source, event_type, key) 중복 발행 금지
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # 한 액션 내 이벤트 전파 최대 깊이


@dataclass
class GameEvent:
    """이벤트 데이터 컨테이너

    Args:
        event_type: 이벤트 유형 (예: "herb_harvested", "item_used")
        data: 이벤트 데이터 (ID 위주, 아이템 객체 금지)
        source: 발행한 서비스 이름
        key: 중복 판정용 키. 배치 처리처럼 같은 유형을 여러 번 보낼 때 구분한다.
    """

    event_type: str
    data: Dict[str, Any]
    source: str
    key: str = ""

    # 내부 추적용 (외부에서 설정하지 않음)
    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """동기식 이벤트 버스

    사용 패턴:
        bus = EventBus()
        bus.subscribe(EventTypes.HERB_HARVESTED, stats_tracker.on_harvest)
        bus.emit(GameEvent(event_type=EventTypes.HERB_HARVESTED,
                           data={"herb_id": "herb-zhixue"}, source="grotto_service"))
        bus.reset_chain()  # 액션 종료 시
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._current_depth: int = 0
        self._emitted_in_chain: Set[str] = set()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 등록"""
        self._handlers[event_type].append(handler)
        logger.debug(f"EventBus 구독: {event_type} → {handler.__qualname__}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 해제"""
        handlers = self._handlers.get(event_type)
        if not handlers or handler not in handlers:
            logger.warning(f"핸들러 미등록: {event_type} → {handler.__qualname__}")
            return
        handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """이벤트 발행. 등록된 핸들러를 동기 호출.

        핸들러 예외는 로그만 남기고 다음 핸들러로 진행한다.
        이미 끝난 상태 전이를 되돌리지 않기 위함.
        """
        if self._current_depth >= MAX_DEPTH:
            logger.warning(
                f"EventBus 전파 깊이 초과 ({MAX_DEPTH}): "
                f"{event.source}:{event.event_type} 무시됨"
            )
            return

        chain_key = f"{event.source}:{event.event_type}:{event.key}"
        if chain_key in self._emitted_in_chain:
            logger.warning(f"EventBus 중복 이벤트 차단: {chain_key}")
            return

        self._emitted_in_chain.add(chain_key)
        event._depth = self._current_depth

        handlers = list(self._handlers.get(event.event_type, []))
        if not handlers:
            logger.debug(f"EventBus: {event.event_type} 구독자 없음")
            return

        logger.debug(
            f"EventBus 전파: {event.event_type} (source={event.source}, "
            f"depth={self._current_depth}, handlers={len(handlers)})"
        )

        self._current_depth += 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"EventBus 핸들러 에러: {handler.__qualname__} "
                        f"(event={event.event_type})"
                    )
        finally:
            self._current_depth -= 1

    def reset_chain(self) -> None:
        """액션 종료 시 호출. 중복 추적 초기화."""
        self._emitted_in_chain.clear()
        self._current_depth = 0

    def clear(self) -> None:
        """모든 구독 해제 (테스트용)"""
        self._handlers.clear()
        self.reset_chain()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
