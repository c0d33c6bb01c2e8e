"""단일 상태 권한자 — 모든 변경은 전이 함수를 통해서만

여러 호출자(연타, 자동 기능 등)는 apply() 로 직렬화된다.
외부에서 계산한 스냅샷은 compare_and_swap() 으로 버전 확인 후 교체한다.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, TypeVar

from src.core.result import TransitionResult

logger = logging.getLogger(__name__)

S = TypeVar("S")


class GameStateContainer(Generic[S]):
    def __init__(self, initial: S) -> None:
        self._state = initial
        self._version = 0
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> S:
        return self._state

    @property
    def version(self) -> int:
        return self._version

    def apply(
        self,
        transition: Callable[..., TransitionResult[S]],
        *args: Any,
        **kwargs: Any,
    ) -> TransitionResult[S]:
        """transition(현재 스냅샷, *args, **kwargs) 실행. 성공 시에만 교체."""
        with self._lock:
            result = transition(self._state, *args, **kwargs)
            if result.success:
                self._state = result.state
                self._version += 1
            else:
                logger.info(
                    "%s rejected: %s",
                    getattr(transition, "__name__", "transition"),
                    result.reason,
                )
            return result

    def compare_and_swap(self, expected_version: int, new_state: S) -> bool:
        with self._lock:
            if self._version != expected_version:
                return False
            self._state = new_state
            self._version += 1
            return True

    def reset(self, new_state: S) -> None:
        """불러오기 등으로 통째로 교체."""
        with self._lock:
            self._state = new_state
            self._version += 1
