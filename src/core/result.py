"""상태 전이 결과 — 거부 사유를 예외 대신 값으로 돌려준다

모든 전이 함수는 (현재 스냅샷 → TransitionResult)이다.
거부 시 result.state 는 입력 스냅샷 그 자체(동일 객체)이다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

S = TypeVar("S")


class ErrorKind(str, Enum):
    INVALID_TARGET = "InvalidTarget"  # 알 수 없는 id/설정/인덱스
    INSUFFICIENT_RESOURCE = "InsufficientResource"  # 灵石/种子/材料 부족
    REQUIREMENT_NOT_MET = "RequirementNotMet"  # 境界/洞府等级 조건
    CAPACITY_EXCEEDED = "CapacityExceeded"  # 슬롯 가득 참
    NOT_YET_READY = "NotYetReady"  # 미성숙
    INVALID_STATE = "InvalidState"  # 장착 중 버리기, 강등 등


@dataclass(frozen=True)
class Rejection:
    """거부 사유. message 는 그대로 화면에 띄울 수 있는 문구."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": dict(self.details),
        }


def insufficient(resource: str, required: int, available: int, message: str) -> Rejection:
    """InsufficientResource 생성 헬퍼. 무엇이 얼마나 모자란지 반드시 포함."""
    return Rejection(
        kind=ErrorKind.INSUFFICIENT_RESOURCE,
        message=message,
        details={
            "resource": resource,
            "required": required,
            "available": available,
            "missing": max(0, required - available),
        },
    )


@dataclass(frozen=True)
class TransitionResult(Generic[S]):
    """전이 결과

    success=True: state 는 새 스냅샷, messages 는 게임 로그 후보
    success=False: state 는 입력 스냅샷, rejection 에 사유
    """

    success: bool
    state: S
    rejection: Optional[Rejection] = None
    messages: tuple[str, ...] = ()
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        state: S,
        *messages: str,
        **data: Any,
    ) -> "TransitionResult[S]":
        return cls(success=True, state=state, messages=tuple(messages), data=data)

    @classmethod
    def reject(cls, state: S, rejection: Rejection) -> "TransitionResult[S]":
        return cls(success=False, state=state, rejection=rejection)

    @property
    def reason(self) -> Optional[str]:
        return self.rejection.message if self.rejection else None
