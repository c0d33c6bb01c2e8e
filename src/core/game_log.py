"""게임 로그 (플레이어에게 보이는 기록)

저장 스냅샷의 log history 에 해당한다. 디버그 로그(logging)와는 별개.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Optional

LOG_TYPES = ("normal", "gain", "danger", "special")


@dataclass(frozen=True)
class LogEntry:
    id: str
    text: str
    type: str = "normal"
    timestamp: int = 0  # epoch ms

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "type": self.type, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "LogEntry":
        log_type = raw.get("type", "normal")
        return cls(
            id=str(raw.get("id") or uuid.uuid4()),
            text=str(raw.get("text", "")),
            type=log_type if log_type in LOG_TYPES else "normal",
            timestamp=int(raw.get("timestamp") or 0),
        )


class GameLog:
    """최근 max_entries 개만 유지하는 로그 버퍼"""

    def __init__(self, max_entries: int = 200) -> None:
        self.max_entries = max_entries
        self._entries: list[LogEntry] = []

    def add(self, text: str, log_type: str = "normal", timestamp: Optional[int] = None) -> LogEntry:
        if log_type not in LOG_TYPES:
            raise ValueError(f"unknown log type: {log_type}")
        entry = LogEntry(
            id=str(uuid.uuid4()),
            text=text,
            type=log_type,
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        )
        self._entries.append(entry)
        if len(self._entries) > self.max_entries:
            del self._entries[: len(self._entries) - self.max_entries]
        return entry

    def extend(self, entries: list[LogEntry]) -> None:
        self._entries.extend(entries)
        if len(self._entries) > self.max_entries:
            del self._entries[: len(self._entries) - self.max_entries]

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def to_list(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
