"""플레이어 집합체 Core 패키지

아이템 사용 전이는 src.core.player.item_use 에서 직접 import 한다.
"""

from src.core.player.models import (
    Pet,
    PetTemplate,
    PlayerState,
    PlayerStatistics,
    SpiritualRootValues,
    create_initial_player,
)

__all__ = [
    "Pet",
    "PetTemplate",
    "PlayerState",
    "PlayerStatistics",
    "SpiritualRootValues",
    "create_initial_player",
]
