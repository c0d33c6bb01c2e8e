"""洞府 시스템 Core 패키지

전이 함수는 src.core.grotto.logic 에서 직접 import 한다.
"""

from src.core.grotto.models import (
    EnhancementMaterial,
    GrottoConfig,
    GrottoState,
    PlantableHerb,
    PlantedHerb,
    SpiritArrayEnhancement,
)

__all__ = [
    "EnhancementMaterial",
    "GrottoConfig",
    "GrottoState",
    "PlantableHerb",
    "PlantedHerb",
    "SpiritArrayEnhancement",
]
