"""이벤트 유형 상수

서비스가 상태 전이 성공 후 발행하는 이벤트 목록.
"""


class EventTypes:
    """이벤트 유형 문자열 상수"""

    # inventory
    ITEM_ADDED = "item_added"
    ITEM_USED = "item_used"
    ITEM_DISCARDED = "item_discarded"
    ITEM_SOLD = "item_sold"

    # equipment
    ITEM_EQUIPPED = "item_equipped"
    ITEM_UNEQUIPPED = "item_unequipped"
    NATAL_ARTIFACT_CHANGED = "natal_artifact_changed"

    # item-use side effects
    PET_HATCHED = "pet_hatched"
    RECIPE_UNLOCKED = "recipe_unlocked"

    # grotto
    GROTTO_UPGRADED = "grotto_upgraded"
    HERB_PLANTED = "herb_planted"
    HERB_HARVESTED = "herb_harvested"
    SPIRIT_ARRAY_ENHANCED = "spirit_array_enhanced"

    # persistence
    GAME_SAVED = "game_saved"
    GAME_LOADED = "game_loaded"
