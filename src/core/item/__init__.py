"""아이템 시스템 Core — 순수 Python, DB 무관"""

from .classifier import Classification, infer_item_type_and_slot
from .inventory import ItemTemplate, add_item_to_inventory, grant_item, remove_or_decrement
from .models import (
    EquipmentSlot,
    Item,
    ItemEffect,
    ItemRarity,
    ItemType,
    PermanentEffect,
    RecipeData,
    SpiritualRoots,
)
from .normalizer import normalize_item_effect
from .pricing import calculate_item_sell_price
from .stats import ItemStats, get_item_stats

__all__ = [
    "Classification",
    "EquipmentSlot",
    "Item",
    "ItemEffect",
    "ItemRarity",
    "ItemStats",
    "ItemTemplate",
    "ItemType",
    "PermanentEffect",
    "RecipeData",
    "SpiritualRoots",
    "add_item_to_inventory",
    "calculate_item_sell_price",
    "get_item_stats",
    "grant_item",
    "infer_item_type_and_slot",
    "normalize_item_effect",
    "remove_or_decrement",
]
