"""Process-lifetime item cache with a seed table of common items."""

from grocery_sorter.cache.item_cache import COMMON_ITEMS, ItemCache, normalize_key

__all__ = ["COMMON_ITEMS", "ItemCache", "normalize_key"]
