"""Unit tests for ItemCache and its seed table."""

from grocery_sorter.cache.item_cache import COMMON_ITEMS, ItemCache, normalize_key
from grocery_sorter.categorization.fallback import categorize_by_rules
from grocery_sorter.models.enums import AisleEnum


class TestSeedTable:
    
    def test_seed_aisles_are_in_taxonomy(self):
        for name, aisle in COMMON_ITEMS.items():
            assert AisleEnum.normalize(aisle) is not None, name
    
    def test_seed_keys_are_normalized(self):
        for name in COMMON_ITEMS:
            assert name == normalize_key(name)
    
    def test_milk_conflict_between_seed_and_rules(self):
        """Seed table and keyword rules disagree on milk; both are kept as-is."""
        assert COMMON_ITEMS["milk"] == "Beverages"
        assert categorize_by_rules("milk") == AisleEnum.DAIRY_EGGS


class TestItemCache:
    
    def test_default_cache_is_seeded(self):
        cache = ItemCache()
        assert len(cache) == len(COMMON_ITEMS)
        assert cache.get("apple") == "Produce"
    
    def test_empty_seed(self):
        cache = ItemCache({})
        assert len(cache) == 0
        assert cache.get("apple") is None
    
    def test_lookup_is_case_and_whitespace_insensitive(self):
        cache = ItemCache({})
        cache.set("  Coca-Cola ", "Beverages")
        assert cache.get("coca-cola") == "Beverages"
        assert "COCA-COLA" in cache
    
    def test_set_overwrites(self):
        cache = ItemCache({"milk": "Beverages"})
        cache.set("Milk", "Dairy & Eggs")
        assert cache.get("milk") == "Dairy & Eggs"
        assert len(cache) == 1
    
    def test_blank_key_or_aisle_ignored(self):
        cache = ItemCache({})
        cache.set("   ", "Produce")
        cache.set("apple", "")
        assert len(cache) == 0
    
    def test_clear_drops_seed_entries(self):
        cache = ItemCache()
        cache.clear()
        assert len(cache) == 0
        assert "milk" not in cache
    
    def test_snapshot_is_a_copy(self):
        cache = ItemCache({"apple": "Produce"})
        snapshot = cache.snapshot()
        snapshot["apple"] = "Snacks"
        assert cache.get("apple") == "Produce"
    
    def test_seed_mapping_not_mutated(self):
        seed = {"apple": "Produce"}
        cache = ItemCache(seed)
        cache.set("pear", "Produce")
        assert seed == {"apple": "Produce"}
    
    def test_non_string_membership(self):
        assert 42 not in ItemCache()
