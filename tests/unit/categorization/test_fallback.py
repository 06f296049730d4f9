"""Unit tests for keyword-rule and flat fallback categorization."""

import pytest

from grocery_sorter.categorization.fallback import (
    ENHANCED_FALLBACK_NOTE,
    KEYWORD_RULES,
    SIMPLE_FALLBACK_NOTE,
    categorize_by_rules,
    enhanced_fallback,
    simple_fallback,
)
from grocery_sorter.llm.text_utils import parse_items
from grocery_sorter.models.enums import AisleEnum


class TestCategorizeByRules:
    """Test the ordered keyword table."""
    
    @pytest.mark.parametrize("name,aisle", [
        ("apple", "Produce"),
        ("bananas", "Produce"),
        ("tomatoes", "Produce"),
        ("milk", "Dairy & Eggs"),
        ("eggs", "Dairy & Eggs"),
        ("chicken breast", "Meat & Seafood"),
        ("whole wheat bread", "Bakery"),
        ("spaghetti pasta", "Pantry"),
        ("frozen peas", "Frozen Foods"),
        ("pizza", "Frozen Foods"),
        ("sparkling water", "Beverages"),
        ("pretzels", "Snacks"),
        ("ketchup", "Condiments & Sauces"),
        ("paper towels", "Household & Cleaning"),
        ("shampoo", "Health & Beauty"),
        ("phone charger", "Electronics"),
        ("dog treats", "Pet Supplies"),
        ("chew toy", "Pet Supplies"),
        ("diapers", "Baby Care"),
    ])
    def test_keyword_matches(self, name, aisle):
        assert categorize_by_rules(name).value == aisle
    
    @pytest.mark.parametrize("name,aisle", [
        ("ice cream", "Dairy & Eggs"),
        ("frozen broccoli", "Produce"),
        ("baby carrots", "Produce"),
        ("baby food", "Pet Supplies"),
        ("soy sauce", "Pantry"),
        ("bell peppers", "Produce"),
        ("cookies", "Bakery"),
        ("dish soap", "Household & Cleaning"),
        ("battery", "Household & Cleaning"),
    ])
    def test_earlier_rules_win(self, name, aisle):
        assert categorize_by_rules(name).value == aisle
    
    def test_rule_order(self):
        assert [aisle for aisle, _ in KEYWORD_RULES] == [
            AisleEnum.PRODUCE,
            AisleEnum.DAIRY_EGGS,
            AisleEnum.MEAT_SEAFOOD,
            AisleEnum.BAKERY,
            AisleEnum.PANTRY,
            AisleEnum.FROZEN_FOODS,
            AisleEnum.BEVERAGES,
            AisleEnum.SNACKS,
            AisleEnum.CONDIMENTS_SAUCES,
            AisleEnum.HOUSEHOLD_CLEANING,
            AisleEnum.HEALTH_BEAUTY,
            AisleEnum.ELECTRONICS,
            AisleEnum.PET_SUPPLIES,
            AisleEnum.BABY_CARE,
        ]
    
    @pytest.mark.parametrize("name", ["lego set", "socks", "coca-cola"])
    def test_aisles_without_rules_fall_to_default(self, name):
        assert categorize_by_rules(name) == AisleEnum.GENERAL_MERCHANDISE
    
    def test_case_insensitive(self):
        assert categorize_by_rules("ORGANIC APPLES") == AisleEnum.PRODUCE
    
    def test_whole_words_only(self):
        """"cat" must not match inside "catalog"."""
        assert categorize_by_rules("catalog") == AisleEnum.GENERAL_MERCHANDISE
    
    def test_unmatched_goes_to_general_merchandise(self):
        assert categorize_by_rules("unknown_widget_123") == AisleEnum.GENERAL_MERCHANDISE


class TestEnhancedFallback:
    
    def test_deterministic_without_network(self):
        items = parse_items(["apple", "milk", "unknown_widget_123"])
        first = enhanced_fallback(items)
        second = enhanced_fallback(items)
        
        assert first == second
        assert [item.aisle for item in first] == ["Produce", "Dairy & Eggs", "General Merchandise"]
    
    def test_notes_carry_quantity_and_provenance(self):
        results = enhanced_fallback(parse_items(["2 milk", "1 bread", "apple"]))
        assert [item.notes for item in results] == [
            f"2 cases - {ENHANCED_FALLBACK_NOTE}",
            f"1 case - {ENHANCED_FALLBACK_NOTE}",
            ENHANCED_FALLBACK_NOTE,
        ]
        assert [item.product for item in results] == ["milk", "bread", "apple"]
    
    def test_every_aisle_is_in_taxonomy(self):
        names = ["apple", "milk", "steak", "bagels", "rice", "ice cream", "juice", "chips",
                 "mustard", "bleach", "lotion", "kitten litter", "diapers", "cable", "puzzle",
                 "jacket", "mystery"]
        for item in enhanced_fallback(parse_items(names)):
            assert AisleEnum.normalize(item.aisle) is not None


class TestSimpleFallback:
    
    def test_everything_in_default_bucket(self):
        results = simple_fallback(parse_items(["apple", "3 milk"]))
        assert [item.aisle for item in results] == ["General Merchandise", "General Merchandise"]
        assert results[1].notes == f"3 cases - {SIMPLE_FALLBACK_NOTE}"
    
    def test_length_preserved(self):
        assert len(simple_fallback(parse_items(["a"] * 25))) == 25
