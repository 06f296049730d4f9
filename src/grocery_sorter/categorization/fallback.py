"""
Network-free fallback categorization.

Enhanced fallback: an ordered keyword table, first match wins, unmatched
names land in General Merchandise. Simple fallback: everything goes to
General Merchandise. Both always return exactly one item per input.
"""

import re

from grocery_sorter.llm.text_utils import format_notes
from grocery_sorter.models.enums import DEFAULT_AISLE, AisleEnum
from grocery_sorter.models.items import CategorizedItem, ParsedItem


ENHANCED_FALLBACK_NOTE = "Enhanced fallback"
SIMPLE_FALLBACK_NOTE = "Fallback category"


def _rule(aisle: AisleEnum, *terms: str) -> tuple[AisleEnum, re.Pattern]:
    # Whole words, optionally pluralized ("apple" also matches "apples", "tomatoes")
    alternation = "|".join(re.escape(term) for term in terms)
    return aisle, re.compile(rf"\b(?:{alternation})(?:e?s)?\b", re.IGNORECASE)


# Order matters: first match wins. "ice cream" is dairy, "baby carrots" is
# produce, "soy sauce" is pantry. Terms listed in two rules ("pepper",
# "cookie", "battery") only ever reach the earlier one.
KEYWORD_RULES: list[tuple[AisleEnum, re.Pattern]] = [
    _rule(
        AisleEnum.PRODUCE,
        "apple", "banana", "orange", "tomato", "lettuce", "carrot", "onion", "potato",
        "broccoli", "spinach", "cucumber", "pepper", "avocado", "lemon", "lime", "garlic",
        "fruit", "vegetable", "produce",
    ),
    _rule(
        AisleEnum.DAIRY_EGGS,
        "cheese", "yogurt", "butter", "cream", "egg", "milk", "sour cream",
        "cottage cheese", "half and half", "heavy cream",
    ),
    _rule(
        AisleEnum.MEAT_SEAFOOD,
        "chicken", "beef", "pork", "fish", "salmon", "tuna", "shrimp", "bacon", "ham",
        "turkey", "sausage", "meat", "seafood",
    ),
    _rule(
        AisleEnum.BAKERY,
        "bread", "bagel", "muffin", "cake", "croissant", "donut", "cookie", "bun", "roll", "pastry",
    ),
    _rule(
        AisleEnum.PANTRY,
        "pasta", "rice", "bean", "canned", "soup", "sauce", "oil", "flour", "sugar",
        "salt", "pepper", "spice", "grain", "cereal",
    ),
    _rule(AisleEnum.FROZEN_FOODS, "frozen", "ice cream", "pizza"),
    _rule(
        AisleEnum.BEVERAGES,
        "soda", "juice", "water", "beer", "wine", "coffee", "tea", "drink", "beverage",
    ),
    _rule(
        AisleEnum.SNACKS,
        "chip", "cracker", "cookie", "candy", "popcorn", "nut", "pretzel", "snack",
    ),
    _rule(
        AisleEnum.CONDIMENTS_SAUCES,
        "ketchup", "mustard", "mayonnaise", "hot sauce", "soy sauce", "vinegar", "dressing",
        "bbq sauce", "condiment",
    ),
    _rule(
        AisleEnum.HOUSEHOLD_CLEANING,
        "paper towel", "toilet paper", "cleaning", "laundry", "dish soap", "trash bag",
        "battery", "light bulb", "household", "cleaner",
    ),
    _rule(
        AisleEnum.HEALTH_BEAUTY,
        "shampoo", "soap", "toothpaste", "deodorant", "razor", "brush", "beauty", "health",
        "personal care",
    ),
    _rule(AisleEnum.ELECTRONICS, "phone", "charger", "battery", "electronic", "device", "tech"),
    _rule(AisleEnum.PET_SUPPLIES, "dog", "cat", "pet", "animal", "food", "toy"),
    _rule(AisleEnum.BABY_CARE, "baby", "diaper", "formula", "baby food", "infant"),
]


def categorize_by_rules(name: str) -> AisleEnum:
    """
    Classify a clean item name with the keyword table.

    Examples:
        >>> categorize_by_rules("apple").value
        'Produce'
        >>> categorize_by_rules("unknown_widget_123").value
        'General Merchandise'
    """
    for aisle, pattern in KEYWORD_RULES:
        if pattern.search(name):
            return aisle
    return DEFAULT_AISLE


def enhanced_fallback(items: list[ParsedItem]) -> list[CategorizedItem]:
    """Keyword-rule categorization, one result per item, no I/O."""
    return [
        CategorizedItem(
            product=item.clean_name,
            aisle=categorize_by_rules(item.clean_name).value,
            notes=format_notes(item.quantity, ENHANCED_FALLBACK_NOTE),
        )
        for item in items
    ]


def simple_fallback(items: list[ParsedItem]) -> list[CategorizedItem]:
    """Flat default-bucket categorization, one result per item, no I/O."""
    return [
        CategorizedItem(
            product=item.clean_name,
            aisle=DEFAULT_AISLE.value,
            notes=format_notes(item.quantity, SIMPLE_FALLBACK_NOTE),
        )
        for item in items
    ]
