"""
Process-lifetime item -> aisle cache.

Keys are lowercase, trimmed clean names. The cache starts from a static
table of common items and only grows from successful categorizations;
nothing is ever evicted.

Note: the seed table files "milk" under Beverages while the keyword
fallback rules file it under Dairy & Eggs. Both are kept as-is; which
one is authoritative is still an open product decision.
"""

from typing import Mapping, Optional

import structlog

logger = structlog.get_logger(__name__)


COMMON_ITEMS: dict[str, str] = {
    # Produce
    "apple": "Produce",
    "apples": "Produce",
    "banana": "Produce",
    "bananas": "Produce",
    "orange": "Produce",
    "oranges": "Produce",
    "lettuce": "Produce",
    "tomato": "Produce",
    "tomatoes": "Produce",
    "potato": "Produce",
    "potatoes": "Produce",
    "onion": "Produce",
    "onions": "Produce",
    "carrots": "Produce",
    "avocado": "Produce",
    "grapes": "Produce",
    # Dairy & Eggs
    "eggs": "Dairy & Eggs",
    "cheese": "Dairy & Eggs",
    "butter": "Dairy & Eggs",
    "yogurt": "Dairy & Eggs",
    "sour cream": "Dairy & Eggs",
    # Meat & Seafood
    "chicken": "Meat & Seafood",
    "chicken breast": "Meat & Seafood",
    "ground beef": "Meat & Seafood",
    "bacon": "Meat & Seafood",
    "salmon": "Meat & Seafood",
    # Bakery
    "bread": "Bakery",
    "bagels": "Bakery",
    "muffins": "Bakery",
    # Pantry
    "rice": "Pantry",
    "pasta": "Pantry",
    "flour": "Pantry",
    "sugar": "Pantry",
    "cereal": "Pantry",
    "peanut butter": "Pantry",
    # Frozen Foods
    "ice cream": "Frozen Foods",
    "frozen pizza": "Frozen Foods",
    # Beverages
    "milk": "Beverages",
    "water": "Beverages",
    "coffee": "Beverages",
    "orange juice": "Beverages",
    "coca-cola": "Beverages",
    "pepsi": "Beverages",
    "beer": "Beverages",
    # Snacks
    "chips": "Snacks",
    "crackers": "Snacks",
    "popcorn": "Snacks",
    # Condiments & Sauces
    "ketchup": "Condiments & Sauces",
    "mustard": "Condiments & Sauces",
    "mayonnaise": "Condiments & Sauces",
    # Household & Cleaning
    "paper towels": "Household & Cleaning",
    "toilet paper": "Household & Cleaning",
    "dish soap": "Household & Cleaning",
    "laundry detergent": "Household & Cleaning",
    "trash bags": "Household & Cleaning",
    # Health & Beauty
    "shampoo": "Health & Beauty",
    "toothpaste": "Health & Beauty",
    "deodorant": "Health & Beauty",
    # Pet Supplies
    "dog food": "Pet Supplies",
    "cat litter": "Pet Supplies",
    # Baby Care
    "diapers": "Baby Care",
    "baby wipes": "Baby Care",
}


def normalize_key(name: str) -> str:
    """Cache key for an item name: trimmed and lowercased."""
    return str(name).strip().lower()


class ItemCache:
    """
    In-memory mapping of clean item names to aisle names.
    
    Owned by one Orchestrator; not shared across instances. The orchestrator
    serializes access, so the cache itself does no locking.
    """
    
    def __init__(self, seed: Optional[Mapping[str, str]] = None):
        """
        Args:
            seed: Initial entries; defaults to COMMON_ITEMS. Pass {} for an empty cache.
        """
        entries = COMMON_ITEMS if seed is None else seed
        self._entries: dict[str, str] = {normalize_key(k): v for k, v in entries.items()}
        logger.debug("Item cache initialized", entries=len(self._entries))
    
    def get(self, name: str) -> Optional[str]:
        return self._entries.get(normalize_key(name))
    
    def set(self, name: str, aisle: str) -> None:
        key = normalize_key(name)
        if key and aisle:
            self._entries[key] = aisle
    
    def clear(self) -> None:
        """Drop every entry, seed table included."""
        self._entries.clear()
    
    def snapshot(self) -> dict[str, str]:
        """Copy of the current entries."""
        return dict(self._entries)
    
    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_key(name) in self._entries
    
    def __len__(self) -> int:
        return len(self._entries)
