"""
Enumerations for Grocery Sorter data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum
from typing import Optional


class AisleEnum(str, Enum):
    """
    Closed, ordered taxonomy of store aisles.
    
    Every categorized item resolves to exactly one of these values.
    GENERAL_MERCHANDISE doubles as the default bucket for anything the
    remote model or the keyword rules cannot place.
    """
    
    PRODUCE = "Produce"
    DAIRY_EGGS = "Dairy & Eggs"
    MEAT_SEAFOOD = "Meat & Seafood"
    BAKERY = "Bakery"
    PANTRY = "Pantry"
    FROZEN_FOODS = "Frozen Foods"
    BEVERAGES = "Beverages"
    SNACKS = "Snacks"
    CONDIMENTS_SAUCES = "Condiments & Sauces"
    HOUSEHOLD_CLEANING = "Household & Cleaning"
    HEALTH_BEAUTY = "Health & Beauty"
    PET_SUPPLIES = "Pet Supplies"
    BABY_CARE = "Baby Care"
    ELECTRONICS = "Electronics"
    TOYS_GAMES = "Toys & Games"
    CLOTHING_APPAREL = "Clothing & Apparel"
    GENERAL_MERCHANDISE = "General Merchandise"
    
    @classmethod
    def values(cls) -> list[str]:
        """Aisle names in taxonomy order (as sent to the model)."""
        return [aisle.value for aisle in cls]
    
    @classmethod
    def normalize(cls, name: Optional[str]) -> Optional["AisleEnum"]:
        """Case/whitespace-insensitive lookup; None if not in the taxonomy."""
        if not isinstance(name, str):
            return None
        wanted = " ".join(name.split()).casefold()
        for aisle in cls:
            if aisle.value.casefold() == wanted:
                return aisle
        return None


DEFAULT_AISLE = AisleEnum.GENERAL_MERCHANDISE


class CategorizationSource(str, Enum):
    """Where a batch's categorization came from."""
    
    REMOTE = "remote"
    FALLBACK_BREAKER_OPEN = "fallback_breaker_open"
    FALLBACK_RETRIES_EXHAUSTED = "fallback_retries_exhausted"
