"""
Text processing utilities for grocery items.

Quantity extraction and note formatting shared by the remote path, both
fallbacks and the cache-hit path.
"""

import re
from typing import Optional

from grocery_sorter.models.items import ParsedItem


# "2 coca-cola", "12  eggs", "3 a&w root beer"
_QUANTITY_PATTERN = re.compile(r"^\s*(\d+)\s+(.+)$", re.DOTALL)


def extract_quantity(item: str) -> tuple[Optional[int], str]:
    """
    Split a leading integer quantity from an item string.
    
    Args:
        item: Raw item as typed by the user
        
    Returns:
        Tuple of (quantity or None, clean name). A leading "0" is not a
        quantity (quantities are positive) and stays part of the name.
        
    Examples:
        >>> extract_quantity("2 coca-cola")
        (2, 'coca-cola')
        >>> extract_quantity("coca-cola")
        (None, 'coca-cola')
        >>> extract_quantity("12  eggs")
        (12, 'eggs')
    """
    text = str(item)
    match = _QUANTITY_PATTERN.match(text)
    if match:
        quantity = int(match.group(1))
        name = match.group(2).strip()
        if quantity >= 1 and name:
            return quantity, name
    return None, text.strip()


def parse_item(item: str, ordinal: int = 1) -> ParsedItem:
    """Build a ParsedItem from a raw string."""
    quantity, clean_name = extract_quantity(item)
    return ParsedItem(
        original=str(item),
        clean_name=clean_name,
        quantity=quantity,
        ordinal=ordinal,
    )


def parse_items(items: list[str]) -> list[ParsedItem]:
    """Parse a batch, numbering items 1..n for the prompt join key."""
    return [parse_item(item, ordinal=index) for index, item in enumerate(items, start=1)]


def format_notes(quantity: Optional[int], base_notes: str) -> str:
    """
    Prefix notes with a quantity annotation.
    
    Examples:
        >>> format_notes(2, "milk")
        '2 cases - milk'
        >>> format_notes(1, "milk")
        '1 case - milk'
        >>> format_notes(None, "milk")
        'milk'
    """
    if quantity and quantity > 1:
        return f"{quantity} cases - {base_notes}"
    if quantity == 1:
        return f"1 case - {base_notes}"
    return base_notes
