"""
Model response validation.

ResponseParser runs extract -> schema -> match and raises ParseError
subclasses on failure; the categorizer treats those like transport errors.
"""

from grocery_sorter.validation.exceptions import (
    ItemCountMismatchError,
    JSONExtractionError,
    ParseError,
    SchemaValidationError,
    ValidationError,
)
from grocery_sorter.validation.response_parser import ResponseParser, extract_json_array

__all__ = [
    "ResponseParser",
    "extract_json_array",
    "ValidationError",
    "ParseError",
    "JSONExtractionError",
    "SchemaValidationError",
    "ItemCountMismatchError",
]
