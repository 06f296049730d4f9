"""
Pydantic data models for Grocery Sorter.

Includes:
- Enums (AisleEnum, CategorizationSource)
- Item models (ParsedItem, CategorizedItem)
- LLM models (LLMGenerationRequest, LLMGenerationResponse)
"""

from grocery_sorter.models.enums import AisleEnum, CategorizationSource, DEFAULT_AISLE
from grocery_sorter.models.items import CategorizedItem, ParsedItem
from grocery_sorter.models.llm_models import LLMGenerationRequest, LLMGenerationResponse

__all__ = [
    # Enums
    "AisleEnum",
    "CategorizationSource",
    "DEFAULT_AISLE",
    # Item models
    "ParsedItem",
    "CategorizedItem",
    # LLM models
    "LLMGenerationRequest",
    "LLMGenerationResponse",
]
