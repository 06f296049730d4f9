"""
Batch categorization with retry and two-tier local fallback.

Components:
- Categorizer: remote attempts gated by HealthMonitor, then fallback
- fallback: keyword-rule (enhanced) and flat (simple) classification
- metadata: CategorizationResult / CategorizationMetadata audit records
"""

from grocery_sorter.categorization.categorizer import Categorizer
from grocery_sorter.categorization.fallback import (
    KEYWORD_RULES,
    categorize_by_rules,
    enhanced_fallback,
    simple_fallback,
)
from grocery_sorter.categorization.metadata import CategorizationMetadata, CategorizationResult

__all__ = [
    "Categorizer",
    "CategorizationMetadata",
    "CategorizationResult",
    "KEYWORD_RULES",
    "categorize_by_rules",
    "enhanced_fallback",
    "simple_fallback",
]
