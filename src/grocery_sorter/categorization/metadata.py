"""
Categorization metadata tracking.

Captures how a batch was answered (remote or which fallback), how many
remote attempts it took and why earlier attempts failed.
"""

from dataclasses import dataclass, field
from typing import Optional

from grocery_sorter.models.enums import CategorizationSource
from grocery_sorter.models.items import CategorizedItem


@dataclass(frozen=True)
class CategorizationMetadata:
    """
    Attempt history for one categorized batch.
    
    Attributes:
        total_attempts: Remote attempts actually sent (0 if the breaker was open)
        source: Which path produced the items
        total_latency_ms: Wall time from first attempt to final result (ms)
        model: Model that produced a remote answer, if any
        failures: One dict per failed attempt (kind, cause/error_type, message)
    """

    total_attempts: int
    source: CategorizationSource
    total_latency_ms: int
    model: Optional[str] = None
    failures: list[dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.total_attempts < 0:
            raise ValueError("total_attempts must be >= 0")
        if self.total_latency_ms < 0:
            raise ValueError("total_latency_ms must be >= 0")
        if self.source == CategorizationSource.REMOTE and self.model is None:
            raise ValueError("remote results must name the model")


@dataclass(frozen=True)
class CategorizationResult:
    """Items for a batch plus the metadata describing how they were produced."""

    items: list[CategorizedItem]
    metadata: CategorizationMetadata

    @property
    def used_fallback(self) -> bool:
        return self.metadata.source != CategorizationSource.REMOTE
