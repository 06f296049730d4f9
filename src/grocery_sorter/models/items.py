"""
Item models flowing through the categorization pipeline.

RawItem is a plain ``str`` (whatever the user typed). ParsedItem is derived
from it once per pass; CategorizedItem is the pipeline's only output type.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ParsedItem(BaseModel):
    """
    A raw item split into an optional leading quantity and a clean name.
    
    ``"2 coca-cola"`` -> quantity=2, clean_name="coca-cola".
    Without a leading integer, quantity is None and clean_name is the
    trimmed original.
    """
    model_config = ConfigDict(frozen=True)
    
    original: str = Field(..., description="Item exactly as supplied by the caller")
    clean_name: str = Field(..., description="Item with leading quantity stripped, trimmed")
    quantity: Optional[int] = Field(default=None, ge=1, description="Leading quantity, if any")
    ordinal: int = Field(default=1, ge=1, description="1-based position in its batch (prompt join key)")


class CategorizedItem(BaseModel):
    """
    One categorized grocery item.
    
    ``aisle`` always holds an AisleEnum value. ``notes`` carries the quantity
    annotation plus provenance (model note, "From cache", "Enhanced fallback").
    """
    product: str = Field(..., description="Product name")
    aisle: str = Field(..., description="Store aisle from the fixed taxonomy")
    notes: str = Field(default="", description="Quantity annotation and provenance")
