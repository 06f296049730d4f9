"""
Response parsing for categorization results.

Three hard-fail stages, each raising a ParseError subclass:
1. Extract: pull the outermost JSON array out of free-form model text
2. Schema: validate array entries against aisle_categorization_v1.json
3. Match: join entries back to batch items (by echoed id, else by notes)
"""

import json
import re
from pathlib import Path
from typing import Any, Optional

import structlog
from jsonschema import Draft7Validator

from grocery_sorter.llm.exceptions import ConfigurationError
from grocery_sorter.llm.text_utils import format_notes
from grocery_sorter.models.enums import DEFAULT_AISLE, AisleEnum
from grocery_sorter.models.items import CategorizedItem, ParsedItem
from grocery_sorter.monitoring.metrics import parse_failures_total
from grocery_sorter.validation.exceptions import (
    ItemCountMismatchError,
    JSONExtractionError,
    ParseError,
    SchemaValidationError,
)

logger = structlog.get_logger(__name__)

_ARRAY_PATTERN = re.compile(r"\[.*\]", re.DOTALL)


def extract_json_array(content: str) -> list[Any]:
    """
    Extract the JSON array from model output.
    
    Models often wrap the array in prose or code fences, so the span from
    the first "[" to the last "]" is decoded.
    
    Raises:
        JSONExtractionError: empty text, no array, or undecodable array
    """
    if not content or not content.strip():
        raise JSONExtractionError(
            "Model response is empty or whitespace-only",
            raw_content=content,
            parse_error="Empty content"
        )
    
    match = _ARRAY_PATTERN.search(content)
    if not match:
        raise JSONExtractionError(
            "No JSON array found in model response",
            raw_content=content,
            parse_error="No '[...]' span"
        )
    
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise JSONExtractionError(
            f"Failed to parse JSON array: {e.msg}",
            raw_content=content,
            parse_error=f"{e.msg} at line {e.lineno} col {e.colno}"
        ) from e
    
    if not isinstance(parsed, list):
        raise JSONExtractionError(
            f"Extracted JSON is not an array (got {type(parsed).__name__})",
            raw_content=content,
        )
    return parsed


def _entry_id(entry: dict) -> Optional[int]:
    value = entry.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdecimal():
            return int(text)
    return None


def _normalize_aisle(raw: Any, clean_name: str) -> str:
    aisle = AisleEnum.normalize(raw)
    if aisle is None:
        logger.warning(
            "Model returned aisle outside taxonomy, using default",
            item=clean_name,
            returned_aisle=raw,
            default=DEFAULT_AISLE.value,
        )
        aisle = DEFAULT_AISLE
    return aisle.value


class ResponseParser:
    """
    Turn a model response into one CategorizedItem per batch item.
    
    Raises ParseError (hard fail) unless every item can be matched.
    """
    
    def __init__(self, schema_path: str):
        """
        Args:
            schema_path: Path to aisle_categorization_v1.json
        """
        self.schema_path = schema_path
        try:
            with open(Path(schema_path), "r", encoding="utf-8") as f:
                self._validator = Draft7Validator(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Response schema could not be loaded: {schema_path}",
                details={"error": str(e)}
            ) from e
    
    def validate_schema(self, entries: list[Any]) -> None:
        """
        Raises:
            SchemaValidationError: entries do not match the response schema
        """
        errors = list(self._validator.iter_errors(entries))
        if errors:
            error_messages = []
            for error in errors[:10]:
                path = ".".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")
            
            raise SchemaValidationError(
                f"Response schema validation failed with {len(errors)} error(s)",
                validation_errors=error_messages,
                schema_path=self.schema_path
            )
    
    def match(self, entries: list[dict], items: list[ParsedItem]) -> list[CategorizedItem]:
        """
        Join response entries to batch items.
        
        An entry whose echoed ``id`` names an item wins; items still
        unmatched then take the first unused entry whose ``notes`` equals
        the clean name case-insensitively.
        
        Raises:
            ItemCountMismatchError: some item found no entry
        """
        by_ordinal = {item.ordinal: item for item in items}
        matched: dict[int, dict] = {}
        used: set[int] = set()
        
        for index, entry in enumerate(entries):
            ordinal = _entry_id(entry)
            if ordinal in by_ordinal and ordinal not in matched:
                matched[ordinal] = entry
                used.add(index)
        
        for item in items:
            if item.ordinal in matched:
                continue
            wanted = item.clean_name.casefold()
            for index, entry in enumerate(entries):
                if index in used:
                    continue
                notes = entry.get("notes")
                if isinstance(notes, str) and notes.strip().casefold() == wanted:
                    matched[item.ordinal] = entry
                    used.add(index)
                    break
        
        if len(matched) != len(items):
            missing = [item.clean_name for item in items if item.ordinal not in matched]
            raise ItemCountMismatchError(expected=len(items), matched=len(matched), missing=missing)
        
        results = []
        for item in items:
            entry = matched[item.ordinal]
            product = entry.get("product")
            if not isinstance(product, str) or not product.strip():
                product = item.clean_name
            notes = entry.get("notes")
            if not isinstance(notes, str) or not notes.strip():
                notes = item.clean_name
            results.append(
                CategorizedItem(
                    product=product.strip(),
                    aisle=_normalize_aisle(entry.get("aisle"), item.clean_name),
                    notes=format_notes(item.quantity, notes.strip()),
                )
            )
        return results
    
    def parse(self, content: str, items: list[ParsedItem]) -> list[CategorizedItem]:
        """
        Run all stages on one response.
        
        Args:
            content: Raw ``response`` text from the model
            items: The batch the prompt was built from
            
        Returns:
            One CategorizedItem per batch item, in batch order
            
        Raises:
            ParseError: any stage failed
        """
        try:
            entries = extract_json_array(content)
            self.validate_schema(entries)
            results = self.match(entries, items)
        except ParseError as e:
            parse_failures_total.labels(error_type=e.error_type).inc()
            raise
        
        logger.debug("Parsed model response", items=len(results), entries=len(entries))
        return results
