"""
Parse exceptions for model responses.

These are caught by the categorizer, which treats every ParseError exactly
like a transport failure: back off, retry, and eventually fall back.
"""

from typing import Any


class ValidationError(Exception):
    """
    Base exception for all response validation errors.
    """
    
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize validation error.
        
        Args:
            message: Human-readable error description
            details: Structured error data for logging/metrics
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ParseError(ValidationError):
    """Response text could not be turned into a complete categorization."""
    
    error_type = "parse_error"


class JSONExtractionError(ParseError):
    """
    No JSON array could be extracted from the response text.
    """
    
    error_type = "json_extraction"
    
    def __init__(self, message: str, raw_content: str | None = None, parse_error: str | None = None):
        """
        Initialize JSON extraction error.
        
        Args:
            message: Error description
            raw_content: Response text (first 500 chars kept for debugging)
            parse_error: Original json.JSONDecodeError message
        """
        details = {}
        if raw_content:
            details["content_snippet"] = raw_content[:500]
        if parse_error:
            details["parse_error"] = parse_error
        
        super().__init__(message, details)


class SchemaValidationError(ParseError):
    """
    The extracted array does not conform to the response JSON Schema.
    """
    
    error_type = "schema_validation"
    
    def __init__(
        self,
        message: str,
        validation_errors: list[str] | None = None,
        schema_path: str | None = None
    ):
        details = {}
        if validation_errors:
            details["validation_errors"] = validation_errors
        if schema_path:
            details["schema_path"] = schema_path
        
        super().__init__(message, details)


class ItemCountMismatchError(ParseError):
    """
    Fewer response objects could be matched to batch items than the batch holds.
    """
    
    error_type = "item_count_mismatch"
    
    def __init__(self, expected: int, matched: int, missing: list[str] | None = None):
        details: dict[str, Any] = {"expected": expected, "matched": matched}
        if missing:
            details["missing"] = missing[:20]
        super().__init__(
            f"Matched {matched} of {expected} items in model response",
            details,
        )
