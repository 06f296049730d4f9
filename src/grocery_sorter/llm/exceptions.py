"""
Custom exceptions for the LLM transport layer.

Every wire-level failure is normalized to a single TransportError carrying
a cause tag, so the categorizer can treat them identically and still log
what actually went wrong. ConfigurationError is the only hard failure and
is raised at construction time.
"""

from enum import Enum


class TransportFailure(str, Enum):
    """Cause tag for TransportError."""
    
    CONNECT = "connect"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    INVALID_JSON = "invalid_json"
    EMPTY_RESPONSE = "empty_response"
    UNEXPECTED = "unexpected"


class LLMClientError(Exception):
    """
    Base exception for all LLM client errors.
    
    All transport-specific exceptions inherit from this to allow catching
    any client-related error with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransportError(LLMClientError):
    """
    Raised (or returned inside a TransportResult) when a call to the
    inference server does not produce a usable JSON body.
    
    Always recoverable: the categorizer retries or falls back.
    """
    def __init__(
        self,
        message: str,
        cause: TransportFailure = TransportFailure.UNEXPECTED,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.cause = cause
    
    def __repr__(self) -> str:
        return f"TransportError(cause={self.cause.value!r}, message={self.message!r})"


class ConfigurationError(LLMClientError):
    """
    Raised when the endpoint configuration is missing or invalid.
    
    Examples:
    - OLLAMA_BASE_URL is not an http(s) URL
    - host is outside ALLOWED_HOSTS (non-loopback)
    
    Fatal: surfaced to the caller before any processing, never retried.
    """
    pass
