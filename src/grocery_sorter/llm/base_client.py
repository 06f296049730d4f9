"""
Abstract base client for the inference backend.

Defines the transport contract the rest of the pipeline depends on, so the
health monitor and categorizer can be exercised against fakes and the
Ollama implementation can be swapped without touching them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
import structlog

from grocery_sorter.llm.exceptions import TransportError
from grocery_sorter.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TransportResult:
    """
    Outcome of one generation call: exactly one of ``response``/``error`` is set.
    
    Returned instead of raised so that a failed remote call is an ordinary
    value in the categorizer's retry loop.
    """
    response: Optional[LLMGenerationResponse] = None
    error: Optional[TransportError] = None
    
    def __post_init__(self) -> None:
        if (self.response is None) == (self.error is None):
            raise ValueError("TransportResult needs exactly one of response or error")
    
    @property
    def ok(self) -> bool:
        return self.response is not None
    
    @classmethod
    def success(cls, response: LLMGenerationResponse) -> "TransportResult":
        return cls(response=response)
    
    @classmethod
    def failure(cls, error: TransportError) -> "TransportResult":
        return cls(error=error)


class BaseLLMClient(ABC):
    """
    Abstract base class for inference transports.
    
    Responsibilities:
    - Send non-streaming generation requests (no retries at this layer)
    - Probe liveness and list models / active processes
    - Apply connect/read timeouts, extending the read timeout while the
      backend is loading a model
    
    Does NOT handle:
    - Prompt construction (that's PromptBuilder's job)
    - Response parsing (that's ResponseParser's job)
    - Retries and fallback (that's Categorizer's job)
    """
    
    def __init__(
        self,
        base_url: str,
        read_timeout: float = 30.0,
        model_load_read_timeout: float = 300.0,
        **kwargs
    ):
        """
        Initialize base client.
        
        Args:
            base_url: Base URL of the inference server (e.g., http://localhost:11434)
            read_timeout: Steady-state read timeout in seconds
            model_load_read_timeout: Read timeout while a model load is in progress
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.read_timeout = read_timeout
        self.model_load_read_timeout = model_load_read_timeout
        self.model_load_in_progress = False
        self.extra_config = kwargs
    
    @property
    def current_read_timeout(self) -> float:
        """Read timeout that applies to the next request."""
        if self.model_load_in_progress:
            return self.model_load_read_timeout
        return self.read_timeout
    
    def set_model_load_in_progress(self, in_progress: bool) -> None:
        """Called by the health monitor when model-load state changes."""
        if in_progress != self.model_load_in_progress:
            logger.info(
                "Transport read timeout changed",
                model_load_in_progress=in_progress,
                read_timeout=self.model_load_read_timeout if in_progress else self.read_timeout,
            )
        self.model_load_in_progress = in_progress
    
    @abstractmethod
    async def send(self, request: LLMGenerationRequest) -> TransportResult:
        """
        Send one generation request.
        
        Never raises for wire-level problems: connect failures, timeouts,
        non-success status and malformed JSON all come back as
        ``TransportResult.failure(TransportError(...))``.
        """
        pass
    
    @abstractmethod
    async def probe(self) -> bool:
        """
        Cheap liveness check (e.g., GET /api/tags).
        
        Returns:
            True if the server answered successfully, False otherwise.
            Must not raise.
        """
        pass
    
    @abstractmethod
    async def list_models(self) -> list[str]:
        """
        List installed model identifiers.
        
        Raises:
            TransportError: server unreachable or answered badly
        """
        pass
    
    @abstractmethod
    async def list_processes(self) -> list[Dict[str, Any]]:
        """
        List active backend processes (used for model-load detection).
        
        Raises:
            TransportError: server unreachable or answered badly
        """
        pass
    
    async def close(self):
        """
        Close client connections and cleanup resources.
        
        Default implementation does nothing. Subclasses holding persistent
        connections should override.
        """
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)
    
    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"read_timeout={self.current_read_timeout}s)"
        )
