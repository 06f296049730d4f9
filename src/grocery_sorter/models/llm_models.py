"""
LLM-specific data models for request/response cycle.

These models are internal to the transport layer and describe the raw
exchange with the Ollama server. They are separate from the item models
so the categorizer never depends on wire details.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict


class LLMGenerationRequest(BaseModel):
    """
    Internal request model for a non-streaming generation call.
    
    Maps onto POST /api/generate:
    {model, prompt, stream: false, options: {temperature, top_p, num_ctx}}
    """
    model_config = ConfigDict(frozen=True)
    
    prompt: str = Field(..., description="Complete prompt text")
    model: str = Field(..., description="Model name/identifier (e.g., 'llama3.3:latest')")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="Sampling temperature")
    top_p: float = Field(default=0.1, ge=0.0, le=1.0, description="Nucleus sampling parameter")
    num_ctx: int = Field(default=1024, ge=1, description="Context window size")
    format_schema: Optional[Dict[str, Any]] = Field(
        default=None,
        description="JSON Schema for structured output (Ollama format parameter)"
    )
    stream: bool = Field(default=False, description="Always False, responses are parsed whole")
    
    def to_payload(self) -> Dict[str, Any]:
        """Render the Ollama JSON body."""
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": self.prompt,
            "stream": self.stream,
            "options": {
                "temperature": self.temperature,
                "top_p": self.top_p,
                "num_ctx": self.num_ctx,
            },
        }
        if self.format_schema:
            payload["format"] = self.format_schema
        return payload


class LLMGenerationResponse(BaseModel):
    """
    Internal response model from a generation call.
    
    Contains the raw generated text plus metadata for logging.
    Parsing the text into categories happens in the validation layer.
    """
    model_config = ConfigDict(frozen=True)
    
    content: str = Field(..., description="Generated text (should contain a JSON array)")
    model_version: str = Field(..., description="Model that actually answered")
    done: bool = Field(default=True, description="Whether the server finished generation")
    prompt_tokens: Optional[int] = Field(default=None, description="Tokens in prompt")
    completion_tokens: Optional[int] = Field(default=None, description="Tokens in completion")
    latency_ms: int = Field(..., ge=0, description="Round-trip latency in milliseconds")
    raw_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (durations, for debugging)"
    )
