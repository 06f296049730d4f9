"""
Transport layer for the Ollama inference server.

Components:
- BaseLLMClient / TransportResult: transport contract
- OllamaClient: httpx implementation for Ollama
- PromptBuilder: Renders categorization prompts
- text_utils: Quantity extraction and note formatting
- exceptions: TransportError (with cause tag) and ConfigurationError
"""

from grocery_sorter.llm.base_client import BaseLLMClient, TransportResult
from grocery_sorter.llm.ollama_client import OllamaClient, choose_quantized_model
from grocery_sorter.llm.prompt_builder import PromptBuilder
from grocery_sorter.llm.exceptions import (
    ConfigurationError,
    LLMClientError,
    TransportError,
    TransportFailure,
)

__all__ = [
    "BaseLLMClient",
    "TransportResult",
    "OllamaClient",
    "choose_quantized_model",
    "PromptBuilder",
    "LLMClientError",
    "TransportError",
    "TransportFailure",
    "ConfigurationError",
]
