"""
Grocery Sorter: resilient aisle categorization for grocery lists.

Turns free-text grocery items into structured records assigned to a fixed
store-aisle taxonomy, using a local Ollama server when it is healthy and
deterministic keyword rules when it is not.

Architecture: Orchestrator (cache + batching) -> Categorizer (prompt, retry,
fallback) -> HealthMonitor (circuit breaker) -> OllamaClient (transport)
"""

__version__ = "0.1.0"
