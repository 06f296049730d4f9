"""
Configuration settings for Grocery Sorter.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # === Application ===
    APP_NAME: str = "Grocery Sorter"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    
    # === Ollama Configuration ===
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.3:latest"
    OLLAMA_API_KEY: Optional[str] = None
    ALLOWED_HOSTS: list[str] = ["localhost", "127.0.0.1", "::1"]  # Loopback only
    USER_AGENT: str = "GrocerySorter/1.0"
    PREFER_QUANTIZED_MODELS: bool = False  # Pick an installed q4/q5 model if present
    
    # === Timeouts (seconds) ===
    CONNECT_TIMEOUT: float = 10.0
    READ_TIMEOUT: float = 30.0
    KEEP_ALIVE_TIMEOUT: float = 30.0
    MODEL_LOAD_READ_TIMEOUT: float = 300.0  # Used while a model pull/load is running
    PROBE_TIMEOUT: float = 5.0
    
    # === LLM Generation Parameters ===
    LLM_TEMPERATURE: float = 0.0
    LLM_TOP_P: float = 0.1
    LLM_NUM_CTX: int = 1024
    STRUCTURED_OUTPUT: bool = False  # Send the response schema as Ollama "format"
    
    # === Batching & Retry ===
    BATCH_SIZE: int = 3  # Small on purpose, local backends destabilize on big batches
    MAX_RETRIES: int = 2  # Attempts per batch = MAX_RETRIES + 1
    RETRY_BACKOFF_SECONDS: float = 2.0  # Linear: attempt * base
    
    # === Health / Circuit Breaker ===
    HEALTH_CHECK_INTERVAL: float = 5.0
    MAX_CONSECUTIVE_FAILURES: int = 3
    
    # === Prompt & Validation ===
    PROMPT_TEMPLATES_DIR: str = str(PACKAGE_DIR / "prompts")
    JSON_SCHEMA_PATH: str = str(PACKAGE_DIR / "schemas" / "aisle_categorization_v1.json")
    
    @field_validator("BATCH_SIZE", "MAX_CONSECUTIVE_FAILURES", "LLM_NUM_CTX")
    @classmethod
    def _positive_int(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value
    
    @field_validator("MAX_RETRIES")
    @classmethod
    def _non_negative_int(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be >= 0")
        return value
    
    @field_validator(
        "CONNECT_TIMEOUT",
        "READ_TIMEOUT",
        "KEEP_ALIVE_TIMEOUT",
        "MODEL_LOAD_READ_TIMEOUT",
        "PROBE_TIMEOUT",
    )
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return value
    
    @field_validator("RETRY_BACKOFF_SECONDS", "HEALTH_CHECK_INTERVAL")
    @classmethod
    def _non_negative_float(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be >= 0")
        return value


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.
    
    Settings are read-only after load, so sharing one instance is safe.
    Mutable runtime state (cache, health) lives on the Orchestrator instead.
    """
    return Settings()
