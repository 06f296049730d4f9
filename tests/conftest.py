"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import json
import pytest
from pathlib import Path
from typing import Any, Dict

from grocery_sorter.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.
    
    Never reads a developer's .env file. Override specific settings in
    individual tests with ``test_settings.model_copy(update={...})``.
    """
    return Settings(
        _env_file=None,
        # === Application ===
        APP_NAME="Grocery Sorter (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        
        # === Ollama ===
        OLLAMA_BASE_URL="http://localhost:11434",
        OLLAMA_MODEL="llama3.3:latest",
        OLLAMA_API_KEY=None,
        PREFER_QUANTIZED_MODELS=False,
        
        # === Timeouts ===
        CONNECT_TIMEOUT=1.0,
        READ_TIMEOUT=5.0,
        MODEL_LOAD_READ_TIMEOUT=60.0,
        PROBE_TIMEOUT=1.0,
        
        # === Batching & Retry ===
        BATCH_SIZE=3,
        MAX_RETRIES=2,
        RETRY_BACKOFF_SECONDS=2.0,
        HEALTH_CHECK_INTERVAL=5.0,
        MAX_CONSECUTIVE_FAILURES=3,
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_generate_response(fixtures_dir: Path) -> Dict[str, Any]:
    """Raw body of a successful Ollama POST /api/generate call."""
    with open(fixtures_dir / "ollama_generate_response.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def sample_ps_response(fixtures_dir: Path) -> Dict[str, Any]:
    """Raw body of Ollama GET /api/ps while a model is being pulled."""
    with open(fixtures_dir / "ollama_ps_loading.json", encoding="utf-8") as f:
        return json.load(f)
