"""Integration test fixtures (service checks and prerequisites).

Integration tests talk to a real Ollama server on localhost and are
skipped if it is not running.
"""

import httpx
import pytest
import pytest_asyncio

from grocery_sorter.llm.ollama_client import OllamaClient


OLLAMA_URL = "http://localhost:11434"


@pytest.fixture(scope="session")
def ollama_models() -> list[str]:
    """Models installed on the local Ollama server.
    
    Skips tests if Ollama is not reachable or has no models pulled.
    """
    try:
        response = httpx.get(f"{OLLAMA_URL}/api/tags", timeout=5)
    except httpx.HTTPError as e:
        pytest.skip(f"Ollama not available: {e}")
    if response.status_code != 200:
        pytest.skip("Ollama not available (non-200 status)")
    models = [m["name"] for m in response.json().get("models", [])]
    if not models:
        pytest.skip("Ollama has no models pulled")
    return models


@pytest_asyncio.fixture
async def ollama_client(ollama_models):
    """Real OllamaClient instance for integration tests."""
    client = OllamaClient(base_url=OLLAMA_URL, read_timeout=120.0)
    yield client
    await client.close()
