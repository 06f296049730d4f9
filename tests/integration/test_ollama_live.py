"""Integration tests against a running Ollama server.

Run: ollama serve (and pull at least one model)

Tests are skipped if Ollama is not reachable.
"""

import pytest

from grocery_sorter.cache.item_cache import ItemCache
from grocery_sorter.models.enums import AisleEnum
from grocery_sorter.orchestrator import create_orchestrator


pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_probe(ollama_client):
    assert await ollama_client.probe() is True


@pytest.mark.asyncio
async def test_list_models(ollama_client, ollama_models):
    assert await ollama_client.list_models() == ollama_models


@pytest.mark.asyncio
async def test_list_processes(ollama_client):
    processes = await ollama_client.list_processes()
    assert all(isinstance(p, dict) and p for p in processes)


@pytest.mark.asyncio
async def test_categorize_batch_live(test_settings, ollama_models):
    """Whatever the model answers, every item lands in the taxonomy."""
    settings = test_settings.model_copy(update={
        "OLLAMA_MODEL": ollama_models[0],
        "READ_TIMEOUT": 120.0,
    })
    items = ["2 bananas", "cheddar cheese", "paper towels", "dog food", "unknown_widget_123"]
    
    async with create_orchestrator(settings, cache=ItemCache({})) as orchestrator:
        events = []
        results = await orchestrator.categorize_batch(items, on_progress=events.append)
    
    assert len(results) == len(items)
    assert all(AisleEnum.normalize(item.aisle) is not None for item in results)
    assert results[0].notes.startswith("2 cases - ")
    assert "Processing batch 2/2" in events
