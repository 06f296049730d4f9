"""
Public entry point: categorize arbitrarily long grocery lists.

Flow per call:
    1. Split items into cache hits and misses (by clean name)
    2. Slice misses into BATCH_SIZE batches, processed strictly one at a time
    3. Write every categorized result back to the cache
    4. Return one CategorizedItem per input item, in input order

Batches are never dispatched concurrently: local inference backends were
unstable under parallel load, which is also why batches stay small.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog
from pydantic import ValidationError as SettingsValidationError

from grocery_sorter.cache.item_cache import ItemCache
from grocery_sorter.categorization.categorizer import Categorizer
from grocery_sorter.config import Settings, get_settings
from grocery_sorter.health.monitor import HealthMonitor
from grocery_sorter.llm.base_client import BaseLLMClient
from grocery_sorter.llm.exceptions import ConfigurationError, TransportError
from grocery_sorter.llm.ollama_client import OllamaClient, choose_quantized_model
from grocery_sorter.llm.prompt_builder import PromptBuilder
from grocery_sorter.llm.text_utils import format_notes, parse_items
from grocery_sorter.models.items import CategorizedItem
from grocery_sorter.monitoring.metrics import cache_lookups_total
from grocery_sorter.validation.response_parser import ResponseParser

logger = structlog.get_logger(__name__)

CACHE_HIT_NOTE = "From cache"

ProgressCallback = Callable[[str], None]


class Orchestrator:
    """
    Owns the item cache and drives the categorizer batch by batch.
    
    One instance per application; its cache and the categorizer's health
    state live exactly as long as it does. Concurrent callers are
    serialized with an asyncio.Lock.
    """
    
    def __init__(
        self,
        categorizer: Categorizer,
        cache: Optional[ItemCache] = None,
        batch_size: int = 3,
        prefer_quantized_models: bool = False,
    ):
        """
        Args:
            categorizer: Batch categorizer (holds transport and health monitor)
            cache: Item cache; a seeded ItemCache by default
            batch_size: Max uncached items per remote request
            prefer_quantized_models: Pick an installed q4/q5 model before first use
        """
        if batch_size < 1:
            raise ConfigurationError("batch_size must be >= 1", details={"batch_size": batch_size})
        self.categorizer = categorizer
        self.cache = cache if cache is not None else ItemCache()
        self.batch_size = batch_size
        self.prefer_quantized_models = prefer_quantized_models
        self._model_selected = False
        self._lock = asyncio.Lock()
    
    @property
    def client(self) -> BaseLLMClient:
        return self.categorizer.client
    
    @property
    def health_monitor(self) -> HealthMonitor:
        return self.categorizer.health_monitor
    
    async def categorize_batch(
        self,
        items: list[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[CategorizedItem]:
        """
        Categorize every item, using the cache where possible.
        
        Args:
            items: Raw item strings, in display order
            on_progress: Called with human-readable progress messages
            
        Returns:
            Exactly ``len(items)`` CategorizedItems, aligned with ``items``
        """
        if not items:
            return []
        
        async with self._lock:
            if self.prefer_quantized_models and not self._model_selected:
                await self.select_optimal_model()
            
            parsed = parse_items(items)
            results: list[Optional[CategorizedItem]] = [None] * len(parsed)
            misses: list[int] = []
            
            for index, item in enumerate(parsed):
                aisle = self.cache.get(item.clean_name)
                if aisle is None:
                    misses.append(index)
                    continue
                results[index] = CategorizedItem(
                    product=item.clean_name,
                    aisle=aisle,
                    notes=format_notes(item.quantity, CACHE_HIT_NOTE),
                )
            
            hits = len(parsed) - len(misses)
            cache_lookups_total.labels(result="hit").inc(hits)
            cache_lookups_total.labels(result="miss").inc(len(misses))
            logger.info("Cache lookup complete", total=len(parsed), hits=hits, misses=len(misses))
            self._emit(on_progress, f"Found {hits} cached items, {len(misses)} to categorize")
            
            batches = [
                misses[start:start + self.batch_size]
                for start in range(0, len(misses), self.batch_size)
            ]
            for number, batch in enumerate(batches, start=1):
                self._emit(on_progress, f"Processing batch {number}/{len(batches)}")
                outcome = await self.categorizer.categorize_with_metadata(
                    [parsed[index].original for index in batch]
                )
                logger.info(
                    "Batch finished",
                    batch=number,
                    total_batches=len(batches),
                    source=outcome.metadata.source.value,
                    attempts=outcome.metadata.total_attempts,
                )
                for index, categorized in zip(batch, outcome.items):
                    results[index] = categorized
                    if categorized.product and categorized.aisle:
                        self.cache.set(parsed[index].clean_name, categorized.aisle)
                        self.cache.set(categorized.product, categorized.aisle)
            
            self._emit(on_progress, f"Categorization complete: {len(parsed)} items")
            logger.info("Categorization complete", items=len(parsed), batches=len(batches))
            return [result for result in results if result is not None]
    
    def categorize_simple(self, items: list[str]) -> list[CategorizedItem]:
        """Instant, network-free answer: every item in the default aisle."""
        return self.categorizer.simple_fallback(items)
    
    async def check_connection(self) -> bool:
        """
        Verify the server answers and log its installed models.
        
        Returns:
            True if /api/tags could be listed, False otherwise
        """
        try:
            models = await self.client.list_models()
        except TransportError as e:
            logger.warning("Ollama connection failed", cause=e.cause.value, error=e.message)
            return False
        logger.info("Ollama connection successful", models=models)
        quantized = [name for name in models if "q4" in name.lower() or "q5" in name.lower()]
        if quantized:
            logger.info("Quantized models available", models=quantized)
        return True
    
    async def select_optimal_model(self) -> str:
        """
        Switch the categorizer to an installed quantized model if one exists.
        
        Returns:
            The model that will be used for remote requests
        """
        default = self.categorizer.model or self.categorizer.prompt_builder.default_model
        try:
            models = await self.client.list_models()
        except TransportError as e:
            logger.warning("Could not list models, keeping configured model", model=default, cause=e.cause.value)
            return default
        chosen = choose_quantized_model(models, default)
        self.categorizer.model = chosen
        self._model_selected = True
        logger.info("Model selected", model=chosen, configured=default)
        return chosen
    
    @staticmethod
    def _emit(on_progress: Optional[ProgressCallback], message: str) -> None:
        if on_progress is None:
            return
        try:
            on_progress(message)
        except Exception:
            logger.exception("Progress callback failed", message=message)
    
    async def close(self) -> None:
        await self.client.close()
    
    async def __aenter__(self):
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_orchestrator(
    settings: Optional[Settings] = None,
    client: Optional[BaseLLMClient] = None,
    cache: Optional[ItemCache] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Orchestrator:
    """
    Wire transport, health monitor, prompt builder, parser and categorizer.
    
    Args:
        settings: Settings; loaded from the environment if omitted
        client: Pre-built transport (tests inject fakes); OllamaClient by default
        cache: Pre-built cache; seeded ItemCache by default
        sleep: Backoff sleep used between attempts
        clock: Monotonic clock for health check rate limiting
        
    Raises:
        ConfigurationError: settings invalid or endpoint not allowed
    """
    if settings is None:
        try:
            settings = get_settings()
        except SettingsValidationError as e:
            raise ConfigurationError("Invalid settings", details={"errors": e.errors()}) from e
    
    if client is None:
        client = OllamaClient(
            base_url=settings.OLLAMA_BASE_URL,
            api_key=settings.OLLAMA_API_KEY,
            allowed_hosts=settings.ALLOWED_HOSTS,
            user_agent=settings.USER_AGENT,
            connect_timeout=settings.CONNECT_TIMEOUT,
            read_timeout=settings.READ_TIMEOUT,
            keep_alive_timeout=settings.KEEP_ALIVE_TIMEOUT,
            model_load_read_timeout=settings.MODEL_LOAD_READ_TIMEOUT,
            probe_timeout=settings.PROBE_TIMEOUT,
        )
    
    health_monitor = HealthMonitor(
        client,
        health_check_interval=settings.HEALTH_CHECK_INTERVAL,
        max_consecutive_failures=settings.MAX_CONSECUTIVE_FAILURES,
        clock=clock,
    )
    prompt_builder = PromptBuilder(
        templates_dir=settings.PROMPT_TEMPLATES_DIR,
        schema_path=settings.JSON_SCHEMA_PATH,
        default_model=settings.OLLAMA_MODEL,
        default_temperature=settings.LLM_TEMPERATURE,
        default_top_p=settings.LLM_TOP_P,
        default_num_ctx=settings.LLM_NUM_CTX,
        structured_output=settings.STRUCTURED_OUTPUT,
    )
    categorizer = Categorizer(
        client=client,
        health_monitor=health_monitor,
        prompt_builder=prompt_builder,
        response_parser=ResponseParser(settings.JSON_SCHEMA_PATH),
        max_retries=settings.MAX_RETRIES,
        backoff_seconds=settings.RETRY_BACKOFF_SECONDS,
        sleep=sleep,
    )
    
    logger.info(
        "Orchestrator created",
        base_url=client.base_url,
        model=settings.OLLAMA_MODEL,
        batch_size=settings.BATCH_SIZE,
        max_retries=settings.MAX_RETRIES,
    )
    return Orchestrator(
        categorizer,
        cache=cache,
        batch_size=settings.BATCH_SIZE,
        prefer_quantized_models=settings.PREFER_QUANTIZED_MODELS,
    )
