"""
Categorizer: one batch of raw items in, one CategorizedItem per item out.

Remote path with linear-backoff retries, gated by the health monitor, and
a deterministic keyword fallback whenever the remote path cannot produce
a complete answer. ``categorize`` never raises for per-batch problems.

Attempt loop (MAX_RETRIES + 1 attempts):
    1. Breaker open        -> enhanced fallback immediately
    2. Transport failure   -> record failure, back off, retry
    3. Parse failure       -> back off, retry
    4. Complete response   -> record success, return
    5. Attempts exhausted  -> enhanced fallback
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

from grocery_sorter.categorization.fallback import enhanced_fallback, simple_fallback
from grocery_sorter.categorization.metadata import CategorizationMetadata, CategorizationResult
from grocery_sorter.health.monitor import HealthMonitor
from grocery_sorter.llm.base_client import BaseLLMClient
from grocery_sorter.llm.exceptions import TransportFailure
from grocery_sorter.llm.prompt_builder import PromptBuilder
from grocery_sorter.llm.text_utils import parse_items
from grocery_sorter.models.enums import CategorizationSource
from grocery_sorter.models.items import CategorizedItem, ParsedItem
from grocery_sorter.monitoring.metrics import fallback_activations_total, remote_attempts_total
from grocery_sorter.validation.exceptions import ParseError
from grocery_sorter.validation.response_parser import ResponseParser

logger = structlog.get_logger(__name__)


class Categorizer:
    """
    Categorize batches of grocery items against the aisle taxonomy.
    
    Attributes:
        client: Transport to the inference server
        health_monitor: Circuit breaker consulted before every attempt
        prompt_builder: Renders the batch prompt
        response_parser: Turns model text into categorized items
        max_retries: Extra attempts after the first
        backoff_seconds: Linear backoff base (sleep attempt * base)
        model: Model override (None uses the prompt builder default)
    """

    def __init__(
        self,
        client: BaseLLMClient,
        health_monitor: HealthMonitor,
        prompt_builder: PromptBuilder,
        response_parser: ResponseParser,
        max_retries: int = 2,
        backoff_seconds: float = 2.0,
        model: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.health_monitor = health_monitor
        self.prompt_builder = prompt_builder
        self.response_parser = response_parser
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.model = model
        self._sleep = sleep

    async def categorize(self, items: list[str]) -> list[CategorizedItem]:
        """
        Categorize one batch.
        
        Returns:
            Exactly ``len(items)`` CategorizedItems, in input order
        """
        result = await self.categorize_with_metadata(items)
        return result.items

    async def categorize_with_metadata(self, items: list[str]) -> CategorizationResult:
        """
        Categorize one batch and report how the answer was produced.
        
        Only task cancellation propagates; every other failure degrades to
        the enhanced fallback.
        """
        start = time.monotonic()
        parsed = parse_items(items)
        if not parsed:
            return CategorizationResult(
                items=[],
                metadata=CategorizationMetadata(
                    total_attempts=0,
                    source=CategorizationSource.FALLBACK_RETRIES_EXHAUSTED,
                    total_latency_ms=0,
                ),
            )

        try:
            return await self._categorize_remote(parsed, start)
        except Exception:
            logger.exception("Unexpected error during categorization, using enhanced fallback")
            return self._fallback_result(
                parsed,
                CategorizationSource.FALLBACK_RETRIES_EXHAUSTED,
                start,
                total_attempts=0,
                failures=[{"kind": "unexpected"}],
            )

    async def _categorize_remote(self, parsed: list[ParsedItem], start: float) -> CategorizationResult:
        request = self.prompt_builder.build_request(parsed, model=self.model)
        max_attempts = self.max_retries + 1
        attempts = 0
        failures: list[dict] = []

        for attempt in range(1, max_attempts + 1):
            if not await self.health_monitor.should_attempt_remote():
                remote_attempts_total.labels(outcome="breaker_open").inc()
                logger.warning("Server unhealthy, using enhanced fallback", batch_size=len(parsed))
                return self._fallback_result(
                    parsed, CategorizationSource.FALLBACK_BREAKER_OPEN, start, attempts, failures
                )

            attempts += 1
            result = await self.client.send(request)

            if not result.ok:
                error = result.error
                self.health_monitor.record_failure()
                remote_attempts_total.labels(outcome="transport_error").inc()
                failures.append(
                    {"attempt": attempt, "kind": "transport", "cause": error.cause.value, "message": error.message}
                )
                logger.warning(
                    "Remote attempt failed",
                    attempt=attempt,
                    max_attempts=max_attempts,
                    cause=error.cause.value,
                )
                if error.cause == TransportFailure.TIMEOUT:
                    # A pull/load in progress explains the timeout; extend before retrying
                    await self.health_monitor.detect_model_load()
            else:
                response = result.response
                logger.debug("Raw model response", content=response.content)
                try:
                    categorized = self.response_parser.parse(response.content, parsed)
                except ParseError as e:
                    remote_attempts_total.labels(outcome="parse_error").inc()
                    failures.append(
                        {"attempt": attempt, "kind": "parse", "error_type": e.error_type, "message": e.message}
                    )
                    logger.warning(
                        "Model response unusable",
                        attempt=attempt,
                        max_attempts=max_attempts,
                        error_type=e.error_type,
                        details=e.details,
                    )
                else:
                    self.health_monitor.record_success()
                    remote_attempts_total.labels(outcome="success").inc()
                    logger.info(
                        "Batch categorized remotely",
                        batch_size=len(parsed),
                        attempts=attempts,
                        model=response.model_version,
                    )
                    return CategorizationResult(
                        items=categorized,
                        metadata=CategorizationMetadata(
                            total_attempts=attempts,
                            source=CategorizationSource.REMOTE,
                            total_latency_ms=_elapsed_ms(start),
                            model=response.model_version,
                            failures=failures,
                        ),
                    )

            if attempt < max_attempts:
                backoff = attempt * self.backoff_seconds
                logger.info("Retrying after backoff", next_attempt=attempt + 1, backoff_seconds=backoff)
                await self._sleep(backoff)

        logger.error(
            "All remote attempts failed, using enhanced fallback",
            attempts=attempts,
            batch_size=len(parsed),
        )
        return self._fallback_result(
            parsed, CategorizationSource.FALLBACK_RETRIES_EXHAUSTED, start, attempts, failures
        )

    def _fallback_result(
        self,
        parsed: list[ParsedItem],
        source: CategorizationSource,
        start: float,
        total_attempts: int,
        failures: list[dict],
    ) -> CategorizationResult:
        reason = "breaker_open" if source == CategorizationSource.FALLBACK_BREAKER_OPEN else "retries_exhausted"
        fallback_activations_total.labels(reason=reason, variant="enhanced").inc()
        return CategorizationResult(
            items=enhanced_fallback(parsed),
            metadata=CategorizationMetadata(
                total_attempts=total_attempts,
                source=source,
                total_latency_ms=_elapsed_ms(start),
                failures=failures,
            ),
        )

    def enhanced_fallback(self, items: list[str]) -> list[CategorizedItem]:
        """Keyword-rule categorization with zero network calls."""
        fallback_activations_total.labels(reason="requested", variant="enhanced").inc()
        logger.info("Using enhanced fallback categorization", batch_size=len(items))
        return enhanced_fallback(parse_items(items))

    def simple_fallback(self, items: list[str]) -> list[CategorizedItem]:
        """Flat default-bucket categorization for callers that cannot wait at all."""
        fallback_activations_total.labels(reason="requested", variant="simple").inc()
        logger.info("Using simple fallback categorization", batch_size=len(items))
        return simple_fallback(parse_items(items))


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))
