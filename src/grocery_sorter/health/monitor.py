"""
Health monitoring and circuit breaking for the Ollama server.

Two independent concerns share one HealthState:

1. Circuit breaker: after MAX_CONSECUTIVE_FAILURES failed remote calls the
   breaker is open. Every check while open re-probes the server (rate
   limited by HEALTH_CHECK_INTERVAL) and closes again on the first good
   probe. There is no fixed cooldown.
2. Model-load detection: GET /api/ps is scanned for pull/load processes;
   while one runs the transport uses its extended read timeout.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from grocery_sorter.llm.base_client import BaseLLMClient
from grocery_sorter.llm.exceptions import TransportError
from grocery_sorter.monitoring.metrics import circuit_breaker_open, model_load_in_progress

logger = structlog.get_logger(__name__)

MODEL_LOAD_MARKERS = ("pull", "load")


@dataclass
class HealthState:
    """
    Mutable health state, owned by a single HealthMonitor.
    
    Attributes:
        consecutive_failures: Failed remote calls/probes since the last success
        last_check_time: Clock reading of the last probe or remote outcome
        model_load_in_progress: Backend reported a pull/load process
        last_known_healthy: Result of the last probe or remote outcome
    """
    consecutive_failures: int = 0
    last_check_time: Optional[float] = None
    model_load_in_progress: bool = False
    last_known_healthy: bool = True


class HealthMonitor:
    """
    Gatekeeper consulted by the categorizer before every remote attempt.
    """
    
    def __init__(
        self,
        client: BaseLLMClient,
        health_check_interval: float = 5.0,
        max_consecutive_failures: int = 3,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize health monitor.
        
        Args:
            client: Transport used for probes; also told about model loads
            health_check_interval: Minimum seconds between network probes
            max_consecutive_failures: Breaker threshold
            clock: Monotonic time source (injectable for tests)
        """
        self.client = client
        self.health_check_interval = health_check_interval
        self.max_consecutive_failures = max_consecutive_failures
        self._clock = clock
        self.state = HealthState()
        self._lock = asyncio.Lock()
    
    @property
    def consecutive_failures(self) -> int:
        return self.state.consecutive_failures
    
    @property
    def model_load_in_progress(self) -> bool:
        return self.state.model_load_in_progress
    
    @property
    def breaker_open(self) -> bool:
        return self.state.consecutive_failures >= self.max_consecutive_failures
    
    async def is_healthy(self) -> bool:
        """
        Probe the server unless the last observation is still fresh.
        
        Within HEALTH_CHECK_INTERVAL of the last probe (or remote outcome)
        the last known state is returned without any network call.
        """
        async with self._lock:
            now = self._clock()
            last = self.state.last_check_time
            if last is not None and now - last < self.health_check_interval:
                return self.state.last_known_healthy
            self.state.last_check_time = now
        
        healthy = await self.client.probe()
        
        self.state.last_known_healthy = healthy
        if healthy:
            self._reset_failures()
            await self.detect_model_load()
        else:
            self.state.consecutive_failures += 1
            self._update_breaker_gauge()
            logger.warning(
                "Server health check failed",
                consecutive_failures=self.state.consecutive_failures,
            )
        return healthy
    
    async def should_attempt_remote(self) -> bool:
        """
        Circuit breaker check.
        
        Returns:
            True while below the failure threshold; when at/above it, the
            outcome of a (rate-limited) re-probe.
        """
        if not self.breaker_open:
            return True
        
        if await self.is_healthy():
            logger.info("Server health restored, closing circuit breaker")
            return True
        
        logger.warning(
            "Server appears unhealthy, skipping remote request",
            consecutive_failures=self.state.consecutive_failures,
            max_consecutive_failures=self.max_consecutive_failures,
        )
        return False
    
    def record_failure(self) -> None:
        """Count a failed remote call."""
        was_open = self.breaker_open
        self.state.consecutive_failures += 1
        self.state.last_known_healthy = False
        self.state.last_check_time = self._clock()
        self._update_breaker_gauge()
        
        if self.breaker_open and not was_open:
            logger.warning(
                "Circuit breaker opened",
                consecutive_failures=self.state.consecutive_failures,
            )
    
    def record_success(self) -> None:
        """Count a successful remote call."""
        self.state.last_known_healthy = True
        self.state.last_check_time = self._clock()
        self._reset_failures()
    
    def _reset_failures(self) -> None:
        if self.breaker_open:
            logger.info("Circuit breaker closed")
        self.state.consecutive_failures = 0
        self._update_breaker_gauge()
    
    def _update_breaker_gauge(self) -> None:
        circuit_breaker_open.set(1 if self.breaker_open else 0)
    
    async def detect_model_load(self) -> bool:
        """
        Scan active backend processes for a model pull/load.
        
        Updates HealthState and the transport's read timeout on each edge.
        
        Returns:
            True if a pull/load is running; False otherwise or when /ps
            cannot be read (state is left unchanged in that case).
        """
        try:
            processes = await self.client.list_processes()
        except TransportError as e:
            logger.warning("Could not read backend processes", cause=e.cause.value, error=e.message)
            return False
        
        loading = any(_is_model_load(process) for process in processes)
        
        if loading and not self.state.model_load_in_progress:
            logger.warning("Model load detected, extending read timeout")
        elif not loading and self.state.model_load_in_progress:
            logger.info("Model load finished, read timeout restored")
        
        self.state.model_load_in_progress = loading
        self.client.set_model_load_in_progress(loading)
        model_load_in_progress.set(1 if loading else 0)
        return loading


def _is_model_load(process: dict) -> bool:
    for field in ("name", "cmd"):
        value = process.get(field)
        if isinstance(value, str):
            lowered = value.lower()
            if any(marker in lowered for marker in MODEL_LOAD_MARKERS):
                return True
    return False
