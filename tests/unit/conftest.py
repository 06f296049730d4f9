"""Unit test fixtures (fakes and stubs).

Provides an in-memory transport, a controllable clock and a recording
sleep so the pipeline can be tested without a running Ollama server or
real backoff delays.
"""

import json
import re
from typing import Any, Callable, Dict, Optional

import pytest

from grocery_sorter.categorization.categorizer import Categorizer
from grocery_sorter.health.monitor import HealthMonitor
from grocery_sorter.llm.base_client import BaseLLMClient, TransportResult
from grocery_sorter.llm.exceptions import TransportError, TransportFailure
from grocery_sorter.llm.prompt_builder import PromptBuilder
from grocery_sorter.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from grocery_sorter.validation.response_parser import ResponseParser


_PROMPT_ITEM_PATTERN = re.compile(r'"id": (\d+),\s*"name": "([^"]*)"')


def success_result(content: str, model: str = "llama3.3:latest") -> TransportResult:
    return TransportResult.success(
        LLMGenerationResponse(content=content, model_version=model, latency_ms=12)
    )


def failure_result(cause: TransportFailure = TransportFailure.CONNECT) -> TransportResult:
    return TransportResult.failure(TransportError(f"simulated {cause.value}", cause=cause))


class FakeLLMClient(BaseLLMClient):
    """In-memory transport.
    
    ``send`` answers from ``responder`` if set, else pops queued results,
    else fails with a connect error.
    """
    
    def __init__(self):
        super().__init__("http://localhost:11434", read_timeout=30.0, model_load_read_timeout=300.0)
        self.queued: list[TransportResult] = []
        self.responder: Optional[Callable[[LLMGenerationRequest], TransportResult]] = None
        self.probe_results: list[bool] = []
        self.models: Optional[list[str]] = []
        self.processes: list[Dict[str, Any]] = []
        self.processes_error: Optional[TransportError] = None
        self.requests: list[LLMGenerationRequest] = []
        self.read_timeouts: list[float] = []
        self.probe_calls = 0
        self.process_calls = 0
        self.closed = False
    
    def queue_success(self, content: str) -> None:
        self.queued.append(success_result(content))
    
    def queue_failure(self, cause: TransportFailure = TransportFailure.CONNECT) -> None:
        self.queued.append(failure_result(cause))
    
    async def send(self, request: LLMGenerationRequest) -> TransportResult:
        self.requests.append(request)
        self.read_timeouts.append(self.current_read_timeout)
        if self.responder is not None:
            return self.responder(request)
        if self.queued:
            return self.queued.pop(0)
        return failure_result(TransportFailure.CONNECT)
    
    async def probe(self) -> bool:
        self.probe_calls += 1
        if self.probe_results:
            return self.probe_results.pop(0)
        return False
    
    async def list_models(self) -> list[str]:
        if self.models is None:
            raise TransportError("connection refused", cause=TransportFailure.CONNECT)
        return list(self.models)
    
    async def list_processes(self) -> list[Dict[str, Any]]:
        self.process_calls += 1
        if self.processes_error is not None:
            raise self.processes_error
        return list(self.processes)
    
    async def close(self):
        self.closed = True


class FakeClock:
    """Monotonic clock that only moves when told to."""
    
    def __init__(self, start: float = 1000.0):
        self.now = start
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records requested delays."""
    
    def __init__(self):
        self.delays: list[float] = []
    
    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def echo_responder(aisles: Dict[str, str]) -> Callable[[LLMGenerationRequest], TransportResult]:
    """Responder that answers every prompt item, echoing ids.
    
    Items missing from ``aisles`` get "General Merchandise".
    """
    def respond(request: LLMGenerationRequest) -> TransportResult:
        entries = [
            {
                "id": int(item_id),
                "product": name.title(),
                "aisle": aisles.get(name, "General Merchandise"),
                "notes": name,
            }
            for item_id, name in _PROMPT_ITEM_PATTERN.findall(request.prompt)
        ]
        return success_result(json.dumps(entries))
    return respond


@pytest.fixture
def fake_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def prompt_builder(test_settings) -> PromptBuilder:
    """PromptBuilder over the packaged templates and schema."""
    return PromptBuilder(
        templates_dir=test_settings.PROMPT_TEMPLATES_DIR,
        schema_path=test_settings.JSON_SCHEMA_PATH,
        default_model=test_settings.OLLAMA_MODEL,
    )


@pytest.fixture
def response_parser(test_settings) -> ResponseParser:
    return ResponseParser(test_settings.JSON_SCHEMA_PATH)


@pytest.fixture
def health_monitor(fake_client, fake_clock) -> HealthMonitor:
    return HealthMonitor(
        fake_client,
        health_check_interval=5.0,
        max_consecutive_failures=3,
        clock=fake_clock,
    )


@pytest.fixture
def categorizer(fake_client, health_monitor, prompt_builder, response_parser, recording_sleep) -> Categorizer:
    """Categorizer wired to the fake transport (3 attempts, 2s linear backoff)."""
    return Categorizer(
        client=fake_client,
        health_monitor=health_monitor,
        prompt_builder=prompt_builder,
        response_parser=response_parser,
        max_retries=2,
        backoff_seconds=2.0,
        sleep=recording_sleep,
    )


@pytest.fixture
def make_echo_responder():
    """Factory for responders that answer every prompt item by id."""
    return echo_responder
