"""
Ollama client implementation for grocery categorization.

Communicates with the Ollama API using httpx AsyncClient. Supports:
- Non-streaming generation with JSON responses
- A single pooled keep-alive connection to the (loopback) server
- Dynamic read timeout, extended while a model pull/load is running
- Liveness probe, model listing and process listing
"""

import json
import time
from typing import Any, Dict, Optional
import httpx
import structlog

from grocery_sorter.llm.base_client import BaseLLMClient, TransportResult
from grocery_sorter.llm.exceptions import (
    ConfigurationError,
    TransportError,
    TransportFailure,
)
from grocery_sorter.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from grocery_sorter.monitoring.metrics import llm_latency_seconds, transport_failures_total


logger = structlog.get_logger(__name__)

DEFAULT_ALLOWED_HOSTS = ("localhost", "127.0.0.1", "::1")


def validate_base_url(base_url: str, allowed_hosts) -> httpx.URL:
    """
    Check that the endpoint is an http(s) URL on an allowed (loopback) host.
    
    Raises:
        ConfigurationError: missing, malformed or non-allowed endpoint
    """
    if not base_url or not base_url.strip():
        raise ConfigurationError("Ollama base URL is not configured")
    try:
        url = httpx.URL(base_url.strip())
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigurationError(
            f"Invalid Ollama base URL: {base_url}",
            details={"error": str(e)}
        ) from e
    
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"Ollama base URL must be an http(s) URL with a host: {base_url}",
            details={"scheme": url.scheme, "host": url.host}
        )
    
    allowed = {host.lower() for host in allowed_hosts}
    if url.host.lower() not in allowed:
        raise ConfigurationError(
            f"Ollama host '{url.host}' is not allowed",
            details={"host": url.host, "allowed_hosts": sorted(allowed)}
        )
    return url


def choose_quantized_model(models: list[str], default: str) -> str:
    """
    Prefer a quantized model for speed: first q4, then q5, else ``default``.
    
    Examples:
        >>> choose_quantized_model(["llama3:8b", "mistral:7b-q4_0"], "llama3:8b")
        'mistral:7b-q4_0'
    """
    for marker in ("q4", "q5"):
        for name in models:
            if marker in name.lower():
                return name
    return default


class OllamaClient(BaseLLMClient):
    """
    Ollama-specific transport using httpx for async HTTP communication.
    
    API Endpoints:
    - POST /api/generate: Non-streaming completion
    - GET /api/tags: List available models (liveness probe)
    - GET /api/ps: List running processes (model-load detection)
    
    No retries happen here; every failure is normalized to a TransportError
    with a cause tag and handed back to the caller.
    """
    
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        api_key: Optional[str] = None,
        allowed_hosts=DEFAULT_ALLOWED_HOSTS,
        user_agent: str = "GrocerySorter/1.0",
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        keep_alive_timeout: float = 30.0,
        model_load_read_timeout: float = 300.0,
        probe_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Ollama client.
        
        Args:
            base_url: Ollama server URL (loopback only by default)
            api_key: Optional bearer credential
            allowed_hosts: Hosts the client may talk to
            user_agent: Fixed client identifier header
            connect_timeout: Connect timeout in seconds
            read_timeout: Steady-state read timeout in seconds
            keep_alive_timeout: How long an idle pooled connection is kept
            model_load_read_timeout: Read timeout while a model load runs
            probe_timeout: Read timeout for /tags and /ps
            transport: Custom httpx transport (tests use httpx.MockTransport)
            **kwargs: Additional config
            
        Raises:
            ConfigurationError: base_url is invalid or not allowed
        """
        validate_base_url(base_url, allowed_hosts)
        super().__init__(base_url, read_timeout, model_load_read_timeout, **kwargs)
        
        self.connect_timeout = connect_timeout
        self.keep_alive_timeout = keep_alive_timeout
        self.probe_timeout = probe_timeout
        self._transport = transport
        
        self._headers = {
            "User-Agent": user_agent,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        
        # One keep-alive connection to the server, opened lazily
        self._connection_limits = httpx.Limits(
            max_connections=1,
            max_keepalive_connections=1,
            keepalive_expiry=keep_alive_timeout,
        )
        self._client: Optional[httpx.AsyncClient] = None
        
        logger.info(
            "Ollama client initialized",
            base_url=self.base_url,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            model_load_read_timeout=model_load_read_timeout,
            authenticated=api_key is not None,
        )
    
    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers,
                limits=self._connection_limits,
                transport=self._transport,
            )
            logger.debug("Created new httpx AsyncClient", base_url=self.base_url)
        return self._client
    
    async def _discard_client(self) -> None:
        """Drop the pooled connection so the next call opens a fresh one."""
        if self._client is not None:
            client, self._client = self._client, None
            if not client.is_closed:
                await client.aclose()
    
    def _timeout(self, read_timeout: float) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=read_timeout,
            write=read_timeout,
            pool=read_timeout,
        )
    
    async def _request(
        self,
        method: str,
        path: str,
        read_timeout: float,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Perform one HTTP request and decode its JSON body.
        
        Raises:
            TransportError: for every failure mode, tagged with its cause
        """
        try:
            client = self._get_client()
            response = await client.request(
                method,
                path,
                json=payload,
                timeout=self._timeout(read_timeout),
            )
            response.raise_for_status()
            return response.json()
        
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request to {path} timed out after {read_timeout}s",
                cause=TransportFailure.TIMEOUT,
                details={"path": path, "read_timeout": read_timeout, "error": str(e)},
            ) from e
        
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Ollama returned HTTP {e.response.status_code} for {path}",
                cause=TransportFailure.HTTP_STATUS,
                details={
                    "path": path,
                    "status": e.response.status_code,
                    "error": e.response.text[:500],
                },
            ) from e
        
        except (httpx.ConnectError, httpx.NetworkError, httpx.RemoteProtocolError) as e:
            await self._discard_client()
            raise TransportError(
                f"Network error talking to Ollama: {e}",
                cause=TransportFailure.CONNECT,
                details={"path": path, "error_type": type(e).__name__},
            ) from e
        
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(
                f"Invalid JSON from Ollama for {path}",
                cause=TransportFailure.INVALID_JSON,
                details={"path": path, "parse_error": str(e)},
            ) from e
        
        except httpx.HTTPError as e:
            await self._discard_client()
            raise TransportError(
                f"HTTP error talking to Ollama: {e}",
                cause=TransportFailure.UNEXPECTED,
                details={"path": path, "error_type": type(e).__name__},
            ) from e
    
    async def send(self, request: LLMGenerationRequest) -> TransportResult:
        """
        Generate a completion via POST /api/generate.
        
        Payload:
        {
            "model": "llama3.3:latest",
            "prompt": "...",
            "stream": false,
            "options": {"temperature": 0.0, "top_p": 0.1, "num_ctx": 1024}
        }
        
        Response (subset):
        {"model": "...", "response": "[...]", "done": true,
         "prompt_eval_count": 120, "eval_count": 80}
        """
        start_time = time.monotonic()
        read_timeout = self.current_read_timeout
        
        logger.info(
            "Sending generation request to Ollama",
            model=request.model,
            prompt_length=len(request.prompt),
            read_timeout=read_timeout,
            model_load_in_progress=self.model_load_in_progress,
        )
        
        try:
            data = await self._request(
                "POST", "/api/generate", read_timeout, payload=request.to_payload()
            )
            if not isinstance(data, dict):
                raise TransportError(
                    "Ollama generate response is not a JSON object",
                    cause=TransportFailure.INVALID_JSON,
                    details={"type": type(data).__name__},
                )
            content = data.get("response")
            if not isinstance(content, str) or not content.strip():
                raise TransportError(
                    "Empty response from Ollama",
                    cause=TransportFailure.EMPTY_RESPONSE,
                    details={"keys": sorted(data.keys())},
                )
        except TransportError as e:
            latency = time.monotonic() - start_time
            llm_latency_seconds.labels(model=request.model, success="false").observe(latency)
            transport_failures_total.labels(cause=e.cause.value).inc()
            logger.warning(
                "Ollama request failed",
                cause=e.cause.value,
                error=e.message,
                latency_ms=int(latency * 1000),
            )
            return TransportResult.failure(e)
        
        latency = time.monotonic() - start_time
        model_version = data.get("model") or request.model
        llm_latency_seconds.labels(model=model_version, success="true").observe(latency)
        
        logger.info(
            "Ollama generation successful",
            model=model_version,
            latency_ms=int(latency * 1000),
            prompt_tokens=data.get("prompt_eval_count"),
            completion_tokens=data.get("eval_count"),
        )
        
        return TransportResult.success(
            LLMGenerationResponse(
                content=content,
                model_version=model_version,
                done=bool(data.get("done", True)),
                prompt_tokens=data.get("prompt_eval_count"),
                completion_tokens=data.get("eval_count"),
                latency_ms=int(latency * 1000),
                raw_metadata={
                    "total_duration": data.get("total_duration"),
                    "load_duration": data.get("load_duration"),
                    "eval_duration": data.get("eval_duration"),
                },
            )
        )
    
    async def probe(self) -> bool:
        """
        Check Ollama server health via GET /api/tags.
        
        Returns True if server responds, False otherwise.
        """
        try:
            await self._request("GET", "/api/tags", self.probe_timeout)
            logger.debug("Ollama probe passed")
            return True
        except TransportError as e:
            logger.warning("Ollama probe failed", cause=e.cause.value, error=e.message)
            return False
    
    async def list_models(self) -> list[str]:
        """
        List all available models via GET /api/tags.
        
        Returns:
            List of model names (e.g., ["llama3.3:latest", "mistral:7b-q4_0"])
        """
        data = await self._request("GET", "/api/tags", self.probe_timeout)
        models = data.get("models", []) if isinstance(data, dict) else []
        names = [m["name"] for m in models if isinstance(m, dict) and m.get("name")]
        logger.debug("Listed available models", count=len(names), models=names)
        return names
    
    async def list_processes(self) -> list[Dict[str, Any]]:
        """
        List running processes via GET /api/ps.
        
        Accepts either an object whose values are lists/objects
        (``{"models": [...]}``) or a flat list. Only non-empty objects are kept.
        """
        data = await self._request("GET", "/api/ps", self.probe_timeout)
        
        if isinstance(data, dict):
            entries: list[Any] = []
            for value in data.values():
                if isinstance(value, list):
                    entries.extend(value)
                else:
                    entries.append(value)
        elif isinstance(data, list):
            entries = data
        else:
            entries = []
        
        return [entry for entry in entries if isinstance(entry, dict) and entry]
    
    async def close(self):
        """Close the pooled HTTP connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")
        self._client = None
    
    async def __aenter__(self):
        """Async context manager entry."""
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
