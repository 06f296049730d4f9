"""Custom Prometheus metrics for Grocery Sorter.

Metrics are recorded unconditionally; exposing them (start_http_server,
an ASGI /metrics route) is up to the embedding application. Worth alerting on:
- fallback_activations_total (backend unavailable or misbehaving)
- transport_failures_total (timeouts during model loads, connection refusals)
- parse_failures_total (model ignoring the response format)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Remote Path Metrics ===

remote_attempts_total = Counter(
    "grocery_remote_attempts_total",
    "Remote categorization attempts by outcome",
    ["outcome"],
)
"""
Remote attempts counter.

Labels:
- outcome: success, transport_error, parse_error, breaker_open
"""

transport_failures_total = Counter(
    "grocery_transport_failures_total",
    "Transport failures by cause tag",
    ["cause"],
)
"""
Transport failures counter.

Labels:
- cause: connect, timeout, http_status, invalid_json, empty_response, unexpected
"""

parse_failures_total = Counter(
    "grocery_parse_failures_total",
    "Response parse failures by error type",
    ["error_type"],
)
"""
Parse failures counter.

Labels:
- error_type: json_extraction, schema_validation, item_count_mismatch
"""

llm_latency_seconds = Histogram(
    "grocery_llm_latency_seconds",
    "Ollama generation latency in seconds",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
)
"""
Generation latency histogram.

Buckets reach 300s to cover the extended read timeout during model loads.
"""

# === Fallback Metrics ===

fallback_activations_total = Counter(
    "grocery_fallback_activations_total",
    "Batches answered by a local fallback",
    ["reason", "variant"],
)
"""
Fallback activations counter.

Labels:
- reason: breaker_open, retries_exhausted, requested
- variant: enhanced, simple
"""

# === Cache Metrics ===

cache_lookups_total = Counter(
    "grocery_cache_lookups_total",
    "Item cache lookups by result",
    ["result"],
)
"""
Cache lookups counter.

Labels:
- result: hit, miss
"""

# === Health Metrics ===

circuit_breaker_open = Gauge(
    "grocery_circuit_breaker_open",
    "1 while consecutive failures are at or above the breaker threshold",
)

model_load_in_progress = Gauge(
    "grocery_model_load_in_progress",
    "1 while the backend reports a model pull/load",
)
