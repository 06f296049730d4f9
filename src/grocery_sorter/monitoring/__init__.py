"""Monitoring and metrics instrumentation for Grocery Sorter.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from grocery_sorter.monitoring.metrics import (
    cache_lookups_total,
    circuit_breaker_open,
    fallback_activations_total,
    llm_latency_seconds,
    model_load_in_progress,
    parse_failures_total,
    remote_attempts_total,
    transport_failures_total,
)

__all__ = [
    "remote_attempts_total",
    "transport_failures_total",
    "parse_failures_total",
    "llm_latency_seconds",
    "fallback_activations_total",
    "cache_lookups_total",
    "circuit_breaker_open",
    "model_load_in_progress",
]
