"""Health monitoring: circuit breaker and model-load detection."""

from grocery_sorter.health.monitor import HealthMonitor, HealthState

__all__ = ["HealthMonitor", "HealthState"]
