"""
gqlcache - Observability Module

Single observability adapter for the runtime. Prometheus metrics, request
ids, JSON logs and cache-store error reports all go through
get_observability().

Usage:
    from gqlcache.observability import get_observability

    obs = get_observability()
    obs.increment_counter("gqlcache_cache_hits_total", operation="GetExpenses")
    obs.report_cache_error("GetExpenses", error, action="lookup")
"""

from .monitoring import (
    JSONFormatter,
    ObservabilityAdapter,
    get_observability,
    initialize_observability,
)

__all__ = [
    "ObservabilityAdapter",
    "JSONFormatter",
    "get_observability",
    "initialize_observability",
]
