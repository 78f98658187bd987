"""Prometheus metrics for generation and persistence."""

from prometheus_client import Counter, Histogram

# Generation metrics
generation_latency_ms = Histogram(
    "itinerary_generation_latency_ms",
    "Draft generation latency in milliseconds",
    ["outcome"],
    buckets=[250, 500, 1000, 2000, 5000, 10000, 20000, 30000],
)

generation_total = Counter(
    "itinerary_generation_total",
    "Total draft generation attempts",
    ["outcome"],
)

# Persistence metrics
persistence_errors_total = Counter(
    "plan_persistence_errors_total",
    "Total plan persistence failures",
    ["operation", "kind"],
)


class PrometheusPlannerMetrics:
    """Prometheus-based planner metrics implementation."""

    def record_generation(self, outcome: str, latency_ms: float) -> None:
        """Record one generation attempt and its latency."""
        generation_total.labels(outcome=outcome).inc()
        generation_latency_ms.labels(outcome=outcome).observe(latency_ms)

    def inc_persistence_error(self, operation: str, kind: str) -> None:
        """Increment persistence error counter."""
        persistence_errors_total.labels(operation=operation, kind=kind).inc()
