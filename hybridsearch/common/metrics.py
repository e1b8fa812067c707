"""Metrics collection for the hybrid search pipeline.

Provides a thin convenience wrapper around ``prometheus_client`` so each
stage records embedding, vector store, search and rerank metrics the same
way.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- A single registry is kept per collector (can be injected for tests)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection for pipeline stages.

    Parameters
    - service_name: Logical name of the owning process
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.embedding_requests = Counter(
            'hs_embedding_requests_total',
            'Total texts embedded',
            ['model_name'],
            registry=self.registry
        )

        self.embedding_duration = Histogram(
            'hs_embedding_duration_seconds',
            'Embedding batch duration',
            ['model_name'],
            registry=self.registry
        )

        self.vector_store_operations = Counter(
            'hs_vector_store_operations_total',
            'Total vector store operations',
            ['operation', 'column'],
            registry=self.registry
        )

        self.search_requests = Counter(
            'hs_search_requests_total',
            'Total search requests',
            ['query_type'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'hs_search_duration_seconds',
            'Search duration',
            ['query_type'],
            registry=self.registry
        )

        self.rerank_requests = Counter(
            'hs_rerank_requests_total',
            'Total rerank calls',
            ['model_name'],
            registry=self.registry
        )

        self.rerank_duration = Histogram(
            'hs_rerank_duration_seconds',
            'Rerank duration',
            ['model_name'],
            registry=self.registry
        )

    def record_embedding(self, model_name: str, count: int, duration: float) -> None:
        """Record an embedding batch; ``duration`` is in seconds."""
        self.embedding_requests.labels(model_name=model_name).inc(count)
        self.embedding_duration.labels(model_name=model_name).observe(duration)

    def record_vector_store_operation(self, operation: str, column: str = "all") -> None:
        """Record a vector store operation."""
        self.vector_store_operations.labels(operation=operation, column=column).inc()

    def record_search(self, query_type: str, duration: float) -> None:
        """Record search metrics."""
        self.search_requests.labels(query_type=query_type).inc()
        self.search_duration.labels(query_type=query_type).observe(duration)

    def record_rerank(self, model_name: str, duration: float) -> None:
        """Record rerank metrics."""
        self.rerank_requests.labels(model_name=model_name).inc()
        self.rerank_duration.labels(model_name=model_name).observe(duration)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str = "hybrid-search") -> MetricsCollector:
    """Get or create the process‑wide metrics collector.

    Returns a singleton to avoid registering duplicate metrics.
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector
