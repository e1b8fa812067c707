"""In-memory hybrid vector store.

Keeps documents in process and answers queries with an exact scan using the
same distance definitions as the database extensions (squared L2 and
negative dot product). ``create_index`` only records the requested metric;
there is no approximate structure. Useful for tests and small offline
corpora where running PostgreSQL is not worth it.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import structlog

from ..common.metrics import MetricsCollector, get_metrics_collector
from ..embedding.sparse import SparseVector
from .base import (
    DistanceMetric,
    DocumentRecord,
    HybridVectorStore,
    IndexOptions,
    QueryVector,
    SearchHit,
    VectorColumn,
)

logger = structlog.get_logger("vector_store.memory")


def squared_l2(a: np.ndarray, b: np.ndarray) -> float:
    diff = a.astype(np.float64) - b.astype(np.float64)
    return float(np.dot(diff, diff))


def sparse_squared_l2(a: SparseVector, b: SparseVector) -> float:
    return sum(v * v for v in a.values) + sum(v * v for v in b.values) - 2.0 * a.dot(b)


class InMemoryHybridStore(HybridVectorStore):
    """Exact-scan store holding records in insertion order."""

    def __init__(
        self,
        dense_dimension: int = 1024,
        sparse_dimension: int = 250002,
        metrics: Optional[MetricsCollector] = None,
    ):
        super().__init__(dense_dimension, sparse_dimension)
        self._records: List[DocumentRecord] = []
        self._next_id = 1
        self.indexes: Dict[VectorColumn, DistanceMetric] = {}
        self.metrics = metrics or get_metrics_collector()

    async def create_schema(self) -> None:
        return None

    def _append(self, record: DocumentRecord) -> int:
        record.id = self._next_id
        self._next_id += 1
        self._records.append(record)
        return record.id

    async def insert(self, record: DocumentRecord) -> int:
        record_id = self._append(self._check_record(record))
        self.metrics.record_vector_store_operation("insert")
        return record_id

    async def insert_many(self, records: Sequence[DocumentRecord]) -> int:
        # Validate everything first so a bad record leaves the store untouched
        checked = [self._check_record(record) for record in records]
        for record in checked:
            self._append(record)
        if checked:
            self.metrics.record_vector_store_operation("insert_many")
        return len(checked)

    async def create_index(
        self,
        column: VectorColumn,
        metric: Optional[DistanceMetric] = None,
        options: Optional[IndexOptions] = None,
    ) -> None:
        metric = self.resolve_metric(column, metric)
        self.indexes[column] = metric
        self.metrics.record_vector_store_operation("create_index", column.value)
        logger.info("Registered index", column=column.value, metric=metric.value)

    async def query(
        self,
        column: VectorColumn,
        vector: QueryVector,
        k: int = 10,
        metric: Optional[DistanceMetric] = None,
    ) -> List[SearchHit]:
        self._check_k(k)
        metric = self.resolve_metric(column, metric)

        if column is VectorColumn.DENSE:
            query = self._check_dense(vector)
            if metric is DistanceMetric.L2:
                distances = [squared_l2(r.dense, query) for r in self._records]
            else:
                distances = [-float(np.dot(r.dense.astype(np.float64), query)) for r in self._records]
        else:
            query = self._check_sparse(vector)
            if metric is DistanceMetric.L2:
                distances = [sparse_squared_l2(r.sparse, query) for r in self._records]
            else:
                distances = [-r.sparse.dot(query) for r in self._records]

        # sorted() is stable, so equal distances keep insertion order
        order = sorted(range(len(distances)), key=lambda i: distances[i])[:k]
        self.metrics.record_vector_store_operation("query", column.value)
        return [
            SearchHit(
                text=self._records[i].text,
                distance=distances[i],
                rank=rank,
                id=self._records[i].id,
            )
            for rank, i in enumerate(order, start=1)
        ]

    async def count(self) -> int:
        return len(self._records)

    async def health_check(self) -> bool:
        return True
