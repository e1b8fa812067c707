"""pgvector implementation of the hybrid vector store.

Uses pgvector's ``vector`` and ``sparsevec`` types with HNSW indexes. The
asyncpg codecs from ``pgvector.asyncpg`` are registered on every pooled
connection so numpy arrays and ``pgvector.SparseVector`` values are sent
in binary form.

pgvector's ``<->`` returns the Euclidean distance, so the reported distance
is squared to keep the same scale as the other backends; ordering still
uses the bare operator so the index applies.
"""

from typing import Any, List, Tuple

import numpy as np
from asyncpg import Connection
from pgvector import SparseVector as PgSparseVector
from pgvector.asyncpg import register_vector

from ..embedding.sparse import SparseVector
from .base import DistanceMetric, IndexOptions, VectorColumn
from .postgres import PostgresHybridStore

OPERATOR_CLASSES = {
    (VectorColumn.DENSE, DistanceMetric.L2): "vector_l2_ops",
    (VectorColumn.DENSE, DistanceMetric.DOT): "vector_ip_ops",
    (VectorColumn.SPARSE, DistanceMetric.L2): "sparsevec_l2_ops",
    (VectorColumn.SPARSE, DistanceMetric.DOT): "sparsevec_ip_ops",
}


class PgVectorStore(PostgresHybridStore):
    """Hybrid store on PostgreSQL with the pgvector extension."""

    extension = "vector"
    dense_type = "vector"
    sparse_type = "sparsevec"

    def __init__(self, dsn: str, create_extension: bool = True, **kwargs: Any):
        """See ``PostgresHybridStore``; ``create_extension`` installs pgvector on connect.

        The codecs can only be registered once the extension exists, so the
        extension is created in the connection hook rather than in
        ``create_schema``.
        """
        super().__init__(dsn, **kwargs)
        self.create_extension = create_extension

    async def _init_connection(self, conn: Connection) -> None:
        """Register pgvector codecs for asyncpg connections."""
        if self.create_extension:
            await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
        await register_vector(conn)

    def _index_sql(
        self,
        column: VectorColumn,
        metric: DistanceMetric,
        options: IndexOptions,
    ) -> str:
        ops = OPERATOR_CLASSES[(column, metric)]
        return (
            f"CREATE INDEX IF NOT EXISTS {self.index_name(column, metric)} "
            f"ON {self.table} USING hnsw ({column.value} {ops}) "
            f"WITH (m = {options.m}, ef_construction = {options.ef_construction})"
        )

    def _dense_param(self, vector: np.ndarray) -> Tuple[str, Any]:
        return "{}", vector

    def _sparse_insert_params(self, vector: SparseVector, first: int) -> Tuple[str, List[Any]]:
        return f"${first}", [to_pgvector_sparse(vector)]

    def _sparse_query_param(self, vector: SparseVector) -> Tuple[str, Any]:
        return "{}", to_pgvector_sparse(vector)

    def _select_distance(self, distance_sql: str, metric: DistanceMetric) -> str:
        if metric is DistanceMetric.L2:
            return f"power({distance_sql}, 2)"
        return distance_sql


def to_pgvector_sparse(vector: SparseVector) -> PgSparseVector:
    """Convert to pgvector's client-side sparse type (zero-based dict form)."""
    return PgSparseVector(vector.to_dict(), vector.dimension)


def create_pgvector_store(dsn: str, **kwargs: Any) -> PgVectorStore:
    """Create a pgvector store instance."""
    return PgVectorStore(dsn, **kwargs)
