"""pgvecto.rs implementation of the hybrid vector store.

pgvecto.rs (the ``vectors`` extension) provides ``vector`` and ``svector``
column types and HNSW indexes configured through a TOML option block:

    CREATE INDEX ... USING vectors (sparse svector_dot_ops)
    WITH (options = $$
    [indexing.hnsw]
    m = 16
    ef_construction = 100
    $$)

Sparse values are inserted with ``to_svector(dim, indices, values)``; dense
values and query vectors travel as text literals cast on the server, so no
custom asyncpg codec is needed. ``<->`` is squared Euclidean distance and
``<#>`` is negative dot product.
"""

from typing import Any, List, Tuple

import numpy as np

from ..embedding.sparse import SparseVector
from .base import DistanceMetric, IndexOptions, VectorColumn
from .postgres import PostgresHybridStore

OPERATOR_CLASSES = {
    (VectorColumn.DENSE, DistanceMetric.L2): "vector_l2_ops",
    (VectorColumn.DENSE, DistanceMetric.DOT): "vector_dot_ops",
    (VectorColumn.SPARSE, DistanceMetric.L2): "svector_l2_ops",
    (VectorColumn.SPARSE, DistanceMetric.DOT): "svector_dot_ops",
}


def dense_literal(vector: np.ndarray) -> str:
    """Render a dense vector as ``[x1,x2,...]``."""
    return "[" + ",".join(repr(float(v)) for v in vector.tolist()) + "]"


def hnsw_options_block(options: IndexOptions) -> str:
    """Render the TOML block selecting the HNSW algorithm."""
    return (
        "[indexing.hnsw]\n"
        f"m = {options.m}\n"
        f"ef_construction = {options.ef_construction}\n"
    )


class PgVectorsStore(PostgresHybridStore):
    """Hybrid store on PostgreSQL with the pgvecto.rs extension."""

    extension = "vectors"
    dense_type = "vector"
    sparse_type = "svector"

    def _index_sql(
        self,
        column: VectorColumn,
        metric: DistanceMetric,
        options: IndexOptions,
    ) -> str:
        ops = OPERATOR_CLASSES[(column, metric)]
        return (
            f"CREATE INDEX IF NOT EXISTS {self.index_name(column, metric)} "
            f"ON {self.table} USING vectors ({column.value} {ops}) "
            f"WITH (options = $${hnsw_options_block(options)}$$)"
        )

    def _dense_param(self, vector: np.ndarray) -> Tuple[str, Any]:
        return "{}::text::vector", dense_literal(vector)

    def _sparse_insert_params(self, vector: SparseVector, first: int) -> Tuple[str, List[Any]]:
        sql = f"to_svector(${first}, ${first + 1}::int[], ${first + 2}::real[])"
        return sql, [vector.dimension, list(vector.indices), list(vector.values)]

    def _sparse_query_param(self, vector: SparseVector) -> Tuple[str, Any]:
        return "{}::text::svector", vector.to_literal()


def create_pgvectors_store(dsn: str, **kwargs: Any) -> PgVectorsStore:
    """Create a pgvecto.rs store instance."""
    return PgVectorsStore(dsn, **kwargs)
