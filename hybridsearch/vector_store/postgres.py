"""Shared PostgreSQL plumbing for the extension-backed stores.

Both pgvecto.rs and pgvector keep documents in a single table with a dense
and a sparse column; only the type names, index syntax and parameter
encoding differ. This module owns the asyncpg pool, error wrapping and the
SQL that is common to both, and subclasses fill in the dialect.

Connection management
- A shared asyncpg pool is created on demand and reused across calls
- Queries are funneled through ``_execute_query`` for uniform error handling
"""

import time
from abc import abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

import asyncpg
import numpy as np
import structlog
from asyncpg import Connection, Pool

from ..common.logging import log_performance
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
    VectorStoreConnectionError,
    VectorStoreError,
    VectorStoreNotFoundError,
    VectorStoreQueryError,
    validate_identifier,
)

logger = structlog.get_logger("vector_store.postgres")

OPERATORS: Dict[DistanceMetric, str] = {
    DistanceMetric.L2: "<->",
    DistanceMetric.DOT: "<#>",
}


class PostgresHybridStore(HybridVectorStore):
    """asyncpg-backed store; subclasses provide the extension dialect."""

    extension: str = ""
    dense_type: str = "vector"
    sparse_type: str = ""

    def __init__(
        self,
        dsn: str,
        table: str = "documents",
        dense_dimension: int = 1024,
        sparse_dimension: int = 250002,
        pool_size: int = 10,
        command_timeout: int = 60,
        pool: Optional[Pool] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Configure a PostgreSQL-backed store.

        Parameters
        - dsn: PostgreSQL DSN including database and credentials
        - table: Document table name (validated as an identifier)
        - dense_dimension: Dense column length
        - sparse_dimension: Sparse column vocabulary size
        - pool_size: Max size of asyncpg connection pool
        - command_timeout: Seconds to allow per DB command
        - pool: Existing pool to use instead of creating one
        - metrics: Collector to record operations on
        """
        super().__init__(dense_dimension, sparse_dimension)
        self.dsn = dsn
        self.table = validate_identifier(table)
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self._pool: Optional[Pool] = pool
        self.metrics = metrics or get_metrics_collector()

    # -- dialect hooks -----------------------------------------------------

    @abstractmethod
    def _index_sql(
        self,
        column: VectorColumn,
        metric: DistanceMetric,
        options: IndexOptions,
    ) -> str:
        """Full ``CREATE INDEX`` statement for one column."""

    @abstractmethod
    def _dense_param(self, vector: np.ndarray) -> Tuple[str, Any]:
        """Return ``(sql_placeholder_template, value)`` for a dense value."""

    @abstractmethod
    def _sparse_insert_params(self, vector: SparseVector, first: int) -> Tuple[str, List[Any]]:
        """Return the SQL expression and its arguments for inserting a sparse value."""

    @abstractmethod
    def _sparse_query_param(self, vector: SparseVector) -> Tuple[str, Any]:
        """Return ``(sql_placeholder_template, value)`` for a sparse query vector."""

    def _distance_sql(self, column: VectorColumn, metric: DistanceMetric, placeholder: str) -> str:
        return f"{column.value} {OPERATORS[metric]} {placeholder}"

    async def _init_connection(self, conn: Connection) -> None:
        """Per-connection setup hook for codecs."""
        return None

    # -- pool and execution ------------------------------------------------

    async def _get_pool(self) -> Pool:
        """Get or create connection pool.

        Lazily initializes an asyncpg pool so callers don't pay startup cost
        until they make a call that requires the database.
        """
        if self._pool is None:
            try:
                self._pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=1,
                    max_size=self.pool_size,
                    command_timeout=self.command_timeout,
                    init=self._init_connection,
                )
                logger.info(
                    "Created connection pool",
                    extension=self.extension,
                    pool_size=self.pool_size,
                )
            except Exception as e:
                logger.error("Failed to create connection pool", extension=self.extension, error=str(e))
                raise VectorStoreConnectionError(f"Failed to create connection pool: {e}") from e

        return self._pool

    async def _execute_query(
        self,
        query: str,
        *args: Any,
        fetch: bool = False,
        fetch_one: bool = False
    ) -> Any:
        """Execute a query with error handling.

        The ``fetch``/``fetch_one`` flags control how results are retrieved.
        A missing table maps to ``VectorStoreNotFoundError``; every other
        failure is wrapped in ``VectorStoreQueryError``.
        """
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                if fetch_one:
                    return await conn.fetchrow(query, *args)
                if fetch:
                    return await conn.fetch(query, *args)
                return await conn.execute(query, *args)
        except asyncpg.UndefinedTableError as e:
            logger.error("Table does not exist", table=self.table, error=str(e))
            raise VectorStoreNotFoundError(f"Table {self.table} does not exist") from e
        except Exception as e:
            logger.error("Query execution failed", query=query, error=str(e))
            raise VectorStoreQueryError(f"Query failed: {e}") from e

    # -- operations --------------------------------------------------------

    async def create_schema(self) -> None:
        """Create the extension and document table if missing."""
        await self._execute_query(f"CREATE EXTENSION IF NOT EXISTS {self.extension}")
        await self._execute_query(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id BIGSERIAL PRIMARY KEY,
                text TEXT NOT NULL,
                dense {self.dense_type}({self.dense_dimension}) NOT NULL,
                sparse {self.sparse_type}({self.sparse_dimension}) NOT NULL
            )
            """
        )
        self.metrics.record_vector_store_operation("create_schema")
        logger.info(
            "Created document schema",
            table=self.table,
            extension=self.extension,
            dense_dimension=self.dense_dimension,
            sparse_dimension=self.sparse_dimension,
        )

    def _insert_statement(self, record: DocumentRecord) -> Tuple[str, List[Any]]:
        dense_sql, dense_value = self._dense_param(record.dense)
        sparse_sql, sparse_args = self._sparse_insert_params(record.sparse, first=3)
        query = (
            f"INSERT INTO {self.table} (text, dense, sparse) "
            f"VALUES ($1, {dense_sql.format('$2')}, {sparse_sql}) RETURNING id"
        )
        return query, [record.text, dense_value, *sparse_args]

    async def insert(self, record: DocumentRecord) -> int:
        """Insert one document and return its id."""
        record = self._check_record(record)
        query, args = self._insert_statement(record)
        row = await self._execute_query(query, *args, fetch_one=True)
        self.metrics.record_vector_store_operation("insert")
        logger.debug("Inserted document", table=self.table, id=row["id"], nnz=record.sparse.nnz)
        return int(row["id"])

    async def insert_many(self, records: Sequence[DocumentRecord]) -> int:
        """Insert documents in a single transaction."""
        if not records:
            return 0

        checked = [self._check_record(record) for record in records]
        statements = [self._insert_statement(record) for record in checked]
        # Every statement shares the same shape; RETURNING is dropped for executemany
        query = statements[0][0].replace(" RETURNING id", "")

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await conn.executemany(query, [args for _, args in statements])
        except asyncpg.UndefinedTableError as e:
            logger.error("Table not found", table=self.table, error=str(e))
            raise VectorStoreNotFoundError(f"Table not found: {e}") from e
        except Exception as e:
            logger.error("Batch insert failed", table=self.table, count=len(records), error=str(e))
            raise VectorStoreQueryError(f"Batch insert failed: {e}") from e

        self.metrics.record_vector_store_operation("insert_many")
        logger.info("Batch inserted documents", table=self.table, count=len(checked))
        return len(checked)

    def index_name(self, column: VectorColumn, metric: DistanceMetric) -> str:
        return f"{self.table}_{column.value}_{metric.value}_idx"

    async def create_index(
        self,
        column: VectorColumn,
        metric: Optional[DistanceMetric] = None,
        options: Optional[IndexOptions] = None,
    ) -> None:
        """Build an HNSW index over ``column``."""
        metric = self.resolve_metric(column, metric)
        options = options or IndexOptions()
        start_time = time.time()
        await self._execute_query(self._index_sql(column, metric, options))
        duration = time.time() - start_time

        self.metrics.record_vector_store_operation("create_index", column.value)
        log_performance(
            "create_index",
            duration * 1000,
            table=self.table,
            column=column.value,
            metric=metric.value,
            m=options.m,
            ef_construction=options.ef_construction,
        )

    async def query(
        self,
        column: VectorColumn,
        vector: QueryVector,
        k: int = 10,
        metric: Optional[DistanceMetric] = None,
    ) -> List[SearchHit]:
        """Ordered nearest-neighbour query against one column."""
        self._check_k(k)
        metric = self.resolve_metric(column, metric)
        if column is VectorColumn.DENSE:
            placeholder, value = self._dense_param(self._check_dense(vector))
        else:
            placeholder, value = self._sparse_query_param(self._check_sparse(vector))

        order_by = self._distance_sql(column, metric, placeholder.format("$1"))
        query = f"""
            SELECT id, text, {self._select_distance(order_by, metric)} AS distance
            FROM {self.table}
            ORDER BY {order_by}
            LIMIT $2
        """
        rows = await self._execute_query(query, value, k, fetch=True)

        hits = [
            SearchHit(text=row["text"], distance=float(row["distance"]), rank=rank, id=row["id"])
            for rank, row in enumerate(rows, start=1)
        ]
        self.metrics.record_vector_store_operation("query", column.value)
        logger.info(
            "Vector query completed",
            table=self.table,
            column=column.value,
            metric=metric.value,
            k=k,
            results_count=len(hits),
        )
        return hits

    def _select_distance(self, distance_sql: str, metric: DistanceMetric) -> str:
        return distance_sql

    async def count(self) -> int:
        """Get count of stored documents."""
        row = await self._execute_query(f"SELECT COUNT(*) FROM {self.table}", fetch_one=True)
        return int(row["count"]) if row else 0

    async def health_check(self) -> bool:
        """Check if the database is reachable."""
        try:
            await self._execute_query("SELECT 1", fetch_one=True)
            return True
        except VectorStoreError as e:
            logger.error("Health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Closed connection pool", extension=self.extension)
