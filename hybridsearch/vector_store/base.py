"""Base hybrid vector store interface.

Defines the abstract contract the query engine depends on, independent of
the backing implementation (pgvecto.rs, pgvector, in-memory).

Every document row holds one dense vector and one sparse vector, each in
its own column with its own index and distance metric. Distances follow the
extensions' convention: lower is closer.

All methods are asynchronous so the PostgreSQL backends can use asyncpg.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union

import numpy as np

from ..embedding.sparse import SparseVector

QueryVector = Union[np.ndarray, Sequence[float], SparseVector]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class VectorColumn(Enum):
    """Vector columns of the document table."""
    DENSE = "dense"
    SPARSE = "sparse"


class DistanceMetric(Enum):
    """Distance metrics supported by the stores.

    - ``L2``: squared Euclidean distance ``sum((x_i - y_i)^2)``
    - ``DOT``: negative dot product ``-sum(x_i * y_i)``
    """
    L2 = "l2"
    DOT = "dot"


DEFAULT_METRICS = {
    VectorColumn.DENSE: DistanceMetric.L2,
    VectorColumn.SPARSE: DistanceMetric.DOT,
}


@dataclass(frozen=True)
class IndexOptions:
    """HNSW build parameters."""

    m: int = 16
    ef_construction: int = 100

    def __post_init__(self) -> None:
        if self.m < 2:
            raise ValueError("HNSW m must be at least 2")
        if self.ef_construction < 1:
            raise ValueError("HNSW ef_construction must be positive")


@dataclass
class DocumentRecord:
    """A document row: source text plus both vector representations."""

    text: str
    dense: np.ndarray
    sparse: SparseVector
    id: Optional[int] = None


@dataclass(frozen=True)
class SearchHit:
    """One row of a nearest-neighbour result set."""

    text: str
    distance: float
    rank: int
    id: Optional[int] = None


class HybridVectorStore(ABC):
    """Abstract base class for stores holding dense and sparse columns.

    Implementations check dense length and sparse dimension on every write
    and query, and return result sets sorted by ascending distance.
    """

    def __init__(self, dense_dimension: int = 1024, sparse_dimension: int = 250002):
        if dense_dimension <= 0 or sparse_dimension <= 0:
            raise ValueError("Vector dimensions must be positive")
        self.dense_dimension = dense_dimension
        self.sparse_dimension = sparse_dimension

    @abstractmethod
    async def create_schema(self) -> None:
        """Create the document table (and extension) if missing."""
        pass

    @abstractmethod
    async def insert(self, record: DocumentRecord) -> int:
        """Insert a document and return its assigned id."""
        pass

    @abstractmethod
    async def insert_many(self, records: Sequence[DocumentRecord]) -> int:
        """Insert several documents; returns the number inserted."""
        pass

    @abstractmethod
    async def create_index(
        self,
        column: VectorColumn,
        metric: Optional[DistanceMetric] = None,
        options: Optional[IndexOptions] = None,
    ) -> None:
        """Build an ANN index over one vector column.

        ``metric`` defaults to L2 for the dense column and negative dot
        product for the sparse column.
        """
        pass

    @abstractmethod
    async def query(
        self,
        column: VectorColumn,
        vector: QueryVector,
        k: int = 10,
        metric: Optional[DistanceMetric] = None,
    ) -> List[SearchHit]:
        """Return up to ``k`` nearest documents by ascending distance."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Get the number of stored documents."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None

    def _check_dense(self, vector: QueryVector) -> np.ndarray:
        """Ensure a dense vector matches the expected dimensionality."""
        if isinstance(vector, SparseVector):
            raise ValueError("Dense column requires a dense vector")
        array = np.asarray(vector, dtype=np.float32)
        if array.ndim != 1:
            raise ValueError("Vector must be one-dimensional")
        if array.shape[0] != self.dense_dimension:
            raise ValueError(
                f"Expected vector dimension {self.dense_dimension}, "
                f"got {array.shape[0]}"
            )
        return array

    def _check_sparse(self, vector: QueryVector) -> SparseVector:
        if not isinstance(vector, SparseVector):
            raise ValueError("Sparse column requires a SparseVector")
        if vector.dimension != self.sparse_dimension:
            raise ValueError(
                f"Expected sparse dimension {self.sparse_dimension}, "
                f"got {vector.dimension}"
            )
        return vector

    def _check_record(self, record: DocumentRecord) -> DocumentRecord:
        if not record.text:
            raise ValueError("Document text must not be empty")
        return DocumentRecord(
            text=record.text,
            dense=self._check_dense(record.dense),
            sparse=self._check_sparse(record.sparse),
            id=record.id,
        )

    @staticmethod
    def _check_k(k: int) -> None:
        if k <= 0:
            raise ValueError("k must be a positive integer")

    @staticmethod
    def resolve_metric(column: VectorColumn, metric: Optional[DistanceMetric]) -> DistanceMetric:
        return metric or DEFAULT_METRICS[column]


def validate_identifier(name: str) -> str:
    """Validate a table name before it is interpolated into SQL."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


class VectorStoreError(Exception):
    """Base exception for vector store operations."""
    pass


class VectorStoreConnectionError(VectorStoreError):
    """Connection error to vector store."""
    pass


class VectorStoreQueryError(VectorStoreError):
    """Query error in vector store."""
    pass


class VectorStoreNotFoundError(VectorStoreError):
    """Requested table or row does not exist."""
    pass
