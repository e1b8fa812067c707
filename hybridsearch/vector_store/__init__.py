"""Vector store adapters for dense + sparse document tables.

Primary components:
- ``base``: abstract ``HybridVectorStore`` interface, record types and exceptions.
- ``pgvecto_rs``: PostgreSQL/pgvecto.rs implementation (``vector`` + ``svector``).
- ``pgvector``: PostgreSQL/pgvector implementation (``vector`` + ``sparsevec``).
- ``memory``: exact-scan in-process implementation.
- ``factory``: helpers to construct a store from typed config or env.

Guidance:
- Prefer constructing via ``factory.create_vector_store`` so callers remain
  decoupled from specific backends.
"""

from .base import (
    DistanceMetric,
    DocumentRecord,
    HybridVectorStore,
    IndexOptions,
    SearchHit,
    VectorColumn,
    VectorStoreConnectionError,
    VectorStoreError,
    VectorStoreNotFoundError,
    VectorStoreQueryError,
)
from .factory import create_vector_store, create_vector_store_from_env
from .memory import InMemoryHybridStore

__all__ = [
    "DistanceMetric",
    "DocumentRecord",
    "HybridVectorStore",
    "InMemoryHybridStore",
    "IndexOptions",
    "SearchHit",
    "VectorColumn",
    "VectorStoreConnectionError",
    "VectorStoreError",
    "VectorStoreNotFoundError",
    "VectorStoreQueryError",
    "create_vector_store",
    "create_vector_store_from_env",
]
