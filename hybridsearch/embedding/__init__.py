"""Text embedding for hybrid search.

Primary components:
- ``sparse``: ``SparseVector`` with the ascending-index invariant.
- ``base``: abstract ``Embedder`` interface and ``Embedding`` result.
- ``bge_m3``: BGE-M3 implementation producing dense + sparse vectors.
"""

from .base import Embedder, Embedding, EmbeddingError
from .bge_m3 import BGEM3Embedder, create_embedder
from .sparse import SparseVector

__all__ = [
    "BGEM3Embedder",
    "Embedder",
    "Embedding",
    "EmbeddingError",
    "SparseVector",
    "create_embedder",
]
