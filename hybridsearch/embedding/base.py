"""Base embedder interface.

Defines the contract the rest of the pipeline depends on: a text goes in, a
dense vector and a sparse token-weight vector come out.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .sparse import SparseVector


@dataclass(frozen=True)
class Embedding:
    """Dense and sparse representations of a single text."""

    text: str
    dense: np.ndarray
    sparse: SparseVector


class Embedder(ABC):
    """Abstract base class for hybrid (dense + sparse) embedders."""

    @property
    @abstractmethod
    def dense_dimension(self) -> int:
        """Length of every dense vector produced."""

    @property
    @abstractmethod
    def sparse_dimension(self) -> int:
        """Vocabulary size bounding sparse indices."""

    @abstractmethod
    def embed_batch(self, texts: Sequence[str]) -> List[Embedding]:
        """Embed several texts, preserving input order."""

    def embed(self, text: str) -> Embedding:
        """Embed a single text."""
        return self.embed_batch([text])[0]


class EmbeddingError(Exception):
    """Raised when the model output violates the embedder contract."""
    pass
