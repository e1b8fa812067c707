"""Sparse vector type used by the embedder and the vector stores.

A sparse vector is a mapping from token id (bounded by the vocabulary size)
to a non-negative weight. Only a handful of entries are populated per text,
so it is stored as two parallel tuples with the indices strictly ascending.
Both database extensions reject unsorted or duplicated indices, so ordering
is enforced at construction time.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Tuple, Union

import numpy as np

TokenId = Union[int, str]


@dataclass(frozen=True)
class SparseVector:
    """Immutable sparse vector with strictly ascending indices.

    Parameters
    - dimension: Vocabulary size; every index must be in ``[0, dimension)``
    - indices: Token ids, strictly ascending
    - values: Finite, non-negative weights aligned with ``indices``
    """

    dimension: int
    indices: Tuple[int, ...]
    values: Tuple[float, ...]

    def __post_init__(self) -> None:
        if self.dimension <= 0:
            raise ValueError("Sparse dimension must be positive")
        if len(self.indices) != len(self.values):
            raise ValueError(
                f"Got {len(self.indices)} indices but {len(self.values)} values"
            )
        previous = -1
        for index in self.indices:
            if index <= previous:
                raise ValueError("Sparse indices must be strictly ascending and unique")
            previous = index
        if self.indices and (self.indices[0] < 0 or self.indices[-1] >= self.dimension):
            raise ValueError(
                f"Sparse indices must lie in [0, {self.dimension})"
            )
        if any(not math.isfinite(value) or value < 0 for value in self.values):
            raise ValueError("Sparse weights must be finite and non-negative")

    @classmethod
    def from_weights(
        cls,
        weights: Mapping[TokenId, float],
        dimension: int,
        drop_zeros: bool = True,
    ) -> "SparseVector":
        """Build a vector from an unordered ``{token_id: weight}`` mapping.

        Token ids may be strings, which is how FlagEmbedding returns its
        lexical weights. Keys that collide after conversion to ``int`` are
        rejected instead of silently merged.
        """
        entries: Dict[int, float] = {}
        for token, weight in weights.items():
            index = int(token)
            if index in entries:
                raise ValueError(f"Duplicate token id {index}")
            weight = float(weight)
            if drop_zeros and weight == 0.0:
                continue
            entries[index] = weight

        ordered = sorted(entries.items())
        return cls(
            dimension=dimension,
            indices=tuple(index for index, _ in ordered),
            values=tuple(value for _, value in ordered),
        )

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[int, float]], dimension: int) -> "SparseVector":
        """Build a vector from ``(index, weight)`` pairs in any order."""
        return cls.from_weights(dict(pairs), dimension, drop_zeros=False)

    @property
    def nnz(self) -> int:
        """Number of populated entries."""
        return len(self.indices)

    def to_dict(self) -> Dict[int, float]:
        return dict(zip(self.indices, self.values))

    def dot(self, other: "SparseVector") -> float:
        """Inner product with another sparse vector of the same dimension."""
        if other.dimension != self.dimension:
            raise ValueError(
                f"Dimension mismatch: {self.dimension} != {other.dimension}"
            )
        if not self.indices or not other.indices:
            return 0.0
        _, left, right = np.intersect1d(
            np.asarray(self.indices, dtype=np.int64),
            np.asarray(other.indices, dtype=np.int64),
            assume_unique=True,
            return_indices=True,
        )
        a = np.asarray(self.values, dtype=np.float64)[left]
        b = np.asarray(other.values, dtype=np.float64)[right]
        return float(np.dot(a, b))

    def to_dense(self) -> np.ndarray:
        array = np.zeros(self.dimension, dtype=np.float32)
        array[list(self.indices)] = self.values
        return array

    def to_literal(self, one_based: bool = False) -> str:
        """Render the ``{index:value,...}/dim`` text form.

        pgvecto.rs ``svector`` is zero-based; pgvector ``sparsevec`` counts
        from one.
        """
        offset = 1 if one_based else 0
        body = ",".join(
            f"{index + offset}:{float(value)!r}" for index, value in zip(self.indices, self.values)
        )
        return f"{{{body}}}/{self.dimension}"
