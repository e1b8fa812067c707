"""Candidate reranking.

- ``base``: ``Reranker`` interface and stable ``sort_by_score``.
- ``cross_encoder``: sentence-transformers cross-encoder implementation.
"""

from .base import RerankedCandidate, Reranker, RerankError, sort_by_score
from .cross_encoder import CrossEncoderReranker, create_reranker

__all__ = [
    "CrossEncoderReranker",
    "RerankError",
    "RerankedCandidate",
    "Reranker",
    "create_reranker",
    "sort_by_score",
]
