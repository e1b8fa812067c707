"""Base reranker interface.

A reranker scores ``(query, candidate)`` pairs directly; higher is more
relevant. The final ordering is a plain descending sort by score.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class RerankedCandidate:
    text: str
    score: float


class RerankError(Exception):
    """Raised when a reranker returns unusable scores."""
    pass


def sort_by_score(candidates: Sequence[str], scores: Sequence[float]) -> List[RerankedCandidate]:
    """Pair candidates with scores and sort by descending score.

    Ties keep their input order.
    """
    if len(candidates) != len(scores):
        raise RerankError(
            f"Got {len(scores)} scores for {len(candidates)} candidates"
        )
    paired = [RerankedCandidate(text=text, score=float(score)) for text, score in zip(candidates, scores)]
    return sorted(paired, key=lambda c: -c.score)


class Reranker(ABC):
    """Abstract base class for pairwise rerankers."""

    @abstractmethod
    def score(self, query: str, candidates: Sequence[str]) -> List[float]:
        """Score each candidate against ``query``, in input order."""
        pass

    def rerank(self, query: str, candidates: Sequence[str]) -> List[RerankedCandidate]:
        """Score and sort candidates, most relevant first."""
        if not candidates:
            return []
        return sort_by_score(candidates, self.score(query, candidates))
