"""Hybrid query engine and result fusion."""

from .engine import CandidatePool, HybridQueryEngine, union_texts
from .fusion import ReciprocalRankFusion

__all__ = [
    "CandidatePool",
    "HybridQueryEngine",
    "ReciprocalRankFusion",
    "union_texts",
]
