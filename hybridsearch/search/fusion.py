"""Result fusion for hybrid search.

Reciprocal Rank Fusion (RRF) is the reranker-free way to order the
candidate pool: each document scores ``sum(1 / (k + rank))`` over the
result lists it appears in, so agreement between dense and sparse
retrieval is rewarded without comparing their distances directly.
"""

from typing import Dict, List, Sequence

import structlog

from ..rerank.base import RerankedCandidate
from ..vector_store.base import SearchHit

logger = structlog.get_logger("search.fusion")


class ReciprocalRankFusion:
    """Reciprocal Rank Fusion (RRF) algorithm."""

    def __init__(self, k: float = 60.0):
        if k < 0:
            raise ValueError("RRF k must be non-negative")
        self.k = k

    def fuse(self, *result_sets: Sequence[SearchHit]) -> List[RerankedCandidate]:
        """Fuse ranked lists keyed by document text.

        Ranks are 1-based positions within each list. Equal scores keep
        first-seen order across the lists.
        """
        scores: Dict[str, float] = {}
        for results in result_sets:
            seen = set()
            for position, hit in enumerate(results, start=1):
                # Count each text once per list
                if hit.text in seen:
                    continue
                seen.add(hit.text)
                scores[hit.text] = scores.get(hit.text, 0.0) + 1.0 / (self.k + position)

        fused = [RerankedCandidate(text=text, score=score) for text, score in scores.items()]
        fused.sort(key=lambda c: -c.score)

        logger.info(
            "RRF fusion completed",
            list_sizes=[len(r) for r in result_sets],
            fused_count=len(fused),
            k_parameter=self.k,
        )
        return fused
