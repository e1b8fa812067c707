"""Query engine for hybrid dense + sparse search.

Embeds the query once, runs independent top-K queries against the dense and
sparse indexes, unions the result texts into a candidate pool, then orders
the pool either with a reranker or with Reciprocal Rank Fusion.
"""

import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import structlog

from ..common.metrics import MetricsCollector, get_metrics_collector
from ..embedding.base import Embedder, Embedding
from ..rerank.base import RerankedCandidate, Reranker
from ..vector_store.base import HybridVectorStore, SearchHit, VectorColumn
from .fusion import ReciprocalRankFusion

logger = structlog.get_logger("search.engine")


def union_texts(*result_sets: Iterable[SearchHit]) -> List[str]:
    """Deduplicated union of result texts in first-seen order."""
    seen = set()
    texts = []
    for results in result_sets:
        for hit in results:
            if hit.text not in seen:
                seen.add(hit.text)
                texts.append(hit.text)
    return texts


@dataclass
class CandidatePool:
    """Dense hits, sparse hits and the union of their texts for one query."""

    query: str
    dense_hits: List[SearchHit] = field(default_factory=list)
    sparse_hits: List[SearchHit] = field(default_factory=list)

    @property
    def texts(self) -> List[str]:
        return union_texts(self.dense_hits, self.sparse_hits)


class HybridQueryEngine:
    """Runs dense and sparse retrieval and orders the merged candidates.

    Parameters
    - embedder: Produces the query's dense and sparse vectors
    - store: Holds the indexed documents
    - reranker: Optional cross-encoder; when absent, RRF orders the pool
    - fusion: RRF instance used when reranking is off or unavailable
    """

    def __init__(
        self,
        embedder: Embedder,
        store: HybridVectorStore,
        reranker: Optional[Reranker] = None,
        fusion: Optional[ReciprocalRankFusion] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.embedder = embedder
        self.store = store
        self.reranker = reranker
        self.fusion = fusion or ReciprocalRankFusion()
        self.metrics = metrics or get_metrics_collector()

    def _embed_query(self, query: str) -> Embedding:
        if not query or not query.strip():
            raise ValueError("Query must not be empty")
        return self.embedder.embed(query)

    async def dense_search(
        self,
        query: str,
        k: int = 10,
        embedding: Optional[Embedding] = None,
    ) -> List[SearchHit]:
        """Top-``k`` documents by squared L2 distance of dense vectors."""
        start_time = time.time()
        embedding = embedding or self._embed_query(query)
        hits = await self.store.query(VectorColumn.DENSE, embedding.dense, k)
        self.metrics.record_search("dense", time.time() - start_time)
        return hits

    async def sparse_search(
        self,
        query: str,
        k: int = 10,
        embedding: Optional[Embedding] = None,
    ) -> List[SearchHit]:
        """Top-``k`` documents by negative dot product of sparse vectors."""
        start_time = time.time()
        embedding = embedding or self._embed_query(query)
        hits = await self.store.query(VectorColumn.SPARSE, embedding.sparse, k)
        self.metrics.record_search("sparse", time.time() - start_time)
        return hits

    async def candidates(self, query: str, k: int = 10) -> CandidatePool:
        """Run both searches and collect the candidate pool."""
        embedding = self._embed_query(query)
        dense_hits = await self.dense_search(query, k, embedding=embedding)
        sparse_hits = await self.sparse_search(query, k, embedding=embedding)
        pool = CandidatePool(query=query, dense_hits=dense_hits, sparse_hits=sparse_hits)

        logger.info(
            "Collected candidates",
            k=k,
            dense_count=len(dense_hits),
            sparse_count=len(sparse_hits),
            candidate_count=len(pool.texts),
        )
        return pool

    async def search(
        self,
        query: str,
        k: int = 10,
        rerank: bool = True,
        limit: Optional[int] = None,
    ) -> List[RerankedCandidate]:
        """Hybrid search returning candidates, most relevant first.

        ``limit`` truncates the final ordering; by default the whole pool
        (up to ``2 * k`` texts) is returned.
        """
        if limit is not None and limit <= 0:
            raise ValueError("limit must be a positive integer")

        start_time = time.time()
        pool = await self.candidates(query, k)

        if rerank and self.reranker is not None:
            ranked = self.reranker.rerank(query, pool.texts)
            query_type = "hybrid_rerank"
        else:
            ranked = self.fusion.fuse(pool.dense_hits, pool.sparse_hits)
            query_type = "hybrid_rrf"

        if limit is not None:
            ranked = ranked[:limit]

        self.metrics.record_search(query_type, time.time() - start_time)
        return ranked

