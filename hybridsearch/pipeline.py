"""End-to-end hybrid search pipeline.

Wires the embedder, vector store, reranker and query engine together from a
single ``SearchConfig`` so scripts only deal with three calls:

    pipeline = HybridSearchPipeline.from_config(SearchConfig())
    await pipeline.setup()
    await pipeline.ingest(["What is BM25?", "Definition of BM25"])
    results = await pipeline.search("What is BM25?")
"""

from typing import Iterable, List, Optional

import structlog

from .common.config import SearchConfig
from .embedding.base import Embedder
from .embedding.bge_m3 import create_embedder
from .rerank.base import RerankedCandidate, Reranker
from .rerank.cross_encoder import create_reranker
from .search.engine import HybridQueryEngine
from .search.fusion import ReciprocalRankFusion
from .vector_store.base import DocumentRecord, HybridVectorStore, IndexOptions, VectorColumn
from .vector_store.factory import create_vector_store

logger = structlog.get_logger("pipeline")


class HybridSearchPipeline:
    """Embed, store, index and search documents with dense + sparse vectors."""

    def __init__(
        self,
        embedder: Embedder,
        store: HybridVectorStore,
        reranker: Optional[Reranker] = None,
        index_options: Optional[IndexOptions] = None,
        top_k: int = 10,
        fusion_k: float = 60.0,
    ):
        if embedder.dense_dimension != store.dense_dimension:
            raise ValueError(
                f"Embedder produces {embedder.dense_dimension}-d dense vectors "
                f"but the store expects {store.dense_dimension}"
            )
        if embedder.sparse_dimension != store.sparse_dimension:
            raise ValueError(
                f"Embedder vocabulary {embedder.sparse_dimension} does not match "
                f"store sparse dimension {store.sparse_dimension}"
            )
        self.embedder = embedder
        self.store = store
        self.reranker = reranker
        self.index_options = index_options or IndexOptions()
        self.top_k = top_k
        self.engine = HybridQueryEngine(
            embedder,
            store,
            reranker=reranker,
            fusion=ReciprocalRankFusion(k=fusion_k),
        )

    @classmethod
    def from_config(cls, config: Optional[SearchConfig] = None) -> "HybridSearchPipeline":
        config = config or SearchConfig()
        reranker = create_reranker(config) if config.hs_reranker_enabled else None
        return cls(
            embedder=create_embedder(config),
            store=create_vector_store(config),
            reranker=reranker,
            index_options=IndexOptions(
                m=config.hs_hnsw_m,
                ef_construction=config.hs_hnsw_ef_construction,
            ),
            top_k=config.hs_top_k,
            fusion_k=config.hs_fusion_k,
        )

    async def setup(self) -> None:
        """Create the schema and both vector indexes."""
        await self.store.create_schema()
        await self.store.create_index(VectorColumn.DENSE, options=self.index_options)
        await self.store.create_index(VectorColumn.SPARSE, options=self.index_options)
        logger.info("Pipeline storage ready")

    async def ingest(self, texts: Iterable[str]) -> int:
        """Embed and store texts; returns the number of documents inserted."""
        texts = [text for text in texts if text and text.strip()]
        if not texts:
            return 0
        records = [
            DocumentRecord(text=e.text, dense=e.dense, sparse=e.sparse)
            for e in self.embedder.embed_batch(texts)
        ]
        inserted = await self.store.insert_many(records)
        logger.info("Ingested documents", count=inserted)
        return inserted

    async def search(
        self,
        query: str,
        k: Optional[int] = None,
        rerank: bool = True,
        limit: Optional[int] = None,
    ) -> List[RerankedCandidate]:
        k = self.top_k if k is None else k
        return await self.engine.search(query, k, rerank=rerank, limit=limit)

    async def close(self) -> None:
        await self.store.close()
