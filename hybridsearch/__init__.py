"""Hybrid sparse/dense vector search.

Subpackages:
- ``hybridsearch.common``: configuration, logging and metrics.
- ``hybridsearch.embedding``: BGE-M3 dense + sparse embedder and ``SparseVector``.
- ``hybridsearch.vector_store``: PostgreSQL (pgvecto.rs / pgvector) and in-memory stores.
- ``hybridsearch.search``: query engine, candidate union and RRF.
- ``hybridsearch.rerank``: cross-encoder reranking.

``hybridsearch.pipeline.HybridSearchPipeline`` wires them together.
"""

__version__ = "0.1.0"
