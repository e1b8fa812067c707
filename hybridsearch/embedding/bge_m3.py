"""BGE-M3 embedder.

Wraps ``FlagEmbedding.BGEM3FlagModel`` which returns, in one forward pass,
a normalized dense vector (``dense_vecs``) and per-token lexical weights
(``lexical_weights``, keyed by token id as a string). The lexical weights
become a ``SparseVector`` with indices sorted ascending.

The model is loaded lazily on first use so importing this module stays
cheap; tests inject a stand-in object exposing the same ``encode``
signature.
"""

import time
from typing import Any, List, Optional, Sequence

import numpy as np
import structlog

from ..common.config import EmbeddingConfig
from ..common.logging import log_performance
from ..common.metrics import MetricsCollector, get_metrics_collector
from .base import Embedder, Embedding, EmbeddingError
from .sparse import SparseVector

logger = structlog.get_logger("embedding.bge_m3")


class BGEM3Embedder(Embedder):
    """Dense + sparse embedder backed by BGE-M3."""

    def __init__(
        self,
        model_name: str = "BAAI/bge-m3",
        dense_dimension: int = 1024,
        sparse_dimension: int = 250002,
        batch_size: int = 12,
        max_length: int = 8192,
        use_fp16: bool = False,
        device: Optional[str] = None,
        model: Optional[Any] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Configure the embedder.

        Parameters
        - model_name: Hugging Face checkpoint to load
        - dense_dimension: Expected dense vector length
        - sparse_dimension: Tokenizer vocabulary size
        - batch_size: Texts per ``encode`` call
        - max_length: Token limit per text
        - use_fp16: Run the model in half precision
        - device: Torch device, ``None`` lets FlagEmbedding decide
        - model: Preloaded model object (skips loading)
        - metrics: Collector to record embedding metrics on
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be a positive integer")
        self.model_name = model_name
        self._dense_dimension = dense_dimension
        self._sparse_dimension = sparse_dimension
        self.batch_size = batch_size
        self.max_length = max_length
        self.use_fp16 = use_fp16
        self.device = device
        self._model = model
        self.metrics = metrics or get_metrics_collector()

    @property
    def dense_dimension(self) -> int:
        return self._dense_dimension

    @property
    def sparse_dimension(self) -> int:
        return self._sparse_dimension

    @property
    def model(self) -> Any:
        if self._model is None:
            self._model = self._load_model()
        return self._model

    def _load_model(self) -> Any:
        from FlagEmbedding import BGEM3FlagModel

        start_time = time.time()
        kwargs = {"use_fp16": self.use_fp16}
        if self.device:
            kwargs["devices"] = self.device
        try:
            model = BGEM3FlagModel(self.model_name, **kwargs)
        except Exception as e:
            logger.error("Failed to load embedding model", model_name=self.model_name, error=str(e))
            raise EmbeddingError(f"Failed to load {self.model_name}: {e}") from e

        logger.info(
            "Loaded embedding model",
            model_name=self.model_name,
            load_seconds=round(time.time() - start_time, 3),
        )
        return model

    def embed_batch(self, texts: Sequence[str]) -> List[Embedding]:
        """Embed texts in chunks of ``batch_size``."""
        texts = list(texts)
        for text in texts:
            if not isinstance(text, str) or not text.strip():
                raise ValueError("Cannot embed an empty text")
        if not texts:
            return []

        embeddings: List[Embedding] = []
        for offset in range(0, len(texts), self.batch_size):
            chunk = texts[offset:offset + self.batch_size]
            embeddings.extend(self._encode_chunk(chunk))
        return embeddings

    def _encode_chunk(self, texts: List[str]) -> List[Embedding]:
        start_time = time.time()
        output = self.model.encode(
            texts,
            batch_size=self.batch_size,
            max_length=self.max_length,
            return_dense=True,
            return_sparse=True,
            return_colbert_vecs=False,
        )

        dense_vecs = np.asarray(output["dense_vecs"], dtype=np.float32)
        if dense_vecs.ndim == 1:
            dense_vecs = dense_vecs.reshape(1, -1)
        lexical_weights = output["lexical_weights"]
        if isinstance(lexical_weights, dict):
            lexical_weights = [lexical_weights]

        if dense_vecs.shape[0] != len(texts) or len(lexical_weights) != len(texts):
            raise EmbeddingError(
                f"Model returned {dense_vecs.shape[0]} dense and {len(lexical_weights)} "
                f"sparse outputs for {len(texts)} texts"
            )
        if dense_vecs.shape[1] != self.dense_dimension:
            raise EmbeddingError(
                f"Expected dense dimension {self.dense_dimension}, got {dense_vecs.shape[1]}"
            )

        embeddings = []
        for text, dense, weights in zip(texts, dense_vecs, lexical_weights):
            try:
                sparse = SparseVector.from_weights(weights, self.sparse_dimension)
            except ValueError as e:
                raise EmbeddingError(f"Invalid lexical weights: {e}") from e
            embeddings.append(Embedding(text=text, dense=dense, sparse=sparse))

        duration = time.time() - start_time
        self.metrics.record_embedding(self.model_name, len(texts), duration)
        log_performance("embed_batch", duration * 1000, model_name=self.model_name, count=len(texts))
        return embeddings


def create_embedder(config: Optional[EmbeddingConfig] = None, **kwargs: Any) -> BGEM3Embedder:
    """Create an embedder from configuration.

    Keyword arguments override values taken from ``config``.
    """
    config = config or EmbeddingConfig()
    params = {
        "model_name": config.hs_embedding_model,
        "dense_dimension": config.hs_dense_dimension,
        "sparse_dimension": config.hs_sparse_dimension,
        "batch_size": config.hs_embedding_batch_size,
        "max_length": config.hs_embedding_max_length,
        "use_fp16": config.hs_embedding_use_fp16,
        "device": config.hs_embedding_device,
    }
    params.update(kwargs)
    return BGEM3Embedder(**params)
