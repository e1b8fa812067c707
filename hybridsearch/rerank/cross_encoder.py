"""Cross-encoder reranker.

Thin wrapper around ``sentence_transformers.CrossEncoder``. The default
checkpoint is ``BAAI/bge-reranker-v2-m3``, the reranker that pairs with
BGE-M3. Pairs are scored in batches; the model is loaded on first use.
"""

import math
import time
from typing import Any, List, Optional, Sequence

import structlog

from ..common.config import SearchConfig
from ..common.metrics import MetricsCollector, get_metrics_collector
from .base import Reranker, RerankError

logger = structlog.get_logger("rerank.cross_encoder")


class CrossEncoderReranker(Reranker):
    """Scores ``(query, text)`` pairs with a cross-encoder."""

    def __init__(
        self,
        model_name: str = "BAAI/bge-reranker-v2-m3",
        batch_size: int = 16,
        max_length: Optional[int] = 512,
        device: Optional[str] = None,
        model: Optional[Any] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        if not model_name or not model_name.strip():
            raise ValueError("model_name must be a non-empty string")
        if batch_size <= 0:
            raise ValueError("batch_size must be a positive integer")
        self.model_name = model_name
        self.batch_size = batch_size
        self.max_length = max_length
        self.device = device
        self._model = model
        self.metrics = metrics or get_metrics_collector()

    @property
    def model(self) -> Any:
        if self._model is None:
            from sentence_transformers import CrossEncoder

            kwargs = {}
            if self.max_length is not None:
                kwargs["max_length"] = self.max_length
            if self.device:
                kwargs["device"] = self.device
            try:
                self._model = CrossEncoder(self.model_name, **kwargs)
            except Exception as e:
                logger.error("Failed to load reranker", model_name=self.model_name, error=str(e))
                raise RerankError(f"Failed to load {self.model_name}: {e}") from e
            logger.info("Loaded reranker", model_name=self.model_name)
        return self._model

    def score(self, query: str, candidates: Sequence[str]) -> List[float]:
        if not query or not query.strip():
            raise ValueError("Query must not be empty")
        if not candidates:
            return []

        start_time = time.time()
        pairs = [(query, text) for text in candidates]
        raw = self.model.predict(pairs, batch_size=self.batch_size, show_progress_bar=False)
        scores = [float(s) for s in raw]
        if len(scores) != len(candidates):
            raise RerankError(f"Model returned {len(scores)} scores for {len(candidates)} pairs")
        if any(math.isnan(s) for s in scores):
            raise RerankError("Model returned NaN scores")

        duration = time.time() - start_time
        self.metrics.record_rerank(self.model_name, duration)
        logger.info(
            "Reranked candidates",
            model_name=self.model_name,
            candidates=len(candidates),
            duration_ms=duration * 1000,
        )
        return scores


def create_reranker(config: Optional[SearchConfig] = None, **kwargs: Any) -> CrossEncoderReranker:
    """Create a reranker from configuration."""
    config = config or SearchConfig()
    params = {
        "model_name": config.hs_reranker_model,
        "batch_size": config.hs_reranker_batch_size,
        "max_length": config.hs_reranker_max_length,
        "device": config.hs_embedding_device,
    }
    params.update(kwargs)
    return CrossEncoderReranker(**params)
