"""Shared fixtures: small stand-ins for the models and the asyncpg pool."""

import re
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import numpy as np
import pytest

from hybridsearch.common.metrics import MetricsCollector
from hybridsearch.embedding.bge_m3 import BGEM3Embedder
from hybridsearch.rerank.cross_encoder import CrossEncoderReranker
from hybridsearch.vector_store.memory import InMemoryHybridStore

DENSE_DIM = 8
SPARSE_DIM = 1000
STOPWORDS = {"what", "is", "of", "the", "a", "an"}


def tokenize(text: str) -> List[str]:
    """Lower-cased word pieces, splitting letters from digits ("BM25" -> "bm", "25")."""
    return re.findall(r"[a-z]+|\d+", text.lower())


class FakeM3Model:
    """Mimics ``BGEM3FlagModel.encode`` output with deterministic vectors."""

    def __init__(self, dense_dim: int = DENSE_DIM):
        self.dense_dim = dense_dim
        self.vocab: Dict[str, int] = {}
        self.calls: List[List[str]] = []

    def token_id(self, token: str) -> int:
        # New tokens get descending ids so raw outputs are never pre-sorted
        if token not in self.vocab:
            self.vocab[token] = SPARSE_DIM - 1 - len(self.vocab)
        return self.vocab[token]

    def _weights(self, text: str) -> Dict[str, float]:
        weights: Dict[str, float] = {}
        for token in tokenize(text):
            weight = 0.05 if token in STOPWORDS else 0.3
            key = str(self.token_id(token))
            weights[key] = max(weights.get(key, 0.0), weight)
        return weights

    def _dense(self, text: str) -> np.ndarray:
        vector = np.zeros(self.dense_dim, dtype=np.float32)
        for token in tokenize(text):
            vector[self.token_id(token) % self.dense_dim] += 1.0
        norm = np.linalg.norm(vector)
        return vector / norm if norm else vector

    def encode(self, texts, batch_size=12, max_length=8192, return_dense=True,
               return_sparse=True, return_colbert_vecs=False):
        self.calls.append(list(texts))
        return {
            "dense_vecs": np.stack([self._dense(t) for t in texts]),
            "lexical_weights": [self._weights(t) for t in texts],
            "colbert_vecs": None,
        }


class FakeCrossEncoder:
    """Scores pairs by the number of shared tokens."""

    def __init__(self):
        self.calls: List[List[Any]] = []

    def predict(self, pairs, batch_size=16, show_progress_bar=False):
        self.calls.append(list(pairs))
        scores = []
        for query, text in pairs:
            shared = set(tokenize(query)) & set(tokenize(text))
            scores.append(float(len(shared)))
        return np.asarray(scores, dtype=np.float32)


class FakeConnection:
    """Records statements; ``fetch`` and ``fetchrow`` return queued rows."""

    def __init__(self, pool: "FakePool"):
        self.pool = pool

    async def execute(self, query: str, *args: Any) -> str:
        self.pool.statements.append((query, args))
        if self.pool.error:
            raise self.pool.error
        return "OK"

    async def fetch(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        self.pool.statements.append((query, args))
        if self.pool.error:
            raise self.pool.error
        return self.pool.rows

    async def fetchrow(self, query: str, *args: Any) -> Optional[Dict[str, Any]]:
        self.pool.statements.append((query, args))
        if self.pool.error:
            raise self.pool.error
        return self.pool.row

    async def executemany(self, query: str, args: List[Any]) -> None:
        self.pool.statements.append((query, args))
        if self.pool.error:
            raise self.pool.error

    @asynccontextmanager
    async def transaction(self):
        yield self


class FakePool:
    def __init__(self):
        self.statements: List[Any] = []
        self.rows: List[Dict[str, Any]] = []
        self.row: Optional[Dict[str, Any]] = {"id": 1, "count": 0}
        self.error: Optional[Exception] = None
        self.closed = False

    @asynccontextmanager
    async def acquire(self):
        yield FakeConnection(self)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def metrics():
    return MetricsCollector("test-service")


@pytest.fixture
def fake_model():
    return FakeM3Model()


@pytest.fixture
def embedder(fake_model, metrics):
    return BGEM3Embedder(
        dense_dimension=DENSE_DIM,
        sparse_dimension=SPARSE_DIM,
        batch_size=2,
        model=fake_model,
        metrics=metrics,
    )


@pytest.fixture
def fake_cross_encoder():
    return FakeCrossEncoder()


@pytest.fixture
def reranker(fake_cross_encoder, metrics):
    return CrossEncoderReranker(model=fake_cross_encoder, metrics=metrics)


@pytest.fixture
def memory_store(metrics):
    return InMemoryHybridStore(DENSE_DIM, SPARSE_DIM, metrics=metrics)


@pytest.fixture
def fake_pool():
    return FakePool()
