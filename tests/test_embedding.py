"""Tests for the BGE-M3 embedder wrapper."""

import numpy as np
import pytest

from hybridsearch.common.config import EmbeddingConfig
from hybridsearch.embedding import BGEM3Embedder, EmbeddingError, create_embedder
from tests.conftest import DENSE_DIM, SPARSE_DIM, FakeM3Model


def test_embed_produces_dense_and_sorted_sparse(embedder):
    embedding = embedder.embed("What is BM25?")

    assert embedding.text == "What is BM25?"
    assert embedding.dense.dtype == np.float32
    assert embedding.dense.shape == (DENSE_DIM,)
    assert embedding.sparse.dimension == SPARSE_DIM
    assert list(embedding.sparse.indices) == sorted(set(embedding.sparse.indices))
    assert embedding.sparse.nnz == 4


def test_embed_batch_respects_batch_size(embedder, fake_model):
    texts = ["alpha one", "beta two", "gamma three", "delta four", "epsilon five"]
    embeddings = embedder.embed_batch(texts)

    assert [e.text for e in embeddings] == texts
    assert [len(call) for call in fake_model.calls] == [2, 2, 1]
    for embedding in embeddings:
        assert len(embedding.dense) == DENSE_DIM
        indices = embedding.sparse.indices
        assert all(a < b for a, b in zip(indices, indices[1:]))


def test_embed_batch_empty_input(embedder, fake_model):
    assert embedder.embed_batch([]) == []
    assert fake_model.calls == []


@pytest.mark.parametrize("text", ["", "   "])
def test_embed_rejects_empty_text(embedder, text):
    with pytest.raises(ValueError):
        embedder.embed(text)


def test_dense_dimension_mismatch_raises(metrics):
    embedder = BGEM3Embedder(
        dense_dimension=1024,
        sparse_dimension=SPARSE_DIM,
        model=FakeM3Model(dense_dim=DENSE_DIM),
        metrics=metrics,
    )
    with pytest.raises(EmbeddingError):
        embedder.embed("What is BM25?")


def test_out_of_vocabulary_token_raises(metrics):
    class OutOfRangeModel(FakeM3Model):
        def _weights(self, text):
            return {str(SPARSE_DIM + 5): 0.2}

    embedder = BGEM3Embedder(
        dense_dimension=DENSE_DIM,
        sparse_dimension=SPARSE_DIM,
        model=OutOfRangeModel(),
        metrics=metrics,
    )
    with pytest.raises(EmbeddingError):
        embedder.embed("anything")


def test_single_text_output_shape_is_accepted(metrics):
    class SingleOutputModel(FakeM3Model):
        def encode(self, texts, **kwargs):
            output = super().encode(texts, **kwargs)
            return {
                "dense_vecs": output["dense_vecs"][0],
                "lexical_weights": output["lexical_weights"][0],
            }

    embedder = BGEM3Embedder(
        dense_dimension=DENSE_DIM,
        sparse_dimension=SPARSE_DIM,
        model=SingleOutputModel(),
        metrics=metrics,
    )
    embedding = embedder.embed("Definition of BM25")
    assert embedding.dense.shape == (DENSE_DIM,)
    assert embedding.sparse.nnz == 4


def test_embedding_metrics_recorded(embedder, metrics):
    embedder.embed_batch(["one", "two", "three"])
    assert 'hs_embedding_requests_total{model_name="BAAI/bge-m3"} 3.0' in metrics.get_metrics()


def test_create_embedder_from_config():
    embedder = create_embedder(EmbeddingConfig(), model=FakeM3Model())
    assert embedder.model_name == "BAAI/bge-m3"
    assert embedder.dense_dimension == 1024
    assert embedder.sparse_dimension == 250002
    assert embedder.batch_size == 12


def test_invalid_batch_size():
    with pytest.raises(ValueError):
        BGEM3Embedder(batch_size=0, model=FakeM3Model())
