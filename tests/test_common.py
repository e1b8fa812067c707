"""Tests for common utilities."""

import pytest

from hybridsearch.common.config import (
    BaseConfig,
    EmbeddingConfig,
    SearchConfig,
    VectorStoreConfig,
    get_config,
    load_env_file,
)
from hybridsearch.common.logging import configure_logging
from hybridsearch.common.metrics import MetricsCollector


def test_config_loading():
    """Test configuration defaults."""
    config = BaseConfig()
    assert config.hs_env == "local"
    assert config.hs_log_level == "INFO"
    assert config.hs_dense_dimension == 1024
    assert config.hs_sparse_dimension == 250002
    assert config.hs_vector_backend == "pgvecto_rs"


def test_embedding_config():
    """Test embedding configuration."""
    config = EmbeddingConfig()
    assert config.hs_embedding_model == "BAAI/bge-m3"
    assert config.hs_embedding_batch_size == 12


def test_search_config_inherits_stage_settings():
    config = SearchConfig()
    assert config.hs_top_k == 10
    assert config.hs_reranker_model == "BAAI/bge-reranker-v2-m3"
    assert config.hs_hnsw_m == 16
    assert config.hs_embedding_model == "BAAI/bge-m3"


def test_config_reads_environment(monkeypatch):
    monkeypatch.setenv("HS_TOP_K", "25")
    monkeypatch.setenv("HS_VECTOR_BACKEND", "pgvector")
    monkeypatch.setenv("HS_RERANKER_ENABLED", "false")
    config = SearchConfig()
    assert config.hs_top_k == 25
    assert config.hs_vector_backend == "pgvector"
    assert config.hs_reranker_enabled is False


def test_get_config():
    assert isinstance(get_config("search"), SearchConfig)
    assert isinstance(get_config("vector-store"), VectorStoreConfig)
    assert type(get_config("unknown")) is BaseConfig


def test_load_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("# comment\nHS_TOP_K=5\n\nHS_VECTOR_TABLE = docs\nNOT A PAIR\n")
    assert load_env_file(str(env_file)) == {"HS_TOP_K": "5", "HS_VECTOR_TABLE": "docs"}
    assert load_env_file(str(tmp_path / "missing.env")) == {}


def test_logging_configuration():
    """Test logging configuration."""
    # This should not raise an exception
    configure_logging("test-service", "INFO", "json")
    configure_logging("test-service", "debug", "console")


def test_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("test-service", "LOUD", "json")


def test_metrics_collector():
    """Test metrics collector."""
    collector = MetricsCollector("test-service")
    assert collector.service_name == "test-service"

    collector.record_embedding("BAAI/bge-m3", 3, 0.05)
    collector.record_vector_store_operation("query", "dense")
    collector.record_search("hybrid_rerank", 0.1)
    collector.record_rerank("BAAI/bge-reranker-v2-m3", 0.02)

    metrics = collector.get_metrics()
    assert isinstance(metrics, str)
    assert 'hs_embedding_requests_total{model_name="BAAI/bge-m3"} 3.0' in metrics
    assert "hs_search_requests_total" in metrics
    assert "hs_rerank_duration_seconds" in metrics
