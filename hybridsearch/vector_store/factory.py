"""Vector store factory for creating different implementations.

Centralizes creation of concrete ``HybridVectorStore`` backends so callers
don't depend on implementation details. New stores can be added without
changing call sites.
"""

from enum import Enum
from typing import Any, Dict, Optional

import structlog

from ..common.config import BaseConfig
from .base import HybridVectorStore
from .memory import InMemoryHybridStore
from .pgvecto_rs import PgVectorsStore
from .pgvector import PgVectorStore

logger = structlog.get_logger("vector_store.factory")


class VectorStoreType(Enum):
    """Supported vector store types."""
    PGVECTO_RS = "pgvecto_rs"
    PGVECTOR = "pgvector"
    MEMORY = "memory"


class VectorStoreFactory:
    """Factory for creating vector store instances."""

    @staticmethod
    def create(
        store_type: VectorStoreType,
        config: Dict[str, Any],
        **kwargs: Any
    ) -> HybridVectorStore:
        """Create a vector store instance.

        Parameters
        - store_type: A ``VectorStoreType`` enum value
        - config: Backend‑specific parameters (e.g., DSN for PostgreSQL)
        - kwargs: Additional optional overrides forwarded to implementation
        """
        dimensions = {
            "dense_dimension": int(config.get("dense_dimension", 1024)),
            "sparse_dimension": int(config.get("sparse_dimension", 250002)),
        }

        if store_type == VectorStoreType.MEMORY:
            return InMemoryHybridStore(**dimensions, **kwargs)

        dsn = config.get("dsn")
        if not dsn:
            raise ValueError(f"{store_type.value} requires 'dsn' in config")

        params = dict(
            dsn=dsn,
            table=config.get("table", "documents"),
            pool_size=int(config.get("pool_size", 10)),
            command_timeout=int(config.get("command_timeout", 60)),
            **dimensions,
        )
        params.update(kwargs)

        if store_type == VectorStoreType.PGVECTO_RS:
            return PgVectorsStore(**params)
        elif store_type == VectorStoreType.PGVECTOR:
            return PgVectorStore(**params)
        else:
            raise ValueError(f"Unsupported vector store type: {store_type}")

    @staticmethod
    def create_from_config(config: Dict[str, Any], **kwargs: Any) -> HybridVectorStore:
        """Create vector store from configuration dictionary.

        Expects a ``type`` key and any implementation‑specific fields.
        """
        store_type_str = config.get("type", "pgvecto_rs")

        try:
            store_type = VectorStoreType(store_type_str)
        except ValueError:
            raise ValueError(f"Unsupported vector store type: {store_type_str}")

        return VectorStoreFactory.create(store_type, config, **kwargs)


def create_vector_store(config: Optional[BaseConfig] = None, **kwargs: Any) -> HybridVectorStore:
    """Create a vector store from typed settings."""
    config = config or BaseConfig()
    return VectorStoreFactory.create_from_config(
        {
            "type": config.hs_vector_backend,
            "dsn": config.hs_vector_db_dsn,
            "table": config.hs_vector_table,
            "pool_size": config.hs_vector_pool_size,
            "command_timeout": config.hs_vector_command_timeout,
            "dense_dimension": config.hs_dense_dimension,
            "sparse_dimension": config.hs_sparse_dimension,
        },
        **kwargs
    )


def create_vector_store_from_env(env_config: Dict[str, str]) -> HybridVectorStore:
    """Create vector store from a flat mapping of ``HS_*`` variables.

    Parameters
    - env_config: Environment variable names to values

    Returns
    - A ``HybridVectorStore`` configured to talk to the backing datastore
    """
    backend = env_config.get("HS_VECTOR_BACKEND", "pgvecto_rs")
    config = {
        "type": backend,
        "dsn": env_config.get("HS_VECTOR_DB_DSN"),
        "table": env_config.get("HS_VECTOR_TABLE", "documents"),
        "pool_size": int(env_config.get("HS_VECTOR_POOL_SIZE", "10")),
        "command_timeout": int(env_config.get("HS_VECTOR_COMMAND_TIMEOUT", "60")),
        "dense_dimension": int(env_config.get("HS_DENSE_DIMENSION", "1024")),
        "sparse_dimension": int(env_config.get("HS_SPARSE_DIMENSION", "250002")),
    }

    if backend != VectorStoreType.MEMORY.value and not config["dsn"]:
        raise ValueError("HS_VECTOR_DB_DSN environment variable is required")

    logger.info("Creating vector store", backend=backend, table=config["table"])
    return VectorStoreFactory.create_from_config(config)
