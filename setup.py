#!/usr/bin/env python3
"""Setup script for the hybrid sparse/dense vector search package."""

from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="hybrid-vector-search",
    version="0.1.0",
    description="Hybrid dense + sparse retrieval with BGE-M3, PostgreSQL vector extensions and cross-encoder reranking",
    python_requires=">=3.9",
    packages=find_packages(include=["hybridsearch", "hybridsearch.*"]),
    scripts=[str(Path("scripts") / "hybrid_search.py")],
    install_requires=[
        "numpy>=1.24",
        "structlog>=23.1",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "prometheus-client>=0.17",
        "asyncpg>=0.28",
        "pgvector>=0.3.0",
        "FlagEmbedding>=1.3.0",
        "sentence-transformers>=2.7",
        "torch>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
        ],
    },
)
