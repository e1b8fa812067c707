#!/usr/bin/env python3
"""Command line entry point for the hybrid search pipeline.

Commands
- ``init``: create the document table and the dense/sparse indexes
- ``ingest FILE``: embed and store one document per non-empty line
- ``search QUERY``: run hybrid retrieval and print ranked candidates
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import structlog

from hybridsearch.common.config import SearchConfig
from hybridsearch.common.logging import configure_logging
from hybridsearch.embedding.base import EmbeddingError
from hybridsearch.pipeline import HybridSearchPipeline
from hybridsearch.rerank.base import RerankError
from hybridsearch.vector_store.base import VectorStoreError

logger = structlog.get_logger("hybrid_search_cli")


def read_documents(path: str) -> List[str]:
    """Read one document per non-empty line."""
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


async def run_command(args: argparse.Namespace, pipeline: HybridSearchPipeline) -> int:
    """Execute a parsed command against ``pipeline``; returns an exit code."""
    try:
        if args.command == "init":
            await pipeline.setup()
            print("Schema and indexes created")
        elif args.command == "ingest":
            documents = read_documents(args.file)
            count = await pipeline.ingest(documents)
            print(f"Ingested {count} documents")
        elif args.command == "search":
            results = await pipeline.search(
                args.query,
                k=args.top_k,
                rerank=not args.no_rerank,
                limit=args.limit,
            )
            for result in results:
                print(json.dumps({"text": result.text, "score": result.score}))
        return 0
    except VectorStoreError as e:
        logger.error("Vector store operation failed", command=args.command, error=str(e))
        return 1
    except (EmbeddingError, RerankError) as e:
        logger.error("Model inference failed", command=args.command, error=str(e))
        return 1
    except ValueError as e:
        logger.error("Invalid arguments", command=args.command, error=str(e))
        return 1
    finally:
        await pipeline.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hybrid sparse/dense vector search")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create schema and indexes")

    ingest = subparsers.add_parser("ingest", help="Embed and store documents")
    ingest.add_argument("file", help="Text file with one document per line")

    search = subparsers.add_parser("search", help="Search documents")
    search.add_argument("query", help="Query text")
    search.add_argument("--top-k", type=int, default=None, help="Results per vector index")
    search.add_argument("--limit", type=int, default=None, help="Truncate the final ranking")
    search.add_argument("--no-rerank", action="store_true", help="Order with RRF instead of the reranker")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for CLI."""
    args = build_parser().parse_args(argv)

    config = SearchConfig()
    configure_logging("hybrid-search", config.hs_log_level, config.hs_log_format)

    pipeline = HybridSearchPipeline.from_config(config)
    return asyncio.run(run_command(args, pipeline))


if __name__ == "__main__":
    sys.exit(main())
