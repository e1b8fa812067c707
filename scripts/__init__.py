"""Utility scripts for operating the hybrid search pipeline.

Scripts include:
- ``hybrid_search.py``: create storage, ingest documents and run searches.
"""
