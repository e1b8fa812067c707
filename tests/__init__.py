"""Tests for the hybrid search pipeline.

Models are replaced by small deterministic stand-ins and PostgreSQL by a
recording fake pool, so the suite needs neither model downloads nor a
database.
"""
