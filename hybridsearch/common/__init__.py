"""Common utilities shared across pipeline stages.

Includes:
- ``config``: pydantic-settings configuration from ``HS_*`` environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.

Import pattern:
- from hybridsearch.common.config import SearchConfig
- from hybridsearch.common.logging import configure_logging
"""
