"""Configuration utilities for agentgraph."""

from .settings import (
    ConfigurationError,
    ConfigurationManager,
    GraphSettings,
    QueryConfig,
    StoreConfig,
    ValidationConfig,
    apply_env_overrides,
)

__all__ = [
    "ConfigurationError",
    "ConfigurationManager",
    "GraphSettings",
    "QueryConfig",
    "StoreConfig",
    "ValidationConfig",
    "apply_env_overrides",
]
