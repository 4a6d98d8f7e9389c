"""Graph engine configuration management with validation.

Settings are Pydantic models loaded from a YAML file. A missing file means
defaults. Two environment variables override the file:

    AGENTGRAPH_DB_PATH       store.database_path
    AGENTGRAPH_QUERY_LIMIT   query.default_limit
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from agentgraph.graph.queries import DEFAULT_CONTEXT_NODES, DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT

DEFAULT_HOME = Path.home() / ".agentgraph"
DEFAULT_CONFIG_PATH = DEFAULT_HOME / "config.yaml"

ENV_DB_PATH = "AGENTGRAPH_DB_PATH"
ENV_QUERY_LIMIT = "AGENTGRAPH_QUERY_LIMIT"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


class StoreConfig(BaseModel):
    """Graph database configuration.

    Attributes:
        database_path: SQLite database path
        wal_mode: Enable SQLite WAL mode
    """

    database_path: Path = Field(
        default=DEFAULT_HOME / "graph.db",
        description="SQLite database path"
    )
    wal_mode: bool = Field(
        default=True,
        description="Enable SQLite WAL mode"
    )

    @field_validator("database_path")
    @classmethod
    def expand_database_path(cls, v: Path) -> Path:
        """Expand ``~`` so the path is usable as given."""
        return v.expanduser()

    class Config:
        """Pydantic configuration."""
        validate_assignment = True
        extra = "forbid"


class ValidationConfig(BaseModel):
    """Citation verification configuration.

    Attributes:
        citation_lookup_workers: Threads used to resolve cited ids (1 = serial)
    """

    citation_lookup_workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Threads used to resolve cited ids"
    )

    class Config:
        """Pydantic configuration."""
        validate_assignment = True
        extra = "forbid"


class QueryConfig(BaseModel):
    """Graph query configuration.

    Attributes:
        default_limit: Nodes returned by queryGraph when no limit is given
        context_max_nodes: Nodes rendered into LLM context text
    """

    default_limit: int = Field(
        default=DEFAULT_QUERY_LIMIT,
        ge=1,
        le=MAX_QUERY_LIMIT,
        description="Default queryGraph limit"
    )
    context_max_nodes: int = Field(
        default=DEFAULT_CONTEXT_NODES,
        ge=1,
        le=10000,
        description="Nodes rendered into LLM context"
    )

    class Config:
        """Pydantic configuration."""
        validate_assignment = True
        extra = "forbid"


class GraphSettings(BaseModel):
    """Main graph engine configuration.

    Attributes:
        version: Configuration schema version
        store: Graph database configuration
        validation: Citation verification configuration
        query: Graph query configuration
    """

    version: int = Field(
        default=1,
        description="Configuration schema version"
    )
    store: StoreConfig = Field(default_factory=StoreConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)

    class Config:
        """Pydantic configuration."""
        validate_assignment = True
        extra = "forbid"


def _error_details(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]


def apply_env_overrides(
    data: Dict[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Return ``data`` with environment overrides applied."""
    env = os.environ if environ is None else environ
    merged = dict(data)

    if env.get(ENV_DB_PATH):
        store = dict(merged.get("store") or {})
        store["database_path"] = env[ENV_DB_PATH]
        merged["store"] = store

    if env.get(ENV_QUERY_LIMIT):
        query = dict(merged.get("query") or {})
        query["default_limit"] = env[ENV_QUERY_LIMIT]
        merged["query"] = query

    return merged


class ConfigurationManager:
    """Loads, saves and validates graph engine configuration.

    Attributes:
        config_path: Path to the YAML configuration file
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file (default: ~/.agentgraph/config.yaml)
            environ: Environment mapping for overrides (default: os.environ)
        """
        self._config_path = config_path or DEFAULT_CONFIG_PATH
        self._environ = environ
        self._config: Optional[GraphSettings] = None

    @property
    def config_path(self) -> Path:
        return self._config_path

    def _read(self, path: Path) -> Dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid configuration: expected a mapping at the top level of {path}"
            )
        return data

    def load(self) -> GraphSettings:
        """Load and validate configuration.

        Returns:
            Validated graph settings (defaults when the file does not exist)

        Raises:
            ConfigurationError: If configuration is invalid
        """
        data: Dict[str, Any] = {}
        if self._config_path.exists():
            try:
                data = self._read(self._config_path)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid configuration: {exc}") from exc

        data = apply_env_overrides(data, self._environ)

        try:
            self._config = GraphSettings(**data)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(_error_details(exc))}"
            ) from exc

        return self._config

    def save(self, config: GraphSettings) -> None:
        """Write ``config`` to the configuration file as YAML.

        Args:
            config: Configuration to save
        """
        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        # mode="json" writes paths as strings
        data = config.model_dump(mode="json")

        with open(self._config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def validate(self, config_path: Optional[Path] = None) -> List[str]:
        """Check a configuration file and collect every problem found.

        Args:
            config_path: Optional path to config file to validate

        Returns:
            Error messages, empty when the file is valid
        """
        path = config_path or self._config_path
        errors: List[str] = []

        if not path.exists():
            errors.append(f"Configuration file not found: {path}")
            return errors

        try:
            GraphSettings(**self._read(path))
        except ValidationError as exc:
            errors.extend(_error_details(exc))
        except (ConfigurationError, yaml.YAMLError, OSError) as exc:
            errors.append(f"Failed to load configuration: {exc}")

        return errors


__all__ = [
    "StoreConfig",
    "ValidationConfig",
    "QueryConfig",
    "GraphSettings",
    "ConfigurationManager",
    "ConfigurationError",
    "apply_env_overrides",
]
