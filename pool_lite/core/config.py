"""Connection configuration.

ConnectionConfig is a Pydantic model for type-safe connect options. The
only option that changes adapter behaviour is ``database``; ``chunk_size``
tunes how many rows are pulled from the engine per step.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from pool_lite.core.enums import Database
from pool_lite.core.exceptions import ConfigurationError

MEMORY_PATH = Database.MEMORY.value

MISSING_DATABASE_MESSAGE = (
    "You must provide a database to connect to. "
    'Example: connect(database="./app.db") or connect(database=MEMORY)'
)


class ConnectionConfig(BaseModel):
    """Configuration for a single embedded database connection."""

    database: str | None = None
    chunk_size: int = Field(default=50, gt=0)

    @field_validator("database", mode="before")
    @classmethod
    def _normalize_database(cls, value: Any) -> Any:
        if isinstance(value, Database):
            return value.value
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value


def resolve_config(
    config: ConnectionConfig | Mapping[str, Any] | None = None,
    **options: Any,
) -> ConnectionConfig:
    """Build a validated ConnectionConfig from a model, a mapping or keywords.

    Raises:
        ConfigurationError: if no database is given or an option is invalid.
    """
    if isinstance(config, ConnectionConfig) and not options:
        resolved = config
    elif isinstance(config, ConnectionConfig):
        resolved = _validate({**config.model_dump(), **options})
    else:
        resolved = _validate({**dict(config or {}), **options})

    if not resolved.database:
        raise ConfigurationError(MISSING_DATABASE_MESSAGE)
    return resolved


def _validate(data: dict[str, Any]) -> ConnectionConfig:
    try:
        return ConnectionConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid connection options: {e}") from e
