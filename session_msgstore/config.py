"""
Store configuration.

Stores are created from a flat map of named string settings (the same
shape for every backend). The typed config objects below validate that
map; they can also be built from environment variables, and settings
maps for many sessions can be loaded from a YAML file:

```yaml
default:
  storage_directory: /var/lib/msgstore
sessions:
  FIX.4.4-SENDER-TARGET: {}
  FIX.4.2-OTHER-TARGET:
    storage_directory: /var/lib/msgstore-other
```
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import StoreConfigurationError

# Settings keys
STORAGE_DIRECTORY = "storage_directory"
DUCKDB_PATH = "duckdb_path"
TABLE_NAME_PREFIX = "table_name_prefix"


@dataclass
class FileStoreConfig:
    """Configuration for the file-backed store."""

    storage_directory: Path

    @classmethod
    def from_settings(cls, session_id: str, settings: Mapping[str, str]) -> FileStoreConfig:
        """Build config from a settings map.

        Raises:
            StoreConfigurationError: If storage_directory is missing or empty
        """
        directory = settings.get(STORAGE_DIRECTORY)
        if not directory:
            raise StoreConfigurationError(session_id, STORAGE_DIRECTORY)
        return cls(storage_directory=Path(directory))

    @classmethod
    def from_env(cls) -> FileStoreConfig:
        """Create config from environment variables."""
        directory = os.environ.get("SESSION_MSGSTORE_DIRECTORY")
        if not directory:
            raise StoreConfigurationError("<env>", "SESSION_MSGSTORE_DIRECTORY")
        return cls(storage_directory=Path(directory))


@dataclass
class DuckDBStoreConfig:
    """Configuration for the DuckDB-backed store."""

    db_path: str | Path = ":memory:"  # Use :memory: for in-memory database
    table_name_prefix: str = ""

    @classmethod
    def from_settings(cls, session_id: str, settings: Mapping[str, str]) -> DuckDBStoreConfig:
        """Build config from a settings map.

        duckdb_path is required; pass ":memory:" explicitly for a
        throwaway database.

        Raises:
            StoreConfigurationError: If duckdb_path is missing or empty
        """
        db_path = settings.get(DUCKDB_PATH)
        if not db_path:
            raise StoreConfigurationError(session_id, DUCKDB_PATH)
        return cls(db_path=db_path, table_name_prefix=settings.get(TABLE_NAME_PREFIX, ""))

    @classmethod
    def from_env(cls) -> DuckDBStoreConfig:
        """Create config from environment variables."""
        db_path = os.environ.get("SESSION_MSGSTORE_DUCKDB_PATH")
        if not db_path:
            raise StoreConfigurationError("<env>", "SESSION_MSGSTORE_DUCKDB_PATH")
        return cls(
            db_path=db_path,
            table_name_prefix=os.environ.get("SESSION_MSGSTORE_TABLE_PREFIX", ""),
        )


def load_settings(path: Path) -> dict[str, dict[str, str]]:
    """Load per-session settings maps from a YAML file.

    Each session's settings are layered over the optional ``default``
    mapping. Values are coerced to strings.

    Args:
        path: Path to the YAML settings file

    Returns:
        Mapping of session id to its settings map; empty if the file is missing
    """
    if not path.exists():
        return {}

    data: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    defaults = _stringify(data.get("default") or {})

    result: dict[str, dict[str, str]] = {}
    for session_id, overrides in (data.get("sessions") or {}).items():
        settings = dict(defaults)
        settings.update(_stringify(overrides or {}))
        result[str(session_id)] = settings
    return result


def _stringify(mapping: Mapping[str, Any]) -> dict[str, str]:
    return {str(key): str(value) for key, value in mapping.items()}
