"""Where the local housing store lives, and which store backend is active."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Final

from .env import env_choice

APP_DIR_NAME: Final[str] = "housingsync"
DEFAULT_DB_FILENAME: Final[str] = "housingsync.db"


class Backend(StrEnum):
    """Where apartments, units, form responses and reject markers are kept."""

    SQLITE = "sqlite"
    AIRTABLE = "airtable"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self, *, ensure: bool = True) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _default_data_dir() -> Path:
    if os.name == "nt":
        root = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(root) / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    data_dir = os.getenv("HOUSINGSYNC_DATA_DIR")
    return StorageConfig(data_dir=Path(data_dir) if data_dir else _default_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())


def get_backend() -> Backend:
    """Store backend selected by ``HOUSINGSYNC_BACKEND`` (default: sqlite)."""

    return Backend(
        env_choice(
            "HOUSINGSYNC_BACKEND",
            [backend.value for backend in Backend],
            default=Backend.SQLITE.value,
        )
    )
