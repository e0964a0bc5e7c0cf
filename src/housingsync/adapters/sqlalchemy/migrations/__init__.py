"""Alembic migrations for the housing store, bundled with the package."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine

from housingsync.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

log = getLogger(__name__)


def alembic_config() -> Config:
    """Alembic settings pointing at the migrations shipped in this package.

    ``[tool.alembic]`` in pyproject.toml names the same directory for the alembic CLI.
    """

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    return config


def head_revision(config: Config | None = None) -> str | None:
    return ScriptDirectory.from_config(config or alembic_config()).get_current_head()


def current_revision(connection: Connection) -> str | None:
    return MigrationContext.configure(connection).get_current_revision()


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the store schema up to the newest revision; a no-op when already there."""

    config = alembic_config()
    target = engine or create_engine(database_uri or get_database_config().uri)
    try:
        with target.begin() as connection:
            current = current_revision(connection)
            head = head_revision(config)
            if current == head:
                log.debug("Housing store schema at %s", head)
                return
            log.info("Migrating housing store schema from %s to %s", current or "empty", head)
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
    finally:
        if engine is None:
            target.dispose()
