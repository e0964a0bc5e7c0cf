"""Session-per-action unit of work over the local housing store."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from housingsync.adapters.sqlalchemy.migrations import upgrade_head
from housingsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyApartmentRepository,
    SqlAlchemyRejectMarkerRepository,
    SqlAlchemySubmissionRepository,
    SqlAlchemyUnitRepository,
)
from housingsync.config import get_database_config
from housingsync.domain.ports import ReviewRepositories, StoreError

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the store is used before ``startup()`` or started twice."""


@dataclass(slots=True)
class _StoreState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None


_STATE = _StoreState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Connect to the housing store and migrate it to the latest schema."""

    if _STATE.engine is not None and not force:
        raise StartupError("Housing store already started. Pass force=True to reconnect.")

    resolved_engine = engine or create_engine(database_uri or get_database_config().uri)
    upgrade_head(engine=resolved_engine)
    _STATE.engine = resolved_engine
    _STATE.sessions = sessionmaker(bind=resolved_engine, expire_on_commit=False)
    log.debug("Housing store at %s", resolved_engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the engine; a later ``startup()`` may point somewhere else."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.sessions = None


def _session_factory() -> sessionmaker[Session]:
    if _STATE.sessions is None:
        raise StartupError(
            "Housing store not started. Call housingsync.adapters.sqlalchemy.startup() "
            "before requesting a unit of work."
        )
    return _STATE.sessions


class SqlAlchemyReviewUnitOfWork:
    """One session per review action; whatever is not committed is rolled back on exit."""

    def __init__(self) -> None:
        self._sessions = _session_factory()
        self._session: Session | None = None
        self._repositories: ReviewRepositories | None = None

    def __enter__(self) -> SqlAlchemyReviewUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already entered")
        session = self._sessions()
        self._session = session
        self._repositories = ReviewRepositories(
            apartments=SqlAlchemyApartmentRepository(session),
            units=SqlAlchemyUnitRepository(session),
            submissions=SqlAlchemySubmissionRepository(session),
            rejects=SqlAlchemyRejectMarkerRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if session.in_transaction():
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work not entered")
        return self._session

    @property
    def repositories(self) -> ReviewRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work not entered")
        return self._repositories

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"Committing to the housing store failed: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from housingsync.domain.ports import ReviewUnitOfWork

    _uow_check: ReviewUnitOfWork = SqlAlchemyReviewUnitOfWork()
