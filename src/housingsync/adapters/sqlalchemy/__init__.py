"""SQLAlchemy adapter package for housingsync."""

from __future__ import annotations

from .repositories import (
    SqlAlchemyApartmentRepository,
    SqlAlchemyRecordRepository,
    SqlAlchemyRejectMarkerRepository,
    SqlAlchemySubmissionRepository,
    SqlAlchemyUnitRepository,
)
from .tables import metadata
from .unit_of_work import (
    SqlAlchemyReviewUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyApartmentRepository",
    "SqlAlchemyRecordRepository",
    "SqlAlchemyRejectMarkerRepository",
    "SqlAlchemyReviewUnitOfWork",
    "SqlAlchemySubmissionRepository",
    "SqlAlchemyUnitRepository",
    "StartupError",
    "configured_engine",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
