"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    ApartmentRepository,
    RecordRepository,
    RejectMarkerRepository,
    StoreError,
    SubmissionRepository,
)
from .unit_of_work import (
    RepositoryCollection,
    ReviewRepositories,
    ReviewUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "ApartmentRepository",
    "RecordRepository",
    "RejectMarkerRepository",
    "RepositoryCollection",
    "ReviewRepositories",
    "ReviewUnitOfWork",
    "StoreError",
    "SubmissionRepository",
    "UnitOfWork",
]
