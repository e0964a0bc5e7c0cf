"""Unit of work over an Airtable base.

Airtable has no transactions: every write is sent immediately, so ``commit``
and ``rollback`` only mark the boundary.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from housingsync.domain.ports import ReviewRepositories

from .client import AirtableClient
from .repositories import (
    AirtableApartmentRepository,
    AirtableRecordRepository,
    AirtableRejectMarkerRepository,
    AirtableSubmissionRepository,
)

if TYPE_CHECKING:
    from types import TracebackType

log = getLogger(__name__)


class AirtableUnitOfWork:
    def __init__(self, client: AirtableClient | None = None) -> None:
        self.client = client or AirtableClient()
        self._repositories: ReviewRepositories | None = None

    def __enter__(self) -> AirtableUnitOfWork:
        config = self.client.config
        units = AirtableRecordRepository(self.client, config.units_table)
        self._repositories = ReviewRepositories(
            apartments=AirtableApartmentRepository(self.client, config.housing_table, units),
            units=units,
            submissions=AirtableSubmissionRepository(self.client, config.responses_table),
            rejects=AirtableRejectMarkerRepository(self.client, config.rejects_table),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self._repositories = None
        return False

    @property
    def repositories(self) -> ReviewRepositories:
        if self._repositories is None:
            raise RuntimeError("Airtable unit of work used outside its context")
        return self._repositories

    def commit(self) -> None:
        return None

    def rollback(self) -> None:
        log.warning("Airtable writes are not transactional; nothing to roll back")


if TYPE_CHECKING:
    from housingsync.domain.ports import ReviewUnitOfWork

    _uow_check: ReviewUnitOfWork = AirtableUnitOfWork()
