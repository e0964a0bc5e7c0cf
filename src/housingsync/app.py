"""Application orchestration entry points."""

from __future__ import annotations

import atexit
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from housingsync.adapters.airtable import AirtableClient, AirtableUnitOfWork
from housingsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReviewUnitOfWork,
    is_started,
    startup,
)
from housingsync.config import Backend, get_backend
from housingsync.domain.ports import ReviewUnitOfWork
from housingsync.domain.reconciliation import reconcile_campaign
from housingsync.domain.review import (
    ChangeNotFoundError,
    approve_all,
    approve_change,
    find_change,
    reject_change,
)

if TYPE_CHECKING:
    from housingsync.domain.model import ApartmentChangeset
    from housingsync.domain.reconciliation import ReconciliationEngine
    from housingsync.domain.review import ApprovalReport, ChangeTarget

UnitOfWorkFactory = Callable[[], ReviewUnitOfWork]


log = getLogger(__name__)


def build_unit_of_work_factory(backend: Backend | None = None) -> UnitOfWorkFactory:
    """Return a unit-of-work factory for the configured storage backend."""

    effective_backend = backend or get_backend()
    log.debug("Using %s backend", effective_backend)
    if effective_backend is Backend.AIRTABLE:
        client = AirtableClient()
        atexit.register(client.close)
        return lambda: AirtableUnitOfWork(client)
    if not is_started():
        startup()
    return SqlAlchemyReviewUnitOfWork


def review_campaign(
    campaign: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    engine: ReconciliationEngine | None = None,
) -> tuple[ApartmentChangeset, ...]:
    """Reconcile every response of ``campaign`` against the stored dataset."""

    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    changesets = reconcile_campaign(
        campaign=campaign, unit_of_work_factory=effective_uow, engine=engine
    )
    log.info(
        "Finished review of %s: apartments=%s, changes=%s",
        campaign,
        len(changesets),
        sum(_count_changes(changeset) for changeset in changesets),
    )
    return changesets


def approve_key(
    campaign: str,
    key: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ChangeTarget:
    """Recompute the campaign, then apply the change named by ``key``."""

    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    target = find_change(review_campaign(campaign, unit_of_work_factory=effective_uow), key)
    approve_change(effective_uow, target)
    return target


def reject_key(
    campaign: str,
    key: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ChangeTarget:
    """Recompute the campaign, then persist a reject marker for ``key``."""

    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    target = find_change(review_campaign(campaign, unit_of_work_factory=effective_uow), key)
    reject_change(effective_uow, target)
    return target


def approve_apartment(
    campaign: str,
    apartment_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ApprovalReport:
    """Apply every field change proposed for one apartment."""

    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    for changeset in review_campaign(campaign, unit_of_work_factory=effective_uow):
        if changeset.apartment_id == apartment_id:
            return approve_all(effective_uow, changeset)
    raise ChangeNotFoundError(apartment_id)


def _count_changes(changeset: ApartmentChangeset) -> int:
    return (
        len(changeset.field_changes)
        + sum(len(unit.changes) for unit in changeset.changed_units)
        + len(changeset.pending_deletions)
    )
