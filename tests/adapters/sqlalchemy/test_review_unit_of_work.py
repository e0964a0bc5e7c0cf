from __future__ import annotations

from typing import TYPE_CHECKING, cast

import pytest

from housingsync.adapters.sqlalchemy import (
    SqlAlchemyApartmentRepository,
    SqlAlchemyRecordRepository,
    StartupError,
)
from housingsync.domain.reconciliation import reconcile_campaign
from housingsync.domain.review import approve_all, find_change, reject_change
from tests.helpers.housing import APARTMENT_FIELDS, CAMPAIGN, UNIT_FIELDS, submission

if TYPE_CHECKING:
    from collections.abc import Callable

    from housingsync.adapters.sqlalchemy import SqlAlchemyReviewUnitOfWork


def _seed(factory: Callable[[], SqlAlchemyReviewUnitOfWork]) -> None:
    with factory() as uow:
        apartments = cast("SqlAlchemyApartmentRepository", uow.repositories.apartments)
        units = cast("SqlAlchemyRecordRepository", uow.repositories.units)
        for spec in APARTMENT_FIELDS:
            apartments.add_field(spec)
        for spec in UNIT_FIELDS:
            units.add_field(spec)
        apartments.create({"APT_NAME": "Maple"}, record_id="a1")
        units.create({"TYPE": "1BR", "rent": 1100}, record_id="u1")
        apartments.link_unit("a1", "u1")
        uow.repositories.submissions.add(
            submission(
                "r1",
                "a1",
                {"APT_NAME": "Maple Court", "ID:0": "u1", "rent:0": "1200", "TYPE:1": "Studio"},
            )
        )
        uow.commit()


def test_approving_everything_leaves_nothing_to_review(
    sqlite_unit_of_work: Callable[[], SqlAlchemyReviewUnitOfWork],
) -> None:
    _seed(sqlite_unit_of_work)

    (changeset,) = reconcile_campaign(campaign=CAMPAIGN, unit_of_work_factory=sqlite_unit_of_work)
    report = approve_all(sqlite_unit_of_work, changeset)

    assert report.ok
    assert report.applied == ["r1:a1:-:APT_NAME", "r1:a1:idx0:rent", "r1:a1:idx1:TYPE"]
    assert (
        reconcile_campaign(campaign=CAMPAIGN, unit_of_work_factory=sqlite_unit_of_work) == ()
    )
    with sqlite_unit_of_work() as uow:
        apartment = uow.repositories.apartments.get("a1")
        created = uow.repositories.units.find_by_temp_id("r1:a1:idx1")
    assert apartment is not None
    assert created is not None
    assert apartment.linked_unit_ids == ("u1", created.record_id)


def test_reject_marker_survives_across_units_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyReviewUnitOfWork],
) -> None:
    _seed(sqlite_unit_of_work)
    (changeset,) = reconcile_campaign(campaign=CAMPAIGN, unit_of_work_factory=sqlite_unit_of_work)

    reject_change(sqlite_unit_of_work, find_change([changeset], "r1:a1:-:APT_NAME"))

    (rerun,) = reconcile_campaign(campaign=CAMPAIGN, unit_of_work_factory=sqlite_unit_of_work)
    assert "APT_NAME" not in rerun.field_changes
    assert [unit.record.slot_key for unit in rerun.changed_units] == ["r1:a1:idx0", "r1:a1:idx1"]


def test_uncommitted_writes_are_discarded(
    sqlite_unit_of_work: Callable[[], SqlAlchemyReviewUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.apartments.create({"APT_NAME": "Draft"}, record_id="a9")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.apartments.get("a9") is None


def test_exception_rolls_back_and_propagates(
    sqlite_unit_of_work: Callable[[], SqlAlchemyReviewUnitOfWork],
) -> None:
    with pytest.raises(RuntimeError, match="boom"), sqlite_unit_of_work() as uow:
        uow.repositories.rejects.add("r1:a1:-:phone")
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.rejects.list_markers() == ()


def test_repositories_require_an_open_unit_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyReviewUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()

    with pytest.raises(StartupError):
        _ = uow.repositories
