"""Apply or dismiss one proposed change.

Every action runs in its own unit of work. Applying a whole changeset is a
sequence of independent single-field actions: a failure is recorded and the
loop moves on, so a unit can end up partially applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from housingsync.domain.model import TEMP_ID_FIELD, FieldConversionError
from housingsync.domain.ports import StoreError
from housingsync.domain.reconciliation.field_kinds import convert_for_field

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from housingsync.domain.model import (
        ApartmentChangeset,
        FieldChange,
        PendingDeletion,
        UnitChangeset,
    )
    from housingsync.domain.ports import ReviewRepositories, ReviewUnitOfWork

    type UnitOfWorkFactory = Callable[[], ReviewUnitOfWork]

log = logging.getLogger(__name__)


class ChangeNotFoundError(LookupError):
    """Raised when a key does not name a change in the current changesets."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No pending change for {key!r}")
        self.key = key


class ChangeKind(StrEnum):
    APARTMENT_FIELD = "apartment_field"
    UNIT_FIELD = "unit_field"
    DELETION = "deletion"


@dataclass(frozen=True, slots=True, kw_only=True)
class ChangeTarget:
    """One addressable change together with the changeset that owns it."""

    changeset: ApartmentChangeset
    change: FieldChange | None = None
    unit: UnitChangeset | None = None
    deletion: PendingDeletion | None = None

    @property
    def kind(self) -> ChangeKind:
        if self.deletion is not None:
            return ChangeKind.DELETION
        if self.unit is not None:
            return ChangeKind.UNIT_FIELD
        return ChangeKind.APARTMENT_FIELD

    @property
    def key(self) -> str:
        if self.deletion is not None:
            return self.deletion.key
        if self.change is None:
            raise ValueError("ChangeTarget needs a field change or a deletion")
        return self.change.key

    @property
    def reject_marker(self) -> str:
        if self.deletion is not None:
            return self.deletion.reject_marker
        return self.key


@dataclass(slots=True)
class ApprovalReport:
    applied: list[str] = field(default_factory=list[str])
    failed: dict[str, str] = field(default_factory=dict[str, str])

    @property
    def ok(self) -> bool:
        return not self.failed


def iter_targets(changeset: ApartmentChangeset) -> Iterable[ChangeTarget]:
    """Field changes first, then unit changes, then pending deletions."""

    for change in changeset.field_changes.values():
        yield ChangeTarget(changeset=changeset, change=change)
    for unit in changeset.changed_units:
        for change in unit.changes.values():
            yield ChangeTarget(changeset=changeset, change=change, unit=unit)
    for deletion in changeset.pending_deletions:
        yield ChangeTarget(changeset=changeset, deletion=deletion)


def find_change(changesets: Iterable[ApartmentChangeset], key: str) -> ChangeTarget:
    for changeset in changesets:
        for target in iter_targets(changeset):
            if target.key == key:
                return target
    raise ChangeNotFoundError(key)


def approve_change(unit_of_work_factory: UnitOfWorkFactory, target: ChangeTarget) -> None:
    """Write one approved change to the store.

    The proposed value is converted before the unit of work opens, so an
    unconvertible value never causes a partial write.
    """

    if target.deletion is not None:
        with unit_of_work_factory() as uow:
            uow.repositories.units.delete(target.deletion.unit_id)
            uow.commit()
        log.info("Deleted unit %s (%s)", target.deletion.unit_id, target.key)
        return

    change = target.change
    if change is None:
        raise ValueError("ChangeTarget needs a field change or a deletion")
    converted = convert_for_field(change.field, change.updated)
    values = {change.field_name: converted}

    with unit_of_work_factory() as uow:
        if target.unit is None:
            _write_apartment(uow.repositories, target.changeset.apartment_id, values)
        else:
            _write_unit(uow.repositories, target.changeset.apartment_id, target.unit, values)
        uow.commit()
    log.info("Approved %s", change.key)


def _write_apartment(
    repositories: ReviewRepositories, apartment_id: str, values: dict[str, object]
) -> None:
    apartments = repositories.apartments
    if apartments.get(apartment_id) is None:
        apartments.create(values, record_id=apartment_id)
    else:
        apartments.update(apartment_id, values)


def _write_unit(
    repositories: ReviewRepositories,
    apartment_id: str,
    unit: UnitChangeset,
    values: dict[str, object],
) -> None:
    units = repositories.units
    if unit.unit_id is not None:
        units.update(unit.unit_id, values)
        return

    slot_key = unit.record.slot_key
    created_earlier = units.find_by_temp_id(slot_key) if slot_key else None
    if created_earlier is not None:
        units.update(created_earlier.record_id, values)
        return

    apartments = repositories.apartments
    if apartments.get(apartment_id) is None:
        log.info("Creating apartment %s to hold a new unit", apartment_id)
        apartments.create({}, record_id=apartment_id)
    created = units.create({**values, TEMP_ID_FIELD: slot_key})
    apartments.link_unit(apartment_id, created.record_id)
    log.debug("Created unit %s for slot %s", created.record_id, slot_key)


def reject_change(unit_of_work_factory: UnitOfWorkFactory, target: ChangeTarget) -> None:
    """Persist a reject marker so the change is suppressed on every later run."""

    with unit_of_work_factory() as uow:
        uow.repositories.rejects.add(target.reject_marker)
        uow.commit()
    log.info("Rejected %s", target.reject_marker)


def approve_all(
    unit_of_work_factory: UnitOfWorkFactory, changeset: ApartmentChangeset
) -> ApprovalReport:
    """Approve every field change of ``changeset``; deletions are left for review."""

    report = ApprovalReport()
    for target in iter_targets(changeset):
        if target.kind is ChangeKind.DELETION:
            continue
        try:
            approve_change(unit_of_work_factory, target)
        except (FieldConversionError, StoreError) as exc:
            log.exception("Failed to approve %s", target.key)
            report.failed[target.key] = str(exc)
        else:
            report.applied.append(target.key)
    log.info(
        "Approved apartment %s: applied=%s, failed=%s",
        changeset.apartment_id,
        len(report.applied),
        len(report.failed),
    )
    return report
