"""Immutable view of stored state for one reconciliation run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .rejects import RejectList

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from housingsync.domain.model import FieldSpec, StoredRecord
    from housingsync.domain.ports import ReviewUnitOfWork

log = logging.getLogger(__name__)


def _index_by_id(records: Iterable[StoredRecord]) -> dict[str, StoredRecord]:
    return {record.record_id: record for record in records}


def _index_by_temp_id(records: Iterable[StoredRecord]) -> dict[str, StoredRecord]:
    indexed: dict[str, StoredRecord] = {}
    for record in records:
        temp_id = record.temp_id
        if temp_id is not None and temp_id not in indexed:
            indexed[temp_id] = record
    return indexed


@dataclass(frozen=True, slots=True, kw_only=True)
class HousingSnapshot:
    """Field metadata, records and reject markers as read at the start of a run."""

    apartment_fields: tuple[FieldSpec, ...] = ()
    unit_fields: tuple[FieldSpec, ...] = ()
    apartments: Mapping[str, StoredRecord] = field(default_factory=dict[str, "StoredRecord"])
    units: Mapping[str, StoredRecord] = field(default_factory=dict[str, "StoredRecord"])
    rejects: RejectList = field(default_factory=RejectList)
    units_by_temp_id: Mapping[str, StoredRecord] = field(
        default_factory=dict[str, "StoredRecord"]
    )

    @classmethod
    def build(
        cls,
        *,
        apartment_fields: Iterable[FieldSpec],
        unit_fields: Iterable[FieldSpec],
        apartments: Iterable[StoredRecord],
        units: Iterable[StoredRecord],
        reject_markers: Iterable[str] = (),
    ) -> HousingSnapshot:
        unit_records = tuple(units)
        return cls(
            apartment_fields=tuple(apartment_fields),
            unit_fields=tuple(unit_fields),
            apartments=_index_by_id(apartments),
            units=_index_by_id(unit_records),
            rejects=RejectList.from_markers(reject_markers),
            units_by_temp_id=_index_by_temp_id(unit_records),
        )


def load_snapshot(uow: ReviewUnitOfWork) -> HousingSnapshot:
    """Read everything the engine needs through an open unit of work."""

    repositories = uow.repositories
    snapshot = HousingSnapshot.build(
        apartment_fields=repositories.apartments.fields(),
        unit_fields=repositories.units.fields(),
        apartments=repositories.apartments.list_records(),
        units=repositories.units.list_records(),
        reject_markers=repositories.rejects.list_markers(),
    )
    log.info(
        "Loaded snapshot: apartments=%s, units=%s, rejects=%s",
        len(snapshot.apartments),
        len(snapshot.units),
        len(snapshot.rejects),
    )
    return snapshot
