"""Reusable builders and in-memory fakes for housing reconciliation tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Literal, cast

from housingsync.domain.model import (
    ID_FIELD,
    UNITS_FIELD,
    FieldSpec,
    FieldType,
    FormSubmission,
    StoredRecord,
)
from housingsync.domain.ports import ReviewRepositories, StoreError
from housingsync.domain.reconciliation import HousingSnapshot

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from types import TracebackType

    from housingsync.domain.model import FieldValue

CAMPAIGN = "spring-2024"
BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def field(
    name: str,
    type: FieldType = FieldType.SINGLE_LINE_TEXT,  # noqa: A002
    *,
    precision: int | None = None,
    choices: Iterable[str] = (),
    editable: bool = True,
) -> FieldSpec:
    return FieldSpec(
        name=name,
        type=type,
        precision=precision,
        choices=tuple(choices),
        editable=editable,
    )


APARTMENT_FIELDS: tuple[FieldSpec, ...] = (
    field(ID_FIELD, editable=False),
    field("APT_NAME"),
    field("phone", FieldType.PHONE_NUMBER),
    field("wheelchair", FieldType.CHECKBOX),
    field("description", FieldType.MULTILINE_TEXT),
    field(UNITS_FIELD, FieldType.OTHER, editable=False),
    field("DISPLAY_ID", FieldType.OTHER, editable=False),
)

UNIT_FIELDS: tuple[FieldSpec, ...] = (
    field(ID_FIELD, editable=False),
    field("TYPE"),
    field("rent", FieldType.NUMBER, precision=0),
    field("sqft", FieldType.NUMBER, precision=1),
    field(
        "amenities",
        FieldType.MULTIPLE_SELECTS,
        choices=("Dishwasher", "Laundry", "Parking"),
    ),
    field("TEMP_ID", editable=False),
)


def record(record_id: str, **values: FieldValue) -> StoredRecord:
    return StoredRecord(record_id=record_id, values={ID_FIELD: record_id, **values})


def submission(
    response_record_id: str,
    apartment_id: str,
    fields: Mapping[str, FieldValue] | None = None,
    *,
    minutes: int = 0,
    campaign: str = CAMPAIGN,
) -> FormSubmission:
    return FormSubmission(
        response_record_id=response_record_id,
        campaign=campaign,
        submitted_at=at(minutes),
        apartment_id=apartment_id,
        fields={ID_FIELD: apartment_id, **(fields or {})},
    )


def snapshot(
    *,
    apartments: Iterable[StoredRecord] = (),
    units: Iterable[StoredRecord] = (),
    rejects: Iterable[str] = (),
    apartment_fields: Iterable[FieldSpec] = APARTMENT_FIELDS,
    unit_fields: Iterable[FieldSpec] = UNIT_FIELDS,
) -> HousingSnapshot:
    return HousingSnapshot.build(
        apartment_fields=apartment_fields,
        unit_fields=unit_fields,
        apartments=apartments,
        units=units,
        reject_markers=rejects,
    )


class InMemoryRecordRepository:
    """Dict-backed record table; ``failing_fields`` makes writes of those fields fail."""

    def __init__(
        self,
        fields: Iterable[FieldSpec],
        records: Iterable[StoredRecord] = (),
        *,
        id_prefix: str = "new",
    ) -> None:
        self._fields = tuple(fields)
        self.records: dict[str, dict[str, FieldValue]] = {
            stored.record_id: dict(stored.values) for stored in records
        }
        self.failing_fields: set[str] = set()
        self._id_prefix = id_prefix
        self._created = 0

    def fields(self) -> tuple[FieldSpec, ...]:
        return self._fields

    def list_records(self) -> tuple[StoredRecord, ...]:
        return tuple(
            StoredRecord(record_id=record_id, values=dict(values))
            for record_id, values in self.records.items()
        )

    def get(self, record_id: str) -> StoredRecord | None:
        values = self.records.get(record_id)
        return None if values is None else StoredRecord(record_id=record_id, values=dict(values))

    def find_by_temp_id(self, temp_id: str) -> StoredRecord | None:
        for stored in self.list_records():
            if stored.temp_id == temp_id:
                return stored
        return None

    def update(self, record_id: str, values: Mapping[str, object]) -> None:
        self._check(values)
        if record_id not in self.records:
            raise StoreError(f"No record {record_id}")
        self.records[record_id].update(_as_field_values(values))

    def create(
        self, values: Mapping[str, object], *, record_id: str | None = None
    ) -> StoredRecord:
        self._check(values)
        if record_id is None:
            self._created += 1
            record_id = f"{self._id_prefix}-{self._created}"
        if record_id in self.records:
            raise StoreError(f"Record {record_id} already exists")
        self.records[record_id] = {ID_FIELD: record_id, **_as_field_values(values)}
        return StoredRecord(record_id=record_id, values=dict(self.records[record_id]))

    def delete(self, record_id: str) -> None:
        if self.records.pop(record_id, None) is None:
            raise StoreError(f"No record {record_id}")

    def _check(self, values: Mapping[str, object]) -> None:
        failing = self.failing_fields.intersection(values)
        if failing:
            raise StoreError(f"Store rejected write of {sorted(failing)}")


class InMemoryApartmentRepository(InMemoryRecordRepository):
    def link_unit(self, apartment_id: str, unit_id: str) -> None:
        values = self.records.get(apartment_id)
        if values is None:
            raise StoreError(f"No record {apartment_id}")
        linked = values.get(UNITS_FIELD)
        current = list(linked) if isinstance(linked, list) else []
        values[UNITS_FIELD] = [*current, unit_id]


class InMemoryUnitRepository(InMemoryRecordRepository):
    """Deleting a unit also drops it from apartment links, as the real stores do."""

    def __init__(
        self,
        fields: Iterable[FieldSpec],
        records: Iterable[StoredRecord] = (),
        *,
        apartments: InMemoryApartmentRepository,
    ) -> None:
        super().__init__(fields, records, id_prefix="unit")
        self._apartments = apartments

    def delete(self, record_id: str) -> None:
        super().delete(record_id)
        for values in self._apartments.records.values():
            linked = values.get(UNITS_FIELD)
            if isinstance(linked, list) and record_id in linked:
                values[UNITS_FIELD] = [item for item in linked if item != record_id]


class InMemorySubmissionRepository:
    def __init__(self, submissions: Iterable[FormSubmission] = ()) -> None:
        self.submissions = list(submissions)

    def list_for_campaign(self, campaign: str) -> tuple[FormSubmission, ...]:
        matching = (item for item in self.submissions if item.campaign == campaign)
        return tuple(sorted(matching, key=lambda item: item.submitted_at))

    def add(self, submission: FormSubmission) -> None:
        self.submissions.append(submission)


class InMemoryRejectMarkerRepository:
    def __init__(self, markers: Iterable[str] = ()) -> None:
        self.markers = list(markers)

    def add(self, marker: str) -> None:
        self.markers.append(marker)

    def list_markers(self) -> tuple[str, ...]:
        return tuple(self.markers)


class InMemoryUnitOfWork:
    """Writes apply immediately; commits are counted so tests can assert on them."""

    def __init__(self, repositories: ReviewRepositories) -> None:
        self._repositories = repositories
        self.commits = 0
        self.rollbacks = 0

    @property
    def repositories(self) -> ReviewRepositories:
        return self._repositories

    def __enter__(self) -> InMemoryUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


class InMemoryStore:
    """All four repositories plus a factory handing out one shared unit of work."""

    def __init__(
        self,
        *,
        apartments: Iterable[StoredRecord] = (),
        units: Iterable[StoredRecord] = (),
        submissions: Iterable[FormSubmission] = (),
        rejects: Iterable[str] = (),
        apartment_fields: Iterable[FieldSpec] = APARTMENT_FIELDS,
        unit_fields: Iterable[FieldSpec] = UNIT_FIELDS,
    ) -> None:
        self.apartments = InMemoryApartmentRepository(apartment_fields, apartments)
        self.units = InMemoryUnitRepository(unit_fields, units, apartments=self.apartments)
        self.submissions = InMemorySubmissionRepository(submissions)
        self.rejects = InMemoryRejectMarkerRepository(rejects)
        self.uow = InMemoryUnitOfWork(
            ReviewRepositories(
                apartments=self.apartments,
                units=self.units,
                submissions=self.submissions,
                rejects=self.rejects,
            )
        )

    def __call__(self) -> InMemoryUnitOfWork:
        return self.uow


def _as_field_values(values: Mapping[str, object]) -> dict[str, FieldValue]:
    return cast("dict[str, FieldValue]", dict(values))
