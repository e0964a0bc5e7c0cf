"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import json
import uuid
from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from housingsync.adapters.form_response import parse_form_response
from housingsync.adapters.sqlalchemy.tables import (
    field_definition_table,
    form_response_table,
    housing_record_table,
    rejected_change_table,
)
from housingsync.domain.model import (
    ID_FIELD,
    STRUCTURAL_FIELDS,
    UNITS_FIELD,
    FieldSpec,
    FieldType,
    StoredRecord,
    TableName,
)
from housingsync.domain.ports import StoreError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from sqlalchemy import Row, Select
    from sqlalchemy.orm import Session

    from housingsync.domain.model import FieldValue, FormSubmission

log = getLogger(__name__)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreError(f"{action} failed: {exc}") from exc


def _field_spec(row: Row[Any]) -> FieldSpec:
    choices = cast("list[str] | None", row.choices) or []
    return FieldSpec(
        name=row.name,
        type=FieldType.parse(row.type),
        precision=row.precision,
        choices=tuple(choices),
        editable=bool(row.editable) and row.name not in STRUCTURAL_FIELDS,
    )


def _stored_values(values: Mapping[str, object]) -> dict[str, object]:
    return {name: value for name, value in values.items() if name not in {ID_FIELD, UNITS_FIELD}}


class SqlAlchemyRecordRepository:
    """Records of one logical table stored as JSON rows in ``housing_record``."""

    def __init__(self, session: Session, table_name: TableName) -> None:
        self.session = session
        self.table_name = table_name

    def fields(self) -> tuple[FieldSpec, ...]:
        table = field_definition_table
        stmt = (
            select(table)
            .where(table.c.table_name == self.table_name)
            .order_by(table.c.position, table.c.id)
        )
        with _store_errors(f"Reading {self.table_name} fields"):
            rows = self.session.execute(stmt).all()
        return tuple(_field_spec(row) for row in rows)

    def add_field(self, spec: FieldSpec) -> None:
        """Declare a field; used when seeding a local store."""

        table = field_definition_table
        with _store_errors(f"Declaring {self.table_name} field {spec.name}"):
            position = self.session.execute(
                select(func.count())
                .select_from(table)
                .where(table.c.table_name == self.table_name)
            ).scalar_one()
            self.session.execute(
                insert(table).values(
                    table_name=self.table_name,
                    name=spec.name,
                    type=spec.type.value,
                    precision=spec.precision,
                    choices=list(spec.choices) or None,
                    editable=spec.editable,
                    position=position,
                )
            )

    def list_records(self) -> tuple[StoredRecord, ...]:
        with _store_errors(f"Listing {self.table_name}"):
            rows = self.session.execute(self._select()).all()
        return tuple(self._to_record(row) for row in rows)

    def get(self, record_id: str) -> StoredRecord | None:
        row = self._row(record_id)
        return None if row is None else self._to_record(row)

    def find_by_temp_id(self, temp_id: str) -> StoredRecord | None:
        for record in self.list_records():
            if record.temp_id == temp_id:
                return record
        return None

    def update(self, record_id: str, values: Mapping[str, object]) -> None:
        row = self._row(record_id)
        if row is None:
            raise StoreError(f"No {self.table_name} record {record_id}")
        data = {**cast("dict[str, object]", row.data), **_stored_values(values)}
        with _store_errors(f"Updating {self.table_name} record {record_id}"):
            self.session.execute(
                update(housing_record_table)
                .where(housing_record_table.c.id == row.id)
                .values(data=data)
            )

    def create(
        self, values: Mapping[str, object], *, record_id: str | None = None
    ) -> StoredRecord:
        new_id = record_id or uuid.uuid4().hex
        if self._row(new_id) is not None:
            raise StoreError(f"{self.table_name} record {new_id} already exists")
        with _store_errors(f"Creating {self.table_name} record {new_id}"):
            self.session.execute(
                insert(housing_record_table).values(
                    table_name=self.table_name,
                    record_id=new_id,
                    data=_stored_values(values),
                )
            )
        created = self.get(new_id)
        if created is None:
            raise StoreError(f"{self.table_name} record {new_id} was not stored")
        return created

    def delete(self, record_id: str) -> None:
        table = housing_record_table
        with _store_errors(f"Deleting {self.table_name} record {record_id}"):
            result = self.session.execute(
                delete(table)
                .where(table.c.table_name == self.table_name)
                .where(table.c.record_id == record_id)
            )
        if not result.rowcount:
            raise StoreError(f"No {self.table_name} record {record_id}")

    def _select(self) -> Select[Any]:
        table = housing_record_table
        return select(table).where(table.c.table_name == self.table_name).order_by(table.c.id)

    def _row(self, record_id: str) -> Row[Any] | None:
        stmt = self._select().where(housing_record_table.c.record_id == record_id)
        with _store_errors(f"Reading {self.table_name} record {record_id}"):
            return self.session.execute(stmt).first()

    def _to_record(self, row: Row[Any]) -> StoredRecord:
        values: dict[str, FieldValue] = dict(cast("dict[str, FieldValue]", row.data))
        values[ID_FIELD] = row.record_id
        return StoredRecord(record_id=row.record_id, values=values)


class SqlAlchemyApartmentRepository(SqlAlchemyRecordRepository):
    """Apartments; ``UNITS`` is derived from the units pointing at each apartment."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, TableName.APARTMENTS)

    def link_unit(self, apartment_id: str, unit_id: str) -> None:
        if self._row(apartment_id) is None:
            raise StoreError(f"No {self.table_name} record {apartment_id}")
        table = housing_record_table
        with _store_errors(f"Linking unit {unit_id} to {apartment_id}"):
            result = self.session.execute(
                update(table)
                .where(table.c.table_name == TableName.UNITS)
                .where(table.c.record_id == unit_id)
                .values(apartment_id=apartment_id)
            )
        if not result.rowcount:
            raise StoreError(f"No {TableName.UNITS} record {unit_id}")

    def _to_record(self, row: Row[Any]) -> StoredRecord:
        record = super()._to_record(row)
        table = housing_record_table
        stmt = (
            select(table.c.record_id)
            .where(table.c.table_name == TableName.UNITS)
            .where(table.c.apartment_id == row.record_id)
            .order_by(table.c.id)
        )
        with _store_errors(f"Reading units of {row.record_id}"):
            linked = list(self.session.execute(stmt).scalars())
        values = dict(record.values)
        values[UNITS_FIELD] = cast("list[FieldValue]", linked) or None
        return StoredRecord(record_id=record.record_id, values=values)


class SqlAlchemyUnitRepository(SqlAlchemyRecordRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, TableName.UNITS)


class SqlAlchemySubmissionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_campaign(self, campaign: str) -> tuple[FormSubmission, ...]:
        table = form_response_table
        stmt = (
            select(table)
            .where(table.c.campaign == campaign)
            .order_by(table.c.submitted_at, table.c.record_id)
        )
        with _store_errors(f"Listing responses for {campaign}"):
            rows = self.session.execute(stmt).all()
        submissions: list[FormSubmission] = []
        for row in rows:
            submission = parse_form_response(
                response_record_id=row.record_id,
                campaign=row.campaign,
                submitted_at=row.submitted_at,
                payload=row.payload,
            )
            if submission is not None:
                submissions.append(submission)
        return tuple(submissions)

    def add(self, submission: FormSubmission) -> None:
        with _store_errors(f"Storing response {submission.response_record_id}"):
            self.session.execute(
                insert(form_response_table).values(
                    record_id=submission.response_record_id,
                    campaign=submission.campaign,
                    submitted_at=submission.submitted_at,
                    payload=json.dumps(dict(submission.fields)),
                )
            )


class SqlAlchemyRejectMarkerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, marker: str) -> None:
        table = rejected_change_table
        with _store_errors(f"Storing reject marker {marker}"):
            exists = self.session.execute(
                select(table.c.id).where(table.c.marker == marker)
            ).first()
            if exists is not None:
                log.debug("Reject marker %s already stored", marker)
                return
            self.session.execute(insert(table).values(marker=marker))

    def list_markers(self) -> tuple[str, ...]:
        table = rejected_change_table
        with _store_errors("Listing reject markers"):
            markers = self.session.execute(select(table.c.marker).order_by(table.c.id))
            return tuple(markers.scalars())
