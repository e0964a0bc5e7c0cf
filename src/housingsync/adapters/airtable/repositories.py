"""Repository implementations backed by an Airtable base.

Records are addressed by their ``ID`` field, not by Airtable's own record ids.
Linked records (``UNITS``) come back from the API as Airtable record ids and
are translated to unit ``ID`` values on the way in and out.
"""

from __future__ import annotations

import json
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final, cast

from pydantic import TypeAdapter, ValidationError

from housingsync.adapters.form_response import parse_form_response
from housingsync.domain.model import ID_FIELD, UNITS_FIELD, StoredRecord, as_text

from .client import AirtableAPIError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from housingsync.domain.model import FieldSpec, FieldValue, FormSubmission

    from .client import AirtableClient
    from .schema import RecordPayload

log = getLogger(__name__)

RESPONSE_JSON_FIELD: Final[str] = "FORM_RESPONSE_JSON"
CAMPAIGN_FIELD: Final[str] = "CAMPAIGN"
SUBMITTED_AT_FIELD: Final[str] = "DATETIME_ADDED"
REJECT_KEY_FIELD: Final[str] = "KEY"

_DATETIME: Final = TypeAdapter(datetime)


def _domain_id(payload: RecordPayload) -> str:
    return as_text(payload.fields.get(ID_FIELD)).strip() or payload.id


class AirtableRecordRepository:
    """One Airtable table of records keyed by their ``ID`` field."""

    def __init__(self, client: AirtableClient, table: str) -> None:
        self.client = client
        self.table = table
        self._records: list[RecordPayload] | None = None

    def fields(self) -> tuple[FieldSpec, ...]:
        for table in self.client.list_tables():
            if self.table in {table.id, table.name}:
                return tuple(field.to_field_spec() for field in table.fields)
        raise AirtableAPIError(f"Airtable table {self.table!r} not found in base")

    def list_records(self) -> tuple[StoredRecord, ...]:
        return tuple(self._to_record(payload) for payload in self._payloads())

    def get(self, record_id: str) -> StoredRecord | None:
        payload = self._payload(record_id)
        return None if payload is None else self._to_record(payload)

    def find_by_temp_id(self, temp_id: str) -> StoredRecord | None:
        for record in self.list_records():
            if record.temp_id == temp_id:
                return record
        return None

    def update(self, record_id: str, values: Mapping[str, object]) -> None:
        airtable_id = self.airtable_id(record_id)
        self.client.update_record(self.table, airtable_id, self._outgoing(values))
        self._records = None

    def create(
        self, values: Mapping[str, object], *, record_id: str | None = None
    ) -> StoredRecord:
        outgoing = self._outgoing(values)
        if record_id is not None:
            outgoing[ID_FIELD] = record_id
        payload = self.client.create_record(self.table, outgoing)
        self._records = None
        return self._to_record(payload)

    def delete(self, record_id: str) -> None:
        self.client.delete_record(self.table, self.airtable_id(record_id))
        self._records = None

    def airtable_id(self, record_id: str) -> str:
        payload = self._payload(record_id)
        if payload is None:
            raise AirtableAPIError(f"No record with ID {record_id} in {self.table}")
        return payload.id

    def domain_ids_by_airtable_id(self) -> dict[str, str]:
        return {payload.id: _domain_id(payload) for payload in self._payloads()}

    def _payloads(self) -> list[RecordPayload]:
        if self._records is None:
            self._records = self.client.list_records(self.table)
        return self._records

    def _payload(self, record_id: str) -> RecordPayload | None:
        for payload in self._payloads():
            if _domain_id(payload) == record_id:
                return payload
        return None

    def _outgoing(self, values: Mapping[str, object]) -> dict[str, object]:
        return {
            name: value for name, value in values.items() if name not in {ID_FIELD, UNITS_FIELD}
        }

    def _to_record(self, payload: RecordPayload) -> StoredRecord:
        values = cast("dict[str, FieldValue]", dict(payload.fields))
        return StoredRecord(record_id=_domain_id(payload), values=values)


class AirtableApartmentRepository(AirtableRecordRepository):
    def __init__(
        self, client: AirtableClient, table: str, units: AirtableRecordRepository
    ) -> None:
        super().__init__(client, table)
        self.units = units

    def link_unit(self, apartment_id: str, unit_id: str) -> None:
        payload = self._payload(apartment_id)
        if payload is None:
            raise AirtableAPIError(f"No record with ID {apartment_id} in {self.table}")
        linked = [str(item) for item in payload.fields.get(UNITS_FIELD) or []]
        unit_airtable_id = self.units.airtable_id(unit_id)
        if unit_airtable_id in linked:
            return
        self.client.update_record(
            self.table, payload.id, {UNITS_FIELD: [*linked, unit_airtable_id]}
        )
        self._records = None

    def _to_record(self, payload: RecordPayload) -> StoredRecord:
        record = super()._to_record(payload)
        linked = payload.fields.get(UNITS_FIELD)
        if not linked:
            return record
        unit_ids = self.units.domain_ids_by_airtable_id()
        values = dict(record.values)
        values[UNITS_FIELD] = [unit_ids.get(str(item), str(item)) for item in linked]
        return StoredRecord(record_id=record.record_id, values=values)


def _campaign_formula(campaign: str) -> str:
    quoted = campaign.replace("\\", "\\\\").replace("'", "\\'")
    return f"TRIM({{{CAMPAIGN_FIELD}}}) = '{quoted}'"


class AirtableSubmissionRepository:
    """Form responses; the payload is a JSON string in ``FORM_RESPONSE_JSON``."""

    def __init__(self, client: AirtableClient, table: str) -> None:
        self.client = client
        self.table = table

    def list_for_campaign(self, campaign: str) -> tuple[FormSubmission, ...]:
        payloads = self.client.list_records(
            self.table, sort_field=SUBMITTED_AT_FIELD, formula=_campaign_formula(campaign)
        )
        submissions: list[FormSubmission] = []
        for payload in payloads:
            if as_text(payload.fields.get(CAMPAIGN_FIELD)).strip() != campaign:
                continue
            submitted_at = self._submitted_at(payload)
            if submitted_at is None:
                log.warning("Skipping response %s: no submission time", payload.id)
                continue
            submission = parse_form_response(
                response_record_id=payload.id,
                campaign=campaign,
                submitted_at=submitted_at,
                payload=cast("str | None", payload.fields.get(RESPONSE_JSON_FIELD)),
            )
            if submission is not None:
                submissions.append(submission)
        return tuple(sorted(submissions, key=lambda submission: submission.submitted_at))

    def add(self, submission: FormSubmission) -> None:
        self.client.create_record(
            self.table,
            {
                RESPONSE_JSON_FIELD: json.dumps(dict(submission.fields)),
                CAMPAIGN_FIELD: submission.campaign,
            },
        )

    def _submitted_at(self, payload: RecordPayload) -> datetime | None:
        raw: Any = payload.fields.get(SUBMITTED_AT_FIELD)
        if raw:
            try:
                return _DATETIME.validate_python(raw)
            except ValidationError:
                log.warning("Response %s has an unreadable %s", payload.id, SUBMITTED_AT_FIELD)
        return payload.created_time


class AirtableRejectMarkerRepository:
    def __init__(self, client: AirtableClient, table: str) -> None:
        self.client = client
        self.table = table

    def add(self, marker: str) -> None:
        self.client.create_record(self.table, {REJECT_KEY_FIELD: marker})

    def list_markers(self) -> tuple[str, ...]:
        markers = (
            as_text(payload.fields.get(REJECT_KEY_FIELD)).strip()
            for payload in self.client.list_records(self.table)
        )
        return tuple(marker for marker in markers if marker)
