"""Public interface for the Airtable adapter."""

from __future__ import annotations

from .client import AirtableAPIError, AirtableClient
from .repositories import (
    AirtableApartmentRepository,
    AirtableRecordRepository,
    AirtableRejectMarkerRepository,
    AirtableSubmissionRepository,
)
from .schema import FieldPayload, ListRecordsResponse, RecordPayload, TablePayload
from .unit_of_work import AirtableUnitOfWork

__all__ = [
    "AirtableAPIError",
    "AirtableApartmentRepository",
    "AirtableClient",
    "AirtableRecordRepository",
    "AirtableRejectMarkerRepository",
    "AirtableSubmissionRepository",
    "AirtableUnitOfWork",
    "FieldPayload",
    "ListRecordsResponse",
    "RecordPayload",
    "TablePayload",
]
