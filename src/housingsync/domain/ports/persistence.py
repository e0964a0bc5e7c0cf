"""Ports for the storage collaborator holding apartments, units and responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from housingsync.domain.model import FieldSpec, FormSubmission, StoredRecord


class StoreError(RuntimeError):
    """Raised when a round trip to the storage collaborator fails."""


@runtime_checkable
class RecordRepository(Protocol):
    """Keyed access to one table of typed records (apartments or units)."""

    def fields(self) -> tuple[FieldSpec, ...]: ...

    def list_records(self) -> tuple[StoredRecord, ...]: ...

    def get(self, record_id: str) -> StoredRecord | None: ...

    def find_by_temp_id(self, temp_id: str) -> StoredRecord | None: ...

    def update(self, record_id: str, values: Mapping[str, object]) -> None: ...

    def create(
        self, values: Mapping[str, object], *, record_id: str | None = None
    ) -> StoredRecord: ...

    def delete(self, record_id: str) -> None: ...


@runtime_checkable
class ApartmentRepository(RecordRepository, Protocol):
    """Apartment table; owns the link from apartments to their units."""

    def link_unit(self, apartment_id: str, unit_id: str) -> None: ...


@runtime_checkable
class SubmissionRepository(Protocol):
    """Form response history."""

    def list_for_campaign(self, campaign: str) -> tuple[FormSubmission, ...]:
        """Return the campaign's submissions sorted by submission time ascending."""
        ...

    def add(self, submission: FormSubmission) -> None: ...


@runtime_checkable
class RejectMarkerRepository(Protocol):
    """Append-only list of opaque reject markers."""

    def add(self, marker: str) -> None: ...

    def list_markers(self) -> tuple[str, ...]: ...
