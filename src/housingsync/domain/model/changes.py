"""Change records produced by reconciliation.

Key composition is the durable contract with the persisted reject list. Keys
must stay byte-identical for identical logical edits across runs and releases:

- apartment field: ``{response}:{apartment}:-:{field}``
- unit field:      ``{response}:{apartment}:idx{position}:{field}``
- unit slot:       ``{response}:{apartment}:idx{position}`` (temp-id marker)
- deletion:        ``{response}:{apartment}:{unit_id}``, rejected as ``...:DELETE``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from .records import APARTMENT_NAME_FIELD, DISPLAY_ID_FIELD
from .values import as_text

if TYPE_CHECKING:
    from datetime import datetime

    from .fields import FieldSpec
    from .records import FlatUnitRecord, StoredRecord
    from .values import FieldValue

APARTMENT_SLOT: Final[str] = "-"
DELETE_SUFFIX: Final[str] = "DELETE"


def apartment_change_key(response_record_id: str, apartment_id: str, field_name: str) -> str:
    return f"{response_record_id}:{apartment_id}:{APARTMENT_SLOT}:{field_name}"


def unit_slot_key(response_record_id: str, apartment_id: str, position: int) -> str:
    return f"{response_record_id}:{apartment_id}:idx{position}"


def unit_change_key(
    response_record_id: str, apartment_id: str, position: int, field_name: str
) -> str:
    return f"{unit_slot_key(response_record_id, apartment_id, position)}:{field_name}"


def deletion_key(response_record_id: str, apartment_id: str, unit_id: str) -> str:
    return f"{response_record_id}:{apartment_id}:{unit_id}"


def deletion_reject_marker(key: str) -> str:
    return f"{key}:{DELETE_SUFFIX}"


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldChange:
    """One proposed edit: canonical stored string versus original proposed value."""

    field: FieldSpec
    existing: str
    updated: FieldValue
    key: str

    @property
    def field_name(self) -> str:
        return self.field.name


@dataclass(frozen=True, slots=True, kw_only=True)
class UnitChangeset:
    record: FlatUnitRecord
    changes: dict[str, FieldChange] = field(default_factory=dict[str, FieldChange])
    existing: StoredRecord | None = None

    @property
    def unit_id(self) -> str | None:
        return self.record.unit_id

    @property
    def is_new(self) -> bool:
        return self.record.unit_id is None

    @property
    def is_empty(self) -> bool:
        return not self.changes


@dataclass(frozen=True, slots=True, kw_only=True)
class PendingDeletion:
    unit_id: str
    key: str
    unit: StoredRecord | None = None

    @property
    def reject_marker(self) -> str:
        return deletion_reject_marker(self.key)


@dataclass(frozen=True, slots=True, kw_only=True)
class ApartmentChangeset:
    """Aggregate reconciliation result for one apartment."""

    apartment_id: str
    apartment: StoredRecord | None
    response_record_id: str
    submitted_at: datetime
    field_changes: dict[str, FieldChange] = field(default_factory=dict[str, FieldChange])
    units: tuple[UnitChangeset, ...] = ()
    pending_deletions: tuple[PendingDeletion, ...] = ()
    notes: str = ""
    submitted_by: str | None = None

    @property
    def changed_units(self) -> tuple[UnitChangeset, ...]:
        return tuple(unit for unit in self.units if not unit.is_empty)

    @property
    def is_empty(self) -> bool:
        return (
            not self.field_changes
            and not self.changed_units
            and not self.pending_deletions
            and not self.notes
        )

    @property
    def is_new_apartment(self) -> bool:
        return self.apartment is None

    @property
    def display_id(self) -> str | None:
        if self.apartment is None:
            return None
        return as_text(self.apartment.raw(DISPLAY_ID_FIELD)) or None

    @property
    def name(self) -> str | None:
        if self.apartment is None:
            return None
        return as_text(self.apartment.raw(APARTMENT_NAME_FIELD)) or None
