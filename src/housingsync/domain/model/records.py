"""Stored records, form submissions and flattened unit proposals."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from .values import as_text

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from .values import FieldValue

ID_FIELD: Final[str] = "ID"
UNITS_FIELD: Final[str] = "UNITS"
TEMP_ID_FIELD: Final[str] = "TEMP_ID"
DISPLAY_ID_FIELD: Final[str] = "DISPLAY_ID"
APARTMENT_NAME_FIELD: Final[str] = "APT_NAME"

# structural fields are maintained by the store or the review flow, never diffed
STRUCTURAL_FIELDS: Final[frozenset[str]] = frozenset({ID_FIELD, UNITS_FIELD, TEMP_ID_FIELD})

NOTES_FORM_FIELD: Final[str] = "userNotes"
SUBMITTER_FORM_FIELD: Final[str] = "user_name"


class TableName(StrEnum):
    APARTMENTS = "apartments"
    UNITS = "units"


@dataclass(frozen=True, slots=True, kw_only=True)
class StoredRecord:
    """One record read from the storage collaborator.

    ``values`` holds raw cell values; linked units of an apartment appear under
    ``UNITS`` as a list of unit IDs, or ``None`` when the store has no links.
    """

    record_id: str
    values: Mapping[str, FieldValue] = field(default_factory=dict[str, "FieldValue"])

    def raw(self, name: str) -> FieldValue:
        return self.values.get(name)

    @property
    def temp_id(self) -> str | None:
        value = as_text(self.raw(TEMP_ID_FIELD)).strip()
        return value or None

    @property
    def linked_unit_ids(self) -> tuple[str, ...]:
        """Linked unit IDs in stored order; a missing or null link is empty."""

        linked = self.raw(UNITS_FIELD)
        if linked is None:
            return ()
        if isinstance(linked, str):
            candidates = linked.split(",")
        elif isinstance(linked, list):
            candidates = [as_text(item) for item in linked]
        else:
            candidates = [as_text(linked)]
        ids: list[str] = []
        for candidate in candidates:
            unit_id = candidate.strip()
            if unit_id and unit_id not in ids:
                ids.append(unit_id)
        return tuple(ids)


@dataclass(frozen=True, slots=True, kw_only=True)
class FormSubmission:
    """One raw form response as received."""

    response_record_id: str
    campaign: str
    submitted_at: datetime
    apartment_id: str
    fields: Mapping[str, FieldValue]

    @property
    def notes(self) -> str:
        return as_text(self.fields.get(NOTES_FORM_FIELD)).strip()

    @property
    def submitted_by(self) -> str | None:
        return as_text(self.fields.get(SUBMITTER_FORM_FIELD)).strip() or None


@dataclass(frozen=True, slots=True, kw_only=True)
class FlatUnitRecord:
    """Proposed field set for one unit (unit-level fields merged with one offering)."""

    position: int
    unit_index: int
    offering_index: int | None
    values: Mapping[str, FieldValue]
    unit_id: str | None = None
    slot_key: str | None = None

    @property
    def explicit_id(self) -> str | None:
        return as_text(self.values.get(ID_FIELD)).strip() or None

    @property
    def is_new(self) -> bool:
        return self.unit_id is None
