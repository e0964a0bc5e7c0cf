"""Domain model for housing update reconciliation."""

from __future__ import annotations

from .changes import (
    ApartmentChangeset,
    FieldChange,
    PendingDeletion,
    UnitChangeset,
    apartment_change_key,
    deletion_key,
    deletion_reject_marker,
    unit_change_key,
    unit_slot_key,
)
from .fields import FieldConversionError, FieldSpec, FieldType
from .records import (
    APARTMENT_NAME_FIELD,
    DISPLAY_ID_FIELD,
    ID_FIELD,
    NOTES_FORM_FIELD,
    STRUCTURAL_FIELDS,
    SUBMITTER_FORM_FIELD,
    TEMP_ID_FIELD,
    UNITS_FIELD,
    FlatUnitRecord,
    FormSubmission,
    StoredRecord,
    TableName,
)
from .values import FieldValue, as_text, is_empty_record, is_empty_value

__all__ = [
    "APARTMENT_NAME_FIELD",
    "DISPLAY_ID_FIELD",
    "ID_FIELD",
    "NOTES_FORM_FIELD",
    "STRUCTURAL_FIELDS",
    "SUBMITTER_FORM_FIELD",
    "TEMP_ID_FIELD",
    "UNITS_FIELD",
    "ApartmentChangeset",
    "FieldChange",
    "FieldConversionError",
    "FieldSpec",
    "FieldType",
    "FieldValue",
    "FlatUnitRecord",
    "FormSubmission",
    "PendingDeletion",
    "StoredRecord",
    "TableName",
    "UnitChangeset",
    "apartment_change_key",
    "as_text",
    "deletion_key",
    "deletion_reject_marker",
    "is_empty_record",
    "is_empty_value",
    "unit_change_key",
    "unit_slot_key",
]
