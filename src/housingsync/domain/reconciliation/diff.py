"""Field-level diff stage.

For each editable field the proposal actually contains, the stored cell string
is compared with the proposed value using the field's normalization. A field
missing from the proposal is never considered; a field submitted as empty is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from housingsync.domain.model import (
    STRUCTURAL_FIELDS,
    FieldChange,
    apartment_change_key,
    unit_change_key,
)

from .field_kinds import cell_as_string, field_values_equal

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from housingsync.domain.model import FieldSpec, FieldValue, FlatUnitRecord, StoredRecord

    from .rejects import RejectList


def diff_fields(
    fields: Iterable[FieldSpec],
    proposed: Mapping[str, FieldValue],
    *,
    stored: StoredRecord | None,
    rejects: RejectList,
    key_for: Callable[[str], str],
) -> dict[str, FieldChange]:
    changes: dict[str, FieldChange] = {}
    for field in fields:
        if not field.editable or field.name in STRUCTURAL_FIELDS or field.name not in proposed:
            continue
        existing = cell_as_string(stored, field)
        key = key_for(field.name)
        updated = proposed[field.name]
        compared = rejects.suppress(key, existing=existing, proposed=updated)
        if field_values_equal(field, existing, compared):
            continue
        changes[field.name] = FieldChange(field=field, existing=existing, updated=updated, key=key)
    return changes


def diff_apartment(
    fields: Iterable[FieldSpec],
    proposed: Mapping[str, FieldValue],
    *,
    response_record_id: str,
    apartment_id: str,
    stored: StoredRecord | None,
    rejects: RejectList,
) -> dict[str, FieldChange]:
    return diff_fields(
        fields,
        proposed,
        stored=stored,
        rejects=rejects,
        key_for=lambda name: apartment_change_key(response_record_id, apartment_id, name),
    )


def diff_unit(
    fields: Iterable[FieldSpec],
    record: FlatUnitRecord,
    *,
    response_record_id: str,
    apartment_id: str,
    stored: StoredRecord | None,
    rejects: RejectList,
) -> dict[str, FieldChange]:
    return diff_fields(
        fields,
        record.values,
        stored=stored,
        rejects=rejects,
        key_for=lambda name: unit_change_key(
            response_record_id, apartment_id, record.position, name
        ),
    )
