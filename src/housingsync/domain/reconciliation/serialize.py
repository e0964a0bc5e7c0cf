"""JSON-ready views of changesets for the presentation layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .field_kinds import format_field_value, normalize_field_value

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from housingsync.domain.model import (
        ApartmentChangeset,
        FieldChange,
        PendingDeletion,
        UnitChangeset,
    )


def field_change_to_dict(change: FieldChange) -> dict[str, Any]:
    return {
        "key": change.key,
        "field": change.field_name,
        "type": str(change.field.type),
        "existing": change.existing,
        "updated": change.updated,
        "existing_normalized": normalize_field_value(change.field, change.existing),
        "updated_normalized": normalize_field_value(change.field, change.updated),
        "existing_display": format_field_value(change.field, change.existing),
        "updated_display": format_field_value(change.field, change.updated),
    }


def _changes_to_list(changes: Mapping[str, FieldChange]) -> list[dict[str, Any]]:
    return [field_change_to_dict(change) for change in changes.values()]


def unit_changeset_to_dict(unit: UnitChangeset) -> dict[str, Any]:
    return {
        "slot_key": unit.record.slot_key,
        "position": unit.record.position,
        "unit_id": unit.unit_id,
        "is_new": unit.is_new,
        "changes": _changes_to_list(unit.changes),
    }


def deletion_to_dict(deletion: PendingDeletion) -> dict[str, Any]:
    return {
        "key": deletion.key,
        "unit_id": deletion.unit_id,
        "reject_marker": deletion.reject_marker,
    }


def changeset_to_dict(changeset: ApartmentChangeset) -> dict[str, Any]:
    """Deterministic view: identical inputs always produce equal dictionaries."""

    return {
        "apartment_id": changeset.apartment_id,
        "display_id": changeset.display_id,
        "name": changeset.name,
        "is_new_apartment": changeset.is_new_apartment,
        "response_record_id": changeset.response_record_id,
        "submitted_at": changeset.submitted_at.isoformat(),
        "submitted_by": changeset.submitted_by,
        "notes": changeset.notes,
        "fields": _changes_to_list(changeset.field_changes),
        "units": [unit_changeset_to_dict(unit) for unit in changeset.changed_units],
        "deletions": [deletion_to_dict(deletion) for deletion in changeset.pending_deletions],
    }


def changesets_to_dicts(changesets: Iterable[ApartmentChangeset]) -> list[dict[str, Any]]:
    return [changeset_to_dict(changeset) for changeset in changesets]
