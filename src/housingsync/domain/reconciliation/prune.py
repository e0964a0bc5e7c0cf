"""Slot pruning and unit flattening stage.

The form offers more unit and offering sections than most apartments fill in.
Empty sections are removed, then every surviving offering becomes its own
unit record, matching how the store keeps one record per rent offering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from housingsync.domain.model import FlatUnitRecord, is_empty_record

if TYPE_CHECKING:
    from .unflatten import NestedSubmission, UnitSlot


def _slot_is_empty(slot: UnitSlot) -> bool:
    return is_empty_record(slot.fields) and all(
        is_empty_record(offering) for offering in slot.offerings.values()
    )


def prune_slots(nested: NestedSubmission) -> NestedSubmission:
    """Drop empty offerings, then unit slots left without any data (in place)."""

    for unit_index in list(nested.units):
        slot = nested.units[unit_index]
        for offering_index in list(slot.offerings):
            if is_empty_record(slot.offerings[offering_index]):
                del slot.offerings[offering_index]
        if _slot_is_empty(slot):
            del nested.units[unit_index]
    return nested


def flatten_units(nested: NestedSubmission) -> tuple[FlatUnitRecord, ...]:
    """Emit one record per unit slot without offerings, or one per offering.

    Offering values win over unit-level values on key collision.
    """

    records: list[FlatUnitRecord] = []
    for unit_index, slot in nested.units.items():
        if not slot.offerings:
            records.append(
                FlatUnitRecord(
                    position=len(records),
                    unit_index=unit_index,
                    offering_index=None,
                    values=dict(slot.fields),
                )
            )
            continue
        for offering_index, offering in slot.offerings.items():
            records.append(
                FlatUnitRecord(
                    position=len(records),
                    unit_index=unit_index,
                    offering_index=offering_index,
                    values={**slot.fields, **offering},
                )
            )
    return tuple(records)
