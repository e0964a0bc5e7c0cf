"""Form unflattening stage.

The housing update form is flat: repeated unit and offering sections are encoded
into the field name as ``name:unit`` or ``name:unit:offering``. This stage nests
those values back under their apartment, unit slot and offering slot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

    from housingsync.domain.model import FieldValue

KEY_SEPARATOR: Final[str] = ":"
log = logging.getLogger(__name__)


@dataclass(slots=True)
class UnitSlot:
    """Unit-level values plus offering slots of one repeated unit section."""

    fields: dict[str, FieldValue] = field(default_factory=dict[str, "FieldValue"])
    offerings: dict[int, dict[str, FieldValue]] = field(
        default_factory=dict[int, dict[str, "FieldValue"]]
    )


@dataclass(slots=True)
class NestedSubmission:
    apartment: dict[str, FieldValue] = field(default_factory=dict[str, "FieldValue"])
    units: dict[int, UnitSlot] = field(default_factory=dict[int, UnitSlot])


@dataclass(frozen=True, slots=True)
class EncodedKey:
    field_name: str
    unit_index: int | None = None
    offering_index: int | None = None


def parse_encoded_key(key: str) -> EncodedKey | None:
    """Split an encoded form key; ``None`` when the key does not parse."""

    parts = key.split(KEY_SEPARATOR)
    if len(parts) > 3 or not parts[0]:
        return None
    indices: list[int] = []
    for part in parts[1:]:
        if not (part.isascii() and part.isdigit()):
            return None
        indices.append(int(part))
    return EncodedKey(parts[0], *indices)


def unflatten_submission(fields: Mapping[str, FieldValue]) -> NestedSubmission:
    """Nest flat form fields into apartment, unit and offering slots.

    Slots are created lazily in the order their index is first seen. Keys that
    do not parse are dropped with a warning.
    """

    nested = NestedSubmission()
    for key, value in fields.items():
        parsed = parse_encoded_key(key)
        if parsed is None:
            log.warning("Skipping malformed form field key %r", key)
            continue
        if parsed.unit_index is None:
            nested.apartment[parsed.field_name] = value
            continue
        slot = nested.units.setdefault(parsed.unit_index, UnitSlot())
        if parsed.offering_index is None:
            slot.fields[parsed.field_name] = value
        else:
            offering = slot.offerings.setdefault(parsed.offering_index, {})
            offering[parsed.field_name] = value
    return nested
