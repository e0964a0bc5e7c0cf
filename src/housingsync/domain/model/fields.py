"""Field metadata declared by the storage collaborator."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum


class FieldType(StrEnum):
    CHECKBOX = "checkbox"
    PHONE_NUMBER = "phoneNumber"
    NUMBER = "number"
    MULTIPLE_SELECTS = "multipleSelects"
    SINGLE_LINE_TEXT = "singleLineText"
    MULTILINE_TEXT = "multilineText"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> FieldType:
        """Map a storage type name onto the closed enumeration (unknown -> OTHER)."""

        if value is None:
            return cls.OTHER
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldSpec:
    """One declared field of an apartment or unit table."""

    name: str
    type: FieldType = FieldType.OTHER
    precision: int | None = None
    choices: tuple[str, ...] = ()
    editable: bool = True

    @property
    def decimal_places(self) -> int:
        return self.precision or 0


class FieldConversionError(ValueError):
    """Raised when a proposed value cannot be stored in its target field."""

    def __init__(self, value: object, field: FieldSpec) -> None:
        super().__init__(
            f"Error converting {json.dumps(value, default=str)} for storage in {field.name}"
        )
        self.value = value
        self.field_name = field.name
