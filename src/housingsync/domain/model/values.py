"""Value model for form and stored field values."""

from __future__ import annotations

import json
from collections.abc import Mapping

type FieldValue = str | int | float | bool | None | list[FieldValue] | dict[str, FieldValue]


def is_empty_value(value: object) -> bool:
    """Return whether ``value`` counts as empty.

    ``None``, ``""``, ``0`` and ``False`` are empty. A list or mapping is empty iff
    every member is empty, so ``[]`` and ``{"a": ""}`` are both empty.
    """

    if isinstance(value, Mapping):
        return all(is_empty_value(member) for member in value.values())  # pyright: ignore[reportUnknownVariableType, reportUnknownMemberType]
    if isinstance(value, list | tuple):
        return all(is_empty_value(member) for member in value)  # pyright: ignore[reportUnknownVariableType]
    if isinstance(value, str):
        return value == ""
    if value is None:
        return True
    if isinstance(value, bool | int | float):
        return not value
    return False


def is_empty_record(values: Mapping[str, object]) -> bool:
    return all(is_empty_value(value) for value in values.values())


def as_text(value: object) -> str:
    """Render any value of the value model as plain text."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, list | tuple):
        return ", ".join(as_text(member) for member in value)  # pyright: ignore[reportUnknownVariableType]
    if isinstance(value, Mapping):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)
