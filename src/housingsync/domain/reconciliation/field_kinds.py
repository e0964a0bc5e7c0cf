"""Type-aware comparison, display and conversion of field values.

Every field type is one ``FieldKind`` entry in ``FIELD_KINDS``. Each kind knows
how to:

- ``normalize`` a value for equality checks (idempotent, always stripped)
- ``display`` a value for a reviewer
- ``render_cell`` a raw stored value as its canonical cell string
- ``convert`` a proposed value into the store's native value (``None`` = failed)

The comparator is not a function of two values alone: numeric precision and
select choices come from the ``FieldSpec``, which is passed to every call.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import MAX_PREC, ROUND_HALF_UP, Context, Decimal
from typing import TYPE_CHECKING, Final

from housingsync.domain.model import (
    FieldConversionError,
    FieldType,
    as_text,
    is_empty_value,
)

if TYPE_CHECKING:
    from housingsync.domain.model import FieldSpec, FieldValue, StoredRecord

type Normalizer = Callable[[FieldSpec, object], str]
type Converter = Callable[[FieldSpec, object], object | None]

_PHONE_NOISE: Final = re.compile(r"[\s\-()]")
_NON_DIGITS: Final = re.compile(r"\D")
_WHITESPACE_RUN: Final = re.compile(r"\s+")
_SELECT_SEPARATOR: Final[str] = ", "
_FALSY_WORDS: Final[frozenset[str]] = frozenset({"", "false", "0", "no", "off", "unchecked"})
_ROUNDING: Final = Context(prec=MAX_PREC, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class FieldKind:
    normalize: Normalizer
    display: Normalizer
    render_cell: Normalizer
    convert: Converter


def _is_truthy(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() not in _FALSY_WORDS
    return not is_empty_value(value)


def _parse_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    else:
        try:
            number = float(as_text(value).strip())
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def _quantized(number: float, field: FieldSpec) -> Decimal:
    # ties round away from zero, on the exact binary value of the float
    return Decimal(number).quantize(Decimal(1).scaleb(-field.decimal_places), context=_ROUNDING)


def _fixed(number: float, field: FieldSpec) -> str:
    return f"{_quantized(number, field):f}"


def _select_items(value: object) -> list[str]:
    if isinstance(value, list | tuple):
        items = [as_text(item) for item in value]  # pyright: ignore[reportUnknownVariableType]
    else:
        items = as_text(value).split(_SELECT_SEPARATOR)
    return [item.strip() for item in items]


# checkbox ---------------------------------------------------------------------


def _normalize_checkbox(_field: FieldSpec, value: object) -> str:
    return "checked" if _is_truthy(value) else "unchecked"


def _display_checkbox(_field: FieldSpec, value: object) -> str:
    return "yes" if _is_truthy(value) else "no"


def _render_checkbox(_field: FieldSpec, value: object) -> str:
    return "checked" if _is_truthy(value) else ""


def _convert_checkbox(_field: FieldSpec, value: object) -> object | None:
    return _is_truthy(value)


# phone number -----------------------------------------------------------------


def _normalize_phone(_field: FieldSpec, value: object) -> str:
    return _PHONE_NOISE.sub("", as_text(value)).strip()


def _display_phone(_field: FieldSpec, value: object) -> str:
    text = as_text(value)
    digits = _NON_DIGITS.sub("", text)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return text


def _convert_phone(_field: FieldSpec, value: object) -> object | None:
    return as_text(value).strip() or None


# number -----------------------------------------------------------------------


def _normalize_number(field: FieldSpec, value: object) -> str:
    number = _parse_number(value)
    if number is None:
        return as_text(value).strip()
    return _fixed(number, field)


def _render_number(field: FieldSpec, value: object) -> str:
    if value is None or value == "":
        return ""
    return _normalize_number(field, value)


def _convert_number(field: FieldSpec, value: object) -> object | None:
    number = _parse_number(value)
    if number is None:
        return None
    quantized = _quantized(number, field)
    if field.decimal_places == 0:
        return int(quantized)
    return float(quantized)


# multiple selects -------------------------------------------------------------


def _normalize_selects(_field: FieldSpec, value: object) -> str:
    return _SELECT_SEPARATOR.join(sorted(_select_items(value))).strip()


def _render_selects(_field: FieldSpec, value: object) -> str:
    return _SELECT_SEPARATOR.join(item for item in _select_items(value) if item)


def _convert_selects(field: FieldSpec, value: object) -> object | None:
    items = [item for item in _select_items(value) if item]
    if field.choices and any(item not in field.choices for item in items):
        return None
    return items


# text -------------------------------------------------------------------------


def _normalize_text(_field: FieldSpec, value: object) -> str:
    return _WHITESPACE_RUN.sub(" ", as_text(value)).strip()


def _display_text(_field: FieldSpec, value: object) -> str:
    return as_text(value).replace("\r", "").replace("\n", "<br/>")


def _convert_text(_field: FieldSpec, value: object) -> object | None:
    return as_text(value)


# fallback ---------------------------------------------------------------------


def _normalize_raw(_field: FieldSpec, value: object) -> str:
    return as_text(value).strip()


def _display_raw(_field: FieldSpec, value: object) -> str:
    return as_text(value)


def _convert_raw(_field: FieldSpec, value: object) -> object | None:
    return as_text(value) or None


_TEXT_KIND: Final = FieldKind(
    normalize=_normalize_text,
    display=_display_text,
    render_cell=_display_raw,
    convert=_convert_text,
)

FIELD_KINDS: Final[Mapping[FieldType, FieldKind]] = {
    FieldType.CHECKBOX: FieldKind(
        normalize=_normalize_checkbox,
        display=_display_checkbox,
        render_cell=_render_checkbox,
        convert=_convert_checkbox,
    ),
    FieldType.PHONE_NUMBER: FieldKind(
        normalize=_normalize_phone,
        display=_display_phone,
        render_cell=_display_raw,
        convert=_convert_phone,
    ),
    FieldType.NUMBER: FieldKind(
        normalize=_normalize_number,
        display=_normalize_number,
        render_cell=_render_number,
        convert=_convert_number,
    ),
    FieldType.MULTIPLE_SELECTS: FieldKind(
        normalize=_normalize_selects,
        display=_normalize_selects,
        render_cell=_render_selects,
        convert=_convert_selects,
    ),
    FieldType.SINGLE_LINE_TEXT: _TEXT_KIND,
    FieldType.MULTILINE_TEXT: _TEXT_KIND,
    FieldType.OTHER: FieldKind(
        normalize=_normalize_raw,
        display=_display_raw,
        render_cell=_display_raw,
        convert=_convert_raw,
    ),
}


def field_kind(field: FieldSpec) -> FieldKind:
    return FIELD_KINDS.get(field.type, FIELD_KINDS[FieldType.OTHER])


def normalize_field_value(field: FieldSpec, value: FieldValue) -> str:
    return field_kind(field).normalize(field, value)


def field_values_equal(field: FieldSpec, existing: FieldValue, updated: FieldValue) -> bool:
    """Return whether two values are the same once normalized for ``field``."""

    kind = field_kind(field)
    return kind.normalize(field, existing) == kind.normalize(field, updated)


def format_field_value(field: FieldSpec, value: FieldValue) -> str:
    return field_kind(field).display(field, value)


def render_cell_value(field: FieldSpec, value: FieldValue) -> str:
    return field_kind(field).render_cell(field, value)


def cell_as_string(record: StoredRecord | None, field: FieldSpec) -> str:
    """Canonical string form of ``field`` on ``record`` (empty for a missing record)."""

    if record is None:
        return ""
    return render_cell_value(field, record.raw(field.name))


def convert_for_field(field: FieldSpec, value: FieldValue) -> object | None:
    """Convert a proposed value for storage in ``field``.

    Raises ``FieldConversionError`` naming the value and field when a non-empty
    value cannot be converted.
    """

    converted = field_kind(field).convert(field, value)
    if converted is None and not is_empty_value(value):
        raise FieldConversionError(value, field)
    return converted
