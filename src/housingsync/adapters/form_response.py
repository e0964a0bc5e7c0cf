"""Validate raw form response payloads into domain submissions."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from housingsync.domain.model import ID_FIELD, FormSubmission

if TYPE_CHECKING:
    from housingsync.domain.model import FieldValue

log = getLogger(__name__)


class FormResponsePayload(BaseModel):
    """The form's JSON body: every answer keyed by its encoded field name."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    apartment_id: str = Field(alias=ID_FIELD)

    @field_validator("apartment_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValueError("apartment ID is blank")
            return stripped
        return value


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _decode(payload: str | bytes | Mapping[str, object] | None) -> object:
    if payload is None:
        return None
    if isinstance(payload, Mapping):
        return payload
    return json.loads(payload)


def parse_form_response(
    *,
    response_record_id: str,
    campaign: str,
    submitted_at: datetime,
    payload: str | bytes | Mapping[str, object] | None,
) -> FormSubmission | None:
    """Build a ``FormSubmission``; ``None`` (with a warning) for a malformed payload."""

    try:
        decoded = _decode(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.warning("Skipping response %s: payload is not JSON (%s)", response_record_id, exc)
        return None
    if not isinstance(decoded, Mapping):
        log.warning("Skipping response %s: payload is not an object", response_record_id)
        return None

    fields = cast("Mapping[str, FieldValue]", decoded)
    try:
        validated = FormResponsePayload.model_validate(fields)
    except ValidationError as exc:
        log.warning(
            "Skipping response %s: %s",
            response_record_id,
            exc.errors(include_url=False)[0]["msg"],
        )
        return None

    return FormSubmission(
        response_record_id=response_record_id,
        campaign=campaign,
        submitted_at=_as_utc(submitted_at),
        apartment_id=validated.apartment_id,
        fields=dict(fields),
    )
