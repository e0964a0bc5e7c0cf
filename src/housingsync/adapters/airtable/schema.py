"""Pydantic models describing the Airtable REST API payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field

from housingsync.domain.model import STRUCTURAL_FIELDS, FieldSpec, FieldType

# computed or link fields cannot be written from a form answer
READ_ONLY_FIELD_TYPES: Final[frozenset[str]] = frozenset(
    {
        "autoNumber",
        "button",
        "count",
        "createdBy",
        "createdTime",
        "formula",
        "lastModifiedBy",
        "lastModifiedTime",
        "lookup",
        "multipleLookupValues",
        "multipleRecordLinks",
        "rollup",
    }
)


class AirtableBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ChoicePayload(AirtableBaseModel):
    name: str


class FieldOptionsPayload(AirtableBaseModel):
    precision: int | None = None
    choices: list[ChoicePayload] = Field(default_factory=list[ChoicePayload])


class FieldPayload(AirtableBaseModel):
    id: str
    name: str
    type: str
    options: FieldOptionsPayload | None = None

    def to_field_spec(self) -> FieldSpec:
        options = self.options or FieldOptionsPayload()
        return FieldSpec(
            name=self.name,
            type=FieldType.parse(self.type),
            precision=options.precision,
            choices=tuple(choice.name for choice in options.choices),
            editable=self.type not in READ_ONLY_FIELD_TYPES and self.name not in STRUCTURAL_FIELDS,
        )


class TablePayload(AirtableBaseModel):
    id: str
    name: str
    fields: list[FieldPayload] = Field(default_factory=list[FieldPayload])


class TablesResponse(AirtableBaseModel):
    tables: list[TablePayload]


class RecordPayload(AirtableBaseModel):
    id: str
    created_time: datetime | None = Field(default=None, alias="createdTime")
    fields: dict[str, Any] = Field(default_factory=dict[str, Any])


class ListRecordsResponse(AirtableBaseModel):
    records: list[RecordPayload]
    offset: str | None = None


class ErrorDetail(AirtableBaseModel):
    type: str
    message: str | None = None


class ErrorResponse(AirtableBaseModel):
    error: ErrorDetail | str

    @property
    def error_type(self) -> str:
        return self.error if isinstance(self.error, str) else self.error.type

    @property
    def message(self) -> str:
        if isinstance(self.error, str):
            return self.error
        return self.error.message or self.error.type
