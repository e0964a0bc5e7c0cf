"""SQLAlchemy Core tables for the local housing store."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# field metadata per table, in declared (display) order
field_definition_table = Table(
    "field_definition",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_name", String(32), nullable=False),
    Column("name", String(255), nullable=False),
    Column("type", String(32), nullable=False),
    Column("precision", Integer, nullable=True),
    Column("choices", JSON, nullable=True),
    Column("editable", Boolean, nullable=False, default=True),
    Column("position", Integer, nullable=False, default=0),
    UniqueConstraint("table_name", "name"),
)

# apartments and units; a unit's apartment_id is its link to the owning apartment
housing_record_table = Table(
    "housing_record",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_name", String(32), nullable=False, index=True),
    Column("record_id", String(64), nullable=False),
    Column("apartment_id", String(64), nullable=True, index=True),
    Column("data", JSON, nullable=False, default=dict),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
    UniqueConstraint("table_name", "record_id"),
)

form_response_table = Table(
    "form_response",
    metadata,
    Column("record_id", String(64), primary_key=True),
    Column("campaign", String(255), nullable=False, index=True),
    Column("submitted_at", UTCDateTime(), nullable=False),
    Column("payload", Text, nullable=False),
)

rejected_change_table = Table(
    "rejected_change",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("marker", String(512), nullable=False, unique=True),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)
