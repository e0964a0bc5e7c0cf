"""Initial housing store schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "field_definition",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("table_name", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("precision", sa.Integer(), nullable=True),
        sa.Column("choices", sa.JSON(), nullable=True),
        sa.Column("editable", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_field_definition"),
        sa.UniqueConstraint(
            "table_name", "name", name="uq_field_definition_field_definition_table_name"
        ),
    )
    op.create_table(
        "housing_record",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("table_name", sa.String(length=32), nullable=False),
        sa.Column("record_id", sa.String(length=64), nullable=False),
        sa.Column("apartment_id", sa.String(length=64), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_housing_record"),
        sa.UniqueConstraint(
            "table_name", "record_id", name="uq_housing_record_housing_record_table_name"
        ),
    )
    op.create_index(
        "ix_housing_record_housing_record_table_name", "housing_record", ["table_name"]
    )
    op.create_index(
        "ix_housing_record_housing_record_apartment_id", "housing_record", ["apartment_id"]
    )
    op.create_table(
        "form_response",
        sa.Column("record_id", sa.String(length=64), nullable=False),
        sa.Column("campaign", sa.String(length=255), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("record_id", name="pk_form_response"),
    )
    op.create_index("ix_form_response_form_response_campaign", "form_response", ["campaign"])
    op.create_table(
        "rejected_change",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("marker", sa.String(length=512), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_rejected_change"),
        sa.UniqueConstraint("marker", name="uq_rejected_change_rejected_change_marker"),
    )


def downgrade() -> None:
    op.drop_table("rejected_change")
    op.drop_index("ix_form_response_form_response_campaign", table_name="form_response")
    op.drop_table("form_response")
    op.drop_index("ix_housing_record_housing_record_apartment_id", table_name="housing_record")
    op.drop_index("ix_housing_record_housing_record_table_name", table_name="housing_record")
    op.drop_table("housing_record")
    op.drop_table("field_definition")
