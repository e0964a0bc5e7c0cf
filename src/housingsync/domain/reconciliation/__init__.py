"""Reconciliation core turning form responses into reviewable changesets.

Layered flow, one module per stage:
1) unflatten encoded form keys into apartment, unit and offering slots
2) prune empty slots and flatten offerings into unit records
3) resolve each unit record to a stored unit (explicit ID, then temp-id)
4) diff apartment and unit fields with type-aware comparison
5) suppress rejected changes and detect pending deletions
6) assemble per-apartment changesets ordered by submission time
"""

from __future__ import annotations

from .assemble import ApartmentProposal, latest_submissions
from .engine import ReconciliationEngine, reconcile_campaign
from .field_kinds import (
    FIELD_KINDS,
    FieldKind,
    convert_for_field,
    field_values_equal,
    format_field_value,
    normalize_field_value,
    render_cell_value,
)
from .rejects import RejectList
from .serialize import changeset_to_dict, changesets_to_dicts
from .snapshot import HousingSnapshot, load_snapshot
from .unflatten import NestedSubmission, UnitSlot, unflatten_submission

__all__ = [
    "FIELD_KINDS",
    "ApartmentProposal",
    "FieldKind",
    "HousingSnapshot",
    "NestedSubmission",
    "ReconciliationEngine",
    "RejectList",
    "UnitSlot",
    "changeset_to_dict",
    "changesets_to_dicts",
    "convert_for_field",
    "field_values_equal",
    "format_field_value",
    "latest_submissions",
    "load_snapshot",
    "normalize_field_value",
    "reconcile_campaign",
    "render_cell_value",
    "unflatten_submission",
]
