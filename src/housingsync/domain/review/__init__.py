"""Review actions applied to reconciliation output."""

from __future__ import annotations

from .actions import (
    ApprovalReport,
    ChangeKind,
    ChangeNotFoundError,
    ChangeTarget,
    approve_all,
    approve_change,
    find_change,
    iter_targets,
    reject_change,
)

__all__ = [
    "ApprovalReport",
    "ChangeKind",
    "ChangeNotFoundError",
    "ChangeTarget",
    "approve_all",
    "approve_change",
    "find_change",
    "iter_targets",
    "reject_change",
]
