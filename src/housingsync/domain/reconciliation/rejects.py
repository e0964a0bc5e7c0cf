"""Reject filter: durable dismissals of individual proposed edits."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from housingsync.domain.model import deletion_reject_marker

if TYPE_CHECKING:
    from collections.abc import Iterable

    from housingsync.domain.model import FieldValue

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RejectList:
    """Immutable view of the persisted reject markers for one run."""

    markers: frozenset[str] = frozenset()

    @classmethod
    def from_markers(cls, markers: Iterable[str]) -> RejectList:
        return cls(frozenset(marker.strip() for marker in markers if marker.strip()))

    def __contains__(self, key: object) -> bool:
        return key in self.markers

    def __len__(self) -> int:
        return len(self.markers)

    def suppress(self, key: str, *, existing: FieldValue, proposed: FieldValue) -> FieldValue:
        """Return the value to diff: ``existing`` for a rejected key, else ``proposed``."""

        if key in self.markers:
            log.debug("Suppressing rejected change %s", key)
            return existing
        return proposed

    def is_deletion_rejected(self, key: str) -> bool:
        return deletion_reject_marker(key) in self.markers
