"""Deletion detection stage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from housingsync.domain.model import PendingDeletion, deletion_key

if TYPE_CHECKING:
    from collections.abc import Sequence

    from housingsync.domain.model import FlatUnitRecord, StoredRecord

    from .snapshot import HousingSnapshot

log = logging.getLogger(__name__)


def detect_deletions(
    apartment: StoredRecord | None,
    records: Sequence[FlatUnitRecord],
    *,
    response_record_id: str,
    snapshot: HousingSnapshot,
) -> tuple[PendingDeletion, ...]:
    """Linked units of ``apartment`` that the resolved proposal no longer lists.

    A deletion whose ``:DELETE`` marker is in the reject list is dropped.
    """

    if apartment is None:
        return ()
    proposed_ids = {record.unit_id for record in records if record.unit_id}
    deletions: list[PendingDeletion] = []
    for unit_id in apartment.linked_unit_ids:
        if unit_id in proposed_ids:
            continue
        key = deletion_key(response_record_id, apartment.record_id, unit_id)
        if snapshot.rejects.is_deletion_rejected(key):
            log.debug("Suppressing rejected deletion %s", key)
            continue
        deletions.append(
            PendingDeletion(unit_id=unit_id, key=key, unit=snapshot.units.get(unit_id))
        )
    return tuple(deletions)
