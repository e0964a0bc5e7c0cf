"""Identity resolution stage: match flattened unit proposals to stored units.

Matching order for one record:

1. an explicit ``ID`` naming an existing stored unit
2. a stored unit whose temp-id equals this record's unit slot key
3. the same slot position in earlier responses for the apartment, newest first

A record left without a match is a new-unit proposal. That includes records
whose explicit ID no longer exists in the store.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from housingsync.domain.model import unit_slot_key

if TYPE_CHECKING:
    from collections.abc import Sequence

    from housingsync.domain.model import FlatUnitRecord

    from .snapshot import HousingSnapshot

log = logging.getLogger(__name__)


def resolve_units(
    records: Sequence[FlatUnitRecord],
    *,
    response_record_id: str,
    apartment_id: str,
    snapshot: HousingSnapshot,
    earlier_response_ids: Sequence[str] = (),
) -> tuple[FlatUnitRecord, ...]:
    """Return ``records`` with ``unit_id`` and ``slot_key`` filled in.

    ``earlier_response_ids`` lists previous responses for the same apartment,
    oldest first. A stored unit is adopted through its temp-id by at most one
    record.
    """

    claimed = {
        explicit
        for record in records
        if (explicit := record.explicit_id) is not None and explicit in snapshot.units
    }
    fallback_ids = list(reversed(earlier_response_ids))

    resolved: list[FlatUnitRecord] = []
    for record in records:
        slot_key = unit_slot_key(response_record_id, apartment_id, record.position)
        explicit = record.explicit_id
        unit_id: str | None = None
        if explicit is not None and explicit in snapshot.units:
            unit_id = explicit
        else:
            if explicit is not None:
                log.debug(
                    "Unit %s referenced by %s no longer exists; treating as new",
                    explicit,
                    slot_key,
                )
            unit_id = _adopt_by_temp_id(
                snapshot,
                candidate_keys=[
                    slot_key,
                    *(
                        unit_slot_key(response_id, apartment_id, record.position)
                        for response_id in fallback_ids
                    ),
                ],
                claimed=claimed,
            )
        if unit_id is not None:
            claimed.add(unit_id)
        resolved.append(replace(record, unit_id=unit_id, slot_key=slot_key))
    return tuple(resolved)


def _adopt_by_temp_id(
    snapshot: HousingSnapshot,
    *,
    candidate_keys: Sequence[str],
    claimed: set[str],
) -> str | None:
    for key in candidate_keys:
        stored = snapshot.units_by_temp_id.get(key)
        if stored is None or stored.record_id in claimed:
            continue
        log.debug("Adopting unit %s through temp-id %s", stored.record_id, key)
        return stored.record_id
    return None
