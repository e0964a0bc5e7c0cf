"""Orchestrator for the reconciliation pipeline.

The engine composes the stage functions but keeps each stage swappable, so a
workflow or a test can replace one stage without touching the others. A run is
a pure function of (submission history, snapshot) and is recomputed from
scratch on every invocation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from .assemble import assemble_changeset, latest_submissions, order_changesets
from .deletions import detect_deletions
from .diff import diff_apartment, diff_unit
from .identity import resolve_units
from .prune import flatten_units, prune_slots
from .snapshot import load_snapshot
from .unflatten import NestedSubmission, unflatten_submission

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from housingsync.domain.model import (
        ApartmentChangeset,
        FieldValue,
        FlatUnitRecord,
        FormSubmission,
        PendingDeletion,
        StoredRecord,
    )
    from housingsync.domain.ports import ReviewUnitOfWork

    from .assemble import ApartmentProposal
    from .snapshot import HousingSnapshot

log = logging.getLogger(__name__)


class ResolveUnits(Protocol):
    def __call__(
        self,
        records: Sequence[FlatUnitRecord],
        *,
        response_record_id: str,
        apartment_id: str,
        snapshot: HousingSnapshot,
        earlier_response_ids: Sequence[str] = (),
    ) -> tuple[FlatUnitRecord, ...]: ...


class DetectDeletions(Protocol):
    def __call__(
        self,
        apartment: StoredRecord | None,
        records: Sequence[FlatUnitRecord],
        *,
        response_record_id: str,
        snapshot: HousingSnapshot,
    ) -> tuple[PendingDeletion, ...]: ...


@dataclass(slots=True)
class ReconciliationEngine:
    """Run the full pipeline from form submissions to ordered changesets."""

    unflatten: Callable[[Mapping[str, FieldValue]], NestedSubmission] = field(
        default=unflatten_submission
    )
    prune: Callable[[NestedSubmission], NestedSubmission] = field(default=prune_slots)
    flatten: Callable[[NestedSubmission], tuple[FlatUnitRecord, ...]] = field(
        default=flatten_units
    )
    resolve: ResolveUnits = field(default=resolve_units)
    detect_deletions: DetectDeletions = field(default=detect_deletions)

    def reconcile(
        self,
        submissions: Iterable[FormSubmission],
        snapshot: HousingSnapshot,
        *,
        campaign: str | None = None,
    ) -> tuple[ApartmentChangeset, ...]:
        """Return the non-empty changesets ordered by submission time."""

        changesets: list[ApartmentChangeset] = []
        proposals = latest_submissions(submissions, campaign=campaign)
        for proposal in proposals:
            try:
                changesets.append(self.reconcile_apartment(proposal, snapshot))
            except (TypeError, ValueError):
                log.exception(
                    "Skipping response %s for apartment %s",
                    proposal.response_record_id,
                    proposal.apartment_id,
                )
        result = order_changesets(changesets)
        log.info(
            "Reconciled %s apartments into %s changesets",
            len(proposals),
            len(result),
        )
        return result

    def reconcile_apartment(
        self, proposal: ApartmentProposal, snapshot: HousingSnapshot
    ) -> ApartmentChangeset:
        response_record_id = proposal.response_record_id
        apartment_id = proposal.apartment_id
        nested = self.prune(self.unflatten(proposal.submission.fields))
        records = self.resolve(
            self.flatten(nested),
            response_record_id=response_record_id,
            apartment_id=apartment_id,
            snapshot=snapshot,
            earlier_response_ids=proposal.earlier_response_ids,
        )
        apartment = snapshot.apartments.get(apartment_id)
        field_changes = diff_apartment(
            snapshot.apartment_fields,
            nested.apartment,
            response_record_id=response_record_id,
            apartment_id=apartment_id,
            stored=apartment,
            rejects=snapshot.rejects,
        )
        unit_changes = [
            diff_unit(
                snapshot.unit_fields,
                record,
                response_record_id=response_record_id,
                apartment_id=apartment_id,
                stored=snapshot.units.get(record.unit_id) if record.unit_id else None,
                rejects=snapshot.rejects,
            )
            for record in records
        ]
        pending_deletions = self.detect_deletions(
            apartment,
            records,
            response_record_id=response_record_id,
            snapshot=snapshot,
        )
        return assemble_changeset(
            proposal,
            snapshot=snapshot,
            field_changes=field_changes,
            unit_records=records,
            unit_changes=unit_changes,
            pending_deletions=pending_deletions,
        )


def reconcile_campaign(
    *,
    campaign: str,
    unit_of_work_factory: Callable[[], ReviewUnitOfWork],
    engine: ReconciliationEngine | None = None,
) -> tuple[ApartmentChangeset, ...]:
    """Load stored state and submission history, then reconcile one campaign."""

    with unit_of_work_factory() as uow:
        snapshot = load_snapshot(uow)
        submissions = uow.repositories.submissions.list_for_campaign(campaign)
    log.info("Reconciling campaign %s: submissions=%s", campaign, len(submissions))
    return (engine or ReconciliationEngine()).reconcile(
        submissions, snapshot, campaign=campaign
    )
