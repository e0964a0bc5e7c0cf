"""Changeset assembly stage.

Submissions are replayed oldest first. The latest submission for an apartment
replaces earlier ones wholesale: there is no field-level merge across
submissions, because each submission is a complete re-statement of the form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from housingsync.domain.model import (
    NOTES_FORM_FIELD,
    ApartmentChangeset,
    UnitChangeset,
    apartment_change_key,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from housingsync.domain.model import (
        FieldChange,
        FlatUnitRecord,
        FormSubmission,
        PendingDeletion,
    )

    from .snapshot import HousingSnapshot


@dataclass(frozen=True, slots=True)
class ApartmentProposal:
    """Latest submission for one apartment plus the responses it superseded."""

    submission: FormSubmission
    earlier_response_ids: tuple[str, ...] = ()

    @property
    def apartment_id(self) -> str:
        return self.submission.apartment_id

    @property
    def response_record_id(self) -> str:
        return self.submission.response_record_id


def latest_submissions(
    submissions: Iterable[FormSubmission],
    *,
    campaign: str | None = None,
) -> tuple[ApartmentProposal, ...]:
    """Pick the newest submission per apartment, in first-seen apartment order."""

    ordered = sorted(
        (
            submission
            for submission in submissions
            if campaign is None or submission.campaign == campaign
        ),
        key=lambda submission: submission.submitted_at,
    )
    latest: dict[str, FormSubmission] = {}
    history: dict[str, list[str]] = {}
    for submission in ordered:
        previous = latest.get(submission.apartment_id)
        if previous is not None:
            history[submission.apartment_id].append(previous.response_record_id)
        else:
            history[submission.apartment_id] = []
        latest[submission.apartment_id] = submission
    return tuple(
        ApartmentProposal(submission, tuple(history[apartment_id]))
        for apartment_id, submission in latest.items()
    )


def reviewer_notes(proposal: ApartmentProposal, snapshot: HousingSnapshot) -> str:
    key = apartment_change_key(
        proposal.response_record_id, proposal.apartment_id, NOTES_FORM_FIELD
    )
    if key in snapshot.rejects:
        return ""
    return proposal.submission.notes


def assemble_changeset(
    proposal: ApartmentProposal,
    *,
    snapshot: HousingSnapshot,
    field_changes: Mapping[str, FieldChange],
    unit_records: Sequence[FlatUnitRecord],
    unit_changes: Sequence[Mapping[str, FieldChange]],
    pending_deletions: Sequence[PendingDeletion],
) -> ApartmentChangeset:
    units = tuple(
        UnitChangeset(
            record=record,
            changes=dict(changes),
            existing=snapshot.units.get(record.unit_id) if record.unit_id else None,
        )
        for record, changes in zip(unit_records, unit_changes, strict=True)
    )
    submission = proposal.submission
    return ApartmentChangeset(
        apartment_id=proposal.apartment_id,
        apartment=snapshot.apartments.get(proposal.apartment_id),
        response_record_id=proposal.response_record_id,
        submitted_at=submission.submitted_at,
        field_changes=dict(field_changes),
        units=units,
        pending_deletions=tuple(pending_deletions),
        notes=reviewer_notes(proposal, snapshot),
        submitted_by=submission.submitted_by,
    )


def order_changesets(changesets: Iterable[ApartmentChangeset]) -> tuple[ApartmentChangeset, ...]:
    """Drop empty changesets and order the rest by submission time."""

    return tuple(
        sorted(
            (changeset for changeset in changesets if not changeset.is_empty),
            key=lambda changeset: changeset.submitted_at,
        )
    )
