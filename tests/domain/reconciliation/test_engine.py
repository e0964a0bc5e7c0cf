from __future__ import annotations

from typing import TYPE_CHECKING

from housingsync.domain.model import UNITS_FIELD
from housingsync.domain.reconciliation import (
    NestedSubmission,
    ReconciliationEngine,
    changesets_to_dicts,
    normalize_field_value,
    reconcile_campaign,
    unflatten_submission,
)
from housingsync.domain.review import approve_all, find_change, reject_change
from tests.helpers.housing import (
    CAMPAIGN,
    InMemoryStore,
    record,
    snapshot,
    submission,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from housingsync.domain.model import ApartmentChangeset, FieldValue


def _reconcile(store: InMemoryStore) -> tuple[ApartmentChangeset, ...]:
    return reconcile_campaign(campaign=CAMPAIGN, unit_of_work_factory=store)


def test_checkbox_change_compares_normalized_forms() -> None:
    state = snapshot(apartments=[record("a1", wheelchair=False)])

    (changeset,) = ReconciliationEngine().reconcile(
        [submission("r1", "a1", {"wheelchair": True})], state
    )

    change = changeset.field_changes["wheelchair"]
    assert normalize_field_value(change.field, change.existing) == "unchecked"
    assert normalize_field_value(change.field, change.updated) == "checked"
    assert change.updated is True
    assert change.key == "r1:a1:-:wheelchair"


def test_view_carries_normalized_checkbox_forms() -> None:
    state = snapshot(apartments=[record("a1", wheelchair=False)])

    (view,) = changesets_to_dicts(
        ReconciliationEngine().reconcile([submission("r1", "a1", {"wheelchair": True})], state)
    )

    (change,) = view["fields"]
    assert change["existing_normalized"] == "unchecked"
    assert change["updated_normalized"] == "checked"
    assert change["existing_display"] == "no"
    assert change["updated_display"] == "yes"


def test_equal_phone_numbers_produce_no_changeset() -> None:
    state = snapshot(apartments=[record("a1", phone="(555) 123-4567")])

    result = ReconciliationEngine().reconcile(
        [submission("r1", "a1", {"phone": "555-123-4567"})], state
    )

    assert result == ()


def test_reordered_selects_produce_no_change() -> None:
    state = snapshot(
        apartments=[record("a1", **{UNITS_FIELD: ["u1"]})],
        units=[record("u1", amenities="Parking, Dishwasher")],
    )

    result = ReconciliationEngine().reconcile(
        [submission("r1", "a1", {"ID:0": "u1", "amenities:0": ["Dishwasher", "Parking"]})],
        state,
    )

    assert result == ()


def test_new_apartment_proposes_every_submitted_field() -> None:
    (changeset,) = ReconciliationEngine().reconcile(
        [submission("r1", "a9", {"APT_NAME": "Birch House", "TYPE:0": "Studio"})],
        snapshot(),
    )

    assert changeset.is_new_apartment
    assert changeset.field_changes["APT_NAME"].existing == ""
    assert changeset.pending_deletions == ()
    (unit,) = changeset.changed_units
    assert unit.is_new
    assert unit.record.slot_key == "r1:a9:idx0"
    assert unit.changes["TYPE"].key == "r1:a9:idx0:TYPE"


def test_latest_submission_replaces_earlier_ones() -> None:
    state = snapshot(apartments=[record("a1", APT_NAME="Maple", phone="555-000-0000")])

    (changeset,) = ReconciliationEngine().reconcile(
        [
            submission("r2", "a1", {"APT_NAME": "Maple Court"}, minutes=5),
            submission("r1", "a1", {"APT_NAME": "Maple", "phone": "555-111-1111"}, minutes=1),
        ],
        state,
    )

    assert changeset.response_record_id == "r2"
    assert list(changeset.field_changes) == ["APT_NAME"]
    assert changeset.field_changes["APT_NAME"].key == "r2:a1:-:APT_NAME"


def test_latest_submission_drops_fields_only_earlier_ones_answered() -> None:
    state = snapshot(apartments=[record("a1", APT_NAME="Maple", phone="555-000-0000")])

    (changeset,) = ReconciliationEngine().reconcile(
        [
            submission("r1", "a1", {"phone": "555-111-1111"}, minutes=1),
            submission("r2", "a1", {"APT_NAME": "Maple Court"}, minutes=5),
        ],
        state,
    )

    assert changeset.response_record_id == "r2"
    assert "phone" not in changeset.field_changes
    assert list(changeset.field_changes) == ["APT_NAME"]


def test_changesets_are_ordered_by_submission_time() -> None:
    state = snapshot(apartments=[record("a1"), record("a2")])

    result = ReconciliationEngine().reconcile(
        [
            submission("r1", "a1", {"APT_NAME": "One"}, minutes=10),
            submission("r2", "a2", {"APT_NAME": "Two"}, minutes=3),
        ],
        state,
    )

    assert [changeset.apartment_id for changeset in result] == ["a2", "a1"]


def test_other_campaigns_are_ignored() -> None:
    state = snapshot(apartments=[record("a1")])

    result = ReconciliationEngine().reconcile(
        [submission("r1", "a1", {"APT_NAME": "One"}, campaign="fall-2023")],
        state,
        campaign=CAMPAIGN,
    )

    assert result == ()


def test_notes_alone_keep_a_changeset_until_rejected() -> None:
    apartment = record("a1", APT_NAME="Maple")
    proposal = submission(
        "r1", "a1", {"APT_NAME": "Maple", "userNotes": " Call after 5pm ", "user_name": "Ana"}
    )

    (changeset,) = ReconciliationEngine().reconcile([proposal], snapshot(apartments=[apartment]))
    suppressed = ReconciliationEngine().reconcile(
        [proposal], snapshot(apartments=[apartment], rejects=["r1:a1:-:userNotes"])
    )

    assert changeset.notes == "Call after 5pm"
    assert changeset.submitted_by == "Ana"
    assert changeset.field_changes == {}
    assert suppressed == ()


def test_reconciliation_is_deterministic() -> None:
    state = snapshot(
        apartments=[record("a1", APT_NAME="Maple", **{UNITS_FIELD: ["u1", "u2"]})],
        units=[record("u1", TYPE="1BR", rent=1100), record("u2", TYPE="2BR")],
    )
    submissions = [
        submission(
            "r1",
            "a1",
            {"APT_NAME": "Maple Court", "ID:0": "u1", "rent:0:0": "1200", "rent:0:1": "1250"},
        )
    ]

    first = changesets_to_dicts(ReconciliationEngine().reconcile(submissions, state))
    second = changesets_to_dicts(ReconciliationEngine().reconcile(submissions, state))

    assert first == second
    assert first[0]["deletions"] == [
        {"key": "r1:a1:u2", "unit_id": "u2", "reject_marker": "r1:a1:u2:DELETE"}
    ]


def test_rejecting_one_key_leaves_other_keys_untouched() -> None:
    apartments = [record("a1", APT_NAME="Maple", phone="555-000-0000")]
    submissions = [submission("r1", "a1", {"APT_NAME": "Maple Court", "phone": "555-999-9999"})]

    before = ReconciliationEngine().reconcile(submissions, snapshot(apartments=apartments))
    after = ReconciliationEngine().reconcile(
        submissions, snapshot(apartments=apartments, rejects=["r1:a1:-:APT_NAME"])
    )

    assert set(before[0].field_changes) == {"APT_NAME", "phone"}
    assert set(after[0].field_changes) == {"phone"}
    assert after[0].field_changes["phone"] == before[0].field_changes["phone"]


def test_failing_apartment_is_skipped() -> None:
    def unflatten(fields: Mapping[str, FieldValue]) -> NestedSubmission:
        if fields.get("APT_NAME") == "boom":
            raise ValueError("cannot unflatten")
        return unflatten_submission(fields)

    result = ReconciliationEngine(unflatten=unflatten).reconcile(
        [
            submission("r1", "a1", {"APT_NAME": "boom"}),
            submission("r2", "a2", {"APT_NAME": "Fine"}, minutes=1),
        ],
        snapshot(apartments=[record("a1"), record("a2")]),
    )

    assert [changeset.apartment_id for changeset in result] == ["a2"]


def test_unit_created_from_first_response_is_matched_by_second() -> None:
    store = InMemoryStore(
        apartments=[record("a1", APT_NAME="Maple")],
        submissions=[
            submission("resp1", "a1", {"APT_NAME": "Maple", "TYPE:0": "Studio"}, minutes=1)
        ],
    )
    (first,) = _reconcile(store)
    report = approve_all(store, first)

    assert report.applied == ["resp1:a1:idx0:TYPE"]
    assert store.units.records["unit-1"]["TEMP_ID"] == "resp1:a1:idx0"
    assert store.apartments.records["a1"][UNITS_FIELD] == ["unit-1"]

    store.submissions.add(
        submission(
            "resp2",
            "a1",
            {"APT_NAME": "Maple", "TYPE:0": "Studio", "rent:0": "1200"},
            minutes=2,
        )
    )
    (second,) = _reconcile(store)

    (unit,) = second.changed_units
    assert unit.unit_id == "unit-1"
    assert not unit.is_new
    assert list(unit.changes) == ["rent"]
    assert unit.changes["rent"].key == "resp2:a1:idx0:rent"
    assert second.pending_deletions == ()


def test_rejected_deletion_disappears_on_next_run() -> None:
    store = InMemoryStore(
        apartments=[record("a1", **{UNITS_FIELD: ["U1", "U2"]})],
        units=[record("U1", TYPE="1BR"), record("U2", TYPE="2BR")],
        submissions=[submission("resp", "a1", {"ID:0": "U1", "TYPE:0": "1BR"})],
    )

    (changeset,) = _reconcile(store)
    assert [deletion.key for deletion in changeset.pending_deletions] == ["resp:a1:U2"]
    assert changeset.changed_units == ()

    reject_change(store, find_change([changeset], "resp:a1:U2"))

    assert store.rejects.markers == ["resp:a1:U2:DELETE"]
    assert _reconcile(store) == ()
    assert "U2" in store.units.records
