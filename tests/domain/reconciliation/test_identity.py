from __future__ import annotations

from housingsync.domain.model import TEMP_ID_FIELD, FlatUnitRecord
from housingsync.domain.reconciliation.identity import resolve_units
from tests.helpers.housing import record, snapshot


def _flat(position: int, **values: str) -> FlatUnitRecord:
    return FlatUnitRecord(
        position=position, unit_index=position, offering_index=None, values=values
    )


def test_explicit_id_naming_stored_unit_wins() -> None:
    state = snapshot(units=[record("u1", TYPE="1BR")])

    resolved = resolve_units(
        [_flat(0, ID="u1", TYPE="2BR")],
        response_record_id="r1",
        apartment_id="a1",
        snapshot=state,
    )

    assert resolved[0].unit_id == "u1"
    assert resolved[0].slot_key == "r1:a1:idx0"
    assert not resolved[0].is_new


def test_dangling_explicit_id_is_a_new_unit() -> None:
    resolved = resolve_units(
        [_flat(0, ID="gone", TYPE="2BR")],
        response_record_id="r1",
        apartment_id="a1",
        snapshot=snapshot(),
    )

    assert resolved[0].unit_id is None
    assert resolved[0].is_new


def test_temp_id_matches_current_slot_key() -> None:
    state = snapshot(units=[record("u9", **{TEMP_ID_FIELD: "r1:a1:idx1"})])

    resolved = resolve_units(
        [_flat(0, TYPE="Studio"), _flat(1, TYPE="1BR")],
        response_record_id="r1",
        apartment_id="a1",
        snapshot=state,
    )

    assert [item.unit_id for item in resolved] == [None, "u9"]


def test_temp_id_falls_back_to_earlier_responses_newest_first() -> None:
    state = snapshot(
        units=[
            record("old", **{TEMP_ID_FIELD: "r1:a1:idx0"}),
            record("newer", **{TEMP_ID_FIELD: "r2:a1:idx0"}),
        ]
    )

    resolved = resolve_units(
        [_flat(0, TYPE="Studio")],
        response_record_id="r3",
        apartment_id="a1",
        snapshot=state,
        earlier_response_ids=["r1", "r2"],
    )

    assert resolved[0].unit_id == "newer"
    assert resolved[0].slot_key == "r3:a1:idx0"


def test_unit_claimed_by_explicit_id_is_not_adopted_again() -> None:
    state = snapshot(units=[record("u1", **{TEMP_ID_FIELD: "r1:a1:idx1"})])

    resolved = resolve_units(
        [_flat(0, ID="u1"), _flat(1, TYPE="Studio")],
        response_record_id="r1",
        apartment_id="a1",
        snapshot=state,
    )

    assert [item.unit_id for item in resolved] == ["u1", None]


def test_temp_id_of_other_apartment_is_ignored() -> None:
    state = snapshot(units=[record("u1", **{TEMP_ID_FIELD: "r1:a2:idx0"})])

    resolved = resolve_units(
        [_flat(0, TYPE="Studio")],
        response_record_id="r1",
        apartment_id="a1",
        snapshot=state,
    )

    assert resolved[0].unit_id is None
