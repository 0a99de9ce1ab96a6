from __future__ import annotations

import pytest

from charger_queue.state.models import Preference, SpotType, StateDocument
from charger_queue.state.queries import (
    check_invariants,
    default_state,
    eligible,
    find_spot,
    find_user,
    is_placed,
    is_queued,
    queue_in_priority_order,
)

from conftest import make_state


def test_default_state_is_canonical() -> None:
    state = default_state()

    assert [s.id for s in state.spots] == ["tesla-1", "tesla-2", "chargepoint-1", "chargepoint-2"]
    assert [s.type for s in state.spots] == [SpotType.TESLA, SpotType.TESLA, SpotType.CHARGEPOINT, SpotType.CHARGEPOINT]
    assert all(s.user_id is None for s in state.spots)
    assert state.users == []
    assert state.queue == []
    assert state.last_reset is None


def test_default_state_document_uses_wire_names() -> None:
    doc = default_state().to_document()

    assert doc["lastReset"] is None
    assert doc["spots"][0] == {"id": "tesla-1", "type": "Tesla", "label": "Tesla #1", "userId": None}


def test_default_state_with_custom_spots() -> None:
    state = default_state([{"id": "a", "type": "ChargePoint"}])

    assert len(state.spots) == 1
    assert state.spots[0].label == "a"


def test_placed_and_queued() -> None:
    state = make_state(users=[(1, "Both"), (2, "Both")], queue=[(2, 1)], placed={"tesla-1": 1})

    assert is_placed(state, 1)
    assert not is_queued(state, 1)
    assert is_queued(state, 2)
    assert not is_placed(state, 2)
    assert not is_placed(state, 99)
    assert not is_queued(state, 99)


@pytest.mark.parametrize(
    "pref, spot_type, expected",
    [
        (Preference.BOTH, SpotType.TESLA, True),
        (Preference.BOTH, SpotType.CHARGEPOINT, True),
        (Preference.TESLA, SpotType.TESLA, True),
        (Preference.TESLA, SpotType.CHARGEPOINT, False),
        (Preference.CHARGEPOINT, SpotType.CHARGEPOINT, True),
        (Preference.CHARGEPOINT, SpotType.TESLA, False),
        ("Both", "Tesla", True),
        ("Tesla", "ChargePoint", False),
    ],
)
def test_eligible(pref, spot_type, expected) -> None:
    assert eligible(pref, spot_type) is expected


def test_find_helpers() -> None:
    state = make_state(users=[(1, "Tesla")])

    assert find_user(state, 1).pref == Preference.TESLA
    assert find_user(state, 2) is None
    assert find_spot(state, "chargepoint-2").type == SpotType.CHARGEPOINT
    assert find_spot(state, "missing") is None


def test_priority_order_breaks_ties_by_document_order() -> None:
    state = make_state(queue=[(5, 3), (6, 1), (7, 3), (8, 2)])

    assert [e.user_id for e in queue_in_priority_order(state)] == [6, 8, 5, 7]


def test_check_invariants_clean_state(state: StateDocument) -> None:
    assert check_invariants(state) == []


def test_check_invariants_reports_double_placement() -> None:
    state = make_state(users=[(1, "Both")], queue=[(1, 1)], placed={"tesla-1": 1})

    problems = check_invariants(state)

    assert problems == ["User 1 is both on a spot and queued"]


def test_check_invariants_reports_duplicates() -> None:
    state = make_state(
        users=[(1, "Both"), (1, "Tesla")],
        queue=[(2, 1), (2, 2)],
        placed={"tesla-1": 3, "tesla-2": 3},
    )

    problems = check_invariants(state)

    assert "Duplicate user id 1" in problems
    assert "User 2 has 2 queue entries" in problems
    assert "User 3 occupies 2 spots" in problems


def test_dangling_spot_reference_is_not_reported() -> None:
    state = make_state(placed={"tesla-1": 42})

    assert check_invariants(state) == []
