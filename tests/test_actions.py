from __future__ import annotations

import pytest

from charger_queue.exceptions import InvalidInput
from charger_queue.state.actions import (
    AddToQueue,
    AddUser,
    EndSession,
    FillSpots,
    MoveQueue,
    WriteAll,
    parse_action,
)
from charger_queue.state.models import Preference


def test_unknown_action() -> None:
    with pytest.raises(InvalidInput, match="Unknown action"):
        parse_action({"action": "explode", "payload": {}})


def test_missing_action() -> None:
    with pytest.raises(InvalidInput, match="Unknown action"):
        parse_action({})


def test_body_must_be_an_object() -> None:
    with pytest.raises(InvalidInput):
        parse_action(["addUser"])


def test_add_user_trims_name_and_defaults_pref() -> None:
    action = parse_action({"action": "addUser", "payload": {"name": " Ana ", "pref": None}})

    assert isinstance(action, AddUser)
    assert action.payload.name == "Ana"
    assert action.payload.pref == Preference.BOTH


@pytest.mark.parametrize("payload", [{}, {"name": ""}, {"name": "   "}, {"name": None}])
def test_add_user_requires_name(payload) -> None:
    with pytest.raises(InvalidInput, match="^Name required$"):
        parse_action({"action": "addUser", "payload": payload})


def test_add_user_rejects_unknown_preference() -> None:
    with pytest.raises(InvalidInput, match="pref"):
        parse_action({"action": "addUser", "payload": {"name": "Ana", "pref": "Diesel"}})


def test_add_to_queue_reads_camel_case_user_id() -> None:
    action = parse_action({"action": "addToQueue", "payload": {"userId": 1736064000000}})

    assert isinstance(action, AddToQueue)
    assert action.payload.user_id == 1736064000000


def test_add_to_queue_keeps_string_ids() -> None:
    action = parse_action({"action": "addToQueue", "payload": {"userId": "u-7"}})

    assert action.payload.user_id == "u-7"


@pytest.mark.parametrize("payload", [{}, {"userId": None}, {"userId": ""}, {"userId": 0}])
def test_add_to_queue_requires_user_id(payload) -> None:
    with pytest.raises(InvalidInput, match="^userId required$"):
        parse_action({"action": "addToQueue", "payload": payload})


@pytest.mark.parametrize("payload, expected", [({"userId": 1}, 0), ({"userId": 1, "delta": None}, 0), ({"userId": 1, "delta": -2}, -2)])
def test_move_queue_delta(payload, expected) -> None:
    action = parse_action({"action": "moveQueue", "payload": payload})

    assert isinstance(action, MoveQueue)
    assert action.payload.delta == expected


def test_move_queue_rejects_non_integer_delta() -> None:
    with pytest.raises(InvalidInput, match="delta"):
        parse_action({"action": "moveQueue", "payload": {"userId": 1, "delta": "up"}})


def test_missing_payload_is_treated_as_empty() -> None:
    assert isinstance(parse_action({"action": "fillSpots"}), FillSpots)
    assert isinstance(parse_action({"action": "endSession", "payload": None}), EndSession)


def test_unrelated_payload_keys_are_ignored() -> None:
    action = parse_action({"action": "endSession", "payload": {"spotId": "tesla-1", "extra": 1}})

    assert action.payload.spot_id == "tesla-1"


def test_write_all_validates_document_shape() -> None:
    action = parse_action(
        {
            "action": "writeAll",
            "payload": {"users": [], "spots": [{"id": "x", "type": "Tesla", "label": "X", "userId": None}], "queue": []},
        }
    )

    assert isinstance(action, WriteAll)
    assert action.payload.spots[0].id == "x"


def test_write_all_rejects_malformed_document() -> None:
    with pytest.raises(InvalidInput):
        parse_action({"action": "writeAll", "payload": {"spots": "all of them"}})


def test_non_string_spot_id_becomes_a_lookup_miss() -> None:
    action = parse_action({"action": "endSession", "payload": {"spotId": 5}})

    assert action.payload.spot_id is None


@pytest.mark.parametrize("name", ["removeFromQueue", "moveQueue"])
@pytest.mark.parametrize("user_id", [[1], {"id": 1}, 1.5, True])
def test_unusable_lookup_user_id_becomes_a_miss(name, user_id) -> None:
    action = parse_action({"action": name, "payload": {"userId": user_id}})

    assert action.payload.user_id is None


@pytest.mark.parametrize("payload", [None, {}, {"users": [], "queue": []}, {"users": [], "spots": []}])
def test_write_all_requires_every_collection(payload) -> None:
    with pytest.raises(InvalidInput):
        parse_action({"action": "writeAll", "payload": payload})
