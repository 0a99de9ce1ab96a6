from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from charger_queue.state.actions import Action, parse_action
from charger_queue.state.models import QueueEntry, StateDocument, User
from charger_queue.state.queries import default_state

NOW = datetime(2026, 1, 5, 8, 30, tzinfo=timezone.utc)


def act(action: str, /, **payload: Any) -> Action:
    """Build a typed action the same way the HTTP layer does."""
    return parse_action({"action": action, "payload": payload})


def make_state(
    users: list[tuple[int, str]] | None = None,
    queue: list[tuple[int, int]] | None = None,
    placed: dict[str, int] | None = None,
) -> StateDocument:
    """
    Default spots plus the given users, queue and placements.

    users: (id, pref) pairs; queue: (user_id, position) pairs in document
    order; placed: spot_id -> user_id.
    """
    state = default_state()
    state.users = [User(id=uid, name=f"user-{uid}", pref=pref) for uid, pref in users or []]
    state.queue = [
        QueueEntry(id=1000 + i, user_id=uid, position=pos) for i, (uid, pos) in enumerate(queue or [])
    ]
    for spot in state.spots:
        spot.user_id = (placed or {}).get(spot.id)
    return state


def queued(state: StateDocument) -> list[tuple[Any, int]]:
    return [(e.user_id, e.position) for e in state.queue]


def occupants(state: StateDocument) -> dict[str, Any]:
    return {s.id: s.user_id for s in state.spots}


@pytest.fixture
def state() -> StateDocument:
    return make_state(
        users=[(1, "Both"), (2, "Both"), (3, "Tesla"), (4, "ChargePoint")],
    )
