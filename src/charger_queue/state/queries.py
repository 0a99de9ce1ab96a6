"""Pure query helpers over a state document."""

from collections import Counter
from typing import Optional, Union

from .models import (
    DEFAULT_SPOTS,
    Preference,
    QueueEntry,
    Spot,
    SpotType,
    StateDocument,
    User,
    UserId,
)


def is_placed(state: StateDocument, user_id: UserId) -> bool:
    """True if the user occupies any spot."""
    return any(spot.user_id == user_id for spot in state.spots)


def is_queued(state: StateDocument, user_id: UserId) -> bool:
    """True if the user has a queue entry."""
    return any(entry.user_id == user_id for entry in state.queue)


def eligible(pref: Union[Preference, str], spot_type: Union[SpotType, str]) -> bool:
    """True if a user with this preference may take a spot of this type."""
    pref_value = pref.value if isinstance(pref, Preference) else pref
    type_value = spot_type.value if isinstance(spot_type, SpotType) else spot_type
    return pref_value == Preference.BOTH.value or pref_value == type_value


def find_user(state: StateDocument, user_id: UserId) -> Optional[User]:
    return next((u for u in state.users if u.id == user_id), None)


def find_spot(state: StateDocument, spot_id: str) -> Optional[Spot]:
    return next((s for s in state.spots if s.id == spot_id), None)


def queue_in_priority_order(state: StateDocument) -> list[QueueEntry]:
    """Queue entries by ascending position; document order breaks ties."""
    return sorted(state.queue, key=lambda entry: entry.position)


def default_state(spots: Optional[list[dict]] = None) -> StateDocument:
    """
    Build the document used when the store holds nothing yet.

    Args:
        spots: Spot definitions with 'id', 'type' and 'label'. Defaults to
            two Tesla and two ChargePoint spots.

    Returns:
        A document with every spot free, no users and an empty queue
    """
    spot_defs = spots if spots is not None else DEFAULT_SPOTS
    return StateDocument(
        users=[],
        spots=[Spot(id=s["id"], type=s["type"], label=s.get("label", s["id"])) for s in spot_defs],
        queue=[],
        last_reset=None,
    )


def check_invariants(state: StateDocument) -> list[str]:
    """
    List the hard invariants a document violates.

    Dangling spot references to unknown users are a soft invariant and are
    not reported.

    Returns:
        Human-readable violations; empty when the document is consistent
    """
    problems = []

    for user_id, count in Counter(u.id for u in state.users).items():
        if count > 1:
            problems.append(f"Duplicate user id {user_id!r}")

    for spot_id, count in Counter(s.id for s in state.spots).items():
        if count > 1:
            problems.append(f"Duplicate spot id {spot_id!r}")

    placed = Counter(s.user_id for s in state.spots if s.user_id is not None)
    for user_id, count in placed.items():
        if count > 1:
            problems.append(f"User {user_id!r} occupies {count} spots")

    queued = Counter(e.user_id for e in state.queue)
    for user_id, count in queued.items():
        if count > 1:
            problems.append(f"User {user_id!r} has {count} queue entries")
        if user_id in placed:
            problems.append(f"User {user_id!r} is both on a spot and queued")

    return problems
