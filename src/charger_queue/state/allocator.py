"""
Allocation engine: applies one action to a state document.

Every handler works on a private deep copy of the incoming document, so the
caller's state is never mutated and a failed action leaves nothing behind.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from ..exceptions import InvalidInput
from .actions import (
    Action,
    AddToQueue,
    AddUser,
    ClearQueue,
    EndSession,
    FillSpots,
    MoveQueue,
    RemoveFromQueue,
    ResetAll,
    WriteAll,
)
from .models import QueueEntry, Spot, StateDocument, User, UserId
from .queries import (
    check_invariants,
    eligible,
    find_spot,
    is_placed,
    is_queued,
    queue_in_priority_order,
)

logger = logging.getLogger(__name__)


def _next_id(existing: Iterable[UserId], now: datetime) -> int:
    """Time-derived id, bumped past every numeric id already in use."""
    candidate = int(now.timestamp() * 1000)
    numeric = [i for i in existing if isinstance(i, int) and not isinstance(i, bool)]
    if numeric:
        candidate = max(candidate, max(numeric) + 1)
    return candidate


def backfill(state: StateDocument, spot: Spot) -> Optional[UserId]:
    """
    Give an empty spot to the highest-priority eligible queued user.

    Mutates ``state`` in place: the winning entry is removed from the queue
    and its user is assigned to ``spot``.

    Returns:
        The placed user's id, or None if nobody queued can use the spot
    """
    users = {u.id: u for u in state.users}
    for entry in queue_in_priority_order(state):
        user = users.get(entry.user_id)
        if user is not None and eligible(user.pref, spot.type):
            state.queue = [e for e in state.queue if e is not entry]
            spot.user_id = entry.user_id
            logger.info(f"Placed user {entry.user_id} on spot '{spot.id}'")
            return entry.user_id
    return None


def add_user(state: StateDocument, action: AddUser, now: datetime) -> StateDocument:
    payload = action.payload
    user_id = _next_id((u.id for u in state.users), now)
    state.users.append(User(id=user_id, name=payload.name, pref=payload.pref))
    return state


def add_to_queue(state: StateDocument, action: AddToQueue, now: datetime) -> StateDocument:
    user_id = action.payload.user_id
    if is_placed(state, user_id) or is_queued(state, user_id):
        logger.debug(f"User {user_id} already placed or queued")
        return state

    position = max((e.position for e in state.queue), default=0) + 1
    entry_id = _next_id((e.id for e in state.queue), now)
    state.queue.append(QueueEntry(id=entry_id, user_id=user_id, position=position))
    return state


def remove_from_queue(state: StateDocument, action: RemoveFromQueue, now: datetime) -> StateDocument:
    user_id = action.payload.user_id
    state.queue = [e for e in state.queue if e.user_id != user_id]
    return state


def move_queue(state: StateDocument, action: MoveQueue, now: datetime) -> StateDocument:
    """Swap priority numbers with the neighbour ``delta`` places away."""
    ordered = queue_in_priority_order(state)
    state.queue = ordered

    idx = next((i for i, e in enumerate(ordered) if e.user_id == action.payload.user_id), -1)
    target = idx + action.payload.delta
    if idx < 0 or not 0 <= target < len(ordered):
        return state

    a, b = ordered[idx], ordered[target]
    a.position, b.position = b.position, a.position
    return state


def end_session(state: StateDocument, action: EndSession, now: datetime) -> StateDocument:
    spot = find_spot(state, action.payload.spot_id)
    if spot is None:
        logger.warning(f"endSession for unknown spot '{action.payload.spot_id}'")
        return state

    spot.user_id = None
    backfill(state, spot)
    return state


def fill_spots(state: StateDocument, action: FillSpots, now: datetime) -> StateDocument:
    for spot in state.spots:
        if spot.user_id is None:
            backfill(state, spot)
    return state


def clear_queue(state: StateDocument, action: ClearQueue, now: datetime) -> StateDocument:
    state.queue = []
    return state


def reset_all(state: StateDocument, action: ResetAll, now: datetime) -> StateDocument:
    """Free every spot and empty the queue. Users are kept."""
    for spot in state.spots:
        spot.user_id = None
    state.queue = []
    state.last_reset = now
    return state


def write_all(state: StateDocument, action: WriteAll, now: datetime) -> StateDocument:
    return StateDocument.from_document(action.payload.to_document())


_HANDLERS: dict[type, Callable[[StateDocument, Action, datetime], StateDocument]] = {
    AddUser: add_user,
    AddToQueue: add_to_queue,
    RemoveFromQueue: remove_from_queue,
    MoveQueue: move_queue,
    EndSession: end_session,
    FillSpots: fill_spots,
    ClearQueue: clear_queue,
    ResetAll: reset_all,
    WriteAll: write_all,
}


def apply_action(
    state: StateDocument,
    action: Action,
    now: Optional[datetime] = None,
    strict_write_all: bool = False,
) -> StateDocument:
    """
    Apply a single action and return the resulting document.

    Args:
        state: Current document; left untouched
        action: Parsed action from the request envelope
        now: Clock for id generation and reset stamps (defaults to UTC now)
        strict_write_all: Reject writeAll documents that break invariants

    Returns:
        New state document

    Raises:
        InvalidInput: For unknown action types or a rejected writeAll
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise InvalidInput("Unknown action")

    if strict_write_all and isinstance(action, WriteAll):
        problems = check_invariants(action.payload)
        if problems:
            raise InvalidInput("Inconsistent document: " + "; ".join(problems))

    now = now or datetime.now(timezone.utc)
    return handler(state.model_copy(deep=True), action, now)
