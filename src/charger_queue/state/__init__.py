"""State model and allocation engine."""

from .actions import Action, parse_action
from .allocator import apply_action
from .models import Preference, QueueEntry, Spot, SpotType, StateDocument, User
from .queries import check_invariants, default_state, eligible, is_placed, is_queued

__all__ = [
    "Action",
    "parse_action",
    "apply_action",
    "Preference",
    "QueueEntry",
    "Spot",
    "SpotType",
    "StateDocument",
    "User",
    "check_invariants",
    "default_state",
    "eligible",
    "is_placed",
    "is_queued",
]
