"""Match lifecycle: matched -> viewed -> applied | rejected."""

from enum import Enum
from typing import Dict, FrozenSet


class MatchStatus(str, Enum):
    MATCHED = "matched"
    VIEWED = "viewed"
    APPLIED = "applied"
    REJECTED = "rejected"


ALLOWED_TRANSITIONS: Dict[MatchStatus, FrozenSet[MatchStatus]] = {
    MatchStatus.MATCHED: frozenset({MatchStatus.VIEWED, MatchStatus.APPLIED, MatchStatus.REJECTED}),
    MatchStatus.VIEWED: frozenset({MatchStatus.APPLIED, MatchStatus.REJECTED}),
    MatchStatus.APPLIED: frozenset(),
    MatchStatus.REJECTED: frozenset(),
}


def can_transition(current: MatchStatus, requested: MatchStatus) -> bool:
    # Re-applying the current status is a no-op, not a violation
    return current == requested or requested in ALLOWED_TRANSITIONS[current]
