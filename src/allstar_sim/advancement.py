"""Decide what follows a finished round: another round, a tiebreaker, or a winner.

Each normal round belongs to a tier in ``ContestRules.advance_counts``; the
tiebreakers that follow it belong to the same tier. The decision replays the
tier's chain of rounds: shooters clear of the cutoff score are locked in and
shooters tied at the cutoff are sent to the next tiebreaker when they do not
all fit in the remaining slots.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import ContestRules
from .errors import InvalidStateError, InvariantViolationError
from .models import Contest
from .rounds import ranked_round_results, round_over

NORMAL_ROUND = "normal_round"
TIEBREAKER_ROUND = "tiebreaker_round"
WINNER = "winner"


@dataclass(frozen=True, slots=True)
class Decision:
    kind: str
    indexes: tuple[int, ...]

    @property
    def winner(self) -> int | None:
        return self.indexes[0] if self.kind == WINNER else None


def _tier_chain_start(contest: Contest) -> int:
    for position in range(contest.round_cursor, -1, -1):
        if not contest.rounds[position].tiebreaker:
            return position
    raise InvariantViolationError("Contest has no normal round before its tiebreakers.")


def decide(contest: Contest, rules: ContestRules) -> Decision:
    current = contest.current_round
    if not round_over(current, rules):
        raise InvalidStateError("Cannot decide advancement before the round is over.")

    played = contest.rounds[: contest.round_cursor + 1]
    tier = sum(1 for rnd in played if not rnd.tiebreaker) - 1
    if tier < 0 or tier > rules.final_tier:
        raise InvariantViolationError(f"Contest is in round tier {tier}; rules define {rules.final_tier + 1}.")

    slots = rules.advance_counts[tier]
    locked: list[int] = []
    tied: list[int] = []
    for rnd in played[_tier_chain_start(contest):]:
        ranked = ranked_round_results(rnd, rules)
        if slots <= 0 or slots >= len(ranked):
            raise InvariantViolationError(
                f"Round of {len(ranked)} shooters cannot fill {slots} advancing slots."
            )
        cutoff = ranked[slots - 1][1]
        above = [index for index, score in ranked if score > cutoff]
        at_cutoff = [index for index, score in ranked if score == cutoff]
        locked.extend(above)
        slots -= len(above)
        if len(at_cutoff) <= slots:
            locked.extend(at_cutoff)
            slots = 0
            tied = []
        else:
            tied = at_cutoff

    if tied:
        return Decision(kind=TIEBREAKER_ROUND, indexes=tuple(tied))
    if tier == rules.final_tier:
        return Decision(kind=WINNER, indexes=(locked[0],))
    return Decision(kind=NORMAL_ROUND, indexes=tuple(locked))
