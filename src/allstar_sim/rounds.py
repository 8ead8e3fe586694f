"""Round bookkeeping: whose turn it is, recording shots, and scoring.

A round owns its roster of participant indexes and one turn record per
shooter, appended in roster order. ``result_cursor`` names the turn in
progress and each turn's ``rack_cursor`` names its open rack, so the position
of the state machine is always explicit.
"""

from __future__ import annotations

from .config import ContestRules
from .errors import InvalidStateError, InvariantViolationError
from .models import Contest, ContestRound, TurnRecord


def rack_complete(rack: list[bool], rules: ContestRules) -> bool:
    return len(rack) >= rules.balls_per_rack


def turn_done(turn: TurnRecord, rules: ContestRules) -> bool:
    return len(turn.racks) == rules.num_racks and rack_complete(turn.racks[-1], rules)


def round_over(rnd: ContestRound, rules: ContestRules) -> bool:
    turn = rnd.current_turn
    if turn is None:
        return False
    return len(rnd.results) == len(rnd.indexes) and turn_done(turn, rules)


def next_pending_participant(rnd: ContestRound, rules: ContestRules) -> int | None:
    """Participant index that acts next, or None once the round is over."""
    turn = rnd.current_turn
    if turn is not None and not turn_done(turn, rules):
        return turn.index
    if round_over(rnd, rules):
        return None
    position = len(rnd.results)
    if position >= len(rnd.indexes):
        raise InvariantViolationError(
            f"Round has {position} turn records for a roster of {len(rnd.indexes)}."
        )
    return rnd.indexes[position]


def start_turn_record(rnd: ContestRound, participant_index: int, rules: ContestRules) -> TurnRecord:
    turn = rnd.current_turn
    if turn is not None and not turn_done(turn, rules):
        raise InvalidStateError(f"Participant {turn.index} is still shooting.")
    if len(rnd.results) >= len(rnd.indexes):
        raise InvalidStateError("Round is already over.")
    expected = rnd.indexes[len(rnd.results)]
    if participant_index != expected:
        raise InvalidStateError(f"Participant {expected} is up next, not {participant_index}.")
    turn = TurnRecord(index=participant_index)
    rnd.results.append(turn)
    rnd.result_cursor = len(rnd.results) - 1
    return turn


def append_attempt_outcome(rnd: ContestRound, outcome: bool, rules: ContestRules) -> TurnRecord:
    turn = rnd.current_turn
    if turn is None or turn_done(turn, rules):
        raise InvalidStateError("No turn in progress to record a shot for.")
    turn.open_rack.append(bool(outcome))
    # Keep the rack cursor on the last rack once the turn is finished.
    if rack_complete(turn.open_rack, rules) and len(turn.racks) < rules.num_racks:
        turn.racks.append([])
        turn.rack_cursor = len(turn.racks) - 1
    return turn


def score_round(rnd: ContestRound, rules: ContestRules) -> dict[int, int]:
    scores = {index: 0 for index in rnd.indexes}
    for turn in rnd.results:
        for rack in turn.racks:
            for position, made in enumerate(rack):
                if not made:
                    continue
                value = rules.moneyball_value if position == rules.balls_per_rack - 1 else 1
                scores[turn.index] = scores.get(turn.index, 0) + value
    return scores


def ranked_round_results(rnd: ContestRound, rules: ContestRules) -> list[tuple[int, int]]:
    """(index, score) pairs, best first; ties keep roster order."""
    scores = score_round(rnd, rules)
    ordered = sorted(range(len(rnd.indexes)), key=lambda pos: (-scores[rnd.indexes[pos]], pos))
    return [(rnd.indexes[pos], scores[rnd.indexes[pos]]) for pos in ordered]


def count_outcomes(contest: Contest) -> int:
    return sum(turn.attempts for rnd in contest.rounds for turn in rnd.results)


def check_round(rnd: ContestRound, num_participants: int) -> None:
    if not rnd.indexes:
        raise InvariantViolationError("Round has an empty roster.")
    for index in rnd.indexes:
        if index < 0 or index >= num_participants:
            raise InvariantViolationError(f"Round roster names participant {index}, which does not exist.")
    if len(set(rnd.indexes)) != len(rnd.indexes):
        raise InvariantViolationError("Round roster lists a participant twice.")
    if len(rnd.results) > len(rnd.indexes):
        raise InvariantViolationError("Round has more turn records than shooters.")
    expected_cursor = len(rnd.results) - 1 if rnd.results else None
    if rnd.result_cursor != expected_cursor:
        raise InvariantViolationError(
            f"Round cursor points at turn {rnd.result_cursor}, expected {expected_cursor}."
        )
    for position, turn in enumerate(rnd.results):
        if turn.index != rnd.indexes[position]:
            raise InvariantViolationError(f"Turn {position} belongs to {turn.index}, not {rnd.indexes[position]}.")
        if not turn.racks or turn.rack_cursor != len(turn.racks) - 1:
            raise InvariantViolationError(f"Turn {position} has an invalid rack cursor.")
