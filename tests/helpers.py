from __future__ import annotations

from allstar_sim.config import ContestRules
from allstar_sim.models import Contest, ContestRound, Participant, TurnRecord

RULES = ContestRules()


def finished_turn(index: int, score: int) -> TurnRecord:
    """Complete 5x5 turn worth exactly ``score`` points using only 1-point balls."""
    assert 0 <= score <= 20
    racks: list[list[bool]] = []
    remaining = score
    for _rack in range(RULES.num_racks):
        makes = min(4, remaining)
        remaining -= makes
        racks.append([pos < makes for pos in range(4)] + [False])
    return TurnRecord(index=index, racks=racks, rack_cursor=len(racks) - 1)


def finished_round(scores: dict[int, int], tiebreaker: bool = False) -> ContestRound:
    indexes = list(scores)
    results = [finished_turn(index, score) for index, score in scores.items()]
    return ContestRound(indexes=indexes, results=results, tiebreaker=tiebreaker, result_cursor=len(results) - 1)


def make_participants(count: int = 8) -> list[Participant]:
    return [Participant(player_id=f"p{i}", name=f"Shooter {i}", team_name="Aurora") for i in range(count)]


def make_contest(*rounds: ContestRound, count: int = 8) -> Contest:
    return Contest(
        contest_id="three-1",
        season=1,
        participants=make_participants(count),
        rounds=list(rounds),
        round_cursor=len(rounds) - 1,
    )
