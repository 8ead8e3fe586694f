from __future__ import annotations

import logging
import random
from enum import Enum
from threading import Lock
from typing import Any, Iterable

from .advancement import TIEBREAKER_ROUND, WINNER, decide
from .awards import AwardRecorder
from .config import RATING_KEY, ContestRules
from .errors import InvalidStateError, InvariantViolationError, NotFoundError
from .models import Contest, ContestRound, Participant, Player, TurnRecord
from .ratings import RatingProvider
from .rounds import (
    append_attempt_outcome,
    check_round,
    next_pending_participant,
    ranked_round_results,
    start_turn_record,
    turn_done,
)
from .sampler import sample_outcome
from .store import ContestStore

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    EVENT = "event"
    RACK = "rack"
    PLAYER = "player"
    ROUND = "round"
    ALL = "all"

    @property
    def granularity(self) -> int:
        return _GRANULARITY[self]


_GRANULARITY = {
    EventKind.EVENT: 0,
    EventKind.RACK: 1,
    EventKind.PLAYER: 2,
    EventKind.ROUND: 3,
    EventKind.ALL: 4,
}


def select_contestants(
    players: Iterable[Player],
    season: int | None,
    count: int,
    rating_key: str = RATING_KEY,
) -> list[Participant]:
    """Best healthy shooters for the season, best first."""
    rated: list[tuple[float, Player]] = []
    for player in players:
        if player.injured:
            continue
        row = player.ratings_for(season)
        if row is None:
            continue
        rated.append((row.get(rating_key), player))
    rated.sort(key=lambda item: (-item[0], item[1].name))
    return [Participant.from_player(player) for _rating, player in rated[:count]]


class ContestDriver:
    """Advances persisted contests one atomic event per call.

    Every call loads the whole contest, mutates it in memory and saves it
    once. Calls for the same contest id are serialized with a per-contest
    lock; different contests never block each other.
    """

    def __init__(
        self,
        store: ContestStore,
        ratings: RatingProvider,
        awards: AwardRecorder,
        rules: ContestRules | None = None,
        rng: random.Random | None = None,
        seed: int | None = None,
    ) -> None:
        self.store = store
        self.ratings = ratings
        self.awards = awards
        self.rules = rules or ContestRules()
        self._rng = rng if rng is not None else random.Random(seed)
        self._locks: dict[str, Lock] = {}
        self._locks_guard = Lock()

    def _lock_for(self, contest_id: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(contest_id)
            if lock is None:
                lock = Lock()
                self._locks[contest_id] = lock
            return lock

    def create_contest(self, contest_id: str, season: int, participants: Iterable[Participant]) -> Contest:
        roster = list(participants)
        if len(roster) <= self.rules.advance_counts[0] or len(roster) > self.rules.num_participants:
            raise ValueError(
                f"Contest needs between {self.rules.advance_counts[0] + 1} and "
                f"{self.rules.num_participants} shooters, got {len(roster)}."
            )
        if len({p.player_id for p in roster}) != len(roster):
            raise ValueError("A player can only enter the contest once.")

        with self._lock_for(contest_id):
            try:
                self.store.load(contest_id)
            except NotFoundError:
                pass
            else:
                raise InvalidStateError(f"Contest {contest_id} already exists.")
            first = ContestRound(indexes=list(range(len(roster))))
            start_turn_record(first, first.indexes[0], self.rules)
            contest = Contest(contest_id=contest_id, season=season, participants=roster, rounds=[first])
            self.store.save(contest)
        logger.info("Created contest %s for season %s with %d shooters", contest_id, season, len(roster))
        return contest

    def get_contest(self, contest_id: str) -> Contest:
        return self.store.load(contest_id)

    def _drop_lock(self, contest_id: str, lock: Lock) -> None:
        # Finished contests are never written again, so their lock can go.
        with self._locks_guard:
            if self._locks.get(contest_id) is lock:
                del self._locks[contest_id]

    def advance_one_event(self, contest_id: str) -> EventKind:
        lock = self._lock_for(contest_id)
        with lock:
            contest = self.store.load(contest_id)
            if contest.winner is not None:
                kind = EventKind.ALL
            else:
                kind = self._step(contest)
                self.store.save(contest)
        if kind is EventKind.ALL:
            self._drop_lock(contest_id, lock)
        return kind

    def advance_until(
        self,
        contest_id: str,
        stop_at: EventKind = EventKind.ALL,
        max_events: int = 10_000,
    ) -> EventKind:
        """Step until an event at least as coarse as ``stop_at`` happens."""
        for _ in range(max_events):
            kind = self.advance_one_event(contest_id)
            if kind.granularity >= stop_at.granularity:
                return kind
        raise InvalidStateError(f"Contest {contest_id} did not reach '{stop_at.value}' within {max_events} events.")

    def round_results(self, contest_id: str) -> list[dict[str, Any]]:
        contest = self.store.load(contest_id)
        rounds: list[dict[str, Any]] = []
        for number, rnd in enumerate(contest.rounds, start=1):
            turns = {turn.index: turn for turn in rnd.results}
            rows = []
            for index, score in ranked_round_results(rnd, self.rules):
                participant = contest.participants[index]
                turn = turns.get(index)
                rows.append(
                    {
                        "index": index,
                        "player_id": participant.player_id,
                        "name": participant.name,
                        "team_name": participant.team_name,
                        "score": score,
                        "made": turn.made if turn else 0,
                        "attempts": turn.attempts if turn else 0,
                    }
                )
            rounds.append({"round": number, "tiebreaker": rnd.tiebreaker, "results": rows})
        return rounds

    def _check_contest(self, contest: Contest) -> None:
        if not contest.participants:
            raise InvariantViolationError(f"Contest {contest.contest_id} has an empty roster.")
        if not contest.rounds or contest.round_cursor != len(contest.rounds) - 1:
            raise InvariantViolationError(
                f"Contest {contest.contest_id} round cursor {contest.round_cursor} "
                f"does not match {len(contest.rounds)} rounds."
            )
        check_round(contest.current_round, len(contest.participants))

    def _step(self, contest: Contest) -> EventKind:
        self._check_contest(contest)
        rnd = contest.current_round
        pending = next_pending_participant(rnd, self.rules)
        if pending is None:
            return self._finish_round(contest)

        turn = rnd.current_turn
        if turn is None or turn_done(turn, self.rules):
            start_turn_record(rnd, pending, self.rules)
            logger.debug("Contest %s: %s steps up", contest.contest_id, contest.participants[pending].name)
            return EventKind.EVENT
        return self._shoot(contest, rnd, turn)

    def _shoot(self, contest: Contest, rnd: ContestRound, turn: TurnRecord) -> EventKind:
        participant = contest.participants[turn.index]
        # Rating lookup happens before any mutation so a miss leaves the round untouched.
        rating = self.ratings.get_rating(participant.player_id, contest.season)
        made = sample_outcome(rating, self._rng)
        racks_before = len(turn.racks)
        append_attempt_outcome(rnd, made, self.rules)
        logger.debug("Contest %s: %s %s", contest.contest_id, participant.name, "makes" if made else "misses")
        if turn_done(turn, self.rules):
            return EventKind.PLAYER
        if len(turn.racks) > racks_before:
            return EventKind.RACK
        return EventKind.EVENT

    def _finish_round(self, contest: Contest) -> EventKind:
        decision = decide(contest, self.rules)
        if decision.kind == WINNER:
            contest.winner = decision.winner
            winner = contest.participants[decision.indexes[0]]
            self.awards.record(
                winner.player_id,
                contest.contest_id,
                self.rules.award_label,
                season=contest.season,
            )
            logger.info("Contest %s won by %s (%s)", contest.contest_id, winner.name, winner.team_name)
            return EventKind.ALL

        new_round = ContestRound(indexes=list(decision.indexes), tiebreaker=decision.kind == TIEBREAKER_ROUND)
        start_turn_record(new_round, new_round.indexes[0], self.rules)
        contest.rounds.append(new_round)
        contest.round_cursor = len(contest.rounds) - 1
        logger.info(
            "Contest %s: %s with shooters %s",
            contest.contest_id,
            "tiebreaker" if new_round.tiebreaker else f"round {contest.normal_round_count}",
            new_round.indexes,
        )
        return EventKind.ROUND
