from __future__ import annotations

import argparse
import logging
import random
from pathlib import Path
from typing import Any, Iterable

from .awards import JsonAwardLog, MemoryAwardRecorder
from .config import NUM_SHOOTERS_IN_CONTEST
from .driver import ContestDriver, EventKind, select_contestants
from .errors import NotFoundError
from .models import Player, PlayerRatings
from .names import NameGenerator
from .ratings import RosterRatingProvider
from .sampler import clamp_rating
from .store import JsonContestStore, MemoryContestStore

TEAM_NAMES: tuple[str, ...] = (
    "Aurora", "Icebreakers", "Timberwolves", "Glaciers",
    "Harbor Kings", "Liberty Blades", "Metro Sparks", "Bay Comets",
    "Prairie Storm", "Lake Vipers", "Desert Fire", "Pacific Tide",
)


def _sample_quality(rng: random.Random, tier_plan: list[tuple[float, float, float]]) -> float:
    roll = rng.random()
    cumulative = 0.0
    for weight, low, high in tier_plan:
        cumulative += weight
        if roll <= cumulative:
            return rng.uniform(low, high)
    return rng.uniform(tier_plan[-1][1], tier_plan[-1][2])


def build_default_players(season: int = 1, players_per_team: int = 4, seed: int = 7) -> list[Player]:
    # Few pure shooters, many average ones.
    shooter_tiers = [(0.08, 80.0, 95.0), (0.22, 65.0, 80.0), (0.45, 45.0, 65.0), (0.25, 25.0, 45.0)]
    name_gen = NameGenerator(seed=seed)
    players: list[Player] = []
    for team_name in TEAM_NAMES:
        rng = random.Random(f"{team_name}:{season}:{seed}")
        for _idx in range(players_per_team):
            three_point = _sample_quality(rng, shooter_tiers)
            ovr = clamp_rating(three_point * 0.35 + rng.uniform(35.0, 60.0))
            players.append(
                Player(
                    name=name_gen.next_name(),
                    team_name=team_name,
                    ratings=[PlayerRatings(season=season, ovr=round(ovr, 1), three_point=round(three_point, 1))],
                    injured=rng.random() < 0.04,
                )
            )
    return players


def format_round_results(rounds: Iterable[dict[str, Any]]) -> str:
    lines: list[str] = []
    for rnd in rounds:
        title = f"Round {rnd['round']}" + (" (tiebreaker)" if rnd["tiebreaker"] else "")
        lines.append(title)
        lines.append("Pos Player                Team             Pts  FGM/FGA")
        for pos, row in enumerate(rnd["results"], start=1):
            lines.append(
                f"{pos:>3} {row['name']:<20} {row['team_name']:<16} {row['score']:>3}"
                f" {row['made']:>4}/{row['attempts']:<3}"
            )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Simulate an all-star three-point contest.")
    parser.add_argument("--season", type=int, default=1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--data-dir", type=Path, default=None, help="Persist contests and awards as JSON here.")
    parser.add_argument("--stop-at", choices=[kind.value for kind in EventKind], default=EventKind.ROUND.value)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    players = build_default_players(season=args.season)
    if args.data_dir is not None:
        store: JsonContestStore | MemoryContestStore = JsonContestStore(args.data_dir)
        awards: JsonAwardLog | MemoryAwardRecorder = JsonAwardLog(args.data_dir / "awards.json")
    else:
        store = MemoryContestStore()
        awards = MemoryAwardRecorder()
    driver = ContestDriver(store, RosterRatingProvider(players), awards, seed=args.seed)

    contest_id = f"three-{args.season}"
    try:
        driver.get_contest(contest_id)
    except NotFoundError:
        contestants = select_contestants(players, args.season, NUM_SHOOTERS_IN_CONTEST)
        driver.create_contest(contest_id, args.season, contestants)

    stop_at = EventKind(args.stop_at)
    stops = 0
    while True:
        kind = driver.advance_until(contest_id, stop_at=stop_at)
        stops += 1
        print(f"[{stops:>3}] {kind.value}")
        if kind is EventKind.ALL:
            break
    print(format_round_results(driver.round_results(contest_id)))
    winner = driver.get_contest(contest_id).winner_participant
    if winner is not None:
        print(f"\nWinner: {winner.name} ({winner.team_name})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
