from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4


@dataclass(slots=True)
class PlayerRatings:
    season: int
    ovr: float = 50.0
    three_point: float = 50.0

    def get(self, key: str) -> float:
        return float(getattr(self, key))


@dataclass(slots=True)
class Player:
    name: str
    team_name: str
    ratings: list[PlayerRatings] = field(default_factory=list)
    player_id: str = field(default_factory=lambda: uuid4().hex)
    injured: bool = False

    def ratings_for(self, season: int | None = None) -> PlayerRatings | None:
        """Latest rating row at or before ``season`` (latest overall when None)."""
        rows = sorted(self.ratings, key=lambda r: r.season)
        if season is not None:
            rows = [r for r in rows if r.season <= season]
        return rows[-1] if rows else None


@dataclass(frozen=True, slots=True)
class Participant:
    player_id: str
    name: str = ""
    team_name: str = ""

    @classmethod
    def from_player(cls, player: Player) -> "Participant":
        return cls(player_id=player.player_id, name=player.name, team_name=player.team_name)


@dataclass(slots=True)
class TurnRecord:
    index: int
    racks: list[list[bool]] = field(default_factory=lambda: [[]])
    rack_cursor: int = 0

    @property
    def open_rack(self) -> list[bool]:
        return self.racks[self.rack_cursor]

    @property
    def made(self) -> int:
        return sum(1 for rack in self.racks for shot in rack if shot)

    @property
    def attempts(self) -> int:
        return sum(len(rack) for rack in self.racks)


@dataclass(slots=True)
class ContestRound:
    indexes: list[int]
    results: list[TurnRecord] = field(default_factory=list)
    tiebreaker: bool = False
    result_cursor: int | None = None

    @property
    def current_turn(self) -> TurnRecord | None:
        if self.result_cursor is None:
            return None
        return self.results[self.result_cursor]


@dataclass(slots=True)
class Contest:
    contest_id: str
    season: int
    participants: list[Participant]
    rounds: list[ContestRound] = field(default_factory=list)
    round_cursor: int = 0
    winner: int | None = None

    @property
    def current_round(self) -> ContestRound:
        return self.rounds[self.round_cursor]

    @property
    def is_complete(self) -> bool:
        return self.winner is not None

    @property
    def winner_participant(self) -> Participant | None:
        if self.winner is None:
            return None
        return self.participants[self.winner]

    @property
    def normal_round_count(self) -> int:
        return sum(1 for rnd in self.rounds if not rnd.tiebreaker)
