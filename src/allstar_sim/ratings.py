from __future__ import annotations

from typing import Iterable, Protocol

from .config import RATING_KEY
from .errors import NotFoundError
from .models import Player


class RatingProvider(Protocol):
    def get_rating(self, player_id: str, season: int | None = None) -> float: ...


class RosterRatingProvider:
    """Serves one rating column from an in-memory player pool."""

    def __init__(self, players: Iterable[Player], rating_key: str = RATING_KEY) -> None:
        self.rating_key = rating_key
        self._players: dict[str, Player] = {p.player_id: p for p in players}

    def add(self, player: Player) -> None:
        self._players[player.player_id] = player

    def get_player(self, player_id: str) -> Player:
        player = self._players.get(player_id)
        if player is None:
            raise NotFoundError(f"Unknown player {player_id}")
        return player

    def get_rating(self, player_id: str, season: int | None = None) -> float:
        row = self.get_player(player_id).ratings_for(season)
        if row is None:
            raise NotFoundError(f"No ratings for player {player_id} in season {season}")
        return row.get(self.rating_key)
