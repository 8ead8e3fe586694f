from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Any, NoReturn

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .app import build_default_players
from .awards import JsonAwardLog
from .config import NUM_SHOOTERS_IN_CONTEST
from .driver import ContestDriver, EventKind, select_contestants
from .errors import ContestError, InvalidStateError, InvariantViolationError, NotFoundError
from .models import Contest, Participant
from .ratings import RosterRatingProvider
from .store import JsonContestStore, serialize_contest

logger = logging.getLogger(__name__)


class ContestCreate(BaseModel):
    contest_id: str | None = None
    season: int | None = None
    player_ids: list[str] | None = None


class AdvanceUntilSelection(BaseModel):
    stop_at: str = "round"
    max_events: int = 10_000


def _raise_http(exc: ContestError) -> NoReturn:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, InvalidStateError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if isinstance(exc, InvariantViolationError):
        logger.error("Contest state is inconsistent: %s", exc)
    raise HTTPException(status_code=500, detail=str(exc)) from exc


class ContestService:
    def __init__(self, data_root: Path | None = None, season: int = 1, seed: int | None = None) -> None:
        self.data_root = Path(data_root) if data_root is not None else Path(__file__).resolve().parents[2] / "data"
        self.season = season
        self.players = build_default_players(season=season)
        self.ratings = RosterRatingProvider(self.players)
        self.awards = JsonAwardLog(self.data_root / "awards.json")
        self.driver = ContestDriver(
            JsonContestStore(self.data_root / "contests"),
            self.ratings,
            self.awards,
            seed=seed,
        )
        self._lock = Lock()

    def _contest_payload(self, contest: Contest) -> dict[str, Any]:
        payload = serialize_contest(contest)
        winner = contest.winner_participant
        payload["winner_name"] = winner.name if winner else None
        payload["complete"] = contest.is_complete
        return payload

    def create(self, contest_id: str | None, season: int | None, player_ids: list[str] | None) -> dict[str, Any]:
        chosen_season = season if season is not None else self.season
        chosen_id = (contest_id or f"three-{chosen_season}").strip()
        if not chosen_id:
            raise HTTPException(status_code=400, detail="Contest id is required")
        if player_ids:
            try:
                participants = [Participant.from_player(self.ratings.get_player(pid)) for pid in player_ids]
            except NotFoundError as exc:
                _raise_http(exc)
        else:
            participants = select_contestants(self.players, chosen_season, NUM_SHOOTERS_IN_CONTEST)
        try:
            contest = self.driver.create_contest(chosen_id, chosen_season, participants)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ContestError as exc:
            _raise_http(exc)
        return self._contest_payload(contest)

    def contest(self, contest_id: str) -> dict[str, Any]:
        try:
            return self._contest_payload(self.driver.get_contest(contest_id))
        except ContestError as exc:
            _raise_http(exc)

    def advance(self, contest_id: str) -> dict[str, Any]:
        try:
            kind = self.driver.advance_one_event(contest_id)
            contest = self.driver.get_contest(contest_id)
        except ContestError as exc:
            _raise_http(exc)
        return {"ok": True, "event": kind.value, "contest": self._contest_payload(contest)}

    def advance_until(self, contest_id: str, stop_at: str, max_events: int) -> dict[str, Any]:
        try:
            target = EventKind(stop_at.lower().strip())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Unknown event type '{stop_at}'") from exc
        if max_events < 1:
            raise HTTPException(status_code=400, detail="max_events must be positive")
        try:
            kind = self.driver.advance_until(contest_id, stop_at=target, max_events=max_events)
            contest = self.driver.get_contest(contest_id)
        except ContestError as exc:
            _raise_http(exc)
        return {"ok": True, "event": kind.value, "contest": self._contest_payload(contest)}

    def results(self, contest_id: str) -> list[dict[str, Any]]:
        try:
            return self.driver.round_results(contest_id)
        except ContestError as exc:
            _raise_http(exc)

    def players_table(self) -> list[dict[str, Any]]:
        rows = []
        for player in self.players:
            row = player.ratings_for(self.season)
            rows.append(
                {
                    "player_id": player.player_id,
                    "name": player.name,
                    "team_name": player.team_name,
                    "injured": player.injured,
                    "ovr": row.ovr if row else None,
                    "three_point": row.three_point if row else None,
                }
            )
        rows.sort(key=lambda r: -(r["three_point"] or 0.0))
        return rows


service = ContestService()
app = FastAPI(title="All-Star Contest API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/players")
def players() -> list[dict[str, Any]]:
    with service._lock:
        return service.players_table()


@app.post("/api/contests")
def create_contest(payload: ContestCreate) -> dict[str, Any]:
    with service._lock:
        return service.create(contest_id=payload.contest_id, season=payload.season, player_ids=payload.player_ids)


@app.get("/api/contests/{contest_id}")
def contest(contest_id: str) -> dict[str, Any]:
    with service._lock:
        return service.contest(contest_id)


@app.post("/api/contests/{contest_id}/advance")
def advance(contest_id: str) -> dict[str, Any]:
    with service._lock:
        return service.advance(contest_id)


@app.post("/api/contests/{contest_id}/advance-until")
def advance_until(contest_id: str, payload: AdvanceUntilSelection) -> dict[str, Any]:
    with service._lock:
        return service.advance_until(contest_id, stop_at=payload.stop_at, max_events=payload.max_events)


@app.get("/api/contests/{contest_id}/results")
def results(contest_id: str) -> list[dict[str, Any]]:
    with service._lock:
        return service.results(contest_id)


@app.get("/api/awards")
def awards(player_id: str | None = None) -> list[dict[str, Any]]:
    with service._lock:
        if player_id:
            return service.awards.for_player(player_id)
        return list(service.awards.awards)
