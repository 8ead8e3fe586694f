from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Protocol

from .config import CONTEST_SAVE_VERSION
from .errors import InvariantViolationError, NotFoundError
from .models import Contest, ContestRound, Participant, TurnRecord

logger = logging.getLogger(__name__)


class ContestStore(Protocol):
    def load(self, contest_id: str) -> Contest: ...

    def save(self, contest: Contest) -> None: ...


def serialize_contest(contest: Contest) -> dict[str, Any]:
    return {
        "save_version": CONTEST_SAVE_VERSION,
        "contest_id": contest.contest_id,
        "season": contest.season,
        "participants": [
            {"player_id": p.player_id, "name": p.name, "team_name": p.team_name}
            for p in contest.participants
        ],
        "rounds": [
            {
                "indexes": list(rnd.indexes),
                "tiebreaker": rnd.tiebreaker,
                "result_cursor": rnd.result_cursor,
                "results": [
                    {
                        "index": turn.index,
                        "racks": [list(rack) for rack in turn.racks],
                        "rack_cursor": turn.rack_cursor,
                    }
                    for turn in rnd.results
                ],
            }
            for rnd in contest.rounds
        ],
        "round_cursor": contest.round_cursor,
        "winner": contest.winner,
    }


def deserialize_contest(raw: Any) -> Contest:
    if not isinstance(raw, dict):
        raise InvariantViolationError("Contest payload has invalid format.")
    version = int(raw.get("save_version", 1) or 1)
    if version > CONTEST_SAVE_VERSION:
        raise InvariantViolationError(
            f"Unsupported contest version {version}; app supports up to {CONTEST_SAVE_VERSION}."
        )
    try:
        participants = [
            Participant(
                player_id=str(p["player_id"]),
                name=str(p.get("name", "")),
                team_name=str(p.get("team_name", "")),
            )
            for p in raw.get("participants", [])
        ]
        rounds = []
        for r in raw.get("rounds", []):
            results = [
                TurnRecord(
                    index=int(t["index"]),
                    racks=[[bool(shot) for shot in rack] for rack in t.get("racks", [[]])],
                    rack_cursor=int(t.get("rack_cursor", len(t.get("racks", [[]])) - 1)),
                )
                for t in r.get("results", [])
            ]
            raw_cursor = r.get("result_cursor", len(results) - 1 if results else None)
            rounds.append(
                ContestRound(
                    indexes=[int(i) for i in r.get("indexes", [])],
                    results=results,
                    tiebreaker=bool(r.get("tiebreaker", False)),
                    result_cursor=None if raw_cursor is None else int(raw_cursor),
                )
            )
        winner = raw.get("winner")
        contest = Contest(
            contest_id=str(raw["contest_id"]),
            season=int(raw["season"]),
            participants=participants,
            rounds=rounds,
            round_cursor=int(raw.get("round_cursor", len(rounds) - 1)),
            winner=None if winner is None else int(winner),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise InvariantViolationError(f"Contest payload is invalid ({exc}).") from exc
    return contest


class MemoryContestStore:
    """Keeps serialized snapshots so callers never share live objects with the store."""

    def __init__(self) -> None:
        self._snapshots: dict[str, str] = {}
        self.writes = 0

    def load(self, contest_id: str) -> Contest:
        snapshot = self._snapshots.get(contest_id)
        if snapshot is None:
            raise NotFoundError(f"No contest {contest_id}")
        return deserialize_contest(json.loads(snapshot))

    def save(self, contest: Contest) -> None:
        self._snapshots[contest.contest_id] = json.dumps(serialize_contest(contest), sort_keys=True)
        self.writes += 1

    def snapshot(self, contest_id: str) -> str | None:
        return self._snapshots.get(contest_id)

    def contest_ids(self) -> list[str]:
        return sorted(self._snapshots)


class JsonContestStore:
    def __init__(self, root: str | Path, *, with_backup: bool = True) -> None:
        self.root = Path(root)
        self.with_backup = with_backup

    def path_for(self, contest_id: str) -> Path:
        # Hex keeps the file name one-to-one with the id.
        return self.root / f"contest_{contest_id.encode().hex()}.json"

    def load(self, contest_id: str) -> Contest:
        path = self.path_for(contest_id)
        if not path.exists():
            raise NotFoundError(f"No contest {contest_id}")
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise InvariantViolationError(f"Failed to load contest {contest_id} ({exc}).") from exc
        contest = deserialize_contest(raw)
        if contest.contest_id != contest_id:
            raise NotFoundError(f"No contest {contest_id}")
        return contest

    def save(self, contest: Contest) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._write_json_with_backup(self.path_for(contest.contest_id), serialize_contest(contest))

    def contest_ids(self) -> list[str]:
        if not self.root.exists():
            return []
        ids = []
        for path in sorted(self.root.glob("contest_*.json")):
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                logger.warning("Skipping unreadable contest file %s", path)
                continue
            if isinstance(raw, dict) and "contest_id" in raw:
                ids.append(str(raw["contest_id"]))
        return ids

    def _write_json_with_backup(self, path: Path, payload: Any) -> None:
        if self.with_backup and path.exists():
            backup = path.with_suffix(path.suffix + ".bak")
            try:
                shutil.copy2(path, backup)
            except OSError:
                logger.warning("Could not refresh backup %s", backup)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
