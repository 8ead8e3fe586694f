from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class AwardRecorder(Protocol):
    """Recording the same award for the same contest twice must be a no-op."""

    def record(self, winner_id: str, contest_id: str, award_label: str, *, season: int | None = None) -> None: ...


def _already_awarded(awards: list[dict[str, Any]], contest_id: str, award_label: str) -> bool:
    return any(row.get("contest_id") == contest_id and row.get("type") == award_label for row in awards)


class MemoryAwardRecorder:
    """Records each contest's award once; repeats for the same contest are ignored."""

    def __init__(self) -> None:
        self.awards: list[dict[str, Any]] = []

    def record(self, winner_id: str, contest_id: str, award_label: str, *, season: int | None = None) -> None:
        if _already_awarded(self.awards, contest_id, award_label):
            return
        self.awards.append(
            {"player_id": winner_id, "contest_id": contest_id, "type": award_label, "season": season}
        )


class JsonAwardLog:
    """Append-only award history in one JSON file."""

    SAVE_VERSION = 1

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.last_load_error: str = ""
        self.awards: list[dict[str, Any]] = self._load()

    def _load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            self.last_load_error = f"Failed to load award history ({exc}); starting empty."
            logger.warning(self.last_load_error)
            return []
        if isinstance(raw, dict):
            version = int(raw.get("save_version", 1) or 1)
            if version > self.SAVE_VERSION:
                self.last_load_error = (
                    f"Unsupported award history version {version}; app supports up to {self.SAVE_VERSION}."
                )
                logger.warning(self.last_load_error)
                return []
            payload = raw.get("awards", [])
            if isinstance(payload, list):
                return [row for row in payload if isinstance(row, dict)]
        self.last_load_error = "Award history file has invalid format; starting empty."
        logger.warning(self.last_load_error)
        return []

    def record(self, winner_id: str, contest_id: str, award_label: str, *, season: int | None = None) -> None:
        if _already_awarded(self.awards, contest_id, award_label):
            logger.info("Award %s for contest %s already recorded", award_label, contest_id)
            return
        row = {"player_id": winner_id, "contest_id": contest_id, "type": award_label, "season": season}
        # Only keep the award once it is on disk.
        self._save([*self.awards, row])
        self.awards.append(row)

    def for_player(self, player_id: str) -> list[dict[str, Any]]:
        return [row for row in self.awards if row.get("player_id") == player_id]

    def _save(self, awards: list[dict[str, Any]]) -> None:
        if self.path.exists():
            backup = self.path.with_suffix(self.path.suffix + ".bak")
            try:
                shutil.copy2(self.path, backup)
            except OSError:
                logger.warning("Could not refresh backup %s", backup)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"save_version": self.SAVE_VERSION, "awards": awards}
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
