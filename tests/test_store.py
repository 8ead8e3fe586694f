import json

import pytest

from allstar_sim.awards import JsonAwardLog
from allstar_sim.config import CONTEST_SAVE_VERSION
from allstar_sim.errors import InvariantViolationError, NotFoundError
from allstar_sim.models import ContestRound
from allstar_sim.rounds import start_turn_record
from allstar_sim.store import JsonContestStore, MemoryContestStore, deserialize_contest, serialize_contest

from helpers import RULES, finished_round, make_contest


def _in_progress_contest():
    second = ContestRound(indexes=[2, 3], tiebreaker=True)
    start_turn_record(second, 2, RULES)
    second.current_turn.racks[0].extend([True, False])
    return make_contest(finished_round({0: 15, 1: 14, 2: 10, 3: 10, 4: 5, 5: 5, 6: 5, 7: 5}), second)


def test_json_store_round_trips_contest(tmp_path) -> None:
    store = JsonContestStore(tmp_path)
    contest = _in_progress_contest()
    store.save(contest)
    loaded = store.load("three-1")
    assert loaded == contest
    assert loaded.current_round.tiebreaker is True
    assert loaded.current_round.current_turn.racks == [[True, False]]
    assert store.contest_ids() == ["three-1"]


def test_memory_store_hands_out_copies() -> None:
    store = MemoryContestStore()
    contest = _in_progress_contest()
    store.save(contest)
    loaded = store.load("three-1")
    loaded.current_round.current_turn.racks[0].append(True)
    assert store.load("three-1").current_round.current_turn.racks == [[True, False]]


def test_missing_contest_raises_not_found(tmp_path) -> None:
    with pytest.raises(NotFoundError):
        JsonContestStore(tmp_path).load("three-9")
    with pytest.raises(NotFoundError):
        MemoryContestStore().load("three-9")


@pytest.mark.regression
def test_contest_save_includes_version_and_backup(tmp_path) -> None:
    store = JsonContestStore(tmp_path)
    contest = _in_progress_contest()
    store.save(contest)
    path = store.path_for("three-1")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["save_version"] == CONTEST_SAVE_VERSION

    store.save(contest)
    assert path.with_suffix(path.suffix + ".bak").exists()


@pytest.mark.regression
def test_rejects_future_contest_version(tmp_path) -> None:
    store = JsonContestStore(tmp_path)
    payload = serialize_contest(_in_progress_contest())
    payload["save_version"] = 999
    store.path_for("three-1").write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(InvariantViolationError, match="Unsupported contest version"):
        store.load("three-1")


@pytest.mark.regression
def test_loads_contest_without_cursor_fields() -> None:
    payload = serialize_contest(_in_progress_contest())
    payload.pop("round_cursor")
    for rnd in payload["rounds"]:
        rnd.pop("result_cursor")
        for turn in rnd["results"]:
            turn.pop("rack_cursor")
    loaded = deserialize_contest(payload)
    assert loaded == _in_progress_contest()


def test_corrupt_contest_file_is_an_invariant_violation(tmp_path) -> None:
    store = JsonContestStore(tmp_path)
    store.path_for("three-1").write_text("{not json", encoding="utf-8")
    with pytest.raises(InvariantViolationError):
        store.load("three-1")
    with pytest.raises(InvariantViolationError):
        deserialize_contest({"season": 1})


def test_award_log_persists_between_instances(tmp_path) -> None:
    path = tmp_path / "awards.json"
    log = JsonAwardLog(path)
    log.record("p3", "three-1", "Three-Point Contest Winner", season=1)
    log.record("p3", "three-2", "Three-Point Contest Winner", season=2)

    reloaded = JsonAwardLog(path)
    assert len(reloaded.awards) == 2
    assert [row["season"] for row in reloaded.for_player("p3")] == [1, 2]
    assert reloaded.last_load_error == ""


@pytest.mark.regression
def test_award_log_rejects_future_version(tmp_path) -> None:
    path = tmp_path / "awards.json"
    path.write_text(json.dumps({"save_version": 999, "awards": [{"player_id": "p1"}]}), encoding="utf-8")
    log = JsonAwardLog(path)
    assert log.awards == []
    assert "Unsupported award history version" in log.last_load_error


def test_distinct_ids_never_share_a_file(tmp_path) -> None:
    store = JsonContestStore(tmp_path)
    contest = _in_progress_contest()
    contest.contest_id = "a/b"
    store.save(contest)
    assert store.path_for("a/b") != store.path_for("a_b")
    assert store.load("a/b").contest_id == "a/b"
    with pytest.raises(NotFoundError):
        store.load("a_b")
    assert store.contest_ids() == ["a/b"]


def test_file_holding_another_contest_is_not_found(tmp_path) -> None:
    store = JsonContestStore(tmp_path)
    payload = serialize_contest(_in_progress_contest())
    payload["contest_id"] = "three-2"
    store.path_for("three-1").write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(NotFoundError):
        store.load("three-1")


def test_award_log_records_each_contest_once(tmp_path) -> None:
    path = tmp_path / "awards.json"
    log = JsonAwardLog(path)
    log.record("p3", "three-1", "Three-Point Contest Winner", season=1)
    log.record("p3", "three-1", "Three-Point Contest Winner", season=1)
    assert len(log.awards) == 1
    assert len(JsonAwardLog(path).awards) == 1


def test_award_log_keeps_nothing_when_write_fails(tmp_path) -> None:
    path = tmp_path / "awards.json"
    path.mkdir()
    log = JsonAwardLog(path)
    with pytest.raises(OSError):
        log.record("p3", "three-1", "Three-Point Contest Winner", season=1)
    assert log.awards == []
