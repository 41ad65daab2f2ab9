import json

import pytest

from hoops_sim.errors import ConfigError
from hoops_sim.season import Season
from hoops_sim.state import SAVE_VERSION, Phase, SeasonState, state_from_dict, state_to_dict


def test_snapshot_round_trip_mid_season(season: Season) -> None:
    for _ in range(30):
        season.advance()
    season.sign_free_agent("east1", season.state.free_agents[0].player_id, salary=1_000_000)
    snapshot = season.snapshot()

    restored = Season.from_snapshot(json.loads(json.dumps(snapshot)))
    assert restored.phase == Phase.PLAYOFFS
    assert state_to_dict(restored.state)["teams"] == snapshot["teams"]
    assert restored.get_playoffs() == season.get_playoffs()
    assert [r.as_dict() for r in restored.get_standings("WEST")] == [r.as_dict() for r in season.get_standings("WEST")]
    assert restored.get_transaction_log() == season.get_transaction_log()


@pytest.mark.regression
def test_restored_season_continues_identically(season: Season) -> None:
    for _ in range(10):
        season.advance()
    restored = Season.from_snapshot(json.loads(json.dumps(season.snapshot())))
    assert season.simulate_to_end() == restored.simulate_to_end()


@pytest.mark.regression
def test_rejects_newer_save_version(season: Season) -> None:
    snapshot = season.snapshot()
    snapshot["save_version"] = SAVE_VERSION + 1
    with pytest.raises(ConfigError, match="Unsupported season snapshot version"):
        Season.from_snapshot(snapshot)


def test_rejects_malformed_snapshots() -> None:
    with pytest.raises(ConfigError):
        state_from_dict(["not", "a", "dict"])
    with pytest.raises(ConfigError):
        state_from_dict({"teams": [{"name": "missing id"}]})
    with pytest.raises(ConfigError):
        state_from_dict({"phase": "offseason"})


def test_empty_state_round_trips() -> None:
    state = state_from_dict(state_to_dict(SeasonState()))
    assert state.teams == []
    assert state.phase == Phase.REGULAR_SEASON


def test_save_writes_backup_and_loads(season: Season, tmp_path) -> None:
    path = tmp_path / "saves" / "season.json"
    season.save(path)
    assert path.exists()
    assert not path.with_suffix(".json.bak").exists()

    season.advance()
    season.save(path)
    backup = path.with_suffix(".json.bak")
    assert backup.exists()
    assert json.loads(backup.read_text(encoding="utf-8"))["fixture_index"] == 0

    loaded = Season.load(path)
    assert loaded.state.fixture_index == 1
    assert loaded.rules == season.rules


def test_load_reports_unreadable_file(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        Season.load(path)
