import json

import pytest

from hoops_sim.app import build_default_league, format_leaders, format_standings, load_league_file, main
from hoops_sim.errors import ConfigError
from hoops_sim.season import Season


def test_default_league_shape() -> None:
    league = build_default_league(seed=7)
    teams = league["teams"]
    assert len(teams) == 16
    assert sum(team["conference"] == "EAST" for team in teams) == 8
    assert all(len(team["players"]) == 12 for team in teams)

    names = [p["name"] for team in teams for p in team["players"]]
    assert len(names) == len(set(names))
    ids = [p["id"] for team in teams for p in team["players"]]
    assert len(ids) == len(set(ids))


def test_default_league_is_reproducible_and_playable() -> None:
    assert build_default_league(seed=3) == build_default_league(seed=3)
    season = Season(seed=3)
    season.init_season(build_default_league(seed=3))
    assert len(season.state.schedule) == 2 * 8 * 7
    for team in season.state.teams:
        assert season.get_team_cap_info(team.team_id)["payroll"] == sum(p.salary for p in team.roster)


def test_load_league_file_accepts_bare_list(tmp_path) -> None:
    path = tmp_path / "teams.json"
    path.write_text(json.dumps([{"id": "a", "name": "A"}]), encoding="utf-8")
    assert load_league_file(path) == {"teams": [{"id": "a", "name": "A"}]}

    broken = tmp_path / "broken.json"
    broken.write_text("nope", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_league_file(broken)
    with pytest.raises(ConfigError):
        load_league_file(tmp_path / "missing.json")


def test_formatters(season: Season) -> None:
    for _ in range(4):
        season.advance()
    table = format_standings(season.get_standings("EAST"), title="EAST")
    lines = table.splitlines()
    assert lines[0] == "EAST"
    assert len(lines) == 2 + 4

    leaders = format_leaders(season.get_player_leaders("points"), title="Points per game", limit=3)
    assert len(leaders.splitlines()) == 2 + 3


def test_cli_runs_a_season_and_saves(tmp_path, small_league, capsys) -> None:
    league_path = tmp_path / "league.json"
    league_path.write_text(json.dumps(small_league), encoding="utf-8")
    save_path = tmp_path / "final.json"

    code = main(["run", "--league", str(league_path), "--seed", "4", "--save", str(save_path), "--seasons", "2"])
    assert code == 0
    out = capsys.readouterr().out
    assert out.count("Champion:") == 2
    assert "Playoff MVP:" in out

    restored = Season.load(save_path)
    assert restored.state.season_year == 2
    assert restored.is_finished
    assert len(restored.state.history) == 1


def test_cli_reports_bad_league_file(tmp_path) -> None:
    assert main(["run", "--league", str(tmp_path / "missing.json")]) == 2
    assert main([]) == 1
