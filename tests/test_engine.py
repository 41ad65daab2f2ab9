import random

import pytest

from conftest import make_team
from hoops_sim.config import LeagueRules
from hoops_sim.engine import MatchEngine, simulate_game, split_possessions


def test_split_possessions_conserves_budget() -> None:
    assert split_possessions(90, 50.0, 50.0) == (45, 45)
    assert split_possessions(90, 0.0, 0.0) == (45, 45)
    rng = random.Random(31)
    for _ in range(10_000):
        home_power = rng.uniform(1.0, 100.0)
        away_power = rng.uniform(1.0, 100.0)
        home, away = split_possessions(90, home_power, away_power)
        assert home + away == 90
        assert home >= 0 and away >= 0
        assert abs(home - 90 * home_power / (home_power + away_power)) <= 1


def test_game_result_is_consistent() -> None:
    home = make_team("olympus", level=60.0)
    away = make_team("asgard", level=50.0, conference="WEST")
    result = simulate_game(home, away, rng=random.Random(1), context={"phase": "regular_season"})

    outcome = result.outcome
    assert outcome.home_points != outcome.away_points
    assert result.stats["home"].points == outcome.home_points
    assert result.stats["away"].points == outcome.away_points
    assert result.home_possessions + result.away_possessions == 90 + outcome.overtimes * 10
    assert result.winner_team_id in {"olympus", "asgard"}
    assert result.context == {"phase": "regular_season"}

    home_ids = {p.player_id for p in home.roster}
    home_points = sum(line.points for pid, line in result.player_stats.items() if pid in home_ids)
    assert home_points == outcome.home_points


@pytest.mark.regression
def test_no_ties_across_many_games() -> None:
    rng = random.Random(2024)
    for _ in range(10_000):
        home = make_team("hades", level=rng.uniform(20.0, 95.0))
        away = make_team("helheim", level=rng.uniform(20.0, 95.0), conference="WEST")
        outcome = simulate_game(home, away, rng=rng).outcome
        assert outcome.home_points != outcome.away_points
        assert outcome.winner == ("home" if outcome.home_points > outcome.away_points else "away")


def test_same_seed_same_game() -> None:
    home = make_team("duat", level=55.0)
    away = make_team("yomi", level=52.0, conference="WEST")
    first = simulate_game(home, away, rng=random.Random(77))
    second = simulate_game(home, away, rng=random.Random(77))
    assert first.as_dict() == second.as_dict()


def test_defensive_events_credit_the_defending_side() -> None:
    home = make_team("tara")
    away = make_team("annwn", conference="WEST")
    result = simulate_game(home, away, rng=random.Random(5))
    home_ids = {p.player_id for p in home.roster}
    for event in result.events:
        if event.type in ("steal", "block"):
            expected_home = event.side == "home"
            assert (event.player_id in home_ids) is expected_home
        if event.type == "score" and event.assist_id is not None:
            assert event.assist_id != event.player_id


def test_stronger_team_wins_more_often() -> None:
    engine = MatchEngine(random.Random(8), LeagueRules())
    strong = make_team("titans", level=80.0)
    weak = make_team("mortals", level=40.0, conference="WEST")
    wins = sum(engine.simulate(strong, weak).winner_team_id == "titans" for _ in range(100))
    assert wins > 70
