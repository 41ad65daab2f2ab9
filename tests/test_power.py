import random

import pytest

from conftest import make_player, make_team
from hoops_sim.models import Injury, Team
from hoops_sim.power import player_power, rotation_for, team_power, weighted_choice


def test_default_attributes_give_neutral_power() -> None:
    player = make_player("p1")
    assert player_power(player) == pytest.approx(50.0)
    assert player_power(make_player("p2", level=99.0)) == pytest.approx(99.0)


def test_condition_scales_and_injury_zeroes_power() -> None:
    tired = make_player("tired", energy=50.0)
    hurt = make_player("hurt", injury=Injury(kind="ankle sprain", games_remaining=2))
    assert player_power(tired) == pytest.approx(25.0)
    assert player_power(tired, include_condition=False) == pytest.approx(50.0)
    assert player_power(hurt) == 0.0
    assert player_power(hurt, include_condition=False) == pytest.approx(50.0)


def test_archetype_bonus_is_capped_per_attribute() -> None:
    titan = make_player("titan", archetype="titan")
    assert player_power(titan) > 50.0
    maxed = make_player("maxed", level=99.0, archetype="titan")
    assert player_power(maxed) == pytest.approx(99.0)
    assert player_power(titan, archetype_bonuses={}) == pytest.approx(50.0)


def test_rotation_prefers_explicit_healthy_players() -> None:
    team = make_team("olympus", size=10)
    team.rotation_ids = ["olympus-9", "olympus-8", "olympus-7"]
    team.roster[8].injury = Injury(kind="knee bruise", games_remaining=1)
    assert [p.player_id for p in rotation_for(team)] == ["olympus-9", "olympus-7"]

    team.rotation_ids = []
    default = rotation_for(team)
    assert len(default) == 8
    assert "olympus-8" not in {p.player_id for p in default}


def test_rotation_falls_back_to_roster_when_everyone_is_hurt() -> None:
    team = make_team("asgard", size=10)
    for player in team.roster:
        player.injury = Injury(kind="back spasms", games_remaining=3)
    assert [p.player_id for p in rotation_for(team)] == [f"asgard-{i}" for i in range(8)]


def test_team_power_home_floor_and_empty_team() -> None:
    team = make_team("thebes")
    assert team_power(team) == pytest.approx(50.0)
    assert team_power(team, home=True) == pytest.approx(52.5)
    assert team_power(make_team("weak", level=10.0)) == pytest.approx(40.0)
    assert team_power(Team(team_id="empty", name="Empty")) == pytest.approx(50.0)


def test_weighted_choice_handles_empty_and_floors_weights() -> None:
    rng = random.Random(3)
    assert weighted_choice([], rng) is None
    picks = {weighted_choice([("a", 0.0), ("b", -5.0)], rng) for _ in range(200)}
    assert picks == {"a", "b"}


def test_weighted_choice_follows_weights() -> None:
    rng = random.Random(11)
    picks = [weighted_choice([("star", 99.0), ("bench", 1.0)], rng) for _ in range(1000)]
    assert picks.count("star") > 900
