import dataclasses

import pytest

from conftest import make_team
from hoops_sim.standings import compute_standings


def _record(team, results: list[tuple[int, int]]) -> None:
    for points_for, points_against in results:
        team.stats.register_game(points_for, points_against, points_for > points_against, is_home=True)


def test_orders_by_wins_then_point_diff_then_power() -> None:
    a, b, c, d = (make_team(tid) for tid in ("a", "b", "c", "d"))
    _record(a, [(100, 90), (90, 95)])
    _record(b, [(120, 90), (80, 95)])
    _record(c, [(100, 99), (100, 99)])
    _record(d, [(100, 90), (90, 95)])
    powers = {"a": 50.0, "b": 50.0, "c": 50.0, "d": 60.0}

    rows = compute_standings([a, b, c, d], power_of=lambda team: powers[team.team_id])
    assert [row.team_id for row in rows] == ["c", "b", "d", "a"]
    assert [row.rank for row in rows] == [1, 2, 3, 4]
    assert rows[0].streak == "W2"
    assert rows[0].last10 == "2-0"
    assert rows[1].point_diff == 15


def test_full_ties_keep_insertion_order() -> None:
    teams = [make_team(tid) for tid in ("x", "y", "z")]
    rows = compute_standings(teams)
    assert [row.team_id for row in rows] == ["x", "y", "z"]


def test_filters_by_conference() -> None:
    east = make_team("east1")
    west = make_team("west1", conference="WEST")
    rows = compute_standings([east, west], conference="WEST")
    assert [row.team_id for row in rows] == ["west1"]


def test_rows_are_frozen_snapshots() -> None:
    team = make_team("olympus")
    _record(team, [(101, 99)])
    rows = compute_standings([team])
    _record(team, [(80, 99), (80, 99)])
    assert rows[0].wins == 1
    assert rows[0].losses == 0
    with pytest.raises(dataclasses.FrozenInstanceError):
        rows[0].wins = 5  # type: ignore[misc]
