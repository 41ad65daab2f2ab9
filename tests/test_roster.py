import copy

import pytest

from hoops_sim.config import LeagueRules
from hoops_sim.errors import InvariantViolation
from hoops_sim.season import Season
from hoops_sim.state import state_to_dict


def _roster_ids(season: Season, team_id: str) -> list[str]:
    return [p.player_id for p in season.state.team(team_id).roster]


def test_trade_swaps_players_and_logs(season: Season) -> None:
    result = season.propose_trade("east1", "east2", ["east1-p0"], ["east2-p0"])
    assert result["success"] is True
    assert "east2-p0" in _roster_ids(season, "east1")
    assert "east1-p0" in _roster_ids(season, "east2")
    assert season.state.team("east2").player("east1-p0").team_id == "east2"

    log = season.get_transaction_log()
    assert log[-1]["kind"] == "trade"
    assert log[-1]["team_ids"] == ["east1", "east2"]
    season.verify_integrity()


def test_rejected_trade_leaves_state_untouched(season: Season) -> None:
    before = copy.deepcopy(state_to_dict(season.state))
    before.pop("generation")

    result = season.propose_trade("east1", "east2", ["east1-p0", "east1-p1"], ["east2-p0"])
    assert result == {"success": False, "reason": "salary_mismatch", "message": result["message"]}

    after = state_to_dict(season.state)
    after.pop("generation")
    assert after == before
    assert season.get_transaction_log() == []


@pytest.mark.parametrize(
    ("args", "reason"),
    [
        (("east1", "east1", ["east1-p0"], []), "same_team"),
        (("east1", "east2", [], []), "empty_trade"),
        (("east1", "east2", ["east1-p0", "east1-p0"], ["east2-p0"]), "duplicate_player"),
        (("east1", "nowhere", ["east1-p0"], []), "team_not_found"),
        (("east1", "east2", ["east2-p0"], ["east2-p1"]), "player_not_found"),
    ],
)
def test_trade_validation_reasons(season: Season, args, reason: str) -> None:
    result = season.propose_trade(*args)
    assert result["success"] is False
    assert result["reason"] == reason


def test_trade_cannot_overfill_roster(season: Season) -> None:
    for fa in list(season.state.free_agents)[:3]:
        assert season.sign_free_agent("east1", fa.player_id, salary=1_000_000)["success"]
    assert len(season.state.team("east1").roster) == 15
    for pid in ("east2-p1", "east2-p2"):
        season.state.team("east2").player(pid).salary = 3_500_000

    result = season.propose_trade("east1", "east2", ["east1-p0"], ["east2-p1", "east2-p2"])
    assert result["reason"] == "roster_full"
    assert len(season.state.team("east2").roster) == 12


def test_sign_free_agent_moves_player(season: Season) -> None:
    agent = season.state.free_agents[0]
    pool_size = len(season.state.free_agents)
    result = season.sign_free_agent("west1", agent.player_id, salary=2_000_000, years=2)

    assert result["success"] is True
    assert agent.team_id == "west1"
    assert agent.contract_years == 2
    assert season.state.free_agent(agent.player_id) is None
    assert len(season.state.free_agents) == pool_size - 1
    assert season.get_team_cap_info("west1")["payroll"] == 12 * 6_000_000 + 2_000_000
    assert season.get_transaction_log()[-1]["kind"] == "sign"


def test_sign_free_agent_rejections(season: Season) -> None:
    agent = season.state.free_agents[0]
    assert season.sign_free_agent("west1", agent.player_id, salary=60_000_000)["reason"] == "cap_space"
    assert season.sign_free_agent("west1", agent.player_id, salary=0)["reason"] == "invalid_terms"
    assert season.sign_free_agent("west1", "P99999")["reason"] == "player_not_found"
    assert season.sign_free_agent("nowhere", agent.player_id)["reason"] == "team_not_found"
    assert agent.team_id is None


def test_signing_up_to_the_tolerance_is_allowed(season: Season) -> None:
    agent = season.state.free_agents[0]
    limit = season.rules.salary_cap * season.rules.signing_cap_tolerance
    result = season.sign_free_agent("west2", agent.player_id, salary=limit - 12 * 6_000_000)
    assert result["success"] is True
    info = season.get_team_cap_info("west2")
    assert info["over_cap"] is True
    assert info["committed"] <= limit


def test_release_adds_dead_cap_and_keeps_minimum(season: Season) -> None:
    first = season.release_player("east3", "east3-p0")
    assert first["success"] is True
    assert first["dead_cap"] == 3_000_000
    released = season.state.free_agent("east3-p0")
    assert released is not None and released.team_id is None

    info = season.get_team_cap_info("east3")
    assert info["payroll"] == 11 * 6_000_000
    assert info["committed"] == 11 * 6_000_000 + 3_000_000

    assert season.release_player("east3", "east3-p1")["success"] is True
    blocked = season.release_player("east3", "east3-p2")
    assert blocked["reason"] == "roster_minimum"
    assert len(season.state.team("east3").roster) == 10


def test_set_rotation_rules(season: Season) -> None:
    chosen = [f"west3-p{i}" for i in range(5)]
    assert season.set_rotation("west3", chosen)["success"] is True
    assert season.get_team("west3")["rotation"] == chosen

    too_many = [f"west3-p{i}" for i in range(9)]
    assert season.set_rotation("west3", too_many)["reason"] == "invalid_rotation"
    assert season.set_rotation("west3", ["west3-p0", "west3-p0"])["reason"] == "invalid_rotation"
    assert season.set_rotation("west3", ["east1-p0"])["reason"] == "player_not_found"


def test_traded_player_leaves_old_rotation(season: Season) -> None:
    season.set_rotation("east1", ["east1-p0", "east1-p1"])
    season.propose_trade("east1", "east2", ["east1-p0"], ["east2-p0"])
    assert season.state.team("east1").rotation_ids == ["east1-p1"]


def test_cap_table_matches_rosters_after_mixed_moves(small_league) -> None:
    season = Season(rules=LeagueRules(strict=True, injuries=False), seed=3)
    season.init_season(small_league)
    agents = [fa.player_id for fa in season.state.free_agents[:2]]

    season.sign_free_agent("east1", agents[0], salary=4_000_000)
    season.propose_trade("east1", "west1", [agents[0], "east1-p3"], ["west1-p0", "west1-p1"])
    season.release_player("west1", "east1-p3")
    season.sign_free_agent("west2", agents[1], salary=1_500_000)
    for _ in range(5):
        season.advance()

    for team in season.state.teams:
        info = season.get_team_cap_info(team.team_id)
        assert info["payroll"] == sum(p.salary for p in team.roster)
        assert info["committed"] == info["payroll"] + team.dead_cap
    season.verify_integrity()


@pytest.mark.regression
def test_verify_integrity_flags_double_ownership(season: Season) -> None:
    stray = season.state.team("east1").roster[0]
    season.state.team("east2").roster.append(stray)
    with pytest.raises(InvariantViolation):
        season.verify_integrity()
