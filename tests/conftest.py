from __future__ import annotations

import random
from typing import Any

import pytest

from hoops_sim.config import ATTRIBUTE_NAMES, LeagueRules
from hoops_sim.models import Attributes, Player, Team
from hoops_sim.season import Season

POSITIONS = ["PG", "SG", "SF", "PF", "C"]


def make_player(player_id: str, level: float = 50.0, salary: float = 5_000_000, **overrides: Any) -> Player:
    attrs = Attributes(**{name: level for name in ATTRIBUTE_NAMES})
    kwargs: dict[str, Any] = {"player_id": player_id, "name": player_id, "attributes": attrs, "salary": salary}
    kwargs.update(overrides)
    return Player(**kwargs)


def make_team(team_id: str, size: int = 12, level: float = 50.0, conference: str = "EAST", salary: float = 5_000_000) -> Team:
    team = Team(team_id=team_id, name=team_id.title(), conference=conference)
    for idx in range(size):
        player = make_player(f"{team_id}-{idx}", level=level, salary=salary, team_id=team_id)
        team.roster.append(player)
    return team


def league_data(teams_per_conference: int = 4, players: int = 12, seed: int = 5) -> dict[str, Any]:
    rng = random.Random(seed)
    teams: list[dict[str, Any]] = []
    for conference in ("EAST", "WEST"):
        for idx in range(teams_per_conference):
            team_id = f"{conference.lower()}{idx + 1}"
            roster = []
            for p_idx in range(players):
                base = 45 + idx * 4
                roster.append(
                    {
                        "id": f"{team_id}-p{p_idx}",
                        "name": f"{team_id.title()} Player {p_idx}",
                        "position": POSITIONS[p_idx % len(POSITIONS)],
                        "attributes": {
                            "strength": base + rng.uniform(-5, 5),
                            "technique": base + rng.uniform(-5, 5),
                            "speed": base + rng.uniform(-5, 5),
                            "creativity": base + rng.uniform(-5, 5),
                            "discipline": base + rng.uniform(-5, 5),
                            "aura": base + rng.uniform(-5, 5),
                        },
                        "salary": 6_000_000,
                        "contractYears": 1 + p_idx % 3,
                    }
                )
            teams.append(
                {
                    "id": team_id,
                    "name": f"{conference.title()} Team {idx + 1}",
                    "conference": conference,
                    "mythology": "greek" if conference == "EAST" else "norse",
                    "players": roster,
                }
            )
    return {"teams": teams}


@pytest.fixture
def small_league() -> dict[str, Any]:
    return league_data()


@pytest.fixture
def season(small_league: dict[str, Any]) -> Season:
    sim = Season(rules=LeagueRules(injuries=False), seed=42)
    sim.init_season(small_league)
    return sim
