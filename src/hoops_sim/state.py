"""Season state container and its JSON snapshot format.

The snapshot is a plain dict tree; ``save_version`` guards against loading a
file written by a newer release.
"""

from __future__ import annotations

import json
import shutil
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .config import CONFERENCES, DEFAULT_SALARY_CAP, LUXURY_TAX_FACTOR
from .errors import ConfigError
from .models import (
    Attributes,
    BracketRound,
    Economy,
    Finals,
    Fixture,
    GameOutcome,
    Injury,
    Player,
    PlayoffSeries,
    SeriesGame,
    StatLine,
    Team,
    TeamSeasonStats,
    Transaction,
)
from .playoffs import PlayoffStage, PlayoffState

SAVE_VERSION = 1


class Phase(str, Enum):
    REGULAR_SEASON = "regular_season"
    PLAYOFFS = "playoffs"
    FINALS = "finals"
    FINISHED = "finished"


@dataclass(slots=True)
class SeasonState:
    season_year: int = 1
    phase: Phase = Phase.REGULAR_SEASON
    day: int = 0
    generation: int = 0
    teams: list[Team] = field(default_factory=list)
    free_agents: list[Player] = field(default_factory=list)
    schedule: list[Fixture] = field(default_factory=list)
    fixture_index: int = 0
    playoffs: PlayoffState = field(default_factory=PlayoffState)
    economy: Economy = field(
        default_factory=lambda: Economy(
            salary_cap=DEFAULT_SALARY_CAP, luxury_tax_line=DEFAULT_SALARY_CAP * LUXURY_TAX_FACTOR
        )
    )
    transactions: list[Transaction] = field(default_factory=list)
    recent_games: list[dict[str, Any]] = field(default_factory=list)
    history: list[dict[str, Any]] = field(default_factory=list)
    next_player_number: int = 1

    def team(self, team_id: str) -> Team | None:
        for team in self.teams:
            if team.team_id == team_id:
                return team
        return None

    def teams_in(self, conference: str) -> list[Team]:
        return [team for team in self.teams if team.conference == conference]

    def conferences(self) -> dict[str, list[str]]:
        ordered = [conf for conf in CONFERENCES if any(t.conference == conf for t in self.teams)]
        ordered += sorted({t.conference for t in self.teams} - set(ordered))
        return {conf: [t.team_id for t in self.teams_in(conf)] for conf in ordered}

    def free_agent(self, player_id: str) -> Player | None:
        for player in self.free_agents:
            if player.player_id == player_id:
                return player
        return None

    def all_players(self) -> list[Player]:
        return [player for team in self.teams for player in team.roster] + list(self.free_agents)

    def bump(self) -> int:
        self.generation += 1
        return self.generation

    def new_player_id(self) -> str:
        taken = {player.player_id for player in self.all_players()}
        while True:
            pid = f"P{self.next_player_number:05d}"
            self.next_player_number += 1
            if pid not in taken:
                return pid

    @property
    def schedule_complete(self) -> bool:
        return self.fixture_index >= len(self.schedule)


def _stat_line_from_dict(raw: dict[str, Any] | None) -> StatLine:
    line = StatLine()
    for key, value in (raw or {}).items():
        if hasattr(line, key):
            setattr(line, key, int(value))
    return line


def player_to_dict(player: Player) -> dict[str, Any]:
    return {
        "player_id": player.player_id,
        "name": player.name,
        "position": player.position,
        "attributes": player.attributes.as_dict(),
        "archetype": player.archetype,
        "morale": player.morale,
        "energy": player.energy,
        "salary": player.salary,
        "contract_years": player.contract_years,
        "injury": asdict(player.injury) if player.injury is not None else None,
        "team_id": player.team_id,
        "season_stats": asdict(player.season_stats),
        "playoff_stats": asdict(player.playoff_stats),
    }


def player_from_dict(raw: dict[str, Any]) -> Player:
    injury_raw = raw.get("injury")
    return Player(
        player_id=str(raw["player_id"]),
        name=str(raw.get("name", "")),
        position=str(raw.get("position", "SF")),
        attributes=Attributes.from_mapping(raw.get("attributes")),
        archetype=raw.get("archetype"),
        morale=float(raw.get("morale", 75.0)),
        energy=float(raw.get("energy", 100.0)),
        salary=float(raw.get("salary", 0.0)),
        contract_years=int(raw.get("contract_years", 1)),
        injury=(
            Injury(kind=str(injury_raw.get("kind", "")), games_remaining=int(injury_raw.get("games_remaining", 0)))
            if isinstance(injury_raw, dict)
            else None
        ),
        team_id=raw.get("team_id"),
        season_stats=_stat_line_from_dict(raw.get("season_stats")),
        playoff_stats=_stat_line_from_dict(raw.get("playoff_stats")),
    )


def team_to_dict(team: Team) -> dict[str, Any]:
    return {
        "team_id": team.team_id,
        "name": team.name,
        "conference": team.conference,
        "division": team.division,
        "mythology": team.mythology,
        "roster": [player_to_dict(p) for p in team.roster],
        "rotation_ids": list(team.rotation_ids),
        "stats": asdict(team.stats),
        "form_factor": team.form_factor,
        "dead_cap": team.dead_cap,
    }


def team_from_dict(raw: dict[str, Any]) -> Team:
    stats_raw = dict(raw.get("stats") or {})
    recent = [str(r) for r in stats_raw.pop("recent_results", [])]
    stats = TeamSeasonStats(**{k: int(v) for k, v in stats_raw.items()}, recent_results=recent)
    return Team(
        team_id=str(raw["team_id"]),
        name=str(raw.get("name", "")),
        conference=str(raw.get("conference", CONFERENCES[0])),
        division=str(raw.get("division", "")),
        mythology=str(raw.get("mythology", "")),
        roster=[player_from_dict(p) for p in raw.get("roster", [])],
        rotation_ids=[str(pid) for pid in raw.get("rotation_ids", [])],
        stats=stats,
        form_factor=float(raw.get("form_factor", 1.0)),
        dead_cap=float(raw.get("dead_cap", 0.0)),
    )


def fixture_to_dict(fixture: Fixture) -> dict[str, Any]:
    return {
        "fixture_id": fixture.fixture_id,
        "home_team_id": fixture.home_team_id,
        "away_team_id": fixture.away_team_id,
        "conference": fixture.conference,
        "day": fixture.day,
        "played": fixture.played,
        "result": asdict(fixture.result) if fixture.result is not None else None,
    }


def fixture_from_dict(raw: dict[str, Any]) -> Fixture:
    result_raw = raw.get("result")
    return Fixture(
        fixture_id=int(raw["fixture_id"]),
        home_team_id=str(raw["home_team_id"]),
        away_team_id=str(raw["away_team_id"]),
        conference=str(raw.get("conference", "")),
        day=int(raw.get("day", 0)),
        played=bool(raw.get("played", False)),
        result=GameOutcome(**result_raw) if isinstance(result_raw, dict) else None,
    )


def _series_from_dict(raw: dict[str, Any] | None) -> PlayoffSeries | None:
    if not isinstance(raw, dict):
        return None
    games = [SeriesGame(**g) for g in raw.get("games", [])]
    return PlayoffSeries(
        conference=str(raw["conference"]),
        round_number=int(raw["round_number"]),
        higher_seed_id=str(raw["higher_seed_id"]),
        lower_seed_id=str(raw["lower_seed_id"]),
        best_of=int(raw.get("best_of", 5)),
        wins_higher=int(raw.get("wins_higher", 0)),
        wins_lower=int(raw.get("wins_lower", 0)),
        games=games,
        forfeited=bool(raw.get("forfeited", False)),
    )


def playoffs_to_dict(playoffs: PlayoffState) -> dict[str, Any]:
    return {
        "stage": playoffs.stage.value,
        "round_number": playoffs.round_number,
        "best_of": playoffs.best_of,
        "seeds": {conf: dict(table) for conf, table in playoffs.seeds.items()},
        "rounds": {conf: [asdict(r) for r in rounds] for conf, rounds in playoffs.rounds.items()},
        "champions": dict(playoffs.champions),
        "finals": asdict(playoffs.finals) if playoffs.finals is not None else None,
        "mvp": playoffs.mvp,
    }


def playoffs_from_dict(raw: dict[str, Any] | None) -> PlayoffState:
    if not raw:
        return PlayoffState()
    rounds: dict[str, list[BracketRound]] = {}
    for conf, raw_rounds in (raw.get("rounds") or {}).items():
        rounds[conf] = [
            BracketRound(
                round_number=int(r["round_number"]),
                conference=str(r["conference"]),
                series=[s for s in (_series_from_dict(x) for x in r.get("series", [])) if s is not None],
                byes=[str(b) for b in r.get("byes", [])],
            )
            for r in raw_rounds
        ]
    finals_raw = raw.get("finals")
    finals = None
    if isinstance(finals_raw, dict):
        finals = Finals(
            east_champion_id=finals_raw.get("east_champion_id"),
            west_champion_id=finals_raw.get("west_champion_id"),
            series=_series_from_dict(finals_raw.get("series")),
            champion_id=finals_raw.get("champion_id"),
        )
    return PlayoffState(
        stage=PlayoffStage(raw.get("stage", PlayoffStage.NOT_STARTED.value)),
        round_number=int(raw.get("round_number", 0)),
        best_of=int(raw.get("best_of", 5)),
        seeds={conf: {str(k): int(v) for k, v in table.items()} for conf, table in (raw.get("seeds") or {}).items()},
        rounds=rounds,
        champions={str(k): str(v) for k, v in (raw.get("champions") or {}).items()},
        finals=finals,
        mvp=raw.get("mvp"),
    )


def state_to_dict(state: SeasonState) -> dict[str, Any]:
    return {
        "save_version": SAVE_VERSION,
        "season_year": state.season_year,
        "phase": state.phase.value,
        "day": state.day,
        "generation": state.generation,
        "teams": [team_to_dict(team) for team in state.teams],
        "free_agents": [player_to_dict(player) for player in state.free_agents],
        "schedule": [fixture_to_dict(fixture) for fixture in state.schedule],
        "fixture_index": state.fixture_index,
        "playoffs": playoffs_to_dict(state.playoffs),
        "economy": {
            "salary_cap": state.economy.salary_cap,
            "luxury_tax_line": state.economy.luxury_tax_line,
        },
        "transactions": [asdict(tx) for tx in state.transactions],
        "recent_games": list(state.recent_games),
        "history": list(state.history),
        "next_player_number": state.next_player_number,
    }


def state_from_dict(raw: Any) -> SeasonState:
    if not isinstance(raw, dict):
        raise ConfigError("Season snapshot has invalid format.")
    version = int(raw.get("save_version", 1) or 1)
    if version > SAVE_VERSION:
        raise ConfigError(f"Unsupported season snapshot version {version}; app supports up to {SAVE_VERSION}.")
    try:
        economy_raw = raw.get("economy") or {}
        salary_cap = float(economy_raw.get("salary_cap", DEFAULT_SALARY_CAP))
        return SeasonState(
            season_year=int(raw.get("season_year", 1)),
            phase=Phase(raw.get("phase", Phase.REGULAR_SEASON.value)),
            day=int(raw.get("day", 0)),
            generation=int(raw.get("generation", 0)),
            teams=[team_from_dict(t) for t in raw.get("teams", [])],
            free_agents=[player_from_dict(p) for p in raw.get("free_agents", [])],
            schedule=[fixture_from_dict(f) for f in raw.get("schedule", [])],
            fixture_index=int(raw.get("fixture_index", 0)),
            playoffs=playoffs_from_dict(raw.get("playoffs")),
            economy=Economy(
                salary_cap=salary_cap,
                luxury_tax_line=float(economy_raw.get("luxury_tax_line", salary_cap * LUXURY_TAX_FACTOR)),
            ),
            transactions=[Transaction(**tx) for tx in raw.get("transactions", [])],
            recent_games=list(raw.get("recent_games", [])),
            history=list(raw.get("history", [])),
            next_player_number=int(raw.get("next_player_number", 1)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"Season snapshot is malformed ({exc}).") from exc


def write_json_with_backup(path: Path, payload: Any, *, with_backup: bool = True) -> None:
    if with_backup and path.exists():
        shutil.copy2(path, path.with_suffix(path.suffix + ".bak"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Failed to read {path} ({exc}).") from exc
