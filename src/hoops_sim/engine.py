from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from .config import (
    ASSIST_PROBABILITY,
    BASE_SCORE_PROBABILITY,
    DEFENSIVE_EVENT_PROBABILITY,
    MAX_OVERTIMES,
    OVERTIME_POSSESSIONS,
    POSSESSION_BUDGET,
    ROTATION_SIZE,
    SCORE_SENSITIVITY,
    THREE_POINT_PROBABILITY,
    TURNOVER_PROBABILITY,
    LeagueRules,
)
from .models import GameOutcome, Player, StatLine, Team
from .power import power_pairs, rotation_for, team_power, weighted_choice

logger = logging.getLogger(__name__)

SIDES = ("home", "away")


@dataclass(slots=True)
class GameEvent:
    sequence: int
    type: str
    side: str
    team_id: str
    player_id: str | None = None
    points: int = 0
    assist_id: str | None = None
    period: int = 0


@dataclass(slots=True)
class TeamTally:
    points: int = 0
    rebounds: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0


@dataclass(slots=True)
class GameResult:
    home_team_id: str
    away_team_id: str
    outcome: GameOutcome
    stats: dict[str, TeamTally]
    player_stats: dict[str, StatLine]
    events: list[GameEvent]
    home_possessions: int
    away_possessions: int
    home_power: float
    away_power: float
    summary: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def winner_team_id(self) -> str:
        return self.home_team_id if self.outcome.home_won else self.away_team_id

    @property
    def loser_team_id(self) -> str:
        return self.away_team_id if self.outcome.home_won else self.home_team_id

    def as_dict(self) -> dict[str, Any]:
        return {
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "result": asdict(self.outcome),
            "stats": {side: asdict(tally) for side, tally in self.stats.items()},
            "player_stats": {pid: asdict(line) for pid, line in self.player_stats.items()},
            "events": [asdict(event) for event in self.events],
            "possessions": {"home": self.home_possessions, "away": self.away_possessions},
            "summary": self.summary,
            "context": dict(self.context),
        }


@dataclass(slots=True)
class _Side:
    key: str
    team: Team
    rotation: list[Player]
    power: float


class _GameSheet:
    """Mutable scoresheet for one game."""

    def __init__(self) -> None:
        self.tallies = {side: TeamTally() for side in SIDES}
        self.lines: dict[str, StatLine] = {}
        self.events: list[GameEvent] = []

    def line(self, player: Player) -> StatLine:
        line = self.lines.get(player.player_id)
        if line is None:
            line = StatLine()
            self.lines[player.player_id] = line
        return line

    def log(self, kind: str, side: _Side, player: Player | None, period: int, points: int = 0, assist: Player | None = None) -> None:
        self.events.append(
            GameEvent(
                sequence=len(self.events),
                type=kind,
                side=side.key,
                team_id=side.team.team_id,
                player_id=player.player_id if player is not None else None,
                points=points,
                assist_id=assist.player_id if assist is not None else None,
                period=period,
            )
        )


def split_possessions(budget: int, home_power: float, away_power: float) -> tuple[int, int]:
    total = home_power + away_power
    if total <= 0:
        home_share = 0.5
    else:
        home_share = home_power / total
    home = max(0, min(budget, int(round(budget * home_share))))
    return home, budget - home


def _possession_order(home_count: int, away_count: int) -> list[str]:
    order: list[str] = []
    for idx in range(max(home_count, away_count)):
        if idx < home_count:
            order.append("home")
        if idx < away_count:
            order.append("away")
    return order


def _simulate_possession(
    offense: _Side,
    defense: _Side,
    sheet: _GameSheet,
    rng: random.Random,
    period: int,
    archetype_bonuses: Mapping[str, Mapping[str, float]] | None,
) -> None:
    total = offense.power + defense.power
    offense_factor = offense.power / total if total > 0 else 0.5
    score_probability = BASE_SCORE_PROBABILITY + (offense_factor - 0.5) * SCORE_SENSITIVITY

    shooter = weighted_choice(power_pairs(offense.rotation, archetype_bonuses=archetype_bonuses), rng)
    if shooter is None:
        return

    scored = rng.random() < score_probability
    is_three = rng.random() < THREE_POINT_PROBABILITY
    tally = sheet.tallies[offense.key]
    shooter_line = sheet.line(shooter)
    shooter_line.fga += 1
    if is_three:
        shooter_line.tpa += 1

    if scored:
        points = 3 if is_three else 2
        tally.points += points
        shooter_line.points += points
        shooter_line.fgm += 1
        if is_three:
            shooter_line.tpm += 1
        assister: Player | None = None
        if rng.random() < ASSIST_PROBABILITY:
            assister = weighted_choice(
                power_pairs(offense.rotation, exclude=shooter, archetype_bonuses=archetype_bonuses), rng
            )
        if assister is not None:
            sheet.line(assister).assists += 1
            tally.assists += 1
        sheet.log("score", offense, shooter, period, points=points, assist=assister)
    else:
        sheet.log("miss", offense, shooter, period)
        rebound_side = offense if rng.random() < offense_factor else defense
        rebounder = weighted_choice(power_pairs(rebound_side.rotation, archetype_bonuses=archetype_bonuses), rng)
        if rebounder is not None:
            sheet.line(rebounder).rebounds += 1
            sheet.tallies[rebound_side.key].rebounds += 1
            sheet.log("rebound", rebound_side, rebounder, period)

    if rng.random() < TURNOVER_PROBABILITY:
        loser = weighted_choice(power_pairs(offense.rotation, archetype_bonuses=archetype_bonuses), rng)
        if loser is not None:
            sheet.line(loser).turnovers += 1
            tally.turnovers += 1
            sheet.log("turnover", offense, loser, period)

    if rng.random() < DEFENSIVE_EVENT_PROBABILITY:
        defender = weighted_choice(power_pairs(defense.rotation, archetype_bonuses=archetype_bonuses), rng)
        if defender is not None:
            defense_tally = sheet.tallies[defense.key]
            if rng.random() < 0.5:
                sheet.line(defender).steals += 1
                defense_tally.steals += 1
                sheet.log("steal", defense, defender, period)
            else:
                sheet.line(defender).blocks += 1
                defense_tally.blocks += 1
                sheet.log("block", defense, defender, period)


def _run_block(
    home: _Side,
    away: _Side,
    budget: int,
    sheet: _GameSheet,
    rng: random.Random,
    period: int,
    archetype_bonuses: Mapping[str, Mapping[str, float]] | None,
) -> tuple[int, int]:
    home_count, away_count = split_possessions(budget, home.power, away.power)
    for side_key in _possession_order(home_count, away_count):
        offense, defense = (home, away) if side_key == "home" else (away, home)
        _simulate_possession(offense, defense, sheet, rng, period, archetype_bonuses)
    return home_count, away_count


def simulate_game(
    home: Team,
    away: Team,
    rng: random.Random | None = None,
    context: dict[str, Any] | None = None,
    possession_budget: int = POSSESSION_BUDGET,
    rotation_size: int = ROTATION_SIZE,
    archetype_bonuses: Mapping[str, Mapping[str, float]] | None = None,
) -> GameResult:
    rng = rng or random.Random()
    home_side = _Side(
        key="home",
        team=home,
        rotation=rotation_for(home, rotation_size),
        power=team_power(home, home=True, rotation_size=rotation_size, archetype_bonuses=archetype_bonuses) * home.form_factor,
    )
    away_side = _Side(
        key="away",
        team=away,
        rotation=rotation_for(away, rotation_size),
        power=team_power(away, rotation_size=rotation_size, archetype_bonuses=archetype_bonuses) * away.form_factor,
    )

    sheet = _GameSheet()
    home_possessions, away_possessions = _run_block(
        home_side, away_side, possession_budget, sheet, rng, 0, archetype_bonuses
    )

    overtimes = 0
    while sheet.tallies["home"].points == sheet.tallies["away"].points:
        if overtimes >= MAX_OVERTIMES:
            logger.warning(
                "%s vs %s still tied after %d overtimes; awarding the home side",
                home.name,
                away.name,
                overtimes,
            )
            break
        overtimes += 1
        sheet.events.append(
            GameEvent(sequence=len(sheet.events), type="overtime", side="home", team_id=home.team_id, period=overtimes)
        )
        extra_home, extra_away = _run_block(
            home_side, away_side, OVERTIME_POSSESSIONS, sheet, rng, overtimes, archetype_bonuses
        )
        home_possessions += extra_home
        away_possessions += extra_away

    home_points = sheet.tallies["home"].points
    away_points = sheet.tallies["away"].points
    outcome = GameOutcome(
        home_points=home_points,
        away_points=away_points,
        winner="home" if home_points >= away_points else "away",
        overtimes=overtimes,
    )
    ot_label = "" if overtimes == 0 else (" (OT)" if overtimes == 1 else f" ({overtimes}OT)")
    summary = f"{home.name} {home_points} - {away_points} {away.name}{ot_label}"
    logger.debug("Simulated %s", summary)
    return GameResult(
        home_team_id=home.team_id,
        away_team_id=away.team_id,
        outcome=outcome,
        stats=sheet.tallies,
        player_stats=sheet.lines,
        events=sheet.events,
        home_possessions=home_possessions,
        away_possessions=away_possessions,
        home_power=home_side.power,
        away_power=away_side.power,
        summary=summary,
        context=dict(context or {}),
    )


class MatchEngine:
    """Season-owned game simulator bound to one random source and one rule set."""

    def __init__(self, rng: random.Random | None = None, rules: LeagueRules | None = None) -> None:
        self.rng = rng or random.Random()
        self.rules = rules or LeagueRules()

    def simulate(self, home: Team, away: Team, context: dict[str, Any] | None = None) -> GameResult:
        return simulate_game(
            home,
            away,
            rng=self.rng,
            context=context,
            possession_budget=self.rules.possession_budget,
            rotation_size=self.rules.rotation_size,
            archetype_bonuses=self.rules.archetype_bonuses,
        )
