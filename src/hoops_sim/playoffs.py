from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Mapping, Sequence

from .config import CONFERENCES, PLAYOFF_SERIES_BEST_OF, PLAYOFF_TEAMS_PER_CONFERENCE
from .models import BracketRound, Finals, GameOutcome, Player, PlayoffSeries, SeriesGame
from .standings import StandingsRow

logger = logging.getLogger(__name__)

FINALS_CONFERENCE = "FINALS"

FIRST_ROUND_PAIRINGS: dict[int, list[tuple[int, int]]] = {
    8: [(1, 8), (4, 5), (2, 7), (3, 6)],
    4: [(1, 4), (2, 3)],
    2: [(1, 2)],
}


class PlayoffStage(str, Enum):
    NOT_STARTED = "not_started"
    ROUND_IN_PROGRESS = "round_in_progress"
    CONFERENCE_CHAMPIONS_DECIDED = "conference_champions_decided"
    FINALS_IN_PROGRESS = "finals_in_progress"
    FINISHED = "finished"


@dataclass(slots=True)
class PlayoffState:
    stage: PlayoffStage = PlayoffStage.NOT_STARTED
    round_number: int = 0
    best_of: int = PLAYOFF_SERIES_BEST_OF
    seeds: dict[str, dict[str, int]] = field(default_factory=dict)
    rounds: dict[str, list[BracketRound]] = field(default_factory=dict)
    champions: dict[str, str] = field(default_factory=dict)
    finals: Finals | None = None
    mvp: dict[str, object] | None = None

    def current_round(self, conference: str) -> BracketRound | None:
        rounds = self.rounds.get(conference) or []
        return rounds[-1] if rounds else None

    def seed_of(self, team_id: str) -> int:
        for table in self.seeds.values():
            if team_id in table:
                return table[team_id]
        return 99


def wins_needed(best_of: int) -> int:
    return best_of // 2 + 1


def bracket_size(team_count: int, max_teams: int = PLAYOFF_TEAMS_PER_CONFERENCE) -> int:
    limit = min(team_count, max_teams)
    for size in sorted(FIRST_ROUND_PAIRINGS, reverse=True):
        if size <= limit:
            return size
    return 0


def seed_bracket(
    standings_by_conf: Mapping[str, Sequence[StandingsRow]],
    best_of: int = PLAYOFF_SERIES_BEST_OF,
    max_teams: int = PLAYOFF_TEAMS_PER_CONFERENCE,
) -> PlayoffState:
    """Seed every conference from its standings and build round one."""
    state = PlayoffState(stage=PlayoffStage.ROUND_IN_PROGRESS, round_number=1, best_of=best_of)
    for conference, rows in standings_by_conf.items():
        size = bracket_size(len(rows), max_teams)
        if size == 0:
            if rows:
                state.champions[conference] = rows[0].team_id
                logger.info("%s has a single team; %s advances without a series", conference, rows[0].name)
            continue
        by_seed = {idx: row.team_id for idx, row in enumerate(rows[:size], start=1)}
        state.seeds[conference] = {team_id: seed for seed, team_id in by_seed.items()}
        series: list[PlayoffSeries] = []
        for high, low in FIRST_ROUND_PAIRINGS[size]:
            high_id = by_seed.get(high)
            low_id = by_seed.get(low)
            if high_id is None or low_id is None:
                logger.warning("%s seeds %d/%d incomplete; pairing dropped", conference, high, low)
                continue
            series.append(
                PlayoffSeries(
                    conference=conference,
                    round_number=1,
                    higher_seed_id=high_id,
                    lower_seed_id=low_id,
                    best_of=best_of,
                )
            )
        state.rounds[conference] = [BracketRound(round_number=1, conference=conference, series=series)]
    _refresh_stage(state)
    return state


def series_home_away(series: PlayoffSeries) -> tuple[str, str]:
    """Home court alternates every game, higher seed first."""
    if len(series.games) % 2 == 0:
        return series.higher_seed_id, series.lower_seed_id
    return series.lower_seed_id, series.higher_seed_id


def next_live_series(state: PlayoffState) -> PlayoffSeries | None:
    if state.stage in (PlayoffStage.FINALS_IN_PROGRESS, PlayoffStage.FINISHED):
        finals_series = state.finals.series if state.finals is not None else None
        if finals_series is not None and not finals_series.is_complete:
            return finals_series
        return None
    for conference in state.rounds:
        if conference in state.champions:
            continue
        current = state.current_round(conference)
        if current is None:
            continue
        for series in current.series:
            if not series.is_complete:
                return series
    return None


def record_game(series: PlayoffSeries, home_id: str, away_id: str, outcome: GameOutcome) -> bool:
    """Credit one game to the series; refused once the series is decided."""
    if series.is_complete:
        return False
    if {home_id, away_id} != {series.higher_seed_id, series.lower_seed_id}:
        raise ValueError(f"{home_id} vs {away_id} is not part of this series")
    winner_id = home_id if outcome.home_won else away_id
    if winner_id == series.higher_seed_id:
        series.wins_higher += 1
    else:
        series.wins_lower += 1
    series.games.append(
        SeriesGame(
            game_number=len(series.games) + 1,
            home_team_id=home_id,
            away_team_id=away_id,
            home_points=outcome.home_points,
            away_points=outcome.away_points,
            winner_id=winner_id,
            overtimes=outcome.overtimes,
        )
    )
    return True


def forfeit_series(series: PlayoffSeries, resolves: Callable[[str], bool]) -> bool:
    """Close a series whose teams no longer exist, favouring whichever side still resolves."""
    if series.is_complete:
        return False
    higher_ok = resolves(series.higher_seed_id)
    lower_ok = resolves(series.lower_seed_id)
    if higher_ok and lower_ok:
        return False
    if higher_ok or not lower_ok:
        series.wins_higher = series.wins_needed
    else:
        series.wins_lower = series.wins_needed
    series.forfeited = True
    logger.warning(
        "Series %s vs %s auto-completed for %s (team missing)",
        series.higher_seed_id,
        series.lower_seed_id,
        series.winner_id,
    )
    return True


def _pair_winners(winners: list[str]) -> tuple[list[tuple[str, str]], list[str]]:
    byes: list[str] = []
    pool = list(winners)
    if len(pool) % 2 == 1:
        byes.append(pool.pop(0))
    pairs = [(pool[idx], pool[-(idx + 1)]) for idx in range(len(pool) // 2)]
    return pairs, byes


def advance_round(state: PlayoffState) -> bool:
    """Open the next round (or crown a conference champion) wherever the current round is done."""
    changed = False
    for conference, rounds in state.rounds.items():
        if conference in state.champions or not rounds:
            continue
        current = rounds[-1]
        if not current.is_complete:
            continue
        winners = [*current.byes, *(s.winner_id for s in current.series if s.winner_id is not None)]
        if not winners:
            logger.warning("%s round %d produced no winners", conference, current.round_number)
            continue
        changed = True
        if len(winners) == 1:
            state.champions[conference] = winners[0]
            logger.info("%s champion decided: %s", conference, winners[0])
            continue
        pairs, byes = _pair_winners(winners)
        next_number = current.round_number + 1
        series: list[PlayoffSeries] = []
        for first, second in pairs:
            higher, lower = sorted((first, second), key=state.seed_of)
            series.append(
                PlayoffSeries(
                    conference=conference,
                    round_number=next_number,
                    higher_seed_id=higher,
                    lower_seed_id=lower,
                    best_of=state.best_of,
                )
            )
        rounds.append(BracketRound(round_number=next_number, conference=conference, series=series, byes=byes))
    if changed:
        _refresh_stage(state)
    return changed


def _refresh_stage(state: PlayoffState) -> None:
    if state.stage in (PlayoffStage.FINALS_IN_PROGRESS, PlayoffStage.FINISHED):
        return
    live_rounds = [
        state.current_round(conf).round_number
        for conf in state.rounds
        if conf not in state.champions and state.current_round(conf) is not None
    ]
    if live_rounds:
        state.stage = PlayoffStage.ROUND_IN_PROGRESS
        state.round_number = max(live_rounds)
    else:
        state.stage = PlayoffStage.CONFERENCE_CHAMPIONS_DECIDED


def start_finals(state: PlayoffState, record_key: Callable[[str], tuple]) -> Finals:
    """Build the championship series; the better regular season hosts game one."""
    east_id = state.champions.get(CONFERENCES[0])
    west_id = state.champions.get(CONFERENCES[1])
    finals = Finals(east_champion_id=east_id, west_champion_id=west_id)
    contenders = [team_id for team_id in (east_id, west_id) if team_id is not None]
    if not contenders:
        contenders = list(state.champions.values())
    if len(contenders) == 1:
        finals.champion_id = contenders[0]
        state.stage = PlayoffStage.FINISHED
        logger.warning("Only one conference champion; %s takes the title uncontested", contenders[0])
    elif contenders:
        higher, lower = sorted(contenders, key=record_key, reverse=True)
        finals.series = PlayoffSeries(
            conference=FINALS_CONFERENCE,
            round_number=0,
            higher_seed_id=higher,
            lower_seed_id=lower,
            best_of=state.best_of,
        )
        state.stage = PlayoffStage.FINALS_IN_PROGRESS
    else:
        state.stage = PlayoffStage.FINISHED
    state.finals = finals
    return finals


def settle_finals(state: PlayoffState) -> str | None:
    finals = state.finals
    if finals is None or finals.series is None or not finals.series.is_complete:
        return None
    finals.champion_id = finals.series.winner_id
    state.stage = PlayoffStage.FINISHED
    return finals.champion_id


def playoff_score(player: Player) -> float:
    line = player.playoff_stats
    games = max(1, line.games)
    base = (
        line.points
        + line.rebounds * 1.2
        + line.assists * 1.5
        + (line.steals + line.blocks) * 2.0
        - line.turnovers
    )
    return base + (line.points / games) * 2.0


def select_playoff_mvp(champion_id: str, players: Iterable[Player]) -> dict[str, object]:
    candidates = [p for p in players if p.team_id == champion_id and p.playoff_stats.games > 0]
    if not candidates:
        return {"player_id": "", "name": "", "team_id": champion_id, "summary": ""}
    best = max(candidates, key=lambda p: (playoff_score(p), p.playoff_stats.points))
    line = best.playoff_stats
    summary = (
        f"{line.per_game('points'):.1f} pts, {line.per_game('rebounds'):.1f} reb, "
        f"{line.per_game('assists'):.1f} ast in {line.games} GP"
    )
    return {"player_id": best.player_id, "name": best.name, "team_id": champion_id, "summary": summary}


def playoffs_as_dict(state: PlayoffState) -> dict[str, object]:
    def series_row(series: PlayoffSeries) -> dict[str, object]:
        return {
            "conference": series.conference,
            "round": series.round_number,
            "higher_seed_id": series.higher_seed_id,
            "lower_seed_id": series.lower_seed_id,
            "higher_seed": state.seed_of(series.higher_seed_id),
            "lower_seed": state.seed_of(series.lower_seed_id),
            "wins_higher": series.wins_higher,
            "wins_lower": series.wins_lower,
            "games_played": len(series.games),
            "complete": series.is_complete,
            "winner_id": series.winner_id,
            "forfeited": series.forfeited,
        }

    finals = state.finals
    return {
        "stage": state.stage.value,
        "round": state.round_number,
        "best_of": state.best_of,
        "rounds": {
            conf: [
                {"round": r.round_number, "byes": list(r.byes), "series": [series_row(s) for s in r.series]}
                for r in rounds
            ]
            for conf, rounds in state.rounds.items()
        },
        "champions": dict(state.champions),
        "finals": None
        if finals is None
        else {
            "east_champion_id": finals.east_champion_id,
            "west_champion_id": finals.west_champion_id,
            "series": series_row(finals.series) if finals.series is not None else None,
            "champion_id": finals.champion_id,
        },
        "mvp": dict(state.mvp) if state.mvp else None,
    }
