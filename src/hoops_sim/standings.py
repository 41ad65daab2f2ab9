from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Callable, Iterable

from .models import Team


@dataclass(frozen=True, slots=True)
class StandingsRow:
    rank: int
    team_id: str
    name: str
    conference: str
    division: str
    games: int
    wins: int
    losses: int
    points_for: int
    points_against: int
    point_diff: int
    streak: str
    last10: str
    home_record: str
    away_record: str
    win_pct: float
    power: float

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


def standings_key(team: Team, power: float) -> tuple[int, int, float]:
    return (team.stats.wins, team.stats.point_diff, power)


def compute_standings(
    teams: Iterable[Team],
    conference: str | None = None,
    power_of: Callable[[Team], float] | None = None,
) -> list[StandingsRow]:
    """Rank teams by wins, then point differential, then power; ties keep insertion order."""
    pool = [team for team in teams if conference is None or team.conference == conference]
    powers = {team.team_id: (power_of(team) if power_of is not None else 0.0) for team in pool}
    # sorted() is stable, so equal keys fall back to insertion order.
    ranked = sorted(pool, key=lambda team: standings_key(team, powers[team.team_id]), reverse=True)
    rows: list[StandingsRow] = []
    for idx, team in enumerate(ranked, start=1):
        stats = team.stats
        rows.append(
            StandingsRow(
                rank=idx,
                team_id=team.team_id,
                name=team.name,
                conference=team.conference,
                division=team.division,
                games=stats.games,
                wins=stats.wins,
                losses=stats.losses,
                points_for=stats.points_for,
                points_against=stats.points_against,
                point_diff=stats.point_diff,
                streak=stats.streak_label,
                last10=stats.last10,
                home_record=stats.home_record,
                away_record=stats.away_record,
                win_pct=round(stats.win_pct, 3),
                power=round(powers[team.team_id], 2),
            )
        )
    return rows
