from __future__ import annotations

import random
from typing import Mapping, Sequence

from .models import Fixture

INTER_CONFERENCE = "INTER"


def _single_round_days(team_ids: Sequence[str]) -> list[list[tuple[str, str]]]:
    """Build one full round-robin split into days."""
    if len(team_ids) < 2:
        return []

    # Circle method: each team plays at most once per day.
    rotating: list[str | None] = list(team_ids)
    if len(rotating) % 2 == 1:
        rotating.append(None)

    rounds = len(rotating) - 1
    half = len(rotating) // 2
    days: list[list[tuple[str, str]]] = []

    for round_idx in range(rounds):
        day_games: list[tuple[str, str]] = []
        for idx in range(half):
            home = rotating[idx]
            away = rotating[-(idx + 1)]
            if home is None or away is None:
                continue
            # Alternate site orientation by round to avoid long early home/away streaks.
            if round_idx % 2 == 1:
                home, away = away, home
            day_games.append((home, away))
        days.append(day_games)

        # Keep first fixed, rotate the rest.
        rotating = [rotating[0], rotating[-1], *rotating[1:-1]]

    return days


def build_round_robin_rounds(team_ids: Sequence[str]) -> list[list[tuple[str, str]]]:
    """Double round robin: the second half mirrors the first with sites flipped."""
    first_half = _single_round_days(team_ids)
    second_half = [[(away, home) for home, away in day] for day in first_half]
    return first_half + second_half


def build_round_robin(
    team_ids: Sequence[str],
    conference: str,
    first_fixture_id: int = 0,
    first_day: int = 0,
) -> list[Fixture]:
    fixtures: list[Fixture] = []
    for day_offset, day in enumerate(build_round_robin_rounds(team_ids)):
        for home, away in day:
            fixtures.append(
                Fixture(
                    fixture_id=first_fixture_id + len(fixtures),
                    home_team_id=home,
                    away_team_id=away,
                    conference=conference,
                    day=first_day + day_offset,
                )
            )
    return fixtures


def build_regular_season(conferences: Mapping[str, Sequence[str]]) -> list[Fixture]:
    """Flat fixture list, one conference after the other; list order is play order."""
    schedule: list[Fixture] = []
    next_day = 0
    for conference, team_ids in conferences.items():
        fixtures = build_round_robin(team_ids, conference, first_fixture_id=len(schedule), first_day=next_day)
        schedule.extend(fixtures)
        if fixtures:
            next_day = fixtures[-1].day + 1
    return schedule


def _spread_day(day_games: list[tuple[str, str, str]], games_per_day: int) -> list[list[tuple[str, str, str]]]:
    if len(day_games) <= games_per_day:
        return [day_games]
    chunk_count = (len(day_games) + games_per_day - 1) // games_per_day
    chunks: list[list[tuple[str, str, str]]] = [[] for _ in range(chunk_count)]
    for idx, game in enumerate(day_games):
        chunks[idx % chunk_count].append(game)
    return [c for c in chunks if c]


def _cross_conference_pairs(
    conferences: Mapping[str, Sequence[str]],
    probability: float,
    rng: random.Random,
) -> list[tuple[str, str, str]]:
    names = list(conferences)
    games: list[tuple[str, str, str]] = []
    if probability <= 0 or len(names) < 2:
        return games
    for conf_idx, conference in enumerate(names):
        for other in names[conf_idx + 1:]:
            for i, team_a in enumerate(conferences[conference]):
                for j, team_b in enumerate(conferences[other]):
                    if rng.random() >= probability:
                        continue
                    if (i + j) % 2 == 0:
                        games.append((team_a, team_b, INTER_CONFERENCE))
                    else:
                        games.append((team_b, team_a, INTER_CONFERENCE))
    return games


def build_season_calendar(
    conferences: Mapping[str, Sequence[str]],
    games_per_day: int = 4,
    cross_conference_probability: float = 0.0,
    rng: random.Random | None = None,
) -> list[list[Fixture]]:
    """Day-by-day calendar: conference rounds played side by side, plus optional cross-conference dates."""
    rng = rng or random.Random()
    games_per_day = max(1, games_per_day)
    rounds_by_conf = {conf: build_round_robin_rounds(ids) for conf, ids in conferences.items()}
    round_count = max((len(r) for r in rounds_by_conf.values()), default=0)

    raw_days: list[list[tuple[str, str, str]]] = []
    for round_idx in range(round_count):
        slate: list[tuple[str, str, str]] = []
        for conference, rounds in rounds_by_conf.items():
            if round_idx < len(rounds):
                slate.extend((home, away, conference) for home, away in rounds[round_idx])
        raw_days.extend(_spread_day(slate, games_per_day))

    # Cross-conference games fill open slots first, then spill onto extra dates.
    for home, away, tag in _cross_conference_pairs(conferences, cross_conference_probability, rng):
        for day in raw_days:
            busy = {team for game in day for team in game[:2]}
            if len(day) < games_per_day and home not in busy and away not in busy:
                day.append((home, away, tag))
                break
        else:
            raw_days.append([(home, away, tag)])

    calendar: list[list[Fixture]] = []
    fixture_id = 0
    for day_idx, day in enumerate(raw_days):
        fixtures: list[Fixture] = []
        for home, away, tag in day:
            fixtures.append(Fixture(fixture_id=fixture_id, home_team_id=home, away_team_id=away, conference=tag, day=day_idx))
            fixture_id += 1
        calendar.append(fixtures)
    return calendar
