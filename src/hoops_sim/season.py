from __future__ import annotations

import logging
import random
import re
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Callable, Mapping

from .config import (
    CONFERENCES,
    DEFAULT_CONTRACT_YEARS,
    DEFAULT_DIVISIONS,
    DEFAULT_SALARY,
    ENERGY_COST_PER_GAME,
    ENERGY_RECOVERY_RATE,
    INJURY_KINDS,
    INJURY_RATE_PER_GAME,
    MAX_INJURY_GAMES,
    MORALE_SWING,
    POSITIONS,
    RECENT_GAMES_LIMIT,
    LeagueRules,
)
from .engine import GameResult, MatchEngine
from .errors import ConfigError, InvariantViolation, NotFoundError, RuleViolation
from .models import Attributes, Economy, Injury, Player, PlayoffSeries, StatLine, Team, TeamSeasonStats
from .names import DEPTH_TIERS, NameGenerator, generate_player, sample_quality
from .playoffs import (
    PlayoffStage,
    PlayoffState,
    advance_round,
    forfeit_series,
    next_live_series,
    playoffs_as_dict,
    record_game,
    seed_bracket,
    select_playoff_mvp,
    series_home_away,
    settle_finals,
    start_finals,
)
from .power import player_power, team_power
from .roster import RosterManager
from .schedule import build_regular_season, build_season_calendar
from .standings import StandingsRow, compute_standings
from .state import (
    Phase,
    SeasonState,
    player_to_dict,
    read_json,
    state_from_dict,
    state_to_dict,
    team_to_dict,
    write_json_with_backup,
)

logger = logging.getLogger(__name__)

SCHEDULE_MODES = ("round_robin", "calendar")
LEADER_STATS = StatLine.COUNTING_FIELDS


def _pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def _slug(text: str) -> str:
    return re.sub(r"\s+", "-", text.strip())


class Season:
    """Owns one league season and routes every query and command against it.

    A season is single-writer: callers must not run commands concurrently.
    """

    def __init__(
        self,
        rules: LeagueRules | None = None,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.rules = rules or LeagueRules()
        self.seed = seed
        self._rng = rng or random.Random(seed)
        self._name_gen = NameGenerator(seed=seed)
        self._power_cache: dict[str, tuple[int, float]] = {}
        self._standings_cache: dict[str, tuple[int, list[StandingsRow]]] = {}
        self._initialized = False
        self._bind(SeasonState())

    def _bind(self, state: SeasonState) -> None:
        self.state = state
        self.engine = MatchEngine(self._rng, self.rules)
        self.roster = RosterManager(state, self.rules)
        self._power_cache.clear()
        self._standings_cache.clear()

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def is_finished(self) -> bool:
        return self.state.phase == Phase.FINISHED

    @property
    def champion_id(self) -> str | None:
        finals = self.state.playoffs.finals
        return finals.champion_id if finals is not None else None

    # ------------------------------------------------------------------ setup

    def init_season(self, league_data: Mapping[str, Any]) -> dict[str, object]:
        """Build teams, free agents and schedule from raw league data; nothing is kept on failure."""
        if not isinstance(league_data, Mapping):
            raise ConfigError("League data must be a mapping with a 'teams' list.")
        raw_teams = league_data.get("teams")
        if not raw_teams or not isinstance(raw_teams, list):
            raise ConfigError("League data has no teams.")
        if self.rules.schedule_mode not in SCHEDULE_MODES:
            raise ConfigError(f"Unknown schedule mode {self.rules.schedule_mode!r}.")

        state = SeasonState(
            economy=Economy(salary_cap=self.rules.salary_cap, luxury_tax_line=self.rules.luxury_tax_line)
        )
        name_gen = NameGenerator(seed=self.seed)
        seen_players: set[str] = set()
        for index, raw_team in enumerate(raw_teams):
            team = self._team_from_data(raw_team, index)
            if state.team(team.team_id) is not None:
                raise ConfigError(f"Duplicate team id {team.team_id!r}.")
            for player in team.roster:
                if player.player_id in seen_players:
                    raise ConfigError(f"Duplicate player id {player.player_id!r}.")
                seen_players.add(player.player_id)
            state.teams.append(team)
        name_gen.reserve([p.name for p in state.all_players()])

        for team in state.teams:
            self._top_up_roster(state, team, name_gen)
        self._refill_free_agents(state, name_gen)
        state.schedule = self._build_schedule(state)

        self._name_gen = name_gen
        self._bind(state)
        self._initialized = True
        self.roster.recompute_payrolls()
        self._refresh()
        logger.info(
            "Season %d initialized: %d teams, %d fixtures, %d free agents",
            state.season_year,
            len(state.teams),
            len(state.schedule),
            len(state.free_agents),
        )
        return {
            "success": True,
            "season_year": state.season_year,
            "teams": len(state.teams),
            "fixtures": len(state.schedule),
        }

    def _team_from_data(self, raw: Any, index: int) -> Team:
        if not isinstance(raw, Mapping):
            raise ConfigError(f"Team entry {index} is not an object.")
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ConfigError(f"Team entry {index} has no name.")
        team_id = str(_pick(raw, "id", "team_id", default=index + 1))

        conference = str(raw.get("conference") or "").strip().upper()
        if conference not in CONFERENCES:
            conference = next((c for c in CONFERENCES if conference and c.startswith(conference[:4])), "")
        if not conference:
            conference = CONFERENCES[index % len(CONFERENCES)]
        division = str(raw.get("division") or DEFAULT_DIVISIONS.get(conference, ""))

        raw_players = _pick(raw, "players", "lineup", default=[])
        if not isinstance(raw_players, list):
            raise ConfigError(f"{name}: players must be a list.")
        if len(raw_players) > self.rules.max_roster_size:
            raise ConfigError(
                f"{name} lists {len(raw_players)} players; the limit is {self.rules.max_roster_size}."
            )
        default_archetype = _pick(raw, "dominantArchetype", "dominant_archetype")
        team = Team(
            team_id=team_id,
            name=name,
            conference=conference,
            division=division,
            mythology=str(raw.get("mythology") or ""),
        )
        for idx, raw_player in enumerate(raw_players):
            team.roster.append(self._player_from_data(raw_player, idx, team_id, default_archetype))
        rotation = [str(pid) for pid in (raw.get("rotation") or []) if team.has_player(str(pid))]
        team.rotation_ids = rotation[: self.rules.rotation_size]
        return team

    def _player_from_data(self, raw: Any, idx: int, team_id: str, default_archetype: Any) -> Player:
        if not isinstance(raw, Mapping):
            raise ConfigError(f"Team {team_id}: player entry {idx} is not an object.")
        name = str(raw.get("name") or f"Player {idx + 1}")
        try:
            return Player(
                player_id=str(_pick(raw, "id", "player_id", default=f"{team_id}-{_slug(name)}-{idx}")),
                name=name,
                position=str(raw.get("position") or POSITIONS[idx % len(POSITIONS)]),
                attributes=Attributes.from_mapping(raw.get("attributes")),
                archetype=_pick(raw, "archetype", default=default_archetype),
                morale=float(70 + self._rng.randrange(20)),
                energy=100.0,
                salary=float(_pick(raw, "salary", default=DEFAULT_SALARY)),
                contract_years=int(_pick(raw, "contractYears", "contract_years", default=DEFAULT_CONTRACT_YEARS)),
                team_id=team_id,
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Team {team_id}: player {name!r} has invalid data ({exc}).") from exc

    def _top_up_roster(self, state: SeasonState, team: Team, name_gen: NameGenerator) -> list[Player]:
        added: list[Player] = []
        while len(team.roster) < self.rules.min_roster_size:
            player = generate_player(
                self._rng,
                name_gen,
                state.new_player_id(),
                mythology=team.mythology,
                quality=sample_quality(self._rng, DEPTH_TIERS),
                team_id=team.team_id,
            )
            team.roster.append(player)
            added.append(player)
        if added:
            logger.info("%s topped up with %d depth players", team.name, len(added))
        return added

    def _refill_free_agents(self, state: SeasonState, name_gen: NameGenerator) -> None:
        """Hold the unsigned pool at ``initial_free_agents``, dropping the weakest agents when it overflows."""
        limit = self.rules.initial_free_agents
        while len(state.free_agents) < limit:
            state.free_agents.append(generate_player(self._rng, name_gen, state.new_player_id()))
        if len(state.free_agents) <= limit:
            return
        ranked = sorted(
            state.free_agents,
            key=lambda p: (player_power(p, include_condition=False, archetype_bonuses=self.rules.archetype_bonuses), p.player_id),
            reverse=True,
        )
        keep = {p.player_id for p in ranked[:limit]}
        dropped = [p.player_id for p in state.free_agents if p.player_id not in keep]
        state.free_agents = [p for p in state.free_agents if p.player_id in keep]
        logger.info("Free agent pool trimmed to %d; %d unsigned players retired", limit, len(dropped))

    def _build_schedule(self, state: SeasonState) -> list:
        conferences = state.conferences()
        if self.rules.schedule_mode == "calendar":
            days = build_season_calendar(
                conferences,
                games_per_day=self.rules.games_per_day,
                cross_conference_probability=self.rules.cross_conference_probability,
                rng=self._rng,
            )
            return [fixture for day in days for fixture in day]
        return build_regular_season(conferences)

    # ------------------------------------------------------------- caches

    def _refresh(self) -> None:
        self.state.bump()
        for conference in self.state.conferences():
            self._standings(conference)

    def _team_power(self, team: Team) -> float:
        generation = self.state.generation
        cached = self._power_cache.get(team.team_id)
        if cached is not None and cached[0] == generation:
            return cached[1]
        value = team_power(team, rotation_size=self.rules.rotation_size, archetype_bonuses=self.rules.archetype_bonuses)
        self._power_cache[team.team_id] = (generation, value)
        return value

    def _standings(self, conference: str) -> list[StandingsRow]:
        generation = self.state.generation
        cached = self._standings_cache.get(conference)
        if cached is not None and cached[0] == generation:
            return cached[1]
        rows = compute_standings(self.state.teams, conference, power_of=self._team_power)
        self._standings_cache[conference] = (generation, rows)
        return rows

    def _record_key(self, team_id: str) -> tuple[int, int, float]:
        team = self.state.team(team_id)
        if team is None:
            return (-1, 0, 0.0)
        return (team.stats.wins, team.stats.point_diff, self._team_power(team))

    def _resolves(self, team_id: str) -> bool:
        return self.state.team(team_id) is not None

    # ------------------------------------------------------------ advancing

    def advance(self) -> dict[str, Any] | None:
        """Play the next unit of work for the current phase; None when the phase is exhausted."""
        if not self._initialized:
            return None
        phase = self.state.phase
        if phase == Phase.REGULAR_SEASON:
            result = self._advance_regular()
        elif phase == Phase.PLAYOFFS:
            result = self._advance_playoffs()
        elif phase == Phase.FINALS:
            result = self._advance_finals()
        else:
            return None
        self._refresh()
        return result

    def advance_day(self) -> list[dict[str, Any]]:
        """Play a whole calendar day: every fixture sharing the next day, or one game per live series."""
        if not self._initialized or self.is_finished:
            return []
        state = self.state
        results: list[dict[str, Any]] = []
        if state.phase == Phase.REGULAR_SEASON:
            while state.fixture_index < len(state.schedule) and state.schedule[state.fixture_index].played:
                state.fixture_index += 1
            if state.schedule_complete:
                self.advance()
                return results
            day = state.schedule[state.fixture_index].day
            while True:
                result = self._advance_regular(day=day)
                if result is None:
                    break
                results.append(result)
            self._refresh()
            return results

        if state.phase == Phase.PLAYOFFS:
            live: list[PlayoffSeries] = []
            for conference in state.playoffs.rounds:
                current = state.playoffs.current_round(conference)
                if conference in state.playoffs.champions or current is None:
                    continue
                live.extend(s for s in current.series if not s.is_complete)
            for series in live:
                if series.is_complete or forfeit_series(series, self._resolves):
                    continue
                results.append(self._play_series_game(series, Phase.PLAYOFFS))
            advance_round(state.playoffs)
            if not results:
                self.advance()
                return results
            self._refresh()
            return results

        result = self.advance()
        return [result] if result is not None else []

    def simulate_to_end(self, max_steps: int = 1_000_000) -> dict[str, object]:
        if not self._initialized:
            raise ConfigError("Season has not been initialized.")
        steps = 0
        while not self.is_finished:
            self.advance()
            steps += 1
            if steps > max_steps:
                raise InvariantViolation(f"Season did not finish within {max_steps} steps.")
        return self.champion_summary()

    def _advance_regular(self, day: int | None = None) -> dict[str, Any] | None:
        state = self.state
        while state.fixture_index < len(state.schedule):
            fixture = state.schedule[state.fixture_index]
            if day is not None and fixture.day != day:
                return None
            state.fixture_index += 1
            if fixture.played:
                continue
            home = state.team(fixture.home_team_id)
            away = state.team(fixture.away_team_id)
            if home is None or away is None:
                fixture.played = True
                logger.warning(
                    "Fixture %d skipped: %s vs %s does not resolve",
                    fixture.fixture_id,
                    fixture.home_team_id,
                    fixture.away_team_id,
                )
                continue
            state.day = fixture.day
            context = {
                "phase": Phase.REGULAR_SEASON.value,
                "fixture_id": fixture.fixture_id,
                "day": fixture.day,
                "conference": fixture.conference,
            }
            result = self._play(home, away, context, playoff=False)
            fixture.played = True
            fixture.result = result.outcome
            return self._game_summary(result)
        if day is None:
            self._start_playoffs()
        return None

    def _start_playoffs(self) -> None:
        standings_by_conf = {conf: self._standings(conf) for conf in self.state.conferences()}
        self.state.playoffs = seed_bracket(standings_by_conf, best_of=self.rules.best_of, max_teams=self.rules.playoff_teams)
        self.state.phase = Phase.PLAYOFFS
        logger.info(
            "Regular season complete after %d fixtures; playoffs seeded for %s",
            len(self.state.schedule),
            ", ".join(self.state.playoffs.seeds) or "no conference",
        )

    def _advance_playoffs(self) -> dict[str, Any] | None:
        playoffs = self.state.playoffs
        while True:
            series = next_live_series(playoffs)
            if series is None:
                if advance_round(playoffs):
                    continue
                self._start_finals()
                return None
            if forfeit_series(series, self._resolves):
                continue
            return self._play_series_game(series, Phase.PLAYOFFS)

    def _start_finals(self) -> None:
        playoffs = self.state.playoffs
        finals = start_finals(playoffs, record_key=self._record_key)
        self.state.phase = Phase.FINALS
        logger.info("Conference champions: %s", ", ".join(f"{k}={v}" for k, v in playoffs.champions.items()))
        if playoffs.stage == PlayoffStage.FINISHED:
            self._finish(finals.champion_id)

    def _advance_finals(self) -> dict[str, Any] | None:
        playoffs = self.state.playoffs
        series = next_live_series(playoffs)
        if series is None:
            champion = settle_finals(playoffs)
            if champion is not None or playoffs.stage == PlayoffStage.FINISHED:
                self._finish(self.champion_id)
            return None
        if forfeit_series(series, self._resolves):
            self._finish(settle_finals(playoffs))
            return None
        summary = self._play_series_game(series, Phase.FINALS)
        champion = settle_finals(playoffs)
        if champion is not None:
            self._finish(champion)
        return summary

    def _finish(self, champion_id: str | None) -> None:
        self.state.phase = Phase.FINISHED
        if champion_id is None:
            logger.warning("Season %d finished without a champion", self.state.season_year)
            return
        self.state.playoffs.mvp = select_playoff_mvp(champion_id, self.state.all_players())
        champion = self.state.team(champion_id)
        logger.info(
            "Season %d champion: %s (playoff MVP %s)",
            self.state.season_year,
            champion.name if champion is not None else champion_id,
            self.state.playoffs.mvp.get("name") or "n/a",
        )

    def _play_series_game(self, series: PlayoffSeries, phase: Phase) -> dict[str, Any]:
        home_id, away_id = series_home_away(series)
        home = self.state.team(home_id)
        away = self.state.team(away_id)
        if home is None or away is None:
            raise InvariantViolation(f"Series {home_id} vs {away_id} lost a team after the forfeit check.")
        self.state.day += 1
        context = {
            "phase": phase.value,
            "conference": series.conference,
            "round": series.round_number,
            "game_number": len(series.games) + 1,
            "higher_seed_id": series.higher_seed_id,
            "lower_seed_id": series.lower_seed_id,
        }
        result = self._play(home, away, context, playoff=True)
        record_game(series, home_id, away_id, result.outcome)
        if series.is_complete:
            logger.info(
                "%s series won by %s (%d-%d)",
                series.conference,
                series.winner_id,
                max(series.wins_higher, series.wins_lower),
                min(series.wins_higher, series.wins_lower),
            )
            if phase == Phase.PLAYOFFS:
                advance_round(self.state.playoffs)
        summary = self._game_summary(result)
        summary["series"] = {
            "higher_seed_id": series.higher_seed_id,
            "lower_seed_id": series.lower_seed_id,
            "wins_higher": series.wins_higher,
            "wins_lower": series.wins_lower,
            "complete": series.is_complete,
            "winner_id": series.winner_id,
        }
        return summary

    def _play(self, home: Team, away: Team, context: dict[str, Any], *, playoff: bool) -> GameResult:
        result = self.engine.simulate(home, away, context)
        outcome = result.outcome
        if not playoff:
            home.stats.register_game(outcome.home_points, outcome.away_points, outcome.home_won, is_home=True)
            away.stats.register_game(outcome.away_points, outcome.home_points, not outcome.home_won, is_home=False)
            home.update_form()
            away.update_form()
        self._apply_player_effects(home, result, playoff)
        self._apply_player_effects(away, result, playoff)

        self.state.recent_games.append(
            {
                "season_year": self.state.season_year,
                "day": self.state.day,
                "phase": context.get("phase"),
                "home_team_id": home.team_id,
                "away_team_id": away.team_id,
                "home_points": outcome.home_points,
                "away_points": outcome.away_points,
                "winner_team_id": result.winner_team_id,
                "overtimes": outcome.overtimes,
                "summary": result.summary,
            }
        )
        if len(self.state.recent_games) > RECENT_GAMES_LIMIT:
            self.state.recent_games = self.state.recent_games[-RECENT_GAMES_LIMIT:]
        self.state.bump()
        logger.debug("%s: %s", context.get("phase"), result.summary)
        return result

    def _apply_player_effects(self, team: Team, result: GameResult, playoff: bool) -> None:
        rotation_ids = {p.player_id for p in team.rotation(self.rules.rotation_size)}
        won = result.winner_team_id == team.team_id
        for player in team.roster:
            if player.is_injured:
                if player.tick_injury():
                    logger.debug("%s (%s) returns from injury", player.name, team.name)
                continue
            if player.player_id in rotation_ids:
                line = result.player_stats.get(player.player_id) or StatLine()
                (player.playoff_stats if playoff else player.season_stats).absorb(line)
                player.adjust_energy(-ENERGY_COST_PER_GAME)
                if self.rules.injuries and self._rng.random() < INJURY_RATE_PER_GAME:
                    player.injury = Injury(
                        kind=self._rng.choice(INJURY_KINDS),
                        games_remaining=self._rng.randint(1, MAX_INJURY_GAMES),
                    )
                    logger.debug("%s (%s) injured: %s", player.name, team.name, player.injury.kind)
            player.adjust_energy((100.0 - player.energy) * ENERGY_RECOVERY_RATE)
            player.adjust_morale(MORALE_SWING if won else -MORALE_SWING)

    def _team_name(self, team_id: str | None) -> str:
        team = self.state.team(team_id) if team_id else None
        return team.name if team is not None else ""

    def _game_summary(self, result: GameResult) -> dict[str, Any]:
        payload = result.as_dict()
        payload["home_team"] = self._team_name(result.home_team_id)
        payload["away_team"] = self._team_name(result.away_team_id)
        payload["winner_team_id"] = result.winner_team_id
        payload["phase"] = result.context.get("phase")
        return payload

    # -------------------------------------------------------------- queries

    def get_standings(self, conference: str | None = None) -> list[StandingsRow] | dict[str, list[StandingsRow]]:
        if conference is not None:
            return list(self._standings(conference.upper()))
        return {conf: list(self._standings(conf)) for conf in self.state.conferences()}

    def _player_view(self, player: Player) -> dict[str, Any]:
        row = player_to_dict(player)
        row["power"] = round(player_power(player, archetype_bonuses=self.rules.archetype_bonuses), 2)
        row["base_power"] = round(
            player_power(player, include_condition=False, archetype_bonuses=self.rules.archetype_bonuses), 2
        )
        return row

    def get_team(self, team_id: str) -> dict[str, Any] | None:
        team = self.state.team(team_id)
        if team is None:
            return None
        view = team_to_dict(team)
        view["power"] = round(self._team_power(team), 2)
        view["roster"] = [self._player_view(p) for p in team.roster]
        view["rotation"] = [p.player_id for p in team.rotation(self.rules.rotation_size)]
        view["cap"] = self.roster.cap_info(team.team_id).as_dict()
        return view

    def get_team_cap_info(self, team_id: str) -> dict[str, object] | None:
        try:
            return self.roster.cap_info(team_id).as_dict()
        except NotFoundError:
            return None

    def get_free_agents(self) -> list[dict[str, Any]]:
        rows = [self._player_view(p) for p in self.state.free_agents]
        rows.sort(key=lambda row: (row["base_power"], row["name"]), reverse=True)
        return rows

    def get_recent_games(self, limit: int = RECENT_GAMES_LIMIT) -> list[dict[str, Any]]:
        return [dict(game) for game in self.state.recent_games[-limit:]]

    def get_player_leaders(
        self,
        stat: str = "points",
        limit: int = 10,
        *,
        per_game: bool = True,
        playoffs: bool = False,
    ) -> list[dict[str, Any]]:
        if stat not in LEADER_STATS:
            raise ValueError(f"Unknown stat {stat!r}; choose from {', '.join(LEADER_STATS)}.")
        rows: list[dict[str, Any]] = []
        for team in self.state.teams:
            for player in team.roster:
                line = player.playoff_stats if playoffs else player.season_stats
                if line.games <= 0:
                    continue
                rows.append(
                    {
                        "player_id": player.player_id,
                        "name": player.name,
                        "team_id": team.team_id,
                        "team": team.name,
                        "games": line.games,
                        "total": getattr(line, stat),
                        "per_game": round(line.per_game(stat), 2),
                    }
                )
        key = "per_game" if per_game else "total"
        rows.sort(key=lambda row: (row[key], row["total"]), reverse=True)
        return rows[: max(0, limit)]

    def get_playoffs(self) -> dict[str, Any]:
        view = playoffs_as_dict(self.state.playoffs)
        view["phase"] = self.state.phase.value
        view["champion_id"] = self.champion_id
        view["champion"] = self._team_name(self.champion_id)
        return view

    def get_transaction_log(self) -> list[dict[str, Any]]:
        return [asdict(tx) for tx in self.state.transactions]

    def champion_summary(self) -> dict[str, object]:
        return {
            "season_year": self.state.season_year,
            "phase": self.state.phase.value,
            "champion_id": self.champion_id,
            "champion": self._team_name(self.champion_id),
            "mvp": dict(self.state.playoffs.mvp) if self.state.playoffs.mvp else None,
            "conference_champions": dict(self.state.playoffs.champions),
        }

    # ------------------------------------------------------------- commands

    def _command(self, action: Callable[..., dict[str, object]], *args: Any) -> dict[str, object]:
        try:
            result = action(*args)
        except (NotFoundError, RuleViolation) as exc:
            return exc.as_result()
        self._refresh()
        if self.rules.strict:
            self.verify_integrity()
        return result

    def propose_trade(
        self,
        from_team_id: str,
        to_team_id: str,
        from_player_ids: list[str],
        to_player_ids: list[str],
    ) -> dict[str, object]:
        return self._command(
            self.roster.propose_trade, from_team_id, to_team_id, list(from_player_ids), list(to_player_ids)
        )

    def sign_free_agent(
        self,
        team_id: str,
        player_id: str,
        salary: float | None = None,
        years: int | None = None,
    ) -> dict[str, object]:
        return self._command(self.roster.sign_free_agent, team_id, player_id, salary, years)

    def release_player(self, team_id: str, player_id: str) -> dict[str, object]:
        return self._command(self.roster.release_player, team_id, player_id)

    def set_rotation(self, team_id: str, player_ids: list[str]) -> dict[str, object]:
        return self._command(self.roster.set_rotation, team_id, list(player_ids))

    def start_next_season(self) -> dict[str, object]:
        """Archive the finished season, expire contracts and rebuild the schedule."""
        if not self.is_finished:
            return {
                "success": False,
                "reason": "season_not_finished",
                "message": "The current season has not finished yet.",
            }
        state = self.state
        state.history.append(
            {
                **self.champion_summary(),
                "standings": {
                    conf: [
                        {"team_id": row.team_id, "wins": row.wins, "losses": row.losses, "point_diff": row.point_diff}
                        for row in rows
                    ]
                    for conf, rows in self.get_standings().items()
                },
            }
        )

        expired: list[str] = []
        for team in state.teams:
            for player in list(team.roster):
                player.contract_years -= 1
                if player.contract_years > 0:
                    continue
                self.roster.remove_player(team, player.player_id)
                player.contract_years = self._rng.randint(1, DEFAULT_CONTRACT_YEARS)
                state.free_agents.append(player)
                expired.append(player.player_id)
                self.roster._log("release", [team.team_id], [player.player_id], {"reason": "contract_expired"})
            team.dead_cap = 0.0
            team.stats = TeamSeasonStats()
            team.form_factor = 1.0

        state.season_year += 1
        state.day = 0
        for player in state.all_players():
            player.season_stats.reset()
            player.playoff_stats.reset()
            player.energy = 100.0
        for team in state.teams:
            self._top_up_roster(state, team, self._name_gen)
        self._refill_free_agents(state, self._name_gen)

        state.schedule = self._build_schedule(state)
        state.fixture_index = 0
        state.playoffs = PlayoffState()
        state.recent_games = []
        state.phase = Phase.REGULAR_SEASON
        self.roster.recompute_payrolls()
        self._refresh()
        logger.info("Season %d started; %d contracts expired", state.season_year, len(expired))
        return {
            "success": True,
            "message": f"Season {state.season_year} is ready.",
            "season_year": state.season_year,
            "expired_player_ids": expired,
        }

    def verify_integrity(self) -> None:
        """Raise InvariantViolation when ownership, roster bounds or payroll bookkeeping are broken."""
        owners: dict[str, str] = {}
        for team in self.state.teams:
            size = len(team.roster)
            if not self.rules.min_roster_size <= size <= self.rules.max_roster_size:
                raise InvariantViolation(f"{team.name} has {size} players.")
            for player in team.roster:
                if player.team_id != team.team_id:
                    raise InvariantViolation(
                        f"{player.name} is listed by {team.name} but points at {player.team_id!r}."
                    )
                if player.player_id in owners:
                    raise InvariantViolation(f"{player.name} is on two rosters.")
                owners[player.player_id] = team.team_id
        for player in self.state.free_agents:
            if player.team_id is not None or player.player_id in owners:
                raise InvariantViolation(f"Free agent {player.name} is still attached to a team.")
        for team_id, info in self.roster.recompute_payrolls().items():
            team = self.state.team(team_id)
            if team is None or info.payroll != sum(p.salary for p in team.roster):
                raise InvariantViolation(f"Payroll for {team_id} is out of sync.")

    # ------------------------------------------------------------ snapshots

    def snapshot(self) -> dict[str, Any]:
        payload = state_to_dict(self.state)
        payload["rules"] = asdict(self.rules)
        version, internal, gauss = self._rng.getstate()
        payload["rng_state"] = [version, list(internal), gauss]
        return payload

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any], rng: random.Random | None = None) -> Season:
        state = state_from_dict(data)
        known = {f.name for f in fields(LeagueRules)}
        rules = LeagueRules(**{k: v for k, v in (data.get("rules") or {}).items() if k in known})
        if rng is None:
            rng = random.Random()
            raw_rng = data.get("rng_state")
            if isinstance(raw_rng, list) and len(raw_rng) == 3:
                rng.setstate((raw_rng[0], tuple(raw_rng[1]), raw_rng[2]))
        season = cls(rules=rules, rng=rng)
        season._name_gen.reserve([p.name for p in state.all_players()])
        season._bind(state)
        season._initialized = bool(state.teams)
        season.roster.recompute_payrolls()
        season._refresh()
        return season

    def save(self, path: str | Path) -> Path:
        target = Path(path)
        write_json_with_backup(target, self.snapshot())
        return target

    @classmethod
    def load(cls, path: str | Path) -> Season:
        return cls.from_snapshot(read_json(Path(path)))
