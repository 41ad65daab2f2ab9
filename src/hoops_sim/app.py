from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any, Iterable

from .config import DEFAULT_DIVISIONS, ENV_LEAGUE_FILE, ENV_LOG_LEVEL, ENV_SEED, LeagueRules
from .errors import ConfigError
from .names import NameGenerator, generate_player
from .season import LEADER_STATS, SCHEDULE_MODES, Season
from .standings import StandingsRow

logger = logging.getLogger(__name__)

# name, mythology, talent shift
DEFAULT_TEAMS: dict[str, list[tuple[str, str, float]]] = {
    "EAST": [
        ("Olympus Thunder", "greek", 0.06),
        ("Asgard Ravens", "norse", 0.04),
        ("Thebes Sphinxes", "egyptian", 0.02),
        ("Tara Druids", "celtic", 0.00),
        ("Tenochtitlan Jaguars", "aztec", 0.03),
        ("Izumo Dragons", "japanese", 0.01),
        ("Sparta Hoplites", "greek", -0.02),
        ("Midgard Serpents", "norse", -0.04),
    ],
    "WEST": [
        ("Hades Shades", "greek", 0.05),
        ("Helheim Wolves", "norse", 0.03),
        ("Duat Jackals", "egyptian", 0.04),
        ("Annwn Hounds", "celtic", 0.01),
        ("Mictlan Owls", "aztec", -0.01),
        ("Yomi Oni", "japanese", 0.02),
        ("Tartarus Titans", "greek", -0.03),
        ("Avalon Mists", "celtic", -0.05),
    ],
}

ROSTER_POSITIONS = ["PG", "SG", "SF", "PF", "C", "PG", "SG", "SF", "PF", "C", "SF", "PF"]


def _team_id(name: str) -> str:
    return name.lower().replace(" ", "-")


def build_default_league(seed: int | None = 7) -> dict[str, Any]:
    """Procedural two-conference league in the league-file format."""
    name_gen = NameGenerator(seed=seed)
    teams: list[dict[str, Any]] = []
    counter = 1
    for conference, entries in DEFAULT_TEAMS.items():
        for team_name, mythology, shift in entries:
            rng = random.Random(f"{seed}:{team_name}")
            team_id = _team_id(team_name)
            players: list[dict[str, Any]] = []
            for position in ROSTER_POSITIONS:
                player = generate_player(rng, name_gen, f"P{counter:05d}", mythology=mythology, position=position)
                counter += 1
                for attr in player.attributes.as_dict():
                    value = player.attributes.get(attr) + shift * 40.0
                    setattr(player.attributes, attr, round(max(1.0, min(99.0, value)), 1))
                players.append(
                    {
                        "id": player.player_id,
                        "name": player.name,
                        "position": player.position,
                        "attributes": player.attributes.as_dict(),
                        "archetype": player.archetype,
                        "salary": player.salary,
                        "contractYears": player.contract_years,
                    }
                )
            teams.append(
                {
                    "id": team_id,
                    "name": team_name,
                    "conference": conference,
                    "division": DEFAULT_DIVISIONS[conference],
                    "mythology": mythology,
                    "players": players,
                }
            )
    return {"teams": teams}


def load_league_file(path: str | Path) -> dict[str, Any]:
    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Failed to load league file {source} ({exc}).") from exc
    if isinstance(raw, list):
        raw = {"teams": raw}
    if not isinstance(raw, dict):
        raise ConfigError(f"League file {source} must hold an object with a 'teams' list.")
    return raw


def format_standings(rows: Iterable[StandingsRow], title: str = "") -> str:
    lines = [title] if title else []
    lines.append("Pos Team                   W   L   PF   PA  Diff Strk L10  Pwr")
    for row in rows:
        lines.append(
            f"{row.rank:>3} {row.name:<20} {row.wins:>3} {row.losses:>3} {row.points_for:>4} {row.points_against:>4}"
            f" {row.point_diff:>+5} {row.streak:>4} {row.last10:>4} {row.power:>4.1f}"
        )
    return "\n".join(lines)


def format_leaders(rows: Iterable[dict[str, Any]], title: str, limit: int = 10) -> str:
    lines = [title, "Player                        Team                  GP   Tot  /G"]
    for row in list(rows)[:limit]:
        lines.append(
            f"{row['name']:<29} {row['team']:<20} {row['games']:>3} {row['total']:>5} {row['per_game']:>5.1f}"
        )
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hoops-sim", description="Mythic basketball league season simulator")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Simulate full seasons and print the final tables")
    run.add_argument("--league", default=ENV_LEAGUE_FILE or None, help="League JSON file (default: generated league)")
    run.add_argument("--seed", type=int, default=int(ENV_SEED) if ENV_SEED else None, help="Random seed")
    run.add_argument("--save", default=None, help="Write the final season snapshot to this path")
    run.add_argument("--schedule", choices=SCHEDULE_MODES, default="round_robin", help="Schedule model")
    run.add_argument("--seasons", type=int, default=1, help="Number of consecutive seasons to play")
    run.add_argument("--leaders", default="points", choices=LEADER_STATS, help="Stat for the leaders table")
    return parser


def run_seasons(args: argparse.Namespace) -> int:
    league = load_league_file(args.league) if args.league else build_default_league(args.seed)
    season = Season(rules=LeagueRules(schedule_mode=args.schedule), seed=args.seed)
    season.init_season(league)

    for idx in range(max(1, args.seasons)):
        if idx > 0:
            season.start_next_season()
        summary = season.simulate_to_end()
        for conference, rows in season.get_standings().items():
            print(format_standings(rows, title=f"\n{conference}, season {summary['season_year']}"))
        print()
        print(format_leaders(season.get_player_leaders(args.leaders), title=f"{args.leaders.title()} per game"))
        mvp = summary.get("mvp") or {}
        print(f"\nChampion: {summary['champion'] or 'none'}")
        if mvp.get("name"):
            print(f"Playoff MVP: {mvp['name']} ({mvp['summary']})")

    if args.save:
        path = season.save(args.save)
        logger.info("Season snapshot written to %s", path)
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=getattr(logging, ENV_LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command != "run":
        parser.print_help()
        return 1
    try:
        return run_seasons(args)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
