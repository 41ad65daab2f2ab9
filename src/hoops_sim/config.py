"""Static simulation configuration constants."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

CONFERENCES: tuple[str, ...] = ("EAST", "WEST")
DEFAULT_DIVISIONS: dict[str, str] = {"EAST": "Olympian", "WEST": "Underworld"}
POSITIONS: tuple[str, ...] = ("PG", "SG", "SF", "PF", "C")

# Roster / economy
MIN_ROSTER_SIZE = 10
MAX_ROSTER_SIZE = 15
ROTATION_SIZE = 8
DEFAULT_SALARY_CAP = 120_000_000
LUXURY_TAX_FACTOR = 1.10
LUXURY_TAX_RATE = 1.5
SIGNING_CAP_TOLERANCE = 1.05
TRADE_SALARY_BALANCE = 0.75
DEAD_CAP_SHARE = 0.5
DEFAULT_SALARY = 5_000_000
DEFAULT_CONTRACT_YEARS = 3
INITIAL_FREE_AGENTS = 12

# Power model
ATTRIBUTE_NAMES: tuple[str, ...] = ("strength", "technique", "speed", "creativity", "discipline", "aura")
ATTRIBUTE_WEIGHTS: dict[str, float] = {
    "strength": 1.20,
    "technique": 1.10,
    "speed": 1.05,
    "creativity": 0.95,
    "discipline": 0.85,
    "aura": 0.75,
}
ATTRIBUTE_DEFAULT = 50.0
ATTRIBUTE_MAX = 99.0
NEUTRAL_POWER = 50.0
TEAM_POWER_FLOOR = 40.0
HOME_COURT_MULTIPLIER = 1.05

# Mythology archetypes add flat points to attributes before weighting.
ARCHETYPE_BONUSES: dict[str, dict[str, float]] = {
    "titan": {"strength": 6.0, "aura": 2.0},
    "trickster": {"creativity": 6.0, "speed": 2.0},
    "oracle": {"technique": 4.0, "discipline": 4.0},
    "messenger": {"speed": 6.0, "creativity": 2.0},
    "warrior": {"strength": 3.0, "discipline": 3.0, "aura": 2.0},
    "sage": {"technique": 5.0, "aura": 3.0},
}

# Match engine
POSSESSION_BUDGET = 90
OVERTIME_POSSESSIONS = 10
MAX_OVERTIMES = 50
BASE_SCORE_PROBABILITY = 0.45
SCORE_SENSITIVITY = 0.3
THREE_POINT_PROBABILITY = 0.35
ASSIST_PROBABILITY = 0.60
TURNOVER_PROBABILITY = 0.12
DEFENSIVE_EVENT_PROBABILITY = 0.08

# Condition / form
ENERGY_COST_PER_GAME = 8
# Share of missing energy regained after each game; rotation players settle near 85.
ENERGY_RECOVERY_RATE = 0.35
MORALE_SWING = 2
INJURY_RATE_PER_GAME = 0.006
MAX_INJURY_GAMES = 8
INJURY_KINDS: tuple[str, ...] = ("ankle sprain", "hamstring strain", "knee bruise", "back spasms", "wrist sprain")
FORM_WINDOW = 10
FORM_BASE = 0.9
FORM_RANGE = 0.2

# Postseason
PLAYOFF_TEAMS_PER_CONFERENCE = 8
PLAYOFF_SERIES_BEST_OF = 5

RECENT_GAMES_LIMIT = 50

# Calendar model
CALENDAR_GAMES_PER_DAY = 4
CALENDAR_CROSS_CONFERENCE_PROBABILITY = 0.0

# Service / CLI environment
ENV_SEED = os.getenv("HOOPS_SIM_SEED", "")
ENV_LEAGUE_FILE = os.getenv("HOOPS_SIM_LEAGUE_FILE", "")
ENV_STATE_PATH = os.getenv("HOOPS_SIM_STATE_PATH", "")
ENV_LOG_LEVEL = os.getenv("HOOPS_SIM_LOG_LEVEL", "INFO")


@dataclass(slots=True)
class LeagueRules:
    min_roster_size: int = MIN_ROSTER_SIZE
    max_roster_size: int = MAX_ROSTER_SIZE
    rotation_size: int = ROTATION_SIZE
    salary_cap: float = DEFAULT_SALARY_CAP
    luxury_tax_factor: float = LUXURY_TAX_FACTOR
    signing_cap_tolerance: float = SIGNING_CAP_TOLERANCE
    trade_salary_balance: float = TRADE_SALARY_BALANCE
    dead_cap_share: float = DEAD_CAP_SHARE
    playoff_teams: int = PLAYOFF_TEAMS_PER_CONFERENCE
    best_of: int = PLAYOFF_SERIES_BEST_OF
    possession_budget: int = POSSESSION_BUDGET
    initial_free_agents: int = INITIAL_FREE_AGENTS
    schedule_mode: str = "round_robin"
    games_per_day: int = CALENDAR_GAMES_PER_DAY
    cross_conference_probability: float = CALENDAR_CROSS_CONFERENCE_PROBABILITY
    injuries: bool = True
    strict: bool = False
    archetype_bonuses: dict[str, dict[str, float]] = field(default_factory=lambda: dict(ARCHETYPE_BONUSES))

    @property
    def luxury_tax_line(self) -> float:
        return self.salary_cap * self.luxury_tax_factor
