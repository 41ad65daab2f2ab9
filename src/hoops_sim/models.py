from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Mapping

from .config import (
    ATTRIBUTE_DEFAULT,
    ATTRIBUTE_MAX,
    ATTRIBUTE_NAMES,
    DEFAULT_CONTRACT_YEARS,
    DEFAULT_SALARY,
    FORM_BASE,
    FORM_RANGE,
    FORM_WINDOW,
    LUXURY_TAX_RATE,
    MAX_ROSTER_SIZE,
)

# League files written for the first release used Portuguese attribute keys.
ATTRIBUTE_ALIASES: dict[str, str] = {
    "forca": "strength",
    "tecnica": "technique",
    "velocidade": "speed",
    "criatividade": "creativity",
    "disciplina": "discipline",
}


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(slots=True)
class Attributes:
    strength: float = ATTRIBUTE_DEFAULT
    technique: float = ATTRIBUTE_DEFAULT
    speed: float = ATTRIBUTE_DEFAULT
    creativity: float = ATTRIBUTE_DEFAULT
    discipline: float = ATTRIBUTE_DEFAULT
    aura: float = ATTRIBUTE_DEFAULT

    def __post_init__(self) -> None:
        for name in ATTRIBUTE_NAMES:
            setattr(self, name, clamp(float(getattr(self, name)), 0.0, ATTRIBUTE_MAX))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> Attributes:
        """Build attributes from loose league data; missing keys stay at the midpoint."""
        values: dict[str, float] = {}
        for key, value in (raw or {}).items():
            name = ATTRIBUTE_ALIASES.get(str(key).lower(), str(key).lower())
            if name not in ATTRIBUTE_NAMES or value is None:
                continue
            values[name] = float(value)
        return cls(**values)

    def get(self, name: str) -> float:
        return float(getattr(self, name))

    def as_dict(self) -> dict[str, float]:
        return {name: self.get(name) for name in ATTRIBUTE_NAMES}


@dataclass(slots=True)
class Injury:
    kind: str
    games_remaining: int


@dataclass(slots=True)
class StatLine:
    games: int = 0
    points: int = 0
    rebounds: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    fgm: int = 0
    fga: int = 0
    tpm: int = 0
    tpa: int = 0

    COUNTING_FIELDS: ClassVar[tuple[str, ...]] = (
        "points", "rebounds", "assists", "steals", "blocks", "turnovers", "fgm", "fga", "tpm", "tpa",
    )

    def absorb(self, line: StatLine) -> None:
        self.games += 1
        for name in self.COUNTING_FIELDS:
            setattr(self, name, getattr(self, name) + getattr(line, name))

    def reset(self) -> None:
        for item in fields(self):
            setattr(self, item.name, 0)

    @property
    def fg_pct(self) -> float:
        if self.fga <= 0:
            return 0.0
        return self.fgm / self.fga

    def per_game(self, stat: str) -> float:
        if self.games <= 0:
            return 0.0
        return getattr(self, stat) / self.games


@dataclass(slots=True)
class Player:
    player_id: str
    name: str
    position: str = "SF"
    attributes: Attributes = field(default_factory=Attributes)
    archetype: str | None = None
    morale: float = 75.0
    energy: float = 100.0
    salary: float = DEFAULT_SALARY
    contract_years: int = DEFAULT_CONTRACT_YEARS
    injury: Injury | None = None
    team_id: str | None = None
    season_stats: StatLine = field(default_factory=StatLine)
    playoff_stats: StatLine = field(default_factory=StatLine)

    @property
    def is_injured(self) -> bool:
        return self.injury is not None and self.injury.games_remaining > 0

    @property
    def is_free_agent(self) -> bool:
        return self.team_id is None

    def adjust_energy(self, delta: float) -> None:
        self.energy = clamp(self.energy + delta, 0.0, 100.0)

    def adjust_morale(self, delta: float) -> None:
        self.morale = clamp(self.morale + delta, 0.0, 100.0)

    def tick_injury(self) -> bool:
        """Count one game off an injury; True when the player just got healthy."""
        if self.injury is None:
            return False
        self.injury.games_remaining -= 1
        if self.injury.games_remaining <= 0:
            self.injury = None
            return True
        return False


@dataclass(slots=True)
class TeamSeasonStats:
    games: int = 0
    wins: int = 0
    losses: int = 0
    points_for: int = 0
    points_against: int = 0
    streak: int = 0
    home_wins: int = 0
    home_losses: int = 0
    away_wins: int = 0
    away_losses: int = 0
    recent_results: list[str] = field(default_factory=list)

    @property
    def point_diff(self) -> int:
        return self.points_for - self.points_against

    @property
    def win_pct(self) -> float:
        if self.games <= 0:
            return 0.0
        return self.wins / self.games

    @property
    def home_record(self) -> str:
        return f"{self.home_wins}-{self.home_losses}"

    @property
    def away_record(self) -> str:
        return f"{self.away_wins}-{self.away_losses}"

    @property
    def last10(self) -> str:
        sample = self.recent_results[-10:]
        return f"{sample.count('W')}-{sample.count('L')}"

    @property
    def streak_label(self) -> str:
        if self.streak == 0:
            return "-"
        return f"W{self.streak}" if self.streak > 0 else f"L{-self.streak}"

    def register_game(self, points_for: int, points_against: int, won: bool, is_home: bool) -> None:
        self.games += 1
        self.points_for += points_for
        self.points_against += points_against
        if won:
            self.wins += 1
            self.recent_results.append("W")
            self.streak = self.streak + 1 if self.streak > 0 else 1
            if is_home:
                self.home_wins += 1
            else:
                self.away_wins += 1
        else:
            self.losses += 1
            self.recent_results.append("L")
            self.streak = self.streak - 1 if self.streak < 0 else -1
            if is_home:
                self.home_losses += 1
            else:
                self.away_losses += 1
        if len(self.recent_results) > FORM_WINDOW:
            self.recent_results = self.recent_results[-FORM_WINDOW:]


@dataclass(slots=True)
class Team:
    team_id: str
    name: str
    conference: str = "EAST"
    division: str = "Olympian"
    mythology: str = ""
    roster: list[Player] = field(default_factory=list)
    rotation_ids: list[str] = field(default_factory=list)
    stats: TeamSeasonStats = field(default_factory=TeamSeasonStats)
    form_factor: float = 1.0
    dead_cap: float = 0.0

    MAX_ROSTER_SIZE: ClassVar[int] = MAX_ROSTER_SIZE

    def player(self, player_id: str) -> Player | None:
        for player in self.roster:
            if player.player_id == player_id:
                return player
        return None

    def has_player(self, player_id: str) -> bool:
        return self.player(player_id) is not None

    @property
    def payroll(self) -> float:
        return float(sum(p.salary for p in self.roster))

    def healthy_players(self) -> list[Player]:
        return [p for p in self.roster if not p.is_injured]

    def rotation(self, size: int = 8) -> list[Player]:
        """Players used for power and possessions: explicit rotation, else the top of the roster."""
        if self.rotation_ids:
            chosen = [p for p in (self.player(pid) for pid in self.rotation_ids) if p is not None and not p.is_injured]
            if chosen:
                return chosen
        healthy = self.healthy_players()
        if healthy:
            return healthy[:size]
        return self.roster[:size]

    def set_rotation(self, player_ids: list[str]) -> bool:
        if len(set(player_ids)) != len(player_ids):
            return False
        if not all(self.has_player(pid) for pid in player_ids):
            return False
        self.rotation_ids = list(player_ids)
        return True

    def refresh_rotation(self) -> None:
        self.rotation_ids = [pid for pid in self.rotation_ids if self.has_player(pid)]

    def update_form(self) -> None:
        self.form_factor = FORM_BASE + (self.stats.wins / max(1, self.stats.games)) * FORM_RANGE


@dataclass(slots=True)
class GameOutcome:
    home_points: int
    away_points: int
    winner: str
    overtimes: int = 0

    @property
    def home_won(self) -> bool:
        return self.winner == "home"


@dataclass(slots=True)
class Fixture:
    fixture_id: int
    home_team_id: str
    away_team_id: str
    conference: str
    day: int = 0
    played: bool = False
    result: GameOutcome | None = None


@dataclass(slots=True)
class SeriesGame:
    game_number: int
    home_team_id: str
    away_team_id: str
    home_points: int
    away_points: int
    winner_id: str
    overtimes: int = 0


@dataclass(slots=True)
class PlayoffSeries:
    conference: str
    round_number: int
    higher_seed_id: str
    lower_seed_id: str
    best_of: int = 5
    wins_higher: int = 0
    wins_lower: int = 0
    games: list[SeriesGame] = field(default_factory=list)
    forfeited: bool = False

    @property
    def wins_needed(self) -> int:
        return self.best_of // 2 + 1

    @property
    def is_complete(self) -> bool:
        return self.wins_higher >= self.wins_needed or self.wins_lower >= self.wins_needed

    @property
    def winner_id(self) -> str | None:
        if self.wins_higher >= self.wins_needed:
            return self.higher_seed_id
        if self.wins_lower >= self.wins_needed:
            return self.lower_seed_id
        return None

    @property
    def loser_id(self) -> str | None:
        winner = self.winner_id
        if winner is None:
            return None
        return self.lower_seed_id if winner == self.higher_seed_id else self.higher_seed_id


@dataclass(slots=True)
class BracketRound:
    round_number: int
    conference: str
    series: list[PlayoffSeries] = field(default_factory=list)
    byes: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return all(s.is_complete for s in self.series)


@dataclass(slots=True)
class Finals:
    east_champion_id: str | None = None
    west_champion_id: str | None = None
    series: PlayoffSeries | None = None
    champion_id: str | None = None


@dataclass(slots=True)
class TeamCapInfo:
    team_id: str
    payroll: float
    dead_cap: float
    salary_cap: float
    luxury_tax_line: float
    luxury_tax_rate: float = LUXURY_TAX_RATE

    @property
    def committed(self) -> float:
        return self.payroll + self.dead_cap

    @property
    def cap_space(self) -> float:
        return self.salary_cap - self.committed

    @property
    def over_cap(self) -> bool:
        return self.committed > self.salary_cap

    @property
    def over_tax(self) -> bool:
        return self.committed > self.luxury_tax_line

    @property
    def luxury_tax_bill(self) -> float:
        if not self.over_tax:
            return 0.0
        return (self.committed - self.luxury_tax_line) * self.luxury_tax_rate

    def as_dict(self) -> dict[str, object]:
        return {
            "team_id": self.team_id,
            "payroll": self.payroll,
            "dead_cap": self.dead_cap,
            "committed": self.committed,
            "salary_cap": self.salary_cap,
            "cap_space": self.cap_space,
            "over_cap": self.over_cap,
            "luxury_tax_line": self.luxury_tax_line,
            "over_tax": self.over_tax,
            "luxury_tax_bill": self.luxury_tax_bill,
        }


@dataclass(slots=True)
class Economy:
    salary_cap: float
    luxury_tax_line: float
    cap_table: dict[str, TeamCapInfo] = field(default_factory=dict)
    cap_generation: int = -1


@dataclass(slots=True)
class Transaction:
    kind: str
    season_year: int
    day: int
    team_ids: list[str]
    player_ids: list[str]
    details: dict[str, Any] = field(default_factory=dict)
