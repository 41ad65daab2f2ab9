from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .app import build_default_league, load_league_file
from .config import ENV_LEAGUE_FILE, ENV_SEED, ENV_STATE_PATH, LeagueRules
from .errors import ConfigError
from .season import LEADER_STATS, Season

logger = logging.getLogger(__name__)


class TradeProposal(BaseModel):
    from_team_id: str
    to_team_id: str
    from_player_ids: list[str] = []
    to_player_ids: list[str] = []


class FreeAgentSignSelection(BaseModel):
    team_id: str
    player_id: str
    salary: float | None = None
    years: int | None = None


class ReleaseSelection(BaseModel):
    team_id: str
    player_id: str


class RotationSelection(BaseModel):
    team_id: str
    player_ids: list[str]


class ResetSelection(BaseModel):
    seed: int | None = None
    schedule_mode: str = "round_robin"


class SimService:
    def __init__(
        self,
        seed: int | None = None,
        league_file: str | None = None,
        state_path: str | None = None,
    ) -> None:
        self.seed = seed
        self.league_file = league_file
        self.state_path = Path(state_path) if state_path else None
        self._lock = Lock()
        self.season = self._load_or_init()

    def _fresh_season(self, seed: int | None = None, schedule_mode: str = "round_robin") -> Season:
        league = load_league_file(self.league_file) if self.league_file else build_default_league(seed)
        season = Season(rules=LeagueRules(schedule_mode=schedule_mode), seed=seed)
        season.init_season(league)
        return season

    def _load_or_init(self) -> Season:
        if self.state_path is not None and self.state_path.exists():
            try:
                return Season.load(self.state_path)
            except ConfigError as exc:
                logger.warning("Ignoring saved state at %s: %s", self.state_path, exc)
        return self._fresh_season(self.seed)

    def _persist(self) -> None:
        if self.state_path is not None:
            self.season.save(self.state_path)

    def reset(self, seed: int | None = None, schedule_mode: str = "round_robin") -> dict[str, Any]:
        try:
            self.season = self._fresh_season(seed, schedule_mode)
        except ConfigError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        self._persist()
        return {"ok": True, "phase": self.season.phase.value, "season_year": self.season.state.season_year}

    def meta(self) -> dict[str, Any]:
        state = self.season.state
        return {
            "season_year": state.season_year,
            "phase": state.phase.value,
            "day": state.day,
            "fixtures_played": state.fixture_index,
            "fixtures_total": len(state.schedule),
            "champion_id": self.season.champion_id,
        }

    def standings(self, conference: str | None) -> dict[str, Any]:
        if conference is None:
            tables = self.season.get_standings()
            return {"standings": {conf: [row.as_dict() for row in rows] for conf, rows in tables.items()}}
        conf = conference.upper()
        if conf not in self.season.state.conferences():
            raise HTTPException(status_code=404, detail="Conference not found")
        return {"conference": conf, "standings": [row.as_dict() for row in self.season.get_standings(conf)]}

    def advance(self) -> dict[str, Any]:
        game = self.season.advance()
        self._persist()
        return {"advanced": game is not None, "game": game, "meta": self.meta()}

    def advance_day(self) -> dict[str, Any]:
        games = self.season.advance_day()
        self._persist()
        return {"advanced": bool(games), "games": games, "meta": self.meta()}

    def team(self, team_id: str) -> dict[str, Any]:
        team = self.season.get_team(team_id)
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")
        return team

    def team_cap(self, team_id: str) -> dict[str, Any]:
        cap = self.season.get_team_cap_info(team_id)
        if cap is None:
            raise HTTPException(status_code=404, detail="Team not found")
        return cap

    def leaders(self, stat: str, limit: int, playoffs: bool) -> list[dict[str, Any]]:
        if stat not in LEADER_STATS:
            raise HTTPException(status_code=400, detail=f"Unknown stat; choose from {', '.join(LEADER_STATS)}")
        return self.season.get_player_leaders(stat, limit, playoffs=playoffs)

    def command_result(self, result: dict[str, Any]) -> dict[str, Any]:
        if result.get("success"):
            self._persist()
            return result
        reason = str(result.get("reason", ""))
        status = 404 if reason.endswith("_not_found") else 400
        raise HTTPException(status_code=status, detail={"reason": reason, "message": result.get("message", "")})


service = SimService(
    seed=int(ENV_SEED) if ENV_SEED else None,
    league_file=ENV_LEAGUE_FILE or None,
    state_path=ENV_STATE_PATH or None,
)
app = FastAPI(title="Hoops Sim API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/meta")
def meta() -> dict[str, Any]:
    with service._lock:
        return service.meta()


@app.get("/api/standings")
def standings(conference: str | None = None) -> dict[str, Any]:
    with service._lock:
        return service.standings(conference)


@app.post("/api/advance")
def advance() -> dict[str, Any]:
    with service._lock:
        return service.advance()


@app.post("/api/advance-day")
def advance_day() -> dict[str, Any]:
    with service._lock:
        return service.advance_day()


@app.post("/api/reset")
def reset(payload: ResetSelection | None = None) -> dict[str, Any]:
    payload = payload or ResetSelection()
    with service._lock:
        return service.reset(payload.seed, payload.schedule_mode)


@app.get("/api/teams/{team_id}")
def team(team_id: str) -> dict[str, Any]:
    with service._lock:
        return service.team(team_id)


@app.get("/api/teams/{team_id}/cap")
def team_cap(team_id: str) -> dict[str, Any]:
    with service._lock:
        return service.team_cap(team_id)


@app.post("/api/teams/rotation")
def set_rotation(payload: RotationSelection) -> dict[str, Any]:
    with service._lock:
        return service.command_result(service.season.set_rotation(payload.team_id, payload.player_ids))


@app.get("/api/free-agents")
def free_agents() -> list[dict[str, Any]]:
    with service._lock:
        return service.season.get_free_agents()


@app.post("/api/free-agents/sign")
def sign_free_agent(payload: FreeAgentSignSelection) -> dict[str, Any]:
    with service._lock:
        result = service.season.sign_free_agent(payload.team_id, payload.player_id, payload.salary, payload.years)
        return service.command_result(result)


@app.post("/api/release")
def release_player(payload: ReleaseSelection) -> dict[str, Any]:
    with service._lock:
        return service.command_result(service.season.release_player(payload.team_id, payload.player_id))


@app.post("/api/trade")
def trade(payload: TradeProposal) -> dict[str, Any]:
    with service._lock:
        result = service.season.propose_trade(
            payload.from_team_id,
            payload.to_team_id,
            payload.from_player_ids,
            payload.to_player_ids,
        )
        return service.command_result(result)


@app.post("/api/next-season")
def next_season() -> dict[str, Any]:
    with service._lock:
        return service.command_result(service.season.start_next_season())


@app.get("/api/transactions")
def transactions() -> list[dict[str, Any]]:
    with service._lock:
        return service.season.get_transaction_log()


@app.get("/api/games/recent")
def recent_games(limit: int = 20) -> list[dict[str, Any]]:
    with service._lock:
        return service.season.get_recent_games(limit)


@app.get("/api/playoffs")
def playoffs() -> dict[str, Any]:
    with service._lock:
        return service.season.get_playoffs()


@app.get("/api/leaders")
def leaders(stat: str = "points", limit: int = 10, playoffs: bool = False) -> list[dict[str, Any]]:
    with service._lock:
        return service.leaders(stat, limit, playoffs)
