from __future__ import annotations

import logging
from typing import Sequence

from .config import LeagueRules
from .errors import NotFoundError, RuleViolation
from .models import Player, Team, TeamCapInfo, Transaction
from .state import SeasonState

logger = logging.getLogger(__name__)


class RosterManager:
    """Roster moves and cap bookkeeping for one season state.

    Every public move validates fully before touching any roster, so a
    rejected trade, signing or release leaves the state exactly as it was.
    """

    def __init__(self, state: SeasonState, rules: LeagueRules) -> None:
        self.state = state
        self.rules = rules

    def _team(self, team_id: str) -> Team:
        team = self.state.team(team_id)
        if team is None:
            raise NotFoundError(f"Team {team_id!r} not found.", reason="team_not_found")
        return team

    def _roster_player(self, team: Team, player_id: str) -> Player:
        player = team.player(player_id)
        if player is None:
            raise NotFoundError(f"Player {player_id!r} is not on {team.name}.", reason="player_not_found")
        return player

    def _log(self, kind: str, team_ids: list[str], player_ids: list[str], details: dict[str, object]) -> Transaction:
        tx = Transaction(
            kind=kind,
            season_year=self.state.season_year,
            day=self.state.day,
            team_ids=team_ids,
            player_ids=player_ids,
            details=details,
        )
        self.state.transactions.append(tx)
        return tx

    def _changed(self) -> None:
        self.state.bump()
        self.recompute_payrolls()

    def add_player(self, team: Team, player: Player) -> bool:
        if len(team.roster) >= self.rules.max_roster_size:
            return False
        team.roster.append(player)
        player.team_id = team.team_id
        team.refresh_rotation()
        return True

    def remove_player(self, team: Team, player_id: str) -> Player | None:
        player = team.player(player_id)
        if player is None:
            return None
        team.roster.remove(player)
        player.team_id = None
        team.refresh_rotation()
        return player

    def propose_trade(
        self,
        from_team_id: str,
        to_team_id: str,
        from_player_ids: Sequence[str],
        to_player_ids: Sequence[str],
    ) -> dict[str, object]:
        from_team = self._team(from_team_id)
        to_team = self._team(to_team_id)
        if from_team is to_team:
            raise RuleViolation("A team cannot trade with itself.", reason="same_team")
        if not from_player_ids and not to_player_ids:
            raise RuleViolation("A trade needs at least one player.", reason="empty_trade")
        if len(set(from_player_ids)) != len(from_player_ids) or len(set(to_player_ids)) != len(to_player_ids):
            raise RuleViolation("A player is listed twice in the trade.", reason="duplicate_player")

        outgoing = [self._roster_player(from_team, pid) for pid in from_player_ids]
        incoming = [self._roster_player(to_team, pid) for pid in to_player_ids]

        from_salary = sum(p.salary for p in outgoing)
        to_salary = sum(p.salary for p in incoming)
        smaller, larger = sorted((from_salary, to_salary))
        if smaller < larger * self.rules.trade_salary_balance:
            raise RuleViolation(
                f"Salaries must match within {int(self.rules.trade_salary_balance * 100)}% "
                f"({from_salary:,.0f} vs {to_salary:,.0f}).",
                reason="salary_mismatch",
            )

        for team, sent, received in ((from_team, outgoing, incoming), (to_team, incoming, outgoing)):
            size_after = len(team.roster) - len(sent) + len(received)
            if size_after > self.rules.max_roster_size:
                raise RuleViolation(f"{team.name} would exceed {self.rules.max_roster_size} players.", reason="roster_full")
            if size_after < self.rules.min_roster_size:
                raise RuleViolation(
                    f"{team.name} would drop below {self.rules.min_roster_size} players.", reason="roster_minimum"
                )

        for player in outgoing:
            self.remove_player(from_team, player.player_id)
        for player in incoming:
            self.remove_player(to_team, player.player_id)
        for player in outgoing:
            self.add_player(to_team, player)
        for player in incoming:
            self.add_player(from_team, player)

        self._changed()
        self._log(
            "trade",
            [from_team.team_id, to_team.team_id],
            [p.player_id for p in (*outgoing, *incoming)],
            {
                "from_player_ids": list(from_player_ids),
                "to_player_ids": list(to_player_ids),
                "from_salary": from_salary,
                "to_salary": to_salary,
            },
        )
        logger.info(
            "Trade: %s send %s to %s for %s",
            from_team.name,
            ", ".join(p.name for p in outgoing) or "nothing",
            to_team.name,
            ", ".join(p.name for p in incoming) or "nothing",
        )
        return {
            "success": True,
            "message": f"Trade completed between {from_team.name} and {to_team.name}.",
            "from_team_id": from_team.team_id,
            "to_team_id": to_team.team_id,
            "from_player_ids": list(from_player_ids),
            "to_player_ids": list(to_player_ids),
        }

    def sign_free_agent(
        self,
        team_id: str,
        player_id: str,
        salary: float | None = None,
        years: int | None = None,
    ) -> dict[str, object]:
        team = self._team(team_id)
        player = self.state.free_agent(player_id)
        if player is None:
            raise NotFoundError(f"Player {player_id!r} is not a free agent.", reason="player_not_found")
        offer_salary = float(player.salary if salary is None else salary)
        offer_years = int(player.contract_years if years is None else years)
        if offer_salary <= 0 or offer_years < 1:
            raise RuleViolation("Contracts need a positive salary and at least one year.", reason="invalid_terms")
        if len(team.roster) >= self.rules.max_roster_size:
            raise RuleViolation(f"{team.name} roster is full.", reason="roster_full")
        limit = self.rules.salary_cap * self.rules.signing_cap_tolerance
        committed = team.payroll + team.dead_cap
        if committed + offer_salary > limit:
            raise RuleViolation(
                f"{team.name} lacks cap space ({committed + offer_salary:,.0f} > {limit:,.0f}).",
                reason="cap_space",
            )

        self.state.free_agents.remove(player)
        player.salary = offer_salary
        player.contract_years = offer_years
        self.add_player(team, player)
        self._changed()
        self._log("sign", [team.team_id], [player.player_id], {"salary": offer_salary, "years": offer_years})
        logger.info("%s signed %s (%d yrs, %.0f)", team.name, player.name, offer_years, offer_salary)
        return {
            "success": True,
            "message": f"{team.name} signed {player.name}.",
            "team_id": team.team_id,
            "player_id": player.player_id,
            "salary": offer_salary,
            "years": offer_years,
        }

    def release_player(self, team_id: str, player_id: str) -> dict[str, object]:
        team = self._team(team_id)
        player = self._roster_player(team, player_id)
        if len(team.roster) - 1 < self.rules.min_roster_size:
            raise RuleViolation(
                f"{team.name} cannot drop below {self.rules.min_roster_size} players.", reason="roster_minimum"
            )

        dead_cap = player.salary * self.rules.dead_cap_share
        self.remove_player(team, player_id)
        team.dead_cap += dead_cap
        self.state.free_agents.append(player)
        self._changed()
        self._log("release", [team.team_id], [player.player_id], {"dead_cap": dead_cap})
        logger.info("%s released %s (dead cap %.0f)", team.name, player.name, dead_cap)
        return {
            "success": True,
            "message": f"{team.name} released {player.name}.",
            "team_id": team.team_id,
            "player_id": player.player_id,
            "dead_cap": dead_cap,
        }

    def set_rotation(self, team_id: str, player_ids: Sequence[str]) -> dict[str, object]:
        team = self._team(team_id)
        for pid in player_ids:
            self._roster_player(team, pid)
        if len(player_ids) > self.rules.rotation_size or not team.set_rotation(list(player_ids)):
            raise RuleViolation(
                f"A rotation lists up to {self.rules.rotation_size} distinct roster players.", reason="invalid_rotation"
            )
        self.state.bump()
        return {"success": True, "message": f"{team.name} rotation updated.", "team_id": team.team_id}

    def recompute_payrolls(self) -> dict[str, TeamCapInfo]:
        economy = self.state.economy
        economy.cap_table = {
            team.team_id: TeamCapInfo(
                team_id=team.team_id,
                payroll=team.payroll,
                dead_cap=team.dead_cap,
                salary_cap=economy.salary_cap,
                luxury_tax_line=economy.luxury_tax_line,
            )
            for team in self.state.teams
        }
        economy.cap_generation = self.state.generation
        return economy.cap_table

    def cap_info(self, team_id: str) -> TeamCapInfo:
        team = self._team(team_id)
        economy = self.state.economy
        if economy.cap_generation != self.state.generation or team.team_id not in economy.cap_table:
            self.recompute_payrolls()
        return economy.cap_table[team.team_id]
