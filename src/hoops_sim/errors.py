"""Error taxonomy for the season engine.

Rule and lookup failures are raised inside the roster layer and turned into
``{"success": False, ...}`` results by :class:`hoops_sim.season.Season`;
only :class:`ConfigError` and :class:`InvariantViolation` escape the public API.
"""

from __future__ import annotations


class LeagueError(Exception):
    reason = "league_error"

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason

    def as_result(self) -> dict[str, object]:
        return {"success": False, "reason": self.reason, "message": str(self)}


class ConfigError(LeagueError):
    reason = "config_error"


class NotFoundError(LeagueError):
    reason = "not_found"


class RuleViolation(LeagueError):
    reason = "rule_violation"


class InvariantViolation(LeagueError):
    reason = "invariant_violation"
