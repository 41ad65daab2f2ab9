from __future__ import annotations

import random
from typing import Iterable, Mapping, Sequence, TypeVar

from .config import (
    ARCHETYPE_BONUSES,
    ATTRIBUTE_MAX,
    ATTRIBUTE_NAMES,
    ATTRIBUTE_WEIGHTS,
    HOME_COURT_MULTIPLIER,
    NEUTRAL_POWER,
    ROTATION_SIZE,
    TEAM_POWER_FLOOR,
)
from .models import Player, Team, clamp

T = TypeVar("T")

_WEIGHT_SUM = sum(ATTRIBUTE_WEIGHTS[name] for name in ATTRIBUTE_NAMES)


def player_power(
    player: Player,
    *,
    include_condition: bool = True,
    archetype_bonuses: Mapping[str, Mapping[str, float]] | None = None,
) -> float:
    bonuses = archetype_bonuses if archetype_bonuses is not None else ARCHETYPE_BONUSES
    boost = bonuses.get(player.archetype or "", {})
    total = 0.0
    for name in ATTRIBUTE_NAMES:
        value = clamp(player.attributes.get(name) + boost.get(name, 0.0), 0.0, ATTRIBUTE_MAX)
        total += value * ATTRIBUTE_WEIGHTS[name]
    power = total / _WEIGHT_SUM
    if include_condition:
        if player.is_injured:
            return 0.0
        power *= clamp(player.energy, 0.0, 100.0) / 100.0
    return power


def rotation_for(team: Team, size: int = ROTATION_SIZE) -> list[Player]:
    return team.rotation(size)


def team_power(
    team: Team,
    *,
    home: bool = False,
    rotation_size: int = ROTATION_SIZE,
    archetype_bonuses: Mapping[str, Mapping[str, float]] | None = None,
) -> float:
    rotation = rotation_for(team, rotation_size)
    if not rotation:
        return NEUTRAL_POWER
    mean = sum(player_power(p, archetype_bonuses=archetype_bonuses) for p in rotation) / len(rotation)
    if home:
        mean *= HOME_COURT_MULTIPLIER
    return max(TEAM_POWER_FLOOR, mean)


def weighted_choice(pairs: Iterable[tuple[T, float]], rng: random.Random) -> T | None:
    """Pick one entity with probability proportional to its weight (floored at 1)."""
    entities: list[T] = []
    weights: list[float] = []
    for entity, weight in pairs:
        entities.append(entity)
        weights.append(max(1.0, float(weight)))
    if not entities:
        return None
    return rng.choices(entities, weights=weights, k=1)[0]


def power_pairs(
    players: Sequence[Player],
    exclude: Player | None = None,
    archetype_bonuses: Mapping[str, Mapping[str, float]] | None = None,
) -> list[tuple[Player, float]]:
    return [
        (p, player_power(p, archetype_bonuses=archetype_bonuses))
        for p in players
        if exclude is None or p.player_id != exclude.player_id
    ]
