from __future__ import annotations

import random

from .config import ATTRIBUTE_NAMES, DEFAULT_CONTRACT_YEARS, POSITIONS
from .models import Attributes, Player, clamp

FIRST_NAMES: dict[str, list[str]] = {
    "greek": [
        "Achilles", "Ajax", "Atalanta", "Castor", "Hector", "Jason", "Leander", "Nestor", "Orion", "Perseus",
        "Polydeuces", "Theseus", "Andromache", "Icarus", "Daedalus", "Penelope", "Cassandra", "Philon", "Lysander", "Kleon",
    ],
    "norse": [
        "Bjorn", "Brynhild", "Eir", "Freydis", "Gunnar", "Halvard", "Ingrid", "Ivar", "Leif", "Ragnar",
        "Sigrun", "Sigurd", "Solveig", "Thorvald", "Ulf", "Vidar", "Yrsa", "Hakon", "Astrid", "Egil",
    ],
    "egyptian": [
        "Amenhotep", "Ahmose", "Djedi", "Hatshep", "Imhotep", "Kamose", "Khafre", "Meryre", "Nakht", "Neferu",
        "Paser", "Ramose", "Senebi", "Sneferu", "Tiye", "Userkaf", "Weni", "Khaemwaset", "Intef", "Merit",
    ],
    "celtic": [
        "Aengus", "Bran", "Brigid", "Cathal", "Conall", "Cormac", "Deirdre", "Emer", "Fergus", "Fionn",
        "Maeve", "Niamh", "Oisin", "Ronan", "Scathach", "Cuchulain", "Diarmuid", "Eithne", "Lugaid", "Naoise",
    ],
    "aztec": [
        "Acatl", "Citlali", "Cuauhtli", "Ehecatl", "Itzel", "Ixtli", "Metztli", "Mixtli", "Nochtli", "Ocelotl",
        "Tenoch", "Tlaloc", "Tonatiuh", "Xochitl", "Yaotl", "Coaxoch", "Chimalli", "Tecuani", "Huitzil", "Quetzal",
    ],
    "japanese": [
        "Akira", "Daichi", "Hana", "Haruto", "Hikaru", "Isamu", "Kaede", "Kenji", "Mamoru", "Raiden",
        "Ren", "Ryu", "Sora", "Takeru", "Tomoe", "Yamato", "Yoshitsune", "Benkei", "Kintaro", "Momotaro",
    ],
}

EPITHETS: dict[str, list[str]] = {
    "greek": [
        "Swiftfoot", "Bronzeshield", "of Ithaca", "of Sparta", "Stormcaller", "the Bold", "Laurelbrow", "Spearbright",
        "of Argos", "Wavebreaker", "the Wise", "Lionheart",
    ],
    "norse": [
        "Ironside", "Frostborn", "Ravenson", "Stormhammer", "the Tall", "Wolfsbane", "Longstride", "Bearclaw",
        "Runehand", "Skyfire", "the Red", "Oakheart",
    ],
    "egyptian": [
        "of Thebes", "of Memphis", "Sunbearer", "Reedwalker", "the Scribe", "Nilesong", "Goldmask", "Sandstrider",
        "of Abydos", "Starwatcher", "the Elder", "Falconeye",
    ],
    "celtic": [
        "of the Hill", "Mistwalker", "Oakenshield", "the Hound", "Silverhand", "Greenmantle", "Stonefist", "Seaborn",
        "the Bright", "of Ulster", "Hollowell", "Ravencrest",
    ],
    "aztec": [
        "Jaguarclaw", "Sunspear", "Obsidian", "Eaglewing", "Smokemirror", "Featherstorm", "the Brave", "Flintheart",
        "Rainbringer", "Serpentstep", "of the Lake", "Firecrown",
    ],
    "japanese": [
        "Thunderblade", "Moonriver", "the Swift", "Cloudpiercer", "Ironpine", "Windwalker", "Stormcrane", "Dragonscale",
        "Cherryblossom", "of the Mountain", "Silentstep", "Foxfire",
    ],
}

MYTHOLOGY_ARCHETYPES: dict[str, tuple[str, ...]] = {
    "greek": ("titan", "oracle", "warrior"),
    "norse": ("warrior", "titan", "sage"),
    "egyptian": ("sage", "oracle", "messenger"),
    "celtic": ("trickster", "warrior", "sage"),
    "aztec": ("warrior", "messenger", "titan"),
    "japanese": ("messenger", "trickster", "sage"),
}

# Weight, quality low, quality high: few stars, many rotation and depth players.
TALENT_TIERS: list[tuple[float, float, float]] = [
    (0.08, 0.90, 1.00),
    (0.22, 0.74, 0.89),
    (0.42, 0.56, 0.73),
    (0.28, 0.38, 0.55),
]
DEPTH_TIERS: list[tuple[float, float, float]] = [(0.25, 0.50, 0.62), (0.75, 0.36, 0.50)]

POSITION_FOCUS: dict[str, tuple[str, ...]] = {
    "PG": ("speed", "creativity"),
    "SG": ("technique", "speed"),
    "SF": ("technique", "creativity"),
    "PF": ("strength", "discipline"),
    "C": ("strength", "aura"),
}


class NameGenerator:
    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._used: set[str] = set()
        self._pools: dict[str, list[str]] = {}

    def _pool(self, mythology: str) -> list[str]:
        pool = self._pools.get(mythology)
        if pool is None:
            pool = [f"{first} {epithet}" for first in FIRST_NAMES[mythology] for epithet in EPITHETS[mythology]]
            self._rng.shuffle(pool)
            self._pools[mythology] = pool
        return pool

    def reserve(self, names: list[str]) -> None:
        self._used.update(names)

    def next_name(self, mythology: str | None = None) -> str:
        key = mythology if mythology in FIRST_NAMES else self._rng.choice(sorted(FIRST_NAMES))
        pool = self._pool(key)
        while pool:
            name = pool.pop()
            if name not in self._used:
                self._used.add(name)
                return name

        suffix = 2
        while True:
            base = f"{self._rng.choice(FIRST_NAMES[key])} {self._rng.choice(EPITHETS[key])}"
            candidate = f"{base} {suffix}"
            if candidate not in self._used:
                self._used.add(candidate)
                return candidate
            suffix += 1


def sample_quality(rng: random.Random, tier_plan: list[tuple[float, float, float]] = TALENT_TIERS) -> float:
    roll = rng.random()
    cumulative = 0.0
    for weight, low, high in tier_plan:
        cumulative += weight
        if roll <= cumulative:
            return rng.uniform(low, high)
    return rng.uniform(tier_plan[-1][1], tier_plan[-1][2])


def salary_for_quality(quality: float) -> float:
    """Asking salary in whole 50k steps; stars near 15M, depth near 2M."""
    raw = 1_500_000 + (quality ** 2) * 14_000_000
    return float(round(raw / 50_000) * 50_000)


def generate_player(
    rng: random.Random,
    name_gen: NameGenerator,
    player_id: str,
    *,
    mythology: str = "",
    position: str | None = None,
    quality: float | None = None,
    team_id: str | None = None,
) -> Player:
    position = position or rng.choice(POSITIONS)
    quality = sample_quality(rng) if quality is None else quality
    focus = POSITION_FOCUS.get(position, ())
    base = 28.0 + quality * 58.0
    values = {
        name: clamp(base + (7.0 if name in focus else 0.0) + rng.uniform(-8.0, 8.0), 1.0, 99.0)
        for name in ATTRIBUTE_NAMES
    }
    archetypes = MYTHOLOGY_ARCHETYPES.get(mythology)
    archetype = rng.choice(archetypes) if archetypes and rng.random() < 0.5 else None
    return Player(
        player_id=player_id,
        name=name_gen.next_name(mythology or None),
        position=position,
        attributes=Attributes(**{k: round(v, 1) for k, v in values.items()}),
        archetype=archetype,
        morale=float(70 + rng.randrange(20)),
        energy=100.0,
        salary=salary_for_quality(quality),
        contract_years=rng.randint(1, DEFAULT_CONTRACT_YEARS + 1),
        team_id=team_id,
    )
