# failing_up/state.py
from __future__ import annotations

from typing import Dict, Optional

from failing_up.config import (
    DEFAULT_WEEKLY_LIVING_COST,
    MAX_WEEKS,
    MUSIC_STYLES,
    STAT_MAX,
    START_WEEK,
    WEEKS_PER_YEAR,
)
from failing_up.band import create_starting_band
from failing_up.difficulty import DifficultySettings, get_difficulty_settings, weekly_living_cost
from failing_up.models import GameState, Player, PlayerFlags
from failing_up.rivals import generate_starting_rivals
from failing_up.rng import SeededRandom, generate_seed
from failing_up.stats import clamp_stat

TALENT_LEVELS: Dict[str, Dict[str, object]] = {
    "struggling": {"value": 25, "name": "Struggling",
                   "description": "Raw but unpolished. You'll need to work twice as hard."},
    "average": {"value": 40, "name": "Average",
                "description": "Solid foundation. Room to grow with practice."},
    "gifted": {"value": 60, "name": "Gifted",
               "description": "Natural ability. Songs come easier to you."},
    "prodigy": {"value": 80, "name": "Prodigy",
                "description": "Born for this. But talent alone won't save you."},
}

# (min, max) inclusive ranges for the rolled starting stats
STARTING_STATS = {
    "talent": (20, 60),
    "skill": (10, 30),
    "image": (20, 50),
    "core_fans": (0, 100),
    "hype": (5, 20),
    "cred": (5, 15),
    "addiction": (0, 5),
    "industry_goodwill": (0, 10),
    "burnout": (0, 10),
}

BAND_PREFIXES = [
    "The", "Black", "Red", "Dead", "Electric", "Burning", "Screaming", "Midnight",
    "Savage", "Neon", "Dark", "Violent", "Iron", "Steel", "Atomic", "Sonic",
]
BAND_NOUNS = [
    "Roses", "Skulls", "Wolves", "Snakes", "Razors", "Bullets", "Flames", "Shadows",
    "Daggers", "Vipers", "Ravens", "Thunder", "Lightning", "Storm", "Riot", "Chaos",
    "Velvet", "Ashes", "Chains", "Blades", "Hearts", "Demons", "Angels", "Rebels",
]
BAND_SUFFIXES = ["Underground", "Society", "Collective", "Machine", "Army", "Syndicate"]


def week_to_year(week: int) -> int:
    return (week - 1) // WEEKS_PER_YEAR + 1


def week_in_year(week: int) -> int:
    return (week - 1) % WEEKS_PER_YEAR + 1


def generate_band_name(rng: SeededRandom) -> str:
    use_prefix = rng.next() < 0.7
    use_suffix = rng.next() < 0.2
    parts = []
    if use_prefix:
        parts.append(rng.choice(BAND_PREFIXES))
    parts.append(rng.choice(BAND_NOUNS))
    if use_suffix:
        parts.append(rng.choice(BAND_SUFFIXES))
    return " ".join(parts)


def create_player(
    name: str,
    rng: SeededRandom,
    settings: DifficultySettings,
    talent: Optional[int] = None,
) -> Player:
    money = settings.starting_money + rng.next_int(-50, 50)
    health = min(STAT_MAX, settings.starting_health + rng.next_int(-5, 10))
    stability = min(STAT_MAX, settings.starting_stability + rng.next_int(-5, 10))

    rolled = {k: rng.next_int(lo, hi) for k, (lo, hi) in STARTING_STATS.items()}
    if talent is not None:
        rolled["talent"] = clamp_stat(talent)

    return Player(
        name=name,
        money=money,
        health=health,
        stability=stability,
        flags=PlayerFlags(),
        **rolled,
    )


def create_game_state(
    player_name: str,
    *,
    band_name: Optional[str] = None,
    player_talent: Optional[int] = None,
    talent_level: Optional[str] = None,
    preferred_style: str = "punk",
    seed: Optional[int] = None,
    difficulty: str = "normal",
) -> GameState:
    """
    New career at week 1. Without a seed one is drawn from the clock; this is
    the only place the engine reads ambient randomness.
    """
    if preferred_style not in MUSIC_STYLES:
        raise ValueError(f"Unknown music style: {preferred_style}")
    if talent_level is not None and talent_level not in TALENT_LEVELS:
        raise ValueError(f"Unknown talent level: {talent_level}")

    seed = generate_seed() if seed is None else seed
    rng = SeededRandom(seed)
    settings = get_difficulty_settings(difficulty)

    talent = player_talent
    if talent is None and talent_level is not None:
        talent = int(TALENT_LEVELS[talent_level]["value"])

    player = create_player(player_name, rng, settings, talent=talent)
    name = band_name or generate_band_name(rng)

    return GameState(
        seed=seed,
        player=player,
        band_name=name,
        difficulty=difficulty,
        preferred_style=preferred_style,
        week=START_WEEK,
        year=week_to_year(START_WEEK),
        max_weeks=MAX_WEEKS,
        weekly_living_cost=weekly_living_cost(DEFAULT_WEEKLY_LIVING_COST, settings),
        bandmates=create_starting_band(rng, player.fans),
        rival_bands=generate_starting_rivals(rng, START_WEEK),
    )

