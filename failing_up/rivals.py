# failing_up/rivals.py
"""
The other bands on the circuit. They rise, stall, split and reform whether or
not you are watching; the active ones at your fame tier are your rivals.

The weekly update draws from its own stream (rng.stream_rng), so the scene
moving on never changes what happens to the player.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from failing_up.config import (
    FAME_TIER_MIN_FANS,
    FAME_TIER_MULTIPLIER,
    FAME_TIERS,
    MUSIC_STYLES,
    RIVAL_BEEF_COOLING_CHANCE,
    RIVAL_BEEF_RELATIONSHIP_HIT,
    RIVAL_BREAKUP_CHANCE,
    RIVAL_COMEBACK_CHANCE,
    RIVAL_TIER_MOVE_CHANCE,
    RIVALS_PER_TIER,
)
from failing_up.models import GameState, Player, RivalBand
from failing_up.rng import SeededRandom
from failing_up.stats import clamp_stat

PREFIXES = [
    "Black", "Red", "Dead", "White", "Silver", "Dark", "Wild", "Lost",
    "Last", "Young", "Cosmic", "Electric", "Neon", "Velvet", "Burning", "Crimson",
]
NOUNS = [
    "Roses", "Wolves", "Ravens", "Skulls", "Hearts", "Stars", "Dreams", "Angels",
    "Saints", "Sinners", "Thieves", "Kings", "Queens", "Shadows", "Flames", "Riot",
    "Vipers", "Ghosts", "Rebels", "Outlaws", "Strangers", "Drifters",
]
SUFFIXES = ["Underground", "Society", "Collective", "Machine", "Syndicate", "Revival"]
SINGLE_WORDS = ["Venom", "Abyss", "Eclipse", "Havoc", "Mayhem", "Oblivion", "Paradox", "Revolver"]
FRONT_NAMES = ["Johnny", "Eddie", "Tommy", "Billy", "Frankie", "Stevie", "Richie"]


# =============================================================================
# Fame tiers
# =============================================================================

def fame_tier(fans: int) -> str:
    tier = FAME_TIERS[0]
    for name in FAME_TIERS:
        if fans >= FAME_TIER_MIN_FANS[name]:
            tier = name
    return tier


def player_fame_tier(player: Player) -> str:
    return fame_tier(player.fans)


def shift_tier(tier: str, step: int) -> str:
    i = FAME_TIERS.index(tier) + step
    return FAME_TIERS[max(0, min(len(FAME_TIERS) - 1, i))]


# =============================================================================
# Generation
# =============================================================================

def generate_rival_name(rng: SeededRandom, used_names: Sequence[str] = ()) -> str:
    name = ""
    for _ in range(50):
        pattern = rng.next_int(0, 4)
        if pattern == 0:
            name = f"The {rng.choice(NOUNS)}"
        elif pattern == 1:
            name = f"{rng.choice(PREFIXES)} {rng.choice(NOUNS)}"
        elif pattern == 2:
            name = f"{rng.choice(NOUNS)} {rng.choice(SUFFIXES)}"
        elif pattern == 3:
            name = rng.choice(SINGLE_WORDS)
        else:
            name = f"{rng.choice(FRONT_NAMES)} and the {rng.choice(NOUNS)}"
        if name not in used_names:
            break
    return name


def generate_rival_band(
    tier: str, week: int, rng: SeededRandom, used_names: Sequence[str] = ()
) -> RivalBand:
    """Bigger tiers come with more reputation, more buzz and more hits behind them."""
    mult = FAME_TIER_MULTIPLIER[tier]
    return RivalBand(
        id=f"rival_{len(used_names) + 1}_{tier}",
        name=generate_rival_name(rng, used_names),
        style=rng.choice(MUSIC_STYLES),
        fame_tier=tier,
        reputation=clamp_stat(30 + 50 * mult + rng.next_int(-10, 10)),
        hype=clamp_stat(20 + 60 * mult + rng.next_int(-15, 15)),
        week_formed=week - rng.next_int(10, 200),
        hits=int(mult * rng.next_int(1, 10)),
        scandals=rng.next_int(0, int(3 * mult)),
        relationship=rng.next_int(-20, 20),
    )


def generate_starting_rivals(rng: SeededRandom, week: int = 1) -> List[RivalBand]:
    rivals: List[RivalBand] = []
    for tier in FAME_TIERS:
        for _ in range(RIVALS_PER_TIER):
            rivals.append(generate_rival_band(tier, week, rng, [r.name for r in rivals]))
    return rivals


# =============================================================================
# Queries
# =============================================================================

def active_rivals(state: GameState) -> List[RivalBand]:
    tier = player_fame_tier(state.player)
    return [r for r in state.rival_bands if r.status == "active" and r.fame_tier == tier]


def rivals_with_beef(state: GameState) -> List[RivalBand]:
    return [r for r in state.rival_bands if r.has_beef and r.status == "active"]


def get_rival(state: GameState, rival_id: str) -> Optional[RivalBand]:
    for rival in state.rival_bands:
        if rival.id == rival_id:
            return rival
    return None


# =============================================================================
# Weekly churn and feuds (in place on the working copy)
# =============================================================================

def update_rival_bands(state: GameState, rng: SeededRandom) -> List[str]:
    """Hype drifts, bands split or come back, a few climb or slide a tier."""
    news: List[str] = []
    tier = player_fame_tier(state.player)
    for rival in state.rival_bands:
        if rival.status != "active":
            if rng.chance(RIVAL_COMEBACK_CHANCE):
                rival.status = "active"
                rival.hype = 30 + rng.next_int(0, 20)
                if rival.fame_tier == tier:
                    news.append(f"{rival.name} are back together.")
            rival.is_rival = rival.status == "active" and rival.fame_tier == tier
            continue

        rival.hype = clamp_stat(rival.hype + rng.next_int(-5, 8))
        if rng.chance(0.1):
            rival.reputation = clamp_stat(rival.reputation + rng.next_int(-3, 5))

        if rng.chance(RIVAL_BREAKUP_CHANCE):
            roll = rng.next()
            rival.status = "hiatus" if roll < 0.5 else "broken_up" if roll < 0.8 else "retired"
            if rival.fame_tier == tier or rival.has_beef:
                what = "went on hiatus" if rival.status == "hiatus" else "called it a day"
                news.append(f"{rival.name} {what}.")

        if rival.status == "active" and rng.chance(RIVAL_TIER_MOVE_CHANCE):
            if rival.hype > 70 and rng.chance(0.3):
                rival.fame_tier = shift_tier(rival.fame_tier, 1)
                rival.hits += 1
            elif rival.hype < 30 and rng.chance(0.3):
                rival.fame_tier = shift_tier(rival.fame_tier, -1)

        rival.is_rival = rival.status == "active" and rival.fame_tier == tier

        if rival.has_beef and rng.chance(RIVAL_BEEF_COOLING_CHANCE):
            rival.has_beef = False
            rival.relationship = min(rival.relationship + 20, 50)
    return news


def start_rival_beef(state: GameState, rival_id: Optional[str] = None) -> Optional[RivalBand]:
    """
    Pick a fight. Without an id the loudest active rival at your tier takes
    it; nobody at your level means nobody to fight.
    """
    if rival_id is not None:
        target = get_rival(state, rival_id)
        if target is None or target.status != "active":
            return None
    else:
        candidates = active_rivals(state)
        if not candidates:
            return None
        target = max(candidates, key=lambda r: r.hype)
    target.has_beef = True
    target.relationship = max(-100, target.relationship - RIVAL_BEEF_RELATIONSHIP_HIT)
    return target


def end_rival_beefs(state: GameState) -> List[RivalBand]:
    settled = rivals_with_beef(state)
    for rival in settled:
        rival.has_beef = False
        rival.relationship = min(rival.relationship + 20, 50)
    return settled
