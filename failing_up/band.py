# failing_up/band.py
from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from failing_up.config import (
    AUDITION_COST,
    BAIL_COST,
    BAIL_HYPE,
    BANDMATE_DEATH_STABILITY_HIT,
    BANDMATE_ROLES,
    FIRING_LOYALTY_HIT,
    LOYALTY_QUIT_THRESHOLD,
    LOYALTY_ULTIMATUM_THRESHOLD,
    RELIABILITY_FLAKE_THRESHOLD,
    STARTING_ROLES,
    STAT_MAX,
    STAT_MIN,
    TERMINAL_BANDMATE_STATUSES,
    VICE_DISASTER_THRESHOLD,
    VICE_TROUBLE_THRESHOLD,
)
from failing_up.models import Bandmate, GameState, StatDeltas
from failing_up.rng import SeededRandom
from failing_up.stats import apply_stat_deltas

FIRST_NAMES = [
    "Johnny", "Vinnie", "Tommy", "Richie", "Eddie", "Bobby", "Danny", "Mickey",
    "Spike", "Nikki", "Vince", "Mick", "Joey", "Dee Dee", "Marky", "CJ",
    "Sid", "Steve", "Paul", "Gene", "Billy", "Ziggy", "Lou", "Iggy",
    "Kurt", "Dave", "Flea", "Chad", "Courtney", "Joan", "Kim", "Patti",
]
LAST_NAMES = [
    "Rotten", "Vicious", "Thunder", "Steel", "Blaze", "Stone", "Crash", "Wild",
    "Savage", "Mars", "Sixx", "Neil", "Lee", "Rose", "Ramone", "Strummer",
    "Jones", "Headon", "Idol", "Pop", "Reed", "Grohl", "Gordon", "Jett",
]

ROLE_DISPLAY_NAMES = {
    "guitar": "Guitarist",
    "bass": "Bassist",
    "drums": "Drummer",
    "keys": "Keyboardist",
    "vocals": "Vocalist",
}


def _clamp(x: int) -> int:
    return STAT_MIN if x < STAT_MIN else STAT_MAX if x > STAT_MAX else x


# =============================================================================
# Generation
# =============================================================================

def generate_bandmate_name(rng: SeededRandom, used_names: Sequence[str] = ()) -> str:
    name = ""
    for _ in range(20):
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        if name not in used_names:
            break
    return name


def generate_bandmate(
    role: str,
    player_fans: int,
    rng: SeededRandom,
    *,
    roster_size: int = 0,
    used_names: Sequence[str] = (),
) -> Bandmate:
    """Better candidates turn up once you're famous."""
    if role not in BANDMATE_ROLES:
        raise ValueError(f"Unknown bandmate role: {role}")

    fame_bonus = min(20, int(math.log10(max(100, player_fans)) * 5))
    return Bandmate(
        id=f"bandmate_{roster_size + 1}_{rng.next_int(0, 9999)}",
        name=generate_bandmate_name(rng, used_names),
        role=role,
        talent=rng.next_int(25 + fame_bonus // 2, 60 + fame_bonus),
        reliability=rng.next_int(30, 80),
        vice=rng.next_int(15, 70),
        loyalty=rng.next_int(40, 60),
    )


def generate_audition_candidates(
    state: GameState, role: str, count: int, rng: SeededRandom
) -> List[Bandmate]:
    used = [b.name for b in state.bandmates]
    out: List[Bandmate] = []
    for i in range(count):
        cand = generate_bandmate(
            role,
            state.player.fans,
            rng,
            roster_size=len(state.bandmates) + i,
            used_names=used + [c.name for c in out],
        )
        out.append(cand)
    return out


def create_starting_band(rng: SeededRandom, player_fans: int) -> List[Bandmate]:
    roster: List[Bandmate] = []
    for role in STARTING_ROLES:
        roster.append(
            generate_bandmate(
                role,
                player_fans,
                rng,
                roster_size=len(roster),
                used_names=[b.name for b in roster],
            )
        )
    return roster


# =============================================================================
# Roster transitions (public: copy in, copy out)
# =============================================================================

def _find_active(state: GameState, bandmate_id: str) -> Optional[Bandmate]:
    bm = state.get_bandmate(bandmate_id)
    if bm is None or bm.status in TERMINAL_BANDMATE_STATUSES:
        return None
    return bm


def fire_bandmate(state: GameState, bandmate_id: str) -> GameState:
    """Unknown or already-gone bandmate: returns the same state object."""
    bm = state.get_bandmate(bandmate_id)
    if bm is None or bm.status != "active":
        return state

    new = copy.deepcopy(state)
    for b in new.bandmates:
        if b.id == bandmate_id:
            b.status = "fired"
        elif b.status == "active":
            b.loyalty = _clamp(b.loyalty - FIRING_LOYALTY_HIT)
    return new


def hire_bandmate(state: GameState, candidate: Bandmate) -> GameState:
    """Replaces whoever currently holds the role and pays the audition fee."""
    if state.get_bandmate(candidate.id) is not None:
        return state

    new = copy.deepcopy(state)
    for b in new.bandmates:
        if b.role == candidate.role and b.status == "active":
            b.status = "fired"
    hired = copy.deepcopy(candidate)
    hired.status = "active"
    new.bandmates.append(hired)
    new.player = apply_stat_deltas(new.player, {"money": -AUDITION_COST})
    return new


def _set_status(state: GameState, bandmate_id: str, status: str) -> GameState:
    if _find_active(state, bandmate_id) is None:
        return state
    new = copy.deepcopy(state)
    new.get_bandmate(bandmate_id).status = status
    return new


def bandmate_to_rehab(state: GameState, bandmate_id: str) -> GameState:
    bm = state.get_bandmate(bandmate_id)
    if bm is None or bm.status != "active":
        return state
    return _set_status(state, bandmate_id, "rehab")


def bandmate_returns_from_rehab(state: GameState, bandmate_id: str) -> GameState:
    bm = state.get_bandmate(bandmate_id)
    if bm is None or bm.status != "rehab":
        return state
    new = _set_status(state, bandmate_id, "active")
    back = new.get_bandmate(bandmate_id)
    back.vice = _clamp(back.vice - 20)
    return new


def bandmate_dies(state: GameState, bandmate_id: str) -> GameState:
    if _find_active(state, bandmate_id) is None:
        return state
    new = _set_status(state, bandmate_id, "dead")
    new.player = apply_stat_deltas(new.player, {"stability": -BANDMATE_DEATH_STABILITY_HIT})
    return new


FATE_TRANSITIONS = {
    "dead": bandmate_dies,
    "rehab": bandmate_to_rehab,
    "fired": fire_bandmate,
}


def most_at_risk(state: GameState) -> Optional[Bandmate]:
    """Highest vice among the active members; the earlier hire wins a tie."""
    active = active_bandmates(state)
    if not active:
        return None
    return max(active, key=lambda b: b.vice)


def apply_bandmate_fate(state: GameState, fate: str) -> GameState:
    """Story-driven status change for whoever is most at risk. Empty band: same state back."""
    if fate not in FATE_TRANSITIONS:
        raise ValueError(f"Unknown bandmate fate: {fate}")
    target = most_at_risk(state)
    if target is None:
        return state
    return FATE_TRANSITIONS[fate](state, target.id)


# =============================================================================
# Aggregates
# =============================================================================

def active_bandmates(state: GameState) -> List[Bandmate]:
    return [b for b in state.bandmates if b.status == "active"]


def _average(state: GameState, attr: str, empty: int) -> int:
    active = active_bandmates(state)
    if not active:
        return empty
    return sum(getattr(b, attr) for b in active) // len(active)


def band_talent(state: GameState) -> int:
    return _average(state, "talent", 0)


def band_reliability(state: GameState) -> int:
    # solo acts never miss a rehearsal
    return _average(state, "reliability", 100)


def band_vice(state: GameState) -> int:
    return _average(state, "vice", 0)


def band_performance(state: GameState) -> int:
    band_score = band_talent(state) * 0.7 + band_reliability(state) * 0.3
    return int(band_score * 0.6 + state.player.skill * 0.4)


def missing_roles(state: GameState) -> List[str]:
    roles = {b.role for b in active_bandmates(state)}
    return [r for r in STARTING_ROLES if r not in roles]


def is_band_collapsed(state: GameState) -> bool:
    """Had a band once, nobody is left playing in it."""
    return bool(state.bandmates) and not active_bandmates(state)


# =============================================================================
# Weekly risk checks (roll order is part of the replay contract)
# =============================================================================

def check_for_quit(state: GameState, rng: SeededRandom) -> Optional[Bandmate]:
    for b in active_bandmates(state):
        if b.loyalty <= LOYALTY_QUIT_THRESHOLD:
            if rng.chance(0.3):
                return b
        elif b.loyalty <= LOYALTY_ULTIMATUM_THRESHOLD:
            if rng.chance(0.1):
                return b
    return None


def check_for_reliability_issue(state: GameState, rng: SeededRandom) -> Optional[Bandmate]:
    for b in active_bandmates(state):
        if b.reliability <= RELIABILITY_FLAKE_THRESHOLD and rng.chance(0.2):
            return b
    return None


def check_for_vice_trouble(state: GameState, rng: SeededRandom) -> Optional[Bandmate]:
    for b in active_bandmates(state):
        if b.vice >= VICE_DISASTER_THRESHOLD:
            if rng.chance(0.15):
                return b
        elif b.vice >= VICE_TROUBLE_THRESHOLD:
            if rng.chance(0.08):
                return b
    return None


def weekly_loyalty_delta(state: GameState) -> int:
    p = state.player
    delta = 0
    if p.hype >= 60:
        delta += 1
    if p.fans >= 10_000:
        delta += 1
    if p.money < 0:
        delta -= 2
    if p.stability < 30:
        delta -= 1
    if p.burnout >= 70:
        delta -= 1
    return delta


def adjust_loyalty(state: GameState, delta: int, bandmate_id: Optional[str] = None) -> None:
    """In place: turn.py and events.py call this on their working copy."""
    for b in state.bandmates:
        if b.status != "active":
            continue
        if bandmate_id is not None and b.id != bandmate_id:
            continue
        b.loyalty = _clamp(b.loyalty + delta)


def adjust_bandmates(state: GameState, changes: dict) -> None:
    """Apply a {attr: delta} mapping to every active bandmate, in place."""
    for b in active_bandmates(state):
        for attr, delta in changes.items():
            if attr not in ("talent", "reliability", "vice", "loyalty"):
                raise ValueError(f"Unknown bandmate attribute: {attr}")
            setattr(b, attr, _clamp(getattr(b, attr) + delta))


@dataclass
class BandWeek:
    news: List[str] = field(default_factory=list)
    stat_changes: StatDeltas = field(default_factory=dict)


def apply_weekly_band_dynamics(state: GameState, rng: SeededRandom) -> BandWeek:
    """
    Loyalty drift then the quit, flake and vice checks. Bandmates are changed
    on the working copy handed in by resolve_turn; what the band costs the
    player comes back as stat_changes for the caller to apply.
    """
    week = BandWeek()
    delta = weekly_loyalty_delta(state)
    if delta:
        adjust_loyalty(state, delta)

    quitter = check_for_quit(state, rng)
    if quitter is not None:
        quitter.status = "quit"
        week.news.append(f"{quitter.name} ({ROLE_DISPLAY_NAMES[quitter.role]}) quit the band.")

    flake = check_for_reliability_issue(state, rng)
    if flake is not None:
        flake.loyalty = _clamp(flake.loyalty - 2)
        week.stat_changes["stability"] = -2
        week.news.append(f"{flake.name} blew off rehearsal again.")

    trouble = check_for_vice_trouble(state, rng)
    if trouble is not None:
        if trouble.vice >= VICE_DISASTER_THRESHOLD:
            trouble.status = "rehab"
            week.news.append(f"{trouble.name} checked into rehab.")
        else:
            week.stat_changes["money"] = -BAIL_COST
            week.stat_changes["hype"] = BAIL_HYPE
            week.news.append(f"You paid {trouble.name}'s bail. The tabloids loved it.")
    return week
