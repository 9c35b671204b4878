# failing_up/manager.py
"""
Managers book gigs. A better one books more often, lands bigger rooms and
negotiates a better guarantee, and takes a bigger cut of every gig.

Hiring and firing are copy-in/copy-out. Booking runs inside resolve_turn on
the working copy: a booked gig lands in `upcoming_gig` for next week and is
settled by gigs.settle_upcoming_gig like any other.
"""
from __future__ import annotations

import copy
import logging
import math
from typing import List, Optional

from failing_up.config import (
    MANAGED_VENUE_TIERS,
    MANAGER_BASE_CUT,
    MANAGER_BOOKING_BASE,
    MANAGER_BOOKING_CAP,
    MANAGER_BOOKING_HYPE_WEIGHT,
    MANAGER_BOOKING_SKILL_WEIGHT,
    MANAGER_CUT_RANGE,
    MANAGER_HIRE_COST,
    MANAGER_UPGRADE_CHANCE,
    MANAGER_UPGRADE_CONNECTIONS,
)
from failing_up.errors import GameOverError
from failing_up.gigs import CITIES
from failing_up.models import GameState, Gig, Manager, Venue
from failing_up.rng import SeededRandom
from failing_up.stats import apply_stat_deltas

logger = logging.getLogger(__name__)

FIRST_NAMES = [
    "Tony", "Pete", "Dave", "Mick", "Steve", "Gary", "Paul", "Graham",
    "Keith", "Brian", "Terry", "Barry", "Colin", "Derek", "Malcolm", "Bernie",
    "Sharon", "Carol", "Linda", "Tina", "Dawn", "Jackie",
]
LAST_NAMES = [
    "Smith", "Jones", "Wilson", "Taylor", "Evans", "Walker", "Wright", "Hughes",
    "Green", "Clarke", "Mills", "King", "Price", "Stone", "Fox", "Sharp",
    "Gold", "Grant", "Collins", "Black",
]

VENUE_NAMES = {
    "pub": ["The Crown", "The Red Lion", "The Bell", "The Black Horse", "The Ship", "The Anchor"],
    "club": ["The Cavern", "Barfly", "The Windmill", "The Lexington", "Night & Day", "The Garage"],
    "small_venue": ["The Underworld", "Islington Assembly", "The Leadmill", "Rescue Rooms", "The Louisiana"],
    "headline": ["The Forum", "The Ritz", "O2 Academy", "Albert Hall", "Rock City"],
}


def generate_manager_name(rng: SeededRandom) -> str:
    return f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"


def generate_manager_candidate(state: GameState, rng: SeededRandom) -> Manager:
    """Better managers return your calls once you have fans and buzz."""
    p = state.player
    fame_bonus = min(30, int(math.log10(max(100, p.fans)) * 8))
    lo = 20 + fame_bonus
    hi = 50 + fame_bonus + p.hype // 10

    booking_skill = min(100, rng.next_int(lo, hi))
    connections = min(100, rng.next_int(lo - 5, hi - 5))
    reliability = rng.next_int(40, 85)
    reputation = min(100, rng.next_int(lo - 10, hi))
    cut = round(MANAGER_BASE_CUT + (booking_skill + connections) / 200 * MANAGER_CUT_RANGE, 2)

    return Manager(
        id=f"manager_{state.week}_{rng.next_int(0, 9999)}",
        name=generate_manager_name(rng),
        booking_skill=booking_skill,
        connections=connections,
        reliability=reliability,
        reputation=reputation,
        cut=cut,
    )


def generate_manager_candidates(state: GameState, count: int, rng: SeededRandom) -> List[Manager]:
    return [generate_manager_candidate(state, rng) for _ in range(count)]


# =============================================================================
# Hiring (public: copy in, copy out)
# =============================================================================

def hire_manager(state: GameState, candidate: Manager) -> GameState:
    """The current manager, if any, is let go. Interviews cost MANAGER_HIRE_COST."""
    if state.is_game_over:
        raise GameOverError("game is over")
    current = state.active_manager()
    if current is not None and current.id == candidate.id:
        return state

    new = copy.deepcopy(state)
    hired = copy.deepcopy(candidate)
    hired.status = "active"
    hired.week_hired = new.week
    new.manager = hired
    new.player = apply_stat_deltas(new.player, {"money": -MANAGER_HIRE_COST})
    new.player.flags.has_manager = True
    new.validate()
    logger.info("hired manager %s (cut %.0f%%) at week %d", hired.name, hired.cut * 100, new.week)
    return new


def fire_manager(state: GameState) -> GameState:
    """No active manager: same state back."""
    if state.active_manager() is None:
        return state
    new = copy.deepcopy(state)
    new.manager.status = "fired"
    new.player.flags.has_manager = False
    new.validate()
    return new


# =============================================================================
# Booking (in place, inside resolve_turn)
# =============================================================================

def booking_chance(state: GameState) -> float:
    manager = state.active_manager()
    if manager is None:
        return 0.0
    chance = (
        MANAGER_BOOKING_BASE
        + manager.booking_skill / 100 * MANAGER_BOOKING_SKILL_WEIGHT
        + state.player.hype / 100 * MANAGER_BOOKING_HYPE_WEIGHT
    )
    return min(MANAGER_BOOKING_CAP, chance)


def venue_tier(fans: int) -> int:
    """Index into MANAGED_VENUE_TIERS of the biggest room this fanbase fills."""
    tier = 0
    for i, (_, min_fans, _, _, _) in enumerate(MANAGED_VENUE_TIERS):
        if fans >= min_fans:
            tier = i
    return tier


def try_book_gig(state: GameState, rng: SeededRandom) -> Optional[Gig]:
    """
    Maybe book next week's gig. Draws nothing without an active manager or
    with a full calendar, so unmanaged careers replay exactly as before.
    """
    manager = state.active_manager()
    if manager is None:
        return None
    if state.upcoming_gig is not None or state.pending_support_offer is not None:
        return None
    if state.recording_session is not None or state.tour_session is not None:
        return None
    if rng.next() >= booking_chance(state):
        return None

    p = state.player
    tier = venue_tier(p.fans)
    if manager.connections > MANAGER_UPGRADE_CONNECTIONS and tier < len(MANAGED_VENUE_TIERS) - 1:
        if rng.chance(MANAGER_UPGRADE_CHANCE):
            tier += 1
    kind, _, capacity, base_pay, prestige = MANAGED_VENUE_TIERS[tier]

    venue = Venue(
        id=f"venue_{kind}_{state.week}",
        name=rng.choice(VENUE_NAMES[kind]),
        city=rng.choice(CITIES),
        kind=kind,
        capacity=rng.next_int(*capacity),
        base_pay=rng.next_int(*base_pay),
        prestige=rng.next_int(*prestige),
    )
    draw = min(venue.capacity, p.fans)
    turnout = int(draw * (0.3 + p.hype / 100 * 0.5 + rng.next_float(-0.1, 0.1))) + rng.next_int(10, 30)

    gig = Gig(
        id=f"gig_{state.week}_{kind}",
        venue=venue,
        week=state.week + 1,
        guaranteed_pay=int(venue.base_pay * (1 + manager.booking_skill / 200)),
        expected_turnout=min(turnout, venue.capacity),
        booked_by_manager=True,
    )
    state.upcoming_gig = gig
    logger.debug("%s booked %s for week %d", manager.name, venue.name, gig.week)
    return gig
