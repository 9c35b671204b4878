# failing_up/gigs.py
from __future__ import annotations

import copy
import math
from typing import Optional, Tuple

from failing_up.band import band_reliability, band_talent
from failing_up.config import (
    DECLINED_OFFER_GOODWILL,
    MISSED_GIG_GOODWILL,
    MISSED_OFFER_GOODWILL,
    SUPPORT_SLOT_BASE_CHANCE,
    SUPPORT_SLOT_MIN_FANS,
    SUPPORT_SLOT_MIN_HYPE,
    UNMANAGED_CONNECTIONS,
)
from failing_up.difficulty import DifficultySettings, fan_gain, gig_payout
from failing_up.errors import GameOverError
from failing_up.models import GameState, Gig, GigResult, StatDeltas, SupportSlotOffer, Venue
from failing_up.rng import SeededRandom
from failing_up.stats import apply_stat_deltas

HEADLINER_PREFIXES = [
    "The", "Black", "Electric", "Iron", "Steel", "Dead", "Royal", "King",
    "Atomic", "Velvet", "Silver", "Golden", "Crimson", "Stone",
]
HEADLINER_SUFFIXES = [
    "Wolves", "Serpents", "Thunder", "Void", "Machine", "Phoenix", "Horde",
    "Cult", "Empire", "Covenant", "Legion", "Fury", "Storm", "Revival",
]
BIG_VENUES = [
    "The Palladium", "Roundhouse", "The Academy", "Electric Ballroom",
    "The Forum", "Union Hall", "Rock City", "The Armory", "Metro",
]
CITIES = [
    "London", "Manchester", "Glasgow", "Chicago", "Seattle",
    "Detroit", "Austin", "Portland", "Melbourne", "Toronto",
]

# (min performance, label, fan multiplier, hype, cred)
GIG_OUTCOMES = [
    (90, "legendary", 2.0, 15, 10),
    (75, "great", 1.5, 8, 5),
    (60, "good", 1.0, 4, 2),
    (45, "decent", 0.6, 1, 0),
    (30, "poor", 0.2, -3, -2),
    (0, "disaster", 0.0, -8, -5),
]


def headliner_name(rng: SeededRandom) -> str:
    return f"{rng.choice(HEADLINER_PREFIXES)} {rng.choice(HEADLINER_SUFFIXES)}"


def support_offer_chance(state: GameState) -> float:
    p = state.player
    manager = state.active_manager()
    connections = (manager.connections if manager is not None else UNMANAGED_CONNECTIONS) / 100
    return SUPPORT_SLOT_BASE_CHANCE + connections * 0.08 + p.industry_goodwill / 200 + p.hype / 200


def try_support_offer(state: GameState, rng: SeededRandom) -> Optional[SupportSlotOffer]:
    """
    In place: maybe put a support-slot offer on the table. Needs a real fanbase,
    some buzz, and an empty calendar.
    """
    p = state.player
    if p.fans < SUPPORT_SLOT_MIN_FANS or p.hype < SUPPORT_SLOT_MIN_HYPE:
        return None
    if state.pending_support_offer is not None or state.upcoming_gig is not None:
        return None
    if rng.next() >= support_offer_chance(state):
        return None

    headliner_fans = p.fans * rng.next_int(5, 15)
    venue = Venue(
        id=f"venue_support_{state.week}",
        name=rng.choice(BIG_VENUES),
        city=rng.choice(CITIES),
        kind="support_slot",
        capacity=min(10_000, int(headliner_fans * 0.1) + rng.next_int(500, 2000)),
        base_pay=200 + rng.next_int(0, 300),
        prestige=70 + rng.next_int(0, 30),
    )
    offer = SupportSlotOffer(
        id=f"support_offer_{state.week}",
        headliner_name=headliner_name(rng),
        headliner_fans=headliner_fans,
        venue=venue,
        week=state.week + rng.next_int(1, 2),
        exposure=round(1.5 + math.log10(headliner_fans) / 10, 1),
        pay=venue.base_pay,
        prestige_bonus=rng.next_int(5, 15),
        expires_week=state.week + 1,
    )
    state.pending_support_offer = offer
    return offer


def accept_support_offer(state: GameState) -> GameState:
    offer = state.pending_support_offer
    if offer is None:
        return state
    if state.is_game_over:
        raise GameOverError("game is over")
    new = copy.deepcopy(state)
    new.upcoming_gig = Gig(
        id=f"gig_{offer.id}",
        venue=copy.deepcopy(offer.venue),
        week=offer.week,
        guaranteed_pay=offer.pay,
        expected_turnout=int(offer.venue.capacity * 0.7),
        is_support=True,
        headliner_name=offer.headliner_name,
        exposure=offer.exposure,
    )
    new.pending_support_offer = None
    return new


def decline_support_offer(state: GameState) -> GameState:
    if state.pending_support_offer is None:
        return state
    new = copy.deepcopy(state)
    new.pending_support_offer = None
    new.player = apply_stat_deltas(new.player, {"industry_goodwill": -DECLINED_OFFER_GOODWILL})
    return new


def expire_support_offer(state: GameState) -> Optional[StatDeltas]:
    """
    In place: drop an offer nobody answered. Returns the goodwill it costs for
    the caller to apply, or None when nothing lapsed.
    """
    offer = state.pending_support_offer
    if offer is None or state.week <= offer.expires_week:
        return None
    state.pending_support_offer = None
    return {"industry_goodwill": -MISSED_OFFER_GOODWILL}


def gig_performance(state: GameState, rng: SeededRandom) -> int:
    p = state.player
    base = p.skill * 0.5 + band_talent(state) * 0.3 + band_reliability(state) * 0.2
    health_penalty = (50 - p.health) / 5 if p.health < 50 else 0
    burnout_penalty = (p.burnout - 50) / 5 if p.burnout > 50 else 0
    perf = base - health_penalty - burnout_penalty + rng.next_int(-15, 15)
    return int(max(0, min(100, perf)))


def resolve_gig(
    state: GameState, gig: Gig, rng: SeededRandom, settings: DifficultySettings
) -> Tuple[GigResult, StatDeltas]:
    performance = gig_performance(state, rng)
    _, outcome, fan_mult, hype, cred = next(o for o in GIG_OUTCOMES if performance >= o[0])

    turnout = max(5, int(gig.expected_turnout * (performance / 100 + rng.next_float(-0.1, 0.1))))
    pay = gig.guaranteed_pay
    if turnout > gig.expected_turnout * 0.8:
        pay += turnout * 2
    gross = gig_payout(pay, settings)

    label_cut = 0
    deal = state.active_deal()
    if deal is not None and deal.includes_touring and deal.touring_cut > 0:
        label_cut = int(gross * deal.touring_cut)
    manager_cut = 0
    manager = state.active_manager()
    if manager is not None:
        manager_cut = int(gross * manager.cut)
    pay = gross - label_cut - manager_cut

    fans = int(turnout * 0.15 * fan_mult)
    if gig.is_support and fan_mult >= 0.6:
        fans = int(fans * gig.exposure)
    fans = fan_gain(fans, settings)

    where = f"{gig.venue.name}, {gig.venue.city}"
    if gig.is_support:
        where = f"opening for {gig.headliner_name} at {where}"
    text = f"A {outcome} night {where}: {turnout} people, ${pay} in your pocket."

    result = GigResult(
        gig_id=gig.id,
        venue_name=gig.venue.name,
        pay=pay,
        turnout=turnout,
        fans_gained=fans,
        hype_gain=hype,
        cred_gain=cred,
        label_cut=label_cut,
        text=text,
        manager_cut=manager_cut,
    )
    deltas = {
        "money": pay,
        "core_fans": fans,
        "hype": hype,
        "cred": cred,
        "skill": max(1, performance // 30),
    }
    return result, deltas


def settle_upcoming_gig(
    state: GameState, rng: SeededRandom, settings: DifficultySettings
) -> Optional[Tuple[GigResult, StatDeltas]]:
    """
    In place: when the booked week arrives the gig plays itself. Being stuck in
    the studio or on another tour that week means a no-show.
    """
    gig = state.upcoming_gig
    if gig is None or gig.week > state.week:
        return None
    state.upcoming_gig = None

    if state.recording_session is not None or state.tour_session is not None:
        result = GigResult(
            gig_id=gig.id,
            venue_name=gig.venue.name,
            pay=0,
            turnout=0,
            fans_gained=0,
            hype_gain=-5,
            cred_gain=-3,
            label_cut=0,
            text=f"You never showed up at {gig.venue.name}. Word gets around.",
        )
        return result, {"hype": -5, "cred": -3, "industry_goodwill": -MISSED_GIG_GOODWILL}
    return resolve_gig(state, gig, rng, settings)
