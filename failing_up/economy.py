# failing_up/economy.py
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from failing_up.config import (
    ALBUM_PRODUCTION_BONUS_MAX,
    ALBUM_WEEKLY_ROYALTY_BASE,
    GIG_BASE_DOOR,
    GIG_LOCAL_FAN_CAP,
    GIG_PER_HEAD,
    GIG_WALK_IN,
    LABEL_SALES_BOOST,
    MERCH_PROFIT_PER_FAN,
    SALES_TIER_FAN_MULTIPLIER,
    SALES_TIER_MIN_SALES,
    SALES_TIER_ROYALTY_MULTIPLIER,
    SALES_TIERS,
    SHOWS_PER_WEEK,
)
from failing_up.difficulty import DifficultySettings, fan_gain, gig_payout, scaled
from failing_up.errors import ActionUnavailableError, GameOverError
from failing_up.models import Album, GameState, LabelDeal, Song
from failing_up.rng import SeededRandom
from failing_up.stats import apply_stat_deltas

logger = logging.getLogger(__name__)


# =============================================================================
# Label deals
# =============================================================================

@dataclass(frozen=True)
class LabelTier:
    key: str
    name: str
    advance_range: Tuple[int, int]
    royalty_range: Tuple[float, float]
    streaming_royalty_range: Tuple[float, float]
    creative_control: str
    deal_type: str
    min_fans: int
    min_industry_goodwill: int
    min_followers: int = 0
    includes_masters: bool = True
    includes_merch: bool = False
    includes_touring: bool = False
    merch_cut_range: Tuple[float, float] = (0.0, 0.0)
    touring_cut_range: Tuple[float, float] = (0.0, 0.0)
    label_names: Tuple[str, ...] = ()


# Best tier first; an offer goes to the first tier the artist qualifies for.
LABEL_TIERS: Dict[str, LabelTier] = {
    "major360": LabelTier(
        key="major360",
        name="Major Label (360)",
        advance_range=(50_000, 200_000),
        royalty_range=(0.12, 0.18),
        streaming_royalty_range=(0.12, 0.20),
        creative_control="low",
        deal_type="360",
        min_fans=50_000,
        min_industry_goodwill=60,
        min_followers=50_000,
        includes_merch=True,
        includes_touring=True,
        merch_cut_range=(0.20, 0.30),
        touring_cut_range=(0.10, 0.20),
        label_names=("Titan 360", "Global Entertainment Group", "Megaphone Worldwide"),
    ),
    "major": LabelTier(
        key="major",
        name="Major Label",
        advance_range=(25_000, 100_000),
        royalty_range=(0.08, 0.15),
        streaming_royalty_range=(0.10, 0.18),
        creative_control="low",
        deal_type="traditional",
        min_fans=25_000,
        min_industry_goodwill=50,
        label_names=("Titan Records", "Global Sound", "Megaphone Entertainment"),
    ),
    "mid": LabelTier(
        key="mid",
        name="Mid-Size Label",
        advance_range=(5_000, 15_000),
        royalty_range=(0.10, 0.18),
        streaming_royalty_range=(0.15, 0.22),
        creative_control="medium",
        deal_type="traditional",
        min_fans=5_000,
        min_industry_goodwill=30,
        label_names=("Chrome Records", "Velocity Music", "Amplifier Records"),
    ),
    "indie": LabelTier(
        key="indie",
        name="Small Indie",
        advance_range=(500, 2_000),
        royalty_range=(0.15, 0.25),
        streaming_royalty_range=(0.20, 0.30),
        creative_control="high",
        deal_type="traditional",
        min_fans=500,
        min_industry_goodwill=10,
        label_names=("Rust Records", "Basement Tapes", "Dead Wax"),
    ),
    "distro": LabelTier(
        key="distro",
        name="Distribution Deal",
        advance_range=(0, 500),
        royalty_range=(0.70, 0.85),
        streaming_royalty_range=(0.70, 0.85),
        creative_control="high",
        deal_type="distro",
        min_fans=200,
        min_industry_goodwill=5,
        min_followers=1_000,
        includes_masters=False,
        label_names=("Tunnel Distro", "Open Road Digital", "Backroom Audio"),
    ),
}


def qualifies_for(tier: LabelTier, state: GameState) -> bool:
    p = state.player
    return (
        p.fans >= tier.min_fans
        and p.industry_goodwill >= tier.min_industry_goodwill
        and p.followers >= tier.min_followers
    )


def eligible_label_tiers(state: GameState) -> List[LabelTier]:
    return [t for t in LABEL_TIERS.values() if qualifies_for(t, state)]


def _rate(rng: SeededRandom, lo: float, hi: float) -> float:
    return round(rng.next_float(lo, hi), 2)


def generate_label_offer(
    state: GameState,
    rng: SeededRandom,
    settings: DifficultySettings,
    preferred_type: Optional[str] = None,
) -> Optional[LabelDeal]:
    tiers = eligible_label_tiers(state)
    if not tiers:
        return None

    tier = tiers[0]
    if preferred_type is not None:
        matching = [t for t in tiers if t.deal_type == preferred_type]
        if matching:
            tier = matching[0]

    advance = scaled(rng.next_int(*tier.advance_range), settings.advance_multiplier)
    royalty = _rate(rng, *tier.royalty_range)
    streaming = _rate(rng, *tier.streaming_royalty_range)
    merch_cut = _rate(rng, *tier.merch_cut_range) if tier.includes_merch else 0.0
    touring_cut = _rate(rng, *tier.touring_cut_range) if tier.includes_touring else 0.0

    return LabelDeal(
        id=f"deal_{state.week}_{len(state.label_deals) + 1}",
        name=rng.choice(tier.label_names),
        advance=advance,
        recoup_debt=advance,
        royalty_rate=royalty,
        streaming_royalty_rate=streaming,
        creative_control=tier.creative_control,
        week_signed=state.week,
        deal_type=tier.deal_type,
        includes_masters=tier.includes_masters,
        includes_merch=tier.includes_merch,
        includes_touring=tier.includes_touring,
        merch_cut=merch_cut,
        touring_cut=touring_cut,
    )


def sign_label_deal(state: GameState, deal: LabelDeal) -> GameState:
    """Advance lands in the bank; the same amount becomes recoup debt."""
    if state.is_game_over:
        raise GameOverError("game is over")
    if state.active_deal() is not None:
        raise ActionUnavailableError("already signed to a label")

    new = copy.deepcopy(state)
    signed = copy.deepcopy(deal)
    signed.status = "active"
    signed.recoup_debt = signed.advance
    signed.week_signed = new.week
    new.label_deals.append(signed)
    new.player = apply_stat_deltas(new.player, {"money": signed.advance})
    new.player.flags.has_label_deal = True
    logger.info("signed %s (%s) for %d at week %d", signed.name, signed.deal_type, signed.advance, new.week)
    return new


def drop_label_deal(state: GameState) -> GameState:
    """Walk away from (or get dropped by) the active label. Debt is forgiven, not repaid."""
    if state.active_deal() is None:
        return state
    new = copy.deepcopy(state)
    new.active_deal().status = "dropped"
    new.player.flags.has_label_deal = False
    return new


# =============================================================================
# Royalties and recoupment
# =============================================================================

@dataclass
class StreamingSplit:
    gross_income: int
    net_income: int
    recoup_paid: int
    label_cut: int


def streaming_royalty_rate(state: GameState) -> float:
    deal = state.active_deal()
    return 1.0 if deal is None else deal.streaming_royalty_rate


def split_streaming_income(gross: int, state: GameState) -> StreamingSplit:
    """
    Label cut first, then the artist share pays down recoup debt. recoup_paid
    is bounded by the artist share, so net income never goes negative.
    """
    deal = state.active_deal()
    if deal is None:
        return StreamingSplit(gross, gross, 0, 0)

    label_cut = int(math.floor(gross * (1 - deal.streaming_royalty_rate)))
    share = gross - label_cut
    recoup_paid = min(share, deal.recoup_debt) if deal.recoup_debt > 0 else 0
    return StreamingSplit(gross, share - recoup_paid, recoup_paid, label_cut)


def apply_recoupment(state: GameState, amount: int) -> int:
    """Pay down the active deal's debt in place; returns what was actually applied."""
    deal = state.active_deal()
    if deal is None or amount <= 0 or deal.recoup_debt <= 0:
        return 0
    paid = min(amount, deal.recoup_debt)
    deal.recoup_debt -= paid
    if deal.recoup_debt == 0:
        logger.info("%s advance recouped at week %d", deal.name, state.week)
    return paid


def weekly_album_royalties(state: GameState) -> int:
    """Album royalties only flow once the advance is recouped."""
    total = 0.0
    for deal in state.label_deals:
        if deal.status != "active" or deal.recoup_debt > 0:
            continue
        for album in state.albums:
            if album.label_id == deal.id and album.sales_tier:
                base = ALBUM_WEEKLY_ROYALTY_BASE * SALES_TIER_ROYALTY_MULTIPLIER[album.sales_tier]
                total += base * deal.royalty_rate
    return int(total)


def settle_album_revenue(state: GameState, album: Album, revenue: int) -> int:
    """
    Launch revenue of a label album goes to recoupment first; whatever is left
    (and all of it for a self-released album) is returned as artist income.
    """
    if album.label_id is None:
        return revenue
    deal = state.active_deal()
    if deal is None or deal.id != album.label_id:
        return revenue
    return revenue - apply_recoupment(state, revenue)


# =============================================================================
# Albums
# =============================================================================

ALBUM_ADJECTIVES = [
    "Electric", "Midnight", "Savage", "Wild", "Dark", "Burning", "Broken",
    "Neon", "Screaming", "Rising", "Lost", "Dirty", "Raw", "Wasted", "Hungry",
]
ALBUM_NOUNS = [
    "Dreams", "Thunder", "Fire", "Chaos", "Revolution", "Rebellion", "Nights",
    "Blood", "Glory", "Ruin", "Machine", "Highway", "Kingdom", "Asylum", "Fury",
]


def generate_album_title(rng: SeededRandom) -> str:
    return f"{rng.choice(ALBUM_ADJECTIVES)} {rng.choice(ALBUM_NOUNS)}"


def album_quality(songs: Sequence[Song], production_value: int) -> int:
    if not songs:
        return 0
    avg = sum(s.quality for s in songs) / len(songs)
    bonus = production_value / 100 * ALBUM_PRODUCTION_BONUS_MAX
    return min(100, int(avg + bonus))


def album_reception(quality: int, hype: int, cred: int, rng: SeededRandom) -> int:
    reception = quality * 0.6
    reception += hype / 100 * 20
    reception += cred / 100 * 15
    reception += rng.next_int(-10, 10)
    return max(0, min(100, int(math.floor(reception))))


def estimate_album_sales(
    reception: int,
    fans: int,
    promotion_spend: int,
    has_label: bool,
    rng: SeededRandom,
) -> int:
    mult = reception / 50
    mult *= 1 + promotion_spend / 10_000
    if has_label:
        mult *= LABEL_SALES_BOOST
    return int(fans * mult * rng.next_float(0.8, 1.2))


def sales_tier_for(sales: int) -> str:
    for tier in reversed(SALES_TIERS):
        if sales >= SALES_TIER_MIN_SALES[tier]:
            return tier
    return "flop"


def album_fan_gain(reception: int, sales_tier: str) -> int:
    return int(reception * 10 * SALES_TIER_FAN_MULTIPLIER[sales_tier])


def album_cred_change(reception: int) -> int:
    if reception >= 80:
        return 10
    if reception >= 60:
        return 5
    if reception >= 40:
        return 0
    if reception >= 20:
        return -5
    return -10


# =============================================================================
# Live
# =============================================================================

@dataclass(frozen=True)
class TourConfig:
    tour_type: str
    name: str
    description: str
    weeks_required: int
    weekly_cost: int
    upfront_cost: int
    min_fans: int
    min_money: int
    requires_label: bool
    fan_multiplier: float
    revenue_multiplier: float
    base_guarantee: int


TOUR_CONFIGS: Dict[str, TourConfig] = {
    "diy": TourConfig(
        tour_type="diy",
        name="DIY Van Tour",
        description="Rough it in a van, sleep on floors, live on gas station food.",
        weeks_required=2,
        weekly_cost=400,
        upfront_cost=500,
        min_fans=500,
        min_money=1500,
        requires_label=False,
        fan_multiplier=1.0,
        revenue_multiplier=0.8,
        base_guarantee=100,
    ),
    "small": TourConfig(
        tour_type="small",
        name="Small Venue Tour",
        description="A proper tour: decent van, cheap motels, an actual rider.",
        weeks_required=2,
        weekly_cost=800,
        upfront_cost=1500,
        min_fans=2000,
        min_money=4000,
        requires_label=False,
        fan_multiplier=1.3,
        revenue_multiplier=1.0,
        base_guarantee=250,
    ),
    "support": TourConfig(
        tour_type="support",
        name="Support Tour",
        description="Opening for a bigger band. Less control, massive exposure.",
        weeks_required=3,
        weekly_cost=300,
        upfront_cost=500,
        min_fans=3000,
        min_money=2000,
        requires_label=False,
        fan_multiplier=2.5,
        revenue_multiplier=0.5,
        base_guarantee=150,
    ),
    "headline": TourConfig(
        tour_type="headline",
        name="Headline Tour",
        description="Your name on the marquee. Tour bus, proper crew, the works.",
        weeks_required=4,
        weekly_cost=2000,
        upfront_cost=5000,
        min_fans=10_000,
        min_money=15_000,
        requires_label=True,
        fan_multiplier=1.5,
        revenue_multiplier=1.5,
        base_guarantee=800,
    ),
}


def get_tour_config(tour_type: str) -> TourConfig:
    try:
        return TOUR_CONFIGS[tour_type]
    except KeyError as e:
        raise ValueError(f"Unknown tour type: {tour_type}") from e


@dataclass
class TourWeek:
    revenue: int
    costs: int
    label_cut: int
    fans_gained: int
    hype_gain: int

    @property
    def net(self) -> int:
        return self.revenue - self.costs


def fan_multiplier(fans: int) -> float:
    """log-dampened so a huge fanbase doesn't scale guarantees linearly"""
    return math.log10(max(100, fans)) / 2


def show_guarantee(base_guarantee: int, fans: int, hype: int) -> int:
    return int(base_guarantee * fan_multiplier(fans) * (1 + hype / 100))


def tour_week(
    state: GameState,
    rng: SeededRandom,
    settings: DifficultySettings,
    *,
    base_guarantee: int,
    weekly_cost: int,
    fan_mult: float = 1.0,
    revenue_mult: float = 1.0,
) -> TourWeek:
    """One week on the road: four shows, merch, and a 360 label's cuts."""
    p = state.player
    guarantee = show_guarantee(base_guarantee, p.fans, p.hype) * SHOWS_PER_WEEK
    touring = gig_payout(int(guarantee * revenue_mult), settings)
    merch = int(p.core_fans * MERCH_PROFIT_PER_FAN)

    label_cut = 0
    deal = state.active_deal()
    if deal is not None and deal.deal_type == "360":
        if deal.includes_merch and deal.merch_cut > 0:
            cut = int(merch * deal.merch_cut)
            merch -= cut
            label_cut += cut
        if deal.includes_touring and deal.touring_cut > 0:
            cut = int(touring * deal.touring_cut)
            touring -= cut
            label_cut += cut

    base_fans = int(p.hype * 2 + rng.next_int(10, 50))
    fans = fan_gain(int(base_fans * (p.skill / 50) * fan_mult), settings)
    hype = rng.next_int(3, 8)

    return TourWeek(
        revenue=touring + merch,
        costs=weekly_cost,
        label_cut=label_cut,
        fans_gained=fans,
        hype_gain=hype,
    )


@dataclass
class GigPayout:
    payout: int
    turnout: int
    fans_gained: int


def local_gig_payout(state: GameState, rng: SeededRandom, settings: DifficultySettings) -> GigPayout:
    """Local fan pull is capped so a stadium act can't pack a bar."""
    p = state.player
    local_base = min(GIG_LOCAL_FAN_CAP, p.fans)
    turnout_pct = p.hype / 100 * rng.next_float(0.5, 1.0)
    turnout = int(local_base * turnout_pct) + rng.next_int(*GIG_WALK_IN)
    payout = gig_payout(GIG_BASE_DOOR + turnout * GIG_PER_HEAD, settings)
    fans = fan_gain(int(turnout * 0.1 * (p.skill / 50)), settings)
    return GigPayout(payout=payout, turnout=turnout, fans_gained=fans)
