from __future__ import annotations

from failing_up.config import DECLINED_OFFER_GOODWILL, MISSED_OFFER_GOODWILL
from failing_up.difficulty import get_difficulty_settings
from failing_up.gigs import (
    decline_support_offer,
    expire_support_offer,
    resolve_gig,
    settle_upcoming_gig,
    support_offer_chance,
)
from failing_up.models import Gig, SupportSlotOffer, Venue
from failing_up.rng import SeededRandom

from conftest import make_deal, make_managed_state, make_manager, make_player, make_state

NORMAL = get_difficulty_settings("normal")


def venue() -> Venue:
    return Venue(
        id="v1", name="The Crown", city="Leeds", kind="pub", capacity=120, base_pay=80, prestige=10
    )


def offer(expires_week: int = 1) -> SupportSlotOffer:
    return SupportSlotOffer(
        id="support_offer_1",
        headliner_name="Iron Storm",
        headliner_fans=40_000,
        venue=venue(),
        week=2,
        exposure=1.9,
        pay=250,
        prestige_bonus=10,
        expires_week=expires_week,
    )


def gig(week: int = 1) -> Gig:
    return Gig(id="gig_1", venue=venue(), week=week, guaranteed_pay=200, expected_turnout=100)


class TestSupportOffers:

    def test_connections_raise_the_odds(self):
        unmanaged = make_state()
        managed = make_managed_state(make_manager(connections=90))
        assert support_offer_chance(managed) > support_offer_chance(unmanaged)

    def test_decline_costs_goodwill(self):
        s = make_state(player=make_player(industry_goodwill=20), pending_support_offer=offer())
        new = decline_support_offer(s)
        assert new.pending_support_offer is None
        assert new.player.industry_goodwill == 20 - DECLINED_OFFER_GOODWILL
        assert s.pending_support_offer is not None

    def test_decline_with_nothing_offered(self, state):
        assert decline_support_offer(state) is state

    def test_expiry_reports_the_cost(self):
        s = make_state(player=make_player(industry_goodwill=20), pending_support_offer=offer(), week=2)
        assert expire_support_offer(s) == {"industry_goodwill": -MISSED_OFFER_GOODWILL}
        assert s.pending_support_offer is None
        # the caller applies it
        assert s.player.industry_goodwill == 20

    def test_open_offer_does_not_expire(self):
        s = make_state(pending_support_offer=offer(expires_week=1), week=1)
        assert expire_support_offer(s) is None
        assert s.pending_support_offer is not None


class TestResolveGig:

    def test_cuts_come_off_gross(self):
        plain, _ = resolve_gig(make_state(), gig(), SeededRandom(7), NORMAL)

        player = make_player()
        player.flags.has_label_deal = True
        s = make_managed_state(
            make_manager(cut=0.15),
            player=player,
            label_deals=[make_deal(includes_touring=True, touring_cut=0.2)],
        )
        result, deltas = resolve_gig(s, gig(), SeededRandom(7), NORMAL)

        gross = plain.pay
        assert result.label_cut == int(gross * 0.2)
        assert result.manager_cut == int(gross * 0.15)
        assert result.pay == gross - result.label_cut - result.manager_cut
        assert deltas["money"] == result.pay

    def test_no_manager_no_cut(self, state):
        result, _ = resolve_gig(state, gig(), SeededRandom(7), NORMAL)
        assert result.manager_cut == 0

    def test_future_gig_waits(self):
        s = make_state(upcoming_gig=gig(week=3))
        assert settle_upcoming_gig(s, SeededRandom(1), NORMAL) is None
        assert s.upcoming_gig is not None

    def test_gig_plays_when_its_week_comes(self):
        s = make_state(upcoming_gig=gig(week=1))
        result, deltas = settle_upcoming_gig(s, SeededRandom(1), NORMAL)
        assert s.upcoming_gig is None
        assert result.gig_id == "gig_1"
        assert deltas["money"] == result.pay
