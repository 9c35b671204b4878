from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

import pytest

from failing_up.difficulty import get_difficulty_settings
from failing_up.rng import SeededRandom
from failing_up.triggers import (
    check_conditions,
    is_eligible,
    trigger_chance,
    validate_conditions,
    weighted_select,
)

from conftest import make_bandmate, make_event, make_player, make_rival, make_song, make_state


@dataclass
class Weighted:
    name: str
    weight: float


class TestConditions:

    def test_empty_conditions_always_hold(self, state):
        assert check_conditions({}, state)
        assert check_conditions(None, state)

    def test_min_and_max(self):
        s = make_state(player=make_player(money=500, hype=40))
        assert check_conditions({"min_money": 500, "max_hype": 40}, s)
        assert not check_conditions({"min_money": 501}, s)
        assert not check_conditions({"max_hype": 39}, s)

    def test_fans_is_core_plus_casual(self):
        s = make_state(player=make_player(core_fans=300, casual_listeners=300))
        assert check_conditions({"min_fans": 600}, s)
        assert not check_conditions({"min_core_fans": 600}, s)

    def test_flags(self, state):
        assert check_conditions({"on_tour": False, "has_manager": False}, state)
        assert not check_conditions({"has_manager": True}, state)

    def test_band_predicates(self):
        band = [make_bandmate("a", vice=80), make_bandmate("b", role="bass", vice=40, status="quit")]
        s = make_state(bandmates=band)
        assert check_conditions({"min_band_size": 1, "max_band_size": 1}, s)
        assert check_conditions({"min_band_vice": 80}, s)

    def test_catalog_predicates(self):
        s = make_state(songs=[make_song("a"), make_song("b", is_released=True)])
        assert check_conditions({"min_songs": 2, "min_released_songs": 1, "has_unreleased_songs": True}, s)
        assert check_conditions({"has_unreleased_album": False}, s)

    def test_rival_predicates(self):
        rivals = [
            make_rival("near"),
            make_rival("far", fame_tier="star", has_beef=True),
            make_rival("gone", status="broken_up"),
        ]
        s = make_state(rival_bands=rivals)
        assert check_conditions({"min_active_rivals": 1, "has_rival_beef": True}, s)
        assert not check_conditions({"min_active_rivals": 2}, s)

        quiet = make_state(rival_bands=[make_rival("near")])
        assert check_conditions({"has_rival_beef": False}, quiet)

    def test_story_flags(self):
        s = make_state(story_flags=["sober"], triggered_event_ids=["EV_DONE"])
        assert check_conditions({"has_flag": "sober"}, s)
        assert check_conditions({"has_flag": "EV_DONE"}, s)
        assert check_conditions({"not_flag": "fired_manager"}, s)

    def test_unknown_condition_rejected(self, state):
        with pytest.raises(ValueError):
            check_conditions({"min_charisma": 3}, state)
        with pytest.raises(ValueError):
            validate_conditions({"min_charisma": 3})


class TestEligibility:

    def test_consumed_one_time_event_is_ineligible(self):
        event = make_event("EV_ONCE", one_time=True)
        s = make_state(triggered_event_ids=["EV_ONCE"])
        assert not is_eligible(event, s)

    def test_required_action_must_match(self, state):
        event = make_event(required_action="PARTY")
        assert not is_eligible(event, state, "REST")
        assert is_eligible(event, state, "PARTY")


class TestWeightedSelect:

    def test_heavy_candidate_dominates(self):
        """Weights 100 vs 1 over 1000 draws: the heavy one should win >10x as often."""
        rng = SeededRandom(2024)
        heavy, light = Weighted("heavy", 100), Weighted("light", 1)
        counts = Counter(weighted_select([heavy, light], rng).name for _ in range(1000))
        assert counts["heavy"] > 10 * max(1, counts["light"])

    def test_empty_pool(self):
        assert weighted_select([], SeededRandom(1)) is None

    def test_zero_weights(self):
        assert weighted_select([Weighted("a", 0)], SeededRandom(1)) is None

    def test_single_candidate(self):
        only = Weighted("only", 3)
        assert weighted_select([only], SeededRandom(1)) is only


class TestTriggerChance:

    def test_base_chance(self, state):
        assert trigger_chance(state, get_difficulty_settings("normal")) == pytest.approx(0.3)

    def test_addiction_raises_chance(self):
        s = make_state(player=make_player(addiction=75))
        assert trigger_chance(s, get_difficulty_settings("normal")) == pytest.approx(0.5)

    def test_capped(self):
        s = make_state(player=make_player(addiction=95, stability=10, burnout=90))
        assert trigger_chance(s, get_difficulty_settings("brutal")) == pytest.approx(0.9)
