from __future__ import annotations

import pytest

from failing_up.difficulty import get_difficulty_settings
from failing_up.errors import ActionUnavailableError, GameOverError, UnknownActionError
from failing_up.models import ArcStage
from failing_up.rng import SeededRandom
from failing_up.serialization import to_json
from failing_up.sessions import start_recording_session, start_tour_session
from failing_up.state import create_game_state
from failing_up.turn import check_game_over, living_cost, passive_drift, resolve_turn

from conftest import (
    make_arc,
    make_bandmate,
    make_event,
    make_player,
    make_song,
    make_state,
    make_temptation,
)

NORMAL = get_difficulty_settings("normal")

PLAYTHROUGH = ["REST", "WRITE", "PROMOTE", "REHEARSE", "PARTY", "SIDE_JOB", "NETWORK", "WRITE", "REST", "PROMOTE"]


def play(state, actions):
    texts = []
    for action in actions:
        if state.is_game_over:
            break
        result = resolve_turn(state, action)
        texts.append(result.result_text)
        state = result.new_state
    return state, texts


class TestDeterminism:

    def test_same_seed_same_career(self, fresh_game):
        a, texts_a = play(fresh_game, PLAYTHROUGH)
        b, texts_b = play(fresh_game, PLAYTHROUGH)
        assert to_json(a) == to_json(b)
        assert texts_a == texts_b

    def test_input_never_mutated(self, fresh_game):
        before = to_json(fresh_game)
        resolve_turn(fresh_game, "PARTY")
        assert to_json(fresh_game) == before

    def test_different_seed_different_career(self):
        a, _ = play(create_game_state("Joey", seed=1), PLAYTHROUGH)
        b, _ = play(create_game_state("Joey", seed=2), PLAYTHROUGH)
        assert to_json(a) != to_json(b)


class TestScenarios:

    def test_rest_on_fresh_state(self, fresh_game):
        result = resolve_turn(fresh_game, "REST")
        new = result.new_state
        assert result.action_success
        assert new.player.health > fresh_game.player.health
        assert new.player.stability > fresh_game.player.stability
        assert new.player.hype < fresh_game.player.hype
        assert new.week == 2
        assert new.week_logs[-1].week == 1
        assert new.week_logs[-1].action == "REST"

    def test_deep_debt_and_no_friends_is_broke(self, no_content):
        s = make_state(player=make_player(money=-2000, industry_goodwill=5))
        result = resolve_turn(s, "REST", **no_content)
        assert result.is_game_over
        assert result.game_over_reason == "broke"
        assert result.new_state.ending_id is not None

    def test_four_week_tour(self, no_content):
        s = make_state(player=make_player(core_fans=600, money=2000))
        s = start_tour_session(s, "diy", weeks=4)
        money_after_start = s.player.money
        spent_living = 0
        for _ in range(4):
            result = resolve_turn(s, "TOUR_WEEK", **no_content)
            spent_living += result.diagnostics["living_cost"]
            s = result.new_state
        assert s.tour_session is None
        assert not s.player.flags.on_tour
        assert s.week == 5
        net = result.diagnostics["tour_net"]
        assert net == result.diagnostics["tour_revenue"] - result.diagnostics["tour_costs"]
        assert s.player.money == money_after_start - spent_living + net

    def test_recording_through_turns_yields_album_naming(self, no_content):
        s = make_state(songs=[make_song(f"s{i}") for i in range(3)])
        s = start_recording_session(s, song_ids=["s0", "s1", "s2"], weeks=2)
        first = resolve_turn(s, "RECORD_WEEK", **no_content)
        assert first.pending_naming is None
        second = resolve_turn(first.new_state, "RECORD_WEEK", **no_content)
        assert second.pending_naming.kind == "album"
        assert second.new_state.recording_session is None
        assert second.new_state.week == 3

    def test_overdose_is_death_and_tragedy(self, no_content):
        s = make_state(player=make_player(health=2, addiction=95))
        result = resolve_turn(s, "PARTY", **no_content)
        assert result.game_over_reason == "death"
        assert result.new_state.ending_id == "TRAGEDY"

    def test_time_runs_out(self, no_content):
        s = make_state(week=519)
        result = resolve_turn(s, "REST", **no_content)
        assert result.game_over_reason == "time_limit"

    def test_band_collapse(self, no_content):
        gone = [make_bandmate("a", status="fired"), make_bandmate("b", role="bass", status="quit")]
        result = resolve_turn(make_state(bandmates=gone), "REST", **no_content)
        assert result.game_over_reason == "band_collapsed"

    def test_week_log_accounts_for_every_dollar(self, no_content):
        for seed in range(40):
            s = make_state(
                bandmates=[make_bandmate("a", reliability=20, vice=65)],
                songs=[make_song("hit", is_released=True, streams_tier="high")],
                seed=seed,
            )
            result = resolve_turn(s, "REST", **no_content)
            new = result.new_state
            logged = new.week_logs[-1].stat_changes
            assert logged.get("money", 0) == new.player.money - s.player.money
            assert logged["casual_listeners"] == new.player.casual_listeners - s.player.casual_listeners
            assert logged["casual_listeners"] > 0

    def test_no_turns_after_game_over(self, no_content):
        over = make_state(is_game_over=True, game_over_reason="broke")
        with pytest.raises(GameOverError):
            resolve_turn(over, "REST", **no_content)


class TestPreconditions:

    def test_unknown_action(self, state, no_content):
        with pytest.raises(UnknownActionError):
            resolve_turn(state, "MOONWALK", **no_content)

    def test_unavailable_action(self, state, no_content):
        with pytest.raises(ActionUnavailableError):
            resolve_turn(state, "RELEASE_ALBUM", **no_content)

    def test_session_action_without_session(self, state, no_content):
        with pytest.raises(ActionUnavailableError):
            resolve_turn(state, "TOUR_WEEK", **no_content)


class TestTriggers:

    def test_events_come_from_the_catalog(self):
        events = [make_event("EV_ONLY")]
        seen = set()
        for seed in range(40):
            result = resolve_turn(make_state(seed=seed), "REST", events=events, arcs=[], temptations=[])
            if result.triggered_event is not None:
                seen.add(result.triggered_event.id)
        assert seen == {"EV_ONLY"}

    def test_arc_owned_events_never_fire_standalone(self):
        locked = make_arc(entry_conditions={"min_fans": 10**9})
        events = [make_event("ARC_TEST_S0"), make_event("ARC_TEST_S1"), make_event("ARC_TEST_S2")]
        for seed in range(40):
            result = resolve_turn(make_state(seed=seed), "REST", events=events, arcs=[locked], temptations=[])
            assert result.triggered_event is None

    def test_arc_enters_and_surfaces_its_events(self):
        arc = make_arc(stages=1)
        arc.stages = [ArcStage(stage_id=0, event_ids=["ARC_TEST_S0"], advance_conditions=None)]
        events = [make_event("ARC_TEST_S0")]
        fired = 0
        for seed in range(40):
            result = resolve_turn(make_state(seed=seed), "REST", events=events, arcs=[arc], temptations=[])
            assert [a.id for a in result.new_state.active_arcs] == ["ARC_TEST"]
            fired += result.triggered_event is not None
        assert fired > 10

    def test_temptation_sets_cooldown(self):
        tempt = make_temptation(cooldown=3)
        hits = 0
        for seed in range(20):
            result = resolve_turn(make_state(seed=seed), "REST", events=[], arcs=[], temptations=[tempt])
            if result.triggered_temptation is not None:
                hits += 1
                assert result.new_state.temptation_cooldowns == {"tempt": 3}
        assert hits > 10

    def test_final_week_surfaces_nothing(self):
        tempt = make_temptation(cooldown=3)
        broke = make_player(money=-2000, industry_goodwill=5)
        for seed in range(20):
            s = make_state(player=broke, seed=seed)
            result = resolve_turn(s, "REST", events=[make_event("EV_ONLY")], arcs=[], temptations=[tempt])
            assert result.game_over_reason == "broke"
            assert result.triggered_event is None
            assert result.triggered_temptation is None
            assert result.new_state.temptation_cooldowns == {}

    def test_time_limit_week_surfaces_nothing(self):
        result = resolve_turn(
            make_state(week=519), "REST", events=[make_event("EV_ONLY")], arcs=[], temptations=[make_temptation()]
        )
        assert result.game_over_reason == "time_limit"
        assert result.triggered_temptation is None
        assert result.triggered_event is None


class TestWeeklyPieces:

    def test_living_cost_surcharge(self):
        assert living_cost(make_state(), NORMAL) == 100
        assert living_cost(make_state(player=make_player(burnout=85)), NORMAL) == 120

    def test_drift_quiet_player(self):
        assert passive_drift(make_player(), NORMAL) == {"hype": -3}

    def test_drift_addiction_and_burnout(self):
        deltas = passive_drift(make_player(addiction=92, burnout=85), NORMAL)
        assert deltas["health"] == -3
        assert deltas["stability"] == -5

    def test_drift_scales_with_difficulty(self):
        deltas = passive_drift(make_player(addiction=72), get_difficulty_settings("brutal"))
        assert deltas["hype"] == -5
        assert deltas["health"] == -3

    def test_first_terminal_rule_wins(self):
        s = make_state(player=make_player(health=0, money=-5000, industry_goodwill=0), week=600)
        assert check_game_over(s, SeededRandom(1)) == "death"

    def test_alive_and_well(self, state):
        assert check_game_over(state, SeededRandom(1)) is None
