from __future__ import annotations

from failing_up.arcs import (
    abort_arc,
    activate_arc,
    activate_new_arcs,
    advance_arc,
    advance_ready_arcs,
    arc_event_ids,
    eligible_arc_events,
    select_arc_event,
)
from failing_up.rng import SeededRandom

from conftest import make_arc, make_event, make_player, make_state


class TestLifecycle:

    def test_activate_resets_stage(self, state):
        template = make_arc(current_stage=2)
        new = activate_arc(state, template)
        assert [a.current_stage for a in new.active_arcs] == [0]
        assert template.current_stage == 2

    def test_activate_twice_is_noop(self, state):
        once = activate_arc(state, make_arc())
        assert activate_arc(once, make_arc()) is once

    def test_completed_arc_never_reenters(self):
        s = make_state(completed_arc_ids=["ARC_TEST"])
        assert activate_arc(s, make_arc()) is s
        assert activate_new_arcs(s, [make_arc()]) == []

    def test_entry_conditions(self):
        gated = make_arc(entry_conditions={"min_addiction": 50})
        s = make_state(player=make_player(addiction=10))
        assert activate_new_arcs(s, [gated]) == []
        s = make_state(player=make_player(addiction=60))
        assert activate_new_arcs(s, [gated]) == ["Arc_Test"]
        assert s.active_arcs[0].id == "ARC_TEST"

    def test_advance_unknown_arc_is_noop(self, state):
        assert advance_arc(state, "ARC_NOPE") is state

    def test_abort_drops_without_completing(self, state):
        running = activate_arc(state, make_arc())
        aborted = abort_arc(running, "ARC_TEST")
        assert aborted.active_arcs == []
        assert aborted.completed_arc_ids == []
        # and it can enter again later
        assert activate_arc(aborted, make_arc()).active_arcs

    def test_stages_never_regress(self, state):
        s = activate_arc(state, make_arc(stages=4))
        seen = []
        while s.active_arcs:
            seen.append(s.active_arcs[0].current_stage)
            s = advance_arc(s, "ARC_TEST")
            assert not (
                {a.id for a in s.active_arcs} & set(s.completed_arc_ids)
            )
        assert seen == [0, 1, 2, 3]
        assert s.completed_arc_ids == ["ARC_TEST"]


class TestAdvanceReady:

    def test_advances_when_conditions_hold(self):
        s = make_state(player=make_player(hype=60), active_arcs=[make_arc(stages=2)])
        assert advance_ready_arcs(s) == []
        assert s.active_arcs[0].current_stage == 1
        assert advance_ready_arcs(s) == ["Arc_Test"]
        assert s.completed_arc_ids == ["ARC_TEST"]

    def test_stays_put_otherwise(self):
        s = make_state(player=make_player(hype=10), active_arcs=[make_arc()])
        advance_ready_arcs(s)
        assert s.active_arcs[0].current_stage == 0


class TestArcEvents:

    def test_pool_is_current_stage_only(self):
        arc = make_arc(stages=2)
        arc.current_stage = 1
        s = make_state(active_arcs=[arc])
        by_id = {e.id: e for e in (make_event("ARC_TEST_S0"), make_event("ARC_TEST_S1"))}
        assert [e.id for e in eligible_arc_events(s, by_id)] == ["ARC_TEST_S1"]

    def test_consumed_arc_event_skipped(self):
        s = make_state(active_arcs=[make_arc()], triggered_event_ids=["ARC_TEST_S0"])
        by_id = {"ARC_TEST_S0": make_event("ARC_TEST_S0", one_time=True)}
        assert eligible_arc_events(s, by_id) == []

    def test_select_gate_is_about_half(self):
        s = make_state(active_arcs=[make_arc()])
        by_id = {"ARC_TEST_S0": make_event("ARC_TEST_S0")}
        hits = sum(select_arc_event(s, by_id, SeededRandom(seed)) is not None for seed in range(1000))
        assert 400 < hits < 600

    def test_arc_event_ids_cover_every_stage(self):
        assert arc_event_ids([make_arc(stages=3)]) == {"ARC_TEST_S0", "ARC_TEST_S1", "ARC_TEST_S2"}
