from __future__ import annotations

import json

import pytest

from failing_up import content
from failing_up.content import (
    check_arc_references,
    clear_cache,
    load_arcs,
    load_events,
    load_temptations,
    parse_arc,
    parse_event,
    parse_temptation,
)


def raw_event(**overrides):
    raw = {
        "id": "EV_RAW",
        "text_intro": "Something happens.",
        "choices": [{"id": "ok", "label": "Fine", "stat_changes": {"hype": 2}}],
    }
    raw.update(overrides)
    return raw


def raw_temptation(**overrides):
    raw = {
        "id": "T_RAW",
        "base_chance": 0.2,
        "accept": {"id": "accept", "label": "Sure", "effects": {"addiction": 3}},
        "decline": {"id": "decline", "label": "Nah", "effects": {}},
    }
    raw.update(overrides)
    return raw


class TestCatalogs:

    def test_defaults_load(self):
        events, arcs, temptations = load_events(), load_arcs(), load_temptations()
        assert events and arcs and temptations
        assert len({e.id for e in events}) == len(events)

    def test_overdose_takes_a_member(self):
        overdose = next(e for e in load_events() if e.id == "EV_MEMBER_OVERDOSE")
        assert {c.bandmate_fate for c in overdose.choices} == {"dead"}

    def test_manager_pitch_hires(self):
        pitch = next(e for e in load_events() if e.id == "EV_MANAGER_PITCH")
        sign = pitch.get_choice("SIGN_MANAGER")
        assert sign.hire_manager
        assert sign.flags_set == []

    def test_arcs_point_at_real_events(self):
        check_arc_references(load_arcs(), load_events())

    def test_cached(self):
        assert load_events() is load_events()
        first = load_events()
        clear_cache()
        assert load_events() is not first

    def test_duplicate_ids(self, tmp_path):
        path = tmp_path / "events.json"
        path.write_text(json.dumps([raw_event(), raw_event()]))
        with pytest.raises(ValueError, match="duplicate"):
            load_events(str(path))
        assert str(path) not in content._CACHE

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "arcs.json"
        path.write_text(json.dumps({"id": "ARC"}))
        with pytest.raises(ValueError):
            load_arcs(str(path))


class TestParsing:

    def test_event(self):
        event = parse_event(raw_event(conditions={"min_hype": 40}, weight=2, one_time=True))
        assert event.weight == 2.0
        assert event.one_time
        assert event.choices[0].stat_changes == {"hype": 2}

    def test_unknown_condition(self):
        with pytest.raises(ValueError, match="EV_RAW"):
            parse_event(raw_event(conditions={"min_vibes": 3}))

    def test_unknown_stat(self):
        bad = [{"id": "ok", "label": "Fine", "stat_changes": {"charisma": 5}}]
        with pytest.raises(ValueError, match="charisma"):
            parse_event(raw_event(choices=bad))

    def test_derived_flag(self):
        bad = [{"id": "ok", "label": "Fine", "flags_set": ["on_tour"]}]
        with pytest.raises(ValueError, match="derived"):
            parse_event(raw_event(choices=bad))

    def test_bad_bandmate_attr(self):
        bad = [{"id": "ok", "label": "Fine", "bandmate_changes": {"hair": 10}}]
        with pytest.raises(ValueError):
            parse_event(raw_event(choices=bad))

    def test_story_consequences(self):
        choices = [
            {"id": "a", "label": "A", "bandmate_fate": "rehab"},
            {"id": "b", "label": "B", "rival_beef": "end", "hire_manager": True},
        ]
        event = parse_event(raw_event(choices=choices))
        assert event.choices[0].bandmate_fate == "rehab"
        assert event.choices[0].rival_beef is None
        assert event.choices[1].rival_beef == "end"
        assert event.choices[1].hire_manager

    def test_bad_fate(self):
        bad = [{"id": "ok", "label": "Fine", "bandmate_fate": "abducted"}]
        with pytest.raises(ValueError, match="abducted"):
            parse_event(raw_event(choices=bad))

    def test_bad_beef_move(self):
        bad = [{"id": "ok", "label": "Fine", "rival_beef": "escalate"}]
        with pytest.raises(ValueError, match="rival_beef"):
            parse_event(raw_event(choices=bad))

    def test_no_choices(self):
        with pytest.raises(ValueError):
            parse_event(raw_event(choices=[]))

    def test_arc_needs_stages(self):
        with pytest.raises(ValueError):
            parse_arc({"id": "ARC_EMPTY", "stages": []})

    def test_arc_final_stage(self):
        arc = parse_arc({
            "id": "ARC_X",
            "stages": [
                {"stage_id": 0, "event_ids": ["A"], "advance_conditions": {"min_hype": 10}},
                {"stage_id": 1, "event_ids": ["B"]},
            ],
        })
        assert arc.name == "ARC_X"
        assert arc.stages[1].advance_conditions is None

    def test_dangling_arc_reference(self):
        arc = parse_arc({"id": "ARC_X", "stages": [{"stage_id": 0, "event_ids": ["GHOST"]}]})
        with pytest.raises(ValueError, match="GHOST"):
            check_arc_references([arc], [parse_event(raw_event())])

    def test_temptation(self):
        t = parse_temptation(raw_temptation())
        assert t.cooldown == 4
        assert t.accept.effects == {"addiction": 3}

    @pytest.mark.parametrize("chance", [-0.1, 1.5])
    def test_temptation_chance_range(self, chance):
        with pytest.raises(ValueError):
            parse_temptation(raw_temptation(base_chance=chance))
