from __future__ import annotations

from collections import Counter

import pytest

from failing_up.config import FAME_TIERS, RIVAL_STATUSES, RIVALS_PER_TIER
from failing_up.endings import ending_callbacks
from failing_up.rivals import (
    active_rivals,
    end_rival_beefs,
    fame_tier,
    generate_starting_rivals,
    rivals_with_beef,
    shift_tier,
    start_rival_beef,
    update_rival_bands,
)
from failing_up.rng import SeededRandom
from failing_up.serialization import from_json, to_json
from failing_up.turn import resolve_turn

from conftest import make_bandmate, make_player, make_rival, make_state


class TestTiers:

    @pytest.mark.parametrize(
        "fans,tier",
        [(0, "local"), (499, "local"), (500, "regional"), (49_999, "national"), (50_000, "star"), (10**7, "legend")],
    )
    def test_fame_tier(self, fans, tier):
        assert fame_tier(fans) == tier

    def test_shift_clamps(self):
        assert shift_tier("local", -1) == "local"
        assert shift_tier("legend", 1) == "legend"
        assert shift_tier("regional", 1) == "national"


class TestScene:

    def test_starting_scene(self):
        rivals = generate_starting_rivals(SeededRandom(3))
        assert len(rivals) == len(FAME_TIERS) * RIVALS_PER_TIER
        assert Counter(r.fame_tier for r in rivals) == {t: RIVALS_PER_TIER for t in FAME_TIERS}
        assert len({r.id for r in rivals}) == len(rivals)
        assert all(r.status == "active" and not r.has_beef for r in rivals)

    def test_new_game_has_a_scene(self, fresh_game):
        assert len(fresh_game.rival_bands) == len(FAME_TIERS) * RIVALS_PER_TIER
        assert len(active_rivals(fresh_game)) == RIVALS_PER_TIER

    def test_active_rivals_share_your_tier(self):
        s = make_state(
            rival_bands=[make_rival("a"), make_rival("b", fame_tier="star"), make_rival("c", status="hiatus")]
        )
        assert [r.id for r in active_rivals(s)] == ["a"]

    def test_weekly_churn_in_place(self):
        s = make_state(rival_bands=generate_starting_rivals(SeededRandom(1)))
        for week in range(100):
            update_rival_bands(s, SeededRandom(week))
            for r in s.rival_bands:
                assert r.status in RIVAL_STATUSES
                assert 0 <= r.hype <= 100
                assert r.is_rival == (r.status == "active" and r.fame_tier == "local")
        s.validate()

    def test_save_keeps_the_scene(self):
        s = make_state(rival_bands=generate_starting_rivals(SeededRandom(1)))
        assert from_json(to_json(s)).rival_bands == s.rival_bands


class TestBeef:

    def test_named_target(self):
        s = make_state(rival_bands=[make_rival("a"), make_rival("b", status="broken_up")])
        assert start_rival_beef(s, "b") is None
        assert start_rival_beef(s, "nope") is None
        assert start_rival_beef(s, "a").has_beef
        assert [r.id for r in rivals_with_beef(s)] == ["a"]

    def test_end_all(self):
        s = make_state(rival_bands=[make_rival("a", has_beef=True), make_rival("b", has_beef=True)])
        settled = end_rival_beefs(s)
        assert len(settled) == 2
        assert rivals_with_beef(s) == []

    def test_beef_cools_off_eventually(self):
        s = make_state(rival_bands=[make_rival("a", has_beef=True)])
        for week in range(500):
            update_rival_bands(s, SeededRandom(week))
            if not rivals_with_beef(s):
                break
        assert rivals_with_beef(s) == []

    def test_unfinished_feud_at_the_end(self):
        s = make_state(rival_bands=[make_rival("a", name="The Vipers", has_beef=True)])
        texts = [c.text for c in ending_callbacks(s)]
        assert "Your feud with The Vipers never really ended." in texts

    def test_outlasting_the_scene(self):
        s = make_state(rival_bands=[make_rival("a", status="broken_up"), make_rival("b", status="retired")])
        texts = [c.text for c in ending_callbacks(s)]
        assert "You outlasted 2 bands who came up alongside you." in texts


class TestOwnStream:

    def test_scene_never_changes_the_career(self, no_content):
        def career(rivals):
            s = make_state(
                player=make_player(),
                bandmates=[make_bandmate("a", reliability=20, vice=65)],
                rival_bands=rivals,
                seed=77,
            )
            for action in ("REST", "WRITE", "PROMOTE", "REST"):
                s = resolve_turn(s, action, **no_content).new_state
            return s

        quiet = career([])
        busy = career(generate_starting_rivals(SeededRandom(5)))
        assert busy.player == quiet.player
        assert busy.bandmates == quiet.bandmates
        assert busy.songs == quiet.songs
