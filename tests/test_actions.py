from __future__ import annotations

import pytest

from failing_up.actions import (
    ACTIONS,
    apply_naming,
    execute_action,
    generate_song,
    get_action,
    get_available_actions,
    is_action_available,
    write_chance,
)
from failing_up.difficulty import get_difficulty_settings
from failing_up.errors import ActionUnavailableError, UnknownActionError
from failing_up.models import Album, AlbumNaming, SongNaming
from failing_up.rng import SeededRandom
from failing_up.sessions import start_recording_session, start_tour_session

from conftest import make_player, make_song, make_state

NORMAL = get_difficulty_settings("normal")


class TestAvailability:

    def test_basics_always_there(self, state):
        available = get_available_actions(state)
        for aid in ("REST", "WRITE", "REHEARSE", "PLAY_LOCAL_GIG", "PROMOTE", "NETWORK", "PARTY", "SIDE_JOB"):
            assert aid in available
        assert "RELEASE_SINGLE" not in available
        assert "RECORD_WEEK" not in available

    def test_release_needs_material(self):
        s = make_state(songs=[make_song()])
        assert is_action_available("RELEASE_SINGLE", s)
        assert not is_action_available("RELEASE_ALBUM", s)

    def test_gig_needs_health(self):
        s = make_state(player=make_player(health=10))
        assert not is_action_available("PLAY_LOCAL_GIG", s)

    def test_session_locks_the_week(self):
        s = make_state(songs=[make_song(f"s{i}") for i in range(3)])
        s = start_recording_session(s, song_ids=["s0", "s1", "s2"])
        assert get_available_actions(s) == ["RECORD_WEEK"]

        t = start_tour_session(make_state(player=make_player(core_fans=600, money=2000)), "diy")
        assert get_available_actions(t) == ["TOUR_WEEK"]

    def test_nothing_after_game_over(self):
        s = make_state(is_game_over=True, game_over_reason="death")
        assert get_available_actions(s) == []

    def test_unknown_action(self, state):
        assert not is_action_available("TEACH_GUITAR", state)
        with pytest.raises(UnknownActionError):
            get_action("TEACH_GUITAR")

    def test_every_action_has_text(self):
        for action in ACTIONS.values():
            assert action.label and action.description


class TestWrite:

    def test_chance_grows_with_skill(self):
        assert write_chance(100) > write_chance(0)
        assert write_chance(100) == pytest.approx(0.9)

    def test_generated_song_in_bounds(self, state):
        rng = SeededRandom(6)
        for _ in range(100):
            song = generate_song(state, rng)
            assert 0 <= song.quality <= 100
            assert 0 <= song.hit_potential <= 100
            assert song.style in ("glam", "punk", "grunge", "alt", "metal", "indie")

    def test_write_success_adds_song_and_naming(self):
        hits = 0
        for seed in range(30):
            s = make_state(player=make_player(skill=100))
            result = execute_action("WRITE", s, SeededRandom(seed), NORMAL)
            if result.produced_song is not None:
                hits += 1
                assert s.songs == [result.produced_song]
                assert result.pending_naming.kind == "song"
                assert result.pending_naming.song_id == result.produced_song.id
            else:
                assert s.songs == []
        assert hits > 15


class TestExecution:

    def test_rest_effects(self, state):
        result = execute_action("REST", state, SeededRandom(1), NORMAL)
        assert result.success
        assert result.stat_changes["health"] > 0
        assert result.stat_changes["hype"] < 0

    def test_unavailable_raises(self, state):
        with pytest.raises(ActionUnavailableError):
            execute_action("RELEASE_SINGLE", state, SeededRandom(1), NORMAL)

    def test_release_single_picks_best(self):
        s = make_state(songs=[make_song("weak", quality=20), make_song("strong", quality=90)])
        result = execute_action("RELEASE_SINGLE", s, SeededRandom(1), NORMAL)
        assert result.released_song_id == "strong"
        assert s.get_song("strong").is_released
        assert not s.get_song("weak").is_released

    def test_release_single_target(self):
        s = make_state(songs=[make_song("weak", quality=20), make_song("strong", quality=90)])
        result = execute_action("RELEASE_SINGLE", s, SeededRandom(1), NORMAL, target="weak")
        assert result.released_song_id == "weak"

    def test_release_album(self):
        songs = [make_song(f"s{i}") for i in range(3)]
        album = Album(id="a1", title="Debut", song_ids=["s0", "s1", "s2"], production_value=45, week_recorded=1)
        s = make_state(songs=songs, albums=[album])
        result = execute_action("RELEASE_ALBUM", s, SeededRandom(1), NORMAL)
        released = s.get_album("a1")
        assert result.released_album_id == "a1"
        assert released.is_released
        assert released.sales_tier is not None
        assert all(song.is_released and not song.is_single for song in s.songs)

    def test_party_addiction_scales_with_difficulty(self, state):
        easy = execute_action("PARTY", state, SeededRandom(1), get_difficulty_settings("easy"))
        normal = execute_action("PARTY", state, SeededRandom(1), NORMAL)
        assert normal.stat_changes["addiction"] == 3
        assert easy.stat_changes["addiction"] == 2

    def test_promote_feeds_the_algorithm(self, state):
        result = execute_action("PROMOTE", state, SeededRandom(1), NORMAL)
        assert result.stat_changes["algo_boost"] >= 3
        assert result.stat_changes["followers"] > 0


class TestNaming:

    def test_rename_song(self):
        s = make_state(songs=[make_song("s1")])
        new = apply_naming(s, SongNaming(song_id="s1", generated_title="Title s1"), "  Basement Anthem ")
        assert new.get_song("s1").title == "Basement Anthem"
        assert s.get_song("s1").title == "Title s1"

    def test_blank_keeps_generated(self):
        s = make_state(songs=[make_song("s1")])
        assert apply_naming(s, SongNaming(song_id="s1", generated_title="Title s1"), "   ") is s

    def test_rename_album(self):
        album = Album(id="a1", title="Old", song_ids=[], production_value=45, week_recorded=1)
        s = make_state(albums=[album])
        new = apply_naming(s, AlbumNaming(album_id="a1", song_ids=[], generated_title="Old"), "New")
        assert new.get_album("a1").title == "New"

    def test_missing_target_is_noop(self, state):
        assert apply_naming(state, SongNaming(song_id="ghost", generated_title="x"), "y") is state
        assert apply_naming(state, None, "y") is state
