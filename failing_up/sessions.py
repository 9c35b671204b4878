# failing_up/sessions.py
"""
Recording and touring run over several weeks.

    not started -> in progress (weeks_remaining counts down) -> complete

Starting one pays the upfront cost and takes no turn. While it runs, each
resolved week spends that week on RECORD_WEEK or TOUR_WEEK. On the last week a
recording becomes an unreleased Album and a tour's totals are paid out. Either
may be abandoned early: money already spent stays spent.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from failing_up.actions import generate_song
from failing_up.config import (
    MIN_ALBUM_SONGS,
    RECORDING_BURNOUT_PER_WEEK,
    SHOWS_PER_WEEK,
    TOUR_ABANDON_GOODWILL_HIT,
    TOUR_BURNOUT_COST,
    TOUR_HEALTH_COST,
    WRITE_AND_RECORD_SONGS_PER_WEEK,
)
from failing_up.difficulty import DifficultySettings, burnout_gain, health_loss
from failing_up.economy import album_quality, generate_album_title, get_tour_config, tour_week
from failing_up.errors import GameOverError, SessionError
from failing_up.models import (
    Album,
    AlbumNaming,
    GameState,
    RecordingSession,
    StatDeltas,
    TourSession,
)
from failing_up.rng import SeededRandom
from failing_up.stats import apply_stat_deltas

logger = logging.getLogger(__name__)

SESSION_KINDS = ("recording", "tour")


@dataclass(frozen=True)
class Studio:
    name: str
    weekly_cost: int
    production_value: int


STUDIOS: Dict[str, Studio] = {
    "basement": Studio(name="Basement Setup", weekly_cost=150, production_value=25),
    "budget": Studio(name="Budget Studio", weekly_cost=400, production_value=45),
    "pro": Studio(name="Pro Studio", weekly_cost=1200, production_value=70),
    "legendary": Studio(name="Legendary Room", weekly_cost=3000, production_value=90),
}


@dataclass
class SessionWeek:
    kind: str
    text: str
    completed: bool = False
    stat_changes: StatDeltas = field(default_factory=dict)
    pending_naming: Optional[AlbumNaming] = None
    album_id: Optional[str] = None
    songs_written: List[str] = field(default_factory=list)
    totals: Dict[str, int] = field(default_factory=dict)


def _check_can_start(state: GameState) -> None:
    if state.is_game_over:
        raise GameOverError("game is over")
    if state.recording_session is not None:
        raise SessionError("already in the studio")
    if state.tour_session is not None:
        raise SessionError("already on tour")


def _check_fits_in_career(state: GameState, weeks: int) -> None:
    if state.week + weeks > state.max_weeks:
        left = state.max_weeks - state.week
        raise SessionError(f"only {left} week(s) of career left, the booking needs {weeks}")


def songs_in_unreleased_albums(state: GameState) -> List[str]:
    return [sid for a in state.albums if not a.is_released for sid in a.song_ids]


# =============================================================================
# Recording
# =============================================================================

def start_recording_session(
    state: GameState,
    *,
    song_ids: Sequence[str] = (),
    studio: str = "budget",
    weeks: Optional[int] = None,
    write_new_songs: bool = False,
) -> GameState:
    """
    Book studio time. A plain session records existing unreleased songs; a
    write-and-record session writes new material in the room every week.
    """
    _check_can_start(state)
    if studio not in STUDIOS:
        raise SessionError(f"Unknown studio: {studio}")
    room = STUDIOS[studio]

    bundled = set(songs_in_unreleased_albums(state))
    for sid in song_ids:
        song = state.get_song(sid)
        if song is None or song.is_released:
            raise SessionError(f"song {sid!r} is not an unreleased song")
        if sid in bundled:
            raise SessionError(f"song {sid!r} is already on an unreleased album")
    if len(set(song_ids)) != len(song_ids):
        raise SessionError("duplicate song ids")

    if write_new_songs:
        weeks_required = weeks if weeks is not None else 3
        if weeks_required < 2:
            raise SessionError("write-and-record sessions need at least 2 weeks")
    else:
        if len(song_ids) < MIN_ALBUM_SONGS:
            raise SessionError(f"an album needs at least {MIN_ALBUM_SONGS} songs")
        weeks_required = weeks if weeks is not None else max(1, (len(song_ids) + 1) // 2)
        if weeks_required < 1:
            raise SessionError("a session needs at least one week")
    _check_fits_in_career(state, weeks_required)

    upfront = room.weekly_cost
    if state.player.money < upfront:
        raise SessionError(f"need ${upfront} up front to book {room.name}")

    new = copy.deepcopy(state)
    new.player = apply_stat_deltas(new.player, {"money": -upfront})
    new.recording_session = RecordingSession(
        id=f"rec_{new.week}",
        studio=room.name,
        song_ids=list(song_ids),
        production_value=room.production_value,
        weekly_cost=room.weekly_cost,
        weeks_required=weeks_required,
        weeks_remaining=weeks_required,
        week_started=new.week,
        write_new_songs=write_new_songs,
        total_cost=upfront,
    )
    new.player.flags.in_studio = True
    new.validate()
    logger.debug("recording booked at %s for %d weeks", room.name, weeks_required)
    return new


def _finish_recording(state: GameState, rng: SeededRandom) -> Tuple[Album, AlbumNaming]:
    session = state.recording_session
    song_ids = list(session.song_ids) + list(session.songs_written)
    songs = [s for s in state.songs if s.id in song_ids]
    title = generate_album_title(rng)
    album = Album(
        id=f"album_{state.week}_{len(state.albums) + 1}",
        title=title,
        song_ids=song_ids,
        production_value=session.production_value,
        week_recorded=state.week,
        quality=album_quality(songs, session.production_value),
    )
    state.albums.append(album)
    state.recording_session = None
    state.player.flags.in_studio = False
    logger.info("recording finished: %s (%d songs, quality %d)", album.id, len(song_ids), album.quality)
    return album, AlbumNaming(album_id=album.id, song_ids=song_ids, generated_title=title)


def advance_recording_week(
    state: GameState, rng: SeededRandom, settings: DifficultySettings
) -> Optional[SessionWeek]:
    """In place on the working copy. None when nobody is in the studio."""
    session = state.recording_session
    if session is None:
        return None

    week = SessionWeek(kind="recording", text="")
    session.total_cost += session.weekly_cost

    if session.write_new_songs:
        lo, hi = WRITE_AND_RECORD_SONGS_PER_WEEK
        for _ in range(rng.next_int(lo, hi)):
            song = generate_song(state, rng)
            state.songs.append(song)
            session.songs_written.append(song.id)
            week.songs_written.append(song.id)

    week.stat_changes = {
        "skill": 1,
        "burnout": burnout_gain(RECORDING_BURNOUT_PER_WEEK, settings),
        "money": -session.weekly_cost,
    }
    state.player = apply_stat_deltas(state.player, week.stat_changes)
    session.weeks_remaining -= 1

    if session.weeks_remaining > 0:
        written = f" Wrote {len(week.songs_written)} new song(s)." if week.songs_written else ""
        week.text = f"Another week at {session.studio}.{written} {session.weeks_remaining} week(s) to go."
        return week

    album, naming = _finish_recording(state, rng)
    week.completed = True
    week.album_id = album.id
    week.pending_naming = naming
    week.totals = {"songs": len(album.song_ids), "total_cost": session.total_cost}
    week.text = f"Recording wrapped: {len(album.song_ids)} tracks in the can. Time to name the album."
    return week


# =============================================================================
# Touring
# =============================================================================

def start_tour_session(state: GameState, tour_type: str, *, weeks: Optional[int] = None) -> GameState:
    """Thresholds are checked here only; once on the road the tour runs its course."""
    _check_can_start(state)
    cfg = get_tour_config(tour_type)
    p = state.player
    if p.fans < cfg.min_fans:
        raise SessionError(f"{cfg.name} needs {cfg.min_fans} fans")
    if p.money < cfg.min_money:
        raise SessionError(f"{cfg.name} needs ${cfg.min_money} in the bank")
    if cfg.requires_label and state.active_deal() is None:
        raise SessionError(f"{cfg.name} needs label backing")
    weeks_required = weeks if weeks is not None else cfg.weeks_required
    if weeks_required < 1:
        raise SessionError("a tour needs at least one week")
    _check_fits_in_career(state, weeks_required)

    new = copy.deepcopy(state)
    new.player = apply_stat_deltas(new.player, {"money": -cfg.upfront_cost})
    new.tour_session = TourSession(
        id=f"tour_{new.week}",
        tour_type=cfg.tour_type,
        name=cfg.name,
        weeks_required=weeks_required,
        weeks_remaining=weeks_required,
        weekly_cost=cfg.weekly_cost,
        base_guarantee=cfg.base_guarantee,
        fan_multiplier=cfg.fan_multiplier,
        revenue_multiplier=cfg.revenue_multiplier,
        week_started=new.week,
    )
    new.player.flags.on_tour = True
    new.validate()
    logger.debug("%s booked for %d weeks", cfg.name, weeks_required)
    return new


def _tour_totals(session: TourSession) -> Dict[str, int]:
    return {
        "revenue": session.total_revenue,
        "costs": session.total_costs,
        "net": session.total_revenue - session.total_costs,
        "label_cut": session.total_label_cut,
        "fans": session.total_fans,
        "hype": session.total_hype,
        "shows": session.shows_played,
    }


def _pay_out_tour(state: GameState, extra: Optional[StatDeltas] = None) -> Dict[str, int]:
    session = state.tour_session
    totals = _tour_totals(session)
    deltas: StatDeltas = {
        "money": totals["net"],
        "core_fans": totals["fans"],
        "hype": totals["hype"],
    }
    if extra:
        deltas.update(extra)
    state.player = apply_stat_deltas(state.player, deltas)
    state.tour_session = None
    state.player.flags.on_tour = False
    return totals


def advance_tour_week(
    state: GameState, rng: SeededRandom, settings: DifficultySettings
) -> Optional[SessionWeek]:
    """In place on the working copy. None when not on tour."""
    session = state.tour_session
    if session is None:
        return None

    result = tour_week(
        state,
        rng,
        settings,
        base_guarantee=session.base_guarantee,
        weekly_cost=session.weekly_cost,
        fan_mult=session.fan_multiplier,
        revenue_mult=session.revenue_multiplier,
    )
    session.total_revenue += result.revenue
    session.total_costs += result.costs
    session.total_label_cut += result.label_cut
    session.total_fans += result.fans_gained
    session.total_hype += result.hype_gain
    session.shows_played += SHOWS_PER_WEEK
    session.weeks_remaining -= 1

    wear: StatDeltas = {
        "health": -health_loss(TOUR_HEALTH_COST, settings),
        "burnout": burnout_gain(TOUR_BURNOUT_COST, settings),
    }
    state.player = apply_stat_deltas(state.player, wear)
    week = SessionWeek(kind="tour", text="", stat_changes=dict(wear))

    if session.weeks_remaining > 0:
        week.text = (
            f"{session.name}: another week, {result.fans_gained} new fans, "
            f"${result.net} net. {session.weeks_remaining} week(s) left."
        )
        return week

    name = session.name
    week.totals = _pay_out_tour(state)
    week.completed = True
    week.stat_changes.update(
        {"money": week.totals["net"], "core_fans": week.totals["fans"], "hype": week.totals["hype"]}
    )
    week.text = (
        f"{name} is over: {week.totals['shows']} shows, {week.totals['fans']} new fans, "
        f"${week.totals['net']} net."
    )
    logger.info("tour finished: %s", week.totals)
    return week


# =============================================================================
# Dispatch and abandonment
# =============================================================================

def advance_session(
    state: GameState, kind: str, rng: SeededRandom, settings: DifficultySettings
) -> Tuple[GameState, Optional[SessionWeek]]:
    """Copying wrapper: no active session of that kind returns the input untouched."""
    if kind not in SESSION_KINDS:
        raise SessionError(f"Unknown session kind: {kind}")
    active = state.recording_session if kind == "recording" else state.tour_session
    if active is None:
        return state, None
    new = copy.deepcopy(state)
    if kind == "recording":
        week = advance_recording_week(new, rng, settings)
    else:
        week = advance_tour_week(new, rng, settings)
    return new, week


def abandon_session(state: GameState, kind: str) -> GameState:
    """
    Walk out early. Recording: songs already written stay in the catalog, no
    album. Tour: what was earned so far is paid out, and promoters remember.
    Takes no turn.
    """
    if kind not in SESSION_KINDS:
        raise SessionError(f"Unknown session kind: {kind}")
    active = state.recording_session if kind == "recording" else state.tour_session
    if active is None:
        return state
    if state.is_game_over:
        raise GameOverError("game is over")

    new = copy.deepcopy(state)
    if kind == "recording":
        new.recording_session = None
        new.player.flags.in_studio = False
        logger.info("recording abandoned at week %d", new.week)
    else:
        totals = _pay_out_tour(new, {"industry_goodwill": -TOUR_ABANDON_GOODWILL_HIT})
        logger.info("tour abandoned at week %d: %s", new.week, totals)
    new.validate()
    return new
