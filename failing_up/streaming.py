# failing_up/streaming.py
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from failing_up.config import (
    ALBUM_REVENUE_PER_RECEPTION,
    ALGO_BOOST_DECAY,
    CHART_STREAMS_THRESHOLD,
    LISTENER_CONVERSION_RATE,
    MONEY_PER_1000_STREAMS,
    PLAYLIST_THRESHOLDS,
    STREAMS_PER_TIER,
    STREAMS_TIERS,
    VIRAL_BASE_CHANCE,
    VIRAL_DURATION_WEEKS,
    VIRAL_MULTIPLIER,
    VIRAL_PLAYLIST_BOOST,
)
from failing_up.difficulty import DifficultySettings, fan_gain
from failing_up.economy import (
    StreamingSplit,
    album_cred_change,
    album_fan_gain,
    album_quality,
    album_reception,
    apply_recoupment,
    estimate_album_sales,
    sales_tier_for,
    settle_album_revenue,
    split_streaming_income,
)
from failing_up.models import ChartEntry, GameState, Player, Song, StatDeltas
from failing_up.rng import SeededRandom
from failing_up.stats import apply_stat_deltas
from failing_up.triggers import weighted_select

PLAYLIST_BOOSTS = {
    # playlist score boost, tiers jumped
    "editorial": (25, 2),
    "algorithmic": (15, 1),
    "discover": (10, 0),
}


# =============================================================================
# Tiers
# =============================================================================

def upgrade_tier(tier: str, steps: int = 1) -> str:
    i = STREAMS_TIERS.index(tier)
    return STREAMS_TIERS[min(len(STREAMS_TIERS) - 1, i + steps)]


def downgrade_tier(tier: str, steps: int = 1) -> str:
    i = STREAMS_TIERS.index(tier)
    return STREAMS_TIERS[max(0, i - steps)]


def tier_for_streams(weekly_streams: int) -> str:
    for tier in reversed(STREAMS_TIERS):
        lo, _ = STREAMS_PER_TIER[tier]
        if tier != "none" and weekly_streams >= lo:
            return tier
    return "none"


def tier_for_playlist_score(score: int) -> str:
    """Where a song settles once a viral run is over."""
    if score >= PLAYLIST_THRESHOLDS["editorial"]:
        return "high"
    if score >= PLAYLIST_THRESHOLDS["algorithmic"]:
        return "medium"
    if score >= PLAYLIST_THRESHOLDS["discover"]:
        return "low"
    return "none"


def initial_streams_tier(song: Song, player: Player, rng: SeededRandom) -> str:
    song_score = (song.quality + song.hit_potential) / 2
    digital = (player.algo_boost + player.followers / 10_000) / 2
    total = song_score + digital + rng.next_int(-10, 10)
    if total >= 80:
        return "high"
    if total >= 60:
        return "medium"
    if total >= 40:
        return "low"
    return "none"


def initial_playlist_score(song: Song, player: Player, rng: SeededRandom) -> int:
    score = song.quality * 0.5 + player.algo_boost * 0.3 + rng.next_int(-10, 10)
    return max(0, min(100, int(math.floor(score))))


# =============================================================================
# Releases
# =============================================================================

def release_single(song: Song, player: Player, week: int, rng: SeededRandom) -> Song:
    tier = initial_streams_tier(song, player, rng)
    score = initial_playlist_score(song, player, rng)
    return replace(
        song,
        is_released=True,
        is_single=True,
        week_released=week,
        streams_tier=tier,
        playlist_score=score,
        viral_flag=False,
        viral_weeks_remaining=0,
        chart_history=list(song.chart_history),
    )


def release_album_track(song: Song, player: Player, week: int, rng: SeededRandom) -> Song:
    """Album tracks start a tier lower with less playlist love than singles."""
    if song.is_released:
        return song
    tier = initial_streams_tier(song, player, rng)
    score = initial_playlist_score(song, player, rng)
    return replace(
        song,
        is_released=True,
        is_single=False,
        week_released=week,
        streams_tier=downgrade_tier(tier),
        playlist_score=int(score * 0.7),
        viral_flag=False,
        viral_weeks_remaining=0,
        chart_history=list(song.chart_history),
    )


@dataclass
class AlbumRelease:
    album_id: str
    quality: int
    reception: int
    sales_tier: str
    estimated_sales: int
    revenue: int
    recouped: int
    fans_gained: int
    cred_change: int


def release_album(
    state: GameState,
    album_id: str,
    rng: SeededRandom,
    settings: DifficultySettings,
) -> Tuple[AlbumRelease, StatDeltas]:
    """
    In place on the working copy: grades the album, releases its tracks and
    settles launch revenue. Returns the release summary and the player deltas
    the caller should apply.
    """
    album = state.get_album(album_id)
    songs = [s for s in state.songs if s.id in album.song_ids]
    deal = state.active_deal()
    p = state.player

    quality = album_quality(songs, album.production_value)
    reception = album_reception(quality, p.hype, p.cred, rng)
    sales = estimate_album_sales(reception, p.fans, album.promotion_spend, deal is not None, rng)
    tier = sales_tier_for(sales)

    album.quality = quality
    album.reception = reception
    album.sales_tier = tier
    album.week_released = state.week
    album.label_id = deal.id if deal is not None else None

    state.songs = [
        release_album_track(s, p, state.week, rng) if s.id in album.song_ids else s
        for s in state.songs
    ]

    revenue = reception * ALBUM_REVENUE_PER_RECEPTION
    before = deal.recoup_debt if deal is not None else 0
    income = settle_album_revenue(state, album, revenue)
    recouped = before - (deal.recoup_debt if deal is not None else 0)

    fans = fan_gain(album_fan_gain(reception, tier), settings)
    cred = album_cred_change(reception)
    summary = AlbumRelease(
        album_id=album.id,
        quality=quality,
        reception=reception,
        sales_tier=tier,
        estimated_sales=sales,
        revenue=revenue,
        recouped=recouped,
        fans_gained=fans,
        cred_change=cred,
    )
    return summary, {"core_fans": fans, "cred": cred, "money": income, "hype": reception // 10}


# =============================================================================
# Weekly streaming
# =============================================================================

def weekly_streams(song: Song, player: Player, rng: SeededRandom) -> int:
    if not song.is_released:
        return 0
    lo, hi = STREAMS_PER_TIER[song.streams_tier]
    streams = rng.next_int(lo, hi)
    streams = int(streams * (1 + song.playlist_score / 100))
    streams = int(streams * (1 + player.algo_boost / 200))
    if song.viral_flag:
        streams = int(streams * VIRAL_MULTIPLIER)
    return streams


def gross_streaming_income(total_streams: int) -> int:
    return int(total_streams / 1000 * MONEY_PER_1000_STREAMS)


def chart_position(streams: int) -> Optional[int]:
    if streams < CHART_STREAMS_THRESHOLD:
        return None
    return max(1, min(100, int(100 - 40 * math.log10(streams / CHART_STREAMS_THRESHOLD))))


def make_viral_song(song: Song) -> Song:
    return replace(
        song,
        viral_flag=True,
        viral_weeks_remaining=VIRAL_DURATION_WEEKS,
        streams_tier="massive",
        playlist_score=min(100, song.playlist_score + VIRAL_PLAYLIST_BOOST),
        chart_history=list(song.chart_history),
    )


def viral_chance(player: Player) -> float:
    return VIRAL_BASE_CHANCE + player.algo_boost / 1000 + player.fans / 1_000_000


def check_for_viral_song(state: GameState, rng: SeededRandom) -> Optional[Song]:
    pool = [s for s in state.songs if s.is_released and not s.viral_flag]
    if not pool:
        return None
    if rng.next() >= viral_chance(state.player):
        return None
    return weighted_select(pool, rng, lambda s: s.quality + s.hit_potential + 1)


def check_for_playlist_placement(
    state: GameState, rng: SeededRandom
) -> Optional[Tuple[Song, str]]:
    p = state.player
    for song in state.songs:
        if not song.is_released or song.playlist_score < PLAYLIST_THRESHOLDS["discover"]:
            continue
        if song.playlist_score >= PLAYLIST_THRESHOLDS["editorial"]:
            if rng.chance(0.02 + p.industry_goodwill / 500):
                return song, "editorial"
        if song.playlist_score >= PLAYLIST_THRESHOLDS["algorithmic"]:
            if rng.chance(0.05 + p.algo_boost / 500):
                return song, "algorithmic"
        if rng.chance(0.10):
            return song, "discover"
    return None


def apply_playlist_boost(song: Song, playlist: str) -> Song:
    boost, jump = PLAYLIST_BOOSTS[playlist]
    return replace(
        song,
        playlist_score=min(100, song.playlist_score + boost),
        streams_tier=upgrade_tier(song.streams_tier, jump),
        chart_history=list(song.chart_history),
    )


def catalogue_power(songs: List[Song]) -> int:
    released = [s for s in songs if s.is_released]
    count_power = min(50, len(released) * 2)
    total = sum(s.total_streams for s in released)
    stream_power = min(50, int(math.log10(total + 1) * 10))
    return min(100, count_power + stream_power)


def apply_algo_boost_decay(player: Player) -> Player:
    return replace(player, algo_boost=max(0, player.algo_boost - ALGO_BOOST_DECAY))


@dataclass
class StreamingWeek:
    total_streams: int = 0
    split: StreamingSplit = field(default_factory=lambda: StreamingSplit(0, 0, 0, 0))
    new_listeners: int = 0
    viral_song_id: Optional[str] = None
    playlist: Optional[Tuple[str, str]] = None
    charted: Dict[str, int] = field(default_factory=dict)
    news: List[str] = field(default_factory=list)
    stat_changes: StatDeltas = field(default_factory=dict)


def apply_weekly_streaming(state: GameState, rng: SeededRandom) -> StreamingWeek:
    """
    In place on the working copy. Streams are drawn per released song in
    catalog order, then income is split with the label, then songs are
    updated, then the viral and playlist rolls happen.
    """
    week = StreamingWeek()
    released = [s for s in state.songs if s.is_released]
    if not released:
        return week

    per_song: Dict[str, int] = {}
    for song in released:
        per_song[song.id] = weekly_streams(song, state.player, rng)
    week.total_streams = sum(per_song.values())

    week.split = split_streaming_income(gross_streaming_income(week.total_streams), state)
    apply_recoupment(state, week.split.recoup_paid)
    week.new_listeners = int(week.total_streams * LISTENER_CONVERSION_RATE)
    week.stat_changes = {"money": week.split.net_income, "casual_listeners": week.new_listeners}
    state.player = apply_stat_deltas(state.player, week.stat_changes)

    updated: List[Song] = []
    for song in state.songs:
        if not song.is_released:
            updated.append(song)
            continue
        streams = per_song.get(song.id, 0)
        song.total_streams += streams
        song.playlist_score = max(0, song.playlist_score - rng.next_int(0, 2))
        if song.viral_flag:
            song.viral_weeks_remaining -= 1
            if song.viral_weeks_remaining <= 0:
                song.viral_flag = False
                song.viral_weeks_remaining = 0
                song.streams_tier = tier_for_playlist_score(song.playlist_score)
            else:
                song.streams_tier = "massive"
        else:
            song.streams_tier = tier_for_streams(streams)

        position = chart_position(streams)
        if position is not None:
            song.chart_history.append(ChartEntry(week=state.week, position=position))
            if song.peak_chart_position is None or position < song.peak_chart_position:
                song.peak_chart_position = position
            week.charted[song.id] = position
        updated.append(song)
    state.songs = updated

    viral = check_for_viral_song(state, rng)
    if viral is not None:
        state.songs = [make_viral_song(s) if s.id == viral.id else s for s in state.songs]
        week.viral_song_id = viral.id
        week.news.append(f'"{viral.title}" is going viral!')

    placement = check_for_playlist_placement(state, rng)
    if placement is not None:
        song, playlist = placement
        state.songs = [apply_playlist_boost(s, playlist) if s.id == song.id else s for s in state.songs]
        week.playlist = (song.id, playlist)
        week.news.append(f'"{song.title}" landed on a {playlist} playlist.')

    state.player.catalogue_power = catalogue_power(state.songs)
    return week
