# failing_up/actions.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from failing_up.band import band_performance
from failing_up.config import (
    HIT_POTENTIAL_QUALITY_WEIGHT,
    HIT_POTENTIAL_VARIANCE,
    MUSIC_STYLES,
    SONG_QUALITY_VARIANCE,
    STYLE_PREFERENCE_CHANCE,
    WRITE_BASE_CHANCE,
    WRITE_SKILL_DIVISOR,
)
from failing_up.difficulty import DifficultySettings, addiction_gain
from failing_up.economy import generate_label_offer, local_gig_payout
from failing_up.errors import ActionUnavailableError, GameOverError, UnknownActionError
from failing_up.models import (
    ActionResult,
    Conditions,
    GameState,
    PendingNaming,
    Song,
    SongNaming,
    StatDeltas,
)
from failing_up.rng import SeededRandom
from failing_up.stats import clamp_stat
from failing_up.streaming import release_album, release_single
from failing_up.triggers import check_conditions


@dataclass(frozen=True)
class Action:
    id: str
    label: str
    description: str
    requirements: Conditions = field(default_factory=dict)
    base_effects: StatDeltas = field(default_factory=dict)
    session: Optional[str] = None    # "recording" | "tour" for continuation actions


ACTIONS: Dict[str, Action] = {
    "REST": Action(
        id="REST",
        label="Rest / Lay Low",
        description="Take it easy this week. Recover health and stability, but lose some hype.",
        base_effects={"health": 5, "stability": 5, "burnout": -3, "hype": -3},
    ),
    "WRITE": Action(
        id="WRITE",
        label="Write / Compose",
        description="Spend the week writing new material. Might produce a song.",
        base_effects={"skill": 1, "burnout": 2, "hype": -2},
    ),
    "REHEARSE": Action(
        id="REHEARSE",
        label="Rehearse",
        description="Practice with the band. Improves skill and tightness.",
        base_effects={"skill": 2, "burnout": 1, "money": -25},
    ),
    "PLAY_LOCAL_GIG": Action(
        id="PLAY_LOCAL_GIG",
        label="Play Local Gig",
        description="Play a show at a local venue. Small money, builds local following.",
        requirements={"min_health": 20},
        base_effects={"skill": 1, "burnout": 1},
    ),
    "PROMOTE": Action(
        id="PROMOTE",
        label="Promote / Press",
        description="Interviews, photo shoots, socials. Feeds the algorithm.",
        base_effects={"hype": 5, "fans": 10, "burnout": 2},
    ),
    "NETWORK": Action(
        id="NETWORK",
        label="Network / Industry",
        description="Schmooze with industry types. Might catch a label's eye.",
        base_effects={"industry_goodwill": 3, "burnout": 1},
    ),
    "PARTY": Action(
        id="PARTY",
        label="Party / Indulge",
        description="Live the rock star life. Short-term gains, long-term consequences.",
        base_effects={"image": 3, "hype": 5, "addiction": 3, "health": -3, "stability": -3, "burnout": 2},
    ),
    "SIDE_JOB": Action(
        id="SIDE_JOB",
        label="Side Job",
        description="Work a day job to make ends meet. Pays bills but drains energy.",
        base_effects={"money": 150, "burnout": 3, "hype": -2},
    ),
    "RELEASE_SINGLE": Action(
        id="RELEASE_SINGLE",
        label="Release Single",
        description="Put one of your unreleased songs out on streaming.",
        requirements={"has_unreleased_songs": True},
        base_effects={"hype": 3},
    ),
    "RELEASE_ALBUM": Action(
        id="RELEASE_ALBUM",
        label="Release Album",
        description="Drop a recorded album on the world.",
        requirements={"has_unreleased_album": True},
    ),
    "RECORD_WEEK": Action(
        id="RECORD_WEEK",
        label="Keep Recording",
        description="Another week in the studio.",
        requirements={"in_studio": True},
        session="recording",
    ),
    "TOUR_WEEK": Action(
        id="TOUR_WEEK",
        label="Keep Touring",
        description="Another week on the road.",
        requirements={"on_tour": True},
        session="tour",
    ),
}


def get_action(action_id: str) -> Action:
    try:
        return ACTIONS[action_id]
    except KeyError as e:
        raise UnknownActionError(f"Unknown action: {action_id}") from e


def _session_action(state: GameState) -> Optional[str]:
    if state.recording_session is not None:
        return "RECORD_WEEK"
    if state.tour_session is not None:
        return "TOUR_WEEK"
    return None


def is_action_available(action_id: str, state: GameState) -> bool:
    action = ACTIONS.get(action_id)
    if action is None or state.is_game_over:
        return False
    # a running session locks the week to its continuation action
    locked = _session_action(state)
    if locked is not None:
        return action_id == locked
    if action.session:
        return False
    return check_conditions(action.requirements, state)


def get_available_actions(state: GameState) -> List[str]:
    return [aid for aid in ACTIONS if is_action_available(aid, state)]


# =============================================================================
# Songs
# =============================================================================

SONG_ADJECTIVES = [
    "Burning", "Broken", "Electric", "Midnight", "Neon", "Savage", "Wild", "Dark",
    "Screaming", "Falling", "Rising", "Lost", "Wasted", "Hungry", "Dirty", "Sweet",
]
SONG_NOUNS = [
    "Heart", "Soul", "Eyes", "Night", "Dream", "Fire", "Thunder", "Angel",
    "Devil", "Road", "City", "Love", "Pain", "Rain", "Blood", "Star",
]


def generate_song_title(rng: SeededRandom) -> str:
    return f"{rng.choice(SONG_ADJECTIVES)} {rng.choice(SONG_NOUNS)}"


def quality_description(quality: int) -> str:
    if quality >= 90:
        return "exceptional"
    if quality >= 75:
        return "great"
    if quality >= 60:
        return "solid"
    if quality >= 40:
        return "decent"
    if quality >= 25:
        return "rough"
    return "terrible"


def song_style(preferred: str, rng: SeededRandom) -> str:
    if rng.next() < STYLE_PREFERENCE_CHANCE:
        return preferred
    return rng.choice(MUSIC_STYLES)


def write_chance(skill: int) -> float:
    return WRITE_BASE_CHANCE + skill / WRITE_SKILL_DIVISOR


def generate_song(state: GameState, rng: SeededRandom) -> Song:
    """
    The shared quality roll: WRITE and write-and-record sessions both use it.
    Ids are positional, so append each song before generating the next.
    """
    p = state.player
    base = (p.talent + p.skill) // 2
    quality = clamp_stat(base + rng.next_int(*SONG_QUALITY_VARIANCE))
    hit = clamp_stat(int(quality * HIT_POTENTIAL_QUALITY_WEIGHT + rng.next_int(*HIT_POTENTIAL_VARIANCE)))
    return Song(
        id=f"song_{state.week}_{len(state.songs) + 1}",
        title=generate_song_title(rng),
        quality=quality,
        style=song_style(state.preferred_style, rng),
        hit_potential=hit,
        written_by_player=True,
        week_written=state.week,
    )


def roll_write(state: GameState, rng: SeededRandom) -> Optional[Song]:
    if rng.next() < write_chance(state.player.skill):
        return generate_song(state, rng)
    return None


MAX_TITLE_LENGTH = 80


def apply_naming(state: GameState, naming: Optional[PendingNaming], title: Optional[str] = None) -> GameState:
    """
    Settle a pending name. A blank title keeps the generated one; a naming
    whose song or album no longer exists changes nothing.
    """
    if naming is None:
        return state
    if state.is_game_over:
        raise GameOverError("game is over")

    final = (title or "").strip()[:MAX_TITLE_LENGTH] or naming.generated_title
    if naming.kind == "song":
        item = state.get_song(naming.song_id)
    else:
        item = state.get_album(naming.album_id)
    if item is None or item.title == final:
        return state

    new = copy.deepcopy(state)
    if naming.kind == "song":
        new.get_song(naming.song_id).title = final
    else:
        new.get_album(naming.album_id).title = final
    return new


# =============================================================================
# Execution
# =============================================================================

def _execute_write(state: GameState, rng: SeededRandom, action: Action) -> ActionResult:
    song = roll_write(state, rng)
    if song is None:
        return ActionResult(
            success=True,
            message="You worked on some ideas but nothing came together this week.",
            stat_changes=dict(action.base_effects),
        )
    state.songs.append(song)
    return ActionResult(
        success=True,
        message=f'You wrote "{song.title}" - {quality_description(song.quality)} quality.',
        stat_changes=dict(action.base_effects),
        produced_song=song,
        pending_naming=SongNaming(song_id=song.id, generated_title=song.title),
    )


def _execute_gig(
    state: GameState, rng: SeededRandom, settings: DifficultySettings, action: Action
) -> ActionResult:
    performance = clamp_stat(band_performance(state) + rng.next_int(-15, 15))
    gig = local_gig_payout(state, rng, settings)

    if performance > 70:
        hype = rng.next_int(2, 5)
    elif performance < 40:
        hype = rng.next_int(-3, 0)
    else:
        hype = 0

    if performance >= 80:
        message = f"Killer show! {gig.turnout} people went wild. Earned ${gig.payout}."
    elif performance >= 60:
        message = f"Solid gig. The crowd of {gig.turnout} seemed into it. Earned ${gig.payout}."
    elif performance >= 40:
        message = f"Rough night. A few technical issues but you got through it. Earned ${gig.payout}."
    else:
        message = f"Disaster. Half the crowd left early. Still got ${gig.payout} from the door."

    deltas = dict(action.base_effects)
    deltas.update({"money": gig.payout, "core_fans": gig.fans_gained, "hype": hype})
    return ActionResult(success=True, message=message, stat_changes=deltas)


def _execute_promote(state: GameState, rng: SeededRandom, action: Action) -> ActionResult:
    deltas = dict(action.base_effects)
    deltas["followers"] = rng.next_int(20, 100) + state.player.hype
    deltas["algo_boost"] = rng.next_int(3, 8)
    cred = rng.next_int(-3, 2)
    deltas["cred"] = cred
    if cred < 0:
        message = "Did the press rounds. One interview made you look like a sellout."
    else:
        message = "Did some press this week. Getting the word out."
    return ActionResult(success=True, message=message, stat_changes=deltas)


def _execute_network(
    state: GameState, rng: SeededRandom, settings: DifficultySettings, action: Action
) -> ActionResult:
    deltas = dict(action.base_effects)
    offer = None
    if state.active_deal() is None:
        chance = 0.15 + state.player.industry_goodwill / 200
        if rng.next() < chance:
            offer = generate_label_offer(state, rng, settings)
    if offer is not None:
        message = f"{offer.name} wants to talk. They're offering ${offer.advance} up front."
    else:
        message = "Made some industry connections. Could pay off later."
    return ActionResult(success=True, message=message, stat_changes=deltas, label_offer=offer)


def _pick_single(state: GameState, target: Optional[str]) -> Song:
    if target is not None:
        song = state.get_song(target)
        if song is None or song.is_released:
            raise ActionUnavailableError(f"no unreleased song {target!r}")
        return song
    unreleased = [s for s in state.songs if not s.is_released]
    # best song first; max() keeps the earliest on ties
    return max(unreleased, key=lambda s: s.quality + s.hit_potential)


def _execute_release_single(
    state: GameState, rng: SeededRandom, action: Action, target: Optional[str]
) -> ActionResult:
    song = _pick_single(state, target)
    released = release_single(song, state.player, state.week, rng)
    state.songs = [released if s.id == song.id else s for s in state.songs]
    return ActionResult(
        success=True,
        message=f'"{released.title}" is out. Starting in the {released.streams_tier} streams tier.',
        stat_changes=dict(action.base_effects),
        released_song_id=released.id,
    )


def _execute_release_album(
    state: GameState,
    rng: SeededRandom,
    settings: DifficultySettings,
    target: Optional[str],
) -> ActionResult:
    if target is not None:
        album = state.get_album(target)
        if album is None or album.is_released:
            raise ActionUnavailableError(f"no unreleased album {target!r}")
    else:
        album = next(a for a in state.albums if not a.is_released)

    summary, deltas = release_album(state, album.id, rng, settings)
    message = (
        f'"{album.title}" is out. Reception {summary.reception}/100, '
        f"a {summary.sales_tier} record."
    )
    if summary.recouped:
        message += f" ${summary.recouped} went straight to the label."
    return ActionResult(
        success=True,
        message=message,
        stat_changes=deltas,
        released_album_id=album.id,
    )


DEFAULT_MESSAGES = {
    "REST": "You took it easy this week. Feeling more rested.",
    "REHEARSE": "Good practice session with the band. Getting tighter.",
    "PARTY": "What a night. Things got pretty wild...",
    "SIDE_JOB": "Another week at the day job. At least the bills are paid.",
}


def execute_action(
    action_id: str,
    state: GameState,
    rng: SeededRandom,
    settings: DifficultySettings,
    target: Optional[str] = None,
) -> ActionResult:
    """
    Runs against the working copy resolve_turn hands in: catalog changes
    (new songs, releases) land on it directly, player deltas come back in the
    result for the caller to apply. Session actions are not handled here.
    """
    action = get_action(action_id)
    if not is_action_available(action_id, state) or action.session:
        raise ActionUnavailableError(f"Action not available: {action.label}")

    if action_id == "WRITE":
        return _execute_write(state, rng, action)
    if action_id == "PLAY_LOCAL_GIG":
        return _execute_gig(state, rng, settings, action)
    if action_id == "PROMOTE":
        return _execute_promote(state, rng, action)
    if action_id == "NETWORK":
        return _execute_network(state, rng, settings, action)
    if action_id == "RELEASE_SINGLE":
        return _execute_release_single(state, rng, action, target)
    if action_id == "RELEASE_ALBUM":
        return _execute_release_album(state, rng, settings, target)

    deltas = dict(action.base_effects)
    if deltas.get("addiction", 0) > 0:
        deltas["addiction"] = addiction_gain(deltas["addiction"], settings)
    return ActionResult(
        success=True,
        message=DEFAULT_MESSAGES.get(action_id, "Week complete."),
        stat_changes=deltas,
    )
