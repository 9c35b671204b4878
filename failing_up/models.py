# failing_up/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from failing_up.config import (
    BANDMATE_STATUSES,
    DEFAULT_WEEKLY_LIVING_COST,
    MANAGER_STATUSES,
    MAX_WEEKS,
    RIVAL_STATUSES,
    START_WEEK,
)
from failing_up.errors import InvalidStateError

# Player attributes clamped to [STAT_MIN, STAT_MAX] by apply_stat_deltas.
BOUNDED_STATS = (
    "talent",
    "skill",
    "image",
    "hype",
    "health",
    "stability",
    "cred",
    "addiction",
    "industry_goodwill",
    "burnout",
    "algo_boost",
    "catalogue_power",
)

# Floored at zero, no ceiling.
AUDIENCE_COUNTERS = ("core_fans", "casual_listeners", "followers")

# Flags that mirror structural state; content may read them but never set them.
DERIVED_FLAGS = ("has_label_deal", "on_tour", "in_studio", "has_manager")

Conditions = Dict[str, Any]
StatDeltas = Dict[str, int]


# =============================================================================
# Career
# =============================================================================

@dataclass
class PlayerFlags:
    has_label_deal: bool = False
    on_tour: bool = False
    in_studio: bool = False
    has_manager: bool = False
    has_lawyer: bool = False
    addiction_arc_started: bool = False
    label_deal_arc_started: bool = False
    band_breakup_arc_started: bool = False


@dataclass
class Player:
    """
    Visible and hidden stats of the artist. Everything in BOUNDED_STATS lives
    in 0..100; money may go negative; audience counters only have a floor.
    """
    name: str

    talent: int
    skill: int
    image: int
    hype: int
    money: int
    health: int
    stability: int
    cred: int

    core_fans: int = 0
    casual_listeners: int = 0
    followers: int = 0
    algo_boost: int = 0
    catalogue_power: int = 0

    addiction: int = 0
    industry_goodwill: int = 0
    burnout: int = 0

    flags: PlayerFlags = field(default_factory=PlayerFlags)

    @property
    def fans(self) -> int:
        return self.core_fans + self.casual_listeners


@dataclass
class Bandmate:
    id: str
    name: str
    role: str          # guitar | bass | drums | keys | vocals
    talent: int
    reliability: int
    vice: int
    loyalty: int
    status: str = "active"


@dataclass
class ChartEntry:
    week: int
    position: int


@dataclass
class Song:
    id: str
    title: str
    quality: int
    style: str
    hit_potential: int
    written_by_player: bool
    week_written: int

    is_released: bool = False
    is_single: bool = False
    week_released: Optional[int] = None
    streams_tier: str = "none"
    playlist_score: int = 0
    viral_flag: bool = False
    viral_weeks_remaining: int = 0
    total_streams: int = 0

    chart_history: List[ChartEntry] = field(default_factory=list)
    peak_chart_position: Optional[int] = None


@dataclass
class Album:
    id: str
    title: str
    song_ids: List[str]
    production_value: int
    week_recorded: int

    quality: int = 0
    promotion_spend: int = 0
    reception: Optional[int] = None
    sales_tier: Optional[str] = None
    label_id: Optional[str] = None
    week_released: Optional[int] = None

    chart_history: List[ChartEntry] = field(default_factory=list)
    peak_chart_position: Optional[int] = None

    @property
    def is_released(self) -> bool:
        return self.week_released is not None


@dataclass
class LabelDeal:
    id: str
    name: str
    advance: int
    recoup_debt: int
    royalty_rate: float
    streaming_royalty_rate: float
    creative_control: str          # low | medium | high
    week_signed: int
    status: str = "active"         # active | dropped | fulfilled
    deal_type: str = "traditional"  # traditional | distro | 360
    includes_masters: bool = True
    includes_merch: bool = False
    includes_touring: bool = False
    merch_cut: float = 0.0
    touring_cut: float = 0.0


@dataclass
class Manager:
    id: str
    name: str
    booking_skill: int
    connections: int
    reliability: int
    reputation: int
    cut: float                     # share of gross gig pay
    status: str = "active"         # active | fired
    week_hired: int = 0


@dataclass
class RivalBand:
    id: str
    name: str
    style: str
    fame_tier: str
    reputation: int
    hype: int
    week_formed: int
    status: str = "active"         # active | hiatus | broken_up | retired
    hits: int = 0
    scandals: int = 0
    relationship: int = 0          # -100..100, how they feel about you
    is_rival: bool = False
    has_beef: bool = False


# =============================================================================
# Content (supplied as data, evaluated by the trigger engine)
# =============================================================================

@dataclass
class EventChoice:
    id: str
    label: str
    outcome_text: str
    stat_changes: StatDeltas = field(default_factory=dict)
    bandmate_changes: Dict[str, int] = field(default_factory=dict)
    flags_set: List[str] = field(default_factory=list)
    flags_clear: List[str] = field(default_factory=list)
    arc_progression: Optional[str] = None
    bandmate_fate: Optional[str] = None    # dead | rehab | fired, for the member most at risk
    rival_beef: Optional[str] = None       # start | end
    hire_manager: bool = False


@dataclass
class GameEvent:
    id: str
    text_intro: str
    choices: List[EventChoice]
    conditions: Conditions = field(default_factory=dict)
    weight: float = 1.0
    one_time: bool = False
    required_action: Optional[str] = None
    negative: bool = False

    def get_choice(self, choice_id: str) -> Optional[EventChoice]:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None


@dataclass
class TemptationChoice:
    id: str
    label: str
    result_text: str
    effects: StatDeltas = field(default_factory=dict)


@dataclass
class Temptation:
    id: str
    source: str
    prompt: str
    offer: str
    base_chance: float
    accept: TemptationChoice
    decline: TemptationChoice
    conditions: Conditions = field(default_factory=dict)
    cooldown: int = 4


@dataclass
class ArcStage:
    stage_id: int
    event_ids: List[str]
    advance_conditions: Optional[Conditions] = None


@dataclass
class Arc:
    """
    Template and running instance share one shape. Activation copies the
    template with current_stage reset to 0.
    """
    id: str
    name: str
    stages: List[ArcStage]
    entry_conditions: Conditions = field(default_factory=dict)
    current_stage: int = 0


# =============================================================================
# Multi-week sessions
# =============================================================================

@dataclass
class RecordingSession:
    id: str
    studio: str
    song_ids: List[str]
    production_value: int
    weekly_cost: int
    weeks_required: int
    weeks_remaining: int
    week_started: int
    write_new_songs: bool = False
    songs_written: List[str] = field(default_factory=list)
    total_cost: int = 0

    @property
    def progress(self) -> float:
        if self.weeks_required <= 0:
            return 1.0
        return 1.0 - self.weeks_remaining / self.weeks_required


@dataclass
class TourSession:
    id: str
    tour_type: str
    name: str
    weeks_required: int
    weeks_remaining: int
    weekly_cost: int
    base_guarantee: int
    fan_multiplier: float
    revenue_multiplier: float
    week_started: int
    total_revenue: int = 0
    total_costs: int = 0
    total_label_cut: int = 0
    total_fans: int = 0
    total_hype: int = 0
    shows_played: int = 0

    @property
    def progress(self) -> float:
        if self.weeks_required <= 0:
            return 1.0
        return 1.0 - self.weeks_remaining / self.weeks_required


# =============================================================================
# Gigs
# =============================================================================

@dataclass
class Venue:
    id: str
    name: str
    city: str
    kind: str          # local | support_slot | pub | club | small_venue | headline
    capacity: int
    base_pay: int
    prestige: int


@dataclass
class Gig:
    id: str
    venue: Venue
    week: int
    guaranteed_pay: int
    expected_turnout: int
    is_support: bool = False
    headliner_name: Optional[str] = None
    exposure: float = 1.0
    booked_by_manager: bool = False


@dataclass
class SupportSlotOffer:
    id: str
    headliner_name: str
    headliner_fans: int
    venue: Venue
    week: int
    exposure: float
    pay: int
    prestige_bonus: int
    expires_week: int


@dataclass
class GigResult:
    gig_id: str
    venue_name: str
    pay: int
    turnout: int
    fans_gained: int
    hype_gain: int
    cred_gain: int
    label_cut: int
    text: str
    manager_cut: int = 0


# =============================================================================
# Naming flow (tagged by `kind`)
# =============================================================================

@dataclass
class SongNaming:
    song_id: str
    generated_title: str
    kind: str = field(default="song", init=False)


@dataclass
class AlbumNaming:
    album_id: str
    song_ids: List[str]
    generated_title: str
    kind: str = field(default="album", init=False)


PendingNaming = Union[SongNaming, AlbumNaming]


# =============================================================================
# Game state
# =============================================================================

@dataclass
class WeekLog:
    week: int
    action: str
    action_result: str
    events: List[Dict[str, str]] = field(default_factory=list)
    stat_changes: StatDeltas = field(default_factory=dict)


@dataclass
class GameState:
    """
    The aggregate root. Keep this as a 'data bag'; logic lives elsewhere.
    Engine operations deep-copy it, so a snapshot handed out is never changed.
    """
    seed: int
    player: Player
    band_name: str

    difficulty: str = "normal"
    preferred_style: str = "punk"

    week: int = START_WEEK
    year: int = 1
    max_weeks: int = MAX_WEEKS
    weekly_living_cost: int = DEFAULT_WEEKLY_LIVING_COST

    bandmates: List[Bandmate] = field(default_factory=list)
    songs: List[Song] = field(default_factory=list)
    albums: List[Album] = field(default_factory=list)
    label_deals: List[LabelDeal] = field(default_factory=list)
    manager: Optional[Manager] = None
    rival_bands: List[RivalBand] = field(default_factory=list)

    active_arcs: List[Arc] = field(default_factory=list)
    completed_arc_ids: List[str] = field(default_factory=list)
    triggered_event_ids: List[str] = field(default_factory=list)
    story_flags: List[str] = field(default_factory=list)
    temptation_cooldowns: Dict[str, int] = field(default_factory=dict)

    recording_session: Optional[RecordingSession] = None
    tour_session: Optional[TourSession] = None
    upcoming_gig: Optional[Gig] = None
    pending_support_offer: Optional[SupportSlotOffer] = None

    week_logs: List[WeekLog] = field(default_factory=list)

    is_game_over: bool = False
    game_over_reason: Optional[str] = None
    ending_id: Optional[str] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Reject snapshots that break the structural invariants."""
        if self.recording_session is not None and self.tour_session is not None:
            raise InvalidStateError("cannot record and tour at the same time")

        flags = self.player.flags
        if flags.on_tour != (self.tour_session is not None):
            raise InvalidStateError("on_tour flag does not match tour session")
        if flags.in_studio != (self.recording_session is not None):
            raise InvalidStateError("in_studio flag does not match recording session")

        active_deals = [d for d in self.label_deals if d.status == "active"]
        if len(active_deals) > 1:
            raise InvalidStateError("more than one active label deal")
        if flags.has_label_deal != bool(active_deals):
            raise InvalidStateError("has_label_deal flag does not match label deals")

        active_ids = {a.id for a in self.active_arcs}
        if len(active_ids) != len(self.active_arcs):
            raise InvalidStateError("duplicate active arc")
        if active_ids & set(self.completed_arc_ids):
            raise InvalidStateError("arc is both active and completed")

        if len(set(self.triggered_event_ids)) != len(self.triggered_event_ids):
            raise InvalidStateError("one-time event recorded twice")

        bad = [b.id for b in self.bandmates if b.status not in BANDMATE_STATUSES]
        if bad:
            raise InvalidStateError(f"unknown bandmate status for {', '.join(bad)}")

        if flags.has_manager != (self.active_manager() is not None):
            raise InvalidStateError("has_manager flag does not match manager")
        if self.manager is not None and self.manager.status not in MANAGER_STATUSES:
            raise InvalidStateError(f"unknown manager status {self.manager.status}")
        bad = [r.id for r in self.rival_bands if r.status not in RIVAL_STATUSES]
        if bad:
            raise InvalidStateError(f"unknown rival status for {', '.join(bad)}")

    def get_song(self, song_id: str) -> Optional[Song]:
        for song in self.songs:
            if song.id == song_id:
                return song
        return None

    def get_album(self, album_id: str) -> Optional[Album]:
        for album in self.albums:
            if album.id == album_id:
                return album
        return None

    def get_bandmate(self, bandmate_id: str) -> Optional[Bandmate]:
        for bandmate in self.bandmates:
            if bandmate.id == bandmate_id:
                return bandmate
        return None

    def active_deal(self) -> Optional[LabelDeal]:
        for deal in self.label_deals:
            if deal.status == "active":
                return deal
        return None

    def active_manager(self) -> Optional[Manager]:
        if self.manager is not None and self.manager.status == "active":
            return self.manager
        return None


@dataclass
class ActionResult:
    success: bool
    message: str
    stat_changes: StatDeltas = field(default_factory=dict)
    produced_song: Optional[Song] = None
    released_song_id: Optional[str] = None
    released_album_id: Optional[str] = None
    label_offer: Optional[LabelDeal] = None
    pending_naming: Optional[PendingNaming] = None


@dataclass
class TurnResult:
    """What happened after resolving one week."""
    new_state: GameState
    result_text: str

    action_success: bool = True
    triggered_event: Optional[GameEvent] = None
    triggered_temptation: Optional[Temptation] = None
    gig_result: Optional[GigResult] = None
    pending_naming: Optional[PendingNaming] = None
    label_offer: Optional[LabelDeal] = None

    # Useful for later debugging/balancing and for a future "history" view.
    diagnostics: Dict[str, float] = field(default_factory=dict)

    @property
    def is_game_over(self) -> bool:
        return self.new_state.is_game_over

    @property
    def game_over_reason(self) -> Optional[str]:
        return self.new_state.game_over_reason
