# failing_up/config.py

# Time structure
WEEKS_PER_YEAR = 52
MAX_WEEKS = WEEKS_PER_YEAR * 10
START_WEEK = 1

# Stat bounds (every bounded player/bandmate attribute)
STAT_MIN = 0
STAT_MAX = 100

# Weekly costs
DEFAULT_WEEKLY_LIVING_COST = 100
LIVING_COST_BURNOUT_SURCHARGE = 20   # extra cost when burnout >= HIGH_BURNOUT (takeout, cabs)

# Passive drift
HYPE_DECAY_RATE = 3
ADDICTION_DRAIN_START = 50           # below this addiction does no passive damage
HIGH_ADDICTION = 70
CRITICAL_ADDICTION = 90
BURNOUT_DRAIN_START = 50
HIGH_BURNOUT = 80

# Terminal thresholds
DEATH_HEALTH = 0
CRITICAL_HEALTH = 20
CRITICAL_DEATH_CHANCE = 0.3          # weekly death roll when health and addiction are both critical
DEEP_DEBT_THRESHOLD = -1000
LOW_GOODWILL_THRESHOLD = 10

# Trigger engine
EVENT_BASE_CHANCE = 0.3
EVENT_CHANCE_CAP = 0.9
ARC_EVENT_CHANCE = 0.5
EVENT_ADDICTION_BUMP = 0.1           # per addiction threshold crossed (50, 70)
EVENT_LOW_STABILITY = 30
EVENT_HIGH_BURNOUT = 60
EVENT_STRESS_BUMP = 0.1

# Song writing
WRITE_BASE_CHANCE = 0.4
WRITE_SKILL_DIVISOR = 200            # +0.5 success chance at skill 100
SONG_QUALITY_VARIANCE = (-10, 15)
HIT_POTENTIAL_QUALITY_WEIGHT = 0.7
HIT_POTENTIAL_VARIANCE = (0, 30)
STYLE_PREFERENCE_CHANCE = 0.6
MUSIC_STYLES = ("glam", "punk", "grunge", "alt", "metal", "indie")

# Band
BANDMATE_ROLES = ("guitar", "bass", "drums", "keys", "vocals")
STARTING_ROLES = ("guitar", "bass", "drums")
BANDMATE_STATUSES = ("active", "fired", "quit", "rehab", "dead")
TERMINAL_BANDMATE_STATUSES = ("fired", "quit", "dead")
AUDITION_COST = 50
LOYALTY_QUIT_THRESHOLD = 15
LOYALTY_ULTIMATUM_THRESHOLD = 30
VICE_TROUBLE_THRESHOLD = 60
VICE_DISASTER_THRESHOLD = 80
RELIABILITY_FLAKE_THRESHOLD = 30
FIRING_LOYALTY_HIT = 5
BANDMATE_DEATH_STABILITY_HIT = 15
BANDMATE_FATES = ("dead", "rehab", "fired")   # story-driven status changes an event choice may cause
BAIL_COST = 100
BAIL_HYPE = 2

# Local gigs
GIG_BASE_DOOR = 50
GIG_LOCAL_FAN_CAP = 500
GIG_PER_HEAD = 3
GIG_WALK_IN = (10, 30)

# Touring (per-show guarantees before fan/hype scaling)
SHOWS_PER_WEEK = 4
MERCH_PROFIT_PER_FAN = 0.03
TOUR_HEALTH_COST = 4
TOUR_BURNOUT_COST = 5

# Recording
WRITE_AND_RECORD_SONGS_PER_WEEK = (1, 2)
RECORDING_BURNOUT_PER_WEEK = 3
MIN_ALBUM_SONGS = 3

# Streaming
STREAMS_PER_TIER = {
    "none": (0, 0),
    "low": (100, 1_000),
    "medium": (1_000, 10_000),
    "high": (10_000, 100_000),
    "massive": (100_000, 1_000_000),
}
STREAMS_TIERS = ("none", "low", "medium", "high", "massive")
MONEY_PER_1000_STREAMS = 3.5
VIRAL_MULTIPLIER = 5
VIRAL_DURATION_WEEKS = 4
VIRAL_BASE_CHANCE = 0.01
VIRAL_PLAYLIST_BOOST = 30
ALGO_BOOST_DECAY = 3
PLAYLIST_THRESHOLDS = {
    "editorial": 70,
    "algorithmic": 40,
    "discover": 20,
}
LISTENER_CONVERSION_RATE = 0.001
CHART_STREAMS_THRESHOLD = 50_000

# Albums
SALES_TIERS = ("flop", "cult", "silver", "gold", "platinum", "diamond")
SALES_TIER_MIN_SALES = {
    "flop": 0,
    "cult": 5_000,
    "silver": 25_000,
    "gold": 100_000,
    "platinum": 500_000,
    "diamond": 2_000_000,
}
SALES_TIER_ROYALTY_MULTIPLIER = {
    "flop": 0.5,
    "cult": 1.0,
    "silver": 1.5,
    "gold": 2.0,
    "platinum": 3.0,
    "diamond": 5.0,
}
SALES_TIER_FAN_MULTIPLIER = {
    "flop": 0.5,
    "cult": 1,
    "silver": 2,
    "gold": 5,
    "platinum": 10,
    "diamond": 25,
}
ALBUM_PRODUCTION_BONUS_MAX = 20
LABEL_SALES_BOOST = 1.5
ALBUM_WEEKLY_ROYALTY_BASE = 50
ALBUM_REVENUE_PER_RECEPTION = 20     # launch-week album revenue per reception point

# Support slots
SUPPORT_SLOT_MIN_FANS = 2000
SUPPORT_SLOT_MIN_HYPE = 25
SUPPORT_SLOT_BASE_CHANCE = 0.05

# Industry goodwill penalties
TOUR_ABANDON_GOODWILL_HIT = 5
MISSED_OFFER_GOODWILL = 3            # letting a support offer lapse
DECLINED_OFFER_GOODWILL = 2
MISSED_GIG_GOODWILL = 8              # no-show at a booked gig

# Manager
MANAGER_HIRE_COST = 100              # finding and interviewing candidates
MANAGER_CANDIDATES = 3
MANAGER_BASE_CUT = 0.10
MANAGER_CUT_RANGE = 0.15             # the best managers take 25%
MANAGER_BOOKING_BASE = 0.30
MANAGER_BOOKING_SKILL_WEIGHT = 0.40
MANAGER_BOOKING_HYPE_WEIGHT = 0.15
MANAGER_BOOKING_CAP = 0.85
MANAGER_UPGRADE_CONNECTIONS = 60     # connections above this can land a bigger room
MANAGER_UPGRADE_CHANCE = 0.2
UNMANAGED_CONNECTIONS = 10           # support-slot connections without a manager
MANAGER_STATUSES = ("active", "fired")

# Venues a manager can book: (kind, min fans, capacity, base pay, prestige)
MANAGED_VENUE_TIERS = (
    ("pub", 0, (30, 80), (50, 150), (5, 20)),
    ("club", 200, (100, 300), (150, 400), (20, 40)),
    ("small_venue", 1000, (300, 800), (400, 1000), (40, 60)),
    ("headline", 5000, (800, 2000), (1000, 3000), (60, 85)),
)

# Rival bands
FAME_TIERS = ("local", "regional", "national", "star", "legend")
FAME_TIER_MIN_FANS = {
    "local": 0,
    "regional": 500,
    "national": 5_000,
    "star": 50_000,
    "legend": 500_000,
}
FAME_TIER_MULTIPLIER = {
    "local": 0.3,
    "regional": 0.5,
    "national": 0.7,
    "star": 0.85,
    "legend": 1.0,
}
RIVALS_PER_TIER = 4
RIVAL_STATUSES = ("active", "hiatus", "broken_up", "retired")
RIVAL_BREAKUP_CHANCE = 0.02
RIVAL_COMEBACK_CHANCE = 0.01
RIVAL_TIER_MOVE_CHANCE = 0.03
RIVAL_BEEF_COOLING_CHANCE = 0.05
RIVAL_BEEF_RELATIONSHIP_HIT = 30
