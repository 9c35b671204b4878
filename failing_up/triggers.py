# failing_up/triggers.py
from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional, Sequence, TypeVar

from failing_up.band import active_bandmates, band_vice
from failing_up.config import (
    EVENT_ADDICTION_BUMP,
    EVENT_BASE_CHANCE,
    EVENT_HIGH_BURNOUT,
    EVENT_LOW_STABILITY,
    EVENT_STRESS_BUMP,
    HIGH_ADDICTION,
    ADDICTION_DRAIN_START,
)
from failing_up.difficulty import DifficultySettings, event_chance
from failing_up.models import Conditions, GameEvent, GameState
from failing_up.rivals import active_rivals, rivals_with_beef
from failing_up.rng import SeededRandom

T = TypeVar("T")

Predicate = Callable[[GameState, object], bool]


def _stat(name: str) -> Callable[[GameState], float]:
    if name == "fans":
        return lambda s: s.player.fans
    if name == "week":
        return lambda s: s.week
    return lambda s: getattr(s.player, name)


def _min(getter: Callable[[GameState], float]) -> Predicate:
    return lambda s, v: getter(s) >= v


def _max(getter: Callable[[GameState], float]) -> Predicate:
    return lambda s, v: getter(s) <= v


def _flag(name: str) -> Predicate:
    return lambda s, v: getattr(s.player.flags, name) == bool(v)


def _has_flag(s: GameState, v: object) -> bool:
    return v in s.story_flags or v in s.triggered_event_ids


# Stats that accept both a min_ and max_ threshold.
_RANGED = (
    "fans",
    "core_fans",
    "casual_listeners",
    "followers",
    "money",
    "health",
    "stability",
    "addiction",
    "burnout",
    "cred",
    "hype",
    "image",
    "skill",
    "talent",
    "industry_goodwill",
    "algo_boost",
    "catalogue_power",
    "week",
)

PREDICATES: Dict[str, Predicate] = {}
for _name in _RANGED:
    PREDICATES[f"min_{_name}"] = _min(_stat(_name))
    PREDICATES[f"max_{_name}"] = _max(_stat(_name))
for _name in ("on_tour", "in_studio", "has_label_deal", "has_manager", "has_lawyer"):
    PREDICATES[_name] = _flag(_name)

PREDICATES.update(
    {
        "min_band_size": lambda s, v: len(active_bandmates(s)) >= v,
        "max_band_size": lambda s, v: len(active_bandmates(s)) <= v,
        "min_band_vice": lambda s, v: band_vice(s) >= v,
        "min_songs": lambda s, v: len(s.songs) >= v,
        "min_released_songs": lambda s, v: sum(1 for x in s.songs if x.is_released) >= v,
        "min_albums": lambda s, v: len(s.albums) >= v,
        "has_unreleased_songs": lambda s, v: any(not x.is_released for x in s.songs) == bool(v),
        "has_unreleased_album": lambda s, v: any(not a.is_released for a in s.albums) == bool(v),
        "has_flag": _has_flag,
        "not_flag": lambda s, v: not _has_flag(s, v),
        "arc_completed": lambda s, v: v in s.completed_arc_ids,
        "min_active_rivals": lambda s, v: len(active_rivals(s)) >= v,
        "has_rival_beef": lambda s, v: bool(rivals_with_beef(s)) == bool(v),
    }
)


def validate_conditions(conditions: Mapping[str, object]) -> None:
    unknown = [k for k in conditions if k not in PREDICATES]
    if unknown:
        raise ValueError(f"Unknown condition(s): {', '.join(sorted(unknown))}")


def check_conditions(conditions: Optional[Conditions], state: GameState) -> bool:
    """Every present predicate must hold; an empty mapping is always true."""
    if not conditions:
        return True
    for key, threshold in conditions.items():
        predicate = PREDICATES.get(key)
        if predicate is None:
            raise ValueError(f"Unknown condition: {key}")
        if not predicate(state, threshold):
            return False
    return True


def is_eligible(candidate: GameEvent, state: GameState, action: Optional[str] = None) -> bool:
    """Conditions plus the consumed-once and required-action filters."""
    if candidate.one_time and candidate.id in state.triggered_event_ids:
        return False
    if candidate.required_action and candidate.required_action != action:
        return False
    return check_conditions(candidate.conditions, state)


def weighted_select(
    candidates: Sequence[T],
    rng: SeededRandom,
    weight: Callable[[T], float] = lambda c: c.weight,
) -> Optional[T]:
    """
    Pick one candidate with probability weight(i) / sum(weights). Exactly one
    draw is consumed when there is anything to pick from.
    """
    if not candidates:
        return None
    weights = [max(0.0, float(weight(c))) for c in candidates]
    total = sum(weights)
    if total <= 0:
        return None

    roll = rng.next_float(0, total)
    cumulative = 0.0
    for cand, w in zip(candidates, weights):
        cumulative += w
        if roll < cumulative:
            return cand
    return candidates[-1]


def trigger_chance(
    state: GameState,
    settings: DifficultySettings,
    base_chance: float = EVENT_BASE_CHANCE,
) -> float:
    """Event probability for the week, before the Bernoulli draw."""
    p = state.player
    chance = base_chance
    if p.addiction >= ADDICTION_DRAIN_START:
        chance += EVENT_ADDICTION_BUMP
    if p.addiction >= HIGH_ADDICTION:
        chance += EVENT_ADDICTION_BUMP
    if p.stability <= EVENT_LOW_STABILITY:
        chance += EVENT_STRESS_BUMP
    if p.burnout >= EVENT_HIGH_BURNOUT:
        chance += EVENT_STRESS_BUMP
    return event_chance(chance, settings)


def should_trigger(
    state: GameState,
    rng: SeededRandom,
    settings: DifficultySettings,
    base_chance: float = EVENT_BASE_CHANCE,
) -> bool:
    return rng.next() < trigger_chance(state, settings, base_chance)
