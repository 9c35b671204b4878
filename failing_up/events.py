# failing_up/events.py
from __future__ import annotations

import copy
import logging
from dataclasses import fields
from typing import List, Optional, Sequence, Set

from failing_up.arcs import progress_arc
from failing_up.band import adjust_bandmates, apply_bandmate_fate, most_at_risk
from failing_up.difficulty import DifficultySettings
from failing_up.errors import GameOverError, InvalidChoiceError
from failing_up.manager import generate_manager_candidate, hire_manager
from failing_up.models import DERIVED_FLAGS, GameEvent, GameState, PlayerFlags
from failing_up.rivals import end_rival_beefs, start_rival_beef
from failing_up.rng import SeededRandom, turn_rng
from failing_up.stats import apply_stat_deltas
from failing_up.triggers import is_eligible, should_trigger, weighted_select

logger = logging.getLogger(__name__)

PLAYER_FLAG_NAMES = {f.name for f in fields(PlayerFlags)}


def eligible_events(
    events: Sequence[GameEvent],
    state: GameState,
    action: Optional[str] = None,
    exclude_ids: Optional[Set[str]] = None,
) -> List[GameEvent]:
    exclude_ids = exclude_ids or set()
    return [e for e in events if e.id not in exclude_ids and is_eligible(e, state, action)]


def event_weight(event: GameEvent, settings: DifficultySettings) -> float:
    if event.negative:
        return event.weight * settings.negative_event_weight
    return event.weight


def select_event(
    events: Sequence[GameEvent],
    state: GameState,
    rng: SeededRandom,
    settings: DifficultySettings,
    action: Optional[str] = None,
    exclude_ids: Optional[Set[str]] = None,
) -> Optional[GameEvent]:
    """
    Bernoulli gate first, then weighted sampling across every eligible event.
    Harder difficulties both raise the gate and fatten negative events.
    """
    if not should_trigger(state, rng, settings):
        return None
    pool = eligible_events(events, state, action, exclude_ids)
    return weighted_select(pool, rng, lambda e: event_weight(e, settings))


def _apply_flags(state: GameState, names: Sequence[str], value: bool) -> None:
    for name in names:
        if name in DERIVED_FLAGS:
            # structural flags follow sessions and deals, not story beats
            logger.warning("event tried to set derived flag %s; ignored", name)
        elif name in PLAYER_FLAG_NAMES:
            setattr(state.player.flags, name, value)
        elif value and name not in state.story_flags:
            state.story_flags.append(name)
        elif not value and name in state.story_flags:
            state.story_flags.remove(name)


def apply_choice(state: GameState, event: Optional[GameEvent], choice_id: str) -> GameState:
    """
    Resolve a surfaced event. No event: same state back. A one-time event that
    was already consumed is also a no-op, so a double submit can't apply twice.
    """
    if event is None:
        return state
    if state.is_game_over:
        raise GameOverError("game is over")
    choice = event.get_choice(choice_id)
    if choice is None:
        raise InvalidChoiceError(f"event {event.id} has no choice {choice_id!r}")
    if event.one_time and event.id in state.triggered_event_ids:
        return state

    new = copy.deepcopy(state)
    if choice.bandmate_fate:
        # the fate lands first so bandmate_changes only touch the survivors
        target = most_at_risk(new)
        new = apply_bandmate_fate(new, choice.bandmate_fate)
        if target is not None:
            logger.info("%s: %s is %s", event.id, target.name, choice.bandmate_fate)
    new.player = apply_stat_deltas(new.player, choice.stat_changes)
    if choice.bandmate_changes:
        adjust_bandmates(new, choice.bandmate_changes)
    _apply_flags(new, choice.flags_set, True)
    _apply_flags(new, choice.flags_clear, False)
    if choice.rival_beef == "start":
        rival = start_rival_beef(new)
        if rival is not None:
            logger.info("%s: beef with %s", event.id, rival.name)
    elif choice.rival_beef == "end":
        end_rival_beefs(new)
    if choice.hire_manager:
        new = hire_manager(new, generate_manager_candidate(new, turn_rng(new.seed, new.week)))
    if choice.arc_progression:
        progress_arc(new, choice.arc_progression)
    if event.one_time:
        new.triggered_event_ids.append(event.id)

    if new.week_logs:
        new.week_logs[-1].events.append(
            {"event_id": event.id, "choice_id": choice.id, "outcome": choice.outcome_text}
        )
    new.validate()
    return new
