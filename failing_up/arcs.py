# failing_up/arcs.py
"""
Multi-stage storylines.

An arc enters when its entry conditions hold and it is neither running nor
finished. Each week a running arc may surface one event from its current
stage's pool, and separately moves forward one stage when that stage's
advance conditions hold. Stages only ever go up; finishing the last stage
moves the id into completed_arc_ids.
"""
from __future__ import annotations

import copy
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

from failing_up.config import ARC_EVENT_CHANCE
from failing_up.models import Arc, ArcStage, GameEvent, GameState
from failing_up.rng import SeededRandom
from failing_up.triggers import check_conditions, is_eligible, weighted_select

logger = logging.getLogger(__name__)


def current_stage(arc: Arc) -> Optional[ArcStage]:
    if arc.current_stage >= len(arc.stages):
        return None
    return arc.stages[arc.current_stage]


def is_arc_active(state: GameState, arc_id: str) -> bool:
    return any(a.id == arc_id for a in state.active_arcs)


def is_arc_completed(state: GameState, arc_id: str) -> bool:
    return arc_id in state.completed_arc_ids


def can_enter_arc(template: Arc, state: GameState) -> bool:
    if is_arc_completed(state, template.id) or is_arc_active(state, template.id):
        return False
    return check_conditions(template.entry_conditions, state)


def should_advance(arc: Arc, state: GameState) -> bool:
    stage = current_stage(arc)
    if stage is None or stage.advance_conditions is None:
        # a stage without advance conditions only moves through event choices
        return False
    return check_conditions(stage.advance_conditions, state)


def arc_event_ids(arcs: Iterable[Arc]) -> Set[str]:
    """Every event id owned by some arc stage."""
    return {eid for arc in arcs for stage in arc.stages for eid in stage.event_ids}


# =============================================================================
# In-place steps (used on the working copy inside resolve_turn / apply_choice)
# =============================================================================

def _activate(state: GameState, template: Arc) -> Arc:
    arc = copy.deepcopy(template)
    arc.current_stage = 0
    state.active_arcs.append(arc)
    logger.debug("arc %s activated at week %d", arc.id, state.week)
    return arc


def _advance(state: GameState, arc_id: str) -> bool:
    """Move one stage forward; returns True if that completed the arc."""
    for arc in state.active_arcs:
        if arc.id != arc_id:
            continue
        if arc.current_stage + 1 >= len(arc.stages):
            state.active_arcs = [a for a in state.active_arcs if a.id != arc_id]
            state.completed_arc_ids.append(arc_id)
            logger.debug("arc %s completed at week %d", arc_id, state.week)
            return True
        arc.current_stage += 1
        return False
    return False


def activate_new_arcs(state: GameState, templates: Sequence[Arc]) -> List[str]:
    entered = []
    for template in templates:
        if can_enter_arc(template, state):
            entered.append(_activate(state, template).name)
    return entered


def advance_ready_arcs(state: GameState) -> List[str]:
    """Names of arcs that completed this week."""
    done = []
    for arc in list(state.active_arcs):
        if should_advance(arc, state):
            if _advance(state, arc.id):
                done.append(arc.name)
    return done


def progress_arc(state: GameState, arc_id: str) -> None:
    """Event-choice driven advancement; silently ignores arcs that are not running."""
    _advance(state, arc_id)


# =============================================================================
# Public operations (copy in, copy out)
# =============================================================================

def activate_arc(state: GameState, template: Arc) -> GameState:
    if is_arc_active(state, template.id) or is_arc_completed(state, template.id):
        return state
    new = copy.deepcopy(state)
    _activate(new, template)
    return new


def advance_arc(state: GameState, arc_id: str) -> GameState:
    if not is_arc_active(state, arc_id):
        return state
    new = copy.deepcopy(state)
    _advance(new, arc_id)
    return new


def abort_arc(state: GameState, arc_id: str) -> GameState:
    """Drop a running arc without completing it; it may enter again later."""
    if not is_arc_active(state, arc_id):
        return state
    new = copy.deepcopy(state)
    new.active_arcs = [a for a in new.active_arcs if a.id != arc_id]
    return new


# =============================================================================
# Event surfacing
# =============================================================================

def eligible_arc_events(
    state: GameState,
    events_by_id: Dict[str, GameEvent],
    action: Optional[str] = None,
) -> List[GameEvent]:
    out: List[GameEvent] = []
    seen: Set[str] = set()
    for arc in state.active_arcs:
        stage = current_stage(arc)
        if stage is None:
            continue
        for event_id in stage.event_ids:
            event = events_by_id.get(event_id)
            if event is None or event_id in seen:
                continue
            if is_eligible(event, state, action):
                out.append(event)
                seen.add(event_id)
    return out


def select_arc_event(
    state: GameState,
    events_by_id: Dict[str, GameEvent],
    rng: SeededRandom,
    action: Optional[str] = None,
) -> Optional[GameEvent]:
    """Arc events get their own gate; they are checked before standalone events."""
    pool = eligible_arc_events(state, events_by_id, action)
    if not pool:
        return None
    if rng.next() >= ARC_EVENT_CHANCE:
        return None
    return weighted_select(pool, rng)
