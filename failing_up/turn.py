# failing_up/turn.py
from __future__ import annotations

import copy
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from failing_up.actions import execute_action, get_action, is_action_available
from failing_up.arcs import activate_new_arcs, advance_ready_arcs, arc_event_ids, select_arc_event
from failing_up.band import apply_weekly_band_dynamics, is_band_collapsed
from failing_up.config import (
    ADDICTION_DRAIN_START,
    BURNOUT_DRAIN_START,
    CRITICAL_ADDICTION,
    CRITICAL_DEATH_CHANCE,
    CRITICAL_HEALTH,
    DEATH_HEALTH,
    DEEP_DEBT_THRESHOLD,
    HIGH_ADDICTION,
    HIGH_BURNOUT,
    HYPE_DECAY_RATE,
    LIVING_COST_BURNOUT_SURCHARGE,
    LOW_GOODWILL_THRESHOLD,
)
from failing_up.content import load_arcs, load_events, load_temptations
from failing_up.difficulty import (
    DifficultySettings,
    burnout_gain,
    get_difficulty_settings,
    health_loss,
    hype_decay,
    weekly_living_cost,
)
from failing_up.economy import weekly_album_royalties
from failing_up.endings import determine_ending
from failing_up.errors import ActionUnavailableError, GameOverError
from failing_up.events import select_event
from failing_up.gigs import expire_support_offer, settle_upcoming_gig, try_support_offer
from failing_up.manager import try_book_gig
from failing_up.models import (
    Arc,
    GameEvent,
    GameState,
    Player,
    StatDeltas,
    Temptation,
    TurnResult,
    WeekLog,
)
from failing_up.rivals import update_rival_bands
from failing_up.rng import SeededRandom, stream_rng, turn_rng
from failing_up.sessions import advance_recording_week, advance_tour_week
from failing_up.state import week_to_year
from failing_up.stats import apply_stat_deltas, merge_deltas
from failing_up.streaming import apply_algo_boost_decay, apply_weekly_streaming
from failing_up.temptations import roll_temptation, start_cooldown, tick_cooldowns

logger = logging.getLogger(__name__)


# =============================================================================
# Weekly pieces
# =============================================================================

def living_cost(state: GameState, settings: DifficultySettings) -> int:
    cost = state.weekly_living_cost
    if state.player.burnout >= HIGH_BURNOUT:
        cost += weekly_living_cost(LIVING_COST_BURNOUT_SURCHARGE, settings)
    return cost


def passive_drift(player: Player, settings: DifficultySettings) -> StatDeltas:
    """
    End-of-week wear that happens no matter what you did: hype fades,
    addiction eats health and stability, burnout eats stability.
    """
    deltas: StatDeltas = {"hype": -hype_decay(HYPE_DECAY_RATE, settings)}

    if player.addiction >= CRITICAL_ADDICTION:
        drain = 3
    elif player.addiction >= HIGH_ADDICTION:
        drain = 2
    elif player.addiction >= ADDICTION_DRAIN_START:
        drain = 1
    else:
        drain = 0
    if drain:
        deltas["health"] = -health_loss(drain, settings)
        deltas["stability"] = -health_loss(drain, settings)

    if player.burnout >= BURNOUT_DRAIN_START:
        drain = 2 if player.burnout >= HIGH_BURNOUT else 1
        deltas["stability"] = deltas.get("stability", 0) - burnout_gain(drain, settings)

    return deltas


def check_game_over(state: GameState, rng: SeededRandom) -> Optional[str]:
    """
    First match wins. The critical-condition death roll only draws when health
    and addiction are both in the red.
    """
    p = state.player
    if p.health <= DEATH_HEALTH:
        return "death"
    if p.health <= CRITICAL_HEALTH and p.addiction >= CRITICAL_ADDICTION:
        if rng.chance(CRITICAL_DEATH_CHANCE):
            return "death"
    if state.week >= state.max_weeks:
        return "time_limit"
    if p.money <= DEEP_DEBT_THRESHOLD and p.industry_goodwill <= LOW_GOODWILL_THRESHOLD:
        return "broke"
    if is_band_collapsed(state):
        return "band_collapsed"
    return None


def _surface_triggers(
    state: GameState,
    action_id: str,
    rng: SeededRandom,
    settings: DifficultySettings,
    events: Sequence[GameEvent],
    arcs: Sequence[Arc],
    temptations: Sequence[Temptation],
) -> Tuple[Optional[GameEvent], Optional[Temptation], List[str]]:
    """Arcs enter, one event at most, one temptation at most, then arcs advance."""
    news: List[str] = []
    for name in activate_new_arcs(state, arcs):
        news.append(f"A new chapter begins: {name}.")

    by_id: Dict[str, GameEvent] = {e.id: e for e in events}
    event = select_arc_event(state, by_id, rng, action_id)
    if event is None:
        event = select_event(events, state, rng, settings, action_id, exclude_ids=arc_event_ids(arcs))

    temptation = roll_temptation(temptations, state, rng, settings)

    for name in advance_ready_arcs(state):
        news.append(f"{name} has run its course.")
    return event, temptation, news


# =============================================================================
# Turn
# =============================================================================

def resolve_turn(
    state: GameState,
    action_id: str,
    *,
    target: Optional[str] = None,
    events: Optional[Sequence[GameEvent]] = None,
    arcs: Optional[Sequence[Arc]] = None,
    temptations: Optional[Sequence[Temptation]] = None,
) -> TurnResult:
    """
    Resolve one week. The input state is never touched; the returned
    TurnResult carries the new snapshot plus whatever was surfaced for the
    caller to resolve (event, temptation, naming, label offer) before the
    next turn.

    Order:
      living cost -> action or session week -> booked gig / support offers
      -> manager booking -> streaming and royalties -> band dynamics
      -> rival bands -> passive drift
      -> cooldowns -> arcs enter -> event -> temptation -> arcs advance
      -> week + 1 -> game over -> week log
    """
    if state.is_game_over:
        raise GameOverError("game is over")
    action = get_action(action_id)
    if not is_action_available(action_id, state):
        raise ActionUnavailableError(f"Action not available: {action.label}")

    events = load_events() if events is None else events
    arcs = load_arcs() if arcs is None else arcs
    temptations = load_temptations() if temptations is None else temptations

    settings = get_difficulty_settings(state.difficulty)
    new = copy.deepcopy(state)
    rng = turn_rng(new.seed, new.week)

    diagnostics: Dict[str, float] = {}
    applied: List[StatDeltas] = []
    lines: List[str] = []

    def apply(deltas: StatDeltas) -> None:
        if deltas:
            new.player = apply_stat_deltas(new.player, deltas)
            applied.append(deltas)

    # costs
    cost = living_cost(new, settings)
    apply({"money": -cost})
    diagnostics["living_cost"] = cost

    # action
    success = True
    pending_naming = None
    label_offer = None
    if action.session == "recording":
        week = advance_recording_week(new, rng, settings)
        applied.append(week.stat_changes)
        lines.append(week.text)
        pending_naming = week.pending_naming
        diagnostics["songs_written"] = len(week.songs_written)
    elif action.session == "tour":
        week = advance_tour_week(new, rng, settings)
        applied.append(week.stat_changes)
        lines.append(week.text)
        if week.completed:
            diagnostics["tour_revenue"] = week.totals["revenue"]
            diagnostics["tour_costs"] = week.totals["costs"]
            diagnostics["tour_net"] = week.totals["net"]
    else:
        result = execute_action(action_id, new, rng, settings, target)
        apply(result.stat_changes)
        lines.append(result.message)
        success = result.success
        pending_naming = result.pending_naming
        label_offer = result.label_offer

    # booked gigs and offers
    gig_result = None
    settled = settle_upcoming_gig(new, rng, settings)
    if settled is not None:
        gig_result, gig_deltas = settled
        apply(gig_deltas)
        lines.append(gig_result.text)
    lapsed = expire_support_offer(new)
    if lapsed is not None:
        apply(lapsed)
        lines.append("The support slot offer lapsed. The booker won't call twice.")
    else:
        offer = try_support_offer(new, rng)
        if offer is not None:
            lines.append(
                f"{offer.headliner_name} want you as support at {offer.venue.name} in week {offer.week}."
            )
    booked = try_book_gig(new, rng)
    if booked is not None:
        lines.append(
            f"{new.manager.name} booked you into {booked.venue.name}, {booked.venue.city} next week."
        )

    # streaming and royalties
    streaming = apply_weekly_streaming(new, rng)
    applied.append(streaming.stat_changes)
    royalties = weekly_album_royalties(new)
    apply({"money": royalties})
    lines.extend(streaming.news)
    diagnostics["streams"] = streaming.total_streams
    diagnostics["streaming_net"] = streaming.split.net_income
    diagnostics["recoup_paid"] = streaming.split.recoup_paid
    diagnostics["album_royalties"] = royalties

    # band
    band = apply_weekly_band_dynamics(new, rng)
    apply(band.stat_changes)
    lines.extend(band.news)

    # the rest of the scene, on its own stream
    lines.extend(update_rival_bands(new, stream_rng(new.seed, new.week, "rivals")))

    # passive drift
    apply(passive_drift(new.player, settings))
    new.player = apply_algo_boost_decay(new.player)

    # triggers
    tick_cooldowns(new)
    event, temptation, news = _surface_triggers(
        new, action_id, rng, settings, events, arcs, temptations
    )
    lines.extend(news)

    # next week
    new.week += 1
    new.year = week_to_year(new.week)

    reason = check_game_over(new, rng)
    if reason is not None:
        new.is_game_over = True
        new.game_over_reason = reason
        new.ending_id = determine_ending(new)
        lines.append(f"Game over: {reason.replace('_', ' ')}.")
        logger.info(
            "game over at week %d: %s (ending %s)", new.week, reason, new.ending_id
        )
        # nothing can be answered once the game is over
        event = None
        temptation = None
    elif temptation is not None:
        start_cooldown(new, temptation)

    text = "\n".join(line for line in lines if line)
    new.week_logs.append(
        WeekLog(
            week=state.week,
            action=action_id,
            action_result=text,
            stat_changes=merge_deltas(*applied),
        )
    )
    new.validate()

    logger.debug(
        "week %d resolved: %s event=%s temptation=%s",
        state.week,
        action_id,
        event.id if event else None,
        temptation.id if temptation else None,
    )

    return TurnResult(
        new_state=new,
        result_text=text,
        action_success=success,
        triggered_event=event,
        triggered_temptation=temptation,
        gig_result=gig_result,
        pending_naming=pending_naming,
        label_offer=label_offer,
        diagnostics=diagnostics,
    )
