# failing_up/temptations.py
from __future__ import annotations

import copy
from typing import Optional, Sequence

from failing_up.difficulty import DifficultySettings, event_chance
from failing_up.errors import GameOverError, InvalidChoiceError
from failing_up.models import GameState, Temptation, TemptationChoice
from failing_up.rng import SeededRandom
from failing_up.stats import apply_stat_deltas
from failing_up.triggers import check_conditions


def is_on_cooldown(temptation: Temptation, state: GameState) -> bool:
    return state.temptation_cooldowns.get(temptation.id, 0) > 0


def can_trigger(temptation: Temptation, state: GameState) -> bool:
    if is_on_cooldown(temptation, state):
        return False
    return check_conditions(temptation.conditions, state)


def tick_cooldowns(state: GameState) -> None:
    """One week passes for every cooldown; expired entries are dropped. In place."""
    state.temptation_cooldowns = {
        tid: left - 1 for tid, left in sorted(state.temptation_cooldowns.items()) if left > 1
    }


def roll_temptation(
    temptations: Sequence[Temptation],
    state: GameState,
    rng: SeededRandom,
    settings: DifficultySettings,
) -> Optional[Temptation]:
    """
    Each eligible temptation gets its own Bernoulli draw, in catalog order, and
    the first hit wins. Unlike events there is no weighting across candidates.
    """
    for temptation in temptations:
        if not can_trigger(temptation, state):
            continue
        if rng.chance(event_chance(temptation.base_chance, settings)):
            return temptation
    return None


def start_cooldown(state: GameState, temptation: Temptation) -> None:
    if temptation.cooldown > 0:
        state.temptation_cooldowns[temptation.id] = temptation.cooldown


def get_temptation_choice(temptation: Temptation, choice_id: str) -> TemptationChoice:
    if choice_id == temptation.accept.id:
        return temptation.accept
    if choice_id == temptation.decline.id:
        return temptation.decline
    raise InvalidChoiceError(f"temptation {temptation.id} has no choice {choice_id!r}")


def apply_temptation_choice(
    state: GameState, temptation: Optional[Temptation], choice_id: str
) -> GameState:
    if temptation is None:
        return state
    if state.is_game_over:
        raise GameOverError("game is over")
    choice = get_temptation_choice(temptation, choice_id)

    new = copy.deepcopy(state)
    new.player = apply_stat_deltas(new.player, choice.effects)
    if new.week_logs:
        new.week_logs[-1].events.append(
            {"temptation_id": temptation.id, "choice_id": choice.id, "outcome": choice.result_text}
        )
    return new
