from __future__ import annotations

import pytest

from failing_up.difficulty import get_difficulty_settings
from failing_up.errors import InvalidChoiceError
from failing_up.rng import SeededRandom
from failing_up.temptations import (
    apply_temptation_choice,
    can_trigger,
    roll_temptation,
    start_cooldown,
    tick_cooldowns,
)

from conftest import make_player, make_state, make_temptation

NORMAL = get_difficulty_settings("normal")


def test_first_hit_wins_in_catalog_order(state):
    # 1.0 is capped to 0.9 by the difficulty helper, so look across seeds
    first, second = make_temptation("first"), make_temptation("second")
    picks = [roll_temptation([first, second], state, SeededRandom(s), NORMAL) for s in range(200)]
    ids = [p.id for p in picks if p is not None]
    assert ids.count("first") > 5 * ids.count("second")


def test_never_rolls_when_chance_zero(state):
    never = make_temptation(base_chance=0.0)
    for seed in range(100):
        assert roll_temptation([never], state, SeededRandom(seed), NORMAL) is None


def test_conditions_gate(state):
    gated = make_temptation(conditions={"min_burnout": 40})
    assert not can_trigger(gated, state)
    assert can_trigger(gated, make_state(player=make_player(burnout=50)))


def test_cooldown_blocks_and_expires(state):
    t = make_temptation(cooldown=2)
    start_cooldown(state, t)
    assert not can_trigger(t, state)
    tick_cooldowns(state)
    assert state.temptation_cooldowns == {"tempt": 1}
    assert not can_trigger(t, state)
    tick_cooldowns(state)
    assert state.temptation_cooldowns == {}
    assert can_trigger(t, state)


def test_accept_applies_effects(state):
    new = apply_temptation_choice(state, make_temptation(), "accept")
    assert new.player.addiction == state.player.addiction + 5
    assert state.player.addiction == 0


def test_decline(state):
    new = apply_temptation_choice(state, make_temptation(), "decline")
    assert new.player.cred == state.player.cred + 1


def test_no_temptation_is_noop(state):
    assert apply_temptation_choice(state, None, "accept") is state


def test_bad_choice(state):
    with pytest.raises(InvalidChoiceError):
        apply_temptation_choice(state, make_temptation(), "think_about_it")
