# failing_up/difficulty.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from failing_up.config import EVENT_CHANCE_CAP


@dataclass(frozen=True)
class DifficultySettings:
    name: str
    description: str

    # Economy (1.0 = normal)
    living_cost_multiplier: float
    gig_pay_multiplier: float
    advance_multiplier: float

    # Stat drift
    fan_gain_multiplier: float
    hype_decay_multiplier: float
    health_loss_multiplier: float
    addiction_gain_multiplier: float
    burnout_gain_multiplier: float

    # Starting position
    starting_money: int
    starting_health: int
    starting_stability: int

    # Trigger engine
    event_chance_multiplier: float
    negative_event_weight: float


DIFFICULTY_SETTINGS: Dict[str, DifficultySettings] = {
    "easy": DifficultySettings(
        name="Garage Band",
        description="A forgiving journey. Good for learning the ropes.",
        living_cost_multiplier=0.7,
        gig_pay_multiplier=1.3,
        advance_multiplier=1.2,
        fan_gain_multiplier=1.3,
        hype_decay_multiplier=0.7,
        health_loss_multiplier=0.7,
        addiction_gain_multiplier=0.6,
        burnout_gain_multiplier=0.7,
        starting_money=600,
        starting_health=80,
        starting_stability=65,
        event_chance_multiplier=0.8,
        negative_event_weight=0.7,
    ),
    "normal": DifficultySettings(
        name="Indie Grind",
        description="The authentic rock experience. Success is earned.",
        living_cost_multiplier=1.0,
        gig_pay_multiplier=1.0,
        advance_multiplier=1.0,
        fan_gain_multiplier=1.0,
        hype_decay_multiplier=1.0,
        health_loss_multiplier=1.0,
        addiction_gain_multiplier=1.0,
        burnout_gain_multiplier=1.0,
        starting_money=500,
        starting_health=70,
        starting_stability=55,
        event_chance_multiplier=1.0,
        negative_event_weight=1.0,
    ),
    "hard": DifficultySettings(
        name="Major Label Pressure",
        description="The industry is ruthless. One mistake can end it all.",
        living_cost_multiplier=1.3,
        gig_pay_multiplier=0.8,
        advance_multiplier=0.9,
        fan_gain_multiplier=0.8,
        hype_decay_multiplier=1.3,
        health_loss_multiplier=1.3,
        addiction_gain_multiplier=1.4,
        burnout_gain_multiplier=1.3,
        starting_money=350,
        starting_health=65,
        starting_stability=50,
        event_chance_multiplier=1.2,
        negative_event_weight=1.3,
    ),
    "brutal": DifficultySettings(
        name="27 Club",
        description="Live fast, die young. Most careers end in tragedy.",
        living_cost_multiplier=1.5,
        gig_pay_multiplier=0.6,
        advance_multiplier=0.8,
        fan_gain_multiplier=0.6,
        hype_decay_multiplier=1.5,
        health_loss_multiplier=1.6,
        addiction_gain_multiplier=1.8,
        burnout_gain_multiplier=1.5,
        starting_money=200,
        starting_health=55,
        starting_stability=40,
        event_chance_multiplier=1.4,
        negative_event_weight=1.6,
    ),
}

def get_difficulty_settings(difficulty: str) -> DifficultySettings:
    try:
        return DIFFICULTY_SETTINGS[difficulty]
    except KeyError as e:
        raise ValueError(f"Unknown difficulty: {difficulty}") from e


def scaled(value: float, multiplier: float) -> int:
    # half away from zero; round() would bank 2.5 down to 2
    x = value * multiplier
    return int(x + 0.5) if x >= 0 else -int(-x + 0.5)


def weekly_living_cost(base_cost: int, settings: DifficultySettings) -> int:
    return scaled(base_cost, settings.living_cost_multiplier)


def gig_payout(base_payout: int, settings: DifficultySettings) -> int:
    return scaled(base_payout, settings.gig_pay_multiplier)


def fan_gain(base_fans: int, settings: DifficultySettings) -> int:
    return scaled(base_fans, settings.fan_gain_multiplier)


def hype_decay(base_decay: int, settings: DifficultySettings) -> int:
    return scaled(base_decay, settings.hype_decay_multiplier)


def health_loss(base_loss: int, settings: DifficultySettings) -> int:
    return scaled(base_loss, settings.health_loss_multiplier)


def addiction_gain(base_gain: int, settings: DifficultySettings) -> int:
    return scaled(base_gain, settings.addiction_gain_multiplier)


def burnout_gain(base_gain: int, settings: DifficultySettings) -> int:
    return scaled(base_gain, settings.burnout_gain_multiplier)


def event_chance(base_chance: float, settings: DifficultySettings) -> float:
    return min(EVENT_CHANCE_CAP, base_chance * settings.event_chance_multiplier)
