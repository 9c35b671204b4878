# failing_up/stats.py
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable

from failing_up.config import STAT_MAX, STAT_MIN
from failing_up.models import AUDIENCE_COUNTERS, BOUNDED_STATS, Player, StatDeltas


def clamp_stat(value: float, lo: int = STAT_MIN, hi: int = STAT_MAX) -> int:
    v = int(value)
    return lo if v < lo else hi if v > hi else v


def apply_stat_deltas(player: Player, deltas: StatDeltas) -> Player:
    """
    The one way player stats change. Returns a new Player:
      - bounded stats are clamped to 0..100
      - money is left unclamped (debt is allowed)
      - audience counters are floored at zero; a plain `fans` delta lands on core_fans
    """
    changes: Dict[str, int] = {}
    for key, delta in deltas.items():
        if not delta:
            continue
        target = "core_fans" if key == "fans" else key
        if target in BOUNDED_STATS:
            current = changes.get(target, getattr(player, target))
            changes[target] = clamp_stat(current + delta)
        elif target in AUDIENCE_COUNTERS:
            current = changes.get(target, getattr(player, target))
            changes[target] = max(0, int(current + delta))
        elif target == "money":
            changes["money"] = int(changes.get("money", player.money) + delta)
        else:
            raise ValueError(f"Unknown stat: {key}")
    return replace(player, flags=replace(player.flags), **changes)


def merge_deltas(*parts: Iterable[StatDeltas]) -> StatDeltas:
    """Sum several delta dicts (for the week log), dropping zeros."""
    out: StatDeltas = {}
    for part in parts:
        for key, value in part.items():
            out[key] = out.get(key, 0) + value
    return {k: v for k, v in out.items() if v}


def is_known_stat(key: str) -> bool:
    return key == "fans" or key == "money" or key in BOUNDED_STATS or key in AUDIENCE_COUNTERS
